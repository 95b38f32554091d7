"""Filter pipeline over log groups by identifier, protocol markers, status and correlation."""

import logging
import re
from typing import Callable, Sequence

from perflog.models import FilterCriteria, LogGroup

logger = logging.getLogger(__name__)

STATUS_BUCKETS = (100, 200, 300, 400, 500)

_HTTP_STATUS_RE = re.compile(r'HTTP/\d\.\d" (\d{3})')
_REQUEST_ID_RE = re.compile(r"Request ID:([a-zA-Z0-9-]+)")
_RESPONSE_ID_RE = re.compile(r"Response ID:([a-zA-Z0-9-]+)")

PROFILER_MARKERS = (
    re.compile(r"/api/data[\t ]+POST", re.IGNORECASE),
    re.compile(r"Too long execution", re.IGNORECASE),
    re.compile(r"Execution profile", re.IGNORECASE),
)


def filter_by_id(group: LogGroup, needle: str) -> bool:
    """True if any line contains needle (case-insensitive)."""
    needle = needle.lower()
    return any(needle in line.lower() for line in group.lines)


def filter_by_protocol(group: LogGroup, criteria: FilterCriteria) -> bool:
    """True if a line carries a marker wanted by one of the protocol toggles."""
    for line in group.lines:
        has_protocol = criteria.protocol_marker in line
        has_hub = criteria.hub_marker in line
        if (
            (criteria.filter_signalr and (has_protocol or has_hub))
            or (criteria.highlight_signalr and has_protocol)
            or (criteria.highlight_hub and has_hub)
        ):
            return True
    return False


def status_in_bucket(line: str, bucket: int) -> bool:
    """True if the line's Apache status token falls in [bucket, bucket + 99]."""
    m = _HTTP_STATUS_RE.search(line)
    if not m:
        return False
    status = int(m.group(1))
    return bucket <= status <= bucket + 99


def filter_by_status(group: LogGroup, buckets: Sequence[int]) -> bool:
    return any(status_in_bucket(line, b) for line in group.lines for b in buckets)


def filter_profiler_only(group: LogGroup) -> bool:
    return any(rx.search(line) for line in group.lines for rx in PROFILER_MARKERS)


def correlate_request_response(groups: Sequence[LogGroup], id_filter: str = "") -> list[LogGroup]:
    """Re-bucket groups by Request/Response ID, one merged group per id.

    Identical groups are de-duplicated by exact text. Under an identifier
    filter a group only joins its bucket when it contains the identifier,
    and buckets left empty are dropped.
    """
    buckets: dict[str, list[LogGroup]] = {}

    for group in groups:
        text = group.text
        for rx in (_REQUEST_ID_RE, _RESPONSE_ID_RE):
            m = rx.search(text)
            if not m:
                continue
            members = buckets.setdefault(m.group(1), [])
            if not id_filter or id_filter in text:
                members.append(group)

    result = []
    for members in buckets.values():
        unique = list({g.text: g for g in members}.values())
        if id_filter and not any(id_filter in g.text for g in unique):
            continue
        lines = tuple(line for g in unique for line in g.lines)
        result.append(LogGroup(lines=lines, boundary=unique[0].boundary))
    return result


def build_predicates(criteria: FilterCriteria) -> list[Callable[[LogGroup], bool]]:
    """Per-group predicates for every active criterion, in application order."""
    predicates = []

    if criteria.id_filter:
        needle = criteria.id_filter
        predicates.append(lambda g, n=needle: filter_by_id(g, n))

    if criteria.filter_signalr or criteria.highlight_signalr or criteria.highlight_hub:
        predicates.append(lambda g: filter_by_protocol(g, criteria))

    if criteria.status_buckets:
        buckets = tuple(criteria.status_buckets)
        predicates.append(lambda g, b=buckets: filter_by_status(g, b))

    if criteria.profiler_only:
        predicates.append(filter_profiler_only)

    return predicates


def apply_filters(groups: Sequence[LogGroup], criteria: FilterCriteria) -> list[LogGroup]:
    """Narrow groups by criteria, preserving order; correlation runs last."""
    filtered = list(groups)
    for predicate in build_predicates(criteria):
        filtered = [g for g in filtered if predicate(g)]

    if criteria.request_response:
        filtered = correlate_request_response(filtered, criteria.id_filter)

    logger.debug("Filtered %d group(s) down to %d", len(groups), len(filtered))
    return filtered
