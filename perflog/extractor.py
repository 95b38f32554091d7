"""Profiling record extraction: middleware and profiler views merged by response id."""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

from perflog.models import LogGroup, ProfileNode, ProfilingRecord
from perflog.profile_tree import build_tree, has_execution_profile

logger = logging.getLogger(__name__)

MIDDLEWARE_COMPONENT = "RequestResponseLoggingMiddleware"
PROFILER_COMPONENT = "Profiling.ProfileService"

_GUID = r"[0-9a-fA-F-]{36}"

_MIDDLEWARE_HEADER_RE = re.compile(
    r"\[(?P<ts>[^\]]+)\] \[WebScape\.Server\.Services\.Middlewares\.RequestResponseLoggingMiddleware\]"
    rf".*?(?:\[(?P<ws>{_GUID})\])?$"
)
_RESPONSE_ID_RE = re.compile(rf"Begin Http Response Information: Response ID:(?P<id>{_GUID})")
_DURATION_RE = re.compile(r"Time request-response:\s+(?P<dur>\d+)\s+ms")
_PROFILER_HEADER_RE = re.compile(
    rf"\[WebScape\.Common\.Profiling\.ProfileService\].*?\[(?P<resp>{_GUID})\] \[(?P<ws>{_GUID})\]"
)
_EXEC_LINE_RE = re.compile(
    r"-\s+(?P<route>/\S*)\s+(?P<method>GET|POST|PUT|DELETE|PATCH)\s+\d+\s+"
    r"(?P<wall>\d+\.\d+)\s*/\s*(?P<core>\d+\.\d+)"
)


@dataclass
class _Partial:
    """One view's findings for a response id, filled in as lines are scanned."""

    timestamp: str | None = None
    workspace_id: str | None = None
    route: str | None = None
    method: str | None = None
    duration_ms: float | None = None
    wall_ms: float | None = None
    core_ms: float | None = None


@dataclass
class ExtractionResult:
    """Fresh per-parse store: records in first-seen order plus trees by response id."""

    records: list[ProfilingRecord] = field(default_factory=list)
    trees: dict[str, ProfileNode] = field(default_factory=dict)

    def tree(self, response_id: str) -> ProfileNode | None:
        return self.trees.get(response_id)


def _profiler_response_id(lines: tuple[str, ...]) -> tuple[str, str] | None:
    """(response id, workspace id) from the first profiler header line of a group."""
    header = next((l for l in lines if PROFILER_COMPONENT in l), None)
    if header is None:
        return None
    m = _PROFILER_HEADER_RE.search(header)
    if not m:
        return None
    return m.group("resp"), m.group("ws")


def _scan_middleware(group: LogGroup, views: dict[str, _Partial]):
    text = None
    for line in group.lines:
        m = _RESPONSE_ID_RE.search(line)
        if not m:
            continue
        partial = views.setdefault(m.group("id"), _Partial())

        if partial.timestamp is None:
            header_line = next((l for l in group.lines if MIDDLEWARE_COMPONENT in l), None)
            if header_line is not None:
                h = _MIDDLEWARE_HEADER_RE.search(header_line)
                if h:
                    partial.timestamp = h.group("ts")
                    partial.workspace_id = h.group("ws")

        if text is None:
            text = group.text
        dur = _DURATION_RE.search(text)
        if dur:
            partial.duration_ms = int(dur.group("dur"))


def _scan_profiler(group: LogGroup, views: dict[str, _Partial]):
    header = _profiler_response_id(group.lines)
    if header is None:
        return
    response_id, workspace_id = header
    partial = views.setdefault(response_id, _Partial())
    partial.workspace_id = partial.workspace_id or workspace_id

    for line in group.lines:
        if not line.startswith("- /"):
            continue
        ex = _EXEC_LINE_RE.search(line)
        if not ex:
            continue
        partial.route = ex.group("route")
        partial.method = ex.group("method")
        partial.wall_ms = float(ex.group("wall")) * 1000
        partial.core_ms = float(ex.group("core")) * 1000


def merge_views(response_id: str, mid: _Partial | None, prof: _Partial | None) -> ProfilingRecord:
    """Combine middleware and profiler findings into one record."""
    mid = mid or _Partial()
    prof = prof or _Partial()

    duration_ms = mid.duration_ms if mid.duration_ms is not None else prof.wall_ms
    wall_ms, core_ms = prof.wall_ms, prof.core_ms

    wait_ms = None
    wait_ratio = None
    if wall_ms is not None and core_ms is not None:
        wait_ms = wall_ms - core_ms
        if duration_ms:
            wait_ratio = wait_ms / duration_ms

    return ProfilingRecord(
        timestamp=mid.timestamp or "",
        response_id=response_id,
        workspace_id=mid.workspace_id or prof.workspace_id,
        route=prof.route,
        method=prof.method,
        duration_ms=duration_ms,
        wall_ms=wall_ms,
        core_ms=core_ms,
        wait_ms=wait_ms,
        wait_ratio=wait_ratio,
    )


def extract(groups: Iterable[LogGroup]) -> ExtractionResult:
    """Build profiling records and execution-profile trees from grouped logs."""
    middleware: dict[str, _Partial] = {}
    profiler: dict[str, _Partial] = {}
    result = ExtractionResult()

    for group in groups:
        _scan_middleware(group, middleware)
        _scan_profiler(group, profiler)

        if has_execution_profile(group.lines):
            header = _profiler_response_id(group.lines)
            if header is not None:
                tree = build_tree(group.lines)
                if tree is not None:
                    result.trees[header[0]] = tree

    # dicts keep insertion order, so ids come out first-seen, middleware first
    ids = dict.fromkeys([*middleware, *profiler])
    result.records = [merge_views(i, middleware.get(i), profiler.get(i)) for i in ids]

    logger.info("Extracted %d profiling record(s), %d profile tree(s)",
                len(result.records), len(result.trees))
    return result
