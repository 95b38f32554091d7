"""Timestamp-boundary grouping of raw log lines into multi-line groups.

Recognized boundaries, tried in order:
  1. ISO bracket     [2024-01-01 10:00:00.000 +00:00]
  2. Apache bracket  [10/Oct/2000:13:55:36 -0700]
     or its variant  [Mon Oct 09 13:55:36.123456 2000]
"""

import logging
import re
from typing import Generator, Iterable

from perflog.models import LogGroup

logger = logging.getLogger(__name__)

_ISO_TS_RE = re.compile(
    r"\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3} [+-]\d{2}:\d{2}\]"
)

_APACHE_TS_RE = re.compile(
    r"\[(?:\d{2}/[A-Za-z]{3}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4}"
    r"|[A-Za-z]{3} [A-Za-z]{3} \d{2} \d{2}:\d{2}:\d{2}\.\d+ \d{4})\]"
)


def extract_timestamp(line: str) -> str | None:
    """Return the bracketed timestamp token of a line, or None."""
    for pattern in (_ISO_TS_RE, _APACHE_TS_RE):
        m = pattern.search(line)
        if m:
            return m.group(0)
    return None


def iter_groups(lines: Iterable[str]) -> Generator[LogGroup, None, None]:
    """Yield groups in a single forward pass; a new boundary closes the open group."""
    current: list[str] = []
    current_ts: str | None = None

    for line in lines:
        ts = extract_timestamp(line)
        if ts and ts != current_ts:
            if current:
                yield LogGroup(lines=tuple(current), boundary=current_ts)
            current = []
            current_ts = ts
        current.append(line)

    if current:
        yield LogGroup(lines=tuple(current), boundary=current_ts)


def group_lines(lines: Iterable[str]) -> list[LogGroup]:
    """Materialize iter_groups() into a list."""
    groups = list(iter_groups(lines))
    logger.debug("Grouped input into %d group(s)", len(groups))
    return groups
