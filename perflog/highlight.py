"""Highlight spans for an external renderer; no markup is produced here."""

import re

from perflog.filters import PROFILER_MARKERS
from perflog.models import FilterCriteria, HighlightSpan

_HTTP_CODE_RE = re.compile(r'HTTP/\d\.\d"\s(\d{3})')


def find_highlights(text: str, criteria: FilterCriteria) -> list[HighlightSpan]:
    """Spans of identifier matches, in-bucket status codes and profiler root tokens."""
    spans = []

    if criteria.id_filter:
        # User input is escaped so any characters are matched literally
        rx = re.compile(re.escape(criteria.id_filter), re.IGNORECASE)
        spans.extend(HighlightSpan(m.start(), m.end(), "filter") for m in rx.finditer(text))

    if criteria.status_buckets:
        for m in _HTTP_CODE_RE.finditer(text):
            code = int(m.group(1))
            if any(b <= code <= b + 99 for b in criteria.status_buckets):
                spans.append(HighlightSpan(m.start(1), m.end(1), "http"))

    for rx in PROFILER_MARKERS:
        m = rx.search(text)
        if m:
            spans.append(HighlightSpan(m.start(), m.end(), "profile-root"))

    spans.sort(key=lambda s: (s.start, s.end))
    return spans
