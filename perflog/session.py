"""One analysis pass: group, extract, filter and summarize a log dump."""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from perflog.config import Config
from perflog.extractor import extract
from perflog.filters import apply_filters
from perflog.grouper import group_lines
from perflog.highlight import find_highlights
from perflog.models import (
    AggregateStats,
    FilterCriteria,
    GroupView,
    LogGroup,
    ProfileNode,
    ProfilingRecord,
    QuickStats,
)
from perflog.stats import compute_aggregates, compute_quick_stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    groups: list[LogGroup] = field(default_factory=list)
    filtered: list[LogGroup] = field(default_factory=list)
    displayed: list[LogGroup] = field(default_factory=list)
    views: list[GroupView] = field(default_factory=list)
    records: list[ProfilingRecord] = field(default_factory=list)
    trees: dict[str, ProfileNode] = field(default_factory=dict)
    aggregates: AggregateStats = field(default_factory=AggregateStats)
    quick_stats: QuickStats = field(default_factory=QuickStats)
    slow_indices: frozenset[int] = frozenset()
    analysis_active: bool = False

    def is_slow(self, index: int) -> bool:
        """Whether filtered group at index produced a slow root timing."""
        return index in self.slow_indices


def analyze(
    lines: Sequence[str],
    criteria: FilterCriteria | None = None,
    config: Config | None = None,
    analysis: bool = False,
    slow_only: bool = False,
) -> AnalysisResult:
    """Run the full pipeline over one file's lines; every call starts from empty state."""
    criteria = criteria or FilterCriteria()
    config = config or Config()

    groups = group_lines(lines)
    extraction = extract(groups)
    filtered = apply_filters(groups, criteria)
    logger.info("%d group(s), %d after filtering", len(groups), len(filtered))

    analysis_active = analysis and criteria.profiler_only
    quick_stats = QuickStats()
    slow_indices: set[int] = set()
    shown = list(range(len(filtered)))

    if analysis_active:
        quick_stats, slow_indices = compute_quick_stats(filtered, config.slow_threshold)
        if slow_only:
            shown = [i for i in shown if i in slow_indices]
        logger.info("Quick stats: %d request(s), %d slow", quick_stats.count, quick_stats.slow_count)

    views = [
        GroupView(
            group=filtered[i],
            slow=i in slow_indices,
            highlights=tuple(find_highlights(filtered[i].text, criteria)),
        )
        for i in shown
    ]

    return AnalysisResult(
        groups=groups,
        filtered=filtered,
        displayed=[v.group for v in views],
        views=views,
        records=extraction.records,
        trees=extraction.trees,
        aggregates=compute_aggregates(extraction.records, config.slow_threshold_ms),
        quick_stats=quick_stats,
        slow_indices=frozenset(slow_indices),
        analysis_active=analysis_active,
    )
