"""Statistics: percentile aggregates over records and quick root-line totals."""

import logging
import math
from typing import Iterable, Sequence

from perflog.models import AggregateStats, LogGroup, ProfilingRecord, QuickStats
from perflog.timing import MATCHERS, TimingLineMatcher, scan_group

logger = logging.getLogger(__name__)

DEFAULT_SLOW_THRESHOLD_MS = 100.0
DEFAULT_SLOW_THRESHOLD_S = 0.05


def percentile(values: Sequence[float], p: float) -> float:
    """Linearly interpolated percentile at rank (p/100)*(n-1); 0 for no values."""
    if not values:
        return 0.0
    ordered = sorted(values)
    idx = (p / 100) * (len(ordered) - 1)
    lo = math.floor(idx)
    hi = math.ceil(idx)
    if lo == hi:
        return ordered[lo]
    weight = idx - lo
    return ordered[lo] * (1 - weight) + ordered[hi] * weight


def compute_aggregates(
    records: Iterable[ProfilingRecord],
    slow_threshold_ms: float = DEFAULT_SLOW_THRESHOLD_MS,
) -> AggregateStats:
    """Latency distribution of durationMs over records that carry one."""
    records = list(records)
    values = sorted(r.duration_ms for r in records if r.duration_ms is not None)
    if not values:
        return AggregateStats()

    n = len(values)
    avg = sum(values) / n
    variance = sum((v - avg) ** 2 for v in values) / n
    slow_count = sum(1 for v in values if v > slow_threshold_ms)

    wall_sum = sum(r.wall_ms for r in records if r.wall_ms is not None)
    core_sum = sum(r.core_ms for r in records if r.core_ms is not None)

    return AggregateStats(
        count=n,
        avg=avg,
        p50=percentile(values, 50),
        p90=percentile(values, 90),
        p95=percentile(values, 95),
        p99=percentile(values, 99),
        min=values[0],
        max=values[-1],
        std_dev=math.sqrt(variance),
        slow_count=slow_count,
        slow_percent=slow_count / n * 100,
        core_share=core_sum / wall_sum if wall_sum else 0.0,
    )


def compute_quick_stats(
    groups: Sequence[LogGroup],
    slow_threshold: float = DEFAULT_SLOW_THRESHOLD_S,
    matchers: Sequence[TimingLineMatcher] = MATCHERS,
) -> tuple[QuickStats, set[int]]:
    """Single pass over groups; returns totals and the indices of slow groups."""
    count = 0
    total = 0.0
    self_total = 0.0
    max_total = 0.0
    slow_count = 0
    slow_indices: set[int] = set()

    for idx, group in enumerate(groups):
        for sample in scan_group(group.lines, matchers):
            count += sample.count
            total += sample.total * sample.count
            self_total += sample.self_time * sample.count
            max_total = max(max_total, sample.total)
            if sample.total >= slow_threshold:
                slow_count += sample.count
                slow_indices.add(idx)

    logger.debug("Quick stats: %d sample(s), %d slow group(s)", count, len(slow_indices))
    return (
        QuickStats(
            count=count,
            total=total,
            self_total=self_total,
            max_total=max_total,
            slow_count=slow_count,
        ),
        slow_indices,
    )
