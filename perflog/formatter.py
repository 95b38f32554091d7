"""Output formatters: export body with profiling summary, text and JSON views."""

import json
import os
from dataclasses import asdict

from perflog.models import (
    AggregateStats,
    GroupView,
    LogGroup,
    ProfileNode,
    ProfilingRecord,
    QuickStats,
    node_to_dict,
    record_to_dict,
)

SEPARATOR = "=" * 60
_LABEL_WIDTH = 19


def _row(label: str, value) -> str:
    return f"{label:<{_LABEL_WIDTH}}: {value}"


def format_summary_header(
    stats: QuickStats,
    source_name: str,
    threshold: float,
    slow_only: bool,
) -> str:
    """Fixed-width PROFILING SUMMARY block that precedes an analysis export."""
    lines = [
        SEPARATOR,
        "PROFILING SUMMARY",
        SEPARATOR,
        _row("Source File", source_name or "N/A"),
        _row("Threshold (s)", f"{threshold:g}"),
        _row("Slow Only Mode", "true" if slow_only else "false"),
        "",
        _row("Requests", stats.count),
        _row("Avg Total (s)", f"{stats.avg_total:.3f}"),
        _row("Avg Self (s)", f"{stats.avg_self:.3f}"),
        _row("Max Total (s)", f"{stats.max_total:.3f}"),
        _row("Slow (>=threshold)", stats.slow_count),
        _row("Slow %", f"{stats.slow_percent:.1f}%"),
        SEPARATOR,
        "",
        "FILTERED PROFILING LOG ENTRIES",
        "",
    ]
    return "\n".join(lines)


def format_export(result, source_name: str = "", threshold: float = 0.05, slow_only: bool = False) -> str:
    """Text written by an export: optional summary header plus the group bodies."""
    groups = result.displayed if result.analysis_active else result.filtered
    header = ""
    if result.analysis_active and result.quick_stats.count > 0:
        header = format_summary_header(result.quick_stats, source_name, threshold, slow_only)
    return header + "\n".join(g.text for g in groups)


def export_filename(source_name: str, analysis: bool) -> str:
    """'<base>-profiling.txt' or '<base>-filtered.txt'."""
    base = os.path.splitext(source_name)[0] if source_name else "logs"
    suffix = "profiling" if analysis else "filtered"
    return f"{base}-{suffix}.txt"


def format_groups(groups: list[LogGroup]) -> str:
    """Groups separated by blank lines."""
    return "\n\n".join(g.text for g in groups)


def format_group_views_json(views: list[GroupView]) -> str:
    """One object per group: text, slow flag and highlight spans (offsets into text)."""
    return json.dumps([
        {
            "text": view.group.text,
            "slow": view.slow,
            "highlights": [
                {"start": s.start, "end": s.end, "kind": s.kind} for s in view.highlights
            ],
        }
        for view in views
    ], indent=2)


def _ms(value: float | None) -> str:
    return "-" if value is None else f"{value:.1f}"


def format_record_text(record: ProfilingRecord) -> str:
    route = f"{record.method or '-'} {record.route or '-'}"
    ratio = "-" if record.wait_ratio is None else f"{record.wait_ratio:.2f}"
    return (
        f"{record.timestamp or '-'}  {record.response_id}  {route}  "
        f"dur={_ms(record.duration_ms)}ms wall={_ms(record.wall_ms)}ms "
        f"core={_ms(record.core_ms)}ms wait={_ms(record.wait_ms)}ms ratio={ratio}"
    )


def format_records_json(records: list[ProfilingRecord]) -> str:
    return json.dumps([record_to_dict(r) for r in records], indent=2)


def format_aggregates_text(stats: AggregateStats, threshold_ms: float) -> str:
    lines = [
        f"Requests: {stats.count}",
        f"Avg:      {stats.avg:.1f} ms",
        f"p50:      {stats.p50:.1f} ms",
        f"p90:      {stats.p90:.1f} ms",
        f"p95:      {stats.p95:.1f} ms",
        f"p99:      {stats.p99:.1f} ms",
        f"Min:      {stats.min:.1f} ms",
        f"Max:      {stats.max:.1f} ms",
        f"Std dev:  {stats.std_dev:.1f} ms",
        f"Slow (>{threshold_ms:g} ms): {stats.slow_count} ({stats.slow_percent:.1f}%)",
        f"Core share: {stats.core_share * 100:.1f}%",
    ]
    return "\n".join(lines)


def format_aggregates_json(stats: AggregateStats) -> str:
    return json.dumps(asdict(stats), indent=2)


def format_quick_stats_text(stats: QuickStats, threshold: float) -> str:
    lines = [
        f"Requests: {stats.count}",
        f"Avg total: {stats.avg_total:.3f} s",
        f"Avg self:  {stats.avg_self:.3f} s",
        f"Max total: {stats.max_total:.3f} s",
        f"Slow (>={threshold:g} s): {stats.slow_count} ({stats.slow_percent:.1f}%)",
    ]
    return "\n".join(lines)


def format_quick_stats_json(stats: QuickStats) -> str:
    data = asdict(stats)
    data.update(
        avg_total=stats.avg_total,
        avg_self=stats.avg_self,
        slow_percent=stats.slow_percent,
    )
    return json.dumps(data, indent=2)


def format_tree_text(node: ProfileNode, level: int = 0) -> str:
    """Indented outline, one node per line, annotations beneath their node."""
    count = "" if node.count is None else f" x{node.count}"
    lines = [
        f"{'  ' * level}{node.name}{count}  wall={_ms(node.wall_ms)}ms "
        f"core={_ms(node.core_ms)}ms self={_ms(node.self_wall_ms)}ms"
    ]
    for note in node.annotations:
        lines.append(f"{'  ' * (level + 1)}> {note}")
    for child in node.children:
        lines.append(format_tree_text(child, level + 1))
    return "\n".join(lines)


def format_trees_json(trees: dict[str, ProfileNode]) -> str:
    return json.dumps({rid: node_to_dict(tree) for rid, tree in trees.items()}, indent=2)
