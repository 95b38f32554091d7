"""Core data types for groups, profiling records, profile trees and statistics."""

from dataclasses import dataclass, field, asdict
from typing import Any


@dataclass(frozen=True)
class LogGroup:
    """Contiguous run of raw lines sharing one timestamp boundary."""

    lines: tuple[str, ...]
    boundary: str | None = None

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class ProfilingRecord:
    timestamp: str
    response_id: str
    workspace_id: str | None = None
    route: str | None = None
    method: str | None = None
    duration_ms: float | None = None   # middleware "Time request-response"
    wall_ms: float | None = None       # profiler wall time
    core_ms: float | None = None       # profiler core time
    wait_ms: float | None = None       # wall - core
    wait_ratio: float | None = None    # wait / duration


@dataclass
class ProfileNode:
    name: str
    depth: int
    count: int | None = None
    wall_ms: float | None = None       # inclusive
    core_ms: float | None = None
    self_wall_ms: float | None = None  # wall - sum(children.wall), set on finalize
    annotations: list[str] = field(default_factory=list)
    children: list["ProfileNode"] = field(default_factory=list)

    def walk(self):
        """Yield this node and every descendant, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class AggregateStats:
    count: int = 0
    avg: float = 0.0
    p50: float = 0.0
    p90: float = 0.0
    p95: float = 0.0
    p99: float = 0.0
    min: float = 0.0
    max: float = 0.0
    std_dev: float = 0.0
    slow_count: int = 0
    slow_percent: float = 0.0
    core_share: float = 0.0


@dataclass(frozen=True)
class QuickStats:
    """Single-pass totals over root timing lines, in seconds."""

    count: int = 0
    total: float = 0.0
    self_total: float = 0.0
    max_total: float = 0.0
    slow_count: int = 0

    @property
    def avg_total(self) -> float:
        return self.total / self.count if self.count else 0.0

    @property
    def avg_self(self) -> float:
        return self.self_total / self.count if self.count else 0.0

    @property
    def slow_percent(self) -> float:
        return self.slow_count / self.count * 100 if self.count else 0.0


@dataclass(frozen=True)
class FilterCriteria:
    id_filter: str = ""
    filter_signalr: bool = False
    highlight_signalr: bool = False
    highlight_hub: bool = False
    status_buckets: tuple[int, ...] = ()
    request_response: bool = False
    profiler_only: bool = False
    protocol_marker: str = "[SignalR]"
    hub_marker: str = "WebScapeHub"


@dataclass(frozen=True)
class HighlightSpan:
    start: int
    end: int
    kind: str  # "filter", "http", "profile-root"


@dataclass(frozen=True)
class GroupView:
    """A displayed group with its slow flag and highlight spans over its text."""

    group: LogGroup
    slow: bool = False
    highlights: tuple[HighlightSpan, ...] = ()


def record_to_dict(record: ProfilingRecord) -> dict[str, Any]:
    """Convert a ProfilingRecord to a dict, dropping None values for cleaner JSON."""
    return {k: v for k, v in asdict(record).items() if v is not None}


def node_to_dict(node: ProfileNode) -> dict[str, Any]:
    """Nested dict form of a profile tree, without absent fields."""
    data: dict[str, Any] = {"name": node.name, "depth": node.depth}
    for key in ("count", "wall_ms", "core_ms", "self_wall_ms"):
        value = getattr(node, key)
        if value is not None:
            data[key] = value
    if node.annotations:
        data["annotations"] = list(node.annotations)
    data["children"] = [node_to_dict(child) for child in node.children]
    return data
