"""Execution-profile call trees built from indentation-delimited blocks.

A block follows an ``Execution profile:`` marker line:

    Execution profile:
    - EnvController.selectApp	1	0.326 / 0.001
      - Repository.load	2	0.120 / 0.080
        > cache miss
"""

import logging
import re
from typing import Sequence

from perflog.grouper import extract_timestamp
from perflog.models import ProfileNode

logger = logging.getLogger(__name__)

EXECUTION_PROFILE_MARKER = "Execution profile:"
END_RESPONSE_MARKER = "End Http Response"
TAB_WIDTH = 4

_NODE_RE = re.compile(r"^(\s*)-\s(.+)$")
_ANNOTATION_RE = re.compile(r"^(\s*)>\s(.+)")
_TREE_LINE_RE = re.compile(r"^\s*[->]")
_COLUMN_SPLIT_RE = re.compile(r"\t|\s{2,}")
_LEADING_INT_RE = re.compile(r"^\d+")
_DUAL_TIME_RE = re.compile(r"(\d+\.\d+)\s*/\s*(\d+\.\d+)")
_SINGLE_TIME_RE = re.compile(r"\d+\.\d+")


def indent_width(indent: str) -> int:
    """Comparable nesting key for a run of leading whitespace (tabs expanded)."""
    return len(indent.expandtabs(TAB_WIDTH))


def has_execution_profile(lines: Sequence[str]) -> bool:
    return any(line.strip() == EXECUTION_PROFILE_MARKER for line in lines)


def profile_slice(lines: Sequence[str]) -> list[str]:
    """Node and annotation lines between the marker and the end of the block."""
    start = next(
        (i for i, line in enumerate(lines) if line.strip() == EXECUTION_PROFILE_MARKER),
        None,
    )
    if start is None:
        return []

    selected = []
    for line in lines[start + 1:]:
        if not line.strip():
            continue
        if line.startswith("[") and extract_timestamp(line):
            break
        if _TREE_LINE_RE.match(line):
            selected.append(line)
        elif line.startswith(END_RESPONSE_MARKER):
            break
    return selected


def _seconds_to_ms(text: str) -> float:
    return float(text) * 1000


def parse_node_line(line: str) -> ProfileNode | None:
    """Parse '<indent>- name<TAB>count<TAB>wall / core' into an unattached node."""
    m = _NODE_RE.match(line)
    if not m:
        return None

    depth = indent_width(m.group(1))
    parts = [p.strip() for p in _COLUMN_SPLIT_RE.split(m.group(2))]
    parts = [p for p in parts if p]
    if not parts:
        return None

    node = ProfileNode(name=parts[0], depth=depth)

    if len(parts) >= 2:
        count = _LEADING_INT_RE.match(parts[1])
        if count:
            node.count = int(count.group(0))

    if len(parts) >= 3:
        dual = _DUAL_TIME_RE.search(parts[2])
        if dual:
            node.wall_ms = _seconds_to_ms(dual.group(1))
            node.core_ms = _seconds_to_ms(dual.group(2))
        else:
            single = _SINGLE_TIME_RE.search(parts[2])
            if single:
                node.wall_ms = _seconds_to_ms(single.group(0))

    # Wall and core sometimes land in separate columns
    if len(parts) >= 4 and node.core_ms is None:
        core = _SINGLE_TIME_RE.search(parts[3])
        if core:
            node.core_ms = _seconds_to_ms(core.group(0))

    return node


def compute_self_times(node: ProfileNode) -> float:
    """Set self_wall_ms on every node bottom-up; returns the node's own wall time."""
    children_wall = sum(compute_self_times(child) for child in node.children)
    wall = node.wall_ms if node.wall_ms is not None else 0.0
    node.self_wall_ms = wall - children_wall
    return wall


def build_tree(lines: Sequence[str]) -> ProfileNode | None:
    """Build the call tree of a group's execution-profile block, or None."""
    stack: list[ProfileNode] = []
    root: ProfileNode | None = None

    for raw in profile_slice(lines):
        annotation = _ANNOTATION_RE.match(raw)
        if annotation:
            indent = indent_width(annotation.group(1))
            for open_node in reversed(stack):
                if open_node.depth <= indent:
                    open_node.annotations.append(annotation.group(2))
                    break
            continue

        node = parse_node_line(raw)
        if node is None:
            continue

        while stack and stack[-1].depth >= node.depth:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            root = node
        stack.append(node)

    if root is not None:
        compute_self_times(root)
    return root
