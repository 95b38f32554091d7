"""Tests for perflog/profile_tree.py"""

import pytest

from perflog.profile_tree import (
    build_tree,
    compute_self_times,
    indent_width,
    parse_node_line,
    profile_slice,
)


def _block(*node_lines):
    return ["[2024-01-01 10:00:00.000 +00:00] [Profiler] header", "Execution profile:", *node_lines]


class TestParseNodeLine:
    def test_wall_and_core(self):
        node = parse_node_line("- Root\t1\t0.100 / 0.020")
        assert node.name == "Root"
        assert node.count == 1
        assert node.wall_ms == pytest.approx(100)
        assert node.core_ms == pytest.approx(20)
        assert node.depth == 0

    def test_wall_only(self):
        node = parse_node_line("  - Child\t3\t0.250")
        assert node.depth == 2
        assert node.count == 3
        assert node.wall_ms == pytest.approx(250)
        assert node.core_ms is None

    def test_timings_in_separate_columns(self):
        node = parse_node_line("- Root\t1\t0.042\t0.006")
        assert node.wall_ms == pytest.approx(42)
        assert node.core_ms == pytest.approx(6)

    def test_core_in_fourth_column_without_wall(self):
        node = parse_node_line("- Root\t1\tn/a\t0.006")
        assert node.wall_ms is None
        assert node.core_ms == pytest.approx(6)

    def test_dual_timing_ignores_fourth_column(self):
        node = parse_node_line("- Root\t1\t0.100 / 0.020\t0.500")
        assert node.core_ms == pytest.approx(20)

    def test_multi_space_columns(self):
        node = parse_node_line("- Repository Load  2  0.030 / 0.010")
        assert node.name == "Repository Load"
        assert node.count == 2
        assert node.wall_ms == pytest.approx(30)

    def test_name_only(self):
        node = parse_node_line("- Lonely")
        assert node.name == "Lonely"
        assert node.count is None
        assert node.wall_ms is None

    def test_malformed_timing_left_undefined(self):
        node = parse_node_line("- Root\t1\tn/a")
        assert node.count == 1
        assert node.wall_ms is None
        assert node.core_ms is None

    def test_non_node_line(self):
        assert parse_node_line("> annotation") is None


class TestIndentWidth:
    def test_spaces(self):
        assert indent_width("    ") == 4

    def test_tab_expands(self):
        assert indent_width("\t") == 4

    def test_mixed_tab_and_spaces_comparable(self):
        assert indent_width("  \t") == indent_width("    ")


class TestProfileSlice:
    def test_stops_at_next_timestamp(self):
        lines = _block("- Root\t1\t0.100", "[2024-01-01 10:00:01.000 +00:00] next", "- Other\t1\t0.1")
        assert profile_slice(lines) == ["- Root\t1\t0.100"]

    def test_stops_at_end_marker(self):
        lines = _block("- Root\t1\t0.100", "End Http Response", "- Other\t1\t0.1")
        assert profile_slice(lines) == ["- Root\t1\t0.100"]

    def test_skips_blank_and_other_lines(self):
        lines = _block("", "- Root\t1\t0.100", "some text", "  > note")
        assert profile_slice(lines) == ["- Root\t1\t0.100", "  > note"]

    def test_no_marker(self):
        assert profile_slice(["- Root\t1\t0.100"]) == []


class TestBuildTree:
    def test_root_and_child_self_times(self):
        tree = build_tree(_block("- Root\t1\t0.100 / 0.020", "  - Child\t1\t0.030 / 0.010"))
        assert tree.name == "Root"
        assert tree.wall_ms == pytest.approx(100)
        assert tree.core_ms == pytest.approx(20)
        assert tree.self_wall_ms == pytest.approx(70)
        assert len(tree.children) == 1
        child = tree.children[0]
        assert child.wall_ms == pytest.approx(30)
        assert child.self_wall_ms == pytest.approx(30)

    def test_siblings_and_nesting(self):
        tree = build_tree(_block(
            "- Root\t1\t1.000",
            "  - A\t1\t0.400",
            "    - A1\t1\t0.100",
            "  - B\t1\t0.300",
        ))
        assert [c.name for c in tree.children] == ["A", "B"]
        assert [c.name for c in tree.children[0].children] == ["A1"]
        assert tree.self_wall_ms == pytest.approx(300)
        assert tree.children[0].self_wall_ms == pytest.approx(300)

    def test_self_time_law(self):
        tree = build_tree(_block(
            "- Root\t1\t1.000",
            "  - A\t1\t0.400",
            "    - A1\t1\t0.100",
            "    - A2\t1\t0.050",
            "  - B\t1\t0.300",
        ))
        assert sum(n.self_wall_ms for n in tree.walk()) == pytest.approx(tree.wall_ms)

    def test_annotation_attaches_to_open_node(self):
        tree = build_tree(_block(
            "- Root\t1\t0.100",
            "  - Child\t1\t0.030",
            "    > cache miss",
        ))
        assert tree.children[0].annotations == ["cache miss"]
        assert tree.annotations == []

    def test_shallow_annotation_attaches_to_ancestor(self):
        tree = build_tree(_block(
            "- Root\t1\t0.100",
            "    - Deep\t1\t0.030",
            "  > logged shallower",
        ))
        assert tree.annotations == ["logged shallower"]
        assert tree.children[0].annotations == []

    def test_annotation_before_any_node_dropped(self):
        tree = build_tree(_block("> orphan", "- Root\t1\t0.100"))
        assert tree.annotations == []

    def test_tab_indented_children(self):
        tree = build_tree(_block("- Root\t1\t0.100", "\t- Child\t1\t0.030"))
        assert tree.children[0].name == "Child"
        assert tree.children[0].depth == 4

    def test_missing_wall_counts_as_zero_for_self(self):
        tree = build_tree(_block("- Root\t1", "  - Child\t1\t0.030"))
        assert tree.wall_ms is None
        assert tree.self_wall_ms == pytest.approx(-30)

    def test_no_node_lines_yields_none(self):
        assert build_tree(_block("just text")) is None

    def test_no_marker_yields_none(self):
        assert build_tree(["- Root\t1\t0.100"]) is None


class TestComputeSelfTimes:
    def test_returns_own_wall(self):
        tree = build_tree(_block("- Root\t1\t0.100", "  - Child\t1\t0.030"))
        assert compute_self_times(tree) == pytest.approx(100)
