"""Tests for perflog/highlight.py"""

from perflog.highlight import find_highlights
from perflog.models import FilterCriteria, HighlightSpan


class TestFindHighlights:
    def test_no_criteria_no_markers(self):
        assert find_highlights("plain text", FilterCriteria()) == []

    def test_identifier_all_occurrences_case_insensitive(self):
        text = "abc ABC aBc"
        spans = find_highlights(text, FilterCriteria(id_filter="abc"))
        assert [(s.start, s.end) for s in spans] == [(0, 3), (4, 7), (8, 11)]
        assert all(s.kind == "filter" for s in spans)

    def test_identifier_with_regex_characters(self):
        text = "value (a+b)* here"
        spans = find_highlights(text, FilterCriteria(id_filter="(a+b)*"))
        assert spans == [HighlightSpan(6, 12, "filter")]

    def test_status_code_span(self):
        text = '"GET /x HTTP/1.1" 404 0'
        spans = find_highlights(text, FilterCriteria(status_buckets=(400,)))
        assert spans == [HighlightSpan(18, 21, "http")]
        assert text[18:21] == "404"

    def test_status_outside_bucket_not_marked(self):
        spans = find_highlights('"GET /x HTTP/1.1" 200 0', FilterCriteria(status_buckets=(400,)))
        assert spans == []

    def test_profile_root_first_occurrence_only(self):
        text = "Execution profile:\nExecution profile:"
        spans = find_highlights(text, FilterCriteria())
        assert spans == [HighlightSpan(0, 17, "profile-root")]

    def test_spans_sorted(self):
        text = "Too long execution for abc /api/data POST"
        spans = find_highlights(text, FilterCriteria(id_filter="abc"))
        assert [s.kind for s in spans] == ["profile-root", "filter", "profile-root"]
        assert spans == sorted(spans, key=lambda s: s.start)
