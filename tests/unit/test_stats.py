"""
Unit tests for statistics aggregation.
"""

from typing import Callable

from diff_view_engine.engine.stats import aggregate
from diff_view_engine.parser.diff_parser import DiffParser


class TestAggregate:
    """Tests for the aggregate function."""

    def test_empty(self) -> None:
        stats = aggregate([])

        assert stats.file_count == 0
        assert stats.additions == 0
        assert stats.deletions == 0
        assert not stats.has_changes
        assert not stats.is_loading

    def test_sums_match_records(self, multi_file_diff_content: str) -> None:
        """Totals equal the sums over the records."""
        records = DiffParser.parse_string(multi_file_diff_content)
        stats = aggregate(records)

        assert stats.file_count == len(records) == 5
        assert stats.additions == sum(r.additions for r in records) == 5
        assert stats.deletions == sum(r.deletions for r in records) == 4
        assert stats.has_changes

    def test_loading_flag_passes_through(self, simple_diff_content: str) -> None:
        stats = aggregate(DiffParser.parse_string(simple_diff_content), is_loading=True)

        assert stats.is_loading
        assert stats.additions == 4

    def test_degraded_records_still_count(self, truncated_diff_content: str) -> None:
        """Partial counts from a truncated file are included."""
        stats = aggregate(DiffParser.parse_string(truncated_diff_content))

        assert stats.file_count == 2
        assert stats.additions == 5

    def test_many_files(self, make_diff: Callable[..., str]) -> None:
        stats = aggregate(DiffParser.parse_string(make_diff(12, added=2, removed=1)))

        assert stats.file_count == 12
        assert stats.additions == 24
        assert stats.deletions == 12
