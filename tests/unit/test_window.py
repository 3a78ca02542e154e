"""
Unit tests for window size estimation.
"""

from typing import Callable

import pytest

from diff_view_engine.config import WindowConfig
from diff_view_engine.engine.window import WindowEstimator
from diff_view_engine.models.diff import FileDiffRecord
from diff_view_engine.parser.diff_parser import DiffParser


def sized_record(index: int, lines: int) -> FileDiffRecord:
    return FileDiffRecord(key=f"f{index}->f{index}", old_path=f"f{index}", new_path=f"f{index}", additions=lines)


class TestEstimateSize:
    """Tests for per-item height estimates."""

    @pytest.mark.parametrize(
        "lines,expected",
        [
            (0, 150),
            (1, 150),
            (10, 264),
            (40, 800),
        ],
    )
    def test_expanded_estimate_is_clamped(self, lines: int, expected: int) -> None:
        estimator = WindowEstimator([sized_record(0, lines)])

        assert estimator.estimate_size(0) == expected

    def test_collapsed_is_header_height(self) -> None:
        estimator = WindowEstimator([sized_record(0, 10)], is_collapsed=lambda key: True)

        assert estimator.estimate_size(0) == 44

    def test_out_of_range_index(self) -> None:
        assert WindowEstimator([]).estimate_size(3) == 44

    def test_custom_constants(self) -> None:
        config = WindowConfig(collapsed_height=30, line_height=10, min_height=50, max_height=100)
        estimator = WindowEstimator([sized_record(0, 3)], config=config)

        assert estimator.estimate_size(0) == 60


class TestMeasurement:
    """Tests for measured sizes replacing estimates."""

    def test_measure_replaces_estimate(self) -> None:
        estimator = WindowEstimator([sized_record(0, 10), sized_record(1, 10)])

        assert estimator.measure(0, 500)
        assert not estimator.measure(0, 500)
        assert estimator.size_of(0) == 500
        assert estimator.offsets() == [0, 500]

    def test_invalidate_one(self) -> None:
        estimator = WindowEstimator([sized_record(0, 10)])
        estimator.measure(0, 500)

        estimator.invalidate(0)

        assert estimator.size_of(0) == 264

    def test_measurements_survive_for_kept_keys(self) -> None:
        first, second = sized_record(0, 10), sized_record(1, 10)
        estimator = WindowEstimator([first, second])
        estimator.measure(0, 400)
        estimator.measure(1, 300)

        estimator.set_records([second])

        assert estimator.size_of(0) == 300

    def test_invalid_measurement_ignored(self) -> None:
        estimator = WindowEstimator([sized_record(0, 10)])

        assert not estimator.measure(0, -1)
        assert not estimator.measure(5, 100)


class TestVisibleRange:
    """Tests for render window computation."""

    def test_empty_list(self) -> None:
        window = WindowEstimator([]).visible_range(0, 800)

        assert window.start == 0
        assert window.end == 0
        assert window.total_size == 0
        assert window.items == []

    def test_collapsed_large_diff(self, make_diff: Callable[..., str]) -> None:
        """100 collapsed files: the window covers the viewport plus overscan."""
        records = DiffParser.parse_string(make_diff(100))
        estimator = WindowEstimator(records, is_collapsed=lambda key: True)

        window = estimator.visible_range(44 * 50, 440)

        assert window.total_size == 4400
        assert window.start == 45
        assert window.end == 65
        assert window.items[0].start == 45 * 44
        assert all(item.size == 44 for item in window.items)

    def test_top_of_list(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(30))
        estimator = WindowEstimator(records, is_collapsed=lambda key: True)

        window = estimator.visible_range(0, 100, overscan=0)

        assert window.start == 0
        assert window.end == 3

    def test_scroll_past_end_is_clamped(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(5))
        estimator = WindowEstimator(records, is_collapsed=lambda key: True)

        window = estimator.visible_range(10_000, 100, overscan=0)

        assert window.end == 5

    def test_measured_flag(self) -> None:
        estimator = WindowEstimator([sized_record(0, 1), sized_record(1, 1)])
        estimator.measure(1, 90)

        window = estimator.visible_range(0, 1000)

        assert [item.measured for item in window.items] == [False, True]
        assert window.items[1].end == 240


class TestScrollToIndex:
    """Tests for scroll offsets that reveal an item."""

    def test_align_start(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(40))
        estimator = WindowEstimator(records, is_collapsed=lambda key: True)

        assert estimator.scroll_to_index(10, viewport_height=440) == 440

    def test_align_center_and_end(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(40))
        estimator = WindowEstimator(records, is_collapsed=lambda key: True)

        assert estimator.scroll_to_index(20, 440, align="center") == 880 - 198
        assert estimator.scroll_to_index(20, 440, align="end") == 880 + 44 - 440

    def test_clamped_to_scrollable_range(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(12))
        estimator = WindowEstimator(records, is_collapsed=lambda key: True)

        assert estimator.scroll_to_index(11, viewport_height=440) == 528 - 440
        assert estimator.scroll_to_index(-5, viewport_height=440) == 0
        assert WindowEstimator([]).scroll_to_index(3) == 0
