"""Tests for day segmentation and coordinate mapping."""
from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from evidence_timeline.config import LayoutSettings, PeriodCompression
from evidence_timeline.mapping import CoordinateMapper, date_to_x
from evidence_timeline.segments import (
    base_width_for,
    build_segments,
    count_events_per_day,
    total_width,
)


def stamps(*values: str):
    return [pd.Timestamp(v) for v in values]


# =============================================================================
# Day counting
# =============================================================================


class TestCountEventsPerDay:
    def test_counts_by_calendar_day(self) -> None:
        counts = count_events_per_day(
            stamps("2020-01-02 10:00", "2020-01-01 08:00", "2020-01-01 23:59")
        )
        assert list(counts.index) == [pd.Timestamp("2020-01-01"), pd.Timestamp("2020-01-02")]
        assert list(counts) == [2, 1]

    def test_missing_values_are_dropped(self) -> None:
        counts = count_events_per_day([pd.Timestamp("2020-01-01"), None])
        assert list(counts) == [1]

    def test_empty_input(self) -> None:
        assert count_events_per_day([]).empty


# =============================================================================
# Widths
# =============================================================================


class TestBaseWidth:
    def test_sparse_days_get_minimum_width(self) -> None:
        settings = LayoutSettings()
        assert base_width_for(1, 10, settings) == settings.min_width
        assert base_width_for(2, 10, settings) == settings.min_width

    def test_busiest_day_is_four_times_base(self) -> None:
        settings = LayoutSettings()
        assert base_width_for(10, 10, settings) == pytest.approx(4 * settings.base_width)

    def test_density_is_proportional(self) -> None:
        settings = LayoutSettings()
        assert base_width_for(5, 10, settings) == pytest.approx(28 * 2.5)


# =============================================================================
# Segment building
# =============================================================================


class TestBuildSegments:
    def test_no_timestamps_no_segments(self) -> None:
        assert build_segments([], 1400) == []

    def test_single_day_spans_target(self) -> None:
        segments = build_segments(stamps("2020-05-05 12:00"), 1400)
        assert len(segments) == 1
        assert segments[0].x_start == 0
        assert segments[0].width == 1360

    def test_dense_and_sparse_day(self) -> None:
        day_one = stamps("2020-03-01")
        day_two = stamps(*["2020-03-02"] * 10)
        segments = build_segments(day_one + day_two, 1400)

        settings = LayoutSettings()
        first, second = segments
        assert first.event_count == 1
        assert second.event_count == 10
        assert first.base_width == settings.min_width
        assert second.base_width == pytest.approx(4 * settings.base_width)
        assert first.width >= settings.min_width
        assert second.width / first.width == pytest.approx(112 / 21, rel=0.01)

    def test_sorted_contiguous_and_sum_to_target(self) -> None:
        values = stamps(
            "2021-06-03", "2021-01-01", "2021-01-01", "2021-02-14",
            "2021-02-14", "2021-02-14", "2021-02-14", "2021-12-31",
        )
        for width in (500, 900, 1100, 1400, 2000):
            segments = build_segments(values, width)
            target = round(LayoutSettings().target_total_width(width))
            assert total_width(segments) == target
            assert segments[0].x_start == 0
            for left, right in zip(segments, segments[1:]):
                assert left.day_start < right.day_start
                assert left.x_start + left.width == right.x_start

    def test_calendar_fields(self) -> None:
        seg = build_segments(stamps("1941-03-29 14:00"), 1400)[0]
        assert (seg.calendar_year, seg.calendar_month, seg.calendar_day) == (1941, 3, 29)
        assert seg.day_start == pd.Timestamp("1941-03-29")
        assert seg.day_end == pd.Timestamp("1941-03-30")

    def test_default_compression_narrows_occupation_days(self) -> None:
        segments = build_segments(stamps("1940-06-01", "1942-06-01"), 1400)
        assert [s.width for s in segments] == [510, 850]

    def test_compression_policy_can_be_removed(self) -> None:
        settings = LayoutSettings(compressions=())
        segments = build_segments(stamps("1940-06-01", "1942-06-01"), 1400, settings)
        assert [s.width for s in segments] == [680, 680]

    def test_custom_compression_policy(self) -> None:
        policy = PeriodCompression("quiet", date(2020, 1, 1), date(2020, 1, 31), 0.5)
        settings = LayoutSettings(compressions=(policy,))
        segments = build_segments(stamps("2020-01-15", "2020-02-15"), 1400, settings)
        assert segments[0].width * 2 == pytest.approx(segments[1].width, abs=1)


class TestTargetWidth:
    @pytest.mark.parametrize(
        "viewport,expected",
        [(500, 1250), (300, 800), (900, 1000), (1000, 1000), (1100, 1200), (1400, 1360)],
    )
    def test_target_by_viewport_class(self, viewport: int, expected: float) -> None:
        assert LayoutSettings().target_total_width(viewport) == expected


# =============================================================================
# Coordinate mapping
# =============================================================================


class TestCoordinateMapper:
    @pytest.fixture
    def segments(self):
        return build_segments(
            stamps("2020-01-01", "2020-01-01", "2020-01-01", "2020-01-03", "2020-01-10"), 1400
        )

    def test_day_start_maps_to_segment_start(self, segments) -> None:
        mapper = CoordinateMapper(segments)
        for seg in segments:
            assert mapper.date_to_x(seg.day_start) == seg.x_start

    def test_linear_inside_a_day(self, segments) -> None:
        mapper = CoordinateMapper(segments)
        seg = segments[1]
        noon = seg.day_start + pd.Timedelta(hours=12)
        assert mapper.date_to_x(noon) == pytest.approx(seg.x_start + seg.width / 2)

    def test_clamping(self, segments) -> None:
        mapper = CoordinateMapper(segments)
        assert mapper.date_to_x("2019-12-25") == 0
        assert mapper.date_to_x("2020-02-01") == mapper.total_width
        # 2020-01-05 has no events: shared edge of the 01-03 and 01-10 segments
        assert mapper.date_to_x("2020-01-05") == segments[1].x_end == segments[2].x_start

    def test_monotonic_over_whole_range(self, segments) -> None:
        mapper = CoordinateMapper(segments)
        grid = pd.date_range("2019-12-28", "2020-01-14", freq="5h")
        xs = [mapper.date_to_x(ts) for ts in grid]
        assert all(a <= b for a, b in zip(xs, xs[1:]))

    def test_accepts_strings_and_missing(self, segments) -> None:
        mapper = CoordinateMapper(segments)
        assert mapper.date_to_x("2020-01-03") == segments[1].x_start
        assert mapper.date_to_x(None) == 0
        assert mapper.date_to_x("garbage") == 0

    def test_segment_for(self, segments) -> None:
        mapper = CoordinateMapper(segments)
        assert mapper.segment_for("2020-01-03 08:00") is segments[1]
        assert mapper.segment_for("2020-01-05") is None

    def test_module_function(self, segments) -> None:
        assert date_to_x("2020-01-10", segments) == segments[2].x_start

    def test_px_per_day(self, segments) -> None:
        mapper = CoordinateMapper(segments)
        assert mapper.px_per_day == pytest.approx(1360 / 3 / 30)

    def test_empty_mapper(self) -> None:
        mapper = CoordinateMapper([])
        assert mapper.date_to_x("2020-01-01") == 0
        assert mapper.total_width == 0
        assert mapper.px_per_day == 0
