from __future__ import annotations

from datetime import date, datetime, time

import pytest

from signage.domain.exceptions import MalformedInputError
from signage.domain.schedules.intervals import (
    ALL_DAYS,
    MINUTES_PER_DAY,
    DateRange,
    ScheduleInterval,
    TimeWindow,
    duration_minutes,
    format_minutes,
    normalize_date_range,
    normalize_days_of_week,
    normalize_time_window,
    parse_date,
    parse_days_of_week,
    parse_time,
    weekday_index,
)


class TestParsing:
    def test_parse_date_accepts_iso_and_date_objects(self):
        assert parse_date("2025-06-02") == date(2025, 6, 2)
        assert parse_date(date(2025, 6, 2)) == date(2025, 6, 2)
        assert parse_date(datetime(2025, 6, 2, 13, 0)) == date(2025, 6, 2)
        assert parse_date("2025-06-02T10:00:00Z") == date(2025, 6, 2)

    @pytest.mark.parametrize("value", [None, ""])
    def test_parse_date_empty_is_none(self, value):
        assert parse_date(value) is None

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(MalformedInputError) as exc_info:
            parse_date("02/06/2025", "start_date")
        assert exc_info.value.field == "start_date"

    def test_parse_time_drops_seconds(self):
        assert parse_time("08:30") == time(8, 30)
        assert parse_time("8:05:59") == time(8, 5)
        assert parse_time(time(22, 15, 30)) == time(22, 15)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", 830])
    def test_parse_time_rejects_invalid(self, value):
        with pytest.raises(MalformedInputError):
            parse_time(value, "end_time")

    def test_parse_days_sorts_and_deduplicates(self):
        assert parse_days_of_week([5, 1, "3", 1]) == [1, 3, 5]

    def test_parse_days_none_and_empty(self):
        assert parse_days_of_week(None) is None
        assert parse_days_of_week([]) == []

    @pytest.mark.parametrize("days", [[7], [-1], [True], ["mon"], [1.5]])
    def test_parse_days_rejects_out_of_range_items(self, days):
        with pytest.raises(MalformedInputError) as exc_info:
            parse_days_of_week(days)
        assert exc_info.value.field == "days_of_week.0"

    def test_parse_days_reports_the_offending_index(self):
        with pytest.raises(MalformedInputError) as exc_info:
            parse_days_of_week([1, 2, 9])
        assert exc_info.value.field == "days_of_week.2"

    def test_parse_days_requires_a_list(self):
        with pytest.raises(MalformedInputError) as exc_info:
            parse_days_of_week("1,2")
        assert exc_info.value.field == "days_of_week"


class TestNormalization:
    def test_weekday_index_is_sunday_based(self):
        assert weekday_index(date(2025, 6, 1)) == 0  # Sunday
        assert weekday_index(date(2025, 6, 2)) == 1  # Monday
        assert weekday_index(date(2025, 6, 7)) == 6  # Saturday

    def test_unbounded_date_range(self):
        dates = normalize_date_range(None, None)
        assert dates.lower == date.min
        assert dates.upper == date.max
        assert dates.is_unbounded

    def test_half_open_date_range(self):
        dates = normalize_date_range("2025-06-01", None)
        assert dates.lower == date(2025, 6, 1)
        assert dates.upper == date.max

    def test_days_default_to_every_day(self):
        assert normalize_days_of_week(None) == ALL_DAYS
        assert normalize_days_of_week([]) == ALL_DAYS
        assert normalize_days_of_week([0, 6]) == frozenset({0, 6})

    def test_plain_window(self):
        assert normalize_time_window("09:00", "10:00") == TimeWindow(540, 600)

    def test_overnight_window_projects_past_midnight(self):
        window = normalize_time_window("22:00", "02:00")
        assert window == TimeWindow(1320, 1560)
        assert window.wraps
        assert window.duration == 240

    def test_equal_bounds_are_a_full_day(self):
        window = normalize_time_window("00:00", "00:00")
        assert window == TimeWindow(0, MINUTES_PER_DAY)
        assert normalize_time_window("08:00", "08:00").duration == MINUTES_PER_DAY

    def test_single_bound_windows(self):
        assert normalize_time_window("18:00", None) == TimeWindow(1080, MINUTES_PER_DAY)
        assert normalize_time_window(None, "06:00") == TimeWindow(0, 360)
        assert normalize_time_window(None, None) == TimeWindow(0, MINUTES_PER_DAY)

    def test_duration_minutes(self):
        assert duration_minutes("08:00", "08:05") == 5
        assert duration_minutes("23:58", "00:02") == 4
        assert duration_minutes("08:00", None) is None

    def test_format_minutes_wraps(self):
        assert format_minutes(1560) == "02:00"
        assert format_minutes(545) == "09:05"


class TestTimeWindowOverlap:
    def test_touching_windows_do_not_overlap(self):
        a = normalize_time_window("09:00", "10:00")
        b = normalize_time_window("10:00", "11:00")
        assert not a.overlaps(b)
        assert not b.overlaps(a)

    def test_partial_overlap(self):
        a = normalize_time_window("09:00", "10:00")
        b = normalize_time_window("09:30", "10:30")
        assert a.overlaps(b)

    def test_overnight_tail_overlaps_early_morning(self):
        a = normalize_time_window("22:00", "02:00")
        b = normalize_time_window("01:00", "03:00")
        assert a.overlaps(b)
        assert b.overlaps(a)

    def test_overnight_touching_early_morning(self):
        a = normalize_time_window("22:00", "02:00")
        b = normalize_time_window("02:00", "04:00")
        assert not a.overlaps(b)

    def test_two_overnight_windows(self):
        a = normalize_time_window("23:00", "01:00")
        b = normalize_time_window("00:30", "00:45")
        assert a.overlaps(b)

    def test_full_day_overlaps_any_window(self):
        full = normalize_time_window("06:00", "06:00")
        assert full.overlaps(normalize_time_window("03:00", "03:05"))
        assert full.overlaps(normalize_time_window("23:00", "01:00"))

    def test_day_offset(self):
        window = normalize_time_window("22:00", "02:00")
        assert window.day_offset(23 * 60) == 0
        assert window.day_offset(60) == 1
        assert window.day_offset(120) is None
        assert window.day_offset(12 * 60) is None


class TestScheduleInterval:
    def test_dates_sharing_one_day_overlap(self):
        a = DateRange(date(2025, 6, 1), date(2025, 6, 10))
        b = DateRange(date(2025, 6, 10), date(2025, 6, 20))
        assert a.overlaps(b)

    def test_disjoint_days_never_overlap(self):
        a = ScheduleInterval.from_fields(days_of_week=[1, 3, 5])
        b = ScheduleInterval.from_fields(days_of_week=[0, 2, 4, 6])
        assert not a.overlaps(b)

    def test_disjoint_dates_never_overlap(self):
        a = ScheduleInterval.from_fields("2025-06-01", "2025-06-10")
        b = ScheduleInterval.from_fields("2025-06-11", None)
        assert not a.overlaps(b)

    def test_all_three_dimensions_must_overlap(self):
        a = ScheduleInterval.from_fields(None, None, "08:00", "12:00", [1])
        b = ScheduleInterval.from_fields("2025-06-01", None, "11:00", "13:00", [1, 2])
        assert a.overlaps(b)

    def test_contains_checks_date_weekday_and_time(self):
        interval = ScheduleInterval.from_fields("2025-06-01", "2025-06-30", "08:00", "12:00", [1])
        assert interval.contains(datetime(2025, 6, 2, 8, 0))
        assert not interval.contains(datetime(2025, 6, 2, 12, 0))
        assert not interval.contains(datetime(2025, 6, 3, 9, 0))
        assert not interval.contains(datetime(2025, 7, 7, 9, 0))

    def test_contains_attributes_overnight_tail_to_previous_day(self):
        # Monday-only 22:00-02:00 runs into Tuesday morning
        interval = ScheduleInterval.from_fields(None, None, "22:00", "02:00", [1])
        assert interval.contains(datetime(2025, 6, 3, 1, 0))  # Tuesday 01:00
        assert interval.contains(datetime(2025, 6, 2, 23, 0))  # Monday 23:00
        assert not interval.contains(datetime(2025, 6, 2, 1, 0))  # Monday 01:00

    def test_overnight_tail_respects_end_date(self):
        interval = ScheduleInterval.from_fields(None, "2025-06-02", "22:00", "02:00")
        assert interval.contains(datetime(2025, 6, 3, 1, 0))
        assert not interval.contains(datetime(2025, 6, 3, 23, 0))
