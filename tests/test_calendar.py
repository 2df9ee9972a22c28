"""Tests for calendar date ranges, navigation and time positions."""
from datetime import date, datetime, time, timedelta

import pytest

from rostering.engine.calendar import (
    INVALID_TIME,
    CalendarView,
    add_months,
    block_geometry,
    date_range_for,
    dates_in_range,
    days_for_view,
    format_time_safe,
    group_shifts_by_role,
    month_weeks,
    navigate,
    parse_date,
    parse_time,
    time_to_vertical_position,
    week_start_for,
)
from rostering.errors import ParseError


class TestCalendarView:
    def test_values(self):
        assert [v.value for v in CalendarView] == ["day", "3day", "week", "month"]

    def test_from_string_aliases(self):
        assert CalendarView.from_string("3-day") == CalendarView.THREE_DAY
        assert CalendarView.from_string("Week") == CalendarView.WEEK
        with pytest.raises(ValueError):
            CalendarView.from_string("year")

    def test_label(self):
        assert CalendarView.THREE_DAY.label == "3-Day"


class TestDateRange:
    """dateRangeFor contract per view."""

    def test_day(self):
        d = date(2024, 1, 10)
        assert date_range_for("day", d) == (d, d)

    def test_three_day_is_exactly_three_dates(self):
        d = date(2024, 1, 10)
        start, end = date_range_for("3day", d)
        assert dates_in_range(start, end) == [d, d + timedelta(days=1), d + timedelta(days=2)]

    def test_week_starts_on_monday_by_default(self):
        # 2024-01-10 is a Wednesday
        start, end = date_range_for(CalendarView.WEEK, date(2024, 1, 10))
        assert start == date(2024, 1, 8)
        assert end == date(2024, 1, 14)
        assert len(dates_in_range(start, end)) == 7

    def test_week_with_sunday_start(self):
        start, end = date_range_for("week", date(2024, 1, 10), week_start=6)
        assert start == date(2024, 1, 7)
        assert start.weekday() == 6
        assert end == date(2024, 1, 13)

    def test_week_anchor_on_week_start(self):
        monday = date(2024, 1, 8)
        assert date_range_for("week", monday)[0] == monday

    def test_month_covers_complete_weeks(self):
        start, end = date_range_for("month", date(2024, 3, 15))
        # March 2024 starts on a Friday and ends on a Sunday
        assert start == date(2024, 2, 26)
        assert end == date(2024, 3, 31)
        days = dates_in_range(start, end)
        assert len(days) % 7 == 0
        assert start.weekday() == 0
        assert date(2024, 3, 1) in days and date(2024, 3, 31) in days

    def test_month_spills_into_next_month(self):
        start, end = date_range_for("month", date(2024, 2, 10))
        assert start == date(2024, 1, 29)
        assert end == date(2024, 3, 3)

    def test_month_weeks_grid(self):
        weeks = month_weeks(date(2024, 3, 15))
        assert len(weeks) == 5
        assert all(len(w) == 7 for w in weeks)
        assert weeks[0][0] == date(2024, 2, 26)

    def test_days_for_view(self):
        assert days_for_view("day", date(2024, 1, 10)) == [date(2024, 1, 10)]

    def test_week_start_for(self):
        assert week_start_for(date(2024, 1, 14)) == date(2024, 1, 8)

    def test_dates_in_range_empty_when_inverted(self):
        assert dates_in_range(date(2024, 1, 2), date(2024, 1, 1)) == []


class TestNavigate:
    def test_day_steps(self):
        assert navigate("day", date(2024, 1, 10), 1) == date(2024, 1, 11)
        assert navigate("day", date(2024, 1, 10), -1) == date(2024, 1, 9)

    def test_three_day_steps(self):
        assert navigate("3day", date(2024, 1, 10), 1) == date(2024, 1, 13)

    def test_week_steps(self):
        assert navigate("week", date(2024, 1, 10), -1) == date(2024, 1, 3)

    def test_month_forward_keeps_day_of_month(self):
        assert navigate("month", date(2024, 3, 15), 1) == date(2024, 4, 15)

    def test_month_clamps_to_shorter_month(self):
        assert navigate("month", date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert navigate("month", date(2024, 3, 31), -1) == date(2024, 2, 29)

    def test_month_crosses_year(self):
        assert navigate("month", date(2024, 12, 15), 1) == date(2025, 1, 15)
        assert navigate("month", date(2024, 1, 15), -1) == date(2023, 12, 15)

    def test_invalid_direction(self):
        with pytest.raises(ValueError):
            navigate("day", date(2024, 1, 10), 2)

    def test_add_months(self):
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)


class TestParseTime:
    def test_24_hour(self):
        assert parse_time("09:30") == time(9, 30)
        assert parse_time("9:05") == time(9, 5)
        assert parse_time("17:00:30") == time(17, 0, 30)

    def test_12_hour(self):
        assert parse_time("9 AM") == time(9, 0)
        assert parse_time("12:30 pm") == time(12, 30)
        assert parse_time("12 am") == time(0, 0)

    def test_end_of_day(self):
        assert parse_time("24:00") == time(23, 59)

    def test_passthrough(self):
        assert parse_time(time(8, 15)) == time(8, 15)
        assert parse_time(datetime(2024, 1, 10, 8, 15)) == time(8, 15)

    @pytest.mark.parametrize("bad", ["", "abc", "25:00", "12:61", "13 pm", None, 930])
    def test_malformed_raises_parse_error(self, bad):
        with pytest.raises(ParseError):
            parse_time(bad)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_time("nope")

    def test_parse_date(self):
        assert parse_date("2024-01-10") == date(2024, 1, 10)
        with pytest.raises(ParseError):
            parse_date("10/01/2024")


class TestFormatTimeSafe:
    def test_valid(self):
        assert format_time_safe("9:00") == "09:00"

    def test_fallback(self):
        assert format_time_safe("garbage") == INVALID_TIME
        assert format_time_safe(None, fallback="--") == "--"


class TestVerticalPosition:
    def test_full_day_axis(self):
        assert time_to_vertical_position("00:00") == 0.0
        assert time_to_vertical_position("12:00") == 50.0
        assert time_to_vertical_position("18:00") == 75.0

    def test_custom_bounds(self):
        assert time_to_vertical_position("12:00", 8, 16) == 50.0

    def test_clamps_out_of_range(self):
        assert time_to_vertical_position("06:00", 8, 16) == 0.0
        assert time_to_vertical_position("20:00", 8, 16) == 100.0

    def test_empty_range(self):
        with pytest.raises(ValueError):
            time_to_vertical_position("10:00", 10, 10)

    def test_malformed_time(self):
        with pytest.raises(ParseError):
            time_to_vertical_position("ten o'clock")

    def test_block_geometry(self):
        top, height = block_geometry("06:00", "12:00")
        assert (top, height) == (25.0, 25.0)

    def test_block_geometry_overnight_runs_to_bottom(self):
        top, height = block_geometry("22:00", "06:00")
        assert top == pytest.approx(91.6667, rel=1e-3)
        assert top + height == pytest.approx(100.0)

    def test_block_geometry_minimum_height(self):
        top, height = block_geometry("10:00", "10:15")
        assert height == 4.0


class TestGroupByRole:
    def test_first_seen_order(self):
        entries = [("s1", "TM2"), ("s2", "RN"), ("s3", "TM2"), ("s4", "Porter")]
        grouped = group_shifts_by_role(entries)
        assert list(grouped) == ["TM2", "RN", "Porter"]
        assert grouped["TM2"] == ["s1", "s3"]

    def test_empty(self):
        assert group_shifts_by_role([]) == {}
