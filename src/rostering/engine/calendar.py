"""
Calendar View Computer
======================
Pure date-range, navigation and time-to-position arithmetic shared by every
calendar surface (day, 3-day, week and month views). No I/O, no state.
"""
import calendar as _calendar
import re
from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Tuple, TypeVar, Union

from rostering.errors import ParseError

T = TypeVar("T")

INVALID_TIME = "Invalid time"

# Minimum rendered block height, in percent of the axis
MIN_BLOCK_HEIGHT = 4.0


class CalendarView(str, Enum):
    DAY = "day"
    THREE_DAY = "3day"
    WEEK = "week"
    MONTH = "month"

    @property
    def label(self) -> str:
        return {"day": "Day", "3day": "3-Day", "week": "Week", "month": "Month"}[self.value]

    @classmethod
    def from_string(cls, s: str) -> "CalendarView":
        key = str(s).strip().lower().replace("-", "").replace("_", "")
        aliases = {"threeday": "3day", "3days": "3day", "days": "day", "weeks": "week"}
        key = aliases.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown calendar view: {s!r}")


def _as_view(view: Union[str, CalendarView]) -> CalendarView:
    return view if isinstance(view, CalendarView) else CalendarView.from_string(view)


def week_start_for(day: date, week_start: int = 0) -> date:
    """The configured week-start weekday on or before ``day`` (0 = Monday)."""
    offset = (day.weekday() - week_start) % 7
    return day - timedelta(days=offset)


def date_range_for(
    view: Union[str, CalendarView],
    anchor: date,
    week_start: int = 0,
) -> Tuple[date, date]:
    """
    Inclusive (start, end) covered by a view anchored at ``anchor``.

    - day: [anchor, anchor]
    - 3day: [anchor, anchor + 2]
    - week: the 7 days starting at the week-start weekday on/before anchor
    - month: complete weeks covering the anchor's month (may spill into
      adjacent months)
    """
    view = _as_view(view)
    if view == CalendarView.DAY:
        return anchor, anchor
    if view == CalendarView.THREE_DAY:
        return anchor, anchor + timedelta(days=2)
    if view == CalendarView.WEEK:
        start = week_start_for(anchor, week_start)
        return start, start + timedelta(days=6)

    first = anchor.replace(day=1)
    last = anchor.replace(day=_calendar.monthrange(anchor.year, anchor.month)[1])
    start = week_start_for(first, week_start)
    end = week_start_for(last, week_start) + timedelta(days=6)
    return start, end


def dates_in_range(start: date, end: date) -> List[date]:
    """Every date from start to end inclusive (empty if end < start)."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def days_for_view(view: Union[str, CalendarView], anchor: date, week_start: int = 0) -> List[date]:
    return dates_in_range(*date_range_for(view, anchor, week_start))


def add_months(day: date, months: int) -> date:
    """Shift by calendar months, clamping to the target month's last day."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last = _calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


_STEP_DAYS = {
    CalendarView.DAY: 1,
    CalendarView.THREE_DAY: 3,
    CalendarView.WEEK: 7,
}


def navigate(view: Union[str, CalendarView], anchor: date, direction: int) -> date:
    """
    Move the anchor one view-step forward (+1) or back (-1).

    Month steps keep the day-of-month, clamped to the end of shorter months
    (2024-01-31 -> 2024-02-29).
    """
    if direction not in (1, -1):
        raise ValueError(f"direction must be +1 or -1, got {direction!r}")
    view = _as_view(view)
    if view == CalendarView.MONTH:
        return add_months(anchor, direction)
    return anchor + timedelta(days=_STEP_DAYS[view] * direction)


_TIME_24 = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?\s*$")
_TIME_12 = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([AaPp])\.?[Mm]\.?\s*$")


def parse_time(value: Union[str, time, datetime]) -> time:
    """
    Parse "HH:MM", "HH:MM:SS" or "h[:mm] AM/PM" into a ``time``.

    "24:00" is accepted as the end of the day and maps to 23:59.

    Raises:
        ParseError: for anything else.
    """
    if isinstance(value, datetime):
        return value.time().replace(microsecond=0)
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ParseError(value)

    m = _TIME_24.match(value)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        second = int(m.group(3) or 0)
        if hour == 24 and minute == 0 and second == 0:
            return time(23, 59)
        if hour > 23 or minute > 59 or second > 59:
            raise ParseError(value)
        return time(hour, minute, second)

    m = _TIME_12.match(value)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2) or 0)
        if not 1 <= hour <= 12 or minute > 59:
            raise ParseError(value)
        hour %= 12
        if m.group(3).lower() == "p":
            hour += 12
        return time(hour, minute)

    raise ParseError(value)


def parse_date(value: Union[str, date]) -> date:
    """Parse an ISO ``YYYY-MM-DD`` date. Raises ParseError otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ParseError(value, expected="date") from None


def format_time_safe(value, fallback: str = INVALID_TIME, fmt: str = "%H:%M") -> str:
    """Format a time or time string for display, never raising."""
    try:
        return parse_time(value).strftime(fmt)
    except ParseError:
        return fallback


def time_to_vertical_position(
    value: Union[str, time],
    range_start_hour: int = 0,
    range_end_hour: int = 24,
) -> float:
    """
    Percentage (0-100) of the way down a vertical axis spanning
    [range_start_hour, range_end_hour) where ``value`` falls.

    Monotonic in time; out-of-range times clamp to 0 or 100.

    Raises:
        ParseError: ``value`` is a malformed time string.
        ValueError: the hour bounds are empty or inverted.
    """
    if range_end_hour <= range_start_hour:
        raise ValueError(f"Empty hour range: {range_start_hour}-{range_end_hour}")
    t = parse_time(value)
    minutes = t.hour * 60 + t.minute + t.second / 60
    start = range_start_hour * 60
    span = (range_end_hour - range_start_hour) * 60
    pct = (minutes - start) / span * 100
    return min(100.0, max(0.0, pct))


def block_geometry(
    start: Union[str, time],
    end: Union[str, time],
    range_start_hour: int = 0,
    range_end_hour: int = 24,
) -> Tuple[float, float]:
    """(top, height) in percent for a shift block; overnight blocks run to the bottom."""
    top = time_to_vertical_position(start, range_start_hour, range_end_hour)
    bottom = time_to_vertical_position(end, range_start_hour, range_end_hour)
    if bottom <= top:
        bottom = 100.0
    height = min(max(bottom - top, MIN_BLOCK_HEIGHT), 100.0 - top)
    return top, height


def group_shifts_by_role(entries: Iterable[Tuple[T, str]]) -> Dict[str, List[T]]:
    """
    Group (shift, role_name) pairs by role name.

    Keys appear in first-seen order; shifts keep their input order.
    """
    grouped: Dict[str, List[T]] = OrderedDict()
    for item, role_name in entries:
        grouped.setdefault(role_name, []).append(item)
    return grouped


def month_weeks(anchor: date, week_start: int = 0) -> List[Sequence[date]]:
    """Month grid rows: the month view's dates chunked into weeks."""
    days = days_for_view(CalendarView.MONTH, anchor, week_start)
    return [days[i:i + 7] for i in range(0, len(days), 7)]
