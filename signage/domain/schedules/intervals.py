"""
Schedule Interval Model
=======================

Normalizes the optional date, weekday and time-of-day fields of a schedule
into fully specified value objects so that overlap and containment checks
never have to special-case missing values:

- absent dates become ``date.min`` / ``date.max``
- absent or empty weekday sets become all seven days
- time windows live on a 48-hour timeline: a window that wraps past
  midnight (22:00-02:00) is stored as ``[1320, 1560)`` minutes

Weekdays use 0 = Sunday ... 6 = Saturday.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Any, Iterable

from signage.domain.exceptions import MalformedInputError

MINUTES_PER_DAY = 24 * 60
ALL_DAYS: frozenset[int] = frozenset(range(7))

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def weekday_index(value: datetime.date) -> int:
    """Return the weekday of *value* with 0 = Sunday."""
    return (value.weekday() + 1) % 7


def minutes_of(value: datetime.time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    """Render minutes on the 48h timeline as HH:MM of the day."""
    h = (minutes // 60) % 24
    m = minutes % 60
    return f"{h:02d}:{m:02d}"


# ==================== Parsing ====================


def parse_date(value: Any, field: str = "date") -> datetime.date | None:
    """Parse a YYYY-MM-DD value (or date/datetime) into a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            return datetime.date.fromisoformat(raw)
        except ValueError:
            pass
        try:
            return datetime.datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise MalformedInputError(field, f"{field} must be a date in YYYY-MM-DD format")


def parse_time(value: Any, field: str = "time") -> datetime.time | None:
    """Parse an HH:MM value (seconds are accepted and dropped)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.time().replace(second=0, microsecond=0)
    if isinstance(value, datetime.time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, str):
        match = _TIME_RE.match(value.strip())
        if match:
            h, m = int(match.group(1)), int(match.group(2))
            if 0 <= h <= 23 and 0 <= m <= 59:
                return datetime.time(hour=h, minute=m)
    raise MalformedInputError(field, f"{field} must be a time in HH:MM format")


def parse_days_of_week(value: Any, field: str = "days_of_week") -> list[int] | None:
    """Parse a weekday list into sorted, de-duplicated ints in ``[0, 6]``."""
    if value is None:
        return None
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise MalformedInputError(field, f"{field} must be a list of weekdays")

    days: set[int] = set()
    for index, item in enumerate(value):
        day = _coerce_day(item)
        if day is None or not 0 <= day <= 6:
            raise MalformedInputError(
                f"{field}.{index}",
                "Day of week must be an integer between 0 (Sunday) and 6 (Saturday)",
            )
        days.add(day)
    return sorted(days)


def _coerce_day(item: Any) -> int | None:
    if isinstance(item, bool):
        return None
    if isinstance(item, int):
        return item
    if isinstance(item, str) and item.strip().lstrip("-").isdigit():
        return int(item.strip())
    return None


# ==================== Value objects ====================


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-date range; open bounds use date.min / date.max."""

    lower: datetime.date = datetime.date.min
    upper: datetime.date = datetime.date.max

    @property
    def is_unbounded(self) -> bool:
        return self.lower == datetime.date.min and self.upper == datetime.date.max

    def overlaps(self, other: "DateRange") -> bool:
        return self.lower <= other.upper and other.lower <= self.upper

    def contains(self, day: datetime.date) -> bool:
        return self.lower <= day <= self.upper


@dataclass(frozen=True)
class TimeWindow:
    """Half-open ``[start, end)`` window in minutes on a 48-hour timeline."""

    start: int = 0
    end: int = MINUTES_PER_DAY

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def wraps(self) -> bool:
        return self.end > MINUTES_PER_DAY

    def projections(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """The window and its copy one day later."""
        return (
            (self.start, self.end),
            (self.start + MINUTES_PER_DAY, self.end + MINUTES_PER_DAY),
        )

    def overlaps(self, other: "TimeWindow") -> bool:
        for a_start, a_end in self.projections():
            for b_start, b_end in other.projections():
                if a_start < b_end and b_start < a_end:
                    return True
        return False

    def day_offset(self, minute: int) -> int | None:
        """Which day a minute-of-day falls in for this window.

        Returns 0 when *minute* lies in the window on the window's own day,
        1 when it lies in the after-midnight tail that started the previous
        day, and None otherwise.
        """
        if self.start <= minute < self.end:
            return 0
        if self.start <= minute + MINUTES_PER_DAY < self.end:
            return 1
        return None


def normalize_date_range(start_date: Any = None, end_date: Any = None) -> DateRange:
    lower = parse_date(start_date, "start_date")
    upper = parse_date(end_date, "end_date")
    return DateRange(
        lower=lower or datetime.date.min,
        upper=upper or datetime.date.max,
    )


def normalize_time_window(start_time: Any = None, end_time: Any = None) -> TimeWindow:
    """Project a start/end time pair onto the 48-hour timeline.

    A missing start means midnight, a missing end means end of day. An end at
    or before the start wraps into the next day, so ``start == end`` is a full
    24-hour window.
    """
    start = parse_time(start_time, "start_time")
    end = parse_time(end_time, "end_time")

    start_minutes = minutes_of(start) if start else 0
    if end is None:
        return TimeWindow(start_minutes, MINUTES_PER_DAY)

    end_minutes = minutes_of(end)
    if end_minutes <= start_minutes:
        end_minutes += MINUTES_PER_DAY
    return TimeWindow(start_minutes, end_minutes)


def normalize_days_of_week(days: Iterable[Any] | None = None) -> frozenset[int]:
    parsed = parse_days_of_week(days)
    if not parsed:
        return ALL_DAYS
    return frozenset(parsed)


def duration_minutes(start_time: Any, end_time: Any) -> int | None:
    """Wrap-aware duration between two times; None when either is absent."""
    start = parse_time(start_time, "start_time")
    end = parse_time(end_time, "end_time")
    if start is None or end is None:
        return None
    return normalize_time_window(start, end).duration


@dataclass(frozen=True)
class ScheduleInterval:
    """Fully specified date x weekday x time-of-day interval of a schedule."""

    dates: DateRange
    days: frozenset[int]
    window: TimeWindow

    @classmethod
    def from_fields(
        cls,
        start_date: Any = None,
        end_date: Any = None,
        start_time: Any = None,
        end_time: Any = None,
        days_of_week: Any = None,
    ) -> "ScheduleInterval":
        return cls(
            dates=normalize_date_range(start_date, end_date),
            days=normalize_days_of_week(days_of_week),
            window=normalize_time_window(start_time, end_time),
        )

    @classmethod
    def from_schedule(cls, schedule: Any) -> "ScheduleInterval":
        return cls.from_fields(
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            days_of_week=schedule.days_of_week,
        )

    def overlaps(self, other: "ScheduleInterval") -> bool:
        """True when both intervals share a date, a weekday and a time slot."""
        if not self.dates.overlaps(other.dates):
            return False
        if not self.days & other.days:
            return False
        return self.window.overlaps(other.window)

    def contains(self, at: datetime.datetime) -> bool:
        """True when the instant *at* falls inside this interval.

        The after-midnight tail of an overnight window belongs to the day the
        window started, so its weekday and date are checked against the
        previous calendar day.
        """
        minute = at.hour * 60 + at.minute
        offset = self.window.day_offset(minute)
        if offset is None:
            return False

        day = at.date()
        if offset:
            if day == datetime.date.min:
                return False
            day = day - datetime.timedelta(days=offset)
        return weekday_index(day) in self.days and self.dates.contains(day)
