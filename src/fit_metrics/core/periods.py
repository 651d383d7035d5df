"""
Time-period bucketing for aggregation and charting.

Every timestamp is mapped into a CalendarPolicy (IANA timezone + first day
of the week) before its bucket is computed, so bucket membership near
midnight is fixed by the policy rather than by the host machine:

  - naive datetimes are read as wall-clock time in the policy timezone
  - aware datetimes are converted into the policy timezone

Bucket starts are returned as aware datetimes in the policy timezone.
"""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from zoneinfo import ZoneInfo

from .config import (
    DEFAULT_TIMEZONE,
    DEFAULT_WEEK_START,
    SIX_MONTH_BUCKETS,
    WEEK_DAILY_BUCKETS,
    WEEKDAY_NAMES,
    YEAR_BUCKETS,
)


class TimePeriod(str, Enum):
    """Chart period selectable on the dashboard."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    SIX_MONTHS = "six_months"
    YEAR = "year"

    @property
    def display_name(self) -> str:
        return {
            TimePeriod.DAY: "Day",
            TimePeriod.WEEK: "Week",
            TimePeriod.MONTH: "Month",
            TimePeriod.SIX_MONTHS: "6 Months",
            TimePeriod.YEAR: "Year",
        }[self]

    @property
    def short_name(self) -> str:
        return {
            TimePeriod.DAY: "D",
            TimePeriod.WEEK: "W",
            TimePeriod.MONTH: "M",
            TimePeriod.SIX_MONTHS: "6M",
            TimePeriod.YEAR: "Y",
        }[self]

    @property
    def trailing_resolution(self) -> "TimePeriod":
        """Bucket size used when this period is drawn as a trailing window."""
        if self in (TimePeriod.SIX_MONTHS, TimePeriod.YEAR):
            return TimePeriod.MONTH
        return TimePeriod.DAY


@dataclass(frozen=True)
class CalendarPolicy:
    """
    Timezone and week-start convention used for all bucketing.

    week_start follows datetime.weekday(): Monday=0 … Sunday=6.
    """

    timezone: str = DEFAULT_TIMEZONE
    week_start: int = DEFAULT_WEEK_START

    def __post_init__(self) -> None:
        if not 0 <= self.week_start <= 6:
            raise ValueError(f"week_start must be 0..6, got {self.week_start}")
        # Fail early on unknown zone names
        self.tzinfo

    @property
    def tzinfo(self) -> tzinfo:
        if self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)

    def localize(self, value: datetime) -> datetime:
        """Express *value* in this policy's timezone."""
        tz = self.tzinfo
        if value.tzinfo is None:
            return value.replace(tzinfo=tz)
        return value.astimezone(tz)

    def now(self) -> datetime:
        return datetime.now(self.tzinfo)


DEFAULT_CALENDAR = CalendarPolicy()


def parse_week_start(value: str | int) -> int:
    """Accept 0..6 or a weekday name ("monday", "Sun", …)."""
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"week_start must be 0..6, got {value}")
        return value
    text = str(value).strip().lower()
    if text.isdigit():
        return parse_week_start(int(text))
    for i, name in enumerate(WEEKDAY_NAMES):
        if name.startswith(text) and len(text) >= 3:
            return i
    raise ValueError(f"Unknown weekday: {value!r}")


def add_months(value: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length."""
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def start_of_day(value: datetime, calendar: CalendarPolicy | None = None) -> datetime:
    local = (calendar or DEFAULT_CALENDAR).localize(value)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def bucket_start(
    value: datetime,
    period: TimePeriod,
    calendar: CalendarPolicy | None = None,
) -> datetime:
    """
    Map a timestamp to the start of its containing bucket.

    six_months groups by calendar month, same as month; the two only differ
    in how much history a chart shows.

    Args:
        value: Timestamp to bucket
        period: Bucket size
        calendar: Timezone / week-start policy (default: UTC, Monday)

    Returns:
        Aware datetime at the start of the bucket
    """
    cal = calendar or DEFAULT_CALENDAR
    day = start_of_day(value, cal)

    if period == TimePeriod.DAY:
        return day
    if period == TimePeriod.WEEK:
        offset = (day.weekday() - cal.week_start) % 7
        return day - timedelta(days=offset)
    if period in (TimePeriod.MONTH, TimePeriod.SIX_MONTHS):
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def date_range(
    period: TimePeriod,
    ending_at: datetime | None = None,
    calendar: CalendarPolicy | None = None,
) -> tuple[datetime, datetime]:
    """
    Trailing window of fixed length ending at *ending_at*, on day boundaries.

    day: same day; week: 7 days back; month: 1 month; six_months: 6 months;
    year: 1 year.

    Returns:
        (start, end) where end is the start of ending_at's day
    """
    cal = calendar or DEFAULT_CALENDAR
    end = start_of_day(ending_at if ending_at is not None else cal.now(), cal)

    if period == TimePeriod.DAY:
        start = end
    elif period == TimePeriod.WEEK:
        start = end - timedelta(days=7)
    elif period == TimePeriod.MONTH:
        start = add_months(end, -1)
    elif period == TimePeriod.SIX_MONTHS:
        start = add_months(end, -6)
    else:
        start = add_months(end, -12)

    return start, end


def trailing_buckets(
    period: TimePeriod,
    ending_at: datetime | None = None,
    calendar: CalendarPolicy | None = None,
) -> list[datetime]:
    """
    Fixed grid of bucket starts for a trailing chart window.

      day        → 1 daily bucket (today)
      week       → 7 daily buckets ending today
      month      → one daily bucket per day in (start, end] of date_range(month)
      six_months → 6 monthly buckets ending with the current month
      year       → 12 monthly buckets ending with the current month

    The grid always ends with the bucket containing *ending_at*, in
    ascending order.
    """
    cal = calendar or DEFAULT_CALENDAR
    anchor = ending_at if ending_at is not None else cal.now()
    today = start_of_day(anchor, cal)

    if period == TimePeriod.DAY:
        return [today]
    if period == TimePeriod.WEEK:
        return [today - timedelta(days=i) for i in range(WEEK_DAILY_BUCKETS - 1, -1, -1)]
    if period == TimePeriod.MONTH:
        start, end = date_range(period, anchor, cal)
        n_days = (end - start).days
        return [start + timedelta(days=i) for i in range(1, n_days + 1)]

    n_months = SIX_MONTH_BUCKETS if period == TimePeriod.SIX_MONTHS else YEAR_BUCKETS
    current = today.replace(day=1)
    return [add_months(current, -i) for i in range(n_months - 1, -1, -1)]
