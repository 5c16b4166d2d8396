# backend/propdesk/domain/windows.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from .errors import ValidationError

DateLike = Union[str, date, datetime, None]


@dataclass(frozen=True)
class DateWindow:
    """Inclusive [start, end] in naive UTC."""

    start: datetime
    end: datetime

    @property
    def days(self) -> int:
        return max(1, (self.end.date() - self.start.date()).days + 1)

    def previous(self) -> "DateWindow":
        """Window of the same length ending right before this one starts."""
        span = self.end - self.start
        end = self.start - timedelta(microseconds=1)
        return DateWindow(start=end - span, end=end)

    def as_dict(self) -> dict[str, str]:
        return {"start_date": self.start.isoformat(), "end_date": self.end.isoformat()}


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_when(value: DateLike, *, end_of_day: bool = False) -> Optional[datetime]:
    """
    Accepts ISO-8601 strings, dates and datetimes.

    A bare date means the whole day: its start, or with end_of_day=True its
    last microsecond.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)

    raw = str(value).strip()
    try:
        if len(raw) == 10:
            d = date.fromisoformat(raw)
            return datetime.combine(d, time.max if end_of_day else time.min)
        return _naive_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        raise ValidationError(f"Invalid date: {raw!r}")


def parse_window(start: DateLike, end: DateLike, *, required: bool = True) -> Optional[DateWindow]:
    s = parse_when(start)
    e = parse_when(end, end_of_day=True)

    if s is None and e is None and not required:
        return None
    if s is None or e is None:
        raise ValidationError("Start and end dates required")
    if s > e:
        raise ValidationError("start_date must not be after end_date")
    return DateWindow(start=s, end=e)


def utcnow() -> datetime:
    return datetime.utcnow()


def last_month(*, now: Optional[datetime] = None) -> DateWindow:
    """The trailing month ending now (same day-of-month, previous month)."""
    end = now or utcnow()
    return DateWindow(start=add_months(end, -1), end=end)


def add_months(dt: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    idx = dt.month - 1 + months
    y, m = dt.year + idx // 12, idx % 12 + 1
    day = min(dt.day, calendar.monthrange(y, m)[1])
    return dt.replace(year=y, month=m, day=day)
