# backend/propdesk/domain/cashflow.py
from __future__ import annotations

import calendar
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Any, Iterable

from .errors import ValidationError
from .windows import DateWindow

GROUP_BY = ("month", "quarter", "year")


def month_bounds(yyyy_mm: str) -> tuple[date, date]:
    y, m = [int(x) for x in yyyy_mm.split("-")]
    last_day = calendar.monthrange(y, m)[1]
    return date(y, m, 1), date(y, m, last_day)


def month_window(now: datetime) -> DateWindow:
    first, last = month_bounds(f"{now.year:04d}-{now.month:02d}")
    return DateWindow(start=datetime.combine(first, time.min), end=datetime.combine(last, time.max))


def period_key(when: datetime | date, group_by: str) -> str:
    if group_by == "month":
        return f"{when.year:04d}-{when.month:02d}"
    if group_by == "quarter":
        return f"{when.year:04d}-Q{(when.month - 1) // 3 + 1}"
    if group_by == "year":
        return f"{when.year:04d}"
    raise ValidationError(f"Unsupported group_by: {group_by!r} (expected one of {', '.join(GROUP_BY)})")


def period_keys(window: DateWindow, group_by: str) -> list[str]:
    """Every bucket touched by the window, in order, so empty periods still show up as zero."""
    keys: list[str] = []
    y, m = window.start.year, window.start.month
    while (y, m) <= (window.end.year, window.end.month):
        k = period_key(date(y, m, 1), group_by)
        if not keys or keys[-1] != k:
            keys.append(k)
        m += 1
        if m > 12:
            y, m = y + 1, 1
    return keys


@dataclass(frozen=True)
class CashFlowPeriod:
    period: str
    income: float
    expenses: float
    net_cash_flow: float


def bucket_cash_flow(
    *,
    window: DateWindow,
    group_by: str,
    income: Iterable[tuple[datetime, Any]],
    expenses: Iterable[tuple[datetime, Any]],
) -> list[CashFlowPeriod]:
    """
    Sum dated amounts into periods.

    Rows arrive as (date, amount) pairs; amounts may be Decimal and are
    converted to float here.
    """
    keys = period_keys(window, group_by)
    inc = {k: 0.0 for k in keys}
    exp = {k: 0.0 for k in keys}

    for when, amt in income:
        k = period_key(when, group_by)
        inc[k] = inc.get(k, 0.0) + float(amt or 0)
    for when, amt in expenses:
        k = period_key(when, group_by)
        exp[k] = exp.get(k, 0.0) + float(amt or 0)

    return [
        CashFlowPeriod(
            period=k,
            income=round(inc[k], 2),
            expenses=round(exp[k], 2),
            net_cash_flow=round(inc[k] - exp[k], 2),
        )
        for k in sorted(set(inc) | set(exp))
    ]


def periods_as_dicts(rows: list[CashFlowPeriod]) -> list[dict[str, Any]]:
    return [asdict(r) for r in rows]


def prorated_rent(
    *,
    monthly_rent: float,
    lease_start: datetime,
    lease_end: datetime,
    month: DateWindow,
) -> float:
    """Monthly rent scaled by the share of the month the lease covers."""
    start = max(lease_start, month.start)
    end = min(lease_end, month.end)
    if end < start:
        return 0.0
    active_days = (end.date() - start.date()).days + 1
    return float(monthly_rent) * active_days / month.days
