# backend/tests/test_cash_rollup_math.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from propdesk.domain.cashflow import bucket_cash_flow, month_window, period_key, prorated_rent
from propdesk.domain.errors import ValidationError
from propdesk.domain.windows import parse_window


def test_cash_rollup_math():
    window = parse_window("2026-01-01", "2026-03-31")
    income = [(datetime(2026, 2, 5), Decimal("1500.00"))]
    expenses = [(datetime(2026, 2, 10), Decimal("200.00")), (datetime(2026, 2, 12), 100.0)]

    rows = bucket_cash_flow(window=window, group_by="month", income=income, expenses=expenses)
    feb = {r.period: r for r in rows}["2026-02"]
    assert [r.period for r in rows] == ["2026-01", "2026-02", "2026-03"]
    assert feb.income == 1500.0
    assert feb.expenses == 300.0
    assert feb.net_cash_flow == 1200.0


def test_quarter_and_year_keys():
    assert period_key(datetime(2026, 5, 1), "quarter") == "2026-Q2"
    assert period_key(datetime(2026, 12, 31), "year") == "2026"
    with pytest.raises(ValidationError):
        period_key(datetime(2026, 1, 1), "week")


def test_prorated_rent_covers_partial_month():
    feb = month_window(datetime(2026, 2, 10))
    assert feb.days == 28
    half = prorated_rent(
        monthly_rent=2800.0, lease_start=datetime(2026, 2, 15), lease_end=datetime(2027, 2, 14), month=feb
    )
    assert half == pytest.approx(1400.0)
    assert prorated_rent(monthly_rent=2800.0, lease_start=datetime(2025, 1, 1), lease_end=datetime(2026, 1, 31), month=feb) == 0.0
