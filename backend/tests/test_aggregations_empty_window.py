# backend/tests/test_aggregations_empty_window.py
from __future__ import annotations

from datetime import datetime

from propdesk.domain.windows import DateWindow
from propdesk.services import aggregations as agg

EMPTY = DateWindow(start=datetime(2020, 1, 1), end=datetime(2020, 1, 31, 23, 59, 59))


def test_empty_scope_aggregates_to_zero(db):
    assert agg.realized_income(db, property_ids=[]) == 0.0
    assert agg.applied_income(db, property_ids=[]) == 0.0
    assert agg.expense_total(db, property_ids=[]) == 0.0
    assert agg.prorated_month_revenue(db, property_ids=[]) == 0.0
    assert agg.count_expiring_leases(db, property_ids=[], within_days=30) == 0

    snap = agg.occupancy_snapshot(db, property_ids=[])
    assert (snap.total_spaces, snap.occupied_spaces, snap.occupancy_rate) == (0, 0, 0.0)

    aging = agg.aging_buckets(db, property_ids=[])
    assert aging["total_outstanding"] == 0.0
    assert all(b["count"] == 0 for b in aging["buckets"].values())


def test_window_with_no_rows_aggregates_to_zero(db, mk):
    org = mk.org()
    prop = mk.property(mk.entity(org))
    space = mk.space(prop, "1A")
    lease = mk.lease(space, mk.tenant(org))
    inv = mk.invoice(lease, amount="1500", due=datetime(2024, 3, 1))
    mk.payment(inv, amount="1500", when=datetime(2024, 3, 2))
    mk.expense(prop, amount="200", when=datetime(2024, 3, 5))

    ids = [prop.id]
    assert agg.realized_income(db, property_ids=ids, window=EMPTY) == 0.0
    assert agg.expense_total(db, property_ids=ids, window=EMPTY) == 0.0

    by_type = agg.expenses_by_type(db, property_ids=ids, window=EMPTY)
    assert set(by_type) >= {"MAINTENANCE", "REPAIRS", "OTHER"}
    assert sum(by_type.values()) == 0.0

    m = agg.maintenance_breakdown(db, property_ids=ids, window=EMPTY)
    assert m["total_requests"] == 0
    assert m["completion_rate"] == 0.0
    assert m["by_priority"] == {"LOW": 0, "MEDIUM": 0, "HIGH": 0, "EMERGENCY": 0}


def test_pct_guards_zero_denominator():
    assert agg.pct(5, 0) == 0.0
    assert agg.pct(1, 3) == 33.33
