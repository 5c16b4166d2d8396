# backend/tests/test_aging_buckets.py
from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from propdesk.services import aggregations as agg


@pytest.mark.parametrize(
    "days,bucket",
    [(-3, "current"), (0, "current"), (1, "1-30"), (30, "1-30"), (31, "31-60"), (60, "31-60"), (61, "61-90"), (90, "61-90"), (91, "90+")],
)
def test_bucket_boundaries(days, bucket):
    assert agg.aging_bucket(days) == bucket


def _lease(mk):
    org = mk.org()
    prop = mk.property(mk.entity(org))
    return prop, mk.lease(mk.space(prop, "1"), mk.tenant(org))


def test_unpaid_invoice_45_days_overdue(db, mk):
    prop, lease = _lease(mk)
    as_of = datetime(2026, 6, 15, 12, 0)
    mk.invoice(lease, amount="1200.00", due=as_of - timedelta(days=45))

    out = agg.aging_buckets(db, property_ids=[prop.id], as_of=as_of)
    assert out["buckets"]["31-60"] == {"count": 1, "outstanding": 1200.0}
    assert out["total_outstanding"] == 1200.0
    assert out["invoices"][0]["days_overdue"] == 45


def test_partial_payment_reduces_and_full_payment_drops_invoice(db, mk):
    prop, lease = _lease(mk)
    as_of = datetime(2026, 6, 15)
    partly = mk.invoice(lease, amount="1000.00", due=as_of - timedelta(days=10))
    mk.payment(partly, amount="400.00", when=as_of - timedelta(days=5))
    mk.payment(partly, amount="500.00", when=as_of - timedelta(days=4), status="FAILED")
    settled = mk.invoice(lease, amount="800.00", due=as_of - timedelta(days=70), status="OVERDUE")
    mk.payment(settled, amount="800.00", when=as_of - timedelta(days=60))
    mk.invoice(lease, amount="999.00", due=as_of - timedelta(days=20), status="DRAFT")

    out = agg.aging_buckets(db, property_ids=[prop.id], as_of=as_of)
    assert out["invoice_count"] == 1
    assert out["buckets"]["1-30"]["outstanding"] == 600.0
    assert out["buckets"]["61-90"]["count"] == 0


def test_invoice_not_yet_due_is_ignored(db, mk):
    prop, lease = _lease(mk)
    as_of = datetime(2026, 6, 15)
    mk.invoice(lease, amount="500.00", due=as_of + timedelta(days=3))
    assert agg.aging_buckets(db, property_ids=[prop.id], as_of=as_of)["invoice_count"] == 0
