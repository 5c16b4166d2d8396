# backend/tests/test_occupancy_rollup.py
from __future__ import annotations

from datetime import datetime, timedelta

from propdesk.services import aggregations as agg
from propdesk.services.reports import occupancy


def test_one_of_two_spaces_leased_is_fifty_percent(db, mk, as_role):
    org = mk.org()
    ent = mk.entity(org)
    prop = mk.property(ent)
    s1 = mk.space(prop, "S1")
    mk.space(prop, "S2")
    mk.lease(s1, mk.tenant(org), rent="1500.00")

    out = occupancy(db, as_role("ORG_ADMIN", org_id=org.id), entity_id=ent.id)
    s = out["summary"]
    assert s["total_spaces"] == 2
    assert s["occupied_spaces"] == 1
    assert s["vacant_spaces"] == 1
    assert s["occupancy_rate"] == 50.0
    assert s["monthly_revenue"] == 1500.0
    assert s["annual_revenue"] == 18000.0
    assert out["breakdown"]["properties"][0]["occupancy_rate"] == 50.0


def test_property_without_spaces_reports_zero_rate(db, mk):
    org = mk.org()
    prop = mk.property(mk.entity(org))

    snap = agg.occupancy_snapshot(db, property_ids=[prop.id])
    assert snap.occupancy_rate == 0.0
    assert len(snap.by_property) == 1
    assert snap.by_property[0].total_spaces == 0


def test_only_active_leases_overlapping_now_count(db, mk):
    org = mk.org()
    prop = mk.property(mk.entity(org))
    now = datetime.utcnow()
    ended = mk.space(prop, "A")
    drafted = mk.space(prop, "B")
    mk.lease(ended, mk.tenant(org), start=now - timedelta(days=400), end=now - timedelta(days=35))
    mk.lease(drafted, mk.tenant(org, "Ben"), status="DRAFT")

    snap = agg.occupancy_snapshot(db, property_ids=[prop.id])
    assert snap.occupied_spaces == 0
    assert 0.0 <= snap.occupancy_rate <= 100.0
