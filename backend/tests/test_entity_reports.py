# backend/tests/test_entity_reports.py
from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from propdesk.domain.errors import ValidationError
from propdesk.services import reports


@pytest.fixture
def estate(mk):
    now = datetime.utcnow()
    org = mk.org()
    ent = mk.entity(org)
    alder = mk.property(ent, "Alder")
    birch = mk.property(ent, "Birch")
    short = mk.lease(mk.space(alder, "101"), mk.tenant(org, "Ana"), rent="1000.00", end=now + timedelta(days=20))
    mk.space(alder, "102")
    mk.lease(mk.space(birch, "201"), mk.tenant(org, "Ben"), rent="2000.00", end=now + timedelta(days=75))

    inv = mk.invoice(short, amount="1000.00", due=now - timedelta(days=6), status="PAID")
    mk.payment(inv, amount="1000.00", when=now - timedelta(days=5))
    mk.payment(inv, amount="1000.00", when=now - timedelta(days=3), status="PENDING")
    mk.expense(birch, amount="300.00", when=now - timedelta(days=2))
    return org, ent, alder, birch


def _days(back: int) -> tuple[str, str]:
    now = datetime.utcnow()
    return (now - timedelta(days=back)).date().isoformat(), now.date().isoformat()


def test_rent_roll_with_and_without_vacant(db, as_role, estate):
    org, ent, _, _ = estate
    p = as_role("ORG_ADMIN", org_id=org.id)

    occupied = reports.rent_roll(db, p, entity_id=ent.id)
    assert occupied["summary"]["total_spaces"] == 2
    assert occupied["summary"]["total_monthly_rent"] == 3000.0

    everything = reports.rent_roll(db, p, entity_id=ent.id, include_vacant=True)
    rows = everything["breakdown"]["rent_roll"]
    assert [(r["property_name"], r["unit_number"], r["status"]) for r in rows] == [
        ("Alder", "101", "OCCUPIED"),
        ("Alder", "102", "VACANT"),
        ("Birch", "201", "OCCUPIED"),
    ]
    assert rows[1]["tenant"] is None
    assert everything["summary"]["vacant_spaces"] == 1


def test_lease_expirations_rank_risk(db, as_role, estate):
    org, ent, _, _ = estate
    p = as_role("ORG_ADMIN", org_id=org.id)

    out = reports.lease_expirations(db, p, entity_id=ent.id, months=3)
    s = out["summary"]
    assert s["total_expiring_leases"] == 2
    assert s["total_monthly_rent_at_risk"] == 3000.0
    assert s["risk_breakdown"] == {"CRITICAL": 1, "HIGH": 0, "MEDIUM": 1, "LOW": 0}
    first = out["breakdown"]["expiring_leases"][0]
    assert first["space"]["unit_number"] == "101"
    assert first["expiration"]["risk_level"] == "CRITICAL"

    assert reports.lease_expirations(db, p, entity_id=ent.id, months=1)["summary"]["total_expiring_leases"] == 1


@pytest.mark.parametrize("days,risk", [(0, "CRITICAL"), (30, "CRITICAL"), (31, "HIGH"), (60, "HIGH"), (90, "MEDIUM"), (91, "LOW")])
def test_lease_risk_thresholds(days, risk):
    assert reports.lease_risk(days) == risk


def test_maintenance_report(db, mk, as_role, estate):
    org, ent, alder, _ = estate
    mk.maintenance(alder, title="Leak")
    mk.maintenance(alder, title="Leak", status="COMPLETED")
    start, end = _days(1)

    out = reports.maintenance(db, as_role("ORG_ADMIN", org_id=org.id), entity_id=ent.id, start_date=start, end_date=end)
    assert out["summary"] == {
        "total_requests": 2,
        "completed_requests": 1,
        "pending_requests": 1,
        "completion_rate": 50.0,
    }
    assert out["breakdown"]["by_title"] == {"Leak": 2}

    with pytest.raises(ValidationError):
        reports.maintenance(db, as_role("ORG_ADMIN", org_id=org.id), entity_id=ent.id, start_date=start, end_date=None)


def test_tenant_analytics_on_time_rate(db, as_role, estate):
    org, ent, _, _ = estate
    out = reports.tenant_analytics(db, as_role("ORG_ADMIN", org_id=org.id), entity_id=ent.id)
    by_name = {t["name"]: t["payment_metrics"] for t in out["breakdown"]["tenants"]}

    assert by_name["Ana Test"]["late_payments"] == 1
    assert by_name["Ana Test"]["on_time_payment_rate"] == 50.0
    assert by_name["Ben Test"]["on_time_payment_rate"] == 100.0
    assert out["summary"]["average_on_time_rate"] == 75.0
    assert out["summary"]["total_tenants"] == 2


def test_portfolio_overview_with_projections(db, as_role, estate):
    org, ent, _, _ = estate
    out = reports.portfolio_overview(db, as_role("ORG_ADMIN", org_id=org.id), entity_id=ent.id, include_projections=True)
    s = out["summary"]
    assert s["total_properties"] == 2
    assert s["total_spaces"] == 3
    assert s["average_occupancy_rate"] == 75.0
    assert s["total_monthly_revenue"] == 3000.0
    assert s["total_annual_revenue"] == 36000.0
    assert out["projections"]["next_month"]["projected_revenue"] == 3060.0

    plain = reports.portfolio_overview(db, as_role("ORG_ADMIN", org_id=org.id), entity_id=ent.id)
    assert plain["projections"] is None


def test_entity_dashboard(db, as_role, estate):
    org, ent, _, _ = estate
    out = reports.entity_dashboard(db, as_role("ORG_ADMIN", org_id=org.id), entity_id=ent.id)
    assert out["summary"]["occupancy"] == {"rate": 66.67, "total_spaces": 3, "occupied_spaces": 2}


def test_comparative_by_property_and_period(db, as_role, estate):
    org, ent, alder, birch = estate
    p = as_role("ORG_ADMIN", org_id=org.id)
    start, end = _days(30)

    by_prop = reports.comparative(
        db, p, entity_id=ent.id, compare_type="properties", start_date=start, end_date=end
    )
    rows = {r["property_id"]: r for r in by_prop["breakdown"]["properties"]}
    assert rows[alder.id]["income"] == 1000.0
    assert rows[birch.id]["net_income"] == -300.0
    assert by_prop["summary"]["top_property_id"] == alder.id

    periods = reports.comparative(db, p, entity_id=ent.id, compare_type="periods", start_date=start, end_date=end)
    assert periods["summary"]["current"]["net_income"] == 700.0
    assert periods["summary"]["previous"]["income"] == 0.0
    assert periods["summary"]["change"]["income"] == 1000.0


def test_comparative_rejects_foreign_properties_and_bad_type(db, mk, as_role, estate):
    org, ent, _, _ = estate
    other = mk.property(mk.entity(org, "Other LLC"))
    p = as_role("ORG_ADMIN", org_id=org.id)
    start, end = _days(30)

    with pytest.raises(ValidationError):
        reports.comparative(
            db, p, entity_id=ent.id, compare_type="properties", start_date=start, end_date=end, property_ids=[other.id]
        )
    with pytest.raises(ValidationError):
        reports.comparative(db, p, entity_id=ent.id, compare_type="tenants", start_date=start, end_date=end)


def test_comparative_ignores_repeated_property_ids(db, as_role, estate):
    org, ent, alder, birch = estate
    start, end = _days(30)
    out = reports.comparative(
        db,
        as_role("ORG_ADMIN", org_id=org.id),
        entity_id=ent.id,
        compare_type="properties",
        start_date=start,
        end_date=end,
        property_ids=[birch.id, alder.id, birch.id],
    )
    assert [r["property_id"] for r in out["breakdown"]["properties"]] == [birch.id, alder.id]
    assert out["summary"]["properties_compared"] == 2
