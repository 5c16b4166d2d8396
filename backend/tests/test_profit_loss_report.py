# backend/tests/test_profit_loss_report.py
from __future__ import annotations

from datetime import datetime

import pytest

from propdesk.domain.errors import ForbiddenError, ValidationError
from propdesk.services.reports import cash_flow, profit_loss


def _portfolio(mk):
    org = mk.org()
    ent = mk.entity(org)
    prop = mk.property(ent)
    lease = mk.lease(mk.space(prop, "1"), mk.tenant(org))
    jan = mk.invoice(lease, amount="1500", due=datetime(2026, 1, 1))
    feb = mk.invoice(lease, amount="1500", due=datetime(2026, 2, 1))
    mk.payment(jan, amount="1500", when=datetime(2026, 1, 3))
    mk.payment(feb, amount="1500", when=datetime(2026, 2, 3))
    mk.payment(feb, amount="1500", when=datetime(2026, 2, 4), status="PENDING")
    mk.expense(prop, amount="300", when=datetime(2026, 1, 15), kind="REPAIRS")
    mk.expense(prop, amount="200", when=datetime(2026, 2, 28), kind="UTILITIES")
    return org, ent


def test_profit_loss_counts_completed_payments_only(db, mk, as_role):
    org, ent = _portfolio(mk)
    out = profit_loss(
        db, as_role("ORG_ADMIN", org_id=org.id), entity_id=ent.id, start_date="2026-01-01", end_date="2026-02-28"
    )
    s = out["summary"]
    assert s["total_revenue"] == 3000.0
    assert s["total_expenses"] == 500.0
    assert s["net_income"] == 2500.0
    assert s["profit_margin"] == 83.33
    assert out["breakdown"]["expenses"]["by_type"]["UTILITIES"] == 200.0
    assert out["period"]["end_date"].startswith("2026-02-28T23:59:59")


def test_profit_loss_requires_both_dates_before_any_scope_check(db, mk, as_role):
    org, ent = _portfolio(mk)
    with pytest.raises(ValidationError, match="Start and end dates required"):
        profit_loss(db, as_role("TENANT"), entity_id=ent.id, start_date="2026-01-01", end_date=None)


def test_entity_manager_of_other_entity_is_forbidden(db, mk, as_role):
    org, ent = _portfolio(mk)
    other = mk.entity(org, "Other LLC")
    with pytest.raises(ForbiddenError):
        profit_loss(
            db,
            as_role("ENTITY_MANAGER", entity_ids=[other.id]),
            entity_id=ent.id,
            start_date="2026-01-01",
            end_date="2026-01-31",
        )


def test_cash_flow_groups_by_month_and_rejects_unknown_grouping(db, mk, as_role):
    org, ent = _portfolio(mk)
    p = as_role("SUPER_ADMIN")
    out = cash_flow(db, p, entity_id=ent.id, start_date="2026-01-01", end_date="2026-03-31")
    periods = {x["period"]: x for x in out["breakdown"]["periods"]}
    assert list(periods) == ["2026-01", "2026-02", "2026-03"]
    assert periods["2026-01"]["net_cash_flow"] == 1200.0
    assert periods["2026-03"]["income"] == 0.0
    assert out["summary"]["net_cash_flow"] == 2500.0

    with pytest.raises(ValidationError):
        cash_flow(db, p, entity_id=ent.id, start_date="2026-01-01", end_date="2026-03-31", group_by="week")
