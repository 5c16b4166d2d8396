# backend/propdesk/services/reports.py
"""
Entity-level report assemblers.

Each assembler validates its inputs, authorizes the caller against the
entity (services.scope), fans its independent aggregation queries out via
services.fanout and merges the results into

    {entity_id, period?, summary, breakdown?, generated_at}

Nothing here writes to the store.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import asdict
from datetime import datetime
from functools import partial
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal
from ..config import settings
from ..domain.cashflow import GROUP_BY, bucket_cash_flow, periods_as_dicts
from ..domain.enums import PaymentStatus
from ..domain.errors import ValidationError
from ..domain.windows import DateLike, DateWindow, add_months, last_month, parse_when, parse_window, utcnow
from ..models import Entity, Property
from . import aggregations as agg
from .fanout import gather
from .scope import authorize_entity

log = logging.getLogger(__name__)

EXPORT_TYPES = ("rent-roll", "profit-loss", "occupancy", "aging")
EXPORT_FORMATS = ("json", "csv")
LATE_PAYMENT_STATUSES = {PaymentStatus.PENDING.value, PaymentStatus.FAILED.value}


def _entity_property_ids(db: Session, entity: Entity, property_id: Optional[int] = None) -> list[int]:
    ids = [int(x) for x in db.scalars(select(Property.id).where(Property.entity_id == entity.id).order_by(Property.id))]
    if property_id is None:
        return ids
    if property_id not in ids:
        raise ValidationError(f"Property {property_id} does not belong to entity {entity.id}")
    return [property_id]


def _open(db: Session, p: Principal, entity_id: int, property_id: Optional[int] = None) -> list[int]:
    entity = authorize_entity(db, p, entity_id)
    ids = _entity_property_ids(db, entity, property_id)
    log.info(
        "report scope resolved",
        extra={"user_id": p.user_id, "role": p.role, "entity_id": entity_id, "property_id": property_id},
    )
    return ids


def _envelope(entity_id: int, summary: dict[str, Any], **rest: Any) -> dict[str, Any]:
    out: dict[str, Any] = {"entity_id": entity_id}
    out.update({k: v for k, v in rest.items() if k != "breakdown"})
    out["summary"] = summary
    if "breakdown" in rest:
        out["breakdown"] = rest["breakdown"]
    out["generated_at"] = utcnow()
    return out


# -----------------------------
# Financial
# -----------------------------
def profit_loss(db: Session, p: Principal, *, entity_id: int, start_date: DateLike, end_date: DateLike) -> dict[str, Any]:
    window = parse_window(start_date, end_date)
    ids = _open(db, p, entity_id)

    r = gather(
        db,
        {
            "revenue": partial(agg.realized_income, property_ids=ids, window=window),
            "expenses": partial(agg.expense_total, property_ids=ids, window=window),
            "expenses_by_type": partial(agg.expenses_by_type, property_ids=ids, window=window),
        },
    )
    revenue, expenses = round(r["revenue"], 2), round(r["expenses"], 2)
    net = round(revenue - expenses, 2)
    return _envelope(
        entity_id,
        {
            "total_revenue": revenue,
            "total_expenses": expenses,
            "net_income": net,
            "profit_margin": agg.pct(net, revenue),
        },
        period=window.as_dict(),
        breakdown={
            "revenue": {"total": revenue},
            "expenses": {"total": expenses, "by_type": r["expenses_by_type"]},
        },
    )


def cash_flow(
    db: Session,
    p: Principal,
    *,
    entity_id: int,
    start_date: DateLike,
    end_date: DateLike,
    group_by: str = "month",
) -> dict[str, Any]:
    window = parse_window(start_date, end_date)
    if group_by not in GROUP_BY:
        raise ValidationError(f"group_by must be one of: {', '.join(GROUP_BY)}")
    ids = _open(db, p, entity_id)

    r = gather(
        db,
        {
            "income": partial(agg.income_rows, property_ids=ids, window=window),
            "expenses": partial(agg.expense_rows, property_ids=ids, window=window),
        },
    )
    periods = bucket_cash_flow(window=window, group_by=group_by, income=r["income"], expenses=r["expenses"])
    income = round(sum(x.income for x in periods), 2)
    expenses = round(sum(x.expenses for x in periods), 2)
    net = round(income - expenses, 2)
    return _envelope(
        entity_id,
        {
            "total_income": income,
            "total_expenses": expenses,
            "net_cash_flow": net,
            "cash_flow_margin": agg.pct(net, income),
        },
        period=window.as_dict(),
        group_by=group_by,
        breakdown={"periods": periods_as_dicts(periods)},
    )


# -----------------------------
# Occupancy / rent roll / leases
# -----------------------------
def occupancy(db: Session, p: Principal, *, entity_id: int, property_id: Optional[int] = None) -> dict[str, Any]:
    ids = _open(db, p, entity_id, property_id)
    snap = agg.occupancy_snapshot(db, property_ids=ids)
    return _envelope(
        entity_id,
        {
            "total_spaces": snap.total_spaces,
            "occupied_spaces": snap.occupied_spaces,
            "vacant_spaces": snap.vacant_spaces,
            "occupancy_rate": snap.occupancy_rate,
            "monthly_revenue": snap.monthly_revenue,
            "annual_revenue": round(snap.monthly_revenue * 12, 2),
        },
        property_id=property_id,
        breakdown={"properties": [asdict(x) for x in snap.by_property]},
    )


def rent_roll(
    db: Session,
    p: Principal,
    *,
    entity_id: int,
    property_id: Optional[int] = None,
    include_vacant: bool = False,
) -> dict[str, Any]:
    ids = _open(db, p, entity_id, property_id)
    rows = agg.rent_roll_rows(db, property_ids=ids)
    if not include_vacant:
        rows = [r for r in rows if r["status"] == "OCCUPIED"]

    occupied = sum(1 for r in rows if r["status"] == "OCCUPIED")
    return _envelope(
        entity_id,
        {
            "total_spaces": len(rows),
            "occupied_spaces": occupied,
            "vacant_spaces": len(rows) - occupied,
            "total_monthly_rent": round(sum(r["lease"]["monthly_rent"] for r in rows if r["lease"]), 2),
        },
        property_id=property_id,
        include_vacant=include_vacant,
        breakdown={"rent_roll": rows},
    )


def lease_risk(days_until_expiration: int) -> str:
    if days_until_expiration <= 30:
        return "CRITICAL"
    if days_until_expiration <= 60:
        return "HIGH"
    if days_until_expiration <= 90:
        return "MEDIUM"
    return "LOW"


def lease_expirations(db: Session, p: Principal, *, entity_id: int, months: int = 3) -> dict[str, Any]:
    if months < 1:
        raise ValidationError("months must be at least 1")
    ids = _open(db, p, entity_id)
    now = utcnow()
    leases = agg.expiring_leases(db, property_ids=ids, before=add_months(now, months))

    risk_breakdown = {"CRITICAL": 0, "HIGH": 0, "MEDIUM": 0, "LOW": 0}
    for lease in leases:
        days = (lease["end_date"] - now).days
        risk = lease_risk(days)
        risk_breakdown[risk] += 1
        lease["expiration"] = {
            "days_until_expiration": days,
            "risk_level": risk,
            "renewal_recommendation": (
                "Contact immediately for renewal discussion" if days <= 60 else "Schedule renewal discussion"
            ),
        }

    return _envelope(
        entity_id,
        {
            "total_expiring_leases": len(leases),
            "total_monthly_rent_at_risk": round(sum(x["monthly_rent"] for x in leases), 2),
            "risk_breakdown": risk_breakdown,
        },
        look_ahead_months=months,
        breakdown={"expiring_leases": leases},
    )


# -----------------------------
# Operations
# -----------------------------
def maintenance(
    db: Session,
    p: Principal,
    *,
    entity_id: int,
    start_date: DateLike,
    end_date: DateLike,
    property_id: Optional[int] = None,
) -> dict[str, Any]:
    window = parse_window(start_date, end_date)
    ids = _open(db, p, entity_id, property_id)
    b = agg.maintenance_breakdown(db, property_ids=ids, window=window)
    return _envelope(
        entity_id,
        {k: b[k] for k in ("total_requests", "completed_requests", "pending_requests", "completion_rate")},
        period=window.as_dict(),
        property_id=property_id,
        breakdown={k: b[k] for k in ("by_status", "by_priority", "by_title")},
    )


def tenant_analytics(
    db: Session, p: Principal, *, entity_id: int, include_payment_history: bool = False
) -> dict[str, Any]:
    ids = _open(db, p, entity_id)
    leases = agg.active_leases(db, property_ids=ids)
    history = agg.payments_by_lease(
        db, lease_ids=[x["lease_id"] for x in leases], limit_per_lease=None if include_payment_history else 3
    )

    tenants = []
    for lease in leases:
        payments = history.get(lease["lease_id"], [])
        late = sum(1 for x in payments if x["status"] in LATE_PAYMENT_STATUSES)
        on_time = agg.pct(len(payments) - late, len(payments)) if payments else 100.0
        tenants.append(
            {
                **lease["tenant"],
                "property": lease["property"],
                "space": lease["space"],
                "lease": {k: lease[k] for k in ("lease_id", "monthly_rent", "start_date", "end_date")},
                "payment_metrics": {
                    "total_payments": round(sum(x["amount"] for x in payments), 2),
                    "late_payments": late,
                    "on_time_payment_rate": on_time,
                    "payment_history": payments,
                },
            }
        )

    rates = [t["payment_metrics"]["on_time_payment_rate"] for t in tenants]
    return _envelope(
        entity_id,
        {
            "total_tenants": len(tenants),
            "average_on_time_rate": round(sum(rates) / len(rates), 2) if rates else 0.0,
            "total_monthly_rent": round(sum(t["lease"]["monthly_rent"] for t in tenants), 2),
        },
        include_payment_history=include_payment_history,
        breakdown={"tenants": tenants},
    )


def _projections(monthly_revenue: float) -> dict[str, Any]:
    g = settings.projection_monthly_growth
    next_month = monthly_revenue * (1 + g)
    return {
        "next_month": {"projected_revenue": round(next_month, 2), "growth_rate": round(g * 100, 2)},
        "next_quarter": {"projected_revenue": round(next_month * 3, 2), "growth_rate": round(g * 3 * 100, 2)},
    }


def portfolio_overview(
    db: Session, p: Principal, *, entity_id: int, include_projections: bool = False
) -> dict[str, Any]:
    ids = _open(db, p, entity_id)
    snap = agg.occupancy_snapshot(db, property_ids=ids)

    properties = [{**asdict(x), "annual_revenue": round(x.monthly_revenue * 12, 2)} for x in snap.by_property]
    rates = [x.occupancy_rate for x in snap.by_property]
    summary = {
        "total_properties": len(properties),
        "total_spaces": snap.total_spaces,
        "total_occupied_spaces": snap.occupied_spaces,
        "total_vacant_spaces": snap.vacant_spaces,
        "average_occupancy_rate": round(sum(rates) / len(rates), 2) if rates else 0.0,
        "total_monthly_revenue": snap.monthly_revenue,
        "total_annual_revenue": round(snap.monthly_revenue * 12, 2),
    }
    return _envelope(
        entity_id,
        summary,
        include_projections=include_projections,
        projections=_projections(snap.monthly_revenue) if include_projections else None,
        breakdown={"properties": properties},
    )


def aging(db: Session, p: Principal, *, entity_id: int, as_of: DateLike = None) -> dict[str, Any]:
    when = parse_when(as_of) or utcnow()
    ids = _open(db, p, entity_id)
    a = agg.aging_buckets(db, property_ids=ids, as_of=when)
    return _envelope(
        entity_id,
        {"as_of": a["as_of"], "total_outstanding": a["total_outstanding"], "invoice_count": a["invoice_count"]},
        breakdown={"buckets": a["buckets"], "invoices": a["invoices"]},
    )


def entity_dashboard(db: Session, p: Principal, *, entity_id: int) -> dict[str, Any]:
    ids = _open(db, p, entity_id)
    window = last_month()
    r = gather(
        db,
        {
            "occupancy": partial(agg.occupancy_snapshot, property_ids=ids),
            "revenue": partial(agg.applied_income, property_ids=ids, window=window),
        },
    )
    snap = r["occupancy"]
    return _envelope(
        entity_id,
        {
            "occupancy": {
                "rate": snap.occupancy_rate,
                "total_spaces": snap.total_spaces,
                "occupied_spaces": snap.occupied_spaces,
            },
            "financial": {"monthly_revenue": round(r["revenue"], 2), "period": window.as_dict()},
        },
    )


# -----------------------------
# Comparative
# -----------------------------
def _window_metrics(ids: Sequence[int], window: DateWindow, prefix: str) -> dict[str, Any]:
    return {
        f"{prefix}income": partial(agg.realized_income, property_ids=ids, window=window),
        f"{prefix}expenses": partial(agg.expense_total, property_ids=ids, window=window),
        f"{prefix}occupancy": partial(agg.occupancy_snapshot, property_ids=ids, window=window),
    }


def _metrics_row(r: dict[str, Any], prefix: str) -> dict[str, Any]:
    income, expenses = round(r[f"{prefix}income"], 2), round(r[f"{prefix}expenses"], 2)
    return {
        "income": income,
        "expenses": expenses,
        "net_income": round(income - expenses, 2),
        "occupancy_rate": r[f"{prefix}occupancy"].occupancy_rate,
    }


def comparative(
    db: Session,
    p: Principal,
    *,
    entity_id: int,
    compare_type: str,
    start_date: DateLike,
    end_date: DateLike,
    property_ids: Optional[Sequence[int]] = None,
) -> dict[str, Any]:
    window = parse_window(start_date, end_date)
    if compare_type not in ("properties", "periods"):
        raise ValidationError("compare_type must be 'properties' or 'periods'")
    ids = _open(db, p, entity_id)

    if compare_type == "properties":
        chosen = list(dict.fromkeys(int(x) for x in property_ids)) if property_ids else ids
        foreign = sorted(set(chosen) - set(ids))
        if foreign:
            raise ValidationError(f"Properties {foreign} do not belong to entity {entity_id}")

        calls: dict[str, Any] = {}
        for pid in chosen:
            calls.update(_window_metrics([pid], window, f"{pid}:"))
        r = gather(db, calls)
        rows = [{"property_id": pid, **_metrics_row(r, f"{pid}:")} for pid in chosen]
        best = max(rows, key=lambda x: x["net_income"])["property_id"] if rows else None
        return _envelope(
            entity_id,
            {"properties_compared": len(rows), "top_property_id": best},
            compare_type=compare_type,
            period=window.as_dict(),
            breakdown={"properties": rows},
        )

    prev = window.previous()
    r = gather(db, {**_window_metrics(ids, window, "cur:"), **_window_metrics(ids, prev, "prev:")})
    cur, before = _metrics_row(r, "cur:"), _metrics_row(r, "prev:")
    change = {k: round(cur[k] - before[k], 2) for k in cur}
    change_pct = {k: agg.pct(change[k], abs(before[k])) for k in cur}
    return _envelope(
        entity_id,
        {"current": cur, "previous": before, "change": change, "change_pct": change_pct},
        compare_type=compare_type,
        period=window.as_dict(),
        previous_period=prev.as_dict(),
    )


# -----------------------------
# Export
# -----------------------------
def _csv(header: list[str], rows: list[list[Any]]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(header)
    for row in rows:
        w.writerow(["" if v is None else (v.isoformat() if isinstance(v, datetime) else v) for v in row])
    return buf.getvalue()


def _to_csv(report_type: str, data: dict[str, Any]) -> str:
    b = data.get("breakdown") or {}
    if report_type == "rent-roll":
        return _csv(
            ["property", "unit_number", "status", "tenant", "monthly_rent", "lease_start", "lease_end"],
            [
                [
                    r["property_name"],
                    r["unit_number"],
                    r["status"],
                    (r["tenant"] or {}).get("name"),
                    (r["lease"] or {}).get("monthly_rent"),
                    (r["lease"] or {}).get("start_date"),
                    (r["lease"] or {}).get("end_date"),
                ]
                for r in b["rent_roll"]
            ],
        )
    if report_type == "profit-loss":
        s = data["summary"]
        rows = [["revenue", "total", s["total_revenue"]]]
        rows += [["expense", k, v] for k, v in b["expenses"]["by_type"].items()]
        rows += [["expense", "total", s["total_expenses"]], ["net_income", "total", s["net_income"]]]
        return _csv(["section", "line", "amount"], rows)
    if report_type == "occupancy":
        return _csv(
            ["property_id", "property", "total_spaces", "occupied_spaces", "occupancy_rate", "monthly_revenue"],
            [
                [x["property_id"], x["property_name"], x["total_spaces"], x["occupied_spaces"], x["occupancy_rate"], x["monthly_revenue"]]
                for x in b["properties"]
            ],
        )
    return _csv(
        ["invoice_number", "due_date", "days_overdue", "bucket", "outstanding_amount"],
        [[x["invoice_number"], x["due_date"], x["days_overdue"], x["bucket"], x["outstanding_amount"]] for x in b["invoices"]],
    )


def export_report(
    db: Session,
    p: Principal,
    *,
    report_type: str,
    entity_id: int,
    format: str = "json",
    start_date: DateLike = None,
    end_date: DateLike = None,
) -> dict[str, Any]:
    fmt = (format or "").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(f"Export format not supported: {format}")
    if report_type not in EXPORT_TYPES:
        raise ValidationError(f"Export not supported for report type: {report_type}")

    if report_type == "rent-roll":
        data = rent_roll(db, p, entity_id=entity_id, include_vacant=True)
    elif report_type == "profit-loss":
        data = profit_loss(db, p, entity_id=entity_id, start_date=start_date, end_date=end_date)
    elif report_type == "occupancy":
        data = occupancy(db, p, entity_id=entity_id)
    else:
        data = aging(db, p, entity_id=entity_id)

    out: dict[str, Any] = {"report_type": report_type, "entity_id": entity_id, "format": fmt, "generated_at": utcnow()}
    if fmt == "csv":
        out["filename"] = f"{report_type}-{entity_id}-{out['generated_at']:%Y%m%d}.csv"
        out["content"] = _to_csv(report_type, data)
    else:
        out["data"] = data
    return out
