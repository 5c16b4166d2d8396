# backend/propdesk/services/dashboards.py
"""Per-role landing dashboards (GET /dashboard)."""
from __future__ import annotations

from datetime import timedelta
from functools import partial
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal
from ..config import settings
from ..domain.enums import AssignmentStatus, LeaseStatus, MaintenancePriority, MaintenanceStatus, UserRole
from ..domain.windows import add_months, last_month, utcnow
from ..models import Invoice, Lease, MaintenanceAssignment, MaintenanceRequest, Payment, Property, Space, Tenant
from . import aggregations as agg
from .fanout import gather
from .scope import scoped_entity_ids, scoped_property_ids

PRIORITY_RANK = {
    MaintenancePriority.EMERGENCY.value: 0,
    MaintenancePriority.HIGH.value: 1,
    MaintenancePriority.MEDIUM.value: 2,
    MaintenancePriority.LOW.value: 3,
}


def _stamp(kind: str, body: dict[str, Any]) -> dict[str, Any]:
    return {"dashboard_type": kind, **body, "generated_at": utcnow()}


def _empty(kind: str, message: str) -> dict[str, Any]:
    return _stamp(kind, {"message": message})


def _occupancy(snap: agg.OccupancySnapshot) -> dict[str, Any]:
    return {"rate": snap.occupancy_rate, "total_spaces": snap.total_spaces, "occupied_spaces": snap.occupied_spaces}


def organization_dashboard(db: Session, p: Principal) -> dict[str, Any]:
    """SUPER_ADMIN / ORG_ADMIN: every entity of the caller's organization."""
    entity_ids = scoped_entity_ids(db, p, organization_id=p.org_id)
    ids = scoped_property_ids(db, p, entity_ids=entity_ids)

    r = gather(
        db,
        {
            "occupancy": partial(agg.occupancy_snapshot, property_ids=ids),
            "revenue": partial(agg.prorated_month_revenue, property_ids=ids),
            "maintenance": partial(agg.maintenance_breakdown, property_ids=ids),
            "expiring": partial(agg.count_expiring_leases, property_ids=ids, within_days=settings.expiring_lease_days),
        },
    )
    m = r["maintenance"]
    return _stamp(
        "ORGANIZATION",
        {
            "organization_id": p.org_id,
            "accessible_entities": len(entity_ids),
            "occupancy": _occupancy(r["occupancy"]),
            "financial": {"monthly_revenue": r["revenue"]},
            "maintenance": {
                "open_tasks": m["by_status"][MaintenanceStatus.OPEN.value],
                "in_progress": m["by_status"][MaintenanceStatus.IN_PROGRESS.value],
                "completed": m["by_status"][MaintenanceStatus.COMPLETED.value],
                **{k.lower(): v for k, v in m["by_priority"].items()},
            },
            "leases": {"expiring": r["expiring"]},
        },
    )


def entity_manager_dashboard(db: Session, p: Principal) -> dict[str, Any]:
    ids = scoped_property_ids(db, p)
    r = gather(
        db,
        {
            "occupancy": partial(agg.occupancy_snapshot, property_ids=ids),
            "revenue": partial(agg.applied_income, property_ids=ids, window=last_month()),
            "maintenance": partial(agg.maintenance_breakdown, property_ids=ids),
            "expiring": partial(agg.count_expiring_leases, property_ids=ids, within_days=settings.expiring_lease_days),
        },
    )
    m = r["maintenance"]
    return _stamp(
        UserRole.ENTITY_MANAGER.value,
        {
            "organization_id": p.org_id,
            "accessible_entities": len(p.entity_ids),
            "occupancy": _occupancy(r["occupancy"]),
            "financial": {"monthly_revenue": round(r["revenue"], 2)},
            "maintenance": {
                "open_tasks": m["by_status"][MaintenanceStatus.OPEN.value],
                "emergency": m["by_priority"][MaintenancePriority.EMERGENCY.value],
            },
            "leases": {"expiring": r["expiring"]},
        },
    )


def property_manager_dashboard(db: Session, p: Principal) -> dict[str, Any]:
    ids = scoped_property_ids(db, p)
    if not ids:
        return _empty(UserRole.PROPERTY_MANAGER.value, "No data available - no assigned properties")

    r = gather(
        db,
        {
            "occupancy": partial(agg.occupancy_snapshot, property_ids=ids),
            "maintenance": partial(agg.maintenance_breakdown, property_ids=ids),
            "expiring": partial(agg.count_expiring_leases, property_ids=ids, within_days=settings.expiring_lease_days),
        },
    )
    snap, m = r["occupancy"], r["maintenance"]
    return _stamp(
        UserRole.PROPERTY_MANAGER.value,
        {
            "assigned_properties": len(ids),
            "occupancy": _occupancy(snap),
            "financial": {"monthly_revenue": snap.monthly_revenue},
            "maintenance": {
                "open_tasks": m["by_status"][MaintenanceStatus.OPEN.value],
                "emergency": m["by_priority"][MaintenancePriority.EMERGENCY.value],
            },
            "leases": {"expiring": r["expiring"]},
            "properties": [
                {
                    "id": x.property_id,
                    "name": x.property_name,
                    "total_spaces": x.total_spaces,
                    "occupied_spaces": x.occupied_spaces,
                    "monthly_revenue": x.monthly_revenue,
                }
                for x in snap.by_property
            ],
        },
    )


def accountant_dashboard(db: Session, p: Principal) -> dict[str, Any]:
    ids = scoped_property_ids(db, p)
    window = last_month()
    r = gather(
        db,
        {
            "revenue": partial(agg.applied_income, property_ids=ids, window=window),
            "expenses": partial(agg.expense_total, property_ids=ids, window=window),
            "outstanding": partial(agg.outstanding_invoice_count, property_ids=ids),
            "recent": partial(agg.recent_payment_count, property_ids=ids, since=utcnow() - timedelta(days=7)),
        },
    )
    revenue, expenses = round(r["revenue"], 2), round(r["expenses"], 2)
    return _stamp(
        UserRole.ACCOUNTANT.value,
        {
            "organization_id": p.org_id,
            "financial": {
                "monthly_revenue": revenue,
                "monthly_expenses": expenses,
                "net_income": round(revenue - expenses, 2),
                "outstanding_invoices": r["outstanding"],
                "recent_payments": r["recent"],
            },
        },
    )


def maintenance_dashboard(db: Session, p: Principal) -> dict[str, Any]:
    rows = db.execute(
        select(MaintenanceAssignment, MaintenanceRequest, Property.name, Space.unit_number)
        .select_from(MaintenanceAssignment)
        .join(MaintenanceRequest, MaintenanceRequest.id == MaintenanceAssignment.maintenance_request_id)
        .join(Property, Property.id == MaintenanceRequest.property_id)
        .outerjoin(Space, Space.id == MaintenanceRequest.space_id)
        .where(MaintenanceAssignment.assigned_user_id == p.user_id)
    ).all()

    open_states = {MaintenanceStatus.OPEN.value, MaintenanceStatus.IN_PROGRESS.value}
    work_orders = sorted(
        (
            {
                "id": int(req.id),
                "title": req.title,
                "priority": req.priority,
                "status": req.status,
                "property": prop_name,
                "unit": unit or "Common Area",
                "requested_at": req.requested_at,
                "assignment_status": a.status,
            }
            for a, req, prop_name, unit in rows
            if req.status in open_states
        ),
        key=lambda w: (PRIORITY_RANK.get(w["priority"], 99), w["requested_at"]),
    )
    return _stamp(
        UserRole.MAINTENANCE.value,
        {
            "assignments": {
                "total": len(work_orders),
                "emergency": sum(1 for w in work_orders if w["priority"] == MaintenancePriority.EMERGENCY.value),
                "high": sum(1 for w in work_orders if w["priority"] == MaintenancePriority.HIGH.value),
            },
            "work_orders": work_orders[:10],
            "performance": {
                "completed": sum(1 for a, *_ in rows if a.status == AssignmentStatus.COMPLETED.value),
                "in_progress": sum(1 for a, *_ in rows if a.status == AssignmentStatus.IN_PROGRESS.value),
            },
        },
    )


def tenant_dashboard(db: Session, p: Principal) -> dict[str, Any]:
    kind = UserRole.TENANT.value
    tenant = db.scalar(select(Tenant).where(Tenant.user_id == p.user_id))
    if tenant is None:
        return _empty(kind, "No tenant profile found")

    lease = db.scalar(
        select(Lease)
        .where(Lease.tenant_id == tenant.id, Lease.status == LeaseStatus.ACTIVE.value)
        .order_by(Lease.start_date.desc())
    )
    if lease is None:
        return _empty(kind, "No active lease found")

    payments = db.scalars(
        select(Payment)
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .where(Invoice.lease_id == lease.id)
        .order_by(Payment.payment_date.desc())
        .limit(5)
    ).all()
    requests = db.scalars(
        select(MaintenanceRequest)
        .where(MaintenanceRequest.tenant_id == tenant.id)
        .order_by(MaintenanceRequest.requested_at.desc())
        .limit(5)
    ).all()

    now = utcnow()
    return _stamp(
        kind,
        {
            "lease": {
                "property": lease.space.property.name,
                "unit": lease.space.unit_number,
                "monthly_rent": float(lease.monthly_rent),
                "lease_end": lease.end_date,
                "days_until_expiry": (lease.end_date - now).days,
            },
            "payments": {
                "recent": [{"date": x.payment_date, "amount": float(x.amount), "status": x.status} for x in payments],
                "next_due": add_months(payments[0].payment_date, 1) if payments else None,
            },
            "maintenance": {
                "recent": [
                    {"id": int(x.id), "title": x.title, "status": x.status, "requested_at": x.requested_at}
                    for x in requests
                ]
            },
        },
    )


_BUILDERS: dict[str, Callable[[Session, Principal], dict[str, Any]]] = {
    UserRole.SUPER_ADMIN.value: organization_dashboard,
    UserRole.ORG_ADMIN.value: organization_dashboard,
    UserRole.ENTITY_MANAGER.value: entity_manager_dashboard,
    UserRole.PROPERTY_MANAGER.value: property_manager_dashboard,
    UserRole.ACCOUNTANT.value: accountant_dashboard,
    UserRole.MAINTENANCE.value: maintenance_dashboard,
    UserRole.TENANT.value: tenant_dashboard,
}


def dashboard_for(db: Session, p: Principal) -> dict[str, Any]:
    build = _BUILDERS.get(p.role)
    if build is None:
        return _empty(p.role, "No dashboard for this role")
    return build(db, p)
