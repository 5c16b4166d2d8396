# backend/propdesk/services/aggregations.py
"""
Read-only sums, counts and rates over an already authorized set of
properties.

Every function takes the property id set the caller may see (resolved by
services.scope) and returns plain Python data, never ORM rows, so it can run
on a worker session through services.fanout. Money comes back as float;
an empty scope or window aggregates to zero.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import Session

from ..domain.cashflow import month_window, prorated_rent
from ..domain.enums import (
    ExpenseType,
    InvoiceStatus,
    LeaseStatus,
    MaintenancePriority,
    MaintenanceStatus,
    PaymentStatus,
)
from ..domain.windows import DateWindow, utcnow
from ..models import (
    Invoice,
    Lease,
    MaintenanceRequest,
    Payment,
    PaymentApplication,
    Property,
    PropertyExpense,
    Space,
    Tenant,
)

AGING_BUCKETS = ("current", "1-30", "31-60", "61-90", "90+")


def _money(v: Any) -> float:
    return float(v or 0)


def pct(part: float, whole: float) -> float:
    """part / whole * 100 rounded to 2 places; 0 when whole is 0."""
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def _in_window(stmt: Select, col, window: Optional[DateWindow]) -> Select:
    if window is None:
        return stmt
    return stmt.where(col >= window.start, col <= window.end)


def _invoice_scope(stmt: Select, property_ids: Sequence[int]) -> Select:
    # Invoice -> Lease -> Space -> Property
    return (
        stmt.join(Lease, Lease.id == Invoice.lease_id)
        .join(Space, Space.id == Lease.space_id)
        .where(Space.property_id.in_(list(property_ids)))
    )


# -----------------------------
# Income / expenses
# -----------------------------
def realized_income(db: Session, *, property_ids: Sequence[int], window: Optional[DateWindow] = None) -> float:
    """COMPLETED payments whose invoice traces into scope, dated in the window."""
    stmt = (
        select(func.coalesce(func.sum(Payment.amount), 0))
        .select_from(Payment)
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .where(Payment.status == PaymentStatus.COMPLETED.value)
    )
    stmt = _in_window(_invoice_scope(stmt, property_ids), Payment.payment_date, window)
    return _money(db.scalar(stmt))


def applied_income(db: Session, *, property_ids: Sequence[int], window: Optional[DateWindow] = None) -> float:
    """Payment-application variant: applied amounts of COMPLETED payments, by payment date."""
    stmt = (
        select(func.coalesce(func.sum(PaymentApplication.applied_amount), 0))
        .select_from(PaymentApplication)
        .join(Payment, Payment.id == PaymentApplication.payment_id)
        .join(Invoice, Invoice.id == PaymentApplication.invoice_id)
        .where(Payment.status == PaymentStatus.COMPLETED.value)
    )
    stmt = _in_window(_invoice_scope(stmt, property_ids), Payment.payment_date, window)
    return _money(db.scalar(stmt))


def income_rows(
    db: Session, *, property_ids: Sequence[int], window: Optional[DateWindow] = None
) -> list[tuple[datetime, float]]:
    stmt = (
        select(Payment.payment_date, Payment.amount)
        .select_from(Payment)
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .where(Payment.status == PaymentStatus.COMPLETED.value)
    )
    stmt = _in_window(_invoice_scope(stmt, property_ids), Payment.payment_date, window)
    return [(d, _money(a)) for d, a in db.execute(stmt).all()]


def expense_total(db: Session, *, property_ids: Sequence[int], window: Optional[DateWindow] = None) -> float:
    stmt = select(func.coalesce(func.sum(PropertyExpense.amount), 0)).where(
        PropertyExpense.property_id.in_(list(property_ids))
    )
    stmt = _in_window(stmt, PropertyExpense.expense_date, window)
    return _money(db.scalar(stmt))


def expenses_by_type(
    db: Session, *, property_ids: Sequence[int], window: Optional[DateWindow] = None
) -> dict[str, float]:
    stmt = (
        select(PropertyExpense.expense_type, func.sum(PropertyExpense.amount))
        .where(PropertyExpense.property_id.in_(list(property_ids)))
        .group_by(PropertyExpense.expense_type)
    )
    stmt = _in_window(stmt, PropertyExpense.expense_date, window)
    out = {t.value: 0.0 for t in ExpenseType}
    for kind, amt in db.execute(stmt).all():
        out[str(kind)] = round(out.get(str(kind), 0.0) + _money(amt), 2)
    return out


def expense_rows(
    db: Session, *, property_ids: Sequence[int], window: Optional[DateWindow] = None
) -> list[tuple[datetime, float]]:
    stmt = select(PropertyExpense.expense_date, PropertyExpense.amount).where(
        PropertyExpense.property_id.in_(list(property_ids))
    )
    stmt = _in_window(stmt, PropertyExpense.expense_date, window)
    return [(d, _money(a)) for d, a in db.execute(stmt).all()]


# -----------------------------
# Occupancy
# -----------------------------
@dataclass(frozen=True)
class PropertyOccupancy:
    property_id: int
    property_name: str
    property_type: str
    total_spaces: int
    occupied_spaces: int
    vacant_spaces: int
    occupancy_rate: float
    monthly_revenue: float


@dataclass(frozen=True)
class OccupancySnapshot:
    total_spaces: int
    occupied_spaces: int
    vacant_spaces: int
    occupancy_rate: float
    monthly_revenue: float
    by_property: list[PropertyOccupancy] = field(default_factory=list)


def _active_rent_by_space(
    db: Session, *, property_ids: Sequence[int], as_of: Optional[datetime], window: Optional[DateWindow]
) -> dict[int, float]:
    if window is None:
        when = as_of or utcnow()
        window = DateWindow(start=when, end=when)
    rows = db.execute(
        select(Lease.space_id, Lease.monthly_rent)
        .join(Space, Space.id == Lease.space_id)
        .where(Space.property_id.in_(list(property_ids)))
        .where(Lease.status == LeaseStatus.ACTIVE.value)
        .where(Lease.start_date <= window.end, Lease.end_date >= window.start)
        .order_by(Lease.id)
    ).all()
    out: dict[int, float] = {}
    for space_id, rent in rows:
        out.setdefault(int(space_id), _money(rent))
    return out


def occupancy_snapshot(
    db: Session,
    *,
    property_ids: Sequence[int],
    as_of: Optional[datetime] = None,
    window: Optional[DateWindow] = None,
) -> OccupancySnapshot:
    """
    Spaces in scope vs. spaces with an ACTIVE lease overlapping `as_of`
    (default now) or, for historical trend queries, `window`.
    """
    props = db.execute(
        select(Property.id, Property.name, Property.property_type)
        .where(Property.id.in_(list(property_ids)))
        .order_by(Property.name, Property.id)
    ).all()
    spaces = db.execute(select(Space.id, Space.property_id).where(Space.property_id.in_(list(property_ids)))).all()
    rent_by_space = _active_rent_by_space(db, property_ids=property_ids, as_of=as_of, window=window)

    per: dict[int, dict[str, Any]] = {
        int(pid): {"name": str(name), "type": str(ptype), "total": 0, "occupied": 0, "rent": 0.0}
        for pid, name, ptype in props
    }
    for space_id, prop_id in spaces:
        row = per[int(prop_id)]
        row["total"] += 1
        if int(space_id) in rent_by_space:
            row["occupied"] += 1
            row["rent"] += rent_by_space[int(space_id)]

    by_property = [
        PropertyOccupancy(
            property_id=pid,
            property_name=r["name"],
            property_type=r["type"],
            total_spaces=r["total"],
            occupied_spaces=r["occupied"],
            vacant_spaces=r["total"] - r["occupied"],
            occupancy_rate=pct(r["occupied"], r["total"]),
            monthly_revenue=round(r["rent"], 2),
        )
        for pid, r in per.items()
    ]
    total = sum(p.total_spaces for p in by_property)
    occupied = sum(p.occupied_spaces for p in by_property)
    return OccupancySnapshot(
        total_spaces=total,
        occupied_spaces=occupied,
        vacant_spaces=total - occupied,
        occupancy_rate=pct(occupied, total),
        monthly_revenue=round(sum(p.monthly_revenue for p in by_property), 2),
        by_property=by_property,
    )


def prorated_month_revenue(db: Session, *, property_ids: Sequence[int], now: Optional[datetime] = None) -> float:
    """Current calendar month's rent from ACTIVE leases, prorated by days covered."""
    month = month_window(now or utcnow())
    rows = db.execute(
        select(Lease.monthly_rent, Lease.start_date, Lease.end_date)
        .join(Space, Space.id == Lease.space_id)
        .where(Space.property_id.in_(list(property_ids)))
        .where(Lease.status == LeaseStatus.ACTIVE.value)
        .where(Lease.start_date <= month.end, Lease.end_date >= month.start)
    ).all()
    total = sum(
        prorated_rent(monthly_rent=_money(rent), lease_start=start, lease_end=end, month=month)
        for rent, start, end in rows
    )
    return round(total, 2)


# -----------------------------
# Maintenance
# -----------------------------
def maintenance_breakdown(
    db: Session, *, property_ids: Sequence[int], window: Optional[DateWindow] = None
) -> dict[str, Any]:
    base = select(MaintenanceRequest).where(MaintenanceRequest.property_id.in_(list(property_ids)))
    base = _in_window(base, MaintenanceRequest.requested_at, window)
    sub = base.subquery()

    by_status = {s.value: 0 for s in MaintenanceStatus}
    for status, n in db.execute(select(sub.c.status, func.count()).group_by(sub.c.status)).all():
        by_status[str(status)] = int(n)

    by_priority = {p.value: 0 for p in MaintenancePriority}
    for priority, n in db.execute(select(sub.c.priority, func.count()).group_by(sub.c.priority)).all():
        by_priority[str(priority)] = int(n)

    by_title: dict[str, int] = {}
    for title, n in db.execute(select(sub.c.title, func.count()).group_by(sub.c.title).order_by(sub.c.title)).all():
        by_title[str(title or "Other")] = int(n)

    total = sum(by_status.values())
    completed = by_status[MaintenanceStatus.COMPLETED.value]
    return {
        "total_requests": total,
        "completed_requests": completed,
        "pending_requests": total - completed,
        "completion_rate": pct(completed, total),
        "by_status": by_status,
        "by_priority": by_priority,
        "by_title": by_title,
    }


# -----------------------------
# Receivables
# -----------------------------
def aging_bucket(days_overdue: int) -> str:
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 30:
        return "1-30"
    if days_overdue <= 60:
        return "31-60"
    if days_overdue <= 90:
        return "61-90"
    return "90+"


def aging_buckets(db: Session, *, property_ids: Sequence[int], as_of: Optional[datetime] = None) -> dict[str, Any]:
    """
    Overdue receivables: SENT/OVERDUE invoices due before `as_of` with a
    positive balance after COMPLETED payments, bucketed by whole days overdue.
    """
    as_of = as_of or utcnow()
    paid = (
        select(Payment.invoice_id, func.sum(Payment.amount).label("paid"))
        .where(Payment.status == PaymentStatus.COMPLETED.value)
        .group_by(Payment.invoice_id)
        .subquery()
    )
    stmt = (
        select(Invoice.id, Invoice.invoice_number, Invoice.amount, Invoice.due_date, func.coalesce(paid.c.paid, 0))
        .select_from(Invoice)
        .outerjoin(paid, paid.c.invoice_id == Invoice.id)
        .where(Invoice.status.in_([InvoiceStatus.SENT.value, InvoiceStatus.OVERDUE.value]))
        .where(Invoice.due_date < as_of)
    )
    stmt = _invoice_scope(stmt, property_ids).order_by(Invoice.due_date, Invoice.id)

    buckets = {k: {"count": 0, "outstanding": 0.0} for k in AGING_BUCKETS}
    invoices: list[dict[str, Any]] = []
    for inv_id, number, amount, due, paid_amt in db.execute(stmt).all():
        outstanding = round(_money(amount) - _money(paid_amt), 2)
        if outstanding <= 0:
            continue
        days = (as_of.date() - due.date()).days
        key = aging_bucket(days)
        buckets[key]["count"] += 1
        buckets[key]["outstanding"] = round(buckets[key]["outstanding"] + outstanding, 2)
        invoices.append(
            {
                "invoice_id": int(inv_id),
                "invoice_number": str(number),
                "due_date": due,
                "days_overdue": days,
                "amount": _money(amount),
                "outstanding_amount": outstanding,
                "bucket": key,
            }
        )

    return {
        "as_of": as_of,
        "total_outstanding": round(sum(b["outstanding"] for b in buckets.values()), 2),
        "invoice_count": len(invoices),
        "buckets": buckets,
        "invoices": invoices,
    }


def outstanding_invoice_count(
    db: Session, *, property_ids: Sequence[int], status: InvoiceStatus = InvoiceStatus.SENT
) -> int:
    stmt = _invoice_scope(select(func.count(Invoice.id)).select_from(Invoice), property_ids)
    return int(db.scalar(stmt.where(Invoice.status == status.value)) or 0)


def recent_payment_count(db: Session, *, property_ids: Sequence[int], since: datetime) -> int:
    stmt = (
        select(func.count(Payment.id))
        .select_from(Payment)
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .where(Payment.payment_date >= since)
    )
    return int(db.scalar(_invoice_scope(stmt, property_ids)) or 0)


# -----------------------------
# Leases
# -----------------------------
def _lease_row(lease: Lease, space: Space, prop: Property, tenant: Tenant) -> dict[str, Any]:
    return {
        "lease_id": int(lease.id),
        "start_date": lease.start_date,
        "end_date": lease.end_date,
        "monthly_rent": _money(lease.monthly_rent),
        "security_deposit": _money(lease.security_deposit),
        "space": {"id": int(space.id), "unit_number": space.unit_number, "name": space.name},
        "property": {"id": int(prop.id), "name": prop.name, "address": prop.address},
        "tenant": {
            "id": int(tenant.id),
            "name": tenant.full_name,
            "email": tenant.email,
            "phone": tenant.phone,
        },
    }


def _active_lease_stmt(property_ids: Sequence[int]) -> Select:
    return (
        select(Lease, Space, Property, Tenant)
        .select_from(Lease)
        .join(Space, Space.id == Lease.space_id)
        .join(Property, Property.id == Space.property_id)
        .join(Tenant, Tenant.id == Lease.tenant_id)
        .where(Space.property_id.in_(list(property_ids)))
        .where(Lease.status == LeaseStatus.ACTIVE.value)
    )


def active_leases(db: Session, *, property_ids: Sequence[int]) -> list[dict[str, Any]]:
    rows = db.execute(_active_lease_stmt(property_ids).order_by(Property.name, Space.unit_number)).all()
    return [_lease_row(*r) for r in rows]


def expiring_leases(db: Session, *, property_ids: Sequence[int], before: datetime) -> list[dict[str, Any]]:
    """ACTIVE leases ending on or before `before`, soonest first."""
    rows = db.execute(
        _active_lease_stmt(property_ids).where(Lease.end_date <= before).order_by(Lease.end_date, Lease.id)
    ).all()
    return [_lease_row(*r) for r in rows]


def count_expiring_leases(db: Session, *, property_ids: Sequence[int], within_days: int, now: Optional[datetime] = None) -> int:
    horizon = (now or utcnow()) + timedelta(days=within_days)
    stmt = (
        select(func.count(Lease.id))
        .join(Space, Space.id == Lease.space_id)
        .where(Space.property_id.in_(list(property_ids)))
        .where(Lease.status == LeaseStatus.ACTIVE.value, Lease.end_date <= horizon)
    )
    return int(db.scalar(stmt) or 0)


def payments_by_lease(
    db: Session, *, lease_ids: Sequence[int], limit_per_lease: Optional[int] = None
) -> dict[int, list[dict[str, Any]]]:
    """Payments on each lease's invoices, newest first."""
    rows = db.execute(
        select(Invoice.lease_id, Payment)
        .select_from(Payment)
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .where(Invoice.lease_id.in_(list(lease_ids)))
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
    ).all()
    out: dict[int, list[dict[str, Any]]] = {int(i): [] for i in lease_ids}
    for lease_id, p in rows:
        bucket = out.setdefault(int(lease_id), [])
        if limit_per_lease is not None and len(bucket) >= limit_per_lease:
            continue
        bucket.append(
            {
                "payment_id": int(p.id),
                "amount": _money(p.amount),
                "payment_date": p.payment_date,
                "payment_method": p.payment_method,
                "status": p.status,
            }
        )
    return out


def rent_roll_rows(db: Session, *, property_ids: Sequence[int]) -> list[dict[str, Any]]:
    """One row per space in scope with its ACTIVE lease and tenant, if any."""
    rows = db.execute(
        select(Space, Property, Lease, Tenant)
        .select_from(Space)
        .join(Property, Property.id == Space.property_id)
        .outerjoin(Lease, and_(Lease.space_id == Space.id, Lease.status == LeaseStatus.ACTIVE.value))
        .outerjoin(Tenant, Tenant.id == Lease.tenant_id)
        .where(Space.property_id.in_(list(property_ids)))
        .order_by(Property.name, Space.unit_number)
    ).all()

    out: list[dict[str, Any]] = []
    for space, prop, lease, tenant in rows:
        out.append(
            {
                "space_id": int(space.id),
                "unit_number": space.unit_number,
                "space_name": space.name,
                "space_type": space.space_type,
                "square_feet": space.square_feet,
                "property_id": int(prop.id),
                "property_name": prop.name,
                "property_address": prop.address,
                "property_type": prop.property_type,
                "status": "OCCUPIED" if lease is not None else "VACANT",
                "tenant": (
                    {"id": int(tenant.id), "name": tenant.full_name, "email": tenant.email, "phone": tenant.phone}
                    if tenant is not None
                    else None
                ),
                "lease": (
                    {
                        "id": int(lease.id),
                        "start_date": lease.start_date,
                        "end_date": lease.end_date,
                        "monthly_rent": _money(lease.monthly_rent),
                        "security_deposit": _money(lease.security_deposit),
                    }
                    if lease is not None
                    else None
                ),
            }
        )
    return out
