# backend/propdesk/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import issue_token
from ..db import Base, SessionLocal, engine
from ..domain.enums import (
    AssignmentStatus,
    ExpenseType,
    InvoiceStatus,
    LeaseStatus,
    MaintenancePriority,
    MaintenanceStatus,
    PaymentMethod,
    PaymentStatus,
    UserRole,
)
from ..domain.windows import add_months, utcnow
from ..models import (
    AppUser,
    Entity,
    Invoice,
    Lease,
    MaintenanceAssignment,
    MaintenanceRequest,
    Organization,
    Payment,
    PaymentApplication,
    Property,
    PropertyExpense,
    Space,
    Tenant,
    UserEntity,
    UserProperty,
)
from ..services.lease_rules import ensure_single_active_lease


@dataclass(frozen=True)
class SeedResult:
    org_id: int
    entity_id: int
    property_id: int
    space_ids: list[int]
    tokens: dict[str, str] = field(default_factory=dict)


# unit, bedrooms, rent; the first three get active leases
_UNITS = (("101", 1, 1200), ("102", 2, 1500), ("201", 2, 1550), ("202", 3, 1900))


def _get_or_create_org(db: Session, name: str) -> Organization:
    row = db.scalar(select(Organization).where(Organization.name == name))
    if row:
        return row
    row = Organization(name=name, email=f"office@{name.lower().replace(' ', '-')}.local")
    db.add(row)
    db.flush()
    return row


def _get_or_create_user(db: Session, *, org_id: int, email: str, role: UserRole) -> AppUser:
    row = db.scalar(select(AppUser).where(AppUser.email == email))
    if row:
        return row
    row = AppUser(organization_id=org_id, email=email, first_name=role.value.title(), role=role.value)
    db.add(row)
    db.flush()
    return row


def _seed_ledger(db: Session, *, lease: Lease, months: int, tag: str) -> None:
    """One RENT invoice per past month; all paid except the most recent one."""
    now = utcnow()
    for i in range(months, 0, -1):
        due = add_months(now, -i).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        paid = i > 1
        inv = Invoice(
            lease_id=lease.id,
            invoice_number=f"INV-{tag}-{due:%Y%m}",
            amount=lease.monthly_rent,
            due_date=due,
            status=(InvoiceStatus.PAID if paid else InvoiceStatus.SENT).value,
        )
        db.add(inv)
        db.flush()
        if not paid:
            continue
        pay = Payment(
            invoice_id=inv.id,
            amount=lease.monthly_rent,
            payment_date=due + timedelta(days=2),
            payment_method=PaymentMethod.BANK_TRANSFER.value,
            status=PaymentStatus.COMPLETED.value,
            reference_number=f"REF-{tag}-{due:%Y%m}",
        )
        db.add(pay)
        db.flush()
        db.add(
            PaymentApplication(
                payment_id=pay.id, invoice_id=inv.id, applied_amount=pay.amount, applied_date=pay.payment_date
            )
        )


def seed_demo(*, org_name: str = "Demo Property Group", create_schema: bool = False) -> SeedResult:
    if create_schema:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        org = _get_or_create_org(db, org_name)

        entity = db.scalar(select(Entity).where(Entity.organization_id == org.id).order_by(Entity.id))
        if entity is None:
            entity = Entity(organization_id=org.id, name="Demo Holdings LLC", legal_name="Demo Holdings, LLC")
            db.add(entity)
            db.flush()

        prop = db.scalar(select(Property).where(Property.entity_id == entity.id).order_by(Property.id))
        if prop is None:
            prop = Property(
                entity_id=entity.id,
                name="Maple Court",
                address="55 Maple Ct",
                city="Detroit",
                state="MI",
                zip_code="48201",
                total_units=len(_UNITS),
            )
            db.add(prop)
            db.flush()

        users = {
            role: _get_or_create_user(db, org_id=org.id, email=f"{role.value.lower()}@demo.local", role=role)
            for role in UserRole
        }
        em, pm = users[UserRole.ENTITY_MANAGER], users[UserRole.PROPERTY_MANAGER]
        if db.scalar(select(UserEntity).where(UserEntity.user_id == em.id)) is None:
            db.add(UserEntity(user_id=em.id, entity_id=entity.id))
        if db.scalar(select(UserProperty).where(UserProperty.user_id == pm.id)) is None:
            db.add(UserProperty(user_id=pm.id, property_id=prop.id))

        existing = {s.unit_number: s for s in db.scalars(select(Space).where(Space.property_id == prop.id)).all()}
        spaces: list[Space] = []
        for unit, beds, rent in _UNITS:
            s = existing.get(unit)
            if s is None:
                s = Space(
                    property_id=prop.id,
                    unit_number=unit,
                    floor=int(unit[0]),
                    bedrooms=beds,
                    bathrooms=1.0 if beds < 2 else 1.5,
                    rent=Decimal(rent),
                    deposit=Decimal(rent),
                )
                db.add(s)
                db.flush()
            spaces.append(s)

        now = utcnow()
        for i, s in enumerate(spaces[:3]):
            if db.scalar(select(Lease.id).where(Lease.space_id == s.id).limit(1)) is not None:
                continue
            tenant_user = users[UserRole.TENANT] if i == 0 else None
            tenant = Tenant(
                organization_id=org.id,
                user_id=tenant_user.id if tenant_user else None,
                first_name=("Ana", "Ben", "Cy")[i],
                last_name="Demo",
                email=f"tenant{i + 1}@demo.local",
            )
            db.add(tenant)
            db.flush()

            ensure_single_active_lease(db, space_id=s.id)
            lease = Lease(
                space_id=s.id,
                tenant_id=tenant.id,
                start_date=add_months(now, -6),
                # unit 101 expires soon so the expiration report has something to show
                end_date=now + timedelta(days=20) if i == 0 else add_months(now, 6 + i),
                monthly_rent=s.rent,
                security_deposit=s.deposit,
                status=LeaseStatus.ACTIVE.value,
            )
            db.add(lease)
            db.flush()
            _seed_ledger(db, lease=lease, months=3, tag=s.unit_number)

        if db.scalar(select(PropertyExpense.id).where(PropertyExpense.property_id == prop.id).limit(1)) is None:
            db.add_all(
                [
                    PropertyExpense(
                        property_id=prop.id,
                        expense_type=ExpenseType.UTILITIES.value,
                        amount=Decimal("420.00"),
                        expense_date=now - timedelta(days=10),
                        vendor="DTE Energy",
                    ),
                    PropertyExpense(
                        property_id=prop.id,
                        expense_type=ExpenseType.REPAIRS.value,
                        amount=Decimal("275.50"),
                        expense_date=now - timedelta(days=5),
                        vendor="Ace Plumbing",
                    ),
                ]
            )

        if db.scalar(select(MaintenanceRequest.id).where(MaintenanceRequest.property_id == prop.id).limit(1)) is None:
            req = MaintenanceRequest(
                property_id=prop.id,
                space_id=spaces[0].id,
                title="Leaking faucet",
                priority=MaintenancePriority.HIGH.value,
                status=MaintenanceStatus.OPEN.value,
                requested_at=now - timedelta(days=2),
            )
            db.add(req)
            db.flush()
            db.add(
                MaintenanceAssignment(
                    maintenance_request_id=req.id,
                    assigned_user_id=users[UserRole.MAINTENANCE].id,
                    status=AssignmentStatus.ASSIGNED.value,
                )
            )

        db.commit()
        return SeedResult(
            org_id=int(org.id),
            entity_id=int(entity.id),
            property_id=int(prop.id),
            space_ids=[int(s.id) for s in spaces],
            tokens={role.value: issue_token(u) for role, u in users.items()},
        )
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
