# backend/tests/conftest.py
from __future__ import annotations

import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="propdesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["AUTH_MODE"] = "dev"
os.environ["APP_ENV"] = "test"

from datetime import datetime, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402

from propdesk import models  # noqa: E402,F401
from propdesk.auth import Principal  # noqa: E402
from propdesk.db import Base, SessionLocal, engine  # noqa: E402
from propdesk.models import (  # noqa: E402
    AppUser,
    Entity,
    Invoice,
    Lease,
    MaintenanceRequest,
    Organization,
    Payment,
    Property,
    PropertyExpense,
    Space,
    Tenant,
)


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


class Builder:
    """Tiny row factory; every helper commits and returns the row."""

    def __init__(self, db):
        self.db = db
        self._n = 0

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def _next(self) -> int:
        self._n += 1
        return self._n

    def org(self, name: str = "Org") -> Organization:
        return self._save(Organization(name=name))

    def entity(self, org: Organization, name: str = "Holdings LLC") -> Entity:
        return self._save(Entity(organization_id=org.id, name=name))

    def property(self, entity: Entity, name: Optional[str] = None) -> Property:
        n = self._next()
        return self._save(
            Property(
                entity_id=entity.id,
                name=name or f"Property {n}",
                address=f"{n} Main St",
                city="Detroit",
                state="MI",
                zip_code="48201",
            )
        )

    def space(self, prop: Property, unit: str, **kw) -> Space:
        return self._save(Space(property_id=prop.id, unit_number=unit, **kw))

    def tenant(self, org: Organization, first: str = "Ana", user_id: Optional[int] = None) -> Tenant:
        return self._save(Tenant(organization_id=org.id, first_name=first, last_name="Test", user_id=user_id))

    def lease(
        self,
        space: Space,
        tenant: Tenant,
        *,
        rent: str = "1500.00",
        status: str = "ACTIVE",
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Lease:
        now = datetime.utcnow()
        return self._save(
            Lease(
                space_id=space.id,
                tenant_id=tenant.id,
                start_date=start or now - timedelta(days=90),
                end_date=end or now + timedelta(days=275),
                monthly_rent=Decimal(rent),
                status=status,
            )
        )

    def invoice(self, lease: Lease, *, amount: str, due: datetime, status: str = "SENT") -> Invoice:
        return self._save(
            Invoice(
                lease_id=lease.id,
                invoice_number=f"INV-{self._next():05d}",
                amount=Decimal(amount),
                due_date=due,
                status=status,
            )
        )

    def payment(self, invoice: Invoice, *, amount: str, when: datetime, status: str = "COMPLETED") -> Payment:
        return self._save(Payment(invoice_id=invoice.id, amount=Decimal(amount), payment_date=when, status=status))

    def expense(self, prop: Property, *, amount: str, when: datetime, kind: str = "REPAIRS") -> PropertyExpense:
        return self._save(
            PropertyExpense(property_id=prop.id, expense_type=kind, amount=Decimal(amount), expense_date=when)
        )

    def maintenance(self, prop: Property, *, title: str = "Leak", **kw) -> MaintenanceRequest:
        return self._save(MaintenanceRequest(property_id=prop.id, title=title, **kw))

    def user(self, org: Optional[Organization], role: str, email: Optional[str] = None) -> AppUser:
        return self._save(
            AppUser(
                organization_id=org.id if org else None,
                email=email or f"{role.lower()}-{self._next()}@test.local",
                role=role,
            )
        )


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture
def mk(db):
    return Builder(db)


def principal(role: str, *, org_id=None, entity_ids=(), property_ids=(), user_id: int = 1) -> Principal:
    return Principal(
        user_id=user_id,
        role=role,
        org_id=org_id,
        entity_ids=frozenset(entity_ids),
        property_ids=frozenset(property_ids),
    )


@pytest.fixture
def as_role():
    return principal
