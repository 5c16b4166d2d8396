# backend/propdesk/models.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .db import Base
from .domain.enums import (
    AssignmentStatus,
    InvoiceStatus,
    InvoiceType,
    LeaseStatus,
    MaintenancePriority,
    MaintenanceStatus,
    PaymentStatus,
    SpaceType,
)

Money = Numeric(12, 2)


# -----------------------------
# Ownership hierarchy: Organization -> Entity -> Property -> Space
# -----------------------------
class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    entities: Mapped[List["Entity"]] = relationship(back_populates="organization", cascade="all, delete-orphan")


class Entity(Base):
    """Legal owner of properties (LLC, trust, ...)."""

    __tablename__ = "entities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(160), nullable=False)
    legal_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    entity_type: Mapped[str] = mapped_column(String(40), nullable=False, default="LLC")
    tax_id: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    organization: Mapped["Organization"] = relationship(back_populates="entities")
    properties: Mapped[List["Property"]] = relationship(back_populates="entity", cascade="all, delete-orphan")

    @validates("organization_id")
    def _organization_is_immutable(self, _key: str, value: int) -> int:
        current = self.__dict__.get("organization_id")
        if current is not None and current != value:
            raise ValueError("entity organization_id cannot change after creation")
        return value


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(160), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(10), nullable=False)
    property_type: Mapped[str] = mapped_column(String(40), nullable=False, default="RESIDENTIAL")
    total_units: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    entity: Mapped["Entity"] = relationship(back_populates="properties")
    spaces: Mapped[List["Space"]] = relationship(back_populates="property", cascade="all, delete-orphan")
    expenses: Mapped[List["PropertyExpense"]] = relationship(back_populates="property", cascade="all, delete-orphan")


class Space(Base):
    """A rentable unit inside a property."""

    __tablename__ = "spaces"
    __table_args__ = (UniqueConstraint("property_id", "unit_number", name="uq_spaces_property_unit_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )

    unit_number: Mapped[str] = mapped_column(String(40), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    space_type: Mapped[str] = mapped_column(String(40), nullable=False, default=SpaceType.UNIT.value)
    floor: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rent: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    deposit: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    amenities: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # comma-separated

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # declared ahead of the `property` relationship, which shadows the builtin in this class body
    @property
    def active_lease(self) -> Optional["Lease"]:
        return next((x for x in self.leases if x.status == LeaseStatus.ACTIVE.value), None)

    @property
    def is_occupied(self) -> bool:
        return self.active_lease is not None

    property: Mapped["Property"] = relationship(back_populates="spaces")
    leases: Mapped[List["Lease"]] = relationship(back_populates="space", cascade="all, delete-orphan")


# -----------------------------
# Tenancy
# -----------------------------
class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True, index=True)

    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(80), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    leases: Mapped[List["Lease"]] = relationship(back_populates="tenant")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Lease(Base):
    __tablename__ = "leases"
    __table_args__ = (
        # at most one ACTIVE lease per space
        Index(
            "uq_leases_one_active_per_space",
            "space_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    space_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)

    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    monthly_rent: Mapped[Decimal] = mapped_column(Money, nullable=False)
    security_deposit: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=LeaseStatus.DRAFT.value, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    space: Mapped["Space"] = relationship(back_populates="leases")
    tenant: Mapped["Tenant"] = relationship(back_populates="leases")
    invoices: Mapped[List["Invoice"]] = relationship(back_populates="lease", cascade="all, delete-orphan")


# -----------------------------
# Money in / money out
# -----------------------------
class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lease_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("leases.id", ondelete="CASCADE"), nullable=False, index=True
    )

    invoice_number: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    invoice_type: Mapped[str] = mapped_column(String(20), nullable=False, default=InvoiceType.RENT.value)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    lease: Mapped["Lease"] = relationship(back_populates="invoices")
    payments: Mapped[List["Payment"]] = relationship(back_populates="invoice", cascade="all, delete-orphan")


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    invoice_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )

    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, default="BANK_TRANSFER")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    reference_number: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    invoice: Mapped["Invoice"] = relationship(back_populates="payments")
    applications: Mapped[List["PaymentApplication"]] = relationship(
        back_populates="payment", cascade="all, delete-orphan"
    )


class PaymentApplication(Base):
    __tablename__ = "payment_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    payment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    invoice_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )

    applied_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    applied_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    payment: Mapped["Payment"] = relationship(back_populates="applications")


class PropertyExpense(Base):
    __tablename__ = "property_expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )

    expense_type: Mapped[str] = mapped_column(String(20), nullable=False, default="OTHER")
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expense_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    vendor: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    property: Mapped["Property"] = relationship(back_populates="expenses")


# -----------------------------
# Maintenance
# -----------------------------
class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    space_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("spaces.id", ondelete="SET NULL"), nullable=True, index=True)
    tenant_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=MaintenancePriority.MEDIUM.value)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=MaintenanceStatus.OPEN.value, index=True)
    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    actual_cost: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)

    requested_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    property: Mapped["Property"] = relationship()
    assignments: Mapped[List["MaintenanceAssignment"]] = relationship(
        back_populates="request", cascade="all, delete-orphan"
    )


class MaintenanceAssignment(Base):
    __tablename__ = "maintenance_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    maintenance_request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("maintenance_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assigned_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=AssignmentStatus.ASSIGNED.value)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    request: Mapped["MaintenanceRequest"] = relationship(back_populates="assignments")


# -----------------------------
# Users and role assignments
# -----------------------------
class AppUser(Base):
    __tablename__ = "app_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=True, index=True
    )
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class UserEntity(Base):
    __tablename__ = "user_entities"
    __table_args__ = (UniqueConstraint("user_id", "entity_id", name="uq_user_entities_user_entity"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    entity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True
    )


class UserProperty(Base):
    __tablename__ = "user_properties"
    __table_args__ = (UniqueConstraint("user_id", "property_id", name="uq_user_properties_user_property"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("organizations.id"), index=True, nullable=True)
    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    actor_role: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
