# backend/propdesk/services/lease_rules.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.enums import LeaseStatus
from ..domain.errors import NotFoundError, ValidationError, translate_store_errors
from ..models import Lease


def _as_datetime(v: Any) -> Optional[datetime]:
    if v is None:
        return None
    if isinstance(v, datetime):
        return v
    if isinstance(v, date):
        return datetime(v.year, v.month, v.day)
    return None


def active_lease_for_space(db: Session, space_id: int, *, ignore_lease_id: Optional[int] = None) -> Optional[Lease]:
    q = select(Lease).where(Lease.space_id == int(space_id), Lease.status == LeaseStatus.ACTIVE.value)
    if ignore_lease_id is not None:
        q = q.where(Lease.id != int(ignore_lease_id))
    return db.scalar(q.order_by(Lease.id.desc()).limit(1))


def ensure_single_active_lease(db: Session, *, space_id: int, ignore_lease_id: Optional[int] = None) -> None:
    """
    Raise ValidationError if the space already has an ACTIVE lease.

    The partial unique index on leases(space_id) WHERE status='ACTIVE' backs
    this up at the store; checking first gives callers a readable message.
    """
    existing = active_lease_for_space(db, space_id, ignore_lease_id=ignore_lease_id)
    if existing is not None:
        raise ValidationError(
            f"Space {space_id} already has an active lease (id={int(existing.id)})",
            error_code="ACTIVE_LEASE_EXISTS",
        )


def activate_lease(db: Session, *, lease_id: int, commit: bool = True) -> Lease:
    lease = db.get(Lease, lease_id)
    if lease is None:
        raise NotFoundError("Lease not found")
    if lease.status == LeaseStatus.ACTIVE.value:
        return lease

    start, end = _as_datetime(lease.start_date), _as_datetime(lease.end_date)
    if start is None or end is None or end < start:
        raise ValidationError("lease end_date cannot be before start_date")

    ensure_single_active_lease(db, space_id=lease.space_id, ignore_lease_id=lease.id)
    lease.status = LeaseStatus.ACTIVE.value
    if commit:
        with translate_store_errors("lease activation"):
            db.commit()
        db.refresh(lease)
    return lease
