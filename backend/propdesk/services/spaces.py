# backend/propdesk/services/spaces.py
"""
Space CRUD.

Every operation checks the role allow-list first, then the property scope via
services.scope, and only then touches storage. Mutations stage an AuditEvent
in the same transaction and commit once.
"""
from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import ColumnElement, and_, exists, func, or_, select
from sqlalchemy.orm import Session, selectinload

from ..auth import Principal
from ..domain.audit import audit_write
from ..domain.enums import LeaseStatus
from ..domain.errors import NotFoundError, ValidationError, translate_store_errors
from ..models import Lease, Property, Space
from ..schemas import SpaceCreate, SpaceQuery, SpaceUpdate
from .lease_rules import active_lease_for_space
from .scope import SPACE_DELETE_ROLES, SPACE_ROLES, authorize_property, policy_for, require_role

log = logging.getLogger(__name__)

_MONEY_FIELDS = ("rent", "deposit")


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _has_active_lease() -> ColumnElement[bool]:
    return exists().where(and_(Lease.space_id == Space.id, Lease.status == LeaseStatus.ACTIVE.value))


def _dec(v: Optional[float]) -> Optional[Decimal]:
    return None if v is None else Decimal(str(v))


def _column_values(changes: dict[str, Any]) -> dict[str, Any]:
    out = dict(changes)
    if "amenities" in out:
        out["amenities"] = ",".join(out["amenities"]) if out["amenities"] else None
    if out.get("space_type") is not None:
        out["space_type"] = getattr(out["space_type"], "value", out["space_type"])
    for k in _MONEY_FIELDS:
        if k in out:
            out[k] = _dec(out[k])
    return out


def _snapshot(space: Space) -> dict[str, Any]:
    return {c.key: getattr(space, c.key) for c in Space.__table__.columns}


def _ensure_unique_unit(db: Session, *, property_id: int, unit_number: str, ignore_space_id: Optional[int] = None) -> None:
    q = select(Space.id).where(Space.property_id == property_id, Space.unit_number == unit_number)
    if ignore_space_id is not None:
        q = q.where(Space.id != ignore_space_id)
    if db.scalar(q.limit(1)) is not None:
        raise ValidationError(
            f"Unit number {unit_number} already exists in this property",
            error_code="DUPLICATE_UNIT_NUMBER",
        )


def _load(db: Session, space_id: int) -> Space:
    space = db.get(Space, space_id)
    if space is None:
        raise NotFoundError("Space not found")
    return space


def create_space(db: Session, p: Principal, *, payload: SpaceCreate) -> Space:
    require_role(p, SPACE_ROLES)
    authorize_property(db, p, payload.property_id)
    _ensure_unique_unit(db, property_id=payload.property_id, unit_number=payload.unit_number)

    space = Space(**_column_values(payload.model_dump()))
    with translate_store_errors("space create"):
        db.add(space)
        db.flush()
        audit_write(db, actor=p, action="space.create", entity_type="space", entity_id=space.id, after=_snapshot(space))
        db.commit()
    db.refresh(space)

    log.info("space created", extra={"user_id": p.user_id, "property_id": space.property_id, "space_id": space.id})
    return space


def list_spaces(db: Session, p: Principal, *, query: SpaceQuery) -> dict[str, Any]:
    require_role(p, SPACE_ROLES)
    if query.property_id is not None:
        authorize_property(db, p, query.property_id)

    stmt = select(Space).join(Property, Property.id == Space.property_id).where(policy_for(p).property_clause())

    if query.property_id is not None:
        stmt = stmt.where(Space.property_id == query.property_id)
    if query.search:
        like = f"%{_escape_like(query.search)}%"
        stmt = stmt.where(
            or_(
                Space.unit_number.ilike(like, escape="\\"),
                Space.description.ilike(like, escape="\\"),
                Property.name.ilike(like, escape="\\"),
            )
        )
    if query.space_type is not None:
        stmt = stmt.where(Space.space_type == query.space_type.value)
    if query.bedrooms is not None:
        stmt = stmt.where(Space.bedrooms == query.bedrooms)
    if query.floor is not None:
        stmt = stmt.where(Space.floor == query.floor)
    if query.available is True:
        stmt = stmt.where(~_has_active_lease())
    elif query.available is False:
        stmt = stmt.where(_has_active_lease())

    total = int(db.scalar(select(func.count()).select_from(stmt.subquery())) or 0)
    items = db.scalars(
        stmt.options(selectinload(Space.leases), selectinload(Space.property))
        .order_by(Property.name, Space.unit_number)
        .offset((query.page - 1) * query.limit)
        .limit(query.limit)
    ).all()

    return {
        "items": list(items),
        "pagination": {
            "page": query.page,
            "limit": query.limit,
            "total": total,
            "pages": math.ceil(total / query.limit) if total else 0,
        },
    }


def get_space(db: Session, p: Principal, *, space_id: int) -> Space:
    require_role(p, SPACE_ROLES)
    space = _load(db, space_id)
    authorize_property(db, p, space.property_id)
    return space


def update_space(db: Session, p: Principal, *, space_id: int, payload: SpaceUpdate) -> Space:
    require_role(p, SPACE_ROLES)
    space = _load(db, space_id)
    authorize_property(db, p, space.property_id)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("unit_number") and changes["unit_number"] != space.unit_number:
        _ensure_unique_unit(
            db, property_id=space.property_id, unit_number=changes["unit_number"], ignore_space_id=space.id
        )
    if not changes:
        return space

    before = _snapshot(space)
    for k, v in _column_values(changes).items():
        setattr(space, k, v)

    with translate_store_errors("space update"):
        db.flush()
        audit_write(
            db,
            actor=p,
            action="space.update",
            entity_type="space",
            entity_id=space.id,
            before=before,
            after=_snapshot(space),
        )
        db.commit()
    db.refresh(space)

    log.info("space updated", extra={"user_id": p.user_id, "space_id": space.id, "fields": sorted(changes)})
    return space


def delete_space(db: Session, p: Principal, *, space_id: int) -> dict[str, Any]:
    require_role(p, SPACE_DELETE_ROLES)
    space = _load(db, space_id)
    authorize_property(db, p, space.property_id, roles=SPACE_DELETE_ROLES)

    if active_lease_for_space(db, space.id) is not None:
        raise ValidationError(
            "Cannot delete space with active leases. End leases first.",
            error_code="ACTIVE_LEASE_EXISTS",
        )

    before = _snapshot(space)
    with translate_store_errors("space delete"):
        db.delete(space)
        audit_write(db, actor=p, action="space.delete", entity_type="space", entity_id=space_id, before=before)
        db.commit()

    log.info("space deleted", extra={"user_id": p.user_id, "property_id": before["property_id"], "space_id": space_id})
    return {"message": "Space deleted successfully", "id": space_id}


def spaces_by_property(db: Session, p: Principal, *, property_id: int) -> dict[str, Any]:
    prop = authorize_property(db, p, property_id)
    spaces = db.scalars(
        select(Space)
        .where(Space.property_id == prop.id)
        .options(selectinload(Space.leases))
        .order_by(Space.unit_number)
    ).all()

    occupied = sum(1 for s in spaces if s.is_occupied)
    return {
        "property": prop,
        "spaces": list(spaces),
        "stats": {"total": len(spaces), "occupied": occupied, "available": len(spaces) - occupied},
    }


def available_spaces(db: Session, p: Principal, *, property_id: Optional[int] = None) -> list[Space]:
    require_role(p, SPACE_ROLES)
    stmt = (
        select(Space)
        .join(Property, Property.id == Space.property_id)
        .where(policy_for(p).property_clause(), ~_has_active_lease())
    )
    if property_id is not None:
        authorize_property(db, p, property_id)
        stmt = stmt.where(Space.property_id == property_id)

    return list(
        db.scalars(
            stmt.options(selectinload(Space.leases), selectinload(Space.property)).order_by(
                Property.name, Space.unit_number
            )
        ).all()
    )
