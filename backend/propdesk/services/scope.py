# backend/propdesk/services/scope.py
"""
Role scope resolution.

Every role-dependent visibility rule lives here, as one ScopePolicy subclass
per role tier. Services never branch on role themselves: they either call
authorize_entity / authorize_property for a single target, or narrow a
query with policy_for(p).property_clause().
"""
from __future__ import annotations

import logging
from typing import Collection, Iterable, Optional

from sqlalchemy import ColumnElement, false, select, true
from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain.enums import UserRole
from ..domain.errors import ForbiddenError, NotFoundError
from ..models import Entity, Property

log = logging.getLogger(__name__)

REPORT_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.ORG_ADMIN, UserRole.ENTITY_MANAGER})
SPACE_ROLES = frozenset(
    {UserRole.SUPER_ADMIN, UserRole.ORG_ADMIN, UserRole.ENTITY_MANAGER, UserRole.PROPERTY_MANAGER}
)
SPACE_DELETE_ROLES = REPORT_ROLES


class ScopePolicy:
    """Default policy: nothing is visible."""

    def __init__(self, principal: Principal):
        self.principal = principal

    def grants_entity(self, entity: Entity) -> bool:
        return False

    def grants_property(self, prop: Property) -> bool:
        return False

    def entity_clause(self) -> ColumnElement[bool]:
        """WHERE fragment over Entity."""
        return false()

    def property_clause(self) -> ColumnElement[bool]:
        """WHERE fragment over Property."""
        return false()


class SuperAdminScope(ScopePolicy):
    def grants_entity(self, entity: Entity) -> bool:
        return True

    def grants_property(self, prop: Property) -> bool:
        return True

    def entity_clause(self) -> ColumnElement[bool]:
        return true()

    def property_clause(self) -> ColumnElement[bool]:
        return true()


class OrgAdminScope(ScopePolicy):
    def grants_entity(self, entity: Entity) -> bool:
        return self.principal.org_id is not None and entity.organization_id == self.principal.org_id

    def grants_property(self, prop: Property) -> bool:
        return self.grants_entity(prop.entity)

    def entity_clause(self) -> ColumnElement[bool]:
        if self.principal.org_id is None:
            return false()
        return Entity.organization_id == self.principal.org_id

    def property_clause(self) -> ColumnElement[bool]:
        return Property.entity_id.in_(select(Entity.id).where(self.entity_clause()))


class EntityManagerScope(ScopePolicy):
    def grants_entity(self, entity: Entity) -> bool:
        return entity.id in self.principal.entity_ids

    def grants_property(self, prop: Property) -> bool:
        return prop.entity_id in self.principal.entity_ids

    def entity_clause(self) -> ColumnElement[bool]:
        return Entity.id.in_(sorted(self.principal.entity_ids))

    def property_clause(self) -> ColumnElement[bool]:
        return Property.entity_id.in_(sorted(self.principal.entity_ids))


class AccountantScope(OrgAdminScope):
    """Organization-wide read visibility for dashboards."""


class PropertyManagerScope(ScopePolicy):
    # entity-level reads stay closed; only assigned properties are visible
    def grants_property(self, prop: Property) -> bool:
        return prop.id in self.principal.property_ids

    def property_clause(self) -> ColumnElement[bool]:
        return Property.id.in_(sorted(self.principal.property_ids))


_POLICIES: dict[str, type[ScopePolicy]] = {
    UserRole.SUPER_ADMIN.value: SuperAdminScope,
    UserRole.ORG_ADMIN.value: OrgAdminScope,
    UserRole.ENTITY_MANAGER.value: EntityManagerScope,
    UserRole.PROPERTY_MANAGER.value: PropertyManagerScope,
    UserRole.ACCOUNTANT.value: AccountantScope,
}


def policy_for(p: Principal) -> ScopePolicy:
    return _POLICIES.get(p.role, ScopePolicy)(p)


def _role_allowed(p: Principal, roles: Collection[UserRole]) -> bool:
    return p.role in {r.value for r in roles}


def _deny(p: Principal, what: str, target_id: int) -> ForbiddenError:
    log.warning(
        "scope denied",
        extra={"user_id": p.user_id, "role": p.role, "org_id": p.org_id, f"{what}_id": target_id},
    )
    return ForbiddenError(f"Access denied to this {what}")


def authorize_entity(
    db: Session,
    p: Principal,
    entity_id: int,
    *,
    roles: Collection[UserRole] = REPORT_ROLES,
) -> Entity:
    entity = db.get(Entity, entity_id)
    if entity is None:
        raise NotFoundError("Entity not found")
    if not _role_allowed(p, roles) or not policy_for(p).grants_entity(entity):
        raise _deny(p, "entity", entity_id)
    return entity


def authorize_property(
    db: Session,
    p: Principal,
    property_id: int,
    *,
    roles: Collection[UserRole] = SPACE_ROLES,
) -> Property:
    prop = db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property not found")
    if not _role_allowed(p, roles) or not policy_for(p).grants_property(prop):
        raise _deny(p, "property", property_id)
    return prop


def require_role(p: Principal, roles: Collection[UserRole]) -> None:
    if not _role_allowed(p, roles):
        log.warning("role denied", extra={"user_id": p.user_id, "role": p.role})
        raise ForbiddenError(f"Role {p.role} cannot perform this operation")


def scoped_property_ids(db: Session, p: Principal, *, entity_ids: Optional[Iterable[int]] = None) -> list[int]:
    """Ids of every property the caller may see, optionally within some entities."""
    stmt = select(Property.id).where(policy_for(p).property_clause())
    if entity_ids is not None:
        stmt = stmt.where(Property.entity_id.in_(list(entity_ids)))
    return [int(x) for x in db.scalars(stmt.order_by(Property.id)).all()]


def scoped_entity_ids(db: Session, p: Principal, *, organization_id: Optional[int] = None) -> list[int]:
    """Ids of every entity the caller may see, optionally within one organization."""
    stmt = select(Entity.id).where(policy_for(p).entity_clause())
    if organization_id is not None:
        stmt = stmt.where(Entity.organization_id == int(organization_id))
    return [int(x) for x in db.scalars(stmt.order_by(Entity.id)).all()]
