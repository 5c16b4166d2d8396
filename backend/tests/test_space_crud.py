# backend/tests/test_space_crud.py
from __future__ import annotations

import pydantic
import pytest
from sqlalchemy import select

from propdesk.domain.errors import ForbiddenError, ValidationError
from propdesk.models import AuditEvent, Space
from propdesk.schemas import SpaceCreate, SpaceQuery, SpaceUpdate
from propdesk.services import spaces


def _setup(mk):
    org = mk.org()
    ent = mk.entity(org)
    prop = mk.property(ent, "Maple Court")
    return org, ent, prop


def test_create_then_duplicate_unit_number_fails(db, mk, as_role):
    org, _, prop = _setup(mk)
    p = as_role("ORG_ADMIN", org_id=org.id, user_id=7)

    s = spaces.create_space(db, p, payload=SpaceCreate(property_id=prop.id, unit_number="101", rent=1200, amenities=["ac", "dishwasher"]))
    assert s.unit_number == "101"
    assert s.amenities == "ac,dishwasher"

    with pytest.raises(ValidationError, match="Unit number 101 already exists in this property"):
        spaces.create_space(db, p, payload=SpaceCreate(property_id=prop.id, unit_number="101"))

    audit = db.scalars(select(AuditEvent).where(AuditEvent.action == "space.create")).all()
    assert len(audit) == 1
    assert audit[0].actor_user_id == 7
    assert audit[0].actor_role == "ORG_ADMIN"


def test_relabel_to_existing_unit_number_fails(db, mk, as_role):
    org, _, prop = _setup(mk)
    mk.space(prop, "101")
    b = mk.space(prop, "102")
    p = as_role("PROPERTY_MANAGER", property_ids=[prop.id])

    with pytest.raises(ValidationError):
        spaces.update_space(db, p, space_id=b.id, payload=SpaceUpdate(unit_number="101"))

    updated = spaces.update_space(db, p, space_id=b.id, payload=SpaceUpdate(bedrooms=2, rent=1450.5))
    assert updated.bedrooms == 2
    assert float(updated.rent) == 1450.5
    assert updated.unit_number == "102"


def test_delete_blocked_by_active_lease_leaves_space(db, mk, as_role):
    org, _, prop = _setup(mk)
    s = mk.space(prop, "101")
    mk.lease(s, mk.tenant(org))
    p = as_role("ORG_ADMIN", org_id=org.id)

    with pytest.raises(ValidationError, match="Cannot delete space with active leases"):
        spaces.delete_space(db, p, space_id=s.id)

    db.expire_all()
    assert db.get(Space, s.id) is not None


def test_delete_with_ended_lease_removes_space_and_audits(db, mk, as_role):
    org, _, prop = _setup(mk)
    s = mk.space(prop, "101")
    mk.lease(s, mk.tenant(org), status="EXPIRED")
    p = as_role("SUPER_ADMIN")

    out = spaces.delete_space(db, p, space_id=s.id)
    assert out["id"] == s.id

    db.expire_all()
    assert db.get(Space, out["id"]) is None
    assert db.scalar(select(AuditEvent).where(AuditEvent.action == "space.delete")) is not None


def test_property_manager_cannot_delete(db, mk, as_role):
    _, _, prop = _setup(mk)
    s = mk.space(prop, "101")
    with pytest.raises(ForbiddenError):
        spaces.delete_space(db, as_role("PROPERTY_MANAGER", property_ids=[prop.id]), space_id=s.id)
    assert db.get(Space, s.id) is not None


def test_out_of_scope_create_has_no_side_effect(db, mk, as_role):
    org, _, prop = _setup(mk)
    other = mk.org("Other")
    with pytest.raises(ForbiddenError):
        spaces.create_space(db, as_role("ORG_ADMIN", org_id=other.id), payload=SpaceCreate(property_id=prop.id, unit_number="9"))
    assert db.scalars(select(Space)).all() == []
    assert db.scalars(select(AuditEvent)).all() == []


def test_list_filters_paginates_and_scopes(db, mk, as_role):
    org, ent, prop = _setup(mk)
    other_prop = mk.property(mk.entity(mk.org("Else")), "Birch")
    occupied = mk.space(prop, "101", bedrooms=1, description="corner unit")
    mk.space(prop, "102", bedrooms=2)
    mk.space(prop, "201", bedrooms=2, floor=2)
    mk.space(other_prop, "X1")
    mk.lease(occupied, mk.tenant(org))
    p = as_role("ENTITY_MANAGER", entity_ids=[ent.id])

    page = spaces.list_spaces(db, p, query=SpaceQuery(limit=2))
    assert [s.unit_number for s in page["items"]] == ["101", "102"]
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    assert [s.unit_number for s in spaces.list_spaces(db, p, query=SpaceQuery(available=True))["items"]] == ["102", "201"]
    assert [s.unit_number for s in spaces.list_spaces(db, p, query=SpaceQuery(available="false"))["items"]] == ["101"]
    assert [s.unit_number for s in spaces.list_spaces(db, p, query=SpaceQuery(search="CORNER"))["items"]] == ["101"]
    assert len(spaces.list_spaces(db, p, query=SpaceQuery(search="maple"))["items"]) == 3
    assert [s.unit_number for s in spaces.list_spaces(db, p, query=SpaceQuery(bedrooms=2, floor=2))["items"]] == ["201"]

    with pytest.raises(ForbiddenError):
        spaces.list_spaces(db, p, query=SpaceQuery(property_id=other_prop.id))


def test_by_property_stats_and_available(db, mk, as_role):
    org, _, prop = _setup(mk)
    a = mk.space(prop, "101")
    mk.space(prop, "102")
    mk.lease(a, mk.tenant(org))
    p = as_role("PROPERTY_MANAGER", property_ids=[prop.id])

    out = spaces.spaces_by_property(db, p, property_id=prop.id)
    assert out["stats"] == {"total": 2, "occupied": 1, "available": 1}
    assert [s.unit_number for s in spaces.available_spaces(db, p)] == ["102"]


def test_tenant_role_is_denied(db, mk, as_role):
    org, _, prop = _setup(mk)
    s = mk.space(prop, "101")
    with pytest.raises(ForbiddenError):
        spaces.get_space(db, as_role("TENANT", org_id=org.id), space_id=s.id)
    with pytest.raises(ForbiddenError):
        spaces.list_spaces(db, as_role("ACCOUNTANT", org_id=org.id), query=SpaceQuery())


def test_update_rejects_null_for_required_columns(db, mk, as_role):
    org, _, prop = _setup(mk)
    s = mk.space(prop, "101", space_type="APARTMENT")

    for field in ("space_type", "unit_number"):
        with pytest.raises(pydantic.ValidationError):
            SpaceUpdate.model_validate({field: None})

    # nullable columns may still be cleared
    p = as_role("ORG_ADMIN", org_id=org.id)
    updated = spaces.update_space(db, p, space_id=s.id, payload=SpaceUpdate.model_validate({"name": None}))
    assert updated.space_type == "APARTMENT"
    assert updated.unit_number == "101"


def test_search_treats_wildcards_literally(db, mk, as_role):
    org, _, prop = _setup(mk)
    mk.space(prop, "101")
    mk.space(prop, "1_1")
    mk.space(prop, "50%", description="half off")
    p = as_role("ORG_ADMIN", org_id=org.id)

    assert [s.unit_number for s in spaces.list_spaces(db, p, query=SpaceQuery(search="1_1"))["items"]] == ["1_1"]
    assert [s.unit_number for s in spaces.list_spaces(db, p, query=SpaceQuery(search="%"))["items"]] == ["50%"]
