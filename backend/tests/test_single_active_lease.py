# backend/tests/test_single_active_lease.py
from __future__ import annotations

from decimal import Decimal

import pytest

from propdesk.domain.errors import ConflictError, ValidationError, translate_store_errors
from propdesk.models import Lease
from propdesk.services.lease_rules import activate_lease, ensure_single_active_lease


def test_second_active_lease_is_rejected(db, mk):
    org = mk.org()
    space = mk.space(mk.property(mk.entity(org)), "1")
    first = mk.lease(space, mk.tenant(org))
    draft = mk.lease(space, mk.tenant(org, "Ben"), status="DRAFT")

    with pytest.raises(ValidationError):
        ensure_single_active_lease(db, space_id=space.id)
    ensure_single_active_lease(db, space_id=space.id, ignore_lease_id=first.id)

    with pytest.raises(ValidationError):
        activate_lease(db, lease_id=draft.id)
    db.refresh(draft)
    assert draft.status == "DRAFT"


def test_activation_succeeds_once_previous_lease_ends(db, mk):
    org = mk.org()
    space = mk.space(mk.property(mk.entity(org)), "1")
    first = mk.lease(space, mk.tenant(org))
    draft = mk.lease(space, mk.tenant(org, "Ben"), status="DRAFT")

    first.status = "EXPIRED"
    db.commit()
    assert activate_lease(db, lease_id=draft.id).status == "ACTIVE"


def test_store_index_backs_up_the_check(db, mk):
    org = mk.org()
    space = mk.space(mk.property(mk.entity(org)), "1")
    existing = mk.lease(space, mk.tenant(org))

    db.add(
        Lease(
            space_id=space.id,
            tenant_id=mk.tenant(org, "Cy").id,
            start_date=existing.start_date,
            end_date=existing.end_date,
            monthly_rent=Decimal("900"),
            status="ACTIVE",
        )
    )
    with pytest.raises(ConflictError):
        with translate_store_errors("lease insert"):
            db.commit()
