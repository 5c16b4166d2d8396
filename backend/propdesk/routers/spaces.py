# backend/propdesk/routers/spaces.py
from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_roles
from ..db import get_db
from ..schemas import PropertySpacesOut, SpaceCreate, SpaceListOut, SpaceOut, SpaceQuery, SpaceUpdate
from ..services import spaces
from ..services.scope import SPACE_DELETE_ROLES, SPACE_ROLES

router = APIRouter(prefix="/spaces", tags=["spaces"])

space_roles = require_roles(*SPACE_ROLES)


@router.post("", response_model=SpaceOut, status_code=201)
def create_space(payload: SpaceCreate, db: Session = Depends(get_db), p: Principal = Depends(space_roles)):
    return spaces.create_space(db, p, payload=payload)


@router.get("", response_model=SpaceListOut)
def list_spaces(
    q: Annotated[SpaceQuery, Query()],
    db: Session = Depends(get_db),
    p: Principal = Depends(space_roles),
):
    return spaces.list_spaces(db, p, query=q)


@router.get("/available", response_model=list[SpaceOut])
def available_spaces(
    property_id: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    p: Principal = Depends(space_roles),
):
    return spaces.available_spaces(db, p, property_id=property_id)


@router.get("/by-property/{property_id}", response_model=PropertySpacesOut)
def spaces_by_property(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(space_roles)):
    return spaces.spaces_by_property(db, p, property_id=property_id)


@router.get("/{space_id}", response_model=SpaceOut)
def get_space(space_id: int, db: Session = Depends(get_db), p: Principal = Depends(space_roles)):
    return spaces.get_space(db, p, space_id=space_id)


@router.patch("/{space_id}", response_model=SpaceOut)
def update_space(
    space_id: int,
    payload: SpaceUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(space_roles),
):
    return spaces.update_space(db, p, space_id=space_id, payload=payload)


@router.delete("/{space_id}", response_model=dict)
def delete_space(
    space_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_roles(*SPACE_DELETE_ROLES)),
):
    return spaces.delete_space(db, p, space_id=space_id)
