# backend/propdesk/auth.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import jwt  # PyJWT
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .domain.enums import UserRole
from .domain.errors import ForbiddenError
from .models import AppUser, UserEntity, UserProperty


@dataclass(frozen=True)
class Principal:
    """
    Caller identity for one request.

    Built once by get_principal and passed by reference into services; the
    scope resolver reads role, org_id, entity_ids and property_ids from it.
    """

    user_id: int
    role: str
    org_id: Optional[int] = None
    entity_ids: frozenset[int] = field(default_factory=frozenset)
    property_ids: frozenset[int] = field(default_factory=frozenset)
    email: Optional[str] = None


# -------------------------
# JWT helpers
# -------------------------
def issue_token(user: AppUser, *, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "role": str(user.role),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes or settings.jwt_exp_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def principal_for_user(db: Session, user: AppUser) -> Principal:
    entity_ids = db.scalars(select(UserEntity.entity_id).where(UserEntity.user_id == user.id)).all()
    property_ids = db.scalars(select(UserProperty.property_id).where(UserProperty.user_id == user.id)).all()
    return Principal(
        user_id=int(user.id),
        role=str(user.role),
        org_id=int(user.organization_id) if user.organization_id is not None else None,
        entity_ids=frozenset(int(x) for x in entity_ids),
        property_ids=frozenset(int(x) for x in property_ids),
        email=str(user.email),
    )


def _parse_ids(raw: Optional[str], header: str) -> frozenset[int]:
    if not raw:
        return frozenset()
    try:
        return frozenset(int(x) for x in raw.split(",") if x.strip())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Malformed {header} header")


def _dev_principal(request: Request, db: Session) -> Principal:
    h = request.headers
    raw_user_id = (h.get(settings.dev_header_user_id) or "").strip()
    role = (h.get(settings.dev_header_user_role) or "").strip().upper()

    # X-User-Id alone: act as a stored user, assignments included
    if raw_user_id and not role:
        user = db.get(AppUser, int(raw_user_id)) if raw_user_id.isdigit() else None
        if user is None:
            raise HTTPException(status_code=401, detail="Unknown user")
        return principal_for_user(db, user)

    if role not in UserRole.__members__:
        raise HTTPException(status_code=401, detail=f"Missing or unknown {settings.dev_header_user_role} for dev auth")

    raw_org = (h.get(settings.dev_header_org_id) or "").strip()
    return Principal(
        user_id=int(raw_user_id) if raw_user_id.isdigit() else 0,
        role=role,
        org_id=int(raw_org) if raw_org.isdigit() else None,
        entity_ids=_parse_ids(h.get(settings.dev_header_entity_ids), settings.dev_header_entity_ids),
        property_ids=_parse_ids(h.get(settings.dev_header_property_ids), settings.dev_header_property_ids),
    )


# -------------------------
# get_principal
# -------------------------
def get_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Auth modes supported (in priority order):
      1) Authorization: Bearer <jwt>
      2) dev header spoofing (ONLY if settings.auth_mode == "dev")
    """
    token = None
    if authorization and str(authorization).lower().startswith("bearer "):
        token = str(authorization).split(" ", 1)[1].strip()

    if token:
        claims = _decode_token(token)
        sub = str(claims.get("sub") or "")
        if not sub.isdigit():
            raise HTTPException(status_code=401, detail="Token missing sub")

        user = db.get(AppUser, int(sub))
        if user is None or not user.is_active:
            raise HTTPException(status_code=401, detail="Unknown user")
        return principal_for_user(db, user)

    if settings.auth_mode == "dev":
        return _dev_principal(request, db)

    raise HTTPException(status_code=401, detail="Not authenticated")


def require_roles(*roles: UserRole) -> Callable[..., Principal]:
    """Route-level role gate; finer scope checks happen in services.scope."""
    allowed = {r.value for r in roles}

    def _dep(p: Principal = Depends(get_principal)) -> Principal:
        if p.role not in allowed:
            raise ForbiddenError(f"Role {p.role} cannot access this resource")
        return p

    return _dep
