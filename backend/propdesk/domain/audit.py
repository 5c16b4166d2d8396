# backend/propdesk/domain/audit.py
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..auth import Principal
from ..models import AuditEvent

log = logging.getLogger(__name__)


def _dumps(v: Optional[dict[str, Any]]) -> Optional[str]:
    if v is None:
        return None
    return json.dumps(v, sort_keys=True, default=str)


def audit_write(
    db: Session,
    *,
    actor: Principal,
    action: str,
    entity_type: str,
    entity_id: Any,
    org_id: Optional[int] = None,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    """
    Stage an audit row in the caller's transaction.

    Never commits: the mutation and its audit row land together or not at all.
    """
    row = AuditEvent(
        org_id=org_id if org_id is not None else actor.org_id,
        actor_user_id=actor.user_id,
        actor_role=actor.role,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        before_json=_dumps(before),
        after_json=_dumps(after),
        created_at=datetime.utcnow(),
    )
    db.add(row)
    log.info(
        "audit %s",
        action,
        extra={"user_id": actor.user_id, "role": actor.role, "org_id": row.org_id, f"{entity_type}_id": row.entity_id},
    )
    return row
