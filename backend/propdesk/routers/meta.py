# backend/propdesk/routers/meta.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..domain.errors import translate_store_errors

router = APIRouter(tags=["meta"])


@router.get("/health", response_model=dict)
def health(db: Session = Depends(get_db)):
    with translate_store_errors("health check"):
        db.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.app_env, "auth_mode": settings.auth_mode}
