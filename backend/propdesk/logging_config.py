# backend/propdesk/logging_config.py
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from .config import settings
from .middleware.request_id import get_request_id

# Structured fields services may attach via `extra=`.
STRUCTURED_KEYS = (
    "org_id",
    "user_id",
    "role",
    "entity_id",
    "property_id",
    "space_id",
    "report",
    "method",
    "path",
    "status_code",
    "latency_ms",
)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line: ts, level, logger, message, request_id when a
    request is in flight, formatted exception, plus any STRUCTURED_KEYS set
    on the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "env": settings.app_env,
        }

        rid = get_request_id()
        if rid:
            payload["request_id"] = rid
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        payload.update({k: getattr(record, k) for k in STRUCTURED_KEYS if hasattr(record, k)})
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: Optional[str] = None) -> None:
    lvl = (level or settings.log_level).upper()

    root = logging.getLogger()
    root.setLevel(lvl)

    # uvicorn --reload re-imports the app; avoid stacking handlers
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(lvl)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(lvl)
    logging.getLogger("sqlalchemy.engine").setLevel(settings.sql_log_level.upper())
    logging.getLogger("propdesk").setLevel(lvl)
