# backend/propdesk/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings

log = logging.getLogger("propdesk.request")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Emits one log record per request (method, path, status_code, latency_ms).

    In dev auth mode the caller headers are attached too; with JWT the
    principal only exists inside handlers, so it is left out here.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        t0 = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            extra = {
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "latency_ms": int((time.perf_counter() - t0) * 1000),
            }
            if settings.auth_mode == "dev":
                extra["role"] = request.headers.get(settings.dev_header_user_role)
                extra["org_id"] = request.headers.get(settings.dev_header_org_id)
            log.info("http_request", extra=extra)
