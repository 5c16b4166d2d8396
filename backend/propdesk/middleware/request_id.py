# backend/propdesk/middleware/request_id.py
from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

request_id_ctx: ContextVar[str | None] = ContextVar("propdesk_request_id", default=None)


def get_request_id() -> str | None:
    return request_id_ctx.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Binds a request id for the duration of the request.

    An incoming X-Request-ID is reused (so upstream proxies can correlate),
    otherwise a uuid4 is minted. The id is echoed on the response, stored on
    request.state and kept in a ContextVar for the JSON log formatter.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip() or uuid.uuid4().hex
        request.state.request_id = rid

        token = request_id_ctx.set(rid)
        try:
            resp = await call_next(request)
            resp.headers[REQUEST_ID_HEADER] = rid
            return resp
        finally:
            request_id_ctx.reset(token)
