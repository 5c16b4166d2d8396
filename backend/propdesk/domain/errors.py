# backend/propdesk/domain/errors.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

log = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that map onto an HTTP status."""

    status_code: int = 400
    error_code: str = "APP_ERROR"

    def __init__(self, detail: str, *, error_code: Optional[str] = None):
        self.detail = detail
        if error_code is not None:
            self.error_code = error_code
        super().__init__(detail)


class NotFoundError(AppError):
    status_code = 404
    error_code = "NOT_FOUND"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, detail: str = "Access denied", *, error_code: Optional[str] = None):
        super().__init__(detail, error_code=error_code)


class ValidationError(AppError):
    status_code = 400
    error_code = "VALIDATION_ERROR"


class ConflictError(ValidationError):
    error_code = "CONFLICT"


class StoreError(AppError):
    status_code = 503
    error_code = "STORE_UNAVAILABLE"


@contextmanager
def translate_store_errors(action: str) -> Iterator[None]:
    """
    Re-raise SQLAlchemy failures inside the block as taxonomy errors.

    IntegrityError -> ConflictError; anything else from the driver -> StoreError.
    AppError raised inside the block passes through untouched.
    """
    try:
        yield
    except IntegrityError as e:
        raise ConflictError(f"{action} violates a data constraint") from e
    except SQLAlchemyError as e:
        log.exception("store failure during %s", action)
        raise StoreError(f"{action} failed: data store unavailable") from e


def _render(exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
    )


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(_request: Request, exc: AppError) -> JSONResponse:
        return _render(exc)

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(_request: Request, exc: RequestValidationError) -> JSONResponse:
        msgs = []
        for e in exc.errors():
            loc = ".".join(str(x) for x in e.get("loc", ()) if x not in ("body", "query", "path"))
            msgs.append(f"{loc}: {e.get('msg')}" if loc else str(e.get("msg")))
        return _render(ValidationError("; ".join(msgs) or "Invalid request"))

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
        log.error("unhandled store error: %s", exc.__class__.__name__, exc_info=exc)
        if isinstance(exc, IntegrityError):
            return _render(ConflictError("request violates a data constraint"))
        return _render(StoreError("data store unavailable"))
