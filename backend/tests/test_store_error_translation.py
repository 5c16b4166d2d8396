# backend/tests/test_store_error_translation.py
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError

from propdesk.domain.errors import (
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
    install_error_handlers,
    translate_store_errors,
)


def test_integrity_error_becomes_conflict():
    with pytest.raises(ConflictError) as ei:
        with translate_store_errors("space create"):
            raise IntegrityError("INSERT", {}, Exception("unique"))
    assert isinstance(ei.value, ValidationError)
    assert ei.value.status_code == 400


def test_other_driver_errors_become_store_unavailable():
    with pytest.raises(StoreError) as ei:
        with translate_store_errors("report"):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))
    assert ei.value.status_code == 503
    assert ei.value.error_code == "STORE_UNAVAILABLE"


def test_app_errors_pass_through_untouched():
    with pytest.raises(NotFoundError):
        with translate_store_errors("space get"):
            raise NotFoundError("Space not found")


def test_handlers_render_detail_and_error_code():
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/boom")
    def boom():
        raise OperationalError("SELECT 1", {}, Exception("down"))

    @app.get("/missing")
    def missing():
        raise NotFoundError("Space not found")

    client = TestClient(app, raise_server_exceptions=False)
    r = client.get("/boom")
    assert r.status_code == 503
    assert r.json()["error_code"] == "STORE_UNAVAILABLE"

    r = client.get("/missing")
    assert r.status_code == 404
    assert r.json() == {"detail": "Space not found", "error_code": "NOT_FOUND"}
