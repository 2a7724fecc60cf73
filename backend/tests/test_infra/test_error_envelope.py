"""Tests for the {error, message} envelope and exception handlers."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from workboard.errors import (
    InternalError,
    InvalidRequest,
    NotFound,
    Unauthorized,
    WorkboardError,
    install_error_handlers,
)


class _Body(BaseModel):
    count: int


def _client():
    test_app = FastAPI()
    install_error_handlers(test_app)

    @test_app.get("/raise/{kind}")
    async def raise_kind(kind: str):
        errors = {
            "unauthorized": Unauthorized(),
            "invalid": InvalidRequest("Tasks must belong to the same workspace"),
            "missing": NotFound("Task not found: t1"),
            "internal": InternalError("Failed to update tasks"),
        }
        raise errors[kind]

    @test_app.post("/validate")
    async def validate(body: _Body):
        return body

    @test_app.get("/crash")
    async def crash():
        raise RuntimeError("secret connection string leaked")

    return TestClient(test_app, raise_server_exceptions=False)


def test_error_kinds_and_status_codes():
    client = _client()
    expected = {
        "unauthorized": (401, "Unauthorized", "You are not a member of this workspace"),
        "invalid": (400, "InvalidRequest", "Tasks must belong to the same workspace"),
        "missing": (404, "NotFound", "Task not found: t1"),
        "internal": (500, "InternalError", "Failed to update tasks"),
    }
    for kind, (status, error, message) in expected.items():
        resp = client.get(f"/raise/{kind}")
        assert resp.status_code == status
        assert resp.json() == {"error": error, "message": message}


def test_validation_error_is_400_with_first_issue():
    resp = _client().post("/validate", json={"count": "many"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "ValidationError"
    assert body["message"].startswith("count:")


def test_unexpected_exception_is_opaque_500():
    resp = _client().get("/crash")
    assert resp.status_code == 500
    assert resp.json() == {"error": "InternalError", "message": "Internal server error."}
    assert "secret" not in resp.text


def test_default_messages():
    assert WorkboardError().message == "Internal server error."
    assert InvalidRequest().status_code == 400
    assert str(NotFound("gone")) == "gone"
