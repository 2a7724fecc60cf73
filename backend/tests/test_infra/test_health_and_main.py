"""Tests for health endpoint and the assembled main app."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")

import asyncio
from unittest.mock import patch

from fastapi.testclient import TestClient

from workboard.api.health import VERSION, HealthStatus, health_check
from workboard.api.v1.events import InvalidationHub
from workboard.config import settings
from workboard.main import app
from workboard.security.session_token import issue_session_token


def test_health_check_reports_database():
    result = asyncio.run(health_check())
    assert isinstance(result, HealthStatus)
    assert result.version == VERSION
    assert result.checks["database"]["status"] == "ok"
    assert result.checks["database"]["detail"] == "sqlite"
    assert result.status == "healthy"


def test_health_degraded_with_default_secret():
    with patch("workboard.api.health.settings") as mock_settings:
        mock_settings.session_secret = "change-me"
        result = asyncio.run(health_check())
    assert result.status == "degraded"
    assert result.checks["session_secret"]["status"] == "warning"


def test_root_and_health_exempt_from_auth():
    with TestClient(app) as client:
        assert client.get("/").json()["name"] == "Workboard"
        assert client.get("/health").status_code == 200


def test_lifespan_installs_invalidation_hub():
    with TestClient(app):
        assert isinstance(app.state.invalidation_hub, InvalidationHub)


def test_api_requires_session():
    with TestClient(app) as client:
        resp = client.get("/api/v1/tasks", params={"workspaceId": "w"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized"


def test_full_stack_create_and_list(session, board):
    token = issue_session_token(secret=settings.session_secret, user_id=board.user_id, ttl_seconds=60)
    with TestClient(app) as client:
        client.cookies.set(settings.session_cookie_name, token)
        created = client.post("/api/v1/tasks", json={
            "workspaceId": board.workspace_id,
            "projectId": board.project_id,
            "name": "Ship it",
            "dueDate": "2026-12-01T00:00:00Z",
            "status": "TODO",
        })
        assert created.status_code == 200
        listed = client.get("/api/v1/tasks", params={"workspaceId": board.workspace_id})
    assert listed.status_code == 200
    assert [t["name"] for t in listed.json()["data"]] == ["Ship it"]


def test_current_user(session, board):
    token = issue_session_token(secret=settings.session_secret, user_id=board.user_id, ttl_seconds=60)
    with TestClient(app) as client:
        resp = client.get("/api/v1/auth/current", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["id"] == board.user_id
    assert data["name"] == "Owner"
    assert "createdAt" in data


def test_current_user_unknown_returns_404(session):
    token = issue_session_token(secret=settings.session_secret, user_id="ghost", ttl_seconds=60)
    with TestClient(app) as client:
        resp = client.get("/api/v1/auth/current", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 404


def test_logout_clears_cookie(session, board):
    token = issue_session_token(secret=settings.session_secret, user_id=board.user_id, ttl_seconds=60)
    with TestClient(app) as client:
        resp = client.post("/api/v1/auth/logout", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert settings.session_cookie_name in resp.headers.get("set-cookie", "")
