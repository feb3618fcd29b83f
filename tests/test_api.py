"""Tests for the FastAPI routes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from keepalive.api import server
from keepalive.api.server import create_app
from keepalive.config import settings
from keepalive.history.backends import MemoryKeyValueBackend, SqliteKeyValueBackend
from keepalive.history.store import HISTORY_KEY, HistoryStore
from keepalive.orchestrator.run import RunSummary, Trigger
from keepalive.orchestrator.service import KeepaliveRunner

from conftest import mock_client, routing_handler

THREE_TARGETS = {
    "URL_1": "https://ok.supabase.co", "KEY_1": "k1",
    "URL_2": "https://bad.supabase.co", "KEY_2": "k2",
    "URL_3": "https://down.supabase.co", "KEY_3": "k3",
}


def _client(config: dict[str, str], routes: dict[str, object]) -> TestClient:
    app = create_app()
    store = HistoryStore(MemoryKeyValueBackend())
    app.state.history_store = store
    app.state.next_run_hint = "Runs every 6 hours"
    app.state.runner = KeepaliveRunner(
        store, mock_client(routing_handler(routes)), config_loader=lambda: config,
    )
    return TestClient(app)


@pytest.fixture
def client() -> TestClient:
    return _client(THREE_TARGETS, {
        "ok": 200,
        "bad": 500,
        "down": httpx.ConnectError("connection refused"),
    })


@pytest.fixture
def healthy_client() -> TestClient:
    return _client(
        {"URL_1": "https://ok.supabase.co", "KEY_1": "k1"}, {"ok": 200},
    )


class TestHealthEndpoint:
    def test_static_ok(self, client) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_no_side_effects(self, client) -> None:
        client.get("/health")
        assert client.app.state.history_store.read() is None


class TestStatusEndpoint:
    def test_no_data(self, client) -> None:
        resp = client.get("/status")
        assert resp.status_code == 200
        assert resp.json()["status"] == "no_data"
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_healthy_after_run(self, healthy_client) -> None:
        healthy_client.get("/")
        resp = healthy_client.get("/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["trigger"] == "manual"
        assert data["history"]["runCount"] == 1
        assert data["nextRun"] == "Runs every 6 hours"

    def test_degraded_after_failed_run(self, client) -> None:
        client.get("/")
        resp = client.get("/status")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_reflects_stored_scheduled_run(self, healthy_client) -> None:
        store = healthy_client.app.state.history_store
        store.append(RunSummary(
            trigger=Trigger.SCHEDULED, success=True, message="ok",
            timestamp=datetime.now(timezone.utc) - timedelta(hours=1),
        ))
        data = healthy_client.get("/status").json()
        assert data["trigger"] == "scheduled"
        assert data["counts"] == {"total": 0, "succeeded": 0, "failed": 0}


class TestManualTrigger:
    def test_partial_failure_returns_207(self, client) -> None:
        resp = client.get("/")
        assert resp.status_code == 207
        data = resp.json()
        assert data["success"] is False
        assert data["trigger"] == "manual"
        assert data["counts"] == {"total": 3, "succeeded": 1, "failed": 2}
        assert data["message"] == "Pinged 3 project(s): 1 succeeded, 2 failed"
        by_name = {r["targetName"]: r for r in data["results"]}
        assert by_name["bad"]["statusCode"] == 500
        assert "errorMessage" in by_name["down"]
        assert "statusCode" not in by_name["down"]

    def test_all_ok_returns_200(self, healthy_client) -> None:
        resp = healthy_client.get("/")
        assert resp.status_code == 200
        assert resp.json()["success"] is True

    def test_any_other_path_triggers(self, healthy_client) -> None:
        resp = healthy_client.get("/anything/else")
        assert resp.status_code == 200
        assert len(healthy_client.app.state.history_store.read().runs) == 1

    def test_zero_targets(self) -> None:
        client = _client({}, {})
        resp = client.get("/")
        assert resp.status_code == 207
        data = resp.json()
        assert data["results"] == []
        assert data["counts"] == {"total": 0, "succeeded": 0, "failed": 0}

        status = client.get("/status")
        assert status.status_code == 503
        assert status.json()["history"]["runCount"] == 1

    def test_credentials_not_leaked(self, client) -> None:
        body = client.get("/").text
        assert "k1" not in body and "k2" not in body

    @pytest.mark.parametrize("path", ["/docs", "/redoc", "/openapi.json"])
    def test_framework_doc_paths_trigger(self, healthy_client, path) -> None:
        resp = healthy_client.get(path)
        assert resp.status_code == 200
        assert resp.json()["trigger"] == "manual"
        log = healthy_client.app.state.history_store.read()
        assert log is not None
        assert len(log.runs) == 1


# ── Lifespan wiring ──────────────────────────────────────────────────────────


@pytest.fixture
def wired(tmp_path: Path, monkeypatch):
    """Settings pointed at a temp SQLite file, one healthy target, mocked transport."""
    db_path = tmp_path / "data" / "keepalive.db"
    monkeypatch.setattr(settings, "history_db_path", str(db_path))
    monkeypatch.setattr(settings, "history_key", "test:history")
    monkeypatch.setattr(settings, "history_retention_hours", 24)
    monkeypatch.setattr(settings, "schedule_interval_hours", 6)
    monkeypatch.setattr(settings, "target_prefix", "")
    monkeypatch.setattr(
        server, "load_target_config",
        lambda: {"URL_1": "https://ok.supabase.co", "KEY_1": "k1"},
    )
    monkeypatch.setattr(
        server, "make_client", lambda timeout=None: mock_client(routing_handler({"ok": 200})),
    )
    return db_path


class TestLifespan:
    def test_production_wiring(self, wired: Path) -> None:
        app = create_app()
        with TestClient(app) as client:
            scheduler = app.state.scheduler
            assert scheduler.running is True
            assert scheduler.interval == 6 * 3600
            assert app.state.history_store.key == "test:history"
            assert app.state.history_store.retention == timedelta(hours=24)
            assert app.state.next_run_hint == "Runs every 6 hours"

            resp = client.get("/")
            assert resp.status_code == 200
            assert client.get("/status").json()["status"] == "healthy"

        assert scheduler.running is False

        backend = SqliteKeyValueBackend(wired)
        try:
            assert backend.get(HISTORY_KEY) is None
            log = HistoryStore(backend, key="test:history").read()
        finally:
            backend.close()
        assert log is not None
        assert len(log.runs) == 1
        assert log.runs[0].trigger == Trigger.MANUAL

    def test_scheduler_disabled(self, wired: Path, monkeypatch) -> None:
        monkeypatch.setattr(settings, "schedule_interval_hours", 0)
        app = create_app()
        with TestClient(app):
            assert app.state.scheduler.running is False
            assert app.state.next_run_hint == "Runs on external schedule"

    def test_unknown_check_mode_fails_before_opening_store(self, wired: Path, monkeypatch) -> None:
        monkeypatch.setattr(settings, "probe_mode", "graphql")
        with pytest.raises(ValueError, match="graphql"):
            with TestClient(create_app()):
                pass
        assert not wired.exists()
