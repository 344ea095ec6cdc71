"""Tests for /health and /ready observability endpoints.

Uses FastAPI TestClient with the in-memory spreadsheet to verify liveness
and readiness probes without external dependencies.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from dealreg.health import register_health_routes
from dealreg.sheets.client import SheetsClient

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_app(services: dict | None = None) -> FastAPI:
    """Create a minimal FastAPI app with health routes and given services."""
    app = FastAPI()
    app.state.services = services or {}
    register_health_routes(app)
    return app


# ---------------------------------------------------------------------------
# /health (liveness)
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    """GET /health liveness probe."""

    def test_health_returns_200(self) -> None:
        client = TestClient(_make_app())

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_health_ignores_storage(self) -> None:
        client = TestClient(_make_app({"sheets_client": None}))
        assert client.get("/health").status_code == 200


# ---------------------------------------------------------------------------
# /ready (readiness)
# ---------------------------------------------------------------------------


class TestReadyEndpoint:
    """GET /ready readiness probe."""

    def test_ready_returns_200_when_spreadsheet_reachable(
        self, sheets_client: SheetsClient
    ) -> None:
        client = TestClient(_make_app({"sheets_client": sheets_client}))

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "checks": {"sheets": "ok"},
            "spreadsheet": "Deal Registrations",
        }

    def test_ready_returns_503_when_unconfigured(self) -> None:
        client = TestClient(_make_app({"sheets_client": None}))

        response = client.get("/ready")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        assert body["checks"]["sheets"] == "fail"

    def test_ready_returns_503_when_spreadsheet_unreachable(self) -> None:
        sheets_client = MagicMock()
        sheets_client.test_connection.side_effect = RuntimeError("403 permission denied")
        client = TestClient(_make_app({"sheets_client": sheets_client}))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"] == {"sheets": "fail"}
        assert "spreadsheet" not in response.json()
