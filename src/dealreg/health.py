"""Health and readiness endpoints for container orchestration.

Provides two top-level routes:

- ``GET /health`` -- Liveness probe.  Returns 200 if the process is alive.
- ``GET /ready``  -- Readiness probe.  Returns 200 only when the spreadsheet
  answers a metadata request.  Returns 503 with per-check details otherwise.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = structlog.get_logger()


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` endpoints on *app*.

    Args:
        app: The FastAPI application instance.
    """

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe -- always returns 200 if the process is running."""
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        """Readiness probe -- checks the spreadsheet is reachable."""
        services: dict[str, Any] = request.app.state.services
        checks: dict[str, str] = {}
        body: dict[str, Any] = {}

        sheets_client = services.get("sheets_client")
        if sheets_client is not None:
            try:
                info = await asyncio.to_thread(sheets_client.test_connection)
                checks["sheets"] = "ok"
                body["spreadsheet"] = info["title"]
            except Exception:
                logger.warning("readiness_sheets_check_failed", exc_info=True)
                checks["sheets"] = "fail"
        else:
            checks["sheets"] = "fail"

        all_ok = all(v == "ok" for v in checks.values())
        status = "ready" if all_ok else "not_ready"
        code = 200 if all_ok else 503

        return JSONResponse(
            content={"status": status, "checks": checks, **body}, status_code=code
        )
