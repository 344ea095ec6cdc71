"""Application entry point for the deal registration API.

Configures:
- **structlog** with JSON rendering (production) or colored console (development)
- **SheetsClient** and the deal/admin repositories, created once and handed
  to the routes through ``app.state.services``
- **Lifespan** that authenticates the spreadsheet session on startup and
  drops it on shutdown
- **Request IDs** on every HTTP response
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, TextIO

import structlog
import uvicorn
from fastapi import FastAPI

from dealreg.api.routes import router as api_router
from dealreg.auth.credentials import SheetsConfigurationError
from dealreg.config import Settings, get_settings, validate_credentials
from dealreg.deals.repository import AdminRepository, DealRepository
from dealreg.health import register_health_routes
from dealreg.observability.middleware import SERVICE_NAME, RequestIdMiddleware
from dealreg.sheets.client import create_sheets_client

logger = structlog.get_logger()


def configure_logging(
    production: bool = False,
    log_file: TextIO | None = None,
    cache_loggers: bool = True,
) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        log_file: Stream to write log lines to.  Defaults to stdout.
        cache_loggers: Cache each logger on first use.  Short-lived
            commands that reconfigure the stream turn this off.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(log_file),
        cache_logger_on_first_use=cache_loggers,
    )

    structlog.contextvars.bind_contextvars(service=SERVICE_NAME)


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Set up the shared services for the application.

    The ``SheetsClient`` is created uninitialized; credentials are resolved
    in the lifespan hook or on first use.  Without a spreadsheet id the
    storage services are ``None`` and the routes answer 503.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        A dict of service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {
        "_settings": settings,
        "sheets_client": None,
        "deal_repository": None,
        "admin_repository": None,
    }

    if not settings.google_sheets_spreadsheet_id:
        logger.info("GOOGLE_SHEETS_SPREADSHEET_ID not set, spreadsheet storage disabled")
        return services

    sheets_client = create_sheets_client(settings)
    services["sheets_client"] = sheets_client
    services["deal_repository"] = DealRepository(sheets_client, tab=settings.deals_tab)
    services["admin_repository"] = AdminRepository(
        sheets_client,
        tab=settings.admins_tab,
        bootstrap=settings.approver_emails,
    )
    logger.info(
        "SheetsClient configured",
        deals_tab=settings.deals_tab,
        admins_tab=settings.admins_tab,
        bootstrap_approvers=len(settings.approver_emails),
    )
    return services


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan context manager for FastAPI startup and shutdown.

    On startup: authenticates the spreadsheet session.  A configuration
    error stops a production process; in development it is logged and the
    first request will raise it again.  Transport failures are logged and
    initialization is retried by the first request.
    On shutdown: drops the session.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application.
    """
    services = app.state.services
    settings: Settings = app.state.settings
    sheets_client = services.get("sheets_client")
    if sheets_client is not None:
        try:
            await asyncio.to_thread(sheets_client.initialize)
        except SheetsConfigurationError:
            if settings.production:
                raise
            logger.warning("Spreadsheet session not initialized at startup", exc_info=True)
        except Exception:
            logger.warning("Spreadsheet unreachable at startup", exc_info=True)
    logger.info("FastAPI application starting")
    yield
    if sheets_client is not None:
        sheets_client.close()
        logger.info("Spreadsheet session closed")


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with lifespan, API router, and health routes.

    Args:
        services: The services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Deal Registration API", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings") or get_settings()
    fastapi_app.add_middleware(RequestIdMiddleware)
    fastapi_app.include_router(api_router)
    register_health_routes(fastapi_app)
    return fastapi_app


async def main() -> None:
    """Main entry point: configure logging, wire services, serve with uvicorn."""
    settings = get_settings()
    configure_logging(production=settings.production)
    logger.info("Application starting")

    validate_credentials(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    config = uvicorn.Config(
        fastapi_app,
        host="0.0.0.0",
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
