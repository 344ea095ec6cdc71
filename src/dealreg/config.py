"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a ``validate_credentials()``
startup gate that enforces a usable Google credential source in production.

IMPORTANT: This module has ZERO imports from the ``dealreg`` package to
prevent circular imports.  Only stdlib, pydantic, pydantic_settings, and
structlog are used.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path
from typing import Annotated

import structlog
from pydantic import SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = structlog.get_logger()

DEFAULT_KEY_PATH = Path("credentials/google-service-account.json")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    Environment names match the deployment: ``GOOGLE_SHEETS_PRIVATE_KEY``,
    ``GOOGLE_SHEETS_CLIENT_EMAIL`` and friends.  ``SecretStr`` keeps the
    private key out of logs and error output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    port: int = 8000

    # -- Google Sheets ---------------------------------------------------------
    google_sheets_spreadsheet_id: str = ""
    deals_tab: str = "Deals"
    admins_tab: str = "Admins"

    # -- Service account, inline (production) ----------------------------------
    google_sheets_client_email: str = ""
    google_sheets_private_key: SecretStr = SecretStr("")
    google_project_id: str = ""
    google_private_key_id: str = ""
    google_client_id_service: str = ""

    # -- Service account, key file (development) -------------------------------
    google_private_key_path: Path = DEFAULT_KEY_PATH

    # -- Access control --------------------------------------------------------
    approver_emails: Annotated[list[str], NoDecode] = []

    @field_validator("approver_emails", mode="before")
    @classmethod
    def split_approver_emails(cls, v: object) -> object:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [part.strip().lower() for part in v.split(",") if part.strip()]
        return v

    @property
    def has_inline_credentials(self) -> bool:
        return bool(
            self.google_sheets_client_email and self.google_sheets_private_key.get_secret_value()
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    The ``@lru_cache`` decorator ensures environment variables are parsed
    exactly once.  Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list -- never the full exception
        # which may contain raw SecretStr values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_credentials(settings: Settings) -> None:
    """Enforce credential presence at startup.

    In **production** mode (``settings.production is True``), the application
    exits with a clear error block if the spreadsheet id is missing or no
    service-account source is usable.

    In **development** mode, each problem is logged as a warning but the
    application continues to start.

    Args:
        settings: The loaded application settings.
    """
    errors: list[str] = []

    if not settings.google_sheets_spreadsheet_id:
        errors.append("GOOGLE_SHEETS_SPREADSHEET_ID is empty or not set")

    if not settings.has_inline_credentials:
        key_path = settings.google_private_key_path.expanduser()
        if not key_path.exists():
            errors.append(
                f"No inline service account credentials and key file not found: {key_path}"
            )

    if not errors:
        logger.info("credential_validation_passed")
        return

    if settings.production:
        for err in errors:
            logger.error("credential_missing", detail=err)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print("Missing required credentials for production mode:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        for err in errors:
            logger.warning("credential_missing_dev", detail=err)
