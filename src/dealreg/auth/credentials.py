"""Google Sheets service account credential management.

Resolves a service account from one of two sources, in fixed order:

1. Inline settings (``GOOGLE_SHEETS_CLIENT_EMAIL`` + ``GOOGLE_SHEETS_PRIVATE_KEY``)
   as used by the hosted deployment.  Literal ``\\n`` sequences in the key
   are unescaped into real newlines.
2. A JSON key file at ``GOOGLE_PRIVATE_KEY_PATH`` for local development.

Nothing here touches the network: gspread authorizes lazily on the first
API request, so configuration problems surface before any call is made.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import gspread
import structlog

from dealreg.config import Settings

logger = structlog.get_logger()

SHEETS_SCOPES: list[str] = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]

TOKEN_URI = "https://oauth2.googleapis.com/token"


class SheetsConfigurationError(RuntimeError):
    """No usable service account credential source is configured."""


def build_service_account_info(settings: Settings) -> dict[str, Any]:
    """Assemble a service account info dict from inline settings.

    Args:
        settings: Application settings carrying the inline credential fields.

    Returns:
        A dict in the shape of a Google service account JSON key.
    """
    private_key = settings.google_sheets_private_key.get_secret_value().replace("\\n", "\n")
    return {
        "type": "service_account",
        "project_id": settings.google_project_id,
        "private_key_id": settings.google_private_key_id,
        "private_key": private_key,
        "client_email": settings.google_sheets_client_email,
        "client_id": settings.google_client_id_service,
        "token_uri": TOKEN_URI,
    }


def get_sheets_client(settings: Settings) -> gspread.Client:
    """Load a gspread client using service account credentials.

    Args:
        settings: Application settings.

    Returns:
        An authenticated ``gspread.Client``.

    Raises:
        SheetsConfigurationError: If neither inline credentials nor an
            existing key file are available, or the material is malformed.
    """
    if settings.has_inline_credentials:
        logger.info("sheets_credentials_source", source="environment")
        info = build_service_account_info(settings)
        try:
            return gspread.service_account_from_dict(info, scopes=SHEETS_SCOPES)
        except (ValueError, KeyError) as exc:
            raise SheetsConfigurationError(
                f"Inline service account credentials are invalid: {exc}"
            ) from exc

    key_path = Path(settings.google_private_key_path).expanduser()
    logger.info("sheets_credentials_source", source="key_file", path=str(key_path))
    if not key_path.is_file():
        raise SheetsConfigurationError(f"Google service account key file not found at: {key_path}")

    try:
        return gspread.service_account(filename=str(key_path), scopes=SHEETS_SCOPES)
    except (ValueError, KeyError) as exc:
        raise SheetsConfigurationError(
            f"Google service account key file is invalid: {key_path}"
        ) from exc
