"""Shared fixtures for live integration tests.

Provides a session-scoped ``SheetsClient`` built from the same settings as
the service.  Tests skip when the spreadsheet or credentials are not
configured.
"""

from __future__ import annotations

import pytest

from dealreg.config import Settings


@pytest.fixture(scope="session")
def _live_settings() -> Settings:
    """Load application settings from environment for live tests."""
    return Settings()


@pytest.fixture(scope="session")
def live_sheets_client(_live_settings: Settings):
    """Create a real SheetsClient using service account credentials.

    Skips if the spreadsheet id or every credential source is missing.
    """
    if not _live_settings.google_sheets_spreadsheet_id:
        pytest.skip("GOOGLE_SHEETS_SPREADSHEET_ID not configured")

    key_path = _live_settings.google_private_key_path.expanduser()
    if not _live_settings.has_inline_credentials and not key_path.is_file():
        pytest.skip(f"No inline credentials and no key file at: {key_path}")

    from dealreg.sheets.client import create_sheets_client

    client = create_sheets_client(_live_settings)
    yield client
    client.close()
