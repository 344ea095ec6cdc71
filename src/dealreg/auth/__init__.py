"""Authentication module for Google service account credential management."""

from dealreg.auth.credentials import (
    SheetsConfigurationError,
    build_service_account_info,
    get_sheets_client,
)

__all__ = [
    "SheetsConfigurationError",
    "build_service_account_info",
    "get_sheets_client",
]
