"""Shared pytest fixtures for the deal registration test suite.

Sheet-backed fixtures run against ``FakeSpreadsheet`` so append/update/read
behaviour can be checked without credentials or network access.
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
import structlog

from dealreg.deals.types import ADMIN_COLUMNS, DEAL_COLUMNS
from dealreg.sheets.client import SheetsClient
from fakes import FakeSpreadsheet


@pytest.fixture()
def deal_row() -> list[str]:
    """A stored pending deal in ``DEAL_COLUMNS`` order."""
    values = {
        "id": "D1",
        "status": "pending",
        "created_at": "2026-10-01T09:00:00.000Z",
        "company_name": "Acme",
        "domain": "acme.com",
        "partner_company": "Northwind Partners",
        "submitter_name": "Pat Lee",
        "submitter_email": "pat@northwind.io",
        "territory": "EMEA",
        "deal_stage": "proposal",
        "expected_close_date": "2026-11-15",
        "deal_value": "25000",
        "contract_type": "new",
        "primary_product": "safe-rag",
    }
    return [values.get(column, "") for column in DEAL_COLUMNS]


@pytest.fixture()
def fake_spreadsheet(deal_row: list[str]) -> FakeSpreadsheet:
    """Spreadsheet with a Deals tab holding one pending deal and an Admins tab."""
    return FakeSpreadsheet(
        tabs={
            "Deals": [list(DEAL_COLUMNS), deal_row],
            "Admins": [
                list(ADMIN_COLUMNS),
                ["root@example.com", "bootstrap", "2026-01-01T00:00:00.000Z", "active"],
                ["former@example.com", "root@example.com", "2026-02-01T00:00:00.000Z", "removed"],
            ],
            "Empty": [],
        }
    )


@pytest.fixture()
def mock_gc(fake_spreadsheet: FakeSpreadsheet) -> MagicMock:
    """A mocked ``gspread.Client`` whose ``open_by_key`` returns the fake."""
    gc = MagicMock()
    gc.open_by_key.return_value = fake_spreadsheet
    return gc


@pytest.fixture()
def sheets_client(mock_gc: MagicMock) -> SheetsClient:
    """A ``SheetsClient`` wired to the in-memory spreadsheet."""
    return SheetsClient(lambda: mock_gc, "test-spreadsheet-id")


@pytest.fixture()
def make_client() -> Callable[..., tuple[SheetsClient, FakeSpreadsheet]]:
    """Factory for a ``SheetsClient`` over a fake spreadsheet with custom tabs."""

    def _make(tabs: dict[str, list[list[str]]]) -> tuple[SheetsClient, FakeSpreadsheet]:
        spreadsheet = FakeSpreadsheet(tabs=tabs)
        gc = MagicMock()
        gc.open_by_key.return_value = spreadsheet
        return SheetsClient(lambda: gc, "test-spreadsheet-id"), spreadsheet

    return _make


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
