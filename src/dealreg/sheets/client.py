"""Google Sheets client for deal registration data.

Wraps ``gspread`` to expose four row-level primitives over one spreadsheet:
read a tab, append a row, overwrite a row by index, and find the first row
whose column matches a value.  Every read re-fetches the whole tab; there is
no cache and no index.

Concurrent writers are not coordinated.  Two ``update_row`` calls on the same
index end last-write-wins, and a ``find_row_by_value`` followed by
``update_row`` can observe a row that changes in between.  Failures are
logged with the tab and operation and re-raised unchanged, without retry.
"""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import gspread
import structlog
from gspread.utils import absolute_range_name

from dealreg.auth.credentials import get_sheets_client
from dealreg.config import Settings
from dealreg.sheets.models import LookupStatus, RowLookup, SheetRecord
from dealreg.sheets.records import HEADER_ROW_INDEX, row_to_record, rows_to_records

logger = structlog.get_logger()

VALUE_INPUT_OPTION = "USER_ENTERED"
APPEND_COLUMN_SPAN = "A:ZZ"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits: list[str] = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


class SheetsClient:
    """Row-level access to the deal registration spreadsheet.

    The client starts **uninitialized**.  The first operation (or an explicit
    ``initialize()``) runs the credential loader once and opens the
    spreadsheet; the authenticated session is then reused for the life of
    the client.  ``close()`` drops it again.

    Args:
        loader: Zero-argument callable returning an authenticated
            ``gspread.Client``.  Raises on configuration errors.
        spreadsheet_id: The Google Sheets spreadsheet ID.
    """

    def __init__(self, loader: Callable[[], gspread.Client], spreadsheet_id: str) -> None:
        self._loader = loader
        self._spreadsheet_id = spreadsheet_id
        self._gc: gspread.Client | None = None
        self._spreadsheet: gspread.Spreadsheet | None = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._spreadsheet is not None

    def initialize(self) -> None:
        """Authenticate and open the spreadsheet, once.

        Raises:
            SheetsConfigurationError: If no credential source is usable.
        """
        self._get_spreadsheet()

    def close(self) -> None:
        with self._lock:
            self._gc = None
            self._spreadsheet = None

    def _get_spreadsheet(self) -> gspread.Spreadsheet:
        with self._lock:
            if self._spreadsheet is not None:
                return self._spreadsheet
            try:
                gc = self._loader()
                spreadsheet = gc.open_by_key(self._spreadsheet_id)
            except Exception:
                logger.error("sheets_auth_failed", exc_info=True)
                raise
            self._gc = gc
            self._spreadsheet = spreadsheet
            logger.info("sheets_auth_succeeded", spreadsheet_id=self._spreadsheet_id)
            return spreadsheet

    @contextmanager
    def _operation(self, operation: str, tab: str | None = None) -> Iterator[None]:
        try:
            yield
        except Exception:
            logger.error("sheets_operation_failed", operation=operation, tab=tab, exc_info=True)
            raise

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def get_sheet_data(self, tab: str, cell_range: str | None = None) -> list[list[str]]:
        """Fetch every cell value of ``tab``, or of ``tab!cell_range``.

        Args:
            tab: Name of the worksheet tab.
            cell_range: Optional A1 range within the tab, e.g. ``"A1:C10"``.

        Returns:
            Rows of string cells, header first.  ``[]`` if the tab is empty.
        """
        with self._operation("get_sheet_data", tab):
            spreadsheet = self._get_spreadsheet()
            response = spreadsheet.values_get(absolute_range_name(tab, cell_range))
        return response.get("values", [])

    def append_to_sheet(self, tab: str, values: Sequence[Any]) -> dict[str, Any]:
        """Append ``values`` as a new physical row at the end of ``tab``.

        Not idempotent: calling twice appends twice.

        Returns:
            The Sheets API response payload.
        """
        with self._operation("append_to_sheet", tab):
            spreadsheet = self._get_spreadsheet()
            response = spreadsheet.values_append(
                absolute_range_name(tab, APPEND_COLUMN_SPAN),
                params={
                    "valueInputOption": VALUE_INPUT_OPTION,
                    "insertDataOption": "INSERT_ROWS",
                },
                body={"values": [list(values)]},
            )
        logger.info("sheets_row_appended", tab=tab)
        return response

    def update_row(self, tab: str, row_index: int, values: Sequence[Any]) -> dict[str, Any]:
        """Overwrite the whole row at 1-based ``row_index`` with ``values``.

        The caller supplies the full header-aligned row; there is no merge.

        Raises:
            ValueError: If ``row_index`` is below 1.
        """
        if row_index < 1:
            raise ValueError(f"row_index must be >= 1, got {row_index}")

        with self._operation("update_row", tab):
            spreadsheet = self._get_spreadsheet()
            response = spreadsheet.values_update(
                absolute_range_name(tab, f"{row_index}:{row_index}"),
                params={"valueInputOption": VALUE_INPUT_OPTION},
                body={"values": [list(values)]},
            )
        logger.info("sheets_row_updated", tab=tab, row_index=row_index)
        return response

    def find_row_by_value(self, tab: str, column: str, value: str) -> RowLookup:
        """Return the first row whose ``column`` cell equals ``value`` exactly.

        Always a full tab fetch followed by a linear scan.

        Returns:
            A ``RowLookup``; ``found`` is false for an empty tab, a missing
            column, or no matching row.
        """
        data = self.get_sheet_data(tab)
        if not data:
            return RowLookup.miss(LookupStatus.EMPTY_TAB)

        header = data[0]
        if column not in header:
            return RowLookup.miss(LookupStatus.MISSING_COLUMN)
        position = header.index(column)

        for offset, row in enumerate(data[1:], start=1):
            if position < len(row) and row[position] == value:
                return RowLookup.hit(row_to_record(header, row, HEADER_ROW_INDEX + offset))

        return RowLookup.miss(LookupStatus.NO_MATCH)

    def get_header(self, tab: str) -> list[str]:
        """Return the header row of ``tab`` (``[]`` for an empty tab)."""
        data = self.get_sheet_data(tab, f"{HEADER_ROW_INDEX}:{HEADER_ROW_INDEX}")
        return data[0] if data else []

    def read_records(self, tab: str) -> list[SheetRecord]:
        """Fetch ``tab`` and map every data row through its header."""
        return rows_to_records(self.get_sheet_data(tab))

    # ------------------------------------------------------------------
    # Diagnostics and helpers
    # ------------------------------------------------------------------

    def test_connection(self) -> dict[str, Any]:
        """Fetch spreadsheet metadata to check the spreadsheet is reachable.

        Returns:
            ``{"success": True, "title": ..., "sheets": [tab titles]}``.
        """
        with self._operation("test_connection"):
            metadata = self._get_spreadsheet().fetch_sheet_metadata()

        title = metadata["properties"]["title"]
        sheets = [sheet["properties"]["title"] for sheet in metadata.get("sheets", [])]
        logger.info("sheets_connection_ok", title=title, tabs=len(sheets))
        return {"success": True, "title": title, "sheets": sheets}

    @staticmethod
    def generate_id() -> str:
        """Opaque record id: base-36 millisecond timestamp plus random bits.

        Human-distinguishable, not a security token.
        """
        return "ID_" + _base36(time.time_ns() // 1_000_000) + _base36(random.getrandbits(52))

    @staticmethod
    def current_timestamp() -> str:
        """ISO 8601 UTC timestamp with millisecond precision."""
        return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_sheets_client(settings: Settings) -> SheetsClient:
    """Create an uninitialized ``SheetsClient`` from application settings.

    Credentials are resolved on first use, not here.

    Args:
        settings: Application settings.

    Returns:
        A ``SheetsClient`` ready to ``initialize()``.
    """
    return SheetsClient(lambda: get_sheets_client(settings), settings.google_sheets_spreadsheet_id)
