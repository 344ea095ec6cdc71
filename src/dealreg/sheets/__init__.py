"""Google Sheets data-access layer for deal registration."""

from dealreg.sheets.client import SheetsClient, create_sheets_client
from dealreg.sheets.models import LookupStatus, RowLookup, SheetRecord
from dealreg.sheets.records import merge_row, record_to_row, row_to_record, rows_to_records

__all__ = [
    "LookupStatus",
    "RowLookup",
    "SheetRecord",
    "SheetsClient",
    "create_sheets_client",
    "merge_row",
    "record_to_row",
    "row_to_record",
    "rows_to_records",
]
