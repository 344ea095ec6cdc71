"""Translate between header-relative row arrays and named-field records.

No schema validation happens here: the header row actually present in the
tab decides which fields exist.  Short rows pad with empty strings, unknown
fields are dropped when projecting back to a row.  Merges work by column
position, so blank or repeated header cells keep their own values.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from gspread.utils import a1_range_to_grid_range

from dealreg.sheets.models import SheetRecord

HEADER_ROW_INDEX = 1


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def row_to_mapping(header: Sequence[str], row: Sequence[Any]) -> dict[str, str]:
    """Map each header name to the matching cell, ``""`` when the row is short."""
    return {
        name: _cell(row[position]) if position < len(row) else ""
        for position, name in enumerate(header)
    }


def row_to_record(header: Sequence[str], row: Sequence[Any], row_index: int) -> SheetRecord:
    """Build a ``SheetRecord`` for the data row at physical ``row_index``."""
    return SheetRecord(
        values=row_to_mapping(header, row),
        row_index=row_index,
        header=[_cell(name) for name in header],
        cells=[_cell(value) for value in row],
    )


def rows_to_records(
    data: Sequence[Sequence[Any]], header_row: int = HEADER_ROW_INDEX
) -> list[SheetRecord]:
    """Map every data row of a fetch (header first) to records.

    Args:
        data: Rows as returned by the values API, header row first.
        header_row: Physical row number of ``data[0]``.  Data rows are
            numbered from the row after it.
    """
    if not data:
        return []
    header = data[0]
    return [
        row_to_record(header, row, header_row + offset)
        for offset, row in enumerate(data[1:], start=1)
    ]


def range_start_row(cell_range: str | None) -> int:
    """Physical row number of the first row an A1 range covers.

    Column-only ranges such as ``"A:D"`` start at row 1.
    """
    if not cell_range:
        return HEADER_ROW_INDEX
    return a1_range_to_grid_range(cell_range).get("startRowIndex", 0) + 1


def record_to_row(record: Mapping[str, Any], header: Sequence[str]) -> list[str]:
    """Project a mapping onto ``header`` order.

    Fields missing from ``record`` serialize as ``""``; keys with no matching
    header (including ``_rowIndex``) are dropped.
    """
    return [_cell(record.get(name)) for name in header]


def merge_row(
    header: Sequence[str], row: Sequence[Any], changes: Mapping[str, Any]
) -> list[str]:
    """Return the full row after applying ``changes`` to an existing ``row``.

    Every column keeps its own cell unless its header name is in
    ``changes``.  Used for partial updates, which the sheet layer only
    supports as a read-modify-write of the whole row.
    """
    return [
        _cell(changes[name]) if name in changes else (_cell(row[i]) if i < len(row) else "")
        for i, name in enumerate(header)
    ]
