"""Pydantic v2 models for rows read from Google Sheets.

A ``SheetRecord`` is one data row keyed by the tab's header names, plus the
physical row number needed to write it back in place.  The raw header and
cells travel with it: blank or repeated header names collapse in the
mapping, and a rewrite must still land every cell in its own column.
``RowLookup`` is the result of a find-by-value scan and says *why* nothing
was found.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SheetRecord(BaseModel):
    """A single data row mapped through its tab's header row."""

    model_config = ConfigDict(frozen=True)

    values: dict[str, str]
    row_index: int = Field(ge=2, description="1-based physical row number in the tab")
    header: list[str] = Field(default_factory=list, exclude=True)
    cells: list[str] = Field(default_factory=list, exclude=True)

    def get(self, column: str, default: str = "") -> str:
        return self.values.get(column, default)

    def __getitem__(self, column: str) -> str:
        return self.values[column]

    def to_dict(self) -> dict[str, Any]:
        """Render as a plain mapping with the row number under ``_rowIndex``."""
        return {**self.values, "_rowIndex": self.row_index}


class LookupStatus(StrEnum):
    """Outcome of a find-by-value scan."""

    FOUND = "found"
    EMPTY_TAB = "empty_tab"
    MISSING_COLUMN = "missing_column"
    NO_MATCH = "no_match"


class RowLookup(BaseModel):
    """Result of ``SheetsClient.find_row_by_value``.

    Transport and auth failures are never represented here; they raise.
    """

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    record: SheetRecord | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @classmethod
    def hit(cls, record: SheetRecord) -> RowLookup:
        return cls(status=LookupStatus.FOUND, record=record)

    @classmethod
    def miss(cls, status: LookupStatus) -> RowLookup:
        if status is LookupStatus.FOUND:
            raise ValueError("miss() requires a not-found status")
        return cls(status=status)
