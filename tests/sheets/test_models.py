"""Tests for SheetRecord and RowLookup models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dealreg.sheets.models import LookupStatus, RowLookup, SheetRecord


class TestSheetRecord:
    """Tests for the SheetRecord model."""

    def test_get_defaults_to_empty_string(self) -> None:
        record = SheetRecord(values={"id": "D1"}, row_index=2)
        assert record.get("status") == ""

    def test_getitem_raises_for_unknown_column(self) -> None:
        record = SheetRecord(values={"id": "D1"}, row_index=2)
        with pytest.raises(KeyError):
            record["status"]

    def test_row_index_cannot_address_header(self) -> None:
        """Data rows start at row 2; row 1 is the header."""
        with pytest.raises(ValidationError):
            SheetRecord(values={"id": "D1"}, row_index=1)

    def test_is_frozen(self) -> None:
        record = SheetRecord(values={"id": "D1"}, row_index=2)
        with pytest.raises(ValidationError):
            record.row_index = 3  # type: ignore[misc]


class TestRowLookup:
    """Tests for the find-by-value result type."""

    def test_hit_is_found(self) -> None:
        record = SheetRecord(values={"id": "D1"}, row_index=2)
        lookup = RowLookup.hit(record)
        assert lookup.found is True
        assert lookup.status is LookupStatus.FOUND
        assert lookup.record == record

    @pytest.mark.parametrize(
        "status",
        [LookupStatus.EMPTY_TAB, LookupStatus.MISSING_COLUMN, LookupStatus.NO_MATCH],
    )
    def test_miss_is_not_found(self, status: LookupStatus) -> None:
        lookup = RowLookup.miss(status)
        assert lookup.found is False
        assert lookup.record is None
        assert lookup.status is status

    def test_miss_rejects_found_status(self) -> None:
        with pytest.raises(ValueError, match="not-found status"):
            RowLookup.miss(LookupStatus.FOUND)
