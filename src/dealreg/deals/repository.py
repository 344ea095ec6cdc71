"""Deal and admin allow-list storage on top of ``SheetsClient``.

Both repositories are thin: they project models through the header row the
tab actually has, and mutate rows with a read-modify-write of the full row.
There is no locking, so a concurrent edit between the read and the write is
overwritten (last write wins).  Status rules (only pending deals can be
decided, admins cannot remove themselves) live here, not in the sheet layer.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from dealreg.deals.models import AdminEntry, Deal, DealSubmission, normalize_email
from dealreg.deals.types import AdminStatus, DealStatus
from dealreg.sheets.client import SheetsClient
from dealreg.sheets.models import LookupStatus, SheetRecord
from dealreg.sheets.records import merge_row, record_to_row, row_to_record

logger = structlog.get_logger()


class DealRegistrationError(Exception):
    """Base class for domain errors raised by the repositories."""


class TabNotConfiguredError(DealRegistrationError):
    """The tab has no header row, so rows cannot be projected."""


class DealNotFoundError(DealRegistrationError):
    """No deal row carries the requested id."""


class InvalidDealTransitionError(DealRegistrationError):
    """The deal is not in a state that allows the requested decision."""


class AdminNotFoundError(DealRegistrationError):
    """The email is not on the admin allow-list."""


class AdminAlreadyExistsError(DealRegistrationError):
    """The email is already an active admin."""


class AdminSelfRemovalError(DealRegistrationError):
    """An admin tried to remove their own entry."""


def _require_header(client: SheetsClient, tab: str) -> list[str]:
    header = client.get_header(tab)
    if not header:
        raise TabNotConfiguredError(f"Tab '{tab}' has no header row")
    return header


def _rewrite(
    client: SheetsClient, tab: str, record: SheetRecord, changes: Mapping[str, Any]
) -> SheetRecord:
    if record.header:
        header, cells = record.header, record.cells
    else:
        header = _require_header(client, tab)
        cells = record_to_row(record.values, header)
    row = merge_row(header, cells, changes)
    client.update_row(tab, record.row_index, row)
    return row_to_record(header, row, record.row_index)


class DealRepository:
    """Deal rows in the ``Deals`` tab.

    Args:
        client: The shared ``SheetsClient``.
        tab: Name of the deals tab.
    """

    def __init__(self, client: SheetsClient, tab: str = "Deals") -> None:
        self._client = client
        self._tab = tab

    def submit(self, submission: DealSubmission) -> Deal:
        """Append a new pending deal and return it."""
        header = _require_header(self._client, self._tab)
        deal = Deal(
            id=self._client.generate_id(),
            status=DealStatus.PENDING,
            created_at=self._client.current_timestamp(),
            **submission.to_row_values(),
        )
        self._client.append_to_sheet(self._tab, record_to_row(deal.to_row_values(), header))
        logger.info("deal_submitted", deal_id=deal.id, company=deal.company_name)
        return deal

    def list_deals(self, status: str | None = None) -> list[Deal]:
        """Return every deal with a non-empty id, optionally filtered by status."""
        deals = [
            Deal.from_record(record)
            for record in self._client.read_records(self._tab)
            if record.get("id")
        ]
        if status is not None:
            deals = [deal for deal in deals if deal.status == status]
        return deals

    def list_pending(self) -> list[Deal]:
        return self.list_deals(DealStatus.PENDING)

    def get(self, deal_id: str) -> Deal | None:
        lookup = self._client.find_row_by_value(self._tab, "id", deal_id)
        if not lookup.found or lookup.record is None:
            return None
        return Deal.from_record(lookup.record)

    def approve(self, deal_id: str, approver: str) -> Deal:
        """Mark a pending deal approved by ``approver``."""
        return self._decide(
            deal_id,
            {
                "status": DealStatus.APPROVED,
                "approved_by": approver,
                "approved_at": self._client.current_timestamp(),
                "rejection_reason": "",
            },
        )

    def reject(self, deal_id: str, approver: str, reason: str = "") -> Deal:
        """Mark a pending deal rejected by ``approver`` with ``reason``."""
        return self._decide(
            deal_id,
            {
                "status": DealStatus.REJECTED,
                "approved_by": approver,
                "approved_at": self._client.current_timestamp(),
                "rejection_reason": reason,
            },
        )

    def _decide(self, deal_id: str, changes: dict[str, Any]) -> Deal:
        lookup = self._client.find_row_by_value(self._tab, "id", deal_id)
        if lookup.status is LookupStatus.MISSING_COLUMN:
            raise TabNotConfiguredError(f"Tab '{self._tab}' has no 'id' column")
        if not lookup.found or lookup.record is None:
            raise DealNotFoundError(f"Deal '{deal_id}' not found")

        current = lookup.record
        if current.get("status") != DealStatus.PENDING:
            raise InvalidDealTransitionError(
                f"Deal '{deal_id}' is '{current.get('status')}', only pending deals can be decided"
            )

        updated = _rewrite(self._client, self._tab, current, changes)
        logger.info(
            "deal_decided",
            deal_id=deal_id,
            status=changes["status"],
            approved_by=changes["approved_by"],
        )
        return Deal.from_record(updated)


class AdminRepository:
    """The admin allow-list kept in the ``Admins`` tab.

    Args:
        client: The shared ``SheetsClient``.
        tab: Name of the admins tab.
        bootstrap: Emails that are always admins, whatever the tab says.
    """

    def __init__(
        self, client: SheetsClient, tab: str = "Admins", bootstrap: Iterable[str] = ()
    ) -> None:
        self._client = client
        self._tab = tab
        self._bootstrap = frozenset(email.strip().lower() for email in bootstrap if email.strip())

    def list_admins(self) -> list[AdminEntry]:
        return [
            AdminEntry.from_record(record)
            for record in self._client.read_records(self._tab)
            if record.get("email")
        ]

    def _find(self, email: str) -> SheetRecord | None:
        # Stored emails may differ in case, so scan rather than exact-match.
        for record in self._client.read_records(self._tab):
            if record.get("email").strip().lower() == email:
                return record
        return None

    def is_admin(self, email: str) -> bool:
        """True for bootstrap approvers and entries whose status is active."""
        candidate = email.strip().lower()
        if not candidate:
            return False
        if candidate in self._bootstrap:
            return True
        record = self._find(candidate)
        return record is not None and record.get("status") == AdminStatus.ACTIVE

    def add(self, email: str, added_by: str) -> AdminEntry:
        """Add ``email`` as an active admin, reactivating a removed entry.

        Raises:
            AdminAlreadyExistsError: If the email is already active.
        """
        email = normalize_email(email)
        changes = {
            "email": email,
            "added_by": added_by,
            "added_at": self._client.current_timestamp(),
            "status": AdminStatus.ACTIVE,
        }

        existing = self._find(email)
        if existing is not None:
            if existing.get("status") == AdminStatus.ACTIVE:
                raise AdminAlreadyExistsError(f"{email} is already an admin")
            updated = _rewrite(self._client, self._tab, existing, changes)
            logger.info("admin_reactivated", email=email, added_by=added_by)
            return AdminEntry.from_record(updated)

        header = _require_header(self._client, self._tab)
        self._client.append_to_sheet(self._tab, record_to_row(changes, header))
        logger.info("admin_added", email=email, added_by=added_by)
        return AdminEntry(**{key: str(value) for key, value in changes.items()})

    def remove(self, email: str, removed_by: str) -> AdminEntry:
        """Mark ``email`` removed.  The row stays for provenance.

        Raises:
            AdminSelfRemovalError: If ``removed_by`` is ``email``.
            AdminNotFoundError: If the email has no active entry.
        """
        email = normalize_email(email)
        if removed_by.strip().lower() == email:
            raise AdminSelfRemovalError("You cannot remove yourself as an admin")

        existing = self._find(email)
        if existing is None or existing.get("status") != AdminStatus.ACTIVE:
            raise AdminNotFoundError(f"{email} is not an active admin")

        updated = _rewrite(self._client, self._tab, existing, {"status": AdminStatus.REMOVED})
        logger.info("admin_removed", email=email, removed_by=removed_by)
        return AdminEntry.from_record(updated)
