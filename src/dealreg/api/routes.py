"""FastAPI routes for deal submission and admin review.

Partners post deals to ``/api/deals``.  Everything under ``/api/admin``
requires an ``X-User-Email`` header naming an admin: a bootstrap approver
from settings or an active entry in the admin allow-list tab.  Identity
itself is established upstream by the login flow; this layer only checks
membership.

Repositories are synchronous (gspread), so each call runs in a worker
thread via ``asyncio.to_thread`` and requests proceed concurrently.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Annotated, Any, TypeVar

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel

from dealreg.deals.models import DealSubmission
from dealreg.deals.repository import (
    AdminAlreadyExistsError,
    AdminNotFoundError,
    AdminRepository,
    AdminSelfRemovalError,
    DealNotFoundError,
    DealRegistrationError,
    DealRepository,
    InvalidDealTransitionError,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api")

T = TypeVar("T")

_STATUS_BY_ERROR: dict[type[DealRegistrationError], int] = {
    DealNotFoundError: 404,
    AdminNotFoundError: 404,
    InvalidDealTransitionError: 409,
    AdminAlreadyExistsError: 409,
    AdminSelfRemovalError: 400,
}


class ApproveRequest(BaseModel):
    approver_name: str = ""


class RejectRequest(BaseModel):
    approver_name: str = ""
    rejection_reason: str = ""


class AdminEmailRequest(BaseModel):
    email: str


async def _call(func: Callable[..., T], *args: Any) -> T:
    """Run a repository call in a worker thread and map its failures to HTTP.

    Raises:
        HTTPException: 400/404/409 for domain errors, 422 for invalid input,
            502 for spreadsheet failures.
    """
    try:
        return await asyncio.to_thread(func, *args)
    except DealRegistrationError as exc:
        status = _STATUS_BY_ERROR.get(type(exc), 500)
        logger.warning("request_rejected", error=type(exc).__name__, detail=str(exc))
        raise HTTPException(status_code=status, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(
            "spreadsheet_request_failed",
            operation=getattr(func, "__name__", repr(func)),
            exc_info=True,
        )
        raise HTTPException(status_code=502, detail="Spreadsheet request failed") from exc


def _services(request: Request) -> dict[str, Any]:
    return request.app.state.services


def get_deal_repository(request: Request) -> DealRepository:
    repository = _services(request).get("deal_repository")
    if repository is None:
        raise HTTPException(status_code=503, detail="Spreadsheet storage not configured")
    return repository


def get_admin_repository(request: Request) -> AdminRepository:
    repository = _services(request).get("admin_repository")
    if repository is None:
        raise HTTPException(status_code=503, detail="Spreadsheet storage not configured")
    return repository


async def require_admin(
    admins: Annotated[AdminRepository, Depends(get_admin_repository)],
    x_user_email: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the caller's email and check it against the allow-list.

    Returns:
        The caller's lower-cased email.

    Raises:
        HTTPException: 401 without an ``X-User-Email`` header, 403 when the
            email is not an admin.
    """
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Email header")
    email = x_user_email.strip().lower()
    if not await _call(admins.is_admin, email):
        logger.warning("admin_access_denied", email=email)
        raise HTTPException(status_code=403, detail="Not an approver")
    return email


DealRepo = Annotated[DealRepository, Depends(get_deal_repository)]
AdminRepo = Annotated[AdminRepository, Depends(get_admin_repository)]
AdminEmail = Annotated[str, Depends(require_admin)]


# --- Partner routes ---


@router.post("/deals", status_code=201)
async def submit_deal(submission: DealSubmission, deals: DealRepo) -> dict[str, Any]:
    """Register a new deal in pending status."""
    deal = await _call(deals.submit, submission)
    return {"success": True, "deal": deal.model_dump()}


@router.get("/deals/{deal_id}")
async def get_deal(deal_id: str, deals: DealRepo) -> dict[str, Any]:
    deal = await _call(deals.get, deal_id)
    if deal is None:
        raise HTTPException(status_code=404, detail=f"Deal '{deal_id}' not found")
    return {"deal": deal.model_dump()}


# --- Admin routes ---


@router.get("/admin/pending-deals")
async def pending_deals(deals: DealRepo, admin: AdminEmail) -> dict[str, Any]:
    """List every deal still awaiting a decision."""
    pending = await _call(deals.list_pending)
    return {"deals": [deal.model_dump() for deal in pending]}


@router.post("/admin/deals/{deal_id}/approve")
async def approve_deal(
    deal_id: str, body: ApproveRequest, deals: DealRepo, admin: AdminEmail
) -> dict[str, Any]:
    approver = body.approver_name.strip() or admin
    deal = await _call(deals.approve, deal_id, approver)
    return {"success": True, "deal": deal.model_dump()}


@router.post("/admin/deals/{deal_id}/reject")
async def reject_deal(
    deal_id: str, body: RejectRequest, deals: DealRepo, admin: AdminEmail
) -> dict[str, Any]:
    approver = body.approver_name.strip() or admin
    deal = await _call(deals.reject, deal_id, approver, body.rejection_reason.strip())
    return {"success": True, "deal": deal.model_dump()}


@router.get("/admin/list")
async def list_admins(admins: AdminRepo, admin: AdminEmail) -> dict[str, Any]:
    entries = await _call(admins.list_admins)
    return {"admins": [entry.model_dump() for entry in entries]}


@router.post("/admin/add")
async def add_admin(
    body: AdminEmailRequest, admins: AdminRepo, admin: AdminEmail
) -> dict[str, Any]:
    """Add ``body.email`` as an admin, recorded as added by the caller."""
    entry = await _call(admins.add, body.email, admin)
    return {"success": True, "admin": entry.model_dump()}


@router.post("/admin/remove")
async def remove_admin(
    body: AdminEmailRequest, admins: AdminRepo, admin: AdminEmail
) -> dict[str, Any]:
    """Remove ``body.email``.  The caller cannot remove themselves."""
    entry = await _call(admins.remove, body.email, admin)
    return {"success": True, "admin": entry.model_dump()}
