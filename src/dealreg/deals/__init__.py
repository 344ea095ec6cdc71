"""Deal registration domain models and sheet-backed repositories."""

from dealreg.deals.models import AdminEntry, Deal, DealSubmission
from dealreg.deals.repository import (
    AdminAlreadyExistsError,
    AdminNotFoundError,
    AdminRepository,
    AdminSelfRemovalError,
    DealNotFoundError,
    DealRegistrationError,
    DealRepository,
    InvalidDealTransitionError,
    TabNotConfiguredError,
)
from dealreg.deals.types import AdminStatus, ContractType, DealStage, DealStatus, PrimaryProduct

__all__ = [
    "AdminAlreadyExistsError",
    "AdminEntry",
    "AdminNotFoundError",
    "AdminRepository",
    "AdminSelfRemovalError",
    "AdminStatus",
    "ContractType",
    "Deal",
    "DealNotFoundError",
    "DealRegistrationError",
    "DealRepository",
    "DealStage",
    "DealStatus",
    "DealSubmission",
    "InvalidDealTransitionError",
    "PrimaryProduct",
    "TabNotConfiguredError",
]
