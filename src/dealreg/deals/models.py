"""Pydantic v2 models for deal registrations and the admin allow-list.

``DealSubmission`` validates what a partner sends from the registration
form (camelCase or snake_case keys).  ``Deal`` and ``AdminEntry`` are the
stored shapes, rebuilt from sheet records where every cell is a string.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from dealreg.deals.types import ContractType, DealStage, PrimaryProduct
from dealreg.sheets.models import SheetRecord

MAX_CLOSE_WINDOW_DAYS = 60

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(value: str) -> str:
    """Strip and lower-case an email, rejecting obviously malformed ones."""
    email = value.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError(f"invalid email address: {value!r}")
    return email


class DealSubmission(BaseModel):
    """A deal registration as submitted by a partner."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    company_name: str = Field(min_length=1)
    domain: str = Field(min_length=1)
    customer_legal_name: str = ""
    partner_company: str = ""
    submitter_name: str = Field(min_length=1)
    submitter_email: str
    territory: str = ""
    customer_industry: str = ""
    customer_location: str = ""
    deal_stage: DealStage
    expected_close_date: date
    deal_value: Decimal = Field(gt=0)
    contract_type: ContractType
    primary_product: PrimaryProduct | None = None
    additional_notes: str = ""

    @field_validator("submitter_email")
    @classmethod
    def submitter_email_must_be_valid(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("domain")
    @classmethod
    def normalize_domain(cls, v: str) -> str:
        """Lower-case the domain and drop any scheme or path."""
        domain = re.sub(r"^https?://", "", v.lower()).split("/")[0]
        if not domain:
            raise ValueError("domain must not be empty")
        return domain

    @field_validator("deal_value", mode="before")
    @classmethod
    def parse_currency(cls, v: object) -> object:
        """Accept display-formatted values such as ``"$25,000"``."""
        if isinstance(v, float):
            return str(v)
        if isinstance(v, str):
            cleaned = re.sub(r"[^0-9.\-]", "", v)
            try:
                return Decimal(cleaned)
            except InvalidOperation as exc:
                raise ValueError(f"invalid deal value: {v!r}") from exc
        return v

    @field_validator("primary_product", mode="before")
    @classmethod
    def blank_product_is_none(cls, v: object) -> object:
        if v == "":
            return None
        return v

    @field_validator("expected_close_date")
    @classmethod
    def close_date_within_window(cls, v: date) -> date:
        """The expected close date must fall within the next 60 days."""
        today = date.today()
        if v < today:
            raise ValueError("Expected close date must be in the future")
        if v > today + timedelta(days=MAX_CLOSE_WINDOW_DAYS):
            raise ValueError(
                f"Expected close date cannot be more than {MAX_CLOSE_WINDOW_DAYS} days from today"
            )
        return v

    def to_row_values(self) -> dict[str, str]:
        """Render submission fields as sheet cell strings."""
        values = self.model_dump(mode="json")
        return {key: "" if value is None else str(value) for key, value in values.items()}


class Deal(BaseModel):
    """A stored deal row.  Every field is a cell string."""

    model_config = ConfigDict(frozen=True)

    id: str
    status: str = ""
    created_at: str = ""
    company_name: str = ""
    domain: str = ""
    customer_legal_name: str = ""
    partner_company: str = ""
    submitter_name: str = ""
    submitter_email: str = ""
    territory: str = ""
    customer_industry: str = ""
    customer_location: str = ""
    deal_stage: str = ""
    expected_close_date: str = ""
    deal_value: str = ""
    contract_type: str = ""
    primary_product: str = ""
    additional_notes: str = ""
    approved_by: str = ""
    approved_at: str = ""
    rejection_reason: str = ""
    row_index: int | None = Field(default=None, exclude=True)

    @classmethod
    def from_record(cls, record: SheetRecord) -> Deal:
        known = {name: value for name, value in record.values.items() if name in cls.model_fields}
        return cls(**known, row_index=record.row_index)

    def to_row_values(self) -> dict[str, Any]:
        return self.model_dump()


class AdminEntry(BaseModel):
    """One entry in the admin allow-list tab."""

    model_config = ConfigDict(frozen=True)

    email: str
    added_by: str = ""
    added_at: str = ""
    status: str = ""
    row_index: int | None = Field(default=None, exclude=True)

    @classmethod
    def from_record(cls, record: SheetRecord) -> AdminEntry:
        known = {name: value for name, value in record.values.items() if name in cls.model_fields}
        return cls(**known, row_index=record.row_index)
