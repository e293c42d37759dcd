"""Payout domain model: money owed or paid to an employee or crew."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

from core.models.base import Cents, DocumentModel, LenientDatetime
from utils.fields import address_display, person_name


class Payout(DocumentModel):
    """
    A labor payout.

    Stored globally in the payouts collection (employee_id set) or embedded
    in a job's expenses (payee_nickname set). paid_at absent means pending.
    """

    id: str
    org_id: str | None = None
    employee_id: str | None = None
    job_id: str | None = None
    category: str | None = None
    amount_cents: Cents = 0
    payee_nickname: str | None = None
    employee_name_snapshot: str | dict[str, Any] | None = None
    job_address_snapshot: str | dict[str, Any] | None = None
    method: str | None = None
    memo: str | None = None
    sqft: float | None = Field(None, ge=0)
    rate_per_sq_ft: float | None = Field(None, ge=0)
    created_at: LenientDatetime = None
    paid_at: LenientDatetime = None

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    @property
    def reference_date(self) -> datetime | None:
        return self.created_at

    @property
    def employee_name(self) -> str:
        """Display name from the snapshot, else the payee nickname."""
        return person_name(self.employee_name_snapshot) or (self.payee_nickname or "").strip()

    @property
    def job_address(self) -> str:
        return address_display(self.job_address_snapshot)


class PayoutCreate(BaseModel):
    """
    Data for a payout added to a job.

    Either amount_cents or both sqft and rate_per_sq_ft must be given.
    """

    amount_cents: int | None = Field(None, ge=0)
    sqft: float | None = Field(None, ge=0)
    rate_per_sq_ft: float | None = Field(None, ge=0)
    employee_id: str | None = None
    employee_name: str | None = Field(None, max_length=200)
    payee_nickname: str | None = Field(None, max_length=200)
    category: str | None = Field(None, max_length=100)
    method: str | None = Field(None, max_length=50)
    memo: str | None = Field(None, max_length=2000)
    paid: bool = False

    @model_validator(mode="after")
    def check_amount_source(self) -> "PayoutCreate":
        if self.amount_cents is None and (self.sqft is None or self.rate_per_sq_ft is None):
            raise ValueError("Provide amount_cents, or sqft with rate_per_sq_ft")
        return self


class MarkPayoutsPaid(BaseModel):
    """Payout ids to mark paid together."""

    payout_ids: list[str] = Field(..., min_length=1, max_length=500)

    @model_validator(mode="after")
    def dedupe(self) -> "MarkPayoutsPaid":
        self.payout_ids = list(dict.fromkeys(self.payout_ids))
        return self


class PayoutStub(BaseModel):
    """
    Pay stub for payouts settled together.

    payouts carries every selected payout, including ones that were already
    paid; newly_paid counts only those marked by this request.
    """

    employee_id: str | None = None
    employee_name: str = ""
    paid_at: datetime
    payouts: list[Payout] = Field(default_factory=list)
    total_cents: int = 0
    newly_paid: int = 0
