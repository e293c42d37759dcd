"""
Job domain models.

A job caches its money totals so lists can sort and sum without walking the
embedded earning/payout/material arrays. `computed` is derived from the
cached totals by core.recompute and must never be written by hand.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from core.models.base import Cents, DocumentModel, LenientDatetime, SignedCents
from core.models.payout import Payout
from utils.fields import address_display


class JobStatus(str, Enum):
    """Job lifecycle status. Transitions are driven outside this package."""

    DRAFT = "draft"
    ACTIVE = "active"
    PENDING = "pending"
    INVOICED = "invoiced"
    PAID = "paid"
    CLOSED = "closed"
    ARCHIVED = "archived"
    COMPLETED = "completed"


class EarningEntry(DocumentModel):
    """One payment received for a job (insurance check, final payment...)."""

    id: str
    label: str | None = None
    amount_cents: Cents = 0
    received_at: LenientDatetime = None
    reference: str | None = None


class MaterialExpense(DocumentModel):
    """Material purchase embedded in a job's expenses."""

    id: str
    name: str = ""
    vendor: str | None = None
    amount_cents: Cents = 0
    category: str | None = None
    unit_price_cents: int | None = Field(None, ge=0)
    quantity: int | None = Field(None, ge=0)
    purchased_at: LenientDatetime = None
    created_at: LenientDatetime = None
    notes: str | None = None

    @property
    def reference_date(self) -> datetime | None:
        return self.purchased_at or self.created_at


class Earnings(DocumentModel):
    total_earnings_cents: Cents = 0
    entries: list[EarningEntry] = Field(default_factory=list)
    currency: str = "USD"


class Expenses(DocumentModel):
    total_payouts_cents: Cents = 0
    total_materials_cents: Cents = 0
    payouts: list[Payout] = Field(default_factory=list)
    materials: list[MaterialExpense] = Field(default_factory=list)
    currency: str = "USD"


class JobComputed(DocumentModel):
    """Derived totals: payouts + materials, and earnings minus that."""

    total_expenses_cents: SignedCents = 0
    net_profit_cents: SignedCents = 0


class Job(DocumentModel):
    """Full job document as stored."""

    id: str
    org_id: str | None = None
    status: JobStatus = JobStatus.DRAFT
    address: str | dict[str, Any] | None = None
    earnings: Earnings = Field(default_factory=Earnings)
    expenses: Expenses = Field(default_factory=Expenses)
    computed: JobComputed = Field(default_factory=JobComputed)
    summary_notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    sales_rep: str | None = None
    crew: str | None = None
    created_at: LenientDatetime = None
    updated_at: LenientDatetime = None

    @property
    def reference_date(self) -> datetime | None:
        """Date used for range membership and trend bucketing."""
        return self.updated_at or self.created_at

    @property
    def address_label(self) -> str:
        """One-line address, falling back to the job id."""
        return address_display(self.address, fallback=self.id)


class MaterialCreate(BaseModel):
    """
    Data for a material expense.

    Either amount_cents or both unit_price (dollars) and quantity must be given.
    """

    name: str = Field(..., min_length=1, max_length=200)
    amount_cents: int | None = Field(None, ge=0)
    unit_price: float | None = Field(None, ge=0)
    quantity: int | None = Field(None, ge=0)
    vendor: str | None = Field(None, max_length=200)
    category: str | None = Field(None, max_length=100)
    purchased_at: datetime | None = None
    notes: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_amount_source(self) -> "MaterialCreate":
        if self.amount_cents is None and (self.unit_price is None or self.quantity is None):
            raise ValueError("Provide amount_cents, or unit_price with quantity")
        return self


class EarningCreate(BaseModel):
    """
    Earnings update: a single entry, or a lump-sum total when total_earnings_cents is set.
    """

    amount_cents: int | None = Field(None, ge=0)
    total_earnings_cents: int | None = Field(None, ge=0)
    label: str | None = Field(None, max_length=200)
    reference: str | None = Field(None, max_length=200)
    received_at: datetime | None = None

    @model_validator(mode="after")
    def check_one_amount(self) -> "EarningCreate":
        if (self.amount_cents is None) == (self.total_earnings_cents is None):
            raise ValueError("Provide exactly one of amount_cents or total_earnings_cents")
        return self
