"""Invoice domain models.

All amounts are stored in cents (integer) to avoid floating point issues.
$10.00 = 1000 cents. Tax is a flat stored amount, never computed here.
"""

import logging
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from core.models.base import Cents, DocumentModel, LenientDatetime
from utils.fields import address_display

logger = logging.getLogger(__name__)


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    VOID = "void"


class InvoiceLine(DocumentModel):
    id: str
    label: str
    amount_cents: Cents = 0


class InvoiceMoney(DocumentModel):
    """
    Invoice money block.

    total = subtotal + tax. A missing total is derived. A stored total that
    disagrees is kept as billed; see InvoiceDoc.money_mismatches().
    """

    subtotal_cents: Cents = 0
    tax_cents: Cents = 0
    total_cents: int | None = Field(None, ge=0)
    labor_cents: Cents = 0
    materials_cents: Cents = 0
    extra_cents: Cents = 0

    @model_validator(mode="after")
    def derive_total(self) -> "InvoiceMoney":
        if self.total_cents is None:
            self.total_cents = self.subtotal_cents + self.tax_cents
        return self


def money_mismatches(money: InvoiceMoney, lines: list[InvoiceLine]) -> list[str]:
    """
    Violations of total == subtotal + tax and sum(lines) == subtotal.

    An empty line list skips the line check (legacy invoices carry money only).
    """
    problems = []
    expected = money.subtotal_cents + money.tax_cents
    if money.total_cents != expected:
        problems.append(f"total_cents {money.total_cents} != subtotal_cents + tax_cents ({expected})")
    if lines:
        lines_total = sum(line.amount_cents for line in lines)
        if lines_total != money.subtotal_cents:
            problems.append(f"sum of line amounts ({lines_total}) != subtotal_cents ({money.subtotal_cents})")
    return problems


class InvoiceCustomer(DocumentModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class AddressSnapshot(DocumentModel):
    """Job address frozen onto the invoice at creation time."""

    full_line: str | None = None
    line1: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


class InvoiceDoc(DocumentModel):
    """Full invoice document as stored."""

    id: str
    org_id: str | None = None
    job_id: str | None = None
    number: str = ""
    status: InvoiceStatus = InvoiceStatus.DRAFT
    lines: list[InvoiceLine] = Field(default_factory=list)
    money: InvoiceMoney = Field(default_factory=InvoiceMoney)
    customer: InvoiceCustomer | None = None
    address_snapshot: AddressSnapshot | None = None
    description: str | None = None
    payment_note: str | None = None
    created_at: LenientDatetime = None
    updated_at: LenientDatetime = None
    sent_at: LenientDatetime = None
    paid_at: LenientDatetime = None
    voided_at: LenientDatetime = None

    @model_validator(mode="after")
    def log_money_mismatches(self) -> "InvoiceDoc":
        # Stored invoices are reported as billed; inconsistencies are only logged.
        for problem in self.money_mismatches():
            logger.warning("Invoice %s: %s", self.id, problem)
        return self

    def money_mismatches(self) -> list[str]:
        return money_mismatches(self.money, self.lines)

    @property
    def total_cents(self) -> int:
        return self.money.total_cents or 0

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @property
    def address_label(self) -> str:
        if self.address_snapshot is None:
            return ""
        return address_display(self.address_snapshot.model_dump(by_alias=True))


class InvoiceExtra(BaseModel):
    """Additional billable line entered at invoice creation."""

    label: str = Field(..., min_length=1, max_length=200)
    amount_cents: int = Field(..., gt=0)


class InvoiceCreate(BaseModel):
    """Data required to create an invoice (always for a job)."""

    job_id: str
    customer: InvoiceCustomer | None = None
    description: str | None = Field(None, max_length=2000)
    extras: list[InvoiceExtra] = Field(default_factory=list)
    tax_cents: int = Field(0, ge=0)
    status: InvoiceStatus = InvoiceStatus.DRAFT

    @model_validator(mode="after")
    def check_initial_status(self) -> "InvoiceCreate":
        if self.status not in (InvoiceStatus.DRAFT, InvoiceStatus.SENT):
            raise ValueError("New invoices must be created as draft or sent")
        return self
