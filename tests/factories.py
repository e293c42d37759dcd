"""Document builders shared by the test modules."""

from datetime import datetime, timezone

from core.models import (
    AddressSnapshot,
    Earnings,
    Expenses,
    InvoiceCustomer,
    InvoiceDoc,
    InvoiceLine,
    InvoiceMoney,
    InvoiceStatus,
    Job,
    JobStatus,
    MaterialExpense,
    Payout,
)
from core.recompute import recompute


# =============================================================================
# CONSTANTS
# =============================================================================

TEST_ORG_ID = "org-test"
OTHER_ORG_ID = "org-other"

# Fixed "now" for deterministic range resolution
NOW = datetime(2025, 6, 15, 14, 30, tzinfo=timezone.utc)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_job(
    job_id: str,
    earnings: int = 0,
    payouts: int = 0,
    materials: int = 0,
    status: JobStatus = JobStatus.ACTIVE,
    updated_at: datetime | None = None,
    address=None,
    payout_lines: list[Payout] | None = None,
    material_lines: list[MaterialExpense] | None = None,
) -> Job:
    """Job with cached totals and computed fields in step."""
    return recompute(Job(
        id=job_id,
        org_id=TEST_ORG_ID,
        status=status,
        address=address,
        earnings=Earnings(total_earnings_cents=earnings),
        expenses=Expenses(
            total_payouts_cents=payouts,
            total_materials_cents=materials,
            payouts=payout_lines or [],
            materials=material_lines or [],
        ),
        created_at=updated_at,
        updated_at=updated_at,
    ))


def make_payout(
    payout_id: str,
    amount: int,
    created_at: datetime | None = None,
    employee_id: str | None = "emp-1",
    name: str | None = "Alex Rivera",
    category: str | None = "labor",
    paid: bool = False,
    job_id: str | None = None,
) -> Payout:
    return Payout(
        id=payout_id,
        org_id=TEST_ORG_ID,
        employee_id=employee_id,
        job_id=job_id,
        category=category,
        amount_cents=amount,
        employee_name_snapshot=name,
        created_at=created_at,
        paid_at=created_at if paid else None,
    )


def make_invoice(
    invoice_id: str,
    number: str,
    total: int,
    status: InvoiceStatus = InvoiceStatus.SENT,
    created_at: datetime | None = None,
    paid_at: datetime | None = None,
    job_id: str | None = "job-1",
    customer: InvoiceCustomer | None = None,
    address: AddressSnapshot | None = None,
) -> InvoiceDoc:
    return InvoiceDoc(
        id=invoice_id,
        org_id=TEST_ORG_ID,
        job_id=job_id,
        number=number,
        status=status,
        lines=[InvoiceLine(id="labor", label="Labor (payouts)", amount_cents=total)],
        money=InvoiceMoney(subtotal_cents=total, tax_cents=0, total_cents=total),
        customer=customer,
        address_snapshot=address,
        created_at=created_at,
        updated_at=created_at,
        sent_at=created_at if status != InvoiceStatus.DRAFT else None,
        paid_at=paid_at,
    )

