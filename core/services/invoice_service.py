"""
Invoice service for billing.

Invoices are always created for a job. Labor and materials lines are taken
from the job's cached payout and material totals at creation time; extra
lines are entered by the user. Lifecycle:

    draft -> sent -> paid
    any non-void status -> void

Marking a paid invoice paid again is a no-op.
"""

import logging
from uuid import uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.event_bus import EventBus
from core.events import InvoiceCreated, InvoicePaid, InvoiceSent, InvoiceVoided
from core.invoice_numbers import InvoiceSequenceGenerator
from core.models import (
    AddressSnapshot,
    InvoiceCreate,
    InvoiceDoc,
    InvoiceLine,
    InvoiceMoney,
    InvoiceStatus,
    Job,
    money_mismatches,
)
from utils.fields import compact, resolve_address
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def build_address_snapshot(job: Job) -> AddressSnapshot | None:
    """Freeze the job's address onto an invoice; None when there is nothing to keep."""
    resolved = resolve_address(job.address or {})
    fields = compact({
        "full_line": resolved["display"] or None,
        "line1": resolved["line1"] or resolved["display"] or None,
        "city": resolved["city"] or None,
        "state": resolved["state"] or None,
        "zip": resolved["zip"] or None,
    })
    return AddressSnapshot(**fields) if fields else None


def build_lines(job: Job, data: InvoiceCreate) -> list[InvoiceLine]:
    """Labor and materials lines from the job's cached totals, then the extras."""
    lines = []
    labor = job.expenses.total_payouts_cents
    materials = job.expenses.total_materials_cents
    if labor > 0:
        lines.append(InvoiceLine(id="labor", label="Labor (payouts)", amount_cents=labor))
    if materials > 0:
        lines.append(InvoiceLine(id="materials", label="Materials", amount_cents=materials))
    for i, extra in enumerate(data.extras):
        lines.append(InvoiceLine(id=f"extra-{i}", label=extra.label.strip(), amount_cents=extra.amount_cents))
    return lines


class InvoiceService:
    """Service for invoice operations within one organization."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        numbers: InvoiceSequenceGenerator,
        event_bus: EventBus | None = None,
    ):
        self.postgres = postgres
        self.audit = audit
        self.numbers = numbers
        self.event_bus = event_bus

    def _publish(self, event) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)

    def _store(self, invoice: InvoiceDoc) -> None:
        self.postgres.execute(
            """
            INSERT INTO invoices (id, org_id, number, status, data, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE
            SET status = EXCLUDED.status, data = EXCLUDED.data, updated_at = EXCLUDED.updated_at
            WHERE invoices.org_id = EXCLUDED.org_id
            """,
            (
                invoice.id, invoice.org_id, invoice.number, invoice.status.value,
                invoice.to_document(), invoice.created_at, invoice.updated_at,
            )
        )

    def create_for_job(self, org_id: str, job: Job, data: InvoiceCreate, actor_id: str | None = None) -> InvoiceDoc:
        """
        Create an invoice for a job.

        Args:
            org_id: Organization issuing the invoice
            job: Job being invoiced (must belong to org_id)
            data: Customer, extras, flat tax and initial status
            actor_id: Who created it, for the audit trail

        Returns:
            Created invoice in DRAFT or SENT status

        Raises:
            ValueError: If the job belongs to another org, there are no lines,
                or the lines and money block disagree
        """
        if job.org_id and job.org_id != org_id:
            raise ValueError(f"Job {job.id} belongs to another organization")

        lines = build_lines(job, data)
        if not lines:
            raise ValueError(f"Job {job.id} has nothing to invoice")

        labor = job.expenses.total_payouts_cents
        materials = job.expenses.total_materials_cents
        extra = sum(e.amount_cents for e in data.extras)
        subtotal = sum(line.amount_cents for line in lines)

        money = InvoiceMoney(
            labor_cents=labor,
            materials_cents=materials,
            extra_cents=extra,
            subtotal_cents=subtotal,
            tax_cents=data.tax_cents,
            total_cents=subtotal + data.tax_cents,
        )
        problems = money_mismatches(money, lines)
        if problems:
            raise ValueError(f"Invoice for job {job.id} does not add up: {'; '.join(problems)}")

        now = now_utc()
        customer = data.customer
        if customer is not None and not compact(customer.model_dump()):
            customer = None

        invoice = InvoiceDoc(
            id=uuid4().hex,
            org_id=org_id,
            job_id=job.id,
            number=self.numbers.next_number(org_id, now.year),
            status=data.status,
            lines=lines,
            money=money,
            customer=customer,
            address_snapshot=build_address_snapshot(job),
            description=(data.description or "").strip() or None,
            created_at=now,
            updated_at=now,
            sent_at=now if data.status == InvoiceStatus.SENT else None,
        )

        self._store(invoice)

        self.audit.log_change(
            org_id=org_id,
            entity_type="invoice",
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            changes={
                "created": {
                    "job_id": job.id,
                    "number": invoice.number,
                    "status": invoice.status.value,
                    "total_cents": invoice.total_cents,
                }
            },
            actor_id=actor_id,
        )
        logger.info("Created invoice %s for job %s (%d cents)", invoice.number, job.id, invoice.total_cents)

        self._publish(InvoiceCreated.create(invoice=invoice))
        if invoice.status == InvoiceStatus.SENT:
            self._publish(InvoiceSent.create(invoice=invoice))

        return invoice

    def get_by_id(self, org_id: str, invoice_id: str) -> InvoiceDoc | None:
        """
        Get invoice by ID.

        Returns:
            Invoice if found in the organization and not deleted, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT id, data FROM invoices WHERE id = %s AND org_id = %s AND deleted_at IS NULL",
            (invoice_id, org_id)
        )
        if row is None:
            return None

        data = dict(row["data"] or {})
        data.setdefault("id", str(row["id"]))
        return InvoiceDoc.model_validate(data)

    def _require(self, org_id: str, invoice_id: str) -> InvoiceDoc:
        current = self.get_by_id(org_id, invoice_id)
        if current is None:
            raise ValueError(f"Invoice {invoice_id} not found")
        return current

    def _transition(self, org_id: str, current: InvoiceDoc, actor_id: str | None, **update) -> InvoiceDoc:
        now = now_utc()
        updated = current.model_copy(update={**update, "updated_at": now})
        self._store(updated)
        self.audit.log_change(
            org_id=org_id,
            entity_type="invoice",
            entity_id=current.id,
            action=AuditAction.UPDATE,
            changes={"status": {"old": current.status.value, "new": updated.status.value}},
            actor_id=actor_id,
        )
        return updated

    def send(self, org_id: str, invoice_id: str, actor_id: str | None = None) -> InvoiceDoc:
        """
        Send a draft invoice.

        Raises:
            ValueError: If invoice not found, voided or already paid
        """
        current = self._require(org_id, invoice_id)

        if current.status == InvoiceStatus.VOID:
            raise ValueError(f"Invoice {invoice_id} is voided")
        if current.status == InvoiceStatus.PAID:
            raise ValueError(f"Invoice {invoice_id} is already paid")
        if current.status == InvoiceStatus.SENT:
            return current

        updated = self._transition(
            org_id, current, actor_id,
            status=InvoiceStatus.SENT,
            sent_at=current.sent_at or now_utc(),
        )
        self._publish(InvoiceSent.create(invoice=updated))
        return updated

    def mark_paid(self, org_id: str, invoice_id: str, actor_id: str | None = None) -> InvoiceDoc:
        """
        Mark an invoice paid. Already-paid invoices are returned unchanged.

        Raises:
            ValueError: If invoice not found or voided
        """
        current = self._require(org_id, invoice_id)

        if current.status == InvoiceStatus.PAID:
            return current
        if current.status == InvoiceStatus.VOID:
            raise ValueError(f"Invoice {invoice_id} is voided")

        now = now_utc()
        updated = self._transition(
            org_id, current, actor_id,
            status=InvoiceStatus.PAID,
            paid_at=now,
            payment_note=f"Marked paid on {now.date().isoformat()}",
        )
        logger.info("Invoice %s marked paid", updated.number)
        self._publish(InvoicePaid.create(invoice=updated))
        return updated

    def void(self, org_id: str, invoice_id: str, actor_id: str | None = None) -> InvoiceDoc:
        """
        Void an invoice.

        Raises:
            ValueError: If invoice not found or already voided
        """
        current = self._require(org_id, invoice_id)

        if current.status == InvoiceStatus.VOID:
            raise ValueError(f"Invoice {invoice_id} is already voided")

        updated = self._transition(
            org_id, current, actor_id,
            status=InvoiceStatus.VOID,
            voided_at=now_utc(),
        )
        self._publish(InvoiceVoided.create(invoice=updated))
        return updated
