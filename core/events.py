"""
Domain events for the finance core.

Immutable event objects describing money-relevant state changes. Services
publish what happened; subscribers (cache invalidation, notifications,
projection refresh) react without the publisher knowing who's listening.

Event Categories:
- JobEvent: Job totals recomputed after an earnings/expense mutation
- InvoiceEvent: Invoice lifecycle (create, send, paid, void)
- PayoutsMarkedPaid: Pending payouts settled under one pay stub

Events carry the full document so handlers don't need to re-fetch state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class FinanceEvent:
    """Base class for all finance domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)
    org_id: str | None = None


# =============================================================================
# JOB EVENTS
# =============================================================================


@dataclass(frozen=True)
class JobEvent(FinanceEvent):
    """Events related to job money."""
    pass


@dataclass(frozen=True)
class JobTotalsChanged(JobEvent):
    """A job's cached totals or computed profit changed."""
    job: Any = None  # Job; Any avoids a circular import
    previous_net_profit_cents: int = 0

    @classmethod
    def create(cls, job: Any, previous_net_profit_cents: int) -> "JobTotalsChanged":
        return cls(job=job, org_id=job.org_id, previous_net_profit_cents=previous_net_profit_cents)


# =============================================================================
# INVOICE EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceEvent(FinanceEvent):
    """Events related to invoice lifecycle."""
    pass


@dataclass(frozen=True)
class InvoiceCreated(InvoiceEvent):
    """A new invoice was created (draft or sent)."""
    invoice: Any = None

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceCreated":
        return cls(invoice=invoice, org_id=invoice.org_id)


@dataclass(frozen=True)
class InvoiceSent(InvoiceEvent):
    """Invoice was sent to the customer."""
    invoice: Any = None

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceSent":
        return cls(invoice=invoice, org_id=invoice.org_id)


@dataclass(frozen=True)
class InvoicePaid(InvoiceEvent):
    """Invoice was marked paid."""
    invoice: Any = None

    @classmethod
    def create(cls, invoice: Any) -> "InvoicePaid":
        return cls(invoice=invoice, org_id=invoice.org_id)


@dataclass(frozen=True)
class InvoiceVoided(InvoiceEvent):
    """Invoice was voided."""
    invoice: Any = None

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceVoided":
        return cls(invoice=invoice, org_id=invoice.org_id)


# =============================================================================
# PAYOUT EVENTS
# =============================================================================


@dataclass(frozen=True)
class PayoutsMarkedPaid(FinanceEvent):
    """Pending payouts were settled together under one pay stub."""
    stub: Any = None  # PayoutStub

    @classmethod
    def create(cls, org_id: str, stub: Any) -> "PayoutsMarkedPaid":
        return cls(stub=stub, org_id=org_id)
