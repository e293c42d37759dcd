"""
Handlers that write money events to the application log.

Amounts are rendered in the configured display currency, so the log reads
the way the dashboard does.
"""

import logging
from typing import Callable

from core.event_bus import EventBus
from core.events import InvoicePaid, JobTotalsChanged, PayoutsMarkedPaid
from core.money import format_currency

logger = logging.getLogger(__name__)


def handle_invoice_paid(currency: str) -> Callable:
    def handler(event: InvoicePaid):
        invoice = event.invoice
        logger.info(
            "Invoice %s paid: %s",
            invoice.number,
            format_currency(invoice.money.total_cents, currency),
        )

    return handler


def handle_payouts_marked_paid(currency: str) -> Callable:
    def handler(event: PayoutsMarkedPaid):
        stub = event.stub
        logger.info(
            "Pay stub for %s: %d payouts, %s",
            stub.employee_name or "several employees",
            len(stub.payouts),
            format_currency(stub.total_cents, currency),
        )

    return handler


def handle_job_totals_changed(currency: str) -> Callable:
    def handler(event: JobTotalsChanged):
        job = event.job
        logger.info(
            "Job %s net profit %s -> %s",
            job.id,
            format_currency(event.previous_net_profit_cents, currency),
            format_currency(job.computed.net_profit_cents, currency),
        )

    return handler


def register_activity_log(event_bus: EventBus, currency: str) -> None:
    """Subscribe the activity log handlers to event_bus."""
    event_bus.subscribe("InvoicePaid", handle_invoice_paid(currency))
    event_bus.subscribe("PayoutsMarkedPaid", handle_payouts_marked_paid(currency))
    event_bus.subscribe("JobTotalsChanged", handle_job_totals_changed(currency))
