"""
Invoice report filtering and CSV export.

A report mode picks both the statuses that count and the "basis date" that
decides whether an invoice falls inside the range:

    sentPaid       {sent, paid}         sent_at, else created_at
    paidOnly       {paid}               paid_at
    includeDrafts  {draft, sent, paid}  sent_at, else created_at

In paidOnly mode a paid invoice that never got a paid_at has no basis date
and is left out of any bounded range.
"""

import csv
import io
import logging
from datetime import datetime
from typing import Iterable, Mapping, Sequence

from core.models import (
    DateRange,
    InvoiceDoc,
    InvoiceReport,
    InvoiceReportRow,
    InvoiceStatus,
    InvoiceSummary,
    Job,
    ReportMode,
)
from core.money import cents_to_dollars_str, sum_cents
from utils.timezone import now_utc, ymd

logger = logging.getLogger(__name__)

CSV_HEADER = (
    "Invoice #",
    "Status",
    "Date",
    "Job",
    "Total",
    "Customer Name",
    "Customer Email",
    "Customer Phone",
)

MODE_STATUSES: dict[ReportMode, frozenset[InvoiceStatus]] = {
    ReportMode.SENT_PAID: frozenset({InvoiceStatus.SENT, InvoiceStatus.PAID}),
    ReportMode.PAID_ONLY: frozenset({InvoiceStatus.PAID}),
    ReportMode.INCLUDE_DRAFTS: frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.PAID}),
}


class ReportExportError(Exception):
    """The invoice report could not be serialized."""


def basis_date(invoice: InvoiceDoc, mode: ReportMode | str) -> datetime | None:
    """The date that places an invoice in a reporting range for mode."""
    if ReportMode(mode) == ReportMode.PAID_ONLY:
        return invoice.paid_at
    return invoice.sent_at or invoice.created_at


def filter_invoices(
    invoices: Iterable[InvoiceDoc],
    date_range: DateRange,
    mode: ReportMode | str,
) -> list[InvoiceDoc]:
    """
    Invoices with an allowed status whose basis date is in range.

    Newest basis date first; undated invoices (only possible for "all")
    sort last in input order.
    """
    mode = ReportMode(mode)
    allowed = MODE_STATUSES[mode]

    kept = [
        inv for inv in invoices
        if inv.status in allowed and date_range.contains(basis_date(inv, mode))
    ]
    dated = [inv for inv in kept if basis_date(inv, mode) is not None]
    undated = [inv for inv in kept if basis_date(inv, mode) is None]
    dated.sort(key=lambda inv: basis_date(inv, mode), reverse=True)
    return dated + undated


def summarize(filtered: Sequence[InvoiceDoc]) -> InvoiceSummary:
    """Count and money totals; only status == paid counts as paid."""
    total = sum_cents(inv.total_cents for inv in filtered)
    paid = sum_cents(inv.total_cents for inv in filtered if inv.status == InvoiceStatus.PAID)
    return InvoiceSummary(
        count=len(filtered),
        total_cents=total,
        paid_cents=paid,
        outstanding_cents=total - paid,
    )


def job_label(invoice: InvoiceDoc, jobs_by_id: Mapping[str, Job] | None = None) -> str:
    """Address snapshot on the invoice, else the job's address, else the job id."""
    label = invoice.address_label
    if label:
        return label
    job = (jobs_by_id or {}).get(invoice.job_id or "")
    if job is not None:
        return job.address_label
    return invoice.job_id or ""


def build_rows(
    invoices: Iterable[InvoiceDoc],
    mode: ReportMode | str,
    jobs: Iterable[Job] | None = None,
) -> list[InvoiceReportRow]:
    """Flatten invoices into export rows."""
    jobs_by_id = {job.id: job for job in jobs or []}
    rows = []
    for inv in invoices:
        customer = inv.customer
        rows.append(InvoiceReportRow(
            number=inv.number,
            status=inv.status.value,
            date=ymd(basis_date(inv, mode)),
            job=job_label(inv, jobs_by_id),
            total_cents=inv.total_cents,
            customer_name=(customer.name or "") if customer else "",
            customer_email=(customer.email or "") if customer else "",
            customer_phone=(customer.phone or "") if customer else "",
        ))
    return rows


def to_csv(rows: Iterable[InvoiceReportRow]) -> str:
    """
    Serialize rows to CSV text.

    One header line, then one line per row. Fields containing a comma,
    quote or newline are quoted with internal quotes doubled.

    Raises:
        ReportExportError: If any row cannot be serialized
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    try:
        writer.writerow(CSV_HEADER)
        for row in rows:
            writer.writerow((
                row.number,
                row.status,
                row.date,
                row.job,
                cents_to_dollars_str(row.total_cents),
                row.customer_name,
                row.customer_email,
                row.customer_phone,
            ))
    except (csv.Error, AttributeError, TypeError, ValueError) as e:
        logger.exception("Invoice CSV export failed")
        raise ReportExportError(f"Could not serialize invoice report: {e}") from e
    return buffer.getvalue()


def export_filename(
    date_range: DateRange,
    invoices: Sequence[InvoiceDoc] = (),
    mode: ReportMode | str = ReportMode.SENT_PAID,
    now: datetime | None = None,
) -> str:
    """
    invoices-report_{start}_to_{end}.csv with YYYY-MM-DD dates.

    An open side of the range takes the earliest or latest basis date among
    the invoices, falling back to today.
    """
    today = now or now_utc()
    dates = [d for d in (basis_date(inv, mode) for inv in invoices) if d is not None]
    start = date_range.start or (min(dates) if dates else today)
    end = date_range.end or (max(dates) if dates else today)
    return f"invoices-report_{ymd(start)}_to_{ymd(end)}.csv"


def build_invoice_report(
    invoices: Iterable[InvoiceDoc],
    date_range: DateRange,
    mode: ReportMode | str,
    jobs: Iterable[Job] | None = None,
    now: datetime | None = None,
) -> InvoiceReport:
    """Filter, summarize and flatten in one step."""
    mode = ReportMode(mode)
    filtered = filter_invoices(invoices, date_range, mode)
    return InvoiceReport(
        range=date_range,
        mode=mode,
        summary=summarize(filtered),
        rows=build_rows(filtered, mode, jobs),
        filename=export_filename(date_range, filtered, mode, now),
    )
