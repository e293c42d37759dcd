"""
Financial overview aggregation.

Pull-based pipeline:

    DocumentSource.snapshot(org_id) -> DocumentBatch
    Aggregator.project(batch, range, filters, now) -> Projection

Every projection is a full recompute over an in-memory snapshot; there is no
incremental state. Functions here only read their inputs.

Date handling follows one rule: documents whose date cannot be resolved are
left out of anything bounded by a range or bucketed by month, but are kept
when the range is "all" and totals ignore dates entirely.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Protocol, Sequence, TypeVar

from core.models import (
    CategoryBreakdown,
    CategorySlice,
    DateRange,
    DocumentBatch,
    InvoiceDoc,
    InvoiceOverview,
    InvoiceStatus,
    Job,
    MonthBucket,
    Payout,
    PayoutState,
    Projection,
    ProjectionFilters,
    RankedEntry,
    Totals,
    TrendSeries,
)
from core.money import round_half_away
from core.time_range import month_buckets, month_key, trend_window
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 5

DEFAULT_PAYOUT_CATEGORY = "other"
DEFAULT_MATERIAL_CATEGORY = "materials"
UNKNOWN_EMPLOYEE = "Unknown"

CATEGORY_PALETTE = (
    "#8d6b3d",
    "#0e7490",
    "#f59e0b",
    "#10b981",
    "#6366f1",
    "#ec4899",
    "#14b8a6",
    "#f97316",
)

T = TypeVar("T")


class DocumentSource(Protocol):
    """Anything that can hand over a current org-scoped snapshot."""

    def snapshot(self, org_id: str) -> DocumentBatch:
        ...


# =============================================================================
# FILTERING
# =============================================================================


def filter_jobs(
    jobs: Iterable[Job],
    date_range: DateRange,
    filters: ProjectionFilters | None = None,
) -> list[Job]:
    """Jobs whose reference date is in range and that pass status/search filters."""
    filters = filters or ProjectionFilters()
    term = (filters.search or "").strip().lower()

    result = []
    for job in jobs:
        if filters.statuses and job.status not in filters.statuses:
            continue
        if not date_range.contains(job.reference_date):
            continue
        if term and term not in job.address_label.lower():
            continue
        result.append(job)
    return result


def filter_payouts(
    payouts: Iterable[Payout],
    date_range: DateRange,
    filters: ProjectionFilters | None = None,
) -> list[Payout]:
    """Payouts created in range, narrowed by paid/pending state and search."""
    filters = filters or ProjectionFilters()
    term = (filters.payout_search or "").strip().lower()

    result = []
    for payout in payouts:
        if filters.payout_state == PayoutState.PENDING and payout.is_paid:
            continue
        if filters.payout_state == PayoutState.PAID and not payout.is_paid:
            continue
        if not date_range.contains(payout.reference_date):
            continue
        if term:
            haystack = " ".join(
                part for part in (payout.job_address, payout.employee_name) if part
            ).lower()
            if term not in haystack:
                continue
        result.append(payout)
    return result


# =============================================================================
# TOTALS
# =============================================================================


def compute_totals(jobs: Sequence[Job], payouts: Sequence[Payout]) -> Totals:
    """
    Headline sums for the filtered jobs and payouts.

    Job money comes from each job's cached totals; pending/paid split comes
    from the payout documents themselves.
    """
    earnings = sum(j.earnings.total_earnings_cents for j in jobs)
    materials = sum(j.expenses.total_materials_cents for j in jobs)
    payouts_sum = sum(j.expenses.total_payouts_cents for j in jobs)
    net_profit = sum(j.computed.net_profit_cents for j in jobs)

    pending = 0
    paid = 0
    for payout in payouts:
        if payout.is_paid:
            paid += payout.amount_cents
        else:
            pending += payout.amount_cents

    return Totals(
        earnings_cents=earnings,
        materials_cents=materials,
        payouts_cents=payouts_sum,
        expenses_cents=payouts_sum + materials,
        net_profit_cents=net_profit,
        average_profit_cents=round_half_away(net_profit, len(jobs)),
        pending_payouts_cents=pending,
        paid_payouts_cents=paid,
        job_count=len(jobs),
        payout_count=len(payouts),
    )


# =============================================================================
# TREND
# =============================================================================


def trend_series(jobs: Iterable[Job], buckets: Sequence[MonthBucket], tz=None) -> TrendSeries:
    """
    Per-month earnings, expenses and net profit.

    Each job lands in the bucket of its reference date (converted to tz when
    given). Undated jobs and jobs outside the buckets contribute nothing.
    Buckets with no jobs stay at zero.
    """
    index = {bucket.key: i for i, bucket in enumerate(buckets)}
    earnings = [0] * len(buckets)
    expenses = [0] * len(buckets)
    net = [0] * len(buckets)

    for job in jobs:
        moment = job.reference_date
        if moment is None:
            continue
        if tz is not None:
            moment = moment.astimezone(tz)
        i = index.get(month_key(moment))
        if i is None:
            continue
        earnings[i] += job.earnings.total_earnings_cents
        expenses[i] += job.expenses.total_payouts_cents + job.expenses.total_materials_cents
        net[i] += job.computed.net_profit_cents

    return TrendSeries(
        keys=[b.key for b in buckets],
        labels=[b.label for b in buckets],
        earnings_cents=earnings,
        expenses_cents=expenses,
        net_profit_cents=net,
    )


# =============================================================================
# CATEGORY BREAKDOWN
# =============================================================================


def category_label(kind: str, category: str) -> str:
    """
    Display label for a breakdown slice.

    "technician" -> "Technician (Payout)", "coilNails" -> "Coil Nails (Mat.)".
    """
    if kind == "material":
        spaced = "".join(f" {c}" if c.isupper() else c for c in category).strip()
        return f"{spaced[:1].upper()}{spaced[1:]} (Mat.)"
    return f"{category[:1].upper()}{category[1:]} (Payout)"


def category_breakdown(
    payouts: Iterable[Payout],
    jobs: Iterable[Job],
    date_range: DateRange,
) -> CategoryBreakdown:
    """
    Expense totals grouped by payout category and by material category.

    Materials of bounded ranges are further filtered by their own purchase
    date. Categories that total zero or less are dropped. Payout slices come
    first, each group in first-seen order.
    """
    payout_totals: dict[str, int] = {}
    for payout in payouts:
        category = payout.category or DEFAULT_PAYOUT_CATEGORY
        payout_totals[category] = payout_totals.get(category, 0) + payout.amount_cents

    material_totals: dict[str, int] = {}
    for job in jobs:
        for material in job.expenses.materials:
            if not date_range.contains(material.reference_date):
                continue
            category = material.category or DEFAULT_MATERIAL_CATEGORY
            material_totals[category] = material_totals.get(category, 0) + material.amount_cents

    slices = []
    for kind, totals in (("payout", payout_totals), ("material", material_totals)):
        for category, cents in totals.items():
            if cents <= 0:
                continue
            slices.append(CategorySlice(
                kind=kind,
                category=category,
                amount_cents=cents,
                label=category_label(kind, category),
                color=CATEGORY_PALETTE[len(slices) % len(CATEGORY_PALETTE)],
            ))
    return CategoryBreakdown(slices=slices)


# =============================================================================
# RANKING
# =============================================================================


def rank_top_n(items: Iterable[T], key: Callable[[T], int], n: int = DEFAULT_TOP_N) -> list[T]:
    """
    The n items with the highest key, highest first.

    Ties keep input order (sorted() is stable). Returns at most n items,
    all drawn from items.
    """
    if n <= 0:
        return []
    return sorted(items, key=lambda item: -key(item))[:n]


def top_jobs(jobs: Iterable[Job], n: int = DEFAULT_TOP_N) -> list[RankedEntry]:
    """Most profitable jobs by cached net profit."""
    ranked = rank_top_n(jobs, key=lambda j: j.computed.net_profit_cents, n=n)
    return [
        RankedEntry(key=j.id, label=j.address_label, value_cents=j.computed.net_profit_cents)
        for j in ranked
    ]


def top_employees(payouts: Iterable[Payout], n: int = DEFAULT_TOP_N) -> list[RankedEntry]:
    """
    Employees with the largest summed payouts.

    Payouts group by employee_id, or by name when no id was recorded.
    """
    totals: dict[str, RankedEntry] = {}
    for payout in payouts:
        name = payout.employee_name
        key = payout.employee_id or name or UNKNOWN_EMPLOYEE
        entry = totals.get(key)
        if entry is None:
            totals[key] = RankedEntry(key=key, label=name or UNKNOWN_EMPLOYEE, value_cents=payout.amount_cents)
        else:
            entry.value_cents += payout.amount_cents
            if entry.label == UNKNOWN_EMPLOYEE and name:
                entry.label = name
    return rank_top_n(totals.values(), key=lambda e: e.value_cents, n=n)


# =============================================================================
# INVOICES
# =============================================================================


def invoice_overview(invoices: Iterable[InvoiceDoc]) -> InvoiceOverview:
    """All-time invoice headline numbers. Outstanding counts drafts and sent."""
    overview = InvoiceOverview()
    for invoice in invoices:
        overview.count += 1
        overview.total_cents += invoice.total_cents
        if invoice.status in (InvoiceStatus.DRAFT, InvoiceStatus.SENT):
            overview.outstanding_cents += invoice.total_cents
        elif invoice.status == InvoiceStatus.PAID:
            overview.paid_cents += invoice.total_cents
    return overview


def search_invoices(
    invoices: Iterable[InvoiceDoc],
    status: InvoiceStatus | None = None,
    term: str | None = None,
) -> list[InvoiceDoc]:
    """Invoices matching a status and a free-text term (number, customer, job id)."""
    needle = (term or "").strip().lower()
    result = []
    for invoice in invoices:
        if status is not None and invoice.status != status:
            continue
        if needle:
            customer = invoice.customer
            haystack = " ".join(
                part for part in (
                    invoice.number,
                    customer.name if customer else None,
                    customer.email if customer else None,
                    invoice.job_id,
                ) if part
            ).lower()
            if needle not in haystack:
                continue
        result.append(invoice)
    return result


# =============================================================================
# PIPELINE
# =============================================================================


class Aggregator:
    """
    Projects a document batch into the financial overview for one range.

    Usage:
        aggregator = Aggregator(top_n=5)
        batch = source.snapshot(org_id)
        date_range = resolve_range("6months", now)
        projection = aggregator.project(batch, date_range, ProjectionFilters(), now)
    """

    def __init__(self, top_n: int = DEFAULT_TOP_N):
        self.top_n = top_n

    def project(
        self,
        batch: DocumentBatch,
        date_range: DateRange,
        filters: ProjectionFilters | None = None,
        now: datetime | None = None,
    ) -> Projection:
        now = now or now_utc()

        jobs = filter_jobs(batch.jobs, date_range, filters)
        payouts = filter_payouts(batch.payouts, date_range, filters)

        start, end = trend_window(date_range, now, (j.reference_date for j in jobs))
        buckets = month_buckets(start, end)

        projection = Projection(
            range=date_range,
            totals=compute_totals(jobs, payouts),
            trend=trend_series(jobs, buckets, tz=now.tzinfo),
            breakdown=category_breakdown(payouts, jobs, date_range),
            top_jobs=top_jobs(jobs, self.top_n),
            top_employees=top_employees(payouts, self.top_n),
            generated_at=now,
        )

        logger.debug(
            "Projected %d jobs, %d payouts over %d months (org=%s, preset=%s)",
            len(jobs), len(payouts), len(buckets), batch.org_id, date_range.preset.value,
        )
        return projection
