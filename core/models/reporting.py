"""
Reporting projection models.

Everything here is output of the aggregation and export code. Money is in
cents; conversion to dollars happens at the rendering edge.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from core.models.invoice import InvoiceDoc
from core.models.job import Job, JobStatus
from core.models.payout import Payout


class RangePreset(str, Enum):
    """Named reporting windows."""

    LAST_7 = "last7"
    THIS_MONTH = "thisMonth"
    YTD = "ytd"
    SIX_MONTHS = "6months"
    TWELVE_MONTHS = "12months"
    ALL = "all"
    CUSTOM = "custom"


class DateRange(BaseModel):
    """
    Closed interval [start, end]. A None side is unbounded.

    start and end are both None only for the "all" preset.
    """

    preset: RangePreset
    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None or self.end is not None

    def contains(self, moment: datetime | None) -> bool:
        """
        Whether moment falls inside the range.

        An unbounded range contains everything, including undated
        documents. A bounded range never contains None.
        """
        if not self.is_bounded:
            return True
        if moment is None:
            return False
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


class MonthBucket(BaseModel):
    key: str  # "YYYY-MM"
    label: str  # "Jan 2025"
    year: int
    month: int


class PayoutState(str, Enum):
    ALL = "all"
    PENDING = "pending"
    PAID = "paid"


class ProjectionFilters(BaseModel):
    """Optional narrowing applied before aggregation."""

    statuses: set[JobStatus] | None = None
    search: str | None = None
    payout_state: PayoutState = PayoutState.ALL
    payout_search: str | None = None


class DocumentBatch(BaseModel):
    """One org-scoped snapshot of the document collections."""

    org_id: str | None = None
    jobs: list[Job] = Field(default_factory=list)
    payouts: list[Payout] = Field(default_factory=list)
    invoices: list[InvoiceDoc] = Field(default_factory=list)


class Totals(BaseModel):
    earnings_cents: int = 0
    materials_cents: int = 0
    payouts_cents: int = 0
    expenses_cents: int = 0
    net_profit_cents: int = 0
    average_profit_cents: int = 0
    pending_payouts_cents: int = 0
    paid_payouts_cents: int = 0
    job_count: int = 0
    payout_count: int = 0


class TrendSeries(BaseModel):
    """Monthly series; every list is index-aligned with keys."""

    keys: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    earnings_cents: list[int] = Field(default_factory=list)
    expenses_cents: list[int] = Field(default_factory=list)
    net_profit_cents: list[int] = Field(default_factory=list)


class CategorySlice(BaseModel):
    kind: str  # "payout" | "material"
    category: str
    amount_cents: int
    label: str
    color: str


class CategoryBreakdown(BaseModel):
    slices: list[CategorySlice] = Field(default_factory=list)

    @property
    def labels(self) -> list[str]:
        return [s.label for s in self.slices]

    @property
    def values_cents(self) -> list[int]:
        return [s.amount_cents for s in self.slices]

    @property
    def colors(self) -> list[str]:
        return [s.color for s in self.slices]


class RankedEntry(BaseModel):
    key: str
    label: str
    value_cents: int


class Projection(BaseModel):
    """Everything the financial overview renders, for one range and filter set."""

    range: DateRange
    totals: Totals
    trend: TrendSeries
    breakdown: CategoryBreakdown
    top_jobs: list[RankedEntry] = Field(default_factory=list)
    top_employees: list[RankedEntry] = Field(default_factory=list)
    generated_at: datetime


class ReportMode(str, Enum):
    """Invoice report mode: which statuses count and which date places them."""

    SENT_PAID = "sentPaid"
    PAID_ONLY = "paidOnly"
    INCLUDE_DRAFTS = "includeDrafts"


class InvoiceSummary(BaseModel):
    count: int = 0
    total_cents: int = 0
    paid_cents: int = 0
    outstanding_cents: int = 0


class InvoiceOverview(BaseModel):
    """Headline numbers across every invoice regardless of range."""

    count: int = 0
    total_cents: int = 0
    outstanding_cents: int = 0
    paid_cents: int = 0


class InvoiceReportRow(BaseModel):
    number: str
    status: str
    date: str
    job: str
    total_cents: int
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""


class InvoiceReport(BaseModel):
    range: DateRange
    mode: ReportMode
    summary: InvoiceSummary
    rows: list[InvoiceReportRow] = Field(default_factory=list)
    filename: str
