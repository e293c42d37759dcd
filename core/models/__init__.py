"""Core domain models."""

from core.models.base import DocumentModel, LenientDatetime, Cents, SignedCents
from core.models.payout import Payout, PayoutCreate, MarkPayoutsPaid, PayoutStub
from core.models.job import (
    Job, JobStatus, JobComputed, Earnings, EarningEntry, Expenses, MaterialExpense,
    MaterialCreate, EarningCreate,
)
from core.models.invoice import (
    InvoiceDoc, InvoiceStatus, InvoiceLine, InvoiceMoney, InvoiceCustomer,
    AddressSnapshot, InvoiceCreate, InvoiceExtra, money_mismatches,
)
from core.models.reporting import (
    RangePreset, DateRange, MonthBucket, PayoutState, ProjectionFilters, DocumentBatch,
    Totals, TrendSeries, CategorySlice, CategoryBreakdown, RankedEntry, Projection,
    ReportMode, InvoiceSummary, InvoiceOverview, InvoiceReportRow, InvoiceReport,
)

__all__ = [
    # Base
    "DocumentModel", "LenientDatetime", "Cents", "SignedCents",
    # Payout
    "Payout", "PayoutCreate", "MarkPayoutsPaid", "PayoutStub",
    # Job
    "Job", "JobStatus", "JobComputed", "Earnings", "EarningEntry", "Expenses", "MaterialExpense",
    "MaterialCreate", "EarningCreate",
    # Invoice
    "InvoiceDoc", "InvoiceStatus", "InvoiceLine", "InvoiceMoney", "InvoiceCustomer",
    "AddressSnapshot", "InvoiceCreate", "InvoiceExtra", "money_mismatches",
    # Reporting
    "RangePreset", "DateRange", "MonthBucket", "PayoutState", "ProjectionFilters", "DocumentBatch",
    "Totals", "TrendSeries", "CategorySlice", "CategoryBreakdown", "RankedEntry", "Projection",
    "ReportMode", "InvoiceSummary", "InvoiceOverview", "InvoiceReportRow", "InvoiceReport",
]
