"""Shared test fixtures for the finance test suite. No database is needed."""

from datetime import datetime
from unittest.mock import MagicMock, Mock

import pytest

from clients.postgres_client import PostgresClient
from core.models import (
    AddressSnapshot, DocumentBatch, InvoiceCustomer, InvoiceDoc, InvoiceStatus, Job, JobStatus, Payout,
)
from tests.factories import NOW, TEST_ORG_ID, make_invoice, make_job, make_payout, utc


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def org_id() -> str:
    return TEST_ORG_ID


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def sample_jobs() -> list[Job]:
    """Three jobs in 2025: two in range of a June report, one in January."""
    return [
        make_job("job-1", earnings=500000, payouts=100000, materials=50000,
                 updated_at=utc(2025, 6, 10), address={"fullLine": "12 Oak St", "city": "Austin", "state": "TX"}),
        make_job("job-2", earnings=200000, payouts=50000, materials=0,
                 status=JobStatus.PAID, updated_at=utc(2025, 5, 3), address="9 Elm Ave"),
        make_job("job-3", earnings=100000, payouts=20000, materials=10000,
                 status=JobStatus.DRAFT, updated_at=utc(2025, 1, 20)),
    ]


@pytest.fixture
def sample_payouts() -> list[Payout]:
    return [
        make_payout("p-1", 60000, utc(2025, 6, 11), "emp-1", "Alex Rivera", "labor", paid=True),
        make_payout("p-2", 40000, utc(2025, 6, 12), "emp-2", "Sam Cho", "labor"),
        make_payout("p-3", 25000, utc(2025, 5, 4), "emp-1", "Alex Rivera", "cleanup", paid=True),
        make_payout("p-4", 15000, utc(2024, 12, 1), "emp-3", "Jo Park", "labor"),
    ]


@pytest.fixture
def sample_invoices() -> list[InvoiceDoc]:
    return [
        make_invoice("inv-1", "INV-2025-000001", 150000, InvoiceStatus.PAID,
                     created_at=utc(2025, 5, 1), paid_at=utc(2025, 6, 2),
                     customer=InvoiceCustomer(name="Pat Lee", email="pat@example.com")),
        make_invoice("inv-2", "INV-2025-000002", 80000, InvoiceStatus.SENT,
                     created_at=utc(2025, 6, 5),
                     address=AddressSnapshot(full_line="12 Oak St")),
        make_invoice("inv-3", "INV-2025-000003", 30000, InvoiceStatus.DRAFT,
                     created_at=utc(2025, 6, 7), job_id="job-2"),
        make_invoice("inv-4", "INV-2025-000004", 20000, InvoiceStatus.VOID,
                     created_at=utc(2025, 6, 8)),
    ]


@pytest.fixture
def sample_batch(sample_jobs, sample_payouts, sample_invoices) -> DocumentBatch:
    return DocumentBatch(
        org_id=TEST_ORG_ID,
        jobs=sample_jobs,
        payouts=sample_payouts,
        invoices=sample_invoices,
    )


@pytest.fixture
def mock_postgres():
    """PostgresClient stand-in; configure return values per test."""
    db = Mock(spec=PostgresClient)
    db.execute.return_value = []
    db.execute_single.return_value = None
    db.transaction.return_value = MagicMock()
    return db


@pytest.fixture
def db_cursor(mock_postgres):
    """Cursor yielded by mock_postgres.transaction()."""
    return mock_postgres.transaction.return_value.__enter__.return_value
