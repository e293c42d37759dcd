"""API test fixtures: TestClient over the real app with mocked storage."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from core.aggregation import Aggregator
from core.config import ReportingConfig
from core.event_bus import EventBus
from core.services.document_service import DocumentService
from core.services.invoice_service import InvoiceService
from core.services.job_service import JobService
from tests.factories import TEST_ORG_ID


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def config():
    return ReportingConfig(org_id=TEST_ORG_ID, timezone="UTC")


@pytest.fixture
def documents(sample_batch, sample_invoices):
    mock = Mock(spec=DocumentService)
    mock.snapshot.return_value = sample_batch
    mock.list_invoices.return_value = list(sample_invoices)
    return mock


@pytest.fixture
def job_service():
    return Mock(spec=JobService)


@pytest.fixture
def invoice_service():
    return Mock(spec=InvoiceService)


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def services(documents, job_service, invoice_service):
    return {
        "documents": documents,
        "aggregator": Aggregator(top_n=5),
        "job": job_service,
        "invoice": invoice_service,
        "event_bus": EventBus(),
    }


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(config, services):
    return create_app(config, services)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)
