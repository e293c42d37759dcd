"""Application factory: wires services and routers for one organization."""

import logging

from fastapi import FastAPI

from api.errors import register_error_handlers
from api.invoices import create_invoices_router
from api.jobs import create_jobs_router
from api.middleware import RequestIDMiddleware
from api.payouts import create_payouts_router
from api.reports import create_reports_router
from clients.postgres_client import PostgresClient
from core.aggregation import Aggregator
from core.audit import AuditLogger
from core.config import ReportingConfig, load_config
from core.event_bus import EventBus
from core.handlers.activity_log_handler import register_activity_log
from core.invoice_numbers import InvoiceSequenceGenerator, PostgresSequenceStore
from core.services.document_service import DocumentService
from core.services.invoice_service import InvoiceService
from core.services.job_service import JobService

logger = logging.getLogger(__name__)


def build_services(config: ReportingConfig, postgres: PostgresClient | None = None) -> dict:
    """
    Construct the service graph.

    Raises:
        ValueError: If no database is configured
    """
    if postgres is None:
        if not config.database_url:
            raise ValueError("DATABASE_URL is required to build services")
        postgres = PostgresClient(config.database_url)

    audit = AuditLogger(postgres)
    event_bus = EventBus()
    register_activity_log(event_bus, config.currency)
    numbers = InvoiceSequenceGenerator(
        PostgresSequenceStore(postgres, prefix=config.invoice_prefix),
        prefix=config.invoice_prefix,
        width=config.invoice_sequence_width,
        allow_degraded=config.allow_degraded_invoice_numbers,
    )

    return {
        "documents": DocumentService(postgres),
        "aggregator": Aggregator(top_n=config.top_n),
        "job": JobService(postgres, audit, event_bus),
        "invoice": InvoiceService(postgres, audit, numbers, event_bus),
        "event_bus": event_bus,
    }


def create_app(config: ReportingConfig | None = None, services: dict | None = None) -> FastAPI:
    """FastAPI app with request IDs, error handlers, and report/invoice/job routes."""
    config = config or load_config()
    services = services or build_services(config)

    app = FastAPI(title="Contractor Finance")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_reports_router(services, config), prefix="/api")
    app.include_router(create_invoices_router(services, config), prefix="/api")
    app.include_router(create_jobs_router(services, config), prefix="/api")
    app.include_router(create_payouts_router(services, config), prefix="/api")

    logger.info("Finance API ready for org %s (tz=%s)", config.org_id, config.timezone)
    return app
