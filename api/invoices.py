"""/api/invoices: invoice creation, lifecycle and search."""

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.aggregation import search_invoices
from core.config import ReportingConfig
from core.models import InvoiceCreate, InvoiceStatus


def create_invoices_router(services: dict, config: ReportingConfig) -> APIRouter:
    router = APIRouter()

    invoice_svc = services["invoice"]
    job_svc = services["job"]
    documents = services["documents"]

    @router.get("/invoices")
    async def list_invoices(
        request: Request,
        status: InvoiceStatus | None = Query(None),
        search: str | None = Query(None),
        limit: int = Query(50, ge=1, le=500),
    ):
        invoices = search_invoices(documents.list_invoices(config.org_id), status, search)
        invoices.sort(key=lambda inv: inv.number, reverse=True)
        return success_response(
            [inv.model_dump(mode="json") for inv in invoices[:limit]],
            request.state.request_id,
        ).model_dump(mode="json")

    @router.post("/invoices")
    async def create_invoice(request: Request, body: InvoiceCreate):
        job = job_svc.get_by_id(config.org_id, body.job_id)
        if job is None:
            raise ValueError(f"Job {body.job_id} not found")
        invoice = invoice_svc.create_for_job(config.org_id, job, body)
        return success_response(invoice.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    @router.get("/invoices/{invoice_id}")
    async def get_invoice(request: Request, invoice_id: str):
        invoice = invoice_svc.get_by_id(config.org_id, invoice_id)
        if invoice is None:
            raise ValueError(f"Invoice {invoice_id} not found")
        return success_response(invoice.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    @router.post("/invoices/{invoice_id}/send")
    async def send_invoice(request: Request, invoice_id: str):
        invoice = invoice_svc.send(config.org_id, invoice_id)
        return success_response(invoice.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    @router.post("/invoices/{invoice_id}/paid")
    async def mark_paid(request: Request, invoice_id: str):
        invoice = invoice_svc.mark_paid(config.org_id, invoice_id)
        return success_response(invoice.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    @router.post("/invoices/{invoice_id}/void")
    async def void_invoice(request: Request, invoice_id: str):
        invoice = invoice_svc.void(config.org_id, invoice_id)
        return success_response(invoice.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    return router
