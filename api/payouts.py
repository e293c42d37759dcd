"""POST /api/payouts/paid: settle pending payouts under one pay stub."""

from fastapi import APIRouter, Request

from api.base import success_response
from core.config import ReportingConfig
from core.models import MarkPayoutsPaid


def create_payouts_router(services: dict, config: ReportingConfig) -> APIRouter:
    router = APIRouter()

    job_svc = services["job"]

    @router.post("/payouts/paid")
    async def mark_paid(request: Request, body: MarkPayoutsPaid):
        stub = job_svc.mark_payouts_paid(config.org_id, body.payout_ids)
        return success_response(stub.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    return router
