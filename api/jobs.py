"""/api/jobs/{id}: job money mutations and audit history."""

from fastapi import APIRouter, Request

from api.base import success_response
from core.config import ReportingConfig
from core.models import EarningCreate, MaterialCreate, PayoutCreate
from core.services.job_service import earning_from_create, material_from_create, payout_from_create


def create_jobs_router(services: dict, config: ReportingConfig) -> APIRouter:
    router = APIRouter()

    job_svc = services["job"]

    @router.get("/jobs/{job_id}")
    async def get_job(request: Request, job_id: str):
        job = job_svc.get_by_id(config.org_id, job_id)
        if job is None:
            raise ValueError(f"Job {job_id} not found")
        return success_response(job.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    @router.get("/jobs/{job_id}/history")
    async def job_history(request: Request, job_id: str):
        if job_svc.get_by_id(config.org_id, job_id) is None:
            raise ValueError(f"Job {job_id} not found")
        return success_response(job_svc.history(config.org_id, job_id), request.state.request_id).model_dump(mode="json")

    @router.post("/jobs/{job_id}/payouts")
    async def add_payout(request: Request, job_id: str, body: PayoutCreate):
        job = job_svc.add_payout(config.org_id, job_id, payout_from_create(body))
        return success_response(job.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    @router.post("/jobs/{job_id}/materials")
    async def add_material(request: Request, job_id: str, body: MaterialCreate):
        job = job_svc.add_material(config.org_id, job_id, material_from_create(body))
        return success_response(job.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    @router.post("/jobs/{job_id}/earnings")
    async def add_earnings(request: Request, job_id: str, body: EarningCreate):
        if body.total_earnings_cents is not None:
            job = job_svc.set_total_earnings(config.org_id, job_id, body.total_earnings_cents)
        else:
            job = job_svc.add_earning(config.org_id, job_id, earning_from_create(body))
        return success_response(job.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    @router.delete("/jobs/{job_id}/{kind}/{line_id}")
    async def remove_line(request: Request, job_id: str, kind: str, line_id: str):
        # URL segments are plural ("payouts"); line kinds are singular
        job = job_svc.remove_line(config.org_id, job_id, kind.rstrip("s"), line_id)
        return success_response(job.model_dump(mode="json"), request.state.request_id).model_dump(mode="json")

    return router
