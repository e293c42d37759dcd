"""GET /api/reports/*: financial overview and invoice reports."""

from datetime import date

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from api.base import success_response
from core.aggregation import invoice_overview
from core.config import ReportingConfig
from core.models import JobStatus, PayoutState, ProjectionFilters, RangePreset, ReportMode
from core.reporting import build_invoice_report, to_csv
from core.time_range import resolve_range
from utils.timezone import now_local


def parse_statuses(status: str | None) -> set[JobStatus] | None:
    """Comma-separated job statuses; None or blank means no status filter."""
    if not status:
        return None
    values = {part.strip() for part in status.split(",") if part.strip()}
    try:
        return {JobStatus(v) for v in values} or None
    except ValueError:
        valid = ", ".join(s.value for s in JobStatus)
        raise ValueError(f"Unknown job status in '{status}'. Valid statuses: {valid}")


def create_reports_router(services: dict, config: ReportingConfig) -> APIRouter:
    router = APIRouter()

    documents = services["documents"]
    aggregator = services["aggregator"]

    def _range(preset: RangePreset | None, start: date | None, end: date | None):
        now = now_local(config.timezone)
        if preset is None:
            preset = RangePreset.CUSTOM if (start or end) else config.default_preset
        return resolve_range(preset, now, start, end), now

    @router.get("/reports/overview")
    async def overview(
        request: Request,
        preset: RangePreset | None = Query(None),
        start: date | None = Query(None),
        end: date | None = Query(None),
        status: str | None = Query(None),
        search: str | None = Query(None),
        payout_state: PayoutState = Query(PayoutState.ALL),
        payout_search: str | None = Query(None),
    ):
        date_range, now = _range(preset, start, end)
        filters = ProjectionFilters(
            statuses=parse_statuses(status),
            search=search,
            payout_state=payout_state,
            payout_search=payout_search,
        )
        batch = documents.snapshot(config.org_id)
        projection = aggregator.project(batch, date_range, filters, now)
        return success_response(
            projection.model_dump(mode="json"),
            request.state.request_id,
        ).model_dump(mode="json")

    @router.get("/reports/invoices")
    async def invoice_report(
        request: Request,
        preset: RangePreset | None = Query(None),
        start: date | None = Query(None),
        end: date | None = Query(None),
        mode: ReportMode = Query(ReportMode.SENT_PAID),
    ):
        date_range, now = _range(preset, start, end)
        batch = documents.snapshot(config.org_id)
        report = build_invoice_report(batch.invoices, date_range, mode, batch.jobs, now)

        data = report.model_dump(mode="json")
        data["overview"] = invoice_overview(batch.invoices).model_dump(mode="json")
        return success_response(data, request.state.request_id).model_dump(mode="json")

    @router.get("/reports/invoices.csv")
    async def invoice_report_csv(
        request: Request,
        preset: RangePreset | None = Query(None),
        start: date | None = Query(None),
        end: date | None = Query(None),
        mode: ReportMode = Query(ReportMode.SENT_PAID),
    ):
        date_range, now = _range(preset, start, end)
        batch = documents.snapshot(config.org_id)
        report = build_invoice_report(batch.invoices, date_range, mode, batch.jobs, now)

        return Response(
            content=to_csv(report.rows),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
        )

    return router
