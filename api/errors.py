"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.invoice_numbers import InvoiceNumberError
from core.reporting import ReportExportError

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            status, code = 404, ErrorCodes.NOT_FOUND
        elif "voided" in message.lower():
            status, code = 409, ErrorCodes.INVOICE_VOIDED
        else:
            status, code = 400, ErrorCodes.INVALID_REQUEST
        return JSONResponse(
            status_code=status,
            content=error_response(code, message, _request_id(request)).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                str(exc.errors()),
                _request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(InvoiceNumberError)
    async def invoice_number_error_handler(request: Request, exc: InvoiceNumberError):
        logger.error("Invoice number allocation failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content=error_response(
                ErrorCodes.INVOICE_NUMBER_UNAVAILABLE,
                "Invoice numbering is temporarily unavailable",
                _request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ReportExportError)
    async def export_error_handler(request: Request, exc: ReportExportError):
        return JSONResponse(
            status_code=500,
            content=error_response(
                ErrorCodes.EXPORT_FAILED,
                str(exc),
                _request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_response(
                ErrorCodes.INTERNAL_ERROR,
                "An internal error occurred",
                _request_id(request),
            ).model_dump(mode="json"),
        )
