"""HTTP interface: response envelope, routers and the application factory."""

from api.base import (
    APIError,
    APIMeta,
    APIResponse,
    success_response,
    error_response,
    ErrorCodes,
)
from api.app import build_services, create_app
