"""Reporting configuration."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from core.models import RangePreset


class ReportingConfig(BaseModel):
    """
    Configuration for the finance core.

    The organization id is passed down from here to every service and
    router; nothing reads a globally selected organization.
    """

    org_id: str = Field(
        ...,
        min_length=1,
        description="Organization whose documents are aggregated and numbered",
    )
    timezone: str = Field(
        default="UTC",
        description="IANA zone used for day and month boundaries",
    )
    currency: str = Field(
        default="USD",
        description="Display currency; amounts are never converted",
    )
    top_n: int = Field(
        default=5,
        description="Length of top-jobs and top-employees rankings",
        ge=1,
        le=50,
    )
    default_preset: RangePreset = Field(
        default=RangePreset.SIX_MONTHS,
        description="Range used when a request names none",
    )

    # Invoice numbering
    invoice_prefix: str = Field(
        default="INV",
        description="Leading segment of invoice numbers",
        min_length=1,
        max_length=10,
    )
    invoice_sequence_width: int = Field(
        default=6,
        description="Zero-padded width of the yearly sequence",
        ge=3,
        le=10,
    )
    allow_degraded_invoice_numbers: bool = Field(
        default=True,
        description="Fall back to clock-derived numbers when the counter store fails",
    )

    database_url: str | None = Field(
        default=None,
        description="PostgreSQL DSN for document and counter storage",
    )


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(**overrides) -> ReportingConfig:
    """
    Build config from environment variables (a .env file is honored).

    Variables: FINANCE_ORG_ID, FINANCE_TIMEZONE, FINANCE_CURRENCY,
    FINANCE_TOP_N, FINANCE_DEFAULT_PRESET, FINANCE_INVOICE_PREFIX,
    FINANCE_ALLOW_DEGRADED_NUMBERS, DATABASE_URL.

    Raises:
        pydantic.ValidationError: If FINANCE_ORG_ID is missing or a value is invalid
    """
    load_dotenv()

    values = {
        "org_id": os.getenv("FINANCE_ORG_ID", ""),
        "timezone": os.getenv("FINANCE_TIMEZONE", "UTC"),
        "currency": os.getenv("FINANCE_CURRENCY", "USD"),
        "top_n": os.getenv("FINANCE_TOP_N", "5"),
        "default_preset": os.getenv("FINANCE_DEFAULT_PRESET", RangePreset.SIX_MONTHS.value),
        "invoice_prefix": os.getenv("FINANCE_INVOICE_PREFIX", "INV"),
        "allow_degraded_invoice_numbers": _env_bool("FINANCE_ALLOW_DEGRADED_NUMBERS", True),
        "database_url": os.getenv("DATABASE_URL"),
    }
    values.update(overrides)
    return ReportingConfig(**values)
