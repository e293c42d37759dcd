"""Tests for core/config.py - ReportingConfig and environment loading."""

import pytest
from pydantic import ValidationError

from core.config import ReportingConfig, load_config
from core.models import RangePreset


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep a developer's .env or shell from leaking into these tests."""
    monkeypatch.setattr("core.config.load_dotenv", lambda: False)
    for name in (
        "FINANCE_ORG_ID", "FINANCE_TIMEZONE", "FINANCE_CURRENCY", "FINANCE_TOP_N",
        "FINANCE_DEFAULT_PRESET", "FINANCE_INVOICE_PREFIX", "FINANCE_ALLOW_DEGRADED_NUMBERS",
        "DATABASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestReportingConfig:

    def test_defaults(self):
        config = ReportingConfig(org_id="org-1")
        assert config.timezone == "UTC"
        assert config.currency == "USD"
        assert config.top_n == 5
        assert config.default_preset == RangePreset.SIX_MONTHS
        assert config.invoice_prefix == "INV"
        assert config.invoice_sequence_width == 6
        assert config.allow_degraded_invoice_numbers is True
        assert config.database_url is None

    def test_org_required(self):
        with pytest.raises(ValidationError):
            ReportingConfig(org_id="")

    def test_top_n_bounds(self):
        with pytest.raises(ValidationError):
            ReportingConfig(org_id="org-1", top_n=0)


class TestLoadConfig:

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("FINANCE_ORG_ID", "org-env")
        monkeypatch.setenv("FINANCE_TIMEZONE", "America/Denver")
        monkeypatch.setenv("FINANCE_TOP_N", "10")
        monkeypatch.setenv("FINANCE_DEFAULT_PRESET", "ytd")
        monkeypatch.setenv("FINANCE_ALLOW_DEGRADED_NUMBERS", "false")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/finance")

        config = load_config()

        assert config.org_id == "org-env"
        assert config.timezone == "America/Denver"
        assert config.top_n == 10
        assert config.default_preset == RangePreset.YTD
        assert config.allow_degraded_invoice_numbers is False
        assert config.database_url == "postgresql://localhost/finance"

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("FINANCE_ORG_ID", "org-env")
        assert load_config(org_id="org-override").org_id == "org-override"

    def test_missing_org_fails(self):
        with pytest.raises(ValidationError):
            load_config()
