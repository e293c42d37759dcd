"""Tests for /api/reports endpoints."""

from core.reporting import ReportExportError
from tests.factories import TEST_ORG_ID

JUNE = {"start": "2025-06-01", "end": "2025-06-30"}


class TestOverview:

    def test_custom_range(self, client, documents):
        r = client.get("/api/reports/overview", params=JUNE)
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True

        data = body["data"]
        assert data["range"]["preset"] == "custom"
        totals = data["totals"]
        assert totals["job_count"] == 1
        assert totals["earnings_cents"] == 500000
        assert totals["payout_count"] == 2
        assert totals["pending_payouts_cents"] == 40000
        assert totals["paid_payouts_cents"] == 60000
        assert data["trend"]["keys"] == ["2025-06"]
        documents.snapshot.assert_called_once_with(TEST_ORG_ID)

    def test_all_time(self, client):
        data = client.get("/api/reports/overview", params={"preset": "all"}).json()["data"]
        assert data["range"]["start"] is None
        assert data["totals"]["job_count"] == 3
        assert data["totals"]["earnings_cents"] == 800000
        assert [e["key"] for e in data["top_jobs"]] == ["job-1", "job-2", "job-3"]

    def test_status_filter(self, client):
        data = client.get("/api/reports/overview", params={"preset": "all", "status": "paid,draft"}).json()["data"]
        assert data["totals"]["job_count"] == 2

    def test_payout_state_filter(self, client):
        data = client.get("/api/reports/overview", params={"preset": "all", "payout_state": "pending"}).json()["data"]
        assert data["totals"]["payout_count"] == 2
        assert data["totals"]["paid_payouts_cents"] == 0

    def test_unknown_status_rejected(self, client):
        r = client.get("/api/reports/overview", params={"status": "active,bogus"})
        assert r.status_code == 400
        error = r.json()["error"]
        assert error["code"] == "INVALID_REQUEST"
        assert "Valid statuses" in error["message"]

    def test_unknown_preset_rejected(self, client):
        r = client.get("/api/reports/overview", params={"preset": "fortnight"})
        assert r.status_code == 422
        assert r.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_request_id_in_meta(self, client):
        r = client.get("/api/reports/overview", params={"preset": "all"}, headers={"X-Request-ID": "req-42"})
        assert r.json()["meta"]["request_id"] == "req-42"


class TestInvoiceReport:

    def test_sent_paid_all_time(self, client):
        data = client.get("/api/reports/invoices", params={"preset": "all"}).json()["data"]
        assert data["mode"] == "sentPaid"
        assert data["summary"]["count"] == 2
        assert data["summary"]["total_cents"] == 230000
        assert data["summary"]["paid_cents"] == 150000
        assert data["summary"]["outstanding_cents"] == 80000
        assert data["filename"] == "invoices-report_2025-05-01_to_2025-06-05.csv"

    def test_overview_ignores_range(self, client):
        data = client.get("/api/reports/invoices", params=JUNE).json()["data"]
        assert data["summary"]["count"] == 1
        assert data["overview"] == {
            "count": 4,
            "total_cents": 280000,
            "outstanding_cents": 110000,
            "paid_cents": 150000,
        }

    def test_include_drafts(self, client):
        data = client.get("/api/reports/invoices", params={**JUNE, "mode": "includeDrafts"}).json()["data"]
        # Newest basis date first; the draft is dated by created_at
        assert [row["number"] for row in data["rows"]] == ["INV-2025-000003", "INV-2025-000002"]
        assert data["rows"][0]["status"] == "draft"

    def test_paid_only_uses_paid_date(self, client):
        data = client.get("/api/reports/invoices", params={**JUNE, "mode": "paidOnly"}).json()["data"]
        assert [row["number"] for row in data["rows"]] == ["INV-2025-000001"]


class TestInvoiceCsv:

    def test_download(self, client):
        r = client.get("/api/reports/invoices.csv", params=JUNE)
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert r.headers["content-disposition"] == (
            'attachment; filename="invoices-report_2025-06-01_to_2025-06-30.csv"'
        )
        lines = r.text.splitlines()
        assert lines[0] == "Invoice #,Status,Date,Job,Total,Customer Name,Customer Email,Customer Phone"
        assert len(lines) == 2
        assert lines[1].startswith("INV-2025-000002,sent,2025-06-05,")

    def test_export_failure(self, client, monkeypatch):
        def fail(rows):
            raise ReportExportError("Could not serialize invoice report: bad row")

        monkeypatch.setattr("api.reports.to_csv", fail)
        r = client.get("/api/reports/invoices.csv", params=JUNE)
        assert r.status_code == 500
        assert r.json()["error"]["code"] == "EXPORT_FAILED"
