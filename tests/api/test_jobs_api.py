"""Tests for /api/jobs endpoints."""

from core.models import EarningEntry, MaterialExpense, Payout
from tests.factories import TEST_ORG_ID, make_job


def _job():
    return make_job("job-1", earnings=500000, payouts=42000)


class TestGetJob:

    def test_found(self, client, job_service):
        job_service.get_by_id.return_value = _job()
        r = client.get("/api/jobs/job-1")
        assert r.status_code == 200
        assert r.json()["data"]["computed"]["net_profit_cents"] == 458000

    def test_missing(self, client, job_service):
        job_service.get_by_id.return_value = None
        r = client.get("/api/jobs/nope")
        assert r.status_code == 404
        assert r.json()["error"]["message"] == "Job nope not found"


class TestPayouts:

    def test_square_footage_payout(self, client, job_service):
        job_service.add_payout.return_value = _job()

        r = client.post("/api/jobs/job-1/payouts", json={
            "sqft": 1200, "rate_per_sq_ft": 0.35, "employee_name": "Sam Cho",
        })

        assert r.status_code == 200
        org_id, job_id, payout = job_service.add_payout.call_args.args
        assert (org_id, job_id) == (TEST_ORG_ID, "job-1")
        assert isinstance(payout, Payout)
        assert payout.amount_cents == 42000

    def test_amount_required(self, client, job_service):
        r = client.post("/api/jobs/job-1/payouts", json={"employee_name": "Sam Cho"})
        assert r.status_code == 422
        job_service.add_payout.assert_not_called()

    def test_job_not_found(self, client, job_service):
        job_service.add_payout.side_effect = ValueError("Job job-9 not found")
        r = client.post("/api/jobs/job-9/payouts", json={"amount_cents": 100})
        assert r.status_code == 404


class TestMaterials:

    def test_unit_price_times_quantity(self, client, job_service):
        job_service.add_material.return_value = _job()

        r = client.post("/api/jobs/job-1/materials", json={"name": "Shingles", "unit_price": 32.5, "quantity": 10})

        assert r.status_code == 200
        material = job_service.add_material.call_args.args[2]
        assert isinstance(material, MaterialExpense)
        assert material.amount_cents == 32500

    def test_negative_amount_rejected(self, client):
        r = client.post("/api/jobs/job-1/materials", json={"name": "Tape", "amount_cents": -5})
        assert r.status_code == 422


class TestEarnings:

    def test_entry(self, client, job_service):
        job_service.add_earning.return_value = _job()
        r = client.post("/api/jobs/job-1/earnings", json={"amount_cents": 25000, "label": "Deposit"})
        assert r.status_code == 200
        entry = job_service.add_earning.call_args.args[2]
        assert isinstance(entry, EarningEntry)
        assert entry.amount_cents == 25000
        job_service.set_total_earnings.assert_not_called()

    def test_lump_sum(self, client, job_service):
        job_service.set_total_earnings.return_value = _job()
        r = client.post("/api/jobs/job-1/earnings", json={"total_earnings_cents": 600000})
        assert r.status_code == 200
        job_service.set_total_earnings.assert_called_once_with(TEST_ORG_ID, "job-1", 600000)

    def test_both_amounts_rejected(self, client):
        r = client.post("/api/jobs/job-1/earnings", json={"amount_cents": 1, "total_earnings_cents": 2})
        assert r.status_code == 422


class TestRemoveLine:

    def test_plural_segment_maps_to_kind(self, client, job_service):
        job_service.remove_line.return_value = _job()
        r = client.delete("/api/jobs/job-1/payouts/p-1")
        assert r.status_code == 200
        job_service.remove_line.assert_called_once_with(TEST_ORG_ID, "job-1", "payout", "p-1")

    def test_missing_line(self, client, job_service):
        job_service.remove_line.side_effect = ValueError("material m-9 not found on job job-1")
        assert client.delete("/api/jobs/job-1/materials/m-9").status_code == 404


class TestHistory:

    def test_audit_entries(self, client, job_service):
        job_service.get_by_id.return_value = _job()
        job_service.history.return_value = [
            {"action": "update", "entity_id": "job-1", "changes": {"computed": {"old": 1, "new": 2}}},
        ]

        r = client.get("/api/jobs/job-1/history")

        assert r.status_code == 200
        assert r.json()["data"][0]["action"] == "update"
        job_service.history.assert_called_once_with(TEST_ORG_ID, "job-1")

    def test_missing_job(self, client, job_service):
        job_service.get_by_id.return_value = None
        assert client.get("/api/jobs/nope/history").status_code == 404
        job_service.history.assert_not_called()
