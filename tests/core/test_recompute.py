"""Tests for core/recompute.py - derived job money fields."""

from datetime import datetime, timezone

import pytest

from core.models import EarningEntry, Earnings, Expenses, Job, MaterialExpense, Payout
from core.recompute import (
    add_earning_entry,
    add_job_payout,
    add_material,
    mark_payouts_paid,
    material_amount_cents,
    recompute,
    refresh_totals,
    remove_line,
    set_total_earnings,
    square_footage_payout_cents,
)
from tests.factories import make_job


def _consistent(job: Job) -> bool:
    expenses = job.expenses.total_payouts_cents + job.expenses.total_materials_cents
    return (
        job.computed.total_expenses_cents == expenses
        and job.computed.net_profit_cents == job.earnings.total_earnings_cents - expenses
    )


class TestRecompute:

    def test_profit_scenario(self):
        """$5,000 earned, $1,000 payouts, $500 materials -> $3,500 profit."""
        job = Job(
            id="j1",
            earnings=Earnings(total_earnings_cents=500000),
            expenses=Expenses(total_payouts_cents=100000, total_materials_cents=50000),
        )
        result = recompute(job)
        assert result.computed.total_expenses_cents == 150000
        assert result.computed.net_profit_cents == 350000

    def test_idempotent(self):
        job = make_job("j1", earnings=1000, payouts=300, materials=200)
        once = recompute(job)
        assert recompute(once) == once

    def test_does_not_mutate_input(self):
        job = Job(id="j1", earnings=Earnings(total_earnings_cents=100))
        recompute(job)
        assert job.computed.net_profit_cents == 0

    def test_missing_money_is_zero(self):
        """A document with no earnings or expenses still recomputes."""
        job = recompute(Job.model_validate({"id": "j1"}))
        assert job.computed.total_expenses_cents == 0
        assert job.computed.net_profit_cents == 0

    def test_loss_is_negative(self):
        job = recompute(make_job("j1", earnings=100, payouts=500))
        assert job.computed.net_profit_cents == -400

    def test_reads_cached_totals_not_arrays(self):
        """Arrays are not re-summed; cached totals are authoritative here."""
        job = Job(
            id="j1",
            expenses=Expenses(
                total_payouts_cents=999,
                payouts=[Payout(id="p", amount_cents=1)],
            ),
        )
        assert recompute(job).computed.total_expenses_cents == 999


class TestRefreshTotals:

    def test_rebuilds_from_arrays(self):
        job = Job(
            id="j1",
            expenses=Expenses(
                total_payouts_cents=999,
                payouts=[Payout(id="a", amount_cents=100), Payout(id="b", amount_cents=250)],
                materials=[MaterialExpense(id="m", name="Caulk", amount_cents=40)],
            ),
        )
        result = refresh_totals(job)
        assert result.expenses.total_payouts_cents == 350
        assert result.expenses.total_materials_cents == 40
        assert _consistent(result)

    def test_lump_sum_earnings_kept(self):
        job = Job(id="j1", earnings=Earnings(total_earnings_cents=5000))
        assert refresh_totals(job).earnings.total_earnings_cents == 5000


class TestMutations:

    def test_add_payout_updates_totals(self):
        job = make_job("j1", earnings=10000)
        result = add_job_payout(job, Payout(id="p1", amount_cents=2500))
        assert result.expenses.total_payouts_cents == 2500
        assert result.computed.net_profit_cents == 7500
        assert _consistent(result)

    def test_add_material(self):
        result = add_material(make_job("j1"), MaterialExpense(id="m1", name="Tape", amount_cents=899))
        assert result.expenses.total_materials_cents == 899
        assert _consistent(result)

    def test_add_earning_entry_sums_entries(self):
        job = add_earning_entry(make_job("j1"), EarningEntry(id="e1", amount_cents=1000))
        job = add_earning_entry(job, EarningEntry(id="e2", amount_cents=500))
        assert job.earnings.total_earnings_cents == 1500
        assert _consistent(job)

    def test_add_earning_entry_keeps_lump_sum(self):
        job = add_earning_entry(make_job("j1", earnings=500000, payouts=100000), EarningEntry(id="e1", amount_cents=1000))
        assert job.earnings.total_earnings_cents == 501000
        assert job.computed.net_profit_cents == 401000
        assert _consistent(job)

    def test_set_total_earnings(self):
        job = set_total_earnings(make_job("j1", payouts=100), 1000)
        assert job.computed.net_profit_cents == 900

    def test_set_total_earnings_rejects_negative(self):
        with pytest.raises(ValueError):
            set_total_earnings(make_job("j1"), -1)

    def test_remove_payout(self):
        job = add_job_payout(make_job("j1"), Payout(id="p1", amount_cents=2500))
        result = remove_line(job, "payout", "p1")
        assert result.expenses.payouts == []
        assert result.expenses.total_payouts_cents == 0

    def test_remove_earning(self):
        job = add_earning_entry(make_job("j1"), EarningEntry(id="e1", amount_cents=1000))
        assert remove_line(job, "earning", "e1").earnings.total_earnings_cents == 0

    def test_remove_earning_from_lump_sum(self):
        job = add_earning_entry(make_job("j1", earnings=5000), EarningEntry(id="e1", amount_cents=1000))
        result = remove_line(job, "earning", "e1")
        assert result.earnings.entries == []
        assert result.earnings.total_earnings_cents == 5000
        assert _consistent(result)

    def test_mark_payouts_paid(self):
        paid_before = datetime(2025, 5, 1, tzinfo=timezone.utc)
        job = make_job("j1", earnings=9000, payouts=3000, payout_lines=[
            Payout(id="p1", amount_cents=1000),
            Payout(id="p2", amount_cents=1500, paid_at=paid_before),
            Payout(id="p3", amount_cents=500),
        ])
        now = datetime(2025, 6, 1, tzinfo=timezone.utc)

        result = mark_payouts_paid(job, ["p1", "p2"], now)

        assert [p.paid_at for p in result.expenses.payouts] == [now, paid_before, None]
        assert result.computed == job.computed
        assert _consistent(result)

    def test_remove_missing_line(self):
        with pytest.raises(ValueError, match="not found"):
            remove_line(make_job("j1"), "material", "nope")

    def test_remove_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown line kind"):
            remove_line(make_job("j1"), "tip", "x")


class TestLineAmounts:

    def test_material_amount(self):
        assert material_amount_cents(1.1, 3) == 330
        assert material_amount_cents(12.5, 0) == 0

    def test_square_footage_payout(self):
        assert square_footage_payout_cents(1200, 0.35) == 42000

    def test_negative_inputs_rejected(self):
        with pytest.raises(ValueError):
            material_amount_cents(-1, 2)
        with pytest.raises(ValueError):
            square_footage_payout_cents(10, -0.5)
