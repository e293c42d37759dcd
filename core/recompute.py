"""
Job money recomputation.

recompute() derives `computed` from the job's cached totals. The mutation
helpers keep the cached totals in step with the embedded arrays and call
recompute() before returning, so every job handed to persistence satisfies:

    computed.total_expenses_cents == total_payouts_cents + total_materials_cents
    computed.net_profit_cents == total_earnings_cents - computed.total_expenses_cents

Nothing here fetches or persists; see core.services.job_service.
"""

from datetime import datetime
from typing import Iterable

from core.models import EarningEntry, Job, JobComputed, MaterialExpense, Payout
from core.money import sum_cents, to_cents

LINE_KINDS = ("earning", "payout", "material")


def recompute(job: Job) -> Job:
    """
    Return a copy of job with `computed` rebuilt from the cached totals.

    Pure and idempotent. Missing totals count as 0.
    """
    earnings = job.earnings.total_earnings_cents or 0
    payouts = job.expenses.total_payouts_cents or 0
    materials = job.expenses.total_materials_cents or 0

    total_expenses = payouts + materials
    computed = JobComputed(
        total_expenses_cents=total_expenses,
        net_profit_cents=earnings - total_expenses,
    )
    return job.model_copy(update={"computed": computed})


def sum_earnings(entries: Iterable[EarningEntry] | None) -> int:
    return sum_cents(e.amount_cents for e in entries or [])


def sum_payouts(payouts: Iterable[Payout] | None) -> int:
    return sum_cents(p.amount_cents for p in payouts or [])


def sum_materials(materials: Iterable[MaterialExpense] | None) -> int:
    return sum_cents(m.amount_cents for m in materials or [])


def refresh_totals(job: Job) -> Job:
    """
    Re-derive cached payout/material totals from the embedded arrays, then recompute.

    Earnings are left alone: they are commonly a lump sum with no entries.
    """
    expenses = job.expenses.model_copy(update={
        "total_payouts_cents": sum_payouts(job.expenses.payouts),
        "total_materials_cents": sum_materials(job.expenses.materials),
    })
    return recompute(job.model_copy(update={"expenses": expenses}))


def add_earning_entry(job: Job, entry: EarningEntry) -> Job:
    """Append an earning entry and add its amount to the earnings total."""
    earnings = job.earnings.model_copy(update={
        "entries": [*job.earnings.entries, entry],
        "total_earnings_cents": (job.earnings.total_earnings_cents or 0) + (entry.amount_cents or 0),
    })
    return recompute(job.model_copy(update={"earnings": earnings}))


def set_total_earnings(job: Job, total_earnings_cents: int) -> Job:
    """Record a lump-sum earnings total."""
    if total_earnings_cents < 0:
        raise ValueError("total_earnings_cents must be non-negative")
    earnings = job.earnings.model_copy(update={"total_earnings_cents": total_earnings_cents})
    return recompute(job.model_copy(update={"earnings": earnings}))


def add_job_payout(job: Job, payout: Payout) -> Job:
    """Append a payout to the job's expenses."""
    expenses = job.expenses.model_copy(update={
        "payouts": [*job.expenses.payouts, payout],
    })
    return refresh_totals(job.model_copy(update={"expenses": expenses}))


def add_material(job: Job, material: MaterialExpense) -> Job:
    """Append a material expense to the job's expenses."""
    expenses = job.expenses.model_copy(update={
        "materials": [*job.expenses.materials, material],
    })
    return refresh_totals(job.model_copy(update={"expenses": expenses}))


def mark_payouts_paid(job: Job, payout_ids: Iterable[str], paid_at: datetime) -> Job:
    """Set paid_at on the job's pending payouts whose id is in payout_ids."""
    ids = set(payout_ids)
    payouts = [
        p.model_copy(update={"paid_at": paid_at}) if p.id in ids and not p.is_paid else p
        for p in job.expenses.payouts
    ]
    expenses = job.expenses.model_copy(update={"payouts": payouts})
    return refresh_totals(job.model_copy(update={"expenses": expenses}))


def remove_line(job: Job, kind: str, line_id: str) -> Job:
    """
    Remove an earning entry, payout or material by id.

    Raises:
        ValueError: If kind is unknown or no line has that id
    """
    if kind not in LINE_KINDS:
        raise ValueError(f"Unknown line kind '{kind}'. Valid kinds: {', '.join(LINE_KINDS)}")

    if kind == "earning":
        removed = [e for e in job.earnings.entries if e.id == line_id]
        if not removed:
            raise ValueError(f"Earning entry {line_id} not found")
        total = (job.earnings.total_earnings_cents or 0) - sum_earnings(removed)
        earnings = job.earnings.model_copy(update={
            "entries": [e for e in job.earnings.entries if e.id != line_id],
            "total_earnings_cents": max(total, 0),
        })
        return recompute(job.model_copy(update={"earnings": earnings}))

    field = "payouts" if kind == "payout" else "materials"
    current = getattr(job.expenses, field)
    kept = [line for line in current if line.id != line_id]
    if len(kept) == len(current):
        raise ValueError(f"{kind.capitalize()} {line_id} not found")
    expenses = job.expenses.model_copy(update={field: kept})
    return refresh_totals(job.model_copy(update={"expenses": expenses}))


def material_amount_cents(unit_price_dollars: float, quantity: int) -> int:
    """Material line amount: unit price times quantity, rounded to cents."""
    if quantity < 0 or unit_price_dollars < 0:
        raise ValueError("unit price and quantity must be non-negative")
    return to_cents(unit_price_dollars * quantity)


def square_footage_payout_cents(sqft: float, rate_per_sq_ft: float) -> int:
    """Crew payout computed as square footage times the per-square-foot rate."""
    if sqft < 0 or rate_per_sq_ft < 0:
        raise ValueError("sqft and rate must be non-negative")
    return to_cents(sqft * rate_per_sq_ft)
