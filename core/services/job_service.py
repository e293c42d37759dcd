"""
Job service: earnings and expense mutations.

Every mutation goes load -> mutate (core.recompute) -> persist, so stored
jobs always carry computed totals consistent with their cached sums. A job
and the standalone payout documents it touches are written in one
transaction; audit entries and events follow the commit.
"""

import logging
from typing import Any, Iterable
from uuid import uuid4

from clients.postgres_client import PostgresClient
from core import recompute as engine
from core.audit import AuditLogger, AuditAction, compute_changes
from core.event_bus import EventBus
from core.events import JobTotalsChanged, PayoutsMarkedPaid
from core.models import (
    EarningCreate,
    EarningEntry,
    Job,
    MaterialCreate,
    MaterialExpense,
    Payout,
    PayoutCreate,
    PayoutStub,
)
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_MONEY_FIELDS = ("earnings", "expenses", "computed")

Write = tuple[str, tuple]

_JOB_UPSERT = """
    INSERT INTO jobs (id, org_id, data, updated_at)
    VALUES (%s, %s, %s, %s)
    ON CONFLICT (id) DO UPDATE
    SET data = EXCLUDED.data, updated_at = EXCLUDED.updated_at
    WHERE jobs.org_id = EXCLUDED.org_id
"""

_PAYOUT_UPSERT = """
    INSERT INTO payouts (id, org_id, job_id, data, created_at)
    VALUES (%s, %s, %s, %s, %s)
    ON CONFLICT (id) DO UPDATE SET data = EXCLUDED.data
    WHERE payouts.org_id = EXCLUDED.org_id
"""

_PAYOUT_SOFT_DELETE = "UPDATE payouts SET deleted_at = %s WHERE id = %s AND org_id = %s"


def _job_write(job: Job) -> Write:
    return _JOB_UPSERT, (job.id, job.org_id, job.to_document(), job.updated_at)


def _payout_write(org_id: str, payout: Payout) -> Write:
    """Standalone payout document that the overview aggregates."""
    return _PAYOUT_UPSERT, (payout.id, org_id, payout.job_id, payout.to_document(), payout.created_at)


class JobService:
    """Service for job money operations within one organization."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        event_bus: EventBus | None = None,
    ):
        self.postgres = postgres
        self.audit = audit
        self.event_bus = event_bus

    def get_by_id(self, org_id: str, job_id: str) -> Job | None:
        """
        Get job by ID.

        Returns:
            Job if found in the organization and not deleted, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT id, data FROM jobs WHERE id = %s AND org_id = %s AND deleted_at IS NULL",
            (job_id, org_id)
        )
        if row is None:
            return None

        data = dict(row["data"] or {})
        data.setdefault("id", str(row["id"]))
        return Job.model_validate(data)

    def _require(self, org_id: str, job_id: str) -> Job:
        job = self.get_by_id(org_id, job_id)
        if job is None:
            raise ValueError(f"Job {job_id} not found")
        return job

    def history(self, org_id: str, job_id: str) -> list[dict[str, Any]]:
        """Audit entries for a job, newest first."""
        return self.audit.get_entity_history(org_id, "job", job_id)

    def save(self, job: Job, actor_id: str | None = None, previous: Job | None = None) -> Job:
        """
        Recompute and persist a job.

        Args:
            job: Job to store (its org_id must be set)
            actor_id: Who made the change, for the audit trail
            previous: Prior state, used to audit money changes

        Returns:
            The stored job with computed totals refreshed
        """
        return self._save(job, actor_id, previous)

    def _save(self, job: Job, actor_id: str | None, previous: Job | None, writes: Iterable[Write] = ()) -> Job:
        stored = self._prepare(job)
        self._write([*writes, _job_write(stored)])
        self._record(stored, previous, actor_id)
        return stored

    def _prepare(self, job: Job) -> Job:
        if not job.org_id:
            raise ValueError(f"Job {job.id} has no org_id")
        return engine.recompute(job).model_copy(update={"updated_at": now_utc()})

    def _write(self, writes: list[Write]) -> None:
        with self.postgres.transaction() as cur:
            for sql, params in writes:
                cur.execute(sql, params)

    def _record(self, stored: Job, previous: Job | None, actor_id: str | None) -> None:
        """Audit a committed job write; publish JobTotalsChanged when computed totals moved."""
        document = stored.to_document()
        if previous is None:
            self.audit.log_change(
                org_id=stored.org_id,
                entity_type="job",
                entity_id=stored.id,
                action=AuditAction.CREATE,
                changes={"created": document},
                actor_id=actor_id,
            )
            return

        old = {k: v for k, v in previous.to_document().items() if k in _MONEY_FIELDS}
        new = {k: v for k, v in document.items() if k in _MONEY_FIELDS}
        changes = compute_changes(old, new)
        if not changes:
            return

        self.audit.log_change(
            org_id=stored.org_id,
            entity_type="job",
            entity_id=stored.id,
            action=AuditAction.UPDATE,
            changes=changes,
            actor_id=actor_id,
        )
        if self.event_bus is not None and "computed" in changes:
            self.event_bus.publish(JobTotalsChanged.create(
                job=stored,
                previous_net_profit_cents=previous.computed.net_profit_cents,
            ))

    def add_payout(self, org_id: str, job_id: str, payout: Payout, actor_id: str | None = None) -> Job:
        """
        Attach a payout to a job.

        The standalone payout document and the job commit together.

        Raises:
            ValueError: If the job is not found
        """
        current = self._require(org_id, job_id)
        payout = payout.model_copy(update={
            "job_id": job_id,
            "org_id": org_id,
            "created_at": payout.created_at or now_utc(),
            "job_address_snapshot": payout.job_address_snapshot or current.address,
        })
        updated = engine.add_job_payout(current, payout)
        stored = self._save(updated, actor_id, current, [_payout_write(org_id, payout)])
        logger.info("Added payout %s (%d cents) to job %s", payout.id, payout.amount_cents, job_id)
        return stored

    def add_material(self, org_id: str, job_id: str, material: MaterialExpense, actor_id: str | None = None) -> Job:
        """
        Add a material expense to a job.

        Raises:
            ValueError: If the job is not found
        """
        current = self._require(org_id, job_id)
        material = material.model_copy(update={
            "created_at": material.created_at or now_utc(),
        })
        updated = engine.add_material(current, material)
        return self._save(updated, actor_id, current)

    def add_earning(self, org_id: str, job_id: str, entry: EarningEntry, actor_id: str | None = None) -> Job:
        """
        Record an earning entry; its amount is added to the earnings total.

        Raises:
            ValueError: If the job is not found
        """
        current = self._require(org_id, job_id)
        updated = engine.add_earning_entry(current, entry)
        return self._save(updated, actor_id, current)

    def set_total_earnings(self, org_id: str, job_id: str, total_earnings_cents: int, actor_id: str | None = None) -> Job:
        """Record a lump-sum earnings total."""
        current = self._require(org_id, job_id)
        updated = engine.set_total_earnings(current, total_earnings_cents)
        return self._save(updated, actor_id, current)

    def remove_line(self, org_id: str, job_id: str, kind: str, line_id: str, actor_id: str | None = None) -> Job:
        """
        Remove an earning entry, payout or material from a job.

        A removed payout's standalone document is soft-deleted in the same
        transaction as the job write.

        Raises:
            ValueError: If the job or line is not found
        """
        current = self._require(org_id, job_id)
        updated = engine.remove_line(current, kind, line_id)
        writes = []
        if kind == "payout":
            writes.append((_PAYOUT_SOFT_DELETE, (now_utc(), line_id, org_id)))
        return self._save(updated, actor_id, current, writes)

    def mark_payouts_paid(self, org_id: str, payout_ids: list[str], actor_id: str | None = None) -> PayoutStub:
        """
        Mark payouts paid and return their pay stub.

        Pending payouts get paid_at set on their standalone document and on
        the matching payout embedded in their job; all of it commits in one
        transaction. Payouts that are already paid keep their paid_at and
        still count toward the stub total.

        Args:
            org_id: Organization the payouts belong to
            payout_ids: Standalone payout document ids
            actor_id: Who made the change, for the audit trail

        Returns:
            PayoutStub covering every selected payout

        Raises:
            ValueError: If nothing is selected or any payout is not found
        """
        ids = list(dict.fromkeys(payout_ids))
        if not ids:
            raise ValueError("No payouts selected")

        rows = self.postgres.execute(
            "SELECT id, data FROM payouts WHERE org_id = %s AND id = ANY(%s) AND deleted_at IS NULL",
            (org_id, ids)
        )
        found = {}
        for row in rows:
            data = dict(row["data"] or {})
            data.setdefault("id", str(row["id"]))
            payout = Payout.model_validate(data)
            found[payout.id] = payout

        missing = [payout_id for payout_id in ids if payout_id not in found]
        if missing:
            raise ValueError(f"Payout {', '.join(missing)} not found")

        now = now_utc()
        newly_paid = [found[i].model_copy(update={"paid_at": now}) for i in ids if not found[i].is_paid]
        paid_ids = [p.id for p in newly_paid]

        writes = [_payout_write(org_id, payout) for payout in newly_paid]
        jobs = []
        for job_id in dict.fromkeys(p.job_id for p in newly_paid if p.job_id):
            current = self.get_by_id(org_id, job_id)
            if current is None:
                logger.warning("Job %s of a paid payout not found; only payout documents updated", job_id)
                continue
            stored = self._prepare(engine.mark_payouts_paid(current, paid_ids, now))
            writes.append(_job_write(stored))
            jobs.append((stored, current))

        if writes:
            self._write(writes)

        for payout in newly_paid:
            self.audit.log_change(
                org_id=org_id,
                entity_type="payout",
                entity_id=payout.id,
                action=AuditAction.UPDATE,
                changes={"paidAt": {"old": None, "new": now.isoformat()}},
                actor_id=actor_id,
            )
        for stored, current in jobs:
            self._record(stored, current, actor_id)

        stub = build_stub([found[i] for i in ids], newly_paid)
        logger.info(
            "Marked %d of %d payouts paid (%d cents on stub)",
            stub.newly_paid, len(stub.payouts), stub.total_cents
        )
        if self.event_bus is not None and newly_paid:
            self.event_bus.publish(PayoutsMarkedPaid.create(org_id, stub))
        return stub


def build_stub(selected: list[Payout], newly_paid: list[Payout]) -> PayoutStub:
    """Pay stub over the selected payouts; names an employee only when there is exactly one."""
    updates = {p.id: p for p in newly_paid}
    payouts = [updates.get(p.id, p) for p in selected]
    employees = {(p.employee_id, p.employee_name) for p in payouts}
    employee_id, employee_name = employees.pop() if len(employees) == 1 else (None, "")
    return PayoutStub(
        employee_id=employee_id,
        employee_name=employee_name,
        paid_at=max(p.paid_at for p in payouts),
        payouts=payouts,
        total_cents=engine.sum_payouts(payouts),
        newly_paid=len(newly_paid),
    )


def new_line_id() -> str:
    """Id for an embedded earning/payout/material line."""
    return uuid4().hex


def payout_from_create(data: PayoutCreate) -> Payout:
    """Build a payout line; the amount is sqft x rate when no amount is given."""
    amount = data.amount_cents
    if amount is None:
        amount = engine.square_footage_payout_cents(data.sqft, data.rate_per_sq_ft)
    now = now_utc()
    return Payout(
        id=new_line_id(),
        employee_id=data.employee_id,
        category=data.category,
        amount_cents=amount,
        payee_nickname=data.payee_nickname,
        employee_name_snapshot=data.employee_name,
        method=data.method,
        memo=data.memo,
        sqft=data.sqft,
        rate_per_sq_ft=data.rate_per_sq_ft,
        created_at=now,
        paid_at=now if data.paid else None,
    )


def material_from_create(data: MaterialCreate) -> MaterialExpense:
    """Build a material line; the amount is unit price x quantity when no amount is given."""
    amount = data.amount_cents
    unit_price_cents = None
    if data.unit_price is not None:
        unit_price_cents = engine.material_amount_cents(data.unit_price, 1)
    if amount is None:
        amount = engine.material_amount_cents(data.unit_price, data.quantity)
    return MaterialExpense(
        id=new_line_id(),
        name=data.name.strip(),
        vendor=data.vendor,
        amount_cents=amount,
        category=data.category,
        unit_price_cents=unit_price_cents,
        quantity=data.quantity,
        purchased_at=data.purchased_at,
        created_at=now_utc(),
        notes=data.notes,
    )


def earning_from_create(data: EarningCreate) -> EarningEntry:
    return EarningEntry(
        id=new_line_id(),
        label=data.label,
        amount_cents=data.amount_cents or 0,
        received_at=data.received_at or now_utc(),
        reference=data.reference,
    )
