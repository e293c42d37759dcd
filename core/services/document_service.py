"""
Document snapshots from PostgreSQL.

Jobs, payouts and invoices are stored as JSONB documents (camelCase keys)
with org_id and a few lookup columns alongside. snapshot() is the pull side
of the aggregation pipeline.
"""

import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from clients.postgres_client import PostgresClient
from core.models import DocumentBatch, InvoiceDoc, Job, Payout

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class DocumentService:
    """Reads org-scoped document collections."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def _load(self, table: str, model: Type[M], org_id: str) -> list[M]:
        rows = self.postgres.execute(
            f"SELECT id, data FROM {table} WHERE org_id = %s AND deleted_at IS NULL",
            (org_id,)
        )
        return _validate_rows(rows, model, table)

    def list_jobs(self, org_id: str) -> list[Job]:
        return self._load("jobs", Job, org_id)

    def list_payouts(self, org_id: str) -> list[Payout]:
        return self._load("payouts", Payout, org_id)

    def list_invoices(self, org_id: str) -> list[InvoiceDoc]:
        return self._load("invoices", InvoiceDoc, org_id)

    def snapshot(self, org_id: str) -> DocumentBatch:
        """
        Current jobs, payouts and invoices for one organization.

        Args:
            org_id: Organization to read

        Returns:
            DocumentBatch. Documents that fail validation are skipped
            and logged.
        """
        if not org_id:
            raise ValueError("org_id is required for a document snapshot")

        return DocumentBatch(
            org_id=org_id,
            jobs=self.list_jobs(org_id),
            payouts=self.list_payouts(org_id),
            invoices=self.list_invoices(org_id),
        )


def _validate_rows(rows: list[dict[str, Any]], model: Type[M], table: str) -> list[M]:
    documents = []
    for row in rows:
        data = dict(row.get("data") or {})
        data.setdefault("id", str(row["id"]))
        try:
            documents.append(model.model_validate(data))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s document %s: %d validation error(s)",
                table, row["id"], e.error_count(),
            )
    return documents
