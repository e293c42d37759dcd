"""
Audit trail for money-bearing document changes.

Every job recompute that changes totals and every invoice lifecycle step is
logged here. The audit log is:
- Append-only (entries never modified or deleted)
- Org-scoped and actor-attributed (both passed explicitly)
- Detailed (captures old and new values)
"""

from enum import Enum
from typing import Any
from uuid import uuid4

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc


class AuditAction(Enum):
    """Type of change made to a document."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two document states.

    Args:
        old: Previous state
        new: New state
        exclude_fields: Fields to ignore (defaults to {"updatedAt"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updatedAt"}
    changes = {}

    for key in set(old.keys()) | set(new.keys()):
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    return changes


class AuditLogger:
    """
    Writes audit entries.

    Pass JSON-safe values (model_dump(mode="json") / to_document()).

    Usage:
        audit = AuditLogger(postgres)

        audit.log_change(
            org_id=org_id,
            entity_type="invoice",
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            changes={"created": invoice.to_document()},
        )

        history = audit.get_entity_history(org_id, "invoice", invoice.id)
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        org_id: str,
        entity_type: str,
        entity_id: str,
        action: AuditAction,
        changes: dict[str, Any],
        actor_id: str | None = None
    ) -> None:
        """
        Log a document change.

        Changes format by action:
        - CREATE: {"created": {full document}}
        - UPDATE: {"field": {"old": old_val, "new": new_val}, ...}
        - DELETE: {"deleted": {full document at deletion}}
        """
        self.postgres.execute(
            """
            INSERT INTO audit_log (id, org_id, actor_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                uuid4(),
                org_id,
                actor_id,
                entity_type,
                entity_id,
                action.value,
                changes,
                now_utc()
            )
        )

    def get_entity_history(self, org_id: str, entity_type: str, entity_id: str) -> list[dict[str, Any]]:
        """
        Full audit history for a document, newest first.
        """
        return self.postgres.execute(
            """
            SELECT id, org_id, actor_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE org_id = %s AND entity_type = %s AND entity_id = %s
            ORDER BY created_at DESC
            """,
            (org_id, entity_type, entity_id)
        )
