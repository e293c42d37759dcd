"""Tests for the money-change audit trail."""

from uuid import UUID

from core.audit import AuditAction, AuditLogger, compute_changes


class TestAuditAction:
    """Tests for AuditAction enum."""

    def test_has_create_update_delete(self):
        """AuditAction has required values."""
        assert AuditAction.CREATE.value == "create"
        assert AuditAction.UPDATE.value == "update"
        assert AuditAction.DELETE.value == "delete"


class TestComputeChanges:
    """Tests for compute_changes utility function."""

    def test_detects_changed_money(self):
        """Different values for same key detected."""
        old = {"earnings": {"totalEarningsCents": 1000}, "status": "active"}
        new = {"earnings": {"totalEarningsCents": 1500}, "status": "active"}

        changes = compute_changes(old, new)

        assert changes == {
            "earnings": {"old": {"totalEarningsCents": 1000}, "new": {"totalEarningsCents": 1500}},
        }

    def test_detects_added_and_removed_fields(self):
        changes = compute_changes({"memo": "x"}, {"paidAt": "2025-06-01T00:00:00Z"})

        assert changes["memo"] == {"old": "x", "new": None}
        assert changes["paidAt"] == {"old": None, "new": "2025-06-01T00:00:00Z"}

    def test_excludes_updated_at_by_default(self):
        """updatedAt not reported as change."""
        old = {"status": "sent", "updatedAt": "2025-06-01T00:00:00Z"}
        new = {"status": "sent", "updatedAt": "2025-06-02T00:00:00Z"}

        assert compute_changes(old, new) == {}

    def test_custom_exclude_fields(self):
        """Can exclude other fields instead."""
        old = {"status": "sent", "computed": 1}
        new = {"status": "paid", "computed": 2}

        changes = compute_changes(old, new, exclude_fields={"computed"})

        assert "status" in changes
        assert "computed" not in changes


class TestAuditLogger:
    """Writes go to audit_log with org and actor passed explicitly."""

    def test_log_change_inserts_row(self, mock_postgres, org_id):
        audit = AuditLogger(mock_postgres)

        audit.log_change(
            org_id=org_id,
            entity_type="invoice",
            entity_id="inv-1",
            action=AuditAction.UPDATE,
            changes={"status": {"old": "sent", "new": "paid"}},
            actor_id="user-9",
        )

        sql, params = mock_postgres.execute.call_args.args
        assert "INSERT INTO audit_log" in sql
        assert isinstance(params[0], UUID)
        assert params[1:7] == (
            org_id, "user-9", "invoice", "inv-1", "update",
            {"status": {"old": "sent", "new": "paid"}},
        )
        assert params[7].tzinfo is not None

    def test_history_is_org_scoped(self, mock_postgres, org_id):
        mock_postgres.execute.return_value = [{"action": "create"}]
        audit = AuditLogger(mock_postgres)

        history = audit.get_entity_history(org_id, "job", "job-1")

        assert history == [{"action": "create"}]
        sql, params = mock_postgres.execute.call_args.args
        assert "ORDER BY created_at DESC" in sql
        assert params == (org_id, "job", "job-1")
