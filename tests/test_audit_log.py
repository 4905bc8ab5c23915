"""Tests for the append-only audit log."""

import tempfile
from pathlib import Path

from campusguard.security.audit_log import AuditLogger


def test_log_and_filter():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        audit.log_action("a1", "reviewed_approved", "FlaggedContent", "f1", {"content_id": "L1"})
        audit.log_action("a2", "created_prohibited_item", "ProhibitedItem", "r1")
        audit.log_action("a1", "reviewed_deleted", "FlaggedContent", "f2")

        assert len(audit.get_events()) == 3
        assert {e.target_id for e in audit.get_events(admin_id="a1")} == {"f1", "f2"}
        assert [e.target_id for e in audit.get_events(target_type="ProhibitedItem")] == ["r1"]
        assert len(audit.get_events(limit=1)) == 1

        events = audit.get_events_for_target("FlaggedContent", "f1")
        assert len(events) == 1
        assert events[0].details == {"content_id": "L1"}


def test_malformed_lines_are_skipped():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        audit.log_action("a1", "suspended_user", "Profile", "u1")
        (Path(tmpdir) / "2000-01-01.jsonl").write_text("not json\n\n")
        assert [e.action for e in audit.get_events()] == ["suspended_user"]


def test_failed_write_returns_none():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir) / "audit")
        (Path(tmpdir) / "audit").rmdir()
        (Path(tmpdir) / "audit").write_text("a file, not a directory")
        assert audit.log_action("a1", "deleted_listing", "listing", "L1") is None


def test_target_history_is_not_paged():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        for i in range(250):
            audit.log_action("a1", "updated_prohibited_item", "ProhibitedItem", "r1", {"n": i})
        audit.log_action("a1", "updated_prohibited_item", "ProhibitedItem", "r2")
        audit.log_action("a1", "reviewed_approved", "FlaggedContent", "r1")

        events = audit.get_events_for_target("ProhibitedItem", "r1")
        assert len(events) == 250
        assert len(audit.get_events()) == 200
        timestamps = [e.timestamp for e in events]
        assert timestamps == sorted(timestamps, reverse=True)
