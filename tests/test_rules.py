"""Tests for prohibited-item administration."""

import tempfile
from pathlib import Path

import pytest

from campusguard.auth.models import Profile
from campusguard.moderation.errors import AuthorizationError, RuleNotFoundError, ValidationError
from campusguard.moderation.rules import RuleManager
from campusguard.moderation.store import ProhibitedItemStore
from campusguard.security.audit_log import AuditLogger

MOD = Profile(id="mod", name="Mo", role="moderator")
USER = Profile(id="u1", name="Uma")


def _manager(tmpdir: str) -> tuple[RuleManager, AuditLogger]:
    audit = AuditLogger(Path(tmpdir) / "audit")
    return RuleManager(ProhibitedItemStore(Path(tmpdir) / "rules"), audit), audit


def test_rule_lifecycle_is_audited():
    with tempfile.TemporaryDirectory() as tmpdir:
        manager, audit = _manager(tmpdir)
        item = manager.create_rule(MOD, {"type": "keyword", "pattern": "vape", "severity": "high"})
        assert item.created_by == "mod"

        updated = manager.update_rule(MOD, item.id, {"severity": "critical"})
        assert updated.severity.value == "critical"

        disabled = manager.deactivate_rule(MOD, item.id)
        assert disabled.is_active is False
        assert manager.list_rules(MOD, is_active=True) == []

        manager.delete_rule(MOD, item.id)
        assert manager.list_rules(MOD) == []

        actions = [e.action for e in audit.get_events_for_target("ProhibitedItem", item.id)]
        assert sorted(actions) == [
            "created_prohibited_item",
            "deleted_prohibited_item",
            "updated_prohibited_item",
            "updated_prohibited_item",
        ]


def test_rules_require_moderator():
    with tempfile.TemporaryDirectory() as tmpdir:
        manager, audit = _manager(tmpdir)
        with pytest.raises(AuthorizationError):
            manager.create_rule(USER, {"type": "keyword", "pattern": "vape"})
        with pytest.raises(AuthorizationError):
            manager.list_rules(None)
        assert audit.get_events() == []


def test_invalid_and_missing_rules():
    with tempfile.TemporaryDirectory() as tmpdir:
        manager, audit = _manager(tmpdir)
        with pytest.raises(ValidationError):
            manager.create_rule(MOD, {"type": "regex", "pattern": "([bad"})
        with pytest.raises(RuleNotFoundError):
            manager.delete_rule(MOD, "missing")
        with pytest.raises(RuleNotFoundError):
            manager.update_rule(MOD, "missing", {"is_active": False})
        assert audit.get_events() == []
