"""Tests for the file-based moderation stores."""

import tempfile
from pathlib import Path

import pytest

from campusguard.moderation.errors import InvalidTransitionError, RuleNotFoundError, ValidationError
from campusguard.moderation.models import (
    FlaggedContent,
    FlagStatus,
    ReportFlagDetails,
    UserReport,
    UserStrike,
)
from campusguard.moderation.store import ModerationStore, ProhibitedItemStore


def _flag(flag_id="f1", content_id="1", **overrides) -> FlaggedContent:
    return FlaggedContent(
        id=flag_id,
        content_type=overrides.pop("content_type", "listing"),
        content_id=content_id,
        user_id=overrides.pop("user_id", "owner"),
        reason=overrides.pop("reason", "spam"),
        **overrides,
    )


# ---------------------------------------------------------------------------
# Prohibited items
# ---------------------------------------------------------------------------


def test_create_and_list_items():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProhibitedItemStore(Path(tmpdir))
        low = store.create_item({"type": "keyword", "pattern": "lamp", "severity": "low"}, created_by="a1")
        crit = store.create_item({"type": "regex", "pattern": r"gh0st\s*gun", "severity": "critical"})

        items = store.list_items()
        assert [i.id for i in items] == [crit.id, low.id]
        assert items[1].created_by == "a1"
        assert store.get_item(low.id).pattern == "lamp"


def test_create_item_rejects_bad_input():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProhibitedItemStore(Path(tmpdir))
        for data in (
            {"pattern": "x"},
            {"type": "phrase", "pattern": "x"},
            {"type": "keyword", "pattern": ""},
            {"type": "regex", "pattern": "([bad"},
            {"type": "keyword", "pattern": "x", "severity": "extreme"},
            {"type": "keyword", "pattern": "x" * 501},
        ):
            with pytest.raises(ValidationError) as exc_info:
                store.create_item(data)
            assert exc_info.value.issues
        assert store.list_items() == []


def test_update_item():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProhibitedItemStore(Path(tmpdir))
        item = store.create_item({"type": "keyword", "pattern": "vape"})

        updated = store.update_item(item.id, {"is_active": False, "severity": "high"})
        assert updated.is_active is False
        assert updated.severity.value == "high"
        assert store.active_rules() == []

        with pytest.raises(ValidationError):
            store.update_item(item.id, {"action": "ban"})
        with pytest.raises(RuleNotFoundError):
            store.update_item("missing", {"is_active": True})


def test_update_to_regex_revalidates_existing_pattern():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProhibitedItemStore(Path(tmpdir))
        item = store.create_item({"type": "keyword", "pattern": "(oops"})
        with pytest.raises(ValidationError):
            store.update_item(item.id, {"type": "regex"})
        assert store.get_item(item.id).type.value == "keyword"


def test_delete_item():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProhibitedItemStore(Path(tmpdir))
        item = store.create_item({"type": "keyword", "pattern": "vape"})
        assert store.delete_item(item.id) is True
        assert store.delete_item(item.id) is False


# ---------------------------------------------------------------------------
# Flagged content
# ---------------------------------------------------------------------------


def test_flag_roundtrip_keeps_details_variant():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationStore(Path(tmpdir))
        store.create_flag(_flag(details=ReportFlagDetails(report_count=3, categories=["scam"])))

        loaded = store.get_flag("f1")
        assert isinstance(loaded.details, ReportFlagDetails)
        assert loaded.details.report_count == 3
        assert loaded.status == FlagStatus.pending


def test_create_flag_if_absent():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationStore(Path(tmpdir))
        assert store.create_flag_if_absent(_flag("f1")) is not None
        assert store.create_flag_if_absent(_flag("f2")) is None
        assert store.create_flag_if_absent(_flag("f3", content_type="message")) is not None
        _, total = store.list_flags()
        assert total == 2


def test_list_flags_filters_and_pages():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationStore(Path(tmpdir))
        for i in range(5):
            store.create_flag(_flag(f"f{i}", str(i), severity="high" if i % 2 else "low"))

        page, total = store.list_flags(severity="high")
        assert total == 2
        assert {f.id for f in page} == {"f1", "f3"}

        page, total = store.list_flags(limit=2, offset=1)
        assert total == 5
        assert len(page) == 2


def test_update_flag_review_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationStore(Path(tmpdir))
        store.create_flag(_flag())

        updated = store.update_flag_review("f1", FlagStatus.approved, "admin1", "fine")
        assert updated.status == FlagStatus.approved
        assert updated.reviewed_by == "admin1"
        assert updated.reviewed_at
        assert updated.review_notes == "fine"

        with pytest.raises(InvalidTransitionError):
            store.update_flag_review("f1", FlagStatus.deleted, "admin1")
        assert store.update_flag_review("missing", FlagStatus.approved, "admin1") is None


# ---------------------------------------------------------------------------
# Strikes, reports, stats
# ---------------------------------------------------------------------------


def test_strikes():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationStore(Path(tmpdir))
        store.create_strike(UserStrike(id="s1", user_id="u1", reason="spam", severity="minor",
                                       flagged_content_id="f1", issued_by="a1"))
        store.create_strike(UserStrike(id="s2", user_id="u1", reason="spam", severity="major",
                                       flagged_content_id="f2", issued_by="a1", is_active=False))
        assert len(store.list_strikes("u1")) == 2
        assert [s.id for s in store.list_strikes("u1", active_only=True)] == ["s1"]
        assert store.list_strikes("u2") == []


def test_reports_lookup_and_count():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationStore(Path(tmpdir))
        for reporter in ("r1", "r2"):
            store.create_report(UserReport(id=f"rep-{reporter}", reporter_id=reporter,
                                           content_type="listing", content_id="9", category="scam"))
        assert store.find_report("r1", "listing", "9").id == "rep-r1"
        assert store.find_report("r3", "listing", "9") is None
        assert store.count_reports("listing", "9") == 2
        assert store.count_reports("message", "9") == 0
        assert [r.id for r in store.list_reports(reporter_id="r2")] == ["rep-r2"]


def test_stats():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationStore(Path(tmpdir))
        store.create_flag(_flag("f1", "1", severity="high", user_id="u1"))
        store.create_flag(_flag("f2", "2", content_type="message", user_id="u1"))
        store.create_flag(_flag("f3", "3", status="approved", user_id="u2"))

        stats = store.stats()
        assert stats["flagged_content"]["total"] == 3
        assert stats["flagged_content"]["pending"] == 2
        assert stats["pending_by_severity"] == {"high": 1, "medium": 1}
        assert stats["pending_by_content_type"] == {"listing": 1, "message": 1}
        assert stats["flags_today"] == 3
        assert stats["top_violators"][0] == {"user_id": "u1", "flag_count": 2}
