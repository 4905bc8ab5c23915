"""Tests for user report aggregation."""

import tempfile
from pathlib import Path

import pytest

from campusguard.config import Settings
from campusguard.moderation.errors import ContentNotFoundError, DuplicateReportError, ValidationError
from campusguard.moderation.models import FlagSource, FlagStatus, ReportFlagDetails, Severity
from campusguard.moderation.reports import ReportAggregator
from campusguard.notify.email import NullNotifier
from campusguard.services import build_services


class _ExplodingNotifier:
    def notify(self, user_id, template, payload):
        raise RuntimeError("mail server down")


def _setup(tmpdir: str, threshold: int = 3):
    services = build_services(Settings(data_dir=Path(tmpdir), report_threshold=threshold), notifier=NullNotifier())
    services.content.add("listing", {"id": "L1", "seller_id": "owner", "title": "Mini fridge"})
    services.content.add("message", {"id": "M1", "sender_id": "owner"})
    return services


def test_submit_report():
    with tempfile.TemporaryDirectory() as tmpdir:
        services = _setup(tmpdir)
        report = services.reports.submit_report("r1", "listing", "L1", "scam", "Asked for a deposit")
        assert report.reporter_id == "r1"
        assert report.status.value == "pending"
        assert services.store.count_reports("listing", "L1") == 1


def test_duplicate_report_rejected_and_not_persisted():
    with tempfile.TemporaryDirectory() as tmpdir:
        services = _setup(tmpdir)
        services.reports.submit_report("r1", "listing", "L1", "scam")
        with pytest.raises(DuplicateReportError):
            services.reports.submit_report("r1", "listing", "L1", "spam")
        assert services.store.count_reports("listing", "L1") == 1


def test_same_reporter_may_report_other_content():
    with tempfile.TemporaryDirectory() as tmpdir:
        services = _setup(tmpdir)
        services.reports.submit_report("r1", "listing", "L1", "scam")
        services.reports.submit_report("r1", "message", "M1", "harassment")
        assert len(services.reports.list_reports_for("r1")) == 2


def test_validation_and_missing_content():
    with tempfile.TemporaryDirectory() as tmpdir:
        services = _setup(tmpdir)
        with pytest.raises(ValidationError):
            services.reports.submit_report("r1", "comment", "L1", "scam")
        with pytest.raises(ValidationError):
            services.reports.submit_report("r1", "listing", "L1", "")
        with pytest.raises(ValidationError):
            services.reports.submit_report("r1", "listing", "L1", "x" * 101)
        with pytest.raises(ValidationError):
            services.reports.submit_report("r1", "listing", "L1", "scam", "x" * 1001)
        with pytest.raises(ContentNotFoundError):
            services.reports.submit_report("r1", "listing", "nope", "scam")
        assert services.store.list_reports() == []


def test_threshold_creates_one_queue_entry():
    with tempfile.TemporaryDirectory() as tmpdir:
        services = _setup(tmpdir)
        services.reports.submit_report("r1", "listing", "L1", "scam")
        services.reports.submit_report("r2", "listing", "L1", "scam")
        assert services.store.find_flag_for_content("listing", "L1") is None

        services.reports.submit_report("r3", "listing", "L1", "counterfeit")
        flagged = services.store.find_flag_for_content("listing", "L1")
        assert flagged is not None
        assert flagged.source == FlagSource.user_report
        assert flagged.severity == Severity.high
        assert flagged.status == FlagStatus.pending
        assert flagged.user_id == "owner"
        assert flagged.reason == "Multiple user reports: counterfeit"
        assert isinstance(flagged.details, ReportFlagDetails)
        assert flagged.details.report_count == 3
        assert flagged.details.categories == ["counterfeit", "scam"]

        services.reports.submit_report("r4", "listing", "L1", "scam")
        _, total = services.store.list_flags(content_type="listing")
        assert total == 1


def test_threshold_skipped_when_already_queued():
    with tempfile.TemporaryDirectory() as tmpdir:
        services = _setup(tmpdir, threshold=1)
        services.queue.moderate_submission("owner", "listing", "L1", "Reach 555-123-4567")
        services.reports.submit_report("r1", "listing", "L1", "scam")
        _, total = services.store.list_flags()
        assert total == 1
        assert services.notifier.sent == []


def test_owner_notified_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        services = _setup(tmpdir, threshold=2)
        services.reports.submit_report("r1", "listing", "L1", "scam")
        services.reports.submit_report("r2", "listing", "L1", "scam")
        services.reports.submit_report("r3", "listing", "L1", "scam")

        assert len(services.notifier.sent) == 1
        user_id, template, payload = services.notifier.sent[0]
        assert user_id == "owner"
        assert payload["content_title"] == "Mini fridge"
        assert payload["severity"] == "high"


def test_notification_failure_does_not_fail_report():
    with tempfile.TemporaryDirectory() as tmpdir:
        services = _setup(tmpdir)
        aggregator = ReportAggregator(services.store, services.content, _ExplodingNotifier(), threshold=1)
        report = aggregator.submit_report("r1", "message", "M1", "harassment")
        assert report.id
        assert services.store.find_flag_for_content("message", "M1") is not None
