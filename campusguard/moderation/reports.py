"""User report aggregation.

Reports pile up per content item; once enough distinct reporters have
reported the same item it enters the moderation queue as a
``user_report`` entry, the same way engine findings do.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from campusguard.content.store import ContentDirectory
from campusguard.moderation.errors import ContentNotFoundError, DuplicateReportError, ValidationError
from campusguard.moderation.models import (
    ContentType,
    FlaggedContent,
    FlagSource,
    FlagStatus,
    ReportFlagDetails,
    Severity,
    UserReport,
)
from campusguard.moderation.store import ModerationStore
from campusguard.moderation.validator import validate_report
from campusguard.notify.email import TEMPLATE_CONTENT_FLAGGED, Notifier

logger = logging.getLogger(__name__)

DEFAULT_REPORT_THRESHOLD = 3


class ReportAggregator:
    """Accepts user reports and escalates heavily reported content."""

    def __init__(
        self,
        store: ModerationStore,
        content: ContentDirectory,
        notifier: Optional[Notifier] = None,
        threshold: int = DEFAULT_REPORT_THRESHOLD,
    ) -> None:
        self._store = store
        self._content = content
        self._notifier = notifier
        self._threshold = threshold

    def submit_report(
        self,
        reporter_id: str,
        content_type: ContentType | str,
        content_id: str,
        category: str,
        description: Optional[str] = None,
        *,
        notifier: Optional[Notifier] = None,
    ) -> UserReport:
        """File a report.

        Raises ``ValidationError`` for bad input, ``DuplicateReportError``
        if *reporter_id* already reported this content, and
        ``ContentNotFoundError`` if the content does not exist.  *notifier*
        replaces the configured sink for this call only.
        """
        issues = validate_report(content_type, category, description)
        if issues:
            raise ValidationError("Validation failed", issues)
        ct = ContentType(content_type)
        content_id = str(content_id)

        if self._store.find_report(reporter_id, ct, content_id) is not None:
            raise DuplicateReportError()
        if not self._content.exists(ct, content_id):
            raise ContentNotFoundError(ct.value, content_id)

        report = self._store.create_report(
            UserReport(
                id=uuid.uuid4().hex[:16],
                reporter_id=reporter_id,
                content_type=ct,
                content_id=content_id,
                category=category,
                description=description or None,
            )
        )

        count = self._store.count_reports(ct, content_id)
        if count >= self._threshold:
            self._escalate(ct, content_id, category, count, notifier or self._notifier)
        return report

    def list_reports_for(self, reporter_id: str) -> list[UserReport]:
        """A reporter's own reports, newest first."""
        return self._store.list_reports(reporter_id=reporter_id)

    def _escalate(
        self, ct: ContentType, content_id: str, category: str, count: int, notifier: Optional[Notifier],
    ) -> Optional[FlaggedContent]:
        if self._store.find_flag_for_content(ct, content_id) is not None:
            return None

        owner_id = self._content.owner_of(ct, content_id)
        if not owner_id:
            logger.warning("Cannot escalate %s %s: owner unknown", ct.value, content_id)
            return None

        categories = sorted({r.category for r in self._store.list_reports(content_type=ct, content_id=content_id)})
        reason = f"Multiple user reports: {category}"
        flagged = self._store.create_flag_if_absent(
            FlaggedContent(
                id=uuid.uuid4().hex[:16],
                content_type=ct,
                content_id=content_id,
                user_id=owner_id,
                reason=reason,
                severity=Severity.high,
                status=FlagStatus.pending,
                source=FlagSource.user_report,
                details=ReportFlagDetails(report_count=count, categories=categories),
            )
        )
        if flagged is None:
            return None
        logger.info("Escalated %s %s to the moderation queue after %d reports", ct.value, content_id, count)

        if notifier is not None:
            try:
                notifier.notify(
                    owner_id,
                    TEMPLATE_CONTENT_FLAGGED,
                    {
                        "content_type": ct.value,
                        "content_title": self._content.title_of(ct, content_id),
                        "reason": reason,
                        "severity": Severity.high.value,
                    },
                )
            except Exception:
                logger.exception("Failed to notify owner %s about flagged %s %s", owner_id, ct.value, content_id)
        return flagged
