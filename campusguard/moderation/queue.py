"""Moderation queue: turning engine output into queue entries and resolving them.

A queue entry is reviewed exactly once.  Resolution runs four steps in
order -- status update, optional content deletion, optional strike, audit
entry -- and only the first one is allowed to fail the call.  The others
are best-effort and report their outcome in a :class:`ResolutionResult`.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, NamedTuple, Optional

from campusguard.auth.models import Profile
from campusguard.auth.permissions import require_moderator
from campusguard.content.store import ContentDirectory
from campusguard.moderation.engine import RuleSource, moderate_text, moderate_text_with_database
from campusguard.moderation.errors import (
    ContentNotFoundError,
    FlagNotFoundError,
    InvalidTransitionError,
    ModerationError,
    ValidationError,
)
from campusguard.moderation.models import (
    AdminFlagDetails,
    ContentType,
    Decision,
    FlaggedContent,
    FlagSource,
    FlagStatus,
    ModerationResult,
    ResolutionResult,
    Severity,
    UserStrike,
)
from campusguard.moderation.policy import build_flagged_content, decide, fold_strike_severity
from campusguard.moderation.store import ModerationStore
from campusguard.moderation.validator import validate_resolution_status
from campusguard.notify.email import TEMPLATE_CONTENT_FLAGGED, Notifier
from campusguard.security.audit_log import AuditLogger

logger = logging.getLogger(__name__)

STRIKE_STATUSES = (FlagStatus.rejected, FlagStatus.deleted)


class SubmissionOutcome(NamedTuple):
    """What happened to one piece of submitted content."""

    decision: Decision
    result: ModerationResult
    flagged: Optional[FlaggedContent] = None

    @property
    def allowed(self) -> bool:
        return self.decision is not Decision.auto_reject


class ModerationQueue:
    """Creates and resolves flagged-content entries."""

    def __init__(
        self,
        store: ModerationStore,
        content: ContentDirectory,
        audit: AuditLogger,
        notifier: Optional[Notifier] = None,
        rules: Optional[RuleSource] = None,
    ) -> None:
        self._store = store
        self._content = content
        self._audit = audit
        self._notifier = notifier
        self._rules = rules

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def moderate_submission(
        self,
        actor_id: str,
        content_type: ContentType | str,
        content_id: str,
        text: str,
        rules: Optional[RuleSource] = None,
    ) -> SubmissionOutcome:
        """Moderate text submitted by *actor_id* and queue it unless allowed.

        Auto-rejected content is queued with status ``rejected``; content
        that only needs review is queued as ``pending``.  *rules* overrides
        the rule source given to the constructor.
        """
        source = rules if rules is not None else self._rules
        if source is not None:
            result = moderate_text_with_database(text, source)
        else:
            result = moderate_text(text)

        decision = decide(result)
        if decision is Decision.allow:
            return SubmissionOutcome(decision=decision, result=result)

        flagged = self._store.create_flag(
            build_flagged_content(content_type, content_id, actor_id, result)
        )
        logger.info(
            "Queued %s %s as %s (%s, severity=%s)",
            flagged.content_type.value, flagged.content_id, flagged.status.value,
            decision.value, flagged.severity.value,
        )
        return SubmissionOutcome(decision=decision, result=result, flagged=flagged)

    def flag_manually(
        self,
        actor: Optional[Profile],
        content_type: ContentType | str,
        content_id: str,
        reason: str,
        severity: Severity | str = Severity.medium,
        notes: str = "",
        *,
        notifier: Optional[Notifier] = None,
    ) -> FlaggedContent:
        """Let an admin or moderator put content into the queue by hand.

        *notifier* replaces the configured sink for this call only.
        """
        admin = require_moderator(actor)
        try:
            ct = ContentType(content_type)
            sev = Severity(severity)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if not reason.strip():
            raise ValidationError("Reason is required")
        if not self._content.exists(ct, content_id):
            raise ContentNotFoundError(ct.value, content_id)

        flagged = self._store.create_flag(
            FlaggedContent(
                id=uuid.uuid4().hex[:16],
                content_type=ct,
                content_id=str(content_id),
                user_id=self._content.owner_of(ct, content_id) or "",
                reason=reason,
                severity=sev,
                source=FlagSource.admin,
                details=AdminFlagDetails(notes=notes),
            )
        )
        self._audit.log_action(
            admin.id, "flagged_content", "FlaggedContent", flagged.id,
            {"content_type": ct.value, "content_id": flagged.content_id},
        )

        notifier = notifier or self._notifier
        if notifier is not None and flagged.user_id:
            try:
                notifier.notify(
                    flagged.user_id,
                    TEMPLATE_CONTENT_FLAGGED,
                    {
                        "content_type": ct.value,
                        "content_title": self._content.title_of(ct, flagged.content_id),
                        "reason": reason,
                        "severity": sev.value,
                    },
                )
            except Exception:
                logger.exception("Failed to notify owner %s about flagged content %s", flagged.user_id, flagged.id)
        return flagged

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def list_queue(self, actor: Optional[Profile], **filters: Any) -> tuple[list[FlaggedContent], int]:
        require_moderator(actor)
        return self._store.list_flags(**filters)

    def stats(self, actor: Optional[Profile]) -> dict[str, Any]:
        require_moderator(actor)
        return self._store.stats()

    def resolve(
        self,
        actor: Optional[Profile],
        flag_id: str,
        status: FlagStatus | str,
        review_notes: Optional[str] = None,
        delete_content: bool = False,
        issue_strike: bool = False,
    ) -> ResolutionResult:
        """Resolve a queue entry.

        Raises before any write for authorization, validation, unknown ids
        and entries that were already reviewed.  After the status write
        succeeds the call always returns; failed later steps are listed in
        ``ResolutionResult.errors``.
        """
        admin = require_moderator(actor)
        issues = validate_resolution_status(status)
        if issues:
            raise ValidationError(issues[0], issues)
        new_status = FlagStatus(status)

        flagged = self._store.get_flag(flag_id)
        if flagged is None:
            raise FlagNotFoundError(flag_id)
        if flagged.reviewed_at:
            raise InvalidTransitionError(
                f"Flagged content {flag_id} was already resolved as {flagged.status.value}"
            )

        # 1. status, reviewer, timestamp, notes
        updated = self._store.update_flag_review(flag_id, new_status, admin.id, review_notes or "")
        if updated is None:
            raise FlagNotFoundError(flag_id)
        outcome = ResolutionResult(flagged=updated, status_updated=True)

        # 2. content deletion
        if delete_content and new_status is FlagStatus.deleted:
            try:
                self._content.delete(updated.content_type, updated.content_id)
                outcome.content_deleted = True
            except Exception as exc:
                outcome.errors["content_deleted"] = str(exc)
                logger.error(
                    "Flagged content %s marked deleted but %s %s could not be removed: %s",
                    flag_id, updated.content_type.value, updated.content_id, exc,
                )

        # 3. strike
        if issue_strike and new_status in STRIKE_STATUSES:
            strike = UserStrike(
                id=uuid.uuid4().hex[:16],
                user_id=updated.user_id,
                reason=updated.reason,
                severity=fold_strike_severity(updated.severity),
                flagged_content_id=updated.id,
                issued_by=admin.id,
                notes=review_notes or "",
            )
            try:
                outcome.strike = self._store.create_strike(strike)
                outcome.strike_issued = True
            except ModerationError as exc:
                outcome.errors["strike_issued"] = str(exc)
                logger.error("Failed to issue strike for flagged content %s: %s", flag_id, exc)

        # 4. audit
        entry = self._audit.log_action(
            admin.id,
            f"reviewed_{new_status.value}",
            "FlaggedContent",
            updated.id,
            {
                "content_type": updated.content_type.value,
                "content_id": updated.content_id,
                "content_deleted": outcome.content_deleted,
                "strike_id": outcome.strike.id if outcome.strike else None,
                "errors": dict(outcome.errors),
            },
        )
        if entry is None:
            outcome.errors["audit_logged"] = "audit write failed"
        else:
            outcome.audit_logged = True

        return outcome
