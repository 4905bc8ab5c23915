"""Decision policy: turns a moderation result into an action.

Auto-reject is checked before flag-for-review; a result that qualifies for
both is rejected.
"""

from __future__ import annotations

import uuid

from campusguard.moderation.engine import FLAG_CONTACT_INFO, FLAG_PROFANITY, FLAG_SPAM, FLAG_SUSPICIOUS_LINKS
from campusguard.moderation.models import (
    AutoFlagDetails,
    Confidence,
    ContentType,
    Decision,
    FlaggedContent,
    FlagSource,
    FlagStatus,
    MatchedRuleSnapshot,
    ModerationResult,
    RuleAction,
    Severity,
    StrikeSeverity,
)

CRITICAL_FLAGS = frozenset({FLAG_SPAM, FLAG_PROFANITY, FLAG_SUSPICIOUS_LINKS})

_STRIKE_SEVERITY = {
    Severity.critical: StrikeSeverity.severe,
    Severity.high: StrikeSeverity.major,
    Severity.medium: StrikeSeverity.minor,
    Severity.low: StrikeSeverity.minor,
}


def should_auto_reject(result: ModerationResult) -> bool:
    """True for high-confidence multi-flag results, two or more critical
    flags, or any matched rule whose action is ``auto_reject``."""
    if result.confidence is Confidence.high and len(result.flags) >= 2:
        return True
    if len(CRITICAL_FLAGS.intersection(result.flags)) >= 2:
        return True
    return any(r.action is RuleAction.auto_reject for r in result.matched_prohibited)


def should_flag_for_review(result: ModerationResult) -> bool:
    """True for medium-confidence flagged results, contact info, or any
    matched rule whose action is ``flag``."""
    if result.confidence is Confidence.medium and result.flags:
        return True
    if FLAG_CONTACT_INFO in result.flags:
        return True
    return any(r.action is RuleAction.flag for r in result.matched_prohibited)


def decide(result: ModerationResult) -> Decision:
    if should_auto_reject(result):
        return Decision.auto_reject
    if should_flag_for_review(result):
        return Decision.flag_for_review
    return Decision.allow


def severity_for_result(result: ModerationResult) -> Severity:
    """Highest matched rule severity, else ``high`` for high confidence,
    else ``medium``."""
    if result.matched_prohibited:
        return max((r.severity for r in result.matched_prohibited), key=lambda s: s.level)
    if result.confidence is Confidence.high:
        return Severity.high
    return Severity.medium


def initial_status(result: ModerationResult) -> FlagStatus:
    return FlagStatus.rejected if should_auto_reject(result) else FlagStatus.pending


def fold_strike_severity(severity: Severity | str) -> StrikeSeverity:
    """Map a content severity onto the strike scale."""
    return _STRIKE_SEVERITY[Severity(severity)]


def build_flagged_content(
    content_type: ContentType | str,
    content_id: str,
    user_id: str,
    result: ModerationResult,
) -> FlaggedContent:
    """Construct (but do not persist) the queue entry for an engine result."""
    return FlaggedContent(
        id=uuid.uuid4().hex[:16],
        content_type=ContentType(content_type),
        content_id=str(content_id),
        user_id=str(user_id),
        reason=", ".join(result.flags) or "Unknown",
        severity=severity_for_result(result),
        status=initial_status(result),
        source=FlagSource.auto,
        details=AutoFlagDetails(
            flags=list(result.flags),
            reasons=list(result.reasons),
            confidence=result.confidence.value,
            matched_rules=[MatchedRuleSnapshot.from_rule(r) for r in result.matched_prohibited],
        ),
    )
