"""Data models for the content moderation system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ContentType(str, Enum):
    """Kinds of user content that can be moderated."""

    listing = "listing"
    message = "message"
    profile = "profile"
    event = "event"


class RuleType(str, Enum):
    """How a prohibited item's ``pattern`` is interpreted."""

    keyword = "keyword"
    regex = "regex"
    url_pattern = "url_pattern"
    category = "category"


class Severity(str, Enum):
    """Severity scale shared by rules and flagged content: low < critical."""

    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def level(self) -> int:
        return {
            Severity.low: 1,
            Severity.medium: 2,
            Severity.high: 3,
            Severity.critical: 4,
        }[self]


class RuleAction(str, Enum):
    """What a matching prohibited item asks the decision policy to do."""

    flag = "flag"
    auto_reject = "auto_reject"
    warn = "warn"


class Confidence(str, Enum):
    """Confidence that a piece of content violates policy."""

    low = "low"
    medium = "medium"
    high = "high"

    @property
    def level(self) -> int:
        return {Confidence.low: 1, Confidence.medium: 2, Confidence.high: 3}[self]


class FlagStatus(str, Enum):
    """Review state of a flagged content entry."""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    deleted = "deleted"


class FlagSource(str, Enum):
    """Which path put an entry into the moderation queue."""

    auto = "auto"
    user_report = "user_report"
    admin = "admin"


class StrikeSeverity(str, Enum):
    """Severity scale used for user strikes."""

    minor = "minor"
    major = "major"
    severe = "severe"


class ReportStatus(str, Enum):
    pending = "pending"
    resolved = "resolved"
    dismissed = "dismissed"


class Decision(str, Enum):
    """Outcome of the decision policy for one submission."""

    allow = "allow"
    flag_for_review = "flag_for_review"
    auto_reject = "auto_reject"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass
class ProhibitedItem:
    """An admin-managed moderation rule."""

    id: str
    type: RuleType
    pattern: str
    severity: Severity = Severity.medium
    action: RuleAction = RuleAction.flag
    category: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    created_by: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _now()
        if not self.updated_at:
            self.updated_at = self.created_at
        if isinstance(self.type, str):
            self.type = RuleType(self.type)
        if isinstance(self.severity, str):
            self.severity = Severity(self.severity)
        if isinstance(self.action, str):
            self.action = RuleAction(self.action)


@dataclass
class MatchedRuleSnapshot:
    """Copy of a rule as it was when it fired, stored on the queue entry."""

    id: str
    pattern: str
    severity: str
    action: str
    category: Optional[str] = None

    @classmethod
    def from_rule(cls, rule: ProhibitedItem) -> "MatchedRuleSnapshot":
        return cls(
            id=rule.id,
            pattern=rule.pattern,
            severity=rule.severity.value,
            action=rule.action.value,
            category=rule.category,
        )


# ---------------------------------------------------------------------------
# Engine output
# ---------------------------------------------------------------------------


@dataclass
class ModerationResult:
    """Result of moderating a piece of text.

    ``is_clean`` is derived from ``flags`` so the two can never disagree.
    """

    flags: list[str] = field(default_factory=list)
    confidence: Confidence = Confidence.low
    reasons: list[str] = field(default_factory=list)
    matched_prohibited: list[ProhibitedItem] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.flags


# ---------------------------------------------------------------------------
# Queue entry details (one shape per source)
# ---------------------------------------------------------------------------


@dataclass
class AutoFlagDetails:
    """Details recorded when the engine flags content."""

    flags: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)
    confidence: str = Confidence.low.value
    matched_rules: list[MatchedRuleSnapshot] = field(default_factory=list)
    kind: str = FlagSource.auto.value


@dataclass
class ReportFlagDetails:
    """Details recorded when user reports cross the threshold."""

    report_count: int = 0
    categories: list[str] = field(default_factory=list)
    kind: str = FlagSource.user_report.value


@dataclass
class AdminFlagDetails:
    """Details recorded when an admin flags content by hand."""

    notes: str = ""
    kind: str = FlagSource.admin.value


FlagDetails = Union[AutoFlagDetails, ReportFlagDetails, AdminFlagDetails]


def details_from_dict(d: dict[str, Any]) -> FlagDetails:
    """Rebuild the details variant named by ``d["kind"]``."""
    kind = d.get("kind", FlagSource.auto.value)
    if kind == FlagSource.user_report.value:
        return ReportFlagDetails(
            report_count=d.get("report_count", 0),
            categories=list(d.get("categories", [])),
        )
    if kind == FlagSource.admin.value:
        return AdminFlagDetails(notes=d.get("notes", ""))
    return AutoFlagDetails(
        flags=list(d.get("flags", [])),
        reasons=list(d.get("reasons", [])),
        confidence=d.get("confidence", Confidence.low.value),
        matched_rules=[MatchedRuleSnapshot(**r) for r in d.get("matched_rules", [])],
    )


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


@dataclass
class FlaggedContent:
    """An entry in the moderation queue."""

    id: str
    content_type: ContentType
    content_id: str
    user_id: str
    reason: str
    severity: Severity = Severity.medium
    status: FlagStatus = FlagStatus.pending
    source: FlagSource = FlagSource.auto
    details: FlagDetails = field(default_factory=AutoFlagDetails)
    reviewed_by: str = ""
    reviewed_at: str = ""
    review_notes: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _now()
        if not self.updated_at:
            self.updated_at = self.created_at
        if isinstance(self.content_type, str):
            self.content_type = ContentType(self.content_type)
        if isinstance(self.severity, str):
            self.severity = Severity(self.severity)
        if isinstance(self.status, str):
            self.status = FlagStatus(self.status)
        if isinstance(self.source, str):
            self.source = FlagSource(self.source)
        if isinstance(self.details, dict):
            self.details = details_from_dict(self.details)


@dataclass
class UserStrike:
    """A strike against a user, issued while resolving a queue entry."""

    id: str
    user_id: str
    reason: str
    severity: StrikeSeverity
    flagged_content_id: str
    issued_by: str
    notes: str = ""
    is_active: bool = True
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _now()
        if isinstance(self.severity, str):
            self.severity = StrikeSeverity(self.severity)


@dataclass
class UserReport:
    """A report filed by one user against a piece of content."""

    id: str
    reporter_id: str
    content_type: ContentType
    content_id: str
    category: str
    description: Optional[str] = None
    status: ReportStatus = ReportStatus.pending
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _now()
        if isinstance(self.content_type, str):
            self.content_type = ContentType(self.content_type)
        if isinstance(self.status, str):
            self.status = ReportStatus(self.status)


@dataclass
class ResolutionResult:
    """Outcome of resolving a queue entry, step by step.

    ``errors`` maps a step name (``content_deleted``, ``strike_issued``,
    ``audit_logged``) to the error message that stopped it.
    """

    flagged: FlaggedContent
    status_updated: bool = False
    content_deleted: bool = False
    strike_issued: bool = False
    audit_logged: bool = False
    strike: Optional[UserStrike] = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.errors
