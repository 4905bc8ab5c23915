"""Pydantic models for API request/response serialization.

These models mirror the campusguard dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from dataclasses import asdict
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


ContentTypeName = Literal["listing", "message", "profile", "event"]
SeverityName = Literal["low", "medium", "high", "critical"]


# ---------------------------------------------------------------------------
# Moderation models
# ---------------------------------------------------------------------------


class ModerationCheckRequest(BaseModel):
    """Text to run through the moderation engine."""

    text: str = Field(..., max_length=20000)
    use_rules: bool = True


class MatchedRuleResponse(BaseModel):
    category: str
    severity: str


class ModerationCheckResponse(BaseModel):
    """Public view of a ModerationResult plus the policy decision."""

    is_clean: bool
    flags: list[str] = Field(default_factory=list)
    confidence: str
    reasons: list[str] = Field(default_factory=list)
    matched_rules: list[MatchedRuleResponse] = Field(default_factory=list)
    decision: str


class SpamScoreRequest(BaseModel):
    title: str = Field(..., max_length=200)
    description: str = Field("", max_length=5000)
    price_cents: int = Field(0, ge=0)


class SpamScoreResponse(BaseModel):
    score: int


# ---------------------------------------------------------------------------
# Report models
# ---------------------------------------------------------------------------


class CreateReportRequest(BaseModel):
    content_type: str
    content_id: str
    category: str
    description: Optional[str] = None


class ReportResponse(BaseModel):
    """Mirrors campusguard.moderation.models.UserReport."""

    id: str
    reporter_id: str
    content_type: str
    content_id: str
    category: str
    description: Optional[str] = None
    status: str = "pending"
    created_at: str = ""


# ---------------------------------------------------------------------------
# Flagged content models
# ---------------------------------------------------------------------------


class FlaggedContentResponse(BaseModel):
    """Mirrors campusguard.moderation.models.FlaggedContent."""

    id: str
    content_type: str
    content_id: str
    user_id: str
    reason: str
    severity: str
    status: str
    source: str
    details: dict[str, Any] = Field(default_factory=dict)
    reviewed_by: str = ""
    reviewed_at: str = ""
    review_notes: str = ""
    created_at: str = ""
    updated_at: str = ""


class FlaggedContentListResponse(BaseModel):
    items: list[FlaggedContentResponse] = Field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0


class ManualFlagRequest(BaseModel):
    content_type: ContentTypeName
    content_id: str
    reason: str = Field(..., min_length=1, max_length=500)
    severity: SeverityName = "medium"
    notes: str = ""


class ResolveFlagRequest(BaseModel):
    status: str
    review_notes: Optional[str] = None
    delete_content: bool = False
    issue_strike: bool = False


class StrikeResponse(BaseModel):
    """Mirrors campusguard.moderation.models.UserStrike."""

    id: str
    user_id: str
    reason: str
    severity: str
    flagged_content_id: Optional[str] = None
    issued_by: str = ""
    notes: str = ""
    is_active: bool = True
    created_at: str = ""


class ResolutionResponse(BaseModel):
    """Mirrors campusguard.moderation.models.ResolutionResult."""

    flagged: FlaggedContentResponse
    status_updated: bool = False
    content_deleted: bool = False
    strike_issued: bool = False
    audit_logged: bool = False
    strike: Optional[StrikeResponse] = None
    errors: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Prohibited item models
# ---------------------------------------------------------------------------


class CreateProhibitedItemRequest(BaseModel):
    type: str
    pattern: str
    severity: str = "medium"
    action: str = "flag"
    category: Optional[str] = None
    description: Optional[str] = None


class UpdateProhibitedItemRequest(BaseModel):
    type: Optional[str] = None
    pattern: Optional[str] = None
    severity: Optional[str] = None
    action: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ProhibitedItemResponse(BaseModel):
    """Mirrors campusguard.moderation.models.ProhibitedItem."""

    id: str
    type: str
    pattern: str
    severity: str
    action: str
    category: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    created_by: str = ""
    created_at: str = ""
    updated_at: str = ""


# ---------------------------------------------------------------------------
# User admin models
# ---------------------------------------------------------------------------


class ProfileResponse(BaseModel):
    """Mirrors campusguard.auth.models.Profile, without preferences."""

    id: str
    name: str = ""
    email: str = ""
    role: str = "user"
    is_suspended: bool = False
    suspension_reason: Optional[str] = None
    created_at: str = ""


class UpdateUserRequest(BaseModel):
    role: Optional[Literal["admin", "moderator", "user"]] = None
    status: Optional[Literal["active", "suspended"]] = None
    suspension_reason: Optional[str] = Field(None, max_length=500)


class UpdateUserResponse(BaseModel):
    user: ProfileResponse
    changed: bool


# ---------------------------------------------------------------------------
# Stats & audit models
# ---------------------------------------------------------------------------


class ModerationStatsResponse(BaseModel):
    flagged_content: dict[str, int] = Field(default_factory=dict)
    pending_by_severity: dict[str, int] = Field(default_factory=dict)
    pending_by_content_type: dict[str, int] = Field(default_factory=dict)
    strikes: dict[str, int] = Field(default_factory=dict)
    reports: dict[str, int] = Field(default_factory=dict)
    flags_today: int = 0
    top_violators: list[dict[str, Any]] = Field(default_factory=list)


class AuditEntryResponse(BaseModel):
    """Mirrors campusguard.security.audit_log.AuditEntry."""

    id: str
    timestamp: str
    admin_id: str
    action: str
    target_type: str
    target_id: str
    details: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_plain(obj: Any) -> dict[str, Any]:
    """Dataclass to dict with enum members replaced by their values."""

    def factory(items: list[tuple[str, Any]]) -> dict[str, Any]:
        return {k: (v.value if isinstance(v, Enum) else v) for k, v in items}

    return asdict(obj, dict_factory=factory)

