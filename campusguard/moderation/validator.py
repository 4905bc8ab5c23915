"""Input checks for moderation writes.

Each function returns a list of issues; an empty list means valid.  Stores
raise :class:`~campusguard.moderation.errors.ValidationError` with the list
before touching disk, so invalid input is never partially applied.
"""

from __future__ import annotations

import re
from typing import Any

from campusguard.moderation.models import (
    ContentType,
    FlagStatus,
    RuleAction,
    RuleType,
    Severity,
)

MAX_PATTERN_LENGTH = 500
MAX_RULE_CATEGORY_LENGTH = 100
MAX_RULE_DESCRIPTION_LENGTH = 500
MAX_REPORT_CATEGORY_LENGTH = 100
MAX_REPORT_DESCRIPTION_LENGTH = 1000

RULE_FIELDS = {"type", "pattern", "severity", "action", "category", "description", "is_active"}
RESOLUTION_STATUSES = {FlagStatus.approved.value, FlagStatus.rejected.value, FlagStatus.deleted.value}


def _enum_issue(name: str, value: Any, enum_cls) -> list[str]:
    allowed = [m.value for m in enum_cls]
    if value not in allowed:
        return [f"Invalid {name} '{value}'. Use one of: {', '.join(allowed)}"]
    return []


def validate_prohibited_item(data: dict[str, Any], partial: bool = False) -> list[str]:
    """Validate a prohibited-item payload.

    With ``partial=True`` only the keys present are checked (updates).
    """
    issues: list[str] = []

    unknown = set(data) - RULE_FIELDS
    if unknown:
        issues.append(f"Unknown fields: {', '.join(sorted(unknown))}")

    if not partial:
        for required in ("type", "pattern"):
            if required not in data:
                issues.append(f"Missing required field: {required}")

    if "type" in data:
        issues += _enum_issue("type", data["type"], RuleType)
    if "severity" in data:
        issues += _enum_issue("severity", data["severity"], Severity)
    if "action" in data:
        issues += _enum_issue("action", data["action"], RuleAction)

    pattern = data.get("pattern")
    if "pattern" in data:
        if not isinstance(pattern, str) or not pattern:
            issues.append("Pattern must be a non-empty string")
        elif len(pattern) > MAX_PATTERN_LENGTH:
            issues.append(f"Pattern exceeds {MAX_PATTERN_LENGTH} characters")
        elif data.get("type") in (RuleType.regex.value, RuleType.url_pattern.value):
            try:
                re.compile(pattern)
            except re.error as exc:
                issues.append(f"Pattern is not a valid regular expression: {exc}")

    category = data.get("category")
    if category is not None and len(str(category)) > MAX_RULE_CATEGORY_LENGTH:
        issues.append(f"Category exceeds {MAX_RULE_CATEGORY_LENGTH} characters")

    description = data.get("description")
    if description is not None and len(str(description)) > MAX_RULE_DESCRIPTION_LENGTH:
        issues.append(f"Description exceeds {MAX_RULE_DESCRIPTION_LENGTH} characters")

    if "is_active" in data and not isinstance(data["is_active"], bool):
        issues.append("is_active must be a boolean")

    return issues


def validate_report(content_type: Any, category: Any, description: Any = None) -> list[str]:
    issues = _enum_issue("content type", content_type, ContentType)
    if not isinstance(category, str) or not category.strip():
        issues.append("Category is required")
    elif len(category) > MAX_REPORT_CATEGORY_LENGTH:
        issues.append(f"Category exceeds {MAX_REPORT_CATEGORY_LENGTH} characters")
    if description is not None and len(str(description)) > MAX_REPORT_DESCRIPTION_LENGTH:
        issues.append(f"Description exceeds {MAX_REPORT_DESCRIPTION_LENGTH} characters")
    return issues


def validate_resolution_status(status: Any) -> list[str]:
    if status not in RESOLUTION_STATUSES:
        return ["Valid status is required (approved, rejected, deleted)"]
    return []
