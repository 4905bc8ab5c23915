"""Rule-based content moderation.

Text moderation and spam scoring, and the decision policy that turns their
output into queue entries.  The review queue, report aggregation and rule
administration live in ``queue``, ``reports`` and ``rules`` and are
imported from there.
"""

from campusguard.moderation.engine import (
    moderate_image,
    moderate_text,
    moderate_text_with_database,
    moderate_text_with_rules,
    public_summary,
)
from campusguard.moderation.models import (
    ContentType,
    Decision,
    FlaggedContent,
    FlagStatus,
    ModerationResult,
    ProhibitedItem,
    ResolutionResult,
    Severity,
    UserReport,
    UserStrike,
)
from campusguard.moderation.policy import decide, fold_strike_severity
from campusguard.moderation.scorer import calculate_spam_score

__all__ = [
    "moderate_image",
    "moderate_text",
    "moderate_text_with_database",
    "moderate_text_with_rules",
    "public_summary",
    "ContentType",
    "Decision",
    "FlaggedContent",
    "FlagStatus",
    "ModerationResult",
    "ProhibitedItem",
    "ResolutionResult",
    "Severity",
    "UserReport",
    "UserStrike",
    "decide",
    "fold_strike_severity",
    "calculate_spam_score",
]
