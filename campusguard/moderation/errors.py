"""Exception hierarchy for moderation operations.

Each error carries the HTTP status the web layer should answer with, so
routers translate them in one place.
"""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for all moderation errors."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ModerationError):
    """Malformed input: bad enum value, missing field, bad pattern."""

    status_code = 400

    def __init__(self, message: str, issues: list[str] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class DuplicateReportError(ModerationError):
    """The reporter already reported this content."""

    status_code = 409

    def __init__(self, message: str = "You have already reported this content") -> None:
        super().__init__(message)


class ContentNotFoundError(ModerationError):
    status_code = 404

    def __init__(self, content_type: str, content_id: str) -> None:
        super().__init__(f"{content_type} {content_id} not found")
        self.content_type = content_type
        self.content_id = content_id


class FlagNotFoundError(ModerationError):
    status_code = 404

    def __init__(self, flag_id: str) -> None:
        super().__init__(f"Flagged content {flag_id} not found")
        self.flag_id = flag_id


class RuleNotFoundError(ModerationError):
    status_code = 404

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Prohibited item {rule_id} not found")
        self.rule_id = rule_id


class InvalidTransitionError(ModerationError):
    """A resolved queue entry cannot be resolved again."""

    status_code = 409


class AuthorizationError(ModerationError):
    """The actor lacks the role, or is suspended."""

    status_code = 403


class SelfActionError(ModerationError):
    """An admin tried to demote or suspend their own account."""

    status_code = 400


class PersistenceError(ModerationError):
    """A primary write (queue entry, report) failed."""

    status_code = 500


class RateLimitExceeded(ModerationError):
    status_code = 429

    def __init__(self, retry_after: int, limit: int) -> None:
        super().__init__(f"Rate limit exceeded. Try again in {retry_after} seconds.")
        self.retry_after = retry_after
        self.limit = limit


class UserNotFoundError(ModerationError):
    status_code = 404

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id
