"""Translation of domain errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import HTTPException

from campusguard.moderation.errors import ModerationError, RateLimitExceeded, ValidationError

logger = logging.getLogger(__name__)


def http_error(exc: ModerationError) -> HTTPException:
    """Build the HTTPException that answers for *exc*."""
    detail: dict = {"error": exc.message or type(exc).__name__}
    headers = None

    if isinstance(exc, ValidationError) and exc.issues:
        detail["details"] = exc.issues
    elif isinstance(exc, RateLimitExceeded):
        detail["retry_after"] = exc.retry_after
        headers = {
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
        }

    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc)
    return HTTPException(status_code=exc.status_code, detail=detail, headers=headers)
