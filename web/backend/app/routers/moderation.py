"""Moderation check API router.

Prefix: ``/api/moderation``
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from campusguard.auth.models import Profile
from campusguard.moderation.engine import moderate_text, moderate_text_with_database, public_summary
from campusguard.moderation.errors import ModerationError
from campusguard.moderation.policy import decide
from campusguard.moderation.scorer import calculate_spam_score
from campusguard.ratelimit import LENIENT, MODERATE, identifier_for
from campusguard.services import Services
from web.backend.app.errors import http_error
from web.backend.app.middleware.auth import client_ip, get_optional_user, get_services
from web.backend.app.models.api import (
    ModerationCheckRequest,
    ModerationCheckResponse,
    SpamScoreRequest,
    SpamScoreResponse,
)

router = APIRouter(prefix="/api/moderation", tags=["moderation"])


def _throttle(services: Services, request: Request, user: Optional[Profile], prefix: str, tier) -> None:
    try:
        services.limiter.check(identifier_for(prefix, user.id if user else None, client_ip(request)), tier)
    except ModerationError as exc:
        raise http_error(exc) from exc


@router.post("/check", response_model=ModerationCheckResponse)
async def check_text(
    body: ModerationCheckRequest,
    request: Request,
    user: Optional[Profile] = Depends(get_optional_user),
    services: Services = Depends(get_services),
):
    """Run text through the moderation engine before it is submitted.

    Rule patterns are never echoed back; matched rules are reported by
    category and severity only.
    """
    _throttle(services, request, user, "moderation:check", MODERATE)

    if body.use_rules:
        result = moderate_text_with_database(body.text, services.rules_store)
    else:
        result = moderate_text(body.text)
    return ModerationCheckResponse(**public_summary(result), decision=decide(result).value)


@router.post("/spam-score", response_model=SpamScoreResponse)
async def spam_score(
    body: SpamScoreRequest,
    request: Request,
    user: Optional[Profile] = Depends(get_optional_user),
    services: Services = Depends(get_services),
):
    """Score a listing draft for spam, 0-100."""
    _throttle(services, request, user, "moderation:spam-score", LENIENT)
    if not body.title.strip():
        raise HTTPException(status_code=400, detail={"error": "Title is required"})
    score = calculate_spam_score(body.title, body.description, body.price_cents, services.settings.scoring)
    return SpamScoreResponse(score=score)
