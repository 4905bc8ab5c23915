"""Admin moderation API router: queue, prohibited items, users, stats, audit.

Prefix: ``/api/admin``
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from campusguard.auth.models import Profile
from campusguard.auth.permissions import require_admin, require_moderator
from campusguard.moderation.errors import ModerationError
from campusguard.services import Services
from web.backend.app.errors import http_error
from web.backend.app.middleware.auth import get_current_user, get_services
from web.backend.app.models.api import (
    AuditEntryResponse,
    CreateProhibitedItemRequest,
    FlaggedContentListResponse,
    FlaggedContentResponse,
    ManualFlagRequest,
    ModerationStatsResponse,
    ProfileResponse,
    ProhibitedItemResponse,
    ResolutionResponse,
    ResolveFlagRequest,
    UpdateProhibitedItemRequest,
    UpdateUserRequest,
    UpdateUserResponse,
    to_plain,
)
from web.backend.app.notify import BackgroundNotifier

router = APIRouter(prefix="/api/admin", tags=["admin"])


# =========================================================================
# Flagged content
# =========================================================================


@router.get("/flagged-content", response_model=FlaggedContentListResponse)
async def list_flagged_content(
    status_filter: Optional[str] = Query(None, alias="status"),
    content_type: Optional[str] = Query(None),
    severity: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """List queue entries, newest first.  All statuses unless filtered."""
    try:
        entries, total = services.queue.list_queue(
            user,
            status=status_filter or None,
            content_type=content_type,
            severity=severity,
            source=source,
            limit=limit,
            offset=offset,
        )
    except ModerationError as exc:
        raise http_error(exc) from exc
    return FlaggedContentListResponse(
        items=[FlaggedContentResponse(**to_plain(f)) for f in entries],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/flagged-content", response_model=FlaggedContentResponse, status_code=status.HTTP_201_CREATED)
async def flag_content(
    body: ManualFlagRequest,
    background_tasks: BackgroundTasks,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Put a piece of content into the queue by hand."""
    try:
        flagged = services.queue.flag_manually(
            user, body.content_type, body.content_id, body.reason, body.severity, body.notes,
            notifier=BackgroundNotifier(background_tasks, services.notifier),
        )
    except ModerationError as exc:
        raise http_error(exc) from exc
    return FlaggedContentResponse(**to_plain(flagged))


@router.patch("/flagged-content/{flag_id}", response_model=ResolutionResponse)
async def resolve_flagged_content(
    flag_id: str,
    body: ResolveFlagRequest,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Approve, reject or delete a queue entry.

    The status change is the only step that can fail the request.  Content
    deletion, strike issuance and the audit entry are reported per step in
    the response, with failures listed under ``errors``.
    """
    try:
        outcome = services.queue.resolve(
            user,
            flag_id,
            body.status,
            review_notes=body.review_notes,
            delete_content=body.delete_content,
            issue_strike=body.issue_strike,
        )
    except ModerationError as exc:
        raise http_error(exc) from exc
    return ResolutionResponse(**to_plain(outcome))


# =========================================================================
# Prohibited items
# =========================================================================


@router.get("/prohibited-items", response_model=list[ProhibitedItemResponse])
async def list_prohibited_items(
    is_active: Optional[bool] = Query(None),
    type: Optional[str] = Query(None),
    severity: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """List rules, most severe first."""
    try:
        items = services.rules.list_rules(
            user, is_active=is_active, type=type, severity=severity, category=category,
        )
    except ModerationError as exc:
        raise http_error(exc) from exc
    return [ProhibitedItemResponse(**to_plain(i)) for i in items]


@router.post("/prohibited-items", response_model=ProhibitedItemResponse, status_code=status.HTTP_201_CREATED)
async def create_prohibited_item(
    body: CreateProhibitedItemRequest,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    try:
        item = services.rules.create_rule(user, body.model_dump())
    except ModerationError as exc:
        raise http_error(exc) from exc
    return ProhibitedItemResponse(**to_plain(item))


@router.patch("/prohibited-items/{item_id}", response_model=ProhibitedItemResponse)
async def update_prohibited_item(
    item_id: str,
    body: UpdateProhibitedItemRequest,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Change any subset of a rule's fields."""
    try:
        item = services.rules.update_rule(user, item_id, body.model_dump(exclude_unset=True))
    except ModerationError as exc:
        raise http_error(exc) from exc
    return ProhibitedItemResponse(**to_plain(item))


@router.delete("/prohibited-items/{item_id}")
async def delete_prohibited_item(
    item_id: str,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    try:
        services.rules.delete_rule(user, item_id)
    except ModerationError as exc:
        raise http_error(exc) from exc
    return {"deleted": True, "id": item_id}


# =========================================================================
# Users
# =========================================================================


@router.get("/users", response_model=list[ProfileResponse])
async def list_users(
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """List users, optionally filtered by role, status or a name/email search."""
    try:
        require_moderator(user)
    except ModerationError as exc:
        raise http_error(exc) from exc

    suspended = None
    if status_filter == "suspended":
        suspended = True
    elif status_filter == "active":
        suspended = False

    profiles = services.profiles.list_profiles(role=role, suspended=suspended)
    if search:
        needle = search.strip().lower()
        profiles = [p for p in profiles if needle in p.name.lower() or needle in p.email.lower()]
    return [ProfileResponse(**to_plain(p)) for p in profiles]


@router.patch("/users/{user_id}", response_model=UpdateUserResponse)
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Change a user's role or suspension state.  Admins cannot demote or suspend themselves."""
    try:
        profile, changed = services.profiles.update_profile(
            user,
            user_id,
            role=body.role,
            status=body.status,
            suspension_reason=body.suspension_reason,
        )
    except ModerationError as exc:
        raise http_error(exc) from exc
    return UpdateUserResponse(user=ProfileResponse(**to_plain(profile)), changed=changed)


# =========================================================================
# Stats & audit
# =========================================================================


@router.get("/stats", response_model=ModerationStatsResponse)
async def moderation_stats(
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    try:
        data = services.queue.stats(user)
    except ModerationError as exc:
        raise http_error(exc) from exc
    return ModerationStatsResponse(**data)


@router.get("/audit", response_model=list[AuditEntryResponse])
async def list_audit_events(
    admin_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    target_type: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=10000),
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """List audit entries, newest first.  Admins only."""
    try:
        require_admin(user)
    except ModerationError as exc:
        raise http_error(exc) from exc
    events = services.audit.get_events(admin_id=admin_id, action=action, target_type=target_type, limit=limit)
    return [AuditEntryResponse(**to_plain(e)) for e in events]
