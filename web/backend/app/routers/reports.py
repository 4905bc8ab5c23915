"""User reports API router.

Prefix: ``/api/reports``
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from campusguard.auth.models import Profile
from campusguard.moderation.errors import ModerationError
from campusguard.ratelimit import STRICT, identifier_for
from campusguard.services import Services
from web.backend.app.errors import http_error
from web.backend.app.middleware.auth import client_ip, get_current_user, get_services
from web.backend.app.models.api import CreateReportRequest, ReportResponse, to_plain
from web.backend.app.notify import BackgroundNotifier

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    body: CreateReportRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Report a listing, message, profile or event.

    Each user may report a given item once.  Enough distinct reports put
    the item into the moderation queue.
    """
    try:
        services.limiter.check(identifier_for("reports:create", user.id, client_ip(request)), STRICT)
        report = services.reports.submit_report(
            user.id, body.content_type, body.content_id, body.category, body.description,
            notifier=BackgroundNotifier(background_tasks, services.notifier),
        )
    except ModerationError as exc:
        raise http_error(exc) from exc
    return ReportResponse(**to_plain(report))


@router.get("", response_model=list[ReportResponse])
async def list_my_reports(
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """The caller's own reports, newest first."""
    return [ReportResponse(**to_plain(r)) for r in services.reports.list_reports_for(user.id)]
