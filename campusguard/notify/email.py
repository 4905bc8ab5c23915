"""Best-effort notifications to content owners.

``EmailNotifier`` sends mail through the SendGrid v3 HTTP API.  Nothing
here ever raises into the moderation flow: a missing configuration, an
opted-out user or a failed request is logged and reported as ``False``.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Optional, Protocol

import httpx

from campusguard.auth.store import ProfileStore
from campusguard.config import Settings

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"

TEMPLATE_CONTENT_FLAGGED = "content_flagged"

_SEVERITY_COLORS = {
    "low": "#48bb78",
    "medium": "#ed8936",
    "high": "#f56565",
    "critical": "#c53030",
}


class Notifier(Protocol):
    def notify(self, user_id: str, template: str, payload: dict[str, Any]) -> bool: ...


class NullNotifier:
    """Records notifications instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict[str, Any]]] = []

    def notify(self, user_id: str, template: str, payload: dict[str, Any]) -> bool:
        self.sent.append((user_id, template, payload))
        return True


def render_content_flagged(user_name: str, payload: dict[str, Any]) -> tuple[str, str]:
    """Return ``(subject, html_body)`` for the content-flagged mail."""
    severity = str(payload.get("severity", "medium"))
    color = _SEVERITY_COLORS.get(severity, _SEVERITY_COLORS["medium"])
    content_type = html.escape(str(payload.get("content_type", "content")))
    subject = f"Your {content_type} has been flagged for review"
    body = f"""\
<html>
<body style="font-family: sans-serif; background-color: #f5f5f5;">
  <div style="background-color: {color}; padding: 24px; text-align: center; color: #ffffff;">
    <h1>Content Moderation Alert</h1>
  </div>
  <p>Hi {html.escape(user_name)},</p>
  <p>Your {content_type} has been flagged for review by our moderation system.</p>
  <div style="border-left: 4px solid {color}; padding: 12px;">
    <p><strong>Content:</strong> {html.escape(str(payload.get("content_title", "")))}</p>
    <p><strong>Reason:</strong> {html.escape(str(payload.get("reason", "")))}</p>
    <p><strong>Severity:</strong> {html.escape(severity.upper())}</p>
  </div>
  <ul>
    <li>An admin will review your content</li>
    <li>You'll be notified of the decision</li>
    <li>Repeated violations may result in account suspension</li>
  </ul>
  <p><a href="{html.escape(str(payload.get("dashboard_url", "")))}">View your dashboard</a></p>
</body>
</html>
"""
    return subject, body


_TEMPLATES = {TEMPLATE_CONTENT_FLAGGED: render_content_flagged}


class EmailNotifier:
    """Looks up the recipient's profile and mails them via SendGrid.

    Parameters
    ----------
    settings : Settings
        Supplies the API key, sender address and dashboard base URL.
    profiles : ProfileStore
        Used to resolve the e-mail address and notification preferences.
    client : httpx.Client | None
        Injected for tests; a short-lived client is created per send otherwise.
    """

    def __init__(
        self,
        settings: Settings,
        profiles: ProfileStore,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings
        self._profiles = profiles
        self._client = client

    def notify(self, user_id: str, template: str, payload: dict[str, Any]) -> bool:
        if not self._settings.email_configured:
            logger.warning("SendGrid not configured. Skipping %s mail to user %s", template, user_id)
            return False

        render = _TEMPLATES.get(template)
        if render is None:
            logger.error("Unknown notification template %r", template)
            return False

        profile = self._profiles.get_profile(user_id)
        if profile is None or not profile.wants_flag_emails:
            logger.info("User %s has no address or opted out of %s mail", user_id, template)
            return False

        payload = {"dashboard_url": f"{self._settings.base_url}/profile", **payload}
        subject, body = render(profile.name or "User", payload)
        message = {
            "personalizations": [{"to": [{"email": profile.email}]}],
            "from": {"email": self._settings.sendgrid_from_email},
            "subject": subject,
            "content": [{"type": "text/html", "value": body}],
        }
        headers = {"Authorization": f"Bearer {self._settings.sendgrid_api_key}"}

        try:
            if self._client is not None:
                resp = self._client.post(SENDGRID_URL, json=message, headers=headers)
            else:
                with httpx.Client(timeout=10.0) as client:
                    resp = client.post(SENDGRID_URL, json=message, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("SendGrid rejected %s mail to user %s: HTTP %s", template, user_id, exc.response.status_code)
            return False
        except httpx.RequestError as exc:
            logger.error("Could not reach SendGrid for user %s: %s", user_id, exc)
            return False

        logger.info("Sent %s mail to user %s", template, user_id)
        return True
