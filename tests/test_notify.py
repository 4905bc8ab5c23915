"""Tests for owner notifications."""

import json
import tempfile
from pathlib import Path

import httpx

from campusguard.auth.models import Profile
from campusguard.auth.store import ProfileStore
from campusguard.config import Settings
from campusguard.notify.email import SENDGRID_URL, EmailNotifier, render_content_flagged

PAYLOAD = {"content_type": "listing", "content_title": "Mini <fridge>", "reason": "Multiple user reports: scam",
           "severity": "high"}


def _profiles(tmpdir: str) -> ProfileStore:
    store = ProfileStore(Path(tmpdir))
    store.create_profile(Profile(id="u1", name="Uma", email="uma@example.edu"))
    store.create_profile(Profile(id="u2", name="Quiet", email="q@example.edu", email_content_flags=False))
    return store


def _client(status_code: int, seen: list):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code)

    return httpx.Client(transport=httpx.MockTransport(handler))


def _settings() -> Settings:
    return Settings(sendgrid_api_key="SG.test", sendgrid_from_email="noreply@example.edu",
                    base_url="https://market.example.edu")


def test_render_escapes_content():
    subject, body = render_content_flagged("Uma", PAYLOAD)
    assert subject == "Your listing has been flagged for review"
    assert "Mini &lt;fridge&gt;" in body
    assert "HIGH" in body


def test_sends_via_sendgrid():
    with tempfile.TemporaryDirectory() as tmpdir:
        seen = []
        notifier = EmailNotifier(_settings(), _profiles(tmpdir), client=_client(202, seen))
        assert notifier.notify("u1", "content_flagged", PAYLOAD) is True

        request = seen[0]
        assert str(request.url) == SENDGRID_URL
        assert request.headers["Authorization"] == "Bearer SG.test"
        message = json.loads(request.content)
        assert message["personalizations"][0]["to"][0]["email"] == "uma@example.edu"
        assert "https://market.example.edu/profile" in message["content"][0]["value"]


def test_skips_without_configuration():
    with tempfile.TemporaryDirectory() as tmpdir:
        seen = []
        notifier = EmailNotifier(Settings(), _profiles(tmpdir), client=_client(202, seen))
        assert notifier.notify("u1", "content_flagged", PAYLOAD) is False
        assert seen == []


def test_honours_preferences_and_unknown_users():
    with tempfile.TemporaryDirectory() as tmpdir:
        seen = []
        notifier = EmailNotifier(_settings(), _profiles(tmpdir), client=_client(202, seen))
        assert notifier.notify("u2", "content_flagged", PAYLOAD) is False
        assert notifier.notify("ghost", "content_flagged", PAYLOAD) is False
        assert notifier.notify("u1", "weekly_digest", PAYLOAD) is False
        assert seen == []


def test_provider_error_is_not_raised():
    with tempfile.TemporaryDirectory() as tmpdir:
        notifier = EmailNotifier(_settings(), _profiles(tmpdir), client=_client(500, []))
        assert notifier.notify("u1", "content_flagged", PAYLOAD) is False
