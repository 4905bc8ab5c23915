"""Wiring of stores and services over one data directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from campusguard.auth.store import ProfileStore
from campusguard.config import Settings, load_settings
from campusguard.content.store import JsonContentStore
from campusguard.moderation.queue import ModerationQueue
from campusguard.moderation.reports import ReportAggregator
from campusguard.moderation.rules import RuleManager
from campusguard.moderation.store import ModerationStore, ProhibitedItemStore
from campusguard.notify.email import EmailNotifier, Notifier
from campusguard.ratelimit import RateLimiter
from campusguard.security.audit_log import AuditLogger


@dataclass
class Services:
    settings: Settings
    audit: AuditLogger
    profiles: ProfileStore
    content: JsonContentStore
    rules_store: ProhibitedItemStore
    store: ModerationStore
    notifier: Notifier
    queue: ModerationQueue
    reports: ReportAggregator
    rules: RuleManager
    limiter: RateLimiter


def build_services(settings: Optional[Settings] = None, notifier: Optional[Notifier] = None) -> Services:
    """Create every store under ``settings.data_dir`` and the services on top.

    *notifier* defaults to an :class:`EmailNotifier`, which does nothing
    until SendGrid is configured.
    """
    settings = settings or load_settings()
    base = settings.data_dir

    audit = AuditLogger(base / "audit_logs")
    profiles = ProfileStore(base / "auth", audit=audit)
    content = JsonContentStore(base / "content")
    rules_store = ProhibitedItemStore(base / "rules")
    store = ModerationStore(base / "moderation")
    if notifier is None:
        notifier = EmailNotifier(settings, profiles)

    return Services(
        settings=settings,
        audit=audit,
        profiles=profiles,
        content=content,
        rules_store=rules_store,
        store=store,
        notifier=notifier,
        queue=ModerationQueue(store, content, audit, notifier=notifier, rules=rules_store),
        reports=ReportAggregator(store, content, notifier, threshold=settings.report_threshold),
        rules=RuleManager(rules_store, audit),
        limiter=RateLimiter(settings.rate_limit_storage),
    )
