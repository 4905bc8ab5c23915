"""Text moderation engine.

Scores text against built-in spam/profanity keyword lists and contact-info
patterns, then folds in admin-managed prohibited-item rules.  The built-in
sweep is pure; the database-aware variant reads active rules on every call.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Protocol

from campusguard.moderation.models import (
    Confidence,
    ModerationResult,
    ProhibitedItem,
    RuleType,
    Severity,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Keyword lists
# ---------------------------------------------------------------------------

_PAYMENT_SCAM_KEYWORDS = [
    "send money first", "wire transfer", "western union", "moneygram", "cashapp me",
    "venmo first", "zelle first", "pay before meeting", "bitcoin", "cryptocurrency",
    "send gift card", "itunes card", "amazon gift", "google play card", "prepaid card",
    "bank transfer", "paypal friends family", "crypto wallet", "cash only no meetup",
    "shipping fee required", "deposit required", "processing fee",
]

_TOO_GOOD_KEYWORDS = [
    "guaranteed income", "work from home", "make $$$", "easy money", "get rich quick",
    "limited time offer", "act now", "click here now", "make money fast",
    "passive income", "be your own boss", "financial freedom", "residual income",
    "multilevel marketing", "pyramid scheme", "join my team",
]

_PHISHING_KEYWORDS = [
    "verify your account", "confirm your identity", "update payment", "verify now",
    "suspended account", "unusual activity", "security alert", "account locked",
    "urgent action required", "click to verify", "confirm email",
]

_LINK_KEYWORDS = [
    "click this link", "bit.ly", "tinyurl", "goo.gl", "short.link", "rebrand.ly",
    "follow link", "go to website", "visit site", "check out my website",
]

_OFF_PLATFORM_KEYWORDS = [
    "text me at", "call me at", "email me at", "whatsapp me", "telegram me",
    "message me on instagram", "dm me on twitter", "add me on snap", "kik me",
    "discord server", "off platform", "contact outside",
]

_URGENCY_KEYWORDS = [
    "only today", "expires soon", "while supplies last", "first come first serve",
    "limited quantity", "must sell now", "selling fast", "wont last",
]

_INVESTMENT_KEYWORDS = [
    "investment opportunity", "double your money", "guaranteed returns",
    "trading signals", "forex trading", "binary options", "pump and dump",
]

SPAM_KEYWORDS: list[str] = (
    _PAYMENT_SCAM_KEYWORDS
    + _TOO_GOOD_KEYWORDS
    + _PHISHING_KEYWORDS
    + _LINK_KEYWORDS
    + _OFF_PLATFORM_KEYWORDS
    + _URGENCY_KEYWORDS
    + _INVESTMENT_KEYWORDS
)

PROFANITY_KEYWORDS: list[str] = [
    "f*ck", "sh*t", "b*tch", "a**hole", "d*mn",
    "xxx", "porn", "nude", "nudes", "sex",
]

# ---------------------------------------------------------------------------
# Structural patterns
# ---------------------------------------------------------------------------

PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b", re.ASCII)
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII)
URL_PATTERN = re.compile(r"https?://")

# More URLs than this is treated as link spam.
MAX_TOLERATED_URLS = 2

FLAG_SPAM = "spam"
FLAG_PROFANITY = "profanity"
FLAG_CONTACT_INFO = "contact_info"
FLAG_SUSPICIOUS_LINKS = "suspicious_links"
FLAG_PROHIBITED = "prohibited"

_DEFAULT_RULE_REASON = "Matched prohibited pattern:"


class RuleSource(Protocol):
    """Anything that can hand out the currently active prohibited items."""

    def active_rules(self) -> list[ProhibitedItem]: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unique(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _confidence_for(flag_count: int) -> Confidence:
    if flag_count >= 3:
        return Confidence.high
    return Confidence.medium if flag_count >= 1 else Confidence.low


def _compile_rule(rule: ProhibitedItem) -> Optional[re.Pattern[str]]:
    try:
        return re.compile(rule.pattern, re.IGNORECASE)
    except re.error as exc:
        logger.warning(
            "Skipping prohibited item %s: invalid %s pattern %r (%s)",
            rule.id, rule.type.value, rule.pattern, exc,
        )
        return None


def _rule_matches(rule: ProhibitedItem, text: str, normalized: str) -> bool:
    if rule.type is RuleType.keyword:
        return rule.pattern.lower() in normalized
    if rule.type in (RuleType.regex, RuleType.url_pattern):
        compiled = _compile_rule(rule)
        return compiled is not None and compiled.search(text) is not None
    # category rules describe a listing category, not text
    return False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def moderate_text(text: str) -> ModerationResult:
    """Check *text* against the built-in keyword lists and contact patterns."""
    normalized = text.lower().strip()
    if not normalized:
        return ModerationResult()

    flags: list[str] = []
    reasons: list[str] = []

    for keyword in SPAM_KEYWORDS:
        if keyword in normalized:
            flags.append(FLAG_SPAM)
            reasons.append(f'Contains spam keyword: "{keyword}"')

    for word in PROFANITY_KEYWORDS:
        if word in normalized:
            flags.append(FLAG_PROFANITY)
            reasons.append("Contains inappropriate language")

    if PHONE_PATTERN.search(text):
        flags.append(FLAG_CONTACT_INFO)
        reasons.append("Contains phone number (keep contact on platform)")

    if EMAIL_PATTERN.search(text):
        flags.append(FLAG_CONTACT_INFO)
        reasons.append("Contains email address (keep contact on platform)")

    if len(URL_PATTERN.findall(text)) > MAX_TOLERATED_URLS:
        flags.append(FLAG_SUSPICIOUS_LINKS)
        reasons.append("Contains multiple external links")

    flags = _unique(flags)
    return ModerationResult(
        flags=flags,
        confidence=_confidence_for(len(flags)),
        reasons=_unique(reasons),
    )


def moderate_text_with_rules(
    text: str, rules: Iterable[ProhibitedItem]
) -> ModerationResult:
    """Run :func:`moderate_text` and fold in matches from *rules*.

    Inactive rules are ignored.  A rule whose pattern does not compile is
    logged and treated as non-matching; it never raises.
    """
    base = moderate_text(text)
    normalized = text.lower()
    if not normalized.strip():
        return base

    matched: list[ProhibitedItem] = []
    flags = list(base.flags)
    reasons = list(base.reasons)
    for rule in rules:
        if not rule.is_active:
            continue
        if _rule_matches(rule, text, normalized):
            matched.append(rule)
            flags.append(rule.category or FLAG_PROHIBITED)
            reasons.append(rule.description or f"{_DEFAULT_RULE_REASON} {rule.pattern}")

    if not matched:
        return base

    flags = _unique(flags)
    confidence = _confidence_for(len(flags))
    if any(r.severity is Severity.critical for r in matched):
        confidence = Confidence.high
    elif any(r.severity is Severity.high for r in matched) and confidence is Confidence.low:
        confidence = Confidence.medium

    return ModerationResult(
        flags=flags,
        confidence=confidence,
        reasons=_unique(reasons),
        matched_prohibited=matched,
    )


def moderate_text_with_database(text: str, source: RuleSource) -> ModerationResult:
    """Moderate *text* using the rules *source* reports as active right now.

    If the rules cannot be loaded the built-in result is returned.
    """
    try:
        rules = source.active_rules()
    except Exception:
        logger.exception("Failed to fetch prohibited items; using built-in moderation only")
        return moderate_text(text)
    return moderate_text_with_rules(text, rules)


def moderate_image(image_url: str) -> ModerationResult:
    """Placeholder for the external image moderation API.

    Image analysis is delegated to a third-party service that is not wired
    up; every image is reported clean with low confidence.
    """
    logger.info("Image moderation not configured, skipping %s", image_url)
    return ModerationResult(reasons=["Image moderation not configured"])


def public_summary(result: ModerationResult) -> dict:
    """Describe *result* for the person who submitted the content.

    Rule patterns are left out so the exact blocked strings are not revealed.
    """
    reasons = _unique(
        "Matched prohibited content" if reason.startswith(_DEFAULT_RULE_REASON) else reason
        for reason in result.reasons
    )
    return {
        "is_clean": result.is_clean,
        "flags": list(result.flags),
        "confidence": result.confidence.value,
        "reasons": reasons,
        "matched_rules": [
            {"category": r.category or FLAG_PROHIBITED, "severity": r.severity.value}
            for r in result.matched_prohibited
        ],
    }
