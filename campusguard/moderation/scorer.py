"""Spam scorer -- a 0-100 heuristic score for marketplace listings.

Layered on top of the text engine: callers use the score to choose stricter
handling (warning banners, extra review), while accept/reject decisions
still go through :mod:`campusguard.moderation.policy`.
"""

from __future__ import annotations

import re
from typing import Optional

from campusguard.config import ScoringWeights
from campusguard.moderation.engine import EMAIL_PATTERN, PHONE_PATTERN, moderate_text
from campusguard.moderation.models import Confidence

MAX_SCORE = 100

# $10,000
UNREALISTIC_PRICE_CENTS = 1_000_000
# $0.01 and $1.00
TOKEN_PRICES_CENTS = (1, 100)

MIN_DESCRIPTION_LENGTH = 20

_EMOJI_PATTERN = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
    "\u2600-\u26FF\u2700-\u27BF]"
)


def calculate_spam_score(
    title: str,
    description: str,
    price_cents: int,
    weights: Optional[ScoringWeights] = None,
) -> int:
    """Return a spam score in ``[0, 100]`` for a listing submission."""
    w = weights or ScoringWeights()
    score = 0

    # Title counts for more than description
    title_result = moderate_text(title)
    score += len(title_result.flags) * w.title_flag
    if title_result.confidence is Confidence.high:
        score += w.title_high_confidence

    desc_result = moderate_text(description)
    score += len(desc_result.flags) * w.description_flag
    if desc_result.confidence is Confidence.high:
        score += w.description_high_confidence

    score += _price_score(price_cents, w)
    score += _title_shape_score(title, w)
    score += _description_score(description, w)

    return max(0, min(score, MAX_SCORE))


def _price_score(price_cents: int, w: ScoringWeights) -> int:
    score = 0
    if price_cents == 0:
        score += w.free_price
    if price_cents > UNREALISTIC_PRICE_CENTS:
        score += w.unrealistic_price
    if price_cents in TOKEN_PRICES_CENTS:
        score += w.token_price
    return score


def _title_shape_score(title: str, w: ScoringWeights) -> int:
    score = 0

    letters = "".join(ch for ch in title if ch.isalpha())
    if len(letters) > 5 and letters == letters.upper():
        score += w.all_caps_title

    if title.count("!") > 3:
        score += w.exclamations
    if title.count("?") > 2:
        score += w.questions
    if title.count("$") > 2:
        score += w.dollar_signs
    if len(_EMOJI_PATTERN.findall(title)) > 3:
        score += w.emoji
    return score


def _description_score(description: str, w: ScoringWeights) -> int:
    score = 0
    if len(description) < MIN_DESCRIPTION_LENGTH:
        score += w.short_description

    words = description.lower().split()
    if len(words) > 20 and len(set(words)) / len(words) < 0.5:
        score += w.repetitive_description

    if PHONE_PATTERN.search(description):
        score += w.phone_in_description
    if EMAIL_PATTERN.search(description):
        score += w.email_in_description
    return score
