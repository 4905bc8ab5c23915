"""campusguard -- content moderation for the campus marketplace.

Rule-based text moderation, spam scoring, a review queue with strike
issuance, and user-report aggregation.
"""

__version__ = "0.1.0"
