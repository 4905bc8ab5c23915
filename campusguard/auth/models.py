"""Auth domain models for marketplace profiles."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Role hierarchy: admin > moderator > user."""

    admin = "admin"
    moderator = "moderator"
    user = "user"

    @property
    def level(self) -> int:
        """Return numeric level for comparison (higher = more privileges)."""
        return {
            Role.admin: 30,
            Role.moderator: 20,
            Role.user: 10,
        }[self]


class AccountStatus(str, Enum):
    active = "active"
    suspended = "suspended"


@dataclass
class Profile:
    """A marketplace member, as seen by the moderation system."""

    id: str
    name: str
    email: str = ""
    role: Role = Role.user
    is_suspended: bool = False
    suspension_reason: Optional[str] = None
    email_notifications: bool = True
    email_content_flags: bool = True
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()
        if not self.updated_at:
            self.updated_at = self.created_at
        if isinstance(self.role, str):
            self.role = Role(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin

    @property
    def wants_flag_emails(self) -> bool:
        return bool(self.email) and self.email_notifications and self.email_content_flags


@dataclass
class APIKey:
    """A credential that identifies a profile to the HTTP API.

    Only the SHA-256 hash of the raw key is stored.
    """

    id: str
    user_id: str
    name: str
    key_hash: str
    prefix: str  # First 8 chars for display
    created_at: str = ""
    expires_at: str = ""
    last_used: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()
