"""Role-based access control (RBAC) logic.

Role hierarchy: admin > moderator > user
"""

from __future__ import annotations

from typing import Optional

from campusguard.auth.models import Profile, Role
from campusguard.moderation.errors import AuthorizationError


def has_permission(user: Profile, required_role: Role) -> bool:
    """Check if a user's role meets or exceeds the required role level.

    Parameters
    ----------
    user:
        The authenticated profile to check.
    required_role:
        The minimum role required.

    Returns
    -------
    bool
        True if user's role level >= required role level.
    """
    user_role = user.role if isinstance(user.role, Role) else Role(user.role)
    return user_role.level >= required_role.level


def require_role(user: Optional[Profile], role: Role) -> Profile:
    """Validate that an active (not suspended) user has at least *role*.

    Raises ``AuthorizationError`` otherwise.  Returns the user so callers
    can write ``admin = require_role(actor, Role.moderator)``.
    """
    if user is None:
        raise AuthorizationError("Unauthorized - Please log in")
    if not has_permission(user, role):
        raise AuthorizationError(f"Forbidden - requires role '{role.value}' or higher")
    if user.is_suspended:
        raise AuthorizationError("Your account is suspended")
    return user


def require_moderator(user: Optional[Profile]) -> Profile:
    """Admins and moderators may work the moderation queue and rules."""
    return require_role(user, Role.moderator)


def require_admin(user: Optional[Profile]) -> Profile:
    """Only full admins may change other users' roles or suspension."""
    return require_role(user, Role.admin)
