"""Auth middleware -- FastAPI dependencies for the current user and services.

Requests authenticate with an ``X-API-Key: <raw_key>`` header.  Keys are
issued per profile (``campusguard keys create``) and checked against the
hashes in the profile store.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from campusguard.auth.models import Profile
from campusguard.services import Services, build_services

# Shared services instance
_services: Optional[Services] = None


def get_services() -> Services:
    """Return the singleton Services instance, built on first use."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


async def get_current_user(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    services: Services = Depends(get_services),
) -> Profile:
    """FastAPI dependency that resolves the calling user from their API key.

    Raises ``401 Unauthorized`` when the key is missing, unknown, expired,
    or belongs to a profile that no longer exists.
    """
    if x_api_key:
        profile = services.profiles.validate_api_key(x_api_key)
        if profile is not None:
            return profile

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "API-Key"},
    )


async def get_optional_user(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    services: Services = Depends(get_services),
) -> Optional[Profile]:
    """Same as ``get_current_user`` but returns ``None`` instead of raising 401."""
    try:
        return await get_current_user(x_api_key=x_api_key, services=services)
    except HTTPException:
        return None


def client_ip(request: Request) -> str:
    """First forwarded address, then the real-ip header, then the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"
