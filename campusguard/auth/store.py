"""File-based JSON storage for profiles.

Provides a DB-ready interface backed by a JSON file under
``~/.campusguard/auth/``.  Role and suspension changes go through
:meth:`ProfileStore.update_profile`, which enforces admin checks and the
rule that an admin cannot demote or suspend themselves.
"""

from __future__ import annotations

import hashlib
import json
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from campusguard.auth.models import AccountStatus, APIKey, Profile, Role
from campusguard.auth.permissions import require_admin
from campusguard.moderation.errors import PersistenceError, SelfActionError, UserNotFoundError, ValidationError
from campusguard.security.audit_log import AuditLogger

logger = logging.getLogger(__name__)


class ProfileStore:
    """File-based storage for profiles.

    Storage path: ``~/.campusguard/auth/`` with:
    - ``profiles.json`` -- list of profile dicts
    - ``api_keys.json`` -- list of hashed API key dicts
    """

    def __init__(self, base_dir: Optional[str | Path] = None, audit: Optional[AuditLogger] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".campusguard" / "auth"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._profiles_path = self._base / "profiles.json"
        self._keys_path = self._base / "api_keys.json"
        self._audit = audit

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text())
            return data if isinstance(data, list) else []
        except (json.JSONDecodeError, OSError):
            return []

    def _write_json(self, path: Path, data: list[dict]) -> None:
        try:
            path.write_text(json.dumps(data, indent=2, default=str))
        except OSError as exc:
            raise PersistenceError(f"Failed to write {path.name}: {exc}") from exc

    @staticmethod
    def _hash_key(raw_key: str) -> str:
        return hashlib.sha256(raw_key.encode()).hexdigest()

    @staticmethod
    def _profile_from_dict(d: dict) -> Profile:
        role_val = d.get("role", "user")
        try:
            role_val = Role(role_val)
        except ValueError:
            role_val = Role.user
        return Profile(
            id=d["id"],
            name=d.get("name", ""),
            email=d.get("email", ""),
            role=role_val,
            is_suspended=d.get("is_suspended", False),
            suspension_reason=d.get("suspension_reason"),
            email_notifications=d.get("email_notifications", True),
            email_content_flags=d.get("email_content_flags", True),
            created_at=d.get("created_at", ""),
            updated_at=d.get("updated_at", ""),
        )

    @staticmethod
    def _profile_to_dict(p: Profile) -> dict:
        return {
            "id": p.id,
            "name": p.name,
            "email": p.email,
            "role": p.role.value,
            "is_suspended": p.is_suspended,
            "suspension_reason": p.suspension_reason,
            "email_notifications": p.email_notifications,
            "email_content_flags": p.email_content_flags,
            "created_at": p.created_at,
            "updated_at": p.updated_at,
        }

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_profile(self, profile: Profile) -> Profile:
        """Persist a new profile. Assigns an id when *profile* has none."""
        if not profile.id:
            profile.id = uuid.uuid4().hex[:12]
        profiles = self._read_json(self._profiles_path)
        profiles.append(self._profile_to_dict(profile))
        self._write_json(self._profiles_path, profiles)
        return profile

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        for d in self._read_json(self._profiles_path):
            if d["id"] == profile_id:
                return self._profile_from_dict(d)
        return None

    def list_profiles(self, *, role: Optional[str] = None, suspended: Optional[bool] = None) -> list[Profile]:
        profiles = [self._profile_from_dict(d) for d in self._read_json(self._profiles_path)]
        if role:
            profiles = [p for p in profiles if p.role.value == role]
        if suspended is not None:
            profiles = [p for p in profiles if p.is_suspended == suspended]
        return profiles

    def update_profile(
        self,
        actor: Optional[Profile],
        target_id: str,
        *,
        role: Optional[str] = None,
        status: Optional[str] = None,
        suspension_reason: Optional[str] = None,
    ) -> tuple[Profile, bool]:
        """Change another user's role and/or suspension state.

        Returns ``(profile, changed)``.  Raises ``AuthorizationError`` unless
        *actor* is an active admin, ``ValidationError`` for bad values, and
        ``SelfActionError`` when an admin targets their own account with a
        demotion or suspension.  Nothing is written in any error case.
        """
        admin = require_admin(actor)

        if role is None and status is None:
            raise ValidationError("Provide role or status to update")
        if role is not None and role not in {r.value for r in Role}:
            raise ValidationError("Invalid role. Use admin, moderator, or user.")
        if status is not None and status not in {s.value for s in AccountStatus}:
            raise ValidationError("Invalid status. Use active or suspended.")

        if target_id == admin.id:
            if role is not None and role != Role.admin.value:
                raise SelfActionError("You cannot change your own role.")
            if status == AccountStatus.suspended.value:
                raise SelfActionError("You cannot suspend your own account.")

        profiles = self._read_json(self._profiles_path)
        for d in profiles:
            if d["id"] != target_id:
                continue
            existing = self._profile_from_dict(d)
            role_changed = role is not None and role != existing.role.value
            should_suspend = status == AccountStatus.suspended.value
            suspension_changed = status is not None and should_suspend != existing.is_suspended
            if not role_changed and not suspension_changed:
                return existing, False

            if role_changed:
                d["role"] = role
            if suspension_changed:
                d["is_suspended"] = should_suspend
                d["suspension_reason"] = (suspension_reason or "Suspended by admin") if should_suspend else None
            d["updated_at"] = datetime.now(timezone.utc).isoformat()
            self._write_json(self._profiles_path, profiles)
            updated = self._profile_from_dict(d)

            if self._audit is not None:
                if role_changed:
                    self._audit.log_action(
                        admin.id,
                        "promoted_admin" if role == Role.admin.value else "updated_role",
                        "Profile",
                        target_id,
                        {"previous_role": existing.role.value, "new_role": role},
                    )
                if suspension_changed:
                    self._audit.log_action(
                        admin.id,
                        "suspended_user" if should_suspend else "unsuspended_user",
                        "Profile",
                        target_id,
                        {"reason": updated.suspension_reason},
                    )
            logger.info("Admin %s updated profile %s (role=%s, status=%s)", admin.id, target_id, role, status)
            return updated, True

        raise UserNotFoundError(target_id)

    # ------------------------------------------------------------------
    # API keys
    # ------------------------------------------------------------------

    @staticmethod
    def _key_from_dict(d: dict) -> APIKey:
        return APIKey(
            id=d["id"],
            user_id=d["user_id"],
            name=d.get("name", ""),
            key_hash=d["key_hash"],
            prefix=d.get("prefix", ""),
            created_at=d.get("created_at", ""),
            expires_at=d.get("expires_at", ""),
            last_used=d.get("last_used", ""),
        )

    def create_api_key(self, user_id: str, name: str, expires_in_days: int = 90) -> tuple[APIKey, str]:
        """Issue a key for *user_id*. Returns ``(APIKey, raw_key)``.

        The raw key is shown once; only its hash is kept.
        """
        if self.get_profile(user_id) is None:
            raise UserNotFoundError(user_id)

        raw_key = f"cg_{secrets.token_urlsafe(32)}"
        now = datetime.now(timezone.utc)
        api_key = APIKey(
            id=uuid.uuid4().hex[:12],
            user_id=user_id,
            name=name,
            key_hash=self._hash_key(raw_key),
            prefix=raw_key[:8],
            created_at=now.isoformat(),
            expires_at=(now + timedelta(days=expires_in_days)).isoformat(),
        )

        keys = self._read_json(self._keys_path)
        keys.append({
            "id": api_key.id,
            "user_id": api_key.user_id,
            "name": api_key.name,
            "key_hash": api_key.key_hash,
            "prefix": api_key.prefix,
            "created_at": api_key.created_at,
            "expires_at": api_key.expires_at,
            "last_used": api_key.last_used,
        })
        self._write_json(self._keys_path, keys)
        logger.info("Issued API key %s (%s) for user %s", api_key.id, api_key.prefix, user_id)
        return api_key, raw_key

    def list_api_keys(self, user_id: str) -> list[APIKey]:
        return [self._key_from_dict(d) for d in self._read_json(self._keys_path) if d["user_id"] == user_id]

    def delete_api_key(self, key_id: str) -> bool:
        keys = self._read_json(self._keys_path)
        remaining = [d for d in keys if d["id"] != key_id]
        if len(remaining) == len(keys):
            return False
        self._write_json(self._keys_path, remaining)
        return True

    def validate_api_key(self, raw_key: str) -> Optional[Profile]:
        """Return the profile a raw key belongs to, or ``None``.

        Unknown and expired keys both yield ``None``.
        """
        key_hash = self._hash_key(raw_key)
        now = datetime.now(timezone.utc).isoformat()

        keys = self._read_json(self._keys_path)
        for d in keys:
            if not secrets.compare_digest(d["key_hash"], key_hash):
                continue
            if d.get("expires_at") and d["expires_at"] < now:
                return None
            d["last_used"] = now
            self._write_json(self._keys_path, keys)
            return self.get_profile(d["user_id"])
        return None
