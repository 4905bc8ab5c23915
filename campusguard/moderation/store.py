"""File-based JSON storage for moderation data.

Provides a DB-ready interface backed by simple JSON files under
``~/.campusguard/moderation/``.
"""

from __future__ import annotations

import json
import threading
import uuid
from collections import Counter
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from campusguard.moderation.errors import (
    InvalidTransitionError,
    PersistenceError,
    RuleNotFoundError,
    ValidationError,
)
from campusguard.moderation.models import (
    ContentType,
    FlaggedContent,
    FlagStatus,
    ProhibitedItem,
    UserReport,
    UserStrike,
)
from campusguard.moderation.validator import validate_prohibited_item


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class _JsonListStore:
    """Shared helpers for stores that keep one JSON list per file."""

    def __init__(self, base_dir: Optional[str | Path], default_subdir: str) -> None:
        if base_dir is None:
            self._base = Path.home() / ".campusguard" / default_subdir
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

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


# ---------------------------------------------------------------------------
# Prohibited items
# ---------------------------------------------------------------------------


class ProhibitedItemStore(_JsonListStore):
    """Admin-managed moderation rules.

    Storage path: ``~/.campusguard/rules/`` with:
    - ``prohibited_items.json`` -- list of rule dicts
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__(base_dir, "rules")
        self._items_path = self._base / "prohibited_items.json"

    @staticmethod
    def _item_from_dict(d: dict) -> ProhibitedItem:
        return ProhibitedItem(
            id=d["id"],
            type=d["type"],
            pattern=d["pattern"],
            severity=d.get("severity", "medium"),
            action=d.get("action", "flag"),
            category=d.get("category"),
            description=d.get("description"),
            is_active=d.get("is_active", True),
            created_by=d.get("created_by", ""),
            created_at=d.get("created_at", ""),
            updated_at=d.get("updated_at", ""),
        )

    @staticmethod
    def _item_to_dict(item: ProhibitedItem) -> dict:
        return {
            "id": item.id,
            "type": item.type.value,
            "pattern": item.pattern,
            "severity": item.severity.value,
            "action": item.action.value,
            "category": item.category,
            "description": item.description,
            "is_active": item.is_active,
            "created_by": item.created_by,
            "created_at": item.created_at,
            "updated_at": item.updated_at,
        }

    def create_item(self, data: dict[str, Any], created_by: str = "") -> ProhibitedItem:
        """Validate and persist a new rule."""
        issues = validate_prohibited_item(data)
        if issues:
            raise ValidationError("Validation failed", issues)
        item = ProhibitedItem(
            id=uuid.uuid4().hex[:12],
            type=data["type"],
            pattern=data["pattern"],
            severity=data.get("severity", "medium"),
            action=data.get("action", "flag"),
            category=data.get("category"),
            description=data.get("description"),
            is_active=data.get("is_active", True),
            created_by=created_by,
        )
        with self._lock:
            items = self._read_json(self._items_path)
            items.append(self._item_to_dict(item))
            self._write_json(self._items_path, items)
        return item

    def get_item(self, item_id: str) -> Optional[ProhibitedItem]:
        for d in self._read_json(self._items_path):
            if d["id"] == item_id:
                return self._item_from_dict(d)
        return None

    def list_items(
        self,
        *,
        is_active: Optional[bool] = None,
        type: Optional[str] = None,
        severity: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[ProhibitedItem]:
        """Return rules, most severe first, newest first within a severity."""
        items = [self._item_from_dict(d) for d in self._read_json(self._items_path)]
        if is_active is not None:
            items = [i for i in items if i.is_active == is_active]
        if type:
            items = [i for i in items if i.type.value == type]
        if severity:
            items = [i for i in items if i.severity.value == severity]
        if category:
            items = [i for i in items if i.category == category]
        items.sort(key=lambda i: i.created_at, reverse=True)
        items.sort(key=lambda i: i.severity.level, reverse=True)
        return items

    def active_rules(self) -> list[ProhibitedItem]:
        """Rules the engine should apply; re-read from disk on every call."""
        return self.list_items(is_active=True)

    def update_item(self, item_id: str, updates: dict[str, Any]) -> ProhibitedItem:
        """Apply a partial update. Raises ``RuleNotFoundError`` if missing."""
        with self._lock:
            items = self._read_json(self._items_path)
            for d in items:
                if d["id"] != item_id:
                    continue
                merged_type = updates.get("type", d["type"])
                issues = validate_prohibited_item({**updates, "type": merged_type}, partial=True)
                if "pattern" not in updates and "type" in updates:
                    issues += validate_prohibited_item(
                        {"type": merged_type, "pattern": d["pattern"]}, partial=True
                    )
                if issues:
                    raise ValidationError("Validation failed", issues)
                for key, value in updates.items():
                    d[key] = value.value if hasattr(value, "value") else value
                d["updated_at"] = _now()
                self._write_json(self._items_path, items)
                return self._item_from_dict(d)
        raise RuleNotFoundError(item_id)

    def delete_item(self, item_id: str) -> bool:
        with self._lock:
            items = self._read_json(self._items_path)
            remaining = [d for d in items if d["id"] != item_id]
            if len(remaining) < len(items):
                self._write_json(self._items_path, remaining)
                return True
        return False


# ---------------------------------------------------------------------------
# Queue, strikes and reports
# ---------------------------------------------------------------------------


class ModerationStore(_JsonListStore):
    """Flagged content, user strikes and user reports.

    Storage path: ``~/.campusguard/moderation/`` with:
    - ``flagged_content.json`` -- moderation queue entries
    - ``strikes.json`` -- user strikes
    - ``reports.json`` -- user reports
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__(base_dir, "moderation")
        self._flags_path = self._base / "flagged_content.json"
        self._strikes_path = self._base / "strikes.json"
        self._reports_path = self._base / "reports.json"

    # -- conversion ----------------------------------------------------------

    @staticmethod
    def _flag_to_dict(f: FlaggedContent) -> dict:
        return {
            "id": f.id,
            "content_type": f.content_type.value,
            "content_id": f.content_id,
            "user_id": f.user_id,
            "reason": f.reason,
            "severity": f.severity.value,
            "status": f.status.value,
            "source": f.source.value,
            "details": asdict(f.details),
            "reviewed_by": f.reviewed_by,
            "reviewed_at": f.reviewed_at,
            "review_notes": f.review_notes,
            "created_at": f.created_at,
            "updated_at": f.updated_at,
        }

    @staticmethod
    def _flag_from_dict(d: dict) -> FlaggedContent:
        return FlaggedContent(**{k: v for k, v in d.items() if k in FlaggedContent.__dataclass_fields__})

    @staticmethod
    def _strike_to_dict(s: UserStrike) -> dict:
        d = asdict(s)
        d["severity"] = s.severity.value
        return d

    @staticmethod
    def _report_to_dict(r: UserReport) -> dict:
        d = asdict(r)
        d["content_type"] = r.content_type.value
        d["status"] = r.status.value
        return d

    # -- flagged content -----------------------------------------------------

    def create_flag(self, flagged: FlaggedContent) -> FlaggedContent:
        with self._lock:
            flags = self._read_json(self._flags_path)
            flags.append(self._flag_to_dict(flagged))
            self._write_json(self._flags_path, flags)
        return flagged

    def create_flag_if_absent(self, flagged: FlaggedContent) -> Optional[FlaggedContent]:
        """Insert *flagged* unless the same content already has an entry.

        The existence check and the write happen under one lock, so two
        callers racing on the same content produce a single entry.
        """
        with self._lock:
            flags = self._read_json(self._flags_path)
            for d in flags:
                if d["content_type"] == flagged.content_type.value and d["content_id"] == flagged.content_id:
                    return None
            flags.append(self._flag_to_dict(flagged))
            self._write_json(self._flags_path, flags)
        return flagged

    def get_flag(self, flag_id: str) -> Optional[FlaggedContent]:
        for d in self._read_json(self._flags_path):
            if d["id"] == flag_id:
                return self._flag_from_dict(d)
        return None

    def find_flag_for_content(self, content_type: ContentType | str, content_id: str) -> Optional[FlaggedContent]:
        ct = ContentType(content_type).value
        for d in self._read_json(self._flags_path):
            if d["content_type"] == ct and d["content_id"] == str(content_id):
                return self._flag_from_dict(d)
        return None

    def list_flags(
        self,
        *,
        status: Optional[str] = None,
        content_type: Optional[str] = None,
        severity: Optional[str] = None,
        source: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[FlaggedContent], int]:
        """Return ``(page, total)`` of queue entries, newest first."""
        rows = self._read_json(self._flags_path)
        if status:
            rows = [d for d in rows if d.get("status") == status]
        if content_type:
            rows = [d for d in rows if d.get("content_type") == content_type]
        if severity:
            rows = [d for d in rows if d.get("severity") == severity]
        if source:
            rows = [d for d in rows if d.get("source") == source]
        rows.sort(key=lambda d: d.get("created_at", ""), reverse=True)
        page = rows[offset:offset + limit]
        return [self._flag_from_dict(d) for d in page], len(rows)

    def update_flag_review(
        self,
        flag_id: str,
        status: FlagStatus,
        reviewed_by: str,
        review_notes: str = "",
    ) -> Optional[FlaggedContent]:
        """Record a review decision. Returns the updated entry or None.

        Raises ``InvalidTransitionError`` if the entry was already reviewed.
        """
        with self._lock:
            flags = self._read_json(self._flags_path)
            for d in flags:
                if d["id"] == flag_id:
                    if d.get("reviewed_at"):
                        raise InvalidTransitionError(
                            f"Flagged content {flag_id} was already resolved as {d['status']}"
                        )
                    now = _now()
                    d["status"] = FlagStatus(status).value
                    d["reviewed_by"] = reviewed_by
                    d["reviewed_at"] = now
                    d["review_notes"] = review_notes
                    d["updated_at"] = now
                    self._write_json(self._flags_path, flags)
                    return self._flag_from_dict(d)
        return None

    # -- strikes ---------------------------------------------------------------

    def create_strike(self, strike: UserStrike) -> UserStrike:
        with self._lock:
            strikes = self._read_json(self._strikes_path)
            strikes.append(self._strike_to_dict(strike))
            self._write_json(self._strikes_path, strikes)
        return strike

    def list_strikes(self, user_id: Optional[str] = None, active_only: bool = False) -> list[UserStrike]:
        strikes = [UserStrike(**d) for d in self._read_json(self._strikes_path)]
        if user_id is not None:
            strikes = [s for s in strikes if s.user_id == user_id]
        if active_only:
            strikes = [s for s in strikes if s.is_active]
        return strikes

    # -- reports -----------------------------------------------------------------

    def create_report(self, report: UserReport) -> UserReport:
        with self._lock:
            reports = self._read_json(self._reports_path)
            reports.append(self._report_to_dict(report))
            self._write_json(self._reports_path, reports)
        return report

    def find_report(self, reporter_id: str, content_type: ContentType | str, content_id: str) -> Optional[UserReport]:
        ct = ContentType(content_type).value
        for d in self._read_json(self._reports_path):
            if d["reporter_id"] == reporter_id and d["content_type"] == ct and d["content_id"] == str(content_id):
                return UserReport(**d)
        return None

    def list_reports(
        self,
        *,
        reporter_id: Optional[str] = None,
        content_type: Optional[str] = None,
        content_id: Optional[str] = None,
    ) -> list[UserReport]:
        """Return reports matching the filters, newest first."""
        rows = self._read_json(self._reports_path)
        if reporter_id is not None:
            rows = [d for d in rows if d["reporter_id"] == reporter_id]
        if content_type is not None:
            rows = [d for d in rows if d["content_type"] == ContentType(content_type).value]
        if content_id is not None:
            rows = [d for d in rows if d["content_id"] == str(content_id)]
        rows.sort(key=lambda d: d.get("created_at", ""), reverse=True)
        return [UserReport(**d) for d in rows]

    def count_reports(self, content_type: ContentType | str, content_id: str) -> int:
        return len(self.list_reports(content_type=content_type, content_id=content_id))

    # -- dashboard -----------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        """Summary numbers for the admin dashboard."""
        flags = self._read_json(self._flags_path)
        strikes = self._read_json(self._strikes_path)
        reports = self._read_json(self._reports_path)
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")

        pending = [d for d in flags if d.get("status") == FlagStatus.pending.value]
        violators = Counter(d["user_id"] for d in flags)

        return {
            "flagged_content": {"total": len(flags), **Counter(d["status"] for d in flags)},
            "pending_by_severity": dict(Counter(d["severity"] for d in pending)),
            "pending_by_content_type": dict(Counter(d["content_type"] for d in pending)),
            "strikes": {
                "total": len(strikes),
                "active": sum(1 for s in strikes if s.get("is_active", True)),
            },
            "reports": {"total": len(reports), **Counter(d["status"] for d in reports)},
            "flags_today": sum(1 for d in flags if d.get("created_at", "").startswith(today)),
            "top_violators": [
                {"user_id": user_id, "flag_count": count}
                for user_id, count in violators.most_common(10)
            ],
        }
