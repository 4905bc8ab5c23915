"""Moderation audit log.

Every admin action (queue resolutions, strikes, rule changes, role and
suspension changes) is appended as one JSON line to a daily file under
``~/.campusguard/audit_logs/``.  Entries are never rewritten.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A single admin action."""

    id: str
    timestamp: str
    admin_id: str
    action: str
    target_type: str
    target_id: str
    details: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """Append-only JSONL audit log, one file per UTC day."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".campusguard" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
            except OSError:
                logger.warning("Could not read audit file %s", path)
                continue
            for line in lines:
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping malformed audit line in %s", path.name)
        return entries

    def log_action(
        self,
        admin_id: str,
        action: str,
        target_type: str,
        target_id: str,
        details: Optional[dict[str, Any]] = None,
    ) -> Optional[AuditEntry]:
        """Append an entry. Returns it, or None if the write failed.

        A failed write is logged and never raised: the action being
        audited has already happened.
        """
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            admin_id=str(admin_id),
            action=action,
            target_type=target_type,
            target_id=str(target_id),
            details=details or {},
        )
        try:
            with self._log_file_for_date(now).open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(asdict(entry), default=str) + "\n")
        except OSError:
            logger.exception("Failed to log admin action %s on %s %s", action, target_type, target_id)
            return None
        return entry

    def get_events(
        self,
        *,
        admin_id: Optional[str] = None,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered entries, newest first."""
        entries = self._read_all_entries()
        if admin_id:
            entries = [e for e in entries if e.admin_id == admin_id]
        if action:
            entries = [e for e in entries if e.action == action]
        if target_type:
            entries = [e for e in entries if e.target_type == target_type]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def get_events_for_target(self, target_type: str, target_id: str) -> list[AuditEntry]:
        """Every entry for one target, newest first."""
        entries = [
            e for e in self._read_all_entries()
            if e.target_type == target_type and e.target_id == str(target_id)
        ]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries
