"""Access to the content being moderated.

The moderation core only needs to know whether a piece of content exists,
who owns it, what to call it in a notification, and how to delete it.
:class:`ContentDirectory` is that interface; :class:`JsonContentStore` is a
file-backed implementation used by the CLI, the web app and tests.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Protocol

from campusguard.moderation.errors import PersistenceError
from campusguard.moderation.models import ContentType

# Field that names the owner of each content type.  Profiles own themselves.
OWNER_FIELDS = {
    ContentType.listing: "seller_id",
    ContentType.message: "sender_id",
    ContentType.event: "organizer_id",
    ContentType.profile: "id",
}

_DEFAULT_TITLES = {
    ContentType.listing: "Your listing",
    ContentType.message: "Your message",
    ContentType.event: "Your event",
    ContentType.profile: "Your profile",
}


class ContentDirectory(Protocol):
    def exists(self, content_type: ContentType, content_id: str) -> bool: ...

    def owner_of(self, content_type: ContentType, content_id: str) -> Optional[str]: ...

    def title_of(self, content_type: ContentType, content_id: str) -> str: ...

    def delete(self, content_type: ContentType, content_id: str) -> None: ...


class JsonContentStore:
    """File-based content rows, one JSON list per content type.

    Storage path: ``~/.campusguard/content/`` with ``listing.json``,
    ``message.json``, ``event.json`` and ``profile.json``.
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".campusguard" / "content"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    def _path(self, content_type: ContentType | str) -> Path:
        return self._base / f"{ContentType(content_type).value}.json"

    def _read(self, content_type: ContentType | str) -> list[dict]:
        path = self._path(content_type)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text())
            return data if isinstance(data, list) else []
        except (json.JSONDecodeError, OSError):
            return []

    def _write(self, content_type: ContentType | str, rows: list[dict]) -> None:
        try:
            self._path(content_type).write_text(json.dumps(rows, indent=2, default=str))
        except OSError as exc:
            raise PersistenceError(f"Failed to write {ContentType(content_type).value} rows: {exc}") from exc

    def _find(self, content_type: ContentType | str, content_id: str) -> Optional[dict]:
        for row in self._read(content_type):
            if str(row.get("id")) == str(content_id):
                return row
        return None

    def add(self, content_type: ContentType | str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a content row. ``row`` must carry an ``id``."""
        rows = self._read(content_type)
        rows.append(row)
        self._write(content_type, rows)
        return row

    def exists(self, content_type: ContentType | str, content_id: str) -> bool:
        return self._find(content_type, content_id) is not None

    def owner_of(self, content_type: ContentType | str, content_id: str) -> Optional[str]:
        row = self._find(content_type, content_id)
        if row is None:
            return None
        owner = row.get(OWNER_FIELDS[ContentType(content_type)])
        return str(owner) if owner is not None else None

    def title_of(self, content_type: ContentType | str, content_id: str) -> str:
        ct = ContentType(content_type)
        row = self._find(ct, content_id)
        if row and ct in (ContentType.listing, ContentType.event) and row.get("title"):
            return row["title"]
        return _DEFAULT_TITLES[ct]

    def delete(self, content_type: ContentType | str, content_id: str) -> None:
        """Remove a row. Deleting a missing row is not an error."""
        rows = self._read(content_type)
        remaining = [r for r in rows if str(r.get("id")) != str(content_id)]
        if len(remaining) < len(rows):
            self._write(content_type, remaining)
