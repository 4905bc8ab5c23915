"""Admin operations on prohibited items, with audit entries."""

from __future__ import annotations

from typing import Any, Optional

from campusguard.auth.models import Profile
from campusguard.auth.permissions import require_moderator
from campusguard.moderation.errors import RuleNotFoundError
from campusguard.moderation.models import ProhibitedItem
from campusguard.moderation.store import ProhibitedItemStore
from campusguard.security.audit_log import AuditLogger


class RuleManager:
    """Create, edit, deactivate and delete moderation rules."""

    def __init__(self, store: ProhibitedItemStore, audit: AuditLogger) -> None:
        self._store = store
        self._audit = audit

    def list_rules(self, actor: Optional[Profile], **filters: Any) -> list[ProhibitedItem]:
        require_moderator(actor)
        return self._store.list_items(**filters)

    def create_rule(self, actor: Optional[Profile], data: dict[str, Any]) -> ProhibitedItem:
        admin = require_moderator(actor)
        item = self._store.create_item(data, created_by=admin.id)
        self._audit.log_action(
            admin.id, "created_prohibited_item", "ProhibitedItem", item.id,
            {"pattern": item.pattern, "severity": item.severity.value},
        )
        return item

    def update_rule(self, actor: Optional[Profile], rule_id: str, updates: dict[str, Any]) -> ProhibitedItem:
        admin = require_moderator(actor)
        item = self._store.update_item(rule_id, updates)
        self._audit.log_action(
            admin.id, "updated_prohibited_item", "ProhibitedItem", item.id, {"updates": updates},
        )
        return item

    def deactivate_rule(self, actor: Optional[Profile], rule_id: str) -> ProhibitedItem:
        return self.update_rule(actor, rule_id, {"is_active": False})

    def delete_rule(self, actor: Optional[Profile], rule_id: str) -> None:
        admin = require_moderator(actor)
        if not self._store.delete_item(rule_id):
            raise RuleNotFoundError(rule_id)
        self._audit.log_action(admin.id, "deleted_prohibited_item", "ProhibitedItem", rule_id)
