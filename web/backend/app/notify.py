"""Owner notifications sent after the response, via ``BackgroundTasks``."""

from __future__ import annotations

from typing import Any

from fastapi import BackgroundTasks

from campusguard.notify.email import Notifier


class BackgroundNotifier:
    """Queues each notification on the request's background tasks.

    The wrapped notifier runs once the response has gone out, so a slow
    mail provider never holds up the moderation decision.
    """

    def __init__(self, tasks: BackgroundTasks, notifier: Notifier) -> None:
        self._tasks = tasks
        self._notifier = notifier

    def notify(self, user_id: str, template: str, payload: dict[str, Any]) -> bool:
        self._tasks.add_task(self._notifier.notify, user_id, template, payload)
        return True
