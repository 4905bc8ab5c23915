"""Fixed-window request rate limiting on top of the ``limits`` library.

One :class:`RateLimiter` is built when the app starts and handed to the
routers.  Counters live in a ``limits`` storage: in memory by default, or
any backend named by a storage URI (``redis://...``, ``memcached://...``).
The storage expires finished windows itself.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Optional, Union

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter

from campusguard.moderation.errors import RateLimitExceeded


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: int

    @property
    def item(self) -> RateLimitItem:
        return RateLimitItemPerSecond(self.max_requests, self.window_seconds)


STRICT = RateLimitConfig(max_requests=5, window_seconds=60)
MODERATE = RateLimitConfig(max_requests=20, window_seconds=60)
LENIENT = RateLimitConfig(max_requests=60, window_seconds=60)
UPLOAD = RateLimitConfig(max_requests=10, window_seconds=60)
AUTH = RateLimitConfig(max_requests=5, window_seconds=300)


class RateLimiter:
    """Counts requests per identifier inside fixed windows.

    Parameters
    ----------
    storage : limits Storage | str | None
        A storage instance, a ``limits`` storage URI, or ``None`` for a
        fresh in-memory storage.
    """

    def __init__(self, storage: Union[Storage, str, None] = None) -> None:
        if storage is None:
            storage = MemoryStorage()
        elif isinstance(storage, str):
            storage = storage_from_string(storage)
        self._storage = storage
        self._strategy = FixedWindowRateLimiter(storage)

    def check(self, identifier: str, config: RateLimitConfig = MODERATE) -> int:
        """Count one request for *identifier*.

        Returns the number of requests left in the current window, or
        raises :class:`RateLimitExceeded` once the window is used up.
        """
        item = config.item
        if not self._strategy.hit(item, identifier):
            stats = self._strategy.get_window_stats(item, identifier)
            retry_after = max(1, math.ceil(stats.reset_time - time.time()))
            raise RateLimitExceeded(retry_after=retry_after, limit=config.max_requests)
        return self._strategy.get_window_stats(item, identifier).remaining

    def __len__(self) -> int:
        # Only the in-memory storage exposes its live keys.
        return len(getattr(self._storage, "expirations", ()))


def identifier_for(prefix: str, user_id: Optional[str] = None, ip: Optional[str] = None) -> str:
    """Key requests by user when signed in, by client address otherwise."""
    if user_id:
        return f"{prefix}:user:{user_id}"
    return f"{prefix}:ip:{ip or 'unknown'}"
