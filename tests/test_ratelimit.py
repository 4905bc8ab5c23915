"""Tests for the fixed-window rate limiter."""

import time

import pytest
from limits.storage import MemoryStorage

from campusguard.moderation.errors import RateLimitExceeded
from campusguard.ratelimit import AUTH, STRICT, RateLimitConfig, RateLimiter, identifier_for


class FrozenTime:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def frozen_time(monkeypatch):
    clock = FrozenTime(1000.0)
    monkeypatch.setattr(time, "time", clock)
    return clock


def test_allows_up_to_limit_then_raises(frozen_time):
    limiter = RateLimiter()
    remaining = [limiter.check("k", STRICT) for _ in range(5)]
    assert remaining == [4, 3, 2, 1, 0]

    frozen_time.now += 20.2
    with pytest.raises(RateLimitExceeded) as exc_info:
        limiter.check("k", STRICT)
    assert exc_info.value.retry_after == 40
    assert exc_info.value.limit == 5
    assert exc_info.value.status_code == 429


def test_window_resets(frozen_time):
    limiter = RateLimiter()
    config = RateLimitConfig(max_requests=1, window_seconds=10)
    limiter.check("k", config)
    with pytest.raises(RateLimitExceeded):
        limiter.check("k", config)

    frozen_time.now += 10.5
    assert limiter.check("k", config) == 0


def test_identifiers_and_tiers_are_independent(frozen_time):
    limiter = RateLimiter()
    config = RateLimitConfig(max_requests=1, window_seconds=60)
    limiter.check("a", config)
    limiter.check("b", config)
    with pytest.raises(RateLimitExceeded):
        limiter.check("a", config)
    assert limiter.check("a", AUTH) == 4


def test_expired_windows_are_dropped_during_traffic(frozen_time):
    limiter = RateLimiter()
    for i in range(300):
        limiter.check(f"ip:10.0.{i // 256}.{i % 256}", STRICT)
    assert len(limiter) == 300

    frozen_time.now += 61
    steady = RateLimitConfig(max_requests=10_000, window_seconds=60)
    # The storage sweeps expired keys shortly after each hit.
    for _ in range(200):
        limiter.check("ip:steady", steady)
        if len(limiter) == 1:
            break
        time.sleep(0.01)
    assert len(limiter) == 1


def test_accepts_storage_instance_or_uri(frozen_time):
    storage = MemoryStorage()
    limiter = RateLimiter(storage)
    limiter.check("k", STRICT)
    assert len(limiter) == 1

    assert RateLimiter("memory://").check("k", STRICT) == 4


def test_identifier_for():
    assert identifier_for("reports:create", "u1", "10.0.0.1") == "reports:create:user:u1"
    assert identifier_for("reports:create", None, "10.0.0.1") == "reports:create:ip:10.0.0.1"
    assert identifier_for("reports:create") == "reports:create:ip:unknown"
