"""Tests for per-caller daily quotas and call spacing."""

import asyncio
from datetime import datetime, timezone

import pytest

from app.shared.core.exceptions import ProviderQuotaExceededError, ProviderUnavailableError
from app.shared.core.rate_limiter import InMemoryQuotaStore, ThrottleConfig
from app.shared.infrastructure.external_apis.throttled_client import ThrottledClient

from conftest import FakeClock


def make_throttle(clock: FakeClock, daily_limit: int = 3, min_interval: float = 0.0, store=None):
    return ThrottledClient(
        ThrottleConfig(provider="plant_id", daily_limit=daily_limit, min_interval_seconds=min_interval),
        store or InMemoryQuotaStore(),
        clock=clock,
        sleep=clock.sleep,
    )


class Counter:
    def __init__(self, error: Exception = None):
        self.calls = 0
        self.error = error

    async def __call__(self):
        self.calls += 1
        if self.error:
            raise self.error
        return {"ok": self.calls}


async def test_calls_within_quota_succeed(clock):
    throttle = make_throttle(clock, daily_limit=2)
    fn = Counter()

    assert await throttle.call("user-1", fn) == {"ok": 1}
    assert await throttle.call("user-1", fn) == {"ok": 2}

    usage = await throttle.get_usage("user-1")
    assert usage.count == 2
    assert usage.exhausted


async def test_quota_exhausted_never_awaits_call(clock):
    throttle = make_throttle(clock, daily_limit=1)
    fn = Counter()
    await throttle.call("user-1", fn)

    with pytest.raises(ProviderQuotaExceededError) as exc_info:
        await throttle.call("user-1", fn)

    assert fn.calls == 1
    assert exc_info.value.provider == "plant_id"
    assert exc_info.value.limit == 1


async def test_quota_is_per_caller(clock):
    throttle = make_throttle(clock, daily_limit=1)
    await throttle.call("user-1", Counter())

    assert await throttle.call("user-2", Counter()) == {"ok": 1}


async def test_failed_call_does_not_consume_quota(clock):
    throttle = make_throttle(clock, daily_limit=1)

    with pytest.raises(ProviderUnavailableError):
        await throttle.call("user-1", Counter(ProviderUnavailableError(provider="plant_id")))

    assert (await throttle.get_usage("user-1")).count == 0
    assert await throttle.call("user-1", Counter()) == {"ok": 1}


async def test_quota_resets_on_next_calendar_day(clock):
    throttle = make_throttle(clock, daily_limit=1)
    await throttle.call("user-1", Counter())

    clock.advance(days=1)

    assert await throttle.call("user-1", Counter()) == {"ok": 1}


async def test_quota_day_follows_configured_timezone():
    # 23:30 UTC on May 1st is already May 2nd in Tokyo
    clock = FakeClock(datetime(2024, 5, 1, 23, 30, tzinfo=timezone.utc))
    throttle = ThrottledClient(
        ThrottleConfig(provider="gemini", daily_limit=1),
        InMemoryQuotaStore(),
        clock=clock,
        sleep=clock.sleep,
        quota_timezone="Asia/Tokyo",
    )

    usage = await throttle.get_usage("user-1")
    assert usage.day == "2024-05-02"


async def test_concurrent_calls_never_exceed_limit(clock):
    throttle = make_throttle(clock, daily_limit=3)
    fn = Counter()

    results = await asyncio.gather(
        *[throttle.call("user-1", fn) for _ in range(6)],
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, ProviderQuotaExceededError)]
    assert fn.calls == 3
    assert len(failures) == 3


async def test_calls_are_spaced_by_min_interval(clock):
    throttle = make_throttle(clock, daily_limit=10, min_interval=2.0)

    await throttle.call("user-1", Counter())
    assert clock.sleeps == []

    clock.advance(seconds=0.5)
    await throttle.call("user-2", Counter())

    assert clock.sleeps == [pytest.approx(1.5)]


async def test_no_wait_once_interval_has_passed(clock):
    throttle = make_throttle(clock, daily_limit=10, min_interval=1.0)

    await throttle.call("user-1", Counter())
    clock.advance(seconds=5)
    await throttle.call("user-1", Counter())

    assert clock.sleeps == []


def test_throttle_config_rejects_invalid_values():
    with pytest.raises(ValueError):
        ThrottleConfig(provider="plant_id", daily_limit=0)
    with pytest.raises(ValueError):
        ThrottleConfig(provider="plant_id", daily_limit=1, min_interval_seconds=-1)


async def test_memory_store_drops_expired_day_keys(clock):
    store = InMemoryQuotaStore(clock=lambda: clock().timestamp())
    for day in range(5):
        await store.try_acquire(f"quota:plant_id:user-1:2024-05-0{day + 1}", limit=3, ttl_seconds=86400)
        clock.advance(days=1)

    await store.try_acquire("quota:plant_id:user-1:2024-05-06", limit=3, ttl_seconds=86400)

    assert len(store) == 1
    assert await store.get_count("quota:plant_id:user-1:2024-05-06") == 1


async def test_memory_store_release_of_last_use_forgets_key():
    store = InMemoryQuotaStore()
    await store.try_acquire("quota:gemini:user-1:2024-05-01", limit=3, ttl_seconds=86400)

    await store.release("quota:gemini:user-1:2024-05-01")

    assert len(store) == 0
