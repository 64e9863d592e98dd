"""
Provider quota bookkeeping for the Plant Diagnosis application.
Daily per-caller call budgets and per-provider request spacing, with
in-memory and Redis backends.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import redis.asyncio as redis

from ..config.settings import Settings

# Day keys are kept a little longer than a day so late-timezone callers still resolve.
QUOTA_KEY_TTL_SECONDS = 2 * 86400


@dataclass
class ThrottleConfig:
    """Throttle configuration for one provider quota bucket."""
    provider: str                     # Quota bucket name (plant_id, gemini, ...)
    daily_limit: int                  # Maximum successful calls per caller per day
    min_interval_seconds: float = 0.0 # Minimum spacing between calls in the bucket

    def __post_init__(self):
        """Validate configuration."""
        if self.daily_limit <= 0:
            raise ValueError("Daily limit must be positive")

        if self.min_interval_seconds < 0:
            raise ValueError("Minimum interval cannot be negative")

    @classmethod
    def from_settings(cls, provider: str, settings: Settings) -> "ThrottleConfig":
        """Build the throttle config for a provider from application settings."""
        config = settings.get_provider_config().get(provider)
        if config is None:
            raise ValueError(f"Unknown provider: {provider}")
        return cls(
            provider=provider,
            daily_limit=config["daily_limit"],
            min_interval_seconds=config["min_interval"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "provider": self.provider,
            "daily_limit": self.daily_limit,
            "min_interval_seconds": self.min_interval_seconds,
        }


@dataclass
class QuotaWindow:
    """Quota usage of one caller, for one provider, on one calendar day."""
    provider: str
    caller_id: str
    day: str
    count: int
    limit: int
    last_request: Optional[datetime] = None

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    @property
    def exhausted(self) -> bool:
        return self.count >= self.limit

    def to_dict(self) -> Dict[str, Any]:
        """Convert window to dictionary."""
        return {
            "provider": self.provider,
            "caller_id": self.caller_id,
            "day": self.day,
            "count": self.count,
            "limit": self.limit,
            "remaining": self.remaining,
            "last_request": self.last_request.isoformat() if self.last_request else None,
        }


class QuotaStore(ABC):
    """
    Storage for quota counters and last-request timestamps.

    try_acquire must be atomic: concurrent callers never push a
    counter past its limit and never lose an increment.
    """

    @abstractmethod
    async def try_acquire(self, key: str, limit: int, ttl_seconds: int) -> Optional[int]:
        """Increment the counter if it is below limit; return the new count or None."""

    @abstractmethod
    async def release(self, key: str) -> None:
        """Give back one previously acquired slot."""

    @abstractmethod
    async def get_count(self, key: str) -> int:
        """Current counter value (0 when absent)."""

    @abstractmethod
    async def get_last_request(self, bucket: str) -> Optional[float]:
        """Epoch seconds of the bucket's last request, if any."""

    @abstractmethod
    async def set_last_request(self, bucket: str, timestamp: float) -> None:
        """Record the bucket's last request time."""


class InMemoryQuotaStore(QuotaStore):
    """
    Single-process quota store guarded by an asyncio lock.

    Expired day keys are dropped on every acquire, so the store holds at
    most the keys of the last couple of days.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._counts: Dict[str, Tuple[int, float]] = {}
        self._last_requests: Dict[str, float] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def _live_count(self, key: str) -> int:
        entry = self._counts.get(key)
        if entry is None:
            return 0
        count, expires_at = entry
        if expires_at <= self._clock():
            del self._counts[key]
            return 0
        return count

    def _prune_expired(self) -> None:
        now = self._clock()
        for key in [k for k, (_, expires_at) in self._counts.items() if expires_at <= now]:
            del self._counts[key]

    def __len__(self) -> int:
        return len(self._counts)

    async def try_acquire(self, key: str, limit: int, ttl_seconds: int) -> Optional[int]:
        async with self._lock:
            self._prune_expired()
            current = self._live_count(key)
            if current >= limit:
                return None
            expires_at = self._counts[key][1] if key in self._counts else self._clock() + ttl_seconds
            self._counts[key] = (current + 1, expires_at)
            return current + 1

    async def release(self, key: str) -> None:
        async with self._lock:
            current = self._live_count(key)
            if current > 1:
                self._counts[key] = (current - 1, self._counts[key][1])
            elif current == 1:
                del self._counts[key]

    async def get_count(self, key: str) -> int:
        async with self._lock:
            return self._live_count(key)

    async def get_last_request(self, bucket: str) -> Optional[float]:
        return self._last_requests.get(bucket)

    async def set_last_request(self, bucket: str, timestamp: float) -> None:
        self._last_requests[bucket] = timestamp


class RedisQuotaStore(QuotaStore):
    """
    Redis-backed quota store shared across processes.
    Counter updates run as Lua scripts so check-and-increment is atomic.
    """

    ACQUIRE_SCRIPT = """
    local key = KEYS[1]
    local limit = tonumber(ARGV[1])
    local ttl = tonumber(ARGV[2])

    local current = tonumber(redis.call('GET', key) or '0')
    if current >= limit then
        return -1
    end

    current = redis.call('INCR', key)
    if current == 1 then
        redis.call('EXPIRE', key, ttl)
    end
    return current
    """

    RELEASE_SCRIPT = """
    local key = KEYS[1]
    local current = tonumber(redis.call('GET', key) or '0')
    if current > 0 then
        return redis.call('DECR', key)
    end
    return 0
    """

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    async def try_acquire(self, key: str, limit: int, ttl_seconds: int) -> Optional[int]:
        result = await self.redis.eval(self.ACQUIRE_SCRIPT, 1, key, limit, ttl_seconds)
        result = int(result)
        return None if result < 0 else result

    async def release(self, key: str) -> None:
        await self.redis.eval(self.RELEASE_SCRIPT, 1, key)

    async def get_count(self, key: str) -> int:
        value = await self.redis.get(key)
        return int(value) if value is not None else 0

    async def get_last_request(self, bucket: str) -> Optional[float]:
        value = await self.redis.get(bucket)
        return float(value) if value is not None else None

    async def set_last_request(self, bucket: str, timestamp: float) -> None:
        await self.redis.set(bucket, repr(timestamp), ex=QUOTA_KEY_TTL_SECONDS)
