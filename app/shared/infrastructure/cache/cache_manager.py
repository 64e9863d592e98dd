# 📄 File: app/shared/infrastructure/cache/cache_manager.py

# 🧭 Purpose (Layman Explanation):
# Remembers answers from slow plant catalog services for a day, so asking about the same
# plant twice does not cost a second paid lookup.

# 🧪 Purpose (Technical Summary):
# Key/value response cache with explicit per-entry expiry. Reads past expiry are misses and
# drop the entry. Pluggable backends: in-process dict or Redis (native key TTL).

# 🔗 Dependencies:
# - redis (asyncio client) for the shared backend
# - json for payload serialisation

# 🔄 Connected Modules / Calls From:
# plant_analysis catalog enricher, application wiring in presentation/dependencies.py

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import redis.asyncio as redis

from app.shared.utils.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheItem:
    """A cached payload and the instant it stops being servable."""
    key: str
    payload: Dict[str, Any]
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def to_json(self) -> str:
        return json.dumps({
            "key": self.key,
            "payload": self.payload,
            "expires_at": self.expires_at.isoformat(),
        })

    @classmethod
    def from_json(cls, raw: str) -> "CacheItem":
        data = json.loads(raw)
        return cls(
            key=data["key"],
            payload=data["payload"],
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )


class CacheBackend(ABC):
    """Raw storage for cache items."""

    @abstractmethod
    async def read(self, key: str) -> Optional[CacheItem]:
        pass

    @abstractmethod
    async def write(self, item: CacheItem, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    async def remove(self, key: str) -> bool:
        pass

    @abstractmethod
    async def remove_expired(self, now: datetime) -> int:
        pass


class InMemoryCacheBackend(CacheBackend):
    """Process-local backend. Dict writes are atomic per key under asyncio."""

    def __init__(self):
        self._items: Dict[str, CacheItem] = {}

    async def read(self, key: str) -> Optional[CacheItem]:
        return self._items.get(key)

    async def write(self, item: CacheItem, ttl_seconds: int) -> None:
        self._items[item.key] = item

    async def remove(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    async def remove_expired(self, now: datetime) -> int:
        expired = [key for key, item in self._items.items() if item.is_expired(now)]
        for key in expired:
            del self._items[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._items)


class RedisCacheBackend(CacheBackend):
    """Shared backend; Redis expires keys on its own, expires_at is still checked on read."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    async def read(self, key: str) -> Optional[CacheItem]:
        raw = await self.redis.get(key)
        if raw is None:
            return None
        return CacheItem.from_json(raw)

    async def write(self, item: CacheItem, ttl_seconds: int) -> None:
        await self.redis.set(item.key, item.to_json(), ex=max(1, int(ttl_seconds)))

    async def remove(self, key: str) -> bool:
        return bool(await self.redis.delete(key))

    async def remove_expired(self, now: datetime) -> int:
        return 0


class ResponseCache:
    """
    TTL cache for provider responses.

    get() returns None both for absent and for expired keys; an expired
    entry is dropped on read so the next set() replaces it.
    """

    def __init__(self, backend: Optional[CacheBackend] = None, clock: Optional[Clock] = None):
        self.backend = backend or InMemoryCacheBackend()
        self._clock = clock or _utc_now
        self.stats = {"hits": 0, "misses": 0, "sets": 0}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Get a cached payload, or None on miss."""
        item = await self.backend.read(key)
        if item is None:
            self.stats["misses"] += 1
            logger.log_cache_operation("get", key, hit=False)
            return None

        if item.is_expired(self._clock()):
            await self.backend.remove(key)
            self.stats["misses"] += 1
            logger.log_cache_operation("get", key, hit=False)
            return None

        self.stats["hits"] += 1
        logger.log_cache_operation("get", key, hit=True)
        return item.payload

    async def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        """Store a payload for ttl seconds. Last write wins."""
        if ttl <= 0:
            raise ValueError("Cache TTL must be positive")
        item = CacheItem(
            key=key,
            payload=value,
            expires_at=self._clock() + timedelta(seconds=ttl),
        )
        await self.backend.write(item, ttl)
        self.stats["sets"] += 1
        logger.log_cache_operation("set", key)

    async def delete(self, key: str) -> bool:
        """Remove a key; True when something was removed."""
        removed = await self.backend.remove(key)
        logger.log_cache_operation("delete", key)
        return removed

    async def clear_expired(self) -> int:
        """Drop every expired entry the backend tracks."""
        removed = await self.backend.remove_expired(self._clock())
        if removed:
            logger.debug(f"Cleared {removed} expired cache entries")
        return removed

    def get_stats(self) -> Dict[str, Any]:
        total = self.stats["hits"] + self.stats["misses"]
        return {
            **self.stats,
            "hit_rate": (self.stats["hits"] / total * 100) if total else 0.0,
        }
