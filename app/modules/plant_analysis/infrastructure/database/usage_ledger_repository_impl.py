# 📄 File: app/modules/plant_analysis/infrastructure/database/usage_ledger_repository_impl.py
# 🧭 Purpose (Layman Explanation):
# Where each user's weekly free-analysis counter is actually stored: in the app's memory for a
# single server, or in Redis when several servers must agree on the count.
#
# 🧪 Purpose (Technical Summary):
# UsageLedgerRepository implementations. The in-memory version serialises updates with one
# asyncio lock; the Redis version performs reset-if-elapsed, the limit check and the increment
# in one Lua script so concurrent analyses across processes never lose a count or overshoot
# the allowance.
#
# 🔗 Dependencies:
# - redis.asyncio (shared state backend)
# - app.shared.config.redis (StateKeys)
# - UsageLedgerEntry domain model
#
# 🔄 Connected Modules / Calls From:
# - UsageLedger domain service
# - Presentation dependency container (backend selection)

import asyncio
from datetime import datetime, timezone
from typing import Dict, Optional

import redis.asyncio as redis

from app.shared.config.redis import StateKeys

from ...domain.models.usage import UsageLedgerEntry
from ...domain.repositories.usage_ledger_repository import UsageLedgerRepository

NO_LIMIT = -1


class InMemoryUsageLedgerRepository(UsageLedgerRepository):
    """Process-local ledger for development, tests and single-instance deployments."""

    def __init__(self):
        self._entries: Dict[str, UsageLedgerEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: str) -> Optional[UsageLedgerEntry]:
        return self._entries.get(user_id)

    async def increment(
        self,
        user_id: str,
        now: datetime,
        window_days: int,
        limit: Optional[int] = None,
    ) -> Optional[UsageLedgerEntry]:
        async with self._lock:
            entry = self._entries.get(user_id) or UsageLedgerEntry(user_id=user_id)
            if limit is not None and entry.effective_count(now, window_days) >= limit:
                return None
            updated = entry.consumed(now, window_days)
            self._entries[user_id] = updated
            return updated

    async def release(self, user_id: str, window_started_at: datetime) -> None:
        async with self._lock:
            entry = self._entries.get(user_id)
            if entry is None or entry.window_started_at != window_started_at:
                return
            if entry.used_count <= 1:
                del self._entries[user_id]
                return
            self._entries[user_id] = entry.model_copy(update={"used_count": entry.used_count - 1})

    async def reset(self, user_id: str) -> None:
        async with self._lock:
            self._entries.pop(user_id, None)


class RedisUsageLedgerRepository(UsageLedgerRepository):
    """Ledger stored as a Redis hash {used_count, window_started_at} per user."""

    # KEYS[1] ledger key; ARGV now (epoch seconds), window length (seconds), limit (-1 for none)
    INCREMENT_SCRIPT = """
    local now = tonumber(ARGV[1])
    local window = tonumber(ARGV[2])
    local limit = tonumber(ARGV[3])
    local started = tonumber(redis.call('HGET', KEYS[1], 'window_started_at'))
    local fresh = (not started) or now >= started + window

    local count = 0
    if not fresh then
        count = tonumber(redis.call('HGET', KEYS[1], 'used_count')) or 0
    end
    if limit >= 0 and count >= limit then
        return {-1, ''}
    end

    if fresh then
        redis.call('HSET', KEYS[1], 'used_count', 1, 'window_started_at', ARGV[1])
        redis.call('EXPIRE', KEYS[1], math.ceil(window) * 2)
        return {1, ARGV[1]}
    end
    count = redis.call('HINCRBY', KEYS[1], 'used_count', 1)
    return {count, redis.call('HGET', KEYS[1], 'window_started_at')}
    """

    # KEYS[1] ledger key; ARGV window start (epoch seconds) the analysis was counted in
    RELEASE_SCRIPT = """
    local started = redis.call('HGET', KEYS[1], 'window_started_at')
    if (not started) or math.abs(tonumber(started) - tonumber(ARGV[1])) > 0.001 then
        return 0
    end
    local count = redis.call('HINCRBY', KEYS[1], 'used_count', -1)
    if count <= 0 then
        redis.call('DEL', KEYS[1])
    end
    return 1
    """

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    @staticmethod
    def _key(user_id: str) -> str:
        return StateKeys.get_key("usage_ledger", user_id=user_id)

    async def get(self, user_id: str) -> Optional[UsageLedgerEntry]:
        raw = await self.redis.hgetall(self._key(user_id))
        if not raw:
            return None
        started = raw.get("window_started_at")
        return UsageLedgerEntry(
            user_id=user_id,
            used_count=int(raw.get("used_count", 0)),
            window_started_at=(
                datetime.fromtimestamp(float(started), timezone.utc) if started else None
            ),
        )

    async def increment(
        self,
        user_id: str,
        now: datetime,
        window_days: int,
        limit: Optional[int] = None,
    ) -> Optional[UsageLedgerEntry]:
        count, started = await self.redis.eval(
            self.INCREMENT_SCRIPT,
            1,
            self._key(user_id),
            repr(now.timestamp()),
            window_days * 86400,
            NO_LIMIT if limit is None else limit,
        )
        if int(count) < 0:
            return None
        return UsageLedgerEntry(
            user_id=user_id,
            used_count=int(count),
            window_started_at=datetime.fromtimestamp(float(started), timezone.utc),
        )

    async def release(self, user_id: str, window_started_at: datetime) -> None:
        await self.redis.eval(
            self.RELEASE_SCRIPT,
            1,
            self._key(user_id),
            repr(window_started_at.timestamp()),
        )

    async def reset(self, user_id: str) -> None:
        await self.redis.delete(self._key(user_id))
