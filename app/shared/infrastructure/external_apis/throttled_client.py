# 📄 File: app/shared/infrastructure/external_apis/throttled_client.py

# 🧭 Purpose (Layman Explanation):
# The gatekeeper in front of every paid AI or catalog service. It counts how many calls each
# user made today and makes calls wait their turn so free API plans are never overrun.

# 🧪 Purpose (Technical Summary):
# One throttling wrapper shared by all provider adapters: per-caller daily quota keyed by the
# calendar day string, reserve-then-release accounting on an atomic QuotaStore, and a
# per-bucket minimum interval enforced by suspending the calling task.

# 🔗 Dependencies:
# - app.shared.core.rate_limiter (ThrottleConfig, QuotaStore, QuotaWindow)
# - app.shared.config.redis (StateKeys)

# 🔄 Connected Modules / Calls From:
# Plant.id, Gemini, Perenual and Trefle adapters in plant_analysis.infrastructure.providers

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar
from zoneinfo import ZoneInfo

from app.shared.config.redis import StateKeys
from app.shared.core.exceptions import ProviderQuotaExceededError
from app.shared.core.rate_limiter import (
    QUOTA_KEY_TTL_SECONDS,
    QuotaStore,
    QuotaWindow,
    ThrottleConfig,
)
from app.shared.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ThrottledClient:
    """
    Quota and spacing guard for one provider bucket.

    A single instance is shared by every call site that draws on the same
    provider quota, so the bucket lock and last-request stamp are common to
    all of them.
    """

    def __init__(
        self,
        config: ThrottleConfig,
        store: QuotaStore,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleeper] = None,
        quota_timezone: str = "UTC",
    ):
        self.config = config
        self.store = store
        self._clock = clock or utc_now
        self._sleep = sleep or asyncio.sleep
        self._tz = ZoneInfo(quota_timezone)
        self._bucket_lock = asyncio.Lock()
        self._bucket_key = StateKeys.get_key("quota_last_request", provider=config.provider)

    @property
    def provider(self) -> str:
        return self.config.provider

    def _day(self, now: datetime) -> str:
        return now.astimezone(self._tz).date().isoformat()

    def _quota_key(self, caller_id: str, day: str) -> str:
        return StateKeys.get_key(
            "quota_count", provider=self.config.provider, caller_id=caller_id, day=day
        )

    async def call(self, caller_id: str, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run fn if the caller still has quota today, spacing calls in the bucket.

        Args:
            caller_id: Identity whose daily quota is charged
            fn: Zero-argument coroutine factory performing the network call

        Returns:
            Whatever fn returns

        Raises:
            ProviderQuotaExceededError: Daily limit reached; fn is never awaited
        """
        day = self._day(self._clock())
        key = self._quota_key(caller_id, day)

        count = await self.store.try_acquire(key, self.config.daily_limit, QUOTA_KEY_TTL_SECONDS)
        if count is None:
            logger.warning(
                f"Daily quota exhausted for {self.provider}",
                provider=self.provider,
                caller_id=caller_id,
                day=day,
                limit=self.config.daily_limit,
            )
            raise ProviderQuotaExceededError(
                f"Daily quota of {self.config.daily_limit} reached for {self.provider}",
                provider=self.provider,
                limit=self.config.daily_limit,
            )

        try:
            await self._wait_for_slot()
            result = await fn()
        except (Exception, asyncio.CancelledError):
            # only successful calls consume quota
            await self.store.release(key)
            raise

        logger.debug(
            f"{self.provider} call {count}/{self.config.daily_limit}",
            provider=self.provider,
            caller_id=caller_id,
            day=day,
        )
        return result

    async def _wait_for_slot(self):
        """Suspend the calling task until the bucket's minimum interval has passed."""
        async with self._bucket_lock:
            now_ts = self._clock().timestamp()
            last = await self.store.get_last_request(self._bucket_key)
            if last is not None and self.config.min_interval_seconds > 0:
                wait = self.config.min_interval_seconds - (now_ts - last)
                if wait > 0:
                    logger.debug(
                        f"Spacing {self.provider} call by {wait:.2f}s",
                        provider=self.provider,
                    )
                    await self._sleep(wait)
                    now_ts = self._clock().timestamp()
            await self.store.set_last_request(self._bucket_key, now_ts)

    async def get_usage(self, caller_id: str) -> QuotaWindow:
        """Current day's quota window for a caller."""
        day = self._day(self._clock())
        count = await self.store.get_count(self._quota_key(caller_id, day))
        last = await self.store.get_last_request(self._bucket_key)
        return QuotaWindow(
            provider=self.provider,
            caller_id=caller_id,
            day=day,
            count=count,
            limit=self.config.daily_limit,
            last_request=datetime.fromtimestamp(last, timezone.utc) if last is not None else None,
        )
