# 📄 File: app/modules/plant_analysis/domain/services/usage_ledger.py
# 🧭 Purpose (Layman Explanation):
# Decides whether someone may run another free plant analysis this week. Subscribers always may.
# 🧪 Purpose (Technical Summary):
# Free-tier gate over the UsageLedgerRepository with a subscription bypass through BillingGateway.
# The window opens at the first consumed analysis and elapses exactly window_days later. reserve()
# counts an analysis up front with compare-and-increment so concurrent requests never overshoot.
# 🔗 Dependencies:
# UsageLedgerRepository, BillingGateway, usage models, UsageExhaustedError
# 🔄 Connected Modules / Calls From:
# Pipeline controller, free tier status endpoint

from datetime import datetime, timezone
from typing import Callable, Optional

from app.shared.core.exceptions import UsageExhaustedError
from app.shared.utils.logging import get_logger

from ..models.usage import FreeTierStatus, UsageLedgerEntry, UsageReservation
from ..repositories.billing_gateway import BillingGateway
from ..repositories.usage_ledger_repository import UsageLedgerRepository

logger = get_logger(__name__)

Clock = Callable[[], datetime]


class UsageLedger:
    """Free-tier allowance tracking."""

    def __init__(
        self,
        repository: UsageLedgerRepository,
        billing: BillingGateway,
        allowance: int = 3,
        window_days: int = 7,
        clock: Optional[Clock] = None,
    ):
        if allowance < 0 or window_days <= 0:
            raise ValueError("Allowance must be >= 0 and window_days > 0")
        self.repository = repository
        self.billing = billing
        self.allowance = allowance
        self.window_days = window_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def check_eligibility(self, user_id: str) -> FreeTierStatus:
        """
        Check whether a user may start an analysis.

        Args:
            user_id: Caller identity

        Returns:
            FreeTierStatus; subscribers are always eligible and the ledger is not read
        """
        if await self.billing.is_active(user_id):
            return FreeTierStatus(eligible=True, subscribed=True, allowance=self.allowance)

        entry = await self.repository.get(user_id) or UsageLedgerEntry(user_id=user_id)
        return self._status(entry, self._clock())

    async def reserve(self, user_id: str) -> UsageReservation:
        """
        Claim one free analysis for an analysis about to start.

        The claim is counted immediately and only while the user is below the
        allowance, so simultaneous requests cannot all pass the check. Give it
        back with release() when the analysis does not complete.

        Args:
            user_id: Caller identity

        Returns:
            UsageReservation; subscribers get one that holds no slot

        Raises:
            UsageExhaustedError: Allowance already used up in the current window
        """
        if await self.billing.is_active(user_id):
            return UsageReservation(
                user_id=user_id,
                status=FreeTierStatus(eligible=True, subscribed=True, allowance=self.allowance),
            )

        now = self._clock()
        entry = await self.repository.increment(user_id, now, self.window_days, limit=self.allowance)
        if entry is None:
            current = await self.repository.get(user_id) or UsageLedgerEntry(user_id=user_id)
            status = self._status(current, now)
            logger.info("Free tier exhausted", days_left=status.days_left)
            raise UsageExhaustedError(remaining_uses=status.remaining_uses, days_left=status.days_left)

        status = self._status(entry, now)
        logger.info(
            "Free analysis reserved",
            used_count=entry.used_count,
            remaining_uses=status.remaining_uses,
        )
        return UsageReservation(user_id=user_id, status=status, window_started_at=entry.window_started_at)

    async def release(self, reservation: UsageReservation) -> None:
        """Give back a reserved free analysis that did not complete."""
        if not reservation.holds_slot:
            return
        await self.repository.release(reservation.user_id, reservation.window_started_at)
        logger.info("Free analysis released")

    async def increment(self, user_id: str) -> FreeTierStatus:
        """Count one completed free analysis and return the updated status."""
        now = self._clock()
        entry = await self.repository.increment(user_id, now, self.window_days)
        status = self._status(entry, now)
        logger.info(
            "Free analysis consumed",
            used_count=entry.used_count,
            remaining_uses=status.remaining_uses,
            days_left=status.days_left,
        )
        return status

    def _status(self, entry: UsageLedgerEntry, now: datetime) -> FreeTierStatus:
        used = entry.effective_count(now, self.window_days)
        remaining = max(0, self.allowance - used)
        return FreeTierStatus(
            eligible=remaining > 0,
            remaining_uses=remaining,
            days_left=entry.days_left(now, self.window_days),
            subscribed=False,
            used_count=used,
            allowance=self.allowance,
        )
