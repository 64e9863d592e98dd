# 📄 File: app/modules/plant_analysis/domain/repositories/usage_ledger_repository.py
# 🧭 Purpose (Layman Explanation):
# Defines how the app reads and updates each user's free-analysis counter.
# 🧪 Purpose (Technical Summary):
# Abstract repository for usage ledger entries. increment() is a single atomic step that
# restarts an elapsed window and counts the new analysis together, optionally only while the
# count is below a limit (compare-and-increment); release() gives a counted analysis back.
# 🔗 Dependencies:
# - abc (Abstract Base Classes)
# - UsageLedgerEntry domain model
# 🔄 Connected Modules / Calls From:
# - UsageLedger service (business logic)
# - In-memory and Redis implementations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from app.modules.plant_analysis.domain.models.usage import UsageLedgerEntry


class UsageLedgerRepository(ABC):
    """
    Abstract repository interface for free-tier usage data.

    Implementations must not lose increments when the same user runs
    several analyses at once, and must never pair a stale count with a
    fresh window start.
    """

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UsageLedgerEntry]:
        """Get the stored entry, or None for a user who never consumed an analysis."""
        pass

    @abstractmethod
    async def increment(
        self,
        user_id: str,
        now: datetime,
        window_days: int,
        limit: Optional[int] = None,
    ) -> Optional[UsageLedgerEntry]:
        """
        Atomically reset-if-elapsed and count one analysis.

        Args:
            user_id: Caller identity
            now: Current time
            window_days: Window length
            limit: When given, count only while the current count is below it

        Returns:
            The updated entry, or None when limit was already reached
        """
        pass

    @abstractmethod
    async def release(self, user_id: str, window_started_at: datetime) -> None:
        """Give back one counted analysis, unless the window it was counted in has since restarted."""
        pass

    @abstractmethod
    async def reset(self, user_id: str) -> None:
        """Forget a user's usage."""
        pass
