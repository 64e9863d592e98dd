# 📄 File: app/modules/plant_analysis/domain/models/usage.py
# 🧭 Purpose (Layman Explanation):
# Keeps count of how many free plant analyses someone has used this week and tells them how
# many are left and when the count starts over.
# 🧪 Purpose (Technical Summary):
# UsageLedgerEntry with the fixed-window reset rule (window elapses exactly at
# window_started_at + window_days), the FreeTierStatus returned to callers and the
# UsageReservation held by an in-flight analysis.
# 🔗 Dependencies:
# pydantic, datetime, math
# 🔄 Connected Modules / Calls From:
# Usage ledger service, ledger repositories, pipeline controller, free tier endpoint

import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class UsageLedgerEntry(BaseModel):
    """Free-tier consumption of one user within the current window."""

    user_id: str
    used_count: int = Field(default=0, ge=0)
    window_started_at: Optional[datetime] = None

    def window_ends_at(self, window_days: int) -> Optional[datetime]:
        if self.window_started_at is None:
            return None
        return self.window_started_at + timedelta(days=window_days)

    def is_window_elapsed(self, now: datetime, window_days: int) -> bool:
        """True at or after the window edge, or when no window was ever opened."""
        ends_at = self.window_ends_at(window_days)
        return ends_at is None or now >= ends_at

    def effective_count(self, now: datetime, window_days: int) -> int:
        """Count as seen at `now`: an elapsed window counts as zero."""
        return 0 if self.is_window_elapsed(now, window_days) else self.used_count

    def days_left(self, now: datetime, window_days: int) -> int:
        """Whole days until the window resets, rounded up; the full window when none is open."""
        if self.is_window_elapsed(now, window_days):
            return window_days
        remaining = (self.window_ends_at(window_days) - now).total_seconds()
        return max(0, math.ceil(remaining / 86400))

    def consumed(self, now: datetime, window_days: int) -> "UsageLedgerEntry":
        """The entry after one more analysis; restarts the window when it has elapsed."""
        if self.is_window_elapsed(now, window_days):
            return UsageLedgerEntry(user_id=self.user_id, used_count=1, window_started_at=now)
        return UsageLedgerEntry(
            user_id=self.user_id,
            used_count=self.used_count + 1,
            window_started_at=self.window_started_at,
        )


class FreeTierStatus(BaseModel):
    """Eligibility snapshot for one user."""

    eligible: bool
    remaining_uses: int = 0
    days_left: int = 0
    subscribed: bool = False
    used_count: int = 0
    allowance: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class UsageReservation(BaseModel):
    """
    A free-tier slot held by one in-flight analysis.

    The slot is already counted in the ledger and is given back when the
    analysis does not complete. Subscribers hold no slot.
    """

    user_id: str
    status: FreeTierStatus
    window_started_at: Optional[datetime] = None

    @property
    def holds_slot(self) -> bool:
        return not self.status.subscribed and self.window_started_at is not None
