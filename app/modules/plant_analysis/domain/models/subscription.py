# 📄 File: app/modules/plant_analysis/domain/models/subscription.py
# 🧭 Purpose (Layman Explanation):
# Says whether a user pays for the app. Paying users skip the free-analysis counter entirely.
# 🧪 Purpose (Technical Summary):
# Read-only view of a user's subscription as reported by the billing collaborator, with the
# activity rule used by the subscription-backed BillingGateway.
# 🔗 Dependencies:
# pydantic, datetime, enum
# 🔄 Connected Modules / Calls From:
# BillingGateway implementation, usage ledger service

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class SubscriptionStatus(str, Enum):
    """Subscription status enumeration"""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    TRIAL = "trial"


class PlanType(str, Enum):
    """Plan type enumeration"""
    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"


class Subscription(BaseModel):
    """A user's plan and the period it covers."""

    model_config = ConfigDict(use_enum_values=True)

    user_id: str
    plan_type: PlanType = PlanType.FREE
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the subscription grants paid access.

        A cancelled plan keeps access until its end date.

        Returns:
            True for a paid plan that is active or cancelled but not yet ended
        """
        if self.plan_type == PlanType.FREE:
            return False
        if self.status == SubscriptionStatus.EXPIRED:
            return False
        if self.end_date is None:
            return self.status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL)
        now = now or datetime.now(timezone.utc)
        return now < self.end_date
