# 📄 File: app/modules/plant_analysis/infrastructure/database/billing_gateway_impl.py
# 🧭 Purpose (Layman Explanation):
# Answers "does this person pay for a subscription right now?" so subscribers skip the weekly
# free limit.
#
# 🧪 Purpose (Technical Summary):
# BillingGateway backed by a subscription registry keyed by user id. Activity is decided by the
# Subscription model (plan, status, end date) against an injectable clock.
#
# 🔗 Dependencies:
# - Subscription domain model
#
# 🔄 Connected Modules / Calls From:
# - UsageLedger domain service
# - Presentation dependency container

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional

from ...domain.models.subscription import Subscription
from ...domain.repositories.billing_gateway import BillingGateway


class SubscriptionBillingGateway(BillingGateway):
    """Subscription lookup over an in-process registry."""

    def __init__(
        self,
        subscriptions: Optional[Iterable[Subscription]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._subscriptions: Dict[str, Subscription] = {
            s.user_id: s for s in subscriptions or []
        }
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def upsert(self, subscription: Subscription) -> None:
        """Register or replace a user's subscription."""
        self._subscriptions[subscription.user_id] = subscription

    def remove(self, user_id: str) -> None:
        self._subscriptions.pop(user_id, None)

    async def get_subscription(self, user_id: str) -> Optional[Subscription]:
        return self._subscriptions.get(user_id)

    async def is_active(self, user_id: str) -> bool:
        subscription = self._subscriptions.get(user_id)
        if subscription is None:
            return False
        return subscription.is_active(self._clock())
