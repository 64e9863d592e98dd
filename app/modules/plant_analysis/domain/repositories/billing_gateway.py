# 📄 File: app/modules/plant_analysis/domain/repositories/billing_gateway.py
# 🧭 Purpose (Layman Explanation):
# Asks the billing system whether a user currently pays for the app.
# 🧪 Purpose (Technical Summary):
# Abstract subscription status lookup consumed by the usage ledger.
# 🔗 Dependencies:
# - abc (Abstract Base Classes)
# 🔄 Connected Modules / Calls From:
# - UsageLedger service
# - Subscription-backed implementation

from abc import ABC, abstractmethod


class BillingGateway(ABC):
    """Subscription status lookup."""

    @abstractmethod
    async def is_active(self, user_id: str) -> bool:
        """True when the user has an active paid subscription."""
        pass
