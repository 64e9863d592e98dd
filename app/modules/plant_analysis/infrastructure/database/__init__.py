# 📄 File: app/modules/plant_analysis/infrastructure/database/__init__.py
# 🧭 Purpose (Layman Explanation):
# Where plant analysis data is kept: free-use counters, finished diagnoses and subscription status.
# 🧪 Purpose (Technical Summary):
# Concrete repository implementations for the plant_analysis domain ports.
# 🔗 Dependencies:
# redis.asyncio, domain repositories
# 🔄 Connected Modules / Calls From:
# Presentation dependency container

from .billing_gateway_impl import SubscriptionBillingGateway
from .result_store_impl import InMemoryResultStore
from .usage_ledger_repository_impl import InMemoryUsageLedgerRepository, RedisUsageLedgerRepository

__all__ = [
    "InMemoryResultStore",
    "InMemoryUsageLedgerRepository",
    "RedisUsageLedgerRepository",
    "SubscriptionBillingGateway",
]
