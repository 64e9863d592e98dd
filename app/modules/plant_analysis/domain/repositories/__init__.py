"""Repository and provider interfaces for plant analysis."""

from .billing_gateway import BillingGateway
from .providers import CatalogProvider, GenerativeProvider, IdentificationProvider
from .result_store import ResultStore
from .usage_ledger_repository import UsageLedgerRepository

__all__ = [
    "BillingGateway",
    "CatalogProvider",
    "GenerativeProvider",
    "IdentificationProvider",
    "ResultStore",
    "UsageLedgerRepository",
]
