# 📄 File: app/modules/plant_analysis/domain/services/catalog_enricher.py
# 🧭 Purpose (Layman Explanation):
# Looks a plant up in plant encyclopedias. If the first one is down it asks the second, and if
# both are down it hands back a basic record so the user still gets a diagnosis.
# 🧪 Purpose (Technical Summary):
# Cache-first catalog lookup over an ordered list of CatalogProvider implementations with
# local recovery of every provider failure. Placeholder records are never cached.
# 🔗 Dependencies:
# ResponseCache, CatalogProvider port, StateKeys, shared exceptions
# 🔄 Connected Modules / Calls From:
# Pipeline controller

import re
from typing import List, Optional, Sequence

from pydantic import ValidationError

from app.shared.config.redis import StateKeys
from app.shared.core.exceptions import ProviderError
from app.shared.infrastructure.cache.cache_manager import ResponseCache
from app.shared.utils.logging import get_logger, log_stage

from ..models.catalog import CatalogRecord
from ..repositories.providers import CatalogProvider

logger = get_logger(__name__)

CATALOG_TTL_SECONDS = 24 * 60 * 60
SYSTEM_CALLER = "system"


def normalize_name(scientific_name: str) -> str:
    """Lowercase and collapse whitespace: '  Rosa   Rubiginosa ' -> 'rosa rubiginosa'."""
    return re.sub(r"\s+", " ", scientific_name or "").strip().lower()


def catalog_cache_key(scientific_name: str) -> str:
    return StateKeys.get_key("catalog", name=normalize_name(scientific_name).replace(" ", "_"))


class CatalogEnricher:
    """
    Catalog lookup with provider fallback.

    lookup() never raises: provider failures of any kind and cache outages are
    logged and recovered, so callers always get a record.
    """

    def __init__(
        self,
        providers: Sequence[CatalogProvider],
        cache: ResponseCache,
        ttl_seconds: int = CATALOG_TTL_SECONDS,
    ):
        self.providers: List[CatalogProvider] = list(providers)
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @log_stage("catalog_enrichment")
    async def lookup(self, scientific_name: str, caller_id: str = SYSTEM_CALLER) -> CatalogRecord:
        """
        Get catalog metadata for a species.

        Args:
            scientific_name: Name as identified
            caller_id: Identity charged for provider calls

        Returns:
            CatalogRecord from cache, a provider, or a placeholder (source="basic")
        """
        name = normalize_name(scientific_name)
        key = catalog_cache_key(name)

        cached = await self._read_cache(key)
        if cached is not None:
            logger.debug("Catalog cache hit", species=name, source=cached.source)
            return cached

        failures: List[str] = []
        for provider in self.providers:
            try:
                record = await provider.fetch(name, caller_id)
            except ProviderError as e:
                failures.append(provider.name)
                logger.warning(
                    f"Catalog provider {provider.name} failed, trying next",
                    provider=provider.name,
                    error_code=e.error_code,
                    species=name,
                )
                continue
            except Exception as e:
                failures.append(provider.name)
                logger.error(
                    f"Catalog provider {provider.name} raised {type(e).__name__}, trying next",
                    exc_info=True,
                    provider=provider.name,
                    species=name,
                )
                continue

            await self._write_cache(key, record)
            logger.info("Catalog record fetched", provider=provider.name, species=name)
            return record

        logger.warning(
            "All catalog providers failed, using placeholder record",
            species=name,
            failed_providers=failures,
        )
        return CatalogRecord.placeholder(scientific_name)

    async def _read_cache(self, key: str) -> Optional[CatalogRecord]:
        try:
            payload = await self.cache.get(key)
        except Exception as e:
            logger.warning("Catalog cache unavailable, skipping read", cache_key=key, error_type=type(e).__name__)
            return None
        if payload is None:
            return None
        try:
            return CatalogRecord.from_cache_payload(payload)
        except ValidationError:
            logger.warning("Discarding unreadable catalog cache entry", cache_key=key)
            await self.cache.delete(key)
            return None

    async def _write_cache(self, key: str, record: CatalogRecord) -> None:
        if record.is_placeholder:
            return
        try:
            await self.cache.set(key, record.to_cache_payload(), self.ttl_seconds)
        except Exception as e:
            logger.warning("Catalog cache unavailable, record not cached", cache_key=key, error_type=type(e).__name__)
