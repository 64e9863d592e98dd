"""Tests for catalog lookup with caching and provider fallback."""

import pytest

from app.modules.plant_analysis.domain.services.catalog_enricher import (
    CatalogEnricher,
    catalog_cache_key,
    normalize_name,
)
from app.modules.plant_analysis.infrastructure.providers import PerenualCatalogProvider
from app.shared.core.exceptions import (
    MalformedProviderResponseError,
    ProviderQuotaExceededError,
    ProviderUnavailableError,
)
from app.shared.core.rate_limiter import InMemoryQuotaStore, ThrottleConfig
from app.shared.infrastructure.cache import ResponseCache
from app.shared.infrastructure.external_apis.throttled_client import ThrottledClient

from conftest import FakeAPIClient, FakeCatalogProvider


@pytest.fixture
def cache(clock):
    return ResponseCache(clock=clock)


def test_normalize_name_collapses_case_and_whitespace():
    assert normalize_name("  Rosa   Rubiginosa ") == "rosa rubiginosa"
    assert catalog_cache_key("Rosa rubiginosa") == "plant_catalog:rosa_rubiginosa"


async def test_primary_provider_answers_and_result_is_cached(cache):
    primary = FakeCatalogProvider("perenual")
    fallback = FakeCatalogProvider("trefle")
    enricher = CatalogEnricher([primary, fallback], cache)

    first = await enricher.lookup("Monstera deliciosa", "user-1")
    second = await enricher.lookup("Monstera deliciosa", "user-1")

    assert first.source == "perenual"
    assert second == first
    assert primary.lookups == ["monstera deliciosa"]
    assert fallback.lookups == []


async def test_differently_written_names_share_cache_entry(cache):
    primary = FakeCatalogProvider("perenual")
    enricher = CatalogEnricher([primary], cache)

    await enricher.lookup("Monstera deliciosa")
    await enricher.lookup("  MONSTERA   deliciosa")

    assert len(primary.lookups) == 1


@pytest.mark.parametrize("error", [
    ProviderUnavailableError(provider="perenual", upstream_status=503),
    ProviderQuotaExceededError(provider="perenual", limit=100),
    MalformedProviderResponseError(provider="perenual"),
])
async def test_falls_back_to_next_provider(cache, error):
    primary = FakeCatalogProvider("perenual", error=error)
    fallback = FakeCatalogProvider("trefle")
    enricher = CatalogEnricher([primary, fallback], cache)

    record = await enricher.lookup("Monstera deliciosa", "user-1")

    assert record.source == "trefle"
    assert len(primary.lookups) == 1
    assert len(fallback.lookups) == 1


async def test_all_providers_failing_yields_placeholder(cache):
    providers = [
        FakeCatalogProvider("perenual", error=ProviderUnavailableError(provider="perenual")),
        FakeCatalogProvider("trefle", error=ProviderUnavailableError(provider="trefle")),
    ]
    enricher = CatalogEnricher(providers, cache)

    record = await enricher.lookup("Monstera deliciosa", "user-1")

    assert record.source == "basic"
    assert record.is_placeholder
    assert record.scientific_name == "Monstera deliciosa"
    assert record.family == "Unknown"
    assert record.error


async def test_placeholder_is_not_cached(cache):
    failing = FakeCatalogProvider("perenual", error=ProviderUnavailableError(provider="perenual"))
    enricher = CatalogEnricher([failing], cache)

    await enricher.lookup("Monstera deliciosa")
    await enricher.lookup("Monstera deliciosa")

    assert len(failing.lookups) == 2


async def test_cached_record_expires_after_ttl(cache, clock):
    primary = FakeCatalogProvider("perenual")
    enricher = CatalogEnricher([primary], cache, ttl_seconds=3600)

    await enricher.lookup("Monstera deliciosa")
    clock.advance(seconds=3600)
    await enricher.lookup("Monstera deliciosa")

    assert len(primary.lookups) == 2


async def test_unreadable_cache_entry_is_discarded(cache):
    primary = FakeCatalogProvider("perenual")
    enricher = CatalogEnricher([primary], cache)
    key = catalog_cache_key("Monstera deliciosa")
    await cache.set(key, {"unexpected": True}, ttl=60)

    record = await enricher.lookup("Monstera deliciosa")

    assert record.source == "perenual"
    assert len(primary.lookups) == 1


async def test_unexpected_provider_errors_fall_through(cache):
    broken = FakeCatalogProvider("perenual", error=RuntimeError("bug"))
    fallback = FakeCatalogProvider("trefle")
    enricher = CatalogEnricher([broken, fallback], cache)

    record = await enricher.lookup("Monstera deliciosa")

    assert record.source == "trefle"
    assert len(fallback.lookups) == 1


async def test_unmappable_primary_row_falls_back_to_secondary(cache, clock):
    client = FakeAPIClient({"data": [{"id": 1, "scientific_name": ["Monstera deliciosa"], "family": {"name": "Araceae"}}]})
    throttle = ThrottledClient(
        ThrottleConfig(provider="perenual", daily_limit=10),
        InMemoryQuotaStore(),
        clock=clock,
        sleep=clock.sleep,
    )
    fallback = FakeCatalogProvider("trefle")
    enricher = CatalogEnricher([PerenualCatalogProvider(client, throttle), fallback], cache)

    record = await enricher.lookup("Monstera deliciosa", "user-1")

    assert record.source == "trefle"
    assert fallback.lookups == ["monstera deliciosa"]


async def test_every_provider_broken_still_yields_placeholder(cache):
    providers = [
        FakeCatalogProvider("perenual", error=TypeError("bad row")),
        FakeCatalogProvider("trefle", error=KeyError("data")),
    ]

    record = await CatalogEnricher(providers, cache).lookup("Monstera deliciosa")

    assert record.is_placeholder


class UnreachableCache(ResponseCache):
    async def get(self, key):
        raise ConnectionError("cache down")

    async def set(self, key, value, ttl):
        raise ConnectionError("cache down")


async def test_cache_outage_does_not_fail_lookup(clock):
    primary = FakeCatalogProvider("perenual")
    enricher = CatalogEnricher([primary], UnreachableCache(clock=clock))

    record = await enricher.lookup("Monstera deliciosa")

    assert record.source == "perenual"
