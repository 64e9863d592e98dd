"""Tests for the Plant.id, Gemini and catalog adapters against canned provider bodies."""

import json

import pytest

from app.modules.plant_analysis.infrastructure.providers import (
    GeminiProvider,
    PerenualCatalogProvider,
    PlantIdProvider,
    TrefleCatalogProvider,
    parse_health,
    parse_identification,
)
from app.shared.core.exceptions import (
    MalformedProviderResponseError,
    ProviderQuotaExceededError,
    ProviderUnavailableError,
)
from app.shared.core.rate_limiter import InMemoryQuotaStore, ThrottleConfig
from app.shared.infrastructure.external_apis.throttled_client import ThrottledClient

from conftest import FakeAPIClient


@pytest.fixture
def throttle(clock):
    def build(provider: str, daily_limit: int = 10) -> ThrottledClient:
        return ThrottledClient(
            ThrottleConfig(provider=provider, daily_limit=daily_limit),
            InMemoryQuotaStore(),
            clock=clock,
            sleep=clock.sleep,
        )
    return build


V3_IDENTIFICATION = {
    "result": {
        "is_plant": {"probability": 0.99, "binary": True},
        "classification": {
            "suggestions": [
                {
                    "id": "abc123",
                    "name": "Monstera deliciosa",
                    "probability": 0.92,
                    "details": {"common_names": ["Swiss cheese plant", "Split-leaf philodendron"]},
                },
                {"id": "def456", "name": "Philodendron bipinnatifidum", "probability": 0.04},
            ]
        },
    }
}

LEGACY_IDENTIFICATION = {
    "suggestions": [
        {
            "id": 7,
            "plant_name": "Ficus lyrata Warb.",
            "probability": 0.81,
            "plant_details": {
                "common_names": ["Fiddle-leaf fig"],
                "structured_name": {"genus": "Ficus", "species": "lyrata"},
            },
        }
    ]
}


# =============================================================================
# PLANT.ID
# =============================================================================

def test_parse_v3_identification():
    suggestions = parse_identification(V3_IDENTIFICATION)

    assert [s.scientific_name for s in suggestions] == ["Monstera deliciosa", "Philodendron bipinnatifidum"]
    assert suggestions[0].common_name == "Swiss cheese plant"
    assert suggestions[0].confidence == 0.92
    assert suggestions[0].provider_id == "abc123"
    assert suggestions[1].common_name is None


def test_parse_legacy_identification_uses_structured_name():
    suggestions = parse_identification(LEGACY_IDENTIFICATION)

    assert suggestions[0].scientific_name == "Ficus lyrata"
    assert suggestions[0].common_name == "Fiddle-leaf fig"
    assert suggestions[0].provider_id == "7"


def test_empty_suggestions_is_not_an_error():
    assert parse_identification({"result": {"classification": {"suggestions": []}}}) == []


def test_unknown_identification_layout_is_malformed():
    with pytest.raises(MalformedProviderResponseError):
        parse_identification({"status": "weird"})


def test_parse_v3_health():
    report = parse_health({
        "result": {
            "is_healthy": {"binary": False, "probability": 0.12},
            "disease": {
                "suggestions": [{
                    "name": "Fungi",
                    "probability": 0.71,
                    "details": {
                        "description": "Fungal infection",
                        "classification": ["Fungi"],
                        "treatment": {"biological": ["Remove affected leaves"]},
                    },
                }]
            },
        }
    })

    assert not report.is_healthy
    assert report.health_probability == 0.12
    assert report.suggestions[0].treatment == {"biological": ["Remove affected leaves"]}


def test_parse_legacy_health():
    report = parse_health({
        "health_assessment": {
            "is_healthy": False,
            "is_healthy_probability": 0.3,
            "diseases": [{
                "name": "water deficiency",
                "probability": 0.6,
                "disease_details": {"description": "Too dry", "common_names": ["Drought"]},
            }],
        }
    })

    assert not report.is_healthy
    assert report.suggestions[0].common_names == ["Drought"]
    assert report.suggestions[0].description == "Too dry"


def test_parse_oldest_health_layout_without_verdict():
    assert parse_health({"suggestions": []}).is_healthy
    assert not parse_health({"suggestions": [{"name": "Aphids", "probability": 0.4}]}).is_healthy


def test_unknown_health_layout_is_malformed():
    with pytest.raises(MalformedProviderResponseError):
        parse_health({"nothing": "here"})


async def test_plant_id_identify_sends_data_uris(throttle, images):
    client = FakeAPIClient(V3_IDENTIFICATION)
    provider = PlantIdProvider(client, throttle("plant_id"))

    suggestions = await provider.identify("user-1", images, language="de")

    request = client.requests[0]
    assert request["endpoint"] == "identification"
    assert request["data"]["images"][0].startswith("data:image/jpeg;base64,")
    assert request["params"]["language"] == "de"
    assert suggestions[0].scientific_name == "Monstera deliciosa"


async def test_plant_id_shares_quota_between_identify_and_health(throttle, images):
    client = FakeAPIClient(V3_IDENTIFICATION)
    provider = PlantIdProvider(client, throttle("plant_id", daily_limit=1))

    await provider.identify("user-1", images)

    with pytest.raises(ProviderQuotaExceededError):
        await provider.assess_health("user-1", images)
    assert len(client.requests) == 1


# =============================================================================
# GEMINI
# =============================================================================

def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


async def test_gemini_returns_parsed_json(throttle, images):
    client = FakeAPIClient(gemini_body(json.dumps({"suitable": True, "quality_score": 0.8})))
    provider = GeminiProvider(client, throttle("gemini"), model="pro-model", fast_model="flash-model")

    data = await provider.generate_json("user-1", "Check these", {"type": "object"}, images, fast=True)

    request = client.requests[0]
    assert data == {"suitable": True, "quality_score": 0.8}
    assert request["endpoint"] == "models/flash-model:generateContent"
    parts = request["data"]["contents"][0]["parts"]
    assert parts[0]["inlineData"]["mimeType"] == "image/jpeg"
    assert parts[-1] == {"text": "Check these"}
    assert request["data"]["generationConfig"]["responseMimeType"] == "application/json"


@pytest.mark.parametrize("body", [
    {"candidates": []},
    {"candidates": [{"finishReason": "SAFETY"}]},
    gemini_body("not json at all"),
    gemini_body("[1, 2, 3]"),
])
def test_gemini_malformed_bodies(throttle, body):
    provider = GeminiProvider(FakeAPIClient(), throttle("gemini"))

    with pytest.raises(MalformedProviderResponseError):
        provider.parse_response(body, "gemini-1.5-pro")


# =============================================================================
# CATALOGS
# =============================================================================

async def test_perenual_maps_species_row(throttle):
    client = FakeAPIClient({"data": [{
        "id": 1234,
        "common_name": "Swiss cheese plant",
        "scientific_name": ["Monstera deliciosa"],
        "family": "Araceae",
        "cycle": "Perennial",
        "watering": "Average",
        "sunlight": "part shade",
        "care_level": "Medium",
        "hardiness": {"min": "10", "max": "12"},
    }]})

    record = await PerenualCatalogProvider(client, throttle("perenual")).fetch("monstera deliciosa", "user-1")

    assert client.requests[0]["params"] == {"q": "monstera deliciosa"}
    assert record.source == "perenual"
    assert record.scientific_name == "Monstera deliciosa"
    assert record.sunlight == ["part shade"]
    assert record.hardiness == "10-12"
    assert record.growth_habit.cycle == "Perennial"
    assert record.provider_id == "1234"


async def test_trefle_maps_plant_row(throttle):
    client = FakeAPIClient({"data": [{
        "id": 99,
        "scientific_name": "Monstera deliciosa",
        "common_name": "Ceriman",
        "family_common_name": "Arum family",
        "genus": "Monstera",
    }]})

    record = await TrefleCatalogProvider(client, throttle("trefle")).fetch("monstera deliciosa", "user-1")

    assert record.source == "trefle"
    assert record.family == "Arum family"
    assert record.care_level == "Unknown"


async def test_unmappable_catalog_row_is_malformed(throttle):
    client = FakeAPIClient({"data": [{"id": 5, "family": {"name": "Araceae"}}]})

    with pytest.raises(MalformedProviderResponseError) as exc_info:
        await PerenualCatalogProvider(client, throttle("perenual")).fetch("monstera deliciosa", "user-1")

    assert exc_info.value.provider == "perenual"


async def test_empty_catalog_result_is_unavailable(throttle):
    provider = PerenualCatalogProvider(FakeAPIClient({"data": []}), throttle("perenual"))

    with pytest.raises(ProviderUnavailableError):
        await provider.fetch("nonexistent plant", "user-1")


async def test_unconfigured_catalog_makes_no_request(throttle):
    client = FakeAPIClient({"data": [{"id": 1}]}, api_key=None)

    with pytest.raises(ProviderUnavailableError):
        await TrefleCatalogProvider(client, throttle("trefle")).fetch("rosa", "user-1")
    assert client.requests == []
