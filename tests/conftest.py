# 📄 File: tests/conftest.py
#
# 🧭 Purpose (Layman Explanation):
# Shared test helpers: pretend versions of the outside services, a controllable clock and
# small sample photos, so tests never touch the network.
#
# 🧪 Purpose (Technical Summary):
# Pytest fixtures and fakes for the plant analysis module: fake identification, generative and
# catalog providers keyed on response schema, a manual clock with an async sleeper, Pillow-made
# images, and a wired PlantAnalysisContainer / FastAPI TestClient.
#
# 🔗 Dependencies:
# - pytest, pytest-asyncio, Pillow, FastAPI TestClient
#
# 🔄 Connected Modules / Calls From:
# - Every test module under tests/

import asyncio
import io
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.main import create_application
from app.modules.plant_analysis.domain.models.catalog import CatalogRecord, GrowthHabit
from app.modules.plant_analysis.domain.models.health import DiseaseSuggestion, HealthReport
from app.modules.plant_analysis.domain.models.identification import ImagePayload, SpeciesHypothesis
from app.modules.plant_analysis.domain.repositories.providers import (
    CatalogProvider,
    GenerativeProvider,
    IdentificationProvider,
)
from app.modules.plant_analysis.domain.services.care_plan_synthesizer import CARE_PLAN_SCHEMA
from app.modules.plant_analysis.domain.services.health_assessor import ADVICE_SCHEMA
from app.modules.plant_analysis.domain.services.image_quality_gate import QUALITY_SCHEMA
from app.modules.plant_analysis.infrastructure.database import SubscriptionBillingGateway
from app.modules.plant_analysis.presentation.dependencies import PlantAnalysisContainer
from app.shared.config.settings import Settings


# =============================================================================
# CLOCK
# =============================================================================

class FakeClock:
    """Manual UTC clock; sleep() advances it instead of waiting."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.sleeps: List[float] = []

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds=seconds)
        await asyncio.sleep(0)


# =============================================================================
# IMAGES
# =============================================================================

def make_image_bytes(size=(256, 256), fmt: str = "JPEG", color=(34, 139, 34)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_payload(size=(256, 256), fmt: str = "JPEG") -> ImagePayload:
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    return ImagePayload(data=make_image_bytes(size, fmt), mime_type=mime, filename=f"leaf.{fmt.lower()}")


# =============================================================================
# PROVIDER FAKES
# =============================================================================

def monstera(confidence: float = 0.92) -> SpeciesHypothesis:
    return SpeciesHypothesis(
        scientific_name="Monstera deliciosa",
        common_name="Swiss cheese plant",
        common_names=["Swiss cheese plant"],
        confidence=confidence,
    )


class FakeIdentificationProvider(IdentificationProvider):
    """Returns canned suggestions and health reports, counting calls."""

    def __init__(
        self,
        suggestions: Optional[List[SpeciesHypothesis]] = None,
        health: Optional[HealthReport] = None,
        identify_error: Optional[Exception] = None,
        health_error: Optional[Exception] = None,
        health_delay: float = 0.0,
    ):
        self.suggestions = [monstera()] if suggestions is None else suggestions
        self.health = health or HealthReport(is_healthy=True, health_probability=0.95)
        self.identify_error = identify_error
        self.health_error = health_error
        self.health_delay = health_delay
        self.identify_calls = 0
        self.health_calls = 0
        self.health_cancelled = False

    async def identify(self, caller_id: str, images: Sequence[ImagePayload], language: str = "en"):
        self.identify_calls += 1
        if self.identify_error:
            raise self.identify_error
        return list(self.suggestions)

    async def assess_health(self, caller_id: str, images: Sequence[ImagePayload]) -> HealthReport:
        self.health_calls += 1
        try:
            if self.health_delay:
                await asyncio.sleep(self.health_delay)
        except asyncio.CancelledError:
            self.health_cancelled = True
            raise
        if self.health_error:
            raise self.health_error
        return self.health


def care_plan_response() -> Dict[str, Any]:
    return {
        "watering": {
            "frequency": "Every 7-10 days",
            "description": "Water thoroughly, then let the top few centimetres dry out.",
            "schedule": "Weekly in summer, every two weeks in winter",
        },
        "light": {
            "level": "Bright, indirect light",
            "description": "Avoid harsh afternoon sun.",
            "placement": "Near an east-facing window",
        },
        "humidity": {"range": "50-60%", "description": "Likes humid air.", "tips": ["Group plants together"]},
        "temperature": {"range": "18-27°C", "description": "Keep away from drafts.", "seasonal_notes": "Protect from cold"},
        "soil": {"type": "Chunky aroid mix", "details": "Bark, perlite and peat.", "repotting": "Every 2 years"},
        "fertilizer": {"type": "Balanced liquid", "frequency": "Monthly", "details": "Half strength in spring and summer."},
        "pruning": {"frequency": "As needed", "details": "Remove yellow leaves.", "tools": ["Sharp scissors"]},
        "common_issues": [{"issue": "Yellow leaves", "symptoms": "Lower leaves yellow", "solution": "Water less often"}],
        "seasonal_care": {"spring": "Start feeding", "summer": "Water more", "fall": "Reduce feeding", "winter": "Water less"},
    }


class FakeGenerativeProvider(GenerativeProvider):
    """
    Answers by response schema: quality check, care plan or health advice.

    Set an entry of `errors` to an exception to make that kind of call fail.
    """

    def __init__(
        self,
        quality: Optional[Dict[str, Any]] = None,
        care_plan: Optional[Dict[str, Any]] = None,
        advice: Optional[Dict[str, Any]] = None,
        errors: Optional[Dict[str, Exception]] = None,
    ):
        self.responses = {
            "quality": quality or {"suitable": True, "quality_score": 0.9, "issues": [], "suggestions": []},
            "care_plan": care_plan if care_plan is not None else care_plan_response(),
            "advice": advice or {
                "overall_health_status": "needs attention",
                "urgent_actions_needed": False,
                "general_recommendations": ["Improve air circulation"],
            },
        }
        self.errors = errors or {}
        self.calls: List[str] = []
        self.prompts: Dict[str, str] = {}

    @staticmethod
    def _kind(response_schema: Optional[Dict[str, Any]]) -> str:
        if response_schema is QUALITY_SCHEMA:
            return "quality"
        if response_schema is CARE_PLAN_SCHEMA:
            return "care_plan"
        if response_schema is ADVICE_SCHEMA:
            return "advice"
        return "other"

    async def generate_json(self, caller_id, prompt, response_schema=None, images=(), fast=False):
        kind = self._kind(response_schema)
        self.calls.append(kind)
        self.prompts[kind] = prompt
        if kind in self.errors:
            raise self.errors[kind]
        return self.responses.get(kind, {})

    def count(self, kind: str) -> int:
        return self.calls.count(kind)


def perenual_record(name: str = "monstera deliciosa") -> CatalogRecord:
    return CatalogRecord(
        source="perenual",
        scientific_name=name,
        common_name="Swiss cheese plant",
        family="Araceae",
        genus="Monstera",
        care_level="Medium",
        watering="Average",
        sunlight=["part shade"],
        growth_habit=GrowthHabit(type="climber", cycle="Perennial"),
        growth_rate="High",
        hardiness="10-12",
    )


class FakeCatalogProvider(CatalogProvider):
    """Returns a fixed record or raises a fixed error, recording looked-up names."""

    def __init__(self, name: str, record: Optional[CatalogRecord] = None, error: Optional[Exception] = None):
        self.name = name
        self.record = record
        self.error = error
        self.lookups: List[str] = []

    async def fetch(self, scientific_name: str, caller_id: str) -> CatalogRecord:
        self.lookups.append(scientific_name)
        if self.error:
            raise self.error
        return self.record or perenual_record(scientific_name).model_copy(update={"source": self.name})


class FakeAPIClient:
    """Stands in for APIClient inside provider adapters; replies with canned bodies."""

    def __init__(self, response: Any = None, api_key: Optional[str] = "test-key", error: Optional[Exception] = None):
        self.response = response if response is not None else {}
        self.api_key = api_key
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    async def _reply(self, method, endpoint, **kwargs):
        self.requests.append({"method": method, "endpoint": endpoint, **kwargs})
        if self.error:
            raise self.error
        return self.response

    async def get(self, endpoint, params=None, **kwargs):
        return await self._reply("GET", endpoint, params=params, **kwargs)

    async def post(self, endpoint, data=None, params=None, **kwargs):
        return await self._reply("POST", endpoint, data=data, params=params, **kwargs)


def disease(name: str, probability: float, classification=None, treatment=None) -> DiseaseSuggestion:
    return DiseaseSuggestion(
        name=name,
        probability=probability,
        description=f"{name} description",
        classification=classification or [],
        treatment=treatment or {},
    )


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def images() -> List[ImagePayload]:
    return [make_payload()]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ENVIRONMENT="test",
        STATE_BACKEND="memory",
        LOG_FORMAT="text",
        PLANT_ID_MIN_INTERVAL=0,
        GEMINI_MIN_INTERVAL=0,
        PERENUAL_MIN_INTERVAL=0,
        TREFLE_MIN_INTERVAL=0,
    )


@pytest.fixture
def identification_provider() -> FakeIdentificationProvider:
    return FakeIdentificationProvider()


@pytest.fixture
def generative_provider() -> FakeGenerativeProvider:
    return FakeGenerativeProvider()


@pytest.fixture
def catalog_providers() -> List[FakeCatalogProvider]:
    return [FakeCatalogProvider("perenual"), FakeCatalogProvider("trefle")]


@pytest.fixture
def billing(clock) -> SubscriptionBillingGateway:
    return SubscriptionBillingGateway(clock=clock)


@pytest.fixture
def container(
    test_settings,
    identification_provider,
    generative_provider,
    catalog_providers,
    billing,
    clock,
) -> PlantAnalysisContainer:
    return PlantAnalysisContainer(
        test_settings,
        identification_provider=identification_provider,
        generative_provider=generative_provider,
        catalog_providers=catalog_providers,
        billing=billing,
        clock=clock,
    )


@pytest.fixture
def client(test_settings, container):
    app = create_application(test_settings, container)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
