"""Tests for care plan generation and normalisation."""

import pytest

from app.modules.plant_analysis.domain.models.care_plan import GENERIC_FALLBACK, REQUIRED_SECTIONS
from app.modules.plant_analysis.domain.models.catalog import CatalogRecord
from app.modules.plant_analysis.domain.models.health import (
    FindingKind,
    HealthAssessment,
    HealthFinding,
    Severity,
)
from app.modules.plant_analysis.domain.models.identification import (
    IdentificationResult,
    SpeciesHypothesis,
)
from app.modules.plant_analysis.domain.services.care_plan_synthesizer import (
    CarePlanSynthesizer,
    assess_difficulty,
    is_pet_safe,
    parse_interval_days,
)
from app.shared.core.exceptions import ProviderUnavailableError

from conftest import FakeGenerativeProvider, monstera, perenual_record


@pytest.fixture
def identification():
    return IdentificationResult(best=monstera())


@pytest.fixture
def catalog():
    return perenual_record("Monstera deliciosa")


@pytest.mark.parametrize("text, days", [
    ("Daily", 1),
    ("Every 7-10 days", 7),
    ("every three days", 3),
    ("Twice a week", 3),
    ("2 times per week", 4),
    ("Weekly during summer", 7),
    ("Bi-weekly", 14),
    ("Every 2 weeks", 14),
    ("Monthly", 30),
    ("every 3 months in winter", 90),
    ("Every 2 years", None),
    ("When the soil feels dry", None),
    ("", None),
])
def test_parse_interval_days(text, days):
    assert parse_interval_days(text) == days


def test_parse_interval_days_is_capped():
    assert parse_interval_days("every 24 months") == 365


async def test_synthesize_populates_every_section(identification, catalog):
    provider = FakeGenerativeProvider()
    synthesizer = CarePlanSynthesizer(provider)

    plan = await synthesizer.synthesize("user-1", identification, catalog, language="en")

    assert plan.watering.frequency == "Every 7-10 days"
    assert plan.humidity.tips == ["Group plants together"]
    assert plan.plant_info.scientific_name == "Monstera deliciosa"
    assert plan.plant_info.family == "Araceae"
    assert plan.plant_info.growth_rate == "High"
    assert provider.count("care_plan") == 1
    assert "Monstera deliciosa" in provider.prompts["care_plan"]


async def test_missing_sections_fall_back_to_generic_text(identification, catalog):
    provider = FakeGenerativeProvider(care_plan={"watering": {"frequency": "Daily"}, "light": "bright"})
    synthesizer = CarePlanSynthesizer(provider)

    plan = await synthesizer.synthesize("user-1", identification, catalog)

    for section in REQUIRED_SECTIONS:
        assert getattr(plan, section) is not None
    assert plan.watering.frequency == "Daily"
    assert plan.watering.description == GENERIC_FALLBACK
    assert plan.light.description == GENERIC_FALLBACK
    assert plan.seasonal_care.winter == GENERIC_FALLBACK


async def test_blank_and_non_string_values_are_replaced(identification, catalog):
    provider = FakeGenerativeProvider(care_plan={
        "soil": {"type": "  ", "details": None, "repotting": 2},
        "pruning": {"tools": [None, "", "Shears"]},
    })

    plan = await CarePlanSynthesizer(provider).synthesize("user-1", identification, catalog)

    assert plan.soil.type == "Well-draining potting mix"
    assert plan.soil.details == GENERIC_FALLBACK
    assert plan.soil.repotting == "2"
    assert plan.pruning.tools == ["Shears"]


async def test_reminders_follow_plan_frequencies(identification, catalog):
    plan = await CarePlanSynthesizer(FakeGenerativeProvider()).synthesize("user-1", identification, catalog)

    reminders = {r.type: r.interval_days for r in plan.care_reminders}
    assert reminders == {"watering": 7, "fertilizing": 30, "inspection": 7, "cleaning": 14}


async def test_unparseable_frequency_uses_default_interval(identification, catalog):
    provider = FakeGenerativeProvider(care_plan={"watering": {"frequency": "When it looks thirsty"}})

    plan = await CarePlanSynthesizer(provider).synthesize("user-1", identification, catalog)

    watering = next(r for r in plan.care_reminders if r.type == "watering")
    assert watering.interval_days == 7


async def test_health_findings_lead_common_issues(identification, catalog):
    health = HealthAssessment(
        is_healthy=False,
        findings=[HealthFinding(
            kind=FindingKind.DISEASE,
            name="Yellow leaves",
            severity=Severity.MEDIUM,
            probability=0.5,
            description="Chlorotic lower leaves",
            remedy="Reduce watering",
        )],
    )

    plan = await CarePlanSynthesizer(FakeGenerativeProvider()).synthesize(
        "user-1", identification, catalog, health
    )

    # the provider's own "Yellow leaves" issue is de-duplicated against the finding
    assert [i.issue for i in plan.common_issues] == ["Yellow leaves"]
    assert plan.common_issues[0].solution == "Reduce watering"


async def test_provider_failure_propagates(identification, catalog):
    provider = FakeGenerativeProvider(errors={"care_plan": ProviderUnavailableError(provider="gemini")})

    with pytest.raises(ProviderUnavailableError):
        await CarePlanSynthesizer(provider).synthesize("user-1", identification, catalog)


async def test_placeholder_catalog_still_produces_plan(identification):
    placeholder = CatalogRecord.placeholder("Monstera deliciosa")

    plan = await CarePlanSynthesizer(FakeGenerativeProvider()).synthesize(
        "user-1", identification, placeholder
    )

    assert plan.plant_info.family == "Unknown"
    assert plan.plant_info.growth_rate == "Medium"


def test_pet_safety_uses_toxic_list():
    assert not is_pet_safe("Monstera deliciosa")
    assert not is_pet_safe("Epipremnum aureum")
    assert is_pet_safe("Calathea orbifolia")


def test_difficulty_prefers_catalog_care_level(identification):
    synthesizer = CarePlanSynthesizer(FakeGenerativeProvider())
    plan = synthesizer.normalize({}, identification, CatalogRecord.placeholder("x"))

    easy = CatalogRecord(source="perenual", scientific_name="x", care_level="Low")
    hard = CatalogRecord(source="perenual", scientific_name="x", care_level="High")

    assert assess_difficulty(plan, easy) == "Easy"
    assert assess_difficulty(plan, hard) == "Difficult"


def test_localized_common_name_is_used(catalog):
    identification = IdentificationResult(
        best=SpeciesHypothesis(scientific_name="Aloe vera", common_name="Aloe", confidence=0.8),
        localized_common_name="Babosa",
    )

    plan = CarePlanSynthesizer(FakeGenerativeProvider()).normalize({}, identification, catalog)

    assert plan.plant_info.common_name == "Babosa"
