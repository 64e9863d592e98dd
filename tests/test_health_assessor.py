"""Tests for health assessment, finding classification and treatment advice."""

import pytest

from app.modules.plant_analysis.domain.models.health import HealthAssessment, HealthReport
from app.modules.plant_analysis.domain.services.health_assessor import (
    HealthAssessor,
    classify_kind,
    summarize_treatment,
)
from app.shared.core.exceptions import ProviderQuotaExceededError, ProviderUnavailableError

from conftest import FakeGenerativeProvider, FakeIdentificationProvider, disease, monstera


@pytest.mark.parametrize("name, classification, kind", [
    ("Powdery mildew", ["Fungi"], "disease"),
    ("Spider mites", [], "pest"),
    ("Aphids", ["Animalia", "Insecta"], "pest"),
    ("Nitrogen deficiency", [], "deficiency"),
    ("Water excess or uneven watering", ["Abiotic"], "stress"),
    ("Leaf spot", ["Bacteria"], "disease"),
])
def test_classify_kind(name, classification, kind):
    assert classify_kind(disease(name, 0.5, classification)) == kind


def test_summarize_treatment_orders_biological_first():
    treatment = {
        "chemical": ["Apply fungicide"],
        "biological": ["Spray neem oil", "Introduce ladybirds"],
    }

    assert summarize_treatment(treatment) == "Spray neem oil Apply fungicide"
    assert summarize_treatment({}) is None


async def test_healthy_plant_has_no_findings(images):
    assessor = HealthAssessor(FakeIdentificationProvider())

    assessment = await assessor.assess("user-1", images, monstera())

    assert assessment.is_healthy
    assert assessment.findings == []


async def test_findings_are_filtered_and_ordered(images):
    report = HealthReport(
        is_healthy=False,
        health_probability=0.2,
        suggestions=[
            disease("Leaf spot", 0.35),
            disease("Spider mites", 0.8),
            disease("Root rot", 0.05),
        ],
    )
    assessor = HealthAssessor(FakeIdentificationProvider(health=report), min_probability=0.1)

    assessment = await assessor.assess("user-1", images)

    assert [f.name for f in assessment.findings] == ["Spider mites", "Leaf spot"]
    assert assessment.findings[0].severity == "high"
    assert assessment.findings[0].kind == "pest"
    assert assessment.findings[1].severity == "low"
    assert not assessment.is_healthy


async def test_provider_verdict_is_overridden_by_findings(images):
    report = HealthReport(is_healthy=True, suggestions=[disease("Powdery mildew", 0.6)])

    assessment = await HealthAssessor(FakeIdentificationProvider(health=report)).assess("user-1", images)

    assert not assessment.is_healthy
    assert assessment.findings[0].severity == "medium"


async def test_provider_errors_propagate(images):
    provider = FakeIdentificationProvider(health_error=ProviderQuotaExceededError(provider="plant_id"))

    with pytest.raises(ProviderQuotaExceededError):
        await HealthAssessor(provider).assess("user-1", images)


async def test_advice_is_generated_for_findings():
    generative = FakeGenerativeProvider()
    assessor = HealthAssessor(FakeIdentificationProvider(), generative)
    assessment = HealthAssessment(
        is_healthy=False,
        findings=[HealthAssessor._to_finding(disease("Powdery mildew", 0.6))],
    )

    advice = await assessor.advise("user-1", assessment, monstera(), "es")

    assert advice.overall_health_status == "needs attention"
    assert advice.general_recommendations == ["Improve air circulation"]
    assert "'es'" in generative.prompts["advice"]


async def test_no_advice_for_healthy_plant():
    generative = FakeGenerativeProvider()
    assessor = HealthAssessor(FakeIdentificationProvider(), generative)

    assert await assessor.advise("user-1", HealthAssessment.healthy()) is None
    assert generative.calls == []


async def test_advice_failure_is_tolerated():
    generative = FakeGenerativeProvider(errors={"advice": ProviderUnavailableError(provider="gemini")})
    assessor = HealthAssessor(FakeIdentificationProvider(), generative)
    assessment = HealthAssessment(findings=[HealthAssessor._to_finding(disease("Leaf spot", 0.5))])

    assert await assessor.advise("user-1", assessment) is None


async def test_advice_ignores_wrongly_typed_fields():
    generative = FakeGenerativeProvider(advice={
        "overall_health_status": "  ",
        "urgent_actions_needed": "false",
        "general_recommendations": "Water less",
    })
    assessor = HealthAssessor(FakeIdentificationProvider(), generative)
    assessment = HealthAssessment(findings=[HealthAssessor._to_finding(disease("Root rot", 0.7))])

    advice = await assessor.advise("user-1", assessment)

    assert advice.overall_health_status == "unknown"
    assert advice.urgent_actions_needed is False
    assert advice.general_recommendations == []
