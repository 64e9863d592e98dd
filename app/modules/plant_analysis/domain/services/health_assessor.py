# 📄 File: app/modules/plant_analysis/domain/services/health_assessor.py
# 🧭 Purpose (Layman Explanation):
# Checks the photos for signs of sickness, bugs, hunger or stress, ranks what it finds by how
# likely and how serious it is, and asks the AI assistant for treatment advice.
# 🧪 Purpose (Technical Summary):
# Converts provider health suggestions into classified, severity-rated HealthFindings ordered by
# probability, and optionally produces HealthAdvice through the generative provider.
# 🔗 Dependencies:
# IdentificationProvider and GenerativeProvider ports, shared exceptions
# 🔄 Connected Modules / Calls From:
# Pipeline controller

import json
import re
from typing import Any, Dict, List, Optional, Sequence

from app.shared.core.exceptions import ProviderError
from app.shared.utils.logging import get_logger, log_stage
from app.shared.utils.validators import strict_bool, string_list

from ..models.health import (
    DiseaseSuggestion,
    FindingKind,
    HealthAdvice,
    HealthAssessment,
    HealthFinding,
    Severity,
)
from ..models.identification import ImagePayload, SpeciesHypothesis
from ..repositories.providers import GenerativeProvider, IdentificationProvider

logger = get_logger(__name__)

KIND_KEYWORDS = {
    FindingKind.PEST: (
        "pest", "insect", "mite", "aphid", "thrips", "mealybug", "scale",
        "whitefly", "caterpillar", "larva", "beetle", "nematode", "snail", "slug",
    ),
    FindingKind.DEFICIENCY: (
        "deficiency", "nutrient", "nitrogen", "phosphorus", "potassium",
        "magnesium", "iron", "calcium", "chlorosis",
    ),
    FindingKind.STRESS: (
        "water", "drought", "overwater", "sunburn", "sun scorch", "heat", "cold",
        "frost", "low light", "abiotic", "senescence", "mechanical", "wilting",
    ),
}

ADVICE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "overall_health_status": {"type": "string"},
        "urgent_actions_needed": {"type": "boolean"},
        "general_recommendations": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["overall_health_status"],
}


def classify_kind(suggestion: DiseaseSuggestion) -> FindingKind:
    """Classify a suggestion by keywords in its name and provider classification."""
    text = " ".join([suggestion.name, *suggestion.classification]).lower()
    for kind in (FindingKind.PEST, FindingKind.DEFICIENCY, FindingKind.STRESS):
        if any(re.search(rf"\b{word}", text) for word in KIND_KEYWORDS[kind]):
            return kind
    return FindingKind.DISEASE


def summarize_treatment(treatment: Dict[str, List[str]]) -> Optional[str]:
    """First step of each treatment category, biological before chemical."""
    steps: List[str] = []
    for category in ("biological", "prevention", "chemical"):
        items = treatment.get(category) or []
        if items:
            steps.append(items[0])
    return " ".join(steps) or None


class HealthAssessor:
    """Health assessment; independent of identification confidence."""

    def __init__(
        self,
        provider: IdentificationProvider,
        generative_provider: Optional[GenerativeProvider] = None,
        min_probability: float = 0.1,
    ):
        self.provider = provider
        self.generative_provider = generative_provider
        self.min_probability = min_probability

    @log_stage("health_assessment")
    async def assess(
        self,
        caller_id: str,
        images: Sequence[ImagePayload],
        species: Optional[SpeciesHypothesis] = None,
    ) -> HealthAssessment:
        """
        Assess plant health.

        Args:
            caller_id: Identity charged for the call
            images: Submitted photos
            species: Identified species, used for logging context only

        Returns:
            HealthAssessment with findings ordered by probability
        """
        report = await self.provider.assess_health(caller_id, images)

        findings = [
            self._to_finding(s) for s in report.suggestions
            if s.probability >= self.min_probability
        ]
        is_healthy = report.is_healthy and not findings

        logger.info(
            "Health assessed",
            species=species.scientific_name if species else None,
            is_healthy=is_healthy,
            findings=len(findings),
        )
        return HealthAssessment(
            is_healthy=is_healthy,
            health_probability=report.health_probability,
            findings=findings,
        )

    @staticmethod
    def _to_finding(suggestion: DiseaseSuggestion) -> HealthFinding:
        return HealthFinding(
            kind=classify_kind(suggestion),
            name=suggestion.name,
            severity=Severity.from_probability(suggestion.probability),
            probability=suggestion.probability,
            description=suggestion.description,
            remedy=summarize_treatment(suggestion.treatment),
            common_names=suggestion.common_names,
        )

    async def advise(
        self,
        caller_id: str,
        assessment: HealthAssessment,
        species: Optional[SpeciesHypothesis] = None,
        language: str = "en",
    ) -> Optional[HealthAdvice]:
        """
        Treatment advice for the findings. Returns None when there is nothing to advise
        on or the advice could not be produced.
        """
        if not assessment.findings or self.generative_provider is None:
            return None

        findings = [f.model_dump(include={"kind", "name", "severity", "description"}) for f in assessment.findings]
        prompt = (
            "Based on these plant disease findings, provide treatment advice and prevention tips.\n\n"
            f"Plant: {species.scientific_name if species else 'unknown'}\n"
            f"Disease Findings:\n{json.dumps(findings, indent=2)}\n\n"
            f"Answer in the language with code '{language}'."
        )
        try:
            data = await self.generative_provider.generate_json(
                caller_id, prompt, response_schema=ADVICE_SCHEMA
            )
        except ProviderError as e:
            logger.warning("Health advice unavailable", error_code=e.error_code)
            return None

        status = data.get("overall_health_status")
        return HealthAdvice(
            overall_health_status=status.strip() if isinstance(status, str) and status.strip() else "unknown",
            urgent_actions_needed=strict_bool(data.get("urgent_actions_needed")),
            general_recommendations=string_list(data.get("general_recommendations")),
        )
