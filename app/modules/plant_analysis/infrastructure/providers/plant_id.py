# 📄 File: app/modules/plant_analysis/infrastructure/providers/plant_id.py
# 🧭 Purpose (Layman Explanation):
# Talks to Plant.id, the service that looks at plant photos and says which species it is and
# whether it looks sick.
#
# 🧪 Purpose (Technical Summary):
# IdentificationProvider adapter for the Plant.id REST API. Both endpoints draw on the same
# throttled quota bucket. Parses the v3 response layout and the legacy v2 layout.
#
# 🔗 Dependencies:
# - app.shared.infrastructure.external_apis (APIClient over aiohttp, ThrottledClient)
# - plant_analysis domain models
#
# 🔄 Connected Modules / Calls From:
# - SpeciesIdentifier and HealthAssessor (through the IdentificationProvider port)
# - Presentation dependency container (construction)

from typing import Any, Dict, List, Sequence

from app.shared.core.exceptions import MalformedProviderResponseError
from app.shared.infrastructure.external_apis.api_client import APIClient
from app.shared.infrastructure.external_apis.throttled_client import ThrottledClient
from app.shared.utils.logging import get_logger

from ...domain.models.health import DiseaseSuggestion, HealthReport
from ...domain.models.identification import ImagePayload, SpeciesHypothesis
from ...domain.repositories.providers import IdentificationProvider

logger = get_logger(__name__)

IDENTIFICATION_DETAILS = "common_names,taxonomy"
HEALTH_DETAILS = "common_names,description,treatment,classification"


class PlantIdProvider(IdentificationProvider):
    """
    Plant.id adapter.

    Plant.id reports a probability for every suggestion; the adapter passes
    them through untouched and leaves acceptance thresholds to the domain.
    """

    name = "plant_id"

    def __init__(self, client: APIClient, throttle: ThrottledClient):
        self.client = client
        self.throttle = throttle

    async def identify(
        self,
        caller_id: str,
        images: Sequence[ImagePayload],
        language: str = "en",
    ) -> List[SpeciesHypothesis]:
        payload = {
            "images": [image.to_data_uri() for image in images],
            "similar_images": True,
        }
        params = {"details": IDENTIFICATION_DETAILS, "language": language}

        data = await self.throttle.call(
            caller_id,
            lambda: self.client.post("identification", data=payload, params=params),
        )
        suggestions = parse_identification(data)
        logger.debug("Plant.id identification parsed", suggestions=len(suggestions))
        return suggestions

    async def assess_health(self, caller_id: str, images: Sequence[ImagePayload]) -> HealthReport:
        payload = {
            "images": [image.to_data_uri() for image in images],
            "similar_images": True,
        }
        params = {"details": HEALTH_DETAILS}

        data = await self.throttle.call(
            caller_id,
            lambda: self.client.post("health_assessment", data=payload, params=params),
        )
        return parse_health(data)


# =============================================================================
# RESPONSE PARSING
# =============================================================================

def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def parse_identification(data: Dict[str, Any]) -> List[SpeciesHypothesis]:
    """
    Convert a Plant.id identification body into hypotheses.

    Args:
        data: Parsed response body

    Returns:
        Hypotheses in provider order; empty when Plant.id had no suggestion

    Raises:
        MalformedProviderResponseError: Body matches neither known layout
    """
    result = data.get("result")
    if isinstance(result, dict):
        classification = result.get("classification") or {}
        raw = _as_list(classification.get("suggestions"))
        return [_v3_species(s) for s in raw if isinstance(s, dict) and s.get("name")]

    if "suggestions" in data:
        raw = _as_list(data.get("suggestions"))
        return [_legacy_species(s) for s in raw if isinstance(s, dict) and s.get("plant_name")]

    raise MalformedProviderResponseError(
        "Unrecognised Plant.id identification body",
        provider=PlantIdProvider.name,
        raw_response=str(data)[:2000],
    )


def _v3_species(suggestion: Dict[str, Any]) -> SpeciesHypothesis:
    details = suggestion.get("details") or {}
    common_names = [str(n) for n in _as_list(details.get("common_names"))]
    return SpeciesHypothesis(
        scientific_name=suggestion["name"],
        common_name=common_names[0] if common_names else None,
        common_names=common_names,
        confidence=suggestion.get("probability", 0.0),
        provider_id=str(suggestion["id"]) if suggestion.get("id") is not None else None,
    )


def _legacy_species(suggestion: Dict[str, Any]) -> SpeciesHypothesis:
    details = suggestion.get("plant_details") or {}
    structured = details.get("structured_name") or {}
    common_names = [str(n) for n in _as_list(details.get("common_names"))]

    scientific_name = suggestion["plant_name"]
    if structured.get("genus") and structured.get("species"):
        scientific_name = f"{structured['genus']} {structured['species']}"

    return SpeciesHypothesis(
        scientific_name=scientific_name,
        common_name=common_names[0] if common_names else suggestion["plant_name"],
        common_names=common_names,
        confidence=suggestion.get("probability", 0.0),
        provider_id=str(suggestion["id"]) if suggestion.get("id") is not None else None,
    )


def parse_health(data: Dict[str, Any]) -> HealthReport:
    """
    Convert a Plant.id health assessment body into a HealthReport.

    Raises:
        MalformedProviderResponseError: Body matches neither known layout
    """
    result = data.get("result")
    if isinstance(result, dict):
        healthy = result.get("is_healthy") or {}
        disease = result.get("disease") or {}
        suggestions = [
            _v3_disease(s) for s in _as_list(disease.get("suggestions"))
            if isinstance(s, dict) and s.get("name")
        ]
        return HealthReport(
            is_healthy=bool(healthy.get("binary", not suggestions)),
            health_probability=healthy.get("probability"),
            suggestions=suggestions,
        )

    assessment = data.get("health_assessment")
    if isinstance(assessment, dict):
        suggestions = [
            _legacy_disease(s) for s in _as_list(assessment.get("diseases"))
            if isinstance(s, dict) and s.get("name")
        ]
        return HealthReport(
            is_healthy=bool(assessment.get("is_healthy", not suggestions)),
            health_probability=assessment.get("is_healthy_probability"),
            suggestions=suggestions,
        )

    if "suggestions" in data:
        # oldest layout: no verdict, healthy means nothing was found
        suggestions = [
            _legacy_disease(s) for s in _as_list(data.get("suggestions"))
            if isinstance(s, dict) and s.get("name")
        ]
        return HealthReport(is_healthy=not suggestions, suggestions=suggestions)

    raise MalformedProviderResponseError(
        "Unrecognised Plant.id health body",
        provider=PlantIdProvider.name,
        raw_response=str(data)[:2000],
    )


def _treatment(raw: Any) -> Dict[str, List[str]]:
    if not isinstance(raw, dict):
        return {}
    return {
        category: [str(step) for step in _as_list(steps)]
        for category, steps in raw.items()
    }


def _v3_disease(suggestion: Dict[str, Any]) -> DiseaseSuggestion:
    details = suggestion.get("details") or {}
    return DiseaseSuggestion(
        name=suggestion["name"],
        probability=suggestion.get("probability", 0.0),
        description=str(details.get("description") or ""),
        common_names=[str(n) for n in _as_list(details.get("common_names"))],
        classification=[str(c) for c in _as_list(details.get("classification"))],
        treatment=_treatment(details.get("treatment")),
    )


def _legacy_disease(suggestion: Dict[str, Any]) -> DiseaseSuggestion:
    details = suggestion.get("disease_details") or suggestion
    return DiseaseSuggestion(
        name=suggestion["name"],
        probability=suggestion.get("probability", 0.0),
        description=str(details.get("description") or ""),
        common_names=[str(n) for n in _as_list(details.get("common_names"))],
        classification=[str(c) for c in _as_list(details.get("classification"))],
        treatment=_treatment(details.get("treatment")),
    )
