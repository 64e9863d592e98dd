# 📄 File: app/modules/plant_analysis/domain/services/care_plan_synthesizer.py
# 🧭 Purpose (Layman Explanation):
# Writes the plant's care guide from everything the app learned (species, encyclopedia facts and
# health problems), fills any gaps with sensible general advice, and sets up task reminders.
# 🧪 Purpose (Technical Summary):
# Generative care-plan synthesis with field-level normalisation onto the CarePlan model,
# difficulty and pet-safety assessment, and deterministic reminder derivation from frequency text.
# 🔗 Dependencies:
# GenerativeProvider port, care plan / catalog / health / identification models
# 🔄 Connected Modules / Calls From:
# Pipeline controller

import json
import re
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from app.shared.utils.logging import get_logger, log_stage

from ..models.care_plan import (
    REQUIRED_SECTIONS,
    CarePlan,
    CareReminder,
    CommonIssue,
    FertilizerSection,
    HumiditySection,
    LightSection,
    PlantInfo,
    PruningSection,
    ReminderType,
    SeasonalCare,
    SoilSection,
    TemperatureSection,
    WateringSection,
)
from ..models.catalog import UNKNOWN, CatalogRecord
from ..models.health import HealthAssessment
from ..models.identification import IdentificationResult
from ..repositories.providers import GenerativeProvider

logger = get_logger(__name__)

SECTION_MODELS: Dict[str, Type[BaseModel]] = {
    "watering": WateringSection,
    "light": LightSection,
    "humidity": HumiditySection,
    "temperature": TemperatureSection,
    "soil": SoilSection,
    "fertilizer": FertilizerSection,
    "pruning": PruningSection,
}

DEFAULT_WATERING_INTERVAL = 7
DEFAULT_FERTILIZER_INTERVAL = 30
INSPECTION_INTERVAL = 7
CLEANING_INTERVAL = 14
MAX_INTERVAL = 365

TOXIC_TO_PETS = (
    "ficus lyrata", "monstera deliciosa", "pothos", "epipremnum",
    "philodendron", "dieffenbachia", "caladium", "alocasia",
    "colocasia", "anthurium", "spathiphyllum", "zamioculcas",
)

NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "fourteen": 14,
}


def _string_schema(*fields: str) -> Dict[str, Any]:
    return {"type": "object", "properties": {f: {"type": "string"} for f in fields}}


CARE_PLAN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "watering": _string_schema("frequency", "description", "schedule"),
        "light": _string_schema("level", "description", "placement"),
        "humidity": {
            "type": "object",
            "properties": {
                "range": {"type": "string"},
                "description": {"type": "string"},
                "tips": {"type": "array", "items": {"type": "string"}},
            },
        },
        "temperature": _string_schema("range", "description", "seasonal_notes"),
        "soil": _string_schema("type", "details", "repotting"),
        "fertilizer": _string_schema("type", "frequency", "details"),
        "pruning": {
            "type": "object",
            "properties": {
                "frequency": {"type": "string"},
                "details": {"type": "string"},
                "tools": {"type": "array", "items": {"type": "string"}},
            },
        },
        "common_issues": {
            "type": "array",
            "items": _string_schema("issue", "symptoms", "solution"),
        },
        "seasonal_care": _string_schema("spring", "summer", "fall", "winter"),
    },
    "required": list(REQUIRED_SECTIONS),
}


# =============================================================================
# FREQUENCY PARSING
# =============================================================================

# Checked in order, first match wins
FIXED_PATTERNS = (
    (r"\b(daily|every day|each day|once a day)\b", 1),
    (r"\b(bi-?weekly|every other week|fortnight(ly)?)\b", 14),
    (r"\btwice (a|per) week\b", 3),
    (r"\btwice (a|per) month\b", 15),
)

COUNTED_PATTERNS = (
    (r"(\d+)(?:\s*(?:-|to)\s*\d+)?[\s-]*days?\b", 1),
    (r"(\d+)(?:\s*(?:-|to)\s*\d+)?[\s-]*weeks?\b", 7),
    (r"(\d+)(?:\s*(?:-|to)\s*\d+)?[\s-]*months?\b", 30),
)

PERIOD_PATTERNS = (
    (r"\b(weekly|once a week|every week|per week)\b", 7),
    (r"\b(monthly|once a month|every month|per month)\b", 30),
)


def _words_to_digits(text: str) -> str:
    pattern = r"\b(" + "|".join(NUMBER_WORDS) + r")\b"
    return re.sub(pattern, lambda m: str(NUMBER_WORDS[m.group(1)]), text)


def _match_days(t: str) -> Optional[int]:
    for pattern, days in FIXED_PATTERNS:
        if re.search(pattern, t):
            return days

    times_a_week = re.search(r"\b(\d+)\s*(?:times|x)\s*(?:a|per)\s*week\b", t)
    if times_a_week:
        return round(7 / max(1, int(times_a_week.group(1))))

    for pattern, multiplier in COUNTED_PATTERNS:
        match = re.search(pattern, t)
        if match:
            return int(match.group(1)) * multiplier

    for pattern, days in PERIOD_PATTERNS:
        if re.search(pattern, t):
            return days
    return None


def parse_interval_days(text: Optional[str]) -> Optional[int]:
    """
    Best-effort conversion of free-form frequency text to an interval in days.

    Handles "daily", "every N days", "N-M weeks", "weekly", "twice a week",
    "bi-weekly", "monthly" and "every N months". Ranges use their lower bound.

    Args:
        text: Frequency description, e.g. "Every 7-10 days"

    Returns:
        Interval in days within [1, 365], or None when nothing matched
    """
    if not text or not isinstance(text, str):
        return None

    days = _match_days(_words_to_digits(text.lower()))
    if days is None:
        return None
    return min(MAX_INTERVAL, max(1, days))


def derive_reminders(plan: CarePlan) -> List[CareReminder]:
    """
    Reminders from the plan's own frequency text. Unparseable text falls back
    to a generic interval; inspection and cleaning reminders are always present.
    """
    watering_days = parse_interval_days(plan.watering.frequency) or DEFAULT_WATERING_INTERVAL
    fertilizer_days = parse_interval_days(plan.fertilizer.frequency) or DEFAULT_FERTILIZER_INTERVAL

    return [
        CareReminder(
            type=ReminderType.WATERING,
            interval_days=watering_days,
            message="Check soil moisture" if watering_days == 1 else "Water when soil is dry",
        ),
        CareReminder(
            type=ReminderType.FERTILIZING,
            interval_days=fertilizer_days,
            message="Apply diluted fertilizer",
        ),
        CareReminder(
            type=ReminderType.INSPECTION,
            interval_days=INSPECTION_INTERVAL,
            message="Check for pests and diseases",
        ),
        CareReminder(
            type=ReminderType.CLEANING,
            interval_days=CLEANING_INTERVAL,
            message="Dust leaves and clean plant",
        ),
    ]


# =============================================================================
# PLANT SUMMARY
# =============================================================================

def assess_difficulty(plan: CarePlan, catalog: CatalogRecord) -> str:
    """Difficulty from the catalog care level, else from how demanding the plan reads."""
    care_level = (catalog.care_level or "").strip().lower()
    if care_level in ("easy", "low"):
        return "Easy"
    if care_level in ("moderate", "medium"):
        return "Moderate"
    if care_level in ("hard", "high", "difficult"):
        return "Difficult"

    score = 0
    watering = plan.watering.frequency.lower()
    if "daily" in watering:
        score += 2
    elif "weekly" in watering:
        score += 1
    if "60" in plan.humidity.range:
        score += 1
    if "direct" in plan.light.level.lower():
        score += 1

    if score <= 1:
        return "Easy"
    if score <= 3:
        return "Moderate"
    return "Difficult"


def is_pet_safe(scientific_name: str) -> bool:
    """False for species on the common toxic-to-pets list."""
    name = (scientific_name or "").lower()
    return not any(toxic in name for toxic in TOXIC_TO_PETS)


# =============================================================================
# NORMALISATION
# =============================================================================

def _clean_section(model: Type[BaseModel], raw: Any) -> BaseModel:
    """Keep only usable values; every other field takes the model's fallback."""
    if not isinstance(raw, dict):
        return model()

    values: Dict[str, Any] = {}
    for name, field in model.model_fields.items():
        value = raw.get(name)
        if field.annotation is str:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)
            if isinstance(value, str) and value.strip():
                values[name] = value.strip()
        elif isinstance(value, list):
            items = [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
            if items:
                values[name] = items
    return model(**values)


def _common_issues(raw: Any, health: Optional[HealthAssessment]) -> List[CommonIssue]:
    issues: List[CommonIssue] = []
    seen = set()

    for finding in (health.findings if health else []):
        issues.append(_clean_issue({
            "issue": finding.name,
            "symptoms": finding.description,
            "solution": finding.remedy,
        }))
        seen.add(finding.name.lower())

    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        name = item.get("issue")
        if not isinstance(name, str) or not name.strip() or name.strip().lower() in seen:
            continue
        issues.append(_clean_issue(item))
        seen.add(name.strip().lower())

    return issues


def _clean_issue(raw: Dict[str, Any]) -> CommonIssue:
    return CommonIssue(
        issue=str(raw["issue"]).strip(),
        **{
            k: raw[k].strip() for k in ("symptoms", "solution")
            if isinstance(raw.get(k), str) and raw[k].strip()
        },
    )


class CarePlanSynthesizer:
    """Merges identification, catalog and health into one CarePlan."""

    def __init__(self, generative_provider: GenerativeProvider):
        self.generative_provider = generative_provider

    def build_prompt(
        self,
        identification: IdentificationResult,
        catalog: CatalogRecord,
        health: Optional[HealthAssessment],
        language: str,
    ) -> str:
        species = identification.best
        context = {
            "identification": {
                "scientific_name": species.scientific_name,
                "common_name": species.common_name,
                "confidence": round(species.confidence, 3),
            },
            "catalog": catalog.model_dump(exclude={"provider_id", "error"}, mode="json"),
            "health_findings": [
                f.model_dump(include={"kind", "name", "severity"}) for f in (health.findings if health else [])
            ],
        }
        return (
            "Based on the plant identification, catalog information and health findings below, "
            "create a comprehensive care plan with specific, actionable advice for this plant.\n\n"
            f"{json.dumps(context, indent=2, ensure_ascii=False)}\n\n"
            f"Write every text field in the language with code '{language}'. "
            "Give watering and fertilizer frequencies in plain terms such as 'every 7 days' or 'monthly'."
        )

    @log_stage("care_plan")
    async def synthesize(
        self,
        caller_id: str,
        identification: IdentificationResult,
        catalog: CatalogRecord,
        health: Optional[HealthAssessment] = None,
        language: str = "en",
    ) -> CarePlan:
        """
        Generate and normalise a care plan.

        Args:
            caller_id: Identity charged for the call
            identification: Accepted identification
            catalog: Catalog record (may be a placeholder)
            health: Health assessment, if available
            language: Output language

        Returns:
            CarePlan with all required sections populated

        Raises:
            ProviderError: The generative provider failed
        """
        prompt = self.build_prompt(identification, catalog, health, language)
        data = await self.generative_provider.generate_json(
            caller_id, prompt, response_schema=CARE_PLAN_SCHEMA
        )
        return self.normalize(data, identification, catalog, health)

    def normalize(
        self,
        data: Dict[str, Any],
        identification: IdentificationResult,
        catalog: CatalogRecord,
        health: Optional[HealthAssessment] = None,
    ) -> CarePlan:
        """Map raw provider output onto a fully populated CarePlan."""
        data = data if isinstance(data, dict) else {}
        missing = [s for s in REQUIRED_SECTIONS if not isinstance(data.get(s), dict)]
        if missing:
            logger.info("Care plan sections filled with fallbacks", sections=missing)

        sections = {name: _clean_section(model, data.get(name)) for name, model in SECTION_MODELS.items()}
        species = identification.best

        plan = CarePlan(
            **sections,
            common_issues=_common_issues(data.get("common_issues"), health),
            seasonal_care=_clean_section(SeasonalCare, data.get("seasonal_care")),
            plant_info=PlantInfo(
                scientific_name=species.scientific_name,
                common_name=identification.localized_common_name or species.common_name,
                family=catalog.family or UNKNOWN,
                pet_safe=is_pet_safe(species.scientific_name),
                growth_rate=catalog.growth_rate or "Medium",
            ),
        )
        plan.plant_info.difficulty = assess_difficulty(plan, catalog)
        plan.care_reminders = derive_reminders(plan)
        return plan
