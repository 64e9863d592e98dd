"""Domain services for plant analysis."""

from .care_plan_synthesizer import CarePlanSynthesizer, derive_reminders, parse_interval_days
from .catalog_enricher import CatalogEnricher, catalog_cache_key, normalize_name
from .health_assessor import HealthAssessor
from .image_quality_gate import ImageQualityGate
from .plant_names import PlantNameLocalizer
from .species_identifier import SpeciesIdentifier
from .usage_ledger import UsageLedger

__all__ = [
    "CarePlanSynthesizer",
    "derive_reminders",
    "parse_interval_days",
    "CatalogEnricher",
    "catalog_cache_key",
    "normalize_name",
    "HealthAssessor",
    "ImageQualityGate",
    "PlantNameLocalizer",
    "SpeciesIdentifier",
    "UsageLedger",
]
