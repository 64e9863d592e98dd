# 📄 File: app/modules/plant_analysis/domain/models/catalog.py
# 🧭 Purpose (Layman Explanation):
# The background facts about a plant species (family, how hard it is to care for, water and
# sun needs) pulled from plant encyclopedias.
# 🧪 Purpose (Technical Summary):
# CatalogRecord domain model with a placeholder factory (source="basic") for when every
# catalog provider fails, and JSON round-tripping for the response cache.
# 🔗 Dependencies:
# pydantic
# 🔄 Connected Modules / Calls From:
# Catalog enricher, Perenual/Trefle providers, care plan synthesizer, pipeline controller

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

PLACEHOLDER_SOURCE = "basic"
UNKNOWN = "Unknown"


class GrowthHabit(BaseModel):
    """Plant type and life cycle (e.g. tree / perennial)"""
    type: Optional[str] = None
    cycle: Optional[str] = None


class CatalogRecord(BaseModel):
    """Taxonomic and care metadata for one scientific name."""

    source: str
    scientific_name: str
    common_name: Optional[str] = None
    family: str = UNKNOWN
    genus: Optional[str] = None
    care_level: str = UNKNOWN
    watering: str = UNKNOWN
    sunlight: List[str] = Field(default_factory=list)
    growth_habit: GrowthHabit = Field(default_factory=GrowthHabit)
    growth_rate: Optional[str] = None
    hardiness: Optional[str] = None
    provider_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.source == PLACEHOLDER_SOURCE

    @classmethod
    def placeholder(cls, scientific_name: str, error: str = "Catalog data unavailable") -> "CatalogRecord":
        """
        Minimal record used when no catalog provider could answer.

        Args:
            scientific_name: Name that was looked up
            error: Short note for consumers of the record

        Returns:
            CatalogRecord tagged source="basic" with Unknown fields
        """
        return cls(
            source=PLACEHOLDER_SOURCE,
            scientific_name=scientific_name,
            common_name=scientific_name,
            family=UNKNOWN,
            care_level=UNKNOWN,
            watering=UNKNOWN,
            sunlight=[UNKNOWN],
            growth_habit=GrowthHabit(type=UNKNOWN, cycle=UNKNOWN),
            error=error,
        )

    def to_cache_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_cache_payload(cls, payload: Dict[str, Any]) -> "CatalogRecord":
        return cls.model_validate(payload)
