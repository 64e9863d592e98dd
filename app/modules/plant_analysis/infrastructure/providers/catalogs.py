# 📄 File: app/modules/plant_analysis/infrastructure/providers/catalogs.py
# 🧭 Purpose (Layman Explanation):
# Looks a plant up in the Perenual and Trefle plant encyclopedias to learn its family, how hard
# it is to grow and how much water and sun it needs.
#
# 🧪 Purpose (Technical Summary):
# CatalogProvider adapters for Perenual (species-list search) and Trefle (plants search). An
# empty result set or a missing credential raises ProviderUnavailableError, and a row that cannot
# be mapped raises MalformedProviderResponseError, so the enricher moves on to the next provider.
#
# 🔗 Dependencies:
# - app.shared.infrastructure.external_apis (APIClient over aiohttp, ThrottledClient)
# - CatalogRecord domain model
#
# 🔄 Connected Modules / Calls From:
# - CatalogEnricher (ordered provider list)
# - Presentation dependency container (construction)

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.shared.core.exceptions import MalformedProviderResponseError, ProviderUnavailableError
from app.shared.infrastructure.external_apis.api_client import APIClient
from app.shared.infrastructure.external_apis.throttled_client import ThrottledClient
from app.shared.utils.logging import get_logger
from app.shared.utils.validators import string_list

from ...domain.models.catalog import UNKNOWN, CatalogRecord, GrowthHabit
from ...domain.repositories.providers import CatalogProvider

logger = get_logger(__name__)


def _first_row(data: Dict[str, Any], provider: str, scientific_name: str) -> Dict[str, Any]:
    rows = data.get("data")
    if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
        raise ProviderUnavailableError(
            f"No plant found in {provider} for '{scientific_name}'",
            provider=provider,
        )
    return rows[0]


class _ThrottledCatalogProvider(CatalogProvider):
    """Shared plumbing: credential check and throttled GET."""

    def __init__(self, client: APIClient, throttle: ThrottledClient):
        self.client = client
        self.throttle = throttle

    async def _search(self, endpoint: str, scientific_name: str, caller_id: str) -> Dict[str, Any]:
        if not self.client.api_key:
            raise ProviderUnavailableError(f"{self.name} is not configured", provider=self.name)
        logger.debug(f"Searching {self.name}", provider=self.name, scientific_name=scientific_name)
        return await self.throttle.call(
            caller_id,
            lambda: self.client.get(endpoint, params={"q": scientific_name}),
        )

    def _record(self, plant: Dict[str, Any], scientific_name: str) -> CatalogRecord:
        """Map a row, turning rows of an unexpected shape into MalformedProviderResponseError."""
        try:
            return self.to_record(plant, scientific_name)
        except (ValidationError, KeyError, TypeError, ValueError, IndexError) as e:
            logger.warning(
                f"Unexpected {self.name} row for '{scientific_name}'",
                provider=self.name,
                error_type=type(e).__name__,
                row_keys=sorted(plant),
            )
            raise MalformedProviderResponseError(
                f"Could not map {self.name} row: {e}",
                provider=self.name,
                raw_response=repr(plant)[:500],
            ) from e


class PerenualCatalogProvider(_ThrottledCatalogProvider):
    """Perenual species catalog (primary)."""

    name = "perenual"

    async def fetch(self, scientific_name: str, caller_id: str) -> CatalogRecord:
        data = await self._search("species-list", scientific_name, caller_id)
        plant = _first_row(data, self.name, scientific_name)
        return self._record(plant, scientific_name)

    @staticmethod
    def to_record(plant: Dict[str, Any], scientific_name: str) -> CatalogRecord:
        """Map a Perenual species row onto a CatalogRecord."""
        names = plant.get("scientific_name")
        if isinstance(names, list):
            name = str(names[0]) if names else scientific_name
        else:
            name = str(names or scientific_name)

        sunlight = plant.get("sunlight")
        if isinstance(sunlight, str):
            sunlight = [sunlight]

        return CatalogRecord(
            source=PerenualCatalogProvider.name,
            scientific_name=name,
            common_name=plant.get("common_name"),
            family=plant.get("family") or UNKNOWN,
            genus=plant.get("genus"),
            care_level=plant.get("care_level") or UNKNOWN,
            watering=plant.get("watering") or UNKNOWN,
            sunlight=string_list(sunlight),
            growth_habit=GrowthHabit(type=plant.get("type"), cycle=plant.get("cycle")),
            growth_rate=plant.get("growth_rate"),
            hardiness=_hardiness(plant.get("hardiness")),
            provider_id=str(plant["id"]) if plant.get("id") is not None else None,
        )


class TrefleCatalogProvider(_ThrottledCatalogProvider):
    """Trefle botanical catalog (fallback). Carries no care data."""

    name = "trefle"

    async def fetch(self, scientific_name: str, caller_id: str) -> CatalogRecord:
        data = await self._search("plants/search", scientific_name, caller_id)
        plant = _first_row(data, self.name, scientific_name)
        return self._record(plant, scientific_name)

    @staticmethod
    def to_record(plant: Dict[str, Any], scientific_name: str) -> CatalogRecord:
        """Map a Trefle plant row onto a CatalogRecord."""
        return CatalogRecord(
            source=TrefleCatalogProvider.name,
            scientific_name=plant.get("scientific_name") or scientific_name,
            common_name=plant.get("common_name"),
            family=plant.get("family") or plant.get("family_common_name") or UNKNOWN,
            genus=plant.get("genus"),
            provider_id=str(plant["id"]) if plant.get("id") is not None else None,
        )


def _hardiness(raw: Any) -> Optional[str]:
    """Perenual zones {"min": "5", "max": "9"} -> "5-9"."""
    if not isinstance(raw, dict):
        return None
    zones: List[str] = [str(raw[k]) for k in ("min", "max") if raw.get(k)]
    if not zones:
        return None
    if len(zones) == 2 and zones[0] == zones[1]:
        return zones[0]
    return "-".join(zones)
