# 📄 File: app/modules/plant_analysis/domain/repositories/providers.py
# 🧭 Purpose (Layman Explanation):
# Describes what the app needs from outside services (plant recognisers, plant encyclopedias and
# an AI writing assistant) without tying the rules to any one company.
# 🧪 Purpose (Technical Summary):
# Provider ports implemented by the infrastructure adapters. Every implementation routes its
# network calls through a ThrottledClient and raises the shared provider exceptions.
# 🔗 Dependencies:
# - abc (Abstract Base Classes)
# - plant_analysis domain models
# 🔄 Connected Modules / Calls From:
# - Domain services (quality gate, identifier, enricher, health assessor, care plan synthesizer)
# - Plant.id, Gemini, Perenual, Trefle adapters

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from app.modules.plant_analysis.domain.models.catalog import CatalogRecord
from app.modules.plant_analysis.domain.models.health import HealthReport
from app.modules.plant_analysis.domain.models.identification import ImagePayload, SpeciesHypothesis


class CatalogProvider(ABC):
    """Taxonomic/care metadata source for a scientific name."""

    name: str = "catalog"

    @abstractmethod
    async def fetch(self, scientific_name: str, caller_id: str) -> CatalogRecord:
        """
        Look up one species.

        Raises:
            ProviderUnavailableError: Network failure or empty result set
            ProviderQuotaExceededError: Daily quota exhausted
        """
        pass


class IdentificationProvider(ABC):
    """Image-based species and health recognition."""

    @abstractmethod
    async def identify(
        self,
        caller_id: str,
        images: Sequence[ImagePayload],
        language: str = "en",
    ) -> List[SpeciesHypothesis]:
        """Ranked species suggestions, best first. May be empty."""
        pass

    @abstractmethod
    async def assess_health(self, caller_id: str, images: Sequence[ImagePayload]) -> HealthReport:
        """Raw health suggestions for the images."""
        pass


class GenerativeProvider(ABC):
    """Structured-output text/vision model."""

    @abstractmethod
    async def generate_json(
        self,
        caller_id: str,
        prompt: str,
        response_schema: Optional[Dict[str, Any]] = None,
        images: Sequence[ImagePayload] = (),
        fast: bool = False,
    ) -> Dict[str, Any]:
        """
        Run a prompt and return the parsed JSON object.

        Args:
            caller_id: Identity charged for the call
            prompt: Instruction text
            response_schema: JSON schema the model must follow
            images: Optional images sent inline
            fast: Use the cheaper, faster model

        Raises:
            MalformedProviderResponseError: Output is not a JSON object
        """
        pass
