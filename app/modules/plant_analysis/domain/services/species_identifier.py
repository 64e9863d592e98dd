# 📄 File: app/modules/plant_analysis/domain/services/species_identifier.py
# 🧭 Purpose (Layman Explanation):
# Works out which plant is in the photos and how sure the app is. If it is not sure enough, it
# says so instead of guessing.
# 🧪 Purpose (Technical Summary):
# Maps 1-3 images to a ranked SpeciesHypothesis via the identification provider, enforces the
# acceptance threshold and attaches localised names.
# 🔗 Dependencies:
# IdentificationProvider port, PlantNameLocalizer, shared exceptions
# 🔄 Connected Modules / Calls From:
# Pipeline controller

from typing import Sequence

from app.shared.core.exceptions import UnidentifiableError
from app.shared.utils.logging import get_logger, log_stage

from ..models.identification import IdentificationResult, ImagePayload
from ..repositories.providers import IdentificationProvider
from .plant_names import PlantNameLocalizer

logger = get_logger(__name__)

MAX_ALTERNATIVES = 4


class SpeciesIdentifier:
    """Species identification with a confidence floor."""

    def __init__(
        self,
        provider: IdentificationProvider,
        confidence_threshold: float = 0.1,
        localizer: PlantNameLocalizer = None,
    ):
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ValueError("Confidence threshold must be within [0, 1]")
        self.provider = provider
        self.confidence_threshold = confidence_threshold
        self.localizer = localizer or PlantNameLocalizer()

    @log_stage("identification")
    async def identify(
        self,
        caller_id: str,
        images: Sequence[ImagePayload],
        language: str = "en",
    ) -> IdentificationResult:
        """
        Identify the species in the images.

        Args:
            caller_id: Identity charged for the call
            images: 1-3 photos
            language: Language for localised names

        Returns:
            IdentificationResult with the best hypothesis and up to four alternatives

        Raises:
            UnidentifiableError: No suggestion, or best confidence below the threshold
        """
        suggestions = await self.provider.identify(caller_id, images, language)
        if not suggestions:
            logger.info("Identification returned no suggestions")
            raise UnidentifiableError()

        ranked = sorted(suggestions, key=lambda s: s.confidence, reverse=True)
        best = ranked[0]

        if best.confidence < self.confidence_threshold:
            logger.info(
                "Identification below acceptance threshold",
                species=best.scientific_name,
                confidence=best.confidence,
                threshold=self.confidence_threshold,
            )
            raise UnidentifiableError(confidence=best.confidence)

        names = self.localizer.localize(best.scientific_name, language)
        logger.info(
            "Plant identified",
            species=best.scientific_name,
            confidence=best.confidence,
        )
        return IdentificationResult(
            best=best,
            alternatives=ranked[1:1 + MAX_ALTERNATIVES],
            localized_names=names.alternatives,
            localized_common_name=names.primary if names.primary != best.scientific_name else best.common_name,
        )
