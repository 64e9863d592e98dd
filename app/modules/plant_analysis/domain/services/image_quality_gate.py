# 📄 File: app/modules/plant_analysis/domain/services/image_quality_gate.py
# 🧭 Purpose (Layman Explanation):
# Looks at the photos first and turns away blurry, broken or tiny ones before the app pays for
# any plant recognition, telling the user how to take a better picture.
# 🧪 Purpose (Technical Summary):
# Two-step gate: a local Pillow decode/resolution pre-check, then one structured-output call to
# the fast generative model. Provider outages are permissive; provider quota exhaustion propagates.
# 🔗 Dependencies:
# Pillow (via app.shared.utils.validators), GenerativeProvider port, shared exceptions
# 🔄 Connected Modules / Calls From:
# Pipeline controller

from typing import Any, Dict, List, Sequence

from app.shared.core.exceptions import LowImageQualityError, ProviderUnavailableError
from app.shared.utils.logging import get_logger, log_stage
from app.shared.utils.validators import inspect_image, strict_bool, string_list

from ..models.identification import ImagePayload, QualityAssessment
from ..repositories.providers import GenerativeProvider

logger = get_logger(__name__)

QUALITY_PROMPT = (
    "Assess the quality of these plant images for identification purposes. "
    "Are they clear, well-lit, and showing sufficient plant details? "
    "Respond with JSON indicating if they're suitable, a quality_score between 0 and 1, "
    "any issues found and suggestions for improvement."
)

QUALITY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "suitable": {"type": "boolean"},
        "quality_score": {"type": "number"},
        "issues": {"type": "array", "items": {"type": "string"}},
        "suggestions": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["suitable", "quality_score"],
}

# Score reported when the remote check could not run
PERMISSIVE_SCORE = 0.7


class ImageQualityGate:
    """
    Decides whether a set of photos is worth sending to paid inference.

    The gate runs once per request, before any per-image paid call.
    """

    def __init__(self, generative_provider: GenerativeProvider, min_dimension: int = 64):
        self.generative_provider = generative_provider
        self.min_dimension = min_dimension

    def precheck(self, images: Sequence[ImagePayload]) -> QualityAssessment:
        """
        Local checks that cost nothing: every image decodes and is large enough.

        Args:
            images: Submitted photos

        Returns:
            QualityAssessment; unsuitable when any image fails
        """
        issues: List[str] = []
        suggestions: List[str] = []

        for index, image in enumerate(images, start=1):
            inspection = inspect_image(image.data)
            if not inspection.decodable:
                issues.append(f"Image {index} could not be read as a picture")
                suggestions.append("Upload a valid JPEG or PNG photo")
                continue

            if min(inspection.width, inspection.height) < self.min_dimension:
                issues.append(
                    f"Image {index} is too small ({inspection.width}x{inspection.height})"
                )
                suggestions.append("Take the photo closer to the plant or use a higher resolution")

            if inspection.mime_type and inspection.mime_type != image.mime_type:
                logger.debug(
                    "Declared image type differs from decoded format",
                    declared=image.mime_type,
                    decoded=inspection.mime_type,
                )

        if issues:
            return QualityAssessment(
                suitable=False,
                quality_score=0.0,
                issues=issues,
                suggestions=list(dict.fromkeys(suggestions)),
                checked_remotely=False,
            )
        return QualityAssessment(suitable=True, quality_score=1.0, checked_remotely=False)

    @log_stage("quality_gate")
    async def assess(self, caller_id: str, images: Sequence[ImagePayload]) -> QualityAssessment:
        """
        Assess photo suitability.

        Args:
            caller_id: Identity charged for the remote check
            images: Submitted photos

        Returns:
            QualityAssessment with suitable, issues and suggestions

        Raises:
            ProviderQuotaExceededError: Remote check quota exhausted
        """
        local = self.precheck(images)
        if not local.suitable:
            logger.info("Images rejected by local pre-check", issues=local.issues)
            return local

        try:
            data = await self.generative_provider.generate_json(
                caller_id,
                QUALITY_PROMPT,
                response_schema=QUALITY_SCHEMA,
                images=images,
                fast=True,
            )
        except ProviderUnavailableError as e:
            logger.warning(
                "Image quality check unavailable, admitting images",
                provider=e.provider,
                error_code=e.error_code,
            )
            return QualityAssessment(
                suitable=True,
                quality_score=PERMISSIVE_SCORE,
                checked_remotely=False,
            )

        return self._parse(data)

    async def ensure_suitable(self, caller_id: str, images: Sequence[ImagePayload]) -> QualityAssessment:
        """
        Assess photos and refuse unsuitable ones.

        Raises:
            LowImageQualityError: Photos are unsuitable; carries issues and suggestions
        """
        assessment = await self.assess(caller_id, images)
        if not assessment.suitable:
            raise LowImageQualityError(issues=assessment.issues, suggestions=assessment.suggestions)
        return assessment

    @staticmethod
    def _parse(data: Dict[str, Any]) -> QualityAssessment:
        try:
            score = float(data.get("quality_score") or 0.0)
        except (TypeError, ValueError):
            score = 0.0

        return QualityAssessment(
            suitable=strict_bool(data.get("suitable")),
            quality_score=min(1.0, max(0.0, score)),
            issues=string_list(data.get("issues")),
            suggestions=string_list(data.get("suggestions")),
        )

