# 📄 File: app/modules/plant_analysis/domain/models/identification.py
# 🧭 Purpose (Layman Explanation):
# Describes the photos a user sends in and the app's best guess at which plant is in them,
# including how sure it is and other plants it might be.
# 🧪 Purpose (Technical Summary):
# Pydantic domain models for the analysis input (ImagePayload, AnalysisRequest), the quality
# gate verdict and the species identification output (SpeciesHypothesis, IdentificationResult).
# 🔗 Dependencies:
# pydantic, base64, uuid
# 🔄 Connected Modules / Calls From:
# Identify endpoint, quality gate, species identifier, care plan synthesizer, pipeline controller

import base64
import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImagePayload(BaseModel):
    """One submitted photo, kept in memory for the duration of a request."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    def to_data_uri(self) -> str:
        """Encode as a data URI, the format Plant.id expects."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class AnalysisRequest(BaseModel):
    """
    A single analysis request. Ephemeral: never persisted past the request.

    Images keep their submission order; the first one is treated as the
    primary photo by providers that only look at one image.
    """

    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    images: List[ImagePayload]
    language: str = "en"

    @field_validator("images")
    @classmethod
    def validate_image_count(cls, v):
        """Between one and three images"""
        if not 1 <= len(v) <= 3:
            raise ValueError("An analysis needs between 1 and 3 images")
        return v

    @field_validator("language")
    @classmethod
    def normalize_language(cls, v):
        """Keep the primary subtag only (pt-BR -> pt)"""
        v = (v or "en").strip().lower().replace("_", "-")
        return v.split("-")[0] or "en"


class QualityAssessment(BaseModel):
    """Verdict of the image quality gate."""

    suitable: bool
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0)
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    checked_remotely: bool = True


class SpeciesHypothesis(BaseModel):
    """A candidate species with a confidence clamped to [0, 1]."""

    scientific_name: str
    common_name: Optional[str] = None
    common_names: List[str] = Field(default_factory=list)
    confidence: float = 0.0
    provider_id: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        """Clamp provider probabilities into [0, 1]"""
        try:
            v = float(v)
        except (TypeError, ValueError):
            return 0.0
        if v != v:  # NaN
            return 0.0
        return min(1.0, max(0.0, v))

    @property
    def genus(self) -> str:
        return self.scientific_name.split(" ")[0] if self.scientific_name else ""

    @property
    def display_name(self) -> str:
        return self.common_name or self.scientific_name


class IdentificationResult(BaseModel):
    """Best hypothesis, ranked alternatives and localised names."""

    best: SpeciesHypothesis
    alternatives: List[SpeciesHypothesis] = Field(default_factory=list)
    localized_names: Dict[str, str] = Field(default_factory=dict)
    localized_common_name: Optional[str] = None
    is_plant_probability: Optional[float] = None

    @property
    def confidence(self) -> float:
        return self.best.confidence
