# 📄 File: app/modules/plant_analysis/presentation/api/schemas/analysis_schemas.py
# 🧭 Purpose (Layman Explanation):
# Defines exactly what the app sends back after a plant photo is analysed: the diagnosis, a
# polite refusal with tips, or how many free analyses remain.
#
# 🧪 Purpose (Technical Summary):
# Pydantic response schemas for the plant analysis endpoints. Wraps domain results and rejection
# payloads in a uniform envelope and maps each outcome to its HTTP status.
#
# 🔗 Dependencies:
# - pydantic for schema validation and serialization
# - plant_analysis domain models (AnalysisResult, rejections, FreeTierStatus)
#
# 🔄 Connected Modules / Calls From:
# - app.modules.plant_analysis.presentation.api.v1.identify
# - FastAPI automatic response serialization and OpenAPI generation

"""
Plant Analysis API Schemas

Response Schemas:
- AnalysisResponse: Completed analysis
- RejectionResponse: Usage, image quality or confidence rejection
- FreeTierStatusResponse: Caller's free-tier eligibility
- ErrorResponse: Shape of every error body
"""

from typing import Any, Dict, Optional, Union

from fastapi import status
from pydantic import BaseModel, ConfigDict, Field

from ....domain.models.pipeline import (
    AnalysisOutcome,
    AnalysisResult,
    LowImageQualityRejection,
    UnidentifiableRejection,
    UsageExhaustedRejection,
)
from ....domain.models.usage import FreeTierStatus

# Rejection reason -> HTTP status
REJECTION_STATUS = {
    "usage_exhausted": status.HTTP_402_PAYMENT_REQUIRED,
    "low_image_quality": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "unidentifiable": status.HTTP_422_UNPROCESSABLE_ENTITY,
}


class AnalysisResponse(BaseModel):
    """Envelope for a completed analysis."""

    success: bool = True
    analysis: AnalysisResult

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "analysis": {
                    "analysis_id": "0b9f5a4e-3f0e-4a4e-9d55-1e7c0e3c2b10",
                    "species": {"scientific_name": "Monstera deliciosa", "confidence": 0.93},
                    "message": "Analysis complete: your plant was identified as Swiss cheese plant.",
                },
            }
        }
    )


class RejectionResponse(BaseModel):
    """Envelope for a gate rejection; recoverable by the caller."""

    success: bool = False
    rejection: Union[UsageExhaustedRejection, LowImageQualityRejection, UnidentifiableRejection] = Field(
        ..., discriminator="reason"
    )


class FreeTierStatusResponse(BaseModel):
    """Free-tier eligibility of the caller."""

    user_id: str
    status: FreeTierStatus


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    status_code: int
    request_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Shape of every error body."""

    error: ErrorDetail


def outcome_to_response(outcome: AnalysisOutcome):
    """
    Wrap a pipeline outcome for the wire.

    Args:
        outcome: AnalysisResult or a rejection payload

    Returns:
        Tuple of (HTTP status code, response model)
    """
    if isinstance(outcome, AnalysisResult):
        return status.HTTP_200_OK, AnalysisResponse(analysis=outcome)
    return REJECTION_STATUS[outcome.reason], RejectionResponse(rejection=outcome)
