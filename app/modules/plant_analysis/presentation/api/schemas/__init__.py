# 📄 File: app/modules/plant_analysis/presentation/api/schemas/__init__.py
# 🧭 Purpose (Layman Explanation):
# Collects the data formats the plant analysis endpoints answer with.
# 🧪 Purpose (Technical Summary):
# Pydantic response schemas for plant analysis endpoints.
# 🔗 Dependencies:
# pydantic, plant_analysis domain models
# 🔄 Connected Modules / Calls From:
# plant_analysis presentation api v1

from .analysis_schemas import (
    REJECTION_STATUS,
    AnalysisResponse,
    ErrorDetail,
    ErrorResponse,
    FreeTierStatusResponse,
    RejectionResponse,
    outcome_to_response,
)

__all__ = [
    "REJECTION_STATUS",
    "AnalysisResponse",
    "ErrorDetail",
    "ErrorResponse",
    "FreeTierStatusResponse",
    "RejectionResponse",
    "outcome_to_response",
]
