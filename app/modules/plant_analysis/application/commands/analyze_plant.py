# 📄 File: app/modules/plant_analysis/application/commands/analyze_plant.py
# 🧭 Purpose (Layman Explanation):
# The "analyse my plant" request as it travels from the upload form into the diagnosis pipeline.
#
# 🧪 Purpose (Technical Summary):
# Command object carrying the caller identity, the validated images and the language, converted
# to the domain AnalysisRequest by the pipeline handler.
#
# 🔗 Dependencies:
# - pydantic for command validation
# - plant_analysis domain models (ImagePayload, AnalysisRequest)
#
# 🔄 Connected Modules / Calls From:
# - app.modules.plant_analysis.presentation.api.v1.identify
# - app.modules.plant_analysis.application.handlers.analysis_pipeline

from typing import List, Optional

from pydantic import BaseModel, Field

from app.modules.plant_analysis.domain.models.identification import AnalysisRequest, ImagePayload


class AnalyzePlantCommand(BaseModel):
    """Command for running one plant analysis."""

    user_id: str = Field(..., min_length=1, description="Caller identity")
    images: List[ImagePayload] = Field(..., min_length=1, max_length=3)
    language: str = Field(default="en", description="Preferred language code")
    request_id: Optional[str] = None

    def to_request(self) -> AnalysisRequest:
        """Build the ephemeral domain request."""
        data = {"user_id": self.user_id, "images": self.images, "language": self.language}
        if self.request_id:
            data["request_id"] = self.request_id
        return AnalysisRequest(**data)
