# 📄 File: app/modules/plant_analysis/domain/models/pipeline.py
# 🧭 Purpose (Layman Explanation):
# Describes the steps a plant analysis goes through, the finished diagnosis, and the polite
# "we can't do this right now" answers users get when a check stops the analysis early.
# 🧪 Purpose (Technical Summary):
# Pipeline state machine (PipelineState + PipelineTrace with transition validation), the
# AnalysisResult aggregate and the reason-discriminated rejection payloads.
# 🔗 Dependencies:
# pydantic, enum, datetime, uuid
# 🔄 Connected Modules / Calls From:
# Pipeline controller, result store, identify endpoint

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .care_plan import CarePlan
from .catalog import CatalogRecord
from .health import HealthAdvice, HealthFinding
from .identification import IdentificationResult, QualityAssessment, SpeciesHypothesis
from .usage import FreeTierStatus


class PipelineState(str, Enum):
    """States of one analysis run"""
    ADMITTED = "admitted"
    QUALITY_CHECKED = "quality_checked"
    IDENTIFIED = "identified"
    ENRICHED = "enriched"
    CARE_PLANNED = "care_planned"
    HEALTH_ASSESSED = "health_assessed"
    COMPLETED = "completed"
    REJECTED_BY_USAGE = "rejected_by_usage"
    REJECTED_BY_QUALITY = "rejected_by_quality"
    REJECTED_BY_CONFIDENCE = "rejected_by_confidence"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    PipelineState.COMPLETED,
    PipelineState.REJECTED_BY_USAGE,
    PipelineState.REJECTED_BY_QUALITY,
    PipelineState.REJECTED_BY_CONFIDENCE,
    PipelineState.FAILED,
})

HAPPY_PATH = (
    PipelineState.ADMITTED,
    PipelineState.QUALITY_CHECKED,
    PipelineState.IDENTIFIED,
    PipelineState.ENRICHED,
    PipelineState.CARE_PLANNED,
    PipelineState.HEALTH_ASSESSED,
    PipelineState.COMPLETED,
)

# Gate rejections reachable from the state before the gate passes
_REJECTION_FROM = {
    PipelineState.REJECTED_BY_USAGE: None,
    PipelineState.REJECTED_BY_QUALITY: PipelineState.ADMITTED,
    PipelineState.REJECTED_BY_CONFIDENCE: PipelineState.QUALITY_CHECKED,
}


class PipelineTransition(BaseModel):
    state: PipelineState
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PipelineTrace(BaseModel):
    """Ordered record of the states one run went through."""

    request_id: str
    transitions: List[PipelineTransition] = Field(default_factory=list)
    failed_stage: Optional[str] = None

    @property
    def current(self) -> Optional[PipelineState]:
        return self.transitions[-1].state if self.transitions else None

    @property
    def states(self) -> List[PipelineState]:
        return [t.state for t in self.transitions]

    def _allowed(self, state: PipelineState) -> bool:
        current = self.current
        if current is not None and current.is_terminal:
            return False
        if state == PipelineState.FAILED:
            return True
        if state in _REJECTION_FROM:
            return current == _REJECTION_FROM[state]
        index = HAPPY_PATH.index(state)
        if index == 0:
            return current is None
        return current == HAPPY_PATH[index - 1]

    def advance(self, state: PipelineState) -> None:
        """
        Record a transition.

        Raises:
            ValueError: The transition would skip a state or leave a terminal state
        """
        if not self._allowed(state):
            raise ValueError(f"Illegal pipeline transition {self.current} -> {state}")
        self.transitions.append(PipelineTransition(state=state))


class AnalysisResult(BaseModel):
    """Unified output of a completed analysis."""

    analysis_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    language: str = "en"
    species: SpeciesHypothesis
    confidence: float
    identification: IdentificationResult
    quality: Optional[QualityAssessment] = None
    catalog: CatalogRecord
    care_plan: CarePlan
    health_findings: List[HealthFinding] = Field(default_factory=list)
    is_healthy: bool = True
    health_advice: Optional[HealthAdvice] = None
    free_tier_status: Optional[FreeTierStatus] = None
    is_free_identification: bool = False
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UsageExhaustedRejection(BaseModel):
    reason: Literal["usage_exhausted"] = "usage_exhausted"
    remaining_uses: int = 0
    days_left: int = 0
    message: str = "Free tier limit reached. Subscribe for unlimited plant analyses."


class LowImageQualityRejection(BaseModel):
    reason: Literal["low_image_quality"] = "low_image_quality"
    suggestions: List[str] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)
    message: str = "Image quality insufficient for identification"


class UnidentifiableRejection(BaseModel):
    reason: Literal["unidentifiable"] = "unidentifiable"
    message: str = "Unable to identify plant from the provided images. Try clearer photos of leaves or flowers."


Rejection = Union[UsageExhaustedRejection, LowImageQualityRejection, UnidentifiableRejection]
AnalysisOutcome = Union[AnalysisResult, UsageExhaustedRejection, LowImageQualityRejection, UnidentifiableRejection]
