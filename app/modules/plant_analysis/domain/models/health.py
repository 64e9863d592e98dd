# 📄 File: app/modules/plant_analysis/domain/models/health.py
# 🧭 Purpose (Layman Explanation):
# Records what is wrong with a plant (diseases, bugs, missing nutrients or stress), how serious
# each problem is, and what to do about it.
# 🧪 Purpose (Technical Summary):
# Health assessment domain models: HealthFinding with kind/severity enums, the ordered
# HealthAssessment, and the optional treatment HealthAdvice.
# 🔗 Dependencies:
# pydantic, enum
# 🔄 Connected Modules / Calls From:
# Health assessor, Plant.id and Gemini providers, care plan synthesizer, pipeline controller

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FindingKind(str, Enum):
    """Kind of health problem"""
    DISEASE = "disease"
    PEST = "pest"
    DEFICIENCY = "deficiency"
    STRESS = "stress"


class Severity(str, Enum):
    """How urgently a finding needs attention"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_probability(cls, probability: float) -> "Severity":
        if probability >= 0.7:
            return cls.HIGH
        if probability >= 0.4:
            return cls.MEDIUM
        return cls.LOW


class HealthFinding(BaseModel):
    """One detected problem."""

    model_config = ConfigDict(use_enum_values=True)

    kind: FindingKind
    name: str
    severity: Severity
    probability: float = Field(default=0.0, ge=0.0, le=1.0)
    description: str = ""
    remedy: Optional[str] = None
    common_names: List[str] = Field(default_factory=list)


class HealthAssessment(BaseModel):
    """Findings ordered by probability, highest first. No findings and healthy is valid."""

    is_healthy: bool = True
    health_probability: Optional[float] = None
    findings: List[HealthFinding] = Field(default_factory=list)

    @field_validator("findings")
    @classmethod
    def order_findings(cls, v):
        return sorted(v, key=lambda f: f.probability, reverse=True)

    @classmethod
    def healthy(cls) -> "HealthAssessment":
        return cls(is_healthy=True, health_probability=1.0, findings=[])


class HealthAdvice(BaseModel):
    """Treatment guidance produced for a set of findings."""

    overall_health_status: str = "unknown"
    urgent_actions_needed: bool = False
    general_recommendations: List[str] = Field(default_factory=list)


class DiseaseSuggestion(BaseModel):
    """Provider-neutral health suggestion before classification."""

    name: str
    probability: float = 0.0
    description: str = ""
    common_names: List[str] = Field(default_factory=list)
    classification: List[str] = Field(default_factory=list)
    treatment: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("probability", mode="before")
    @classmethod
    def clamp_probability(cls, v):
        try:
            v = float(v)
        except (TypeError, ValueError):
            return 0.0
        return min(1.0, max(0.0, v))


class HealthReport(BaseModel):
    """What a health provider returned for a set of images."""

    is_healthy: bool = True
    health_probability: Optional[float] = None
    suggestions: List[DiseaseSuggestion] = Field(default_factory=list)
