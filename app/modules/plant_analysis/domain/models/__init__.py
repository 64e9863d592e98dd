"""Domain models for plant analysis."""

from .care_plan import (
    GENERIC_FALLBACK,
    REQUIRED_SECTIONS,
    CarePlan,
    CareReminder,
    CommonIssue,
    FertilizerSection,
    HumiditySection,
    LightSection,
    PlantInfo,
    PruningSection,
    ReminderType,
    SeasonalCare,
    SoilSection,
    TemperatureSection,
    WateringSection,
)
from .catalog import PLACEHOLDER_SOURCE, CatalogRecord, GrowthHabit
from .health import (
    DiseaseSuggestion,
    FindingKind,
    HealthAdvice,
    HealthAssessment,
    HealthFinding,
    HealthReport,
    Severity,
)
from .identification import (
    AnalysisRequest,
    IdentificationResult,
    ImagePayload,
    QualityAssessment,
    SpeciesHypothesis,
)
from .pipeline import (
    AnalysisOutcome,
    AnalysisResult,
    LowImageQualityRejection,
    PipelineState,
    PipelineTrace,
    Rejection,
    UnidentifiableRejection,
    UsageExhaustedRejection,
)
from .subscription import PlanType, Subscription, SubscriptionStatus
from .usage import FreeTierStatus, UsageLedgerEntry, UsageReservation

__all__ = [
    "GENERIC_FALLBACK",
    "REQUIRED_SECTIONS",
    "CarePlan",
    "CareReminder",
    "CommonIssue",
    "FertilizerSection",
    "HumiditySection",
    "LightSection",
    "PlantInfo",
    "PruningSection",
    "ReminderType",
    "SeasonalCare",
    "SoilSection",
    "TemperatureSection",
    "WateringSection",
    "PLACEHOLDER_SOURCE",
    "CatalogRecord",
    "GrowthHabit",
    "DiseaseSuggestion",
    "FindingKind",
    "HealthReport",
    "HealthAdvice",
    "HealthAssessment",
    "HealthFinding",
    "Severity",
    "AnalysisRequest",
    "IdentificationResult",
    "ImagePayload",
    "QualityAssessment",
    "SpeciesHypothesis",
    "AnalysisOutcome",
    "AnalysisResult",
    "LowImageQualityRejection",
    "PipelineState",
    "PipelineTrace",
    "Rejection",
    "UnidentifiableRejection",
    "UsageExhaustedRejection",
    "PlanType",
    "Subscription",
    "SubscriptionStatus",
    "FreeTierStatus",
    "UsageLedgerEntry",
    "UsageReservation",
]
