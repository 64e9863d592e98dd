# 📄 File: app/modules/plant_analysis/domain/models/care_plan.py
# 🧭 Purpose (Layman Explanation):
# The personalised care guide a user receives: how to water, light, feed and prune the plant,
# what problems to watch for, and when to be reminded to do each task.
# 🧪 Purpose (Technical Summary):
# CarePlan aggregate with the seven required sections, common issues, seasonal notes, plant
# summary and derived reminders. Every section field has a non-null generic default.
# 🔗 Dependencies:
# pydantic, enum, datetime
# 🔄 Connected Modules / Calls From:
# Care plan synthesizer, Gemini provider, pipeline controller, identify endpoint

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

GENERIC_FALLBACK = "Follow general care guidelines for this type of plant"

REQUIRED_SECTIONS = (
    "watering",
    "light",
    "humidity",
    "temperature",
    "soil",
    "fertilizer",
    "pruning",
)


class WateringSection(BaseModel):
    frequency: str = "Water when the top inch of soil is dry"
    description: str = GENERIC_FALLBACK
    schedule: str = GENERIC_FALLBACK


class LightSection(BaseModel):
    level: str = "Bright, indirect light"
    description: str = GENERIC_FALLBACK
    placement: str = GENERIC_FALLBACK


class HumiditySection(BaseModel):
    range: str = "40-60%"
    description: str = GENERIC_FALLBACK
    tips: List[str] = Field(default_factory=lambda: [GENERIC_FALLBACK])


class TemperatureSection(BaseModel):
    range: str = "18-24°C (65-75°F)"
    description: str = GENERIC_FALLBACK
    seasonal_notes: str = GENERIC_FALLBACK


class SoilSection(BaseModel):
    type: str = "Well-draining potting mix"
    details: str = GENERIC_FALLBACK
    repotting: str = GENERIC_FALLBACK


class FertilizerSection(BaseModel):
    type: str = "Balanced liquid fertilizer"
    frequency: str = "Monthly during the growing season"
    details: str = GENERIC_FALLBACK


class PruningSection(BaseModel):
    frequency: str = "As needed"
    details: str = GENERIC_FALLBACK
    tools: List[str] = Field(default_factory=lambda: ["Clean, sharp pruning shears"])


class CommonIssue(BaseModel):
    issue: str
    symptoms: str = GENERIC_FALLBACK
    solution: str = GENERIC_FALLBACK


class SeasonalCare(BaseModel):
    spring: str = GENERIC_FALLBACK
    summer: str = GENERIC_FALLBACK
    fall: str = GENERIC_FALLBACK
    winter: str = GENERIC_FALLBACK


class ReminderType(str, Enum):
    WATERING = "watering"
    FERTILIZING = "fertilizing"
    INSPECTION = "inspection"
    CLEANING = "cleaning"


class CareReminder(BaseModel):
    """A recurring task derived from the plan's frequency text."""

    model_config = ConfigDict(use_enum_values=True)

    type: ReminderType
    interval_days: int = Field(ge=1)
    message: str

    @property
    def interval(self) -> str:
        return "daily" if self.interval_days == 1 else f"{self.interval_days}d"


class PlantInfo(BaseModel):
    common_name: Optional[str] = None
    scientific_name: str
    family: str = "Unknown"
    difficulty: str = "Moderate"
    pet_safe: bool = True
    mature_size: str = "Varies"
    growth_rate: str = "Medium"


class CarePlan(BaseModel):
    """Complete care plan. All seven required sections are always populated."""

    watering: WateringSection = Field(default_factory=WateringSection)
    light: LightSection = Field(default_factory=LightSection)
    humidity: HumiditySection = Field(default_factory=HumiditySection)
    temperature: TemperatureSection = Field(default_factory=TemperatureSection)
    soil: SoilSection = Field(default_factory=SoilSection)
    fertilizer: FertilizerSection = Field(default_factory=FertilizerSection)
    pruning: PruningSection = Field(default_factory=PruningSection)
    common_issues: List[CommonIssue] = Field(default_factory=list)
    seasonal_care: SeasonalCare = Field(default_factory=SeasonalCare)
    care_reminders: List[CareReminder] = Field(default_factory=list)
    plant_info: PlantInfo
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
