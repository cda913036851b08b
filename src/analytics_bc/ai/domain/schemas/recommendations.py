"""Structured outputs of the AI analytics pipeline.

Fields are snake_case in Python and camelCase on the wire, matching the
JSON the model is asked to produce.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

TIME_SLOT_PATTERN = r"^\d{2}:\d{2}-\d{2}:\d{2}$"
ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DemandPrediction(CamelModel):
    """Forecast of passenger volume for a route, time slot and date."""

    route_id: str = Field(description="Route identifier")
    route_name: str = Field(default="", description="Route display name")
    predicted_demand: int = Field(ge=0, description="Expected boardings in the slot")
    confidence: int = Field(ge=0, le=100, description="Confidence percentage 0-100")
    time_slot: str = Field(pattern=TIME_SLOT_PATTERN, description="Slot as HH:MM-HH:MM")
    date: str = Field(pattern=ISO_DATE_PATTERN, description="Target date YYYY-MM-DD")
    reasoning: str = Field(default="", description="Why this demand is expected")
    recommended_action: str = Field(default="", description="What operations should do")


class ScheduleOptimization(CamelModel):
    """Proposed revision of a route's departure times."""

    route_id: str
    route_name: str = ""
    current_schedule: List[str] = Field(default_factory=list)
    optimized_schedule: List[str] = Field(min_length=1)
    efficiency_gain: int = Field(ge=0, description="Estimated efficiency gain in percent")
    reasoning: str = ""
    implementation_steps: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _optimized_covers_current(self) -> "ScheduleOptimization":
        if self.current_schedule and len(self.optimized_schedule) < len(self.current_schedule):
            raise ValueError("optimizedSchedule must not drop departures from currentSchedule")
        return self


class SystemInsight(CamelModel):
    """Operational observation about the shuttle system."""

    type: Literal["success", "warning", "info", "recommendation"]
    title: str
    description: str
    priority: Literal["high", "medium", "low"] = "medium"
    action: Optional[str] = None


class TrendPrediction(CamelModel):
    """Seven-day forecast of a system-wide metric."""

    metric: str = Field(description="Metric name, e.g. Active Drivers")
    current_value: float = Field(ge=0)
    predicted_value: float = Field(ge=0)
    confidence: int = Field(ge=0, le=100, description="Confidence percentage 0-100")
    timeframe: str = "7 days"
    reasoning: str = ""


class StrategicRecommendation(CamelModel):
    """Longer-term change to fleet, routes, drivers or student experience."""

    category: str
    title: str
    description: str
    impact: Literal["high", "medium", "low"]
    effort: Literal["high", "medium", "low"]
    timeline: str = Field(default="", description="Immediate, 1-2 weeks, 1 month or Long-term")
    steps: List[str] = Field(default_factory=list)
