"""AI analytics request/response schemas.

Payload keys are camelCase to match the admin dashboard client.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.analytics_bc.ai.domain.schemas import (
    DemandPrediction,
    ScheduleOptimization,
    StrategicRecommendation,
    SystemInsight,
    TrendPrediction,
)


class AIAnalyticsRequest(BaseModel):
    """Body of POST /ai/analytics."""
    action: str = Field(
        description="demand-predictions, schedule-optimizations, insights, trend-predictions, recommendations or chat"
    )
    data: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Analytics snapshot: routes, shuttles, users, routeAssignments, boardingRecords, counters",
    )
    question: Optional[str] = Field(default=None, description="Free-text question (chat only)")


class _OutcomeResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source: str  # "ai" or "fallback"
    fallback_reason: Optional[str] = None


class DemandPredictionsResponse(_OutcomeResponse):
    demand_predictions: List[DemandPrediction]


class ScheduleOptimizationsResponse(_OutcomeResponse):
    schedule_optimizations: List[ScheduleOptimization]


class InsightsResponse(_OutcomeResponse):
    insights: List[SystemInsight]


class TrendPredictionsResponse(_OutcomeResponse):
    trend_predictions: List[TrendPrediction]


class RecommendationsResponse(_OutcomeResponse):
    recommendations: List[StrategicRecommendation]


class ChatResponse(_OutcomeResponse):
    response: str


class AIStatusResponse(BaseModel):
    """Daily AI budget and backend state."""
    ai_configured: bool
    model: str
    daily_limit: int
    used: int
    remaining: int
    window_start: Optional[str] = None
    resets_at: Optional[str] = None
