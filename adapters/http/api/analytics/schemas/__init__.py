"""Centralized API schemas for AI analytics endpoints."""

from .ai_schemas import (
    AIAnalyticsRequest,
    AIStatusResponse,
    ChatResponse,
    DemandPredictionsResponse,
    InsightsResponse,
    RecommendationsResponse,
    ScheduleOptimizationsResponse,
    TrendPredictionsResponse,
)

__all__ = [
    "AIAnalyticsRequest",
    "AIStatusResponse",
    "ChatResponse",
    "DemandPredictionsResponse",
    "InsightsResponse",
    "RecommendationsResponse",
    "ScheduleOptimizationsResponse",
    "TrendPredictionsResponse",
]
