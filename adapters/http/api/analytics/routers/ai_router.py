import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from adapters.http.api.analytics.schemas import (
    AIAnalyticsRequest,
    AIStatusResponse,
    ChatResponse,
    DemandPredictionsResponse,
    InsightsResponse,
    RecommendationsResponse,
    ScheduleOptimizationsResponse,
    TrendPredictionsResponse,
)
from core.containers import analytics_container
from core.rate_limiter import limiter, RateLimits
from src.analytics_bc.ai.domain.value_objects import PipelineOutcome, TaskKind
from src.analytics_bc.ai.infrastructure.services.ai_analytics_service import AIAnalyticsService
from src.analytics_bc.usage.domain.entities import AnalyticsSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI Analytics"])

VALID_ACTIONS = ", ".join(kind.value for kind in TaskKind)


def get_ai_analytics_service() -> AIAnalyticsService:
    """Dependency that provides the shared AI analytics service."""
    return analytics_container.ai_analytics_service()


def _outcome_fields(outcome: PipelineOutcome) -> dict:
    return {
        "source": outcome.source.value,
        "fallback_reason": outcome.fallback_reason.value if outcome.fallback_reason else None,
    }


@router.post("/analytics", response_model=None)
@limiter.limit(RateLimits.AI_ANALYTICS)
async def run_ai_analytics(
    request: Request,
    payload: AIAnalyticsRequest,
    service: AIAnalyticsService = Depends(get_ai_analytics_service),
):
    """Run one AI analytics task over a snapshot of the shuttle system.

    Predictions, optimizations and insights always return a list: when the
    AI backend is unavailable, over its daily budget or replies with
    unusable output, rule-based fallbacks are returned instead and
    `source` is "fallback". Chat degrades to a notice string.
    """
    logger.info(f"[AIAnalytics] API called - action: {payload.action}")

    if payload.data is None:
        raise HTTPException(status_code=400, detail="Analytics data is required")

    try:
        kind = TaskKind(payload.action)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid action. Use: {VALID_ACTIONS}",
        )

    if kind is TaskKind.CHAT and not (payload.question or "").strip():
        raise HTTPException(status_code=400, detail="Question is required for chat")

    snapshot = AnalyticsSnapshot.from_payload(payload.data)
    outcome = await service.run(kind, snapshot, question=payload.question)

    if kind is TaskKind.DEMAND_PREDICTIONS:
        response = DemandPredictionsResponse(demand_predictions=outcome.value, **_outcome_fields(outcome))
    elif kind is TaskKind.SCHEDULE_OPTIMIZATIONS:
        response = ScheduleOptimizationsResponse(
            schedule_optimizations=outcome.value, **_outcome_fields(outcome)
        )
    elif kind is TaskKind.INSIGHTS:
        response = InsightsResponse(insights=outcome.value, **_outcome_fields(outcome))
    elif kind is TaskKind.TREND_PREDICTIONS:
        response = TrendPredictionsResponse(trend_predictions=outcome.value, **_outcome_fields(outcome))
    elif kind is TaskKind.RECOMMENDATIONS:
        response = RecommendationsResponse(recommendations=outcome.value, **_outcome_fields(outcome))
    else:
        response = ChatResponse(response=outcome.value, **_outcome_fields(outcome))

    logger.info(f"[AIAnalytics] {kind.value} answered from {outcome.source.value}")
    return response.model_dump(by_alias=True, mode="json")


@router.get("/status", response_model=AIStatusResponse)
@limiter.limit(RateLimits.AI_STATUS)
async def get_ai_status(
    request: Request,
    service: AIAnalyticsService = Depends(get_ai_analytics_service),
):
    """Daily AI budget usage and whether the AI backend is configured."""
    return AIStatusResponse(**service.status)
