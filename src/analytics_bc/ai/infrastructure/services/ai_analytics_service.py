"""AI analytics pipeline.

Per request: daily budget check -> prompt -> Groq completion -> JSON
extraction, with the offline fallback taking over at any failing step.
Callers always get a PipelineOutcome; nothing here raises to them.
"""
import logging
import re
from datetime import date
from typing import Any, Callable, List, Optional

from src.analytics_bc.ai.domain.schemas import (
    DemandPrediction,
    ScheduleOptimization,
    StrategicRecommendation,
    SystemInsight,
    TrendPrediction,
)
from src.analytics_bc.ai.domain.value_objects import FallbackReason, ParseResult, PipelineOutcome, TaskKind
from src.analytics_bc.ai.infrastructure.services.ai_request_limiter import DailyRequestLimiter
from src.analytics_bc.ai.infrastructure.services.fallback_generator import FallbackGenerator
from src.analytics_bc.ai.infrastructure.services.groq_gateway import (
    GroqTextGateway,
    UpstreamQuotaError,
    UpstreamServiceError,
)
from src.analytics_bc.ai.infrastructure.services.prompt_builder import CHAT_MAX_WORDS, build_prompt
from src.analytics_bc.ai.infrastructure.services.response_parser import clean_and_parse
from src.analytics_bc.usage.domain.entities import AnalyticsSnapshot
from src.analytics_bc.usage.domain.services.usage_aggregator import UsageStatistics, aggregate_usage

logger = logging.getLogger(__name__)

CHAT_UNAVAILABLE_NOTICE = (
    "I'm sorry, I'm having trouble processing your request right now. Please try again later."
)
CHAT_LIMIT_NOTICE = (
    "The AI assistant has reached its usage limit for today. Please try again later."
)

_MARKDOWN_LINE_PREFIX = re.compile(r"^\s*(?:#{1,6}\s+|[-*+]\s+|\d+[.)]\s+|>\s*)", re.MULTILINE)
_MARKDOWN_EMPHASIS = re.compile(r"(\*\*|__|\*|`+)")


def to_plain_text(reply: str, max_words: int = CHAT_MAX_WORDS) -> str:
    """Strip markdown decoration and cap the reply at max_words."""
    text = _MARKDOWN_LINE_PREFIX.sub("", reply or "")
    text = _MARKDOWN_EMPHASIS.sub("", text)
    words = text.split()
    if len(words) > max_words:
        return " ".join(words[:max_words]).rstrip(",;:") + "..."
    return " ".join(words)


class AIAnalyticsService:
    """Orchestrates AI-assisted recommendations with an offline fallback."""

    def __init__(
        self,
        gateway: GroqTextGateway,
        limiter: DailyRequestLimiter,
        fallback: FallbackGenerator,
        today: Callable[[], date] = date.today,
    ):
        self.gateway = gateway
        self.limiter = limiter
        self.fallback = fallback
        self.today = today

    async def _ask_model(
        self,
        kind: TaskKind,
        snapshot: AnalyticsSnapshot,
        stats: UsageStatistics,
        question: Optional[str] = None,
    ):
        """Run RATE_CHECK and CALL_AI. Returns (reply, None) or (None, reason)."""
        if not self.gateway.is_configured:
            logger.info(f"[AIAnalytics] {kind.value}: AI backend not configured, using fallback")
            return None, FallbackReason.AI_DISABLED

        if not self.limiter.try_acquire():
            logger.warning(f"[AIAnalytics] {kind.value}: daily AI budget exhausted, using fallback")
            return None, FallbackReason.RATE_LIMITED

        try:
            prompt = build_prompt(kind, snapshot, stats, question=question, today=self.today())
            logger.info(f"[AIAnalytics] {kind.value}: sending prompt ({len(prompt)} chars)")
            return await self.gateway.complete(prompt), None
        except UpstreamQuotaError as e:
            logger.error(f"[AIAnalytics] {kind.value}: provider quota exceeded: {e}")
            return None, FallbackReason.UPSTREAM_QUOTA
        except UpstreamServiceError as e:
            logger.error(f"[AIAnalytics] {kind.value}: provider error: {e}")
            return None, FallbackReason.UPSTREAM_ERROR
        except Exception as e:
            logger.exception(f"[AIAnalytics] {kind.value}: unexpected error calling AI: {e}")
            return None, FallbackReason.UPSTREAM_ERROR

    async def _structured(
        self,
        kind: TaskKind,
        snapshot: AnalyticsSnapshot,
        schema: Any,
        fallback: Callable[[UsageStatistics], list],
    ) -> PipelineOutcome:
        stats = aggregate_usage(snapshot.boarding_records, snapshot.routes)
        reply, reason = await self._ask_model(kind, snapshot, stats)

        if reason is None:
            try:
                parsed = clean_and_parse(reply, schema)
            except Exception as e:
                logger.exception(f"[AIAnalytics] {kind.value}: parser failed on reply: {e}")
                parsed = ParseResult.failure(f"parser error: {e}")

            if parsed.ok and not parsed.value and snapshot.routes:
                parsed = ParseResult.failure("empty array for a snapshot with routes")

            if parsed.ok:
                logger.info(f"[AIAnalytics] {kind.value}: {len(parsed.value)} items from AI")
                return PipelineOutcome.from_ai(parsed.value)
            logger.warning(f"[AIAnalytics] {kind.value}: unparseable reply ({parsed.error}), using fallback")
            reason = FallbackReason.UNPARSEABLE

        return PipelineOutcome.from_fallback(fallback(stats), reason)

    async def demand_predictions(
        self, snapshot: AnalyticsSnapshot
    ) -> PipelineOutcome[List[DemandPrediction]]:
        return await self._structured(
            TaskKind.DEMAND_PREDICTIONS,
            snapshot,
            List[DemandPrediction],
            lambda stats: self.fallback.demand_predictions(snapshot, stats),
        )

    async def schedule_optimizations(
        self, snapshot: AnalyticsSnapshot
    ) -> PipelineOutcome[List[ScheduleOptimization]]:
        return await self._structured(
            TaskKind.SCHEDULE_OPTIMIZATIONS,
            snapshot,
            List[ScheduleOptimization],
            lambda stats: self.fallback.schedule_optimizations(snapshot),
        )

    async def insights(self, snapshot: AnalyticsSnapshot) -> PipelineOutcome[List[SystemInsight]]:
        return await self._structured(
            TaskKind.INSIGHTS,
            snapshot,
            List[SystemInsight],
            lambda stats: self.fallback.insights(snapshot),
        )

    async def trend_predictions(
        self, snapshot: AnalyticsSnapshot
    ) -> PipelineOutcome[List[TrendPrediction]]:
        return await self._structured(
            TaskKind.TREND_PREDICTIONS,
            snapshot,
            List[TrendPrediction],
            lambda stats: self.fallback.trend_predictions(snapshot),
        )

    async def recommendations(
        self, snapshot: AnalyticsSnapshot
    ) -> PipelineOutcome[List[StrategicRecommendation]]:
        return await self._structured(
            TaskKind.RECOMMENDATIONS,
            snapshot,
            List[StrategicRecommendation],
            lambda stats: self.fallback.recommendations(snapshot),
        )

    async def chat(self, question: str, snapshot: AnalyticsSnapshot) -> PipelineOutcome[str]:
        """Answer a free-text question; failures return a fixed notice."""
        stats = aggregate_usage(snapshot.boarding_records, snapshot.routes)
        reply, reason = await self._ask_model(TaskKind.CHAT, snapshot, stats, question=question)

        if reason is None:
            answer = to_plain_text(reply)
            if answer:
                return PipelineOutcome.from_ai(answer)
            reason = FallbackReason.UNPARSEABLE

        if reason in (FallbackReason.RATE_LIMITED, FallbackReason.UPSTREAM_QUOTA):
            return PipelineOutcome.from_fallback(CHAT_LIMIT_NOTICE, reason)
        return PipelineOutcome.from_fallback(CHAT_UNAVAILABLE_NOTICE, reason)

    async def run(
        self,
        kind: TaskKind,
        snapshot: AnalyticsSnapshot,
        question: Optional[str] = None,
    ) -> PipelineOutcome:
        """Dispatch a request by task kind."""
        if kind is TaskKind.DEMAND_PREDICTIONS:
            return await self.demand_predictions(snapshot)
        if kind is TaskKind.SCHEDULE_OPTIMIZATIONS:
            return await self.schedule_optimizations(snapshot)
        if kind is TaskKind.INSIGHTS:
            return await self.insights(snapshot)
        if kind is TaskKind.TREND_PREDICTIONS:
            return await self.trend_predictions(snapshot)
        if kind is TaskKind.RECOMMENDATIONS:
            return await self.recommendations(snapshot)
        return await self.chat(question or "", snapshot)

    @property
    def status(self) -> dict:
        return {
            "ai_configured": self.gateway.is_configured,
            "model": self.gateway.settings.ai.GROQ_MODEL,
            **self.limiter.status,
        }
