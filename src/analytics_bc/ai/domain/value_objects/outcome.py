from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class TaskKind(str, Enum):
    """Request types handled by the AI analytics pipeline."""
    DEMAND_PREDICTIONS = "demand-predictions"
    SCHEDULE_OPTIMIZATIONS = "schedule-optimizations"
    INSIGHTS = "insights"
    TREND_PREDICTIONS = "trend-predictions"
    RECOMMENDATIONS = "recommendations"
    CHAT = "chat"


class FallbackReason(str, Enum):
    """Why a request was answered without the AI model."""
    AI_DISABLED = "ai_disabled"        # No API key configured
    RATE_LIMITED = "rate_limited"      # Daily budget exhausted, no call made
    UPSTREAM_ERROR = "upstream_error"  # Network/service failure
    UPSTREAM_QUOTA = "upstream_quota"  # Provider reported 429/quota
    UNPARSEABLE = "unparseable"        # Reply had no valid JSON for the schema


class OutcomeSource(str, Enum):
    AI = "ai"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Either a parsed value or the reason parsing failed."""
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult[T]":
        return cls(error=error)


@dataclass(frozen=True)
class PipelineOutcome(Generic[T]):
    """Result of one pipeline run: always carries a usable value."""
    value: T
    source: OutcomeSource
    fallback_reason: Optional[FallbackReason] = None

    @property
    def used_fallback(self) -> bool:
        return self.source is OutcomeSource.FALLBACK

    @classmethod
    def from_ai(cls, value: T) -> "PipelineOutcome[T]":
        return cls(value=value, source=OutcomeSource.AI)

    @classmethod
    def from_fallback(cls, value: T, reason: FallbackReason) -> "PipelineOutcome[T]":
        return cls(value=value, source=OutcomeSource.FALLBACK, fallback_reason=reason)
