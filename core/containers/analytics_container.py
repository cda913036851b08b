import random
from datetime import timedelta

from dependency_injector import containers, providers

from core.config import Settings
from src.analytics_bc.ai.infrastructure.services.ai_analytics_service import AIAnalyticsService
from src.analytics_bc.ai.infrastructure.services.ai_request_limiter import DailyRequestLimiter
from src.analytics_bc.ai.infrastructure.services.fallback_generator import FallbackGenerator
from src.analytics_bc.ai.infrastructure.services.groq_gateway import GroqTextGateway


class AnalyticsContainer(containers.DeclarativeContainer):
    """Dependency injection container for the AI analytics bounded context."""

    # Settings dependency (injected from app)
    settings = providers.Dependency(instance_of=Settings)

    # Process-wide daily budget shared by every task kind
    request_limiter = providers.Singleton(
        DailyRequestLimiter,
        daily_limit=settings.provided.ai.AI_DAILY_REQUEST_LIMIT,
        window=providers.Factory(timedelta, hours=settings.provided.ai.AI_WINDOW_HOURS),
    )

    gateway = providers.Singleton(GroqTextGateway, settings=settings)

    fallback_generator = providers.Singleton(
        FallbackGenerator,
        rng=providers.Factory(random.Random, settings.provided.ai.AI_FALLBACK_SEED),
    )

    ai_analytics_service = providers.Singleton(
        AIAnalyticsService,
        gateway=gateway,
        limiter=request_limiter,
        fallback=fallback_generator,
    )
