import logging

from dotenv import load_dotenv
load_dotenv()  # Load .env file before importing settings

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from core.config import settings
from core.rate_limiter import limiter, rate_limit_exceeded_handler, RateLimits


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # Settings validation is done automatically in core/config.py on import
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    app = FastAPI(
        title="Shuttle Analytics API",
        description="AI-assisted demand forecasting and schedule optimization for the university shuttle service",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware - only the admin dashboard calls this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Register routers
    from adapters.http.api.analytics.routers import ai_router
    app.include_router(ai_router, prefix="/api/v1")

    @app.get("/health")
    @limiter.limit(RateLimits.HEALTH)
    async def health_check(request: Request):
        """Health check endpoint.

        The service is usable without the AI backend, so this only reports
        whether AI calls are enabled.
        """
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "ai_enabled": settings.ai_enabled,
        }

    return app


app = create_app()
