from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AISettings(BaseSettings):
    GROQ_MODEL: str = "llama-3.1-8b-instant"  # 128k context window
    AI_DAILY_REQUEST_LIMIT: int = 45  # Stays under the provider's free-tier quota
    AI_WINDOW_HOURS: int = 24
    AI_MAX_TOKENS: int = 1500
    AI_TEMPERATURE: float = 0.3
    AI_REQUEST_TIMEOUT_SECONDS: float = 30.0
    # Seed for fallback jitter; unset means a different draw on every request
    AI_FALLBACK_SEED: Optional[int] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False  # Default to False for security

    # Frontend (admin dashboard)
    FRONTEND_URL: str = "http://localhost:3000"

    # SlowAPI storage; use redis://host:6379 when running several instances
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Groq AI - empty key disables AI calls, fallbacks are used instead
    GROQ_API_KEY: str = ""

    # AI settings (nested)
    ai: AISettings = AISettings()

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def ai_enabled(self) -> bool:
        return bool(self.GROQ_API_KEY)

    def validate_production_settings(self) -> None:
        """Validate critical settings for production environment.

        Call this during application startup.
        Raises ValueError if production settings are invalid.
        """
        errors = []

        if self.is_production:
            # Check DEBUG is disabled
            if self.DEBUG:
                errors.append("DEBUG must be False in production")

            if self.ai.AI_DAILY_REQUEST_LIMIT <= 0:
                errors.append("AI_DAILY_REQUEST_LIMIT must be a positive integer")

            if self.ai.AI_WINDOW_HOURS <= 0:
                errors.append("AI_WINDOW_HOURS must be a positive integer")

        if errors:
            raise ValueError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    def validate_development_settings(self) -> None:
        """Warn about settings that degrade features in development."""
        if not self.GROQ_API_KEY:
            print("WARNING: GROQ_API_KEY not set, AI analytics will use offline fallbacks")

        if self.ai.AI_DAILY_REQUEST_LIMIT <= 0:
            print("WARNING: AI_DAILY_REQUEST_LIMIT <= 0, every AI request will use the fallback")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create settings instance
settings = Settings()

# Validate based on environment
if settings.is_production:
    settings.validate_production_settings()
else:
    settings.validate_development_settings()
