"""Text-completion gateway to the Groq API."""
import logging
from typing import Optional

from groq import AsyncGroq, RateLimitError

from core.config import Settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an analytics assistant for a university shuttle service. "
    "Follow the requested output format exactly."
)
_QUOTA_MARKERS = ("429", "quota", "rate limit", "rate_limit")


class UpstreamServiceError(Exception):
    """The AI provider failed or returned nothing usable."""


class UpstreamQuotaError(UpstreamServiceError):
    """The AI provider rejected the call for quota / rate-limit reasons."""


def is_quota_error(error: BaseException) -> bool:
    """Quota errors are recognised by type or by their message."""
    if isinstance(error, RateLimitError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in _QUOTA_MARKERS)


class GroqTextGateway:
    """Sends one prompt, returns one text completion."""

    def __init__(self, settings: Settings, client: Optional[AsyncGroq] = None):
        self.settings = settings
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.settings.GROQ_API_KEY)

    @property
    def client(self) -> AsyncGroq:
        if self._client is None:
            self._client = AsyncGroq(
                api_key=self.settings.GROQ_API_KEY,
                timeout=self.settings.ai.AI_REQUEST_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        """Return the model's reply to prompt.

        Raises:
            UpstreamQuotaError: provider reported 429 / quota exhaustion
            UpstreamServiceError: any other failure, including an empty reply
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.settings.ai.GROQ_MODEL,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.settings.ai.AI_MAX_TOKENS,
                temperature=self.settings.ai.AI_TEMPERATURE,
            )
        except Exception as e:
            if is_quota_error(e):
                raise UpstreamQuotaError(str(e)) from e
            raise UpstreamServiceError(str(e)) from e

        text = response.choices[0].message.content if response.choices else None
        if not text or not text.strip():
            raise UpstreamServiceError("empty completion")

        logger.debug(f"[AIGateway] Received {len(text)} chars from {self.settings.ai.GROQ_MODEL}")
        return text
