"""Unit tests for the Groq text gateway."""

import asyncio
from types import SimpleNamespace

import httpx
import pytest
from groq import RateLimitError

from core.config import Settings
from src.analytics_bc.ai.infrastructure.services.groq_gateway import (
    GroqTextGateway,
    UpstreamQuotaError,
    UpstreamServiceError,
    is_quota_error,
)


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_gateway(completions, api_key="test-key"):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return GroqTextGateway(Settings(GROQ_API_KEY=api_key), client=client)


def groq_rate_limit_error():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    response = httpx.Response(429, request=request)
    return RateLimitError("Rate limit reached", response=response, body=None)


class TestIsQuotaError:
    """Tests for recognising provider quota errors."""

    @pytest.mark.parametrize("message", [
        "Error code: 429",
        "You exceeded your current quota",
        "Rate limit reached for model",
    ])
    def test_detected_by_message(self, message):
        """Quota wording in the message is enough."""
        assert is_quota_error(Exception(message))

    def test_detected_by_type(self):
        """A RateLimitError is always a quota error."""
        assert is_quota_error(groq_rate_limit_error())

    def test_other_errors(self):
        """Unrelated errors are not quota errors."""
        assert not is_quota_error(ConnectionError("connection reset by peer"))


class TestGroqTextGateway:
    """Tests for the Groq completion gateway."""

    def test_returns_reply_text(self):
        """The first choice's content is returned."""
        completions = FakeCompletions(content="[1, 2]")
        gateway = make_gateway(completions)

        assert asyncio.run(gateway.complete("prompt")) == "[1, 2]"
        call = completions.calls[0]
        assert call["model"] == gateway.settings.ai.GROQ_MODEL
        assert call["messages"][-1] == {"role": "user", "content": "prompt"}

    def test_quota_error_is_classified(self):
        """Quota failures raise UpstreamQuotaError."""
        gateway = make_gateway(FakeCompletions(error=groq_rate_limit_error()))
        with pytest.raises(UpstreamQuotaError):
            asyncio.run(gateway.complete("prompt"))

    def test_service_error_is_wrapped(self):
        """Other failures raise UpstreamServiceError."""
        gateway = make_gateway(FakeCompletions(error=TimeoutError("read timed out")))
        with pytest.raises(UpstreamServiceError) as exc_info:
            asyncio.run(gateway.complete("prompt"))
        assert not isinstance(exc_info.value, UpstreamQuotaError)

    def test_empty_reply_is_an_error(self):
        """An empty completion is an upstream error."""
        gateway = make_gateway(FakeCompletions(content="   "))
        with pytest.raises(UpstreamServiceError):
            asyncio.run(gateway.complete("prompt"))

    def test_is_configured_follows_api_key(self):
        """The gateway is configured only with an API key."""
        assert GroqTextGateway(Settings(GROQ_API_KEY="key")).is_configured
        assert not GroqTextGateway(Settings(GROQ_API_KEY="")).is_configured
