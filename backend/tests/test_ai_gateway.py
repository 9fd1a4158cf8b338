"""
NoteDigest Backend: AIGateway Unit Tests
==========================================

The gateway runs against FakeLLM (conftest.py); no network, no sleeping.
"""

import asyncio

import pytest

from notedigest.exceptions import (
    ConfigurationError,
    RetryExhaustedError,
    TokenLimitExceededError,
)
from notedigest.services.ai_gateway import AIGateway, parse_tags


class TestGenerateText:

    @pytest.mark.asyncio
    async def test_sends_prompt_verbatim(self, gateway, fake_llm):
        fake_llm.queue("Paris is the capital of France")

        response = await gateway.generate_text("What is the capital of France?")

        assert response.data == "Paris is the capital of France"
        assert response.model == "fake-model"
        assert fake_llm.calls == [
            {
                "prompt": "What is the capital of France?",
                "max_output_tokens": 1000,
                "temperature": 0.7,
            }
        ]

    @pytest.mark.asyncio
    async def test_usage_is_estimated_from_prompt_and_response(self, gateway, fake_llm):
        fake_llm.queue("one two three four")  # 4 words → 6 tokens

        response = await gateway.generate_text("Hello world")  # 2 words → 3 tokens

        assert response.usage.prompt_tokens == 3
        assert response.usage.response_tokens == 6
        assert response.usage.total_tokens == 9
        assert response.timestamp.tzinfo is not None

    @pytest.mark.asyncio
    async def test_token_limit_fails_before_any_call(self, gateway, fake_llm):
        with pytest.raises(TokenLimitExceededError):
            await gateway.generate_text("test " * 10000)
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, gateway, fake_llm, sleeps):
        fake_llm.queue(ConnectionError("reset"), ConnectionError("reset"), "finally")

        response = await gateway.generate_text("hi")

        assert response.data == "finally"
        assert len(fake_llm.calls) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_surfaces_as_retry_exhausted(self, gateway, fake_llm):
        fake_llm.queue(*[RuntimeError("quota exceeded")] * 3)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await gateway.generate_text("hi")

        assert str(exc_info.value) == "generateText failed after 3 attempts: quota exceeded"
        assert len(fake_llm.calls) == 3


class TestGenerateSummary:

    @pytest.mark.asyncio
    async def test_wraps_content_in_summary_prompt(self, gateway, fake_llm):
        fake_llm.queue("- point one\n- point two\n- point three")

        response = await gateway.generate_summary("Meeting notes about the Q3 roadmap")

        call = fake_llm.calls[0]
        assert "3 to 6 bullet points" in call["prompt"]
        assert call["prompt"].endswith("Meeting notes about the Q3 roadmap")
        assert call["max_output_tokens"] == 500
        assert call["temperature"] == 0.5
        assert response.data.startswith("- point one")

    @pytest.mark.asyncio
    async def test_budget_checked_on_content(self, gateway, fake_llm):
        with pytest.raises(TokenLimitExceededError):
            await gateway.generate_summary("test " * 10000)
        assert fake_llm.calls == []


class TestGenerateTags:

    @pytest.mark.asyncio
    async def test_parses_and_truncates_to_six(self, gateway, fake_llm):
        fake_llm.queue(", ".join(f"t{i}" for i in range(10)))

        response = await gateway.generate_tags("some note")

        assert response.data == ["t0", "t1", "t2", "t3", "t4", "t5"]
        assert response.model == "fake-model"
        assert response.timestamp.tzinfo is not None
        assert response.usage.prompt_tokens > 0
        assert response.usage.response_tokens == 13
        assert response.usage.total_tokens == (
            response.usage.prompt_tokens + response.usage.response_tokens
        )
        call = fake_llm.calls[0]
        assert call["max_output_tokens"] == 200
        assert call["temperature"] == 0.3
        assert call["prompt"].endswith("some note")

    @pytest.mark.asyncio
    async def test_empty_response_gives_no_tags(self, gateway, fake_llm):
        fake_llm.queue("")
        response = await gateway.generate_tags("some note")
        assert response.data == []
        assert response.usage.response_tokens == 0


class TestParseTags:

    def test_trims_and_drops_empties(self):
        assert parse_tags(" python ,, async ,  ,web ") == ["python", "async", "web"]

    def test_preserves_order(self):
        assert parse_tags("z, a, m") == ["z", "a", "m"]


class TestHealthCheck:

    @pytest.mark.asyncio
    async def test_healthy(self, gateway, fake_llm):
        assert await gateway.health_check() is True
        assert fake_llm.calls == [
            {"prompt": "Hello", "max_output_tokens": 10, "temperature": 0.1}
        ]

    @pytest.mark.asyncio
    async def test_failure_is_not_retried(self, gateway, fake_llm, sleeps):
        fake_llm.queue(RuntimeError("down"))
        assert await gateway.health_check() is False
        assert len(fake_llm.calls) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_missing_configuration_is_unhealthy(self, retrying):
        def factory():
            raise ConfigurationError("GEMINI_API_KEY is not set in environment variables")

        gateway = AIGateway(client_factory=factory, retrying=retrying)
        assert await gateway.health_check() is False

    @pytest.mark.asyncio
    async def test_slow_endpoint_is_unhealthy(self, fake_llm, sleeps):
        from notedigest.services.retry import RetryingCaller

        class SlowLLM(type(fake_llm)):
            async def generate(self, prompt, *, max_output_tokens, temperature):
                await asyncio.sleep(5)
                return "late"

        gateway = AIGateway(
            client_factory=SlowLLM,
            retrying=RetryingCaller(max_attempts=1, attempt_timeout=0.01, backoff_base=0),
        )
        assert await gateway.health_check() is False


class TestClientLifecycle:

    @pytest.mark.asyncio
    async def test_client_built_lazily_and_once(self, fake_llm, retrying):
        built = []

        def factory():
            built.append(1)
            return fake_llm

        gateway = AIGateway(client_factory=factory, retrying=retrying)
        assert built == []

        await gateway.generate_text("one")
        await gateway.generate_text("two")

        assert built == [1]

    @pytest.mark.asyncio
    async def test_configuration_error_propagates_from_generation(self, retrying):
        def factory():
            raise ConfigurationError("GEMINI_API_KEY is not set in environment variables")

        gateway = AIGateway(client_factory=factory, retrying=retrying)

        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY is not set"):
            await gateway.generate_text("hi")
