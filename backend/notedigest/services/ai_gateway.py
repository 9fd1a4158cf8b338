"""
NoteDigest Backend: AI Gateway
================================

What:  The single entry point for every AI feature (free text, summary,
       tags, health check).
How:   For each request: check the token budget (never retried), build the
       prompt, run the model call through RetryingCaller, then shape the
       response and its estimated token usage.
Who:   Built once by create_app() and stored on app.state; route handlers and
       SummaryStore receive it through FastAPI dependencies.
When:  The underlying LLM client is created on first use, not at startup,
       so the service boots (and /health answers) without an API key.

Call path:
    generate_summary(content)
        → TokenEstimator.validate(content)        may raise TokenLimitExceededError
        → RetryingCaller.call(client.generate)    may raise RetryExhaustedError
        → AIResponse(data, usage, model, timestamp)
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from notedigest.config import settings
from notedigest.schemas.note import AIResponse, TagsAIResponse, TokenUsage
from notedigest.services.llm_base import LLMService
from notedigest.services.retry import RetryingCaller
from notedigest.services.tokens import TokenEstimator

logger = logging.getLogger(__name__)

MAX_TAGS = 6

SUMMARY_PROMPT = (
    "Summarize the following note in 3 to 6 bullet points. "
    "Keep only the key points and write them concisely, "
    "in the same language as the note:\n\n{content}"
)

TAGS_PROMPT = (
    "Analyze the following note and generate up to 6 highly relevant tags. "
    "List the tags separated by commas:\n\n{content}"
)

HEALTH_CHECK_PROMPT = "Hello"


@dataclass(frozen=True)
class GenerationOptions:
    max_output_tokens: int
    temperature: float


TEXT_OPTIONS = GenerationOptions(max_output_tokens=1000, temperature=0.7)
SUMMARY_OPTIONS = GenerationOptions(max_output_tokens=500, temperature=0.5)
TAGS_OPTIONS = GenerationOptions(max_output_tokens=200, temperature=0.3)
HEALTH_OPTIONS = GenerationOptions(max_output_tokens=10, temperature=0.1)


def _default_client_factory() -> LLMService:
    from notedigest.services.gemini_service import GeminiService

    return GeminiService()


def parse_tags(text: str, max_tags: int = MAX_TAGS) -> List[str]:
    """Splits a comma-separated model response into at most `max_tags` tags, in order."""
    tags = [tag.strip() for tag in text.split(",")]
    return [tag for tag in tags if tag][:max_tags]


class AIGateway:
    """
    Budget-checked, retried access to the remote LLM.

    Args:
        client_factory:  Zero-argument callable returning an LLMService. Called
                         at most once (on first use); the client is memoized for
                         the gateway's lifetime.
        estimator:       Token estimator (budget + usage accounting)
        retrying:        Retry policy applied to every call except health_check
        model_name:      Reported in responses when the client has no name
    """

    def __init__(
        self,
        client_factory: Callable[[], LLMService] = _default_client_factory,
        estimator: Optional[TokenEstimator] = None,
        retrying: Optional[RetryingCaller] = None,
        model_name: Optional[str] = None,
    ):
        self._client_factory = client_factory
        self._client: Optional[LLMService] = None
        self.estimator = estimator or TokenEstimator()
        self.retrying = retrying or RetryingCaller()
        self._model_name = model_name or settings.gemini_model

    @property
    def model_name(self) -> str:
        if self._client is not None and self._client.model_name != "unknown":
            return self._client.model_name
        return self._model_name

    def _get_client(self) -> LLMService:
        # Why lazy: building GeminiService needs GEMINI_API_KEY. Deferring it
        # lets the app start and /health report "unavailable" instead of
        # crashing at import. Raises ConfigurationError when the client cannot
        # be built; a later call tries again.
        if self._client is None:
            self._client = self._client_factory()
            logger.info("AI client created: %s", type(self._client).__name__)
        return self._client

    def _usage(self, prompt: str, response_text: str) -> TokenUsage:
        prompt_tokens = self.estimator.estimate(prompt)
        response_tokens = self.estimator.estimate(response_text)
        return TokenUsage(
            prompt_tokens=prompt_tokens,
            response_tokens=response_tokens,
            total_tokens=prompt_tokens + response_tokens,
        )

    async def _complete(
        self, prompt: str, options: GenerationOptions, operation_name: str
    ) -> AIResponse:
        client = self._get_client()

        async def attempt() -> str:
            return await client.generate(
                prompt,
                max_output_tokens=options.max_output_tokens,
                temperature=options.temperature,
            )

        text = await self.retrying.call(attempt, operation_name)
        usage = self._usage(prompt, text)

        logger.info(
            "%s completed: tokens=%d (prompt=%d, response=%d)",
            operation_name,
            usage.total_tokens,
            usage.prompt_tokens,
            usage.response_tokens,
        )

        return AIResponse(
            data=text,
            usage=usage,
            model=self.model_name,
            timestamp=datetime.now(timezone.utc),
        )

    # ── Public Operations ─────────────────────────────────────────────────

    async def generate_text(self, prompt: str) -> AIResponse:
        """Sends `prompt` verbatim after the budget check."""
        self.estimator.validate(prompt)
        return await self._complete(prompt, TEXT_OPTIONS, "generateText")

    async def generate_summary(self, note_content: str) -> AIResponse:
        """Bullet-point summary (3-6 points) of a note's content."""
        self.estimator.validate(note_content)
        prompt = SUMMARY_PROMPT.format(content=note_content)
        return await self._complete(prompt, SUMMARY_OPTIONS, "generateSummary")

    async def generate_tags(self, note_content: str) -> TagsAIResponse:
        """Up to six tags for a note's content; data is [] when the model returns nothing."""
        self.estimator.validate(note_content)
        prompt = TAGS_PROMPT.format(content=note_content)
        response = await self._complete(prompt, TAGS_OPTIONS, "generateTags")
        return TagsAIResponse(
            data=parse_tags(response.data),
            usage=response.usage,
            model=response.model,
            timestamp=response.timestamp,
        )

    async def health_check(self) -> bool:
        """
        One short, un-retried call bounded by the attempt timeout.

        Never raises: any failure (including a missing API key) means unhealthy.
        """
        try:
            client = self._get_client()
            await asyncio.wait_for(
                client.generate(
                    HEALTH_CHECK_PROMPT,
                    max_output_tokens=HEALTH_OPTIONS.max_output_tokens,
                    temperature=HEALTH_OPTIONS.temperature,
                ),
                timeout=self.retrying.attempt_timeout,
            )
            return True
        except Exception as e:
            logger.warning("AI health check failed: %s", e)
            return False
