"""
NoteDigest Backend: Google Gemini Service Implementation
==========================================================

What:  Concrete LLMService backed by the google-generativeai SDK.
How:   Configures the SDK with the API key once, keeps one GenerativeModel
       instance and forwards each prompt to generate_content_async with the
       requested output budget and temperature.
Who:   Built lazily by AIGateway on the first AI request.

Resilience (retry, timeout, token budget) lives in AIGateway/RetryingCaller;
this class only translates between the SDK and plain strings.
"""

import logging
import time
from typing import Optional

import google.generativeai as genai

from notedigest.config import GEMINI_API_KEY_NAME, settings
from notedigest.exceptions import ConfigurationError
from notedigest.services.llm_base import LLMService

logger = logging.getLogger(__name__)


class GeminiService(LLMService):
    """Google Gemini text generation."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        api_key = settings.gemini_api_key if api_key is None else api_key
        if not api_key:
            raise ConfigurationError(
                f"{GEMINI_API_KEY_NAME} is not set in environment variables",
                setting=GEMINI_API_KEY_NAME,
            )

        # The SDK keeps credentials in module-level state
        genai.configure(api_key=api_key)

        self.model_name = model_name or settings.gemini_model
        self.model = genai.GenerativeModel(self.model_name)

        logger.info("GeminiService initialized with model=%s", self.model_name)

    async def generate(
        self,
        prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
    ) -> str:
        start_time = time.time()

        response = await self.model.generate_content_async(
            prompt,
            generation_config=genai.GenerationConfig(
                max_output_tokens=max_output_tokens,
                temperature=temperature,
            ),
        )

        text = response.text if response.text else ""

        logger.info(
            "Gemini call completed in %.0fms, %d chars returned",
            (time.time() - start_time) * 1000,
            len(text),
        )
        return text
