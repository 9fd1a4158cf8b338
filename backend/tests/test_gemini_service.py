"""
NoteDigest Backend: Gemini Service Unit Tests (Mocked)
========================================================

The google.generativeai module is patched; no network calls are made.
"""

import pytest
from unittest.mock import patch, MagicMock, AsyncMock

from notedigest.exceptions import ConfigurationError
from notedigest.services.gemini_service import GeminiService


class TestGeminiServiceMocked:

    def test_missing_api_key_raises_configuration_error(self):
        with patch("notedigest.services.gemini_service.genai") as mock_genai:
            with pytest.raises(ConfigurationError) as exc_info:
                GeminiService(api_key="")

        assert exc_info.value.message == "GEMINI_API_KEY is not set in environment variables"
        mock_genai.configure.assert_not_called()

    def test_configures_sdk_and_model(self):
        with patch("notedigest.services.gemini_service.genai") as mock_genai:
            service = GeminiService(api_key="secret", model_name="gemini-test")

        mock_genai.configure.assert_called_once_with(api_key="secret")
        mock_genai.GenerativeModel.assert_called_once_with("gemini-test")
        assert service.model_name == "gemini-test"

    def test_defaults_to_configured_model(self):
        with patch("notedigest.services.gemini_service.genai"):
            service = GeminiService(api_key="secret")
        assert service.model_name == "gemini-2.0-flash-001"

    @pytest.mark.asyncio
    async def test_generate_passes_generation_config(self):
        with patch("notedigest.services.gemini_service.genai") as mock_genai:
            mock_response = MagicMock()
            mock_response.text = "A summary"
            mock_model = MagicMock()
            mock_model.generate_content_async = AsyncMock(return_value=mock_response)
            mock_genai.GenerativeModel.return_value = mock_model

            service = GeminiService(api_key="secret")
            result = await service.generate("Summarize this", max_output_tokens=500, temperature=0.5)

            assert result == "A summary"
            mock_genai.GenerationConfig.assert_called_once_with(
                max_output_tokens=500, temperature=0.5
            )
            args, kwargs = mock_model.generate_content_async.call_args
            assert args == ("Summarize this",)
            assert kwargs["generation_config"] is mock_genai.GenerationConfig.return_value

    @pytest.mark.asyncio
    async def test_empty_response_text_becomes_empty_string(self):
        with patch("notedigest.services.gemini_service.genai") as mock_genai:
            mock_response = MagicMock()
            mock_response.text = None
            mock_model = MagicMock()
            mock_model.generate_content_async = AsyncMock(return_value=mock_response)
            mock_genai.GenerativeModel.return_value = mock_model

            service = GeminiService(api_key="secret")
            assert await service.generate("x", max_output_tokens=10, temperature=0.1) == ""

    @pytest.mark.asyncio
    async def test_sdk_errors_propagate(self):
        with patch("notedigest.services.gemini_service.genai") as mock_genai:
            mock_model = MagicMock()
            mock_model.generate_content_async = AsyncMock(side_effect=RuntimeError("503 overloaded"))
            mock_genai.GenerativeModel.return_value = mock_model

            service = GeminiService(api_key="secret")
            with pytest.raises(RuntimeError, match="503 overloaded"):
                await service.generate("x", max_output_tokens=10, temperature=0.1)
