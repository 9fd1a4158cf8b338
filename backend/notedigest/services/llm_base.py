"""
NoteDigest Backend: Abstract LLM Service Interface
====================================================

What:  Abstract base class for the remote text-generation endpoint.
How:   Concrete providers implement generate(); AIGateway layers the token
       budget, retry policy and response shaping on top.
Who:   GeminiService in production; fakes in the test suite.

Design Decision:
    The interface is a single "prompt in, text out" call. Retries, timeouts
    and token accounting belong to the gateway, so a provider implementation
    stays a thin adapter around its SDK.
"""

from abc import ABC, abstractmethod


class LLMService(ABC):
    """
    Abstract interface for a remote LLM.

    Contract:
        - generate() sends the prompt verbatim and returns the response text
        - Returns an empty string when the model produced no text; never None
        - Raises whatever the provider raises; the caller decides on retries
    """

    model_name: str = "unknown"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
    ) -> str:
        """
        Generate text for a single-turn prompt.

        Args:
            prompt:             Complete prompt text, sent as-is
            max_output_tokens:  Upper bound on response length
            temperature:        Sampling temperature (0 = deterministic)

        Returns:
            The model's response text ("" if empty).
        """
        ...
