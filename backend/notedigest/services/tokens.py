"""
NoteDigest Backend: Token Estimation
======================================

Cheap, deterministic approximation of an LLM token count, used to reject
oversized text before any network call and to report estimated usage.

    estimate(text) = ceil(len(text.split()) * multiplier)

Why an estimate: the real tokenizer lives behind the remote API, and a
budget check that costs a network call would defeat its purpose.

Monotone in word count: appending words never lowers the estimate.
"""

import math
from typing import Optional

from notedigest.config import settings
from notedigest.exceptions import TokenLimitExceededError


class TokenEstimator:
    """Word-count based token estimator with a configurable budget."""

    def __init__(self, multiplier: Optional[float] = None, limit: Optional[int] = None):
        self.multiplier = multiplier if multiplier is not None else settings.token_multiplier
        self.limit = limit if limit is not None else settings.token_limit

    def estimate(self, text: str) -> int:
        words = text.split()
        if not words:
            return 0
        return math.ceil(len(words) * self.multiplier)

    def validate(self, text: str, limit: Optional[int] = None) -> int:
        """
        Raises TokenLimitExceededError when the estimate is strictly above `limit`.

        Returns the estimate so callers can reuse it for usage reporting.
        """
        limit = self.limit if limit is None else limit
        token_count = self.estimate(text)
        if token_count > limit:
            raise TokenLimitExceededError(token_count=token_count, limit=limit)
        return token_count
