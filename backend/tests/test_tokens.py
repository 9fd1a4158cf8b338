"""
NoteDigest Backend: Token Estimator Unit Tests
================================================
"""

import pytest

from notedigest.exceptions import TokenLimitExceededError
from notedigest.services.tokens import TokenEstimator


@pytest.fixture
def estimator():
    return TokenEstimator(multiplier=1.3, limit=8000)


class TestEstimate:

    def test_empty_and_whitespace_are_zero(self, estimator):
        assert estimator.estimate("") == 0
        assert estimator.estimate("   \n\t ") == 0

    def test_rounds_up(self, estimator):
        # 2 words * 1.3 = 2.6
        assert estimator.estimate("Hello world") == 3
        # 10 words * 1.3 = 13.0 exactly
        assert estimator.estimate(" ".join(["w"] * 10)) == 13

    def test_whitespace_runs_count_once(self, estimator):
        assert estimator.estimate("a   b\n\nc\t d") == estimator.estimate("a b c d")

    def test_monotone_in_word_count(self, estimator):
        previous = 0
        for n in range(0, 200, 7):
            current = estimator.estimate("word " * n)
            assert current >= previous
            previous = current


class TestValidate:

    def test_small_text_passes(self, estimator):
        assert estimator.validate("Hello world") == 3

    def test_large_text_fails_with_counts(self, estimator):
        with pytest.raises(TokenLimitExceededError) as exc_info:
            estimator.validate("test " * 10000)

        assert exc_info.value.token_count == 13000
        assert exc_info.value.limit == 8000
        assert exc_info.value.message == "Text exceeds token limit. Current: 13000, Max: 8000"

    def test_limit_is_inclusive(self, estimator):
        # 10 words → 13 tokens
        text = " ".join(["w"] * 10)
        assert estimator.validate(text, limit=13) == 13
        with pytest.raises(TokenLimitExceededError):
            estimator.validate(text, limit=12)
