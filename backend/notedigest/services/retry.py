"""
NoteDigest Backend: Retrying Caller
=====================================

What:  Runs an async operation up to N times with a per-attempt timeout and
       exponential backoff between attempts.
How:   Each attempt is wrapped in asyncio.wait_for and folded into an
       AttemptResult (value or error) instead of letting the exception escape.
       tenacity's AsyncRetrying then decides on the *result*: retry while the
       attempt did not succeed, stop after max_attempts, wait
       backoff_base * 2 ** (attempt - 1) seconds in between.
Who:   Used by AIGateway for every remote model call except health checks.
Why:   Transient model failures usually clear within seconds; a short bounded
       retry hides them without letting a request hang indefinitely.

Timeline with the defaults (3 attempts, 10s timeout, 1s base):

    attempt 1 ──fail──▶ sleep 1s ──▶ attempt 2 ──fail──▶ sleep 2s ──▶ attempt 3 ──fail──▶ RetryExhaustedError
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from notedigest.config import settings
from notedigest.exceptions import AttemptTimeoutError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AttemptResult(Generic[T]):
    """Outcome of one attempt: exactly one of value/error is meaningful."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RetryingCaller:
    """
    Generic retry/timeout/backoff policy. Knows nothing about the operation.

    Args:
        max_attempts:     Total attempts, including the first one
        attempt_timeout:  Seconds allowed per attempt, measured from its start
        backoff_base:     First backoff delay in seconds; doubles each retry
        sleep:            Awaitable sleep used between attempts (tests pass a no-op)
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        attempt_timeout: Optional[float] = None,
        backoff_base: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.max_attempts = max_attempts or settings.ai_max_attempts
        self.attempt_timeout = attempt_timeout or settings.ai_attempt_timeout
        self.backoff_base = settings.ai_backoff_base if backoff_base is None else backoff_base
        self._sleep = sleep

    async def _attempt(
        self, operation: Callable[[], Awaitable[T]], operation_name: str
    ) -> AttemptResult[T]:
        try:
            value = await asyncio.wait_for(operation(), timeout=self.attempt_timeout)
        except asyncio.TimeoutError:
            return AttemptResult(error=AttemptTimeoutError(operation_name, self.attempt_timeout))
        except Exception as e:
            return AttemptResult(error=e)
        return AttemptResult(value=value)

    def _log_retry(self, operation_name: str) -> Callable[[RetryCallState], None]:
        def before_sleep(retry_state: RetryCallState) -> None:
            result: AttemptResult = retry_state.outcome.result()
            logger.warning(
                "%s attempt %d/%d failed: %s; retrying in %.1fs",
                operation_name,
                retry_state.attempt_number,
                self.max_attempts,
                result.error,
                retry_state.next_action.sleep if retry_state.next_action else 0.0,
            )

        return before_sleep

    async def call(self, operation: Callable[[], Awaitable[T]], operation_name: str) -> T:
        """
        Runs `operation` until it succeeds or attempts run out.

        Raises:
            RetryExhaustedError: every attempt failed; carries the last error message.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_base, exp_base=2, min=0),
            retry=retry_if_result(lambda r: not r.ok),
            before_sleep=self._log_retry(operation_name),
            retry_error_callback=lambda state: state.outcome.result(),
            sleep=self._sleep,
        )

        result: AttemptResult[T] = await retrying(self._attempt, operation, operation_name)

        if result.ok:
            logger.debug("%s succeeded", operation_name)
            return result.value

        last_error = result.error
        message = getattr(last_error, "message", None) or str(last_error)
        logger.error(
            "%s failed after %d attempts: %s", operation_name, self.max_attempts, message
        )
        raise RetryExhaustedError(
            operation_name=operation_name,
            attempts=self.max_attempts,
            last_error=message,
        )
