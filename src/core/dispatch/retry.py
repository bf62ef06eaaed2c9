"""
Retry utilities for calls to the remote generation service.

Raw transport errors are classified once, at the call boundary, into
``TransientServiceError`` (retried with exponential backoff) or
``PermanentServiceError`` (raised immediately). Errors already in the
pipeline taxonomy pass through untouched and are never retried unless they
are transient.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from common.constants import RetryConstants
from common.exceptions import (
    CraftusException,
    InvalidParameterError,
    PermanentServiceError,
    TransientServiceError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration."""

    max_retries: int = RetryConstants.DEFAULT_MAX_RETRIES
    base_delay_ms: int = RetryConstants.DEFAULT_BASE_DELAY_MS
    backoff_multiplier: float = RetryConstants.DEFAULT_BACKOFF_MULTIPLIER

    def __post_init__(self):
        if self.max_retries < 0:
            raise InvalidParameterError("max_retries", self.max_retries, "must be >= 0")
        if self.base_delay_ms < 0:
            raise InvalidParameterError("base_delay_ms", self.base_delay_ms, "must be >= 0")
        if self.backoff_multiplier < 1:
            raise InvalidParameterError(
                "backoff_multiplier", self.backoff_multiplier, "must be >= 1"
            )

    def delay_ms(self, attempt: int) -> float:
        """Delay before the retry that follows failed attempt ``attempt`` (0-based)."""
        return self.base_delay_ms * self.backoff_multiplier**attempt

    @classmethod
    def from_settings(cls, retry_config) -> "RetryPolicy":
        return cls(
            max_retries=retry_config.max_retries,
            base_delay_ms=retry_config.base_delay_ms,
            backoff_multiplier=retry_config.backoff_multiplier,
        )


def _status_of(error: BaseException) -> Optional[int]:
    """Extract an HTTP status from the usual client exception attributes."""
    for attr in ("status", "status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
    return None


def classify_error(error: Exception) -> CraftusException:
    """
    Map a raw error from the remote service into the pipeline taxonomy.

    Args:
        error: Exception raised by the external call

    Returns:
        ``error`` itself if already a pipeline error, otherwise a
        TransientServiceError (429/503 or "overloaded") or PermanentServiceError
    """
    if isinstance(error, CraftusException):
        return error

    status = _status_of(error)
    message = str(error) or type(error).__name__

    if status in RetryConstants.TRANSIENT_STATUS_CODES:
        return TransientServiceError(message, status=status)
    if RetryConstants.OVERLOADED_MARKER in message.lower():
        return TransientServiceError(message, status=status)

    return PermanentServiceError(message, status=status)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    operation: str = "remote call",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Execute an async function with exponential backoff retry.

    Args:
        fn: Zero-argument coroutine function performing the external call
        policy: Retry policy (defaults: 3 retries, 2000ms base, x2)
        operation: Name for logging
        sleep: Awaitable sleep taking seconds, injectable for tests

    Returns:
        Result of ``fn``

    Raises:
        TransientServiceError: Last transient error once retries are exhausted
        CraftusException: Any non-transient error, on first occurrence
    """
    policy = policy or RetryPolicy()

    for attempt in range(policy.max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            error = classify_error(e)

            if not isinstance(error, TransientServiceError):
                if error is e:
                    raise
                raise error from e

            if attempt >= policy.max_retries:
                logger.warning(
                    f"{operation} failed after {attempt + 1} attempts: {error.message}"
                )
                if error is e:
                    raise
                raise error from e

            delay_ms = policy.delay_ms(attempt)
            logger.warning(
                f"{operation} overloaded. Retrying in {delay_ms:.0f}ms... "
                f"({policy.max_retries - attempt} attempts left)"
            )
            await sleep(delay_ms / 1000)

    # Loop always returns or raises
    raise AssertionError("unreachable")
