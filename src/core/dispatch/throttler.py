"""
Per-identity request throttling.

Fixed-window counting: each identity may make ``capacity`` requests per
``window_ms``. Identities are independent, so exhausting image generation does
not block dissection.

Execution is single-threaded (one asyncio loop), so ``acquire`` performs
check-then-record without locks.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Union

from common.enums import RateLimitIdentity
from common.exceptions import InvalidParameterError, RateLimitExceededError

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Current monotonic time in milliseconds."""
    return time.monotonic() * 1000


@dataclass
class RateLimiterState:
    """Window state of one rate-limit identity."""

    identity: str
    capacity: int
    window_ms: int
    count: int = 0
    window_start_ms: Optional[float] = None

    def reset(self) -> None:
        self.count = 0
        self.window_start_ms = None


class RequestThrottler:
    """Fixed-window rate limiter for one identity."""

    def __init__(self, state: RateLimiterState, clock: Callable[[], float] = monotonic_ms):
        """
        Initialize throttler

        Args:
            state: Window state owned by this throttler
            clock: Millisecond clock, injectable for tests
        """
        if state.capacity < 1:
            raise InvalidParameterError("capacity", state.capacity, "must be >= 1")
        if state.window_ms <= 0:
            raise InvalidParameterError("window_ms", state.window_ms, "must be > 0")

        self.state = state
        self._clock = clock

    @property
    def identity(self) -> str:
        return self.state.identity

    def _window_expired(self, now: float) -> bool:
        start = self.state.window_start_ms
        return start is None or now - start >= self.state.window_ms

    def _used(self, now: float) -> int:
        return 0 if self._window_expired(now) else self.state.count

    def can_make_request(self) -> bool:
        """Check whether a request is allowed now (does not consume capacity)."""
        return self._used(self._clock()) < self.state.capacity

    def get_time_until_next_request(self) -> int:
        """Milliseconds until a request is allowed, 0 if allowed now."""
        now = self._clock()
        if self._used(now) < self.state.capacity:
            return 0
        remaining = self.state.window_start_ms + self.state.window_ms - now
        return max(1, math.ceil(remaining))

    def remaining(self) -> int:
        """Requests left in the current window."""
        return max(0, self.state.capacity - self._used(self._clock()))

    def record_request(self) -> None:
        """
        Consume one unit of capacity.

        Raises:
            RateLimitExceededError: If the current window is exhausted
        """
        now = self._clock()
        if self._window_expired(now):
            self.state.window_start_ms = now
            self.state.count = 0

        if self.state.count >= self.state.capacity:
            wait_ms = self.get_time_until_next_request()
            logger.warning(f"Rate limit exceeded for {self.identity}, retry in {wait_ms}ms")
            raise RateLimitExceededError(self.identity, wait_ms)

        self.state.count += 1
        logger.debug(
            f"Recorded request for {self.identity} "
            f"({self.state.count}/{self.state.capacity} in window)"
        )

    def acquire(self) -> None:
        """
        Check capacity and record a request in one step.

        Raises:
            RateLimitExceededError: With the exact wait time if no capacity is left
        """
        if not self.can_make_request():
            wait_ms = self.get_time_until_next_request()
            logger.warning(f"Rate limit exceeded for {self.identity}, retry in {wait_ms}ms")
            raise RateLimitExceededError(self.identity, wait_ms)
        self.record_request()

    def reset(self) -> None:
        self.state.reset()

    def snapshot(self) -> Dict[str, Union[str, int]]:
        """Current status for monitoring endpoints."""
        return {
            "identity": self.identity,
            "capacity": self.state.capacity,
            "window_ms": self.state.window_ms,
            "used": self._used(self._clock()),
            "remaining": self.remaining(),
            "retry_after_ms": self.get_time_until_next_request(),
        }


def _identity_key(identity: Union[RateLimitIdentity, str]) -> str:
    return identity.value if isinstance(identity, RateLimitIdentity) else identity


class RateLimiterRegistry:
    """
    Session-scoped owner of all throttlers.

    Created once at startup and injected wherever outbound calls are made.
    """

    def __init__(self, clock: Callable[[], float] = monotonic_ms):
        self._clock = clock
        self._throttlers: Dict[str, RequestThrottler] = {}

    def register(
        self, identity: Union[RateLimitIdentity, str], capacity: int, window_ms: int
    ) -> RequestThrottler:
        """Create (or replace) the throttler for an identity."""
        key = _identity_key(identity)
        throttler = RequestThrottler(
            RateLimiterState(identity=key, capacity=capacity, window_ms=window_ms),
            clock=self._clock,
        )
        self._throttlers[key] = throttler
        logger.info(f"Rate limiter registered: {key} ({capacity} per {window_ms}ms)")
        return throttler

    def get(self, identity: Union[RateLimitIdentity, str]) -> RequestThrottler:
        key = _identity_key(identity)
        try:
            return self._throttlers[key]
        except KeyError:
            raise InvalidParameterError("identity", key, "no rate limiter registered") from None

    def identities(self) -> Iterable[str]:
        return list(self._throttlers)

    def reset(self) -> None:
        """Reset all windows (used between tests and sessions)."""
        for throttler in self._throttlers.values():
            throttler.reset()
        logger.info("Rate limiters reset")

    def snapshot(self) -> Dict[str, Dict[str, Union[str, int]]]:
        return {key: throttler.snapshot() for key, throttler in self._throttlers.items()}

    @classmethod
    def from_settings(cls, rate_limit_config, clock: Callable[[], float] = monotonic_ms):
        """Build the registry from ``RateLimitConfig`` settings."""
        registry = cls(clock=clock)
        registry.register(
            RateLimitIdentity.IMAGE_GENERATION,
            rate_limit_config.image_generation_capacity,
            rate_limit_config.image_generation_window_ms,
        )
        registry.register(
            RateLimitIdentity.DISSECTION,
            rate_limit_config.dissection_capacity,
            rate_limit_config.dissection_window_ms,
        )
        return registry
