"""
Tests for core.dispatch.throttler module.
"""

import pytest

from common.enums import RateLimitIdentity
from common.exceptions import InvalidParameterError, RateLimitExceededError
from config import RateLimitConfig
from core.dispatch.throttler import RateLimiterRegistry, RateLimiterState, RequestThrottler


def make_throttler(clock, capacity=3, window_ms=60_000, identity="test"):
    return RequestThrottler(
        RateLimiterState(identity=identity, capacity=capacity, window_ms=window_ms), clock=clock
    )


class TestRequestThrottler:
    """Tests for RequestThrottler."""

    def test_capacity_exhausted(self, fake_clock):
        """Test three requests pass and the fourth is refused."""
        throttler = make_throttler(fake_clock, capacity=3)

        for _ in range(3):
            assert throttler.can_make_request()
            throttler.record_request()

        assert not throttler.can_make_request()
        assert throttler.get_time_until_next_request() > 0

    def test_can_make_request_is_pure(self, fake_clock):
        """Test that checking does not consume capacity."""
        throttler = make_throttler(fake_clock, capacity=1)

        for _ in range(5):
            assert throttler.can_make_request()

        assert throttler.remaining() == 1

    def test_wait_time_counts_down(self, fake_clock):
        """Test the wait time reflects the window start."""
        throttler = make_throttler(fake_clock, capacity=1, window_ms=10_000)
        throttler.record_request()

        fake_clock.advance(4_000)

        assert throttler.get_time_until_next_request() == 6_000

    def test_window_resets(self, fake_clock):
        """Test capacity returns once the window elapses."""
        throttler = make_throttler(fake_clock, capacity=2, window_ms=1_000)
        throttler.record_request()
        throttler.record_request()
        assert not throttler.can_make_request()

        fake_clock.advance(1_000)

        assert throttler.can_make_request()
        assert throttler.get_time_until_next_request() == 0
        throttler.record_request()
        assert throttler.remaining() == 1

    def test_record_when_full_raises(self, fake_clock):
        """Test recording past capacity raises with the wait time."""
        throttler = make_throttler(fake_clock, capacity=1, window_ms=5_000)
        throttler.record_request()

        with pytest.raises(RateLimitExceededError) as exc_info:
            throttler.record_request()

        error = exc_info.value
        assert error.recoverable is True
        assert error.retry_after_ms == 5_000
        assert "5 seconds" in error.message

    def test_acquire(self, fake_clock):
        """Test acquire checks and records in one step."""
        throttler = make_throttler(fake_clock, capacity=1)

        throttler.acquire()

        with pytest.raises(RateLimitExceededError):
            throttler.acquire()

    def test_zero_capacity_rejected(self, fake_clock):
        """Test a throttler that could never admit a request is refused."""
        with pytest.raises(InvalidParameterError) as exc_info:
            make_throttler(fake_clock, capacity=0, window_ms=2_000)

        assert exc_info.value.details["param"] == "capacity"
        assert exc_info.value.recoverable is False

    def test_invalid_configuration(self, fake_clock):
        """Test invalid capacity or window is rejected."""
        with pytest.raises(InvalidParameterError):
            make_throttler(fake_clock, capacity=-1)
        with pytest.raises(InvalidParameterError):
            make_throttler(fake_clock, window_ms=0)

    def test_snapshot(self, fake_clock):
        """Test snapshot reports usage."""
        throttler = make_throttler(fake_clock, capacity=3)
        throttler.record_request()

        snapshot = throttler.snapshot()

        assert snapshot["used"] == 1
        assert snapshot["remaining"] == 2
        assert snapshot["retry_after_ms"] == 0

    def test_reset(self, fake_clock):
        """Test reset restores capacity."""
        throttler = make_throttler(fake_clock, capacity=1)
        throttler.record_request()

        throttler.reset()

        assert throttler.can_make_request()


class TestRateLimiterRegistry:
    """Tests for RateLimiterRegistry."""

    def test_identities_are_independent(self, rate_limiters):
        """Test exhausting one identity leaves the other untouched."""
        dissection = rate_limiters.get(RateLimitIdentity.DISSECTION)
        for _ in range(5):
            dissection.acquire()

        assert not dissection.can_make_request()
        assert rate_limiters.get(RateLimitIdentity.IMAGE_GENERATION).remaining() == 10

    def test_get_by_string(self, rate_limiters):
        """Test identities can be looked up by name."""
        assert rate_limiters.get("dissection") is rate_limiters.get(RateLimitIdentity.DISSECTION)

    def test_unknown_identity(self, rate_limiters):
        """Test unknown identities raise InvalidParameterError."""
        with pytest.raises(InvalidParameterError):
            rate_limiters.get("unknown")

    def test_reset_all(self, rate_limiters):
        """Test registry reset clears every window."""
        rate_limiters.get("dissection").acquire()
        rate_limiters.get("image-generation").acquire()

        rate_limiters.reset()

        snapshot = rate_limiters.snapshot()
        assert all(status["used"] == 0 for status in snapshot.values())

    def test_from_settings(self, fake_clock):
        """Test registry built from configuration."""
        config = RateLimitConfig(
            image_generation_capacity=2,
            image_generation_window_ms=1_000,
            dissection_capacity=1,
            dissection_window_ms=500,
        )

        registry = RateLimiterRegistry.from_settings(config, clock=fake_clock)

        assert sorted(registry.identities()) == ["dissection", "image-generation"]
        assert registry.get("image-generation").state.capacity == 2
        assert registry.get("dissection").state.window_ms == 500
