"""
Outbound request dispatch - throttling, retry and sequential queuing.

- throttler: per-identity fixed-window rate limiting
- retry: error classification and bounded exponential backoff
- queue: FIFO single-flight execution of dependent requests
- usage: per-operation success/failure counters
"""

from core.dispatch.queue import QueueEntry, SequentialDispatchQueue
from core.dispatch.retry import RetryPolicy, classify_error, retry_with_backoff
from core.dispatch.throttler import (
    RateLimiterRegistry,
    RateLimiterState,
    RequestThrottler,
    monotonic_ms,
)
from core.dispatch.usage import ApiUsageTracker, OperationUsage

__all__ = [
    "ApiUsageTracker",
    "OperationUsage",
    "QueueEntry",
    "RateLimiterRegistry",
    "RateLimiterState",
    "RequestThrottler",
    "RetryPolicy",
    "SequentialDispatchQueue",
    "classify_error",
    "monotonic_ms",
    "retry_with_backoff",
]
