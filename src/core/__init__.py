"""
Core modules for the Craftus selection pipeline
"""

from .dispatch import (
    ApiUsageTracker,
    QueueEntry,
    RateLimiterRegistry,
    RequestThrottler,
    RetryPolicy,
    SequentialDispatchQueue,
    retry_with_backoff,
)
from .image import (
    CroppedImage,
    Mask,
    add_context_padding,
    calculate_bounding_box,
    crop_image_to_region,
    filter_largest_region,
)

__all__ = [
    "ApiUsageTracker",
    "CroppedImage",
    "Mask",
    "QueueEntry",
    "RateLimiterRegistry",
    "RequestThrottler",
    "RetryPolicy",
    "SequentialDispatchQueue",
    "add_context_padding",
    "calculate_bounding_box",
    "crop_image_to_region",
    "filter_largest_region",
    "retry_with_backoff",
]
