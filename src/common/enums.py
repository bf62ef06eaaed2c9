"""
Centralized enums for the selection pipeline.

This module contains all enumeration types used throughout the system,
providing a single source of truth for enum definitions.
"""

from enum import Enum


# Error taxonomy
class ErrorKind(str, Enum):
    """Kinds of error surfaced to the calling layer."""

    NO_SELECTION = "NoSelection"
    SELECTION_TOO_SMALL = "SelectionTooSmall"
    SELECTION_TOO_LARGE = "SelectionTooLarge"
    INVALID_PARAMETER = "InvalidParameter"
    IMAGE_LOAD_FAILED = "ImageLoadFailed"
    CROP_FAILED = "CropFailed"
    RATE_LIMIT_EXCEEDED = "RateLimitExceeded"
    TRANSIENT_SERVICE_ERROR = "TransientServiceError"
    PERMANENT_SERVICE_ERROR = "PermanentServiceError"
    INVALID_RESPONSE = "InvalidResponse"


# Rate limit identities
class RateLimitIdentity(str, Enum):
    """Independently throttled classes of outbound requests."""

    IMAGE_GENERATION = "image-generation"
    DISSECTION = "dissection"


# Dispatch queue states
class QueueState(str, Enum):
    """Lifecycle state of a sequential dispatch queue."""

    IDLE = "idle"
    DRAINING = "draining"


# Dissection complexity
class Complexity(str, Enum):
    """Complexity rating returned by the dissection collaborator."""

    SIMPLE = "Simple"
    MODERATE = "Moderate"
    COMPLEX = "Complex"
