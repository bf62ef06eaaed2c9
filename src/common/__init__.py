"""
Common package - fundamental types without project dependencies.

This package contains basic types that are used throughout the system:
- Enums (ErrorKind, RateLimitIdentity, etc.)
- Constants (SelectionConstants, RetryConstants, etc.)
- Base models (ImageDimensions, BoundingBox, PaddedRegion)
- Exception taxonomy

IMPORTANT: This package must NOT import from any other project packages
(schemas, core, services, api) to avoid circular dependencies.
"""

# Export base models
from common.base import BoundingBox, ImageDimensions, PaddedRegion

# Export all constants
from common.constants import (
    APIConstants,
    DispatchConstants,
    ImageConstants,
    RateLimitConstants,
    RetryConstants,
    SelectionConstants,
    SystemConstants,
)

# Export all enums
from common.enums import Complexity, ErrorKind, QueueState, RateLimitIdentity

# Export exceptions
from common.exceptions import (
    CraftusException,
    CropFailedError,
    ImageLoadFailedError,
    InvalidParameterError,
    InvalidResponseError,
    NoSelectionError,
    PermanentServiceError,
    RateLimitExceededError,
    SelectionTooLargeError,
    SelectionTooSmallError,
    ServiceError,
    TransientServiceError,
)

__all__ = [
    # Enums
    "Complexity",
    "ErrorKind",
    "QueueState",
    "RateLimitIdentity",
    # Constants
    "APIConstants",
    "DispatchConstants",
    "ImageConstants",
    "RateLimitConstants",
    "RetryConstants",
    "SelectionConstants",
    "SystemConstants",
    # Base models
    "BoundingBox",
    "ImageDimensions",
    "PaddedRegion",
    # Exceptions
    "CraftusException",
    "CropFailedError",
    "ImageLoadFailedError",
    "InvalidParameterError",
    "InvalidResponseError",
    "NoSelectionError",
    "PermanentServiceError",
    "RateLimitExceededError",
    "SelectionTooLargeError",
    "SelectionTooSmallError",
    "ServiceError",
    "TransientServiceError",
]
