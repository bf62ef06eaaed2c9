"""
Exception taxonomy for the selection pipeline.

Every error that reaches the calling layer is a ``CraftusException`` carrying
an ``ErrorKind``, a human readable message and a ``recoverable`` flag telling
the UI whether a retry action should be offered.
"""

from typing import Any, Dict, Optional

from common.enums import ErrorKind


class CraftusException(Exception):
    """Base exception for the selection pipeline."""

    kind: ErrorKind = ErrorKind.PERMANENT_SERVICE_ERROR
    recoverable: bool = False
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the error surface returned to callers."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
        }


# Validation errors


class NoSelectionError(CraftusException):
    """Raised when a mask contains no selected pixel."""

    kind = ErrorKind.NO_SELECTION
    status_code = 422

    def __init__(self, threshold: int):
        super().__init__(
            message="No pixels selected. Click on an object to select it.",
            details={"threshold": threshold},
        )


class SelectionTooSmallError(CraftusException):
    """Raised when the selected region is below the minimum size."""

    kind = ErrorKind.SELECTION_TOO_SMALL
    status_code = 422

    def __init__(self, width: int, height: int, min_size: int):
        super().__init__(
            message=f"Selection too small: {width}x{height} (min: {min_size}px per side)",
            details={"width": width, "height": height, "min_size": min_size},
        )


class SelectionTooLargeError(CraftusException):
    """Raised when the selected region covers nearly the whole image."""

    kind = ErrorKind.SELECTION_TOO_LARGE
    status_code = 422

    def __init__(self, ratio: float, max_ratio: float):
        super().__init__(
            message=(
                f"Selection covers {ratio:.0%} of the image (max: {max_ratio:.0%}). "
                "Select a single object instead."
            ),
            details={"ratio": round(ratio, 4), "max_ratio": max_ratio},
        )


class InvalidParameterError(CraftusException):
    """Raised when a pipeline parameter is out of range."""

    kind = ErrorKind.INVALID_PARAMETER
    status_code = 400

    def __init__(self, param: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid parameter {param}={value!r}: {reason}",
            details={"param": param, "value": value, "reason": reason},
        )


# Image errors


class ImageLoadFailedError(CraftusException):
    """Raised when an image or mask cannot be decoded."""

    kind = ErrorKind.IMAGE_LOAD_FAILED
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(message=f"Failed to load image: {reason}", details={"reason": reason})


class CropFailedError(CraftusException):
    """Raised when a region cannot be cropped or encoded."""

    kind = ErrorKind.CROP_FAILED
    status_code = 500

    def __init__(self, reason: str, region: Optional[Dict[str, int]] = None):
        super().__init__(
            message=f"Failed to crop image: {reason}",
            details={"reason": reason, "region": region},
        )


# Dispatch errors


class RateLimitExceededError(CraftusException):
    """Raised when an identity has no capacity left in its window."""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    recoverable = True
    status_code = 429

    def __init__(self, identity: str, retry_after_ms: int):
        self.identity = identity
        self.retry_after_ms = retry_after_ms
        wait_seconds = -(-retry_after_ms // 1000)  # ceil
        super().__init__(
            message=f"Rate limit exceeded. Please wait {wait_seconds} seconds before trying again.",
            details={"identity": identity, "retry_after_ms": retry_after_ms},
        )


class ServiceError(CraftusException):
    """Base for failures of the remote generation service."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message=message, details={"status": status})


class TransientServiceError(ServiceError):
    """Remote service is overloaded or throttling; safe to retry."""

    kind = ErrorKind.TRANSIENT_SERVICE_ERROR
    recoverable = True
    status_code = 503


class PermanentServiceError(ServiceError):
    """Remote service rejected the request; retrying will not help."""

    kind = ErrorKind.PERMANENT_SERVICE_ERROR
    status_code = 502


class GenerationNotConfiguredError(PermanentServiceError):
    """Raised when no generation client is attached to the application."""

    status_code = 503

    def __init__(self):
        super().__init__("Generation service is not configured. Set an API key to enable it.")


class InvalidResponseError(CraftusException):
    """Remote service returned a malformed or missing payload."""

    kind = ErrorKind.INVALID_RESPONSE
    status_code = 502

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Invalid response from {operation}: {reason}",
            details={"operation": operation, "reason": reason},
        )
