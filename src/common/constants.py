"""
Constants and configuration values for the Craftus selection pipeline.
Centralizes all magic numbers and configuration defaults.
"""


# Selection Constants
class SelectionConstants:
    """Constants related to mask analysis and region preparation."""

    # Mask values
    MASK_THRESHOLD = 128  # Pixels >= threshold are selected
    MASK_CLEARED_VALUE = 0

    # Context padding (percent of box size per side)
    DEFAULT_PADDING_PERCENT = 20
    MIN_PADDING_PERCENT = 0
    MAX_PADDING_PERCENT = 50

    # Selection size limits
    MIN_SELECTION_SIZE = 2  # pixels, per side
    MAX_SELECTION_RATIO = 0.98  # fraction of image area

    # Connectivity used for component labeling
    CONNECTIVITY = 4


# Image Constants
class ImageConstants:
    """Constants related to image decoding and encoding."""

    OUTPUT_FORMAT = ".png"
    OUTPUT_MIME_TYPE = "image/png"
    MAX_IMAGE_DIMENSION = 8192


# Rate Limit Constants
class RateLimitConstants:
    """Constants for per-identity request throttling."""

    IMAGE_GENERATION_CAPACITY = 10
    IMAGE_GENERATION_WINDOW_MS = 60_000

    DISSECTION_CAPACITY = 5
    DISSECTION_WINDOW_MS = 60_000

    MIN_WINDOW_MS = 1
    MAX_WINDOW_MS = 3_600_000


# Retry Constants
class RetryConstants:
    """Constants for exponential backoff of transient failures."""

    DEFAULT_MAX_RETRIES = 3
    DEFAULT_BASE_DELAY_MS = 2000
    DEFAULT_BACKOFF_MULTIPLIER = 2.0

    # HTTP status codes treated as transient
    TRANSIENT_STATUS_CODES = (429, 503)
    OVERLOADED_MARKER = "overloaded"


# Dispatch Constants
class DispatchConstants:
    """Constants for sequential dispatch of dependent requests."""

    DEFAULT_INTER_ENTRY_DELAY_MS = 1000
    MAX_INTER_ENTRY_DELAY_MS = 60_000


# Generation Constants
class GenerationConstants:
    """Constants for the remote generation service."""

    TEXT_MODEL = "gemini-2.5-flash"
    IMAGE_MODEL = "gemini-3-pro-image-preview"
    STEP_IMAGE_ASPECT_RATIO = "16:9"
    REFERENCE_MIME_TYPE = "image/png"

    # Label used when the selected object cannot be identified
    FALLBACK_LABEL = "Selected Object"
    MAX_LABEL_LENGTH = 80


# API Constants
class APIConstants:
    """Constants for API configuration."""

    API_VERSION = "v1"
    MAX_UPLOAD_SIZE_MB = 50


# System Constants
class SystemConstants:
    """System-wide constants."""

    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
