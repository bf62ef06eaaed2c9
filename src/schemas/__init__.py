"""
Schemas Package

This package contains all Pydantic schemas for data validation and serialization,
organized by domain for better maintainability.

These schemas are shared across the application layers:
- API (routers, dependencies)
- Services (business logic)

Note: "schemas" (not "models") follows FastAPI best practices:
- schemas/ = Pydantic models for validation/serialization
- models/ or db/models/ = ORM/database models (not used in this project)
"""

# Re-export base types from common package for convenience
from common.base import BoundingBox, ImageDimensions, PaddedRegion
from common.enums import Complexity, ErrorKind

# Common models
from .common import ErrorResponse

# Generation service models
from .generation import (
    DissectionResponse,
    IdentifyResponse,
    InstructionStep,
    SelectionAnalysisRequest,
    SelectionDissectionResponse,
    StepImageResult,
    StepImagesRequest,
    StepImagesResponse,
)

# Selection models
from .selection import (
    BoundingBoxRequest,
    BoundingBoxResponse,
    MaskPayload,
    RawMaskPayload,
    SelectionCropRequest,
    SelectionCropResponse,
)

# System models
from .system import OperationUsageStats, RateLimitStatus, SystemStatus, UsageStatistics

__all__ = [
    # Base types
    "BoundingBox",
    "ImageDimensions",
    "PaddedRegion",
    "Complexity",
    "ErrorKind",
    # Common
    "ErrorResponse",
    # Generation
    "DissectionResponse",
    "IdentifyResponse",
    "InstructionStep",
    "SelectionAnalysisRequest",
    "SelectionDissectionResponse",
    "StepImageResult",
    "StepImagesRequest",
    "StepImagesResponse",
    # Selection
    "BoundingBoxRequest",
    "BoundingBoxResponse",
    "MaskPayload",
    "RawMaskPayload",
    "SelectionCropRequest",
    "SelectionCropResponse",
    # System
    "OperationUsageStats",
    "RateLimitStatus",
    "SystemStatus",
    "UsageStatistics",
]
