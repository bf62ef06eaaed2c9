"""
Common models shared across the API.

This module contains the error surface returned to the calling layer.
Geometric types (BoundingBox, PaddedRegion) live in common.base to avoid
circular dependencies.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field

from common.enums import ErrorKind


class ErrorResponse(BaseModel):
    """Error surface returned to the UI layer"""

    kind: ErrorKind
    message: str = Field(..., description="Human readable message")
    recoverable: bool = Field(..., description="Whether a retry action should be offered")
    details: Dict[str, Any] = Field(default_factory=dict)
