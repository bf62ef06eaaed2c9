"""
Generation service models.

This module contains models for payloads exchanged with the remote
generation service:
- Dissection response (complexity, materials, instruction steps)
- Per-step image generation results
- Identify, dissect and step image API requests/responses
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from common.base import BoundingBox, PaddedRegion
from common.constants import GenerationConstants
from common.enums import Complexity
from schemas.common import ErrorResponse
from schemas.selection import SelectionCropRequest

COMPLEXITY_SCORE_MIN = 1.0
COMPLEXITY_SCORE_MAX = 10.0


class InstructionStep(BaseModel):
    """One instruction step of a dissected object"""

    step_number: int = Field(..., ge=1, alias="stepNumber")
    title: str = Field(..., min_length=1)
    description: str
    safety_warning: Optional[str] = Field(None, alias="safetyWarning")

    model_config = {"populate_by_name": True}


class DissectionResponse(BaseModel):
    """Validated dissection payload"""

    complexity: Complexity
    complexity_score: float = Field(..., alias="complexityScore", allow_inf_nan=False)
    materials: List[str]
    steps: List[InstructionStep] = Field(..., min_length=1)

    model_config = {"populate_by_name": True}

    @field_validator("complexity_score")
    @classmethod
    def clamp_complexity_score(cls, v: float) -> float:
        """Clamp the score into the 1-10 scale."""
        return min(max(v, COMPLEXITY_SCORE_MIN), COMPLEXITY_SCORE_MAX)


class StepImageResult(BaseModel):
    """Outcome of generating the image for one step"""

    step_number: int
    image: Optional[str] = Field(None, description="Base64 image data when generation succeeded")
    error: Optional[ErrorResponse] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class SelectionAnalysisRequest(SelectionCropRequest):
    """Request to identify or dissect a selection"""

    label: Optional[str] = Field(
        None,
        min_length=1,
        max_length=GenerationConstants.MAX_LABEL_LENGTH,
        description="Object name; identified from the images when omitted",
    )


class IdentifyResponse(BaseModel):
    """Name of the selected object"""

    label: str
    bounding_box: BoundingBox
    processing_time_ms: int


class SelectionDissectionResponse(BaseModel):
    """Dissection of a selected object"""

    label: str
    bounding_box: BoundingBox
    region: PaddedRegion
    image: str = Field(..., description="Base64 PNG of the cropped region sent for dissection")
    dissection: DissectionResponse
    processing_time_ms: int


class StepImagesRequest(BaseModel):
    """Request to illustrate every step of a dissection"""

    reference_image: str = Field(..., description="Base64 PNG or data URL of the selection")
    dissection: DissectionResponse


class StepImagesResponse(BaseModel):
    """Per-step image results, in step order"""

    results: List[StepImageResult]
    succeeded: int
    failed: int
    processing_time_ms: int
