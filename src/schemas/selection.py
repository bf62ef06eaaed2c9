"""
Selection API models.

This module contains models for turning a selection mask into a crop:
- Mask payloads (encoded image or raw bytes)
- Crop and bounding box requests/responses
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from common.base import BoundingBox, ImageDimensions, PaddedRegion
from common.constants import SelectionConstants


class RawMaskPayload(BaseModel):
    """Raw row-major mask bytes, base64 encoded"""

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    data: str = Field(..., description="Base64 encoded bytes, one per pixel")


class MaskPayload(BaseModel):
    """Selection mask as an encoded grayscale image or raw bytes"""

    image: Optional[str] = Field(None, description="Base64 PNG/data URL of the mask")
    raw: Optional[RawMaskPayload] = None

    @model_validator(mode="after")
    def check_exactly_one(self) -> "MaskPayload":
        if (self.image is None) == (self.raw is None):
            raise ValueError("Provide exactly one of 'image' or 'raw'")
        return self


class BoundingBoxRequest(BaseModel):
    """Request to compute the bounding box of a selection mask"""

    mask: MaskPayload
    filter_largest: bool = Field(True, description="Keep only the largest connected component")


class BoundingBoxResponse(BaseModel):
    """Bounding box of a selection mask"""

    bounding_box: BoundingBox
    mask_dimensions: ImageDimensions
    selected_pixels: int


class SelectionCropRequest(BaseModel):
    """Request to crop an image to a padded selection"""

    image: str = Field(..., description="Base64 encoded source image or data URL")
    mask: MaskPayload
    padding_percent: Optional[float] = Field(
        None,
        ge=SelectionConstants.MIN_PADDING_PERCENT,
        le=SelectionConstants.MAX_PADDING_PERCENT,
        description="Context padding per side (defaults to configuration)",
    )
    filter_largest: Optional[bool] = Field(
        None, description="Keep only the largest connected component (defaults to configuration)"
    )


class SelectionCropResponse(BaseModel):
    """Cropped selection ready for the generation service"""

    bounding_box: BoundingBox
    region: PaddedRegion
    original_dimensions: ImageDimensions
    image: str = Field(..., description="Base64 PNG of the cropped region")
    data_url: str
    processing_time_ms: int
