"""
Base data models - fundamental types without dependencies.

This module contains basic Pydantic models used throughout the system:
- ImageDimensions: width/height of a source raster
- BoundingBox: integer pixel rectangle with geometric helpers
- PaddedRegion: bounding box expanded with context padding

IMPORTANT: This module must NOT import from schemas, core, services, or api
to avoid circular dependencies.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import BaseModel, Field, model_validator


class ImageDimensions(BaseModel):
    """Width and height of an image in pixels."""

    width: int = Field(..., gt=0, description="Image width")
    height: int = Field(..., gt=0, description="Image height")

    @classmethod
    def from_shape(cls, shape: Tuple[int, ...]) -> "ImageDimensions":
        """Create dimensions from a NumPy shape (height, width, ...)."""
        return cls(width=int(shape[1]), height=int(shape[0]))

    @property
    def area_pixels(self) -> int:
        return self.width * self.height


class BoundingBox(BaseModel):
    """
    Axis-aligned integer rectangle in image coordinates.

    The right and bottom edges are exclusive: a box covers the columns
    ``x .. x + width - 1`` and the rows ``y .. y + height - 1``.
    """

    x: int = Field(..., ge=0, description="X coordinate of the top-left pixel")
    y: int = Field(..., ge=0, description="Y coordinate of the top-left pixel")
    width: int = Field(..., ge=1, description="Width")
    height: int = Field(..., ge=1, description="Height")

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for service layer compatibility."""
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoundingBox":
        """Create bounding box from dictionary."""
        return cls(
            x=int(data.get("x", 0)),
            y=int(data.get("y", 0)),
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
        )

    @classmethod
    def from_extents(cls, min_x: int, min_y: int, max_x: int, max_y: int) -> "BoundingBox":
        """Create bounding box from inclusive pixel extents."""
        return cls(x=min_x, y=min_y, width=max_x - min_x + 1, height=max_y - min_y + 1)

    @property
    def x2(self) -> int:
        """Get right edge coordinate (exclusive)."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Get bottom edge coordinate (exclusive)."""
        return self.y + self.height

    @property
    def area_pixels(self) -> int:
        """Get area of box in pixels."""
        return self.width * self.height

    def contains_point(self, x: int, y: int) -> bool:
        """Check if point is inside box."""
        return self.x <= x < self.x2 and self.y <= y < self.y2

    def contains(self, other: "BoundingBox") -> bool:
        """Check if another box lies fully inside this one."""
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.x2 <= self.x2
            and other.y2 <= self.y2
        )

    def fits_within(self, image_width: int, image_height: int) -> bool:
        """Check if box lies within ``[0, image_width) x [0, image_height)``."""
        return self.x2 <= image_width and self.y2 <= image_height


class PaddedRegion(BoundingBox):
    """
    Bounding box expanded by context padding.

    ``original_box`` is the unpadded selection and is always contained in the
    region; UI overlays use it to highlight the exact selection.
    """

    padding_percent: float = Field(..., ge=0, description="Requested padding percent")
    original_box: BoundingBox

    @model_validator(mode="after")
    def check_contains_original(self) -> "PaddedRegion":
        if not self.contains(self.original_box):
            raise ValueError(
                f"Region {self.to_dict()} does not contain original box "
                f"{self.original_box.to_dict()}"
            )
        return self

    def as_box(self) -> BoundingBox:
        """Return the region bounds as a plain bounding box."""
        return BoundingBox(x=self.x, y=self.y, width=self.width, height=self.height)
