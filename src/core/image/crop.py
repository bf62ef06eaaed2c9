"""
Region cropping for outbound requests.

Extracts the padded selection from the source raster as an owned copy and
encodes it as PNG for the generation service.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Dict, Union

import cv2
import numpy as np

from common.base import BoundingBox, ImageDimensions
from common.constants import ImageConstants
from common.exceptions import CropFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CroppedImage:
    """Cropped sub-image ready to be sent to the generation service."""

    pixels: np.ndarray  # read-only copy, never a view of the source
    data: bytes  # PNG encoded pixels
    region: BoundingBox
    original_dimensions: ImageDimensions

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    def to_data_url(self) -> str:
        return f"data:{ImageConstants.OUTPUT_MIME_TYPE};base64,{self.to_base64()}"


def crop_image_to_region(
    image: np.ndarray, region: Union[BoundingBox, Dict[str, int]]
) -> CroppedImage:
    """
    Crop image to region.

    Integer region bounds map 1:1 onto output pixels; there is no resampling,
    so identical inputs always produce identical bytes.

    Args:
        image: Source image (H x W or H x W x C), only read
        region: Region to extract, must lie inside the image

    Returns:
        CroppedImage with an owned pixel copy and PNG bytes

    Raises:
        CropFailedError: If region is empty, out of bounds, or encoding fails
    """
    if isinstance(region, dict):
        if int(region.get("width", 0)) <= 0 or int(region.get("height", 0)) <= 0:
            raise CropFailedError("region has zero area", region=region)
        region = BoundingBox.from_dict(region)

    if image is None or image.size == 0 or image.ndim not in (2, 3):
        raise CropFailedError("source image is empty or has unsupported shape", region.to_dict())

    img_height, img_width = image.shape[:2]
    if region.area_pixels <= 0:
        raise CropFailedError("region has zero area", region.to_dict())
    if not region.fits_within(img_width, img_height):
        raise CropFailedError(
            f"region exceeds image bounds {img_width}x{img_height}", region.to_dict()
        )

    pixels = image[region.y : region.y2, region.x : region.x2].copy()

    try:
        success, buffer = cv2.imencode(ImageConstants.OUTPUT_FORMAT, pixels)
    except cv2.error as e:
        raise CropFailedError(f"encoding failed: {e}", region.to_dict()) from e

    if not success:
        raise CropFailedError("encoding failed", region.to_dict())

    pixels.flags.writeable = False

    logger.debug(
        f"Cropped {region.to_dict()} from {img_width}x{img_height} ({len(buffer)} bytes PNG)"
    )
    return CroppedImage(
        pixels=pixels,
        data=buffer.tobytes(),
        region=region,
        original_dimensions=ImageDimensions(width=img_width, height=img_height),
    )
