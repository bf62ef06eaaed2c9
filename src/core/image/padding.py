"""
Context padding around a selection.

Small attached details (straps, handles, trims) often fall just outside the
segmentation mask. Expanding the box by a percentage of its own size keeps
them in the crop sent to the generation service.
"""

import logging
import math

from common.base import BoundingBox, ImageDimensions, PaddedRegion
from common.constants import SelectionConstants
from common.exceptions import InvalidParameterError

logger = logging.getLogger(__name__)


def add_context_padding(
    box: BoundingBox,
    image_dimensions: ImageDimensions,
    padding_percent: float = SelectionConstants.DEFAULT_PADDING_PERCENT,
) -> PaddedRegion:
    """
    Expand a bounding box by a percentage, clamped to image bounds.

    Each edge is clamped independently: padding removed at an image border is
    not added to the opposite side, so selections touching a border get
    asymmetric context.

    Args:
        box: Selection bounding box
        image_dimensions: Source image size
        padding_percent: Padding per side as percent of box width/height (0-50)

    Returns:
        PaddedRegion within ``[0, W) x [0, H)`` that contains ``box``

    Raises:
        InvalidParameterError: If padding is out of range or box exceeds the image
    """
    if not (
        SelectionConstants.MIN_PADDING_PERCENT
        <= padding_percent
        <= SelectionConstants.MAX_PADDING_PERCENT
    ):
        raise InvalidParameterError(
            "padding_percent",
            padding_percent,
            f"must be between {SelectionConstants.MIN_PADDING_PERCENT} "
            f"and {SelectionConstants.MAX_PADDING_PERCENT}",
        )

    img_width, img_height = image_dimensions.width, image_dimensions.height
    if not box.fits_within(img_width, img_height):
        raise InvalidParameterError(
            "box", box.to_dict(), f"exceeds image bounds {img_width}x{img_height}"
        )

    padding_x = math.floor(box.width * padding_percent / 100)
    padding_y = math.floor(box.height * padding_percent / 100)

    x = max(0, box.x - padding_x)
    y = max(0, box.y - padding_y)
    width = min(box.width + 2 * padding_x, img_width - x)
    height = min(box.height + 2 * padding_y, img_height - y)

    region = PaddedRegion(
        x=x,
        y=y,
        width=width,
        height=height,
        padding_percent=padding_percent,
        original_box=box,
    )

    logger.debug(
        f"Padded {box.to_dict()} by {padding_percent}% "
        f"(±{padding_x}x, ±{padding_y}y) -> {region.as_box().to_dict()}"
    )
    return region
