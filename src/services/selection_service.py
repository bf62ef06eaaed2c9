"""
Selection Service - Business logic for turning a mask into a crop.

This service runs the full region preparation pipeline: mask filtering,
bounding box calculation, size validation, context padding and cropping.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from common.base import BoundingBox, ImageDimensions, PaddedRegion
from common.exceptions import InvalidParameterError
from core.image import (
    CroppedImage,
    Mask,
    add_context_padding,
    calculate_bounding_box,
    crop_image_to_region,
    filter_largest_region,
    validate_selection,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of preparing one selection"""

    bounding_box: BoundingBox
    region: PaddedRegion
    crop: CroppedImage


class SelectionService:
    """
    Service for preparing selections for the generation service.

    Stateless apart from its configuration; safe to share between requests.
    """

    def __init__(self, selection_config):
        """
        Initialize selection service.

        Args:
            selection_config: SelectionConfig with threshold, padding and size limits
        """
        self.config = selection_config

    def bounding_box_for(self, mask: Mask, filter_largest: Optional[bool] = None) -> BoundingBox:
        """
        Compute the bounding box of a mask's selection.

        Args:
            mask: Selection mask
            filter_largest: Keep only the largest component (defaults to configuration)

        Returns:
            Tight bounding box

        Raises:
            NoSelectionError: If no pixel is selected
        """
        if filter_largest is None:
            filter_largest = self.config.filter_largest_region

        threshold = self.config.mask_threshold
        if filter_largest:
            mask = filter_largest_region(mask, threshold)
        return calculate_bounding_box(mask, threshold)

    def prepare_selection(
        self,
        image: np.ndarray,
        mask: Mask,
        padding_percent: Optional[float] = None,
        filter_largest: Optional[bool] = None,
    ) -> SelectionResult:
        """
        Prepare a padded crop of the selected object.

        Args:
            image: Source image, same dimensions as the mask
            mask: Selection mask
            padding_percent: Context padding per side (defaults to configuration)
            filter_largest: Keep only the largest component (defaults to configuration)

        Returns:
            SelectionResult with box, padded region and crop

        Raises:
            CraftusException: NoSelection, SelectionTooSmall/Large, InvalidParameter
                or CropFailed depending on the failing stage
        """
        if padding_percent is None:
            padding_percent = self.config.padding_percent

        image_dimensions = ImageDimensions.from_shape(image.shape)
        if image_dimensions != mask.dimensions:
            raise InvalidParameterError(
                "mask",
                f"{mask.width}x{mask.height}",
                f"must match image size {image_dimensions.width}x{image_dimensions.height}",
            )

        box = self.bounding_box_for(mask, filter_largest)

        validate_selection(
            box,
            image_dimensions,
            min_size=self.config.min_selection_size,
            max_ratio=self.config.max_selection_ratio,
        )

        region = add_context_padding(box, image_dimensions, padding_percent)
        crop = crop_image_to_region(image, region.as_box())

        logger.info(
            f"Selection prepared: box={box.to_dict()} region={region.as_box().to_dict()} "
            f"crop={crop.width}x{crop.height}"
        )
        return SelectionResult(bounding_box=box, region=region, crop=crop)
