"""
Selection mask analysis.

Turns the raw per-pixel mask produced by the segmentation model into a single
selected region:
- label_components: 4-connected component labeling with per-component stats
- filter_largest_region: keep only the largest component
- calculate_bounding_box: tight box around all selected pixels
- validate_selection: reject selections that are too small or too large

Labeling always writes into a dedicated label buffer; input masks are never
modified.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import cv2
import numpy as np

from common.base import BoundingBox, ImageDimensions
from common.constants import SelectionConstants
from common.exceptions import (
    ImageLoadFailedError,
    NoSelectionError,
    SelectionTooLargeError,
    SelectionTooSmallError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Mask:
    """
    Dense per-pixel selection intensity grid.

    ``data`` has shape (height, width) and dtype uint8. The array is a
    read-only private copy, so a Mask cannot change after it is received.
    """

    width: int
    height: int
    data: np.ndarray

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ImageLoadFailedError(f"mask dimensions must be positive: {self.width}x{self.height}")

        data = np.array(self.data, dtype=np.uint8, copy=True)
        if data.shape != (self.height, self.width):
            raise ImageLoadFailedError(
                f"mask data shape {data.shape} does not match {self.width}x{self.height}"
            )
        data.flags.writeable = False
        object.__setattr__(self, "data", data)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Mask":
        """Create mask from a 2D array (height, width)."""
        if array.ndim != 2:
            raise ImageLoadFailedError(f"mask must be single channel, got shape {array.shape}")
        return cls(width=int(array.shape[1]), height=int(array.shape[0]), data=array)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "Mask":
        """Create mask from a flat row-major byte buffer of length width*height."""
        if len(data) != width * height:
            raise ImageLoadFailedError(
                f"mask data length {len(data)} does not match {width}x{height}"
            )
        array = np.frombuffer(data, dtype=np.uint8).reshape(height, width)
        return cls(width=width, height=height, data=array)

    @property
    def dimensions(self) -> ImageDimensions:
        return ImageDimensions(width=self.width, height=self.height)

    def selected(self, threshold: int = SelectionConstants.MASK_THRESHOLD) -> np.ndarray:
        """Boolean array of selected pixels."""
        return self.data >= threshold

    def selected_count(self, threshold: int = SelectionConstants.MASK_THRESHOLD) -> int:
        return int(np.count_nonzero(self.selected(threshold)))

    def tobytes(self) -> bytes:
        return self.data.tobytes()


@dataclass(frozen=True)
class Component:
    """Statistics of one connected component of selected pixels."""

    label: int
    pixel_count: int
    first_index: int  # row-major index of the first pixel met during a scan
    box: BoundingBox


def label_components(
    mask: Mask, threshold: int = SelectionConstants.MASK_THRESHOLD
) -> Tuple[np.ndarray, List[Component]]:
    """
    Label 4-connected components of selected pixels.

    Args:
        mask: Input mask (not modified)
        threshold: Pixels >= threshold are selected

    Returns:
        Tuple of (label buffer, components ordered by discovery in scan order).
        Label 0 is background.
    """
    binary = mask.selected(threshold).astype(np.uint8)
    count, labels, stats, _ = cv2.connectedComponentsWithStats(
        binary, connectivity=SelectionConstants.CONNECTIVITY, ltype=cv2.CV_32S
    )

    if count <= 1:
        return labels, []

    # First occurrence of each label in the flattened buffer == scan order
    unique_labels, first_indices = np.unique(labels.ravel(), return_index=True)
    first_index_by_label = dict(zip(unique_labels.tolist(), first_indices.tolist()))

    components = []
    for label in range(1, count):
        x, y, w, h, area = (int(v) for v in stats[label])
        components.append(
            Component(
                label=label,
                pixel_count=area,
                first_index=first_index_by_label[label],
                box=BoundingBox(x=x, y=y, width=w, height=h),
            )
        )

    components.sort(key=lambda c: c.first_index)
    return labels, components


def filter_largest_region(
    mask: Mask, threshold: int = SelectionConstants.MASK_THRESHOLD
) -> Mask:
    """
    Keep only the largest 4-connected component of selected pixels.

    Pixels of every other component are set to 0 in a fresh buffer; all
    remaining pixels keep their original value. When several components share
    the maximum size, the one discovered first in row-major scan order is kept.

    Args:
        mask: Input mask (not modified)
        threshold: Pixels >= threshold are selected

    Returns:
        New mask containing a single component

    Raises:
        NoSelectionError: If no pixel is selected
    """
    labels, components = label_components(mask, threshold)

    if not components:
        raise NoSelectionError(threshold)

    if len(components) == 1:
        return Mask.from_array(mask.data)

    # Components are in scan order, so max() returns the earliest on ties
    largest = max(components, key=lambda c: c.pixel_count)

    filtered = mask.data.copy()
    filtered[(labels != 0) & (labels != largest.label)] = SelectionConstants.MASK_CLEARED_VALUE

    logger.debug(
        f"Kept component {largest.label} ({largest.pixel_count}px) "
        f"of {len(components)} components"
    )
    return Mask.from_array(filtered)


def calculate_bounding_box(
    mask: Mask, threshold: int = SelectionConstants.MASK_THRESHOLD
) -> BoundingBox:
    """
    Calculate the tight bounding box of all selected pixels.

    Args:
        mask: Input mask
        threshold: Pixels >= threshold are selected

    Returns:
        Bounding box with inclusive extents converted to width/height

    Raises:
        NoSelectionError: If no pixel is selected
    """
    ys, xs = np.nonzero(mask.selected(threshold))
    if ys.size == 0:
        raise NoSelectionError(threshold)

    return BoundingBox.from_extents(int(xs.min()), int(ys.min()), int(xs.max()), int(ys.max()))


def validate_selection(
    box: BoundingBox,
    image_dimensions: ImageDimensions,
    min_size: int = SelectionConstants.MIN_SELECTION_SIZE,
    max_ratio: float = SelectionConstants.MAX_SELECTION_RATIO,
) -> None:
    """
    Check a selection against size constraints.

    Raises:
        SelectionTooSmallError: If either side is below ``min_size``
        SelectionTooLargeError: If the box covers more than ``max_ratio`` of the image
    """
    if box.width < min_size or box.height < min_size:
        raise SelectionTooSmallError(box.width, box.height, min_size)

    ratio = box.area_pixels / image_dimensions.area_pixels
    if ratio > max_ratio:
        raise SelectionTooLargeError(ratio, max_ratio)
