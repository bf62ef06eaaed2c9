"""
Tests for SelectionService
"""

import numpy as np
import pytest

from common.base import BoundingBox
from common.exceptions import (
    InvalidParameterError,
    NoSelectionError,
    SelectionTooLargeError,
    SelectionTooSmallError,
)
from config import SelectionConfig
from core.image import Mask
from services import SelectionService


class TestSelectionService:
    """Test SelectionService functionality"""

    def test_prepare_selection(self, selection_service, test_image, object_mask):
        """Test the full pipeline on a clean mask"""
        result = selection_service.prepare_selection(test_image, object_mask)

        assert result.bounding_box == BoundingBox(x=40, y=30, width=40, height=40)
        # 20% of 40 = 8px per side
        assert result.region.as_box() == BoundingBox(x=32, y=22, width=56, height=56)
        assert result.region.original_box == result.bounding_box
        assert (result.crop.width, result.crop.height) == (56, 56)
        np.testing.assert_array_equal(result.crop.pixels, test_image[22:78, 32:88])

    def test_filters_detached_speck(self, selection_service, test_image, noisy_mask):
        """Test a detached speck does not widen the box"""
        result = selection_service.prepare_selection(test_image, noisy_mask)

        assert result.bounding_box == BoundingBox(x=40, y=30, width=40, height=40)

    def test_filter_disabled(self, selection_service, test_image, noisy_mask):
        """Test disabling filtering keeps every component"""
        result = selection_service.prepare_selection(
            test_image, noisy_mask, padding_percent=0, filter_largest=False
        )

        assert result.bounding_box == BoundingBox(x=5, y=5, width=75, height=65)

    def test_padding_override(self, selection_service, test_image, object_mask):
        """Test explicit padding overrides configuration"""
        result = selection_service.prepare_selection(test_image, object_mask, padding_percent=0)

        assert result.region.as_box() == result.bounding_box
        assert result.region.padding_percent == 0

    def test_configured_padding(self, test_image, object_mask):
        """Test padding default comes from configuration"""
        service = SelectionService(SelectionConfig(padding_percent=10))

        result = service.prepare_selection(test_image, object_mask)

        assert result.region.as_box() == BoundingBox(x=36, y=26, width=48, height=48)

    def test_empty_mask(self, selection_service, test_image):
        """Test an empty mask raises NoSelectionError"""
        mask = Mask.from_array(np.zeros((100, 120), dtype=np.uint8))

        with pytest.raises(NoSelectionError):
            selection_service.prepare_selection(test_image, mask)

    def test_too_small(self, selection_service, test_image):
        """Test a single pixel selection is rejected"""
        data = np.zeros((100, 120), dtype=np.uint8)
        data[50, 50] = 255

        with pytest.raises(SelectionTooSmallError):
            selection_service.prepare_selection(test_image, Mask.from_array(data))

    def test_too_large(self, selection_service, test_image):
        """Test a full image selection is rejected"""
        mask = Mask.from_array(np.full((100, 120), 255, dtype=np.uint8))

        with pytest.raises(SelectionTooLargeError):
            selection_service.prepare_selection(test_image, mask)

    def test_dimension_mismatch(self, selection_service, test_image):
        """Test a mask of a different size is rejected"""
        data = np.zeros((50, 50), dtype=np.uint8)
        data[10:20, 10:20] = 255

        with pytest.raises(InvalidParameterError):
            selection_service.prepare_selection(test_image, Mask.from_array(data))

    def test_mask_not_mutated(self, selection_service, test_image, noisy_mask):
        """Test the caller's mask is unchanged"""
        before = noisy_mask.data.copy()

        selection_service.prepare_selection(test_image, noisy_mask)

        np.testing.assert_array_equal(noisy_mask.data, before)

    def test_bounding_box_for(self, selection_service, noisy_mask):
        """Test bounding box with and without filtering"""
        assert selection_service.bounding_box_for(noisy_mask) == BoundingBox(
            x=40, y=30, width=40, height=40
        )
        assert selection_service.bounding_box_for(noisy_mask, filter_largest=False) == BoundingBox(
            x=5, y=5, width=75, height=65
        )
