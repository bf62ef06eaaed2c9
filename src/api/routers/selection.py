"""
Selection API Router - Mask analysis and region cropping
"""

import logging
import time

from fastapi import APIRouter, Depends

from api.dependencies import get_app_settings, get_selection_service
from api.exceptions import safe_endpoint
from common.exceptions import ImageLoadFailedError
from core.image import Mask, from_base64, mask_from_base64, mask_from_raw
from schemas import (
    BoundingBoxRequest,
    BoundingBoxResponse,
    MaskPayload,
    SelectionCropRequest,
    SelectionCropResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def check_upload_size(payload: str, max_upload_size_mb: int) -> None:
    """Reject base64 payloads whose decoded size exceeds the upload limit."""
    decoded_size = len(payload) * 3 // 4
    if decoded_size > max_upload_size_mb * 1024 * 1024:
        raise ImageLoadFailedError(f"payload exceeds {max_upload_size_mb} MB upload limit")


def load_mask(payload: MaskPayload, max_upload_size_mb: int) -> Mask:
    """Decode a mask payload (encoded image or raw bytes) within the upload limit."""
    encoded = payload.raw.data if payload.raw is not None else payload.image
    check_upload_size(encoded, max_upload_size_mb)

    if payload.raw is not None:
        return mask_from_raw(payload.raw.width, payload.raw.height, payload.raw.data)
    return mask_from_base64(payload.image)


@router.post("/crop")
@safe_endpoint
async def crop_selection(
    request: SelectionCropRequest,
    selection_service=Depends(get_selection_service),
    settings=Depends(get_app_settings),
) -> SelectionCropResponse:
    """
    Crop an image to the padded bounding box of a selection mask.

    Args:
        request: Source image, mask and optional padding/filter overrides
        selection_service: Selection service dependency
        settings: Application settings dependency

    Returns:
        SelectionCropResponse with box, padded region and PNG crop
    """
    start_time = time.time()

    check_upload_size(request.image, settings.api.max_upload_size_mb)
    image = from_base64(request.image)
    mask = load_mask(request.mask, settings.api.max_upload_size_mb)

    result = selection_service.prepare_selection(
        image,
        mask,
        padding_percent=request.padding_percent,
        filter_largest=request.filter_largest,
    )

    processing_time = int((time.time() - start_time) * 1000)
    logger.info(f"Selection cropped in {processing_time}ms")

    return SelectionCropResponse(
        bounding_box=result.bounding_box,
        region=result.region,
        original_dimensions=result.crop.original_dimensions,
        image=result.crop.to_base64(),
        data_url=result.crop.to_data_url(),
        processing_time_ms=processing_time,
    )


@router.post("/bounding-box")
@safe_endpoint
async def bounding_box(
    request: BoundingBoxRequest,
    selection_service=Depends(get_selection_service),
    settings=Depends(get_app_settings),
) -> BoundingBoxResponse:
    """Compute the bounding box of a selection mask."""
    mask = load_mask(request.mask, settings.api.max_upload_size_mb)
    box = selection_service.bounding_box_for(mask, filter_largest=request.filter_largest)

    return BoundingBoxResponse(
        bounding_box=box,
        mask_dimensions=mask.dimensions,
        selected_pixels=mask.selected_count(selection_service.config.mask_threshold),
    )
