"""
Generation API Router - Identification, dissection and step images

Identify and dissect follow the same pattern:
1. Crop the source image to the padded selection (same rules as /selection/crop)
2. Send the crop, with the full image as context, to the generation service
3. Return the result with the selection geometry

Pipeline errors (rate limits, service failures, invalid responses) reach the
caller as {kind, message, recoverable, details}.
"""

import logging
import time
from typing import Tuple

from fastapi import APIRouter, Depends

from api.dependencies import get_app_settings, get_generation_service, get_selection_service
from api.exceptions import safe_endpoint
from api.routers.selection import check_upload_size, load_mask
from core.image import encode_image, from_base64
from schemas import (
    IdentifyResponse,
    SelectionAnalysisRequest,
    SelectionDissectionResponse,
    StepImagesRequest,
    StepImagesResponse,
)
from services import SelectionResult

logger = logging.getLogger(__name__)

router = APIRouter()


def prepare_analysis(
    request: SelectionAnalysisRequest, selection_service, settings
) -> Tuple[SelectionResult, bytes]:
    """
    Crop the selection and encode the full image as PNG context.

    Returns:
        Tuple of (selection result, full image PNG bytes)
    """
    check_upload_size(request.image, settings.api.max_upload_size_mb)
    image = from_base64(request.image)
    mask = load_mask(request.mask, settings.api.max_upload_size_mb)

    selection = selection_service.prepare_selection(
        image,
        mask,
        padding_percent=request.padding_percent,
        filter_largest=request.filter_largest,
    )
    return selection, encode_image(image)


@router.post("/identify")
@safe_endpoint
async def identify_selection(
    request: SelectionAnalysisRequest,
    selection_service=Depends(get_selection_service),
    generation_service=Depends(get_generation_service),
    settings=Depends(get_app_settings),
) -> IdentifyResponse:
    """Name the selected object (fallback label when identification fails)."""
    start_time = time.time()

    selection, full_png = prepare_analysis(request, selection_service, settings)
    label = request.label or await generation_service.identify_selection(
        selection.crop.data, full_png
    )

    return IdentifyResponse(
        label=label,
        bounding_box=selection.bounding_box,
        processing_time_ms=int((time.time() - start_time) * 1000),
    )


@router.post("/dissect")
@safe_endpoint
async def dissect_selection(
    request: SelectionAnalysisRequest,
    selection_service=Depends(get_selection_service),
    generation_service=Depends(get_generation_service),
    settings=Depends(get_app_settings),
) -> SelectionDissectionResponse:
    """
    Dissect the selected object into materials and instruction steps.

    Args:
        request: Source image, mask, optional label and padding/filter overrides
        selection_service: Selection service dependency
        generation_service: Generation service dependency
        settings: Application settings dependency

    Returns:
        SelectionDissectionResponse with label, geometry, crop and dissection
    """
    start_time = time.time()

    selection, full_png = prepare_analysis(request, selection_service, settings)
    label = request.label or await generation_service.identify_selection(
        selection.crop.data, full_png
    )
    dissection = await generation_service.dissect_selection(
        selection.crop.data, label=label, context_png=full_png
    )

    processing_time = int((time.time() - start_time) * 1000)
    logger.info(f"Selection '{label}' dissected in {processing_time}ms")

    return SelectionDissectionResponse(
        label=label,
        bounding_box=selection.bounding_box,
        region=selection.region,
        image=selection.crop.to_base64(),
        dissection=dissection,
        processing_time_ms=processing_time,
    )


@router.post("/step-images")
@safe_endpoint
async def generate_step_images(
    request: StepImagesRequest,
    generation_service=Depends(get_generation_service),
    settings=Depends(get_app_settings),
) -> StepImagesResponse:
    """Illustrate every step of a dissection, one request at a time, in step order."""
    start_time = time.time()

    check_upload_size(request.reference_image, settings.api.max_upload_size_mb)
    reference_png = encode_image(from_base64(request.reference_image))

    results = await generation_service.generate_step_images(reference_png, request.dissection)
    failed = sum(1 for result in results if not result.succeeded)

    return StepImagesResponse(
        results=results,
        succeeded=len(results) - failed,
        failed=failed,
        processing_time_ms=int((time.time() - start_time) * 1000),
    )
