"""
Image format conversion utilities.

Handles conversions between transport formats and OpenCV arrays:
- Base64 strings and data URLs -> NumPy arrays (BGR or grayscale)
- NumPy arrays -> Base64 strings
- Encoded grayscale images -> selection masks
"""

import base64
import binascii
import logging
from typing import Tuple

import cv2
import numpy as np

from common.constants import ImageConstants
from common.exceptions import ImageLoadFailedError
from core.image.mask import Mask

logger = logging.getLogger(__name__)


def strip_data_url(payload: str) -> Tuple[str, str]:
    """
    Split a ``data:<mime>;base64,<data>`` URL into (mime, base64 data).

    Plain base64 strings are returned with an empty MIME type.
    """
    if payload.startswith("data:") and "," in payload:
        header, data = payload.split(",", 1)
        mime = header[len("data:") :].split(";", 1)[0]
        return mime, data
    return "", payload


def decode_base64_bytes(payload: str) -> bytes:
    """Decode a base64 string or data URL into raw bytes."""
    _, data = strip_data_url(payload.strip())
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadFailedError(f"invalid base64 payload: {e}") from e


def check_dimensions(width: int, height: int) -> None:
    """Reject images or masks larger than the supported dimension."""
    if max(height, width) > ImageConstants.MAX_IMAGE_DIMENSION:
        raise ImageLoadFailedError(
            f"image {width}x{height} exceeds max dimension {ImageConstants.MAX_IMAGE_DIMENSION}"
        )


def decode_image(image_bytes: bytes, flags: int = cv2.IMREAD_COLOR) -> np.ndarray:
    """
    Decode encoded image bytes (PNG, JPEG, ...) with OpenCV.

    Raises:
        ImageLoadFailedError: If bytes are empty or not a decodable image
    """
    if not image_bytes:
        raise ImageLoadFailedError("image payload is empty")

    nparr = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(nparr, flags)

    if image is None:
        raise ImageLoadFailedError("payload is not a decodable image")

    height, width = image.shape[:2]
    check_dimensions(width, height)

    return image


def from_base64(base64_string: str) -> np.ndarray:
    """
    Convert base64 string or data URL to a BGR NumPy array.

    Args:
        base64_string: Base64 encoded image, optionally as a data URL

    Returns:
        NumPy array in BGR format (OpenCV)
    """
    return decode_image(decode_base64_bytes(base64_string), cv2.IMREAD_COLOR)


def mask_from_base64(base64_string: str) -> Mask:
    """
    Convert a base64 encoded grayscale image (e.g. segmentation output PNG) to a Mask.

    Color images are converted to grayscale first.
    """
    image = decode_image(decode_base64_bytes(base64_string), cv2.IMREAD_GRAYSCALE)
    return Mask.from_array(ensure_grayscale(image))


def mask_from_raw(width: int, height: int, base64_data: str) -> Mask:
    """Convert base64 encoded raw row-major mask bytes to a Mask."""
    check_dimensions(width, height)
    return Mask.from_bytes(width, height, decode_base64_bytes(base64_data))


def encode_image(image: np.ndarray, format: str = ImageConstants.OUTPUT_FORMAT) -> bytes:
    """
    Encode OpenCV image (NumPy array) to image file bytes.

    Args:
        image: OpenCV image (NumPy array)
        format: Image format ('.png', '.jpg', etc.)

    Returns:
        Encoded bytes
    """
    try:
        success, buffer = cv2.imencode(format, image)
    except cv2.error as e:
        logger.error(f"Failed to encode image to {format}: {e}")
        raise ValueError(f"Failed to encode image to {format}") from e

    if not success:
        raise ValueError(f"Failed to encode image to {format}")

    return buffer.tobytes()


def to_base64(image: np.ndarray, format: str = ImageConstants.OUTPUT_FORMAT) -> str:
    """Encode OpenCV image (NumPy array) to base64 string."""
    return base64.b64encode(encode_image(image, format)).decode("utf-8")


def ensure_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Ensure image is grayscale (convert from BGR/BGRA if needed).

    Args:
        image: Input image (grayscale, BGR or BGRA)

    Returns:
        Grayscale image
    """
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image.copy()
