"""
Image processing utilities - functional architecture.

This package turns a selection mask and a source image into the crop sent to
the generation service:
- mask: connected-component filtering, bounding box, size validation
- padding: context padding clamped to image bounds
- crop: owned, deterministic sub-image extraction with PNG encoding
- converters: base64/data URL decoding of images and masks

All utilities are re-exported from this module for convenient access.
"""

# Converter functions
from core.image.converters import (
    check_dimensions,
    decode_base64_bytes,
    decode_image,
    encode_image,
    ensure_grayscale,
    from_base64,
    mask_from_base64,
    mask_from_raw,
    to_base64,
)

# Crop functions
from core.image.crop import CroppedImage, crop_image_to_region

# Mask functions
from core.image.mask import (
    Component,
    Mask,
    calculate_bounding_box,
    filter_largest_region,
    label_components,
    validate_selection,
)

# Padding functions
from core.image.padding import add_context_padding

__all__ = [
    # Mask functions
    "Mask",
    "Component",
    "label_components",
    "filter_largest_region",
    "calculate_bounding_box",
    "validate_selection",
    # Padding functions
    "add_context_padding",
    # Crop functions
    "CroppedImage",
    "crop_image_to_region",
    # Converter functions
    "decode_base64_bytes",
    "check_dimensions",
    "decode_image",
    "encode_image",
    "from_base64",
    "mask_from_base64",
    "mask_from_raw",
    "to_base64",
    "ensure_grayscale",
]
