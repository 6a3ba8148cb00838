"""Utility modules for the OCR submission client."""

from ocr_client.utils.file_validation import (
    ValidationError,
    can_render_image,
    detect_image_type,
    validate_filename,
    validate_size,
)

__all__ = [
    "ValidationError",
    "can_render_image",
    "detect_image_type",
    "validate_filename",
    "validate_size",
]
