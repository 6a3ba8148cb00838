"""
Image validation utilities for files picked for OCR submission.

Two layers are used:
1. Magic byte detection (file signature) to name the image content type
2. PIL validation to tell whether a preview of the image can be rendered
"""

import io
import logging
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Magic byte signatures for image type detection
MAGIC_BYTES = {
    b"\xff\xd8\xff": "image/jpeg",
    b"\x89PNG\r\n\x1a\n": "image/png",
    b"GIF87a": "image/gif",
    b"GIF89a": "image/gif",
    b"BM": "image/bmp",
    b"II*\x00": "image/tiff",  # little-endian
    b"MM\x00*": "image/tiff",  # big-endian
    b"RIFF": "image/webp",  # needs further validation
}


class ValidationError(Exception):
    """Raised when file validation fails."""

    pass


def detect_image_type(header: bytes) -> str | None:
    """
    Detect the image content type from magic bytes.

    Args:
        header: First few bytes of the file.

    Returns:
        MIME type of the image, or None if the signature is not a known image.
    """
    for signature, content_type in MAGIC_BYTES.items():
        if header.startswith(signature):
            # RIFF is only an image when the container says WEBP
            if signature == b"RIFF":
                if len(header) >= 12 and header[8:12] == b"WEBP":
                    return content_type
                continue
            return content_type

    return None


def can_render_image(content: bytes) -> bool:
    """
    Check that image bytes can be decoded, i.e. that a preview would render.

    Args:
        content: Raw image bytes.

    Returns:
        True if PIL can open and verify the image, False otherwise.
    """
    if not content:
        return False

    try:
        img = Image.open(io.BytesIO(content))
        img.verify()
        return True
    except Exception as e:
        logger.debug(f"PIL validation failed: {e}")
        return False


def validate_size(content: bytes, max_size_mb: int) -> None:
    """
    Reject empty or oversized uploads.

    Raises:
        ValidationError: If the content is empty or larger than max_size_mb.
    """
    if not content:
        raise ValidationError("File is empty")

    max_size_bytes = max_size_mb * 1024 * 1024
    if len(content) > max_size_bytes:
        raise ValidationError(
            f"File too large: {len(content) / 1024 / 1024:.1f}MB "
            f"(max {max_size_mb}MB)"
        )


def validate_filename(filename: str) -> str:
    """
    Sanitize and validate a filename before it is sent as a multipart part.

    Args:
        filename: Original filename from the picker or upload.

    Returns:
        Sanitized filename without path components.

    Raises:
        ValidationError: If filename is invalid.
    """
    if not filename:
        raise ValidationError("Filename cannot be empty")

    # Remove any path components
    safe_filename = Path(filename).name

    if not safe_filename:
        raise ValidationError("Invalid filename")

    if ".." in safe_filename or safe_filename.startswith("."):
        raise ValidationError("Invalid filename pattern")

    if len(safe_filename) > 255:
        raise ValidationError("Filename too long (max 255 characters)")

    return safe_filename
