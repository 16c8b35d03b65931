"""Image preparation before metadata embedding.

Pillow-backed helpers that take and return encoded image bytes: square
cropping for avatars, resizing, and conversion to PNG so that the
codec always receives a well-formed PNG datastream.
"""

from __future__ import annotations

import io
import logging
from typing import Any

from PIL import Image, UnidentifiedImageError

from constants import PNG_WRITABLE_MODES
from errors import ImageProcessingError

logger = logging.getLogger(__name__)


def _open_image(buffer: bytes) -> Image.Image:
    """Open and fully load an image from bytes."""
    try:
        with Image.open(io.BytesIO(buffer)) as img:
            img.load()
            return img.copy()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Unable to read image: {e}") from e


def _encode_png(img: Image.Image) -> bytes:
    if img.mode not in PNG_WRITABLE_MODES:
        img = img.convert("RGBA")

    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


def get_image_info(buffer: bytes) -> dict[str, Any]:
    """
    Read basic properties of an encoded image.

    Returns:
        Dictionary with ``width``, ``height``, ``format`` and ``mode``.
    """
    try:
        with Image.open(io.BytesIO(buffer)) as img:
            return {
                "width": img.width,
                "height": img.height,
                "format": img.format,
                "mode": img.mode,
            }
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Image metadata read failed: {e}") from e


def center_crop_to_square(buffer: bytes) -> bytes:
    """
    Center-crop an image to a 1:1 aspect ratio and encode it as PNG.

    The square side is the smaller of width and height; for a 1920x1080
    image a 1080x1080 region is taken from the middle.

    Args:
        buffer: Encoded image in any format Pillow can read.

    Returns:
        PNG bytes of the cropped image.

    Raises:
        ImageProcessingError: If the image cannot be read or is empty.
    """
    img = _open_image(buffer)
    width, height = img.size
    if not width or not height:
        raise ImageProcessingError("Unable to read image dimensions")

    logger.info("Processing image: %dx%d", width, height)

    size = min(width, height)
    left = (width - size) // 2
    top = (height - size) // 2

    logger.info("Cropping to %dx%d square (offset: %dx%d)", size, size, left, top)

    cropped = _encode_png(img.crop((left, top, left + size, top + size)))
    logger.info("Image cropped to square (%d bytes)", len(cropped))
    return cropped


def resize_image(buffer: bytes, target_width: int) -> bytes:
    """
    Resize an image to *target_width*, keeping its aspect ratio.

    Raises:
        ImageProcessingError: If the width is not positive or the image
            cannot be read.
    """
    if target_width <= 0:
        raise ImageProcessingError(f"Invalid target width: {target_width}")

    img = _open_image(buffer)
    width, height = img.size
    if not width or not height:
        raise ImageProcessingError("Unable to read image dimensions")

    target_height = max(1, round(height * target_width / width))
    resized = img.resize((target_width, target_height), Image.Resampling.LANCZOS)

    logger.info("Image resized to %dpx width", target_width)
    return _encode_png(resized)


def convert_to_png(buffer: bytes) -> bytes:
    """Re-encode any readable image as PNG."""
    png = _encode_png(_open_image(buffer))
    logger.info("Image converted to PNG format")
    return png
