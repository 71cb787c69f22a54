"""Map device rendering capabilities to an output image format."""

from __future__ import annotations

from typing import Dict, Tuple

from ..models import ImageFormat

_FORMATS: Dict[Tuple[str, int, int], ImageFormat] = {
    ("image/bmp", 1, 2): ImageFormat.BMP3_1BIT_SRGB,
    ("image/png", 8, 2): ImageFormat.PNG_8BIT_GRAYSCALE,
    ("image/png", 8, 256): ImageFormat.PNG_8BIT_256C,
    ("image/png", 2, 4): ImageFormat.PNG_2BIT_4C,
}


def classify_image_format(mime_type: str, bit_depth: int, colors: int) -> ImageFormat:
    """Exact match on ``(mime_type, bit_depth, colors)``; unknown triples fall back to AUTO."""

    return _FORMATS.get((mime_type, bit_depth, colors), ImageFormat.AUTO)
