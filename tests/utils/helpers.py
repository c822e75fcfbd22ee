"""
Test Helpers
============

Helper functions for building test rasters.
"""

from typing import Tuple
import io

from PIL import Image


def solid_png(size: Tuple[int, int], color: Tuple[int, int, int]) -> bytes:
    """PNG bytes of a single-color image."""
    output = io.BytesIO()
    Image.new("RGB", size, color).save(output, format="PNG")
    return output.getvalue()


def jpeg_bytes(
    size: Tuple[int, int] = (16, 16), color: Tuple[int, int, int] = (31, 234, 92)
) -> bytes:
    """JPEG bytes of a single-color image."""
    output = io.BytesIO()
    Image.new("RGB", size, color).save(output, format="JPEG")
    return output.getvalue()
