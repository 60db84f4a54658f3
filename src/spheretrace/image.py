from pathlib import Path
import numpy as np
from PIL import Image
from loguru import logger

from .types import Framebuffer


class ImageWriteError(OSError):
    """Raised when an image file cannot be created or written."""


def to_bytes(framebuffer: Framebuffer) -> np.ndarray:
    """
    Convert float colors to 8-bit channels: clamp to [0, 1], scale by 255
    and round to the nearest integer.
    """
    pixels = np.asarray(framebuffer, dtype=np.float64)
    return np.rint(np.clip(pixels, 0.0, 1.0) * 255).astype(np.uint8)


def to_image(framebuffer: Framebuffer, width: int, height: int) -> Image.Image:
    framebuffer = np.asarray(framebuffer)
    if framebuffer.shape != (width * height, 3):
        raise ValueError(
            f"framebuffer of shape {framebuffer.shape} does not hold a {width}x{height} RGB image"
        )
    pixels = to_bytes(framebuffer).reshape(height, width, 3) # shape (h, w, 3)
    return Image.fromarray(pixels)


def write_ppm(framebuffer: Framebuffer, width: int, height: int, path: str | Path):
    """
    Write the framebuffer as a binary PPM (P6) file: the header
    "P6\\n<width> <height>\\n255\\n" followed by width * height RGB byte
    triples, row by row.

    Raises ImageWriteError if the file cannot be written. Pillow deletes a
    file it created but failed to finish, so no truncated image is left
    behind.
    """
    image = to_image(framebuffer, width, height)
    try:
        image.save(path, format="PPM")
    except OSError as e:
        raise ImageWriteError(f"cannot write image to {path}: {e}") from e
    logger.info(f"Wrote {width}x{height} image to {path}")
