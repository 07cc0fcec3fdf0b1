"""
Pixel grid loading.

A pixel grid is a ``(height, width, 4)`` uint8 RGBA array. Grids are loaded
once per session and never change size afterwards; any failure here is fatal
to the session, so nothing is retried.
"""

import logging
import os

import numpy as np
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class TrufflifyError(Exception):
    """Base class for load-time failures."""


class MissingAsset(TrufflifyError, FileNotFoundError):
    """An image path does not point at a file."""


class DecodeFailure(TrufflifyError, ValueError):
    """The file exists but could not be decoded as an image."""


def _open_rgba(path) -> Image.Image:
    if not os.path.isfile(path):
        raise MissingAsset(f"Image file not found: {path}")
    try:
        with Image.open(path) as img:
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeFailure(f"Could not decode {path}: {e}") from e
    if rgba.width == 0 or rgba.height == 0:
        raise DecodeFailure(f"{path} has no pixels")
    return rgba


def to_grid(img: Image.Image) -> np.ndarray:
    """Copy a PIL image into a writable RGBA grid."""
    return np.array(img.convert("RGBA"), dtype=np.uint8)


def load_pixel_grid(path) -> np.ndarray:
    """Load *path* as an RGBA grid, raising MissingAsset or DecodeFailure."""
    grid = to_grid(_open_rgba(path))
    logger.info("loaded %s (%dx%d)", path, grid.shape[1], grid.shape[0])
    return grid


def working_canvas(source: Image.Image, size) -> np.ndarray:
    """
    Build the optimizer's starting grid.

    The canvas has the target's *size* and starts opaque black; the source
    is pasted at the origin and cropped to whatever fits.
    """
    w, h = size
    canvas = Image.new("RGBA", (w, h), (0, 0, 0, 255))
    copy_w, copy_h = min(w, source.width), min(h, source.height)
    canvas.paste(source.convert("RGBA").crop((0, 0, copy_w, copy_h)), (0, 0))
    return to_grid(canvas)


def load_working_grid(path, target: np.ndarray) -> np.ndarray:
    """Load *path* onto a canvas the size of *target*."""
    source = _open_rgba(path)
    grid = working_canvas(source, (target.shape[1], target.shape[0]))
    if source.size != (target.shape[1], target.shape[0]):
        logger.info("source %s is %dx%d, cropped/padded to %dx%d", path,
                    source.width, source.height, grid.shape[1], grid.shape[0])
    return grid
