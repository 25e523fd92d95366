from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image

from .errors import ImageDimensionError, ImageFormatError, ImageLoadError

ALLOWED_FORMATS = ("jpeg", "jpg", "png", "webp")
MAX_WIDTH = 8192
MAX_HEIGHT = 8192


# ============================================================
# Validation
# ============================================================


def validate_format(path: Path, allowed: Sequence[str] = ALLOWED_FORMATS) -> None:
    ext = Path(path).suffix.lower()
    if not ext:
        raise ImageFormatError(path, "", allowed)
    if ext.lstrip(".") not in allowed:
        raise ImageFormatError(path, ext, allowed)


def validate_dimensions(
    width: int, height: int, max_width: int = MAX_WIDTH, max_height: int = MAX_HEIGHT
) -> None:
    if width <= 0 or height <= 0:
        raise ImageDimensionError(width, height, max_width, max_height)
    if (max_width > 0 and width > max_width) or (max_height > 0 and height > max_height):
        raise ImageDimensionError(width, height, max_width, max_height)


# ============================================================
# Loading
# ============================================================


def to_rgba(image) -> np.ndarray:
    """
    Normalise a PIL image or an array (gray, RGB or RGBA; any integer dtype
    scaled by its range, or float in [0, 1]) to an ``(H, W, 4)`` uint8 array.
    """
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGBA"))

    arr = np.asarray(image)
    if arr.dtype.kind == "f":
        arr = np.clip(arr * 255.0 + 0.5, 0, 255)
    elif arr.dtype.kind in "ui" and arr.dtype.itemsize > 1:
        top = np.iinfo(arr.dtype).max
        arr = np.clip(arr.astype(np.float64) / top * 255.0 + 0.5, 0, 255)
    arr = arr.astype(np.uint8)

    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, np.newaxis], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"unsupported pixel array shape {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return arr


def load_image(
    path: Path,
    *,
    allowed: Sequence[str] = ALLOWED_FORMATS,
    max_width: int = MAX_WIDTH,
    max_height: int = MAX_HEIGHT,
) -> Image.Image:
    path = Path(path)
    validate_format(path, allowed)

    try:
        img = Image.open(path)
    except OSError as e:
        raise ImageLoadError(path, "open", e) from e

    validate_dimensions(img.width, img.height, max_width, max_height)

    try:
        img.load()
    except OSError as e:
        raise ImageLoadError(path, "decode", e) from e

    return img
