"""
Pixel sampling: adaptive stride, per-channel quantisation and counting.

Large images are walked in contiguous row bands on a thread pool. Each band
owns its own counters; counters are summed once every band has finished.

With a saliency map, each color also collects the saliency of the pixels it
was sampled from, and its weight blends its share of the samples with its
share of the total saliency.
"""

from __future__ import annotations

import logging
import os
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .colormath import RGB

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColorSample:
    frequencies: Dict[RGB, int]
    total_samples: int
    # blended weights when sampled against a saliency map; they sum to 1
    weights: Optional[Dict[RGB, float]] = None
    method: str = "frequency"

    @property
    def is_empty(self) -> bool:
        return not self.frequencies


def sample_stride(width: int, height: int) -> int:
    pixels = width * height
    if pixels > 8_000_000:
        return 4
    if pixels > 4_000_000:
        return 3
    if pixels > 2_000_000:
        return 2
    return 1


def quantize(rgb: np.ndarray, bits: int) -> np.ndarray:
    """Snap each channel to the nearest of ``2**bits`` evenly spaced levels."""
    levels = (1 << bits) - 1
    x = np.asarray(rgb, dtype=float)
    step = np.rint(x * levels / 255.0)
    return np.rint(step * 255.0 / levels).astype(np.uint8)


def _count_band(
    pixels: np.ndarray,
    rows: np.ndarray,
    stride: int,
    bits: int,
    saliency: Optional[np.ndarray] = None,
) -> Tuple[Counter, Counter]:
    band = pixels[rows][:, ::stride, :3].reshape(-1, 3)
    if len(band) == 0:
        return Counter(), Counter()

    q = quantize(band, bits).astype(np.uint32)
    keys = (q[:, 0] << 16) | (q[:, 1] << 8) | q[:, 2]
    uniq, inverse, counts = np.unique(keys, return_inverse=True, return_counts=True)
    keys_list = uniq.tolist()

    mass = Counter()
    if saliency is not None:
        s = saliency[rows][:, ::stride].reshape(-1).astype(float)
        summed = np.bincount(inverse.reshape(-1), weights=s, minlength=len(uniq))
        mass = Counter(dict(zip(keys_list, summed.tolist())))

    return Counter(dict(zip(keys_list, counts.tolist()))), mass


def _unpack(key: int) -> RGB:
    return ((key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF)


def blend_weights(
    counts: Counter, mass: Counter, frequency_weight: float, saliency_weight: float
) -> Optional[Dict[int, float]]:
    """
    ``(fw * count share + sw * saliency share) / (fw + sw)`` per color.

    Returns None when the image carries no saliency at all.
    """
    total = sum(counts.values())
    total_mass = sum(mass.values())
    if total <= 0 or total_mass <= 0:
        return None

    norm = frequency_weight + saliency_weight
    return {
        k: (frequency_weight * n / total + saliency_weight * mass.get(k, 0.0) / total_mass) / norm
        for k, n in counts.items()
    }


def sample_image(
    pixels: np.ndarray,
    bits: int = 5,
    *,
    saliency: Optional[np.ndarray] = None,
    frequency_weight: float = 0.3,
    saliency_weight: float = 0.7,
    parallel_min_samples: int = 100_000,
    max_workers: Optional[int] = None,
) -> ColorSample:
    """
    Build a quantised color -> count table from an ``(H, W, C)`` uint8 array.

    Alpha is ignored; every sampled pixel counts as opaque. ``saliency``
    is an optional ``(H, W)`` map in [0, 1] that reweights the colors.
    """
    height, width = pixels.shape[:2]
    if saliency is not None and saliency.shape != (height, width):
        raise ValueError(
            f"saliency map shape {saliency.shape} does not match image {(height, width)}"
        )
    if width == 0 or height == 0:
        return ColorSample({}, 0)

    stride = sample_stride(width, height)
    rows = np.arange(0, height, stride)
    n_samples = len(rows) * len(range(0, width, stride))

    workers = max_workers if max_workers is not None else (os.cpu_count() or 1)
    workers = min(workers, len(rows))

    if n_samples > parallel_min_samples and workers > 1:
        bands: List[np.ndarray] = np.array_split(rows, workers)
        with ThreadPoolExecutor(max_workers=workers) as ex:
            partials = list(
                ex.map(lambda r: _count_band(pixels, r, stride, bits, saliency), bands)
            )
        counts, mass = Counter(), Counter()
        for part_counts, part_mass in partials:
            counts.update(part_counts)
            mass.update(part_mass)
        logger.debug("Sampled %d rows in %d bands (stride %d)", len(rows), workers, stride)
    else:
        counts, mass = _count_band(pixels, rows, stride, bits, saliency)

    total = int(sum(counts.values()))
    frequencies = {_unpack(k): int(v) for k, v in counts.items()}
    if saliency is None:
        return ColorSample(frequencies, total)

    blended = blend_weights(counts, mass, frequency_weight, saliency_weight)
    if blended is None:
        logger.debug("Saliency map is empty, keeping plain frequencies")
        return ColorSample(frequencies, total, method="saliency")
    return ColorSample(
        frequencies,
        total,
        weights={_unpack(k): w for k, w in blended.items()},
        method="saliency",
    )
