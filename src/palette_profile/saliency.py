"""
Image characteristics and saliency maps.

``analyze_image`` measures edge density, color complexity and brightness
contrast, classifies the image and lets ``select_method`` decide between
plain frequency sampling and saliency-weighted sampling. ``saliency_map``
scores sparse grid points by local contrast, edge strength and color
uniqueness, then spreads each score over its neighbourhood.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Tuple

import numpy as np

from .settings import SAMPLING_METHODS, SaliencySettings

logger = logging.getLogger(__name__)

FREQUENCY, SALIENCY, AUTO = SAMPLING_METHODS

# spread weight falls to zero at this distance from a grid point
SPREAD_FALLOFF = 3.0


class ImageType(str, Enum):
    HIGH_DETAIL = "high_detail"
    LOW_DETAIL = "low_detail"
    SMOOTH = "smooth"
    COMPLEX = "complex"


@dataclass(frozen=True)
class ImageCharacteristics:
    image_type: ImageType
    width: int
    height: int
    edge_density: float
    color_complexity: int
    contrast_level: float
    average_saturation: float
    dominance: float
    has_distinct_regions: bool

    def to_dict(self) -> dict:
        d = asdict(self)
        d["image_type"] = self.image_type.value
        return d


def grayscale(pixels: np.ndarray) -> np.ndarray:
    """Integer luma (0.299 R + 0.587 G + 0.114 B, truncated) of an (H, W, C) array."""
    rgb = np.asarray(pixels)[..., :3].astype(float)
    luma = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
    return luma.astype(np.int64)


def _grid(size: int, margin: int, rate: int) -> np.ndarray:
    return np.arange(margin, size - margin, rate)


def _gradient(gray: np.ndarray, ys: np.ndarray, xs: np.ndarray) -> np.ndarray:
    gx = gray[np.ix_(ys, xs + 1)] - gray[np.ix_(ys, xs - 1)]
    gy = gray[np.ix_(ys + 1, xs)] - gray[np.ix_(ys - 1, xs)]
    return np.sqrt(gx * gx + gy * gy)


# ============================================================
# Characteristics
# ============================================================


def edge_density(gray: np.ndarray, ss: SaliencySettings) -> float:
    """Share of grid points whose central-difference gradient beats the edge floor."""
    height, width = gray.shape
    rate = ss.edge_sample_rate
    ys, xs = _grid(height, 1, rate), _grid(width, 1, rate)
    sampled = ((width - 2) // rate) * ((height - 2) // rate)
    if sampled <= 0 or len(ys) == 0 or len(xs) == 0:
        return 0.0

    edges = np.count_nonzero(_gradient(gray, ys, xs) > ss.edge_min_strength)
    return min(1.0, edges / sampled)


def color_distribution(pixels: np.ndarray, rate: int) -> Tuple[int, float, float]:
    """(unique colors, mean HSV saturation, share of the most common color) on a grid."""
    rgb = np.asarray(pixels)[::rate, ::rate, :3].reshape(-1, 3)
    if len(rgb) == 0:
        return 0, 0.0, 0.0

    keys = (rgb[:, 0].astype(np.uint32) << 16) | (rgb[:, 1].astype(np.uint32) << 8) | rgb[:, 2]
    _, counts = np.unique(keys, return_counts=True)

    x = rgb.astype(float) / 255.0
    mx = x.max(axis=1)
    mn = x.min(axis=1)
    sat = np.where(mx > 0, (mx - mn) / np.where(mx > 0, mx, 1.0), 0.0)

    return len(counts), float(sat.mean()), float(counts.max() / len(rgb))


def contrast_level(gray: np.ndarray, rate: int) -> float:
    values = gray[::rate, ::rate].ravel()
    if len(values) < 2:
        return 0.0
    return float(values.std() / 255.0)


def classify(edge: float, complexity: int, ss: SaliencySettings) -> ImageType:
    if edge > ss.high_detail_edge_threshold:
        return ImageType.HIGH_DETAIL
    if edge < ss.smooth_edge_threshold and complexity > ss.smooth_color_threshold:
        return ImageType.SMOOTH
    if complexity < ss.low_detail_color_threshold:
        return ImageType.LOW_DETAIL
    if complexity > ss.complex_color_threshold and edge > ss.complex_edge_threshold:
        return ImageType.COMPLEX
    return ImageType.HIGH_DETAIL


def analyze_image(pixels: np.ndarray, ss: SaliencySettings) -> ImageCharacteristics:
    height, width = pixels.shape[:2]
    gray = grayscale(pixels)

    edge = edge_density(gray, ss)
    complexity, saturation, dominance = color_distribution(pixels, ss.color_sample_rate)

    return ImageCharacteristics(
        image_type=classify(edge, complexity, ss),
        width=width,
        height=height,
        edge_density=edge,
        color_complexity=complexity,
        contrast_level=contrast_level(gray, ss.contrast_sample_rate),
        average_saturation=saturation,
        dominance=dominance,
        has_distinct_regions=ss.region_min_edge_density < edge < ss.region_max_edge_density,
    )


def select_method(chars: ImageCharacteristics, ss: SaliencySettings) -> str:
    """Saliency for detailed or visually rich images, frequency otherwise."""
    if chars.image_type == ImageType.HIGH_DETAIL:
        return SALIENCY
    if chars.edge_density > ss.edge_threshold:
        return SALIENCY
    if chars.color_complexity > ss.color_complexity and chars.average_saturation > ss.saturation_threshold:
        return SALIENCY
    return FREQUENCY


# ============================================================
# Saliency map
# ============================================================


def _offsets(radius: int):
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            if dy or dx:
                yield dy, dx


def local_contrast(gray: np.ndarray, ys: np.ndarray, xs: np.ndarray, radius: int) -> np.ndarray:
    """Mean absolute luma difference to the window around each grid point, in [0, 1]."""
    if radius <= 0:
        return np.zeros((len(ys), len(xs)))
    padded = np.pad(gray, radius, mode="edge")
    center = gray[np.ix_(ys, xs)]

    total = np.zeros(center.shape)
    n = 0
    for dy, dx in _offsets(radius):
        total += np.abs(center - padded[np.ix_(ys + radius + dy, xs + radius + dx)])
        n += 1
    return total / (n * 255.0)


def color_uniqueness(
    rgb: np.ndarray, ys: np.ndarray, xs: np.ndarray, radius: int, threshold: float
) -> np.ndarray:
    """One minus the share of window neighbours within ``threshold`` RGB distance."""
    if radius <= 0:
        return np.full((len(ys), len(xs)), 0.5)
    rgb = np.asarray(rgb)[..., :3].astype(float)
    padded = np.pad(rgb, ((radius, radius), (radius, radius), (0, 0)), mode="edge")
    center = rgb[np.ix_(ys, xs)]

    similar = np.zeros(center.shape[:2])
    n = 0
    for dy, dx in _offsets(radius):
        neighbour = padded[np.ix_(ys + radius + dy, xs + radius + dx)]
        similar += np.linalg.norm(center - neighbour, axis=-1) < threshold
        n += 1
    return 1.0 - similar / n


def saliency_map(pixels: np.ndarray, ss: SaliencySettings) -> np.ndarray:
    """
    Per-pixel saliency in [0, 1] for an (H, W, C) array.

    Grid points every ``map_sample_rate`` pixels (two pixels in from the
    border) get a weighted blend of local contrast, edge strength and color
    uniqueness. Each score is spread to its ``spread_radius`` neighbourhood
    with linear falloff; overlapping spreads keep the maximum.
    """
    pixels = np.asarray(pixels)
    height, width = pixels.shape[:2]
    out = np.zeros((height, width), dtype=np.float32)

    ys = _grid(height, 2, ss.map_sample_rate)
    xs = _grid(width, 2, ss.map_sample_rate)
    if len(ys) == 0 or len(xs) == 0:
        return out

    gray = grayscale(pixels)
    score = (
        ss.local_contrast_weight * local_contrast(gray, ys, xs, ss.contrast_radius)
        + ss.edge_strength_weight * np.minimum(_gradient(gray, ys, xs) / 255.0, 1.0)
        + ss.color_uniqueness_weight
        * color_uniqueness(pixels, ys, xs, ss.uniqueness_radius, ss.similarity_threshold)
    )

    r = ss.spread_radius
    for dy in range(-r, r + 1):
        for dx in range(-r, r + 1):
            weight = max(0.0, 1.0 - math.hypot(dy, dx) / SPREAD_FALLOFF)
            if weight == 0.0:
                continue
            ty, tx = ys + dy, xs + dx
            vy = (ty >= 0) & (ty < height)
            vx = (tx >= 0) & (tx < width)
            idx = np.ix_(ty[vy], tx[vx])
            out[idx] = np.maximum(out[idx], score[np.ix_(vy, vx)] * weight)

    logger.debug("Saliency map from %d grid points, mean %.3f", score.size, float(out.mean()))
    return np.clip(out, 0.0, 1.0)
