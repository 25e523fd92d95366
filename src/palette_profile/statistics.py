"""
Descriptors of an image's chromatic character, derived from the pool.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

import numpy as np
import pandas as pd

from .hues import circular_mean, circular_variance, hue_distance
from .settings import Settings

LIGHTNESS_BINS = 10


@dataclass(frozen=True)
class ColorStatistics:
    hue_histogram: Tuple[float, ...]
    lightness_histogram: Tuple[float, ...]
    saturation_groups: Mapping[str, float] = field(default_factory=dict)
    primary_hue: float = 0.0
    secondary_hue: float = 0.0
    tertiary_hue: float = 0.0
    chromatic_diversity: float = 0.0
    hue_variance: float = 0.0
    contrast_range: float = 0.0
    lightness_spread: float = 0.0
    saturation_spread: float = 0.0
    dominant_hue: float = math.nan
    is_grayscale: bool = True
    is_monochromatic: bool = False

    def to_dict(self) -> dict:
        return {
            "hue_histogram": list(self.hue_histogram),
            "lightness_histogram": list(self.lightness_histogram),
            "saturation_groups": dict(self.saturation_groups),
            "primary_hue": self.primary_hue,
            "secondary_hue": self.secondary_hue,
            "tertiary_hue": self.tertiary_hue,
            "chromatic_diversity": self.chromatic_diversity,
            "hue_variance": self.hue_variance,
            "contrast_range": self.contrast_range,
            "lightness_spread": self.lightness_spread,
            "saturation_spread": self.saturation_spread,
            "dominant_hue": None if math.isnan(self.dominant_hue) else self.dominant_hue,
            "is_grayscale": self.is_grayscale,
            "is_monochromatic": self.is_monochromatic,
        }


# ============================================================
# Histograms
# ============================================================


def _normalize(hist: np.ndarray) -> Tuple[float, ...]:
    total = hist.sum()
    if total > 0:
        hist = hist / total
    return tuple(float(x) for x in hist)


def hue_histogram(df: pd.DataFrame, sector_size: float, sector_count: int) -> Tuple[float, ...]:
    chromatic = df[~df["neutral"].astype(bool)]
    hist = np.zeros(sector_count)
    if not chromatic.empty:
        sectors = (chromatic["hue"].to_numpy() // sector_size).astype(int) % sector_count
        np.add.at(hist, sectors, chromatic["weight"].to_numpy(dtype=float))
    return _normalize(hist)


def lightness_histogram(df: pd.DataFrame) -> Tuple[float, ...]:
    hist = np.zeros(LIGHTNESS_BINS)
    if not df.empty:
        bins = np.clip(
            (df["lightness"].to_numpy() * LIGHTNESS_BINS).astype(int), 0, LIGHTNESS_BINS - 1
        )
        np.add.at(hist, bins, df["weight"].to_numpy(dtype=float))
    return _normalize(hist)


# ============================================================
# Scalar descriptors
# ============================================================


def dominant_hues(by_hue, sector_size: float) -> Tuple[float, float, float]:
    """Centres of the three heaviest hue sectors; missing ranks report 0."""
    ranked = sorted(
        ((float(sub["weight"].sum()), sector) for sector, sub in by_hue.items()),
        key=lambda x: (-x[0], x[1]),
    )
    centres = [sector * sector_size + sector_size / 2.0 for _, sector in ranked[:3]]
    centres += [0.0] * (3 - len(centres))
    return centres[0], centres[1], centres[2]


def chromatic_diversity(histogram) -> float:
    """Shannon entropy of the hue histogram over log2(sector count)."""
    p = np.asarray(histogram, dtype=float)
    if len(p) <= 1:
        return 0.0
    nz = p[p > 0]
    entropy = float(-(nz * np.log2(nz)).sum())
    return entropy / math.log2(len(p))


def contrast_range(df: pd.DataFrame) -> float:
    if len(df) <= 1:
        return 0.0
    lum = df["luminance"].to_numpy(dtype=float)
    return float(lum.max() - lum.min())


def lightness_spread(groups) -> float:
    counts = np.array(groups.counts(), dtype=float)
    total = counts.sum()
    if total == 0:
        return 0.0
    deviation = np.abs(counts / total - 1.0 / 3.0).sum()
    return float(1.0 - deviation / 2.0)


def saturation_spread(groups) -> float:
    return sum(1 for n in groups.counts() if n > 0) / 4.0


def saturation_ratios(groups) -> Mapping[str, float]:
    names = ("gray", "muted", "normal", "vibrant")
    counts = groups.counts()
    total = sum(counts)
    if total == 0:
        return MappingProxyType({})
    return MappingProxyType({n: c / total for n, c in zip(names, counts)})


def is_monochromatic(hues, center: float, tolerance: float) -> bool:
    if len(hues) == 0 or math.isnan(center):
        return False
    return bool(np.all(hue_distance(np.asarray(hues), center) <= tolerance))


# ============================================================
# Assembly
# ============================================================


def compute_statistics(df, by_lightness, by_saturation, by_hue, settings: Settings) -> ColorStatistics:
    ps = settings.pool

    hue_hist = hue_histogram(df, ps.hue_sector_size, ps.hue_sector_count)
    primary, secondary, tertiary = dominant_hues(by_hue, ps.hue_sector_size)

    chromatic = df[~df["neutral"].astype(bool)]
    hues = chromatic["hue"].to_numpy(dtype=float)
    weights = chromatic["weight"].to_numpy(dtype=float)
    dominant = circular_mean(hues, weights)

    return ColorStatistics(
        hue_histogram=hue_hist,
        lightness_histogram=lightness_histogram(df),
        saturation_groups=saturation_ratios(by_saturation),
        primary_hue=primary,
        secondary_hue=secondary,
        tertiary_hue=tertiary,
        chromatic_diversity=chromatic_diversity(hue_hist),
        hue_variance=circular_variance(hues, weights),
        contrast_range=contrast_range(df),
        lightness_spread=lightness_spread(by_lightness),
        saturation_spread=saturation_spread(by_saturation),
        dominant_hue=dominant,
        is_grayscale=chromatic.empty,
        is_monochromatic=is_monochromatic(
            hues, dominant, settings.chromatic.monochromatic_tolerance
        ),
    )
