from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from .colormath import RGB, relative_luminance, rgb_to_hex, rgb_to_hsl, rgb_to_lab
from .errors import InputEmptyError
from .sampler import ColorSample

# Column order of every color frame (authoritative)
COLUMNS = [
    "R",
    "G",
    "B",
    "hex",
    "frequency",
    "weight",
    "hue",
    "saturation",
    "lightness",
    "L",
    "a",
    "b",
    "luminance",
    "neutral",
]


@dataclass(frozen=True)
class WeightedColor:
    color: RGB
    frequency: int
    weight: float

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.color)


def color_frame(
    rgb: np.ndarray,
    frequency: np.ndarray,
    total: int,
    neutral_threshold: float,
    weight: Optional[np.ndarray] = None,
) -> pd.DataFrame:
    rgb = np.asarray(rgb, dtype=np.uint8).reshape(-1, 3)
    frequency = np.asarray(frequency, dtype=np.int64)
    if weight is None:
        weight = frequency / total if total > 0 else np.zeros(len(rgb))

    hue, sat, light = rgb_to_hsl(rgb)
    lab = rgb_to_lab(rgb)

    df = pd.DataFrame(
        {
            "R": rgb[:, 0].astype(int),
            "G": rgb[:, 1].astype(int),
            "B": rgb[:, 2].astype(int),
            "hex": [rgb_to_hex(c) for c in rgb],
            "frequency": frequency,
            "weight": np.asarray(weight, dtype=float),
            "hue": hue,
            "saturation": sat,
            "lightness": light,
            "L": lab[:, 0],
            "a": lab[:, 1],
            "b": lab[:, 2],
            "luminance": relative_luminance(rgb),
            "neutral": sat < neutral_threshold,
        },
        columns=COLUMNS,
    )
    return sort_by_weight(df)


def sort_by_weight(df: pd.DataFrame) -> pd.DataFrame:
    # hex as tie-breaker keeps ordering deterministic across runs
    return df.sort_values(["weight", "hex"], ascending=[False, True]).reset_index(drop=True)


def weighted_frame(sample: ColorSample, neutral_threshold: float) -> pd.DataFrame:
    """
    Every sampled color with ``weight = frequency / total_samples``, or the
    sample's blended saliency weight when it carries one.
    """
    if sample.is_empty:
        return pd.DataFrame(columns=COLUMNS)

    colors = np.array(list(sample.frequencies.keys()), dtype=np.uint8)
    counts = np.array(list(sample.frequencies.values()), dtype=np.int64)
    weight = None
    if sample.weights is not None:
        weight = np.array([sample.weights[c] for c in sample.frequencies], dtype=float)
    return color_frame(colors, counts, sample.total_samples, neutral_threshold, weight)


def filter_by_frequency(df: pd.DataFrame, min_frequency: float) -> pd.DataFrame:
    """
    Drop colors whose weight falls below ``min_frequency``.

    Raises InputEmptyError when nothing survives; this is the pipeline's
    only hard failure.
    """
    kept = df[df["weight"] >= min_frequency].reset_index(drop=True)
    if kept.empty:
        raise InputEmptyError()
    return kept


def rgb_of(row) -> RGB:
    return (int(row.R), int(row.G), int(row.B))


def weighted_colors(df: pd.DataFrame) -> List[WeightedColor]:
    return [
        WeightedColor(rgb_of(r), int(r.frequency), float(r.weight))
        for r in df.itertuples(index=False)
    ]
