"""
Hard constraints and fit scores for placing colors into categories.

A color outside any window (lightness, saturation, hue, contrast against the
background) is excluded outright. Survivors are ranked by a weighted sum of
independent terms; a term whose weight is 0 is skipped entirely.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from .categories import CategoryCharacteristics
from .colormath import RGB, contrast_ratios
from .hues import hue_distance
from .settings import ScoringWeights


def _rgb(df: pd.DataFrame) -> np.ndarray:
    return df[["R", "G", "B"]].to_numpy(dtype=float)


def within_windows(df: pd.DataFrame, chars: CategoryCharacteristics) -> pd.Series:
    L = df["lightness"]
    S = df["saturation"]
    mask = (
        (L >= chars.min_lightness)
        & (L <= chars.max_lightness)
        & (S >= chars.min_saturation)
        & (S <= chars.max_saturation)
    )
    if chars.has_hue:
        mask &= hue_distance(df["hue"].to_numpy(dtype=float), chars.hue_center) <= chars.hue_tolerance
    return mask


def eligible(df: pd.DataFrame, chars: CategoryCharacteristics, background: Optional[RGB]) -> pd.Series:
    """Hard-constraint mask. Without a background there is no contrast test."""
    mask = within_windows(df, chars)
    if background is not None and chars.min_contrast > 0 and not df.empty:
        mask &= contrast_ratios(_rgb(df), background) >= chars.min_contrast
    return mask


def _closeness(values: np.ndarray, lo: float, hi: float) -> np.ndarray:
    span = hi - lo
    if span <= 0:
        # degenerate window: every admitted value is a perfect fit
        return np.ones_like(values)
    mid = (lo + hi) / 2.0
    return 1.0 - np.abs(values - mid) / span


def frequency_score(frequency, total_samples: int) -> np.ndarray:
    ratio = np.asarray(frequency, dtype=float) / max(total_samples, 1)
    return np.minimum(1.0, np.log10(ratio * 10000.0 + 1.0) / 4.0)


def fit_scores(
    df: pd.DataFrame,
    chars: CategoryCharacteristics,
    background: RGB,
    weights: ScoringWeights,
    total_samples: int,
) -> pd.Series:
    """Fit score of every row in ``df``; rows are assumed already eligible."""
    score = np.zeros(len(df))
    if df.empty:
        return pd.Series(score, index=df.index, dtype=float)

    if weights.frequency > 0:
        score += frequency_score(df["frequency"].to_numpy(), total_samples) * weights.frequency

    if weights.contrast > 0 and chars.min_contrast > 0:
        contrast = contrast_ratios(_rgb(df), background)
        surplus = np.minimum(1.0, (contrast - chars.min_contrast) / 10.0)
        score += surplus * weights.contrast

    if weights.saturation > 0:
        sat = df["saturation"].to_numpy(dtype=float)
        score += _closeness(sat, chars.min_saturation, chars.max_saturation) * weights.saturation

    if weights.lightness > 0:
        light = df["lightness"].to_numpy(dtype=float)
        score += _closeness(light, chars.min_lightness, chars.max_lightness) * weights.lightness

    if weights.hue_alignment > 0 and chars.has_hue:
        d = hue_distance(df["hue"].to_numpy(dtype=float), chars.hue_center)
        if chars.hue_tolerance > 0:
            score += (1.0 - d / chars.hue_tolerance) * weights.hue_alignment
        else:
            score += weights.hue_alignment

    return pd.Series(score, index=df.index, dtype=float)


def background_scores(df: pd.DataFrame, chars: CategoryCharacteristics) -> pd.Series:
    """``frequency * (1 - |lightness - window midpoint|)`` over in-window rows."""
    inside = df[within_windows(df, chars)]
    return inside["frequency"].astype(float) * (
        1.0 - (inside["lightness"] - chars.lightness_mid).abs()
    )
