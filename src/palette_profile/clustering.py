"""
Greedy perceptual clustering of a weighted color frame.

Colors are visited heaviest first. Each color not yet absorbed seeds a
cluster and absorbs every later color that is similar to the seed. The
seed stays the representative; weights and frequencies accumulate.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from .colormath import delta_e
from .settings import ChromaticSettings
from .weighting import COLUMNS, sort_by_weight

logger = logging.getLogger(__name__)


def similar_to(df: pd.DataFrame, color, chromatic: ChromaticSettings) -> np.ndarray:
    """
    Mask of the rows of ``df`` perceptually similar to ``color`` (any row
    with saturation, lightness and L/a/b fields). Two neutrals compare by
    lightness only since their hue is noise; anything else compares by
    Euclidean distance in CIE LAB.
    """
    sat = df["saturation"].to_numpy()
    both_neutral = (sat < chromatic.neutral_threshold) & (
        color.saturation < chromatic.neutral_threshold
    )
    by_lightness = (
        np.abs(df["lightness"].to_numpy() - color.lightness)
        < chromatic.neutral_lightness_threshold
    )

    lab = df[["L", "a", "b"]].to_numpy(dtype=float)
    by_lab = delta_e(lab, (color.L, color.a, color.b)) <= chromatic.color_merge_threshold

    return np.where(both_neutral, by_lightness, by_lab)


def cluster_colors(
    df: pd.DataFrame,
    chromatic: ChromaticSettings,
    min_cluster_weight: float = 0.0,
) -> pd.DataFrame:
    """Return one row per surviving cluster, sorted by descending weight."""
    if df.empty:
        return df.copy()

    df = sort_by_weight(df)
    weight = df["weight"].to_numpy(dtype=float)
    frequency = df["frequency"].to_numpy()
    used = np.zeros(len(df), dtype=bool)
    rows = []

    for i, seed in enumerate(df.itertuples(index=False)):
        if used[i]:
            continue
        used[i] = True

        members = similar_to(df, seed, chromatic)
        members[: i + 1] = False
        members &= ~used
        used |= members

        cluster = seed._asdict()
        cluster["weight"] = float(seed.weight + weight[members].sum())
        cluster["frequency"] = int(seed.frequency + frequency[members].sum())

        if cluster["weight"] >= min_cluster_weight:
            rows.append(cluster)

    out = pd.DataFrame(rows, columns=COLUMNS)
    if not out.empty:
        out["frequency"] = out["frequency"].astype(np.int64)
        out["neutral"] = out["neutral"].astype(bool)
        out = sort_by_weight(out)

    logger.debug("Clustered %d colors into %d clusters", len(df), len(out))
    return out
