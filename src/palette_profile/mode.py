from __future__ import annotations

import pandas as pd

from .categories import ThemeMode
from .settings import ModeSettings
from .weighting import sort_by_weight


def weighted_lightness(df: pd.DataFrame, max_colors: int) -> float:
    """Weight-averaged HSL lightness of the ``max_colors`` heaviest colors."""
    top = sort_by_weight(df).head(max(0, min(max_colors, len(df))))
    total = float(top["weight"].sum())
    if top.empty or total <= 0:
        return 0.0
    return float((top["lightness"] * top["weight"]).sum() / total)


def classify_mode(df: pd.DataFrame, ms: ModeSettings) -> ThemeMode:
    if df.empty:
        return ThemeMode.DARK
    if weighted_lightness(df, ms.theme_mode_max_clusters) >= ms.theme_mode_threshold:
        return ThemeMode.LIGHT
    return ThemeMode.DARK


def has_significant_color(df: pd.DataFrame, ms: ModeSettings) -> bool:
    """True when non-neutral colors carry more than the configured share of weight."""
    total = float(df["weight"].sum()) if not df.empty else 0.0
    if total <= 0:
        return False
    chromatic = float(df.loc[~df["neutral"].astype(bool), "weight"].sum())
    return chromatic / total > ms.significant_color_threshold
