from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

import pandas as pd

from .clustering import cluster_colors
from .settings import PoolSettings, Settings
from .statistics import ColorStatistics, compute_statistics
from .weighting import sort_by_weight

logger = logging.getLogger(__name__)

# ============================================================
# Groupings
# ============================================================


@dataclass(frozen=True)
class LightnessGroups:
    dark: pd.DataFrame
    mid: pd.DataFrame
    light: pd.DataFrame

    def counts(self) -> tuple:
        return (len(self.dark), len(self.mid), len(self.light))


@dataclass(frozen=True)
class SaturationGroups:
    gray: pd.DataFrame
    muted: pd.DataFrame
    normal: pd.DataFrame
    vibrant: pd.DataFrame

    def counts(self) -> tuple:
        return (len(self.gray), len(self.muted), len(self.normal), len(self.vibrant))


@dataclass(frozen=True)
class ColorPool:
    all_colors: pd.DataFrame
    dominant_colors: pd.DataFrame
    by_lightness: LightnessGroups
    by_saturation: SaturationGroups
    by_hue: Mapping[int, pd.DataFrame]
    statistics: ColorStatistics
    ui_colors: pd.DataFrame
    total_samples: int

    @property
    def unique_colors(self) -> int:
        return len(self.all_colors)


def _band(df: pd.DataFrame, mask) -> pd.DataFrame:
    return sort_by_weight(df[mask])


def group_by_lightness(df: pd.DataFrame, ps: PoolSettings) -> LightnessGroups:
    L = df["lightness"]
    dark = L <= ps.lightness_dark_max
    light = ~dark & (L >= ps.lightness_light_min)
    mid = ~dark & ~light
    return LightnessGroups(_band(df, dark), _band(df, mid), _band(df, light))


def group_by_saturation(df: pd.DataFrame, ps: PoolSettings) -> SaturationGroups:
    S = df["saturation"]
    # strict, like the neutral flag, so gray and neutral agree at the cut
    gray = S < ps.saturation_gray_max
    muted = ~gray & (S <= ps.saturation_muted_max)
    normal = ~gray & ~muted & (S <= ps.saturation_normal_max)
    vibrant = ~gray & ~muted & ~normal
    return SaturationGroups(
        _band(df, gray), _band(df, muted), _band(df, normal), _band(df, vibrant)
    )


def hue_sector(hue, ps: PoolSettings):
    return (hue // ps.hue_sector_size).astype(int) % ps.hue_sector_count


def group_by_hue(df: pd.DataFrame, ps: PoolSettings) -> Mapping[int, pd.DataFrame]:
    chromatic = df[~df["neutral"].astype(bool)]
    if chromatic.empty:
        return MappingProxyType({})

    sectors = hue_sector(chromatic["hue"], ps)
    families = {
        int(sector): sort_by_weight(sub) for sector, sub in chromatic.groupby(sectors)
    }
    return MappingProxyType(families)


def select_dominant(df: pd.DataFrame, count: int) -> pd.DataFrame:
    if count <= 0 or count >= len(df):
        return df
    return sort_by_weight(df).head(count).reset_index(drop=True)


def select_ui_colors(df: pd.DataFrame, ps: PoolSettings) -> pd.DataFrame:
    """
    Keep one near-black and one near-white (each only above 1% weight),
    drop everything else below the UI weight floor, cap the count.
    """
    keep = []
    has_black = has_white = False

    for idx, r in sort_by_weight(df).iterrows():
        if r.lightness < ps.pure_black_threshold:
            if not has_black and r.weight > 0.01:
                has_black = True
                keep.append(r)
            continue
        if r.lightness > ps.pure_white_threshold:
            if not has_white and r.weight > 0.01:
                has_white = True
                keep.append(r)
            continue
        if r.weight < ps.min_ui_color_weight:
            continue
        keep.append(r)

    if not keep:
        return df.head(0)

    out = sort_by_weight(pd.DataFrame(keep, columns=df.columns))
    return out.head(ps.max_ui_colors).reset_index(drop=True)


# ============================================================
# Pool
# ============================================================


def build_pool(df: pd.DataFrame, total_samples: int, settings: Settings) -> ColorPool:
    """
    Partition the filtered weighted colors into bands and sectors and
    compute statistics. With ``pool.merge_similar`` the colors are first
    merged into perceptual clusters.
    """
    ps = settings.pool

    colors = df
    if ps.merge_similar:
        colors = cluster_colors(df, settings.chromatic, ps.min_cluster_weight)
        if colors.empty:
            # every cluster fell under the weight floor; fall back to raw colors
            logger.debug("No cluster reached min_cluster_weight, pooling unmerged colors")
            colors = df
    colors = sort_by_weight(colors)

    by_lightness = group_by_lightness(colors, ps)
    by_saturation = group_by_saturation(colors, ps)
    by_hue = group_by_hue(colors, ps)

    stats = compute_statistics(colors, by_lightness, by_saturation, by_hue, settings)

    pool = ColorPool(
        all_colors=colors,
        dominant_colors=select_dominant(colors, ps.dominant_color_count),
        by_lightness=by_lightness,
        by_saturation=by_saturation,
        by_hue=by_hue,
        statistics=stats,
        ui_colors=select_ui_colors(colors, ps),
        total_samples=total_samples,
    )
    logger.debug(
        "Pool: %d colors, %d hue sectors, %d UI colors",
        pool.unique_colors,
        len(by_hue),
        len(pool.ui_colors),
    )
    return pool
