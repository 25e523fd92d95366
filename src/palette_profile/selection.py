"""
Category selection strategies.

A strategy is any callable ``(pool, definitions, mode, assigned)`` returning a
``CategoryAssignment``. ``definitions`` are the characteristics already
resolved for the theme mode; ``assigned`` holds colors the caller has fixed
in advance (they are kept as-is and used for contrast tests).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Protocol, Tuple

import numpy as np
import pandas as pd

from .categories import PRIORITY_ORDER, Category, CategoryCharacteristics, ThemeMode
from .colormath import RGB, contrast_ratios, hsl, hsl_to_rgb, rgb_to_hex
from .pool import ColorPool
from .scoring import background_scores, eligible, fit_scores
from .settings import HeuristicSettings, Settings
from .weighting import rgb_of

logger = logging.getLogger(__name__)

Definitions = Mapping[Category, CategoryCharacteristics]


@dataclass(frozen=True)
class ColorCandidate:
    color: RGB
    frequency: int
    score: float

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.color)


@dataclass(frozen=True)
class CategoryAssignment:
    colors: Mapping[Category, RGB] = field(default_factory=dict)
    candidates: Mapping[Category, Tuple[ColorCandidate, ...]] = field(default_factory=dict)
    fallbacks: frozenset = frozenset()


class CategoryStrategy(Protocol):
    def __call__(
        self,
        pool: ColorPool,
        definitions: Definitions,
        mode: ThemeMode,
        assigned: Optional[Mapping[Category, RGB]] = None,
    ) -> CategoryAssignment: ...


def _candidates(df: pd.DataFrame, scores: pd.Series, limit: int) -> Tuple[ColorCandidate, ...]:
    ranked = df.assign(score=scores).sort_values(["score", "hex"], ascending=[False, True])
    return tuple(
        ColorCandidate(rgb_of(r), int(r.frequency), float(r.score))
        for r in ranked.head(limit).itertuples(index=False)
    )


def _freeze(colors, candidates, fallbacks) -> CategoryAssignment:
    return CategoryAssignment(
        colors=MappingProxyType(dict(colors)),
        candidates=MappingProxyType(dict(candidates)),
        fallbacks=frozenset(fallbacks),
    )


# ============================================================
# Scored 27-role model
# ============================================================


class ScoredCategoryStrategy:
    """
    Background is resolved first, then every other category in priority
    order: hard-constraint filtering followed by weighted fit scoring.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def select_background(
        self, df: pd.DataFrame, chars: CategoryCharacteristics, mode: ThemeMode
    ) -> Tuple[RGB, Tuple[ColorCandidate, ...], bool]:
        scores = background_scores(df, chars)
        if scores.empty:
            logger.debug("No background candidate in window, using %s fallback", mode.value)
            return self.settings.fallbacks.background(mode), (), True

        limit = self.settings.extraction.max_candidates_per_category
        ranked = _candidates(df.loc[scores.index], scores, limit)
        return ranked[0].color, ranked, False

    def rank(
        self,
        df: pd.DataFrame,
        chars: CategoryCharacteristics,
        background: RGB,
        total_samples: int,
    ) -> Tuple[ColorCandidate, ...]:
        survivors = df[eligible(df, chars, background)]
        if survivors.empty:
            return ()
        scores = fit_scores(survivors, chars, background, self.settings.scoring, total_samples)
        return _candidates(survivors, scores, self.settings.extraction.max_candidates_per_category)

    def __call__(
        self,
        pool: ColorPool,
        definitions: Definitions,
        mode: ThemeMode,
        assigned: Optional[Mapping[Category, RGB]] = None,
    ) -> CategoryAssignment:
        assigned = dict(assigned or {})
        df = pool.all_colors
        colors: Dict[Category, RGB] = {}
        candidates: Dict[Category, Tuple[ColorCandidate, ...]] = {}
        fallbacks = set()

        background = assigned.get(Category.BACKGROUND)
        if background is None:
            background, ranked, used_fallback = self.select_background(
                df, definitions[Category.BACKGROUND], mode
            )
            candidates[Category.BACKGROUND] = ranked
            if used_fallback:
                fallbacks.add(Category.BACKGROUND)
        colors[Category.BACKGROUND] = tuple(background)

        distinct = self.settings.extraction.require_distinct
        taken = {rgb_to_hex(background)}

        for category in PRIORITY_ORDER[1:]:
            if category in assigned:
                colors[category] = tuple(assigned[category])
                taken.add(rgb_to_hex(assigned[category]))
                continue

            scan = df[~df["hex"].isin(taken)] if distinct else df
            ranked = self.rank(scan, definitions[category], background, pool.total_samples)
            if not ranked:
                logger.debug("No qualifying color for %s", category.value)
                continue

            colors[category] = ranked[0].color
            candidates[category] = ranked
            taken.add(ranked[0].hex)

        return _freeze(colors, candidates, fallbacks)


# ============================================================
# Simple role heuristics
# ============================================================

EXTREME_LIGHTNESS_PENALTY = 0.8
OPTIMAL_LIGHTNESS_BONUS = 1.2
LOW_SATURATION_PENALTY = 0.8

TRIADIC_SATURATION = 0.8
COMPLEMENTARY_SATURATION = 1.2

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def visual_importance(df: pd.DataFrame, hs: HeuristicSettings) -> pd.Series:
    """Blend of weight, saturation, mid-lightness and best achievable contrast."""
    L = df["lightness"].to_numpy(dtype=float)
    S = df["saturation"].to_numpy(dtype=float)
    rgb = df[["R", "G", "B"]].to_numpy(dtype=float)
    contrast = np.maximum(contrast_ratios(rgb, WHITE), contrast_ratios(rgb, BLACK)) / 21.0

    score = (
        0.3 * df["weight"].to_numpy(dtype=float)
        + 0.3 * S
        + 0.2 * (1.0 - np.abs(L - 0.5) * 2.0)
        + 0.2 * contrast
    )
    extreme = (L < hs.extreme_dark_lightness) | (L > hs.extreme_light_lightness)
    score = np.where(extreme, score * EXTREME_LIGHTNESS_PENALTY, score)
    score = np.where(~extreme & (L >= 0.2) & (L <= 0.8), score * OPTIMAL_LIGHTNESS_BONUS, score)
    score = np.where(S < hs.low_saturation, score * LOW_SATURATION_PENALTY, score)
    return pd.Series(score, index=df.index)


def harmonize(color: RGB, rotation: float, saturation_scale: float) -> RGB:
    """Rotate the hue of ``color`` and scale its saturation, keeping lightness."""
    h, s, l = hsl(color)
    r, g, b = hsl_to_rgb(h + rotation, min(s * saturation_scale, 1.0), l)[0]
    return (int(r), int(g), int(b))


class RoleHeuristicStrategy:
    """
    Frequency/contrast heuristics for the five core roles: background,
    foreground and three accents. Definitions are not consulted.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def __call__(
        self,
        pool: ColorPool,
        definitions: Definitions,
        mode: ThemeMode,
        assigned: Optional[Mapping[Category, RGB]] = None,
    ) -> CategoryAssignment:
        hs = self.settings.heuristics
        fb = self.settings.fallbacks
        assigned = dict(assigned or {})

        df = pool.all_colors
        scores = visual_importance(df, hs)
        ranked = df.assign(score=scores).sort_values(["score", "hex"], ascending=[False, True])
        rows = list(ranked.itertuples(index=False))

        colors: Dict[Category, RGB] = {}
        candidates: Dict[Category, Tuple[ColorCandidate, ...]] = {}
        fallbacks = set()

        def take(category, row):
            colors[category] = rgb_of(row)
            candidates[category] = (ColorCandidate(rgb_of(row), int(row.frequency), float(row.score)),)

        # background
        if Category.BACKGROUND in assigned:
            colors[Category.BACKGROUND] = tuple(assigned[Category.BACKGROUND])
        else:
            for r in rows:
                if mode == ThemeMode.LIGHT and r.lightness > hs.light_background_threshold:
                    take(Category.BACKGROUND, r)
                    break
                if mode == ThemeMode.DARK and r.lightness < hs.dark_background_threshold:
                    take(Category.BACKGROUND, r)
                    break
            else:
                colors[Category.BACKGROUND] = fb.background(mode)
                fallbacks.add(Category.BACKGROUND)
        bg = colors[Category.BACKGROUND]

        # foreground: highest contrast against the background
        if Category.FOREGROUND in assigned:
            colors[Category.FOREGROUND] = tuple(assigned[Category.FOREGROUND])
        else:
            others = [r for r in rows if rgb_of(r) != bg]
            best = None
            if others:
                rgb = np.array([rgb_of(r) for r in others], dtype=float)
                contrast = contrast_ratios(rgb, bg)
                i = int(np.argmax(contrast))
                if contrast[i] >= hs.min_contrast_ratio:
                    best = others[i]
            if best is not None:
                take(Category.FOREGROUND, best)
            else:
                colors[Category.FOREGROUND] = fb.foreground(mode)
                fallbacks.add(Category.FOREGROUND)
        fg = colors[Category.FOREGROUND]

        # primary: first saturated color that is neither bg nor fg
        if Category.ACCENT_PRIMARY in assigned:
            colors[Category.ACCENT_PRIMARY] = tuple(assigned[Category.ACCENT_PRIMARY])
        else:
            pick = next(
                (
                    r
                    for r in rows
                    if rgb_of(r) not in (bg, fg) and r.saturation > hs.min_primary_saturation
                ),
                None,
            )
            if pick is None and len(rows) > 2:
                pick = rows[2]
            if pick is not None:
                take(Category.ACCENT_PRIMARY, pick)
            else:
                colors[Category.ACCENT_PRIMARY] = fb.primary_color()
                fallbacks.add(Category.ACCENT_PRIMARY)
        primary = colors[Category.ACCENT_PRIMARY]

        # secondary: next color distinct from primary and background,
        # else the triadic partner of the primary
        if Category.ACCENT_SECONDARY in assigned:
            colors[Category.ACCENT_SECONDARY] = tuple(assigned[Category.ACCENT_SECONDARY])
        else:
            pick = next((r for r in rows if rgb_of(r) not in (primary, bg)), None)
            if pick is not None:
                take(Category.ACCENT_SECONDARY, pick)
            else:
                colors[Category.ACCENT_SECONDARY] = harmonize(primary, 120.0, TRIADIC_SATURATION)
                fallbacks.add(Category.ACCENT_SECONDARY)
        secondary = colors[Category.ACCENT_SECONDARY]

        # tertiary: saturated mid-lightness color distinct from both accents,
        # else the complement of the primary
        if Category.ACCENT_TERTIARY in assigned:
            colors[Category.ACCENT_TERTIARY] = tuple(assigned[Category.ACCENT_TERTIARY])
        else:
            pick = next(
                (
                    r
                    for r in rows
                    if rgb_of(r) not in (primary, secondary)
                    and r.saturation > hs.min_accent_saturation
                    and hs.min_accent_lightness < r.lightness < hs.max_accent_lightness
                ),
                None,
            )
            if pick is not None:
                take(Category.ACCENT_TERTIARY, pick)
            else:
                colors[Category.ACCENT_TERTIARY] = harmonize(
                    primary, 180.0, COMPLEMENTARY_SATURATION
                )
                fallbacks.add(Category.ACCENT_TERTIARY)

        return _freeze(colors, candidates, fallbacks)


STRATEGIES = {
    "scored": ScoredCategoryStrategy,
    "heuristic": RoleHeuristicStrategy,
}


def make_strategy(name: str, settings: Settings) -> CategoryStrategy:
    try:
        return STRATEGIES[name](settings)
    except KeyError:
        raise ValueError(
            f"unknown strategy {name!r}; choose from {', '.join(sorted(STRATEGIES))}"
        ) from None
