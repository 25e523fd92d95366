from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .errors import SettingsError

logger = logging.getLogger(__name__)


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Category(str, Enum):
    # Core UI
    BACKGROUND = "background"
    FOREGROUND = "foreground"
    DIM_FOREGROUND = "dim_foreground"
    CURSOR = "cursor"

    # ANSI 0-7
    NORMAL_BLACK = "normal_black"
    NORMAL_RED = "normal_red"
    NORMAL_GREEN = "normal_green"
    NORMAL_YELLOW = "normal_yellow"
    NORMAL_BLUE = "normal_blue"
    NORMAL_MAGENTA = "normal_magenta"
    NORMAL_CYAN = "normal_cyan"
    NORMAL_WHITE = "normal_white"

    # ANSI 8-15
    BRIGHT_BLACK = "bright_black"
    BRIGHT_RED = "bright_red"
    BRIGHT_GREEN = "bright_green"
    BRIGHT_YELLOW = "bright_yellow"
    BRIGHT_BLUE = "bright_blue"
    BRIGHT_MAGENTA = "bright_magenta"
    BRIGHT_CYAN = "bright_cyan"
    BRIGHT_WHITE = "bright_white"

    # Accents
    ACCENT_PRIMARY = "accent_primary"
    ACCENT_SECONDARY = "accent_secondary"
    ACCENT_TERTIARY = "accent_tertiary"

    # Semantic
    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


ALL_CATEGORIES: Tuple[Category, ...] = tuple(Category)

# Background must come first: every later contrast test is measured against it.
PRIORITY_ORDER: Tuple[Category, ...] = (
    Category.BACKGROUND,
    Category.FOREGROUND,
    Category.ACCENT_PRIMARY,
    Category.DIM_FOREGROUND,
    Category.CURSOR,
    Category.ERROR,
    Category.WARNING,
    Category.SUCCESS,
    Category.INFO,
    Category.ACCENT_SECONDARY,
    Category.ACCENT_TERTIARY,
    Category.NORMAL_RED,
    Category.NORMAL_GREEN,
    Category.NORMAL_BLUE,
    Category.NORMAL_YELLOW,
    Category.NORMAL_MAGENTA,
    Category.NORMAL_CYAN,
    Category.NORMAL_BLACK,
    Category.NORMAL_WHITE,
    Category.BRIGHT_RED,
    Category.BRIGHT_GREEN,
    Category.BRIGHT_BLUE,
    Category.BRIGHT_YELLOW,
    Category.BRIGHT_MAGENTA,
    Category.BRIGHT_CYAN,
    Category.BRIGHT_BLACK,
    Category.BRIGHT_WHITE,
)


# ============================================================
# Acceptance windows
# ============================================================


@dataclass(frozen=True)
class CategoryCharacteristics:
    min_lightness: float = 0.0
    max_lightness: float = 1.0
    min_saturation: float = 0.0
    max_saturation: float = 1.0
    min_contrast: float = 2.0
    hue_center: Optional[float] = None
    hue_tolerance: Optional[float] = None

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None and (
                isinstance(value, bool) or not isinstance(value, (int, float))
            ):
                raise SettingsError(f"{f.name} must be a number, got {value!r}")
        if self.min_lightness > self.max_lightness:
            raise SettingsError(
                f"min_lightness {self.min_lightness} > max_lightness {self.max_lightness}"
            )
        if self.min_saturation > self.max_saturation:
            raise SettingsError(
                f"min_saturation {self.min_saturation} > max_saturation {self.max_saturation}"
            )
        if (self.hue_center is None) != (self.hue_tolerance is None):
            raise SettingsError("hue_center and hue_tolerance must be set together")
        if self.hue_center is not None and not 0.0 <= self.hue_center < 360.0:
            raise SettingsError(f"hue_center {self.hue_center} outside [0, 360)")
        if self.hue_tolerance is not None and self.hue_tolerance < 0:
            raise SettingsError(f"hue_tolerance {self.hue_tolerance} is negative")

    @property
    def has_hue(self) -> bool:
        return self.hue_center is not None

    @property
    def lightness_mid(self) -> float:
        return (self.min_lightness + self.max_lightness) / 2.0

    @property
    def saturation_mid(self) -> float:
        return (self.min_saturation + self.max_saturation) / 2.0


PERMISSIVE = CategoryCharacteristics()


def _c(l_lo, l_hi, s_lo, s_hi, contrast, hue=None, tol=None):
    return CategoryCharacteristics(l_lo, l_hi, s_lo, s_hi, contrast, hue, tol)


C = Category

DARK_DEFAULTS: Dict[Category, CategoryCharacteristics] = {
    C.BACKGROUND: _c(0.0, 0.25, 0.0, 0.4, 0.0),
    C.FOREGROUND: _c(0.70, 1.0, 0.0, 0.3, 3.0),
    C.DIM_FOREGROUND: _c(0.35, 0.65, 0.0, 0.5, 2.0),
    C.CURSOR: _c(0.6, 1.0, 0.0, 0.7, 4.5),
    C.NORMAL_BLACK: _c(0.10, 0.30, 0.0, 0.2, 1.2),
    C.NORMAL_RED: _c(0.25, 0.65, 0.3, 1.0, 1.5, 0.0, 35.0),
    C.NORMAL_GREEN: _c(0.25, 0.65, 0.3, 1.0, 1.5, 120.0, 50.0),
    C.NORMAL_YELLOW: _c(0.35, 0.75, 0.4, 1.0, 2.0, 60.0, 30.0),
    C.NORMAL_BLUE: _c(0.25, 0.65, 0.3, 1.0, 1.5, 240.0, 40.0),
    C.NORMAL_MAGENTA: _c(0.25, 0.65, 0.3, 1.0, 1.5, 300.0, 40.0),
    C.NORMAL_CYAN: _c(0.25, 0.65, 0.3, 1.0, 1.5, 180.0, 40.0),
    C.NORMAL_WHITE: _c(0.5, 0.85, 0.0, 0.2, 3.0),
    C.BRIGHT_BLACK: _c(0.20, 0.40, 0.0, 0.2, 1.5),
    C.BRIGHT_RED: _c(0.4, 0.8, 0.5, 1.0, 2.5, 0.0, 35.0),
    C.BRIGHT_GREEN: _c(0.4, 0.8, 0.4, 1.0, 2.5, 120.0, 50.0),
    C.BRIGHT_YELLOW: _c(0.5, 0.9, 0.5, 1.0, 3.0, 60.0, 30.0),
    C.BRIGHT_BLUE: _c(0.4, 0.8, 0.5, 1.0, 2.5, 240.0, 40.0),
    C.BRIGHT_MAGENTA: _c(0.4, 0.8, 0.4, 1.0, 2.5, 300.0, 40.0),
    C.BRIGHT_CYAN: _c(0.4, 0.8, 0.4, 1.0, 2.5, 180.0, 40.0),
    C.BRIGHT_WHITE: _c(0.7, 1.0, 0.0, 0.2, 3.5),
    C.ACCENT_PRIMARY: _c(0.3, 0.8, 0.4, 1.0, 2.5),
    C.ACCENT_SECONDARY: _c(0.25, 0.75, 0.3, 0.95, 2.0),
    C.ACCENT_TERTIARY: _c(0.2, 0.7, 0.25, 0.9, 1.5),
    C.ERROR: _c(0.3, 0.7, 0.5, 1.0, 2.5, 0.0, 30.0),
    C.WARNING: _c(0.35, 0.75, 0.5, 1.0, 2.5, 45.0, 25.0),
    C.SUCCESS: _c(0.25, 0.65, 0.3, 1.0, 2.5, 120.0, 40.0),
    C.INFO: _c(0.25, 0.65, 0.3, 1.0, 2.5, 210.0, 40.0),
}

LIGHT_DEFAULTS: Dict[Category, CategoryCharacteristics] = {
    C.BACKGROUND: _c(0.85, 1.0, 0.0, 0.25, 0.0),
    C.FOREGROUND: _c(0.0, 0.30, 0.0, 0.2, 3.0),
    C.DIM_FOREGROUND: _c(0.25, 0.55, 0.0, 0.4, 2.0),
    C.CURSOR: _c(0.0, 0.4, 0.0, 0.7, 4.5),
    C.NORMAL_BLACK: _c(0.0, 0.20, 0.0, 0.2, 4.5),
    C.NORMAL_RED: _c(0.20, 0.50, 0.4, 1.0, 3.0, 0.0, 35.0),
    C.NORMAL_GREEN: _c(0.20, 0.50, 0.3, 1.0, 3.0, 120.0, 50.0),
    C.NORMAL_YELLOW: _c(0.25, 0.55, 0.5, 1.0, 3.0, 60.0, 30.0),
    C.NORMAL_BLUE: _c(0.20, 0.50, 0.4, 1.0, 3.0, 240.0, 40.0),
    C.NORMAL_MAGENTA: _c(0.20, 0.50, 0.3, 1.0, 3.0, 300.0, 40.0),
    C.NORMAL_CYAN: _c(0.20, 0.50, 0.3, 1.0, 3.0, 180.0, 40.0),
    C.NORMAL_WHITE: _c(0.35, 0.65, 0.0, 0.2, 3.0),
    C.BRIGHT_BLACK: _c(0.10, 0.30, 0.0, 0.2, 3.5),
    C.BRIGHT_RED: _c(0.10, 0.40, 0.6, 1.0, 5.0, 0.0, 35.0),
    C.BRIGHT_GREEN: _c(0.10, 0.40, 0.5, 1.0, 5.0, 120.0, 50.0),
    C.BRIGHT_YELLOW: _c(0.15, 0.45, 0.6, 1.0, 5.0, 60.0, 30.0),
    C.BRIGHT_BLUE: _c(0.10, 0.40, 0.6, 1.0, 5.0, 240.0, 40.0),
    C.BRIGHT_MAGENTA: _c(0.10, 0.40, 0.5, 1.0, 5.0, 300.0, 40.0),
    C.BRIGHT_CYAN: _c(0.10, 0.40, 0.5, 1.0, 5.0, 180.0, 40.0),
    C.BRIGHT_WHITE: _c(0.15, 0.45, 0.0, 0.2, 5.0),
    C.ACCENT_PRIMARY: _c(0.25, 0.65, 0.4, 1.0, 2.5),
    C.ACCENT_SECONDARY: _c(0.30, 0.70, 0.3, 0.95, 2.0),
    C.ACCENT_TERTIARY: _c(0.35, 0.75, 0.25, 0.9, 1.5),
    C.ERROR: _c(0.25, 0.55, 0.5, 1.0, 3.0, 0.0, 30.0),
    C.WARNING: _c(0.30, 0.60, 0.5, 1.0, 3.0, 45.0, 25.0),
    C.SUCCESS: _c(0.20, 0.50, 0.3, 1.0, 3.0, 120.0, 40.0),
    C.INFO: _c(0.20, 0.50, 0.3, 1.0, 3.0, 210.0, 40.0),
}

del C


# ============================================================
# Typed (category, mode) table
# ============================================================


class CategoryTable:
    """
    Immutable mapping of ``(Category, ThemeMode)`` to characteristics.

    Pairs left out at construction fall back to ``PERMISSIVE``; they are
    reported once, here, rather than discovered during scoring.
    """

    def __init__(
        self,
        entries: Mapping[Tuple[Category, ThemeMode], CategoryCharacteristics],
    ):
        table = {}
        for (category, mode), chars in entries.items():
            table[(Category(category), ThemeMode(mode))] = chars

        missing = tuple(
            (category, mode)
            for mode in ThemeMode
            for category in ALL_CATEGORIES
            if (category, mode) not in table
        )
        for key in missing:
            table[key] = PERMISSIVE
        if missing:
            logger.warning(
                "Using permissive defaults for %d unconfigured categories: %s",
                len(missing),
                ", ".join(f"{m.value}.{c.value}" for c, m in missing),
            )

        self._table = MappingProxyType(table)
        self.missing = missing

    @classmethod
    def defaults(cls) -> "CategoryTable":
        entries = {}
        for category, chars in DARK_DEFAULTS.items():
            entries[(category, ThemeMode.DARK)] = chars
        for category, chars in LIGHT_DEFAULTS.items():
            entries[(category, ThemeMode.LIGHT)] = chars
        return cls(entries)

    def get(self, category: Category, mode: ThemeMode) -> CategoryCharacteristics:
        return self._table[(Category(category), ThemeMode(mode))]

    def for_mode(self, mode: ThemeMode) -> Mapping[Category, CategoryCharacteristics]:
        return MappingProxyType({c: self.get(c, mode) for c in ALL_CATEGORIES})

    def items(self):
        return self._table.items()

    def __len__(self) -> int:
        return len(self._table)
