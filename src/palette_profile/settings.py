from __future__ import annotations

import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .categories import (
    ALL_CATEGORIES,
    Category,
    CategoryCharacteristics,
    CategoryTable,
    ThemeMode,
)
from .colormath import RGB, parse_hex
from .errors import SettingsError

logger = logging.getLogger(__name__)

CONFIG_ENV = "PALETTE_PROFILE_CONFIG"

# ============================================================
# Sections
# ============================================================


@dataclass(frozen=True)
class ChromaticSettings:
    # Saturation below this is achromatic everywhere: histograms, sectors,
    # clustering and the significant-color test.
    neutral_threshold: float = 0.1
    neutral_lightness_threshold: float = 0.08
    color_merge_threshold: float = 15.0
    monochromatic_tolerance: float = 15.0


SAMPLING_METHODS = ("frequency", "saliency", "auto")


@dataclass(frozen=True)
class SamplingSettings:
    quantization_bits: int = 5
    parallel_min_samples: int = 100_000
    max_workers: Optional[int] = None
    method: str = "frequency"


@dataclass(frozen=True)
class SaliencySettings:
    # image analysis
    edge_min_strength: float = 30.0
    edge_sample_rate: int = 4
    color_sample_rate: int = 2
    contrast_sample_rate: int = 4
    high_detail_edge_threshold: float = 0.15
    smooth_edge_threshold: float = 0.05
    smooth_color_threshold: int = 100
    low_detail_color_threshold: int = 50
    complex_color_threshold: int = 200
    complex_edge_threshold: float = 0.08
    region_min_edge_density: float = 0.05
    region_max_edge_density: float = 0.25

    # when "auto" picks saliency
    edge_threshold: float = 0.036
    color_complexity: int = 10_000
    saturation_threshold: float = 0.4

    # map
    local_contrast_weight: float = 0.5
    edge_strength_weight: float = 0.3
    color_uniqueness_weight: float = 0.2
    map_sample_rate: int = 4
    spread_radius: int = 2
    contrast_radius: int = 2
    uniqueness_radius: int = 3
    similarity_threshold: float = 30.0

    # color weight = frequency share and saliency share, blended
    frequency_weight: float = 0.3
    saliency_weight: float = 0.7


@dataclass(frozen=True)
class PoolSettings:
    merge_similar: bool = True
    min_frequency: float = 0.0001
    min_cluster_weight: float = 0.005
    lightness_dark_max: float = 0.3
    lightness_light_min: float = 0.7
    saturation_gray_max: float = 0.1
    saturation_muted_max: float = 0.3
    saturation_normal_max: float = 0.7
    hue_sector_size: float = 30.0
    hue_sector_count: int = 12
    dominant_color_count: int = 10
    max_ui_colors: int = 20
    min_ui_color_weight: float = 0.01
    pure_black_threshold: float = 0.01
    pure_white_threshold: float = 0.99


@dataclass(frozen=True)
class ModeSettings:
    theme_mode_threshold: float = 0.5
    theme_mode_max_clusters: int = 5
    significant_color_threshold: float = 0.1


@dataclass(frozen=True)
class ScoringWeights:
    frequency: float = 0.25
    contrast: float = 0.25
    saturation: float = 0.20
    hue_alignment: float = 0.15
    lightness: float = 0.15


@dataclass(frozen=True)
class ExtractionSettings:
    max_candidates_per_category: int = 5
    require_distinct: bool = False


@dataclass(frozen=True)
class FallbackColors:
    dark_background: str = "#1a1a1a"
    light_background: str = "#f8f8f8"
    dark_foreground: str = "#f0f0f0"
    light_foreground: str = "#202020"
    primary: str = "#6496c8"

    def background(self, mode: ThemeMode) -> RGB:
        return parse_hex(
            self.light_background if mode == ThemeMode.LIGHT else self.dark_background
        )

    def foreground(self, mode: ThemeMode) -> RGB:
        return parse_hex(
            self.light_foreground if mode == ThemeMode.LIGHT else self.dark_foreground
        )

    def primary_color(self) -> RGB:
        return parse_hex(self.primary)


@dataclass(frozen=True)
class HeuristicSettings:
    dark_background_threshold: float = 0.2
    light_background_threshold: float = 0.8
    min_contrast_ratio: float = 4.5
    min_primary_saturation: float = 0.3
    min_accent_saturation: float = 0.4
    min_accent_lightness: float = 0.3
    max_accent_lightness: float = 0.7
    # visual importance penalties
    extreme_dark_lightness: float = 0.1
    extreme_light_lightness: float = 0.9
    low_saturation: float = 0.05


@dataclass(frozen=True)
class Settings:
    chromatic: ChromaticSettings = field(default_factory=ChromaticSettings)
    sampling: SamplingSettings = field(default_factory=SamplingSettings)
    saliency: SaliencySettings = field(default_factory=SaliencySettings)
    pool: PoolSettings = field(default_factory=PoolSettings)
    mode: ModeSettings = field(default_factory=ModeSettings)
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    fallbacks: FallbackColors = field(default_factory=FallbackColors)
    heuristics: HeuristicSettings = field(default_factory=HeuristicSettings)
    categories: CategoryTable = field(default_factory=CategoryTable.defaults)

    def __post_init__(self):
        validate(self)


SECTIONS = (
    "chromatic",
    "sampling",
    "saliency",
    "pool",
    "mode",
    "scoring",
    "extraction",
    "fallbacks",
    "heuristics",
)


def default_settings() -> Settings:
    return Settings()


# ============================================================
# Validation
# ============================================================


def validate(s: Settings) -> None:
    bits = s.sampling.quantization_bits
    if not 1 <= bits <= 8:
        raise SettingsError(f"quantization_bits must be within 1..8, got {bits}")
    if s.sampling.method not in SAMPLING_METHODS:
        raise SettingsError(
            f"sampling method must be one of {', '.join(SAMPLING_METHODS)}, got {s.sampling.method!r}"
        )

    sal = s.saliency
    for name in ("edge_sample_rate", "color_sample_rate", "contrast_sample_rate", "map_sample_rate"):
        if getattr(sal, name) < 1:
            raise SettingsError(f"saliency {name} must be at least 1")
    for name in ("spread_radius", "contrast_radius", "uniqueness_radius"):
        if getattr(sal, name) < 0:
            raise SettingsError(f"saliency {name} is negative")
    if sal.frequency_weight < 0 or sal.saliency_weight < 0:
        raise SettingsError("saliency blend weights must not be negative")
    if sal.frequency_weight + sal.saliency_weight <= 0:
        raise SettingsError("saliency blend weights must not both be zero")

    p = s.pool
    if not p.lightness_dark_max < p.lightness_light_min:
        raise SettingsError("lightness_dark_max must be below lightness_light_min")
    if not p.saturation_gray_max <= p.saturation_muted_max <= p.saturation_normal_max:
        raise SettingsError("saturation band cut points must be ascending")
    if p.hue_sector_count <= 0 or p.hue_sector_size <= 0:
        raise SettingsError("hue sectors must have positive size and count")
    if abs(p.hue_sector_size * p.hue_sector_count - 360.0) > 1e-6:
        raise SettingsError(
            f"hue sectors must tile the wheel: {p.hue_sector_count} x "
            f"{p.hue_sector_size} != 360"
        )

    for name, w in dataclasses.asdict(s.scoring).items():
        if w < 0:
            raise SettingsError(f"scoring weight {name} is negative")

    if s.extraction.max_candidates_per_category <= 0:
        raise SettingsError("max_candidates_per_category must be positive")

    for name, value in dataclasses.asdict(s.fallbacks).items():
        try:
            parse_hex(value)
        except ValueError as e:
            raise SettingsError(f"fallback {name}: {e}") from e


# ============================================================
# JSON loading
# ============================================================


_FIELD_TYPES = {"float": (int, float), "int": (int,), "bool": (bool,), "str": (str,)}


def _check_type(value, annotation: str, where: str) -> None:
    if annotation.startswith("Optional["):
        if value is None:
            return
        annotation = annotation[len("Optional["):-1]
    # JSON true/false are ints to Python
    if isinstance(value, bool) and annotation != "bool":
        ok = False
    else:
        ok = isinstance(value, _FIELD_TYPES[annotation])
    if not ok:
        raise SettingsError(
            f"{where} must be {annotation}, got {type(value).__name__} {value!r}"
        )


def _require_object(value, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SettingsError(f"{name} settings must be a JSON object, got {type(value).__name__}")
    return value


def _overlay(section, overrides: Dict[str, Any], name: str):
    overrides = _require_object(overrides, name)
    fields = {f.name: f for f in dataclasses.fields(section)}
    unknown = set(overrides) - set(fields)
    if unknown:
        raise SettingsError(f"unknown {name} settings: {', '.join(sorted(unknown))}")
    for key, value in overrides.items():
        _check_type(value, str(fields[key].type), f"{name}.{key}")
    return dataclasses.replace(section, **overrides)


def _overlay_categories(base: CategoryTable, data: Dict[str, Any]) -> CategoryTable:
    entries = dict(base.items())
    valid = {c.value for c in ALL_CATEGORIES}

    for mode_name, roles in _require_object(data, "categories").items():
        try:
            mode = ThemeMode(mode_name)
        except ValueError:
            raise SettingsError(f"unknown theme mode {mode_name!r}") from None

        for role, overrides in _require_object(roles, mode_name).items():
            if role not in valid:
                raise SettingsError(f"unknown category {role!r} in {mode_name}")
            key = (Category(role), mode)
            entries[key] = _overlay(entries[key], overrides, f"{mode_name}.{role}")

    return CategoryTable(entries)


def settings_from_dict(data: Dict[str, Any]) -> Settings:
    unknown = set(data) - set(SECTIONS) - {"categories"}
    if unknown:
        raise SettingsError(f"unknown settings sections: {', '.join(sorted(unknown))}")

    base = Settings()
    kwargs = {}
    for name in SECTIONS:
        if name in data:
            kwargs[name] = _overlay(getattr(base, name), data[name], name)
    if "categories" in data:
        kwargs["categories"] = _overlay_categories(base.categories, data["categories"])

    return dataclasses.replace(base, **kwargs)


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from JSON, overlaying each section on the defaults.

    Without a path, ``$PALETTE_PROFILE_CONFIG`` is consulted; without
    either, the built-in defaults are returned.
    """
    if path is None:
        env = os.environ.get(CONFIG_ENV)
        if not env:
            return default_settings()
        path = Path(env)

    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except OSError as e:
        raise SettingsError(f"error reading config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SettingsError(f"invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"config file {path} must hold a JSON object")

    logger.debug("Loaded settings from %s", path)
    return settings_from_dict(data)
