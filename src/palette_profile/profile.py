"""
Pipeline: sample -> filter -> pool -> statistics -> mode -> categories.

Each call is independent; nothing is cached between calls, so separate
threads may process separate images concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .categories import ALL_CATEGORIES, Category, ThemeMode
from .colormath import RGB, rgb_to_hex
from .errors import InputEmptyError
from .loader import to_rgba
from .mode import classify_mode, has_significant_color
from .pool import ColorPool, build_pool
from .saliency import AUTO, SALIENCY, analyze_image, saliency_map, select_method
from .sampler import ColorSample, sample_image
from .selection import CategoryStrategy, ColorCandidate, ScoredCategoryStrategy
from .settings import Settings, default_settings
from .statistics import ColorStatistics
from .weighting import filter_by_frequency, weighted_colors, weighted_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColorProfile:
    mode: ThemeMode
    statistics: ColorStatistics
    pool: ColorPool
    colors: Mapping[Category, RGB]
    candidates: Mapping[Category, Tuple[ColorCandidate, ...]]
    coverage_ratio: float
    has_color: bool
    fallbacks: frozenset = frozenset()
    extraction_method: str = "frequency"

    def hex(self, category: Category) -> Optional[str]:
        c = self.colors.get(Category(category))
        return rgb_to_hex(c) if c is not None else None

    @property
    def unassigned(self) -> Tuple[Category, ...]:
        return tuple(c for c in ALL_CATEGORIES if c not in self.colors)

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "extraction_method": self.extraction_method,
            "has_color": self.has_color,
            "coverage_ratio": self.coverage_ratio,
            "statistics": self.statistics.to_dict(),
            "dominant_colors": [
                {"hex": wc.hex, "frequency": wc.frequency, "weight": wc.weight}
                for wc in weighted_colors(self.pool.dominant_colors)
            ],
            "categories": {c.value: rgb_to_hex(rgb) for c, rgb in self.colors.items()},
            "candidates": {
                c.value: [{"hex": k.hex, "frequency": k.frequency, "score": k.score} for k in ks]
                for c, ks in self.candidates.items()
            },
            "fallbacks": sorted(c.value for c in self.fallbacks),
        }


def profile_from_sample(
    sample: ColorSample,
    settings: Optional[Settings] = None,
    *,
    strategy: Optional[CategoryStrategy] = None,
    assigned: Optional[Mapping[Category, RGB]] = None,
) -> ColorProfile:
    settings = settings or default_settings()
    strategy = strategy or ScoredCategoryStrategy(settings)

    if sample.is_empty:
        raise InputEmptyError()

    weighted = weighted_frame(sample, settings.chromatic.neutral_threshold)
    filtered = filter_by_frequency(weighted, settings.pool.min_frequency)
    logger.debug(
        "%d samples, %d distinct colors, %d after frequency filter",
        sample.total_samples,
        len(weighted),
        len(filtered),
    )

    pool = build_pool(filtered, sample.total_samples, settings)
    mode = classify_mode(pool.all_colors, settings.mode)

    assignment = strategy(pool, settings.categories.for_mode(mode), mode, assigned)
    coverage = len(assignment.colors) / len(ALL_CATEGORIES)
    logger.debug("Mode %s, %d/%d categories assigned", mode.value, len(assignment.colors), len(ALL_CATEGORIES))

    return ColorProfile(
        mode=mode,
        statistics=pool.statistics,
        pool=pool,
        colors=assignment.colors,
        candidates=assignment.candidates,
        coverage_ratio=coverage,
        has_color=has_significant_color(pool.all_colors, settings.mode),
        fallbacks=assignment.fallbacks,
        extraction_method=sample.method,
    )


def process_image(
    image,
    settings: Optional[Settings] = None,
    *,
    strategy: Optional[CategoryStrategy] = None,
    assigned: Optional[Mapping[Category, RGB]] = None,
) -> ColorProfile:
    """
    Build a ColorProfile from a decoded image (PIL image or ndarray).

    Raises InputEmptyError when the image has no area or no color survives
    frequency filtering. Categories without a qualifying color are simply
    absent from ``colors`` and lower ``coverage_ratio``.

    ``settings.sampling.method`` picks plain frequency sampling, saliency
    weighting, or ``auto`` to decide from the image's characteristics.
    """
    settings = settings or default_settings()
    sp = settings.sampling
    pixels = to_rgba(image)

    method = sp.method
    if method == AUTO:
        chars = analyze_image(pixels, settings.saliency)
        method = select_method(chars, settings.saliency)
        logger.info(
            "Image classified %s (edge density %.3f, %d colors): sampling by %s",
            chars.image_type.value,
            chars.edge_density,
            chars.color_complexity,
            method,
        )

    saliency = saliency_map(pixels, settings.saliency) if method == SALIENCY else None
    sample = sample_image(
        pixels,
        sp.quantization_bits,
        saliency=saliency,
        frequency_weight=settings.saliency.frequency_weight,
        saliency_weight=settings.saliency.saliency_weight,
        parallel_min_samples=sp.parallel_min_samples,
        max_workers=sp.max_workers,
    )
    return profile_from_sample(sample, settings, strategy=strategy, assigned=assigned)
