import dataclasses

import pytest

from palette_profile.categories import Category, ThemeMode
from palette_profile.colormath import contrast_ratio, hsl, parse_hex
from palette_profile.pool import build_pool
from palette_profile.sampler import sample_image
from palette_profile.scoring import eligible
from palette_profile.selection import (
    RoleHeuristicStrategy,
    ScoredCategoryStrategy,
    harmonize,
    make_strategy,
    visual_importance,
)
from palette_profile.settings import ExtractionSettings
from palette_profile.weighting import filter_by_frequency, weighted_frame

from conftest import frame, make_image

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def pool_for(image, settings):
    sample = sample_image(image)
    df = filter_by_frequency(weighted_frame(sample, 0.1), settings.pool.min_frequency)
    return build_pool(df, sample.total_samples, settings)


def run(strategy, pool, settings, mode=ThemeMode.DARK, assigned=None):
    return strategy(pool, settings.categories.for_mode(mode), mode, assigned)


def test_background_then_foreground(black_white_image, settings):
    result = run(ScoredCategoryStrategy(settings), pool_for(black_white_image, settings), settings)

    assert result.colors[Category.BACKGROUND] == BLACK
    assert result.colors[Category.FOREGROUND] == WHITE
    assert contrast_ratio(result.colors[Category.BACKGROUND], result.colors[Category.FOREGROUND]) == pytest.approx(21.0)
    assert not result.fallbacks


def test_background_fallback_when_nothing_fits(settings):
    # a mid-lightness orange is outside every background window
    pool = pool_for(make_image([(200, 120, 40)] * 4, width=2), settings)
    result = run(ScoredCategoryStrategy(settings), pool, settings)

    assert result.colors[Category.BACKGROUND] == parse_hex("#1a1a1a")
    assert Category.BACKGROUND in result.fallbacks
    assert result.candidates[Category.BACKGROUND] == ()


def test_preassigned_background_drives_contrast(black_white_image, settings):
    pool = pool_for(black_white_image, settings)
    result = run(ScoredCategoryStrategy(settings), pool, settings, assigned={Category.BACKGROUND: WHITE})

    assert result.colors[Category.BACKGROUND] == WHITE
    # white is the only light color and has no contrast against itself
    assert Category.FOREGROUND not in result.colors
    assert Category.BACKGROUND not in result.candidates


def test_preassigned_roles_are_kept(black_white_image, settings):
    pool = pool_for(black_white_image, settings)
    result = run(
        ScoredCategoryStrategy(settings), pool, settings, assigned={Category.ERROR: (255, 0, 0)}
    )
    assert result.colors[Category.ERROR] == (255, 0, 0)


def test_require_distinct(black_white_image, settings):
    pool = pool_for(black_white_image, settings)

    shared = run(ScoredCategoryStrategy(settings), pool, settings)
    assert shared.colors[Category.CURSOR] == WHITE

    distinct = dataclasses.replace(settings, extraction=ExtractionSettings(require_distinct=True))
    result = run(ScoredCategoryStrategy(distinct), pool, distinct)
    assert result.colors[Category.FOREGROUND] == WHITE
    assert Category.CURSOR not in result.colors
    assert len(set(result.colors.values())) == len(result.colors)


def test_assigned_colors_meet_hard_constraints(noisy_image, settings):
    pool = pool_for(noisy_image, settings)
    definitions = settings.categories.for_mode(ThemeMode.DARK)
    result = run(ScoredCategoryStrategy(settings), pool, settings)
    background = result.colors[Category.BACKGROUND]

    df = pool.all_colors
    for category, color in result.colors.items():
        if category == Category.BACKGROUND:
            continue
        row = df[df["hex"] == "#%02x%02x%02x" % color]
        assert eligible(row, definitions[category], background).all(), category

    for category, ranked in result.candidates.items():
        if not ranked:
            continue
        assert len(ranked) <= settings.extraction.max_candidates_per_category
        scores = [c.score for c in ranked]
        assert scores == sorted(scores, reverse=True)
        assert ranked[0].color == result.colors[category]


def test_heuristic_roles(black_white_image, settings):
    pool = pool_for(black_white_image, settings)
    result = run(RoleHeuristicStrategy(settings), pool, settings)

    assert result.colors[Category.BACKGROUND] == BLACK
    assert result.colors[Category.FOREGROUND] == WHITE
    assert result.colors[Category.ACCENT_PRIMARY] == parse_hex(settings.fallbacks.primary)
    assert result.colors[Category.ACCENT_SECONDARY] == WHITE
    # no saturated mid-lightness color: complement of #6496c8
    assert result.colors[Category.ACCENT_TERTIARY] == (210, 150, 90)
    assert result.fallbacks == {Category.ACCENT_PRIMARY, Category.ACCENT_TERTIARY}
    assert set(result.colors) == {
        Category.BACKGROUND,
        Category.FOREGROUND,
        Category.ACCENT_PRIMARY,
        Category.ACCENT_SECONDARY,
        Category.ACCENT_TERTIARY,
    }


def test_heuristic_synthesizes_accents_from_primary(settings):
    pool = pool_for(make_image([BLACK] * 4, width=2), settings)
    result = run(RoleHeuristicStrategy(settings), pool, settings)

    primary = result.colors[Category.ACCENT_PRIMARY]
    h, s, l = hsl(primary)

    secondary = hsl(result.colors[Category.ACCENT_SECONDARY])
    assert secondary[0] == pytest.approx((h + 120) % 360, abs=1.0)
    assert secondary[1] == pytest.approx(s * 0.8, abs=0.01)
    assert secondary[2] == pytest.approx(l, abs=0.01)
    assert result.colors[Category.ACCENT_SECONDARY] == (190, 110, 150)

    tertiary = hsl(result.colors[Category.ACCENT_TERTIARY])
    assert tertiary[0] == pytest.approx((h + 180) % 360, abs=1.0)
    assert tertiary[1] == pytest.approx(min(s * 1.2, 1.0), abs=0.01)

    assert {
        Category.FOREGROUND,
        Category.ACCENT_PRIMARY,
        Category.ACCENT_SECONDARY,
        Category.ACCENT_TERTIARY,
    } <= result.fallbacks


def test_harmonize_caps_saturation():
    assert harmonize((255, 0, 0), 180.0, 1.2) == (0, 255, 255)
    assert harmonize((255, 0, 0), 120.0, 1.0) == (0, 255, 0)
    assert harmonize((128, 128, 128), 90.0, 1.2) == (128, 128, 128)


def test_visual_importance_thresholds(settings):
    df = frame([(10, 10, 10), (40, 40, 40), (128, 128, 128)], [1, 1, 1])
    hs = settings.heuristics
    base = visual_importance(df, hs)

    # with the cut lowered below it, #0a0a0a is no longer penalised as extreme
    lenient = visual_importance(df, dataclasses.replace(hs, extreme_dark_lightness=0.0))
    assert lenient[0] == pytest.approx(base[0] / 0.8)
    assert lenient[1:].tolist() == pytest.approx(base[1:].tolist())

    # grays lose the low-saturation penalty once the cut is zero
    flat = visual_importance(df, dataclasses.replace(hs, low_saturation=0.0))
    assert flat.tolist() == pytest.approx((base / 0.8).tolist())


def test_heuristic_falls_back_without_contrast(settings):
    pool = pool_for(make_image([(20, 20, 20)] * 3 + [(40, 40, 40)], width=2), settings)
    result = run(RoleHeuristicStrategy(settings), pool, settings)

    assert result.colors[Category.FOREGROUND] == parse_hex(settings.fallbacks.dark_foreground)
    assert Category.FOREGROUND in result.fallbacks


def test_make_strategy(settings):
    assert isinstance(make_strategy("scored", settings), ScoredCategoryStrategy)
    assert isinstance(make_strategy("heuristic", settings), RoleHeuristicStrategy)
    with pytest.raises(ValueError, match="unknown strategy"):
        make_strategy("nope", settings)
