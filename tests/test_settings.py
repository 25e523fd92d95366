import dataclasses
import json
import logging

import pytest

from palette_profile.categories import (
    ALL_CATEGORIES,
    PERMISSIVE,
    PRIORITY_ORDER,
    Category,
    CategoryCharacteristics,
    CategoryTable,
    ThemeMode,
)
from palette_profile.errors import SettingsError
from palette_profile.settings import (
    CONFIG_ENV,
    PoolSettings,
    Settings,
    default_settings,
    load_settings,
    settings_from_dict,
)


def write(tmp_path, data):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


def test_defaults_cover_every_category():
    table = default_settings().categories
    assert len(ALL_CATEGORIES) == 27
    assert len(table) == 54
    assert table.missing == ()
    assert set(PRIORITY_ORDER) == set(ALL_CATEGORIES)
    assert PRIORITY_ORDER[0] == Category.BACKGROUND


def test_missing_categories_are_permissive(caplog):
    entries = {(Category.BACKGROUND, ThemeMode.DARK): CategoryCharacteristics(max_lightness=0.2)}
    with caplog.at_level(logging.WARNING):
        table = CategoryTable(entries)

    assert table.get(Category.FOREGROUND, ThemeMode.DARK) is PERMISSIVE
    assert table.get("background", "dark").max_lightness == 0.2
    assert len(table.missing) == 53
    assert "permissive defaults" in caplog.text


def test_permissive_default():
    assert PERMISSIVE.min_contrast == 2.0
    assert (PERMISSIVE.min_lightness, PERMISSIVE.max_lightness) == (0.0, 1.0)
    assert not PERMISSIVE.has_hue


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(min_lightness=0.8, max_lightness=0.2),
        dict(min_saturation=0.5, max_saturation=0.1),
        dict(hue_center=120.0),
        dict(hue_center=360.0, hue_tolerance=10.0),
        dict(hue_center=10.0, hue_tolerance=-1.0),
        dict(min_lightness="0.2"),
        dict(hue_center=True, hue_tolerance=10.0),
    ],
)
def test_bad_characteristics(kwargs):
    with pytest.raises(SettingsError):
        CategoryCharacteristics(**kwargs)


def test_load_overlays_defaults(tmp_path):
    path = write(
        tmp_path,
        {
            "sampling": {"quantization_bits": 4},
            "scoring": {"frequency": 0.5},
            "fallbacks": {"dark_background": "#000"},
            "categories": {"dark": {"background": {"max_lightness": 0.3}}},
        },
    )
    s = load_settings(path)

    assert s.sampling.quantization_bits == 4
    assert s.scoring.frequency == 0.5
    assert s.scoring.contrast == 0.25
    assert s.fallbacks.background(ThemeMode.DARK) == (0, 0, 0)

    bg = s.categories.get(Category.BACKGROUND, ThemeMode.DARK)
    assert bg.max_lightness == 0.3
    assert bg.min_contrast == 0.0
    assert s.categories.get(Category.BACKGROUND, ThemeMode.LIGHT).max_lightness == 1.0


def test_env_var(tmp_path, monkeypatch):
    path = write(tmp_path, {"pool": {"dominant_color_count": 3}})
    monkeypatch.setenv(CONFIG_ENV, str(path))
    assert load_settings().pool.dominant_color_count == 3

    monkeypatch.delenv(CONFIG_ENV)
    assert load_settings().pool.dominant_color_count == 10


@pytest.mark.parametrize(
    "data, message",
    [
        ({"colours": {}}, "unknown settings sections"),
        ({"pool": {"dominant": 3}}, "unknown pool settings"),
        ({"categories": {"dim": {}}}, "unknown theme mode"),
        ({"categories": {"dark": {"accent_quaternary": {}}}}, "unknown category"),
        ({"categories": {"dark": {"error": {"hue_center": 400.0}}}}, "outside"),
        ({"sampling": {"quantization_bits": 9}}, "quantization_bits"),
        ({"pool": {"hue_sector_count": 10}}, "tile the wheel"),
        ({"pool": {"lightness_dark_max": 0.8}}, "lightness_dark_max"),
        ({"scoring": {"contrast": -1}}, "negative"),
        ({"extraction": {"max_candidates_per_category": 0}}, "max_candidates"),
        ({"fallbacks": {"primary": "blue"}}, "fallback primary"),
        ({"sampling": {"method": "histogram"}}, "sampling method"),
        ({"saliency": {"map_sample_rate": 0}}, "map_sample_rate"),
        ({"saliency": {"spread_radius": -1}}, "spread_radius"),
        ({"saliency": {"frequency_weight": 0.0, "saliency_weight": 0.0}}, "both be zero"),
        ({"pool": {"min_frequency": "0.01"}}, "pool.min_frequency must be float, got str"),
        ({"pool": {"merge_similar": 1}}, "pool.merge_similar must be bool"),
        ({"sampling": {"quantization_bits": True}}, "quantization_bits must be int"),
        ({"sampling": {"quantization_bits": 4.5}}, "quantization_bits must be int"),
        (
            {"categories": {"dark": {"foreground": {"min_lightness": "0.2"}}}},
            "dark.foreground.min_lightness must be float",
        ),
        ({"categories": {"dark": {"error": {"hue_center": "red"}}}}, "hue_center must be float"),
        ({"pool": 5}, "pool settings must be a JSON object"),
        ({"categories": []}, "categories settings must be a JSON object"),
        ({"categories": {"light": "none"}}, "light settings must be a JSON object"),
    ],
)
def test_invalid_settings(data, message):
    with pytest.raises(SettingsError, match=message):
        settings_from_dict(data)


def test_unreadable_files(tmp_path):
    with pytest.raises(SettingsError, match="invalid JSON"):
        load_settings(write(tmp_path, "{not json"))
    with pytest.raises(SettingsError, match="JSON object"):
        load_settings(write(tmp_path, "[1, 2]"))
    with pytest.raises(SettingsError, match="error reading"):
        load_settings(tmp_path / "missing.json")


def test_validation_on_construction():
    with pytest.raises(SettingsError):
        Settings(pool=PoolSettings(saturation_gray_max=0.5, saturation_muted_max=0.3))

    s = default_settings()
    with pytest.raises(SettingsError):
        dataclasses.replace(s, pool=dataclasses.replace(s.pool, hue_sector_size=45.0))


def test_typed_overrides_accept_json_numbers():
    s = settings_from_dict(
        {
            "pool": {"min_frequency": 0, "merge_similar": False},
            "sampling": {"max_workers": None},
            "categories": {"dark": {"error": {"hue_center": 0, "hue_tolerance": 20}}},
        }
    )
    assert s.pool.min_frequency == 0
    assert s.pool.merge_similar is False
    assert s.sampling.max_workers is None
    assert s.categories.get(Category.ERROR, ThemeMode.DARK).hue_tolerance == 20
