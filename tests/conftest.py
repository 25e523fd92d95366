import numpy as np
import pytest

from palette_profile.sampler import sample_image
from palette_profile.settings import default_settings
from palette_profile.weighting import color_frame


def make_image(pixels, width):
    """Lay an RGB pixel list out row by row as an opaque (H, W, 4) uint8 array."""
    rgb = np.array(pixels, dtype=np.uint8).reshape(-1, width, 3)
    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([rgb, alpha], axis=2)


def frame(colors, counts, total=None, neutral_threshold=0.1):
    counts = np.asarray(counts)
    total = int(counts.sum()) if total is None else total
    return color_frame(np.array(colors), counts, total, neutral_threshold)


@pytest.fixture
def settings():
    return default_settings()


@pytest.fixture
def black_white_image():
    # 70% pure black, 30% pure white
    return make_image([(0, 0, 0)] * 70 + [(255, 255, 255)] * 30, width=10)


@pytest.fixture
def red_ramp_image():
    # one hue (0 deg), lightness 0.1 .. 0.9
    dark = [(v, 0, 0) for v in (51, 102, 153, 204, 255)]
    light = [(255, v, v) for v in (51, 102, 153, 204)]
    stripes = [c for c in dark + light for _ in range(10)]
    return make_image(stripes * 10, width=90)


@pytest.fixture
def noisy_image():
    """Top half uniform noise, bottom half six solid blocks."""
    rng = np.random.default_rng(0)
    noise = rng.integers(0, 256, size=(150, 300, 3), dtype=np.uint8)

    blocks = [
        (20, 20, 24),
        (230, 230, 230),
        (200, 40, 40),
        (40, 160, 60),
        (50, 90, 200),
        (220, 200, 60),
    ]
    solid = np.zeros((150, 300, 3), dtype=np.uint8)
    for i, c in enumerate(blocks):
        solid[:, i * 50 : (i + 1) * 50] = c

    rgb = np.concatenate([noise, solid], axis=0)
    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([rgb, alpha], axis=2)


@pytest.fixture
def noisy_sample(noisy_image):
    return sample_image(noisy_image, 5)
