"""
Color-space helpers: hex, HSL, CIE LAB and WCAG contrast.

Every function is pure. Array functions take an ``(N, 3)`` uint8-compatible
RGB array and return float arrays with one entry per row.
"""

from __future__ import annotations

import re
from typing import Tuple

import numpy as np
from skimage.color import rgb2lab

RGB = Tuple[int, int, int]

HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

# ============================================================
# Hex
# ============================================================


def rgb_to_hex(rgb) -> str:
    r, g, b = map(int, rgb[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


def parse_hex(value: str) -> RGB:
    """
    Parse ``#rgb``, ``#rrggbb`` or ``#rrggbbaa`` (leading ``#`` optional).
    Alpha is accepted and discarded.
    """
    m = HEX_RE.match(str(value).strip())
    if m is None:
        raise ValueError(f"invalid hex color: {value!r}")

    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)

    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


# ============================================================
# HSL
# ============================================================


def rgb_to_hsl(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorised RGB -> HSL. Hue in degrees [0, 360), saturation and
    lightness in [0, 1]. Achromatic rows get hue 0 and saturation 0.
    """
    x = np.asarray(rgb, dtype=float).reshape(-1, 3) / 255.0
    r, g, b = x[:, 0], x[:, 1], x[:, 2]

    mx = x.max(axis=1)
    mn = x.min(axis=1)
    delta = mx - mn
    light = (mx + mn) / 2.0

    chromatic = delta > 0
    safe = np.where(chromatic, delta, 1.0)

    denom = np.where(light < 0.5, mx + mn, 2.0 - mx - mn)
    sat = np.where(chromatic, delta / np.where(denom > 0, denom, 1.0), 0.0)

    hue = np.zeros_like(light)
    is_r = chromatic & (mx == r)
    is_g = chromatic & (mx == g) & ~is_r
    is_b = chromatic & ~is_r & ~is_g

    hue = np.where(is_r, ((g - b) / safe) % 6.0, hue)
    hue = np.where(is_g, (b - r) / safe + 2.0, hue)
    hue = np.where(is_b, (r - g) / safe + 4.0, hue)
    hue = (hue * 60.0) % 360.0

    return hue, sat, light


def hsl(rgb) -> Tuple[float, float, float]:
    h, s, l = rgb_to_hsl(np.array([rgb[:3]]))
    return float(h[0]), float(s[0]), float(l[0])


def _hue_channel(p, q, t):
    t = t % 1.0
    return np.select(
        [t < 1.0 / 6.0, t < 0.5, t < 2.0 / 3.0],
        [p + (q - p) * 6.0 * t, q, p + (q - p) * (2.0 / 3.0 - t) * 6.0],
        default=p,
    )


def hsl_to_rgb(hue, sat, light) -> np.ndarray:
    """
    Vectorised HSL -> RGB, the inverse of ``rgb_to_hsl``. Hue wraps,
    saturation and lightness are clamped to [0, 1]. Returns ``(N, 3)`` uint8.
    """
    h = (np.atleast_1d(np.asarray(hue, dtype=float)) % 360.0) / 360.0
    s = np.clip(np.atleast_1d(np.asarray(sat, dtype=float)), 0.0, 1.0)
    l = np.clip(np.atleast_1d(np.asarray(light, dtype=float)), 0.0, 1.0)
    h, s, l = np.broadcast_arrays(h, s, l)

    q = np.where(l < 0.5, l * (1.0 + s), l + s - l * s)
    p = 2.0 * l - q

    rgb = np.stack(
        [_hue_channel(p, q, h + 1.0 / 3.0), _hue_channel(p, q, h), _hue_channel(p, q, h - 1.0 / 3.0)],
        axis=1,
    )
    return np.floor(np.clip(rgb, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


# ============================================================
# LAB
# ============================================================


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    x = np.asarray(rgb, dtype=float).reshape(-1, 3)
    if len(x) == 0:
        return np.zeros((0, 3))
    return rgb2lab(x[np.newaxis, :, :] / 255.0)[0]


def delta_e(lab1, lab2):
    """CIE76 distance over the last axis. Broadcasts."""
    d = np.asarray(lab1, dtype=float) - np.asarray(lab2, dtype=float)
    dist = np.sqrt((d * d).sum(axis=-1))
    if np.ndim(dist) == 0:
        return float(dist)
    return dist


# ============================================================
# WCAG 2.1
# ============================================================


def _linearize(v: np.ndarray) -> np.ndarray:
    return np.where(v <= 0.03928, v / 12.92, ((v + 0.055) / 1.055) ** 2.4)


def relative_luminance(rgb: np.ndarray) -> np.ndarray:
    x = _linearize(np.asarray(rgb, dtype=float).reshape(-1, 3) / 255.0)
    return 0.2126 * x[:, 0] + 0.7152 * x[:, 1] + 0.0722 * x[:, 2]


def luminance(rgb) -> float:
    return float(relative_luminance(np.array([rgb[:3]]))[0])


def contrast_ratios(rgb: np.ndarray, against) -> np.ndarray:
    """Contrast of every row of ``rgb`` against one reference color."""
    lum = relative_luminance(rgb)
    ref = luminance(against)
    hi = np.maximum(lum, ref)
    lo = np.minimum(lum, ref)
    return (hi + 0.05) / (lo + 0.05)


def contrast_ratio(c1, c2) -> float:
    l1 = luminance(c1)
    l2 = luminance(c2)
    if l1 < l2:
        l1, l2 = l2, l1
    return (l1 + 0.05) / (l2 + 0.05)
