"""
Circular statistics on the hue wheel.

Hues are degrees on [0, 360). Means are taken by summing unit vectors, so
350 and 10 average to 0 rather than 180.
"""

from __future__ import annotations

import math

import numpy as np


def hue_distance(h1, h2):
    """Shortest angular distance, always within [0, 180]. Broadcasts."""
    d = np.abs(np.asarray(h1, dtype=float) - np.asarray(h2, dtype=float)) % 360.0
    d = np.minimum(d, 360.0 - d)
    if np.ndim(d) == 0:
        return float(d)
    return d


def circular_mean(hues, weights=None) -> float:
    """
    Weighted circular mean in degrees. Empty input is undefined (NaN);
    vectors that cancel out exactly collapse to 0.
    """
    deg = np.asarray(hues, dtype=float).ravel()
    if deg.size == 0:
        return math.nan

    w = np.ones_like(deg) if weights is None else np.asarray(weights, dtype=float).ravel()
    rad = np.deg2rad(deg)
    s = float(np.sum(np.sin(rad) * w))
    c = float(np.sum(np.cos(rad) * w))
    if abs(s) < 1e-9 and abs(c) < 1e-9:
        return 0.0
    return float(np.rad2deg(np.arctan2(s, c)) % 360.0)


def circular_variance(hues, weights=None) -> float:
    """
    Circular standard deviation: RMS of each member's hue distance to the
    (weighted) circular mean. Zero for one member or fewer.
    """
    deg = np.asarray(hues, dtype=float).ravel()
    if deg.size <= 1:
        return 0.0

    center = circular_mean(deg, weights)
    d = hue_distance(deg, center)
    return float(np.sqrt(np.mean(d * d)))
