# emoji_mosaic/constants.py
"""
Global tunables and defaults used across the project.

- Colour space constants (sRGB/D65 matrix, channel maxima)
- Histogram and smoothing defaults
- Matcher defaults (correlation and peak)
- Tiler / worker defaults
"""
from __future__ import annotations

from typing import Tuple

# =========================
# Colour space
# =========================

# Linear sRGB -> XYZ (D65). The reference white is derived from this matrix so
# that neutral greys land on a = b = 0.
RGB_TO_XYZ: Tuple[Tuple[float, float, float], ...] = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)

# CIE Lab companding constants.
LAB_EPSILON = 216.0 / 24389.0
LAB_KAPPA = 24389.0 / 27.0

# Below this chroma the hue is undefined; emit hue = 0.
ACHROMATIC_CHROMA = 1e-4

# Channel maxima used by the quantizer, in (hue, chroma, lightness) order.
# Chroma 134 covers the most saturated sRGB colour (pure blue, ~133.8).
HUE_MAX = 360.0
CHROMA_MAX = 134.0
LIGHTNESS_MAX = 100.0
CHANNEL_MAX: Tuple[float, float, float] = (HUE_MAX, CHROMA_MAX, LIGHTNESS_MAX)

# =========================
# Histogram
# =========================

# Levels per HCL channel. Histograms hold DEPTH**3 cells.
DEFAULT_COLOR_DEPTH = 16
MIN_COLOR_DEPTH = 2
MAX_COLOR_DEPTH = 64

# Gaussian smoothing in bucket units. Sigma 0.85 gives taps of ~0.25/0.5/0.25,
# the classic 1-2-1 kernel.
DEFAULT_SMOOTHING_RADIUS = 1
DEFAULT_SMOOTHING_SIGMA = 0.85

# Pixels below this alpha are not counted (a pixel must be > 80 % opaque).
DEFAULT_ALPHA_THRESHOLD = 205

# =========================
# Matchers
# =========================

ALGORITHMS: Tuple[str, ...] = ("correlation", "peak")
DEFAULT_ALGORITHM = "correlation"

CORRELATION_MEASURES: Tuple[str, ...] = ("pearson", "intersection", "dot")
DEFAULT_CORRELATION_MEASURE = "pearson"

# A histogram whose standard deviation is below this has no usable shape.
ZERO_VARIANCE_STD = 1e-12

# Scores closer than this are ties; the lowest asset id wins.
SCORE_TIE_EPSILON = 1e-9

# Clusters kept per histogram.
DEFAULT_MAX_PEAKS = 5

# Flood fill grows a cluster through cells >= this fraction of its peak value.
DEFAULT_PEAK_EXTENT_FRACTION = 0.5

# Clusters holding less than this share of the histogram mass are dropped.
DEFAULT_MIN_PEAK_SHARE = 0.005

# Hue / chroma / lightness weights in the cluster distance.
DEFAULT_PEAK_DISTANCE_SCALE: Tuple[float, float, float] = (1.0, 1.0, 1.0)

# Width of the Gaussian falloff turning cluster distance into similarity.
# Distances are in fractions of a channel's range.
DEFAULT_PEAK_FALLOFF = 0.1

# =========================
# Tiler
# =========================

# Tile rows handed to a worker process per task.
TILER_BAND_ROWS = 2

# Images shorter than this convert in the calling thread.
THREADED_MIN_ROWS = 256

# Progress line refresh interval in seconds.
PROGRESS_INTERVAL = 0.2

__all__ = [
    "RGB_TO_XYZ",
    "LAB_EPSILON",
    "LAB_KAPPA",
    "ACHROMATIC_CHROMA",
    "HUE_MAX",
    "CHROMA_MAX",
    "LIGHTNESS_MAX",
    "CHANNEL_MAX",
    "DEFAULT_COLOR_DEPTH",
    "MIN_COLOR_DEPTH",
    "MAX_COLOR_DEPTH",
    "DEFAULT_SMOOTHING_RADIUS",
    "DEFAULT_SMOOTHING_SIGMA",
    "DEFAULT_ALPHA_THRESHOLD",
    "ALGORITHMS",
    "DEFAULT_ALGORITHM",
    "CORRELATION_MEASURES",
    "DEFAULT_CORRELATION_MEASURE",
    "ZERO_VARIANCE_STD",
    "SCORE_TIE_EPSILON",
    "DEFAULT_MAX_PEAKS",
    "DEFAULT_PEAK_EXTENT_FRACTION",
    "DEFAULT_MIN_PEAK_SHARE",
    "DEFAULT_PEAK_DISTANCE_SCALE",
    "DEFAULT_PEAK_FALLOFF",
    "TILER_BAND_ROWS",
    "THREADED_MIN_ROWS",
    "PROGRESS_INTERVAL",
]
