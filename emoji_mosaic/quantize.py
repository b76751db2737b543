# emoji_mosaic/quantize.py
from __future__ import annotations

"""
Depth reduction of HCL colours to integer buckets.

Each channel is mapped independently:
  bucket = clamp(floor(value / channel_max * depth), 0, depth - 1)

with channel maxima hue 360, chroma CHROMA_MAX, lightness 100. The mapping is
deterministic and monotonic per channel, and must use the same depth for tiles
and emoticons so their histograms line up.
"""

import math
from typing import Sequence

import numpy as np

from .constants import CHANNEL_MAX
from .core_types import HCL, Reduced, ReducedColor, clamp_value

_CHANNEL_MAX = np.array(CHANNEL_MAX, dtype=np.float64)


def reduce_channels(hcl: HCL, depth: int) -> Reduced:
    """
    Vectorised reduction of HCL[...,3] to int64 buckets [...,3] in [0, depth-1].
    """
    scaled = np.floor(np.asarray(hcl, dtype=np.float64) / _CHANNEL_MAX * depth)
    return np.clip(scaled, 0, depth - 1).astype(np.int64)


def reduce(hcl: Sequence[float], depth: int) -> ReducedColor:
    """Reduce a single (h, c, l) colour."""
    out = []
    for value, channel_max in zip(hcl, CHANNEL_MAX):
        bucket = math.floor(float(value) / channel_max * depth)
        out.append(int(clamp_value(bucket, 0, depth - 1)))
    return out[0], out[1], out[2]


def bucket_centres(depth: int) -> HCL:
    """HCL value at the centre of each bucket, shape (depth, 3)."""
    idx = np.arange(depth, dtype=np.float64)[:, None]
    return (idx + 0.5) / depth * _CHANNEL_MAX[None, :]


__all__ = ["reduce_channels", "reduce", "bucket_centres"]
