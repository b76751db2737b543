# emoji_mosaic/histogram.py
from __future__ import annotations

"""
3-D colour histograms over reduced HCL buckets.

A histogram is a dense (depth, depth, depth) array indexed [h, c, l].
Raw histograms hold int64 pixel counts; smoothed ones hold float64 mass.

Smoothing is a separable Gaussian. Mass that would leave the [0, depth) range
on any axis is reflected back into it, so the total is conserved exactly (up
to floating point). Hue is treated like the other axes here; its circularity
is handled by the peak distance instead.
"""

from typing import Optional

import numpy as np

from .colour_convert import rgb_to_hcl
from .constants import DEFAULT_ALPHA_THRESHOLD, ZERO_VARIANCE_STD
from .core_types import HCL, Histogram3D, Smoothed3D, U8Image, U8Mask
from .quantize import reduce_channels


def visible_mask(alpha: Optional[U8Mask], threshold: int) -> Optional[np.ndarray]:
    """Boolean mask of counted pixels, or None when every pixel counts."""
    if alpha is None or threshold <= 0:
        return None
    return np.asarray(alpha) >= threshold


def histogram_from_hcl(hcl: HCL, depth: int) -> Histogram3D:
    """Count HCL rows [N,3] (or any [...,3]) into a (depth, depth, depth) histogram."""
    buckets = reduce_channels(hcl, depth).reshape(-1, 3)
    flat = (buckets[:, 0] * depth + buckets[:, 1]) * depth + buckets[:, 2]
    counts = np.bincount(flat, minlength=depth**3)
    return counts.astype(np.int64, copy=False).reshape(depth, depth, depth)


def build_histogram(
    rgb: U8Image,
    depth: int,
    alpha: Optional[U8Mask] = None,
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
) -> Histogram3D:
    """
    Histogram of an RGB region.

    Args:
      rgb: uint8 [...,3] (a 4th channel is ignored; pass alpha separately)
      depth: quantisation levels per channel
      alpha: optional uint8 mask matching rgb[..., 0]
      alpha_threshold: pixels with alpha below this are skipped
    Returns:
      int64 (depth, depth, depth); sum equals the number of counted pixels
    """
    pixels = np.asarray(rgb)[..., :3]
    mask = visible_mask(alpha, alpha_threshold)
    if mask is not None:
        pixels = pixels[mask]
    pixels = pixels.reshape(-1, 3)
    if pixels.shape[0] == 0:
        return np.zeros((depth, depth, depth), dtype=np.int64)
    return histogram_from_hcl(rgb_to_hcl(pixels), depth)


def gaussian_kernel_1d(radius: int, sigma: float) -> np.ndarray:
    """Normalised Gaussian taps for offsets -radius..radius."""
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    taps = np.exp(-0.5 * (offsets / float(sigma)) ** 2)
    return taps / taps.sum()


def _reflect_index(idx: np.ndarray, n: int) -> np.ndarray:
    """Half-sample symmetric reflection of arbitrary indices into [0, n)."""
    period = 2 * n
    m = np.mod(idx, period)
    return np.where(m >= n, period - 1 - m, m)


def smoothing_matrix(depth: int, radius: int, sigma: float) -> np.ndarray:
    """
    (depth, depth) operator whose column j spreads unit mass at bucket j over
    its neighbours. Every column sums to 1.
    """
    mat = np.zeros((depth, depth), dtype=np.float64)
    if radius <= 0:
        np.fill_diagonal(mat, 1.0)
        return mat
    taps = gaussian_kernel_1d(radius, sigma)
    offsets = np.arange(-radius, radius + 1)
    for src in range(depth):
        targets = _reflect_index(src + offsets, depth)
        np.add.at(mat[:, src], targets, taps)
    return mat


def smooth_histogram(hist: np.ndarray, radius: int, sigma: float) -> Smoothed3D:
    """
    Separable Gaussian smoothing of a 3-D histogram.

    Returns a float64 array of the same shape. radius=0 returns a float copy.
    """
    arr = np.asarray(hist, dtype=np.float64)
    if radius <= 0:
        return arr.copy()
    depth = arr.shape[0]
    if arr.shape != (depth, depth, depth):
        raise ValueError(f"expected a cubic histogram, got {arr.shape}")
    op = smoothing_matrix(depth, radius, sigma)
    return np.einsum("ai,bj,ck,ijk->abc", op, op, op, arr, optimize=True)


def is_degenerate(values: np.ndarray) -> bool:
    """True when a histogram has (numerically) zero variance."""
    return float(np.asarray(values, dtype=np.float64).std()) < ZERO_VARIANCE_STD


__all__ = [
    "visible_mask",
    "histogram_from_hcl",
    "build_histogram",
    "gaussian_kernel_1d",
    "smoothing_matrix",
    "smooth_histogram",
    "is_degenerate",
]
