# emoji_mosaic/colour_convert.py
from __future__ import annotations

"""
Colour conversions (sRGB, D65) between RGB and HCL.

HCL here is CIE LCh(ab) reordered as (hue, chroma, lightness):
  hue       degrees in [0, 360), 0 for achromatic colours
  chroma    sqrt(a^2 + b^2), >= 0
  lightness CIE L*, [0, 100]

Exports:
  rgb_to_linear(srgb)
  linear_to_rgb(linear)
  rgb_to_lab(rgb)
  lab_to_rgb(lab)
  lab_to_hcl(lab)
  hcl_to_lab(hcl)
  rgb_to_hcl(rgb)
  hcl_to_rgb(hcl)
  to_hcl(pixel), to_rgb(hcl)   scalar wrappers
  rgb_to_hcl_threaded(rgb, workers)
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Tuple

import numpy as np

from .constants import (
    ACHROMATIC_CHROMA,
    LAB_EPSILON,
    LAB_KAPPA,
    RGB_TO_XYZ,
    THREADED_MIN_ROWS,
)
from .core_types import HCL, HCLTuple, RGBTuple, U8Image

_M = np.array(RGB_TO_XYZ, dtype=np.float64)
_M_INV = np.linalg.inv(_M)
# Reference white: XYZ of linear RGB (1, 1, 1).
_WHITE = _M.sum(axis=1)


# sRGB <-> linear


def rgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB (non-linear 0..1) to linear RGB (0..1). Vectorised.
    Args:
      srgb: array[...] in 0..1 (float)
    Returns:
      float64 array, same shape
    """
    s = np.asarray(srgb, dtype=np.float64)
    return np.where(s <= 0.04045, s / 12.92, ((s + 0.055) / 1.055) ** 2.4)


def linear_to_rgb(linear: np.ndarray) -> np.ndarray:
    """Linear RGB (0..1) to sRGB (0..1). Negative inputs are clipped to 0 first."""
    v = np.clip(np.asarray(linear, dtype=np.float64), 0.0, None)
    return np.where(v <= 0.0031308, v * 12.92, 1.055 * v ** (1.0 / 2.4) - 0.055)


def _as_unit_rgb(rgb: np.ndarray) -> np.ndarray:
    arr = np.asarray(rgb)
    if np.issubdtype(arr.dtype, np.integer):
        return arr.astype(np.float64) / 255.0
    return arr.astype(np.float64, copy=False)


# sRGB <-> Lab


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """
    sRGB to CIE Lab (D65).
    Integer input is read as 0..255, float input as 0..1. Shape (...,3) preserved.
    """
    lin = rgb_to_linear(_as_unit_rgb(rgb)[..., :3])
    xyz = lin @ _M.T
    t = xyz / _WHITE

    f = np.where(t > LAB_EPSILON, np.cbrt(t), (LAB_KAPPA * t + 16.0) / 116.0)
    out = np.empty(t.shape, dtype=np.float64)
    out[..., 0] = 116.0 * f[..., 1] - 16.0
    out[..., 1] = 500.0 * (f[..., 0] - f[..., 1])
    out[..., 2] = 200.0 * (f[..., 1] - f[..., 2])
    return out


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """
    CIE Lab (D65) to sRGB float in 0..1. Out-of-gamut values are clipped.
    """
    lab = np.asarray(lab, dtype=np.float64)
    fy = (lab[..., 0] + 16.0) / 116.0
    fx = fy + lab[..., 1] / 500.0
    fz = fy - lab[..., 2] / 200.0
    f = np.stack([fx, fy, fz], axis=-1)

    f3 = f**3
    t = np.where(f3 > LAB_EPSILON, f3, (116.0 * f - 16.0) / LAB_KAPPA)
    xyz = t * _WHITE
    lin = xyz @ _M_INV.T
    return np.clip(linear_to_rgb(lin), 0.0, 1.0)


# Lab <-> HCL


def lab_to_hcl(lab: np.ndarray) -> HCL:
    """
    Lab[...,3] to HCL[...,3] (hue degrees in [0,360), chroma, lightness).
    Hue is 0 where chroma is below ACHROMATIC_CHROMA.
    """
    lab = np.asarray(lab, dtype=np.float64)
    a = lab[..., 1]
    b = lab[..., 2]
    chroma = np.hypot(a, b)
    hue = np.mod(np.degrees(np.arctan2(b, a)), 360.0)
    hue = np.where(chroma < ACHROMATIC_CHROMA, 0.0, hue)
    # mod can return 360.0 for tiny negative angles
    hue = np.where(hue >= 360.0, 0.0, hue)
    return np.stack([hue, chroma, lab[..., 0]], axis=-1)


def hcl_to_lab(hcl: np.ndarray) -> np.ndarray:
    """HCL[...,3] to Lab[...,3]."""
    hcl = np.asarray(hcl, dtype=np.float64)
    rad = np.radians(hcl[..., 0])
    chroma = hcl[..., 1]
    return np.stack(
        [hcl[..., 2], chroma * np.cos(rad), chroma * np.sin(rad)], axis=-1
    )


# RGB <-> HCL


def rgb_to_hcl(rgb: np.ndarray) -> HCL:
    """sRGB (uint8 0..255 or float 0..1) to HCL. Shape (...,3) preserved; alpha ignored."""
    return lab_to_hcl(rgb_to_lab(rgb))


def hcl_to_rgb(hcl: np.ndarray) -> U8Image:
    """HCL to uint8 sRGB, clamped to [0, 255] per channel."""
    unit = lab_to_rgb(hcl_to_lab(hcl))
    return np.clip(np.rint(unit * 255.0), 0, 255).astype(np.uint8)


def to_hcl(pixel: Sequence[int]) -> HCLTuple:
    """Single RGB(A) pixel to an (h, c, l) tuple."""
    h, c, l = rgb_to_hcl(np.asarray(pixel[:3], dtype=np.uint8))
    return float(h), float(c), float(l)


def to_rgb(hcl: Sequence[float]) -> RGBTuple:
    """Single (h, c, l) colour to an RGB tuple."""
    r, g, b = hcl_to_rgb(np.asarray(hcl, dtype=np.float64))
    return int(r), int(g), int(b)


def _row_chunks(height: int, parts: int) -> List[Tuple[int, int]]:
    parts = max(1, int(parts))
    step = (height + parts - 1) // parts
    return [(i, min(i + step, height)) for i in range(0, height, step)]


def rgb_to_hcl_threaded(rgb: np.ndarray, workers: int) -> HCL:
    """
    rgb_to_hcl split by rows over a thread pool, for large images.

    Runs in the calling thread when workers <= 1 or the image has fewer than
    THREADED_MIN_ROWS rows. Output is identical to rgb_to_hcl.
    """
    height = int(rgb.shape[0])
    if workers <= 1 or height < THREADED_MIN_ROWS:
        return rgb_to_hcl(rgb)

    chunks = _row_chunks(height, workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(rgb_to_hcl, rgb[s:e]) for s, e in chunks]
        parts = [f.result() for f in futures]
    return np.concatenate(parts, axis=0)


__all__ = [
    "rgb_to_linear",
    "linear_to_rgb",
    "rgb_to_lab",
    "lab_to_rgb",
    "lab_to_hcl",
    "hcl_to_lab",
    "rgb_to_hcl",
    "hcl_to_rgb",
    "to_hcl",
    "to_rgb",
    "rgb_to_hcl_threaded",
]
