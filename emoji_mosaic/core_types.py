# emoji_mosaic/core_types.py
from __future__ import annotations

"""
Core type aliases, exceptions, small value objects, and lightweight helpers.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .constants import (
    ALGORITHMS,
    CORRELATION_MEASURES,
    DEFAULT_ALGORITHM,
    DEFAULT_ALPHA_THRESHOLD,
    DEFAULT_COLOR_DEPTH,
    DEFAULT_CORRELATION_MEASURE,
    DEFAULT_MAX_PEAKS,
    DEFAULT_MIN_PEAK_SHARE,
    DEFAULT_PEAK_DISTANCE_SCALE,
    DEFAULT_PEAK_EXTENT_FRACTION,
    DEFAULT_PEAK_FALLOFF,
    DEFAULT_SMOOTHING_RADIUS,
    DEFAULT_SMOOTHING_SIGMA,
    MAX_COLOR_DEPTH,
    MIN_COLOR_DEPTH,
)

# Basic aliases

RGBTuple = Tuple[int, int, int]
HCLTuple = Tuple[float, float, float]  # (hue deg, chroma, lightness)
ReducedColor = Tuple[int, int, int]  # (h, c, l) buckets
Box = Tuple[int, int, int, int]  # (x0, y0, x1, y1), exclusive ends

U8Image = NDArray[np.uint8]  # (H, W, 3) or (H, W, 4)
U8Mask = NDArray[np.uint8]  # (H, W)
HCL = NDArray[np.float64]  # (..., 3) hue, chroma, lightness
Reduced = NDArray[np.int64]  # (..., 3) buckets
Histogram3D = NDArray[np.int64]  # (D, D, D) raw counts
Smoothed3D = NDArray[np.float64]  # (D, D, D) smoothed mass


# Exceptions


class MosaicError(Exception):
    """Base class for fatal mosaic errors."""


class InvalidImageError(MosaicError, ValueError):
    """Source image or asset bitmap is empty, malformed, or unreadable."""


class EmptyEmoticonSetError(MosaicError, ValueError):
    """No usable emoticon assets were supplied."""


class ConfigError(MosaicError, ValueError):
    """A configuration option is out of range."""


class MatchCancelled(MosaicError):
    """The run was aborted externally before the grid was complete."""


# Configuration


@dataclass(frozen=True)
class MosaicConfig:
    """Run-wide settings. Validated on construction."""

    color_depth: int = DEFAULT_COLOR_DEPTH
    tile_size: Optional[Tuple[int, int]] = None  # (w, h); None = asset size
    smoothing_radius: int = DEFAULT_SMOOTHING_RADIUS
    smoothing_sigma: float = DEFAULT_SMOOTHING_SIGMA
    match_algorithm: str = DEFAULT_ALGORITHM
    correlation_measure: str = DEFAULT_CORRELATION_MEASURE
    max_peaks: int = DEFAULT_MAX_PEAKS
    peak_distance_scale: Tuple[float, float, float] = DEFAULT_PEAK_DISTANCE_SCALE
    peak_falloff: float = DEFAULT_PEAK_FALLOFF
    peak_extent_fraction: float = DEFAULT_PEAK_EXTENT_FRACTION
    min_peak_share: float = DEFAULT_MIN_PEAK_SHARE
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD

    def __post_init__(self) -> None:
        if not MIN_COLOR_DEPTH <= int(self.color_depth) <= MAX_COLOR_DEPTH:
            raise ConfigError(
                f"color_depth must be in [{MIN_COLOR_DEPTH}, {MAX_COLOR_DEPTH}], "
                f"got {self.color_depth}"
            )
        if self.tile_size is not None:
            if len(self.tile_size) != 2 or min(self.tile_size) < 1:
                raise ConfigError(f"tile_size must be two positive ints, got {self.tile_size}")
        if self.smoothing_radius < 0:
            raise ConfigError("smoothing_radius must be >= 0")
        if self.smoothing_sigma <= 0.0:
            raise ConfigError("smoothing_sigma must be > 0")
        if self.match_algorithm not in ALGORITHMS:
            raise ConfigError(
                f"match_algorithm must be one of {ALGORITHMS}, got {self.match_algorithm!r}"
            )
        if self.correlation_measure not in CORRELATION_MEASURES:
            raise ConfigError(
                f"correlation_measure must be one of {CORRELATION_MEASURES}, "
                f"got {self.correlation_measure!r}"
            )
        if self.max_peaks < 1:
            raise ConfigError("max_peaks must be >= 1")
        if len(self.peak_distance_scale) != 3 or min(self.peak_distance_scale) < 0.0:
            raise ConfigError("peak_distance_scale must be three non-negative weights")
        if self.peak_falloff <= 0.0:
            raise ConfigError("peak_falloff must be > 0")
        if not 0.0 < self.peak_extent_fraction <= 1.0:
            raise ConfigError("peak_extent_fraction must be in (0, 1]")
        if not 0.0 <= self.min_peak_share < 1.0:
            raise ConfigError("min_peak_share must be in [0, 1)")
        if not 0 <= self.alpha_threshold <= 255:
            raise ConfigError("alpha_threshold must be in [0, 255]")


# Value objects


@dataclass(frozen=True)
class Cluster:
    """Local maximum of a smoothed histogram."""

    position: ReducedColor  # (h, c, l) bucket of the peak
    mass: float  # pixel units, summed over the flood-filled extent
    share: float  # mass / total histogram mass


@dataclass(frozen=True, eq=False)
class EmoticonAsset:
    """Emoticon bitmap with its precomputed histograms and clusters."""

    asset_id: str
    glyph: str
    bitmap: U8Image  # (h, w, 4) RGBA
    histogram: Histogram3D
    smoothed: Smoothed3D
    clusters: Tuple[Cluster, ...] = ()

    @property
    def size(self) -> Tuple[int, int]:
        """Bitmap (width, height)."""
        return int(self.bitmap.shape[1]), int(self.bitmap.shape[0])

    @property
    def pixel_count(self) -> int:
        return int(self.histogram.sum())


@dataclass(frozen=True, eq=False)
class ImageTile:
    """Rectangular region of the source image. Edge tiles may be smaller."""

    row: int
    col: int
    box: Box
    rgb: U8Image
    alpha: Optional[U8Mask] = None

    @property
    def width(self) -> int:
        return self.box[2] - self.box[0]

    @property
    def height(self) -> int:
        return self.box[3] - self.box[1]


@dataclass(frozen=True)
class MatchResult:
    """Chosen asset for one tile."""

    row: int
    col: int
    box: Box
    asset_id: str
    score: float
    fallback: bool = False


@dataclass(frozen=True)
class MatchGrid:
    """Tile -> asset assignment in row-major order."""

    rows: int
    cols: int
    results: Tuple[MatchResult, ...] = field(default=())

    def __post_init__(self) -> None:
        if len(self.results) != self.rows * self.cols:
            raise ValueError(
                f"grid {self.rows}x{self.cols} needs {self.rows * self.cols} results, "
                f"got {len(self.results)}"
            )

    def at(self, row: int, col: int) -> MatchResult:
        return self.results[row * self.cols + col]

    def asset_ids(self) -> List[List[str]]:
        """Nested rows of chosen asset ids."""
        return [
            [r.asset_id for r in self.results[i * self.cols : (i + 1) * self.cols]]
            for i in range(self.rows)
        ]

    @property
    def fallback_count(self) -> int:
        return sum(1 for r in self.results if r.fallback)

    def __iter__(self) -> Iterator[MatchResult]:
        return iter(self.results)


# Small helpers


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def circular_difference(a: np.ndarray, b: np.ndarray, period: float) -> np.ndarray:
    """Minimal absolute difference on a circle of the given period."""
    d = np.abs(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64))
    d = np.mod(d, period)
    return np.minimum(d, period - d)


def codepoints_to_glyph(codepoints: Sequence[int]) -> str:
    """Join integer codepoints into a string."""
    return "".join(chr(int(cp)) for cp in codepoints)


def assert_u8_image_rgb(image: np.ndarray) -> U8Image:
    """Validate a non-empty uint8 (H,W,3 or 4) image and return it typed as U8Image."""
    if not isinstance(image, np.ndarray):
        raise InvalidImageError("expected a numpy pixel buffer")
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] not in (3, 4):
        raise InvalidImageError(
            f"expected uint8 (H,W,3/4) image, got {image.dtype} {image.shape}"
        )
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImageError(f"image has zero size {image.shape[1]}x{image.shape[0]}")
    return image  # type: ignore[return-value]


def assert_u8_mask_2d(mask_array: np.ndarray, shape: Tuple[int, int]) -> U8Mask:
    """Validate a uint8 (H,W) mask matching shape and return it typed as U8Mask."""
    if mask_array.dtype != np.uint8 or mask_array.ndim != 2:
        raise InvalidImageError("expected uint8 (H,W) alpha mask")
    if tuple(mask_array.shape) != tuple(shape):
        raise InvalidImageError(
            f"alpha mask {mask_array.shape} does not match image {shape}"
        )
    return mask_array  # type: ignore[return-value]


def split_rgba(image: np.ndarray) -> Tuple[U8Image, Optional[U8Mask]]:
    """Split an (H,W,3/4) image into rgb and optional alpha views."""
    img = assert_u8_image_rgb(image)
    if img.shape[-1] == 4:
        return img[..., :3], img[..., 3]
    return img, None


__all__ = [
    # aliases / types
    "RGBTuple",
    "HCLTuple",
    "ReducedColor",
    "Box",
    "U8Image",
    "U8Mask",
    "HCL",
    "Reduced",
    "Histogram3D",
    "Smoothed3D",
    # exceptions
    "MosaicError",
    "InvalidImageError",
    "EmptyEmoticonSetError",
    "ConfigError",
    "MatchCancelled",
    # value objects
    "MosaicConfig",
    "Cluster",
    "EmoticonAsset",
    "ImageTile",
    "MatchResult",
    "MatchGrid",
    # helpers
    "clamp_value",
    "circular_difference",
    "codepoints_to_glyph",
    "assert_u8_image_rgb",
    "assert_u8_mask_2d",
    "split_rgba",
]
