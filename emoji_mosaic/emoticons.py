# emoji_mosaic/emoticons.py
from __future__ import annotations

"""
Emoticon asset set and its read-only histogram cache.

Exports:
  EmoticonCache                     assets sorted by id + prepared matcher data
  build_asset(asset_id, glyph, bitmap, config) -> EmoticonAsset
  build_emoticon_cache(sources, config) -> EmoticonCache
  parse_codepoints(stem) -> list[int]
  load_emoticon_dir(path, config) -> EmoticonCache

Asset directories hold PNG bitmaps named by hex codepoints:
  1f600.png        one codepoint
  1f1e9-1f1ea.png  several codepoints joined by '-'
"""

from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np

from .core_types import (
    EmoticonAsset,
    EmptyEmoticonSetError,
    InvalidImageError,
    MosaicConfig,
    MosaicError,
    U8Image,
    assert_u8_image_rgb,
    codepoints_to_glyph,
)
from .histogram import build_histogram, smooth_histogram
from .image_io import load_image_rgba
from .match.correlation import CorrelationTable, prepare_table
from .match.peaks import extract_peaks
from .utils import debug_log, warn

# (asset_id, glyph, RGB or RGBA bitmap)
AssetSource = Tuple[str, str, U8Image]


def _to_rgba(bitmap: np.ndarray) -> U8Image:
    img = assert_u8_image_rgb(bitmap)
    if img.shape[-1] == 4:
        return img
    out = np.empty(img.shape[:2] + (4,), dtype=np.uint8)
    out[..., :3] = img
    out[..., 3] = 255
    return out


def build_asset(
    asset_id: str, glyph: str, bitmap: np.ndarray, config: MosaicConfig
) -> EmoticonAsset:
    """Compute histograms and clusters for one bitmap. Arrays are made read-only."""
    rgba = np.array(_to_rgba(bitmap), dtype=np.uint8, copy=True)
    hist = build_histogram(
        rgba[..., :3],
        config.color_depth,
        alpha=rgba[..., 3],
        alpha_threshold=config.alpha_threshold,
    )
    smoothed = smooth_histogram(hist, config.smoothing_radius, config.smoothing_sigma)
    clusters = extract_peaks(
        smoothed,
        max_peaks=config.max_peaks,
        extent_fraction=config.peak_extent_fraction,
        min_share=config.min_peak_share,
    )
    for arr in (rgba, hist, smoothed):
        arr.setflags(write=False)
    return EmoticonAsset(
        asset_id=asset_id,
        glyph=glyph,
        bitmap=rgba,
        histogram=hist,
        smoothed=smoothed,
        clusters=tuple(clusters),
    )


class EmoticonCache:
    """
    Read-only emoticon set shared by every tile of a run.

    Built once before matching starts and never mutated afterwards. Assets are
    kept sorted by id so index order is tie-break order.
    """

    def __init__(self, assets: Sequence[EmoticonAsset], config: MosaicConfig):
        if not assets:
            raise EmptyEmoticonSetError("no emoticon assets supplied")
        ordered = sorted(assets, key=lambda a: a.asset_id)
        ids = [a.asset_id for a in ordered]
        if len(set(ids)) != len(ids):
            dupes = sorted({i for i in ids if ids.count(i) > 1})
            raise MosaicError(f"duplicate emoticon ids: {dupes}")
        if all(a.pixel_count == 0 for a in ordered):
            raise EmptyEmoticonSetError("every emoticon histogram is empty")
        sizes = {a.size for a in ordered}
        if len(sizes) != 1:
            raise InvalidImageError(f"emoticon bitmaps differ in size: {sorted(sizes)}")

        depth = config.color_depth
        for a in ordered:
            if a.histogram.shape != (depth, depth, depth):
                raise MosaicError(
                    f"asset {a.asset_id} was built with depth {a.histogram.shape[0]}, "
                    f"config uses {depth}"
                )

        self._assets: Tuple[EmoticonAsset, ...] = tuple(ordered)
        self._ids: Tuple[str, ...] = tuple(ids)
        self._by_id: Dict[str, EmoticonAsset] = {a.asset_id: a for a in ordered}
        self._config = config
        self._asset_size: Tuple[int, int] = next(iter(sizes))
        self._correlation = prepare_table(
            np.stack([a.smoothed for a in ordered]), config.correlation_measure
        )

    @property
    def assets(self) -> Tuple[EmoticonAsset, ...]:
        return self._assets

    @property
    def ids(self) -> Tuple[str, ...]:
        return self._ids

    @property
    def config(self) -> MosaicConfig:
        return self._config

    @property
    def depth(self) -> int:
        return self._config.color_depth

    @property
    def asset_size(self) -> Tuple[int, int]:
        """(width, height) shared by every bitmap."""
        return self._asset_size

    @property
    def tile_size(self) -> Tuple[int, int]:
        """Configured tile size, or the asset size when unset."""
        if self._config.tile_size is not None:
            w, h = self._config.tile_size
            return int(w), int(h)
        return self._asset_size

    @property
    def correlation(self) -> CorrelationTable:
        return self._correlation

    def get(self, asset_id: str) -> EmoticonAsset:
        return self._by_id[asset_id]

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self._by_id


def build_emoticon_cache(
    sources: Iterable[AssetSource], config: MosaicConfig
) -> EmoticonCache:
    """Build every asset's histograms, then freeze them into a cache."""
    assets = [build_asset(aid, glyph, bmp, config) for aid, glyph, bmp in sources]
    cache = EmoticonCache(assets, config)
    empty = sum(1 for a in cache.assets if a.pixel_count == 0)
    if empty:
        debug_log(f"{empty} emoticon(s) have no visible pixels")
    return cache


def parse_codepoints(stem: str) -> List[int]:
    """'1f1e9-1f1ea' -> [0x1f1e9, 0x1f1ea]. Raises ValueError on bad input."""
    parts = [p for p in stem.strip().split("-") if p]
    if not parts:
        raise ValueError(f"no codepoints in {stem!r}")
    codepoints = [int(p, 16) for p in parts]
    for cp in codepoints:
        if not 0 <= cp <= 0x10FFFF:
            raise ValueError(f"codepoint out of range in {stem!r}")
    return codepoints


def load_emoticon_dir(path: Path, config: MosaicConfig) -> EmoticonCache:
    """
    Load every *.png in path (sorted by name) as an emoticon asset.

    Files whose stem is not a codepoint sequence are skipped with a warning.
    """
    if not path.is_dir():
        raise EmptyEmoticonSetError(f"emoticon directory not found: {path}")
    sources: List[AssetSource] = []
    for file in sorted(path.iterdir(), key=lambda p: p.name.lower()):
        if not file.is_file() or file.suffix.lower() != ".png":
            continue
        try:
            codepoints = parse_codepoints(file.stem)
        except ValueError:
            warn(f"skipping {file.name}: name is not a hex codepoint sequence")
            continue
        rgb, alpha = load_image_rgba(file)
        rgba = np.concatenate([rgb, alpha[..., None]], axis=-1)
        sources.append((file.stem.lower(), codepoints_to_glyph(codepoints), rgba))
    if not sources:
        raise EmptyEmoticonSetError(f"no emoticon bitmaps in {path}")
    return build_emoticon_cache(sources, config)


__all__ = [
    "AssetSource",
    "EmoticonCache",
    "build_asset",
    "build_emoticon_cache",
    "parse_codepoints",
    "load_emoticon_dir",
]
