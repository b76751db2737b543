# emoji_mosaic/tiler.py
from __future__ import annotations

"""
Tiling and the per-tile matching pipeline.

The source image is cut into a row-major grid of tiles. Edge tiles are
cropped to the pixels that exist, never padded. Each tile runs:

  RGB -> HCL -> buckets -> histogram -> smoothing -> matcher

and produces one MatchResult stored at its (row, col) slot.

Parallel mode uses a process pool over bands of tile rows. The emoticon cache
is sent to each worker once through the pool initializer and only read after
that. Results land in grid slots by position, so completion order never
changes the grid.
"""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from typing import List, Optional, Tuple

import numpy as np

from .constants import PROGRESS_INTERVAL, TILER_BAND_ROWS
from .core_types import (
    ImageTile,
    MatchCancelled,
    MatchGrid,
    MatchResult,
    U8Image,
    U8Mask,
    assert_u8_mask_2d,
    split_rgba,
)
from .emoticons import EmoticonCache
from .histogram import build_histogram, smooth_histogram
from .match import best_match
from .utils import debug_log, format_eta, format_seconds_compact, print_progress_line


def tile_grid_shape(width: int, height: int, tile_w: int, tile_h: int) -> Tuple[int, int]:
    """(rows, cols) of the tile grid; partial edge tiles count."""
    if tile_w < 1 or tile_h < 1:
        raise ValueError(f"tile size must be positive, got {tile_w}x{tile_h}")
    return -(-height // tile_h), -(-width // tile_w)


def partition(
    rgb: U8Image,
    alpha: Optional[U8Mask],
    tile_w: int,
    tile_h: int,
    first_row: int = 0,
) -> List[ImageTile]:
    """
    Cut an image into tiles in row-major order.

    first_row offsets the row index and y coordinates, for bands cut out of a
    larger image at a tile-row boundary.
    """
    height, width = int(rgb.shape[0]), int(rgb.shape[1])
    rows, cols = tile_grid_shape(width, height, tile_w, tile_h)
    y_offset = first_row * tile_h
    tiles: List[ImageTile] = []
    for r in range(rows):
        y0 = r * tile_h
        y1 = min(y0 + tile_h, height)
        for c in range(cols):
            x0 = c * tile_w
            x1 = min(x0 + tile_w, width)
            tiles.append(
                ImageTile(
                    row=first_row + r,
                    col=c,
                    box=(x0, y0 + y_offset, x1, y1 + y_offset),
                    rgb=rgb[y0:y1, x0:x1],
                    alpha=None if alpha is None else alpha[y0:y1, x0:x1],
                )
            )
    return tiles


def tile_histograms(tile: ImageTile, cache: EmoticonCache) -> Tuple[np.ndarray, np.ndarray]:
    """(raw, smoothed) histograms of one tile under the cache's configuration."""
    cfg = cache.config
    raw = build_histogram(tile.rgb, cfg.color_depth, tile.alpha, cfg.alpha_threshold)
    smoothed = smooth_histogram(raw, cfg.smoothing_radius, cfg.smoothing_sigma)
    return raw, smoothed


def match_tile(tile: ImageTile, cache: EmoticonCache) -> MatchResult:
    """Run the full pipeline for one tile."""
    _raw, smoothed = tile_histograms(tile, cache)
    asset_id, score, fallback = best_match(smoothed, cache)
    return MatchResult(
        row=tile.row,
        col=tile.col,
        box=tile.box,
        asset_id=asset_id,
        score=score,
        fallback=fallback,
    )


# Worker side

_worker_cache: Optional[EmoticonCache] = None


def _init_worker(cache: EmoticonCache) -> None:
    global _worker_cache
    _worker_cache = cache


def _match_band(
    rgb_band: U8Image,
    alpha_band: Optional[U8Mask],
    first_row: int,
    tile_w: int,
    tile_h: int,
) -> List[MatchResult]:
    if _worker_cache is None:
        raise RuntimeError("worker started without an emoticon cache")
    tiles = partition(rgb_band, alpha_band, tile_w, tile_h, first_row=first_row)
    return [match_tile(t, _worker_cache) for t in tiles]


# Progress


class _Progress:
    """Percent + ETA on one overwriting line."""

    def __init__(self, total: int, enabled: bool):
        self.total = max(1, total)
        self.enabled = enabled
        self.t0 = time.perf_counter()
        self.last = 0.0

    def update(self, done: int, final: bool = False) -> None:
        if not self.enabled:
            return
        now = time.perf_counter()
        if not final and now - self.last < PROGRESS_INTERVAL:
            return
        self.last = now
        elapsed = now - self.t0
        eta = (elapsed / done) * (self.total - done) if done else None
        pct = 100.0 * done / self.total
        print_progress_line(
            f"Tiles {done:,}/{self.total:,}  {pct:5.1f}%  ETA {format_eta(eta)}",
            final=final,
        )


# Public entry


def _validate_image(
    rgb: np.ndarray, alpha: Optional[np.ndarray]
) -> Tuple[U8Image, Optional[U8Mask]]:
    img, own_alpha = split_rgba(rgb)
    if alpha is None:
        alpha = own_alpha
    if alpha is not None:
        alpha = assert_u8_mask_2d(np.asarray(alpha), (img.shape[0], img.shape[1]))
    return img, alpha


def match_image(
    rgb: np.ndarray,
    alpha: Optional[np.ndarray],
    cache: EmoticonCache,
    workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
    progress: bool = False,
) -> MatchGrid:
    """
    Match every tile of an image against the emoticon cache.

    Args:
      rgb: uint8 [H,W,3] (or [H,W,4], alpha taken from the 4th channel)
      alpha: optional uint8 [H,W]; pixels below the configured threshold are ignored
      cache: emoticon cache built for the run's configuration
      workers: <=1 runs in-process; more uses a process pool of that size
      cancel_event: when set, the run stops and MatchCancelled is raised
      progress: print a percent / ETA line
    Returns:
      MatchGrid with one result per tile, row-major
    """
    img, mask = _validate_image(rgb, alpha)
    tile_w, tile_h = cache.tile_size
    height, width = int(img.shape[0]), int(img.shape[1])
    rows, cols = tile_grid_shape(width, height, tile_w, tile_h)
    slots: List[Optional[MatchResult]] = [None] * (rows * cols)
    meter = _Progress(rows * cols, progress)
    t0 = time.perf_counter()

    def cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    if workers <= 1 or rows == 1:
        done = 0
        for tile in partition(img, mask, tile_w, tile_h):
            if cancelled():
                raise MatchCancelled("matching cancelled")
            result = match_tile(tile, cache)
            slots[tile.row * cols + tile.col] = result
            done += 1
            meter.update(done)
    else:
        bands = [
            (r0, min(r0 + TILER_BAND_ROWS, rows)) for r0 in range(0, rows, TILER_BAND_ROWS)
        ]
        ex = ProcessPoolExecutor(
            max_workers=min(int(workers), len(bands)),
            initializer=_init_worker,
            initargs=(cache,),
        )
        try:
            pending = set()
            for r0, r1 in bands:
                y0, y1 = r0 * tile_h, min(r1 * tile_h, height)
                pending.add(
                    ex.submit(
                        _match_band,
                        img[y0:y1],
                        None if mask is None else mask[y0:y1],
                        r0,
                        tile_w,
                        tile_h,
                    )
                )
            done = 0
            while pending:
                if cancelled():
                    raise MatchCancelled("matching cancelled")
                finished, pending = wait(
                    pending, timeout=PROGRESS_INTERVAL, return_when=FIRST_COMPLETED
                )
                for fut in finished:
                    for result in fut.result():
                        slots[result.row * cols + result.col] = result
                        done += 1
                meter.update(done)
        except BaseException:
            ex.shutdown(wait=False, cancel_futures=True)
            raise
        ex.shutdown(wait=True)

    meter.update(rows * cols, final=True)
    missing = [i for i, s in enumerate(slots) if s is None]
    if missing:
        raise RuntimeError(f"{len(missing)} tile(s) produced no result")

    grid = MatchGrid(rows=rows, cols=cols, results=tuple(slots))  # type: ignore[arg-type]
    debug_log(
        f"matched {rows}x{cols} tiles in {format_seconds_compact(time.perf_counter() - t0)}"
        f" ({grid.fallback_count} fallback)"
    )
    return grid


__all__ = [
    "tile_grid_shape",
    "partition",
    "tile_histograms",
    "match_tile",
    "match_image",
]
