# emoji_mosaic/render.py
from __future__ import annotations

"""
Turn a MatchGrid into output.

Exports:
  render_text(grid, cache)      glyph rows joined by newlines
  render_image(grid, cache)     RGBA composite, one asset bitmap per tile
  usage_report(grid, cache)     [(asset_id, glyph, count), ...] most used first
  reduced_preview(rgb, depth)   the image with every pixel snapped to its
                                bucket centre, to inspect what the matcher sees
"""

from collections import Counter
from typing import List, Tuple

import numpy as np

from .colour_convert import hcl_to_rgb, rgb_to_hcl_threaded
from .core_types import MatchGrid, U8Image
from .emoticons import EmoticonCache
from .quantize import bucket_centres, reduce_channels


def render_text(grid: MatchGrid, cache: EmoticonCache) -> str:
    """Glyph sequence in row-major order, one line per tile row."""
    lines: List[str] = []
    for row in grid.asset_ids():
        lines.append("".join(cache.get(asset_id).glyph for asset_id in row))
    return "\n".join(lines)


def render_image(grid: MatchGrid, cache: EmoticonCache) -> U8Image:
    """
    Composite RGBA image. Tile (row, col) gets its asset bitmap at
    (col * asset_w, row * asset_h), whatever the source tile size was.
    """
    cell_w, cell_h = cache.asset_size
    canvas = np.zeros((grid.rows * cell_h, grid.cols * cell_w, 4), dtype=np.uint8)
    for result in grid:
        y0 = result.row * cell_h
        x0 = result.col * cell_w
        canvas[y0 : y0 + cell_h, x0 : x0 + cell_w] = cache.get(result.asset_id).bitmap
    return canvas


def usage_report(grid: MatchGrid, cache: EmoticonCache) -> List[Tuple[str, str, int]]:
    """Assets used by the grid with their tile counts, most used first (ties by id)."""
    counts = Counter(r.asset_id for r in grid)
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [(aid, cache.get(aid).glyph, n) for aid, n in ordered]


def reduced_preview(rgb: U8Image, depth: int, workers: int = 1) -> U8Image:
    """Snap every pixel to the centre colour of its HCL bucket."""
    buckets = reduce_channels(rgb_to_hcl_threaded(rgb[..., :3], workers), depth)
    centres = bucket_centres(depth)
    hcl = np.stack(
        [
            centres[buckets[..., 0], 0],
            centres[buckets[..., 1], 1],
            centres[buckets[..., 2], 2],
        ],
        axis=-1,
    )
    return hcl_to_rgb(hcl)


__all__ = ["render_text", "render_image", "usage_report", "reduced_preview"]
