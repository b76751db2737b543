# emoji_mosaic/match/peaks.py
from __future__ import annotations

"""
Local-maxima (cluster) matcher.

Peak extraction:
  1) a peak is a cell > 0 above all in-range 26 neighbours; on a plateau of
     equal cells only the first in row-major order counts
  2) each peak grows a flood-fill extent through cells >= fraction * peak,
     highest peaks first; a cell belongs to at most one cluster
  3) clusters below min_share of the total mass are dropped; the rest are
     ranked by mass and cut to max_peaks

Scoring one tile against one emoticon:
  - distance: per-channel bucket difference / depth, hue taken circularly,
    weighted by (wh, wc, wl), combined Euclidean
  - similarity: exp(-0.5 * (distance / falloff)^2)
  - pair value: similarity * tile share * emoticon share
  - greedy one-to-one assignment over pair values, summed

O(max_peaks^2) per (tile, emoticon) pair, against O(depth^3) for correlation.
"""

from collections import deque
from itertools import product
from typing import TYPE_CHECKING, List, Sequence, Tuple

import numpy as np

from emoji_mosaic.constants import (
    DEFAULT_MAX_PEAKS,
    DEFAULT_MIN_PEAK_SHARE,
    DEFAULT_PEAK_DISTANCE_SCALE,
    DEFAULT_PEAK_EXTENT_FRACTION,
    DEFAULT_PEAK_FALLOFF,
)
from emoji_mosaic.core_types import Cluster, circular_difference

from .common import Choice, pick_best

if TYPE_CHECKING:  # pragma: no cover
    from emoji_mosaic.emoticons import EmoticonCache

_OFFSETS: Tuple[Tuple[int, int, int], ...] = tuple(
    o for o in product((-1, 0, 1), repeat=3) if o != (0, 0, 0)
)


def local_maxima(smoothed: np.ndarray) -> List[Tuple[int, int, int]]:
    """
    Positions of local maxima (> 0) in row-major order.

    A cell must strictly exceed the neighbours that precede it in row-major
    order and be >= the ones that follow it, so a plateau of equal cells
    yields exactly one peak (its first cell) instead of none.
    """
    arr = np.asarray(smoothed, dtype=np.float64)
    d0, d1, d2 = arr.shape
    padded = np.pad(arr, 1, mode="constant", constant_values=-np.inf)
    is_max = arr > 0.0
    for offset in _OFFSETS:
        dh, dc, dl = offset
        neighbour = padded[
            1 + dh : 1 + dh + d0, 1 + dc : 1 + dc + d1, 1 + dl : 1 + dl + d2
        ]
        if offset > (0, 0, 0):
            is_max &= arr >= neighbour
        else:
            is_max &= arr > neighbour
    return [tuple(int(v) for v in p) for p in np.argwhere(is_max)]  # type: ignore[misc]


def _flood_extent(
    arr: np.ndarray,
    claimed: np.ndarray,
    start: Tuple[int, int, int],
    threshold: float,
) -> float:
    """Claim and sum cells reachable from start through values >= threshold."""
    shape = arr.shape
    mass = 0.0
    queue = deque([start])
    claimed[start] = True
    while queue:
        cell = queue.popleft()
        mass += float(arr[cell])
        for dh, dc, dl in _OFFSETS:
            nb = (cell[0] + dh, cell[1] + dc, cell[2] + dl)
            if not (
                0 <= nb[0] < shape[0] and 0 <= nb[1] < shape[1] and 0 <= nb[2] < shape[2]
            ):
                continue
            if claimed[nb] or arr[nb] < threshold:
                continue
            claimed[nb] = True
            queue.append(nb)
    return mass


def extract_peaks(
    smoothed: np.ndarray,
    max_peaks: int = DEFAULT_MAX_PEAKS,
    extent_fraction: float = DEFAULT_PEAK_EXTENT_FRACTION,
    min_share: float = DEFAULT_MIN_PEAK_SHARE,
) -> List[Cluster]:
    """
    Dominant colour clusters of a smoothed histogram, heaviest first.

    Never returns more than max_peaks clusters. Empty for an all-zero
    histogram; a flat one is a single plateau and gives one cluster.
    """
    arr = np.asarray(smoothed, dtype=np.float64)
    total = float(arr.sum())
    if total <= 0.0:
        return []
    peaks = local_maxima(arr)
    if not peaks:
        return []

    # Highest peaks claim their extent first.
    peaks.sort(key=lambda p: (-float(arr[p]), p))
    claimed = np.zeros(arr.shape, dtype=bool)
    clusters: List[Cluster] = []
    for pos in peaks:
        if claimed[pos]:
            continue
        mass = _flood_extent(arr, claimed, pos, extent_fraction * float(arr[pos]))
        share = mass / total
        if share < min_share:
            continue
        clusters.append(Cluster(position=pos, mass=mass, share=share))

    clusters.sort(key=lambda c: (-c.mass, c.position))
    return clusters[: max(0, int(max_peaks))]


def _squared_distance(
    a: np.ndarray, b: np.ndarray, depth: int, scale: Sequence[float]
) -> np.ndarray:
    """Squared weighted distance of broadcastable (..., 3) bucket positions."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    dh = circular_difference(a[..., 0], b[..., 0], depth) / depth
    dc = np.abs(a[..., 1] - b[..., 1]) / depth
    dl = np.abs(a[..., 2] - b[..., 2]) / depth
    return (scale[0] * dh) ** 2 + (scale[1] * dc) ** 2 + (scale[2] * dl) ** 2


def cluster_distance(
    a: Sequence[int],
    b: Sequence[int],
    depth: int,
    scale: Sequence[float] = DEFAULT_PEAK_DISTANCE_SCALE,
) -> float:
    """Weighted distance between two bucket positions, in fractions of channel range."""
    return float(np.sqrt(_squared_distance(a, b, depth, scale)))


def pair_values(
    tile_clusters: Sequence[Cluster],
    emoticon_clusters: Sequence[Cluster],
    depth: int,
    scale: Sequence[float] = DEFAULT_PEAK_DISTANCE_SCALE,
    falloff: float = DEFAULT_PEAK_FALLOFF,
) -> np.ndarray:
    """(k_tile, k_emoticon) matrix of share-weighted similarities."""
    if not tile_clusters or not emoticon_clusters:
        return np.zeros((len(tile_clusters), len(emoticon_clusters)), dtype=np.float64)
    tp = np.array([c.position for c in tile_clusters], dtype=np.float64)
    ep = np.array([c.position for c in emoticon_clusters], dtype=np.float64)
    ts = np.array([c.share for c in tile_clusters], dtype=np.float64)
    es = np.array([c.share for c in emoticon_clusters], dtype=np.float64)

    dist2 = _squared_distance(tp[:, None, :], ep[None, :, :], depth, scale)
    similarity = np.exp(-0.5 * dist2 / (falloff * falloff))
    return similarity * ts[:, None] * es[None, :]


def greedy_assignment(values: np.ndarray) -> List[Tuple[int, int]]:
    """
    One-to-one pairs taken largest value first (ties: lower tile index, then
    lower emoticon index) until either side runs out.
    """
    rows, cols = values.shape
    order = sorted(
        ((-float(values[i, j]), i, j) for i in range(rows) for j in range(cols))
    )
    used_rows: set[int] = set()
    used_cols: set[int] = set()
    pairs: List[Tuple[int, int]] = []
    for _neg, i, j in order:
        if i in used_rows or j in used_cols:
            continue
        pairs.append((i, j))
        used_rows.add(i)
        used_cols.add(j)
        if len(pairs) == min(rows, cols):
            break
    return pairs


def score(
    tile_clusters: Sequence[Cluster],
    emoticon_clusters: Sequence[Cluster],
    depth: int,
    scale: Sequence[float] = DEFAULT_PEAK_DISTANCE_SCALE,
    falloff: float = DEFAULT_PEAK_FALLOFF,
) -> float:
    """Aggregate cluster-set similarity; 0.0 when either side has no clusters."""
    values = pair_values(tile_clusters, emoticon_clusters, depth, scale, falloff)
    if values.size == 0:
        return 0.0
    return float(sum(values[i, j] for i, j in greedy_assignment(values)))


def best_match(tile_smoothed: np.ndarray, cache: "EmoticonCache") -> Choice:
    """Best emoticon for a tile by cluster similarity."""
    cfg = cache.config
    tile_clusters = extract_peaks(
        tile_smoothed,
        max_peaks=cfg.max_peaks,
        extent_fraction=cfg.peak_extent_fraction,
        min_share=cfg.min_peak_share,
    )
    scores = np.zeros((len(cache.assets),), dtype=np.float64)
    if tile_clusters:
        for i, asset in enumerate(cache.assets):
            scores[i] = score(
                tile_clusters,
                asset.clusters,
                cache.depth,
                cfg.peak_distance_scale,
                cfg.peak_falloff,
            )
    return pick_best(scores, cache.ids)


__all__ = [
    "local_maxima",
    "extract_peaks",
    "cluster_distance",
    "pair_values",
    "greedy_assignment",
    "score",
    "best_match",
]
