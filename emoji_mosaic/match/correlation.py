# emoji_mosaic/match/correlation.py
from __future__ import annotations

"""
Full-histogram correlation matcher.

Each smoothed histogram is flattened to a depth**3 vector and compared with
one of three measures:
  pearson      : Pearson correlation coefficient (default)
  intersection : sum of element-wise minima of the mass-normalised vectors
  dot          : raw dot product of the smoothed histograms

A histogram with zero variance (all-zero or perfectly flat) has no shape to
compare; every pair involving it scores 0.0.

Selection is not a plain argmax. A tile whose best score is <= 0 (for
Pearson, a tile anti-correlated with every emoticon, e.g. a grey tile against
a set with no greys) has no usable match and falls back to the lowest id with
score 0.0 and fallback=True.

The emoticon side is prepared once into a (N, depth**3) table so one tile is
scored against every emoticon with a single matrix-vector pass. This is the
expensive matcher: O(tiles * emoticons * depth**3).
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple

import numpy as np

from emoji_mosaic.histogram import is_degenerate

from .common import Choice, pick_best

if TYPE_CHECKING:  # pragma: no cover
    from emoji_mosaic.emoticons import EmoticonCache


@dataclass(frozen=True, eq=False)
class CorrelationTable:
    """Prepared emoticon rows for one measure."""

    measure: str
    rows: np.ndarray  # (N, depth**3) float64
    usable: np.ndarray  # (N,) bool


def prepare_vector(smoothed: np.ndarray, measure: str) -> Tuple[np.ndarray, bool]:
    """
    Flatten and normalise one smoothed histogram for the given measure.

    Returns (row, usable). Unusable rows are all zeros.
    """
    flat = np.asarray(smoothed, dtype=np.float64).ravel()
    if is_degenerate(flat):
        return np.zeros_like(flat), False
    if measure == "pearson":
        centred = flat - flat.mean()
        return centred / np.linalg.norm(centred), True
    if measure == "intersection":
        return flat / flat.sum(), True
    if measure == "dot":
        return flat.copy(), True
    raise ValueError(f"unknown correlation measure {measure!r}")


def prepare_table(smoothed_stack: np.ndarray, measure: str) -> CorrelationTable:
    """Prepare (N, D, D, D) smoothed emoticon histograms into a read-only table."""
    stack = np.asarray(smoothed_stack, dtype=np.float64)
    n = stack.shape[0]
    rows = np.zeros((n, int(np.prod(stack.shape[1:]))), dtype=np.float64)
    usable = np.zeros((n,), dtype=bool)
    for i in range(n):
        rows[i], usable[i] = prepare_vector(stack[i], measure)
    rows.setflags(write=False)
    usable.setflags(write=False)
    return CorrelationTable(measure=measure, rows=rows, usable=usable)


def _score_rows(tile_row: np.ndarray, rows: np.ndarray, measure: str) -> np.ndarray:
    if measure == "intersection":
        return np.minimum(rows, tile_row[None, :]).sum(axis=1)
    return rows @ tile_row


def score(
    tile_smoothed: np.ndarray, emoticon_smoothed: np.ndarray, measure: str = "pearson"
) -> float:
    """Similarity of two smoothed histograms; 0.0 if either is degenerate."""
    t, t_ok = prepare_vector(tile_smoothed, measure)
    e, e_ok = prepare_vector(emoticon_smoothed, measure)
    if not (t_ok and e_ok):
        return 0.0
    return float(_score_rows(t, e[None, :], measure)[0])


def score_all(tile_smoothed: np.ndarray, table: CorrelationTable) -> np.ndarray:
    """Scores of one tile against every prepared emoticon row."""
    t, ok = prepare_vector(tile_smoothed, table.measure)
    if not ok:
        return np.zeros((table.rows.shape[0],), dtype=np.float64)
    scores = _score_rows(t, table.rows, table.measure)
    return np.where(table.usable, scores, 0.0)


def best_match(tile_smoothed: np.ndarray, cache: "EmoticonCache") -> Choice:
    """Best emoticon for a tile by histogram correlation."""
    return pick_best(score_all(tile_smoothed, cache.correlation), cache.ids)


__all__ = [
    "CorrelationTable",
    "prepare_vector",
    "prepare_table",
    "score",
    "score_all",
    "best_match",
]
