# emoji_mosaic/match/__init__.py
"""
Matcher API.

Provides:
  correlation.best_match(tile_smoothed, cache) -> (asset_id, score, fallback)
    Full smoothed-histogram comparison (pearson / intersection / dot).

  peaks.best_match(tile_smoothed, cache) -> (asset_id, score, fallback)
    Local-maxima clusters compared by share-weighted Gaussian similarity with
    greedy one-to-one assignment.

  best_match(tile_smoothed, cache)
    Dispatch on cache.config.match_algorithm.

Notes:
  - Both matchers break ties by the lowest asset id.
  - A tile with no usable match (degenerate histogram, or no score above
    zero) falls back to the lowest id with score 0.0 and fallback=True.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from . import correlation, peaks
from .common import Choice, pick_best

if TYPE_CHECKING:  # pragma: no cover
    from emoji_mosaic.emoticons import EmoticonCache


def best_match(tile_smoothed: np.ndarray, cache: "EmoticonCache") -> Choice:
    """Run the matcher selected by the cache's configuration."""
    if cache.config.match_algorithm == "peak":
        return peaks.best_match(tile_smoothed, cache)
    return correlation.best_match(tile_smoothed, cache)


__all__ = ["Choice", "pick_best", "best_match", "correlation", "peaks"]
