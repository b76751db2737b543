# emoji_mosaic/match/common.py
from __future__ import annotations

"""
Selection shared by both matchers.
"""

from typing import Sequence, Tuple

import numpy as np

from emoji_mosaic.constants import SCORE_TIE_EPSILON

# (asset_id, score, fallback)
Choice = Tuple[str, float, bool]


def pick_best(scores: np.ndarray, ids: Sequence[str]) -> Choice:
    """
    Pick the highest score. ids must be sorted ascending and aligned with scores.

    Scores within SCORE_TIE_EPSILON of the best are ties; the lowest id wins.
    When nothing scores above SCORE_TIE_EPSILON the tile has no usable match
    and falls back to the lowest id with score 0.0.
    """
    if len(ids) == 0:
        raise ValueError("no candidates to pick from")
    vals = np.asarray(scores, dtype=np.float64)
    top = float(vals.max())
    if not np.isfinite(top) or top <= SCORE_TIE_EPSILON:
        return ids[0], 0.0, True
    idx = int(np.flatnonzero(vals >= top - SCORE_TIE_EPSILON)[0])
    return ids[idx], float(vals[idx]), False


__all__ = ["Choice", "pick_best"]
