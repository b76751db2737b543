from __future__ import annotations

import numpy as np
import pytest

from conftest import BLUE, GREEN, GREY, PURPLE, RED, solid
from emoji_mosaic.core_types import MosaicConfig
from emoji_mosaic.histogram import build_histogram, smooth_histogram
from emoji_mosaic.match import best_match, correlation, pick_best

DEPTH2 = MosaicConfig(color_depth=2, smoothing_radius=1)


def _tile_smoothed(rgba: np.ndarray, cfg: MosaicConfig) -> np.ndarray:
    hist = build_histogram(rgba[..., :3], cfg.color_depth, rgba[..., 3], cfg.alpha_threshold)
    return smooth_histogram(hist, cfg.smoothing_radius, cfg.smoothing_sigma)


@pytest.mark.parametrize("measure", ["pearson", "intersection", "dot"])
def test_solid_red_picks_red(make_cache, measure):
    cfg = MosaicConfig(color_depth=2, smoothing_radius=1, correlation_measure=measure)
    cache = make_cache([RED, GREEN, BLUE], cfg)
    asset_id, score, fallback = correlation.best_match(_tile_smoothed(solid(RED), cfg), cache)
    assert asset_id == "1f534"
    assert score > 0.0
    assert not fallback


def test_red_and_green_tie_at_depth_two(make_cache):
    cache = make_cache([GREEN, RED, BLUE], DEPTH2)
    scores = correlation.score_all(_tile_smoothed(solid(RED), DEPTH2), cache.correlation)
    # cache order is by id: 1f534 red, 1f535 blue, 1f7e2 green
    assert cache.ids == ("1f534", "1f535", "1f7e2")
    assert scores[0] == pytest.approx(1.0)
    assert scores[2] == pytest.approx(scores[0], abs=1e-12)
    assert scores[1] < scores[0]


def test_half_red_half_blue_prefers_red_over_purple(make_cache):
    cache = make_cache([RED, BLUE, PURPLE], DEPTH2)
    tile = solid(RED)
    tile[2:, :, :3] = BLUE
    smoothed = _tile_smoothed(tile, DEPTH2)
    scores = correlation.score_all(smoothed, cache.correlation)
    red, blue, purple = scores
    assert red == pytest.approx(blue, abs=1e-9)
    assert red > purple
    assert correlation.best_match(smoothed, cache)[0] == "1f534"


def test_grey_without_grey_emoticon_falls_back(make_cache):
    cfg = MosaicConfig(color_depth=16)
    cache = make_cache([RED, GREEN, BLUE], cfg)
    smoothed = _tile_smoothed(solid(GREY), cfg)
    scores = correlation.score_all(smoothed, cache.correlation)
    assert (scores < 0).all()
    assert correlation.best_match(smoothed, cache) == ("1f534", 0.0, True)


def test_transparent_tile_scores_zero_and_falls_back(make_cache):
    cache = make_cache([RED, BLUE], DEPTH2)
    smoothed = _tile_smoothed(solid(RED, alpha=0), DEPTH2)
    assert smoothed.sum() == 0
    assert (correlation.score_all(smoothed, cache.correlation) == 0.0).all()
    assert correlation.best_match(smoothed, cache) == ("1f534", 0.0, True)


def test_pairwise_score_degenerate_is_zero():
    flat = np.ones((2, 2, 2))
    peaked = np.zeros((2, 2, 2))
    peaked[0, 0, 0] = 1.0
    assert correlation.score(flat, peaked) == 0.0
    assert correlation.score(peaked, peaked) == pytest.approx(1.0)


def test_dispatch_and_determinism(make_cache):
    cache = make_cache([RED, GREEN, BLUE, PURPLE], MosaicConfig(color_depth=8))
    rng = np.random.default_rng(11)
    tile = np.concatenate(
        [rng.integers(0, 256, size=(6, 6, 3), dtype=np.uint8), np.full((6, 6, 1), 255, np.uint8)],
        axis=-1,
    )
    smoothed = _tile_smoothed(tile, cache.config)
    first = best_match(smoothed, cache)
    assert first == correlation.best_match(smoothed, cache)
    assert all(best_match(smoothed, cache) == first for _ in range(3))


def test_table_is_read_only(make_cache):
    cache = make_cache([RED, BLUE], DEPTH2)
    with pytest.raises(ValueError):
        cache.correlation.rows[0, 0] = 1.0


def test_pick_best_ties_and_fallback():
    ids = ["a", "b", "c"]
    assert pick_best(np.array([0.5, 0.7, 0.7 + 1e-12]), ids) == ("b", 0.7, False)
    assert pick_best(np.array([-1.0, 0.0, -0.2]), ids) == ("a", 0.0, True)
    assert pick_best(np.array([np.nan, np.nan, np.nan]), ids)[2] is True
