from __future__ import annotations

import numpy as np

from conftest import BLUE, GREEN, RED
from emoji_mosaic.core_types import MosaicConfig
from emoji_mosaic.image_io import load_image_rgba, resize_rgba_height, save_image_rgba
from emoji_mosaic.render import reduced_preview, render_image, render_text, usage_report
from emoji_mosaic.tiler import match_image


def _two_by_two(make_cache, tile_size=None):
    cfg = MosaicConfig(color_depth=8, tile_size=tile_size)
    cache = make_cache([RED, GREEN, BLUE], cfg, size=4)
    step = tile_size[0] if tile_size else 4
    rgb = np.zeros((2 * step, 2 * step, 3), dtype=np.uint8)
    rgb[:step, :step] = RED
    rgb[:step, step:] = GREEN
    rgb[step:, :] = BLUE
    return cache, match_image(rgb, None, cache)


def test_render_text_rows(make_cache):
    cache, grid = _two_by_two(make_cache)
    assert render_text(grid, cache) == "\U0001F534\U0001F7E2\n\U0001F535\U0001F535"


def test_render_image_places_bitmaps(make_cache):
    cache, grid = _two_by_two(make_cache)
    img = render_image(grid, cache)
    assert img.shape == (8, 8, 4)
    assert tuple(img[0, 0]) == (*RED, 255)
    assert tuple(img[0, 7]) == (*GREEN, 255)
    assert tuple(img[7, 3]) == (*BLUE, 255)


def test_render_image_uses_asset_size_not_tile_size(make_cache):
    cache, grid = _two_by_two(make_cache, tile_size=(2, 2))
    assert (grid.rows, grid.cols) == (2, 2)
    assert render_image(grid, cache).shape == (8, 8, 4)


def test_usage_report(make_cache):
    cache, grid = _two_by_two(make_cache)
    assert usage_report(grid, cache) == [
        ("1f535", "\U0001F535", 2),
        ("1f534", "\U0001F534", 1),
        ("1f7e2", "\U0001F7E2", 1),
    ]


def test_reduced_preview_collapses_a_bucket_to_one_colour():
    rgb = np.zeros((2, 3, 3), dtype=np.uint8)
    rgb[0] = (200, 30, 30)
    rgb[1] = (201, 31, 29)
    preview = reduced_preview(rgb, 4, workers=2)
    assert preview.shape == rgb.shape and preview.dtype == np.uint8
    assert (preview == preview[0, 0]).all()


def test_png_round_trip(tmp_path):
    rgba = np.zeros((3, 5, 4), dtype=np.uint8)
    rgba[..., 0] = 200
    rgba[..., 3] = 128
    written = save_image_rgba(tmp_path / "sub" / "out.jpg", rgba)
    assert written.suffix == ".png" and written.exists()
    rgb, alpha = load_image_rgba(written)
    assert rgb.shape == (3, 5, 3)
    assert (alpha == 128).all()


def test_resize_never_upscales():
    rgb = np.zeros((10, 20, 3), dtype=np.uint8)
    alpha = np.full((10, 20), 255, dtype=np.uint8)
    small_rgb, small_alpha = resize_rgba_height(rgb, alpha, 5)
    assert small_rgb.shape == (5, 10, 3) and small_alpha.shape == (5, 10)
    same_rgb, _ = resize_rgba_height(rgb, alpha, 40)
    assert same_rgb is rgb
