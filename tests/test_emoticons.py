from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from conftest import BLUE, GREEN, RED, solid
from emoji_mosaic.core_types import (
    ConfigError,
    EmptyEmoticonSetError,
    InvalidImageError,
    MosaicConfig,
    MosaicError,
)
from emoji_mosaic.emoticons import (
    build_asset,
    build_emoticon_cache,
    load_emoticon_dir,
    parse_codepoints,
)


def test_parse_codepoints():
    assert parse_codepoints("1f600") == [0x1F600]
    assert parse_codepoints("1F1E9-1f1ea") == [0x1F1E9, 0x1F1EA]


@pytest.mark.parametrize("stem", ["", "-", "smile", "1f600-zz", "110000"])
def test_parse_codepoints_rejects_bad_names(stem):
    with pytest.raises(ValueError):
        parse_codepoints(stem)


def test_build_asset_freezes_arrays():
    asset = build_asset("1f534", "\U0001F534", solid(RED)[..., :3], MosaicConfig(color_depth=4))
    assert asset.bitmap.shape == (4, 4, 4)
    assert asset.pixel_count == 16
    assert asset.size == (4, 4)
    for arr in (asset.bitmap, asset.histogram, asset.smoothed):
        assert not arr.flags.writeable


def test_empty_source_list_is_rejected():
    with pytest.raises(EmptyEmoticonSetError):
        build_emoticon_cache([], MosaicConfig())


def test_all_transparent_set_is_rejected():
    sources = [("1f534", "x", solid(RED, alpha=0))]
    with pytest.raises(EmptyEmoticonSetError):
        build_emoticon_cache(sources, MosaicConfig())


def test_transparent_asset_is_kept_next_to_visible_ones():
    cfg = MosaicConfig(color_depth=4)
    sources = [("1f534", "r", solid(RED)), ("1f535", "b", solid(BLUE, alpha=0))]
    cache = build_emoticon_cache(sources, cfg)
    assert len(cache) == 2
    assert cache.get("1f535").pixel_count == 0


def test_duplicate_ids_are_rejected():
    sources = [("1f534", "a", solid(RED)), ("1f534", "b", solid(BLUE))]
    with pytest.raises(MosaicError):
        build_emoticon_cache(sources, MosaicConfig())


def test_mixed_sizes_are_rejected():
    sources = [("1f534", "a", solid(RED, 4, 4)), ("1f535", "b", solid(BLUE, 5, 4))]
    with pytest.raises(InvalidImageError):
        build_emoticon_cache(sources, MosaicConfig())


def test_cache_is_sorted_by_id(make_cache):
    cache = make_cache([GREEN, BLUE, RED], MosaicConfig(color_depth=4))
    assert cache.ids == ("1f534", "1f535", "1f7e2")
    assert "1f535" in cache
    assert cache.get("1f7e2").glyph == "\U0001F7E2"


def test_tile_size_defaults_to_asset_size(make_cache):
    assert make_cache([RED], MosaicConfig(color_depth=4), size=6).tile_size == (6, 6)
    cfg = MosaicConfig(color_depth=4, tile_size=(3, 2))
    assert make_cache([RED], cfg, size=6).tile_size == (3, 2)


def test_load_emoticon_dir(emoticon_dir, capsys):
    cache = load_emoticon_dir(emoticon_dir, MosaicConfig(color_depth=8))
    assert cache.ids == ("1f534", "1f535", "1f7e2")
    assert cache.asset_size == (8, 8)
    assert cache.get("1f534").glyph == "\U0001F534"
    assert "not-a-codepoint.png" in capsys.readouterr().out


def test_load_emoticon_dir_without_pngs(tmp_path):
    with pytest.raises(EmptyEmoticonSetError):
        load_emoticon_dir(tmp_path, MosaicConfig())
    with pytest.raises(EmptyEmoticonSetError):
        load_emoticon_dir(tmp_path / "missing", MosaicConfig())


def test_load_emoticon_dir_keeps_alpha(tmp_path):
    rgba = solid(RED, 4, 4)
    rgba[:2, :, 3] = 0
    Image.fromarray(rgba).save(tmp_path / "1f534.png")
    cache = load_emoticon_dir(tmp_path, MosaicConfig(color_depth=4))
    assert cache.get("1f534").pixel_count == 8


@pytest.mark.parametrize(
    "kwargs",
    [
        {"color_depth": 1},
        {"color_depth": 65},
        {"tile_size": (0, 4)},
        {"smoothing_radius": -1},
        {"smoothing_sigma": 0.0},
        {"match_algorithm": "nearest"},
        {"correlation_measure": "cosine"},
        {"max_peaks": 0},
        {"peak_distance_scale": (1.0, -1.0, 1.0)},
        {"peak_falloff": 0.0},
        {"alpha_threshold": 300},
    ],
)
def test_config_validation(kwargs):
    with pytest.raises(ConfigError):
        MosaicConfig(**kwargs)


def test_config_defaults():
    cfg = MosaicConfig()
    assert cfg.color_depth == 16
    assert cfg.match_algorithm == "correlation"
    assert cfg.max_peaks == 5
    assert np.allclose(cfg.peak_distance_scale, (1.0, 1.0, 1.0))
