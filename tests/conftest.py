from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Sequence, Tuple

import numpy as np
import pytest
from PIL import Image

from emoji_mosaic.core_types import MosaicConfig
from emoji_mosaic.emoticons import EmoticonCache, build_emoticon_cache

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
PURPLE = (255, 0, 255)
GREY = (128, 128, 128)

# Circle emoticon codepoints for the colours above.
IDS: Dict[Tuple[int, int, int], str] = {
    RED: "1f534",
    BLUE: "1f535",
    GREEN: "1f7e2",
    PURPLE: "1f7e3",
}


def solid(colour: Sequence[int], width: int = 4, height: int = 4, alpha: int = 255) -> np.ndarray:
    """Uniform RGBA bitmap."""
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[..., :3] = np.asarray(colour, dtype=np.uint8)
    out[..., 3] = alpha
    return out


def glyph_of(asset_id: str) -> str:
    return "".join(chr(int(p, 16)) for p in asset_id.split("-"))


@pytest.fixture
def make_cache() -> Callable[..., EmoticonCache]:
    """Factory: cache of solid-colour emoticons for the given colours."""

    def _make(
        colours: Sequence[Tuple[int, int, int]],
        config: MosaicConfig | None = None,
        size: int = 4,
    ) -> EmoticonCache:
        cfg = config or MosaicConfig()
        sources = [
            (IDS[c], glyph_of(IDS[c]), solid(c, size, size)) for c in colours
        ]
        return build_emoticon_cache(sources, cfg)

    return _make


@pytest.fixture
def emoticon_dir(tmp_path: Path) -> Path:
    """Directory with red, green and blue 8x8 emoticon PNGs plus a stray file."""
    root = tmp_path / "emoticons"
    root.mkdir()
    for colour in (RED, GREEN, BLUE):
        Image.fromarray(solid(colour, 8, 8)).save(root / f"{IDS[colour]}.png")
    Image.fromarray(solid(GREY, 8, 8)).save(root / "not-a-codepoint.png")
    (root / "readme.txt").write_text("ignored", encoding="utf-8")
    return root
