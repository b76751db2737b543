# emoji_mosaic/__init__.py
"""
emoji_mosaic package.

Purpose:
  Rebuild an image as a grid of emoticons chosen by colour-histogram
  similarity. See emojify.py for the CLI.

Public API:
  MosaicConfig        : validated run configuration.
  load_emoticon_dir   : build an EmoticonCache from a directory of PNGs.
  build_emoticon_cache: build an EmoticonCache from in-memory bitmaps.
  match_image         : tile an image and match every tile (optionally in parallel).
  render_text         : glyph rows of a MatchGrid.
  render_image        : RGBA composite of a MatchGrid.
  colour_convert      : RGB <-> HCL transforms.
  histogram           : 3-D HCL histograms and Gaussian smoothing.
  match               : correlation and peak matchers.

Quick start:
  from emoji_mosaic import MosaicConfig, load_emoticon_dir, match_image, render_text
  cache = load_emoticon_dir(Path("emoticons"), MosaicConfig())
  grid = match_image(rgb, alpha, cache)
  print(render_text(grid, cache))
"""

__version__ = "0.1.0"

from . import colour_convert
from . import core_types
from . import histogram
from . import match
from . import utils

from .core_types import (  # noqa: E402
    ConfigError,
    EmptyEmoticonSetError,
    InvalidImageError,
    MatchCancelled,
    MatchGrid,
    MatchResult,
    MosaicConfig,
    MosaicError,
)
from .emoticons import EmoticonCache, build_emoticon_cache, load_emoticon_dir  # noqa: E402
from .render import render_image, render_text  # noqa: E402
from .tiler import match_image  # noqa: E402

__all__ = [
    "__version__",
    "colour_convert",
    "core_types",
    "histogram",
    "match",
    "utils",
    "MosaicConfig",
    "MosaicError",
    "InvalidImageError",
    "EmptyEmoticonSetError",
    "ConfigError",
    "MatchCancelled",
    "MatchGrid",
    "MatchResult",
    "EmoticonCache",
    "build_emoticon_cache",
    "load_emoticon_dir",
    "match_image",
    "render_text",
    "render_image",
]
