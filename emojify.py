#!/usr/bin/env python3
"""
emojify.py
Rebuild an image as a mosaic of emoticons chosen by HCL colour histograms.

Usage:
  python emojify.py INPUT --emoticons DIR [--out PNG] [--text-out TXT]
                    [--algorithm correlation|peak] [--measure pearson|intersection|dot]
                    [--depth N] [--tile-size W [H]] [--radius R] [--sigma S]
                    [--max-peaks K] [--peak-scale H C L] [--workers N]
                    [--height H] [--preview PNG] [--debug]

Algorithms:
  correlation : compare whole smoothed histograms (default, Pearson).
  peak        : compare the dominant colour clusters of each histogram.

Input:
  Any Pillow-readable image. Pixels below the opacity threshold are ignored.
  DIR holds PNG emoticons named by hex codepoints (1f600.png, 1f1e9-1f1ea.png).

Output:
  The glyph mosaic is printed to stdout. --out writes the composite PNG,
  --text-out the glyph text, --preview the depth-reduced input.
"""

from __future__ import annotations

import argparse
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

import numpy as np

from emoji_mosaic.constants import (
    ALGORITHMS,
    CORRELATION_MEASURES,
    DEFAULT_ALGORITHM,
    DEFAULT_COLOR_DEPTH,
    DEFAULT_CORRELATION_MEASURE,
    DEFAULT_MAX_PEAKS,
    DEFAULT_PEAK_DISTANCE_SCALE,
    DEFAULT_SMOOTHING_RADIUS,
    DEFAULT_SMOOTHING_SIGMA,
)
from emoji_mosaic.core_types import MatchCancelled, MosaicConfig, MosaicError
from emoji_mosaic.emoticons import load_emoticon_dir
from emoji_mosaic.image_io import load_image_rgba, resize_rgba_height, save_image_rgba
from emoji_mosaic.render import render_image, render_text, reduced_preview, usage_report
from emoji_mosaic.tiler import match_image
from emoji_mosaic.utils import (
    debug_log,
    default_workers,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
    set_debug_logging,
    warn,
)

# CLI args


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments for the emoticon mosaic.

    Returns:
      argparse.Namespace with:
        src: input image Path
        emoticons: emoticon directory Path
        out / text_out / preview: optional output Paths
        algorithm, measure, depth, tile_size, radius, sigma, max_peaks,
        peak_scale: matcher settings
        workers: tile worker processes (1 = in-process)
        height: optional int max input height
        debug: bool for verbose details
    """
    parser = argparse.ArgumentParser(
        prog="emojify",
        description="Rebuild an image as a grid of emoticons.",
    )
    parser.add_argument("src", type=Path, help="Input image")
    parser.add_argument(
        "--emoticons", type=Path, required=True, help="Directory of emoticon PNGs"
    )
    parser.add_argument("--out", type=Path, default=None, help="Composite PNG output")
    parser.add_argument(
        "--text-out", type=Path, default=None, help="Write the glyph mosaic to this file"
    )
    parser.add_argument(
        "--preview", type=Path, default=None, help="Write the depth-reduced input as PNG"
    )
    parser.add_argument(
        "--algorithm",
        choices=list(ALGORITHMS),
        default=DEFAULT_ALGORITHM,
        help="Matching algorithm.",
    )
    parser.add_argument(
        "--measure",
        choices=list(CORRELATION_MEASURES),
        default=DEFAULT_CORRELATION_MEASURE,
        help="Similarity measure for the correlation algorithm.",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=DEFAULT_COLOR_DEPTH,
        help="Quantisation levels per HCL channel.",
    )
    parser.add_argument(
        "--tile-size",
        type=int,
        nargs="+",
        metavar="W [H]",
        default=None,
        help="Tile size in pixels. One value for square tiles. Omit for the emoticon size.",
    )
    parser.add_argument(
        "--radius",
        type=int,
        default=DEFAULT_SMOOTHING_RADIUS,
        help="Histogram smoothing radius in buckets (0 disables).",
    )
    parser.add_argument(
        "--sigma", type=float, default=DEFAULT_SMOOTHING_SIGMA, help="Smoothing sigma"
    )
    parser.add_argument(
        "--max-peaks",
        type=int,
        default=DEFAULT_MAX_PEAKS,
        help="Clusters kept per histogram (peak algorithm).",
    )
    parser.add_argument(
        "--peak-scale",
        type=float,
        nargs=3,
        metavar=("H", "C", "L"),
        default=list(DEFAULT_PEAK_DISTANCE_SCALE),
        help="Hue / chroma / lightness weights of the cluster distance.",
    )
    parser.add_argument(
        "--workers", type=int, default=default_workers(), help="Tile worker processes"
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Resize so height<=H before tiling. Omit for no resize.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    args = parser.parse_args(argv)
    if args.tile_size is not None and len(args.tile_size) not in (1, 2):
        parser.error("--tile-size takes W or W H")
    return args


def build_config(args: argparse.Namespace) -> MosaicConfig:
    """MosaicConfig from parsed args. Raises ConfigError on bad values."""
    tile_size = None
    if args.tile_size is not None:
        w = int(args.tile_size[0])
        h = int(args.tile_size[-1])
        tile_size = (w, h)
    return MosaicConfig(
        color_depth=args.depth,
        tile_size=tile_size,
        smoothing_radius=args.radius,
        smoothing_sigma=args.sigma,
        match_algorithm=args.algorithm,
        correlation_measure=args.measure,
        max_peaks=args.max_peaks,
        peak_distance_scale=tuple(float(v) for v in args.peak_scale),
    )


# Run


def run(args: argparse.Namespace, cancel_event: Optional[threading.Event] = None) -> str:
    """Load, match, render and save. Returns the glyph mosaic text."""
    t_start = time.perf_counter()
    config = build_config(args)

    print_banner(args.src.name)
    rgb, alpha = load_image_rgba(args.src)
    height0, width0 = rgb.shape[0], rgb.shape[1]
    rgb, alpha = resize_rgba_height(rgb, alpha, args.height)
    height, width = rgb.shape[0], rgb.shape[1]
    if (width, height) != (width0, height0):
        debug_log(f"resized {width0}x{height0} -> {width}x{height}")

    t_load = time.perf_counter()
    cache = load_emoticon_dir(args.emoticons, config)
    t_cache = time.perf_counter()

    print_config_line(
        "match",
        [
            ("Algorithm", config.match_algorithm),
            ("Depth", config.color_depth),
            ("Tile", "x".join(str(v) for v in cache.tile_size)),
            ("Emoticons", len(cache)),
            ("Workers", args.workers),
        ],
        debug=False,
    )
    if args.debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Measure", config.correlation_measure),
                    ("Radius", config.smoothing_radius),
                    ("Sigma", config.smoothing_sigma),
                    ("Max peaks", config.max_peaks),
                    ("Peak scale", config.peak_distance_scale),
                ]
            )
        )

    grid = match_image(
        rgb,
        alpha,
        cache,
        workers=args.workers,
        cancel_event=cancel_event,
        progress=True,
    )
    t_match = time.perf_counter()

    text = render_text(grid, cache)
    print(text, flush=True)

    if args.text_out is not None:
        args.text_out.parent.mkdir(parents=True, exist_ok=True)
        args.text_out.write_text(text + "\n", encoding="utf-8")
        log(f"Wrote {args.text_out.name}")
    if args.out is not None:
        written = save_image_rgba(args.out, render_image(grid, cache))
        log(f"Wrote {written.name} | grid={grid.cols}x{grid.rows}")
    if args.preview is not None:
        preview = np.concatenate(
            [reduced_preview(rgb, config.color_depth, args.workers), alpha[..., None]],
            axis=-1,
        )
        written = save_image_rgba(args.preview, preview)
        log(f"Wrote {written.name}")

    if grid.fallback_count:
        warn(f"{grid.fallback_count:,} tile(s) had no positive match")
    log("Emoticons used:")
    for asset_id, glyph, count in usage_report(grid, cache)[:10]:
        log(f"  {glyph}  {asset_id}: {count:,}")

    if args.debug:
        debug_log(
            f"Total {format_seconds_compact(time.perf_counter() - t_start)}  "
            f"(load={format_seconds_compact(t_load - t_start)}, "
            f"emoticons={format_seconds_compact(t_cache - t_load)}, "
            f"match={format_seconds_compact(t_match - t_cache)})"
        )
    else:
        log(f"Total time {format_seconds_compact(time.perf_counter() - t_start)}")
    return text


# Entry point


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point. Exit 2 for a missing input, 1 for a failed run."""
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)
    set_debug_logging(args.debug)

    if not args.src.exists():
        error(f"not found: {args.src}")
        sys.exit(2)

    try:
        run(args)
    except MatchCancelled:
        error("cancelled")
        sys.exit(1)
    except MosaicError as exc:
        error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
