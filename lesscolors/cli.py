#!/usr/bin/env python3
"""
lesscolors command line.
Reduce an image's colours to those of a palette image or an explicit colour list.

Usage:
  lesscolors --input IN --palette PALETTE.png [--output OUT] [--output-type png]
             [--space lab|oklab|rgb|xyz] [--workers N] [--debug]
  lesscolors --input IN --colours "#000000,#ffffff,#ff0000" ...

Input:
  Any Pillow-readable image, decoded to 8-bit RGBA.

Palette:
  --palette/--lut: every pixel of the image becomes a palette entry, scanned
  column by column (x outer, y inner). --colours: comma separated hex list.

Output:
  Same size as the input. If OUTPUT is omitted, writes
  <stem>_lesscolors.<type> next to INPUT.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from .core_types import ColorSpace, LessColorsError
from .image_io import is_image_file, load_image_rgba, normalise_format, save_image_rgba
from .palette_data import Palette
from .pixel_grid import PixelGrid
from .remap import remap
from .utils import (
    colour_usage_report,
    debug_log,
    default_workers,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    print_config_line,
    warn,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lesscolors",
        description="Replace every pixel with the closest colour of a reference palette.",
    )
    parser.add_argument(
        "-input", "--input", dest="input", type=Path, help="Path to the input image"
    )
    parser.add_argument(
        "-output", "--output", dest="output", type=Path, help="The output image path"
    )
    parser.add_argument(
        "-output-type",
        "--output-type",
        dest="output_type",
        default="png",
        help="File format of the output image (default: png)",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "-palette",
        "--palette",
        "-lut",
        "--lut",
        dest="palette",
        type=Path,
        help="Path to the colour palette image",
    )
    source.add_argument(
        "--colours",
        "--colors",
        dest="colours",
        help='Comma separated palette colours, e.g. "#000000,#ffffff"',
    )
    parser.add_argument(
        "--space",
        choices=[s.value for s in ColorSpace],
        default=ColorSpace.LAB.value,
        help="Comparison colour space (lab uses CIEDE2000). Default: lab",
    )
    parser.add_argument(
        "--workers", type=int, default=default_workers(), help="Internal threads"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose mapping details")
    return parser


def validate_args(args: argparse.Namespace) -> Optional[str]:
    """Return an error message for unusable arguments, or None."""
    if args.input is None or not args.input.name:
        return "Missing input image path argument."
    if args.output is not None and (not args.output.name or args.output.is_dir()):
        return "Missing output image path argument."
    if args.palette is None and not args.colours:
        return "Missing palette image path argument."
    if not args.input.exists():
        return f"Couldn't find file: {args.input}"
    if args.palette is not None and not args.palette.exists():
        return f"Couldn't find file: {args.palette}"
    if args.palette is not None and not is_image_file(args.palette):
        return f"Not an image file: {args.palette}"
    if args.workers < 1:
        return "--workers must be at least 1"
    try:
        normalise_format(args.output_type)
    except LessColorsError as exc:
        return str(exc)
    return None


def default_output_path(input_path: Path, output_type: str) -> Path:
    suffix = output_type.strip().lstrip(".").lower()
    return input_path.with_name(f"{input_path.stem}_lesscolors.{suffix}")


def load_palette(args: argparse.Namespace) -> Palette:
    if args.colours:
        hexes = [part.strip() for part in args.colours.split(",") if part.strip()]
        return Palette.from_hex(hexes)
    return Palette.from_image(load_image_rgba(args.palette))


def process(args: argparse.Namespace) -> Path:
    """load -> build palette -> remap -> save. Returns the written path."""
    space = ColorSpace.parse(args.space)
    out_path = args.output or default_output_path(args.input, args.output_type)
    expected_format = normalise_format(args.output_type)
    if args.output is not None and out_path.suffix:
        try:
            suffix_format = normalise_format(out_path.suffix)
        except LessColorsError:
            suffix_format = None
        if suffix_format != expected_format:
            warn(f"{out_path.name} will be written as {expected_format}")

    t_start = time.perf_counter()
    palette = load_palette(args)
    rgba = load_image_rgba(args.input)
    t_loaded = time.perf_counter()

    grid = PixelGrid.from_rgba_u8(rgba)
    if args.debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Loaded", f"{grid.width}x{grid.height}"),
                    ("Palette size", len(palette)),
                    ("Load time", format_seconds_compact(t_loaded - t_start)),
                ]
            )
        )

    remap(grid, palette, space, workers=args.workers, debug=args.debug)
    mapped = grid.to_rgba_u8()
    t_mapped = time.perf_counter()

    save_image_rgba(out_path, mapped, args.output_type)

    log(f"Wrote {out_path.name} | size={grid.width}x{grid.height} | palette_size={len(palette)}")
    if args.debug:
        debug_log(f"map time {format_seconds_compact(t_mapped - t_loaded)}")
        debug_log("Colours used:")
        for hex_code, count in colour_usage_report(mapped):
            debug_log(f"  {hex_code}: {count:,}")
    return out_path


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point. Exit codes: 0 success, 1 I/O failure, 2 bad arguments.
    """
    enable_line_buffered_stdout()
    t_start = time.perf_counter()
    args = build_parser().parse_args(argv)

    problem = validate_args(args)
    if problem is not None:
        error(problem)
        return 2

    print_config_line(
        "run",
        [
            ("Space", args.space.upper()),
            ("Workers", args.workers),
            ("Output type", args.output_type),
        ],
        debug=args.debug,
    )

    try:
        process(args)
    except LessColorsError as exc:
        error(str(exc))
        return 2
    except OSError as exc:
        error(f"An error occurred while processing the images: {exc}")
        return 1

    log(f"Successfully finished in {format_total_duration_compact(time.perf_counter() - t_start)}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
