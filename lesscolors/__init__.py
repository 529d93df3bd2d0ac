"""
lesscolors package.

Purpose:
  Reduce an image's colours to a reference palette: each pixel becomes the
  perceptually closest palette colour. See lesscolors.cli for the command line.

Public API:
  ColorSpace    : colour space tag (RGB, LAB, OKLAB, XYZ).
  ColorValue    : immutable space-tagged colour with convert / to_packed_rgba.
  Palette       : ordered reference colours with find_closest.
  PixelGrid     : H x W grid of colours in one space.
  remap         : replace every pixel of a grid with its nearest palette entry.
  ImageModifier : chainable wrapper around remap.
  colour_convert: vectorised RGB/XYZ/Lab/Oklab transforms and CIEDE2000.
  distance      : rgb/xyz/oklab/lab (CIEDE2000) distance functions.
  image_io      : Pillow decode/encode to 8-bit RGBA arrays.

Quick start:
  from lesscolors import ColorValue, Palette, PixelGrid, remap
  palette = Palette.from_hex(["#000000", "#ffffff"])
  grid = PixelGrid.from_rgba_u8(rgba)
  remap(grid, palette)
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import colour_convert
from . import core_types
from . import distance
from . import utils

from .core_types import (  # noqa: E402,F401
    ColorSpace,
    ConversionDomainError,
    InvalidArgument,
    LessColorsError,
)
from .colour_value import ColorValue  # noqa: E402,F401
from .palette_data import Palette  # noqa: E402,F401
from .pixel_grid import PixelGrid  # noqa: E402,F401
from .remap import ImageModifier, remap, remap_rgba_u8  # noqa: E402,F401

__all__ = [
    "__version__",
    "colour_convert",
    "core_types",
    "distance",
    "utils",
    "ColorSpace",
    "ConversionDomainError",
    "InvalidArgument",
    "LessColorsError",
    "ColorValue",
    "Palette",
    "PixelGrid",
    "ImageModifier",
    "remap",
    "remap_rgba_u8",
]
