from __future__ import annotations

"""
Image-level palette remapping.

Every pixel is replaced by its nearest palette entry. Pixels are independent, so
distinct colours are matched once and scattered back through the inverse index;
the result is the same as calling Palette.find_closest on each pixel.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Union

import numpy as np
from numpy.typing import NDArray

from .core_types import ColorSpace, ConversionDomainError, U8Image
from .palette_data import Palette
from .pixel_grid import PixelGrid
from .utils import debug_log, key_value_pairs_to_string, split_rows_into_parts


def _require_finite(rows: np.ndarray) -> None:
    if not np.all(np.isfinite(rows)):
        raise ConversionDomainError("cannot remap non-finite colour components")


def _unique_rows_with_inverse(rows: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Unique (N,4) rows and the inverse index that rebuilds rows from them."""
    if rows.shape[0] == 0:
        return rows, np.zeros((0,), dtype=np.int64)
    uniques, inverse = np.unique(rows, axis=0, return_inverse=True)
    return uniques, inverse.reshape(-1).astype(np.int64, copy=False)


def nearest_indices(
    components: np.ndarray,
    palette: Palette,
    space: ColorSpace | str = ColorSpace.LAB,
    workers: int = 1,
    include_alpha: bool = False,
) -> NDArray[np.int64]:
    """
    Palette index for each (N,4) row of components already in space.
    Non-finite rows raise ConversionDomainError.

    With workers > 1 the rows are split into contiguous chunks matched on a
    thread pool; each chunk fills its own slice of the result.
    """
    space = ColorSpace.parse(space)
    rows = np.asarray(components, dtype=np.float32).reshape(-1, 4)
    palette.components(space)  # raises InvalidArgument for an empty palette
    _require_finite(rows)
    n_rows = rows.shape[0]
    if workers <= 1 or n_rows < 2 * max(1, workers):
        return palette.closest_indices(rows, space, include_alpha)

    out = np.empty((n_rows,), dtype=np.int64)
    spans = split_rows_into_parts(n_rows, workers)

    def _match(span: tuple[int, int]) -> None:
        start, end = span
        out[start:end] = palette.closest_indices(rows[start:end], space, include_alpha)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        for _ in pool.map(_match, spans):
            pass
    return out


def remap(
    grid: PixelGrid,
    palette: Palette,
    space: ColorSpace | str = ColorSpace.LAB,
    workers: int = 1,
    debug: bool = False,
    include_alpha: bool = False,
) -> PixelGrid:
    """
    Replace every pixel of grid (in place) with its nearest palette entry,
    measured in space. Returns the same grid; dimensions are unchanged.

    Args:
      grid    : PixelGrid in any colour space
      palette : non-empty Palette, never modified
      space   : comparison space; LAB uses CIEDE2000, others Euclidean
      workers : threads for conversion and matching
      debug   : print match statistics
      include_alpha : RGB only, alpha counts as a fourth axis

    Raises ConversionDomainError if any pixel holds a non-finite component.
    """
    space = ColorSpace.parse(space)
    palette.components(space)

    compare = grid.convert(space, workers=workers).components
    flat = compare.reshape(-1, 4)
    _require_finite(flat)
    uniques, inverse = _unique_rows_with_inverse(flat)
    idx = nearest_indices(
        uniques, palette, space, workers=workers, include_alpha=include_alpha
    )

    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Pixels", int(flat.shape[0])),
                    ("Unique colours", int(uniques.shape[0])),
                    ("Palette size", len(palette)),
                    ("Space", space.name),
                    ("Workers", workers),
                ]
            )
        )

    replacement = palette.components(grid.space)[idx[inverse]]
    grid.components[...] = replacement.reshape(grid.components.shape)
    return grid


def remap_rgba_u8(
    rgba: U8Image,
    palette: Palette,
    space: ColorSpace | str = ColorSpace.LAB,
    workers: int = 1,
) -> U8Image:
    """Convenience wrapper for decoded 8-bit RGBA arrays."""
    grid = PixelGrid.from_rgba_u8(rgba)
    return remap(grid, palette, space, workers=workers).to_rgba_u8()


class ImageModifier:
    """Chainable wrapper around a PixelGrid."""

    def __init__(self, grid: PixelGrid) -> None:
        self._grid = grid

    def reduce_colours_by_palette(
        self,
        palette: Union[Palette, PixelGrid],
        space: ColorSpace | str = ColorSpace.LAB,
        workers: int = 1,
    ) -> "ImageModifier":
        """
        Replace each pixel by the closest palette colour. A PixelGrid palette
        contributes every one of its pixels (see Palette.from_image).
        """
        if isinstance(palette, PixelGrid):
            palette = Palette.from_image(palette)
        remap(self._grid, palette, space, workers=workers)
        return self

    @property
    def grid(self) -> PixelGrid:
        return self._grid


__all__ = ["nearest_indices", "remap", "remap_rgba_u8", "ImageModifier"]
