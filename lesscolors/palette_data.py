from __future__ import annotations

"""
Palette definitions and builders.

A Palette is an ordered, read-only sequence of ColorValue entries. Component
arrays for every colour space are computed once at construction, so queries only
convert the query colour.

Exports:
  Palette
    Palette(colors)
    Palette.from_hex(["#rrggbb", ...])
    Palette.from_rgba_u8(uint8 [N,4] or [H,W,4])
    Palette.from_image(PixelGrid | uint8 [H,W,4])
    .find_closest(query, space=LAB, include_alpha=False) -> ColorValue
    .find_closest_index(query, space=LAB, include_alpha=False) -> int
    .closest_indices(components, space=LAB, include_alpha=False) -> int array
"""

from typing import Dict, Iterable, Iterator, Sequence, TYPE_CHECKING, Union

import numpy as np
from numpy.typing import NDArray

from .colour_convert import convert_components
from .colour_value import ColorValue
from .core_types import (
    ColorSpace,
    Components,
    ConversionDomainError,
    InvalidArgument,
    U8Image,
    assert_u8_image_rgba,
    u8_to_unit_array,
    unit_to_u8_array,
)
from .distance import distances_to_many

if TYPE_CHECKING:  # pragma: no cover
    from .pixel_grid import PixelGrid


def _column_major_rows(image: np.ndarray) -> np.ndarray:
    """(H,W,C) -> (W*H,C) visiting x in the outer loop and y in the inner loop."""
    return np.ascontiguousarray(image.transpose(1, 0, 2)).reshape(-1, image.shape[-1])


def _build_views(
    components: Components, spaces: Sequence[ColorSpace]
) -> Dict[ColorSpace, Components]:
    """Convert every entry into every space, grouped by source space."""
    views: Dict[ColorSpace, Components] = {}
    for target in ColorSpace:
        out = np.empty(components.shape, dtype=np.float32)
        for source in set(spaces):
            rows = np.array([s is source for s in spaces], dtype=bool)
            out[rows] = convert_components(components[rows], source, target)
        out.setflags(write=False)
        views[target] = out
    return views


class Palette:
    """Ordered reference colours with a brute-force nearest-colour query."""

    __slots__ = ("_colors", "_views")

    def __init__(self, colors: Iterable[ColorValue]) -> None:
        entries = tuple(colors)
        for entry in entries:
            if not isinstance(entry, ColorValue):
                raise InvalidArgument(f"palette entries must be ColorValue, got {entry!r}")
        self._colors = entries
        if entries:
            comps = np.array([c.components for c in entries], dtype=np.float32)
            self._views = _build_views(comps, [c.space for c in entries])
        else:
            self._views = {}

    # Builders

    @classmethod
    def from_hex(cls, hex_list: Iterable[str]) -> "Palette":
        return cls(ColorValue.from_hex(hx) for hx in hex_list)

    @classmethod
    def from_rgba_u8(cls, rgba: np.ndarray) -> "Palette":
        """
        Build from 8-bit RGBA rows. A (N,4) array keeps its row order; a (H,W,4)
        image is read in column-major order (see from_image).
        """
        arr = np.asarray(rgba)
        if arr.ndim == 3:
            arr = _column_major_rows(assert_u8_image_rgba(arr))
        if arr.dtype != np.uint8 or arr.ndim != 2 or arr.shape[-1] != 4:
            raise InvalidArgument("expected uint8 (N,4) or (H,W,4) RGBA data")
        comps = u8_to_unit_array(arr)
        return cls(ColorValue.from_components(row, ColorSpace.RGB) for row in comps)

    @classmethod
    def from_image(cls, image: Union["PixelGrid", U8Image]) -> "Palette":
        """
        Every pixel becomes one entry, duplicates included. Scan order is
        column-major: for x in range(width): for y in range(height). Ties in
        find_closest go to the earliest entry in this order.
        """
        from .pixel_grid import PixelGrid

        if isinstance(image, PixelGrid):
            rows = _column_major_rows(image.components)
            return cls(ColorValue.from_components(row, image.space) for row in rows)
        return cls.from_rgba_u8(assert_u8_image_rgba(np.asarray(image)))

    # Sequence protocol

    def __len__(self) -> int:
        return len(self._colors)

    def __getitem__(self, index: int) -> ColorValue:
        return self._colors[index]

    def __iter__(self) -> Iterator[ColorValue]:
        return iter(self._colors)

    def __repr__(self) -> str:
        return f"Palette(size={len(self._colors)})"

    def components(self, space: ColorSpace | str) -> Components:
        """Read-only (N,4) float32 entries in space."""
        self._require_entries()
        return self._views[ColorSpace.parse(space)]

    def to_rgba_u8(self) -> NDArray[np.uint8]:
        """Entries as uint8 (N,4) RGBA rows in palette order."""
        if not self._colors:
            return np.zeros((0, 4), dtype=np.uint8)
        return unit_to_u8_array(self._views[ColorSpace.RGB])

    # Queries

    def _require_entries(self) -> None:
        if not self._colors:
            raise InvalidArgument("empty palette")

    def find_closest_index(
        self,
        query: ColorValue,
        space: ColorSpace | str = ColorSpace.LAB,
        include_alpha: bool = False,
    ) -> int:
        """
        Index of the nearest entry in space. Linear scan; on equal distances the
        earliest entry wins. include_alpha adds alpha as a fourth RGB axis.
        """
        self._require_entries()
        space = ColorSpace.parse(space)
        q = query.convert(space).as_array()
        return self._closest_index_for_row(q, space, include_alpha)

    def find_closest(
        self,
        query: ColorValue,
        space: ColorSpace | str = ColorSpace.LAB,
        include_alpha: bool = False,
    ) -> ColorValue:
        """Nearest entry to query (LAB uses CIEDE2000)."""
        return self._colors[self.find_closest_index(query, space, include_alpha)]

    def closest_indices(
        self,
        components: np.ndarray,
        space: ColorSpace | str = ColorSpace.LAB,
        include_alpha: bool = False,
    ) -> NDArray[np.int64]:
        """
        Nearest entry index for each (N,4) row of components already in space.
        Raises ConversionDomainError if any row holds a non-finite component.
        """
        self._require_entries()
        space = ColorSpace.parse(space)
        rows = np.asarray(components, dtype=np.float32).reshape(-1, 4)
        if not np.all(np.isfinite(rows)):
            raise ConversionDomainError("cannot match non-finite colour components")
        out = np.empty((rows.shape[0],), dtype=np.int64)
        for i in range(rows.shape[0]):
            out[i] = self._closest_index_for_row(rows[i], space, include_alpha)
        return out

    def _closest_index_for_row(
        self, row: np.ndarray, space: ColorSpace, include_alpha: bool = False
    ) -> int:
        dists = distances_to_many(row, self._views[space], space, include_alpha)
        # argmin returns the first minimum, i.e. a strict '<' scan in palette order.
        return int(np.argmin(dists))


__all__ = ["Palette"]
