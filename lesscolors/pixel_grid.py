from __future__ import annotations

"""
PixelGrid: a height x width grid of colours sharing one colour space.

Storage is a float32 NumPy array of shape (H, W, 4), row-major, indexed [y, x],
alpha last. Coordinates in the public API are (x, y).
"""

from typing import Iterator, Tuple

import numpy as np
from numpy.typing import NDArray

from .colour_convert import convert_components, convert_components_threaded
from .colour_value import ColorValue
from .core_types import (
    ColorSpace,
    Components,
    InvalidArgument,
    U8Image,
    assert_u8_image_rgba,
    u8_to_unit_array,
    unit_to_u8_array,
)


class PixelGrid:
    """Mutable grid of colour components in a single colour space."""

    __slots__ = ("_data", "_space")

    def __init__(self, components: np.ndarray, space: ColorSpace | str = ColorSpace.RGB) -> None:
        data = np.asarray(components, dtype=np.float32)
        if data.ndim != 3 or data.shape[-1] != 4:
            raise InvalidArgument(f"expected (H,W,4) components, got shape {data.shape}")
        self._data = np.array(data, dtype=np.float32, copy=True)
        self._space = ColorSpace.parse(space)

    @classmethod
    def from_rgba_u8(cls, rgba: U8Image) -> "PixelGrid":
        """Wrap decoded 8-bit RGBA samples (H,W,4) as an RGB grid."""
        arr = assert_u8_image_rgba(np.asarray(rgba))
        return cls(u8_to_unit_array(arr), ColorSpace.RGB)

    @classmethod
    def filled(cls, width: int, height: int, colour: ColorValue) -> "PixelGrid":
        """A width x height grid with every pixel set to colour."""
        if width <= 0 or height <= 0:
            raise InvalidArgument("grid dimensions must be positive")
        data = np.broadcast_to(colour.as_array(), (height, width, 4))
        return cls(data, colour.space)

    # Shape

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        """(width, height)"""
        return self.width, self.height

    @property
    def space(self) -> ColorSpace:
        return self._space

    @property
    def components(self) -> Components:
        """Underlying (H,W,4) array. Writes go straight into the grid."""
        return self._data

    def _check_xy(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise InvalidArgument(
                f"pixel ({x}, {y}) outside {self.width}x{self.height} grid"
            )

    # Pixel access

    def get_pixel(self, x: int, y: int) -> ColorValue:
        self._check_xy(x, y)
        return ColorValue.from_components(self._data[y, x], self._space)

    def set_pixel(self, x: int, y: int, colour: ColorValue) -> None:
        """Store colour at (x, y), converting it to the grid's space first."""
        self._check_xy(x, y)
        self._data[y, x] = colour.convert(self._space).as_array()

    def __iter__(self) -> Iterator[Tuple[int, int, ColorValue]]:
        """Yield (x, y, colour) row by row."""
        for y in range(self.height):
            for x in range(self.width):
                yield x, y, ColorValue.from_components(self._data[y, x], self._space)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return self._space is other._space and np.array_equal(self._data, other._data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PixelGrid({self.width}x{self.height}, {self._space.name})"

    # Conversion / export

    def copy(self) -> "PixelGrid":
        return PixelGrid(self._data, self._space)

    def convert(self, target_space: ColorSpace | str, workers: int = 1) -> "PixelGrid":
        """A new grid in target_space; this grid is left untouched."""
        target = ColorSpace.parse(target_space)
        if target is self._space:
            return self.copy()
        out = convert_components_threaded(self._data, self._space, target, workers)
        return PixelGrid(out, target)

    def to_rgba_u8(self) -> U8Image:
        """8-bit RGBA (H,W,4), clamped and rounded half up."""
        data = self._data
        if self._space is not ColorSpace.RGB:
            data = convert_components(data, self._space, ColorSpace.RGB)
        return unit_to_u8_array(data)

    def to_argb_words(self) -> NDArray[np.uint32]:
        """(H,W) uint32 ARGB words, alpha in the most significant byte."""
        rgba = self.to_rgba_u8().astype(np.uint32)
        return (
            (rgba[..., 3] << 24) | (rgba[..., 0] << 16) | (rgba[..., 1] << 8) | rgba[..., 2]
        ).astype(np.uint32)


__all__ = ["PixelGrid"]
