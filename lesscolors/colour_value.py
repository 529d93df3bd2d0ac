from __future__ import annotations

"""
ColorValue: an immutable colour tagged with its colour space.

Components are c1..c4 with alpha always in c4. Values are rounded to float32 on
construction so two colours built from the same inputs compare equal.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .colour_convert import convert_components
from .core_types import (
    ColorSpace,
    Components,
    ConversionDomainError,
    InvalidArgument,
    RGBATuple,
    hex_to_rgba,
    pack_argb,
    rgba_to_hex,
    unit_to_u8,
    unpack_argb,
)


def _f32(value: float) -> float:
    return float(np.float32(value))


@dataclass(frozen=True)
class ColorValue:
    """Four float32 components plus a space tag. Conversions return new values."""

    c1: float
    c2: float
    c3: float
    c4: float
    space: ColorSpace = ColorSpace.RGB

    def __post_init__(self) -> None:
        object.__setattr__(self, "space", ColorSpace.parse(self.space))
        for name in ("c1", "c2", "c3", "c4"):
            object.__setattr__(self, name, _f32(getattr(self, name)))

    # Constructors

    @classmethod
    def from_rgba(cls, r: float, g: float, b: float, alpha: float = 1.0) -> "ColorValue":
        """RGBA floats in [0,1]."""
        return cls(r, g, b, alpha, ColorSpace.RGB)

    @classmethod
    def from_rgb_ints(cls, r: int, g: int, b: int, alpha: int = 255) -> "ColorValue":
        """8-bit RGBA integers (0..255)."""
        return cls(r / 255.0, g / 255.0, b / 255.0, alpha / 255.0, ColorSpace.RGB)

    @classmethod
    def from_argb_int(cls, argb: int) -> "ColorValue":
        """ARGB word, alpha in the most significant byte."""
        r, g, b, a = unpack_argb(int(argb))
        return cls.from_rgb_ints(r, g, b, a)

    @classmethod
    def from_hex(cls, hex_str: str) -> "ColorValue":
        """'#rgb', '#rrggbb' or '#rrggbbaa'."""
        return cls.from_rgb_ints(*hex_to_rgba(hex_str))

    @classmethod
    def from_components(
        cls, components: Components | Tuple[float, ...], space: ColorSpace
    ) -> "ColorValue":
        """Build from a 4-long row (e.g. one pixel of a PixelGrid)."""
        if len(components) != 4:
            raise InvalidArgument("expected 4 components")
        c1, c2, c3, c4 = (float(v) for v in components)
        return cls(c1, c2, c3, c4, space)

    # Accessors

    @property
    def components(self) -> Tuple[float, float, float, float]:
        return (self.c1, self.c2, self.c3, self.c4)

    @property
    def alpha(self) -> float:
        return self.c4

    def as_array(self) -> Components:
        """Components as a float32 array of shape (4,)."""
        return np.array(self.components, dtype=np.float32)

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in self.components)

    # Conversion

    def convert(self, target_space: ColorSpace | str) -> "ColorValue":
        """
        Return this colour in target_space. A colour already in target_space is
        returned as is. Raises ConversionDomainError for non-finite components.
        """
        target = ColorSpace.parse(target_space)
        if not self.is_finite():
            raise ConversionDomainError(f"cannot convert non-finite colour {self!r}")
        if target is self.space:
            return self
        out = convert_components(self.as_array(), self.space, target)
        return ColorValue.from_components(out, target)

    def to_rgb_ints(self) -> RGBATuple:
        """8-bit (r, g, b, a), clamped and rounded half up."""
        rgb = self.convert(ColorSpace.RGB)
        return (
            unit_to_u8(rgb.c1),
            unit_to_u8(rgb.c2),
            unit_to_u8(rgb.c3),
            unit_to_u8(rgb.c4),
        )

    def to_packed_rgba(self) -> int:
        """Unsigned 32-bit ARGB word: a<<24 | r<<16 | g<<8 | b."""
        r, g, b, a = self.to_rgb_ints()
        return pack_argb(r, g, b, a)

    def to_hex(self) -> str:
        return rgba_to_hex(self.to_rgb_ints())

    # Distance

    def distance(self, other: "ColorValue", space: Optional[ColorSpace] = None) -> float:
        """Distance to other in space; defaults to this colour's own space."""
        from .distance import distance as _distance

        return _distance(self, other, self.space if space is None else space)

    def __str__(self) -> str:
        return (
            f"{self.space.name}({self.c1:.4g}, {self.c2:.4g}, {self.c3:.4g}, "
            f"alpha={self.c4:.4g})"
        )


__all__ = ["ColorValue"]
