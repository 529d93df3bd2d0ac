from __future__ import annotations

"""
Core type aliases, the colour-space tag, error types, and lightweight helpers.
"""

import enum
from typing import Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBATuple = Tuple[int, int, int, int]
HexStr = str

U8Image = NDArray[np.uint8]  # (H, W, 4) RGBA
Components = NDArray[np.float32]  # (..., 4) colour components, alpha last
Channels = NDArray[np.float64]  # (..., 3) colour channels without alpha


class ColorSpace(enum.Enum):
    """Colour space tag carried by every colour value and pixel grid."""

    RGB = "rgb"
    LAB = "lab"
    OKLAB = "oklab"
    XYZ = "xyz"

    @classmethod
    def parse(cls, value: Union["ColorSpace", str]) -> "ColorSpace":
        """Accept a ColorSpace or its case-insensitive name."""
        if isinstance(value, ColorSpace):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        raise InvalidArgument(f"unknown colour space: {value!r}")


# Errors


class LessColorsError(Exception):
    """Base class for errors raised by lesscolors."""


class InvalidArgument(LessColorsError, ValueError):
    """Empty palette, unknown colour space, malformed input shapes or values."""


class ConversionDomainError(LessColorsError, ValueError):
    """A colour component is NaN or infinite."""


# Small helpers


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def unit_to_u8(value: float) -> int:
    """[0,1] float to 0..255 with clamping and round-half-up."""
    return int(clamp_value(value, 0.0, 1.0) * 255.0 + 0.5)


def u8_to_unit_array(values: np.ndarray) -> Components:
    """0..255 to float32 [0,1], rounded the same way as scalar r / 255.0."""
    return (np.asarray(values, dtype=np.float64) / 255.0).astype(np.float32)


def unit_to_u8_array(values: np.ndarray) -> NDArray[np.uint8]:
    """Vector form of unit_to_u8."""
    scaled = np.clip(values.astype(np.float64, copy=False), 0.0, 1.0) * 255.0 + 0.5
    return np.floor(scaled).astype(np.uint8)


def pack_argb(r: int, g: int, b: int, a: int) -> int:
    """Pack 8-bit channels into an unsigned ARGB word (alpha most significant)."""
    return ((a & 0xFF) << 24) | ((r & 0xFF) << 16) | ((g & 0xFF) << 8) | (b & 0xFF)


def unpack_argb(word: int) -> RGBATuple:
    """Inverse of pack_argb. Accepts signed 32-bit words too."""
    word &= 0xFFFFFFFF
    return ((word >> 16) & 0xFF, (word >> 8) & 0xFF, word & 0xFF, (word >> 24) & 0xFF)


def hex_to_rgba(hex_str: str) -> RGBATuple:
    """Parse '#rgb', '#rrggbb' or '#rrggbbaa' (hash optional) into an RGBA tuple."""
    s = hex_str.strip().lower()
    if s.startswith("#"):
        s = s[1:]
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) == 6:
        s += "ff"
    if len(s) != 8:
        raise InvalidArgument(f"hex colour must be '#rrggbb' or '#rgb': {hex_str!r}")
    try:
        value = int(s, 16)
    except ValueError:
        raise InvalidArgument(f"invalid hex colour: {hex_str!r}") from None
    return ((value >> 24) & 0xFF, (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)


def rgba_to_hex(rgba: Tuple[int, ...]) -> HexStr:
    """RGB(A) tuple to lowercase '#rrggbb'. Alpha is dropped."""
    return f"#{rgba[0]:02x}{rgba[1]:02x}{rgba[2]:02x}"


def assert_u8_image_rgba(image: np.ndarray) -> U8Image:
    """Validate a uint8 (H,W,4) image and return it typed as U8Image."""
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] != 4:
        raise InvalidArgument("expected uint8 (H,W,4) RGBA image")
    return image  # type: ignore[return-value]


__all__ = [
    # aliases / types
    "RGBATuple",
    "HexStr",
    "U8Image",
    "Components",
    "Channels",
    "ColorSpace",
    # errors
    "LessColorsError",
    "InvalidArgument",
    "ConversionDomainError",
    # helpers
    "clamp_value",
    "unit_to_u8",
    "u8_to_unit_array",
    "unit_to_u8_array",
    "pack_argb",
    "unpack_argb",
    "hex_to_rgba",
    "rgba_to_hex",
    "assert_u8_image_rgba",
]
