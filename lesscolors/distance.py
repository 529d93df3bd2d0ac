from __future__ import annotations

"""
Colour distance metrics.

Exports:
  rgb_distance(a, b, include_alpha=False)  Euclidean over sRGB [0..1]
  xyz_distance(a, b)                       Euclidean over XYZ
  oklab_distance(a, b)                     Euclidean over Oklab
  lab_distance(a, b)                       CIEDE2000 over CIE Lab
  distance(a, b, space, include_alpha)     dispatch on space
  distances_to_many(query, palette, space) one query row vs (N,3|4) palette rows
"""

import math

import numpy as np
from numpy.typing import NDArray

from .colour_convert import delta_e2000_pair, delta_e2000_vec, euclidean_vec
from .colour_value import ColorValue
from .core_types import ColorSpace, InvalidArgument


def _euclidean(a: ColorValue, b: ColorValue, n: int) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a.components[:n], b.components[:n])))


def rgb_distance(a: ColorValue, b: ColorValue, include_alpha: bool = False) -> float:
    """Euclidean sRGB distance; alpha counts as a fourth axis when include_alpha."""
    ra = a.convert(ColorSpace.RGB)
    rb = b.convert(ColorSpace.RGB)
    return _euclidean(ra, rb, 4 if include_alpha else 3)


def xyz_distance(a: ColorValue, b: ColorValue) -> float:
    return _euclidean(a.convert(ColorSpace.XYZ), b.convert(ColorSpace.XYZ), 3)


def oklab_distance(a: ColorValue, b: ColorValue) -> float:
    return _euclidean(a.convert(ColorSpace.OKLAB), b.convert(ColorSpace.OKLAB), 3)


def lab_distance(a: ColorValue, b: ColorValue) -> float:
    """CIEDE2000 difference."""
    la = a.convert(ColorSpace.LAB)
    lb = b.convert(ColorSpace.LAB)
    return delta_e2000_pair(la.components[:3], lb.components[:3])


def distance(
    a: ColorValue,
    b: ColorValue,
    space: ColorSpace | str = ColorSpace.LAB,
    include_alpha: bool = False,
) -> float:
    """Distance between a and b measured in space. include_alpha applies to RGB."""
    space = ColorSpace.parse(space)
    if space is ColorSpace.RGB:
        return rgb_distance(a, b, include_alpha)
    if space is ColorSpace.LAB:
        return lab_distance(a, b)
    if space is ColorSpace.OKLAB:
        return oklab_distance(a, b)
    if space is ColorSpace.XYZ:
        return xyz_distance(a, b)
    raise InvalidArgument(f"unsupported colour space: {space!r}")


def distances_to_many(
    query: np.ndarray,
    palette: np.ndarray,
    space: ColorSpace,
    include_alpha: bool = False,
) -> NDArray[np.float64]:
    """
    Distances from one query row to every palette row. Both must already be in
    space; rows are (..., 4) components. Alpha only participates for RGB with
    include_alpha.
    """
    space = ColorSpace.parse(space)
    width = 4 if (include_alpha and space is ColorSpace.RGB) else 3
    q = np.asarray(query, dtype=np.float64)[:width]
    p = np.asarray(palette, dtype=np.float64)[:, :width]
    if space is ColorSpace.LAB:
        return delta_e2000_vec(q, p)
    return euclidean_vec(q, p)


__all__ = [
    "rgb_distance",
    "xyz_distance",
    "oklab_distance",
    "lab_distance",
    "distance",
    "distances_to_many",
]
