from __future__ import annotations

"""
Colour conversions and metrics (sRGB, CIE XYZ, CIE Lab, Oklab; D65).

Channel arrays have shape (..., 3) and are float64 internally. Component arrays
have shape (..., 4) with alpha last; alpha is copied through untouched.

Exports:
  rgb_to_linear(srgb) / linear_to_rgb(linear)
  rgb_to_xyz(rgb) / xyz_to_rgb(xyz)
  xyz_to_lab(xyz) / lab_to_xyz(lab)
  xyz_to_oklab(xyz) / oklab_to_xyz(oklab)
  rgb_to_lab(rgb) / lab_to_rgb(lab)
  rgb_to_oklab(rgb) / oklab_to_rgb(oklab)
  convert_channels(channels, src, dst)
  convert_components(components, src, dst)
  convert_components_threaded(components, src, dst, workers)
  delta_e2000_pair(lab1, lab2)
  delta_e2000_vec(src_lab, cand_lab)
  euclidean_vec(src, cands)
  rgb_ints_to_lab(r, g, b, alpha) / lab_to_rgb_ints(l, a, b, alpha)
"""

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .core_types import (
    Channels,
    ColorSpace,
    Components,
    ConversionDomainError,
    InvalidArgument,
    unit_to_u8,
)
from .utils import split_rows_into_parts

# Linear sRGB -> XYZ (D65)
_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)
_XYZ_TO_RGB = np.linalg.inv(_RGB_TO_XYZ)

# Reference white (D65)
WHITE_D65 = np.array([0.95047, 1.00000, 1.08883], dtype=np.float64)
_LAB_E = 216.0 / 24389.0
_LAB_K = 24389.0 / 27.0

# Oklab: XYZ -> LMS, then cube-rooted LMS -> Lab
_XYZ_TO_LMS = np.array(
    [
        [0.8189330101, 0.3618667424, -0.1288597137],
        [0.0329845436, 0.9293118715, 0.0361456387],
        [0.0482003018, 0.2643662691, 0.6338517070],
    ],
    dtype=np.float64,
)
_LMS_TO_XYZ = np.linalg.inv(_XYZ_TO_LMS)
_LMS_TO_OKLAB = np.array(
    [
        [0.2104542553, 0.7936177850, -0.0040720468],
        [1.9779984951, -2.4285922050, 0.4505937099],
        [0.0259040371, 0.7827717662, -0.8086757660],
    ],
    dtype=np.float64,
)
_OKLAB_TO_LMS = np.linalg.inv(_LMS_TO_OKLAB)


def _as_channels(values: np.ndarray | Sequence[float]) -> Channels:
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape[-1:] != (3,):
        raise InvalidArgument(f"expected (..., 3) channels, got shape {arr.shape}")
    return arr


def _apply_matrix(matrix: np.ndarray, channels: Channels) -> Channels:
    return channels @ matrix.T


# sRGB gamma


def rgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB (non-linear 0..1) to linear RGB (0..1). Vectorised.
    Args:
      srgb: array of any shape in 0..1 (float)
    Returns:
      float64 array of the same shape
    """
    srgb_f = np.asarray(srgb, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        linear = np.where(
            srgb_f <= 0.04045, srgb_f / 12.92, ((srgb_f + 0.055) / 1.055) ** 2.4
        )
    return linear


def linear_to_rgb(linear: np.ndarray) -> np.ndarray:
    """
    Linear RGB to sRGB, clamped per channel to [0,1].
    Out-of-gamut values are clipped before encoding so the power curve never sees
    a negative base.
    """
    lin = np.clip(np.asarray(linear, dtype=np.float64), 0.0, 1.0)
    return np.where(lin <= 0.0031308, lin * 12.92, 1.055 * lin ** (1.0 / 2.4) - 0.055)


# RGB <-> XYZ


def rgb_to_xyz(rgb: np.ndarray) -> Channels:
    """sRGB [0..1] (..., 3) to CIE XYZ (D65)."""
    return _apply_matrix(_RGB_TO_XYZ, rgb_to_linear(_as_channels(rgb)))


def xyz_to_rgb(xyz: np.ndarray) -> Channels:
    """CIE XYZ (D65) to sRGB [0..1], each channel clamped independently."""
    return linear_to_rgb(_apply_matrix(_XYZ_TO_RGB, _as_channels(xyz)))


# XYZ <-> Lab


def xyz_to_lab(xyz: np.ndarray) -> Channels:
    """CIE XYZ to CIE Lab against the D65 white. L in [0,100], a/b unbounded."""
    scaled = _as_channels(xyz) / WHITE_D65

    with np.errstate(invalid="ignore"):
        f = np.where(
            scaled > _LAB_E, np.cbrt(scaled), (_LAB_K * scaled + 16.0) / 116.0
        )

    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]
    out = np.empty(scaled.shape, dtype=np.float64)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out


def lab_to_xyz(lab: np.ndarray) -> Channels:
    """CIE Lab to CIE XYZ (D65). Exact inverse of xyz_to_lab."""
    lab_f = _as_channels(lab)
    L, a, b = lab_f[..., 0], lab_f[..., 1], lab_f[..., 2]
    fy = (L + 16.0) / 116.0
    fx = fy + a / 500.0
    fz = fy - b / 200.0

    fx3, fz3 = fx**3, fz**3
    x = np.where(fx3 > _LAB_E, fx3, (116.0 * fx - 16.0) / _LAB_K)
    y = np.where(L > _LAB_K * _LAB_E, fy**3, L / _LAB_K)
    z = np.where(fz3 > _LAB_E, fz3, (116.0 * fz - 16.0) / _LAB_K)
    return np.stack([x, y, z], axis=-1) * WHITE_D65


# XYZ <-> Oklab


def xyz_to_oklab(xyz: np.ndarray) -> Channels:
    """CIE XYZ to Oklab via LMS and a signed cube root."""
    lms = _apply_matrix(_XYZ_TO_LMS, _as_channels(xyz))
    return _apply_matrix(_LMS_TO_OKLAB, np.cbrt(lms))


def oklab_to_xyz(oklab: np.ndarray) -> Channels:
    """Oklab to CIE XYZ."""
    lms_ = _apply_matrix(_OKLAB_TO_LMS, _as_channels(oklab))
    return _apply_matrix(_LMS_TO_XYZ, lms_**3)


# sRGB shortcuts


def rgb_to_lab(rgb: np.ndarray) -> Channels:
    """
    sRGB to CIE Lab (D65).
    Accepts uint8 [0..255] or float [0..1]. Preserves shape (...,3).
    """
    arr = np.asarray(rgb)
    rgb_f = arr.astype(np.float64) / 255.0 if arr.dtype == np.uint8 else arr
    return xyz_to_lab(rgb_to_xyz(rgb_f))


def lab_to_rgb(lab: np.ndarray) -> Channels:
    """CIE Lab to sRGB [0..1], clamped."""
    return xyz_to_rgb(lab_to_xyz(lab))


def rgb_to_oklab(rgb: np.ndarray) -> Channels:
    """sRGB [0..1] to Oklab."""
    return xyz_to_oklab(rgb_to_xyz(rgb))


def oklab_to_rgb(oklab: np.ndarray) -> Channels:
    """Oklab to sRGB [0..1], clamped."""
    return xyz_to_rgb(oklab_to_xyz(oklab))


# Dispatch

_TO_XYZ = {
    ColorSpace.RGB: rgb_to_xyz,
    ColorSpace.LAB: lab_to_xyz,
    ColorSpace.OKLAB: oklab_to_xyz,
    ColorSpace.XYZ: lambda xyz: _as_channels(xyz),
}

_FROM_XYZ = {
    ColorSpace.RGB: xyz_to_rgb,
    ColorSpace.LAB: xyz_to_lab,
    ColorSpace.OKLAB: xyz_to_oklab,
    ColorSpace.XYZ: lambda xyz: _as_channels(xyz),
}


def convert_channels(
    channels: np.ndarray, src: ColorSpace, dst: ColorSpace
) -> Channels:
    """
    Convert (..., 3) channels between any two spaces, going through XYZ.
    Same-space conversion returns a float64 copy.
    """
    src = ColorSpace.parse(src)
    dst = ColorSpace.parse(dst)
    arr = _as_channels(channels)
    if src is dst:
        return arr.copy()
    return _FROM_XYZ[dst](_TO_XYZ[src](arr))


def convert_components(
    components: np.ndarray, src: ColorSpace, dst: ColorSpace
) -> Components:
    """
    Convert (..., 4) components between spaces. Alpha (last component) is copied.
    Raises ConversionDomainError on NaN or infinite input.
    """
    comps = np.asarray(components)
    if comps.shape[-1:] != (4,):
        raise InvalidArgument(f"expected (..., 4) components, got shape {comps.shape}")
    if not np.all(np.isfinite(comps)):
        raise ConversionDomainError("colour components must be finite")

    out = np.empty(comps.shape, dtype=np.float32)
    out[..., :3] = convert_channels(comps[..., :3], src, dst)
    out[..., 3] = comps[..., 3]
    return out


# Threaded helpers


def convert_components_threaded(
    components: np.ndarray, src: ColorSpace, dst: ColorSpace, workers: int
) -> Components:
    """
    Threaded component conversion by splitting rows (first axis).

    Args:
      components: float array [H,W,4] or [N,4]
      workers: number of threads; if <=1 or H<256, runs single-threaded
    Returns:
      float32 array with the same shape
    """
    height = int(components.shape[0])
    if workers <= 1 or height < 256:
        return convert_components(components, src, dst)

    chunks = split_rows_into_parts(height, workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(convert_components, components[s:e], src, dst)
            for s, e in chunks
        ]
        parts = [f.result() for f in futures]
    return np.concatenate(parts, axis=0)


# CIEDE2000


def delta_e2000_pair(
    lab1: Sequence[float] | NDArray[np.floating],
    lab2: Sequence[float] | NDArray[np.floating],
) -> float:
    """
    CIEDE2000 distance between two Lab colours.
    Scalar reference implementation.
    """
    L1, a1, b1 = float(lab1[0]), float(lab1[1]), float(lab1[2])
    L2, a2, b2 = float(lab2[0]), float(lab2[1]), float(lab2[2])

    C1 = math.hypot(a1, b1)
    C2 = math.hypot(a2, b2)
    C_bar = 0.5 * (C1 + C2)
    G = 0.5 * (1.0 - math.sqrt((C_bar**7) / (C_bar**7 + 25.0**7)))

    a1p = (1.0 + G) * a1
    a2p = (1.0 + G) * a2
    C1p = math.hypot(a1p, b1)
    C2p = math.hypot(a2p, b2)

    def _hue(a_val: float, b_val: float) -> float:
        if a_val == 0.0 and b_val == 0.0:
            return 0.0
        ang = math.degrees(math.atan2(b_val, a_val))
        return ang + 360.0 if ang < 0.0 else ang

    h1p = _hue(a1p, b1)
    h2p = _hue(a2p, b2)

    dLp = L2 - L1
    dCp = C2p - C1p

    dhp = h2p - h1p
    if C1p * C2p == 0.0:
        dhp = 0.0
    elif dhp > 180.0:
        dhp -= 360.0
    elif dhp < -180.0:
        dhp += 360.0

    dHp = 2.0 * math.sqrt(C1p * C2p) * math.sin(math.radians(dhp / 2.0))

    L_bar = 0.5 * (L1 + L2)
    C_bar_p = 0.5 * (C1p + C2p)

    if C1p * C2p == 0.0:
        h_bar_p = h1p + h2p
    else:
        h_sum = h1p + h2p
        h_diff = abs(h1p - h2p)
        if h_diff <= 180.0:
            h_bar_p = 0.5 * h_sum
        elif h_sum < 360.0:
            h_bar_p = 0.5 * (h_sum + 360.0)
        else:
            h_bar_p = 0.5 * (h_sum - 360.0)

    T = (
        1.0
        - 0.17 * math.cos(math.radians(h_bar_p - 30.0))
        + 0.24 * math.cos(math.radians(2.0 * h_bar_p))
        + 0.32 * math.cos(math.radians(3.0 * h_bar_p + 6.0))
        - 0.20 * math.cos(math.radians(4.0 * h_bar_p - 63.0))
    )

    d_theta = 30.0 * math.exp(-(((h_bar_p - 275.0) / 25.0) ** 2.0))
    R_c = 2.0 * math.sqrt((C_bar_p**7) / (C_bar_p**7 + 25.0**7))

    S_l = 1.0 + (0.015 * ((L_bar - 50.0) ** 2.0)) / math.sqrt(
        20.0 + ((L_bar - 50.0) ** 2.0)
    )
    S_c = 1.0 + 0.045 * C_bar_p
    S_h = 1.0 + 0.015 * C_bar_p * T
    R_t = -math.sin(math.radians(2.0 * d_theta)) * R_c

    kL = kC = kH = 1.0
    dE_sq = (
        (dLp / (kL * S_l)) ** 2
        + (dCp / (kC * S_c)) ** 2
        + (dHp / (kH * S_h)) ** 2
        + R_t * (dCp / (kC * S_c)) * (dHp / (kH * S_h))
    )
    return float(math.sqrt(max(dE_sq, 0.0)))


def delta_e2000_vec(src_lab: np.ndarray, cand_lab: np.ndarray) -> NDArray[np.float64]:
    """
    Row-wise CIEDE2000 for one source Lab vs many candidate Labs. Vectorised
    transcription of delta_e2000_pair.

    Args:
      src_lab: Lab [3]
      cand_lab: Lab [N,3]
    Returns:
      float64 array [N]
    """
    s = np.asarray(src_lab, dtype=np.float64).reshape(3)
    cands = np.asarray(cand_lab, dtype=np.float64).reshape(-1, 3)

    L1, a1, b1 = s[0], s[1], s[2]
    L2, a2, b2 = cands[:, 0], cands[:, 1], cands[:, 2]

    C1 = np.hypot(a1, b1)
    C2 = np.hypot(a2, b2)
    C_bar = 0.5 * (C1 + C2)
    C_bar7 = C_bar**7
    G = 0.5 * (1.0 - np.sqrt(C_bar7 / (C_bar7 + 25.0**7)))

    a1p = (1.0 + G) * a1
    a2p = (1.0 + G) * a2
    C1p = np.hypot(a1p, b1)
    C2p = np.hypot(a2p, b2)

    h1p = np.degrees(np.arctan2(b1, a1p)) % 360.0
    h2p = np.degrees(np.arctan2(b2, a2p)) % 360.0
    h1p = np.where((a1p == 0.0) & (b1 == 0.0), 0.0, h1p)
    h2p = np.where((a2p == 0.0) & (b2 == 0.0), 0.0, h2p)

    dLp = L2 - L1
    dCp = C2p - C1p

    achromatic = (C1p * C2p) == 0.0
    dhp = h2p - h1p
    dhp = np.where(dhp > 180.0, dhp - 360.0, dhp)
    dhp = np.where(dhp < -180.0, dhp + 360.0, dhp)
    dhp = np.where(achromatic, 0.0, dhp)

    dHp = 2.0 * np.sqrt(C1p * C2p) * np.sin(np.radians(dhp / 2.0))

    L_bar = 0.5 * (L1 + L2)
    C_bar_p = 0.5 * (C1p + C2p)

    h_sum = h1p + h2p
    h_diff = np.abs(h1p - h2p)
    h_bar_p = np.where(
        h_diff <= 180.0,
        0.5 * h_sum,
        np.where(h_sum < 360.0, 0.5 * (h_sum + 360.0), 0.5 * (h_sum - 360.0)),
    )
    h_bar_p = np.where(achromatic, h_sum, h_bar_p)

    T = (
        1.0
        - 0.17 * np.cos(np.radians(h_bar_p - 30.0))
        + 0.24 * np.cos(np.radians(2.0 * h_bar_p))
        + 0.32 * np.cos(np.radians(3.0 * h_bar_p + 6.0))
        - 0.20 * np.cos(np.radians(4.0 * h_bar_p - 63.0))
    )

    d_theta = 30.0 * np.exp(-(((h_bar_p - 275.0) / 25.0) ** 2.0))
    C_bar_p7 = C_bar_p**7
    R_c = 2.0 * np.sqrt(C_bar_p7 / (C_bar_p7 + 25.0**7))

    S_l = 1.0 + (0.015 * ((L_bar - 50.0) ** 2.0)) / np.sqrt(
        20.0 + ((L_bar - 50.0) ** 2.0)
    )
    S_c = 1.0 + 0.045 * C_bar_p
    S_h = 1.0 + 0.015 * C_bar_p * T
    R_t = -np.sin(np.radians(2.0 * d_theta)) * R_c

    dE_sq = (
        (dLp / S_l) ** 2
        + (dCp / S_c) ** 2
        + (dHp / S_h) ** 2
        + R_t * (dCp / S_c) * (dHp / S_h)
    )
    return np.sqrt(np.maximum(dE_sq, 0.0))


def euclidean_vec(src: np.ndarray, cands: np.ndarray) -> NDArray[np.float64]:
    """Euclidean distance from one row to each row of cands (same width)."""
    s = np.asarray(src, dtype=np.float64)
    c = np.asarray(cands, dtype=np.float64)
    diff = c - s
    return np.sqrt(np.sum(diff * diff, axis=-1))


# 8-bit helpers


def rgb_ints_to_lab(r: int, g: int, b: int, alpha: int = 255) -> Tuple[float, float, float, float]:
    """8-bit RGBA to (L, a, b, alpha) with alpha scaled to [0,1]."""
    lab = rgb_to_lab(np.array([r, g, b], dtype=np.uint8))
    return float(lab[0]), float(lab[1]), float(lab[2]), alpha / 255.0


def lab_to_rgb_ints(
    l: float, a: float, b: float, alpha: float = 1.0
) -> Tuple[int, int, int, int]:
    """(L, a, b, alpha in [0,1]) to clamped 8-bit RGBA."""
    rgb = lab_to_rgb(np.array([l, a, b], dtype=np.float64))
    return (
        unit_to_u8(float(rgb[0])),
        unit_to_u8(float(rgb[1])),
        unit_to_u8(float(rgb[2])),
        unit_to_u8(float(alpha)),
    )


__all__ = [
    "WHITE_D65",
    "rgb_to_linear",
    "linear_to_rgb",
    "rgb_to_xyz",
    "xyz_to_rgb",
    "xyz_to_lab",
    "lab_to_xyz",
    "xyz_to_oklab",
    "oklab_to_xyz",
    "rgb_to_lab",
    "lab_to_rgb",
    "rgb_to_oklab",
    "oklab_to_rgb",
    "convert_channels",
    "convert_components",
    "convert_components_threaded",
    "delta_e2000_pair",
    "delta_e2000_vec",
    "euclidean_vec",
    "rgb_ints_to_lab",
    "lab_to_rgb_ints",
]
