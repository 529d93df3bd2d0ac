from __future__ import annotations

import io
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .core_types import InvalidArgument, U8Image, assert_u8_image_rgba

"""
Image I/O helpers: decode any Pillow-readable file to 8-bit RGBA (sRGB) and
encode RGBA arrays back with a requested format string.
"""

try:
    from PIL import ImageCms  # ICC conversion if profile present
except ImportError:  # pragma: no cover
    ImageCms = None  # type: ignore[assignment]

PathLike = Union[str, Path]

# Formats Pillow cannot write with an alpha channel.
_NO_ALPHA_FORMATS = {"JPEG", "BMP", "PPM", "EPS", "PCX"}
_FORMAT_ALIASES = {"JPG": "JPEG", "TIF": "TIFF"}


def normalise_format(fmt: str) -> str:
    """'png' -> 'PNG', 'jpg' -> 'JPEG'. Raises InvalidArgument for unknown formats."""
    key = fmt.strip().lstrip(".").upper()
    key = _FORMAT_ALIASES.get(key, key)
    Image.init()
    if key not in Image.SAVE:
        raise InvalidArgument(f"unsupported output format: {fmt!r}")
    return key


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes and ImageCms is not None:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im,
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is None:
                return im.convert("RGBA")
            return im2
        except (ImageCms.PyCMSError, OSError, ValueError):
            return im.convert("RGBA")

    return im.convert("RGBA")


def load_image_rgba(path: PathLike) -> U8Image:
    """Decode an image file to uint8 (H,W,4) sRGB RGBA. OSError propagates."""
    with Image.open(path) as im0:
        im = _convert_to_srgb_rgba(im0)
        arr = np.array(im, dtype=np.uint8)
    return assert_u8_image_rgba(arr)


def save_image_rgba(path: PathLike, rgba: U8Image, fmt: str = "png") -> Path:
    """
    Encode uint8 (H,W,4) RGBA to path using the Pillow format named by fmt.
    Formats without alpha support are written as RGB.
    """
    out_path = Path(path)
    arr = assert_u8_image_rgba(np.asarray(rgba))
    pil_format = normalise_format(fmt)
    im = Image.fromarray(np.ascontiguousarray(arr))
    if pil_format in _NO_ALPHA_FORMATS:
        im = im.convert("RGB")
    im.save(out_path, format=pil_format)
    return out_path


def is_image_file(path: PathLike) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


__all__ = [
    "normalise_format",
    "load_image_rgba",
    "save_image_rgba",
    "is_image_file",
]
