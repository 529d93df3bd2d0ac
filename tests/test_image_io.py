"""Tests for lesscolors.image_io: Pillow decode/encode of RGBA arrays."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from lesscolors.core_types import InvalidArgument
from lesscolors.image_io import is_image_file, load_image_rgba, normalise_format, save_image_rgba


def _sample() -> np.ndarray:
    rgba = np.zeros((3, 4, 4), dtype=np.uint8)
    rgba[..., 0] = np.arange(4, dtype=np.uint8) * 60
    rgba[..., 1] = np.arange(3, dtype=np.uint8)[:, None] * 100
    rgba[..., 2] = 7
    rgba[..., 3] = 255
    rgba[0, 0, 3] = 128
    return rgba


class TestNormaliseFormat:
    def test_aliases(self):
        assert normalise_format("png") == "PNG"
        assert normalise_format(".jpg") == "JPEG"

    def test_unknown(self):
        with pytest.raises(InvalidArgument):
            normalise_format("nope")


class TestRoundTrip:
    def test_png_is_lossless(self, tmp_path: Path) -> None:
        path = save_image_rgba(tmp_path / "out.png", _sample(), "png")
        assert np.array_equal(load_image_rgba(path), _sample())

    def test_jpeg_drops_alpha(self, tmp_path: Path) -> None:
        path = save_image_rgba(tmp_path / "out.jpg", _sample(), "jpg")
        with Image.open(path) as im:
            assert im.mode == "RGB"
        loaded = load_image_rgba(path)
        assert loaded.shape == (3, 4, 4)
        assert np.all(loaded[..., 3] == 255)

    def test_palette_mode_images_decode_to_rgba(self, tmp_path: Path) -> None:
        path = tmp_path / "p.png"
        Image.new("P", (2, 2), color=3).save(path)
        assert load_image_rgba(path).shape == (2, 2, 4)

    def test_missing_file_raises_oserror(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            load_image_rgba(tmp_path / "missing.png")


class TestIsImageFile:
    def test_detects(self, tmp_path: Path) -> None:
        good = save_image_rgba(tmp_path / "a.png", _sample())
        bad = tmp_path / "b.png"
        bad.write_text("not an image")
        assert is_image_file(good)
        assert not is_image_file(bad)
