"""Tests for lesscolors.pixel_grid: storage, pixel access and export."""

import numpy as np
import pytest

from lesscolors.colour_value import ColorValue
from lesscolors.core_types import ColorSpace, InvalidArgument
from lesscolors.pixel_grid import PixelGrid


def _rgba(h: int, w: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)


class TestConstruction:
    def test_from_rgba_u8_dimensions(self):
        grid = PixelGrid.from_rgba_u8(_rgba(3, 5))
        assert grid.width == 5
        assert grid.height == 3
        assert grid.shape == (5, 3)
        assert grid.space is ColorSpace.RGB

    def test_rejects_rgb_only(self):
        with pytest.raises(InvalidArgument):
            PixelGrid.from_rgba_u8(np.zeros((2, 2, 3), dtype=np.uint8))

    def test_rejects_bad_components(self):
        with pytest.raises(InvalidArgument):
            PixelGrid(np.zeros((2, 4)), ColorSpace.RGB)

    def test_filled(self):
        grid = PixelGrid.filled(3, 2, ColorValue.from_rgb_ints(1, 2, 3))
        assert grid.to_rgba_u8()[..., :3].reshape(-1, 3).tolist() == [[1, 2, 3]] * 6

    def test_copies_input(self):
        data = np.zeros((1, 1, 4), dtype=np.float32)
        grid = PixelGrid(data)
        data[0, 0, 0] = 1.0
        assert grid.components[0, 0, 0] == 0.0


class TestPixelAccess:
    def test_get_pixel_uses_x_y(self):
        rgba = np.zeros((2, 3, 4), dtype=np.uint8)
        rgba[1, 2] = (9, 8, 7, 255)
        grid = PixelGrid.from_rgba_u8(rgba)
        assert grid.get_pixel(2, 1).to_rgb_ints() == (9, 8, 7, 255)

    def test_set_pixel_converts_to_grid_space(self):
        grid = PixelGrid.from_rgba_u8(np.zeros((1, 1, 4), dtype=np.uint8))
        lab_red = ColorValue.from_rgb_ints(255, 0, 0).convert(ColorSpace.LAB)
        grid.set_pixel(0, 0, lab_red)
        assert grid.get_pixel(0, 0).space is ColorSpace.RGB
        assert grid.get_pixel(0, 0).to_rgb_ints() == (255, 0, 0, 255)

    @pytest.mark.parametrize("xy", [(-1, 0), (0, -1), (3, 0), (0, 2)])
    def test_out_of_bounds(self, xy):
        grid = PixelGrid.from_rgba_u8(_rgba(2, 3))
        with pytest.raises(InvalidArgument):
            grid.get_pixel(*xy)

    def test_iteration_is_row_major(self):
        grid = PixelGrid.from_rgba_u8(_rgba(2, 2))
        assert [(x, y) for x, y, _c in grid] == [(0, 0), (1, 0), (0, 1), (1, 1)]


class TestConversion:
    def test_convert_returns_new_grid(self):
        grid = PixelGrid.from_rgba_u8(_rgba(4, 4))
        before = grid.components.copy()
        lab = grid.convert(ColorSpace.LAB)
        assert lab.space is ColorSpace.LAB
        assert np.array_equal(grid.components, before)

    def test_round_trip_bytes(self):
        rgba = _rgba(6, 7, seed=3)
        grid = PixelGrid.from_rgba_u8(rgba)
        back = grid.convert(ColorSpace.OKLAB).to_rgba_u8()
        assert np.max(np.abs(back.astype(int) - rgba.astype(int))) <= 1

    def test_argb_words(self):
        rgba = np.array([[[0x12, 0x34, 0x56, 0x78]]], dtype=np.uint8)
        words = PixelGrid.from_rgba_u8(rgba).to_argb_words()
        assert words.dtype == np.uint32
        assert int(words[0, 0]) == 0x78123456
        assert int(words[0, 0]) == PixelGrid.from_rgba_u8(rgba).get_pixel(0, 0).to_packed_rgba()

    def test_equality(self):
        rgba = _rgba(2, 2)
        assert PixelGrid.from_rgba_u8(rgba) == PixelGrid.from_rgba_u8(rgba)
        assert PixelGrid.from_rgba_u8(rgba) != PixelGrid.from_rgba_u8(rgba).convert("xyz")
