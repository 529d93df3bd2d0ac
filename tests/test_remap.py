"""Tests for lesscolors.remap: whole-image nearest palette replacement."""

import numpy as np
import pytest

from lesscolors.colour_value import ColorValue
from lesscolors.core_types import ColorSpace, ConversionDomainError, InvalidArgument
from lesscolors.palette_data import Palette
from lesscolors.pixel_grid import PixelGrid
from lesscolors.remap import ImageModifier, nearest_indices, remap, remap_rgba_u8


def _random_rgba(h: int, w: int, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    rgba = rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)
    rgba[..., 3] = 255
    return rgba


def _random_palette(n: int, seed: int) -> Palette:
    rng = np.random.default_rng(seed)
    rows = rng.integers(0, 256, size=(n, 4), dtype=np.uint8)
    rows[:, 3] = 255
    return Palette.from_rgba_u8(rows)


class TestEndToEnd:
    def test_two_by_one_in_rgb(self):
        rgba = np.array([[[255, 0, 0, 255], [0, 255, 0, 255]]], dtype=np.uint8)
        palette = Palette.from_hex(["#ff0000", "#0000ff"])
        grid = PixelGrid.from_rgba_u8(rgba)
        out = remap(grid, palette, ColorSpace.RGB).to_rgba_u8()
        # green is sqrt(2) from red and from blue; the tie goes to red, the first entry
        assert out.tolist() == [[[255, 0, 0, 255], [255, 0, 0, 255]]]
        assert (grid.width, grid.height) == (2, 1)

    def test_default_space_lab(self):
        rgba = np.array([[[250, 10, 10, 255], [20, 20, 20, 255], [235, 235, 235, 255]]], dtype=np.uint8)
        palette = Palette.from_hex(["#000000", "#ffffff", "#ff0000"])
        out = remap_rgba_u8(rgba, palette)
        assert out[0, :, :3].tolist() == [[255, 0, 0], [0, 0, 0], [255, 255, 255]]

    def test_every_output_pixel_is_a_palette_colour(self):
        palette = _random_palette(12, seed=1)
        out = remap_rgba_u8(_random_rgba(9, 11, seed=2), palette, ColorSpace.OKLAB)
        allowed = {tuple(row) for row in palette.to_rgba_u8().tolist()}
        assert {tuple(px) for px in out.reshape(-1, 4).tolist()} <= allowed

    def test_empty_palette(self):
        grid = PixelGrid.from_rgba_u8(_random_rgba(2, 2, seed=0))
        with pytest.raises(InvalidArgument):
            remap(grid, Palette([]))


class TestPixelIndependence:
    @pytest.mark.parametrize("space", [ColorSpace.RGB, ColorSpace.LAB])
    def test_matches_per_pixel_find_closest(self, space):
        rgba = _random_rgba(5, 6, seed=4)
        palette = _random_palette(8, seed=5)
        grid = PixelGrid.from_rgba_u8(rgba)
        expected = [
            palette.find_closest(grid.get_pixel(x, y), space).to_rgb_ints()
            for y in range(grid.height)
            for x in range(grid.width)
        ]
        remap(grid, palette, space)
        got = [grid.get_pixel(x, y).to_rgb_ints() for y in range(grid.height) for x in range(grid.width)]
        assert got == expected

    def test_idempotent_and_palette_untouched(self):
        palette = _random_palette(10, seed=6)
        before = palette.to_rgba_u8().copy()
        rgba = _random_rgba(7, 7, seed=7)
        first = remap_rgba_u8(rgba, palette)
        second = remap_rgba_u8(rgba, palette)
        assert np.array_equal(first, second)
        assert np.array_equal(remap_rgba_u8(first, palette), first)
        assert np.array_equal(palette.to_rgba_u8(), before)

    @pytest.mark.parametrize("space", list(ColorSpace))
    def test_threads_do_not_change_output(self, space):
        palette = _random_palette(16, seed=8)
        rgba = _random_rgba(20, 30, seed=9)
        single = remap_rgba_u8(rgba, palette, space, workers=1)
        threaded = remap_rgba_u8(rgba, palette, space, workers=4)
        assert np.array_equal(single, threaded)

    def test_duplicate_entries_tie_break_with_threads(self):
        red = ColorValue.from_rgb_ints(255, 0, 0)
        palette = Palette([red, ColorValue.from_rgb_ints(0, 0, 255), red])
        rows = np.tile(np.array([[1.0, 0.0, 0.0, 1.0]], dtype=np.float32), (50, 1))
        idx = nearest_indices(rows, palette, ColorSpace.RGB, workers=4)
        assert set(idx.tolist()) == {0}


class TestImageModifier:
    def test_chaining_with_grid_palette(self):
        palette_grid = PixelGrid.from_rgba_u8(
            np.array([[[0, 0, 0, 255], [255, 255, 255, 255]]], dtype=np.uint8)
        )
        grid = PixelGrid.from_rgba_u8(
            np.array([[[30, 30, 30, 255], [220, 220, 220, 255]]], dtype=np.uint8)
        )
        modifier = ImageModifier(grid)
        assert modifier.reduce_colours_by_palette(palette_grid) is modifier
        assert modifier.grid.to_rgba_u8()[0, :, 0].tolist() == [0, 255]

    def test_non_rgb_grid_keeps_space(self):
        grid = PixelGrid.from_rgba_u8(_random_rgba(3, 3, seed=10)).convert(ColorSpace.LAB)
        palette = Palette.from_hex(["#000000", "#ffffff"])
        remap(grid, palette, ColorSpace.RGB)
        assert grid.space is ColorSpace.LAB
        assert set(grid.to_rgba_u8()[..., 0].reshape(-1).tolist()) <= {0, 255}


class TestNonFinitePixels:
    def test_nan_pixel_in_comparison_space_raises(self):
        grid = PixelGrid(np.array([[[np.nan, 0, 0, 1], [0, 0, 0, 1]]]), ColorSpace.RGB)
        palette = Palette.from_hex(["#00ff00", "#000000"])
        with pytest.raises(ConversionDomainError):
            remap(grid, palette, ColorSpace.RGB)
        # the grid is left untouched
        assert np.isnan(grid.components[0, 0, 0])
        assert grid.components[0, 1].tolist() == [0.0, 0.0, 0.0, 1.0]

    def test_matches_find_closest_behaviour(self):
        palette = Palette.from_hex(["#00ff00", "#000000"])
        pixel = ColorValue(float("nan"), 0.0, 0.0, 1.0, ColorSpace.RGB)
        with pytest.raises(ConversionDomainError):
            palette.find_closest(pixel, ColorSpace.RGB)

    def test_nan_pixel_in_other_space_raises(self):
        grid = PixelGrid(np.array([[[0.5, np.nan, 0.5, 1]]]), ColorSpace.RGB)
        with pytest.raises(ConversionDomainError):
            remap(grid, Palette.from_hex(["#000000"]), ColorSpace.LAB)

    def test_nearest_indices_threaded_rejects_inf(self):
        rows = np.zeros((8, 4), dtype=np.float32)
        rows[5, 2] = np.inf
        with pytest.raises(ConversionDomainError):
            nearest_indices(rows, Palette.from_hex(["#000000", "#ffffff"]), ColorSpace.RGB, workers=2)


class TestIncludeAlpha:
    def test_alpha_changes_the_match_in_rgb(self):
        rgba = np.array([[[0, 0, 0, 255]]], dtype=np.uint8)
        palette = Palette.from_hex(["#00000000", "#0a0a0aff"])
        without = remap(PixelGrid.from_rgba_u8(rgba), palette, ColorSpace.RGB).to_rgba_u8()
        assert without.tolist() == [[[0, 0, 0, 0]]]
        with_alpha = remap(
            PixelGrid.from_rgba_u8(rgba), palette, ColorSpace.RGB, include_alpha=True
        ).to_rgba_u8()
        assert with_alpha.tolist() == [[[10, 10, 10, 255]]]
