"""Tests for raster.py — heightmap baking, persistence and normal maps."""

from __future__ import annotations

import numpy as np
import pytest

from planetgen.errors import InvalidRasterDimensionsError
from planetgen.heightfield import sample
from planetgen.params import MINIMAL_PLANET
from planetgen.raster import (
    HeightmapRaster,
    bake,
    bake_normal_map,
    cell_for_direction,
    direction_for_cell,
)


@pytest.fixture(scope="module")
def raster():
    return bake(16, 8, MINIMAL_PLANET)


# ═══════════════════════════════════════════════════════════════════
# Baking
# ═══════════════════════════════════════════════════════════════════


class TestBake:
    def test_shape_and_dtype(self, raster):
        assert (raster.width, raster.height) == (16, 8)
        assert raster.pixels.shape == (8, 16)
        assert raster.pixels.dtype == np.float32

    def test_values_in_unit_range(self, raster):
        assert raster.pixels.min() >= 0.0
        assert raster.pixels.max() <= 1.0

    def test_pixels_read_only(self, raster):
        with pytest.raises(ValueError):
            raster.pixels[0, 0] = 0.5

    @pytest.mark.parametrize("w,h", [(0, 8), (8, 0), (-4, 4), (2.5, 4), (4, True)])
    def test_invalid_dimensions(self, w, h):
        with pytest.raises(InvalidRasterDimensionsError):
            bake(w, h, MINIMAL_PLANET)

    def test_invalid_dimensions_is_value_error(self):
        with pytest.raises(ValueError):
            bake(0, 0, MINIMAL_PLANET)

    def test_numpy_integers_accepted(self):
        assert bake(np.int64(4), np.int32(2), MINIMAL_PLANET).pixels.shape == (2, 4)

    def test_deterministic(self, raster):
        assert np.array_equal(bake(16, 8, MINIMAL_PLANET).pixels, raster.pixels)


class TestConsistency:
    @pytest.mark.parametrize("w,h", [(8, 4), (16, 8), (24, 12)])
    def test_cells_match_synthesizer(self, w, h):
        r = bake(w, h, MINIMAL_PLANET)
        for row in range(h):
            for col in range(0, w, 3):
                expected, _ = sample(direction_for_cell(row, col, w, h), MINIMAL_PLANET)
                assert r.value(row, col) == pytest.approx(expected, abs=1e-5)

    def test_sample_direction_uses_nearest_cell(self, raster):
        d = direction_for_cell(3, 5, raster.width, raster.height)
        assert raster.sample_direction(d) == raster.value(3, 5)

    def test_cell_direction_round_trip(self):
        w, h = 12, 6
        for row in range(h):
            for col in range(w):
                assert cell_for_direction(direction_for_cell(row, col, w, h), w, h) == (row, col)

    def test_direction_is_unit(self):
        d = np.array(direction_for_cell(2, 7, 10, 5))
        assert np.linalg.norm(d) == pytest.approx(1.0)

    def test_zero_direction_rejected(self):
        with pytest.raises(ValueError):
            cell_for_direction((0.0, 0.0, 0.0), 4, 2)


# ═══════════════════════════════════════════════════════════════════
# Persistence
# ═══════════════════════════════════════════════════════════════════


class TestRGBA:
    def test_greyscale_opaque(self, raster):
        rgba = raster.to_rgba8()
        assert rgba.shape == (8, 16, 4)
        assert rgba.dtype == np.uint8
        assert np.array_equal(rgba[..., 0], rgba[..., 1])
        assert np.array_equal(rgba[..., 1], rgba[..., 2])
        assert np.all(rgba[..., 3] == 255)

    def test_normalize_stretches(self):
        r = HeightmapRaster(width=2, height=1, pixels=np.array([[0.25, 0.5]]))
        assert r.to_rgba8()[0, :, 0].tolist() == [64, 128]
        assert r.to_rgba8(normalize=True)[0, :, 0].tolist() == [0, 255]

    def test_flat_raster_normalizes_to_black(self):
        r = HeightmapRaster(width=3, height=2, pixels=np.full((2, 3), 0.7))
        assert np.all(r.to_rgba8(normalize=True)[..., 0] == 0)

    def test_save_png(self, raster, tmp_path):
        import matplotlib.image as mpimg

        out = raster.save_png(tmp_path / "maps" / "height.png")
        assert out.exists()
        img = mpimg.imread(out)
        assert img.shape == (8, 16, 4)
        assert np.allclose(img * 255.0, raster.to_rgba8(), atol=0.5)


class TestNormalMap:
    def test_flat_raster_points_up(self):
        r = HeightmapRaster(width=4, height=3, pixels=np.full((3, 4), 0.5))
        nm = bake_normal_map(r)
        assert nm.shape == (3, 4, 4)
        assert np.all(nm[..., 0] == 128)
        assert np.all(nm[..., 1] == 128)
        assert np.all(nm[..., 2] == 255)
        assert np.all(nm[..., 3] == 255)

    def test_slope_tilts_normal(self):
        px = np.tile(np.linspace(0.0, 1.0, 8), (4, 1))
        nm = bake_normal_map(HeightmapRaster(width=8, height=4, pixels=px), strength=4.0)
        assert np.all(nm[:, 1:7, 0] < 128)

    def test_wraps_horizontally(self):
        px = np.tile(np.linspace(0.0, 1.0, 8), (4, 1))
        nm = bake_normal_map(HeightmapRaster(width=8, height=4, pixels=px), strength=4.0)
        # the seam column sees the drop from 1.0 back to 0.0
        assert np.all(nm[:, 0, 0] > 128)
