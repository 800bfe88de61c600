"""Tests for render.py — matplotlib debug renders."""

from __future__ import annotations

import numpy as np
import pytest

matplotlib = pytest.importorskip("matplotlib")

from planetgen.compositor import composite
from planetgen.params import MINIMAL_PLANET
from planetgen.raster import bake
from planetgen.render import biome_image, render_biome_map, render_heightmap, render_mesh_3d
from planetgen.topology import geodesic_sphere


class TestBiomeImage:
    def test_shape(self):
        img = biome_image(MINIMAL_PLANET, 12, 6)
        assert img.shape == (6, 12, 4)
        assert img.dtype == np.uint8

    def test_polar_rows_are_ice(self):
        from planetgen.biomes import BIOME_COLOURS, BiomeKind

        img = biome_image(MINIMAL_PLANET.replace(polar_cutoff=0.0), 8, 4)
        lo, hi = BIOME_COLOURS[BiomeKind.POLAR_ICE]
        assert np.all(img[..., 0] >= min(lo[0], hi[0]))


class TestRenderFiles:
    def test_biome_map(self, tmp_path):
        out = render_biome_map(MINIMAL_PLANET, tmp_path / "map.png", width=24, height=12)
        assert out.exists()
        assert out.stat().st_size > 0

    def test_heightmap(self, tmp_path):
        out = render_heightmap(bake(16, 8, MINIMAL_PLANET), tmp_path / "sub" / "height.png")
        assert out.exists()

    def test_mesh_3d(self, tmp_path):
        topo = geodesic_sphere(1)
        mesh = composite(topo.points, topo.indices, MINIMAL_PLANET)
        out = render_mesh_3d(mesh, tmp_path / "planet.png")
        assert out.exists()
