"""Tests for topology.py — UV and geodesic sphere builders."""

from __future__ import annotations

import numpy as np
import pytest

from planetgen import topology
from planetgen.diagnostics import (
    duplicate_position_count,
    inward_face_count,
    is_closed_manifold,
    min_triangle_area,
)
from planetgen.params import Topology
from planetgen.topology import (
    MIN_UV_RESOLUTION,
    build_topology,
    geodesic_counts,
    geodesic_sphere,
    uv_sphere,
)


# ═══════════════════════════════════════════════════════════════════
# Geodesic
# ═══════════════════════════════════════════════════════════════════


class TestGeodesic:
    @pytest.mark.parametrize("lod,verts,tris", [(0, 12, 20), (1, 42, 80), (2, 162, 320), (3, 642, 1280)])
    def test_counts(self, lod, verts, tris):
        topo = geodesic_sphere(lod)
        assert topo.vertex_count == verts
        assert topo.triangle_count == tris
        assert geodesic_counts(lod) == (verts, tris)

    @pytest.mark.parametrize("lod", [0, 1, 2, 3])
    def test_closed_manifold(self, lod):
        assert is_closed_manifold(geodesic_sphere(lod).indices)

    @pytest.mark.parametrize("lod", [0, 1, 2, 3])
    def test_no_duplicate_positions(self, lod):
        assert duplicate_position_count(geodesic_sphere(lod).points) == 0

    @pytest.mark.parametrize("lod", [0, 1, 2, 3])
    def test_outward_winding(self, lod):
        topo = geodesic_sphere(lod)
        assert inward_face_count(topo.points, topo.indices) == 0

    def test_unit_length(self):
        pts = geodesic_sphere(2).points
        assert np.allclose(np.linalg.norm(pts, axis=1), 1.0)

    def test_dtypes(self):
        topo = geodesic_sphere(1)
        assert topo.points.dtype == np.float64
        assert topo.indices.dtype == np.uint32
        assert topo.indices.shape == (80, 3)

    def test_lod_is_capped(self, monkeypatch):
        monkeypatch.setattr(topology, "MAX_GEODESIC_LOD", 1)
        topo = geodesic_sphere(6)
        assert topo.level_of_detail == 1
        assert topo.vertex_count == 42

    def test_negative_lod_is_icosahedron(self):
        assert geodesic_sphere(-2).vertex_count == 12


# ═══════════════════════════════════════════════════════════════════
# UV sphere
# ═══════════════════════════════════════════════════════════════════


class TestUVSphere:
    @pytest.mark.parametrize("lod", [3, 4, 8])
    def test_counts(self, lod):
        topo = uv_sphere(lod)
        assert topo.vertex_count == (lod + 1) ** 2
        assert topo.triangle_count == 2 * lod * (lod - 1)

    def test_lod_zero_uses_minimum_grid(self):
        topo = uv_sphere(0)
        n = MIN_UV_RESOLUTION
        assert topo.level_of_detail == n
        assert topo.vertex_count == (n + 1) ** 2
        assert topo.triangle_count > 0

    def test_poles_collapse(self):
        n = 6
        grid = uv_sphere(n).points.reshape(n + 1, n + 1, 3)
        assert np.array_equal(grid[0], np.tile([0.0, 1.0, 0.0], (n + 1, 1)))
        assert np.array_equal(grid[n], np.tile([0.0, -1.0, 0.0], (n + 1, 1)))

    def test_seam_column_duplicates_first(self):
        n = 6
        grid = uv_sphere(n).points.reshape(n + 1, n + 1, 3)
        assert np.array_equal(grid[:, 0], grid[:, n])

    def test_has_documented_duplicates(self):
        assert duplicate_position_count(uv_sphere(6).points) > 0

    def test_outward_winding_and_no_degenerate_triangles(self):
        topo = uv_sphere(8)
        assert inward_face_count(topo.points, topo.indices) == 0
        assert min_triangle_area(topo.points, topo.indices) > 0.0

    def test_unit_length(self):
        pts = uv_sphere(5).points
        assert np.allclose(np.linalg.norm(pts, axis=1), 1.0)

    def test_resolution_is_capped(self, monkeypatch):
        monkeypatch.setattr(topology, "MAX_UV_RESOLUTION", 4)
        assert uv_sphere(50).level_of_detail == 4


# ═══════════════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════════════


class TestBuildTopology:
    def test_dispatch_by_enum(self):
        assert build_topology(1, Topology.GEODESIC).kind is Topology.GEODESIC
        assert build_topology(4, Topology.UV_SPHERE).kind is Topology.UV_SPHERE

    def test_dispatch_by_string(self):
        assert build_topology(4, "uv").vertex_count == 25

    def test_default_is_geodesic(self):
        assert build_topology(0).vertex_count == 12

    def test_unknown_topology(self):
        with pytest.raises(ValueError):
            build_topology(1, "cube")
