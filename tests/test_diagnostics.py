"""Tests for diagnostics.py — mesh quality checks."""

from __future__ import annotations

import numpy as np
import pytest

from planetgen.compositor import composite
from planetgen.diagnostics import (
    boundary_edges,
    duplicate_position_count,
    edge_use_counts,
    inward_face_count,
    is_closed_manifold,
    mesh_report,
    min_triangle_area,
)
from planetgen.params import MINIMAL_PLANET
from planetgen.topology import geodesic_sphere, uv_sphere

TETRA_POINTS = np.array([
    [1.0, 1.0, 1.0],
    [1.0, -1.0, -1.0],
    [-1.0, 1.0, -1.0],
    [-1.0, -1.0, 1.0],
])
TETRA_FACES = np.array([[0, 1, 2], [0, 3, 1], [0, 2, 3], [1, 3, 2]])


class TestManifold:
    def test_tetrahedron_closed(self):
        counts = edge_use_counts(TETRA_FACES)
        assert len(counts) == 6
        assert set(counts.values()) == {2}
        assert is_closed_manifold(TETRA_FACES)

    def test_open_mesh_has_boundary(self):
        faces = TETRA_FACES[:3]
        assert not is_closed_manifold(faces)
        assert len(boundary_edges(faces)) == 3

    def test_empty_is_not_closed(self):
        assert not is_closed_manifold(np.zeros((0, 3), dtype=np.uint32))


class TestWinding:
    def test_tetrahedron_outward(self):
        assert inward_face_count(TETRA_POINTS, TETRA_FACES) == 0

    def test_flipped_faces_detected(self):
        assert inward_face_count(TETRA_POINTS, TETRA_FACES[:, ::-1]) == 4

    def test_min_area(self):
        # each face of this tetrahedron is equilateral with side 2√2
        assert min_triangle_area(TETRA_POINTS, TETRA_FACES) == pytest.approx(2.0 * np.sqrt(3.0))


class TestDuplicates:
    def test_geodesic_unique(self):
        assert duplicate_position_count(geodesic_sphere(2).points) == 0

    def test_uv_poles_and_seam(self):
        n = 4
        # n duplicates per pole row, n - 1 interior seam duplicates
        assert duplicate_position_count(uv_sphere(n).points) == 2 * n + (n - 1)


class TestReport:
    def test_minimal_planet_report(self):
        topo = geodesic_sphere(1)
        report = mesh_report(composite(topo.points, topo.indices, MINIMAL_PLANET))
        assert report.vertices == 42
        assert report.triangles == 80
        assert report.closed_manifold
        assert report.boundary_edges == 0
        assert report.duplicate_positions == 0
        assert report.inward_faces == 0
        assert report.min_triangle_area > 0.0
        assert report.ok
