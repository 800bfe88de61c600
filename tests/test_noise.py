"""Tests for noise.py — 3-D noise primitives."""

from __future__ import annotations

import math

import pytest

from planetgen.noise import fbm_3d, normalize, ridged_noise_3d, smoothstep, warp_point_3d

_POINTS = [
    (math.sin(t) * math.cos(2 * t), math.cos(t), math.sin(t) * math.sin(2 * t))
    for t in (0.1 * i for i in range(1, 60))
]


# ═══════════════════════════════════════════════════════════════════
# fbm_3d
# ═══════════════════════════════════════════════════════════════════


class TestFBM3D:
    def test_returns_float(self):
        assert isinstance(fbm_3d(0.3, 0.4, 0.5), float)

    def test_output_range(self):
        vals = [fbm_3d(x, y, z, frequency=3.0) for x, y, z in _POINTS]
        assert all(-1.01 <= v <= 1.01 for v in vals), (min(vals), max(vals))

    def test_determinism(self):
        assert fbm_3d(0.1, 0.7, -0.2, seed=99) == fbm_3d(0.1, 0.7, -0.2, seed=99)

    def test_different_seeds(self):
        a = [fbm_3d(x, y, z, seed=1) for x, y, z in _POINTS]
        b = [fbm_3d(x, y, z, seed=2) for x, y, z in _POINTS]
        assert a != b

    def test_zero_octaves_returns_zero(self):
        assert fbm_3d(0.5, 0.5, 0.5, octaves=0) == 0.0


# ═══════════════════════════════════════════════════════════════════
# ridged_noise_3d
# ═══════════════════════════════════════════════════════════════════


class TestRidged3D:
    def test_range(self):
        vals = [ridged_noise_3d(x, y, z, frequency=4.0) for x, y, z in _POINTS]
        assert all(0.0 <= v <= 1.0 for v in vals)

    def test_determinism(self):
        assert ridged_noise_3d(0.2, 0.3, 0.4, seed=5) == ridged_noise_3d(0.2, 0.3, 0.4, seed=5)

    def test_zero_octaves_returns_zero(self):
        assert ridged_noise_3d(0.2, 0.3, 0.4, octaves=0) == 0.0


# ═══════════════════════════════════════════════════════════════════
# Shaping helpers
# ═══════════════════════════════════════════════════════════════════


class TestSmoothstep:
    def test_edges(self):
        assert smoothstep(0.2, 0.8, 0.0) == 0.0
        assert smoothstep(0.2, 0.8, 1.0) == 1.0
        assert smoothstep(0.2, 0.8, 0.5) == pytest.approx(0.5)

    def test_degenerate_edges_step(self):
        assert smoothstep(0.5, 0.5, 0.4) == 0.0
        assert smoothstep(0.5, 0.5, 0.6) == 1.0


class TestNormalize:
    def test_default_maps_minus_one_one(self):
        assert normalize(-1.0) == 0.0
        assert normalize(1.0) == 1.0
        assert normalize(0.0) == pytest.approx(0.5)

    def test_clamps(self):
        assert normalize(5.0) == 1.0
        assert normalize(-5.0) == 0.0

    def test_nan_maps_to_minimum(self):
        assert normalize(math.nan) == 0.0

    def test_degenerate_source_range(self):
        assert normalize(3.0, src_min=1.0, src_max=1.0) == 0.5


# ═══════════════════════════════════════════════════════════════════
# warp_point_3d
# ═══════════════════════════════════════════════════════════════════

class TestWarpPoint:
    def test_zero_strength_is_identity(self):
        for p in _POINTS[:5]:
            assert warp_point_3d(*p, warp_strength=0.0) == p

    def test_offset_bounded_by_strength(self):
        for p in _POINTS:
            w = warp_point_3d(*p, warp_strength=0.3, seed=7)
            assert all(abs(a - b) <= 0.3 * 1.05 for a, b in zip(w, p))

    def test_deterministic_and_seeded(self):
        p = _POINTS[10]
        assert warp_point_3d(*p, seed=1) == warp_point_3d(*p, seed=1)
        assert warp_point_3d(*p, seed=1) != warp_point_3d(*p, seed=2)
