"""Tests for biomes.py — classification and colour ramps."""

from __future__ import annotations

import numpy as np
import pytest

from planetgen.biomes import (
    BIOME_COLOURS,
    BiomeKind,
    classify,
    classify_many,
    colour,
    colour_many,
    highland_threshold,
)
from planetgen.params import GenerationParameters


@pytest.fixture()
def params():
    return GenerationParameters(ocean_level=0.4, polar_cutoff=0.8)


# ═══════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════


class TestClassify:
    def test_threshold(self, params):
        assert highland_threshold(params) == pytest.approx(0.7)

    def test_bands(self, params):
        assert classify(0.1, 0.0, params) is BiomeKind.OCEAN
        assert classify(0.5, 0.0, params) is BiomeKind.LOWLAND
        assert classify(0.9, 0.0, params) is BiomeKind.HIGHLAND

    def test_ocean_level_is_exclusive(self, params):
        assert classify(0.4, 0.0, params) is BiomeKind.LOWLAND

    def test_polar_overrides_everything(self, params):
        for raw in (0.0, 0.5, 1.0):
            assert classify(raw, 0.81, params) is BiomeKind.POLAR_ICE

    def test_latitude_at_cutoff_is_not_polar(self, params):
        assert classify(0.9, 0.8, params) is BiomeKind.HIGHLAND

    def test_fully_flooded_planet(self):
        flooded = GenerationParameters(ocean_level=1.0, polar_cutoff=1.0)
        for raw in (0.0, 0.5, 1.0):
            assert classify(raw, 0.99, flooded) is BiomeKind.OCEAN

    def test_dry_planet(self):
        dry = GenerationParameters(ocean_level=0.0, polar_cutoff=1.0)
        assert classify(0.0, 0.0, dry) is BiomeKind.LOWLAND

    def test_vectorised_matches_scalar(self, params):
        raw = np.linspace(0.0, 1.0, 41)
        lat = np.linspace(0.0, 1.0, 41)[::-1]
        many = classify_many(raw, lat, params)
        assert many.dtype == np.uint8
        assert [BiomeKind(int(b)) for b in many] == [
            classify(r, l, params) for r, l in zip(raw, lat)
        ]


# ═══════════════════════════════════════════════════════════════════
# Colour
# ═══════════════════════════════════════════════════════════════════


class TestColour:
    def test_band_endpoints(self, params):
        assert colour(0.0, 0.0, params) == BIOME_COLOURS[BiomeKind.OCEAN][0]
        assert colour(1.0, 0.0, params) == BIOME_COLOURS[BiomeKind.HIGHLAND][1]

    def test_lowland_bottom(self, params):
        assert colour(0.4, 0.0, params) == BIOME_COLOURS[BiomeKind.LOWLAND][0]

    def test_colour_many_shape_and_alpha(self, params):
        raw = np.linspace(0.0, 1.0, 25)
        lat = np.zeros(25)
        rgba = colour_many(raw, classify_many(raw, lat, params), params)
        assert rgba.shape == (25, 4)
        assert rgba.dtype == np.uint8
        assert np.all(rgba[:, 3] == 255)

    def test_ramp_is_monotone_inside_band(self, params):
        raw = np.linspace(0.41, 0.69, 10)
        rgba = colour_many(raw, np.full(10, BiomeKind.LOWLAND, dtype=np.uint8), params)
        # beach → forest darkens the red channel
        assert np.all(np.diff(rgba[:, 0].astype(int)) <= 0)

    def test_flooded_planet_colours_are_ocean(self):
        flooded = GenerationParameters(ocean_level=1.0, polar_cutoff=1.0)
        deep, shallow = BIOME_COLOURS[BiomeKind.OCEAN]
        assert colour(1.0, 0.0, flooded) == shallow
        assert colour(0.0, 0.0, flooded) == deep
