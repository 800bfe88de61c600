"""Biome classification and vertex colouring.

Every vertex falls into exactly one :class:`BiomeKind`, a pure function
of ``(raw_height, latitude_signal, parameters)``:

1. ``latitude > polar_cutoff`` → :attr:`BiomeKind.POLAR_ICE` (overrides
   everything else);
2. ``raw < ocean_level`` → :attr:`BiomeKind.OCEAN` (a fully flooded planet,
   ``ocean_level >= 1``, is ocean everywhere);
3. ``raw < highland_threshold`` → :attr:`BiomeKind.LOWLAND`;
4. otherwise :attr:`BiomeKind.HIGHLAND`.

Colours are linear ramps between two reference colours per biome, using
the height's position inside the biome's band as the blend factor.
"""

from __future__ import annotations

import enum
from typing import Dict, Tuple

import numpy as np

from .params import GenerationParameters

RGBA = Tuple[int, int, int, int]

# Lowland occupies this fraction of the land band above the ocean level.
LOWLAND_BAND = 0.5


class BiomeKind(enum.IntEnum):
    OCEAN = 0
    LOWLAND = 1
    HIGHLAND = 2
    POLAR_ICE = 3


# (band-bottom colour, band-top colour)
BIOME_COLOURS: Dict[BiomeKind, Tuple[RGBA, RGBA]] = {
    BiomeKind.OCEAN: ((10, 30, 80, 255), (20, 60, 120, 255)),          # deep → shallow
    BiomeKind.LOWLAND: ((220, 200, 130, 255), (50, 100, 40, 255)),     # beach → forest
    BiomeKind.HIGHLAND: ((120, 100, 80, 255), (245, 245, 250, 255)),   # rock → snow
    BiomeKind.POLAR_ICE: ((200, 215, 230, 255), (250, 250, 255, 255)), # sea ice → cap
}


def highland_threshold(params: GenerationParameters) -> float:
    """Height above which land counts as highland."""
    ocean = params.ocean_level
    return ocean + (1.0 - ocean) * LOWLAND_BAND


# ═══════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════

def classify(raw_height: float, latitude: float, params: GenerationParameters) -> BiomeKind:
    """Biome of a single sample."""
    if latitude > params.polar_cutoff:
        return BiomeKind.POLAR_ICE
    if raw_height < params.ocean_level or params.ocean_level >= 1.0:
        return BiomeKind.OCEAN
    if raw_height < highland_threshold(params):
        return BiomeKind.LOWLAND
    return BiomeKind.HIGHLAND


def classify_many(
    raw_heights: np.ndarray,
    latitudes: np.ndarray,
    params: GenerationParameters,
) -> np.ndarray:
    """Vectorised :func:`classify`; returns a ``uint8`` array of biome codes."""
    raw = np.asarray(raw_heights, dtype=np.float64)
    lat = np.asarray(latitudes, dtype=np.float64)
    biomes = np.full(raw.shape, BiomeKind.HIGHLAND, dtype=np.uint8)
    biomes[raw < highland_threshold(params)] = BiomeKind.LOWLAND
    if params.ocean_level >= 1.0:
        biomes[:] = BiomeKind.OCEAN
    else:
        biomes[raw < params.ocean_level] = BiomeKind.OCEAN
    biomes[lat > params.polar_cutoff] = BiomeKind.POLAR_ICE
    return biomes


# ═══════════════════════════════════════════════════════════════════
# Colour
# ═══════════════════════════════════════════════════════════════════

def _band(biome: BiomeKind, params: GenerationParameters) -> Tuple[float, float]:
    ocean = params.ocean_level
    high = highland_threshold(params)
    if biome == BiomeKind.OCEAN:
        return 0.0, ocean
    if biome == BiomeKind.LOWLAND:
        return ocean, high
    if biome == BiomeKind.HIGHLAND:
        return high, 1.0
    return 0.0, 1.0


def colour_many(
    raw_heights: np.ndarray,
    biomes: np.ndarray,
    params: GenerationParameters,
) -> np.ndarray:
    """RGBA8 colour per sample, shape ``(N, 4)``, dtype ``uint8``."""
    raw = np.asarray(raw_heights, dtype=np.float64)
    out = np.zeros((len(raw), 4), dtype=np.uint8)
    for biome in BiomeKind:
        sel = biomes == biome
        if not np.any(sel):
            continue
        lo, hi = _band(biome, params)
        span = hi - lo
        t = (raw[sel] - lo) / span if span > 0 else np.zeros(int(sel.sum()))
        t = np.clip(t, 0.0, 1.0)[:, None]
        a = np.asarray(BIOME_COLOURS[biome][0], dtype=np.float64)
        b = np.asarray(BIOME_COLOURS[biome][1], dtype=np.float64)
        out[sel] = np.rint(a + (b - a) * t).astype(np.uint8)
    return out


def colour(raw_height: float, latitude: float, params: GenerationParameters) -> RGBA:
    """Colour of a single sample."""
    biome = classify(raw_height, latitude, params)
    rgba = colour_many(np.array([raw_height]), np.array([biome], dtype=np.uint8), params)[0]
    return tuple(int(c) for c in rgba)  # type: ignore[return-value]
