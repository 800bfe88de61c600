"""Reusable 3-D noise primitives for spherical terrain.

Every function in this module operates on plain ``(x, y, z)`` coordinates
and returns a ``float`` (the warp returns a point).  There is **no**
dependency on meshes, biomes or parameters — these are pure-math
building blocks that :mod:`heightfield` composes into a planet's
elevation.

Sampling in 3-D rather than on an unwrapped ``(u, v)`` plane is what
keeps the planet free of seams at the poles and at the longitude
wrap-around: the domain is continuous on the sphere.

Functions
---------
- :func:`fbm_3d` — Fractal Brownian Motion (multi-octave noise)
- :func:`ridged_noise_3d` — inverted-abs noise that forms sharp ridges
- :func:`warp_point_3d` — domain warp offset shared by every layer
- :func:`smoothstep` — Hermite ramp between two edges
- :func:`normalize` — rescale ``[a, b] → [c, d]`` with clamping
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Callable, Tuple

from opensimplex import OpenSimplex

Noise3 = Callable[[float, float, float], float]


# ═══════════════════════════════════════════════════════════════════
# Base noise source
# ═══════════════════════════════════════════════════════════════════

@lru_cache(maxsize=64)
def _init_noise3(seed: int) -> Noise3:
    """Return a 3-D OpenSimplex noise function seeded with *seed*.

    Each call site gets its own generator instance, so seeds never leak
    between layers (unlike the module-level ``opensimplex.seed``).
    """
    return OpenSimplex(seed=int(seed)).noise3


# ═══════════════════════════════════════════════════════════════════
# Fractal Brownian Motion
# ═══════════════════════════════════════════════════════════════════

def fbm_3d(
    x: float,
    y: float,
    z: float,
    *,
    octaves: int = 5,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
    frequency: float = 1.0,
    seed: int = 42,
) -> float:
    """3-D Fractal Brownian Motion — layered multi-octave noise.

    Sums several octaves of simplex noise, each at higher frequency and
    lower amplitude.

    Parameters
    ----------
    x, y, z : float
        Sample coordinates (typically a point on the unit sphere).
    octaves : int
        Number of noise layers (more = finer detail).
    lacunarity : float
        Frequency multiplier between octaves.
    persistence : float
        Amplitude multiplier between octaves.
    frequency : float
        Base spatial frequency.
    seed : int
        Seed of the noise source.

    Returns
    -------
    float
        A value in approximately ``[-1, 1]``.
    """
    noise3 = _init_noise3(seed)
    value = 0.0
    amplitude = 1.0
    freq = frequency
    max_amp = 0.0

    for _ in range(octaves):
        value += amplitude * noise3(x * freq, y * freq, z * freq)
        max_amp += amplitude
        amplitude *= persistence
        freq *= lacunarity

    return float(value / max_amp) if max_amp > 0 else 0.0


# ═══════════════════════════════════════════════════════════════════
# Ridged noise
# ═══════════════════════════════════════════════════════════════════

def ridged_noise_3d(
    x: float,
    y: float,
    z: float,
    *,
    octaves: int = 4,
    lacunarity: float = 2.3,
    persistence: float = 0.5,
    frequency: float = 1.0,
    ridge_offset: float = 1.0,
    seed: int = 42,
) -> float:
    """3-D ridged multifractal noise — sharp ridges at zero-crossings.

    Each octave's signal is ``(offset − |noise|)²``, so values near zero
    in the base noise become peaks.  Subsequent octaves are weighted by
    the previous octave's signal, concentrating detail on the ridges.

    Returns
    -------
    float
        A value in ``[0, 1]``.
    """
    noise3 = _init_noise3(seed)
    value = 0.0
    weight = 1.0
    freq = frequency

    for i in range(octaves):
        signal = noise3(x * freq, y * freq, z * freq)
        signal = ridge_offset - abs(signal)
        signal *= signal
        signal *= weight
        weight = max(0.0, min(1.0, signal * persistence))
        value += signal * (persistence ** i)
        freq *= lacunarity

    max_val = sum(persistence ** i for i in range(octaves))
    return float(max(0.0, min(1.0, value / max_val))) if max_val > 0 else 0.0


# ═══════════════════════════════════════════════════════════════════
# Domain warp
# ═══════════════════════════════════════════════════════════════════

def warp_point_3d(
    x: float,
    y: float,
    z: float,
    *,
    warp_strength: float = 0.25,
    warp_frequency: float = 1.2,
    seed: int = 42,
) -> Tuple[float, float, float]:
    """Offset ``(x, y, z)`` by three secondary noise fields.

    Every layer sampled at the returned point inherits the same organic,
    swirly distortion of coastlines and ridges.

    Parameters
    ----------
    x, y, z : float
        Original sample coordinates.
    warp_strength : float
        Amplitude of the offset (0 leaves the point untouched).
    warp_frequency : float
        Spatial frequency of the warp noise.
    seed : int
        Seed of the x channel; the y and z channels use ``seed + 100``
        and ``seed + 200``.

    Returns
    -------
    tuple of float
        The warped coordinates.
    """
    if warp_strength == 0.0:
        return x, y, z
    fx, fy, fz = x * warp_frequency, y * warp_frequency, z * warp_frequency
    dx = _init_noise3(seed)(fx, fy, fz) * warp_strength
    dy = _init_noise3(seed + 100)(fx, fy, fz) * warp_strength
    dz = _init_noise3(seed + 200)(fx, fy, fz) * warp_strength
    return x + dx, y + dy, z + dz


# ═══════════════════════════════════════════════════════════════════
# Shaping helpers
# ═══════════════════════════════════════════════════════════════════

def smoothstep(edge0: float, edge1: float, value: float) -> float:
    """Hermite interpolation: 0 below *edge0*, 1 above *edge1*."""
    if edge1 == edge0:
        return 0.0 if value < edge0 else 1.0
    t = max(0.0, min(1.0, (value - edge0) / (edge1 - edge0)))
    return t * t * (3.0 - 2.0 * t)


def normalize(
    value: float,
    *,
    src_min: float = -1.0,
    src_max: float = 1.0,
    dst_min: float = 0.0,
    dst_max: float = 1.0,
) -> float:
    """Linearly remap *value* from ``[src_min, src_max]`` to ``[dst_min, dst_max]``.

    Values outside the source range are clamped.
    """
    if src_max == src_min:
        return (dst_min + dst_max) / 2.0
    t = (value - src_min) / (src_max - src_min)
    if math.isnan(t):
        return dst_min
    t = max(0.0, min(1.0, t))
    return dst_min + t * (dst_max - dst_min)
