"""Height field synthesizer — elevation of any point on the unit sphere.

This is the bridge between :mod:`noise` (pure math) and everything that
consumes elevation: the mesh compositor and the heightmap baker both call
into this module, so a mesh vertex and a raster cell that share a
direction always share a height.

Three noise layers are evaluated directly at the 3-D sample point:

* **continent** — low-frequency fBm remapped to ``[0, 1]``, with
  amplitude ``continent_height``; shapes the broad land/ocean outline.
* **mountain** — ridged multifractal with amplitude ``mountain_height``,
  but only where the continent value already exceeds
  :data:`MOUNTAIN_BLEND_THRESHOLD` (smooth mask).
* **detail** — high-frequency fBm at the fixed amplitude
  :data:`DETAIL_WEIGHT`, everywhere.

The amplitude-weighted sum is clamped to ``[0, 1]``, so with both
weights at zero the surface never rises above :data:`DETAIL_WEIGHT`.

Two optional shaping terms default to off.  ``warp_strength`` offsets
the sample point by a seeded domain warp before any layer is evaluated,
and ``ice_cap_lift`` raises the surface towards the poles beyond
``polar_cutoff``.

Functions
---------
- :func:`sample` — ``(raw_height, latitude_signal)`` for one point
- :func:`sample_many` — vectorised/batched form over an ``(N, 3)`` array
- :class:`HeightField` — seeded layer configuration for one parameter set
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence, Tuple

import numpy as np

from .concurrency import CancelToken, DEFAULT_BATCH_SIZE, batch_slices, map_batches
from .noise import fbm_3d, normalize, ridged_noise_3d, smoothstep, warp_point_3d
from .params import GenerationParameters

DETAIL_WEIGHT = 0.05
MOUNTAIN_BLEND_THRESHOLD = 0.5
MOUNTAIN_BLEND_WIDTH = 0.15
WARP_FREQUENCY = 1.2

# Per-layer seed offsets keep the layers uncorrelated.
_CONTINENT_SEED_OFFSET = 0
_MOUNTAIN_SEED_OFFSET = 1000
_DETAIL_SEED_OFFSET = 4000
_WARP_SEED_OFFSET = 7000


@dataclass(frozen=True)
class HeightField:
    """Seeded three-layer height field for one :class:`GenerationParameters`."""

    continent_frequency: float
    mountain_frequency: float
    detail_frequency: float
    continent_weight: float
    mountain_weight: float
    seed: int
    warp_strength: float = 0.0
    ice_cap_lift: float = 0.0
    polar_cutoff: float = 1.0

    @classmethod
    def from_params(cls, params: GenerationParameters) -> "HeightField":
        return _height_field_for(
            params.continent_frequency,
            params.mountain_frequency,
            params.detail_frequency,
            params.continent_height,
            params.mountain_height,
            params.seed,
            params.warp_strength,
            params.ice_cap_lift,
            params.polar_cutoff,
        )

    # ── layers ──────────────────────────────────────────────────────

    def continent(self, x: float, y: float, z: float) -> float:
        n = fbm_3d(
            x, y, z,
            octaves=5, lacunarity=2.2, persistence=0.55,
            frequency=self.continent_frequency,
            seed=self.seed + _CONTINENT_SEED_OFFSET,
        )
        return normalize(n)

    def mountain(self, x: float, y: float, z: float) -> float:
        return ridged_noise_3d(
            x, y, z,
            octaves=4, lacunarity=2.3, persistence=0.5,
            frequency=self.mountain_frequency,
            seed=self.seed + _MOUNTAIN_SEED_OFFSET,
        )

    def detail(self, x: float, y: float, z: float) -> float:
        n = fbm_3d(
            x, y, z,
            octaves=2, lacunarity=2.0, persistence=0.5,
            frequency=self.detail_frequency,
            seed=self.seed + _DETAIL_SEED_OFFSET,
        )
        return normalize(n)

    # ── combined ────────────────────────────────────────────────────

    def warp(self, x: float, y: float, z: float) -> Tuple[float, float, float]:
        return warp_point_3d(
            x, y, z,
            warp_strength=self.warp_strength,
            warp_frequency=WARP_FREQUENCY,
            seed=self.seed + _WARP_SEED_OFFSET,
        )

    def polar_lift(self, y: float) -> float:
        """Ice-cap elevation ramping from 0 at ``polar_cutoff`` to
        ``ice_cap_lift`` at the pole."""
        lat = abs(y)
        if self.ice_cap_lift == 0.0 or lat <= self.polar_cutoff or self.polar_cutoff >= 1.0:
            return 0.0
        return self.ice_cap_lift * (lat - self.polar_cutoff) / (1.0 - self.polar_cutoff)

    def height(self, x: float, y: float, z: float) -> float:
        """Raw elevation in ``[0, 1]`` at ``(x, y, z)``."""
        wx, wy, wz = self.warp(x, y, z)
        c = self.continent(wx, wy, wz)
        mask = smoothstep(
            MOUNTAIN_BLEND_THRESHOLD,
            MOUNTAIN_BLEND_THRESHOLD + MOUNTAIN_BLEND_WIDTH,
            c,
        )
        m = self.mountain(wx, wy, wz) * mask if mask > 0.0 else 0.0
        d = self.detail(wx, wy, wz)

        h = (
            self.continent_weight * c
            + self.mountain_weight * m
            + DETAIL_WEIGHT * d
            + self.polar_lift(y)
        )
        if not math.isfinite(h):
            return 0.0
        return max(0.0, min(1.0, h))


@lru_cache(maxsize=32)
def _height_field_for(
    continent_frequency: float,
    mountain_frequency: float,
    detail_frequency: float,
    continent_weight: float,
    mountain_weight: float,
    seed: int,
    warp_strength: float,
    ice_cap_lift: float,
    polar_cutoff: float,
) -> HeightField:
    return HeightField(
        continent_frequency=continent_frequency,
        mountain_frequency=mountain_frequency,
        detail_frequency=detail_frequency,
        continent_weight=continent_weight,
        mountain_weight=mountain_weight,
        seed=int(seed),
        warp_strength=warp_strength,
        ice_cap_lift=ice_cap_lift,
        polar_cutoff=polar_cutoff,
    )


# ═══════════════════════════════════════════════════════════════════
# Public sampling API
# ═══════════════════════════════════════════════════════════════════

def latitude_signal(point: Sequence[float]) -> float:
    """``|y|`` of a unit direction — 0 at the equator, 1 at the poles."""
    return abs(float(point[1]))


def sample(point: Sequence[float], params: GenerationParameters) -> Tuple[float, float]:
    """Evaluate the height field at one unit-sphere *point*.

    Returns
    -------
    tuple of float
        ``(raw_height, latitude_signal)``; ``raw_height`` is in ``[0, 1]``
        and ``latitude_signal`` is ``|y|``.
    """
    field = HeightField.from_params(params)
    x, y, z = float(point[0]), float(point[1]), float(point[2])
    return field.height(x, y, z), abs(y)


def _sample_batch(job: Tuple[GenerationParameters, np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
    params, points = job
    field = HeightField.from_params(params)
    heights = np.fromiter(
        (field.height(float(p[0]), float(p[1]), float(p[2])) for p in points),
        dtype=np.float64,
        count=len(points),
    )
    return heights, np.abs(points[:, 1]).astype(np.float64)


def sample_many(
    points: np.ndarray,
    params: GenerationParameters,
    *,
    workers: Optional[int] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel: Optional[CancelToken] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Evaluate the height field at every row of an ``(N, 3)`` array.

    Parameters
    ----------
    points : ndarray
        Unit directions, one per row.
    params : GenerationParameters
    workers : int, optional
        Number of worker processes; ``None`` or 1 samples serially.
    batch_size : int
        Points per batch (cancellation granularity).
    cancel : CancelToken, optional
        Checked between batches.

    Returns
    -------
    tuple of ndarray
        ``(raw_heights, latitude_signals)``, both float64 of length N.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(pts) == 0:
        empty = np.zeros(0, dtype=np.float64)
        return empty, empty.copy()

    jobs = [(params, pts[s]) for s in batch_slices(len(pts), batch_size)]
    results = map_batches(_sample_batch, jobs, workers=workers, cancel=cancel)
    heights = np.concatenate([r[0] for r in results])
    latitudes = np.concatenate([r[1] for r in results])
    return heights, latitudes
