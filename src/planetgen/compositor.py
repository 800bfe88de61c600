"""Biome & normal compositor — turns a unit point set into a TerrainMesh.

For every vertex the compositor samples the height field, classifies the
biome, picks a colour, and pushes the vertex out along its direction.
Once every vertex is displaced, smooth normals are accumulated from the
area-weighted face normals of the displaced triangles.

Ocean vertices are pinned to the ocean level, so the sea floor is hidden
under a flat surface at exactly the radius of the water shell.

Functions
---------
- :func:`sample_elevations` — height field + biomes for a point set
- :func:`displacement` — per-vertex radial distance
- :func:`compute_normals` — area-weighted vertex normals
- :func:`composite` — the full point set → :class:`TerrainMesh` step
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import structlog

from .biomes import BiomeKind, classify_many, colour_many
from .concurrency import CancelToken, DEFAULT_BATCH_SIZE
from .heightfield import sample_many
from .mesh import ElevationField, TerrainMesh
from .params import GenerationParameters

logger = structlog.get_logger()


def sample_elevations(
    points: np.ndarray,
    params: GenerationParameters,
    *,
    workers: Optional[int] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel: Optional[CancelToken] = None,
) -> ElevationField:
    """Sample the height field and classify every point."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    raw, lat = sample_many(pts, params, workers=workers, batch_size=batch_size, cancel=cancel)
    return ElevationField(
        points=pts,
        raw_heights=raw,
        latitudes=lat,
        biomes=classify_many(raw, lat, params),
    )


def displacement(
    raw_heights: np.ndarray,
    biomes: np.ndarray,
    params: GenerationParameters,
) -> np.ndarray:
    """Radial distance of every vertex from the planet centre.

    ``radius * (1 + h * elevation_scale)`` where ``h`` is the raw height
    on land and ``ocean_level`` under water.
    """
    h = np.where(biomes == BiomeKind.OCEAN, params.ocean_level, raw_heights)
    return params.radius * (1.0 + h * params.elevation_scale)


def compute_normals(
    positions: np.ndarray,
    indices: np.ndarray,
    fallback: np.ndarray,
) -> np.ndarray:
    """Smooth vertex normals from area-weighted face normals.

    The un-normalised cross product of two triangle edges has a length
    of twice the triangle's area, so summing raw cross products weights
    each face by its area.  Vertices whose accumulated normal has zero
    length take the matching row of *fallback* instead.
    """
    pos = np.asarray(positions, dtype=np.float64)
    tri = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    acc = np.zeros_like(pos)

    if len(tri):
        v0, v1, v2 = pos[tri[:, 0]], pos[tri[:, 1]], pos[tri[:, 2]]
        face = np.cross(v1 - v0, v2 - v0)
        for corner in range(3):
            np.add.at(acc, tri[:, corner], face)

    length = np.linalg.norm(acc, axis=1)
    degenerate = ~(length > 1e-12)
    safe = np.where(degenerate, 1.0, length)
    normals = acc / safe[:, None]
    if np.any(degenerate):
        normals[degenerate] = fallback[degenerate]
        logger.debug("Degenerate normals replaced", count=int(degenerate.sum()))
    return normals


def composite(
    points: np.ndarray,
    indices: np.ndarray,
    params: GenerationParameters,
    *,
    workers: Optional[int] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel: Optional[CancelToken] = None,
) -> TerrainMesh:
    """Build a displaced, coloured, lit :class:`TerrainMesh`.

    Parameters
    ----------
    points : ndarray
        ``(N, 3)`` unit directions from :mod:`topology`.
    indices : ndarray
        ``(T, 3)`` triangle indices into *points*.
    params : GenerationParameters
        Already clamped parameters.
    workers, batch_size, cancel
        Forwarded to :func:`heightfield.sample_many`.

    Returns
    -------
    TerrainMesh
    """
    field = sample_elevations(
        points, params, workers=workers, batch_size=batch_size, cancel=cancel,
    )
    radial = displacement(field.raw_heights, field.biomes, params)
    positions = field.points * radial[:, None]
    normals = compute_normals(positions, indices, field.points)
    colors = colour_many(field.raw_heights, field.biomes, params)

    mesh = TerrainMesh(
        positions=positions,
        normals=normals,
        colors=colors,
        indices=indices,
        raw_heights=field.raw_heights,
        biomes=field.biomes,
    )
    logger.debug(
        "Mesh composited",
        vertices=mesh.vertex_count,
        triangles=mesh.triangle_count,
    )
    return mesh
