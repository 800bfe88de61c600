"""Sphere topology builders — unit point sets plus triangle index lists.

Two strategies are offered, selected by :class:`~params.Topology`:

* **UV sphere** — a latitude/longitude grid.  Resolution is
  ``n = max(level_of_detail, MIN_UV_RESOLUTION)``; the grid has
  ``(n + 1)²`` points because every pole is stored once per column and
  the ``φ = 2π`` seam column duplicates ``φ = 0``.  The one degenerate
  triangle of every pole quad is dropped, leaving ``2n(n − 1)`` triangles.
  Pole and seam duplicates are bit-identical copies so height sampling
  agrees across them.
* **Geodesic** — a regular icosahedron subdivided ``level_of_detail``
  times, every triangle split 1 → 4 through re-normalised edge midpoints.
  Midpoints are shared through a cache keyed by the unordered parent
  index pair, so the result is a closed 2-manifold without duplicate
  positions: ``10·4ⁿ + 2`` vertices and ``20·4ⁿ`` triangles.

Both builders wind triangles counter-clockwise when seen from outside.

Functions
---------
- :func:`build_topology` — dispatch on :class:`Topology`
- :func:`uv_sphere`
- :func:`geodesic_sphere`
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

import numpy as np
import structlog

from .params import Topology

logger = structlog.get_logger()

MIN_UV_RESOLUTION = 3
MAX_UV_RESOLUTION = 1024
MAX_GEODESIC_LOD = 7

_PHI = (1.0 + math.sqrt(5.0)) / 2.0

ICOSAHEDRON_VERTICES: Tuple[Tuple[float, float, float], ...] = (
    (-1.0, _PHI, 0.0), (1.0, _PHI, 0.0), (-1.0, -_PHI, 0.0), (1.0, -_PHI, 0.0),
    (0.0, -1.0, _PHI), (0.0, 1.0, _PHI), (0.0, -1.0, -_PHI), (0.0, 1.0, -_PHI),
    (_PHI, 0.0, -1.0), (_PHI, 0.0, 1.0), (-_PHI, 0.0, -1.0), (-_PHI, 0.0, 1.0),
)

ICOSAHEDRON_FACES: Tuple[Tuple[int, int, int], ...] = (
    (0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
    (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
    (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
    (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1),
)


@dataclass(frozen=True)
class SphereTopology:
    """Unit-sphere points and triangle indices.

    Attributes
    ----------
    points : ndarray
        ``(N, 3)`` float64 unit directions.
    indices : ndarray
        ``(T, 3)`` uint32 triangle corners, counter-clockwise outward.
    kind : Topology
    level_of_detail : int
        The effective (post-clamp) level of detail.
    """

    points: np.ndarray
    indices: np.ndarray
    kind: Topology
    level_of_detail: int

    @property
    def vertex_count(self) -> int:
        return len(self.points)

    @property
    def triangle_count(self) -> int:
        return len(self.indices)


# ═══════════════════════════════════════════════════════════════════
# UV sphere
# ═══════════════════════════════════════════════════════════════════

def uv_resolution(level_of_detail: int) -> int:
    """Grid resolution for a UV sphere at *level_of_detail*."""
    n = max(int(level_of_detail), MIN_UV_RESOLUTION)
    if n > MAX_UV_RESOLUTION:
        logger.warning(
            "UV resolution clamped",
            requested=n, used=MAX_UV_RESOLUTION,
        )
        n = MAX_UV_RESOLUTION
    return n


def uv_sphere(level_of_detail: int) -> SphereTopology:
    """Latitude/longitude sphere with ``(n + 1)²`` points."""
    n = uv_resolution(level_of_detail)

    theta = np.pi * np.arange(n + 1) / n
    phi = 2.0 * np.pi * np.arange(n + 1) / n
    st, ct = np.sin(theta)[:, None], np.cos(theta)[:, None]
    sp, cp = np.sin(phi)[None, :], np.cos(phi)[None, :]

    grid = np.empty((n + 1, n + 1, 3), dtype=np.float64)
    grid[..., 0] = st * cp
    grid[..., 1] = np.broadcast_to(ct, (n + 1, n + 1))
    grid[..., 2] = st * sp
    # Exact poles and an exact copy of the φ = 0 column on the seam.
    grid[0] = (0.0, 1.0, 0.0)
    grid[n] = (0.0, -1.0, 0.0)
    grid[:, n] = grid[:, 0]

    tris: List[Tuple[int, int, int]] = []
    for i in range(n):
        for j in range(n):
            a = i * (n + 1) + j
            b = (i + 1) * (n + 1) + j
            c = b + 1
            d = a + 1
            if i != n - 1:
                tris.append((a, c, b))
            if i != 0:
                tris.append((a, d, c))

    return SphereTopology(
        points=grid.reshape(-1, 3),
        indices=np.asarray(tris, dtype=np.uint32).reshape(-1, 3),
        kind=Topology.UV_SPHERE,
        level_of_detail=n,
    )


# ═══════════════════════════════════════════════════════════════════
# Geodesic sphere
# ═══════════════════════════════════════════════════════════════════

def geodesic_counts(level_of_detail: int) -> Tuple[int, int]:
    """``(vertex_count, triangle_count)`` of a geodesic sphere."""
    k = 4 ** int(level_of_detail)
    return 10 * k + 2, 20 * k


def _subdivide(
    points: List[np.ndarray],
    faces: List[Tuple[int, int, int]],
) -> List[Tuple[int, int, int]]:
    cache: Dict[Tuple[int, int], int] = {}

    def midpoint(a: int, b: int) -> int:
        key = (a, b) if a < b else (b, a)
        idx = cache.get(key)
        if idx is None:
            m = points[a] + points[b]
            points.append(m / np.linalg.norm(m))
            idx = len(points) - 1
            cache[key] = idx
        return idx

    out: List[Tuple[int, int, int]] = []
    for v1, v2, v3 in faces:
        m1 = midpoint(v1, v2)
        m2 = midpoint(v2, v3)
        m3 = midpoint(v3, v1)
        out.append((v1, m1, m3))
        out.append((v2, m2, m1))
        out.append((v3, m3, m2))
        out.append((m1, m2, m3))
    return out


def geodesic_sphere(level_of_detail: int) -> SphereTopology:
    """Subdivided icosahedron with ``10·4ⁿ + 2`` points."""
    lod = max(0, int(level_of_detail))
    if lod > MAX_GEODESIC_LOD:
        logger.warning(
            "Geodesic level of detail clamped",
            requested=lod, used=MAX_GEODESIC_LOD,
        )
        lod = MAX_GEODESIC_LOD

    base = np.asarray(ICOSAHEDRON_VERTICES, dtype=np.float64)
    base /= np.linalg.norm(base, axis=1, keepdims=True)
    points: List[np.ndarray] = list(base)
    faces: List[Tuple[int, int, int]] = list(ICOSAHEDRON_FACES)

    for _ in range(lod):
        faces = _subdivide(points, faces)

    return SphereTopology(
        points=np.vstack(points),
        indices=np.asarray(faces, dtype=np.uint32),
        kind=Topology.GEODESIC,
        level_of_detail=lod,
    )


# ═══════════════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════════════

def build_topology(
    level_of_detail: int,
    topology: Union[Topology, str] = Topology.GEODESIC,
) -> SphereTopology:
    """Build the unit-sphere point set and triangle list for *topology*."""
    kind = Topology(topology)
    if kind is Topology.UV_SPHERE:
        result = uv_sphere(level_of_detail)
    else:
        result = geodesic_sphere(level_of_detail)
    logger.debug(
        "Topology built",
        topology=kind.value,
        level_of_detail=result.level_of_detail,
        vertices=result.vertex_count,
        triangles=result.triangle_count,
    )
    return result
