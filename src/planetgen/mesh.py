"""Core data model for generated planets.

:class:`TerrainMesh` is the finished, immutable product of one
regeneration.  Every array is flagged read-only on construction, so a
mesh that is on display can be shared freely while its successor is
being built.

:class:`ElevationField` is the transient struct-of-arrays form of the
per-vertex samples the compositor produces; iterating it yields
:class:`ElevationSample` records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

import numpy as np

from .biomes import BiomeKind

Vec3 = Tuple[float, float, float]

# Interleaved GPU vertex layout: float32 position, float32 normal, RGBA8.
VERTEX_DTYPE = np.dtype([
    ("position", "<f4", (3,)),
    ("normal", "<f4", (3,)),
    ("color", "u1", (4,)),
])


def _frozen(array: np.ndarray, dtype: object, shape_tail: Tuple[int, ...]) -> np.ndarray:
    out = np.array(array, dtype=dtype, copy=True)
    out = out.reshape((-1,) + shape_tail) if shape_tail else out.reshape(-1)
    out.setflags(write=False)
    return out


# ═══════════════════════════════════════════════════════════════════
# Per-vertex samples
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ElevationSample:
    """Height-field result for one mesh vertex."""

    point: Vec3
    raw_height: float
    latitude: float
    biome: BiomeKind


@dataclass(frozen=True, eq=False)
class ElevationField:
    """Struct-of-arrays elevation samples for a whole point set."""

    points: np.ndarray
    raw_heights: np.ndarray
    latitudes: np.ndarray
    biomes: np.ndarray

    def __len__(self) -> int:
        return len(self.raw_heights)

    def __iter__(self) -> Iterator[ElevationSample]:
        for p, h, lat, b in zip(self.points, self.raw_heights, self.latitudes, self.biomes):
            yield ElevationSample(
                point=(float(p[0]), float(p[1]), float(p[2])),
                raw_height=float(h),
                latitude=float(lat),
                biome=BiomeKind(int(b)),
            )

    def __getitem__(self, index: int) -> ElevationSample:
        p = self.points[index]
        return ElevationSample(
            point=(float(p[0]), float(p[1]), float(p[2])),
            raw_height=float(self.raw_heights[index]),
            latitude=float(self.latitudes[index]),
            biome=BiomeKind(int(self.biomes[index])),
        )


# ═══════════════════════════════════════════════════════════════════
# Terrain mesh
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VertexRecord:
    position: Vec3
    normal: Vec3
    color: Tuple[int, int, int, int]


@dataclass(frozen=True, eq=False)
class TerrainMesh:
    """Displaced, coloured, lit sphere mesh.

    Attributes
    ----------
    positions : ndarray
        ``(V, 3)`` float32 world-space positions.
    normals : ndarray
        ``(V, 3)`` float32 unit normals.
    colors : ndarray
        ``(V, 4)`` uint8 RGBA.
    indices : ndarray
        ``(T, 3)`` uint32 triangle indices, counter-clockwise seen from
        outside.
    raw_heights : ndarray
        ``(V,)`` float32 undisplaced height-field values.
    biomes : ndarray
        ``(V,)`` uint8 :class:`BiomeKind` codes.
    """

    positions: np.ndarray
    normals: np.ndarray
    colors: np.ndarray
    indices: np.ndarray
    raw_heights: np.ndarray
    biomes: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "positions", _frozen(self.positions, np.float32, (3,)))
        object.__setattr__(self, "normals", _frozen(self.normals, np.float32, (3,)))
        object.__setattr__(self, "colors", _frozen(self.colors, np.uint8, (4,)))
        object.__setattr__(self, "indices", _frozen(self.indices, np.uint32, (3,)))
        object.__setattr__(self, "raw_heights", _frozen(self.raw_heights, np.float32, ()))
        object.__setattr__(self, "biomes", _frozen(self.biomes, np.uint8, ()))

        n = len(self.positions)
        for name in ("normals", "colors", "raw_heights", "biomes"):
            if len(getattr(self, name)) != n:
                raise ValueError(f"{name} has {len(getattr(self, name))} rows, expected {n}")
        if len(self.indices) and int(self.indices.max()) >= n:
            raise ValueError("triangle index out of range")

    # ── counts ──────────────────────────────────────────────────────

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices)

    @property
    def index_count(self) -> int:
        return self.indices.size

    # ── access ──────────────────────────────────────────────────────

    @property
    def vertices(self) -> Iterator[VertexRecord]:
        """Iterate every vertex as a :class:`VertexRecord`."""
        for p, n, c in zip(self.positions, self.normals, self.colors):
            yield VertexRecord(
                position=(float(p[0]), float(p[1]), float(p[2])),
                normal=(float(n[0]), float(n[1]), float(n[2])),
                color=(int(c[0]), int(c[1]), int(c[2]), int(c[3])),
            )

    def biome_counts(self) -> Dict[BiomeKind, int]:
        counts = np.bincount(self.biomes, minlength=len(BiomeKind))
        return {kind: int(counts[kind]) for kind in BiomeKind}

    # ── GPU layout ──────────────────────────────────────────────────

    def vertex_array(self) -> np.ndarray:
        """Interleaved structured array in :data:`VERTEX_DTYPE` layout."""
        out = np.empty(self.vertex_count, dtype=VERTEX_DTYPE)
        out["position"] = self.positions
        out["normal"] = self.normals
        out["color"] = self.colors
        return out

    def vertex_bytes(self) -> bytes:
        return self.vertex_array().tobytes()

    def index_bytes(self) -> bytes:
        return self.indices.astype("<u4").tobytes()

    def same_geometry(self, other: "TerrainMesh") -> bool:
        """Bit-for-bit equality of every buffer."""
        return (
            self.vertex_bytes() == other.vertex_bytes()
            and self.index_bytes() == other.index_bytes()
            and np.array_equal(self.raw_heights, other.raw_heights)
            and np.array_equal(self.biomes, other.biomes)
        )
