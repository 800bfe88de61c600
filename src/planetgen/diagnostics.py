from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from .mesh import TerrainMesh

Edge = Tuple[int, int]


@dataclass(frozen=True)
class MeshReport:
    vertices: int
    triangles: int
    closed_manifold: bool
    boundary_edges: int
    duplicate_positions: int
    inward_faces: int
    min_triangle_area: float

    @property
    def ok(self) -> bool:
        return self.closed_manifold and self.duplicate_positions == 0 and self.inward_faces == 0


def edge_use_counts(indices: np.ndarray) -> Dict[Edge, int]:
    """How many triangles use each undirected edge."""
    tri = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    counts: Counter = Counter()
    for a, b, c in tri.tolist():
        for u, v in ((a, b), (b, c), (c, a)):
            counts[(u, v) if u < v else (v, u)] += 1
    return dict(counts)


def boundary_edges(indices: np.ndarray) -> List[Edge]:
    return [e for e, n in edge_use_counts(indices).items() if n != 2]


def is_closed_manifold(indices: np.ndarray) -> bool:
    """Every edge shared by exactly two triangles."""
    counts = edge_use_counts(indices)
    return bool(counts) and all(n == 2 for n in counts.values())


def duplicate_position_count(positions: np.ndarray, decimals: int = 9) -> int:
    """Number of vertices whose position repeats an earlier vertex."""
    pts = np.round(np.asarray(positions, dtype=np.float64).reshape(-1, 3), decimals) + 0.0
    unique = np.unique(pts, axis=0)
    return len(pts) - len(unique)


def face_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Un-normalised face normals (length = twice the area)."""
    pos = np.asarray(positions, dtype=np.float64)
    tri = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    v0, v1, v2 = pos[tri[:, 0]], pos[tri[:, 1]], pos[tri[:, 2]]
    return np.cross(v1 - v0, v2 - v0)


def inward_face_count(positions: np.ndarray, indices: np.ndarray) -> int:
    """Faces whose normal points towards the sphere centre.

    Degenerate (zero-area) faces are not counted.
    """
    pos = np.asarray(positions, dtype=np.float64)
    tri = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    normals = face_normals(pos, tri)
    centroids = pos[tri].mean(axis=1)
    area2 = np.linalg.norm(normals, axis=1)
    facing = np.einsum("ij,ij->i", normals, centroids)
    return int(np.count_nonzero((facing <= 0.0) & (area2 > 1e-12)))


def min_triangle_area(positions: np.ndarray, indices: np.ndarray) -> float:
    if len(np.asarray(indices).reshape(-1, 3)) == 0:
        return 0.0
    return float(np.linalg.norm(face_normals(positions, indices), axis=1).min() * 0.5)


def mesh_report(mesh: TerrainMesh) -> MeshReport:
    """Quality summary for a generated mesh."""
    return MeshReport(
        vertices=mesh.vertex_count,
        triangles=mesh.triangle_count,
        closed_manifold=is_closed_manifold(mesh.indices),
        boundary_edges=len(boundary_edges(mesh.indices)),
        duplicate_positions=duplicate_position_count(mesh.positions, decimals=5),
        inward_faces=inward_face_count(mesh.positions, mesh.indices),
        min_triangle_area=min_triangle_area(mesh.positions, mesh.indices),
    )
