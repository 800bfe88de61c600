"""Planet mesh export — JSON payload for external 3-D viewers.

Functions
---------
- :func:`export_mesh_payload` — build the full export dict
- :func:`export_mesh_json` — write payload to a JSON file
- :func:`validate_mesh_payload` — structural check of a payload
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .biomes import BiomeKind
from .mesh import TerrainMesh
from .params import GenerationParameters, Topology

_EXPORT_VERSION = "1.0"


def export_mesh_payload(
    mesh: TerrainMesh,
    params: GenerationParameters,
    *,
    topology: Optional[Union[Topology, str]] = None,
    precision: int = 6,
) -> Dict[str, Any]:
    """Build a JSON-serialisable export of a generated planet.

    The returned dict has four top-level keys:

    ``metadata``
        Version, generator, counts, topology and biome histogram.
    ``parameters``
        The flat parameter record the mesh was generated from.
    ``vertices``
        One dict per vertex: position, normal, RGBA colour, raw height
        and biome name.
    ``indices``
        Triangle list, ``[[a, b, c], ...]``.

    Parameters
    ----------
    mesh : TerrainMesh
    params : GenerationParameters
    topology : Topology or str, optional
        Recorded in the metadata when given.
    precision : int
        Decimal places kept for floats.
    """
    metadata = {
        "version": _EXPORT_VERSION,
        "generator": "planetgen.export",
        "topology": Topology(topology).value if topology is not None else None,
        "vertex_count": mesh.vertex_count,
        "triangle_count": mesh.triangle_count,
        "biomes": {kind.name.lower(): n for kind, n in mesh.biome_counts().items()},
    }

    vertices: List[Dict[str, Any]] = []
    for rec, raw, biome in zip(mesh.vertices, mesh.raw_heights, mesh.biomes):
        vertices.append({
            "position": [round(c, precision) for c in rec.position],
            "normal": [round(c, precision) for c in rec.normal],
            "color": list(rec.color),
            "raw_height": round(float(raw), precision),
            "biome": BiomeKind(int(biome)).name.lower(),
        })

    return {
        "metadata": metadata,
        "parameters": params.to_record(),
        "vertices": vertices,
        "indices": mesh.indices.astype(int).tolist(),
    }


def export_mesh_json(
    mesh: TerrainMesh,
    params: GenerationParameters,
    path: Union[str, Path],
    *,
    topology: Optional[Union[Topology, str]] = None,
    indent: Optional[int] = None,
) -> Path:
    """Write :func:`export_mesh_payload` to *path* and return the path."""
    payload = export_mesh_payload(mesh, params, topology=topology)
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(payload, indent=indent), encoding="utf-8")
    return out


def validate_mesh_payload(payload: Dict[str, Any]) -> List[str]:
    """Validate a mesh export payload.

    Returns a list of error messages (empty = valid).
    """
    errors: List[str] = []

    for key in ("metadata", "parameters", "vertices", "indices"):
        if key not in payload:
            errors.append(f"Missing top-level key: {key}")

    meta = payload.get("metadata", {})
    for key in ("version", "vertex_count", "triangle_count"):
        if key not in meta:
            errors.append(f"Missing metadata key: {key}")

    vertices = payload.get("vertices", [])
    if not isinstance(vertices, list):
        errors.append("'vertices' must be a list")
        vertices = []
    elif len(vertices) != meta.get("vertex_count", 0):
        errors.append(
            f"vertex_count mismatch: metadata says {meta.get('vertex_count', 0)}, got {len(vertices)}"
        )
    for i, vert in enumerate(vertices):
        for key in ("position", "normal"):
            if not isinstance(vert.get(key), list) or len(vert[key]) != 3:
                errors.append(f"Vertex {i}: '{key}' must be [x, y, z]")
        if not isinstance(vert.get("color"), list) or len(vert["color"]) != 4:
            errors.append(f"Vertex {i}: 'color' must be [r, g, b, a]")
        if "raw_height" not in vert:
            errors.append(f"Vertex {i}: missing 'raw_height'")

    indices = payload.get("indices", [])
    if not isinstance(indices, list):
        errors.append("'indices' must be a list")
    else:
        if len(indices) != meta.get("triangle_count", 0):
            errors.append(
                f"triangle_count mismatch: metadata says {meta.get('triangle_count', 0)}, got {len(indices)}"
            )
        n = len(vertices)
        for i, tri in enumerate(indices):
            if not isinstance(tri, list) or len(tri) != 3:
                errors.append(f"Triangle {i}: must be [a, b, c]")
            elif any(not 0 <= int(v) < n for v in tri):
                errors.append(f"Triangle {i}: index out of range")

    return errors
