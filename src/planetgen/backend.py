"""Render-collaborator boundary.

Planet generation never talks to a GPU directly.  It hands finished
byte buffers to a :class:`RenderBackend` and receives handles that it
releases once a successor is live.  :class:`CpuBackend` is the
in-process implementation used by the CLI and the tests: it keeps the
uploaded bytes and tracks which handles are still live.

Shaders and textures come from loader callables injected into the
:class:`~orchestrator.PlanetGenerator`; a loader returns ``None`` for a
name it does not know.

The selected rendering path is a :data:`RenderMode`:
:class:`VertexColor` (debug colours baked into the vertices) or
:class:`ShaderLit` (heightmap texture plus a planet shader).
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, Union, runtime_checkable

import numpy as np

from .raster import HeightmapRaster

PLANET_SHADER = "planet_terrain"
DETAIL_TEXTURE = "planet_detail"

ShaderLoader = Callable[[str], Optional[Any]]
TextureLoader = Callable[[str], Optional[Any]]


# ═══════════════════════════════════════════════════════════════════
# Loaders
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ShaderProgram:
    """Placeholder for a compiled shader resolved by name."""

    name: str


def builtin_shader_loader(name: str) -> Optional[ShaderProgram]:
    """Resolves the planet shader; every other name is unknown."""
    if name == PLANET_SHADER:
        return ShaderProgram(name)
    return None


def null_loader(name: str) -> None:
    """A loader that knows nothing."""
    return None


# ═══════════════════════════════════════════════════════════════════
# Render modes
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VertexColor:
    """Per-vertex biome colours, no textures."""

    name: str = "vertex_color"


@dataclass(frozen=True, eq=False)
class ShaderLit:
    """Heightmap-driven shading.

    Attributes
    ----------
    heightmap : HeightmapRaster
    normal_map : ndarray
        ``(height, width, 4)`` uint8 tangent-space normals.
    shader : object
        Whatever the shader loader returned for :data:`PLANET_SHADER`.
    detail_texture : object, optional
        Optional detail texture from the texture loader.
    """

    heightmap: HeightmapRaster
    normal_map: np.ndarray
    shader: Any
    detail_texture: Optional[Any] = None
    name: str = "shader_lit"


RenderMode = Union[VertexColor, ShaderLit]


# ═══════════════════════════════════════════════════════════════════
# Handles
# ═══════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class GpuResource:
    """A backend-owned resource that must be released exactly once."""

    handle_id: int
    kind: str
    nbytes: int
    _on_release: Optional[Callable[["GpuResource"], None]] = field(default=None, repr=False)
    released: bool = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        if self._on_release is not None:
            self._on_release(self)


@runtime_checkable
class RenderBackend(Protocol):
    """Anything that can turn byte buffers into releasable resources."""

    def create_mesh_buffers(
        self,
        vertex_bytes: bytes,
        index_bytes: bytes,
        vertex_count: int,
        index_count: int,
    ) -> GpuResource:
        ...

    def create_texture(self, rgba8: np.ndarray) -> GpuResource:
        ...


class CpuBackend:
    """In-process :class:`RenderBackend` keeping uploaded data in memory."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._live: Dict[int, GpuResource] = {}
        self.data: Dict[int, Any] = {}

    def _register(self, kind: str, nbytes: int, payload: Any) -> GpuResource:
        res = GpuResource(
            handle_id=next(self._ids),
            kind=kind,
            nbytes=nbytes,
            _on_release=self._forget,
        )
        self._live[res.handle_id] = res
        self.data[res.handle_id] = payload
        return res

    def _forget(self, res: GpuResource) -> None:
        self._live.pop(res.handle_id, None)
        self.data.pop(res.handle_id, None)

    def create_mesh_buffers(
        self,
        vertex_bytes: bytes,
        index_bytes: bytes,
        vertex_count: int,
        index_count: int,
    ) -> GpuResource:
        if index_count % 3:
            raise ValueError(f"index count {index_count} is not a multiple of 3")
        payload = {
            "vertices": bytes(vertex_bytes),
            "indices": bytes(index_bytes),
            "vertex_count": vertex_count,
            "index_count": index_count,
        }
        return self._register("mesh", len(vertex_bytes) + len(index_bytes), payload)

    def create_texture(self, rgba8: np.ndarray) -> GpuResource:
        img = np.ascontiguousarray(rgba8, dtype=np.uint8)
        if img.ndim != 3 or img.shape[2] != 4:
            raise ValueError(f"expected (h, w, 4) RGBA8 image, got shape {img.shape}")
        return self._register("texture", img.nbytes, img.copy())

    @property
    def live_handles(self) -> Dict[int, GpuResource]:
        return dict(self._live)

    @property
    def live_count(self) -> int:
        return len(self._live)
