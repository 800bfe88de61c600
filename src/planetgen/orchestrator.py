"""Regeneration orchestrator — owns the current planet and rebuilds it.

Edits are collected first and committed with one :meth:`regenerate`
call::

    gen = PlanetGenerator(EARTHLIKE)
    gen.update(seed=7, ocean_level=0.5)
    mesh = gen.regenerate()

A regeneration builds the new mesh (and, when shader-lit, the heightmap
and normal map), uploads everything through the :class:`RenderBackend`,
and only then swaps the new resources in and releases the old ones.
If anything fails along the way the error propagates, the resources
created by the failed attempt are released, and the previous planet
stays exactly as it was.

Ocean-level edits rescale the water shell immediately; the terrain mesh
waits for the next :meth:`regenerate`.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import structlog

from .backend import (
    DETAIL_TEXTURE,
    PLANET_SHADER,
    CpuBackend,
    GpuResource,
    RenderBackend,
    RenderMode,
    ShaderLit,
    ShaderLoader,
    TextureLoader,
    VertexColor,
    builtin_shader_loader,
    null_loader,
)
from .concurrency import CancelToken
from .mesh import TerrainMesh
from .params import EARTHLIKE, GenerationParameters, Topology, coerce_field
from .pipeline import DEFAULT_RASTER_SIZE, GenerationContext, default_pipeline
from .raster import HeightmapRaster, bake, check_dimensions
from .water import DEFAULT_WATER_LOD, WaterShell

logger = structlog.get_logger()

# Fields whose edits change the water shell radius.
_WATER_FIELDS = ("ocean_level", "radius", "elevation_scale")


class GeneratorState(enum.Enum):
    IDLE = "idle"
    REGENERATING = "regenerating"
    READY = "ready"


class Shading(str, enum.Enum):
    """Requested rendering path."""

    VERTEX_COLOR = "vertex_color"
    SHADER_LIT = "shader_lit"


class PlanetGenerator:
    """Owns parameters, the displayed planet and its backend resources.

    Parameters
    ----------
    params : GenerationParameters, optional
        Initial parameters (clamped on the way in).  Defaults to
        :data:`~params.EARTHLIKE`.
    topology : Topology
        Sphere topology used by :meth:`regenerate`.
    backend : RenderBackend, optional
        Receives mesh buffers and textures.  Defaults to a fresh
        :class:`CpuBackend`.
    shader_loader, texture_loader : callable
        ``name -> resource | None``.
    shading : Shading
        Vertex colours or shader-lit.
    raster_size : tuple of int
        ``(width, height)`` of the baked heightmap.
    workers : int, optional
        Worker processes for height sampling and baking.
    water_lod : int
        Geodesic level of detail of the water shell.
    """

    def __init__(
        self,
        params: Optional[GenerationParameters] = None,
        *,
        topology: Union[Topology, str] = Topology.GEODESIC,
        backend: Optional[RenderBackend] = None,
        shader_loader: ShaderLoader = builtin_shader_loader,
        texture_loader: TextureLoader = null_loader,
        shading: Union[Shading, str] = Shading.VERTEX_COLOR,
        raster_size: Tuple[int, int] = DEFAULT_RASTER_SIZE,
        workers: Optional[int] = None,
        water_lod: int = DEFAULT_WATER_LOD,
    ) -> None:
        self._params = (params or EARTHLIKE).clamped()
        self._topology = Topology(topology)
        self._shading = Shading(shading)
        self._backend: RenderBackend = backend if backend is not None else CpuBackend()
        self._shader_loader = shader_loader
        self._texture_loader = texture_loader
        self._raster_size = tuple(raster_size)
        self._workers = workers

        self._state = GeneratorState.IDLE
        self._pending = True
        self._mesh: Optional[TerrainMesh] = None
        self._raster: Optional[HeightmapRaster] = None
        self._normal_map: Optional[np.ndarray] = None
        self._render_mode: Optional[RenderMode] = None
        self._resources: List[GpuResource] = []
        self._last_timings: Dict[str, float] = {}
        self._water = WaterShell(self._params, water_lod)

    # ── read-only views ─────────────────────────────────────────────

    @property
    def parameters(self) -> GenerationParameters:
        return self._params

    @property
    def topology(self) -> Topology:
        return self._topology

    @property
    def shading(self) -> Shading:
        return self._shading

    @property
    def state(self) -> GeneratorState:
        return self._state

    @property
    def mesh(self) -> Optional[TerrainMesh]:
        return self._mesh

    @property
    def raster(self) -> Optional[HeightmapRaster]:
        return self._raster

    @property
    def normal_map(self) -> Optional[np.ndarray]:
        return self._normal_map

    @property
    def render_mode(self) -> Optional[RenderMode]:
        return self._render_mode

    @property
    def water_shell(self) -> WaterShell:
        return self._water

    @property
    def resources(self) -> Tuple[GpuResource, ...]:
        return tuple(self._resources)

    @property
    def has_pending_edits(self) -> bool:
        return self._pending

    @property
    def last_timings(self) -> Dict[str, float]:
        return dict(self._last_timings)

    @property
    def raster_size(self) -> Tuple[int, int]:
        return self._raster_size  # type: ignore[return-value]

    # ── edits ───────────────────────────────────────────────────────

    def _mark_edited(self) -> None:
        self._pending = True
        if self._state is GeneratorState.READY:
            self._state = GeneratorState.IDLE

    def set_parameter(self, name: str, value: Any) -> Any:
        """Record one edit and return the (clamped) stored value.

        Raises :class:`InvalidParameterError` for an unknown name or a
        value that is not a number.
        """
        field_name = GenerationParameters.field_for(name)
        coerced = coerce_field(field_name, value)
        self._params = self._params.replace(**{field_name: coerced}).clamped()
        self._mark_edited()
        if field_name in _WATER_FIELDS:
            self._water.update(self._params)
        return getattr(self._params, field_name)

    def update(self, **values: Any) -> Dict[str, Any]:
        """Record several edits at once; returns ``{field: stored value}``."""
        return {
            GenerationParameters.field_for(k): self.set_parameter(k, v)
            for k, v in values.items()
        }

    def set_topology(self, topology: Union[Topology, str]) -> None:
        self._topology = Topology(topology)
        self._mark_edited()

    def set_shading(self, shading: Union[Shading, str]) -> None:
        self._shading = Shading(shading)
        self._mark_edited()

    def set_raster_size(self, width: int, height: int) -> None:
        """Change the heightmap size; validated on the next shader-lit rebuild."""
        self._raster_size = (width, height)
        self._mark_edited()

    def export_parameters(self, *, camel_case: bool = False) -> Dict[str, Any]:
        return self._params.to_record(camel_case=camel_case)

    def load_parameters(self, record: Mapping[str, Any]) -> GenerationParameters:
        """Replace every parameter from a flat record (missing → defaults)."""
        self._params = GenerationParameters.from_record(record)
        self._mark_edited()
        self._water.update(self._params)
        return self._params

    # ── regeneration ────────────────────────────────────────────────

    def _resolve_shader(self) -> Optional[Any]:
        if self._shading is not Shading.SHADER_LIT:
            return None
        shader = self._shader_loader(PLANET_SHADER)
        if shader is None:
            logger.warning(
                "Planet shader unavailable, falling back to vertex colours",
                shader=PLANET_SHADER,
            )
        return shader

    def regenerate(self, cancel: Optional[CancelToken] = None) -> TerrainMesh:
        """Rebuild the planet from the current parameters.

        Raises
        ------
        InvalidParameterError
            Before anything is touched, for an unusable radius or a
            non-finite value.
        InvalidRasterDimensionsError
            Before anything is touched, for a bad ``raster_size`` in
            shader-lit mode.
        GenerationCancelled
            If *cancel* fires between sample batches.
        """
        params = self._params
        params.validate()
        if self._shading is Shading.SHADER_LIT:
            check_dimensions(*self._raster_size)

        prior_state = self._state
        self._state = GeneratorState.REGENERATING
        created: List[GpuResource] = []
        try:
            shader = self._resolve_shader()
            shader_lit = shader is not None
            ctx = GenerationContext(
                params=params,
                topology_kind=self._topology,
                raster_size=self._raster_size,  # type: ignore[arg-type]
                workers=self._workers,
                cancel=cancel,
            )
            result = default_pipeline(shader_lit=shader_lit).run(ctx)
            mesh = ctx.mesh
            if mesh is None:
                raise RuntimeError("generation pipeline produced no mesh")

            created.append(self._backend.create_mesh_buffers(
                mesh.vertex_bytes(), mesh.index_bytes(),
                mesh.vertex_count, mesh.index_count,
            ))
            mode: RenderMode
            if shader_lit:
                if ctx.raster is None or ctx.normal_map is None:
                    raise RuntimeError("shader-lit pipeline produced no heightmap")
                created.append(self._backend.create_texture(ctx.raster.to_rgba8()))
                created.append(self._backend.create_texture(ctx.normal_map))
                mode = ShaderLit(
                    heightmap=ctx.raster,
                    normal_map=ctx.normal_map,
                    shader=shader,
                    detail_texture=self._texture_loader(DETAIL_TEXTURE),
                )
            else:
                mode = VertexColor()
        except BaseException:
            for res in created:
                res.release()
            self._state = prior_state
            raise

        previous = self._resources
        self._mesh = mesh
        self._raster = ctx.raster
        self._normal_map = ctx.normal_map
        self._render_mode = mode
        self._resources = created
        for res in previous:
            res.release()

        self._water.update(params)
        self._pending = False
        self._last_timings = dict(result.elapsed)
        self._state = GeneratorState.READY
        logger.info(
            "Planet regenerated",
            topology=self._topology.value,
            mode=mode.name,
            vertices=mesh.vertex_count,
            triangles=mesh.triangle_count,
            seconds=round(result.total_elapsed, 4),
        )
        return mesh

    # ── persistence ─────────────────────────────────────────────────

    def save_heightmap(self, path: Union[str, Path], *, normalize: bool = False) -> Path:
        """Write the current heightmap as PNG, baking one if none exists."""
        raster = self._raster
        if raster is None:
            self._params.validate()
            width, height = check_dimensions(*self._raster_size)
            raster = bake(width, height, self._params, workers=self._workers)
        return raster.save_png(path, normalize=normalize)

    # ── lifetime ────────────────────────────────────────────────────

    def close(self) -> None:
        """Release every backend resource held for the displayed planet."""
        for res in self._resources:
            res.release()
        self._resources = []

    def __enter__(self) -> "PlanetGenerator":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"PlanetGenerator(state={self._state.value}, topology={self._topology.value}, "
            f"shading={self._shading.value}, seed={self._params.seed})"
        )
