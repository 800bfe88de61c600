"""Generation pipeline — composable step-based planet generation.

Provides :class:`GenerationStep` (protocol) and
:class:`GenerationPipeline` (sequencer) so that the stages of a
regeneration (topology, compositing, heightmap baking, normal map) are
declared in order and run as one unit against a shared
:class:`GenerationContext`.

Usage
-----
>>> from planetgen.params import MINIMAL_PLANET
>>> from planetgen.pipeline import GenerationContext, default_pipeline
>>>
>>> ctx = GenerationContext(params=MINIMAL_PLANET)
>>> result = default_pipeline(shader_lit=False).run(ctx)
>>> ctx.mesh.vertex_count
42
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

import numpy as np

from .compositor import composite
from .concurrency import CancelToken, DEFAULT_BATCH_SIZE
from .mesh import TerrainMesh
from .params import GenerationParameters, Topology
from .raster import HeightmapRaster, bake, bake_normal_map
from .topology import SphereTopology, build_topology

DEFAULT_RASTER_SIZE: Tuple[int, int] = (512, 256)


# ═══════════════════════════════════════════════════════════════════
# Shared context
# ═══════════════════════════════════════════════════════════════════

@dataclass
class GenerationContext:
    """Inputs and intermediate products of one regeneration.

    Steps read their inputs from the context and write their products
    back onto it.
    """

    params: GenerationParameters
    topology_kind: Topology = Topology.GEODESIC
    raster_size: Tuple[int, int] = DEFAULT_RASTER_SIZE
    workers: Optional[int] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    cancel: Optional[CancelToken] = None

    topology: Optional[SphereTopology] = None
    mesh: Optional[TerrainMesh] = None
    raster: Optional[HeightmapRaster] = None
    normal_map: Optional[np.ndarray] = None


# ═══════════════════════════════════════════════════════════════════
# GenerationStep protocol
# ═══════════════════════════════════════════════════════════════════


@dataclass
class StepResult:
    """Optional return value from a step, carrying artefacts."""

    artefacts: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class GenerationStep(Protocol):
    """Protocol for a generation step.

    The step mutates *context* in place and may optionally return a
    :class:`StepResult` containing artefacts.
    """

    @property
    def name(self) -> str:
        """Human-readable name for logging."""
        ...

    def __call__(self, context: GenerationContext) -> Optional[StepResult]:
        """Execute the step, mutating *context* in place."""
        ...


# ═══════════════════════════════════════════════════════════════════
# GenerationPipeline
# ═══════════════════════════════════════════════════════════════════

Hook = Callable[[str, int, int], None]
"""Signature for before/after hooks: ``(step_name, step_index, total_steps)``."""


@dataclass
class PipelineResult:
    """Aggregate result of running a full pipeline.

    Attributes
    ----------
    step_results : dict[str, StepResult]
        Mapping of ``step.name → StepResult`` for every step that
        returned one.
    elapsed : dict[str, float]
        Mapping of ``step.name → seconds`` wall-clock time per step.
    """

    step_results: Dict[str, StepResult] = field(default_factory=dict)
    elapsed: Dict[str, float] = field(default_factory=dict)

    def artefact(self, step_name: str, key: str) -> Any:
        """Raises ``KeyError`` if the step or key is not present."""
        return self.step_results[step_name].artefacts[key]

    @property
    def total_elapsed(self) -> float:
        return sum(self.elapsed.values())


class GenerationPipeline:
    """Ordered sequence of :class:`GenerationStep` instances.

    Parameters
    ----------
    steps : list[GenerationStep]
        Steps to execute in order.
    before : Hook | None
        Called *before* each step.
    after : Hook | None
        Called *after* each step.
    """

    def __init__(
        self,
        steps: Optional[List[GenerationStep]] = None,
        *,
        before: Optional[Hook] = None,
        after: Optional[Hook] = None,
    ) -> None:
        self._steps: List[GenerationStep] = list(steps or [])
        self._before = before
        self._after = after

    def add(self, step: GenerationStep) -> "GenerationPipeline":
        """Append a step and return *self* for chaining."""
        self._steps.append(step)
        return self

    def run(self, context: GenerationContext) -> PipelineResult:
        """Execute all steps in order, returning aggregate results.

        A step that raises aborts the run; the exception propagates
        unchanged and later steps never execute.
        """
        result = PipelineResult()
        total = len(self._steps)

        for idx, step in enumerate(self._steps):
            sname = step.name
            if context.cancel is not None:
                context.cancel.raise_if_cancelled()
            if self._before:
                self._before(sname, idx, total)

            t0 = time.perf_counter()
            step_result = step(context)
            result.elapsed[sname] = time.perf_counter() - t0

            if step_result is not None:
                result.step_results[sname] = step_result
            if self._after:
                self._after(sname, idx, total)

        return result

    @property
    def step_names(self) -> List[str]:
        return [s.name for s in self._steps]

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return f"GenerationPipeline([{', '.join(self.step_names)}])"


# ═══════════════════════════════════════════════════════════════════
# Built-in steps
# ═══════════════════════════════════════════════════════════════════


@dataclass
class TopologyStep:
    """Builds the unit-sphere point set for the context's topology."""

    @property
    def name(self) -> str:
        return "topology"

    def __call__(self, context: GenerationContext) -> Optional[StepResult]:
        context.topology = build_topology(
            context.params.level_of_detail, context.topology_kind,
        )
        return StepResult(artefacts={
            "vertices": context.topology.vertex_count,
            "triangles": context.topology.triangle_count,
        })


@dataclass
class CompositeStep:
    """Samples, classifies, displaces and lights the topology."""

    @property
    def name(self) -> str:
        return "composite"

    def __call__(self, context: GenerationContext) -> Optional[StepResult]:
        if context.topology is None:
            raise RuntimeError("composite step needs a topology; run TopologyStep first")
        context.mesh = composite(
            context.topology.points,
            context.topology.indices,
            context.params,
            workers=context.workers,
            batch_size=context.batch_size,
            cancel=context.cancel,
        )
        return StepResult(artefacts={"biomes": context.mesh.biome_counts()})


@dataclass
class BakeStep:
    """Bakes the equirectangular heightmap at ``context.raster_size``."""

    @property
    def name(self) -> str:
        return "bake"

    def __call__(self, context: GenerationContext) -> Optional[StepResult]:
        width, height = context.raster_size
        context.raster = bake(
            width, height, context.params,
            workers=context.workers,
            batch_size=context.batch_size,
            cancel=context.cancel,
        )
        return None


@dataclass
class NormalMapStep:
    """Derives a tangent-space normal map from the baked heightmap."""

    strength: float = 4.0

    @property
    def name(self) -> str:
        return "normal_map"

    def __call__(self, context: GenerationContext) -> Optional[StepResult]:
        if context.raster is None:
            raise RuntimeError("normal map step needs a raster; run BakeStep first")
        context.normal_map = bake_normal_map(context.raster, self.strength)
        return None


@dataclass
class CustomStep:
    """Inline step from an arbitrary callable.

    Usage::

        step = CustomStep("log", lambda ctx: print(ctx.mesh.vertex_count))
    """

    _name: str
    fn: Callable[[GenerationContext], Optional[StepResult]]

    @property
    def name(self) -> str:
        return self._name

    def __call__(self, context: GenerationContext) -> Optional[StepResult]:
        return self.fn(context)


def default_pipeline(
    *,
    shader_lit: bool = False,
    before: Optional[Hook] = None,
    after: Optional[Hook] = None,
) -> GenerationPipeline:
    """Topology → composite, plus bake → normal map when *shader_lit*."""
    steps: List[GenerationStep] = [TopologyStep(), CompositeStep()]
    if shader_lit:
        steps += [BakeStep(), NormalMapStep()]
    return GenerationPipeline(steps, before=before, after=after)
