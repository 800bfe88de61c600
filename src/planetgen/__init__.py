"""planetgen — deterministic procedural planet generation.

Public API is organised into layers:

- **Core** — parameters, errors, mesh data model
- **Synthesis** — noise, height field, topology, biomes, compositing
- **Baking** — heightmap rasters and normal maps
- **Orchestration** — pipeline, regeneration, water shell, render backend
- **Output** — export, parameter I/O, debug rendering (requires matplotlib)
- **Diagnostics** — mesh quality checks
"""

# ── Core ────────────────────────────────────────────────────────────
from .errors import (
    PlanetGenError,
    InvalidParameterError,
    InvalidRasterDimensionsError,
    GenerationCancelled,
)
from .params import (
    GenerationParameters,
    Topology,
    EARTHLIKE,
    ARCHIPELAGO,
    ICE_WORLD,
    MINIMAL_PLANET,
    PRESETS,
)
from .mesh import ElevationField, ElevationSample, TerrainMesh, VertexRecord

# ── Synthesis ───────────────────────────────────────────────────────
from .noise import fbm_3d, ridged_noise_3d
from .heightfield import HeightField, sample, sample_many
from .topology import SphereTopology, build_topology, geodesic_sphere, uv_sphere
from .biomes import BiomeKind, classify, colour
from .compositor import composite, compute_normals, sample_elevations

# ── Baking ──────────────────────────────────────────────────────────
from .raster import HeightmapRaster, bake, bake_normal_map

# ── Orchestration ───────────────────────────────────────────────────
from .concurrency import CancelToken
from .pipeline import (
    GenerationContext,
    GenerationPipeline,
    GenerationStep,
    PipelineResult,
    StepResult,
    default_pipeline,
)
from .backend import CpuBackend, RenderBackend, RenderMode, ShaderLit, VertexColor
from .water import WaterShell
from .orchestrator import GeneratorState, PlanetGenerator, Shading

# ── Output ──────────────────────────────────────────────────────────
from .export import export_mesh_json, export_mesh_payload, validate_mesh_payload
from .io import load_parameters, save_parameters

# ── Diagnostics ─────────────────────────────────────────────────────
from .diagnostics import MeshReport, is_closed_manifold, mesh_report

__all__ = [
    # Core
    "PlanetGenError",
    "InvalidParameterError",
    "InvalidRasterDimensionsError",
    "GenerationCancelled",
    "GenerationParameters",
    "Topology",
    "EARTHLIKE",
    "ARCHIPELAGO",
    "ICE_WORLD",
    "MINIMAL_PLANET",
    "PRESETS",
    "ElevationField",
    "ElevationSample",
    "TerrainMesh",
    "VertexRecord",
    # Synthesis
    "fbm_3d",
    "ridged_noise_3d",
    "HeightField",
    "sample",
    "sample_many",
    "SphereTopology",
    "build_topology",
    "geodesic_sphere",
    "uv_sphere",
    "BiomeKind",
    "classify",
    "colour",
    "composite",
    "compute_normals",
    "sample_elevations",
    # Baking
    "HeightmapRaster",
    "bake",
    "bake_normal_map",
    # Orchestration
    "CancelToken",
    "GenerationContext",
    "GenerationPipeline",
    "GenerationStep",
    "PipelineResult",
    "StepResult",
    "default_pipeline",
    "CpuBackend",
    "RenderBackend",
    "RenderMode",
    "ShaderLit",
    "VertexColor",
    "WaterShell",
    "GeneratorState",
    "PlanetGenerator",
    "Shading",
    # Output
    "export_mesh_json",
    "export_mesh_payload",
    "validate_mesh_payload",
    "load_parameters",
    "save_parameters",
    # Diagnostics
    "MeshReport",
    "is_closed_manifold",
    "mesh_report",
]
