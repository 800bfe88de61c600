"""Debug rendering — flat maps and 3-D previews of a generated planet.

Functions
---------
- :func:`biome_image` — equirectangular RGBA8 biome colour image
- :func:`render_biome_map` — flat biome map (PNG)
- :func:`render_heightmap` — heightmap raster with a colour bar (PNG)
- :func:`render_mesh_3d` — matplotlib Poly3DCollection view (PNG)
"""

from __future__ import annotations

from pathlib import Path
from typing import Tuple, Union

import numpy as np

from .biomes import classify_many, colour_many
from .heightfield import sample_many
from .mesh import TerrainMesh
from .params import GenerationParameters
from .raster import HeightmapRaster, cell_directions, check_dimensions


def biome_image(params: GenerationParameters, width: int = 360, height: int = 180) -> np.ndarray:
    """``(height, width, 4)`` uint8 image of biome colours."""
    width, height = check_dimensions(width, height)
    raw, lat = sample_many(cell_directions(width, height), params)
    colours = colour_many(raw, classify_many(raw, lat, params), params)
    return colours.reshape(height, width, 4)


# ═══════════════════════════════════════════════════════════════════
# 2-D flat renders (equirectangular projection)
# ═══════════════════════════════════════════════════════════════════

def render_biome_map(
    params: GenerationParameters,
    out_path: Union[str, Path],
    *,
    width: int = 360,
    height: int = 180,
    figsize: Tuple[float, float] = (12, 6),
    dpi: int = 100,
) -> Path:
    """Render an equirectangular biome map of *params*.

    Returns the output file path.
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    img = biome_image(params, width, height)

    fig, ax = plt.subplots(1, 1, figsize=figsize, dpi=dpi)
    ax.imshow(img, extent=(0.0, 360.0, -90.0, 90.0), interpolation="nearest")
    ax.set_xlabel("Longitude (°)")
    ax.set_ylabel("Latitude (°)")
    ax.set_title(f"Planet seed {params.seed} — biomes")

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, bbox_inches="tight")
    plt.close(fig)
    return out


def render_heightmap(
    raster: HeightmapRaster,
    out_path: Union[str, Path],
    *,
    cmap: str = "terrain",
    figsize: Tuple[float, float] = (12, 6),
    dpi: int = 100,
) -> Path:
    """Render a baked heightmap with a colour bar."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize, dpi=dpi)
    im = ax.imshow(raster.pixels, cmap=cmap, vmin=0.0, vmax=1.0, extent=(0.0, 360.0, -90.0, 90.0))
    fig.colorbar(im, ax=ax, label="raw height")
    ax.set_title(f"Heightmap {raster.width}×{raster.height}")

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, bbox_inches="tight")
    plt.close(fig)
    return out


# ═══════════════════════════════════════════════════════════════════
# 3-D render (matplotlib Poly3DCollection)
# ═══════════════════════════════════════════════════════════════════

def render_mesh_3d(
    mesh: TerrainMesh,
    out_path: Union[str, Path],
    *,
    figsize: Tuple[float, float] = (10, 10),
    dpi: int = 100,
    elev: float = 20.0,
    azim: float = -60.0,
) -> Path:
    """Render the terrain mesh in 3-D with its vertex colours.

    Each triangle takes the mean colour of its corners.  The mesh's y
    axis (the pole) is drawn as matplotlib's z axis.
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    from mpl_toolkits.mplot3d.art3d import Poly3DCollection

    tri = mesh.indices.astype(np.int64)
    pos = mesh.positions.astype(np.float64)[:, [0, 2, 1]]
    polygons = pos[tri]
    colours = mesh.colors[tri].mean(axis=1) / 255.0

    fig = plt.figure(figsize=figsize, dpi=dpi)
    ax = fig.add_subplot(111, projection="3d")
    collection = Poly3DCollection(polygons, facecolors=colours, linewidths=0.0)
    ax.add_collection3d(collection)

    r = float(np.abs(pos).max()) * 1.1 if len(pos) else 1.0
    ax.set_xlim(-r, r)
    ax.set_ylim(-r, r)
    ax.set_zlim(-r, r)
    ax.set_box_aspect([1, 1, 1])
    ax.view_init(elev=elev, azim=azim)
    ax.set_axis_off()
    ax.set_title(f"Planet — {mesh.vertex_count} vertices, {mesh.triangle_count} triangles")

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, bbox_inches="tight")
    plt.close(fig)
    return out
