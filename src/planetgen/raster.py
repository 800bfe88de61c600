"""Heightmap texture baker — equirectangular rasters of the height field.

Cell ``(row, col)`` of a ``width × height`` raster covers the direction
at polar angle ``θ = π(row + ½) / height`` and azimuth
``φ = 2π(col + ½) / width``; the direction is sampled through
:func:`heightfield.sample_many`, so a raster cell and a mesh vertex that
share a direction share a height (up to float32 storage precision).

Functions
---------
- :func:`bake` — parameters → :class:`HeightmapRaster`
- :func:`bake_normal_map` — finite-difference tangent-space normal map
- :func:`direction_for_cell` / :func:`cell_for_direction`
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import structlog

from .concurrency import CancelToken, DEFAULT_BATCH_SIZE
from .errors import InvalidRasterDimensionsError
from .heightfield import sample_many
from .params import GenerationParameters

logger = structlog.get_logger()

PathLike = Union[str, Path]


def check_dimensions(width: object, height: object) -> Tuple[int, int]:
    ok = all(
        isinstance(v, numbers.Integral) and not isinstance(v, bool) and int(v) > 0
        for v in (width, height)
    )
    if not ok:
        raise InvalidRasterDimensionsError(width, height)
    return int(width), int(height)  # type: ignore[arg-type]


# ═══════════════════════════════════════════════════════════════════
# Cell ↔ direction mapping
# ═══════════════════════════════════════════════════════════════════

def direction_for_cell(row: int, col: int, width: int, height: int) -> Tuple[float, float, float]:
    """Unit direction at the centre of raster cell ``(row, col)``."""
    theta = math.pi * (row + 0.5) / height
    phi = 2.0 * math.pi * (col + 0.5) / width
    st = math.sin(theta)
    return (st * math.cos(phi), math.cos(theta), st * math.sin(phi))


def cell_directions(width: int, height: int) -> np.ndarray:
    """``(height * width, 3)`` array of cell-centre directions, row-major."""
    width, height = check_dimensions(width, height)
    theta = np.pi * (np.arange(height) + 0.5) / height
    phi = 2.0 * np.pi * (np.arange(width) + 0.5) / width
    st = np.sin(theta)[:, None]
    out = np.empty((height, width, 3), dtype=np.float64)
    out[..., 0] = st * np.cos(phi)[None, :]
    out[..., 1] = np.cos(theta)[:, None]
    out[..., 2] = st * np.sin(phi)[None, :]
    return out.reshape(-1, 3)


def cell_for_direction(direction: Sequence[float], width: int, height: int) -> Tuple[int, int]:
    """Raster cell ``(row, col)`` containing *direction*.

    *direction* need not be normalised.
    """
    x, y, z = (float(c) for c in direction)
    length = math.sqrt(x * x + y * y + z * z)
    if length == 0.0:
        raise ValueError("direction must be non-zero")
    theta = math.acos(max(-1.0, min(1.0, y / length)))
    phi = math.atan2(z, x) % (2.0 * math.pi)
    row = min(height - 1, int(theta / math.pi * height))
    col = int(phi / (2.0 * math.pi) * width) % width
    return row, col


# ═══════════════════════════════════════════════════════════════════
# Raster
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class HeightmapRaster:
    """Row-major float32 elevation raster.

    Attributes
    ----------
    width, height : int
        Raster size in cells.
    pixels : ndarray
        ``(height, width)`` float32 raw heights in ``[0, 1]``; read-only.
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        check_dimensions(self.width, self.height)
        px = np.array(self.pixels, dtype=np.float32, copy=True).reshape(self.height, self.width)
        px.setflags(write=False)
        object.__setattr__(self, "pixels", px)

    def value(self, row: int, col: int) -> float:
        return float(self.pixels[row, col])

    def sample_direction(self, direction: Sequence[float]) -> float:
        """Nearest-cell lookup of the height in *direction*."""
        row, col = cell_for_direction(direction, self.width, self.height)
        return float(self.pixels[row, col])

    def to_rgba8(self, *, normalize: bool = False) -> np.ndarray:
        """Greyscale ``(height, width, 4)`` uint8 image.

        With *normalize* the raster's own min/max are stretched to
        ``0..255``; otherwise raw heights map linearly from ``[0, 1]``.
        """
        px = self.pixels.astype(np.float64)
        if normalize:
            lo, hi = float(px.min()), float(px.max())
            span = hi - lo if hi > lo else 1.0
            px = (px - lo) / span
        grey = np.rint(np.clip(px, 0.0, 1.0) * 255.0).astype(np.uint8)
        rgba = np.empty((self.height, self.width, 4), dtype=np.uint8)
        rgba[..., 0] = grey
        rgba[..., 1] = grey
        rgba[..., 2] = grey
        rgba[..., 3] = 255
        return rgba

    def save_png(self, path: PathLike, *, normalize: bool = False) -> Path:
        """Write the raster as a lossless RGBA8 PNG and return the path."""
        from matplotlib import image as mpimg

        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        mpimg.imsave(out, self.to_rgba8(normalize=normalize), format="png")
        logger.info("Heightmap saved", path=str(out), width=self.width, height=self.height)
        return out


# ═══════════════════════════════════════════════════════════════════
# Baking
# ═══════════════════════════════════════════════════════════════════

def bake(
    width: int,
    height: int,
    params: GenerationParameters,
    *,
    workers: Optional[int] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel: Optional[CancelToken] = None,
) -> HeightmapRaster:
    """Bake an equirectangular heightmap of the planet.

    Raises
    ------
    InvalidRasterDimensionsError
        If *width* or *height* is not a positive integer.
    GenerationCancelled
        If *cancel* fires between batches.
    """
    width, height = check_dimensions(width, height)
    dirs = cell_directions(width, height)
    heights, _ = sample_many(dirs, params, workers=workers, batch_size=batch_size, cancel=cancel)
    raster = HeightmapRaster(width=width, height=height, pixels=heights.reshape(height, width))
    logger.debug("Heightmap baked", width=width, height=height)
    return raster


def bake_normal_map(raster: HeightmapRaster, strength: float = 1.0) -> np.ndarray:
    """Tangent-space normal map of *raster* as ``(height, width, 4)`` uint8.

    Central differences wrap around horizontally (the longitude seam) and
    clamp vertically (the poles).  *strength* scales the slopes before
    normalisation.
    """
    h = raster.pixels.astype(np.float64)
    dx = (np.roll(h, -1, axis=1) - np.roll(h, 1, axis=1)) * 0.5
    padded = np.pad(h, ((1, 1), (0, 0)), mode="edge")
    dy = (padded[2:] - padded[:-2]) * 0.5

    n = np.stack([-dx * strength, -dy * strength, np.ones_like(h)], axis=-1)
    n /= np.linalg.norm(n, axis=-1, keepdims=True)

    rgba = np.empty(h.shape + (4,), dtype=np.uint8)
    rgba[..., :3] = np.rint((n * 0.5 + 0.5) * 255.0).astype(np.uint8)
    rgba[..., 3] = 255
    return rgba
