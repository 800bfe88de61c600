"""Companion water shell drawn over the terrain.

The shell is a fixed low-resolution geodesic sphere whose radius equals
the radius the compositor pins ocean vertices to.  Changing the ocean
level only rescales it; the terrain mesh is untouched.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .params import GenerationParameters, Topology
from .topology import build_topology

DEFAULT_WATER_LOD = 3
WATER_COLOUR: Tuple[int, int, int, int] = (30, 80, 160, 160)


def shell_radius(params: GenerationParameters) -> float:
    """``radius * (1 + ocean_level * elevation_scale)``."""
    return params.radius * (1.0 + params.ocean_level * params.elevation_scale)


class WaterShell:
    """Translucent sphere at the ocean surface.

    Parameters
    ----------
    params : GenerationParameters
        Supplies the radius, ocean level and elevation scale.
    level_of_detail : int
        Geodesic subdivision rounds of the shell.
    """

    def __init__(self, params: GenerationParameters, level_of_detail: int = DEFAULT_WATER_LOD) -> None:
        topo = build_topology(level_of_detail, Topology.GEODESIC)
        self._directions = topo.points
        self._directions.setflags(write=False)
        self.indices = topo.indices
        self.indices.setflags(write=False)
        self.level_of_detail = topo.level_of_detail
        self.radius = shell_radius(params)

    def update(self, params: GenerationParameters) -> float:
        """Rescale to *params* and return the new radius."""
        self.radius = shell_radius(params)
        return self.radius

    @property
    def normals(self) -> np.ndarray:
        return self._directions

    @property
    def positions(self) -> np.ndarray:
        return self._directions * self.radius

    @property
    def vertex_count(self) -> int:
        return len(self._directions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices)

    def __repr__(self) -> str:
        return f"WaterShell(radius={self.radius:.4f}, vertices={self.vertex_count})"
