"""Exception hierarchy for planet generation.

Only two error classes ever reach a caller of :meth:`PlanetGenerator.regenerate`
or :func:`raster.bake`: :class:`InvalidParameterError` and
:class:`InvalidRasterDimensionsError`.  Both are raised before any
resource is touched.  Degenerate geometry is recovered where it occurs
and never raised.
"""

from __future__ import annotations


class PlanetGenError(ValueError):
    """Base class for every error raised by planetgen."""


class InvalidParameterError(PlanetGenError):
    """A parameter value that cannot be clamped into a meaningful range."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid parameter {name}={value!r}: {reason}")


class InvalidRasterDimensionsError(PlanetGenError):
    """Zero, negative or non-integer raster width/height."""

    def __init__(self, width: object, height: object) -> None:
        self.width = width
        self.height = height
        super().__init__(
            f"Invalid raster dimensions {width!r} x {height!r}: "
            "width and height must be positive integers"
        )


class GenerationCancelled(PlanetGenError, RuntimeError):
    """Raised between sample batches when a :class:`CancelToken` fires."""
