"""Generation parameters — the small scalar record every planet is built from.

Usage
-----
>>> from planetgen.params import GenerationParameters, EARTHLIKE
>>> params = EARTHLIKE.replace(seed=7, ocean_level=-5).clamped()
>>> params.ocean_level
0.0

Values outside their documented range are clamped, never rejected.  The
only values that cannot be clamped meaningfully (a non-positive or
non-finite radius, non-finite numbers in general) are reported by
:meth:`GenerationParameters.validate`.
"""

from __future__ import annotations

import enum
import math
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Tuple

from .errors import InvalidParameterError

# ═══════════════════════════════════════════════════════════════════
# Ranges
# ═══════════════════════════════════════════════════════════════════

MIN_FREQUENCY = 0.01
MAX_FREQUENCY = 64.0
MAX_LEVEL_OF_DETAIL = 4096

# field name → (lo, hi) for plain float clamps
_UNIT_FIELDS: Tuple[str, ...] = (
    "continent_height",
    "mountain_height",
    "ocean_level",
    "polar_cutoff",
    "elevation_scale",
    "warp_strength",
    "ice_cap_lift",
)
_FREQUENCY_FIELDS: Tuple[str, ...] = (
    "continent_frequency",
    "mountain_frequency",
    "detail_frequency",
)


class Topology(str, enum.Enum):
    """Mesh topology strategy."""

    UV_SPHERE = "uv"
    GEODESIC = "geodesic"


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


# ═══════════════════════════════════════════════════════════════════
# Parameter record
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GenerationParameters:
    """All tuneable inputs of a planet.

    Attributes
    ----------
    radius : float
        Sphere radius in world units.  Must be > 0.
    seed : int
        Noise seed.  Same seed + same parameters → identical mesh.
    continent_frequency, mountain_frequency, detail_frequency : float
        Spatial frequency of the three noise layers (> 0).
    continent_height, mountain_height : float
        Weights in ``[0, 1]`` of the continent and mountain layers.
    ocean_level : float
        Height threshold in ``[0, 1]`` below which a vertex is ocean.
    polar_cutoff : float
        ``|y|`` threshold in ``[0, 1]`` above which ice overrides
        every height-based biome.
    level_of_detail : int
        Geodesic subdivision rounds, or UV grid resolution.
    elevation_scale : float
        Fraction of the radius a height of 1.0 displaces the surface by.
    warp_strength : float
        Domain warp amplitude in ``[0, 1]``; 0 disables warping.
    ice_cap_lift : float
        Extra height in ``[0, 1]`` reached at the poles, ramping up from
        ``polar_cutoff``; 0 keeps the caps at their noise height.
    """

    radius: float = 50.0
    seed: int = 42
    continent_frequency: float = 1.5
    mountain_frequency: float = 4.0
    detail_frequency: float = 8.0
    continent_height: float = 0.7
    mountain_height: float = 0.5
    ocean_level: float = 0.35
    polar_cutoff: float = 0.85
    level_of_detail: int = 5
    elevation_scale: float = 0.1
    warp_strength: float = 0.0
    ice_cap_lift: float = 0.0

    # ── clamping / validation ───────────────────────────────────────

    def clamped(self) -> "GenerationParameters":
        """Return a copy with every clampable field forced into range.

        ``radius`` and non-finite floats are left untouched; they are
        :meth:`validate`'s job.
        """
        changes: Dict[str, Any] = {}
        for name in _UNIT_FIELDS:
            v = float(getattr(self, name))
            if math.isfinite(v):
                changes[name] = _clamp(v, 0.0, 1.0)
        for name in _FREQUENCY_FIELDS:
            v = float(getattr(self, name))
            if math.isfinite(v):
                changes[name] = _clamp(v, MIN_FREQUENCY, MAX_FREQUENCY)
        lod = self.level_of_detail
        if isinstance(lod, float) and not math.isfinite(lod):
            lod = MAX_LEVEL_OF_DETAIL if lod > 0 else 0
        changes["level_of_detail"] = int(_clamp(int(lod), 0, MAX_LEVEL_OF_DETAIL))
        changes["seed"] = int(self.seed)
        changes["radius"] = float(self.radius)
        return replace(self, **changes)

    def validate(self) -> None:
        """Raise :class:`InvalidParameterError` for unclampable values."""
        if not math.isfinite(self.radius):
            raise InvalidParameterError("radius", self.radius, "must be finite")
        if self.radius <= 0:
            raise InvalidParameterError("radius", self.radius, "must be > 0")
        for name in _UNIT_FIELDS + _FREQUENCY_FIELDS:
            v = getattr(self, name)
            if not math.isfinite(v):
                raise InvalidParameterError(name, v, "must be finite")

    def replace(self, **changes: Any) -> "GenerationParameters":
        """Dataclass ``replace`` accepting snake_case or camelCase names."""
        return replace(self, **{self.field_for(k): v for k, v in changes.items()})

    # ── naming ──────────────────────────────────────────────────────

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def field_for(cls, name: str) -> str:
        """Resolve *name* (snake_case or camelCase) to a field name.

        Raises :class:`InvalidParameterError` for unknown names.
        """
        if name in _FIELD_ALIASES:
            return _FIELD_ALIASES[name]
        raise InvalidParameterError(name, None, "unknown parameter")

    # ── flat record ─────────────────────────────────────────────────

    def to_record(self, *, camel_case: bool = False) -> Dict[str, Any]:
        """Flat ``{field: value}`` record for save/restore."""
        record = asdict(self)
        if camel_case:
            return {_camel(k): v for k, v in record.items()}
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "GenerationParameters":
        """Build parameters from a flat record; missing fields use defaults.

        Values are coerced to the field's type and clamped.
        """
        values: Dict[str, Any] = {}
        for key, raw in record.items():
            name = cls.field_for(key)
            values[name] = coerce_field(name, raw)
        return cls(**values).clamped()


_FIELD_ALIASES: Dict[str, str] = {}
for _f in fields(GenerationParameters):
    _FIELD_ALIASES[_f.name] = _f.name
    _FIELD_ALIASES[_camel(_f.name)] = _f.name


def coerce_field(name: str, value: Any) -> Any:
    """Convert *value* to the type of field *name*.

    An infinite ``level_of_detail`` is clamped to its range like any other
    out-of-range value; a non-finite ``seed`` cannot be clamped and is
    rejected.
    """
    if name == "level_of_detail" and isinstance(value, float) and not math.isfinite(value):
        return MAX_LEVEL_OF_DETAIL if value > 0 else 0
    try:
        if name in ("seed", "level_of_detail"):
            return int(value)
        return float(value)
    except OverflowError as exc:
        raise InvalidParameterError(name, value, "must be finite") from exc
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(name, value, "not a number") from exc


# ═══════════════════════════════════════════════════════════════════
# Presets
# ═══════════════════════════════════════════════════════════════════

EARTHLIKE = GenerationParameters()

ARCHIPELAGO = GenerationParameters(
    continent_frequency=3.0,
    mountain_frequency=6.0,
    detail_frequency=12.0,
    continent_height=0.8,
    mountain_height=0.3,
    ocean_level=0.45,
    polar_cutoff=0.9,
    warp_strength=0.25,
)

ICE_WORLD = GenerationParameters(
    continent_frequency=1.0,
    mountain_frequency=3.0,
    continent_height=0.5,
    mountain_height=0.7,
    ocean_level=0.25,
    polar_cutoff=0.3,
    ice_cap_lift=0.1,
)

MINIMAL_PLANET = GenerationParameters(
    radius=1.0,
    seed=0,
    continent_frequency=0.5,
    mountain_frequency=2.0,
    detail_frequency=4.0,
    ocean_level=0.4,
    mountain_height=0.5,
    continent_height=0.1,
    polar_cutoff=0.7,
    level_of_detail=1,
)

PRESETS: Dict[str, GenerationParameters] = {
    "earthlike": EARTHLIKE,
    "archipelago": ARCHIPELAGO,
    "ice_world": ICE_WORLD,
    "minimal": MINIMAL_PLANET,
}
