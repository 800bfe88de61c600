from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from .params import GenerationParameters


PathLike = Union[str, Path]


def load_parameters(path: PathLike) -> GenerationParameters:
    """Read a flat JSON parameter record; values are coerced and clamped."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object of parameters")
    return GenerationParameters.from_record(data)


def save_parameters(params: GenerationParameters, path: PathLike, camel_case: bool = False) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(
        json.dumps(params.to_record(camel_case=camel_case), indent=2),
        encoding="utf-8",
    )
    return out
