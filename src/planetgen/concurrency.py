"""Batch parallelism and cooperative cancellation.

Per-vertex height sampling and per-cell raster baking are independent,
so both are split into fixed-size batches.  Batches run in order on the
calling thread by default, or on a :class:`ProcessPoolExecutor` when
``workers > 1``.  Results are always concatenated in batch order, so the
output is identical however many workers are used.

A :class:`CancelToken` is only checked *between* batches.
"""

from __future__ import annotations

import threading
from concurrent.futures import ProcessPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from .errors import GenerationCancelled

DEFAULT_BATCH_SIZE = 4096

T = TypeVar("T")


class CancelToken:
    """Thread-safe cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled("generation cancelled")


def batch_slices(count: int, batch_size: int = DEFAULT_BATCH_SIZE) -> List[slice]:
    """Split ``range(count)`` into contiguous slices of at most *batch_size*."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [slice(i, min(i + batch_size, count)) for i in range(0, count, batch_size)]


def map_batches(
    fn: Callable[[T], Tuple[np.ndarray, ...]],
    batches: Sequence[T],
    *,
    workers: Optional[int] = None,
    cancel: Optional[CancelToken] = None,
) -> List[Tuple[np.ndarray, ...]]:
    """Apply *fn* to every batch and return the results in batch order.

    *fn* must be a picklable module-level function when ``workers > 1``.
    """
    results: List[Tuple[np.ndarray, ...]] = []

    if not workers or workers <= 1 or len(batches) <= 1:
        for batch in batches:
            if cancel is not None:
                cancel.raise_if_cancelled()
            results.append(fn(batch))
        return results

    with ProcessPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(fn, batch) for batch in batches]
        try:
            for future in futures:
                if cancel is not None:
                    cancel.raise_if_cancelled()
                results.append(future.result())
        except GenerationCancelled:
            for future in futures:
                future.cancel()
            raise
    return results
