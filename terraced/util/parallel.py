from __future__ import annotations

from concurrent.futures import Executor
from typing import Callable, List, Optional, TypeVar

T = TypeVar("T")


def batch_ranges(count: int, batch_size: int) -> list[range]:
    """Split ``range(count)`` into consecutive ranges of at most ``batch_size``."""
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [range(start, min(start + batch_size, count)) for start in range(0, count, batch_size)]


def parallel_map(
    fn: Callable[[int], T],
    count: int,
    *,
    batch_size: int,
    executor: Optional[Executor] = None,
) -> List[T]:
    """Evaluate ``fn(i)`` for every ``i`` in ``range(count)``.

    Indices are grouped into fixed-size batches; each batch is one task on
    ``executor`` (or runs inline when no executor is given). ``fn`` must only
    read shared inputs: every index owns exactly one output slot, so batches
    never touch each other's results. Output order always matches index order.

    The first exception raised by any batch is re-raised after every batch has
    finished.
    """
    out: List[Optional[T]] = [None] * count
    batches = batch_ranges(count, batch_size)

    def run_batch(indices: range) -> None:
        for i in indices:
            out[i] = fn(i)

    if executor is None:
        for b in batches:
            run_batch(b)
        return out  # type: ignore[return-value]

    futures = [executor.submit(run_batch, b) for b in batches]
    error: Optional[BaseException] = None
    for fut in futures:
        exc = fut.exception()
        if exc is not None and error is None:
            error = exc
    if error is not None:
        raise error
    return out  # type: ignore[return-value]
