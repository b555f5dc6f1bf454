"""
Small helpers shared by the pipelines and the query tool.
"""
from __future__ import annotations

import time
from typing import Any, Iterator, Sequence


class Stopwatch:
    """``with Stopwatch() as sw: ...`` then read ``sw.elapsed_ms``."""

    def __init__(self) -> None:
        self.elapsed_ms = 0
        self._started = 0.0

    def __enter__(self) -> "Stopwatch":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.elapsed_ms = int((time.perf_counter() - self._started) * 1000)


def chunked(items: Sequence[Any], size: int) -> Iterator[list[Any]]:
    """Consecutive slices of *items*, each at most *size* long."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def percentage(part: float, whole: float) -> str:
    """``part / whole`` as a percentage with two decimals; ``"0.00"`` for an empty whole."""
    return f"{part / whole * 100:.2f}" if whole else "0.00"
