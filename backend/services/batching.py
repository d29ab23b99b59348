"""
Helpers for splitting membership predicates into store-sized batches.
"""

from collections.abc import Iterable, Iterator
from typing import TypeVar

T = TypeVar("T")


def unique(values: Iterable[T]) -> list[T]:
    """Drop falsy and repeated values, keeping first-seen order."""
    return list(dict.fromkeys(v for v in values if v))


def chunked(values: list[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of at most *size* items."""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    for start in range(0, len(values), size):
        yield values[start : start + size]
