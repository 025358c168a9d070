"""Fixed-capacity, newest-first log buffers."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class BoundedLog(Generic[T]):
    """Ring buffer keeping the most recent ``capacity`` entries.

    Iteration and :meth:`entries` yield newest first; the oldest entry is
    evicted once the buffer is full.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._entries: deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def append(self, entry: T) -> T:
        self._entries.append(entry)
        return entry

    def entries(self) -> list[T]:
        return list(reversed(self._entries))

    def latest(self) -> T | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return reversed(self._entries)
