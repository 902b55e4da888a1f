"""Max-priority queue of partial sequences."""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, Generic, List, Tuple, TypeVar

__all__ = ["Frontier"]

T = TypeVar("T")


class Frontier(Generic[T]):
    """Priority queue returning the item with the highest ``priority``.

    The priority of each item is computed once when it is inserted and stored
    alongside it. Among equal priorities the most recently inserted item is
    returned first, which gives callers a deterministic tie-break: push the
    preferred option last.
    """

    def __init__(self, priority: Callable[[T], float]) -> None:
        self._priority = priority
        self._heap: List[Tuple[float, int, T]] = []
        self._counter = itertools.count()

    def insert(self, item: T) -> None:
        # heapq is a min-heap, so both keys are negated.
        heapq.heappush(self._heap, (-self._priority(item), -next(self._counter), item))

    def pop_max(self) -> T:
        if not self._heap:
            raise IndexError("pop from an empty Frontier")
        return heapq.heappop(self._heap)[2]

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)
