"""Weighted random selection without replacement.

:class:`WeightedBag` holds items with positive weights. Each call to
:meth:`WeightedBag.remove` draws one item with probability proportional to
its weight among the items still in the bag, so draining the bag yields a
randomized ordering in which heavier items tend to come first.

Example
-------
>>> import random
>>> bag = WeightedBag(random.Random(3))
>>> bag.add("step", 7)
>>> bag.add("third", 3)
>>> sorted(bag.drain())
['step', 'third']

Randomness comes from the ``rng`` passed to the constructor so callers can
inject a seeded :class:`random.Random` for reproducible runs.
"""

from __future__ import annotations

import random
from typing import Generic, List, Optional, TypeVar

__all__ = ["WeightedBag"]

T = TypeVar("T")


class WeightedBag(Generic[T]):
    """Bag of weighted items supporting random removal."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._items: List[T] = []
        self._weights: List[float] = []

    def add(self, item: T, weight: float) -> None:
        """Add ``item`` with the relative likelihood ``weight``.

        Raises
        ------
        ValueError
            If ``weight`` is not a positive number.
        """

        if weight <= 0:
            raise ValueError("weight must be positive")
        self._items.append(item)
        self._weights.append(float(weight))

    def remove(self) -> T:
        """Draw and return one item, weighted by the remaining weights."""

        if not self._items:
            raise IndexError("remove from an empty WeightedBag")
        threshold = self._rng.random() * sum(self._weights)
        total = 0.0
        index = len(self._items) - 1
        for i, weight in enumerate(self._weights):
            total += weight
            if threshold < total:
                index = i
                break
        del self._weights[index]
        return self._items.pop(index)

    def drain(self) -> List[T]:
        """Remove every item and return them in draw order."""

        drawn = []
        while not self.is_empty():
            drawn.append(self.remove())
        return drawn

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)
