"""
Bounded top-k selection.

Keys follow the smaller-is-better convention from ``registry.rank_key``,
so the selector never needs to know which metric produced them.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Generic, Iterable, List, Optional, Tuple, TypeVar

import numpy as np
from numpy.typing import NDArray

T = TypeVar("T")


class TopKSelector(Generic[T]):
    """
    Keeps the k candidates with the smallest keys seen so far.

    ``heapq`` is a min-heap; keys are stored negated so the root is the
    worst entry currently held and can be compared and replaced in
    O(log k). Entries with equal keys come out in unspecified order.

    Example:
        >>> selector = TopKSelector(2)
        >>> for key, item in [(3.0, "c"), (1.0, "a"), (2.0, "b")]:
        ...     selector.push(key, item)
        >>> selector.drain()
        [(1.0, 'a'), (2.0, 'b')]
    """

    def __init__(self, k: int):
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        self.k = k
        # (negated key, insertion counter, item); the counter keeps heapq
        # from ever comparing items
        self._heap: List[Tuple[float, int, T]] = []
        self._counter = itertools.count()

    def push(self, key: float, item: T) -> bool:
        """
        Offer a candidate.

        Returns:
            True if the candidate is now held
        """
        if self.k == 0:
            return False

        entry = (-key, next(self._counter), item)

        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True

        # Replace the worst held entry only on a strict improvement
        if key < -self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True

        return False

    def push_many(self, keys: Iterable[float], items: Iterable[T]) -> None:
        for key, item in zip(keys, items):
            self.push(float(key), item)

    @property
    def worst(self) -> Optional[float]:
        """Key of the worst entry held, or None when empty."""
        if not self._heap:
            return None
        return -self._heap[0][0]

    def __len__(self) -> int:
        return len(self._heap)

    def drain(self) -> List[Tuple[float, T]]:
        """
        Empty the selector.

        Returns:
            (key, item) pairs, best (smallest key) first
        """
        entries = sorted(self._heap, key=lambda e: -e[0])
        self._heap = []
        return [(-neg_key, item) for neg_key, _, item in entries]


def candidate_indices(keys: NDArray, k: int) -> NDArray:
    """
    Indices that may belong to the top k of ``keys``.

    Uses ``np.argpartition`` to discard everything that cannot make the
    cut, so the heap only sees about k entries per chunk.
    """
    n = len(keys)
    if k <= 0:
        return np.arange(0)
    if k >= n:
        return np.arange(n)
    return np.argpartition(keys, k - 1)[:k]


def select_top_k(keys: NDArray, k: int) -> List[Tuple[float, int]]:
    """
    Top-k over a key array.

    Returns:
        (key, index) pairs, best first; at most min(k, len(keys))
    """
    keys = np.asarray(keys)
    selector: TopKSelector[int] = TopKSelector(k)
    if k == 0 or len(keys) == 0:
        return []

    indices = candidate_indices(keys, k)
    selector.push_many(keys[indices], (int(i) for i in indices))
    return selector.drain()
