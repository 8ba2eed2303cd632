"""Indexed min-priority queue over dense integer indices.

A binary heap of indices plus an inverse table from index to heap
position, giving O(log n) insert, decrease-key and delete-min and O(1)
membership tests. Indices must lie in ``[0, capacity)``.
"""

from __future__ import annotations

from callpath.core.exceptions import (
    DuplicateIndexError,
    IndexNotPresentError,
    KeyNotDecreasingError,
    QueueEmptyError,
)

_ABSENT = -1


class IndexMinPQ:
    """Min-priority queue keyed by integer index."""

    __slots__ = ("_capacity", "_heap", "_position", "_keys")

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"Capacity must be non-negative, got {capacity}")
        self._capacity = capacity
        # _heap[p] is the index stored at heap position p
        self._heap: list[int] = []
        # _position[i] is the heap position of index i, or _ABSENT
        self._position: list[int] = [_ABSENT] * capacity
        self._keys: list[float] = [0] * capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    def _validate(self, index: int) -> None:
        if not 0 <= index < self._capacity:
            raise ValueError(f"Index {index} out of range [0, {self._capacity})")

    def contains(self, index: int) -> bool:
        """Whether ``index`` is queued. O(1)."""
        self._validate(index)
        return self._position[index] != _ABSENT

    def insert(self, index: int, key: float) -> None:
        """Add ``index`` with priority ``key``. O(log n)."""
        if self.contains(index):
            raise DuplicateIndexError(f"Index {index} is already in the queue", index)
        self._position[index] = len(self._heap)
        self._heap.append(index)
        self._keys[index] = key
        self._swim(len(self._heap) - 1)

    def key_of(self, index: int) -> float:
        """Current key of a queued index."""
        if not self.contains(index):
            raise IndexNotPresentError(f"Index {index} is not in the queue", index)
        return self._keys[index]

    def decrease_key(self, index: int, key: float) -> None:
        """Lower the key of a queued index. O(log n)."""
        if not self.contains(index):
            raise IndexNotPresentError(f"Index {index} is not in the queue", index)
        if key >= self._keys[index]:
            raise KeyNotDecreasingError(
                f"Key {key} does not decrease current key {self._keys[index]} of index {index}",
                index,
            )
        self._keys[index] = key
        self._swim(self._position[index])

    def min_index(self) -> int:
        """Index with the smallest key, without removing it."""
        if not self._heap:
            raise QueueEmptyError("Priority queue is empty", _ABSENT)
        return self._heap[0]

    def delete_min(self) -> int:
        """Remove and return the index with the smallest key. O(log n)."""
        if not self._heap:
            raise QueueEmptyError("Priority queue is empty", _ABSENT)
        smallest = self._heap[0]
        last = self._heap.pop()
        if self._heap:
            self._heap[0] = last
            self._position[last] = 0
            self._sink(0)
        self._position[smallest] = _ABSENT
        return smallest

    def is_empty(self) -> bool:
        return not self._heap

    def size(self) -> int:
        return len(self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and 0 <= index < self._capacity and self.contains(index)

    def _less(self, p: int, q: int) -> bool:
        return self._keys[self._heap[p]] < self._keys[self._heap[q]]

    def _exchange(self, p: int, q: int) -> None:
        heap = self._heap
        heap[p], heap[q] = heap[q], heap[p]
        self._position[heap[p]] = p
        self._position[heap[q]] = q

    def _swim(self, p: int) -> None:
        while p > 0:
            parent = (p - 1) // 2
            if not self._less(p, parent):
                break
            self._exchange(p, parent)
            p = parent

    def _sink(self, p: int) -> None:
        n = len(self._heap)
        while True:
            child = 2 * p + 1
            if child >= n:
                break
            if child + 1 < n and self._less(child + 1, child):
                child += 1
            if not self._less(child, p):
                break
            self._exchange(p, child)
            p = child

    def __repr__(self) -> str:
        return f"IndexMinPQ(size={len(self._heap)}, capacity={self._capacity})"
