"""Fixed-capacity FIFO used to hold pending origin records."""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Circular queue over a preallocated list.

    ``enqueue`` refuses new items when full; the oldest items are never
    evicted. Not thread-safe on its own.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: list[T | None] = [None] * capacity
        self._head = 0
        self._tail = 0
        self._count = 0

    def enqueue(self, item: T) -> bool:
        if self._count == self.capacity:
            return False
        self._items[self._tail] = item
        self._tail = (self._tail + 1) % self.capacity
        self._count += 1
        return True

    def dequeue(self, count: int) -> list[T]:
        taken: list[T] = []
        for _ in range(min(max(count, 0), self._count)):
            item = self._items[self._head]
            self._items[self._head] = None
            if item is not None:
                taken.append(item)
            self._head = (self._head + 1) % self.capacity
            self._count -= 1
        return taken

    def size(self) -> int:
        return self._count

    def is_empty(self) -> bool:
        return self._count == 0

    def is_full(self) -> bool:
        return self._count == self.capacity

    def snapshot(self) -> list[T]:
        """Pending items, oldest first, without removing them."""
        return [self._items[(self._head + i) % self.capacity] for i in range(self._count)]  # type: ignore[misc]

    def __len__(self) -> int:
        return self._count


__all__ = ["RingBuffer"]
