"""Fixed-capacity ring buffer of permit timestamps.

The limiter never holds more than ``limit`` live timestamps, so the history
is stored in a preallocated list indexed by head/size instead of a growable
container.
"""

from __future__ import annotations

from typing import Iterator


class TimestampRingBuffer:
    """FIFO of floats with a fixed capacity.

    Not thread-safe; callers serialize access with their own lock.
    """

    __slots__ = ("_slots", "_head", "_size")

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._slots: list[float] = [0.0] * capacity
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[float]:
        capacity = len(self._slots)
        for offset in range(self._size):
            yield self._slots[(self._head + offset) % capacity]

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"TimestampRingBuffer(capacity={self.capacity}, items={list(self)})"

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def is_full(self) -> bool:
        return self._size == len(self._slots)

    def oldest(self) -> float:
        """Return the oldest timestamp without removing it.

        Raises:
            IndexError: If the buffer is empty.
        """
        if self._size == 0:
            raise IndexError("oldest() on empty ring buffer")
        return self._slots[self._head]

    def newest(self) -> float:
        """Return the most recently appended timestamp.

        Raises:
            IndexError: If the buffer is empty.
        """
        if self._size == 0:
            raise IndexError("newest() on empty ring buffer")
        tail = (self._head + self._size - 1) % len(self._slots)
        return self._slots[tail]

    def append(self, timestamp: float) -> None:
        """Append a timestamp at the tail.

        Raises:
            IndexError: If the buffer is already full.
        """
        if self.is_full():
            raise IndexError("append() on full ring buffer")
        tail = (self._head + self._size) % len(self._slots)
        self._slots[tail] = timestamp
        self._size += 1

    def popleft(self) -> float:
        """Remove and return the oldest timestamp.

        Raises:
            IndexError: If the buffer is empty.
        """
        if self._size == 0:
            raise IndexError("popleft() on empty ring buffer")
        value = self._slots[self._head]
        self._head = (self._head + 1) % len(self._slots)
        self._size -= 1
        return value
