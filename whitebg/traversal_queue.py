"""
FIFO of (x, y) grid coordinates for the breadth-first flood fill.
"""

from collections import deque
from typing import Deque, Tuple

from .errors import QueueUnderflowError

Point = Tuple[int, int]


class TraversalQueue:
    """Growable FIFO with O(1) enqueue and dequeue."""

    def __init__(self):
        self._items: Deque[Point] = deque()

    def enqueue(self, x: int, y: int):
        self._items.append((x, y))

    def dequeue(self) -> Point:
        """
        Remove and return the oldest coordinate.

        Raises:
            QueueUnderflowError: If the queue is empty
        """
        if not self._items:
            raise QueueUnderflowError("dequeue from an empty traversal queue")
        return self._items.popleft()

    def is_empty(self) -> bool:
        return not self._items

    def clear(self):
        self._items.clear()

    def __len__(self):
        return len(self._items)
