"""Time-windowed sample buffers."""

from collections import deque
from typing import Callable, Deque, Generic, Iterator, List, Optional, Tuple, TypeVar

import numpy as np

T = TypeVar('T')


class TimestampedWindow(Generic[T]):
    """
    Rolling buffer of (timestamp, item) pairs spanning at most window_ms.

    Pruning is relative to the newest timestamp added, so timestamps must be
    non-decreasing; add() rejects older ones and returns False.
    """

    def __init__(self, window_ms: float):
        self.window_ms = window_ms
        self._data: Deque[Tuple[float, T]] = deque()

    def add(self, item: T, timestamp: float) -> bool:
        latest = self.latest_timestamp
        if latest is not None and timestamp < latest:
            return False
        self._data.append((timestamp, item))
        self.prune(timestamp)
        return True

    def prune(self, now: float):
        """Drop entries older than now - window_ms."""
        cutoff = now - self.window_ms
        while self._data and self._data[0][0] < cutoff:
            self._data.popleft()

    def since(self, start: float) -> List[Tuple[float, T]]:
        """Entries with timestamp >= start, oldest first."""
        return [(ts, item) for ts, item in self._data if ts >= start]

    def items(self) -> List[T]:
        return [item for _, item in self._data]

    def mean(self, key: Callable[[T], float]) -> float:
        if not self._data:
            return 0.0
        return float(np.mean([key(item) for _, item in self._data]))

    @property
    def oldest_timestamp(self) -> Optional[float]:
        return self._data[0][0] if self._data else None

    @property
    def latest_timestamp(self) -> Optional[float]:
        return self._data[-1][0] if self._data else None

    @property
    def count(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[Tuple[float, T]]:
        return iter(self._data)

    def reset(self):
        self._data.clear()
