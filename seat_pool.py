"""Pool of free seat identifiers that always hands out the lowest number first."""

import heapq
from typing import Iterable, List, Optional


class SeatPool:
    """Min-heap of free seats keyed by seat identifier."""

    def __init__(self, seat_ids: Iterable[int] = ()):
        self._heap: List[int] = list(seat_ids)
        heapq.heapify(self._heap)

    def insert(self, seat_id: int) -> None:
        heapq.heappush(self._heap, seat_id)

    def extract_min(self) -> Optional[int]:
        """Pop the smallest free seat, or None when the pool is empty."""
        if not self._heap:
            return None
        return heapq.heappop(self._heap)

    def peek(self) -> Optional[int]:
        return self._heap[0] if self._heap else None

    def is_empty(self) -> bool:
        return not self._heap

    def size(self) -> int:
        return len(self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, seat_id: int) -> bool:
        return seat_id in self._heap

    def seats(self) -> List[int]:
        """Snapshot of the free seats in ascending order."""
        return sorted(self._heap)

    def is_heap_ordered(self) -> bool:
        heap = self._heap
        return all(heap[(i - 1) // 2] <= heap[i] for i in range(1, len(heap)))
