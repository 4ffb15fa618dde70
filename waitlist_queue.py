"""Priority-ordered waitlist with stable tie-breaking by arrival order."""

import itertools
from typing import List, Optional

from models import WaitlistEntry


def has_higher_priority(a: WaitlistEntry, b: WaitlistEntry) -> bool:
    """Higher priority wins; on equal priority the earlier arrival wins."""
    if a.priority != b.priority:
        return a.priority > b.priority
    return a.sequence < b.sequence


class WaitlistQueue:
    """
    Binary heap of waiting users ordered by (priority desc, sequence asc).

    Besides insert/extract this supports removal of an arbitrary user and
    re-keying a user's priority. Both locate the entry with a linear scan and
    then repair the heap in logarithmic time. Operations on a user that is
    not waiting are silent no-ops; callers check membership first when they
    need to report it.
    """

    def __init__(self):
        self._heap: List[WaitlistEntry] = []
        self._sequence = itertools.count()

    def _swap(self, i: int, j: int) -> None:
        self._heap[i], self._heap[j] = self._heap[j], self._heap[i]

    def _sift_up(self, index: int) -> None:
        heap = self._heap
        while index > 0:
            parent = (index - 1) // 2
            if not has_higher_priority(heap[index], heap[parent]):
                break
            self._swap(index, parent)
            index = parent

    def _sift_down(self, index: int) -> None:
        heap = self._heap
        size = len(heap)
        while True:
            best = index
            left = 2 * index + 1
            right = left + 1
            if left < size and has_higher_priority(heap[left], heap[best]):
                best = left
            if right < size and has_higher_priority(heap[right], heap[best]):
                best = right
            if best == index:
                return
            self._swap(index, best)
            index = best

    def _index_of(self, user_id: int) -> int:
        for i, entry in enumerate(self._heap):
            if entry.user_id == user_id:
                return i
        return -1

    def insert(self, user_id: int, priority: int) -> WaitlistEntry:
        entry = WaitlistEntry(user_id=user_id, priority=priority, sequence=next(self._sequence))
        self._heap.append(entry)
        self._sift_up(len(self._heap) - 1)
        return entry

    def peek(self) -> Optional[WaitlistEntry]:
        return self._heap[0] if self._heap else None

    def extract_top(self) -> Optional[WaitlistEntry]:
        """Remove and return the user to be served next, or None if nobody waits."""
        if not self._heap:
            return None
        top = self._heap[0]
        last = self._heap.pop()
        if self._heap:
            self._heap[0] = last
            self._sift_down(0)
        return top

    def remove(self, user_id: int) -> Optional[WaitlistEntry]:
        index = self._index_of(user_id)
        if index == -1:
            return None
        last_index = len(self._heap) - 1
        self._swap(index, last_index)
        removed = self._heap.pop()
        if index < len(self._heap):
            # only one of the two directions can move the element
            self._sift_up(index)
            self._sift_down(index)
        return removed

    def update_priority(self, user_id: int, new_priority: int) -> Optional[WaitlistEntry]:
        """Re-key a waiting user in place; the original sequence number is kept."""
        index = self._index_of(user_id)
        if index == -1:
            return None
        entry = self._heap[index]
        entry.priority = new_priority
        self._sift_up(index)
        self._sift_down(index)
        return entry

    def is_empty(self) -> bool:
        return not self._heap

    def size(self) -> int:
        return len(self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, user_id: int) -> bool:
        return self._index_of(user_id) != -1

    def entries(self) -> List[WaitlistEntry]:
        """Snapshot of the waitlist in the order users would be served."""
        return sorted(self._heap, key=lambda e: (-e.priority, e.sequence))

    def is_heap_ordered(self) -> bool:
        heap = self._heap
        return not any(
            has_higher_priority(heap[i], heap[(i - 1) // 2]) for i in range(1, len(heap))
        )
