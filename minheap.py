from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, List, Tuple

from codec_errors import InvariantViolation


class QueueState(Enum):
    LOADING = "loading"   # only inserts so far
    BUILDING = "building" # at least one extract_min has happened
    DRAINED = "drained"   # last element extracted; no further use


class MinHeap: # min-on-top binary heap; entries are [priority, sequence, item]
    """
    Array-backed binary heap. For index i the children sit at 2i+1 and 2i+2
    and the parent at (i-1)//2. Entries are ordered by (priority, sequence);
    the sequence number is assigned on insertion, so among equal priorities
    the earlier-inserted item comes out first.
    """

    def __init__(self):
        self._heap: List[Tuple[Any, int, Any]] = []
        self._next_seq = 0
        self.state = QueueState.LOADING

    @classmethod
    def from_items(cls, pairs: Iterable[Tuple[Any, Any]]) -> "MinHeap": # pairs: (item, priority), bulk loaded in O(n)
        heap = cls()
        for item, priority in pairs:
            heap._heap.append((priority, heap._next_seq, item))
            heap._next_seq += 1
        for i in range(len(heap._heap) // 2 - 1, -1, -1):
            heap._sift_down(i)
        return heap

    def __len__(self) -> int:
        return len(self._heap)

    def size(self) -> int:
        return len(self._heap)

    def insert(self, item, priority) -> None:
        if self.state is QueueState.DRAINED:
            raise InvariantViolation("insert into a drained priority queue")
        self._heap.append((priority, self._next_seq, item))
        self._next_seq += 1
        self._sift_up(len(self._heap) - 1)

    def peek(self):
        if not self._heap:
            raise InvariantViolation("peek on an empty priority queue")
        return self._heap[0][2]

    def peek_priority(self):
        if not self._heap:
            raise InvariantViolation("peek on an empty priority queue")
        return self._heap[0][0]

    def extract_min(self):
        if not self._heap:
            raise InvariantViolation("extract_min on an empty priority queue")
        if self.state is QueueState.DRAINED:
            raise InvariantViolation("extract_min on a drained priority queue")
        heap = self._heap
        last = len(heap) - 1
        heap[0], heap[last] = heap[last], heap[0]
        _, _, item = heap.pop()
        if heap:
            self._sift_down(0)
        self.state = QueueState.BUILDING
        return item

    def drain(self): # final extract: hands out the sole survivor and retires the queue
        if len(self._heap) != 1:
            raise InvariantViolation(f"drain needs exactly one element, queue holds {len(self._heap)}")
        item = self._heap.pop()[2]
        self.state = QueueState.DRAINED
        return item

    def is_heap(self) -> bool: # every parent orders at or before both of its children
        heap = self._heap
        for i in range(len(heap)):
            for j in (2 * i + 1, 2 * i + 2):
                if j < len(heap) and heap[j][:2] < heap[i][:2]:
                    return False
        return True

    def _sift_up(self, i: int) -> None:
        heap = self._heap
        entry = heap[i]
        while i > 0:
            parent = (i - 1) // 2
            if heap[parent][:2] <= entry[:2]:
                break
            heap[i] = heap[parent]
            i = parent
        heap[i] = entry

    def _sift_down(self, i: int) -> None:
        heap = self._heap
        n = len(heap)
        entry = heap[i]
        while True:
            left = 2 * i + 1
            if left >= n:
                break
            right = left + 1
            child = left
            if right < n and heap[right][:2] <= heap[left][:2]: # right wins a tie
                child = right
            if entry[:2] <= heap[child][:2]:
                break
            heap[i] = heap[child]
            i = child
        heap[i] = entry
