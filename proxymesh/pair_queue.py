"""
Pair Queue
==========

Indexed priority queue of contraction pairs, ordered by cost.

Backed by a binary heap with an identity index: removal marks the heap
entry as stale and stale entries are skipped when the minimum is popped.
Insert, remove-by-identity and pop-minimum are all logarithmic (amortized).
"""

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np


PairKey = Tuple[int, int]


def pair_key(s: int, t: int) -> PairKey:
    """Normalized identity (min, max) of an unordered vertex pair."""
    return (s, t) if s < t else (t, s)


@dataclass
class ContractionPair:
    """A candidate contraction {v1, v2} with its target position and cost."""
    v1: int
    v2: int
    target: np.ndarray
    cost: float

    @property
    def key(self) -> PairKey:
        return (self.v1, self.v2)


@dataclass(order=True)
class _HeapEntry:
    cost: float
    serial: int
    pair: Optional[ContractionPair] = field(compare=False)


class PairQueue:
    """
    Priority queue of ContractionPair objects keyed by their identity.

    Pairs with equal cost leave the queue in insertion order.
    """

    def __init__(self):
        self._heap: List[_HeapEntry] = []
        self._entries: Dict[PairKey, _HeapEntry] = {}
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: PairKey) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[ContractionPair]:
        return (entry.pair for entry in self._entries.values())

    def get(self, key: PairKey) -> Optional[ContractionPair]:
        entry = self._entries.get(key)
        return entry.pair if entry is not None else None

    def push(self, pair: ContractionPair):
        """Insert a pair, replacing any queued pair with the same identity."""
        if pair.key in self._entries:
            self.remove(pair.key)
        entry = _HeapEntry(pair.cost, next(self._counter), pair)
        self._entries[pair.key] = entry
        heapq.heappush(self._heap, entry)

    def remove(self, key: PairKey) -> Optional[ContractionPair]:
        """Remove and return the pair with the given identity, if queued."""
        entry = self._entries.pop(key, None)
        if entry is None:
            return None
        pair = entry.pair
        entry.pair = None
        if len(self._heap) > 2 * len(self._entries):
            self._compact()
        return pair

    def peek(self) -> Optional[ContractionPair]:
        """Return the least-cost pair without removing it."""
        self._discard_stale()
        return self._heap[0].pair if self._heap else None

    def pop(self) -> Optional[ContractionPair]:
        """Remove and return the least-cost pair, or None when empty."""
        self._discard_stale()
        if not self._heap:
            return None
        entry = heapq.heappop(self._heap)
        del self._entries[entry.pair.key]
        return entry.pair

    def _compact(self) -> None:
        """Drop every stale entry so the heap stays proportional to live pairs."""
        self._heap = [entry for entry in self._heap if entry.pair is not None]
        heapq.heapify(self._heap)

    def _discard_stale(self):
        while self._heap and self._heap[0].pair is None:
            heapq.heappop(self._heap)
