"""Stair-family windowed sketches.

A stair sketch is laid out by a ``partition`` schedule. Every level i owns
``structure_count`` structures of ``memory_budget / structure_count`` bytes
and looks at the stream in aligned blocks of ``window_span`` windows:

    level 0     newest window                       span 1
    level 1..K  two most recent blocks, rotating    span 2^(i-1)
    level K     current block + all-time history    span 2^(K-1)

Each insertion goes to every level, so a window is answered by the finest
level that still holds its block. A block whose slot has moved on is gone
from that level; once every level has dropped it, the top level's history
structure answers instead (an overestimate, never a false negative).

Slot bookkeeping relies on one fact: a slot only ever moves forward to newer
blocks. A slot parked on an older block than the one asked about proves that
block never received an insertion, so it is answered as empty without a
probe.

Range queries walk the range left to right, taking the coarsest retained
block that fits inside it, so a range costs O(log W) probes instead of one
per window.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from stairbench.partition import StairLevel, describe
from stairbench.sketching.base import FrequencyWindowSketch, MembershipWindowSketch
from stairbench.sketching.bloom_filter import BloomFilter
from stairbench.sketching.count_min_sketch import CountMinSketch

logger = logging.getLogger(__name__)


class _Coverage(Enum):
    HIT = "hit"
    EMPTY = "empty"
    GONE = "gone"


@dataclass
class _Slot:
    structure: Any
    block: int | None = None


@dataclass
class _Level:
    span: int
    slots: list[_Slot]

    def block_of(self, window: int) -> int:
        return (window - 1) // self.span

    def bounds(self, block: int) -> tuple[int, int]:
        start = block * self.span + 1
        return start, start + self.span - 1

    def locate(self, window: int) -> tuple[_Coverage, _Slot | None, int]:
        """Coverage of ``window`` on this level, the slot holding it, and its block."""
        block = self.block_of(window)
        if not self.slots:
            return _Coverage.GONE, None, block
        slot = self.slots[block % len(self.slots)]
        if slot.block == block:
            return _Coverage.HIT, slot, block
        if slot.block is None or slot.block < block:
            return _Coverage.EMPTY, None, block
        return _Coverage.GONE, None, block


class _StairLayout(ABC):
    """Level/slot bookkeeping shared by the stair sketches.

    Subclasses provide ``_make`` (budget in bytes -> structure), ``_insert``
    and ``_lookup``.
    """

    def __init__(self, levels: Sequence[StairLevel], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not levels:
            raise ValueError("a stair sketch needs at least one level")
        self._schedule = list(levels)
        self._levels: list[_Level] = []
        self._history: Any = None
        self._latest = 0

        top = len(levels) - 1
        for i, level in enumerate(levels):
            budget = level.per_structure_memory
            count = level.structure_count
            if i == top:
                self._history = self._make(budget)
                count -= 1
            slots = [_Slot(self._make(budget)) for _ in range(count)]
            self._levels.append(_Level(span=level.window_span, slots=slots))

        logger.debug("Built %s with levels:\n%s", type(self).__name__, describe(self._schedule))

    @abstractmethod
    def _make(self, budget_bytes: float) -> Any:
        """Fresh empty structure sized to ``budget_bytes``."""

    @abstractmethod
    def _insert(self, structure: Any, element: Hashable, delta: int) -> None:
        """Record ``delta`` occurrences of ``element`` in ``structure``."""

    @abstractmethod
    def _lookup(self, structure: Any, element: Hashable) -> int:
        """Answer for ``element`` from one structure."""

    @property
    def schedule(self) -> list[StairLevel]:
        return list(self._schedule)

    def add(self, window: int, element: Hashable, delta: int = 1) -> None:
        self._check_delta(delta)
        if delta == 0 or window < 1:
            return
        self._latest = max(self._latest, window)

        for level in self._levels:
            if not level.slots:
                continue
            block = level.block_of(window)
            slot = level.slots[block % len(level.slots)]
            if slot.block is None or slot.block < block:
                slot.structure.clear()
                slot.block = block
            if slot.block == block:
                self._insert(slot.structure, element, delta)
        self._insert(self._history, element, delta)

    def _window_answer(self, window: int, element: Hashable) -> int:
        if window < 1 or window > self._latest:
            return 0
        for level in self._levels:
            coverage, slot, _ = level.locate(window)
            if coverage is _Coverage.HIT:
                self._probe()
                return self._lookup(slot.structure, element)
            if coverage is _Coverage.EMPTY:
                return 0
        self._probe()
        return self._lookup(self._history, element)

    def _range_answer(self, left: int, right: int, element: Hashable, union: bool) -> int:
        self._check_range(left, right)
        w = max(left, 1)
        last = min(right, self._latest)
        total = 0

        while w <= last:
            step = self._contained_step(w, left, right) or self._finest_step(w)
            if step is None:
                self._probe()
                return self._lookup(self._history, element)

            slot, end = step
            if slot is not None:
                self._probe()
                answer = self._lookup(slot.structure, element)
                if union and answer:
                    return answer
                total += answer
            w = end + 1
        return total

    def _contained_step(self, w: int, left: int, right: int) -> tuple[_Slot | None, int] | None:
        for level in reversed(self._levels):
            coverage, slot, block = level.locate(w)
            start, end = level.bounds(block)
            if coverage is not _Coverage.GONE and start >= left and end <= right:
                return slot, end
        return None

    def _finest_step(self, w: int) -> tuple[_Slot | None, int] | None:
        for level in self._levels:
            coverage, slot, block = level.locate(w)
            if coverage is not _Coverage.GONE:
                return slot, level.bounds(block)[1]
        return None

    def memory(self) -> int:
        used = self._history.memory_bytes
        for level in self._levels:
            used += sum(slot.structure.memory_bytes for slot in level.slots)
        return used


class StairBloomFilter(_StairLayout, MembershipWindowSketch):
    """Stair layout of Bloom filters.

    Args:
        levels: Schedule from ``partition``.
        num_hashes: Hash positions per element in every filter.
        seed: Hash seed shared by all filters.
    """

    supports_delta = True

    def __init__(self, levels: Sequence[StairLevel], num_hashes: int = 2, seed: int = 0):
        self._num_hashes = num_hashes
        self._seed = seed
        super().__init__(levels)

    def _make(self, budget_bytes: float) -> BloomFilter:
        return BloomFilter.from_bytes(budget_bytes, num_hashes=self._num_hashes, seed=self._seed)

    def _insert(self, structure: BloomFilter, element: Hashable, delta: int) -> None:
        structure.add(element)

    def _lookup(self, structure: BloomFilter, element: Hashable) -> bool:
        return structure.contains(element)

    def query(self, window: int, element: Hashable) -> bool:
        return bool(self._window_answer(window, element))

    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> bool:
        return bool(self._range_answer(left, right, element, union=True))


class StairCountMin(_StairLayout, FrequencyWindowSketch):
    """Stair layout of count-min sketches.

    Args:
        levels: Schedule from ``partition``.
        depth: Rows per count-min sketch.
        conservative: Use conservative update (the stair CU sketch).
        seed: Hash seed shared by all sketches.
    """

    supports_delta = True

    def __init__(
        self,
        levels: Sequence[StairLevel],
        depth: int = 2,
        conservative: bool = False,
        seed: int = 0,
    ):
        self._depth = depth
        self._conservative = conservative
        self._seed = seed
        super().__init__(levels)

    def _make(self, budget_bytes: float) -> CountMinSketch:
        return CountMinSketch.from_bytes(
            budget_bytes, depth=self._depth, seed=self._seed, conservative=self._conservative
        )

    def _insert(self, structure: CountMinSketch, element: Hashable, delta: int) -> None:
        structure.add(element, delta)

    def _lookup(self, structure: CountMinSketch, element: Hashable) -> int:
        return structure.estimate(element)

    def query(self, window: int, element: Hashable) -> int:
        return self._window_answer(window, element)

    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> int:
        return self._range_answer(left, right, element, union=False)
