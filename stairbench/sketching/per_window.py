"""One-structure-per-window baselines.

The simplest windowed design: split the budget evenly over the W windows and
give each window its own Bloom filter or count-min sketch. Single-window
queries touch one structure; a range query over [l, r] touches every window in
it, so its probe cost grows linearly with the range length. Stair sketches are
measured against this.
"""

from __future__ import annotations

from collections.abc import Hashable

from stairbench.sketching.base import FrequencyWindowSketch, MembershipWindowSketch
from stairbench.sketching.bloom_filter import BloomFilter
from stairbench.sketching.count_min_sketch import CountMinSketch


def _check_windows(win_num: int, memory: float) -> None:
    if win_num < 1:
        raise ValueError(f"win_num must be >= 1, got {win_num}")
    if memory <= 0:
        raise ValueError(f"memory must be positive, got {memory}")


class PerWindowBloomFilter(MembershipWindowSketch):
    """A Bloom filter per window, fed by raw occurrence replay.

    Args:
        win_num: Number of windows W.
        memory: Total budget in bytes, split evenly across windows.
        num_hashes: Hash positions per element in every filter.
        seed: Hash seed shared by all filters.
    """

    supports_delta = False

    def __init__(self, win_num: int, memory: float, num_hashes: int = 2, seed: int = 0):
        super().__init__()
        _check_windows(win_num, memory)
        self._win_num = win_num
        self._filters = [
            BloomFilter.from_bytes(memory / win_num, num_hashes=num_hashes, seed=seed)
            for _ in range(win_num)
        ]

    def _in_range(self, window: int) -> bool:
        return 1 <= window <= self._win_num

    def add(self, window: int, element: Hashable, delta: int = 1) -> None:
        self._check_delta(delta)
        if delta and self._in_range(window):
            self._filters[window - 1].add(element)

    def query(self, window: int, element: Hashable) -> bool:
        if not self._in_range(window):
            return False
        self._probe()
        return self._filters[window - 1].contains(element)

    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> bool:
        self._check_range(left, right)
        return any(self.query(w, element) for w in range(left, right + 1))

    def memory(self) -> int:
        return sum(f.memory_bytes for f in self._filters)


class PerWindowCountMin(FrequencyWindowSketch):
    """A count-min sketch per window, fed by per-window deltas.

    Args:
        win_num: Number of windows W.
        memory: Total budget in bytes, split evenly across windows.
        depth: Rows per sketch.
        conservative: Use conservative update in every sketch.
        seed: Hash seed shared by all sketches.
    """

    supports_delta = True

    def __init__(
        self,
        win_num: int,
        memory: float,
        depth: int = 2,
        conservative: bool = False,
        seed: int = 0,
    ):
        super().__init__()
        _check_windows(win_num, memory)
        self._win_num = win_num
        self._sketches = [
            CountMinSketch.from_bytes(
                memory / win_num, depth=depth, seed=seed, conservative=conservative
            )
            for _ in range(win_num)
        ]

    def add(self, window: int, element: Hashable, delta: int = 1) -> None:
        self._check_delta(delta)
        if delta and 1 <= window <= self._win_num:
            self._sketches[window - 1].add(element, delta)

    def query(self, window: int, element: Hashable) -> int:
        if not 1 <= window <= self._win_num:
            return 0
        self._probe()
        return self._sketches[window - 1].estimate(element)

    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> int:
        self._check_range(left, right)
        return sum(self.query(w, element) for w in range(left, right + 1))

    def memory(self) -> int:
        return sum(s.memory_bytes for s in self._sketches)
