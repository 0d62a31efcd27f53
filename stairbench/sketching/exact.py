"""Zero-error reference sketches.

ExactFrequency and ExactMembership keep per-window dictionaries, so every
metric computed over them is the ideal score (0 error, 0 false positives).
They are the baseline the approximate designs are compared against, and the
evaluator's own tests use them as oracles.

Both accept ``supports_delta`` per instance so either ingestion path of the
evaluator can be exercised. Replay feeds one occurrence per call, which adds
up to the same counts.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Hashable

from stairbench.sketching.base import FrequencyWindowSketch, MembershipWindowSketch

# Rough per-entry cost used by memory(); exact structures ignore budgets.
ENTRY_BYTES = 16


class ExactFrequency(FrequencyWindowSketch):
    """Exact per-window occurrence counts."""

    def __init__(self, supports_delta: bool = True) -> None:
        super().__init__()
        self.supports_delta = supports_delta
        self._windows: defaultdict[int, Counter] = defaultdict(Counter)

    def add(self, window: int, element: Hashable, delta: int = 1) -> None:
        self._check_delta(delta)
        if delta:
            self._windows[window][element] += delta

    def query(self, window: int, element: Hashable) -> int:
        self._probe()
        return self._windows[window][element] if window in self._windows else 0

    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> int:
        self._check_range(left, right)
        return sum(self.query(w, element) for w in range(left, right + 1))

    def memory(self) -> int:
        return ENTRY_BYTES * sum(len(c) for c in self._windows.values())


class ExactMembership(MembershipWindowSketch):
    """Exact per-window element sets."""

    def __init__(self, supports_delta: bool = False) -> None:
        super().__init__()
        self.supports_delta = supports_delta
        self._windows: defaultdict[int, set] = defaultdict(set)

    def add(self, window: int, element: Hashable, delta: int = 1) -> None:
        self._check_delta(delta)
        if delta:
            self._windows[window].add(element)

    def query(self, window: int, element: Hashable) -> bool:
        self._probe()
        return window in self._windows and element in self._windows[window]

    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> bool:
        self._check_range(left, right)
        return any(self.query(w, element) for w in range(left, right + 1))

    def memory(self) -> int:
        return ENTRY_BYTES * sum(len(s) for s in self._windows.values())
