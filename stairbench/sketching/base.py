"""Capability contract for windowed sketches.

Every sketch under evaluation answers questions about a stream cut into
numbered windows 1..W. The evaluator only talks to sketches through this
contract, so membership sketches (Bloom-filter family) and frequency sketches
(count-min family) of any internal design can be compared on the same data.

- WindowedSketch: the operation set (add, query, range query, probe counter,
  memory footprint, delta capability flag)
- MembershipWindowSketch: query answers "possibly present" / "definitely
  absent" as a bool
- FrequencyWindowSketch: query answers an occurrence estimate as an int

Both families must never report a false negative: an element that occurred in
a window always queries positive for that window and every range containing
it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable


class WindowedSketch(ABC):
    """Base class for all sketches the evaluator can drive.

    Subclasses set ``supports_delta`` to declare whether ``add`` may be fed
    per-window deltas (one call per element and window) or must instead be
    replayed every raw occurrence.

    The probe counter behind ``qcnt()`` is owned here; implementations call
    ``_probe`` once for every internal structure a query touches.
    """

    supports_delta: bool = True

    def __init__(self) -> None:
        self._qcnt = 0

    def add_delta_implemented(self) -> bool:
        """Whether add() accepts batched per-window deltas."""
        return self.supports_delta

    @abstractmethod
    def add(self, window: int, element: Hashable, delta: int = 1) -> None:
        """Record ``delta`` occurrences of ``element`` in ``window``.

        Raises:
            ValueError: If delta is negative.
        """

    @abstractmethod
    def query(self, window: int, element: Hashable) -> int:
        """Answer for a single window."""

    @abstractmethod
    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> int:
        """Answer for the window range [left, right].

        Raises:
            ValueError: If left > right.
        """

    @abstractmethod
    def memory(self) -> int:
        """Actual payload footprint in bytes."""

    def qcnt(self) -> int:
        """Elementary probes performed so far. Never decreases."""
        return self._qcnt

    def _probe(self, n: int = 1) -> None:
        self._qcnt += n

    @staticmethod
    def _check_delta(delta: int) -> None:
        if delta < 0:
            raise ValueError(f"delta must be non-negative, got {delta}")

    @staticmethod
    def _check_range(left: int, right: int) -> None:
        if left > right:
            raise ValueError(f"empty window range [{left}, {right}]")


class MembershipWindowSketch(WindowedSketch):
    """Sketches answering per-window set membership.

    query() returns True when the element possibly occurred in the window
    (false positives allowed) and False only when it definitely did not.
    query_multiple_windows() answers membership in the union of the range.
    """

    @abstractmethod
    def query(self, window: int, element: Hashable) -> bool:
        """True if ``element`` possibly occurred in ``window``."""

    @abstractmethod
    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> bool:
        """True if ``element`` possibly occurred anywhere in [left, right]."""


class FrequencyWindowSketch(WindowedSketch):
    """Sketches answering per-window occurrence counts.

    query() returns an estimate that is never below the true count when the
    element occurred; query_multiple_windows() estimates the range sum.
    """

    @abstractmethod
    def query(self, window: int, element: Hashable) -> int:
        """Estimated occurrences of ``element`` inside ``window``."""

    @abstractmethod
    def query_multiple_windows(self, left: int, right: int, element: Hashable) -> int:
        """Estimated occurrences of ``element`` inside [left, right]."""
