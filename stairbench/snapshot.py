"""Materialized view of a windowed stream.

A StreamSnapshot is built once from raw per-window occurrences and is then
read-only for every evaluation that uses it. It carries the four structures
the evaluator needs:

- elems: per-element cumulative count tables, cnt[0] == 0 and cnt[i] is the
  number of occurrences in windows 1..i.
- win_data: per-window occurrence lists in arrival order (replay ingestion).
- win_set: per-window exact frequency tables (single-window ground truth).
- elem_set: every distinct element in the stream.

Index 0 of win_data/win_set is the empty "before the stream" baseline, so
window i lives at index i.

Example:
    snapshot = StreamSnapshot.from_windows([["a", "b"], ["a"], ["c", "a"]])
    snapshot.win_num          # 3
    snapshot.delta(0, 2)      # occurrences of elems[0] inside window 2
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementHistory:
    """Cumulative count table for one element.

    Attributes:
        element: The element identifier.
        cnt: Tuple of length W + 1, non-decreasing, cnt[0] == 0.
    """

    element: Hashable
    cnt: tuple[int, ...]

    def delta(self, window: int) -> int:
        """Occurrences strictly inside ``window``."""
        return self.cnt[window] - self.cnt[window - 1]

    def between(self, left: int, right: int) -> int:
        """Occurrences inside windows [left, right]."""
        return self.cnt[right] - self.cnt[left - 1]


class StreamSnapshot:
    """Read-only per-window frequency data for one dataset.

    Build instances through ``from_windows``, ``from_dataframe`` or
    ``load_snapshot``; the constructor expects already consistent structures.
    """

    def __init__(
        self,
        elems: Sequence[ElementHistory],
        win_data: Sequence[Sequence[Hashable]],
        win_set: Sequence[Counter],
        elem_set: frozenset,
    ) -> None:
        self._elems = tuple(elems)
        self._win_data = tuple(tuple(w) for w in win_data)
        self._win_set = tuple(win_set)
        self._elem_set = elem_set

    # === Construction ===

    @classmethod
    def from_windows(cls, windows: Iterable[Iterable[Hashable]]) -> StreamSnapshot:
        """Build a snapshot from per-window occurrence sequences.

        Args:
            windows: One iterable per window, window 1 first. Repeated
                elements inside a window count as repeated occurrences.

        Raises:
            ValueError: If no window is given.
        """
        win_data: list[tuple] = [()]
        for occurrences in windows:
            win_data.append(tuple(occurrences))
        win_num = len(win_data) - 1
        if win_num < 1:
            raise ValueError("a snapshot needs at least one window")

        win_set: list[Counter] = [Counter(w) for w in win_data]

        # First-seen order keeps evaluation deterministic across runs.
        order: dict[Hashable, None] = {}
        for occurrences in win_data:
            for element in occurrences:
                order.setdefault(element, None)

        elems = []
        for element in order:
            running = 0
            cnt = [0]
            for i in range(1, win_num + 1):
                running += win_set[i].get(element, 0)
                cnt.append(running)
            elems.append(ElementHistory(element=element, cnt=tuple(cnt)))

        snapshot = cls(elems, win_data, win_set, frozenset(order))
        logger.debug(
            "Built snapshot: %d windows, %d distinct elements, %d occurrences",
            win_num, len(elems), sum(len(w) for w in win_data),
        )
        return snapshot

    @classmethod
    def from_dataframe(
        cls,
        frame: pd.DataFrame,
        window_col: str = "window",
        element_col: str = "element",
        win_num: int | None = None,
    ) -> StreamSnapshot:
        """Build a snapshot from a long-format occurrence table.

        Each row is one occurrence. Row order within a window is kept as the
        replay order.

        Args:
            frame: Table with a 1-based window column and an element column.
            window_col: Name of the window column.
            element_col: Name of the element column.
            win_num: Total window count. Defaults to the largest window seen;
                trailing windows with no rows are kept empty.

        Raises:
            ValueError: On missing columns, non-positive windows, or a
                win_num smaller than the largest window present.
        """
        missing = {window_col, element_col} - set(frame.columns)
        if missing:
            raise ValueError(f"frame is missing columns: {sorted(missing)}")
        if frame.empty and win_num is None:
            raise ValueError("cannot infer win_num from an empty frame")

        windows = frame[window_col].astype("int64")
        if not frame.empty and windows.min() < 1:
            raise ValueError(f"windows must be 1-based, got {int(windows.min())}")
        max_window = int(windows.max()) if not frame.empty else 0
        if win_num is None:
            win_num = max_window
        elif win_num < max_window:
            raise ValueError(f"win_num={win_num} is smaller than the largest window {max_window}")

        grouped = frame[element_col].groupby(windows, sort=True).apply(list)
        per_window = [grouped.get(i, []) for i in range(1, win_num + 1)]
        return cls.from_windows(per_window)

    # === Accessors ===

    @property
    def win_num(self) -> int:
        """Total number of windows W."""
        return len(self._win_data) - 1

    @property
    def elems(self) -> tuple[ElementHistory, ...]:
        return self._elems

    @property
    def elem_cnt(self) -> int:
        return len(self._elems)

    @property
    def win_data(self) -> tuple[tuple, ...]:
        return self._win_data

    @property
    def win_set(self) -> tuple[Counter, ...]:
        return self._win_set

    @property
    def elem_set(self) -> frozenset:
        return self._elem_set

    def delta(self, k: int, window: int) -> int:
        """Occurrences of the k-th element inside ``window``."""
        return self._elems[k].delta(window)

    def validate(self) -> None:
        """Check the snapshot invariants.

        Raises:
            ValueError: If a count table is malformed or a window references
                an element outside elem_set.
        """
        w = self.win_num
        for history in self._elems:
            if len(history.cnt) != w + 1 or history.cnt[0] != 0:
                raise ValueError(f"bad count table for {history.element!r}")
            for i in range(1, w + 1):
                if history.cnt[i] < history.cnt[i - 1]:
                    raise ValueError(
                        f"count table for {history.element!r} decreases at window {i}"
                    )
        for i in range(1, w + 1):
            unknown = set(self._win_set[i]) - self._elem_set
            if unknown:
                raise ValueError(f"window {i} references unknown elements {sorted(map(repr, unknown))}")

    def to_frame(self) -> pd.DataFrame:
        """Per-window exact counts as a long table (window, element, count)."""
        rows = [
            (i, element, count)
            for i in range(1, self.win_num + 1)
            for element, count in self._win_set[i].items()
        ]
        return pd.DataFrame(rows, columns=["window", "element", "count"])

    def __repr__(self) -> str:
        return f"StreamSnapshot(win_num={self.win_num}, elements={self.elem_cnt})"


def load_snapshot(
    path: str | Path,
    window_col: str = "window",
    element_col: str = "element",
    sep: str = ",",
    win_num: int | None = None,
) -> StreamSnapshot:
    """Load a snapshot from a delimited occurrence file via pandas.

    Elements are read as strings so numeric-looking identifiers keep their
    spelling.
    """
    frame = pd.read_csv(path, sep=sep, dtype={element_col: str})
    logger.info("Loaded %d occurrences from %s", len(frame), path)
    return StreamSnapshot.from_dataframe(
        frame, window_col=window_col, element_col=element_col, win_num=win_num
    )
