"""Count-Min Sketch building block for frequency sketches.

A depth x width grid of counters. Each row hashes an element to one counter;
the estimate is the minimum over rows, which never underestimates.

With conservative update (the "CU sketch"), an insertion only raises the
counters that are below the new lower bound min + count. Estimates stay
upper bounds but collisions inflate them less.

Key properties:
- Space: O(width * depth)
- Update / query: O(depth)
- Error: at most e/width * N with probability >= 1 - e^-depth

References:
    Cormode, Muthukrishnan. "An Improved Data Stream Summary: The Count-Min
    Sketch and its Applications" (2004)
    Estan, Varghese. "New Directions in Traffic Measurement and Accounting" (2002)
"""

from __future__ import annotations

import hashlib
import struct
from collections.abc import Hashable

COUNTER_BYTES = 4


class CountMinSketch:
    """Count-Min Sketch with optional conservative update.

    Args:
        width: Counters per row. Must be positive.
        depth: Number of rows / hash functions. Must be positive.
        seed: Hash seed.
        conservative: Use conservative update on add().

    Raises:
        ValueError: If width or depth <= 0.
    """

    def __init__(self, width: int, depth: int = 2, seed: int = 0, conservative: bool = False):
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        if depth <= 0:
            raise ValueError(f"depth must be positive, got {depth}")

        self._width = width
        self._depth = depth
        self._seed = seed
        self._conservative = conservative
        self._counters: list[list[int]] = [[0] * width for _ in range(depth)]

    @classmethod
    def from_bytes(
        cls,
        budget_bytes: float,
        depth: int = 2,
        seed: int = 0,
        conservative: bool = False,
    ) -> CountMinSketch:
        """Widest sketch of the given depth that fits ``budget_bytes`` (width >= 1)."""
        width = max(1, int(budget_bytes) // (depth * COUNTER_BYTES))
        return cls(width=width, depth=depth, seed=seed, conservative=conservative)

    @property
    def width(self) -> int:
        return self._width

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def conservative(self) -> bool:
        return self._conservative

    def _columns(self, item: Hashable) -> list[int]:
        h = hashlib.sha256()
        h.update(struct.pack(">Q", self._seed & 0xFFFFFFFFFFFFFFFF))
        h.update(repr(item).encode("utf-8"))
        digest = h.digest()
        h1 = struct.unpack(">Q", digest[:8])[0]
        h2 = struct.unpack(">Q", digest[8:16])[0] | 1
        return [(h1 + row * h2) % self._width for row in range(self._depth)]

    def add(self, item: Hashable, count: int = 1) -> None:
        """Add ``count`` occurrences of ``item``.

        Raises:
            ValueError: If count is negative.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return

        columns = self._columns(item)

        if self._conservative:
            target = min(self._counters[row][col] for row, col in enumerate(columns)) + count
            for row, col in enumerate(columns):
                if self._counters[row][col] < target:
                    self._counters[row][col] = target
        else:
            for row, col in enumerate(columns):
                self._counters[row][col] += count

    def estimate(self, item: Hashable) -> int:
        """Minimum counter over all rows; never below the true count."""
        return min(self._counters[row][col] for row, col in enumerate(self._columns(item)))

    @property
    def memory_bytes(self) -> int:
        """Bytes used by the counter grid at 32 bits per counter."""
        return self._width * self._depth * COUNTER_BYTES

    def clear(self) -> None:
        self._counters = [[0] * self._width for _ in range(self._depth)]

    def __repr__(self) -> str:
        kind = "CU" if self._conservative else "CM"
        return f"CountMinSketch({kind}, width={self._width}, depth={self._depth})"
