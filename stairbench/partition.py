"""Geometric ("stair") memory partitioning.

Stair-family sketches keep one structure for the newest window and, for each
level i = 1..K, two structures covering blocks of 2^(i-1) windows. Memory
grows with the span of a level so that every level sees roughly the same load
per counter. The top level also absorbs all older history, so it is weighted
four times heavier.

    S    = sum(2^i * f(i) for i in 0..K),  f(i) = 4 if i == K else 1
    unit = M / S
    level 0: (unit, 1, 1, 1)
    level i: (unit * 2^i * f(i), 2, f(i), 2^(i-1))

Each level's memory_budget is the whole allocation of that level, shared by
its structure_count structures; the budgets therefore add up to M. Summing
memory_budget * structure_count instead would come to roughly 2M.

Example:
    >>> [tuple(lv) for lv in partition(1900, 2)]
    [(100.0, 1, 1, 1), (200.0, 2, 1, 1), (1600.0, 2, 4, 2)]
"""

from __future__ import annotations

from typing import NamedTuple

TOP_LEVEL_FACTOR = 4


class StairLevel(NamedTuple):
    """Allocation for one level of a stair decomposition."""

    memory_budget: float
    structure_count: int
    scale_factor: int
    window_span: int

    @property
    def per_structure_memory(self) -> float:
        return self.memory_budget / self.structure_count


def _scale(i: int, k: int) -> int:
    return TOP_LEVEL_FACTOR if i == k else 1


def partition(total_memory: float, level_count: int) -> list[StairLevel]:
    """Split a memory budget across a K-level stair hierarchy.

    Args:
        total_memory: Total budget M in bytes. Must be positive. Budgets
            smaller than the weight sum are accepted and give a tiny unit.
        level_count: Number of levels K above level 0. Must be >= 0.

    Returns:
        K + 1 levels, level 0 first.

    Raises:
        ValueError: If total_memory <= 0 or level_count < 0.
    """
    if total_memory <= 0:
        raise ValueError(f"total_memory must be positive, got {total_memory}")
    if level_count < 0:
        raise ValueError(f"level_count must be non-negative, got {level_count}")

    if level_count == 0:
        return [StairLevel(float(total_memory), 1, 1, 1)]

    k = level_count
    weight_sum = sum((1 << i) * _scale(i, k) for i in range(k + 1))
    unit = total_memory / weight_sum

    levels = [StairLevel(unit, 1, 1, 1)]
    for i in range(1, k + 1):
        f = _scale(i, k)
        levels.append(StairLevel(unit * (1 << i) * f, 2, f, 1 << (i - 1)))
    return levels


def total_span(levels: list[StairLevel]) -> int:
    """Windows covered by level 0 plus the two rotating blocks of every level.

    Windows older than this are answered by the top level's history
    structure only.
    """
    return sum(lv.structure_count * lv.window_span for lv in levels)


def describe(levels: list[StairLevel]) -> str:
    """Render a schedule as one line per level, for logs."""
    lines = []
    for i, lv in enumerate(levels):
        lines.append(
            f"L{i}: {lv.memory_budget:.1f}B x{lv.structure_count} "
            f"(scale {lv.scale_factor}, span {lv.window_span})"
        )
    return "\n".join(lines)
