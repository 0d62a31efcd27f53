"""Sketch builders: memory budget in, ready-to-ingest sketch out.

Every builder takes the byte budget first. Stair-family builders go through
``partition`` with a level count; per-window builders need the window count.
``build(name, cfg)`` resolves a builder by name from an EvaluationConfig,
which is how trial lists refer to them.

Example:
    sketch = build_scu(64 * 1024, level=3)
    sketch = build("pbf", cfg)
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from stairbench.config import EvaluationConfig
from stairbench.partition import partition
from stairbench.sketching.base import WindowedSketch
from stairbench.sketching.exact import ExactFrequency, ExactMembership
from stairbench.sketching.per_window import PerWindowBloomFilter, PerWindowCountMin
from stairbench.sketching.stair import StairBloomFilter, StairCountMin

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = 3
DEFAULT_HASHES = 2


def build_sbf(memory: float, level: int = DEFAULT_LEVEL, seed: int = 0) -> StairBloomFilter:
    """Stair Bloom filter."""
    return StairBloomFilter(partition(memory, level), num_hashes=DEFAULT_HASHES, seed=seed)


def build_scm(memory: float, level: int = DEFAULT_LEVEL, seed: int = 0) -> StairCountMin:
    """Stair count-min sketch."""
    return StairCountMin(partition(memory, level), depth=DEFAULT_HASHES, seed=seed)


def build_scu(memory: float, level: int = DEFAULT_LEVEL, seed: int = 0) -> StairCountMin:
    """Stair count-min sketch with conservative update."""
    return StairCountMin(
        partition(memory, level), depth=DEFAULT_HASHES, conservative=True, seed=seed
    )


def build_pbf(memory: float, win_num: int, seed: int = 0) -> PerWindowBloomFilter:
    """One Bloom filter per window."""
    return PerWindowBloomFilter(win_num, memory, num_hashes=DEFAULT_HASHES, seed=seed)


def build_pcm(memory: float, win_num: int, seed: int = 0) -> PerWindowCountMin:
    """One count-min sketch per window."""
    return PerWindowCountMin(win_num, memory, depth=DEFAULT_HASHES, seed=seed)


def build_exact_membership(memory: float = 0, supports_delta: bool = False) -> ExactMembership:
    """Zero-error membership oracle; the budget is ignored."""
    return ExactMembership(supports_delta=supports_delta)


def build_exact_frequency(memory: float = 0, supports_delta: bool = True) -> ExactFrequency:
    """Zero-error frequency oracle; the budget is ignored."""
    return ExactFrequency(supports_delta=supports_delta)


Builder = Callable[[EvaluationConfig], WindowedSketch]

BUILDERS: dict[str, Builder] = {
    "sbf": lambda cfg: build_sbf(cfg.memory, cfg.level),
    "scm": lambda cfg: build_scm(cfg.memory, cfg.level),
    "scu": lambda cfg: build_scu(cfg.memory, cfg.level),
    "pbf": lambda cfg: build_pbf(cfg.memory, cfg.win_num),
    "pcm": lambda cfg: build_pcm(cfg.memory, cfg.win_num),
    "exact_membership": lambda cfg: build_exact_membership(cfg.memory),
    "exact_frequency": lambda cfg: build_exact_frequency(cfg.memory),
}


def build(name: str, cfg: EvaluationConfig) -> WindowedSketch:
    """Build a fresh sketch by registry name.

    Raises:
        KeyError: If no builder is registered under ``name``.
    """
    try:
        builder = BUILDERS[name]
    except KeyError:
        raise KeyError(f"unknown sketch builder {name!r}; known: {sorted(BUILDERS)}") from None
    sketch = builder(cfg)
    logger.debug("Built %s for budget %d bytes", type(sketch).__name__, cfg.memory)
    return sketch
