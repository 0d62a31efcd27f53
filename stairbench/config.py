"""Evaluation configuration scalars.

EvaluationConfig bundles the handful of numbers every evaluation needs: the
total window count W, the decision window count D (the most recent windows
that are scored), the memory budget handed to sketch builders, and the level
count used by stair-family builders.

Example:
    from stairbench import EvaluationConfig

    cfg = EvaluationConfig(win_num=64, ds_win_num=16, memory=64 * 1024)
    cfg = EvaluationConfig.from_env()  # SB_WIN_NUM, SB_DS_WIN_NUM, ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

ENV_PREFIX = "SB_"


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(ENV_PREFIX + name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class EvaluationConfig:
    """Scalars shared by the evaluator and the sketch builders.

    Args:
        win_num: Total number of windows W in the stream. Must be >= 1.
        ds_win_num: Number of most recent windows D included in metrics.
            Must satisfy 1 <= D <= W.
        memory: Memory budget in bytes handed to builders. Must be positive.
        level: Level count K for stair-family builders. Must be >= 0.

    Raises:
        ValueError: If any constraint above is violated.
    """

    win_num: int
    ds_win_num: int
    memory: int
    level: int = 3

    def __post_init__(self) -> None:
        if self.win_num < 1:
            raise ValueError(f"win_num must be >= 1, got {self.win_num}")
        if not 1 <= self.ds_win_num <= self.win_num:
            raise ValueError(
                f"ds_win_num must be in [1, win_num={self.win_num}], got {self.ds_win_num}"
            )
        if self.memory <= 0:
            raise ValueError(f"memory must be positive, got {self.memory}")
        if self.level < 0:
            raise ValueError(f"level must be non-negative, got {self.level}")

    @property
    def first_scored_window(self) -> int:
        """First window (1-based) inside the decision range, W - D + 1."""
        return self.win_num - self.ds_win_num + 1

    @classmethod
    def from_env(cls, **defaults: int) -> EvaluationConfig:
        """Build a config from SB_WIN_NUM, SB_DS_WIN_NUM, SB_MEMORY, SB_LEVEL.

        Keyword arguments supply values for variables that are not set.
        SB_DS_WIN_NUM falls back to W when neither is given.

        Raises:
            ValueError: If a required value is missing or not an integer.
        """
        win_num = _env_int("WIN_NUM", defaults.get("win_num"))
        memory = _env_int("MEMORY", defaults.get("memory"))
        if win_num is None:
            raise ValueError(f"{ENV_PREFIX}WIN_NUM is not set")
        if memory is None:
            raise ValueError(f"{ENV_PREFIX}MEMORY is not set")
        ds_win_num = _env_int("DS_WIN_NUM", defaults.get("ds_win_num", win_num))
        level = _env_int("LEVEL", defaults.get("level", 3))
        return cls(win_num=win_num, ds_win_num=ds_win_num, memory=memory, level=level)

    def with_overrides(self, **changes: int) -> EvaluationConfig:
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **changes)
