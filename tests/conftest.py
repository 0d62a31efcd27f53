"""
Shared pytest fixtures for stairbench tests.
"""

import logging
import random
from pathlib import Path

import pytest

from stairbench import EvaluationConfig, EvaluationContext, StreamSnapshot


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Files here persist after tests complete for easy access.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write output files.
    Directory structure: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_name = request.node.name

    test_dir = test_output_root / module_name / test_name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture(autouse=True)
def reset_stairbench_logging():
    """Reset the stairbench logger to its library default around each test."""
    logger = logging.getLogger("stairbench")

    def _reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


def skewed_windows(
    win_num: int,
    per_window: int,
    universe: int,
    seed: int = 42,
    skew: float = 1.2,
) -> list[list[str]]:
    """Deterministic windows drawn from a Zipf-like distribution over e0..e{universe-1}."""
    rng = random.Random(seed)
    population = [f"e{i}" for i in range(universe)]
    weights = [1.0 / (rank + 1) ** skew for rank in range(universe)]
    return [rng.choices(population, weights=weights, k=per_window) for _ in range(win_num)]


@pytest.fixture(scope="session")
def skewed_snapshot() -> StreamSnapshot:
    """16 windows of 120 occurrences over 80 elements."""
    return StreamSnapshot.from_windows(skewed_windows(win_num=16, per_window=120, universe=80))


@pytest.fixture
def skewed_ctx(skewed_snapshot) -> EvaluationContext:
    cfg = EvaluationConfig(win_num=skewed_snapshot.win_num, ds_win_num=8, memory=16 * 1024, level=3)
    return EvaluationContext(skewed_snapshot, cfg)


@pytest.fixture(scope="session")
def make_skewed_windows():
    """The skewed_windows generator, for tests that need their own stream shape."""
    return skewed_windows
