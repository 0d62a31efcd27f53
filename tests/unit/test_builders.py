"""Tests for sketch builders and the builder registry."""

import pytest

from stairbench.builders import BUILDERS, build, build_pbf, build_scu
from stairbench.config import EvaluationConfig
from stairbench.sketching import (
    ExactFrequency,
    ExactMembership,
    PerWindowBloomFilter,
    PerWindowCountMin,
    StairBloomFilter,
    StairCountMin,
)


@pytest.fixture
def cfg():
    return EvaluationConfig(win_num=8, ds_win_num=4, memory=8192, level=2)


class TestRegistry:
    """Tests for build() and BUILDERS."""

    @pytest.mark.parametrize(
        "name, kind",
        [
            ("sbf", StairBloomFilter),
            ("scm", StairCountMin),
            ("scu", StairCountMin),
            ("pbf", PerWindowBloomFilter),
            ("pcm", PerWindowCountMin),
            ("exact_membership", ExactMembership),
            ("exact_frequency", ExactFrequency),
        ],
    )
    def test_builds_registered_designs(self, cfg, name, kind):
        """Every registry name yields its sketch type."""
        assert isinstance(build(name, cfg), kind)
        assert name in BUILDERS

    def test_unknown_name(self, cfg):
        """Unknown names raise KeyError listing the known ones."""
        with pytest.raises(KeyError, match="unknown sketch builder"):
            build("nope", cfg)

    def test_fresh_sketch_each_call(self, cfg):
        """Builders never share state between calls."""
        assert build("scm", cfg) is not build("scm", cfg)

    def test_level_from_config(self, cfg):
        """Stair builders use the configured level count."""
        assert len(build("sbf", cfg).schedule) == cfg.level + 1


class TestBuilders:
    """Tests for the builder functions."""

    def test_scu_is_conservative(self):
        """build_scu produces conservative-update count-min structures."""
        sketch = build_scu(4096, level=1)
        sketch.add(1, "a", 3)

        assert sketch.query(1, "a") == 3
        assert sketch._history.conservative

    def test_pbf_window_count(self):
        """build_pbf allocates one filter per window."""
        sketch = build_pbf(800, win_num=4)

        assert sketch.memory() == 4 * 200
