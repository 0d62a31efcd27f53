"""Tests for the geometric memory partitioner."""

import pytest

from stairbench.partition import StairLevel, describe, partition, total_span


class TestPartitionShape:
    """Tests for the level schedule produced by partition()."""

    def test_zero_levels_is_single_structure(self):
        """K=0 gives one level holding the whole budget."""
        assert partition(1000, 0) == [StairLevel(1000.0, 1, 1, 1)]

    def test_two_level_schedule(self):
        """K=2 follows the unit * 2^i * f(i) formula."""
        levels = partition(1900, 2)

        assert [tuple(lv) for lv in levels] == [
            (100.0, 1, 1, 1),
            (200.0, 2, 1, 1),
            (1600.0, 2, 4, 2),
        ]

    def test_returns_k_plus_one_levels(self):
        """One entry per level including level 0."""
        for k in range(6):
            assert len(partition(4096, k)) == k + 1

    def test_level_zero_is_one_window(self):
        """Level 0 is one structure spanning one window."""
        level0 = partition(4096, 3)[0]

        assert level0.structure_count == 1
        assert level0.scale_factor == 1
        assert level0.window_span == 1

    def test_upper_levels_have_two_structures(self):
        """Every level above 0 has two structures."""
        for lv in partition(4096, 4)[1:]:
            assert lv.structure_count == 2

    def test_only_top_level_is_scaled(self):
        """The top level carries the 4x factor, the others 1."""
        levels = partition(4096, 4)

        assert [lv.scale_factor for lv in levels] == [1, 1, 1, 1, 4]

    def test_spans_double_above_level_one(self):
        """Each span doubles the previous one from level 1 upwards."""
        levels = partition(1 << 20, 6)

        assert levels[1].window_span == 1
        for prev, cur in zip(levels[1:], levels[2:]):
            assert cur.window_span == 2 * prev.window_span

    def test_memory_grows_with_span(self):
        """Below the top, memory per level is unit * 2^i."""
        levels = partition(1 << 20, 5)
        unit = levels[0].memory_budget

        for i, lv in enumerate(levels[:-1]):
            assert lv.memory_budget == pytest.approx(unit * (1 << i))
        assert levels[-1].memory_budget == pytest.approx(unit * (1 << 5) * 4)


class TestPartitionBudget:
    """Tests that the schedule accounts for the whole budget."""

    @pytest.mark.parametrize("memory", [1, 100, 4096, 1_000_003])
    @pytest.mark.parametrize("k", [0, 1, 2, 3, 7])
    def test_budgets_sum_to_total(self, memory, k):
        """Level budgets reconstruct the input memory.

        memory_budget is a whole level's share, not a per-structure amount, so
        the plain sum is M; weighting by structure_count would count it twice.
        """
        levels = partition(memory, k)

        assert sum(lv.memory_budget for lv in levels) == pytest.approx(memory)

    def test_per_structure_memory_splits_level(self):
        """per_structure_memory divides the level budget by its structure count."""
        levels = partition(1900, 2)

        assert levels[2].per_structure_memory == pytest.approx(800.0)
        assert levels[0].per_structure_memory == pytest.approx(100.0)

    def test_tiny_budget_is_accepted(self):
        """A budget below the weight sum yields a small but valid unit."""
        levels = partition(3, 3)

        assert levels[0].memory_budget == pytest.approx(3 / 39)
        assert all(lv.memory_budget > 0 for lv in levels)

    def test_rejects_non_positive_memory(self):
        """Rejects memory <= 0."""
        with pytest.raises(ValueError, match="total_memory"):
            partition(0, 3)
        with pytest.raises(ValueError, match="total_memory"):
            partition(-5, 3)

    def test_rejects_negative_levels(self):
        """Rejects K < 0."""
        with pytest.raises(ValueError, match="level_count"):
            partition(1000, -1)


class TestPartitionHelpers:
    """Tests for total_span and describe."""

    def test_total_span(self):
        """Counts level 0 plus two blocks on each level."""
        # 1*1 + 2*1 + 2*2 + 2*4
        assert total_span(partition(4096, 3)) == 15

    def test_describe_has_one_line_per_level(self):
        """describe() renders every level."""
        text = describe(partition(4096, 3))

        assert len(text.splitlines()) == 4
        assert text.startswith("L0:")
