"""Tests for the one-structure-per-window baselines."""

import pytest

from stairbench.sketching import PerWindowBloomFilter, PerWindowCountMin


class TestPerWindowBloomFilter:
    """Tests for PerWindowBloomFilter."""

    def test_budget_split_across_windows(self):
        """Each window gets an equal share of the budget."""
        sketch = PerWindowBloomFilter(win_num=4, memory=4096)

        assert sketch.memory() == 4096

    def test_replay_ingestion(self):
        """Bloom filters are fed raw occurrences."""
        assert not PerWindowBloomFilter(win_num=2, memory=64).add_delta_implemented()

    def test_no_false_negatives(self):
        """Added elements are found in their window."""
        sketch = PerWindowBloomFilter(win_num=3, memory=3000)
        sketch.add(2, "a")

        assert sketch.query(2, "a")
        assert sketch.query_multiple_windows(1, 3, "a")

    def test_out_of_range_windows(self):
        """Windows outside 1..W are empty and cost nothing."""
        sketch = PerWindowBloomFilter(win_num=3, memory=3000)
        sketch.add(9, "a")

        assert not sketch.query(0, "a")
        assert not sketch.query(9, "a")
        assert sketch.qcnt() == 0

    def test_range_cost_is_linear(self):
        """An absent element costs one probe per window."""
        sketch = PerWindowBloomFilter(win_num=8, memory=8000)

        assert not sketch.query_multiple_windows(1, 8, "a")
        assert sketch.qcnt() == 8

    def test_rejects_bad_arguments(self):
        """Window count and memory must be positive."""
        with pytest.raises(ValueError, match="win_num"):
            PerWindowBloomFilter(win_num=0, memory=10)
        with pytest.raises(ValueError, match="memory"):
            PerWindowBloomFilter(win_num=2, memory=0)


class TestPerWindowCountMin:
    """Tests for PerWindowCountMin."""

    def test_delta_ingestion(self):
        """Count-min windows accept deltas."""
        sketch = PerWindowCountMin(win_num=4, memory=4000)
        sketch.add(3, "a", 5)

        assert sketch.add_delta_implemented()
        assert sketch.query(3, "a") == 5

    def test_range_sum(self):
        """Range answers add up the windows."""
        sketch = PerWindowCountMin(win_num=4, memory=4000)
        sketch.add(1, "a", 1)
        sketch.add(4, "a", 2)

        assert sketch.query_multiple_windows(1, 4, "a") == 3
        assert sketch.qcnt() == 4

    def test_memory_within_budget(self):
        """Footprint never exceeds the budget."""
        sketch = PerWindowCountMin(win_num=3, memory=1000)

        assert sketch.memory() <= 1000

    def test_out_of_range_window(self):
        """Windows past W answer 0."""
        sketch = PerWindowCountMin(win_num=2, memory=100)

        assert sketch.query(3, "a") == 0
