"""Tests for the Bloom filter building block."""

import random

import pytest

from stairbench.sketching import BloomFilter


class TestBloomFilterCreation:
    """Tests for BloomFilter creation and configuration."""

    def test_creates_with_size_and_hashes(self):
        """BloomFilter is created with specified parameters."""
        bf = BloomFilter(size_bits=1000, num_hashes=5)

        assert bf.size_bits == 1000
        assert bf.num_hashes == 5

    def test_default_hashes(self):
        """Two hash positions by default."""
        assert BloomFilter(size_bits=64).num_hashes == 2

    def test_rejects_zero_size(self):
        """Rejects size_bits=0."""
        with pytest.raises(ValueError, match="must be positive"):
            BloomFilter(size_bits=0)

    def test_rejects_zero_hashes(self):
        """Rejects num_hashes=0."""
        with pytest.raises(ValueError, match="must be positive"):
            BloomFilter(size_bits=1000, num_hashes=0)

    def test_from_bytes_rounds_down_to_words(self):
        """from_bytes fits whole 64-bit words into the budget."""
        bf = BloomFilter.from_bytes(100)

        assert bf.size_bits == 12 * 64
        assert bf.memory_bytes == 96

    def test_from_bytes_keeps_one_word(self):
        """A tiny budget still yields one word."""
        bf = BloomFilter.from_bytes(3)

        assert bf.size_bits == 64
        assert bf.memory_bytes == 8


class TestBloomFilterMembership:
    """Tests for add/contains."""

    def test_no_false_negatives(self):
        """Every added item is reported present."""
        bf = BloomFilter(size_bits=512, num_hashes=3)
        rng = random.Random(7)
        items = [rng.random() for _ in range(200)]
        for item in items:
            bf.add(item)

        assert all(bf.contains(item) for item in items)

    def test_empty_filter_reports_absent(self):
        """Nothing is present before any add."""
        bf = BloomFilter(size_bits=1024)

        assert not bf.contains("missing")
        assert bf.fill_ratio == 0.0

    def test_fill_ratio_grows(self):
        """Adding items sets bits."""
        bf = BloomFilter(size_bits=1024, num_hashes=2)
        bf.add("a")

        assert 0 < bf.fill_ratio <= 2 / 1024

    def test_same_seed_same_positions(self):
        """Filters with equal seeds agree bit for bit."""
        a = BloomFilter(size_bits=256, seed=3)
        b = BloomFilter(size_bits=256, seed=3)
        a.add("k")
        b.add("k")

        assert a._bits == b._bits

    def test_clear(self):
        """clear() empties the filter but keeps its size."""
        bf = BloomFilter(size_bits=128)
        bf.add("x")
        bf.clear()

        assert not bf.contains("x")
        assert bf.size_bits == 128

