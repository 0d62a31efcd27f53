"""Bloom filter building block for membership sketches.

A single bit array with k hash positions per element. Windowed membership
sketches own one or more of these and decide which window(s) each filter
stands for.

Key properties:
- Space: size_bits bits, stored as 64-bit words
- Insert / query: O(k)
- False positive rate ~ fill_ratio^k
- No false negatives

Reference:
    Bloom. "Space/Time Trade-offs in Hash Coding with Allowable Errors" (1970)
"""

from __future__ import annotations

import hashlib
import struct
from collections.abc import Hashable

WORD_BITS = 64
WORD_BYTES = 8


def _hash_pair(item: Hashable, seed: int) -> tuple[int, int]:
    """Two 64-bit hashes from one SHA-256 digest of (seed, repr(item))."""
    h = hashlib.sha256()
    h.update(struct.pack(">Q", seed & 0xFFFFFFFFFFFFFFFF))
    h.update(repr(item).encode("utf-8"))
    digest = h.digest()
    h1 = struct.unpack(">Q", digest[:8])[0]
    h2 = struct.unpack(">Q", digest[8:16])[0]
    return h1, h2


class BloomFilter:
    """Fixed-size Bloom filter.

    Args:
        size_bits: Size of the bit array. Must be positive.
        num_hashes: Number of hash positions per element. Must be positive.
        seed: Hash seed.

    Raises:
        ValueError: If size_bits or num_hashes is not positive.
    """

    def __init__(self, size_bits: int, num_hashes: int = 2, seed: int = 0):
        if size_bits <= 0:
            raise ValueError(f"size_bits must be positive, got {size_bits}")
        if num_hashes <= 0:
            raise ValueError(f"num_hashes must be positive, got {num_hashes}")

        self._size_bits = size_bits
        self._num_hashes = num_hashes
        self._seed = seed
        self._bits: list[int] = [0] * ((size_bits + WORD_BITS - 1) // WORD_BITS)
        self._bits_set = 0

    @classmethod
    def from_bytes(cls, budget_bytes: float, num_hashes: int = 2, seed: int = 0) -> BloomFilter:
        """Largest filter whose word array fits in ``budget_bytes`` (at least one word)."""
        words = max(1, int(budget_bytes) // WORD_BYTES)
        return cls(size_bits=words * WORD_BITS, num_hashes=num_hashes, seed=seed)

    @property
    def size_bits(self) -> int:
        return self._size_bits

    @property
    def num_hashes(self) -> int:
        return self._num_hashes

    @property
    def fill_ratio(self) -> float:
        """Proportion of bits that are set."""
        return self._bits_set / self._size_bits

    def _positions(self, item: Hashable) -> list[int]:
        h1, h2 = _hash_pair(item, self._seed)
        return [(h1 + i * h2) % self._size_bits for i in range(self._num_hashes)]

    def add(self, item: Hashable) -> None:
        for bit_idx in self._positions(item):
            word_idx, bit_pos = divmod(bit_idx, WORD_BITS)
            mask = 1 << bit_pos
            if not self._bits[word_idx] & mask:
                self._bits[word_idx] |= mask
                self._bits_set += 1

    def contains(self, item: Hashable) -> bool:
        """False only if ``item`` was definitely never added."""
        for bit_idx in self._positions(item):
            word_idx, bit_pos = divmod(bit_idx, WORD_BITS)
            if not self._bits[word_idx] & (1 << bit_pos):
                return False
        return True

    @property
    def memory_bytes(self) -> int:
        """Bytes used by the bit array."""
        return len(self._bits) * WORD_BYTES

    def clear(self) -> None:
        self._bits = [0] * len(self._bits)
        self._bits_set = 0

    def __repr__(self) -> str:
        return (
            f"BloomFilter(size_bits={self._size_bits}, num_hashes={self._num_hashes}, "
            f"fill={self.fill_ratio:.1%})"
        )
