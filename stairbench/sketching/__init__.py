"""Windowed sketches evaluated by stairbench.

Quick Reference:
    WindowedSketch: capability contract every design implements
    ExactMembership / ExactFrequency: zero-error oracles
    PerWindowBloomFilter / PerWindowCountMin: one structure per window
    StairBloomFilter / StairCountMin: geometric multi-level designs
    BloomFilter / CountMinSketch: single-structure building blocks
"""

from stairbench.sketching.base import (
    FrequencyWindowSketch,
    MembershipWindowSketch,
    WindowedSketch,
)
from stairbench.sketching.bloom_filter import BloomFilter
from stairbench.sketching.count_min_sketch import CountMinSketch
from stairbench.sketching.exact import ExactFrequency, ExactMembership
from stairbench.sketching.per_window import PerWindowBloomFilter, PerWindowCountMin
from stairbench.sketching.stair import StairBloomFilter, StairCountMin

__all__ = [
    "BloomFilter",
    "CountMinSketch",
    "ExactFrequency",
    "ExactMembership",
    "FrequencyWindowSketch",
    "MembershipWindowSketch",
    "PerWindowBloomFilter",
    "PerWindowCountMin",
    "StairBloomFilter",
    "StairCountMin",
    "WindowedSketch",
]
