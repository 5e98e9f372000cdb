"""
Seeded hash and uniform-draw primitives, plus importance-weight flooring.

The draw follows the 48-bit-mantissa "merand48" generator: a 64-bit LCG
step whose high bits are packed into a float in [1, 2) and shifted to
[0, 1). Everything here is deterministic given the process seed.
"""
from __future__ import annotations

import hashlib
import struct
from typing import Tuple

_MASK64 = (1 << 64) - 1
_LCG_A = 0xEECE66D5DEECE66D
_LCG_C = 2147483647
_FLOAT_BIAS = 127 << 23

# Importance weights below this are floored (or dropped) before training
WEIGHT_EPSILON = 1e-5


def uniform_hash(data: bytes, seed: int) -> int:
    """Hash ``data`` under ``seed`` to a 64-bit integer."""
    key = struct.pack("<Q", seed & _MASK64)
    digest = hashlib.blake2b(data, digest_size=8, key=key).digest()
    return struct.unpack("<Q", digest)[0]


def merand48(seed: int) -> Tuple[float, int]:
    """
    Draw a uniform float in [0, 1) from ``seed``.

    Returns:
        (draw, next_seed)
    """
    seed = (_LCG_A * seed + _LCG_C) & _MASK64
    bits = ((seed >> 25) & 0x7FFFFF) | _FLOAT_BIAS
    return struct.unpack("<f", struct.pack("<I", bits))[0] - 1.0, seed


def uniform_random_merand48(seed: int) -> float:
    """Single draw in [0, 1) without returning the advanced seed."""
    return merand48(seed)[0]


class WeightFloor:
    """
    Rejection sampler that keeps tiny importance weights unbiased.

    A weight ``w < epsilon`` is kept with probability ``w / epsilon`` and
    raised to ``epsilon``; otherwise the training opportunity is dropped.
    Each decision hashes the process seed with a fresh draw counter, so
    repeated decisions are independent yet reproducible.
    """

    def __init__(self, seed: int = 0, epsilon: float = WEIGHT_EPSILON):
        self.seed = seed & _MASK64
        self.epsilon = epsilon
        self.draws = 0
        self.kept = 0

    def next_draw(self) -> float:
        """Uniform draw in [0, epsilon)."""
        new_seed = uniform_hash(struct.pack("<Q", self.draws), self.seed)
        self.draws += 1
        return uniform_random_merand48(new_seed) * self.epsilon

    def apply(self, weight: float) -> Tuple[bool, float]:
        """
        Floor ``weight``.

        Returns:
            (keep, weight_to_use). Weights at or above epsilon pass through.
        """
        if weight >= self.epsilon:
            return True, weight
        if self.next_draw() < weight:
            self.kept += 1
            return True, self.epsilon
        return False, weight

    def get_statistics(self) -> dict:
        return {
            "seed": self.seed,
            "epsilon": self.epsilon,
            "draws": self.draws,
            "kept": self.kept,
        }
