"""
Deterministic Random Streams
============================

Small 32-bit generator used by the Monte Carlo simulator. Identical
seeds give identical streams on every platform.
"""

from __future__ import annotations

import math
import os
import time
from typing import Any, Protocol

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


class Rng(Protocol):
    def random(self) -> float:
        """Next float in [0, 1)."""
        ...


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


class Mulberry32:
    """
    Mulberry32 generator.

    State is a single 32-bit word; each step adds a Weyl constant and
    mixes it with two multiply-xorshift rounds.
    """

    def __init__(self, seed: int):
        self._state = seed & _MASK32

    def random(self) -> float:
        t = self._state = (self._state + 0x6D2B79F5) & _MASK32
        x = _imul(t ^ (t >> 15), t | 1)
        x ^= (x + _imul(x ^ (x >> 7), x | 61)) & _MASK32
        return ((x ^ (x >> 14)) & _MASK32) / 4294967296.0


def fnv1a_32(text: str) -> int:
    """FNV-1a hash over the UTF-16 code units of ``text``."""
    h = _FNV_OFFSET
    data = text.encode("utf-16-le")
    for k in range(0, len(data), 2):
        h ^= data[k] | (data[k + 1] << 8)
        h = _imul(h, _FNV_PRIME)
    return h


def seed_from_any(seed: Any) -> int:
    """
    Resolve a user-supplied seed to a 32-bit unsigned integer.

    Args:
        seed: int/float (truncated to 32 bits), str (FNV-1a hashed) or
            None for a time-derived, non-reproducible seed

    Returns:
        Seed in [0, 2**32)
    """
    if isinstance(seed, (int, float)) and not isinstance(seed, bool) and math.isfinite(seed):
        return math.trunc(seed) & _MASK32
    if isinstance(seed, str):
        return fnv1a_32(seed)
    return (time.time_ns() // 1_000_000 ^ int.from_bytes(os.urandom(4), "little")) & _MASK32
