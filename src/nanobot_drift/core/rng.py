"""
Seeded pseudo-random generation.

Every random draw in the simulation goes through `Rng` so that a given seed
and call order reproduce a run exactly.
"""

import math
import random
import secrets
from typing import Any, Sequence, TypeVar

from nanobot_drift.core.constants import DEFAULT_SEED

T = TypeVar("T")

U32_MASK = 0xFFFFFFFF
FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


class Rng:
    """xorshift32 generator with a never-zero state."""

    def __init__(self, seed: int) -> None:
        self.state = int(seed) & U32_MASK
        if self.state == 0:
            self.state = DEFAULT_SEED

    def next_u32(self) -> int:
        x = self.state
        x ^= (x << 13) & U32_MASK
        x ^= x >> 17
        x ^= (x << 5) & U32_MASK
        self.state = x
        return x

    def next(self) -> float:
        return self.next_u32() / U32_MASK

    def range(self, lo: float, hi: float) -> float:
        return lo + (hi - lo) * self.next()

    def int(self, lo: float, hi_inclusive: float) -> int:
        lo_i = math.ceil(lo)
        hi_i = math.floor(hi_inclusive)
        # next() can return exactly 1.0 for the all-ones draw
        return min(hi_i, lo_i + math.floor(self.next() * (hi_i - lo_i + 1)))

    def chance(self, p: float) -> bool:
        return self.next() < p

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("cannot pick from an empty sequence")
        return items[min(len(items) - 1, math.floor(self.next() * len(items)))]


def hash_string_to_u32(text: str) -> int:
    """FNV-1a 32-bit over UTF-16 code units."""
    h = FNV_OFFSET_BASIS
    data = text.encode("utf-16-le", errors="surrogatepass")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * FNV_PRIME) & U32_MASK
    return h


def _random_u32() -> int:
    try:
        return secrets.randbits(32)
    except NotImplementedError:
        return random.getrandbits(32)


def seed_from_unknown(seed: Any) -> int:
    """
    Coerce an untrusted seed value into a non-zero u32.

    Finite numbers are truncated modulo 2**32, strings are hashed, anything
    else draws from the OS entropy source. Zero always maps to DEFAULT_SEED.
    """
    if isinstance(seed, (int, float)) and not isinstance(seed, bool):
        if math.isfinite(seed):
            return (math.trunc(seed) & U32_MASK) or DEFAULT_SEED
    elif isinstance(seed, str):
        return hash_string_to_u32(seed) or DEFAULT_SEED
    return _random_u32() or DEFAULT_SEED
