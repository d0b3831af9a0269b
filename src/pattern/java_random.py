"""
This module implements the 48-bit linear congruential generator used by the
legacy client (the `java.util.Random` algorithm).

Replays only store the seed, so every modifier has to draw exactly the same
sequence of values the legacy client drew for that seed.
"""

import numpy as np


class JavaRandom:
    """
    Deterministic pseudo-random generator reproducing `java.util.Random`.

    Attributes:
        MULTIPLIER (int): LCG multiplier, also used to scramble the seed.
        ADDEND (int): LCG increment.
        MASK (int): Keeps the state at 48 bits.
    """

    MULTIPLIER = 0x5DEECE66D
    ADDEND = 0xB
    MASK = (1 << 48) - 1

    def __init__(self, seed: int):
        self._state = 0
        self.set_seed(seed)

    @staticmethod
    def fresh_seed() -> int:
        """Draws a new non-negative 63-bit seed for an unseeded play."""
        return int(np.random.default_rng().integers(0, np.iinfo(np.int64).max))

    def set_seed(self, seed: int) -> None:
        self._state = (seed ^ self.MULTIPLIER) & self.MASK

    def next_bits(self, bits: int) -> int:
        """Advances the state and returns its top `bits` bits as a signed 32-bit int."""
        self._state = (self._state * self.MULTIPLIER + self.ADDEND) & self.MASK
        result = self._state >> (48 - bits)
        if result & 0x80000000:
            result -= 1 << 32
        return result

    def next_int(self, bound: int) -> int:
        """
        Returns a uniformly distributed int in `[0, bound)`.

        Raises:
            ValueError: If bound is not positive.
        """
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}")

        r = self.next_bits(31)
        m = bound - 1
        if bound & m == 0:
            return (bound * r) >> 31

        # Rejects the values of the incomplete last bucket (u - r + m would
        # overflow a signed 32-bit int).
        u = r
        r = u % bound
        while u - r + m >= 0x80000000:
            u = self.next_bits(31)
            r = u % bound
        return r

    def next_int32(self) -> int:
        return self.next_bits(32)

    def next_long(self) -> int:
        value = (self.next_bits(32) << 32) + self.next_bits(32)
        value &= (1 << 64) - 1
        if value & (1 << 63):
            value -= 1 << 64
        return value

    def next_boolean(self) -> bool:
        return self.next_bits(1) != 0

    def next_double(self) -> float:
        return ((self.next_bits(26) << 27) + self.next_bits(27)) * (1.0 / (1 << 53))
