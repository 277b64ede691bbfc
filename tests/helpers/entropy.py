import itertools

import numpy as np


def constant_entropy(value: int):
    """Entropy source repeating one uint32 value."""

    def source(num_bytes: int) -> bytes:
        count = num_bytes // 4
        return np.full(count, value, dtype="<u4").tobytes()

    return source


def cycling_entropy(values: list[int]):
    """Entropy source cycling through uint32 values across calls."""
    it = itertools.cycle(values)

    def source(num_bytes: int) -> bytes:
        count = num_bytes // 4
        return np.array(
            [next(it) for _ in range(count)], dtype="<u4"
        ).tobytes()

    return source


# Draw that makes Box-Muller radius zero: u1 == 1.0
ZERO_NOISE = constant_entropy(2**32 - 1)
