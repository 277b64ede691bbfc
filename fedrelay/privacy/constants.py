from typing import Final

DEFAULT_EPSILON: Final[float] = 1.0
DEFAULT_DELTA: Final[float] = 1e-5
DEFAULT_L2_NORM_CLIP: Final[float] = 1.0
DEFAULT_SAMPLE_RATE: Final[float] = 0.01
# Bytes per uniform draw fed to Box-Muller
UNIFORM_BYTES: Final[int] = 4
UNIFORM_RANGE: Final[int] = 2**32
