import math
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

import numpy as np
import torch

from ..constants import UNIFORM_BYTES, UNIFORM_RANGE
from ..exceptions import NoiseGenerationError
from ..types import Shape, Tensor
from .base import BaseNoiseGenerator

P = ParamSpec("P")
T = TypeVar("T", bound=torch.Tensor)


def validate_noise_input(func: Callable[P, T]) -> Callable[P, T]:
    """Decorator to validate noise generation inputs."""

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        shape = args[1] if len(args) > 1 else kwargs.get("shape")
        scale = args[2] if len(args) > 2 else kwargs.get("scale")

        if not shape:
            raise ValueError("Shape must be provided")

        if not isinstance(shape, tuple):
            raise ValueError("Shape must be a tuple")

        if not all(isinstance(d, int) and d > 0 for d in shape):
            raise ValueError(
                "Invalid shape: must be a tuple of positive integers"
            )

        if not isinstance(scale, (int, float)):
            raise ValueError("Scale must be a number")

        if scale <= 0 or not math.isfinite(scale):
            raise ValueError("Scale must be positive and finite")

        try:
            return func(*args, **kwargs)
        except Exception as e:
            raise NoiseGenerationError(
                f"Noise generation failed: {str(e)}"
            ) from e

    return wrapper


class SecureGaussianNoiseGenerator(BaseNoiseGenerator):
    """Gaussian noise via the Box-Muller transform over secure uniforms."""

    def uniforms(self, count: int) -> np.ndarray:
        """Draw `count` uniform samples in (0, 1]."""
        num_bytes = count * UNIFORM_BYTES
        raw = self._entropy(num_bytes)
        if len(raw) != num_bytes:
            raise NoiseGenerationError(
                f"Entropy source returned {len(raw)} bytes, "
                f"expected {num_bytes}"
            )
        ints = np.frombuffer(raw, dtype="<u4").astype(np.float64)
        # Shift by one so log(u) is always finite
        return (ints + 1.0) / UNIFORM_RANGE

    @validate_noise_input
    def generate(self, shape: Shape, scale: float) -> Tensor:
        size = math.prod(shape)
        num_pairs = (size + 1) // 2
        u = self.uniforms(2 * num_pairs)
        u1, u2 = u[0::2], u[1::2]

        radius = np.sqrt(-2.0 * np.log(u1))
        theta = 2.0 * math.pi * u2
        # cos/sin halves interleave; odd sizes drop the last sine sample
        pairs = np.stack([radius * np.cos(theta), radius * np.sin(theta)], 1)
        samples = pairs.reshape(-1)[:size] * scale

        return torch.from_numpy(samples.astype(np.float32)).reshape(shape)
