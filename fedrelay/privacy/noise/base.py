import os
from abc import ABC, abstractmethod
from typing import Protocol

from ..types import EntropySource, Shape, Tensor


class NoiseGenerator(Protocol):
    """Protocol for noise generation."""

    def generate(self, shape: Shape, scale: float) -> Tensor: ...


class BaseNoiseGenerator(ABC):
    """Abstract base class for noise generators.

    Randomness comes from an entropy source returning ``n`` random bytes per
    call. The default is the operating system CSPRNG.
    """

    def __init__(self, entropy: EntropySource | None = None) -> None:
        self._entropy = entropy or os.urandom

    def set_seed(self, seed: int) -> None:
        raise NotImplementedError(
            "Secure noise generators draw from the OS entropy pool and "
            "cannot be seeded"
        )

    @abstractmethod
    def generate(self, shape: Shape, scale: float) -> Tensor:
        """Generate noise tensor."""
        pass
