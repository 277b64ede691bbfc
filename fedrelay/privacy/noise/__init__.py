from .base import BaseNoiseGenerator, NoiseGenerator
from .generators import SecureGaussianNoiseGenerator, validate_noise_input

__all__ = [
    "NoiseGenerator",
    "BaseNoiseGenerator",
    "SecureGaussianNoiseGenerator",
    "validate_noise_input",
]
