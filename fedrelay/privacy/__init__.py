from .accountant import HeuristicAccountant, PrivacySpent, estimate_privacy_cost
from .config import PrivacyParameters
from .constants import DEFAULT_DELTA, DEFAULT_EPSILON
from .exceptions import (
    NoiseGenerationError,
    PrivacyBudgetExceededError,
    PrivacyError,
)
from .mechanisms import (
    CalibrationMetadata,
    NoiseCalibrator,
    clip_weights,
    compute_l2_norm,
    compute_noise_scale,
    compute_sensitivity,
)
from .noise import SecureGaussianNoiseGenerator

__all__ = [
    "PrivacyParameters",
    "DEFAULT_DELTA",
    "DEFAULT_EPSILON",
    "PrivacyError",
    "PrivacyBudgetExceededError",
    "NoiseGenerationError",
    "SecureGaussianNoiseGenerator",
    "NoiseCalibrator",
    "CalibrationMetadata",
    "clip_weights",
    "compute_l2_norm",
    "compute_noise_scale",
    "compute_sensitivity",
    "PrivacySpent",
    "HeuristicAccountant",
    "estimate_privacy_cost",
]
