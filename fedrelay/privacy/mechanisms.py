import math
from dataclasses import dataclass

import torch

from fedrelay.core.exceptions import InvalidParameterError, ShapeMismatchError
from fedrelay.core.types import WeightVector
from fedrelay.utils import Logger, log_exec

from .accountant import PrivacySpent, estimate_privacy_cost
from .config import PrivacyParameters
from .noise import NoiseGenerator, SecureGaussianNoiseGenerator


@dataclass(slots=True, frozen=True)
class CalibrationMetadata:
    """Metadata about one privatized update."""

    original_norm: float
    clipped_norm: float
    noise_scale: float
    num_parameters: int

    @property
    def was_clipped(self) -> bool:
        return self.clipped_norm < self.original_norm


def _validate_weights(weights: WeightVector) -> None:
    if weights.dim() != 1:
        raise ShapeMismatchError(
            f"Expected a 1-D weight vector, got shape {tuple(weights.shape)}"
        )
    if weights.numel() == 0:
        raise InvalidParameterError("Weight vector is empty")


def validate_privacy_parameters(params: PrivacyParameters) -> None:
    """Re-check parameter ranges, including unvalidated instances."""
    if not params.epsilon > 0:
        raise InvalidParameterError(
            f"epsilon must be positive, got {params.epsilon}"
        )
    if not 0 < params.delta < 1:
        raise InvalidParameterError(
            f"delta must be in (0, 1), got {params.delta}"
        )
    if not params.l2_norm_clip > 0:
        raise InvalidParameterError(
            f"l2_norm_clip must be positive, got {params.l2_norm_clip}"
        )


def compute_l2_norm(weights: WeightVector) -> float:
    """L2 norm, accumulated in double precision."""
    return torch.linalg.vector_norm(weights.to(torch.float64)).item()


def clip_weights(weights: WeightVector, clip_threshold: float) -> WeightVector:
    """Scale `weights` down to `clip_threshold` L2 norm if it exceeds it.

    Vectors already within the threshold come back as an unchanged copy.
    """
    _validate_weights(weights)
    if clip_threshold <= 0:
        raise InvalidParameterError(
            f"Clip threshold must be positive, got {clip_threshold}"
        )

    norm = compute_l2_norm(weights)
    if norm <= clip_threshold:
        return weights.clone()

    scale = clip_threshold / norm
    return (weights.to(torch.float64) * scale).to(weights.dtype)


def compute_sensitivity(l2_norm_clip: float) -> float:
    """Largest change one clipped update can cause."""
    return l2_norm_clip


def compute_noise_scale(
    epsilon: float, delta: float, sensitivity: float
) -> float:
    """Standard deviation of the analytic Gaussian mechanism.

    ``sqrt(2 ln(1.25 / delta)) * sensitivity / epsilon``. The approximation
    is meant for small epsilon; a very large epsilon yields negligible noise.
    """
    c = math.sqrt(2 * math.log(1.25 / delta))
    return c * sensitivity / epsilon


class NoiseCalibrator:
    """Clips an update and injects calibrated Gaussian noise.

    Parameters
    ----------
    noise_generator : NoiseGenerator | None
        Source of Gaussian noise. Defaults to
        :class:`SecureGaussianNoiseGenerator`, which draws from the OS CSPRNG.

    Examples
    --------
    >>> calibrator = NoiseCalibrator()
    >>> params = PrivacyParameters(epsilon=1.0, delta=1e-5, l2_norm_clip=1.0)
    >>> noised = calibrator.apply_privacy(torch.tensor([3.0, 4.0]), params)
    """

    def __init__(self, noise_generator: NoiseGenerator | None = None) -> None:
        self._noise_gen = noise_generator or SecureGaussianNoiseGenerator()
        self._logger = Logger()

    @log_exec
    def calibrate(
        self, weights: WeightVector, params: PrivacyParameters
    ) -> tuple[WeightVector, CalibrationMetadata]:
        """Clip, compute noise scale and add noise, returning metadata."""
        with self._logger.context("privacy", "calibrate"):
            validate_privacy_parameters(params)
            _validate_weights(weights)

            original_norm = compute_l2_norm(weights)
            clipped = clip_weights(weights, params.l2_norm_clip)

            sensitivity = compute_sensitivity(params.l2_norm_clip)
            noise_scale = compute_noise_scale(
                params.epsilon, params.delta, sensitivity
            )

            noise = self._noise_gen.generate(
                tuple(clipped.shape), scale=noise_scale
            )
            noised = clipped + noise.to(clipped.dtype)

            metadata = CalibrationMetadata(
                original_norm=original_norm,
                clipped_norm=min(original_norm, params.l2_norm_clip),
                noise_scale=noise_scale,
                num_parameters=clipped.numel(),
            )

            self._logger.debug(
                f"Applied privacy mechanism: "
                f"norm={metadata.original_norm:.3f}->{metadata.clipped_norm:.3f}, "  # noqa
                f"noise={noise_scale:.3f}"
            )

            return noised, metadata

    def apply_privacy(
        self, weights: WeightVector, params: PrivacyParameters
    ) -> WeightVector:
        """Return a differentially private copy of `weights`."""
        noised, _ = self.calibrate(weights, params)
        return noised

    @staticmethod
    def estimate_privacy_cost(
        epsilon: float, delta: float, iterations: int, sample_rate: float
    ) -> PrivacySpent:
        """See :func:`fedrelay.privacy.accountant.estimate_privacy_cost`."""
        return estimate_privacy_cost(epsilon, delta, iterations, sample_rate)
