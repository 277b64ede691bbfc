"""Heuristic privacy cost estimates.

The composition rule used here,

    epsilon_total = epsilon * sqrt(ln(1 / delta) * iterations * sample_rate)

is a rough advanced-composition style approximation with subsampling
amplification. It is NOT a tight moments-accountant or RDP bound and makes
no formal guarantee. Use it to give contributors a sense of how spending
grows over rounds, never as a security argument.
"""

import math

from fedrelay.core.exceptions import InvalidParameterError

from .base import BasePrivacyAccountant, PrivacySpent


def _check_privacy_inputs(
    epsilon: float, delta: float, sample_rate: float
) -> None:
    if epsilon <= 0:
        raise InvalidParameterError(f"epsilon must be positive, got {epsilon}")
    if not 0 < delta < 1:
        raise InvalidParameterError(f"delta must be in (0, 1), got {delta}")
    if not 0 < sample_rate <= 1:
        raise InvalidParameterError(
            f"sample_rate must be in (0, 1], got {sample_rate}"
        )


def estimate_privacy_cost(
    epsilon: float, delta: float, iterations: int, sample_rate: float
) -> PrivacySpent:
    """Heuristic composed privacy cost of `iterations` noisy releases.

    Non-decreasing in `iterations`. Zero iterations cost nothing.
    """
    _check_privacy_inputs(epsilon, delta, sample_rate)
    if iterations < 0:
        raise InvalidParameterError(
            f"iterations must be non-negative, got {iterations}"
        )

    amplification = math.sqrt(math.log(1 / delta) * iterations * sample_rate)
    return PrivacySpent(epsilon_spent=epsilon * amplification, delta_spent=delta)


class HeuristicAccountant(BasePrivacyAccountant):
    """Accumulates noisy releases and reports the heuristic composed cost.

    Events with different epsilons compose as
    ``sqrt(ln(1 / max_delta) * sum(epsilon_i ** 2 * q_i))``, which reduces to
    :func:`estimate_privacy_cost` when every event is identical.
    """

    def __init__(self) -> None:
        super().__init__()
        self._weighted_sq_epsilon = 0.0
        self._max_delta = 0.0

    def add_noise_event(
        self, epsilon: float, delta: float, sample_rate: float
    ) -> None:
        _check_privacy_inputs(epsilon, delta, sample_rate)
        self._weighted_sq_epsilon += epsilon**2 * sample_rate
        self._max_delta = max(self._max_delta, delta)
        self._event_count += 1

    def _compute_privacy_spent(self) -> PrivacySpent:
        if self._event_count == 0:
            return PrivacySpent(0.0, 0.0)

        total_epsilon = math.sqrt(
            math.log(1 / self._max_delta) * self._weighted_sq_epsilon
        )
        return PrivacySpent(
            epsilon_spent=total_epsilon, delta_spent=self._max_delta
        )

    def preview(
        self, epsilon: float, delta: float, sample_rate: float
    ) -> PrivacySpent:
        """Cost as it would be after one more event, without recording it."""
        _check_privacy_inputs(epsilon, delta, sample_rate)
        max_delta = max(self._max_delta, delta)
        weighted = self._weighted_sq_epsilon + epsilon**2 * sample_rate
        return PrivacySpent(
            epsilon_spent=math.sqrt(math.log(1 / max_delta) * weighted),
            delta_spent=max_delta,
        )
