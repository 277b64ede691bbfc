from typing import Sequence

import torch

from fedrelay.core.exceptions import ShapeMismatchError
from fedrelay.core.types import BaselineMismatchPolicy, ModelUpdate, WeightVector
from fedrelay.utils import Logger, get_current_time, log_exec

from .base import AggregationResult, BaseAggregator


class AsyncFedAvgAggregator(BaseAggregator):
    """Asynchronous federated averaging.

    Updates are averaged with equal weight. When a baseline exists, the
    average is blended into it as a one-step exponential moving average::

        result = (1 - learning_rate) * baseline + learning_rate * avg

    Parameters
    ----------
    mismatch_policy : BaselineMismatchPolicy
        ``STRICT`` rejects a baseline whose length differs from the updates.
        ``FALLBACK_TO_AVERAGE`` drops such a baseline with a warning and
        returns the plain average.
    """

    def __init__(
        self,
        mismatch_policy: BaselineMismatchPolicy = BaselineMismatchPolicy.STRICT,
    ) -> None:
        self._mismatch_policy = mismatch_policy
        self._logger = Logger()

    @property
    def mismatch_policy(self) -> BaselineMismatchPolicy:
        return self._mismatch_policy

    def _average(self, updates: Sequence[WeightVector]) -> WeightVector:
        weights = self._compute_weights(len(updates))
        avg = torch.zeros_like(updates[0], dtype=torch.float32)
        for update, weight in zip(updates, weights):
            avg += update.to(torch.float32) * weight
        return avg

    def _resolve_baseline(
        self, baseline: WeightVector | None, length: int
    ) -> WeightVector | None:
        if baseline is None:
            return None
        if baseline.dim() == 1 and baseline.numel() == length:
            return baseline

        message = (
            f"Baseline shape {tuple(baseline.shape)} does not match "
            f"update length {length}"
        )
        if self._mismatch_policy is BaselineMismatchPolicy.FALLBACK_TO_AVERAGE:
            self._logger.warning(f"{message}. Using standard averaging.")
            return None
        raise ShapeMismatchError(
            message,
            details={
                "baseline_length": baseline.numel(),
                "update_length": length,
            },
        )

    def merge(
        self,
        updates: Sequence[WeightVector],
        baseline: WeightVector | None,
        learning_rate: float,
    ) -> WeightVector:
        """Merge updates into an optional baseline.

        With no baseline the result is the elementwise mean of `updates` and
        `learning_rate` is ignored. A learning rate of 0 returns the baseline
        unchanged; 1 replaces it with the mean.
        """
        length = self._validate_updates(updates)
        self._validate_learning_rate(learning_rate)
        resolved = self._resolve_baseline(baseline, length)

        avg = self._average(updates)
        if resolved is None:
            return avg
        if learning_rate == 0.0:
            return resolved.to(torch.float32).clone()

        return (1.0 - learning_rate) * resolved.to(
            torch.float32
        ) + learning_rate * avg

    @log_exec
    def aggregate(
        self,
        updates: Sequence[ModelUpdate],
        baseline: WeightVector | None,
        learning_rate: float,
    ) -> AggregationResult:
        """Merge full model updates, keeping track of who contributed."""
        vectors = [update.weights for update in updates]
        merged = self.merge(vectors, baseline, learning_rate)

        used_baseline = (
            baseline is not None
            and baseline.dim() == 1
            and baseline.numel() == merged.numel()
        )
        if used_baseline:
            self._logger.info(
                f"Merged {len(updates)} update(s) into baseline "
                f"with learning rate {learning_rate}"
            )
        else:
            self._logger.info(
                f"Created model from {len(updates)} update(s) by averaging"
            )

        return AggregationResult(
            weights=merged,
            round_number=max(update.round for update in updates),
            num_updates=len(updates),
            contributor_ids=self._contributor_ids(updates),
            used_baseline=used_baseline,
            timestamp=get_current_time(),
        )
