from abc import ABC, abstractmethod
from typing import Sequence

from fedrelay.core.exceptions import (
    InvalidParameterError,
    NoUpdatesError,
    ShapeMismatchError,
)
from fedrelay.core.types import AggregationResult, ModelUpdate, WeightVector


class BaseAggregator(ABC):
    """Base class for merge strategies over flat weight vectors."""

    @abstractmethod
    def merge(
        self,
        updates: Sequence[WeightVector],
        baseline: WeightVector | None,
        learning_rate: float,
    ) -> WeightVector:
        """Merge `updates` into `baseline`."""
        pass

    def _validate_updates(self, updates: Sequence[WeightVector]) -> int:
        """Check updates are non-empty 1-D vectors of one length."""
        if not updates:
            raise NoUpdatesError("No updates provided for aggregation")

        expected = updates[0].numel()
        for i, update in enumerate(updates):
            if update.dim() != 1:
                raise ShapeMismatchError(
                    f"Update {i} is not a 1-D vector: {tuple(update.shape)}"
                )
            if update.numel() == 0:
                raise InvalidParameterError(f"Update {i} is empty")
            if update.numel() != expected:
                raise ShapeMismatchError(
                    f"Update {i} has length {update.numel()}, "
                    f"expected {expected}",
                    details={"index": i, "expected": expected},
                )
        return expected

    def _compute_weights(self, num_updates: int) -> list[float]:
        """Every contributor counts equally, whatever its dataset size."""
        return [1.0 / num_updates] * num_updates

    @staticmethod
    def _validate_learning_rate(learning_rate: float) -> None:
        if not 0.0 <= learning_rate <= 1.0:
            raise InvalidParameterError(
                f"learning_rate must be in [0, 1], got {learning_rate}"
            )

    @staticmethod
    def _contributor_ids(updates: Sequence[ModelUpdate]) -> list[str]:
        return [update.contributor_id for update in updates]
