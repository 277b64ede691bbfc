from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, TypeAlias

import torch

WeightVector: TypeAlias = torch.Tensor


@dataclass(slots=True, frozen=True)
class ModelUpdate:
    """A single contributor's weight update."""

    contributor_id: str
    weights: WeightVector
    round: int
    submitted_at: datetime


@dataclass(slots=True, frozen=True)
class GlobalModelState:
    """Shared model state as held by the external store."""

    weights: WeightVector
    round: int
    updated_at: datetime


@dataclass(slots=True, frozen=True)
class AggregationRecord:
    """Append-only audit entry for one aggregation event."""

    timestamp: datetime
    id: str
    model_name: str
    num_updates: int
    contributor_ids: list[str]
    round: int
    config: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "id": self.id,
            "modelName": self.model_name,
            "numUpdates": self.num_updates,
            "contributorIds": list(self.contributor_ids),
            "round": self.round,
            "config": self.config,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "AggregationRecord":
        return AggregationRecord(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            id=data["id"],
            model_name=data["modelName"],
            num_updates=data["numUpdates"],
            contributor_ids=list(data["contributorIds"]),
            round=data["round"],
            config=data.get("config", {}),
        )


@dataclass(slots=True, frozen=True)
class AggregationResult:
    """Outcome of aggregating one batch of updates."""

    weights: WeightVector
    round_number: int
    num_updates: int
    contributor_ids: list[str]
    used_baseline: bool
    timestamp: datetime

    def state(self) -> GlobalModelState:
        """Global model state this result produces."""
        return GlobalModelState(
            weights=self.weights,
            round=self.round_number,
            updated_at=self.timestamp,
        )


class BaselineMismatchPolicy(str, Enum):
    """What to do when the stored baseline length differs from the update."""

    STRICT = "strict"
    FALLBACK_TO_AVERAGE = "fallback_to_average"
