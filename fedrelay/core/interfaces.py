from typing import Mapping, Protocol, Sequence

from .types import (
    AggregationRecord,
    AggregationResult,
    ModelUpdate,
    WeightVector,
)


class AggregatorProtocol(Protocol):
    """Protocol for update merge strategies."""

    def merge(
        self,
        updates: Sequence[WeightVector],
        baseline: WeightVector | None,
        learning_rate: float,
    ) -> WeightVector: ...

    def aggregate(
        self,
        updates: Sequence[ModelUpdate],
        baseline: WeightVector | None,
        learning_rate: float,
    ) -> AggregationResult: ...


class HistorySinkProtocol(Protocol):
    """Protocol for audit record destinations."""

    async def append(self, record: AggregationRecord) -> None: ...


class BackupStoreProtocol(Protocol):
    """Protocol for local backups of aggregated models."""

    async def save_backup(
        self, model_name: str, round_number: int, data: bytes
    ) -> None: ...


class UpdateSubmitterProtocol(Protocol):
    """Protocol for anything that accepts raw model update payloads."""

    async def process_update(
        self,
        model_id: str,
        round_number: int,
        raw_update: bytes,
        metadata: Mapping[str, str],
        timeout: float | None = None,
    ) -> str: ...
