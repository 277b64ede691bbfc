from .codec import decode_weights, encode_weights, validate_payload
from .exceptions import (
    FedRelayError,
    HistoryLogError,
    InvalidParameterError,
    NoUpdatesError,
    RetryExhaustedError,
    ShapeMismatchError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from .interfaces import (
    AggregatorProtocol,
    BackupStoreProtocol,
    HistorySinkProtocol,
    UpdateSubmitterProtocol,
)
from .types import (
    AggregationRecord,
    AggregationResult,
    BaselineMismatchPolicy,
    GlobalModelState,
    ModelUpdate,
    WeightVector,
)

__all__ = [
    # Exceptions
    "FedRelayError",
    "InvalidParameterError",
    "ShapeMismatchError",
    "NoUpdatesError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "HistoryLogError",
    "RetryExhaustedError",
    # Interfaces
    "AggregatorProtocol",
    "HistorySinkProtocol",
    "BackupStoreProtocol",
    "UpdateSubmitterProtocol",
    # Types
    "WeightVector",
    "ModelUpdate",
    "GlobalModelState",
    "AggregationRecord",
    "AggregationResult",
    "BaselineMismatchPolicy",
    # Codec
    "decode_weights",
    "encode_weights",
    "validate_payload",
]
