from .base import AggregationResult, BaseAggregator
from .fedavg import AsyncFedAvgAggregator

__all__ = [
    "BaseAggregator",
    "AggregationResult",
    "AsyncFedAvgAggregator",
]
