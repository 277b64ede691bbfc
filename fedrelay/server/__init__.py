from .aggregator import AggregationResult, AsyncFedAvgAggregator, BaseAggregator
from .history import FileBackupStore, FileHistorySink, new_record

__all__ = [
    "AggregationResult",
    "BaseAggregator",
    "AsyncFedAvgAggregator",
    "FileHistorySink",
    "FileBackupStore",
    "new_record",
]
