from importlib.metadata import PackageNotFoundError, version

from fedrelay.orchestration import (
    CoordinatorConfig,
    PersistenceCoordinator,
    SubmissionService,
    build_coordinator,
    submit_update,
)
from fedrelay.privacy import (
    NoiseCalibrator,
    PrivacyParameters,
    estimate_privacy_cost,
)
from fedrelay.server import AsyncFedAvgAggregator
from fedrelay.storage import HTTPStorage, InMemoryStorage

__all__ = [
    "NoiseCalibrator",
    "PrivacyParameters",
    "estimate_privacy_cost",
    "AsyncFedAvgAggregator",
    "PersistenceCoordinator",
    "CoordinatorConfig",
    "build_coordinator",
    "SubmissionService",
    "submit_update",
    "HTTPStorage",
    "InMemoryStorage",
]


try:
    __version__ = version("fedrelay")
except PackageNotFoundError:
    __version__ = "unknown"
