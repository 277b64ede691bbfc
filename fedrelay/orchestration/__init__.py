from .coordinator import (
    CoordinatorConfig,
    PersistenceCoordinator,
    build_coordinator,
)
from .submission import SubmissionResult, SubmissionService, submit_update

__all__ = [
    "CoordinatorConfig",
    "PersistenceCoordinator",
    "build_coordinator",
    "SubmissionResult",
    "SubmissionService",
    "submit_update",
]
