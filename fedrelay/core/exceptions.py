from __future__ import annotations

from typing import Any


class FedRelayError(Exception):
    """Base exception for all fedrelay errors."""

    def __init__(
        self, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.details = details or {}


class InvalidParameterError(FedRelayError, ValueError):
    """Raised for malformed privacy or aggregation configuration."""

    pass


class ShapeMismatchError(FedRelayError):
    """Raised when vectors of unequal length meet in one operation."""

    pass


class NoUpdatesError(FedRelayError):
    """Raised when a merge is requested with zero updates."""

    pass


class StorageError(FedRelayError):
    """Raised for storage collaborator errors."""

    pass


class StorageReadError(StorageError):
    """Raised when the baseline fetch fails."""

    pass


class StorageWriteError(StorageError):
    """Raised when every persist attempt failed."""

    pass


class HistoryLogError(FedRelayError):
    """Raised when an audit record or backup could not be written."""

    pass


class RetryExhaustedError(FedRelayError):
    """Raised when a retried operation failed on every attempt."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.attempts = attempts
        self.last_error = last_error
