from typing import Mapping

from fedrelay.core.types import AggregationRecord
from fedrelay.storage import InMemoryStorage, StorageResponse


class FlakyStorage(InMemoryStorage):
    """In-memory store whose first `failures` writes fail.

    Failures alternate between an error status and a raised exception when
    `raise_errors` is set.
    """

    def __init__(
        self,
        failures: int = 0,
        status: int = 503,
        raise_errors: bool = False,
    ) -> None:
        super().__init__()
        self.failures = failures
        self.status = status
        self.raise_errors = raise_errors
        self.put_attempts = 0
        self.get_calls = 0

    async def get(self, key: str) -> bytes | None:
        self.get_calls += 1
        return await super().get(key)

    async def put(
        self, key: str, data: bytes, headers: Mapping[str, str]
    ) -> StorageResponse:
        self.put_attempts += 1
        if self.put_attempts <= self.failures:
            if self.raise_errors and self.put_attempts % 2 == 0:
                raise ConnectionError("connection reset by peer")
            return StorageResponse(
                status=self.status,
                location=self.location(key),
                reason="Service Unavailable",
            )
        return await super().put(key, data, headers)


class BrokenReadStorage(InMemoryStorage):
    """Store whose reads always raise."""

    async def get(self, key: str) -> bytes | None:
        raise ConnectionError("name resolution failed")


class RecordingHistorySink:
    def __init__(self) -> None:
        self.records: list[AggregationRecord] = []

    async def append(self, record: AggregationRecord) -> None:
        self.records.append(record)


class FailingHistorySink:
    def __init__(self) -> None:
        self.calls = 0

    async def append(self, record: AggregationRecord) -> None:
        self.calls += 1
        raise OSError("disk full")


class RecordingBackupStore:
    def __init__(self) -> None:
        self.backups: list[tuple[str, int, bytes]] = []

    async def save_backup(
        self, model_name: str, round_number: int, data: bytes
    ) -> None:
        self.backups.append((model_name, round_number, data))


class FailingBackupStore:
    async def save_backup(
        self, model_name: str, round_number: int, data: bytes
    ) -> None:
        raise PermissionError("read-only file system")


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
