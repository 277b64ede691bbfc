from dataclasses import dataclass
from typing import Mapping

from .base import StorageResponse


@dataclass(slots=True, frozen=True)
class StoredObject:
    data: bytes
    headers: dict[str, str]
    version: int


class InMemoryStorage:
    """Dictionary-backed store for tests and single-process runs."""

    def __init__(self, location_prefix: str = "memory://") -> None:
        self._prefix = location_prefix
        self._objects: dict[str, StoredObject] = {}
        self._version = 0

    def location(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> bytes | None:
        stored = self._objects.get(key)
        return stored.data if stored is not None else None

    async def put(
        self, key: str, data: bytes, headers: Mapping[str, str]
    ) -> StorageResponse:
        self._version += 1
        self._objects[key] = StoredObject(
            data=bytes(data), headers=dict(headers), version=self._version
        )
        return StorageResponse(status=201, location=self.location(key))

    def object(self, key: str) -> StoredObject | None:
        return self._objects.get(key)

    def keys(self) -> list[str]:
        return sorted(self._objects)
