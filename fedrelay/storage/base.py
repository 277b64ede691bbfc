import re
from dataclasses import dataclass
from typing import Final, Mapping, Protocol

from fedrelay.core.exceptions import InvalidParameterError

GLOBAL_MODEL_FILE: Final[str] = "globalModel.bin"


@dataclass(slots=True, frozen=True)
class StorageResponse:
    """Result of a storage write."""

    status: int
    location: str
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class StorageProtocol(Protocol):
    """Protocol for the external store holding global models.

    ``get`` returns ``None`` when nothing is stored under `key`; transport
    failures raise.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def put(
        self, key: str, data: bytes, headers: Mapping[str, str]
    ) -> StorageResponse: ...


def safe_model_name(model_name: str) -> str:
    """Collapse whitespace to hyphens and drop anything not URL safe."""
    safe = re.sub(r"\s+", "-", model_name.strip())
    safe = re.sub(r"[^a-zA-Z0-9-]", "", safe)
    if not safe:
        raise InvalidParameterError(
            f"Model name {model_name!r} has no usable characters"
        )
    return safe


def model_folder_key(model_name: str) -> str:
    return f"{safe_model_name(model_name)}/"


def global_model_key(model_name: str) -> str:
    """Storage key of the global model for `model_name`."""
    return f"{model_folder_key(model_name)}{GLOBAL_MODEL_FILE}"
