from .base import (
    GLOBAL_MODEL_FILE,
    StorageProtocol,
    StorageResponse,
    global_model_key,
    model_folder_key,
    safe_model_name,
)
from .http import HTTPStorage
from .memory import InMemoryStorage, StoredObject

__all__ = [
    "GLOBAL_MODEL_FILE",
    "StorageProtocol",
    "StorageResponse",
    "HTTPStorage",
    "InMemoryStorage",
    "StoredObject",
    "global_model_key",
    "model_folder_key",
    "safe_model_name",
]
