from typing import Any, Mapping

import aiohttp

from fedrelay.config import Settings
from fedrelay.core.exceptions import StorageError, StorageReadError
from fedrelay.utils import Logger, log_exec

from .base import StorageResponse


class HTTPStorage:
    """Stores global models as resources under an HTTP root URL.

    Keys are resolved relative to `root_url`. Reads treat any status other
    than 200 as "nothing stored"; writes use PUT.
    """

    def __init__(
        self,
        root_url: str,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._root_url = root_url if root_url.endswith("/") else f"{root_url}/"
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._logger = Logger()

    @classmethod
    def from_settings(cls, settings: Settings) -> "HTTPStorage":
        return cls(settings.storage_root, timeout=settings.request_timeout)

    async def __aenter__(self) -> "HTTPStorage":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    def url_for(self, key: str) -> str:
        return f"{self._root_url}{key.lstrip('/')}"

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise StorageError("Storage session not initialized")
        return self._session

    @log_exec
    async def get(self, key: str) -> bytes | None:
        session = self._require_session()
        url = self.url_for(key)

        try:
            async with session.get(url) as response:
                if response.status != 200:
                    self._logger.info(
                        f"No stored object at {url} (status: {response.status})"  # noqa
                    )
                    return None
                return await response.read()
        except aiohttp.ClientError as e:
            raise StorageReadError(
                f"HTTP error while reading {url}: {str(e)}",
                details={"url": url},
            ) from e

    @log_exec
    async def put(
        self, key: str, data: bytes, headers: Mapping[str, str]
    ) -> StorageResponse:
        session = self._require_session()
        url = self.url_for(key)

        try:
            async with session.put(
                url, data=data, headers=dict(headers)
            ) as response:
                return StorageResponse(
                    status=response.status,
                    location=url,
                    reason=response.reason or "",
                )
        except aiohttp.ClientError as e:
            raise StorageError(
                f"HTTP error while writing {url}: {str(e)}",
                details={"url": url},
            ) from e
