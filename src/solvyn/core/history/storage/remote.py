# src/solvyn/core/history/storage/remote.py
"""Remote HTTP storage adapter.

Protocol:
    save  -> POST   save_url   body: JSON array snapshot
    load  -> GET    load_url   response: JSON array snapshot
    clear -> DELETE save_url
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from solvyn.contracts.errors import StorageError
from solvyn.contracts.history import HistoryItem
from solvyn.core.history.snapshot import items_to_jsonable

logger = structlog.get_logger(__name__)


class RemoteStorage:
    """Persists full snapshots to an HTTP endpoint.

    Example:
        storage = RemoteStorage(
            "https://example.com/api/history",
            headers={"Authorization": "Bearer ..."},
        )
    """

    def __init__(
        self,
        save_url: str,
        load_url: str | None = None,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 5.0,
    ) -> None:
        """Initialize remote storage.

        Args:
            save_url: Endpoint receiving POST (save) and DELETE (clear)
            load_url: Endpoint answering GET (defaults to save_url)
            headers: Extra headers sent with every request
            timeout: Request timeout in seconds
        """
        self.save_url = save_url
        self.load_url = load_url or save_url
        self._headers = dict(headers or {})
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        # A client per call: adapters outlive event loops in CLI usage
        return httpx.AsyncClient(timeout=self._timeout, headers=self._headers)

    async def save(self, items: Sequence[HistoryItem]) -> None:
        try:
            async with self._client() as client:
                response = await client.post(self.save_url, json=items_to_jsonable(items))
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Remote history save failed: {e}") from e

    async def load(self) -> list[Any]:
        try:
            async with self._client() as client:
                response = await client.get(self.load_url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise StorageError(f"Remote history load failed: {e}") from e
        except ValueError as e:
            raise StorageError(f"Remote history load returned invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise StorageError(f"Remote history load returned {type(data).__name__}, expected a JSON array")
        logger.debug("remote_history_loaded", url=self.load_url, count=len(data))
        return data

    async def clear(self) -> None:
        try:
            async with self._client() as client:
                response = await client.delete(self.save_url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Remote history clear failed: {e}") from e
