# src/solvyn/core/history/storage/__init__.py
"""Storage adapters for the history log and the tag-to-adapter factory."""

from solvyn.contracts.enums import StorageKind
from solvyn.contracts.protocols import StorageAdapter
from solvyn.core.config import HistorySettings
from solvyn.core.history.storage.database import DatabaseStorage
from solvyn.core.history.storage.key_value import KeyValueFileStorage
from solvyn.core.history.storage.memory import MemoryStorage
from solvyn.core.history.storage.remote import RemoteStorage

__all__ = [
    "DatabaseStorage",
    "KeyValueFileStorage",
    "MemoryStorage",
    "RemoteStorage",
    "create_storage_adapter",
]


def create_storage_adapter(
    settings: HistorySettings,
    *,
    custom: StorageAdapter | None = None,
    timeout: float = 5.0,
) -> StorageAdapter:
    """Build the adapter selected by settings.storage.

    Args:
        settings: History settings carrying the storage tag and its options
        custom: Adapter instance, required when the tag is `custom`
        timeout: Transport timeout for the remote adapter

    Raises:
        ValueError: If the tag is `custom` and no instance was supplied, or an
            instance was supplied for a non-custom tag
    """
    if custom is not None and settings.storage != StorageKind.CUSTOM:
        raise ValueError(f"A custom storage adapter was supplied but history.storage is '{settings.storage.value}'")

    match settings.storage:
        case StorageKind.MEMORY:
            return MemoryStorage()
        case StorageKind.KEY_VALUE:
            return KeyValueFileStorage(settings.key_value_dir, key=settings.key)
        case StorageKind.DATABASE:
            return DatabaseStorage(settings.database_url)
        case StorageKind.REMOTE:
            # remote_url presence is enforced by HistorySettings validation
            assert settings.remote_url is not None
            return RemoteStorage(
                settings.remote_url,
                settings.remote_load_url,
                headers=settings.remote_headers,
                timeout=timeout,
            )
        case StorageKind.CUSTOM:
            if custom is None:
                raise ValueError("history.storage is 'custom' but no adapter instance was supplied")
            if not isinstance(custom, StorageAdapter):
                raise TypeError(f"{type(custom).__name__} does not implement save/load/clear")
            return custom
