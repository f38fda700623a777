"""Abstract key-value store interface for persisted CAPTCHA state."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from capgate.config.settings import Settings


class KeyValueStore(ABC):
    """Asynchronous get/put store with at most eventual consistency.

    Implementations give no compare-and-swap or multi-key transactions;
    concurrent writers to the same key resolve as last write wins.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Retrieve the value stored at key. Returns None if not found."""

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Store value at the given key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the value at the given key. Missing keys are ignored."""


def create_kv_store(settings: Settings | None = None) -> KeyValueStore:
    """Factory: create the appropriate KeyValueStore based on settings."""
    from capgate.types import StoreBackend

    if settings is None:
        from capgate.config.settings import get_settings

        settings = get_settings()

    if settings.store_backend == StoreBackend.S3:
        from capgate.storage.s3_store import S3KeyValueStore

        return S3KeyValueStore(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            region=settings.s3_region,
        )

    if settings.store_backend == StoreBackend.LOCAL:
        from pathlib import Path

        from capgate.storage.local_store import LocalKeyValueStore

        return LocalKeyValueStore(base_dir=Path(settings.state_dir).expanduser())

    from capgate.storage.memory_store import MemoryKeyValueStore

    return MemoryKeyValueStore()
