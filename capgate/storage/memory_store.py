"""Process-local key-value store for development and tests."""

from __future__ import annotations

from capgate.storage.kv_store import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. State does not survive a restart or span workers."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
