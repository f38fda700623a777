"""Local filesystem key-value store implementation."""

from __future__ import annotations

import asyncio
import os
import pathlib  # noqa: TC003 - used at runtime for Path operations
import uuid

import structlog

from capgate.storage.kv_store import KeyValueStore

logger = structlog.get_logger(__name__)


class LocalKeyValueStore(KeyValueStore):
    """One UTF-8 file per key under a base directory, with path traversal protection."""

    def __init__(self, base_dir: pathlib.Path) -> None:
        self._base = base_dir.resolve()
        self._base.mkdir(parents=True, exist_ok=True)

    def _resolve_path(self, key: str) -> pathlib.Path:
        """Resolve key to absolute path, refusing anything outside the base dir."""
        path = (self._base / f"{key}.json").resolve()
        if path.parent != self._base and self._base not in path.parents:
            msg = f"Path traversal detected: {key}"
            raise ValueError(msg)
        return path

    async def get(self, key: str) -> str | None:
        """Read the value from its file."""
        path = self._resolve_path(key)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def put(self, key: str, value: str) -> None:
        """Write the value via a private temp file and rename so readers never see a torn file.

        Each call gets its own temp file, so concurrent writers to one key
        resolve as last rename wins.
        """
        path = self._resolve_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")

        def _write() -> None:
            try:
                tmp.write_text(value, encoding="utf-8")
                os.replace(tmp, path)
            finally:
                tmp.unlink(missing_ok=True)

        await asyncio.to_thread(_write)
        logger.debug("local_store_put", key=key, size=len(value))

    async def delete(self, key: str) -> None:
        path = self._resolve_path(key)
        if path.exists():
            await asyncio.to_thread(path.unlink)
