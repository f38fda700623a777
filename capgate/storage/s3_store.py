"""S3/R2-compatible key-value store implementation via aiobotocore."""

from __future__ import annotations

from typing import Any

import structlog
from aiobotocore.session import get_session

from capgate.storage.kv_store import KeyValueStore

logger = structlog.get_logger(__name__)


class S3KeyValueStore(KeyValueStore):
    """Key-value store backed by S3-compatible storage (AWS S3, Cloudflare R2, MinIO)."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str = "auto",
    ) -> None:
        self._bucket = bucket
        self._session = get_session()
        self._config: dict[str, Any] = {
            "region_name": region,
        }
        if endpoint_url:
            self._config["endpoint_url"] = endpoint_url
        if access_key_id:
            self._config["aws_access_key_id"] = access_key_id
        if secret_access_key:
            self._config["aws_secret_access_key"] = secret_access_key

    async def get(self, key: str) -> str | None:
        """Download a value from S3. Returns None if not found."""
        async with self._session.create_client("s3", **self._config) as client:
            try:
                resp = await client.get_object(Bucket=self._bucket, Key=key)
                async with resp["Body"] as stream:
                    data: bytes = await stream.read()
                return data.decode("utf-8")
            except client.exceptions.NoSuchKey:
                return None

    async def put(self, key: str, value: str) -> None:
        """Upload a value to S3."""
        body = value.encode("utf-8")
        async with self._session.create_client("s3", **self._config) as client:
            await client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType="application/json",
            )
        logger.debug("s3_put", key=key, size=len(body), bucket=self._bucket)

    async def delete(self, key: str) -> None:
        """Delete a value from S3."""
        async with self._session.create_client("s3", **self._config) as client:
            await client.delete_object(Bucket=self._bucket, Key=key)
