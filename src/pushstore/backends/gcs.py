"""Google Cloud Storage blob store.

The storage client is synchronous; calls run in the default executor so the
event loop is never blocked.
"""

import asyncio
import functools
import logging
from datetime import timedelta
from typing import BinaryIO, Optional

from google.auth.credentials import AnonymousCredentials
from google.cloud import storage

from ..config import StorageConfig

logger = logging.getLogger(__name__)


class GcsBlobStore:
    """Blob store over a single GCS bucket."""

    def __init__(self, client: "storage.Client", bucket_name: str):
        self._client = client
        self.bucket_name = bucket_name
        self._bucket = client.bucket(bucket_name)

    @classmethod
    def from_config(cls, config: StorageConfig) -> "GcsBlobStore":
        if config.emulated:
            logger.info(f"Using Cloud Storage emulator at {config.emulator_host}")
            client = storage.Client(
                project=config.project_id,
                credentials=AnonymousCredentials(),
                client_options={"api_endpoint": f"http://{config.emulator_host}"},
            )
        else:
            client = storage.Client(project=config.project_id)
        return cls(client, config.bucket_name)

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    async def ensure_bucket(self) -> None:
        await self._run(self._client.create_bucket, self.bucket_name)
        logger.info(f"Created bucket {self.bucket_name}")

    async def get(self, blob_id: str) -> bytes:
        blob = self._bucket.blob(blob_id)
        return await self._run(blob.download_as_bytes)

    async def put(self, blob_id: str, data: bytes) -> None:
        blob = self._bucket.blob(blob_id)
        await self._run(blob.upload_from_string, data)

    async def put_stream(self, blob_id: str, stream: BinaryIO, length: Optional[int] = None) -> None:
        blob = self._bucket.blob(blob_id)
        await self._run(blob.upload_from_file, stream, size=length)

    async def delete(self, blob_id: str) -> None:
        blob = self._bucket.blob(blob_id)
        await self._run(blob.delete)

    async def signed_read_url(self, blob_id: str, ttl: timedelta) -> str:
        blob = self._bucket.blob(blob_id)
        return await self._run(
            blob.generate_signed_url, version="v4", expiration=ttl, method="GET"
        )
