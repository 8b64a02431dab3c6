"""Release package blobs."""

import logging
from datetime import timedelta
from typing import BinaryIO, Optional

from .repository import Repository, storage_operation

logger = logging.getLogger(__name__)

SIGNED_URL_TTL = timedelta(minutes=15)


class BlobRepository(Repository):
    @storage_operation
    async def add_blob(self, blob_id: str, stream: BinaryIO, stream_length: Optional[int] = None) -> str:
        await self._blobs.put_stream(blob_id, stream, stream_length)
        logger.info(f"Stored blob {blob_id}", extra={"blob_id": blob_id})
        return blob_id

    @storage_operation
    async def get_blob_url(self, blob_id: str) -> str:
        return await self._blobs.signed_read_url(blob_id, SIGNED_URL_TTL)

    @storage_operation
    async def remove_blob(self, blob_id: str) -> None:
        await self._blobs.delete(blob_id)
