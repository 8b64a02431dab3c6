"""Liveness check across both backends."""

import logging

from .bootstrap import HEALTH_BLOB, HEALTH_COLLECTION, HEALTH_DOCUMENT, HEALTH_MARKER
from .errors import ErrorCode, StorageError
from .repository import Repository, storage_operation

logger = logging.getLogger(__name__)


class HealthChecker(Repository):
    @storage_operation
    async def check_health(self) -> None:
        """Read the provisioning sentinels; raise ConnectionFailed if either is off."""
        doc = await self._documents.get(HEALTH_COLLECTION, HEALTH_DOCUMENT)
        if not doc.exists:
            raise StorageError(
                ErrorCode.CONNECTION_FAILED,
                "The Firestore service failed the health check",
            )

        try:
            content = await self._blobs.get(HEALTH_BLOB)
        except Exception as e:
            logger.warning(f"Blob health check failed: {e}")
            raise StorageError(
                ErrorCode.CONNECTION_FAILED,
                "The Cloud Storage service failed the health check",
            ) from e
        if content != HEALTH_MARKER:
            raise StorageError(
                ErrorCode.CONNECTION_FAILED,
                "The Cloud Storage service failed the health check",
            )
