"""One-time backend provisioning shared by every repository."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .backends.base import BlobStore, DocumentStore
from .errors import ErrorCode, translate_error

logger = logging.getLogger(__name__)

HEALTH_COLLECTION = "health"
HEALTH_DOCUMENT = "health"
HEALTH_BLOB = "health"
HEALTH_MARKER = b"health"


class SetupHandle:
    """Single-flight memoized setup.

    The first `wait()` starts the setup coroutine; every caller, concurrent or
    later, awaits the same task and observes the same outcome.
    """

    def __init__(self, setup: Callable[[], Awaitable[None]]):
        self._setup = setup
        self._task: Optional[asyncio.Task] = None

    @property
    def started(self) -> bool:
        return self._task is not None

    async def wait(self) -> None:
        if self._task is None:
            self._task = asyncio.ensure_future(self._setup())
        # One caller being cancelled must not cancel setup for the others.
        await asyncio.shield(self._task)


async def _ignore_conflict(operation: Awaitable[None], what: str) -> None:
    try:
        await operation
    except Exception as e:
        if translate_error(e).code != ErrorCode.ALREADY_EXISTS:
            raise
        logger.info(f"{what} already exists, continuing")


async def provision(documents: DocumentStore, blobs: BlobStore) -> None:
    """Write the health sentinels and create the history bucket.

    Safe to run from several processes at once; "already exists" conflicts
    are ignored.
    """

    async def _blob_side():
        await _ignore_conflict(blobs.ensure_bucket(), "History bucket")
        await blobs.put(HEALTH_BLOB, HEALTH_MARKER)

    await asyncio.gather(
        _ignore_conflict(
            documents.set(HEALTH_COLLECTION, HEALTH_DOCUMENT, {"status": "healthy"}),
            "Health document",
        ),
        _blob_side(),
    )
    logger.info("Storage backends provisioned")


@dataclass
class Backend:
    """Document store, blob store and the setup handle guarding them."""

    documents: DocumentStore
    blobs: BlobStore
    ready: Optional[SetupHandle] = None

    def __post_init__(self):
        if self.ready is None:
            self.ready = SetupHandle(lambda: provision(self.documents, self.blobs))
