"""Interfaces the storage core expects from its document and blob backends.

Keep these small so tests can supply in-memory fakes.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Protocol


@dataclass
class Document:
    """Result of a document read; `exists` distinguishes absent from empty."""

    id: str
    exists: bool
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.data or {})


class DocumentStore(Protocol):
    async def get(self, collection: str, doc_id: str) -> Document: ...

    async def set(self, collection: str, doc_id: str, value: Dict[str, Any]) -> None:
        """Create or overwrite a document."""

    async def create(self, collection: str, doc_id: str, value: Dict[str, Any]) -> None:
        """Create a document; fails with a 409 if it already exists."""

    async def update(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """Merge fields into an existing document; fails with a 404 if absent."""

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def query(self, collection: str, field: str, op: str, value: Any) -> List[Document]:
        """Return documents where `field op value`; op is "==" or "in"."""

    async def get_all(self, collection: str, doc_ids: Iterable[str]) -> List[Document]:
        """Batch read, in the order of `doc_ids`."""


class BlobStore(Protocol):
    async def ensure_bucket(self) -> None:
        """Create the backing bucket; fails with a 409 if it already exists."""

    async def get(self, blob_id: str) -> bytes: ...

    async def put(self, blob_id: str, data: bytes) -> None: ...

    async def put_stream(self, blob_id: str, stream: BinaryIO, length: Optional[int] = None) -> None: ...

    async def delete(self, blob_id: str) -> None: ...

    async def signed_read_url(self, blob_id: str, ttl: timedelta) -> str: ...
