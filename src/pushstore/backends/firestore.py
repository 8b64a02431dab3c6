"""
Firestore-backed document store.

Collections written by the storage layer:
- account (document ID: account id)
- app (document ID: app id), collaborators embedded as {email: {accountId, permission}}
- appPointer (document ID: {accountId}:{appId})
- deployment (document ID: deployment id)
- deploymentInfo (document ID: deployment key)
- accessKey (document ID: access key id)
- health (document ID: health), provisioning sentinel
"""

import logging
import os
from typing import Any, Dict, Iterable, List

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ..config import StorageConfig
from .base import Document

logger = logging.getLogger(__name__)


def _to_document(snapshot) -> Document:
    return Document(
        id=snapshot.id,
        exists=snapshot.exists,
        data=snapshot.to_dict() if snapshot.exists else None,
    )


class FirestoreDocumentStore:
    """Document store over `google.cloud.firestore.AsyncClient`."""

    def __init__(self, client: "firestore.AsyncClient"):
        self._client = client

    @classmethod
    def from_config(cls, config: StorageConfig) -> "FirestoreDocumentStore":
        if config.emulated:
            # The client library routes to the emulator through this variable.
            os.environ.setdefault("FIRESTORE_EMULATOR_HOST", config.emulator_host)
            logger.info(f"Using Firestore emulator at {os.environ['FIRESTORE_EMULATOR_HOST']}")

        kwargs = {"project": config.project_id}
        if config.database_id:
            kwargs["database"] = config.database_id
        return cls(firestore.AsyncClient(**kwargs))

    def _ref(self, collection: str, doc_id: str):
        return self._client.collection(collection).document(doc_id)

    async def get(self, collection: str, doc_id: str) -> Document:
        snapshot = await self._ref(collection, doc_id).get()
        return _to_document(snapshot)

    async def set(self, collection: str, doc_id: str, value: Dict[str, Any]) -> None:
        await self._ref(collection, doc_id).set(value)

    async def create(self, collection: str, doc_id: str, value: Dict[str, Any]) -> None:
        await self._ref(collection, doc_id).create(value)

    async def update(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        await self._ref(collection, doc_id).update(patch)

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._ref(collection, doc_id).delete()

    async def query(self, collection: str, field: str, op: str, value: Any) -> List[Document]:
        if op == "in" and not value:
            return []
        query = self._client.collection(collection).where(filter=FieldFilter(field, op, value))
        snapshots = await query.get()
        return [_to_document(snapshot) for snapshot in snapshots]

    async def get_all(self, collection: str, doc_ids: Iterable[str]) -> List[Document]:
        doc_ids = list(doc_ids)
        if not doc_ids:
            return []

        refs = [self._ref(collection, doc_id) for doc_id in doc_ids]
        found: Dict[str, Document] = {}
        async for snapshot in self._client.get_all(refs):
            found[snapshot.id] = _to_document(snapshot)

        # get_all yields in arbitrary order
        return [found.get(doc_id, Document(id=doc_id, exists=False)) for doc_id in doc_ids]
