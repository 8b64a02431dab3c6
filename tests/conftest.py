"""Pytest configuration: in-memory document and blob stores."""

import copy
from collections import defaultdict
from datetime import timedelta

import pytest
import pytest_asyncio
from google.api_core import exceptions as google_exceptions

from pushstore import Account, App, Deployment, Storage
from pushstore.backends.base import Document


class FakeDocumentStore:
    """Dict-backed DocumentStore.

    `fail_on[(method, collection)] = exc` makes the next matching call raise.
    """

    def __init__(self):
        self.collections = defaultdict(dict)
        self.fail_on = {}
        self.calls = []

    def _enter(self, method, collection):
        self.calls.append((method, collection))
        error = self.fail_on.pop((method, collection), None)
        if error is not None:
            raise error

    def _doc(self, collection, doc_id):
        data = self.collections[collection].get(doc_id)
        if data is None:
            return Document(id=doc_id, exists=False)
        return Document(id=doc_id, exists=True, data=copy.deepcopy(data))

    async def get(self, collection, doc_id):
        self._enter("get", collection)
        return self._doc(collection, doc_id)

    async def set(self, collection, doc_id, value):
        self._enter("set", collection)
        self.collections[collection][doc_id] = copy.deepcopy(value)

    async def create(self, collection, doc_id, value):
        self._enter("create", collection)
        if doc_id in self.collections[collection]:
            raise google_exceptions.Conflict(f"{collection}/{doc_id} already exists")
        self.collections[collection][doc_id] = copy.deepcopy(value)

    async def update(self, collection, doc_id, patch):
        self._enter("update", collection)
        if doc_id not in self.collections[collection]:
            raise google_exceptions.NotFound(f"{collection}/{doc_id}")
        self.collections[collection][doc_id].update(copy.deepcopy(patch))

    async def delete(self, collection, doc_id):
        self._enter("delete", collection)
        self.collections[collection].pop(doc_id, None)

    async def query(self, collection, field, op, value):
        self._enter("query", collection)
        results = []
        for doc_id, data in self.collections[collection].items():
            if op == "==" and data.get(field) == value:
                results.append(self._doc(collection, doc_id))
            elif op == "in" and data.get(field) in value:
                results.append(self._doc(collection, doc_id))
        return results

    async def get_all(self, collection, doc_ids):
        self._enter("get_all", collection)
        return [self._doc(collection, doc_id) for doc_id in doc_ids]


class FakeBlobStore:
    """Dict-backed BlobStore."""

    def __init__(self):
        self.blobs = {}
        self.bucket_created = False
        self.fail_on = {}

    def _enter(self, method):
        error = self.fail_on.pop(method, None)
        if error is not None:
            raise error

    async def ensure_bucket(self):
        self._enter("ensure_bucket")
        if self.bucket_created:
            raise google_exceptions.Conflict("bucket already exists")
        self.bucket_created = True

    async def get(self, blob_id):
        self._enter("get")
        if blob_id not in self.blobs:
            raise google_exceptions.NotFound(f"blob {blob_id}")
        return self.blobs[blob_id]

    async def put(self, blob_id, data):
        self._enter("put")
        self.blobs[blob_id] = bytes(data)

    async def put_stream(self, blob_id, stream, length=None):
        self._enter("put_stream")
        self.blobs[blob_id] = stream.read() if length is None else stream.read(length)

    async def delete(self, blob_id):
        self._enter("delete")
        if blob_id not in self.blobs:
            raise google_exceptions.NotFound(f"blob {blob_id}")
        del self.blobs[blob_id]

    async def signed_read_url(self, blob_id, ttl: timedelta):
        self._enter("signed_read_url")
        return f"https://storage.example.com/{blob_id}?expires={int(ttl.total_seconds())}"


@pytest.fixture
def documents():
    return FakeDocumentStore()


@pytest.fixture
def blobs():
    return FakeBlobStore()


@pytest.fixture
def storage(documents, blobs):
    return Storage(documents=documents, blobs=blobs)


@pytest_asyncio.fixture
async def owner_id(storage):
    """Account id of alice@example.com."""
    return await storage.add_account(Account(email="alice@example.com", name="Alice"))


@pytest_asyncio.fixture
async def other_id(storage):
    """Account id of bob@example.com."""
    return await storage.add_account(Account(email="bob@example.com", name="Bob"))


@pytest_asyncio.fixture
async def app(storage, owner_id):
    """App "demo" owned by alice."""
    return await storage.add_app(owner_id, App(name="demo"))


@pytest_asyncio.fixture
async def deployment_id(storage, owner_id, app):
    """Deployment "Production" of the demo app, key "prod-key"."""
    return await storage.add_deployment(
        owner_id, app.id, Deployment(name="Production", key="prod-key")
    )
