"""Document and blob backends."""

from .base import BlobStore, Document, DocumentStore
from .firestore import FirestoreDocumentStore
from .gcs import GcsBlobStore

__all__ = [
    "BlobStore",
    "Document",
    "DocumentStore",
    "FirestoreDocumentStore",
    "GcsBlobStore",
]
