# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Document store adapters used by the scorebook."""

from store.document_store import (
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    InvalidPathError,
    MemoryDocumentStore,
    StoreError,
    join_path,
)
from store.json_store import JsonFileDocumentStore

__all__ = [
    "DocumentNotFoundError",
    "DocumentSnapshot",
    "DocumentStore",
    "InvalidPathError",
    "JsonFileDocumentStore",
    "MemoryDocumentStore",
    "StoreError",
    "join_path",
]
