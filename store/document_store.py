# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Generic document store with push subscriptions.

Documents are JSON-compatible dicts addressed by slash-separated paths.
Paths alternate collection and document ids, so a *document* path has an
even number of segments and a *collection* path an odd number::

    organizations/acme/games/g1/scoring/gameState   <- document
    organizations/acme/games/g1/plays               <- collection

:class:`DocumentStore` implements the public contract and subscription
bookkeeping; backends only provide ``_load`` / ``_save`` / ``_remove`` /
``_list``.  Two backends ship with the package: :class:`MemoryDocumentStore`
here and :class:`store.json_store.JsonFileDocumentStore`.

Usage::

    store = MemoryDocumentStore()
    store.set_document("games/g1/scoring/gameState", {"inning": 1})
    store.merge_patch("games/g1/scoring/gameState", {"inning": 2})
    play_id = store.add_document("games/g1/plays", {"result": "Ball"})
    unsubscribe = store.subscribe_collection("games/g1/plays", print)

Subscriber callbacks run synchronously on the writing thread, after the
backend lock is released.  Every read returns a deep copy.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

UPDATED_AT_FIELD = "updatedAt"
TIMESTAMP_FIELD = "timestamp"

Unsubscribe = Callable[[], None]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class StoreError(Exception):
    """Base exception for document store errors."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class InvalidPathError(StoreError):
    """Raised for malformed document or collection paths."""


class DocumentNotFoundError(StoreError):
    """Raised when updating or reading a document that does not exist."""


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

def split_path(path: str) -> list[str]:
    """Split *path* into segments, rejecting empty or unsafe ones."""
    if not isinstance(path, str) or not path.strip("/"):
        raise InvalidPathError(f"Empty path: {path!r}", path=path)
    segments = path.strip("/").split("/")
    for seg in segments:
        if not seg or seg in (".", "..") or seg.startswith(".") or "\\" in seg:
            raise InvalidPathError(f"Invalid path segment {seg!r} in {path!r}", path=path)
    return segments


def document_path(path: str) -> str:
    segments = split_path(path)
    if len(segments) % 2 != 0:
        raise InvalidPathError(f"Not a document path: {path!r}", path=path)
    return "/".join(segments)


def collection_path(path: str) -> str:
    segments = split_path(path)
    if len(segments) % 2 != 1:
        raise InvalidPathError(f"Not a collection path: {path!r}", path=path)
    return "/".join(segments)


def join_path(*parts: str) -> str:
    return "/".join(split_path("/".join(parts)))


def parent_collection(doc_path: str) -> str:
    return doc_path.rsplit("/", 1)[0]


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as read from the store."""
    id: str
    path: str
    data: dict[str, Any]


def _sort_key(order_by: str) -> Callable[[DocumentSnapshot], tuple]:
    def key(doc: DocumentSnapshot) -> tuple:
        value = doc.data.get(order_by)
        return (value is None, value if value is not None else 0, doc.id)
    return key


# ---------------------------------------------------------------------------
# Store contract
# ---------------------------------------------------------------------------

class DocumentStore:
    """Document store contract with push subscriptions.

    Subclasses implement the four storage hooks; all locking, copying,
    timestamping and subscriber notification happens here.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._last_timestamp = 0.0
        self._seeded_collections: set[str] = set()
        self._sub_ids = itertools.count(1)
        self._doc_subs: dict[str, dict[int, Callable[[Optional[dict[str, Any]]], None]]] = {}
        self._collection_subs: dict[str, dict[int, tuple[Callable[[list[DocumentSnapshot]], None], str, bool]]] = {}

    # -- storage hooks -----------------------------------------------------

    def _load(self, path: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def _save(self, path: str, data: dict[str, Any]) -> None:
        raise NotImplementedError

    def _remove(self, path: str) -> bool:
        raise NotImplementedError

    def _list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        raise NotImplementedError

    # -- public API --------------------------------------------------------

    def server_timestamp(self) -> float:
        """Return a store-assigned timestamp, strictly increasing per store."""
        with self._lock:
            now = time.time()
            if now <= self._last_timestamp:
                now = self._last_timestamp + 1e-6
            self._last_timestamp = now
            return now

    def get_document(self, path: str) -> dict[str, Any] | None:
        """Return a copy of the document at *path*, or ``None`` if missing."""
        path = document_path(path)
        with self._lock:
            data = self._load(path)
            return copy.deepcopy(data) if data is not None else None

    def set_document(self, path: str, data: dict[str, Any]) -> None:
        """Overwrite the document at *path* with *data*."""
        path = document_path(path)
        with self._lock:
            self._save(path, copy.deepcopy(data))
        self._notify(path)

    def merge_patch(self, path: str, partial: dict[str, Any]) -> None:
        """Shallow-merge top-level fields of *partial* and stamp ``updatedAt``.

        Raises:
            DocumentNotFoundError: if the document does not exist.
        """
        path = document_path(path)
        with self._lock:
            current = self._load(path)
            if current is None:
                raise DocumentNotFoundError(f"No document at {path}", path=path)
            merged = {**current, **copy.deepcopy(partial)}
            merged[UPDATED_AT_FIELD] = self.server_timestamp()
            self._save(path, merged)
        self._notify(path)

    def add_document(self, collection: str, data: dict[str, Any]) -> str:
        """Append *data* to *collection* and return the generated id.

        The store stamps the ``timestamp`` ordering key, later than every
        timestamp already stored in the collection.
        """
        collection = collection_path(collection)
        doc_id = new_document_id()
        path = f"{collection}/{doc_id}"
        with self._lock:
            if collection not in self._seeded_collections:
                self._seed_timestamp(collection)
            entry = copy.deepcopy(data)
            entry[TIMESTAMP_FIELD] = self.server_timestamp()
            self._save(path, entry)
        self._notify(path)
        return doc_id

    def delete_document(self, path: str) -> bool:
        """Delete the document at *path*; return ``False`` if it was absent."""
        path = document_path(path)
        with self._lock:
            removed = self._remove(path)
        if removed:
            self._notify(path)
        return removed

    def query(
        self,
        collection: str,
        order_by: str = TIMESTAMP_FIELD,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        """Return the documents of *collection* ordered by *order_by*."""
        collection = collection_path(collection)
        with self._lock:
            docs = [
                DocumentSnapshot(id=doc_id, path=f"{collection}/{doc_id}", data=copy.deepcopy(data))
                for doc_id, data in self._list(collection)
            ]
        docs.sort(key=_sort_key(order_by), reverse=descending)
        if limit is not None:
            docs = docs[:limit]
        return docs

    def subscribe_document(
        self,
        path: str,
        callback: Callable[[Optional[dict[str, Any]]], None],
    ) -> Unsubscribe:
        """Push the document (or ``None``) now and after every change."""
        path = document_path(path)
        with self._lock:
            sub_id = next(self._sub_ids)
            self._doc_subs.setdefault(path, {})[sub_id] = callback
        callback(self.get_document(path))

        def unsubscribe() -> None:
            with self._lock:
                self._doc_subs.get(path, {}).pop(sub_id, None)

        return unsubscribe

    def subscribe_collection(
        self,
        collection: str,
        callback: Callable[[list[DocumentSnapshot]], None],
        order_by: str = TIMESTAMP_FIELD,
        descending: bool = False,
    ) -> Unsubscribe:
        """Push the full ordered collection now and after every change."""
        collection = collection_path(collection)
        with self._lock:
            sub_id = next(self._sub_ids)
            self._collection_subs.setdefault(collection, {})[sub_id] = (callback, order_by, descending)
        callback(self.query(collection, order_by=order_by, descending=descending))

        def unsubscribe() -> None:
            with self._lock:
                self._collection_subs.get(collection, {}).pop(sub_id, None)

        return unsubscribe

    # -- helpers -----------------------------------------------------------

    def _seed_timestamp(self, collection: str) -> None:
        # Entries written by an earlier store instance may be newer than this
        # process's clock.
        stored = [data.get(TIMESTAMP_FIELD) for _, data in self._list(collection)]
        stamps = [t for t in stored if isinstance(t, (int, float))]
        if stamps:
            self._last_timestamp = max(self._last_timestamp, max(stamps))
        self._seeded_collections.add(collection)

    def _notify(self, path: str) -> None:
        collection = parent_collection(path)
        with self._lock:
            doc_callbacks = list(self._doc_subs.get(path, {}).values())
            coll_callbacks = list(self._collection_subs.get(collection, {}).values())

        if doc_callbacks:
            data = self.get_document(path)
            for cb in doc_callbacks:
                self._deliver(cb, copy.deepcopy(data), path)
        for cb, order_by, descending in coll_callbacks:
            docs = self.query(collection, order_by=order_by, descending=descending)
            self._deliver(cb, docs, collection)

    @staticmethod
    def _deliver(callback: Callable[[Any], None], value: Any, path: str) -> None:
        try:
            callback(value)
        except Exception:
            # The write is already committed; subscriber errors are only logged.
            logger.exception("Subscriber for %s raised", path)


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------

class MemoryDocumentStore(DocumentStore):
    """Process-local backend; contents vanish with the process."""

    def __init__(self) -> None:
        super().__init__()
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _load(self, path: str) -> dict[str, Any] | None:
        collection, doc_id = path.rsplit("/", 1)
        return self._collections.get(collection, {}).get(doc_id)

    def _save(self, path: str, data: dict[str, Any]) -> None:
        collection, doc_id = path.rsplit("/", 1)
        self._collections.setdefault(collection, {})[doc_id] = data

    def _remove(self, path: str) -> bool:
        collection, doc_id = path.rsplit("/", 1)
        return self._collections.get(collection, {}).pop(doc_id, None) is not None

    def _list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        return list(self._collections.get(collection, {}).items())
