# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""File-based document store backend.

Each document is one JSON file under *root_dir*, at the document's path
plus ``.json``; a collection is the directory holding its documents::

    <root>/organizations/acme/games/g1/scoring/gameState.json
    <root>/organizations/acme/games/g1/plays/<id>.json

Writes go to a ``.tmp`` sibling and are renamed into place, so a reader
never sees a half-written document.  Subscriptions only see writes made
through the same :class:`JsonFileDocumentStore` instance.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from store.document_store import DocumentStore, StoreError

logger = logging.getLogger(__name__)


class JsonFileDocumentStore(DocumentStore):
    """Document store persisted as JSON files.

    Args:
        root_dir: Directory holding the documents.  Created on first write.
    """

    def __init__(self, root_dir: str | Path) -> None:
        super().__init__()
        self._root = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root

    # -- storage hooks -----------------------------------------------------

    def _load(self, path: str) -> dict[str, Any] | None:
        return self._read_file(self._file_for(path))

    def _save(self, path: str, data: dict[str, Any]) -> None:
        file = self._file_for(path)
        file.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = file.with_suffix(".tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(data, f, separators=(",", ":"))
            tmp_path.replace(file)
        except (OSError, TypeError, ValueError) as exc:
            tmp_path.unlink(missing_ok=True)
            raise StoreError(f"Failed to write {path}: {exc}", path=path) from exc

    def _remove(self, path: str) -> bool:
        file = self._file_for(path)
        if not file.exists():
            return False
        file.unlink()
        return True

    def _list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        directory = self._root / collection
        if not directory.is_dir():
            return []
        docs = []
        for file in sorted(directory.glob("*.json")):
            data = self._read_file(file)
            if data is not None:
                docs.append((file.stem, data))
        return docs

    # -- helpers -----------------------------------------------------------

    def _file_for(self, path: str) -> Path:
        return self._root / f"{path}.json"

    def _read_file(self, file: Path) -> dict[str, Any] | None:
        if not file.exists():
            return None
        try:
            with open(file) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            raise StoreError(f"Unreadable document {file}: {exc}", path=str(file)) from exc
        if not isinstance(data, dict):
            raise StoreError(f"Document {file} is not a JSON object", path=str(file))
        return data
