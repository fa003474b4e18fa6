# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Centralized configuration for environment variables."""

import os
from pathlib import Path

from store import DocumentStore, JsonFileDocumentStore, MemoryDocumentStore

ORG_ID_ENV = "SCORER_ORG_ID"
STORE_BACKEND_ENV = "SCORER_STORE"
DATA_DIR_ENV = "SCORER_DATA_DIR"
ADMIN_TOKEN_ENV = "SCORER_ADMIN_TOKEN"

DEFAULT_ORG_ID = "ProSlotSportsStream"
DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data" / "store"
STORE_BACKENDS = ("memory", "json")


def get_org_id() -> str:
    """Return the organization id that scopes all game documents."""
    return os.environ.get(ORG_ID_ENV, "").strip() or DEFAULT_ORG_ID


def get_store_backend() -> str:
    """Return the configured store backend name ("memory" or "json")."""
    backend = os.environ.get(STORE_BACKEND_ENV, "memory").strip().lower() or "memory"
    if backend not in STORE_BACKENDS:
        raise ValueError(
            f"{STORE_BACKEND_ENV} must be one of {', '.join(STORE_BACKENDS)}, got {backend!r}"
        )
    return backend


def get_data_dir() -> Path:
    """Return the root directory for the JSON file store."""
    value = os.environ.get(DATA_DIR_ENV, "").strip()
    return Path(value) if value else DEFAULT_DATA_DIR


def get_admin_token() -> str:
    """Return the scorer token, or empty string if writes are unrestricted."""
    return os.environ.get(ADMIN_TOKEN_ENV, "")


def create_document_store() -> DocumentStore:
    """Create the document store selected by the environment."""
    if get_store_backend() == "json":
        return JsonFileDocumentStore(get_data_dir())
    return MemoryDocumentStore()
