# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Persistence of the live GameState document.

One GameState document exists per game, created on first scorer access.
Engine patches are shallow-merged into it; the store stamps ``updatedAt``
on every merge.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from models import GameState, default_game_state
from scoring import Patch, patch_to_document
from store import DocumentNotFoundError, DocumentStore, StoreError
from store.document_store import UPDATED_AT_FIELD, Unsubscribe
from store.paths import game_state_path

logger = logging.getLogger(__name__)


def parse_game_state(data: dict[str, Any] | None) -> GameState | None:
    """Validate a stored GameState document.

    Documents written before ``pitchCount`` / ``batterStats`` existed are
    filled in with defaults.  Returns ``None`` for a missing document.

    Raises:
        pydantic.ValidationError: if the document is malformed.
    """
    if data is None:
        return None
    return GameState.model_validate(data)


class GameStateDocument:
    """The GameState document of a single game."""

    def __init__(self, store: DocumentStore, game_id: str, org_id: Optional[str] = None):
        self.store = store
        self.game_id = game_id
        self.path = game_state_path(game_id, org_id)

    def init(self, home_team_name: str = "Home", away_team_name: str = "Away") -> GameState:
        """Create the document with defaults unless it already exists."""
        existing = self.get()
        if existing is not None:
            return existing
        state = default_game_state(home_team_name, away_team_name)
        doc = state.to_document()
        doc[UPDATED_AT_FIELD] = self.store.server_timestamp()
        self.store.set_document(self.path, doc)
        logger.info("Initialized game state for %s (%s at %s)",
                    self.game_id, away_team_name, home_team_name)
        return state

    def get(self) -> GameState | None:
        """Return the stored state.

        Raises:
            StoreError: if the stored document is malformed.
        """
        try:
            return parse_game_state(self.store.get_document(self.path))
        except ValidationError as exc:
            raise StoreError(f"Malformed game state at {self.path}: {exc}", path=self.path) from exc

    def update(self, state: GameState, patch: Patch) -> None:
        """Merge an engine patch computed against *state*."""
        self.store.merge_patch(self.path, patch_to_document(state, patch))

    def restore(self, snapshot: GameState) -> None:
        """Write a full snapshot back as the current state.

        Recreates the document if it has been removed.
        """
        doc = snapshot.to_document()
        try:
            self.store.merge_patch(self.path, doc)
        except DocumentNotFoundError:
            logger.warning("Game state for %s missing on restore; recreating it", self.game_id)
            doc[UPDATED_AT_FIELD] = self.store.server_timestamp()
            self.store.set_document(self.path, doc)

    def subscribe(self, callback: Callable[[GameState | None], None]) -> Unsubscribe:
        """Push the current state, or ``None`` while no state exists yet."""
        def on_change(data: dict[str, Any] | None) -> None:
            try:
                state = parse_game_state(data)
            except ValidationError as exc:
                raise StoreError(f"Malformed game state at {self.path}: {exc}", path=self.path) from exc
            callback(state)

        return self.store.subscribe_document(self.path, on_change)
