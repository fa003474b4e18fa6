# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0", "pytest>=7.0"]
# ///
"""Tests for the persisted GameState document.

Validates:
  1. init creates defaults once and never overwrites
  2. Engine patches merge as camelCase fields
  3. Snapshots restore the full state
  4. Subscriptions push parsed states (or None)
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from pydantic import ValidationError

from game_state import GameStateDocument, parse_game_state
from models import GameState, default_game_state
from scoring import apply_hit, apply_patch
from store import DocumentNotFoundError, MemoryDocumentStore, StoreError


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def game_doc(store):
    return GameStateDocument(store, "g1", "test-org")


class TestInit:
    def test_init_creates_defaults(self, store, game_doc):
        state = game_doc.init("Tigers", "Hawks")
        assert state == default_game_state("Tigers", "Hawks")
        doc = store.get_document(game_doc.path)
        assert doc["homeTeam"]["name"] == "Tigers"
        assert "updatedAt" in doc
        assert game_doc.path == "organizations/test-org/games/g1/scoring/gameState"

    def test_init_keeps_existing_state(self, game_doc):
        game_doc.init("Tigers", "Hawks")
        state = game_doc.get()
        game_doc.update(state, {"outs": 2})
        again = game_doc.init("Other", "Names")
        assert again.outs == 2
        assert again.home_team.name == "Tigers"

    def test_get_missing(self, game_doc):
        assert game_doc.get() is None


class TestUpdates:
    def test_update_merges_patch(self, store, game_doc):
        state = game_doc.init("Tigers", "Hawks")
        patch = apply_hit(state.model_copy(update={"on_third": True}), 1, "p1")
        game_doc.update(state, patch)

        doc = store.get_document(game_doc.path)
        assert doc["awayTeam"]["score"] == 1
        assert doc["batterStats"] == {"p1": {"atBats": 1, "hits": 1}}
        assert game_doc.get().on_first is True

    def test_update_without_document(self, game_doc):
        with pytest.raises(DocumentNotFoundError):
            game_doc.update(default_game_state(), {"outs": 1})

    def test_restore_snapshot(self, game_doc):
        before = game_doc.init("Tigers", "Hawks")
        game_doc.update(before, {"inning": 5, "outs": 2, "on_second": True, "last_play": "Double"})
        game_doc.restore(before)
        assert game_doc.get() == before

    def test_restore_recreates_missing_document(self, store, game_doc):
        before = game_doc.init("Tigers", "Hawks").model_copy(update={"outs": 2})
        store.delete_document(game_doc.path)
        game_doc.restore(before)
        assert game_doc.get() == before
        assert "updatedAt" in store.get_document(game_doc.path)

    def test_get_malformed_document_raises_store_error(self, store, game_doc):
        store.set_document(game_doc.path, {"strikes": 3})
        with pytest.raises(StoreError):
            game_doc.get()

    def test_parse_rejects_invalid(self):
        assert parse_game_state(None) is None
        with pytest.raises(ValidationError):
            parse_game_state({"strikes": 3})


class TestSubscribe:
    def test_pushes_states(self, game_doc):
        seen: list[GameState | None] = []
        unsubscribe = game_doc.subscribe(seen.append)
        state = game_doc.init()
        game_doc.update(state, {"balls": 1, "pitch_count": 1, "last_play": "Ball"})
        unsubscribe()

        assert seen[0] is None
        assert seen[1] == state
        assert seen[2] == apply_patch(state, {"balls": 1, "pitch_count": 1, "last_play": "Ball"})

    def test_malformed_initial_document(self, store, game_doc):
        store.set_document(game_doc.path, {"balls": 9})
        with pytest.raises(StoreError):
            game_doc.subscribe(lambda s: None)
