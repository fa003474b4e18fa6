# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Logical document paths for one game's scoring data.

::

    organizations/{org}/games/{game}/scoring/gameState
    organizations/{org}/games/{game}/plays/{playId}
    organizations/{org}/games/{game}/roster/{home|away}
"""

from __future__ import annotations

from typing import Optional

import config
from store.document_store import InvalidPathError, join_path


def game_path(game_id: str, org_id: Optional[str] = None) -> str:
    if not game_id or "/" in game_id:
        raise InvalidPathError(f"Invalid game id: {game_id!r}", path=game_id)
    return join_path("organizations", org_id or config.get_org_id(), "games", game_id)


def game_state_path(game_id: str, org_id: Optional[str] = None) -> str:
    return join_path(game_path(game_id, org_id), "scoring", "gameState")


def plays_path(game_id: str, org_id: Optional[str] = None) -> str:
    return join_path(game_path(game_id, org_id), "plays")


def roster_path(game_id: str, side: str, org_id: Optional[str] = None) -> str:
    return join_path(game_path(game_id, org_id), "roster", side)
