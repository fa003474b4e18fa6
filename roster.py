# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Home and away roster documents for a game.

Each side is one document ``{players: [...], updatedAt}``.  The roster
editor owns these documents; the scorer only reads them to resolve the
selected batter and pitcher.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from pydantic import ValidationError

from models import Player, Roster, RosterSide
from store import DocumentStore, StoreError
from store.document_store import UPDATED_AT_FIELD, Unsubscribe
from store.paths import roster_path

# Fielding rosters this small are treated as all pitchers.
SMALL_ROSTER_SIZE = 5


def _players(data: dict[str, Any] | None, path: str) -> list[Player]:
    try:
        return [Player.model_validate(p) for p in (data or {}).get("players", [])]
    except ValidationError as exc:
        raise StoreError(f"Malformed roster at {path}: {exc}", path=path) from exc


class RosterBook:
    """Both roster sides of a single game."""

    def __init__(self, store: DocumentStore, game_id: str, org_id: Optional[str] = None):
        self.store = store
        self.game_id = game_id
        self._paths = {side: roster_path(game_id, side.value, org_id) for side in RosterSide}

    def save(self, side: RosterSide | str, players: list[Player]) -> None:
        """Replace the full lineup of one side."""
        self.store.set_document(self._paths[RosterSide(side)], {
            "players": [p.model_dump(by_alias=True, mode="json", exclude_none=True) for p in players],
            UPDATED_AT_FIELD: self.store.server_timestamp(),
        })

    def get(self) -> Roster:
        return Roster(
            home=self._read(RosterSide.HOME),
            away=self._read(RosterSide.AWAY),
        )

    def _read(self, side: RosterSide) -> list[Player]:
        path = self._paths[side]
        return _players(self.store.get_document(path), path)

    def subscribe(self, callback: Callable[[Roster], None]) -> Unsubscribe:
        """Push both sides whenever either one changes."""
        current = {RosterSide.HOME: [], RosterSide.AWAY: []}

        def listener(side: RosterSide) -> Callable[[dict[str, Any] | None], None]:
            def on_change(data: dict[str, Any] | None) -> None:
                current[side] = _players(data, self._paths[side])
                callback(Roster(home=current[RosterSide.HOME], away=current[RosterSide.AWAY]))
            return on_change

        unsubs = [self.store.subscribe_document(self._paths[side], listener(side)) for side in RosterSide]

        def unsubscribe() -> None:
            for unsub in unsubs:
                unsub()

        return unsubscribe


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def batting_order(players: list[Player]) -> list[Player]:
    return sorted(players, key=lambda p: p.order)


def pitcher_candidates(players: list[Player]) -> list[Player]:
    """Players eligible for the pitcher picker, in batting order.

    Players without a position or listed as "P" qualify; on small rosters
    everyone does.
    """
    if len(players) <= SMALL_ROSTER_SIZE:
        return batting_order(players)
    return batting_order([p for p in players if not p.position or p.position == "P"])


def find_player(players: list[Player], player_id: Optional[str]) -> Player | None:
    if not player_id:
        return None
    for p in players:
        if p.id == player_id:
            return p
    return None
