# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Append-only play log with single-step undo.

Each game owns an ordered collection of :class:`PlayEvent` documents.  The
store assigns every entry a strictly increasing ``timestamp``, which is the
only ordering key.  An entry carries the full GameState as it stood before
the play (``prevGameState``), so undoing the newest entry is "delete it and
put its snapshot back"; calling undo again reaches one entry further back.

The caller owns the GameState write: :meth:`PlayLog.undo_last` only removes
the entry and hands back its snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from pydantic import ValidationError

from models import GameState, GameStateSnapshot, PlayEvent
from store import DocumentSnapshot, DocumentStore, StoreError
from store.document_store import TIMESTAMP_FIELD, Unsubscribe
from store.paths import plays_path

logger = logging.getLogger(__name__)


def _to_event(doc: DocumentSnapshot) -> PlayEvent:
    try:
        return PlayEvent.model_validate({**doc.data, "id": doc.id})
    except ValidationError as exc:
        raise StoreError(f"Malformed play at {doc.path}: {exc}", path=doc.path) from exc


class PlayLog:
    """The play-by-play collection of a single game."""

    def __init__(self, store: DocumentStore, game_id: str, org_id: Optional[str] = None):
        self.store = store
        self.game_id = game_id
        self.path = plays_path(game_id, org_id)

    def append(self, event: PlayEvent) -> str:
        """Store *event* and return its id; the store assigns the timestamp."""
        return self.store.add_document(self.path, event.to_document())

    def events(self) -> list[PlayEvent]:
        """Return every event, oldest first."""
        return [_to_event(doc) for doc in self.store.query(self.path, order_by=TIMESTAMP_FIELD)]

    def subscribe(self, callback: Callable[[list[PlayEvent]], None]) -> Unsubscribe:
        """Push the full ordered event list now and after every append or delete."""
        def on_change(docs: list[DocumentSnapshot]) -> None:
            callback([_to_event(doc) for doc in docs])

        return self.store.subscribe_collection(self.path, on_change, order_by=TIMESTAMP_FIELD)

    def undo_last(self) -> GameState | None:
        """Delete the newest event and return the state it was applied to.

        Returns ``None`` when the log is empty, or when the newest entry has
        no usable snapshot (entries logged before snapshots existed, or a
        snapshot missing any team, inning, count or base field).  In the
        latter case the entry is still removed, and the caller must leave
        the GameState untouched.
        """
        newest = self.store.query(self.path, order_by=TIMESTAMP_FIELD, descending=True, limit=1)
        if not newest:
            return None
        doc = newest[0]
        raw = doc.data.get("prevGameState")
        self.store.delete_document(doc.path)

        if not isinstance(raw, dict):
            logger.warning("Undid play %s in game %s without a snapshot; state left as is",
                           doc.id, self.game_id)
            return None
        try:
            return GameStateSnapshot.model_validate(raw).to_game_state()
        except ValidationError as exc:
            logger.warning("Undid play %s in game %s with a malformed snapshot: %s",
                           doc.id, self.game_id, exc)
            return None


# ---------------------------------------------------------------------------
# Grouping for display
# ---------------------------------------------------------------------------

@dataclass
class HalfInningGroup:
    inning: int
    is_top_inning: bool
    events: list[PlayEvent] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.inning}-{'top' if self.is_top_inning else 'bot'}"

    @property
    def label(self) -> str:
        return f"{'▲' if self.is_top_inning else '▼'} {ordinal(self.inning)}"


def ordinal(n: int) -> str:
    """Return ordinal string for an integer (1st, 2nd, 3rd, etc.)."""
    if 11 <= n % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def group_by_half_inning(events: list[PlayEvent]) -> list[HalfInningGroup]:
    """Split an ordered event list into runs of the same half-inning."""
    groups: list[HalfInningGroup] = []
    for event in events:
        last = groups[-1] if groups else None
        if last and last.inning == event.inning and last.is_top_inning == event.is_top_inning:
            last.events.append(event)
        else:
            groups.append(HalfInningGroup(event.inning, event.is_top_inning, [event]))
    return groups
