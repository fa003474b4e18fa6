# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Scorer workflow: turn scorer actions into persisted plays.

A play is committed in two independent writes issued in parallel:

1. the engine patch is merged into the GameState document, and
2. a PlayEvent carrying the pre-play state is appended to the play log.

Both writes are always attempted.  If either fails, :class:`PersistenceError`
is raised after both have finished; nothing is rolled back or retried, so
the state and the log may disagree until the scorer undoes or re-scores
the play.

Usage::

    store = config.create_document_store()
    with ScorerSession(store, "game-1", "Tigers", "Hawks") as session:
        session.select_batter("p7")
        session.ball()
        session.hit(2)
        session.undo()
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

import scoring
from game_state import GameStateDocument
from half_inning import HalfInningChange, HalfInningWatcher
from models import (
    Base,
    GameState,
    PitchType,
    PlayEvent,
    Player,
    Roster,
    RosterSide,
    default_game_state,
)
from play_log import PlayLog
from roster import RosterBook, find_player
from scoring import Patch, apply_patch
from store import DocumentStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PersistenceError(Exception):
    """Raised when one or both writes of a play fail.

    ``failures`` maps the write that failed (``"game_state"`` or
    ``"play_log"``) to its exception; ``play_id`` is set when the log
    append went through.
    """

    def __init__(self, message: str, failures: dict[str, BaseException],
                 play_id: str | None = None):
        self.failures = failures
        self.play_id = play_id
        super().__init__(message)


# ---------------------------------------------------------------------------
# Committing plays
# ---------------------------------------------------------------------------

@dataclass
class PlayCommit:
    """Outcome of a committed play."""
    play_id: str
    state: GameState  # state after the play
    patch: Patch
    event: PlayEvent


def build_play_event(
    state: GameState,
    result: str,
    pitch_type: Optional[PitchType] = None,
    batter_name: Optional[str] = None,
    pitcher_name: Optional[str] = None,
) -> PlayEvent:
    """Describe a play in the context of the state it was applied to."""
    return PlayEvent(
        inning=state.inning,
        is_top_inning=state.is_top_inning,
        pitch_type=pitch_type,
        result=result,
        batter_name=batter_name,
        pitcher_name=pitcher_name,
        on_first=state.on_first,
        on_second=state.on_second,
        on_third=state.on_third,
        prev_game_state=state.to_document(),
    )


def record_play(
    game_doc: GameStateDocument,
    play_log: PlayLog,
    state: GameState,
    patch: Patch,
    pitch_type: Optional[PitchType] = None,
    batter_name: Optional[str] = None,
    pitcher_name: Optional[str] = None,
) -> PlayCommit:
    """Persist an engine patch computed against *state* and log the play.

    Raises:
        pydantic.ValidationError: if the patch would break a GameState
            invariant (nothing is written).
        PersistenceError: if either write fails.
    """
    new_state = apply_patch(state, patch)
    event = build_play_event(state, patch["last_play"], pitch_type, batter_name, pitcher_name)

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="scorer-write") as pool:
        futures = {
            "game_state": pool.submit(game_doc.update, state, patch),
            "play_log": pool.submit(play_log.append, event),
        }

    failures = {name: f.exception() for name, f in futures.items() if f.exception() is not None}
    play_id = futures["play_log"].result() if "play_log" not in failures else None
    if failures:
        logger.error("Game %s: play '%s' partially persisted; failed writes: %s",
                     game_doc.game_id, event.result,
                     ", ".join(f"{k} ({v})" for k, v in failures.items()))
        raise PersistenceError(
            f"Failed to persist play '{event.result}': {', '.join(failures)}",
            failures=failures,
            play_id=play_id,
        )

    logger.info("Game %s: %s [%s, %d out]", game_doc.game_id, event.result,
                new_state.bases_string(), new_state.outs)
    return PlayCommit(
        play_id=play_id,
        state=new_state,
        patch=patch,
        event=event.model_copy(update={"id": play_id}),
    )


def undo_play(game_doc: GameStateDocument, play_log: PlayLog) -> GameState | None:
    """Undo the newest play; return the restored state, or ``None`` for a no-op."""
    snapshot = play_log.undo_last()
    if snapshot is None:
        return None
    game_doc.restore(snapshot)
    logger.info("Game %s: undid last play, restored '%s'", game_doc.game_id,
                snapshot.last_play or "start of game")
    return snapshot


def apply_correction(game_doc: GameStateDocument, state: GameState, correction: str,
                     **options: Any) -> GameState:
    """Apply a manual correction; corrections are not logged as plays."""
    patch = scoring.apply_correction(state, correction, **options)
    new_state = apply_patch(state, patch)
    game_doc.update(state, patch)
    logger.info("Game %s: manual correction %s", game_doc.game_id, correction)
    return new_state


# ---------------------------------------------------------------------------
# Scorer session
# ---------------------------------------------------------------------------

class ScorerSession:
    """One scorer's live view of a game.

    Keeps the latest GameState and rosters via store subscriptions, tracks
    the selected batter, pitcher and pitch type, and commits plays.  Only
    one session should score a game at a time; concurrent scorers are not
    coordinated and the last write wins.

    Args:
        store: Document store holding the game.
        game_id: Game identifier.
        home_team_name / away_team_name: Used to seed a new GameState.
        on_half_inning: Called with a :class:`HalfInningChange` whenever an
            update starts a new half-inning.
    """

    def __init__(
        self,
        store: DocumentStore,
        game_id: str,
        home_team_name: str = "Home",
        away_team_name: str = "Away",
        org_id: Optional[str] = None,
        on_half_inning: Optional[Callable[[HalfInningChange], None]] = None,
    ):
        self.game_id = game_id
        self.home_team_name = home_team_name
        self.away_team_name = away_team_name
        self.game_doc = GameStateDocument(store, game_id, org_id)
        self.play_log = PlayLog(store, game_id, org_id)
        self.roster_book = RosterBook(store, game_id, org_id)
        self.on_half_inning = on_half_inning

        self.active_batter_id: Optional[str] = None
        self.active_pitcher_id: Optional[str] = None
        self.pitch_type: Optional[PitchType] = None
        self.last_half_inning_change: Optional[HalfInningChange] = None

        self._lock = threading.RLock()
        self._state: Optional[GameState] = None
        self._roster = Roster()
        self._watcher = HalfInningWatcher()
        self._unsubscribes: list[Callable[[], None]] = []

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> ScorerSession:
        """Create the GameState if needed and subscribe to state and rosters."""
        self.game_doc.init(self.home_team_name, self.away_team_name)
        self._unsubscribes.append(self.game_doc.subscribe(self._on_state))
        self._unsubscribes.append(self.roster_book.subscribe(self._on_roster))
        return self

    def close(self) -> None:
        while self._unsubscribes:
            self._unsubscribes.pop()()

    def __enter__(self) -> ScorerSession:
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _on_state(self, state: GameState | None) -> None:
        if state is None:
            state = default_game_state(self.home_team_name, self.away_team_name)
        with self._lock:
            change = self._watcher.observe(state)
            self._state = state
            if change is not None:
                self.active_batter_id = None
                self.last_half_inning_change = change
        if change is not None:
            logger.info("Game %s: %s", self.game_id, change.message)
            if self.on_half_inning is not None:
                self.on_half_inning(change)

    def _on_roster(self, roster: Roster) -> None:
        with self._lock:
            self._roster = roster

    # -- current view ------------------------------------------------------

    @property
    def state(self) -> GameState:
        with self._lock:
            if self._state is None:
                return default_game_state(self.home_team_name, self.away_team_name)
            return self._state

    @property
    def roster(self) -> Roster:
        with self._lock:
            return self._roster

    @property
    def batting_roster(self) -> list[Player]:
        return self.roster.side(self.state.batting_side)

    @property
    def fielding_roster(self) -> list[Player]:
        return self.roster.side(self.state.fielding_side)

    @property
    def active_batter(self) -> Player | None:
        return find_player(self.batting_roster, self.active_batter_id)

    @property
    def active_pitcher(self) -> Player | None:
        return find_player(self.fielding_roster, self.active_pitcher_id)

    def select_batter(self, player_id: Optional[str]) -> None:
        with self._lock:
            self.active_batter_id = player_id

    def select_pitcher(self, player_id: Optional[str]) -> None:
        with self._lock:
            self.active_pitcher_id = player_id

    def select_pitch_type(self, pitch_type: PitchType | str | None) -> None:
        with self._lock:
            self.pitch_type = PitchType(pitch_type) if pitch_type else None

    # -- plays -------------------------------------------------------------

    def play(self, action: str, **options: Any) -> PlayCommit:
        """Score a named action (see :data:`scoring.ACTIONS`)."""
        with self._lock:
            state = self.state
            batter_id = self.active_batter_id
            batter = self.active_batter
            pitcher = self.active_pitcher
            pitch_type = self.pitch_type

        try:
            patch = scoring.apply_action(state, action, batter_id=batter_id, **options)
            return record_play(
                self.game_doc,
                self.play_log,
                state,
                patch,
                pitch_type=pitch_type,
                batter_name=batter.name if batter else None,
                pitcher_name=pitcher.name if pitcher else None,
            )
        finally:
            with self._lock:
                self.pitch_type = None

    def ball(self) -> PlayCommit:
        return self.play("ball")

    def strike(self) -> PlayCommit:
        return self.play("strike")

    def swinging_strike(self) -> PlayCommit:
        return self.play("swinging_strike")

    def called_strike(self) -> PlayCommit:
        return self.play("called_strike")

    def foul(self) -> PlayCommit:
        return self.play("foul")

    def out(self, description: str = "Out") -> PlayCommit:
        return self.play("out", description=description)

    def hit(self, bases: int) -> PlayCommit:
        return self.play("hit", bases=bases)

    def walk(self) -> PlayCommit:
        return self.play("walk")

    def hit_by_pitch(self) -> PlayCommit:
        return self.play("hit_by_pitch")

    def reached_on_error(self) -> PlayCommit:
        return self.play("error")

    def fielders_choice(self) -> PlayCommit:
        return self.play("fielders_choice")

    def run(self) -> PlayCommit:
        return self.play("run")

    def undo(self) -> bool:
        """Undo the newest play; ``False`` when there was nothing to restore."""
        return undo_play(self.game_doc, self.play_log) is not None

    # -- manual corrections ------------------------------------------------

    def correct(self, correction: str, **options: Any) -> GameState:
        return apply_correction(self.game_doc, self.state, correction, **options)

    def toggle_base(self, base: Base | str) -> GameState:
        return self.correct("toggle_base", base=base)

    def adjust_score(self, side: RosterSide | str, delta: int) -> GameState:
        return self.correct("adjust_score", side=side, delta=delta)

    def adjust_errors(self, side: RosterSide | str, delta: int) -> GameState:
        return self.correct("adjust_errors", side=side, delta=delta)

    def rename_team(self, side: RosterSide | str, name: str) -> GameState:
        return self.correct("rename_team", side=side, name=name)

    def switch_half_inning(self) -> GameState:
        return self.correct("switch_half_inning")

    def reset_count(self) -> GameState:
        return self.correct("reset_count")
