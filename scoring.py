# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Transition engine for live game scoring.

Each ``apply_*`` function takes the current :class:`GameState` (plus an
optional batter id) and returns a *patch*: a dict holding only the
GameState fields the event changes, keyed by snake_case field name.  Every
play patch sets ``last_play``.  Nothing here performs I/O or mutates its input,
so the functions are safe to call from any thread.

Patches are merged in exactly one place, :func:`apply_patch`, which
re-validates the result against the GameState invariants.

Rules enforced:

- a fourth ball is a walk, a third strike is a strikeout, a third out
  retires the side; none of the terminal counts is ever stored
- a foul never produces a third strike
- walks force runners only when every base behind them is occupied
- base occupancy is boolean; runner identity is not tracked
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from models import (
    Base,
    BatterStat,
    GameState,
    RosterSide,
    team_field,
)

Patch = dict[str, Any]

HIT_LABELS = {1: "Single", 2: "Double", 3: "Triple", 4: "Home Run"}

STRIKEOUT_SWINGING = "Strikeout K (Swinging)"
STRIKEOUT_CALLED = "Strikeout ꓘ (Called)"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ScoringError(Exception):
    """Base exception for scoring engine errors."""


class InvalidTransitionError(ScoringError):
    """Raised when an event's input is outside the documented domain."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


# ---------------------------------------------------------------------------
# Patch composition
# ---------------------------------------------------------------------------

def apply_patch(state: GameState, patch: Patch) -> GameState:
    """Merge *patch* into *state* and return the validated new state.

    Raises:
        pydantic.ValidationError: if the merged state breaks an invariant.
        InvalidTransitionError: if the patch names an unknown field.
    """
    unknown = set(patch) - set(GameState.model_fields)
    if unknown:
        raise InvalidTransitionError(
            f"Patch contains unknown fields: {sorted(unknown)}",
            field=sorted(unknown)[0],
        )
    merged = dict(state)
    merged.update(patch)
    return GameState.model_validate(merged)


def patch_to_document(state: GameState, patch: Patch) -> dict[str, Any]:
    """Render *patch* in document form (camelCase keys, plain JSON values)."""
    new_state = apply_patch(state, patch)
    return new_state.model_dump(by_alias=True, mode="json", include=set(patch))


def _with_pitch(patch: Patch, state: GameState) -> Patch:
    return {**patch, "pitch_count": state.pitch_count + 1}


def _run_clause(runs: int) -> str:
    if runs <= 0:
        return ""
    return f" — {runs} Run{'s' if runs > 1 else ''} Scored"


# ---------------------------------------------------------------------------
# Batter stats
# ---------------------------------------------------------------------------

def _batter_stat_patch(state: GameState, batter_id: Optional[str], hit: bool) -> Patch:
    if not batter_id:
        return {}
    prev = state.batter_stats.get(batter_id, BatterStat())
    updated = BatterStat(
        at_bats=prev.at_bats + 1,
        hits=prev.hits + (1 if hit else 0),
    )
    return {"batter_stats": {**state.batter_stats, batter_id: updated}}


def _add_at_bat(state: GameState, batter_id: Optional[str]) -> Patch:
    return _batter_stat_patch(state, batter_id, hit=False)


def _add_hit(state: GameState, batter_id: Optional[str]) -> Patch:
    return _batter_stat_patch(state, batter_id, hit=True)


# ---------------------------------------------------------------------------
# Base advancement
# ---------------------------------------------------------------------------

def _advance_on_hit(state: GameState, bases: int) -> tuple[int, bool, bool, bool]:
    """Return ``(runs, on_first, on_second, on_third)`` after a hit."""
    first, second, third = state.on_first, state.on_second, state.on_third
    if bases == 4:
        return 1 + first + second + third, False, False, False
    if bases == 3:
        return first + second + third, False, False, True
    if bases == 2:
        # Runner on 1st goes to 3rd, everyone else scores
        return second + third, False, True, first
    return int(third), True, first, second


def _advance_on_force(state: GameState) -> tuple[int, bool, bool, bool]:
    """Return ``(runs, on_first, on_second, on_third)`` after a walk.

    Runners move only when forced by the runner (or batter) behind them.
    """
    first, second, third = state.on_first, state.on_second, state.on_third
    runs = 0
    if first and second and third:
        runs = 1
    elif first and second:
        third = True
    elif first:
        second = True
    return runs, True, second, third


def _with_runs(state: GameState, runs: int) -> Patch:
    if runs <= 0:
        return {}
    side = state.batting_side
    team = state.team(side)
    return {team_field(side): team.model_copy(update={"score": team.score + runs})}


# ---------------------------------------------------------------------------
# Pitch events
# ---------------------------------------------------------------------------

def apply_ball(state: GameState) -> Patch:
    if state.balls >= 3:
        return apply_walk(state)
    return _with_pitch({"balls": state.balls + 1, "last_play": "Ball"}, state)


def _strike(state: GameState, label: str, strikeout: str, batter_id: Optional[str]) -> Patch:
    if state.strikes >= 2:
        return apply_out(state, strikeout, batter_id)
    return _with_pitch({"strikes": state.strikes + 1, "last_play": label}, state)


def apply_strike(state: GameState, batter_id: Optional[str] = None) -> Patch:
    return _strike(state, "Strike", STRIKEOUT_SWINGING, batter_id)


def apply_swinging_strike(state: GameState, batter_id: Optional[str] = None) -> Patch:
    return _strike(state, "Swinging Strike", STRIKEOUT_SWINGING, batter_id)


def apply_called_strike(state: GameState, batter_id: Optional[str] = None) -> Patch:
    """Called strike (no swing); counts toward a looking strikeout."""
    return _strike(state, "Called Strike", STRIKEOUT_CALLED, batter_id)


def apply_foul(state: GameState) -> Patch:
    # A foul never makes the third strike
    strikes = min(state.strikes + 1, 2)
    return _with_pitch({"strikes": strikes, "last_play": "Foul Ball"}, state)


# ---------------------------------------------------------------------------
# Plate appearance results
# ---------------------------------------------------------------------------

def apply_out(state: GameState, description: str = "Out", batter_id: Optional[str] = None) -> Patch:
    """Record an out; the third out retires the side.

    A half-inning flip zeroes count, outs, bases and pitch count and moves
    to the next inning only when the bottom half ends.
    """
    outs = state.outs + 1
    at_bat = _add_at_bat(state, batter_id)

    if outs >= 3:
        return {
            **at_bat,
            "outs": 0,
            "balls": 0,
            "strikes": 0,
            "pitch_count": 0,
            "on_first": False,
            "on_second": False,
            "on_third": False,
            "is_top_inning": not state.is_top_inning,
            "inning": state.inning if state.is_top_inning else state.inning + 1,
            "last_play": f"{description} — 3 Outs, side retired",
        }

    return _with_pitch({
        **at_bat,
        "outs": outs,
        "balls": 0,
        "strikes": 0,
        "last_play": description,
    }, state)


def apply_hit(state: GameState, bases: int, batter_id: Optional[str] = None) -> Patch:
    """Record a hit of *bases* bases (1 = single ... 4 = home run).

    Raises:
        InvalidTransitionError: if *bases* is not 1, 2, 3 or 4.
    """
    if isinstance(bases, bool) or bases not in HIT_LABELS:
        raise InvalidTransitionError(
            f"Hit must cover 1-4 bases, got {bases!r}",
            field="bases",
        )

    runs, on_first, on_second, on_third = _advance_on_hit(state, bases)
    side = state.batting_side
    team = state.team(side)

    return _with_pitch({
        **_add_hit(state, batter_id),
        team_field(side): team.model_copy(update={
            "score": team.score + runs,
            "hits": team.hits + 1,
        }),
        "on_first": on_first,
        "on_second": on_second,
        "on_third": on_third,
        "balls": 0,
        "strikes": 0,
        "last_play": f"{HIT_LABELS[bases]}{_run_clause(runs)}",
    }, state)


def _forced_to_first(state: GameState, label: str) -> Patch:
    runs, on_first, on_second, on_third = _advance_on_force(state)
    return _with_pitch({
        **_with_runs(state, runs),
        "on_first": on_first,
        "on_second": on_second,
        "on_third": on_third,
        "balls": 0,
        "strikes": 0,
        "last_play": f"{label}{' — Run Forced In' if runs else ''}",
    }, state)


def apply_walk(state: GameState) -> Patch:
    return _forced_to_first(state, "Walk")


def apply_hit_by_pitch(state: GameState) -> Patch:
    return _forced_to_first(state, "Hit by Pitch")


def _reached_without_hit(state: GameState, label: str, batter_id: Optional[str],
                         error: bool) -> Patch:
    """Batter reaches first on a ball in play that is not scored a hit."""
    runs, on_first, on_second, on_third = _advance_on_hit(state, 1)
    patch = {
        **_add_at_bat(state, batter_id),
        **_with_runs(state, runs),
        "on_first": on_first,
        "on_second": on_second,
        "on_third": on_third,
        "balls": 0,
        "strikes": 0,
        "last_play": f"{label}{_run_clause(runs)}",
    }
    if error:
        side = state.fielding_side
        fielding = state.team(side)
        patch[team_field(side)] = fielding.model_copy(update={"errors": fielding.errors + 1})
    return _with_pitch(patch, state)


def apply_reached_on_error(state: GameState, batter_id: Optional[str] = None) -> Patch:
    return _reached_without_hit(state, "Error — Runner Safe", batter_id, error=True)


def apply_fielders_choice(state: GameState, batter_id: Optional[str] = None) -> Patch:
    return _reached_without_hit(state, "Fielder's Choice", batter_id, error=False)


def score_run(state: GameState) -> Patch:
    """Manual run for the batting team; bypasses count and pitch logic."""
    return {**_with_runs(state, 1), "last_play": "Run Scored"}


# ---------------------------------------------------------------------------
# Manual corrections
# ---------------------------------------------------------------------------
# These are direct scorer adjustments rather than plays; callers apply them
# without writing a play-log entry.

_BASE_FIELDS = {
    Base.FIRST: "on_first",
    Base.SECOND: "on_second",
    Base.THIRD: "on_third",
}


def toggle_base(state: GameState, base: Base | str) -> Patch:
    try:
        name = _BASE_FIELDS[Base(base)]
    except ValueError as exc:
        raise InvalidTransitionError(f"Unknown base: {base!r}", field="base") from exc
    return {name: not getattr(state, name)}


def _side(side: RosterSide | str) -> RosterSide:
    try:
        return RosterSide(side)
    except ValueError as exc:
        raise InvalidTransitionError(f"Unknown team side: {side!r}", field="side") from exc


def adjust_score(state: GameState, side: RosterSide | str, delta: int) -> Patch:
    side = _side(side)
    team = state.team(side)
    return {team_field(side): team.model_copy(update={"score": max(0, team.score + delta)})}


def adjust_errors(state: GameState, side: RosterSide | str, delta: int) -> Patch:
    side = _side(side)
    team = state.team(side)
    return {team_field(side): team.model_copy(update={"errors": max(0, team.errors + delta)})}


def rename_team(state: GameState, side: RosterSide | str, name: str) -> Patch:
    side = _side(side)
    name = name.strip()
    if not name:
        raise InvalidTransitionError("Team name must not be empty", field="name")
    return {team_field(side): state.team(side).model_copy(update={"name": name})}


def switch_half_inning(state: GameState) -> Patch:
    """Flip the batting side by hand; the inning number is left alone."""
    return {
        "is_top_inning": not state.is_top_inning,
        "balls": 0,
        "strikes": 0,
        "outs": 0,
        "pitch_count": 0,
        "on_first": False,
        "on_second": False,
        "on_third": False,
        "last_play": "",
    }


def reset_count(state: GameState) -> Patch:
    return {"balls": 0, "strikes": 0, "last_play": "At-bat reset"}


# ---------------------------------------------------------------------------
# Action registry
# ---------------------------------------------------------------------------

ACTIONS: dict[str, Callable[..., Patch]] = {
    "ball": lambda s, batter_id=None, **_: apply_ball(s),
    "strike": lambda s, batter_id=None, **_: apply_strike(s, batter_id),
    "swinging_strike": lambda s, batter_id=None, **_: apply_swinging_strike(s, batter_id),
    "called_strike": lambda s, batter_id=None, **_: apply_called_strike(s, batter_id),
    "foul": lambda s, batter_id=None, **_: apply_foul(s),
    "out": lambda s, batter_id=None, description="Out", **_: apply_out(s, description, batter_id),
    "hit": lambda s, bases, batter_id=None, **_: apply_hit(s, bases, batter_id),
    "walk": lambda s, batter_id=None, **_: apply_walk(s),
    "hit_by_pitch": lambda s, batter_id=None, **_: apply_hit_by_pitch(s),
    "error": lambda s, batter_id=None, **_: apply_reached_on_error(s, batter_id),
    "fielders_choice": lambda s, batter_id=None, **_: apply_fielders_choice(s, batter_id),
    "run": lambda s, batter_id=None, **_: score_run(s),
}

CORRECTIONS: dict[str, Callable[..., Patch]] = {
    "toggle_base": lambda s, base, **_: toggle_base(s, base),
    "adjust_score": lambda s, side, delta, **_: adjust_score(s, side, delta),
    "adjust_errors": lambda s, side, delta, **_: adjust_errors(s, side, delta),
    "rename_team": lambda s, side, name, **_: rename_team(s, side, name),
    "switch_half_inning": lambda s, **_: switch_half_inning(s),
    "reset_count": lambda s, **_: reset_count(s),
}


def _dispatch(registry: dict[str, Callable[..., Patch]], kind: str, state: GameState,
              name: str, **options: Any) -> Patch:
    handler = registry.get(name)
    if handler is None:
        raise InvalidTransitionError(
            f"Unknown {kind} '{name}'. Expected one of: {', '.join(registry)}",
            field=kind,
        )
    try:
        return handler(state, **options)
    except TypeError as exc:
        raise InvalidTransitionError(f"Bad options for {kind} '{name}': {exc}", field=kind) from exc


def apply_action(state: GameState, action: str, batter_id: Optional[str] = None,
                 **options: Any) -> Patch:
    """Compute the patch for a named play (``"ball"``, ``"hit"``, ...)."""
    return _dispatch(ACTIONS, "action", state, action, batter_id=batter_id, **options)


def apply_correction(state: GameState, correction: str, **options: Any) -> Patch:
    """Compute the patch for a named manual correction."""
    return _dispatch(CORRECTIONS, "correction", state, correction, **options)
