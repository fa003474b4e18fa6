# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Data models for the live scorebook.

GameState is the canonical record of one game's live scoring state.  It is
an immutable value: the transition engine in ``scoring.py`` never mutates a
state, it returns a patch that is merged into a new instance.

Persisted documents use camelCase keys (``homeTeam``, ``isTopInning``,
``batterStats``); Python code uses the snake_case field names.  Dump with
``model_dump(by_alias=True)`` to get the document form.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Document(BaseModel):
    """Base for models that round-trip through the document store."""
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PitchType(str, Enum):
    FASTBALL = "Fastball"
    CURVEBALL = "Curveball"
    CHANGEUP = "Changeup"
    SLIDER = "Slider"
    OTHER = "Other"


class RosterSide(str, Enum):
    HOME = "home"
    AWAY = "away"


class Base(str, Enum):
    FIRST = "first"
    SECOND = "second"
    THIRD = "third"


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------

class TeamState(_Document):
    name: str
    score: int = Field(default=0, ge=0)
    hits: int = Field(default=0, ge=0)
    errors: int = Field(default=0, ge=0)


class BatterStat(_Document):
    """At-bat and hit totals for one batter in one game."""
    # Older documents spell the at-bat count "ab".
    at_bats: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("atBats", "ab", "at_bats"),
        serialization_alias="atBats",
    )
    hits: int = Field(default=0, ge=0)


class GameState(_Document):
    """Live scoring state of one game.

    A fourth ball, third strike or third out is never stored: reaching one
    of them triggers a walk, strikeout or half-inning flip in the same
    transition, so the ranges below hold for every persisted snapshot.
    """
    home_team: TeamState = Field(default_factory=lambda: TeamState(name="Home"))
    away_team: TeamState = Field(default_factory=lambda: TeamState(name="Away"))
    inning: int = Field(default=1, ge=1)
    is_top_inning: bool = True  # True = away team batting
    balls: int = Field(default=0, ge=0, le=3)
    strikes: int = Field(default=0, ge=0, le=2)
    outs: int = Field(default=0, ge=0, le=2)
    on_first: bool = False
    on_second: bool = False
    on_third: bool = False
    last_play: str = ""
    is_active: bool = True
    pitch_count: int = Field(default=0, ge=0)
    batter_stats: dict[str, BatterStat] = Field(default_factory=dict)

    @property
    def batting_side(self) -> RosterSide:
        return RosterSide.AWAY if self.is_top_inning else RosterSide.HOME

    @property
    def fielding_side(self) -> RosterSide:
        return RosterSide.HOME if self.is_top_inning else RosterSide.AWAY

    def team(self, side: RosterSide | str) -> TeamState:
        return self.home_team if RosterSide(side) == RosterSide.HOME else self.away_team

    def bases_string(self) -> str:
        """Return base state string like '110' for runners on 1st and 2nd."""
        return "".join("1" if b else "0" for b in (self.on_first, self.on_second, self.on_third))

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class GameStateSnapshot(GameState):
    """A ``prevGameState`` snapshot as logged with a play.

    The teams, inning, count and bases must all be present.  Only fields
    added after snapshots were first logged fall back to defaults.
    """
    home_team: TeamState
    away_team: TeamState
    inning: int = Field(ge=1)
    is_top_inning: bool
    balls: int = Field(ge=0, le=3)
    strikes: int = Field(ge=0, le=2)
    outs: int = Field(ge=0, le=2)
    on_first: bool
    on_second: bool
    on_third: bool

    def to_game_state(self) -> GameState:
        return GameState.model_validate(self.model_dump())


def team_field(side: RosterSide | str) -> str:
    """Return the GameState field name holding *side*'s TeamState."""
    return "home_team" if RosterSide(side) == RosterSide.HOME else "away_team"


def default_game_state(home_team_name: str = "Home", away_team_name: str = "Away") -> GameState:
    """Return a fresh first-inning state with the given team names."""
    return GameState(
        home_team=TeamState(name=home_team_name),
        away_team=TeamState(name=away_team_name),
    )


# ---------------------------------------------------------------------------
# Play-by-play
# ---------------------------------------------------------------------------

class PlayEvent(_Document):
    """One logged play.

    ``inning`` / ``is_top_inning`` and the base flags describe the moment
    *before* the play was applied.  ``prev_game_state`` is the full state
    document as it stood before the play, kept so the play can be undone.
    """
    id: Optional[str] = None
    inning: int = Field(ge=1)
    is_top_inning: bool
    pitch_type: Optional[PitchType] = None
    result: str
    batter_name: Optional[str] = None
    pitcher_name: Optional[str] = None
    on_first: bool = False
    on_second: bool = False
    on_third: bool = False
    prev_game_state: Optional[dict[str, Any]] = None
    timestamp: Optional[float] = None

    def to_document(self) -> dict[str, Any]:
        """Document form for appending; the store assigns id and timestamp."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"id", "timestamp"},
            exclude_none=True,
        )


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------

class Player(_Document):
    id: str = Field(min_length=1)
    name: str
    number: str = ""  # string so "00" survives
    position: Optional[str] = None  # "P", "C", "1B", ...
    order: int = Field(default=0, ge=0)  # batting order index, 0-based


class Roster(_Document):
    home: list[Player] = Field(default_factory=list)
    away: list[Player] = Field(default_factory=list)

    def side(self, side: RosterSide | str) -> list[Player]:
        return self.home if RosterSide(side) == RosterSide.HOME else self.away
