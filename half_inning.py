# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Half-inning change detection from successive GameState snapshots.

GameState has no "side just retired" flag, so a consumer infers the flip
by comparing each received state with the previous one: the previous
state had two outs, the new one has none, and the inning or half differs.
"""

from __future__ import annotations

from dataclasses import dataclass

from models import GameState
from play_log import ordinal


@dataclass(frozen=True)
class HalfInningChange:
    inning: int
    is_top_inning: bool
    batting_team: str
    away_score: int
    home_score: int

    @property
    def message(self) -> str:
        half = "Top" if self.is_top_inning else "Bottom"
        return f"{half} {ordinal(self.inning)} — {self.batting_team} up to bat"


class HalfInningWatcher:
    """Edge-triggered detector fed with every GameState update."""

    def __init__(self, outs: int = 0, inning: int = 1, is_top_inning: bool = True):
        self._outs = outs
        self._inning = inning
        self._is_top = is_top_inning

    def observe(self, state: GameState) -> HalfInningChange | None:
        """Record *state*; return the change if it starts a new half-inning."""
        side_changed = state.inning != self._inning or state.is_top_inning != self._is_top
        flipped = self._outs >= 2 and state.outs == 0 and side_changed

        self._outs = state.outs
        self._inning = state.inning
        self._is_top = state.is_top_inning

        if not flipped:
            return None
        batting = state.away_team if state.is_top_inning else state.home_team
        return HalfInningChange(
            inning=state.inning,
            is_top_inning=state.is_top_inning,
            batting_team=batting.name,
            away_score=state.away_team.score,
            home_score=state.home_team.score,
        )
