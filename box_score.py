# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Box score built from the live GameState and its play log.

Runs per half-inning are not stored anywhere; they are recovered from the
play descriptions the engine writes ("Double — 2 Runs Scored",
"Walk — Run Forced In", "Run Scored").  Totals (R/H/E) come from the
GameState itself.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from models import BatterStat, GameState, PlayEvent, Player
from play_log import ordinal

MIN_INNINGS = 9

_RUNS_SCORED = re.compile(r"(\d+) Runs? Scored")


def runs_in_result(result: str) -> int:
    """Return the runs a logged play description reports."""
    m = _RUNS_SCORED.search(result)
    if m:
        return int(m.group(1))
    if "Run Forced In" in result or result == "Run Scored":
        return 1
    return 0


def compute_linescore(events: list[PlayEvent]) -> dict[tuple[int, bool], int]:
    """Map ``(inning, is_top_inning)`` to runs scored in that half-inning."""
    linescore: dict[tuple[int, bool], int] = {}
    for event in events:
        runs = runs_in_result(event.result)
        if runs:
            key = (event.inning, event.is_top_inning)
            linescore[key] = linescore.get(key, 0) + runs
    return linescore


def _half_started(state: GameState, inning: int, is_top: bool) -> bool:
    if is_top:
        return inning <= state.inning
    return inning < state.inning or (inning == state.inning and not state.is_top_inning)


def batter_line(stat: BatterStat | None) -> str:
    """Format a batter's day, e.g. ``"2-for-3"``."""
    stat = stat or BatterStat()
    return f"{stat.hits}-for-{stat.at_bats}"


def generate_box_score(
    state: GameState,
    events: list[PlayEvent],
    lineups: Optional[dict[str, list[Player]]] = None,
) -> dict[str, Any]:
    """Generate the box score for a game in progress.

    Inning cells are ``None`` for half-innings that have not started yet.
    ``lineups`` (``{"home": [...], "away": [...]}``) adds batting lines.
    """
    innings = max(MIN_INNINGS, state.inning)
    linescore = compute_linescore(events)

    def team_box(side: str, is_top: bool) -> dict[str, Any]:
        team = state.team(side)
        inning_runs = []
        for n in range(1, innings + 1):
            runs = linescore.get((n, is_top))
            if runs is None and _half_started(state, n, is_top):
                runs = 0
            inning_runs.append(runs)

        box = {
            "team_name": team.name,
            "inning_runs": inning_runs,
            "R": team.score,
            "H": team.hits,
            "E": team.errors,
        }
        if lineups is not None:
            box["batting"] = [
                {
                    "player_id": p.id,
                    "name": p.name,
                    "number": p.number,
                    "AB": state.batter_stats.get(p.id, BatterStat()).at_bats,
                    "H": state.batter_stats.get(p.id, BatterStat()).hits,
                    "line": batter_line(state.batter_stats.get(p.id)),
                }
                for p in sorted(lineups.get(side, []), key=lambda p: p.order)
            ]
        return box

    return {
        "innings": innings,
        "current": {
            "inning": state.inning,
            "is_top_inning": state.is_top_inning,
            "label": f"{'Top' if state.is_top_inning else 'Bottom'} {ordinal(state.inning)}",
        },
        "away": team_box("away", True),
        "home": team_box("home", False),
    }


def format_box_score(box: dict[str, Any]) -> str:
    """Render a box score dict as fixed-width text."""
    lines = []
    header = f"{'Team':<20}"
    for i in range(1, box["innings"] + 1):
        header += f" {i:>3}"
    header += "  |   R   H   E"
    lines.append(header)
    lines.append("-" * len(header))

    for side in ("away", "home"):
        team = box[side]
        row = f"{team['team_name']:<20}"
        for r in team["inning_runs"]:
            row += f" {'-' if r is None else r:>3}"
        row += f"  | {team['R']:>3} {team['H']:>3} {team['E']:>3}"
        lines.append(row)

    for side in ("away", "home"):
        team = box[side]
        if not team.get("batting"):
            continue
        lines.append(f"\n{team['team_name']} Batting:")
        lines.append(f"  {'Name':<20} {'AB':>3} {'H':>3}")
        for b in team["batting"]:
            lines.append(f"  {b['name']:<20} {b['AB']:>3} {b['H']:>3}")

    return "\n".join(lines)
