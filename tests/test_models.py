# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0", "pytest>=7.0"]
# ///
"""Tests for the scorebook data models.

Validates:
  1. GameState defaults and range invariants
  2. Document (camelCase) round trips and legacy field names
  3. PlayEvent document form
  4. Player and Roster helpers
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from pydantic import ValidationError

from models import (
    BatterStat,
    GameState,
    PitchType,
    PlayEvent,
    Player,
    Roster,
    RosterSide,
    TeamState,
    default_game_state,
    team_field,
)


# -----------------------------------------------------------------------
# GameState
# -----------------------------------------------------------------------


class TestGameState:
    def test_defaults(self):
        state = default_game_state("Tigers", "Hawks")
        assert state.home_team == TeamState(name="Tigers")
        assert state.away_team == TeamState(name="Hawks")
        assert state.inning == 1
        assert state.is_top_inning is True
        assert (state.balls, state.strikes, state.outs) == (0, 0, 0)
        assert not (state.on_first or state.on_second or state.on_third)
        assert state.last_play == ""
        assert state.is_active is True
        assert state.pitch_count == 0
        assert state.batter_stats == {}

    def test_default_names(self):
        state = default_game_state()
        assert state.home_team.name == "Home"
        assert state.away_team.name == "Away"

    @pytest.mark.parametrize("field,value", [
        ("balls", 4), ("strikes", 3), ("outs", 3),
        ("balls", -1), ("inning", 0), ("pitch_count", -1),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            GameState(**{field: value})

    def test_negative_team_totals_rejected(self):
        with pytest.raises(ValidationError):
            TeamState(name="Tigers", score=-1)

    def test_frozen(self):
        state = GameState()
        with pytest.raises(ValidationError):
            state.balls = 2

    def test_batting_and_fielding_sides(self):
        top = GameState(is_top_inning=True)
        bottom = GameState(is_top_inning=False)
        assert top.batting_side == RosterSide.AWAY
        assert top.fielding_side == RosterSide.HOME
        assert bottom.batting_side == RosterSide.HOME
        assert bottom.fielding_side == RosterSide.AWAY

    def test_team_lookup(self):
        state = default_game_state("Tigers", "Hawks")
        assert state.team("home").name == "Tigers"
        assert state.team(RosterSide.AWAY).name == "Hawks"
        assert team_field("home") == "home_team"
        assert team_field(RosterSide.AWAY) == "away_team"

    def test_bases_string(self):
        assert GameState(on_first=True, on_third=True).bases_string() == "101"
        assert GameState().bases_string() == "000"


# -----------------------------------------------------------------------
# Document form
# -----------------------------------------------------------------------


class TestDocuments:
    def test_document_uses_camel_case(self):
        state = GameState(batter_stats={"p1": BatterStat(at_bats=3, hits=1)})
        doc = state.to_document()
        for key in ("homeTeam", "awayTeam", "isTopInning", "onFirst", "lastPlay",
                    "isActive", "pitchCount", "batterStats"):
            assert key in doc
        assert doc["batterStats"] == {"p1": {"atBats": 3, "hits": 1}}

    def test_document_round_trip(self):
        state = GameState(inning=3, outs=2, on_second=True, last_play="Double",
                          batter_stats={"p1": BatterStat(at_bats=2, hits=2)})
        assert GameState.model_validate(state.to_document()) == state

    def test_snake_case_accepted(self):
        assert GameState.model_validate({"is_top_inning": False}).is_top_inning is False

    def test_legacy_document_without_new_fields(self):
        doc = {
            "homeTeam": {"name": "Tigers", "score": 2, "hits": 4, "errors": 0},
            "awayTeam": {"name": "Hawks", "score": 1, "hits": 2, "errors": 1},
            "inning": 4,
            "isTopInning": False,
            "balls": 1,
            "strikes": 0,
            "outs": 1,
            "onFirst": False,
            "onSecond": False,
            "onThird": False,
            "lastPlay": "Single",
            "isActive": True,
            "updatedAt": 1700000000.0,
        }
        state = GameState.model_validate(doc)
        assert state.pitch_count == 0
        assert state.batter_stats == {}
        assert state.home_team.score == 2

    def test_legacy_at_bat_key(self):
        stat = BatterStat.model_validate({"ab": 4, "hits": 2})
        assert stat.at_bats == 4
        assert stat.model_dump(by_alias=True) == {"atBats": 4, "hits": 2}


# -----------------------------------------------------------------------
# PlayEvent
# -----------------------------------------------------------------------


class TestPlayEvent:
    def test_document_omits_store_fields(self):
        event = PlayEvent(id="abc", inning=2, is_top_inning=True, result="Ball",
                          pitch_type=PitchType.CURVEBALL, timestamp=12.5,
                          prev_game_state=GameState().to_document())
        doc = event.to_document()
        assert "id" not in doc
        assert "timestamp" not in doc
        assert "batterName" not in doc
        assert doc["pitchType"] == "Curveball"
        assert doc["prevGameState"]["inning"] == 1

    def test_legacy_event_without_snapshot(self):
        event = PlayEvent.model_validate({"inning": 1, "isTopInning": True, "result": "Out"})
        assert event.prev_game_state is None
        assert event.on_first is False

    def test_unknown_pitch_type_rejected(self):
        with pytest.raises(ValidationError):
            PlayEvent(inning=1, is_top_inning=True, result="Ball", pitch_type="Knuckleball")


# -----------------------------------------------------------------------
# Roster
# -----------------------------------------------------------------------


class TestRoster:
    def test_player_number_kept_as_string(self):
        assert Player(id="p1", name="Sam", number="00").number == "00"

    def test_player_requires_id(self):
        with pytest.raises(ValidationError):
            Player(id="", name="Sam")

    def test_side_lookup(self):
        roster = Roster(home=[Player(id="h1", name="A")], away=[Player(id="a1", name="B")])
        assert roster.side("home")[0].id == "h1"
        assert roster.side(RosterSide.AWAY)[0].id == "a1"
        with pytest.raises(ValueError):
            roster.side("visitors")
