# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0", "pytest>=7.0"]
# ///
"""Tests for roster documents and player lookups."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from models import Player, RosterSide
from roster import RosterBook, batting_order, find_player, pitcher_candidates
from store import MemoryDocumentStore, StoreError


def lineup(n: int, pitcher_at: tuple[int, ...] = (), no_position_at: tuple[int, ...] = ()) -> list[Player]:
    players = []
    for i in range(n):
        if i in pitcher_at:
            position = "P"
        elif i in no_position_at:
            position = None
        else:
            position = "C" if i == 0 else "OF"
        players.append(Player(id=f"p{i}", name=f"Player {i}", number=str(i), position=position, order=n - 1 - i))
    return players


@pytest.fixture
def book():
    return RosterBook(MemoryDocumentStore(), "g1", "test-org")


class TestRosterBook:
    def test_empty_roster(self, book):
        roster = book.get()
        assert roster.home == []
        assert roster.away == []

    def test_save_and_get(self, book):
        players = lineup(3)
        book.save(RosterSide.HOME, players)
        book.save("away", players[:1])
        roster = book.get()
        assert roster.home == players
        assert [p.id for p in roster.away] == ["p0"]

    def test_document_shape(self, book):
        book.save("home", [Player(id="h1", name="Ana", number="00")])
        doc = book.store.get_document("organizations/test-org/games/g1/roster/home")
        assert doc["players"] == [{"id": "h1", "name": "Ana", "number": "00", "order": 0}]
        assert "updatedAt" in doc

    def test_malformed_roster_raises_store_error(self, book):
        book.store.set_document("organizations/test-org/games/g1/roster/away", {"players": [{"name": "No Id"}]})
        with pytest.raises(StoreError):
            book.get()

    def test_subscribe_combines_sides(self, book):
        seen = []
        unsubscribe = book.subscribe(lambda r: seen.append((len(r.home), len(r.away))))
        book.save("home", lineup(2))
        book.save("away", lineup(4))
        unsubscribe()
        book.save("away", lineup(1))
        assert seen == [(0, 0), (0, 0), (2, 0), (2, 4)]


class TestLookups:
    def test_batting_order(self):
        assert [p.id for p in batting_order(lineup(3))] == ["p2", "p1", "p0"]

    def test_small_roster_everyone_pitches(self):
        players = lineup(5)
        assert len(pitcher_candidates(players)) == 5

    def test_large_roster_filters_pitchers(self):
        players = lineup(9, pitcher_at=(3, 7), no_position_at=(5,))
        assert [p.id for p in pitcher_candidates(players)] == ["p7", "p5", "p3"]

    def test_find_player(self):
        players = lineup(3)
        assert find_player(players, "p1").name == "Player 1"
        assert find_player(players, "missing") is None
        assert find_player(players, None) is None
