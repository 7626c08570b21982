import pytest

from fixture_engine.exceptions import InvalidInputError
from fixture_engine.models.arena import MatchArena
from fixture_engine.models.fixture_settings import FixtureSettings
from fixture_engine.models.match import MATCH_COMPLETED, MATCH_WALKOVER, Match
from fixture_engine.services.knockout_builder import build_knockout


@pytest.fixture(name="arena")
def arena_fixture(ids):
    settings = FixtureSettings(randomize_seeds=False, third_place_match=True)
    return MatchArena(build_knockout(["p1", "p2", "p3", "p4", "p5", "p6"], settings, id_factory=ids))


def test_lookup(arena):
    assert len(arena) == 6
    assert "F1-M1" in arena
    assert arena.get("F1-M1").match_number == 1
    assert arena.find(None) is None
    assert arena.find("missing") is None
    with pytest.raises(InvalidInputError):
        arena.get("missing")


def test_iteration_in_match_order(arena):
    assert [m.match_number for m in arena] == list(range(1, 7))
    assert arena.matches()[0].id == "F1-M1"


def test_rounds(arena):
    assert arena.total_rounds == 3
    assert [m.id for m in arena.by_round(1)] == ["F1-M1", "F1-M2"]
    # Third-place match shares the final's round but is not part of it
    assert [m.id for m in arena.by_round(3)] == ["F1-M5"]


def test_final_and_third_place(arena):
    assert arena.final().id == "F1-M5"
    assert arena.third_place_match().id == "F1-M6"
    assert arena.champion() is None


def test_put_replaces(arena):
    final = arena.get("F1-M5").model_copy(update={
        "home_participant": "p1", "away_participant": "p5",
        "status": MATCH_COMPLETED, "winner": "p5", "loser": "p1",
    })
    arena.put(final)
    assert len(arena) == 6
    assert arena.champion() == "p5"


class TestMatchModel:
    def test_defaults(self):
        match = Match(round_number=1, match_number=1)
        assert len(match.id) == 32
        assert match.previous_match_ids == []
        assert match.has_both_sides is False
        assert match.is_decided is False

    def test_involves(self):
        match = Match(round_number=1, match_number=1, home_participant="p1")
        assert match.involves("p1")
        assert not match.involves("p2")
        assert not match.involves(None)

    def test_walkover_is_decided(self):
        match = Match(round_number=1, match_number=1, home_participant="p1",
                      status=MATCH_WALKOVER, winner="p1")
        assert match.is_decided is True

    def test_round_number_must_be_positive(self):
        with pytest.raises(ValueError):
            Match(round_number=0, match_number=1)
