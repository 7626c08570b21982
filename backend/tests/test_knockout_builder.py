"""
Tests for the knockout bracket builder.
"""

import logging

import pytest

from fixture_engine.exceptions import ConstraintInfeasibleError, InvalidInputError
from fixture_engine.models.fixture_settings import FixtureSettings
from fixture_engine.models.match import MATCH_SCHEDULED, MATCH_WALKOVER, Match
from fixture_engine.services.knockout_builder import (
    advance_walkovers,
    build_knockout,
    calculate_bracket_size,
    calculate_byes,
    calculate_total_rounds,
    real_first_round_matches,
    round_label,
)


def _make_participants(n):
    return [f"p{i}" for i in range(1, n + 1)]


def _by_number(matches):
    return {m.match_number: m for m in matches}


class TestBracketMath:
    @pytest.mark.parametrize(
        "n,size,byes,rounds",
        [(2, 2, 0, 1), (3, 4, 1, 2), (5, 8, 3, 3), (8, 8, 0, 3), (9, 16, 7, 4)],
    )
    def test_sizes(self, n, size, byes, rounds):
        assert calculate_bracket_size(n) == size
        assert calculate_byes(n) == byes
        assert calculate_total_rounds(n) == rounds

    def test_empty_field(self):
        assert calculate_bracket_size(0) == 0
        assert calculate_total_rounds(0) == 0

    def test_real_first_round_matches(self):
        assert real_first_round_matches(5) == 1
        assert real_first_round_matches(6) == 2
        assert real_first_round_matches(7) == 3
        assert real_first_round_matches(8) == 4

    def test_round_labels(self):
        assert round_label(3, 3) == "Final"
        assert round_label(2, 3) == "Semifinal"
        assert round_label(1, 3) == "Quarterfinal"
        assert round_label(1, 4) == "Round of 16"


class TestBuildKnockout:
    def test_requires_two_participants(self, plain_settings):
        with pytest.raises(InvalidInputError):
            build_knockout(["p1"], plain_settings)
        with pytest.raises(InvalidInputError):
            build_knockout([], plain_settings)

    def test_two_participants_single_match(self, plain_settings, ids):
        matches = build_knockout(["p1", "p2"], plain_settings, id_factory=ids)
        assert len(matches) == 1
        final = matches[0]
        assert (final.home_participant, final.away_participant) == ("p1", "p2")
        assert final.round_number == 1
        assert final.next_match_id is None
        assert final.status == MATCH_SCHEDULED

    def test_power_of_two_has_no_byes(self, plain_settings, ids):
        matches = build_knockout(_make_participants(8), plain_settings, id_factory=ids)
        assert len(matches) == 7
        first_round = [m for m in matches if m.round_number == 1]
        assert len(first_round) == 4
        assert [(m.home_participant, m.away_participant) for m in first_round] == [
            ("p1", "p2"), ("p3", "p4"), ("p5", "p6"), ("p7", "p8"),
        ]
        later = [m for m in matches if m.round_number > 1]
        assert all(m.home_participant is None and m.away_participant is None for m in later)

    def test_five_participants_bye_placement(self, plain_settings, ids):
        matches = _by_number(build_knockout(_make_participants(5), plain_settings, id_factory=ids))
        assert len(matches) == 4

        m1 = matches[1]
        assert (m1.round_number, m1.home_participant, m1.away_participant) == (1, "p1", "p2")
        assert m1.next_match_id == "F1-M2"

        # Slot fed by M1 stays open at home; the first bye takes away
        m2 = matches[2]
        assert m2.round_number == 2
        assert m2.previous_match_ids == ["F1-M1"]
        assert (m2.home_participant, m2.away_participant) == (None, "p3")

        m3 = matches[3]
        assert m3.previous_match_ids == []
        assert (m3.home_participant, m3.away_participant) == ("p4", "p5")

        final = matches[4]
        assert final.round_number == 3
        assert final.previous_match_ids == ["F1-M2", "F1-M3"]
        assert final.next_match_id is None

    def test_seven_participants(self, plain_settings, ids):
        matches = _by_number(build_knockout(_make_participants(7), plain_settings, id_factory=ids))
        assert len(matches) == 6
        assert [matches[i].next_match_id for i in (1, 2, 3)] == ["F1-M4", "F1-M4", "F1-M5"]
        assert matches[4].previous_match_ids == ["F1-M1", "F1-M2"]
        assert (matches[4].home_participant, matches[4].away_participant) == (None, None)
        assert (matches[5].home_participant, matches[5].away_participant) == (None, "p7")
        assert matches[6].previous_match_ids == ["F1-M4", "F1-M5"]

    def test_three_participants_bye_goes_to_final(self, plain_settings, ids):
        matches = _by_number(build_knockout(["p1", "p2", "p3"], plain_settings, id_factory=ids))
        assert len(matches) == 2
        assert matches[1].next_match_id == "F1-M2"
        assert (matches[2].home_participant, matches[2].away_participant) == (None, "p3")

    def test_match_count_and_links(self, plain_settings):
        for n in range(2, 20):
            matches = build_knockout(_make_participants(n), plain_settings)
            ids = {m.id for m in matches}
            assert len(ids) == len(matches)
            roots = [m for m in matches if m.next_match_id is None]
            assert len(roots) == 1
            for m in matches:
                if m.next_match_id is not None:
                    assert m.next_match_id in ids
                assert len(m.previous_match_ids) <= 2
            placed = [
                p for m in matches for p in (m.home_participant, m.away_participant) if p is not None
            ]
            assert sorted(placed) == sorted(_make_participants(n))

    def test_fixture_id_copied(self, plain_settings):
        matches = build_knockout(_make_participants(6), plain_settings, fixture_id="fx-9")
        assert {m.fixture_id for m in matches} == {"fx-9"}

    def test_match_numbers_sequential(self, plain_settings):
        matches = build_knockout(_make_participants(6), plain_settings)
        assert [m.match_number for m in matches] == list(range(1, len(matches) + 1))


class TestThirdPlace:
    def test_added_after_final(self, ids):
        settings = FixtureSettings(randomize_seeds=False, third_place_match=True)
        matches = build_knockout(_make_participants(4), settings, id_factory=ids)
        assert len(matches) == 4
        third = matches[-1]
        assert third.is_third_place_match is True
        assert third.round_number == 2
        assert third.next_match_id is None
        assert third.home_participant is None and third.away_participant is None

    def test_skipped_without_semifinals(self, caplog):
        settings = FixtureSettings(randomize_seeds=False, third_place_match=True)
        with caplog.at_level(logging.WARNING):
            matches = build_knockout(["p1", "p2"], settings)
        assert len(matches) == 1
        assert not any(m.is_third_place_match for m in matches)
        assert "Third-place match skipped" in caplog.text

    def test_skipped_when_final_has_a_bye_side(self, caplog, ids):
        settings = FixtureSettings(randomize_seeds=False, third_place_match=True)
        with caplog.at_level(logging.WARNING):
            matches = build_knockout(["p1", "p2", "p3"], settings, id_factory=ids)
        assert len(matches) == 2
        assert matches[-1].previous_match_ids == ["F1-M1"]
        assert not any(m.is_third_place_match for m in matches)
        assert "Third-place match skipped" in caplog.text

    def test_created_when_both_finalists_play_in(self, ids):
        settings = FixtureSettings(randomize_seeds=False, third_place_match=True)
        matches = build_knockout(_make_participants(5), settings, id_factory=ids)
        assert matches[-1].is_third_place_match is True
        assert len(matches) == 5


class TestFirstRoundValidation:
    def test_strict_raises_on_teammates(self):
        settings = FixtureSettings(randomize_seeds=False, strict_avoidance=True)
        team_map = {"a1": "A", "a2": "A", "b1": "B", "b2": "B"}
        with pytest.raises(ConstraintInfeasibleError) as exc_info:
            build_knockout(["a1", "a2", "b1", "b2"], settings, team_map=team_map)
        assert len(exc_info.value.conflicts) == 2

    def test_lenient_logs_warning(self, caplog):
        settings = FixtureSettings(randomize_seeds=False, strict_avoidance=False)
        team_map = {"a1": "A", "a2": "A"}
        with caplog.at_level(logging.WARNING):
            matches = build_knockout(["a1", "a2", "b1", "b2"], settings, team_map=team_map)
        assert len(matches) == 3
        assert "same-team pairing" in caplog.text

    def test_avoidance_off_skips_check(self):
        settings = FixtureSettings(
            randomize_seeds=False, avoid_same_team_first_round=False, strict_avoidance=True
        )
        team_map = {"a1": "A", "a2": "A"}
        assert len(build_knockout(["a1", "a2"], settings, team_map=team_map)) == 1


class TestAdvanceWalkovers:
    def test_walkover_winner_moves_up(self):
        feeder = Match(id="w1", round_number=1, match_number=1, home_participant="p1",
                       status=MATCH_WALKOVER, winner="p1", next_match_id="w2")
        target = Match(id="w2", round_number=2, match_number=2, previous_match_ids=["w1"])
        assert advance_walkovers([feeder, target]) == 1
        assert target.home_participant == "p1"
        assert target.home_source_match_id == "w1"

    def test_already_placed_is_skipped(self):
        feeder = Match(id="w1", round_number=1, match_number=1, home_participant="p1",
                       status=MATCH_WALKOVER, winner="p1", next_match_id="w2")
        target = Match(id="w2", round_number=2, match_number=2, home_participant="p1")
        assert advance_walkovers([feeder, target]) == 0

    def test_ignores_scheduled_matches(self):
        m = Match(id="s1", round_number=1, match_number=1, home_participant="p1",
                  away_participant="p2", next_match_id="s2")
        target = Match(id="s2", round_number=2, match_number=2)
        assert advance_walkovers([m, target]) == 0
        assert target.home_participant is None
