"""
Knockout Bracket Builder: single elimination tree with byes.

Round 1 holds only the real matches; bye receivers (the tail of the ordered
list) are seeded straight into the round-2 slots that no round-1 match feeds.
Every match in round r at index i feeds round r+1 match i // 2.
"""

import logging
import math
from typing import List, Optional, Sequence

from fixture_engine.exceptions import ConstraintInfeasibleError, InvalidInputError
from fixture_engine.models.fixture_settings import FixtureSettings
from fixture_engine.models.match import MATCH_SCHEDULED, MATCH_WALKOVER, Match
from fixture_engine.models.types import IdFactory, ParticipantId, TeamMap
from fixture_engine.services.outcome_resolver import propagate_winner
from fixture_engine.services.pairing_arranger import find_same_team_pairs
from fixture_engine.utils.ids import resolve_id_factory

logger = logging.getLogger(__name__)


def calculate_bracket_size(num_participants: int) -> int:
    """Next power of two (0 for an empty field)."""
    if num_participants <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_participants))


def calculate_byes(num_participants: int) -> int:
    return calculate_bracket_size(num_participants) - num_participants


def calculate_total_rounds(num_participants: int) -> int:
    bracket_size = calculate_bracket_size(num_participants)
    if bracket_size <= 1:
        return 0
    return int(math.log2(bracket_size))


def real_first_round_matches(num_participants: int) -> int:
    return (num_participants - calculate_byes(num_participants)) // 2


def round_label(round_number: int, total_rounds: int) -> str:
    """Display name for a knockout round, e.g. 'Final', 'Semifinal'."""
    remaining = 2 ** (total_rounds - round_number + 1)
    if remaining == 2:
        return "Final"
    elif remaining == 4:
        return "Semifinal"
    elif remaining == 8:
        return "Quarterfinal"
    return f"Round of {remaining}"


def build_knockout(
    ordered: Sequence[ParticipantId],
    settings: Optional[FixtureSettings] = None,
    *,
    team_map: Optional[TeamMap] = None,
    fixture_id: Optional[str] = None,
    id_factory: Optional[IdFactory] = None,
) -> List[Match]:
    """Build every match of a single-elimination bracket.

    ``ordered`` is consumed positionally (see pairing_arranger). Returns the
    matches in generation order: round 1 first, the final last, then the
    optional third-place match.
    """
    settings = settings or FixtureSettings()
    n = len(ordered)
    if n < 2:
        raise InvalidInputError(f"Knockout requires at least 2 participants, got {n}")

    make_id = resolve_id_factory(id_factory)
    bracket_size = calculate_bracket_size(n)
    byes = bracket_size - n
    first_round_count = (n - byes) // 2
    total_rounds = int(math.log2(bracket_size))

    logger.info(
        "Building knockout bracket: participants=%d bracket_size=%d byes=%d rounds=%d",
        n, bracket_size, byes, total_rounds,
    )

    rounds: List[List[Match]] = []
    match_number = 1

    # Round 1: real matches only
    first_round: List[Match] = []
    for i in range(first_round_count):
        home_index = i * 2
        away_index = i * 2 + 1
        match = Match(
            id=make_id(match_number),
            fixture_id=fixture_id,
            round_number=1,
            match_number=match_number,
            status=MATCH_SCHEDULED,
        )
        if home_index < n:
            match.home_participant = ordered[home_index]
        if away_index < n:
            match.away_participant = ordered[away_index]

        if (match.home_participant is None) != (match.away_participant is None):
            sole = match.home_participant if match.home_participant is not None else match.away_participant
            match.winner = sole
            match.status = MATCH_WALKOVER

        logger.debug(
            "Round 1, Match %d: %s vs %s",
            i + 1,
            match.home_participant if match.home_participant is not None else "BYE",
            match.away_participant if match.away_participant is not None else "BYE",
        )
        first_round.append(match)
        match_number += 1
    rounds.append(first_round)

    # Rounds 2..final: empty shells
    for round_number in range(2, total_rounds + 1):
        matches_in_round = 2 ** (total_rounds - round_number)
        shells = []
        for _ in range(matches_in_round):
            shells.append(Match(
                id=make_id(match_number),
                fixture_id=fixture_id,
                round_number=round_number,
                match_number=match_number,
                status=MATCH_SCHEDULED,
            ))
            match_number += 1
        rounds.append(shells)

    _link_rounds(rounds)

    if byes:
        _seed_byes(rounds[1], list(ordered[first_round_count * 2:]))

    if settings.avoid_same_team_first_round and team_map:
        _validate_first_round(first_round, team_map, settings.strict_avoidance)

    all_matches = [m for round_matches in rounds for m in round_matches]
    advance_walkovers(all_matches)

    if settings.third_place_match:
        # Needs two played semifinals, so both final slots must come from a match
        final = rounds[-1][0]
        if len(final.previous_match_ids) == 2:
            all_matches.append(Match(
                id=make_id(match_number),
                fixture_id=fixture_id,
                round_number=total_rounds,
                match_number=match_number,
                status=MATCH_SCHEDULED,
                is_third_place_match=True,
            ))
        else:
            logger.warning("Third-place match skipped: a %d-participant bracket has no two semifinals", n)

    return all_matches


def _link_rounds(rounds: List[List[Match]]) -> None:
    for round_index in range(len(rounds) - 1):
        next_round = rounds[round_index + 1]
        for i, match in enumerate(rounds[round_index]):
            target = next_round[i // 2]
            match.next_match_id = target.id
            target.previous_match_ids.append(match.id)


def _seed_byes(second_round: List[Match], bye_receivers: List[ParticipantId]) -> None:
    """Fill round-2 slots that no round-1 match feeds, in order, home before away."""
    queue = list(bye_receivers)
    for match in second_round:
        open_slots = 2 - len(match.previous_match_ids)
        # A fed slot is taken by the feeder's winner at home first, so byes go away
        slots = ["home", "away"][2 - open_slots:]
        for slot in slots:
            if not queue:
                return
            participant = queue.pop(0)
            setattr(match, f"{slot}_participant", participant)
            logger.debug("Bye: %s seeded into round 2 match %d (%s)", participant, match.match_number, slot)


def _validate_first_round(
    first_round: List[Match], team_map: TeamMap, strict: bool
) -> None:
    conflicts = find_same_team_pairs(
        [(m.home_participant, m.away_participant) for m in first_round], team_map
    )
    if not conflicts:
        return
    if strict:
        raise ConstraintInfeasibleError(
            f"{len(conflicts)} round-1 match(es) pair teammates", conflicts
        )
    for conflict in conflicts:
        logger.warning("Round 1 same-team pairing: %s", conflict.reason)


def advance_walkovers(matches: Sequence[Match]) -> int:
    """Push walkover winners into their next match. Returns slots filled."""
    by_id = {m.id: m for m in matches}
    advanced = 0
    for match in matches:
        if match.status != MATCH_WALKOVER or match.winner is None:
            continue
        target = by_id.get(match.next_match_id) if match.next_match_id else None
        if target is None:
            continue
        if target.involves(match.winner):
            continue
        propagate_winner(match, target)
        advanced += 1
    return advanced
