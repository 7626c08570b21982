"""
Round-Robin Scheduler: every pair, once per cycle.

Same-team avoidance applies to every cycle and drops the pair outright
(no substitute pairing), so teammates end up with fewer matches.
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from fixture_engine.exceptions import InvalidInputError
from fixture_engine.models.match import MATCH_SCHEDULED, Match
from fixture_engine.models.types import IdFactory, TeamMap
from fixture_engine.utils.ids import resolve_id_factory

logger = logging.getLogger(__name__)


def round_robin_match_count(num_participants: int, rounds: int = 1) -> int:
    """Match count without avoidance: rounds * n * (n - 1) / 2."""
    return rounds * (num_participants * (num_participants - 1)) // 2


def all_pairs(participants: Sequence[Any]) -> List[Tuple[Any, Any]]:
    pairs = []
    for i in range(len(participants)):
        for j in range(i + 1, len(participants)):
            pairs.append((participants[i], participants[j]))
    return pairs


def skipped_same_team_pairs(
    participants: Sequence[Any], team_map: Optional[TeamMap]
) -> List[Tuple[Any, Any]]:
    """Pairs one cycle drops because both sides share a team."""
    if not team_map:
        return []
    return [
        (a, b) for a, b in all_pairs(participants)
        if team_map.get(a) is not None and team_map.get(a) == team_map.get(b)
    ]


def build_round_robin(
    participants: Sequence[Any],
    rounds: int = 1,
    team_map: Optional[TeamMap] = None,
    avoid_same_team: bool = True,
    *,
    fixture_id: Optional[str] = None,
    id_factory: Optional[IdFactory] = None,
) -> List[Match]:
    """Generate the full schedule; ``round_number`` is the cycle index."""
    if len(participants) < 2:
        raise InvalidInputError(f"Round-robin requires at least 2 participants, got {len(participants)}")
    if rounds < 1:
        raise InvalidInputError(f"rounds must be >= 1, got {rounds}")

    make_id = resolve_id_factory(id_factory)
    skipped = set(skipped_same_team_pairs(participants, team_map)) if avoid_same_team else set()

    matches: List[Match] = []
    match_number = 1
    for cycle in range(1, rounds + 1):
        for home, away in all_pairs(participants):
            if (home, away) in skipped:
                continue
            matches.append(Match(
                id=make_id(match_number),
                fixture_id=fixture_id,
                round_number=cycle,
                match_number=match_number,
                home_participant=home,
                away_participant=away,
                status=MATCH_SCHEDULED,
            ))
            match_number += 1

    if skipped:
        logger.warning(
            "Round-robin: %d same-team pair(s) skipped per cycle (%d cycle(s))",
            len(skipped), rounds,
        )
    logger.info(
        "Built round-robin schedule: participants=%d cycles=%d matches=%d",
        len(participants), rounds, len(matches),
    )
    return matches
