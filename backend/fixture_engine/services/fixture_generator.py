"""
Fixture generation entry point.

caller -> validate -> Pairing Arranger -> Knockout Builder | Round-Robin Scheduler
-> GenerationResult (matches + avoidance report) for the caller to persist.

Avoidance policy:
- knockout: round-1 teammates are re-paired best effort; forced pairings are
  reported (or raise ConstraintInfeasibleError when strict_avoidance is on).
- round-robin: teammate pairs are dropped from every cycle; only a participant
  left without any match is treated as infeasible.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from fixture_engine.config import default_rng
from fixture_engine.exceptions import ConstraintInfeasibleError, InvalidInputError
from fixture_engine.models.arena import MatchArena
from fixture_engine.models.fixture_settings import (
    FIXTURE_FORMATS,
    FORMAT_KNOCKOUT,
    FORMAT_ROUND_ROBIN,
    FixtureSettings,
)
from fixture_engine.models.match import MATCH_CANCELLED, MATCH_COMPLETED, MATCH_IN_PROGRESS, Match
from fixture_engine.models.types import IdFactory, TeamMap
from fixture_engine.services.knockout_builder import build_knockout, real_first_round_matches
from fixture_engine.services.pairing_arranger import (
    PairingConflict,
    arrange,
    balance_by_skill_levels,
)
from fixture_engine.services.round_robin_scheduler import build_round_robin, skipped_same_team_pairs

logger = logging.getLogger(__name__)

SettingsInput = Union[FixtureSettings, Mapping[str, Any], None]

PLAYED_STATUSES = (MATCH_COMPLETED, MATCH_IN_PROGRESS)


@dataclass
class GenerationResult:
    fixture_format: str
    matches: List[Match]
    ordered: List[Any]
    feasible: bool = True
    conflicts: List[PairingConflict] = field(default_factory=list)
    skipped_pairs: List[Tuple[Any, Any]] = field(default_factory=list)

    def arena(self) -> MatchArena:
        return MatchArena(self.matches)


def validate_participants(participants: Sequence[Any], minimum: int = 2) -> None:
    if not participants:
        raise InvalidInputError("Participant list is empty")
    if len(participants) < minimum:
        raise InvalidInputError(
            f"At least {minimum} participants are required, got {len(participants)}"
        )
    seen = set()
    for participant in participants:
        if participant is None:
            raise InvalidInputError("Participant IDs cannot be None")
        if participant in seen:
            raise InvalidInputError(f"Duplicate participant: {participant!r}")
        seen.add(participant)


def _coerce_settings(settings: SettingsInput) -> FixtureSettings:
    if isinstance(settings, FixtureSettings):
        return settings
    return FixtureSettings.from_payload(settings)


def _base_order(
    participants: Sequence[Any],
    settings: FixtureSettings,
    ratings: Optional[Mapping[Any, float]],
) -> Tuple[List[Any], bool]:
    """Starting order and whether it should still be shuffled."""
    if settings.balance_skill_levels and ratings:
        return balance_by_skill_levels(participants, ratings), False
    return list(participants), settings.randomize_seeds


def generate_fixture(
    participants: Sequence[Any],
    fixture_format: str,
    settings: SettingsInput = None,
    team_map: Optional[TeamMap] = None,
    *,
    fixture_id: Optional[str] = None,
    ratings: Optional[Mapping[Any, float]] = None,
    rng: Optional[random.Random] = None,
    id_factory: Optional[IdFactory] = None,
) -> GenerationResult:
    """Turn a participant list into the full match set for one fixture.

    Args:
        participants: Participant IDs (players or teams), in seed order.
        fixture_format: "knockout" or "roundrobin".
        settings: FixtureSettings or a settings dict (camelCase or snake_case).
        team_map: participant -> team for the event; None disables avoidance.
        fixture_id: Copied onto every match.
        ratings: participant -> rating, used when balance_skill_levels is on.
        rng: Seedable randomness for shuffling.
        id_factory: match_number -> match id; defaults to random hex IDs.

    Raises:
        InvalidInputError: bad participants, format or settings.
        ConstraintInfeasibleError: strict_avoidance and teammates could not be kept apart.
    """
    settings = _coerce_settings(settings)
    if fixture_format not in FIXTURE_FORMATS:
        raise InvalidInputError(
            f"Unknown fixture format {fixture_format!r}; expected one of {', '.join(FIXTURE_FORMATS)}"
        )
    validate_participants(participants)
    rng = rng or default_rng()
    base, randomize = _base_order(participants, settings, ratings)

    logger.info(
        "Generating %s fixture %s: participants=%d randomize_seeds=%s avoid_same_team=%s",
        fixture_format, fixture_id, len(participants), randomize, settings.avoid_same_team_first_round,
    )

    if fixture_format == FORMAT_KNOCKOUT:
        return _generate_knockout(base, randomize, settings, team_map, fixture_id, rng, id_factory)
    return _generate_round_robin(base, randomize, settings, team_map, fixture_id, rng, id_factory)


def _generate_knockout(
    base: List[Any],
    randomize: bool,
    settings: FixtureSettings,
    team_map: Optional[TeamMap],
    fixture_id: Optional[str],
    rng: random.Random,
    id_factory: Optional[IdFactory],
) -> GenerationResult:
    arranged = arrange(
        base,
        team_map,
        randomize=randomize,
        avoid_same_team=settings.avoid_same_team_first_round,
        pairs=real_first_round_matches(len(base)),
        rng=rng,
    )
    if not arranged.feasible and settings.strict_avoidance:
        raise ConstraintInfeasibleError(
            f"Cannot keep teammates apart in round 1: {len(arranged.conflicts)} forced pairing(s)",
            arranged.conflicts,
        )

    matches = build_knockout(
        arranged.ordered,
        settings,
        team_map=team_map,
        fixture_id=fixture_id,
        id_factory=id_factory,
    )
    return GenerationResult(
        fixture_format=FORMAT_KNOCKOUT,
        matches=matches,
        ordered=arranged.ordered,
        feasible=arranged.feasible,
        conflicts=arranged.conflicts,
    )


def _generate_round_robin(
    base: List[Any],
    randomize: bool,
    settings: FixtureSettings,
    team_map: Optional[TeamMap],
    fixture_id: Optional[str],
    rng: random.Random,
    id_factory: Optional[IdFactory],
) -> GenerationResult:
    # Shuffled once per call, not per cycle; avoidance is applied by the scheduler
    arranged = arrange(base, None, randomize=randomize, avoid_same_team=False, rng=rng)
    avoid = settings.avoid_same_team_first_round
    skipped = skipped_same_team_pairs(arranged.ordered, team_map) if avoid else []

    matches = build_round_robin(
        arranged.ordered,
        settings.rounds,
        team_map,
        avoid,
        fixture_id=fixture_id,
        id_factory=id_factory,
    )

    scheduled = {p for m in matches for p in (m.home_participant, m.away_participant)}
    conflicts = []
    for p in arranged.ordered:
        if p in scheduled:
            continue
        team = team_map.get(p) if team_map else None
        conflicts.append(PairingConflict(
            home=p,
            away=None,
            team=team,
            reason=f"{p!r} has no opponent outside team {team!r}",
        ))
    if conflicts:
        if settings.strict_avoidance:
            raise ConstraintInfeasibleError(
                f"{len(conflicts)} participant(s) would play no round-robin matches", conflicts
            )
        for conflict in conflicts:
            logger.warning("Round-robin: %s", conflict.reason)

    return GenerationResult(
        fixture_format=FORMAT_ROUND_ROBIN,
        matches=matches,
        ordered=arranged.ordered,
        feasible=not conflicts,
        conflicts=conflicts,
        skipped_pairs=skipped,
    )


def regenerate_knockout(
    existing_matches: Sequence[Match],
    participants: Sequence[Any],
    settings: SettingsInput = None,
    team_map: Optional[TeamMap] = None,
    *,
    fixture_id: Optional[str] = None,
    rng: Optional[random.Random] = None,
    id_factory: Optional[IdFactory] = None,
) -> GenerationResult:
    """Re-draw a knockout bracket with fresh randomization.

    Refused once any match is in progress or completed. The caller replaces
    the stored matches with the returned set.
    """
    played = [m for m in existing_matches if m.status in PLAYED_STATUSES]
    if played:
        raise InvalidInputError(
            f"Cannot regenerate a fixture with matches already played ({len(played)} match(es))"
        )
    if fixture_id is None:
        fixture_id = next((m.fixture_id for m in existing_matches if m.fixture_id is not None), None)

    forced = _coerce_settings(settings).model_copy(
        update={"randomize_seeds": True, "balance_skill_levels": False}
    )
    logger.info("Regenerating knockout fixture %s with forced randomization", fixture_id)
    return generate_fixture(
        participants,
        FORMAT_KNOCKOUT,
        forced,
        team_map,
        fixture_id=fixture_id,
        rng=rng,
        id_factory=id_factory,
    )


def cancel_fixture(matches: Sequence[Match]) -> List[Match]:
    """Copies of every match with status cancelled."""
    cancelled = []
    for match in matches:
        copy = match.model_copy(deep=True)
        copy.status = MATCH_CANCELLED
        cancelled.append(copy)
    logger.info("Cancelled %d match(es)", len(cancelled))
    return cancelled


def summarize(result: GenerationResult) -> Dict[str, Any]:
    """Small report for operators (counts per round, avoidance status)."""
    per_round: Dict[int, int] = {}
    for match in result.matches:
        per_round[match.round_number] = per_round.get(match.round_number, 0) + 1
    return {
        "format": result.fixture_format,
        "matches": len(result.matches),
        "matches_per_round": per_round,
        "feasible": result.feasible,
        "conflicts": [c.reason for c in result.conflicts],
        "skipped_pairs": len(result.skipped_pairs),
    }
