"""
Match Outcome Resolver.

resolve_match() is pure: it returns an updated copy of one match.
propagate_winner() / propagate_loser() are the narrow units that touch a
second match; they only fill an empty slot, or a slot this same match filled
earlier, and never overwrite anything else. A re-resolve that leaves no
winner withdraws what the match had propagated (withdraw_from()).
apply_result() combines both inside a MatchArena, under a per-fixture lock
when a registry is supplied.
"""
import logging
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from fixture_engine.exceptions import InvalidInputError, MissingScoresError, StaleResolveError
from fixture_engine.models.arena import MatchArena
from fixture_engine.models.match import (
    DECIDED_STATUSES,
    MATCH_CANCELLED,
    MATCH_COMPLETED,
    MATCH_IN_PROGRESS,
    MATCH_POSTPONED,
    MATCH_SCHEDULED,
    MATCH_STATUSES,
    MATCH_WALKOVER,
    Match,
    PenaltyShootout,
)
from fixture_engine.services.fixture_locks import FixtureLockRegistry

logger = logging.getLogger(__name__)

SIDE_HOME = "home"
SIDE_AWAY = "away"

RESOLVABLE_STATUSES = (MATCH_SCHEDULED, MATCH_IN_PROGRESS, MATCH_COMPLETED)

ALLOWED_TRANSITIONS = {
    MATCH_SCHEDULED: (MATCH_IN_PROGRESS, MATCH_COMPLETED, MATCH_CANCELLED, MATCH_POSTPONED, MATCH_WALKOVER),
    MATCH_IN_PROGRESS: (MATCH_COMPLETED, MATCH_CANCELLED, MATCH_POSTPONED),
    MATCH_POSTPONED: (MATCH_SCHEDULED, MATCH_CANCELLED),
    MATCH_COMPLETED: (MATCH_COMPLETED,),
    MATCH_CANCELLED: (),
    MATCH_WALKOVER: (),
}

ShootoutInput = Union[PenaltyShootout, Mapping[str, Any], None]


@dataclass
class ResolveOutcome:
    match: Match
    next_match: Optional[Match] = None
    third_place_match: Optional[Match] = None


def _coerce_shootout(penalty_shootout: ShootoutInput) -> Optional[PenaltyShootout]:
    if penalty_shootout is None or isinstance(penalty_shootout, PenaltyShootout):
        return penalty_shootout
    home = penalty_shootout.get("home_score", penalty_shootout.get("homeScore"))
    away = penalty_shootout.get("away_score", penalty_shootout.get("awayScore"))
    try:
        return PenaltyShootout(home_score=home, away_score=away)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid penalty shootout: {exc}") from exc


def determine_outcome(
    home_score: Optional[int],
    away_score: Optional[int],
    penalty_shootout: ShootoutInput = None,
) -> Optional[str]:
    """Winning side ("home"/"away"), or None for an undecided tie."""
    if home_score is None or away_score is None:
        raise MissingScoresError("Both home and away scores are required")
    if home_score > away_score:
        return SIDE_HOME
    if away_score > home_score:
        return SIDE_AWAY

    shootout = _coerce_shootout(penalty_shootout)
    if shootout is None:
        return None
    if shootout.home_score == shootout.away_score:
        raise InvalidInputError(
            f"Penalty shootout cannot end level ({shootout.home_score}-{shootout.away_score})"
        )
    return SIDE_HOME if shootout.home_score > shootout.away_score else SIDE_AWAY


def _apply_side(match: Match, side: Optional[str]) -> None:
    if side == SIDE_HOME:
        match.winner, match.loser = match.home_participant, match.away_participant
        match.winner_partner, match.loser_partner = match.home_partner, match.away_partner
    elif side == SIDE_AWAY:
        match.winner, match.loser = match.away_participant, match.home_participant
        match.winner_partner, match.loser_partner = match.away_partner, match.home_partner
    else:
        match.winner = match.loser = None
        match.winner_partner = match.loser_partner = None


def resolve_match(
    match: Match,
    home_score: Optional[int],
    away_score: Optional[int],
    penalty_shootout: ShootoutInput = None,
) -> Match:
    """Return a completed copy of *match* with winner/loser (and partners) set.

    A level score without a shootout leaves the winner unset. Re-resolving a
    completed match with the same scores yields the same outcome.
    """
    if home_score is None or away_score is None:
        raise MissingScoresError(f"Match {match.id} needs both scores to be resolved")
    if home_score < 0 or away_score < 0:
        raise InvalidInputError(f"Match {match.id}: scores cannot be negative")
    if match.status not in RESOLVABLE_STATUSES:
        raise InvalidInputError(f"Match {match.id} is {match.status} and cannot be resolved")
    if not match.has_both_sides:
        raise InvalidInputError(f"Match {match.id} does not have both participants yet")

    shootout = _coerce_shootout(penalty_shootout)
    side = determine_outcome(home_score, away_score, shootout)

    resolved = match.model_copy(deep=True)
    resolved.home_score = home_score
    resolved.away_score = away_score
    resolved.penalty_shootout = shootout
    resolved.status = MATCH_COMPLETED
    _apply_side(resolved, side)

    if side is None and resolved.next_match_id is not None:
        logger.warning(
            "Match %s ended level %d-%d without a shootout; winner cannot advance",
            resolved.id, home_score, away_score,
        )
    return resolved


def declare_walkover(match: Match, winner: Any) -> Match:
    """Award *match* to *winner* without play (no-show or bye)."""
    if match.status not in (MATCH_SCHEDULED, MATCH_POSTPONED, MATCH_WALKOVER):
        raise InvalidInputError(f"Match {match.id} is {match.status}; walkover not allowed")
    if winner is None or not match.involves(winner):
        raise InvalidInputError(f"{winner!r} is not a participant of match {match.id}")

    awarded = match.model_copy(deep=True)
    awarded.status = MATCH_WALKOVER
    awarded.home_score = awarded.away_score = None
    _apply_side(awarded, SIDE_HOME if winner == match.home_participant else SIDE_AWAY)
    return awarded


def transition_status(match: Match, new_status: str) -> Match:
    """Return a copy of *match* moved to *new_status* if the move is allowed."""
    if new_status not in MATCH_STATUSES:
        raise InvalidInputError(f"Invalid match status: {new_status}")
    allowed = ALLOWED_TRANSITIONS.get(match.status, ())
    if new_status != match.status and new_status not in allowed:
        raise InvalidInputError(f"Cannot move match {match.id} from {match.status} to {new_status}")
    if new_status == MATCH_COMPLETED and match.status != MATCH_COMPLETED:
        raise InvalidInputError("Use resolve_match() to complete a match")
    if new_status == MATCH_WALKOVER and match.status != MATCH_WALKOVER:
        raise InvalidInputError("Use declare_walkover() to award a walkover")
    moved = match.model_copy(deep=True)
    moved.status = new_status
    return moved


def _guard_slot(target: Match, side: str, source_match_id: str) -> None:
    """A slot can no longer change once its match has started or been decided."""
    if target.status in DECIDED_STATUSES or target.status == MATCH_IN_PROGRESS:
        current = getattr(target, f"{side}_participant")
        raise StaleResolveError(
            f"Match {target.id} already {target.status} with {current!r} from match {source_match_id}",
            match_id=source_match_id,
            next_match_id=target.id,
        )


def _place(
    target: Match,
    participant: Any,
    partner: Any,
    source_match_id: str,
) -> str:
    """Put *participant* into *target*; returns the slot used."""
    # Slot this source filled before: idempotent, or corrected on re-resolve
    for side in (SIDE_HOME, SIDE_AWAY):
        if getattr(target, f"{side}_source_match_id") != source_match_id:
            continue
        current = getattr(target, f"{side}_participant")
        if current != participant:
            _guard_slot(target, side, source_match_id)
            logger.info(
                "Match %s %s slot: %r replaced by %r after re-resolve of match %s",
                target.id, side, current, participant, source_match_id,
            )
        setattr(target, f"{side}_participant", participant)
        setattr(target, f"{side}_partner", partner)
        return side

    for side in (SIDE_HOME, SIDE_AWAY):
        if getattr(target, f"{side}_participant") is None:
            setattr(target, f"{side}_participant", participant)
            setattr(target, f"{side}_partner", partner)
            setattr(target, f"{side}_source_match_id", source_match_id)
            return side

    raise StaleResolveError(
        f"Match {target.id} has no open slot for match {source_match_id}",
        match_id=source_match_id,
        next_match_id=target.id,
    )


def withdraw_from(target: Match, source_match_id: str) -> bool:
    """Empty every slot of *target* that *source_match_id* filled.

    Used when a re-resolve leaves the source without a winner (or loser).
    Returns True when a slot was cleared.
    """
    cleared = False
    for side in (SIDE_HOME, SIDE_AWAY):
        if getattr(target, f"{side}_source_match_id") != source_match_id:
            continue
        if getattr(target, f"{side}_participant") is not None:
            _guard_slot(target, side, source_match_id)
            logger.info(
                "Match %s %s slot: %r withdrawn after re-resolve of match %s",
                target.id, side, getattr(target, f"{side}_participant"), source_match_id,
            )
        setattr(target, f"{side}_participant", None)
        setattr(target, f"{side}_partner", None)
        setattr(target, f"{side}_source_match_id", None)
        cleared = True
    return cleared


def propagate_winner(match: Match, next_match: Match) -> Match:
    """Advance the winner of *match* into *next_match* (mutated and returned)."""
    if match.winner is None:
        raise InvalidInputError(f"Match {match.id} has no winner to advance")
    if match.next_match_id != next_match.id:
        raise InvalidInputError(f"Match {match.id} does not feed match {next_match.id}")
    side = _place(next_match, match.winner, match.winner_partner, match.id)
    logger.debug("Advanced %r from match %s into match %s (%s)", match.winner, match.id, next_match.id, side)
    return next_match


def propagate_loser(match: Match, third_place_match: Match) -> Match:
    """Send the loser of a semifinal into the third-place match."""
    if not third_place_match.is_third_place_match:
        raise InvalidInputError(f"Match {third_place_match.id} is not a third-place match")
    if match.loser is None:
        raise InvalidInputError(f"Match {match.id} has no loser to send to the third-place match")
    _place(third_place_match, match.loser, match.loser_partner, match.id)
    return third_place_match


def _feeds_final(next_match: Optional[Match]) -> bool:
    return (
        next_match is not None
        and next_match.next_match_id is None
        and not next_match.is_third_place_match
    )


def _propagate_and_commit(arena: MatchArena, decided: Match) -> ResolveOutcome:
    outcome = ResolveOutcome(match=decided)

    next_match = arena.find(decided.next_match_id)
    if next_match is not None:
        target = next_match.model_copy(deep=True)
        if decided.winner is not None:
            outcome.next_match = propagate_winner(decided, target)
        elif withdraw_from(target, decided.id):
            outcome.next_match = target

    third = arena.third_place_match()
    if third is not None and _feeds_final(next_match):
        target = third.model_copy(deep=True)
        if decided.loser is not None:
            outcome.third_place_match = propagate_loser(decided, target)
        elif withdraw_from(target, decided.id):
            outcome.third_place_match = target

    # Nothing is written until every step above succeeded
    arena.put(outcome.match)
    if outcome.next_match is not None:
        arena.put(outcome.next_match)
    if outcome.third_place_match is not None:
        arena.put(outcome.third_place_match)
    return outcome


def apply_result(
    arena: MatchArena,
    match_id: str,
    home_score: Optional[int],
    away_score: Optional[int],
    penalty_shootout: ShootoutInput = None,
    locks: Optional[FixtureLockRegistry] = None,
) -> ResolveOutcome:
    """Resolve one match of *arena* and propagate it as a single unit of work."""
    fixture_id = arena.get(match_id).fixture_id
    guard = locks.hold(fixture_id) if locks is not None else nullcontext()
    with guard:
        resolved = resolve_match(arena.get(match_id), home_score, away_score, penalty_shootout)
        outcome = _propagate_and_commit(arena, resolved)

    logger.info(
        "Match %s resolved %d-%d, winner=%r",
        resolved.id, home_score, away_score, resolved.winner,
    )
    return outcome


def apply_walkover(
    arena: MatchArena,
    match_id: str,
    winner: Any,
    locks: Optional[FixtureLockRegistry] = None,
) -> ResolveOutcome:
    """Award a walkover inside *arena* and advance the winner."""
    fixture_id = arena.get(match_id).fixture_id
    guard = locks.hold(fixture_id) if locks is not None else nullcontext()
    with guard:
        awarded = declare_walkover(arena.get(match_id), winner)
        outcome = _propagate_and_commit(arena, awarded)
    logger.info("Match %s awarded to %r by walkover", awarded.id, winner)
    return outcome
