"""Bracket and schedule generation engine for knockout and round-robin fixtures."""

from fixture_engine.exceptions import (
    ConstraintInfeasibleError,
    FixtureEngineError,
    InvalidInputError,
    MissingScoresError,
    StaleResolveError,
)
from fixture_engine.models import FixtureSettings, Match, MatchArena, PenaltyShootout
from fixture_engine.services.fixture_generator import (
    GenerationResult,
    cancel_fixture,
    generate_fixture,
    regenerate_knockout,
)
from fixture_engine.services.fixture_locks import FixtureLockRegistry
from fixture_engine.services.knockout_builder import build_knockout
from fixture_engine.services.outcome_resolver import (
    apply_result,
    apply_walkover,
    propagate_winner,
    resolve_match,
)
from fixture_engine.services.pairing_arranger import arrange
from fixture_engine.services.round_robin_scheduler import build_round_robin
from fixture_engine.services.standings import StandingRow, calculate_standings

__all__ = [
    "FixtureEngineError",
    "InvalidInputError",
    "MissingScoresError",
    "ConstraintInfeasibleError",
    "StaleResolveError",
    "FixtureSettings",
    "Match",
    "MatchArena",
    "PenaltyShootout",
    "GenerationResult",
    "generate_fixture",
    "regenerate_knockout",
    "cancel_fixture",
    "FixtureLockRegistry",
    "arrange",
    "build_knockout",
    "build_round_robin",
    "resolve_match",
    "propagate_winner",
    "apply_result",
    "apply_walkover",
    "calculate_standings",
    "StandingRow",
]
