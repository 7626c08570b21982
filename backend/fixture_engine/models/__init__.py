from fixture_engine.models.arena import MatchArena
from fixture_engine.models.fixture_settings import (
    FIXTURE_FORMATS,
    FORMAT_KNOCKOUT,
    FORMAT_ROUND_ROBIN,
    FixtureSettings,
)
from fixture_engine.models.match import (
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
from fixture_engine.models.types import IdFactory, ParticipantId, TeamId, TeamMap

__all__ = [
    "Match",
    "PenaltyShootout",
    "MatchArena",
    "FixtureSettings",
    "FIXTURE_FORMATS",
    "FORMAT_KNOCKOUT",
    "FORMAT_ROUND_ROBIN",
    "MATCH_SCHEDULED",
    "MATCH_IN_PROGRESS",
    "MATCH_COMPLETED",
    "MATCH_CANCELLED",
    "MATCH_POSTPONED",
    "MATCH_WALKOVER",
    "MATCH_STATUSES",
    "ParticipantId",
    "TeamId",
    "TeamMap",
    "IdFactory",
]
