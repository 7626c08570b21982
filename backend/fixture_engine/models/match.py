from typing import Any, List, Optional
from uuid import uuid4

from sqlmodel import Field, SQLModel

MATCH_SCHEDULED = "scheduled"
MATCH_IN_PROGRESS = "in_progress"
MATCH_COMPLETED = "completed"
MATCH_CANCELLED = "cancelled"
MATCH_POSTPONED = "postponed"
MATCH_WALKOVER = "walkover"

MATCH_STATUSES = (
    MATCH_SCHEDULED,
    MATCH_IN_PROGRESS,
    MATCH_COMPLETED,
    MATCH_CANCELLED,
    MATCH_POSTPONED,
    MATCH_WALKOVER,
)

# Statuses that carry a decided outcome
DECIDED_STATUSES = (MATCH_COMPLETED, MATCH_WALKOVER)


def new_match_id() -> str:
    return uuid4().hex


class PenaltyShootout(SQLModel):
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)


class Match(SQLModel):
    """One unit of play. Knockout links are plain ID references into the same fixture."""

    id: str = Field(default_factory=new_match_id)
    fixture_id: Optional[str] = Field(default=None)
    round_number: int = Field(ge=1)  # 1 = earliest; round-robin: cycle index
    match_number: int = Field(ge=1)  # generation order across the fixture

    home_participant: Optional[Any] = Field(default=None)
    away_participant: Optional[Any] = Field(default=None)
    home_partner: Optional[Any] = Field(default=None)  # doubles only
    away_partner: Optional[Any] = Field(default=None)

    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    penalty_shootout: Optional[PenaltyShootout] = Field(default=None)

    status: str = Field(default=MATCH_SCHEDULED)
    winner: Optional[Any] = Field(default=None)
    loser: Optional[Any] = Field(default=None)
    winner_partner: Optional[Any] = Field(default=None)
    loser_partner: Optional[Any] = Field(default=None)

    # Knockout wiring
    next_match_id: Optional[str] = Field(default=None)
    previous_match_ids: List[str] = Field(default_factory=list)
    is_third_place_match: bool = Field(default=False)

    # Upstream match that filled a side by propagation (None = seeded directly)
    home_source_match_id: Optional[str] = Field(default=None)
    away_source_match_id: Optional[str] = Field(default=None)

    @property
    def has_both_sides(self) -> bool:
        return self.home_participant is not None and self.away_participant is not None

    @property
    def is_decided(self) -> bool:
        return self.status in DECIDED_STATUSES and self.winner is not None

    def involves(self, participant: Any) -> bool:
        return participant is not None and participant in (self.home_participant, self.away_participant)
