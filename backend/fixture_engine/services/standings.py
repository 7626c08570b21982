"""
Standings Calculator: round-robin table from completed matches.

Order: points, point difference, points for (all descending). Rows still
tied keep the order of the participant list.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fixture_engine.models.fixture_settings import FixtureSettings
from fixture_engine.models.match import MATCH_COMPLETED, Match
from fixture_engine.models.types import ParticipantId


@dataclass
class StandingRow:
    participant_id: ParticipantId
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    points_for: int = 0
    points_against: int = 0
    point_difference: int = 0
    points: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_standings(
    matches: Iterable[Match],
    participants: Sequence[ParticipantId],
    settings: Optional[FixtureSettings] = None,
) -> List[StandingRow]:
    settings = settings or FixtureSettings()
    table: Dict[ParticipantId, StandingRow] = {p: StandingRow(participant_id=p) for p in participants}

    for match in matches:
        if match.status != MATCH_COMPLETED or not match.has_both_sides:
            continue
        home = table.get(match.home_participant)
        away = table.get(match.away_participant)
        if home is None or away is None:
            continue

        home_score = match.home_score or 0
        away_score = match.away_score or 0
        home.played += 1
        away.played += 1
        home.points_for += home_score
        home.points_against += away_score
        away.points_for += away_score
        away.points_against += home_score

        if match.winner is not None:
            winner, loser = (home, away) if match.winner == match.home_participant else (away, home)
            winner.won += 1
            winner.points += settings.points_for_win
            loser.lost += 1
            loser.points += settings.points_for_loss
        else:
            home.drawn += 1
            away.drawn += 1
            home.points += settings.points_for_draw
            away.points += settings.points_for_draw

    for row in table.values():
        row.point_difference = row.points_for - row.points_against

    # sorted() is stable, so remaining ties keep participant order
    return sorted(
        table.values(),
        key=lambda r: (-r.points, -r.point_difference, -r.points_for),
    )
