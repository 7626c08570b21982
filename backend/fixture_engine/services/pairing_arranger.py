"""
Pairing Arranger: seed ordering with optional same-team avoidance.

The ordered list is consumed positionally: ordered[2i] vs ordered[2i + 1].
Participants left unpaired (knockout byes) are appended at the tail.

Avoidance is best effort. Groups are consumed most-constrained first
(largest remaining team), each paired with a participant from another team,
then with a team-less participant, and only as a last resort with a
teammate. Every forced teammate pairing is reported as a conflict.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from fixture_engine.config import default_rng
from fixture_engine.models.types import ParticipantId, TeamId, TeamMap

logger = logging.getLogger(__name__)


@dataclass
class PairingConflict:
    home: ParticipantId
    away: Optional[ParticipantId]
    team: Optional[TeamId]
    reason: str


@dataclass
class ArrangeResult:
    ordered: List[ParticipantId]
    feasible: bool
    conflicts: List[PairingConflict] = field(default_factory=list)


@dataclass
class _Group:
    key: Any
    teamed: bool
    first_index: int
    members: List[Any] = field(default_factory=list)


def double_shuffle(items: Sequence[Any], rng: Optional[random.Random] = None) -> List[Any]:
    """Fisher-Yates applied twice in sequence. Returns a new list."""
    rng = rng or default_rng()
    shuffled = list(items)
    for _ in range(2):
        for i in range(len(shuffled) - 1, 0, -1):
            j = rng.randint(0, i)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def balance_by_skill_levels(
    participants: Sequence[ParticipantId], ratings: Mapping[ParticipantId, float]
) -> List[ParticipantId]:
    """Snake arrangement: strongest vs weakest, second vs second-weakest, ...

    Participants without a rating sort after every rated participant.
    Ties keep input order.
    """
    ranked = sorted(
        participants,
        key=lambda p: -ratings[p] if ratings.get(p) is not None else float("inf"),
    )
    balanced: List[ParticipantId] = []
    n = len(ranked)
    for i in range((n + 1) // 2):
        balanced.append(ranked[i])
        if n - 1 - i != i:
            balanced.append(ranked[n - 1 - i])
    return balanced


def find_same_team_pairs(
    pairs: Sequence[Tuple[ParticipantId, Optional[ParticipantId]]], team_map: Optional[TeamMap]
) -> List[PairingConflict]:
    """Report every (home, away) pair whose sides map to the same team."""
    if not team_map:
        return []
    conflicts: List[PairingConflict] = []
    for home, away in pairs:
        if home is None or away is None:
            continue
        team = team_map.get(home)
        if team is not None and team == team_map.get(away):
            conflicts.append(PairingConflict(
                home=home,
                away=away,
                team=team,
                reason=f"{home!r} and {away!r} are both on team {team!r}",
            ))
    return conflicts


def arrange(
    participants: Sequence[ParticipantId],
    team_map: Optional[TeamMap] = None,
    randomize: bool = True,
    avoid_same_team: bool = True,
    *,
    pairs: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> ArrangeResult:
    """Order participants for positional pairing.

    Args:
        participants: Participant IDs in seed order.
        team_map: participant -> team for the event; empty/None disables avoidance.
        randomize: Double-shuffle before pairing.
        avoid_same_team: Re-pair to keep teammates apart.
        pairs: Number of pairs to form (default: as many as possible).
            The remaining participants are appended unpaired.
        rng: Source of randomness (seedable for tests).
    """
    base = double_shuffle(participants, rng) if randomize else list(participants)

    if not avoid_same_team or not team_map:
        return ArrangeResult(ordered=base, feasible=True)

    max_pairs = len(base) // 2
    pair_count = max_pairs if pairs is None else max(0, min(pairs, max_pairs))

    chosen, leftovers, conflicts = _pair_avoiding_teams(base, team_map, pair_count)

    ordered = [p for pair in chosen for p in pair] + leftovers
    if conflicts:
        logger.warning(
            "Same-team avoidance infeasible: %d forced pairing(s) among %d participants",
            len(conflicts), len(base),
        )
    return ArrangeResult(ordered=ordered, feasible=not conflicts, conflicts=conflicts)


def _build_groups(base: Sequence[Any], team_map: TeamMap) -> List[_Group]:
    groups: Dict[Any, _Group] = {}
    ordered_groups: List[_Group] = []
    for index, participant in enumerate(base):
        team = team_map.get(participant)
        if team is None:
            # Team-less participants are singleton groups
            group = _Group(key=("__solo__", index), teamed=False, first_index=index)
            ordered_groups.append(group)
        else:
            group = groups.get(team)
            if group is None:
                group = _Group(key=team, teamed=True, first_index=index)
                groups[team] = group
                ordered_groups.append(group)
        group.members.append(participant)
    return ordered_groups


def _pair_avoiding_teams(
    base: Sequence[Any], team_map: TeamMap, pair_count: int
) -> Tuple[List[Tuple[Any, Any]], List[Any], List[PairingConflict]]:
    position = {p: i for i, p in enumerate(base)}
    groups = _build_groups(base, team_map)

    chosen: List[Tuple[Any, Any]] = []
    conflicts: List[PairingConflict] = []

    for _ in range(pair_count):
        live = [g for g in groups if g.members]
        # Most constrained first: largest group, teamed before team-less, then seed order
        anchor = min(live, key=lambda g: (-len(g.members), not g.teamed, g.first_index))
        others = [g for g in live if g is not anchor]

        partner_group: Optional[_Group] = None
        teamed_others = [g for g in others if g.teamed]
        if teamed_others:
            partner_group = min(teamed_others, key=lambda g: (-len(g.members), g.first_index))
        elif others:
            partner_group = min(others, key=lambda g: g.first_index)

        first = anchor.members.pop(0)
        if partner_group is None:
            # Last resort: two teammates
            second = anchor.members.pop(0)
            conflicts.append(PairingConflict(
                home=first,
                away=second,
                team=anchor.key,
                reason=f"forced same-team pairing on team {anchor.key!r}",
            ))
        else:
            second = partner_group.members.pop(0)

        pair = (first, second) if position[first] < position[second] else (second, first)
        chosen.append(pair)

    leftovers = sorted(
        (p for g in groups for p in g.members), key=lambda p: position[p]
    )
    return chosen, leftovers, conflicts
