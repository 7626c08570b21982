"""
Match arena: every match of one fixture addressed by its stable ID.

Knockout links (next_match_id / previous_match_ids) are plain ID references,
so the arena is the only place they are dereferenced.
"""
from typing import Any, Dict, Iterable, Iterator, List, Optional

from fixture_engine.exceptions import InvalidInputError
from fixture_engine.models.match import Match


class MatchArena:
    def __init__(self, matches: Iterable[Match] = ()):
        self._matches: Dict[str, Match] = {}
        for match in matches:
            self.put(match)

    def __len__(self) -> int:
        return len(self._matches)

    def __iter__(self) -> Iterator[Match]:
        return iter(sorted(self._matches.values(), key=lambda m: m.match_number))

    def __contains__(self, match_id: object) -> bool:
        return match_id in self._matches

    def get(self, match_id: str) -> Match:
        match = self._matches.get(match_id)
        if match is None:
            raise InvalidInputError(f"Match {match_id} not found in fixture")
        return match

    def find(self, match_id: Optional[str]) -> Optional[Match]:
        if match_id is None:
            return None
        return self._matches.get(match_id)

    def put(self, match: Match) -> None:
        """Insert or replace a match (last write wins)."""
        self._matches[match.id] = match

    def matches(self) -> List[Match]:
        return list(self)

    def by_round(self, round_number: int) -> List[Match]:
        return [m for m in self if m.round_number == round_number and not m.is_third_place_match]

    @property
    def total_rounds(self) -> int:
        return max((m.round_number for m in self._matches.values()), default=0)

    def final(self) -> Optional[Match]:
        """The bracket root: the only non-third-place match without a next match."""
        roots = [m for m in self if m.next_match_id is None and not m.is_third_place_match]
        return roots[-1] if roots else None

    def third_place_match(self) -> Optional[Match]:
        for match in self:
            if match.is_third_place_match:
                return match
        return None

    def champion(self) -> Optional[Any]:
        final = self.final()
        if final is None or not final.is_decided:
            return None
        return final.winner
