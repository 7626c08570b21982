from typing import Optional

from fixture_engine.models.match import new_match_id
from fixture_engine.models.types import IdFactory


def sequential_ids(prefix: str) -> IdFactory:
    """Stable IDs derived from the match number, e.g. ``F1-M3``."""

    def _factory(match_number: int) -> str:
        return f"{prefix}-M{match_number}"

    return _factory


def random_ids(match_number: int) -> str:
    return new_match_id()


def resolve_id_factory(id_factory: Optional[IdFactory]) -> IdFactory:
    if id_factory is not None:
        return id_factory
    return random_ids
