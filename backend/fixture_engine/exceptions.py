"""
Engine exceptions.

Validation failures are fatal and raised before any match is produced.
Same-team avoidance failures are only raised in strict mode; otherwise
they are reported on the generation result.
"""
from typing import List, Optional


class FixtureEngineError(Exception):
    """Base class for all fixture engine errors."""


class InvalidInputError(FixtureEngineError, ValueError):
    """Participant list, settings or scores failed validation."""


class MissingScoresError(InvalidInputError):
    """A match was resolved without both scores."""


class ConstraintInfeasibleError(FixtureEngineError):
    """Same-team avoidance could not be satisfied and strict mode is on."""

    def __init__(self, message: str, conflicts: Optional[List] = None):
        super().__init__(message)
        self.conflicts = list(conflicts or [])


class StaleResolveError(FixtureEngineError):
    """Propagation would overwrite a slot this match did not fill."""

    def __init__(self, message: str, match_id: Optional[str] = None, next_match_id: Optional[str] = None):
        super().__init__(message)
        self.match_id = match_id
        self.next_match_id = next_match_id
