from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from fixture_engine import config
from fixture_engine.exceptions import InvalidInputError

FORMAT_KNOCKOUT = "knockout"
FORMAT_ROUND_ROBIN = "roundrobin"
FIXTURE_FORMATS = (FORMAT_KNOCKOUT, FORMAT_ROUND_ROBIN)


class FixtureSettings(BaseModel):
    """Generation and scoring options for one fixture.

    Accepts the camelCase wire names (``randomizeSeeds``) as well as the
    snake_case attribute names. Unknown keys are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    randomize_seeds: bool = True
    avoid_same_team_first_round: bool = True
    third_place_match: bool = False
    rounds: int = Field(default=1, ge=1)
    points_for_win: int = 3
    points_for_draw: int = 1
    points_for_loss: int = 0
    strict_avoidance: bool = Field(default_factory=lambda: config.STRICT_AVOIDANCE)
    balance_skill_levels: bool = False

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "FixtureSettings":
        """Validate a caller-supplied settings dict; None means all defaults."""
        try:
            return cls.model_validate(payload or {})
        except ValidationError as exc:
            raise InvalidInputError(f"Invalid fixture settings: {exc}") from exc
