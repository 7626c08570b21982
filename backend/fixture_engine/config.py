import logging
import os
import random
from typing import Optional, Union

from dotenv import load_dotenv

from fixture_engine.exceptions import InvalidInputError

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
STRICT_AVOIDANCE = os.getenv("FIXTURE_STRICT_AVOIDANCE", "false").lower() in ("true", "1", "yes")
# Parsed lazily by default_rng() so a bad value cannot break import
RANDOM_SEED: Union[int, str, None] = os.getenv("FIXTURE_RANDOM_SEED", "").strip() or None


def default_rng() -> random.Random:
    """Random generator for seeding; reproducible when FIXTURE_RANDOM_SEED is set."""
    if RANDOM_SEED is None:
        return random.Random()
    try:
        seed = int(RANDOM_SEED)
    except ValueError as exc:
        raise InvalidInputError(
            f"FIXTURE_RANDOM_SEED must be an integer, got {RANDOM_SEED!r}"
        ) from exc
    return random.Random(seed)


def configure_logging(level: Optional[str] = None) -> None:
    """Apply LOG_LEVEL (or *level*) to the fixture_engine logger tree."""
    resolved = (level or LOG_LEVEL).upper()
    logging.getLogger("fixture_engine").setLevel(getattr(logging, resolved, logging.INFO))
