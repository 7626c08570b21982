import random

import pytest

from fixture_engine.models.fixture_settings import FixtureSettings
from fixture_engine.utils.ids import sequential_ids

# ============================================================================
# Engine test fixtures
# ============================================================================
# 1. Randomness is always seeded so every run draws the same brackets
# 2. Match IDs are sequential ("F1-M1", "F1-M2", ...) so tests can address
#    matches by number instead of digging through random hex IDs
# 3. "plain" settings disable seeding and avoidance: the input order is the bracket


@pytest.fixture(name="rng")
def rng_fixture():
    return random.Random(1234)


@pytest.fixture(name="ids")
def ids_fixture():
    return sequential_ids("F1")


@pytest.fixture(name="plain_settings")
def plain_settings_fixture():
    """Deterministic bracket: no shuffling, no avoidance, not strict."""
    return FixtureSettings(
        randomize_seeds=False,
        avoid_same_team_first_round=False,
        strict_avoidance=False,
    )


@pytest.fixture(name="four_teams_of_two")
def four_teams_of_two_fixture():
    """Eight players, naive order pairs teammates in every round-1 match."""
    participants = ["a1", "a2", "b1", "b2", "c1", "c2", "d1", "d2"]
    team_map = {p: p[0].upper() for p in participants}
    return participants, team_map
