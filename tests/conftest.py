"""
HybridStake Test Fixtures
"""

import pytest

from hybridstake.consensus.engine import ConsensusEngine
from hybridstake.node.clock import FixedClock


@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock starting at a fixed instant, advancing 1s per call."""
    return FixedClock(start=1_700_000_000_000, step=1000)


@pytest.fixture
def engine(fixed_clock) -> ConsensusEngine:
    """Empty engine with deterministic clock and selection."""
    return ConsensusEngine(finality_threshold=5, clock=fixed_clock, seed=42)


@pytest.fixture
def seeded_engine(fixed_clock) -> ConsensusEngine:
    """Three validators, each with one delegating token holder."""
    engine = ConsensusEngine(finality_threshold=5, clock=fixed_clock, seed=1234)

    engine.add_validator("Validator1", 100, 10)
    engine.add_validator("Validator2", 200, 10)
    engine.add_validator("Validator3", 150, 10)

    engine.add_token_holder("Holder1", 50, "Validator1")
    engine.add_token_holder("Holder2", 80, "Validator2")
    engine.add_token_holder("Holder3", 70, "Validator3")

    return engine
