"""
HybridStake Consensus

Stake- and reputation-weighted producer selection with windowed finality.
"""

from hybridstake.consensus.delegation import aggregate_delegations
from hybridstake.consensus.selection import (
    WeightedSelector,
    RandomSelector,
    compute_weight,
    select_validator,
)
from hybridstake.consensus.finality import FinalityNotification, check_finality
from hybridstake.consensus.rotation import apply_rotation
from hybridstake.consensus.engine import ConsensusEngine, RoundOutcome

__all__ = [
    # Delegation
    "aggregate_delegations",
    # Selection
    "WeightedSelector",
    "RandomSelector",
    "compute_weight",
    "select_validator",
    # Finality
    "FinalityNotification",
    "check_finality",
    # Rotation
    "apply_rotation",
    # Engine
    "ConsensusEngine",
    "RoundOutcome",
]
