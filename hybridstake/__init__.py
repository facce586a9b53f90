"""
HybridStake
Hybrid proof-of-stake consensus simulation.

Validators are chosen by stake, delegated stake and reputation;
idle validators are penalized; a sliding window reports finality.
"""

__version__ = "0.1.0"

from hybridstake.consensus.engine import ConsensusEngine, RoundOutcome
from hybridstake.core.block import Block

__all__ = [
    "ConsensusEngine",
    "RoundOutcome",
    "Block",
    "__version__",
]
