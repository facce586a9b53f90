"""
HybridStake Constants

All protocol constants defined here for single source of truth.
"""

from typing import Final

# ==============================================================================
# REWARDS
# ==============================================================================

BLOCK_REWARD: Final[int] = 10                   # Stake added per accepted block
REPUTATION_REWARD: Final[float] = 0.1           # Reputation added per accepted block
INITIAL_REPUTATION: Final[float] = 1.0          # Reputation of a fresh validator

# ==============================================================================
# PENALTIES
# ==============================================================================

INACTIVITY_STAKE_PENALTY: Final[int] = 1        # Stake removed per overdue round
INACTIVITY_REPUTATION_PENALTY: Final[float] = 0.1
REPUTATION_FLOOR: Final[float] = 0.0            # Reputation never drops below
STAKE_FLOOR: Final[int] = 0

# ==============================================================================
# CHAIN
# ==============================================================================

GENESIS_PREVIOUS_HASH: Final[str] = ""          # previous_hash of block 0
DEFAULT_FINALITY_THRESHOLD: Final[int] = 5      # Window size for finality scan
DEFAULT_BLOCK_PAYLOAD: Final[str] = "Sample Block Data"
MIN_ROTATION_PERIOD: Final[int] = 1

# ==============================================================================
# SIMULATION DEFAULTS
# ==============================================================================

DEFAULT_ROUNDS: Final[int] = 20
DEFAULT_ROTATION_PERIOD: Final[int] = 10
DEFAULT_NTP_HOST: Final[str] = "pool.ntp.org"
DEFAULT_NTP_TIMEOUT_SEC: Final[float] = 2.0
