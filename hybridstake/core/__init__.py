"""
HybridStake Core Data Structures
"""

from hybridstake.core.hashing import ContentHasher, sha3_hasher, md5_hasher, get_hasher
from hybridstake.core.block import Block, Chain
from hybridstake.core.registry import (
    Validator,
    TokenHolder,
    ValidatorRegistry,
    TokenHolderRegistry,
)
from hybridstake.core.security import SecurityLedger

__all__ = [
    # Hashing
    "ContentHasher",
    "sha3_hasher",
    "md5_hasher",
    "get_hasher",
    # Chain
    "Block",
    "Chain",
    # Registries
    "Validator",
    "TokenHolder",
    "ValidatorRegistry",
    "TokenHolderRegistry",
    # Security
    "SecurityLedger",
]
