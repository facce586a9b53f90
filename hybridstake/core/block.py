"""
HybridStake Block Structure

Immutable ledger entries and the append-only chain that links them.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Iterator, List, Optional, Sequence, overload

from hybridstake.constants import GENESIS_PREVIOUS_HASH
from hybridstake.core.hashing import ContentHasher, sha3_hasher


@dataclass(frozen=True, slots=True)
class Block:
    """
    One ledger entry, hash-linked to its predecessor.

    Field order matches the hash input domain:
    hash = H(id, payload, validator_id, timestamp, previous_hash)
    """
    id: int                             # Position in chain, starts at 0
    timestamp: int                      # Creation time (ms)
    payload: str                        # Opaque block data
    validator_id: str                   # Producing validator
    previous_hash: str                  # Hash of chain[id - 1], "" for genesis
    hash: str                           # Own content digest

    @classmethod
    def create(
        cls,
        block_id: int,
        payload: str,
        validator_id: str,
        previous_hash: str,
        timestamp: int,
        hasher: ContentHasher = sha3_hasher
    ) -> "Block":
        """Build a block and compute its digest."""
        digest = hasher(block_id, payload, validator_id, timestamp, previous_hash)
        return cls(
            id=block_id,
            timestamp=timestamp,
            payload=payload,
            validator_id=validator_id,
            previous_hash=previous_hash,
            hash=digest,
        )

    def compute_hash(self, hasher: ContentHasher = sha3_hasher) -> str:
        return hasher(self.id, self.payload, self.validator_id, self.timestamp, self.previous_hash)

    def verify_hash(self, hasher: ContentHasher = sha3_hasher) -> bool:
        """Check that the stored digest matches the block contents."""
        return self.compute_hash(hasher) == self.hash

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Block":
        return cls(
            id=int(data["id"]),
            timestamp=int(data["timestamp"]),
            payload=data["payload"],
            validator_id=data["validator_id"],
            previous_hash=data["previous_hash"],
            hash=data["hash"],
        )

    def __repr__(self) -> str:
        return (
            f"Block(id={self.id}, validator={self.validator_id}, "
            f"hash={self.hash[:16]}...)"
        )


class Chain(Sequence[Block]):
    """
    Append-only ordered sequence of blocks.

    Readers get indexing, slicing, iteration and len(); only append()
    mutates. Blocks are never removed.
    """

    def __init__(self, blocks: Optional[List[Block]] = None):
        self._blocks: List[Block] = list(blocks) if blocks else []

    @overload
    def __getitem__(self, index: int) -> Block: ...

    @overload
    def __getitem__(self, index: slice) -> List[Block]: ...

    def __getitem__(self, index):
        return self._blocks[index]

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    @property
    def tip(self) -> Optional[Block]:
        """Last block, or None for an empty chain."""
        return self._blocks[-1] if self._blocks else None

    @property
    def tip_hash(self) -> str:
        """Hash the next block must link to."""
        tip = self.tip
        return tip.hash if tip is not None else GENESIS_PREVIOUS_HASH

    @property
    def next_id(self) -> int:
        return len(self._blocks)

    def append(self, block: Block) -> None:
        self._blocks.append(block)

    def is_linked(self) -> bool:
        """Check previous_hash linkage across the whole chain."""
        expected = GENESIS_PREVIOUS_HASH
        for block in self._blocks:
            if block.previous_hash != expected:
                return False
            expected = block.hash
        return True

    def __repr__(self) -> str:
        return f"Chain(length={len(self._blocks)}, tip={self.tip_hash[:16]})"
