"""
HybridStake Consensus Engine

One round:
    aggregate delegation → select → build block → validate & append
    → finality scan → rotation → advance period

All round state (chain, registries, period counter) lives on the engine
instance, so independent simulations can share a process.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TYPE_CHECKING

from hybridstake.constants import (
    BLOCK_REWARD,
    REPUTATION_REWARD,
    DEFAULT_FINALITY_THRESHOLD,
    DEFAULT_BLOCK_PAYLOAD,
)
from hybridstake.core.block import Block, Chain
from hybridstake.core.hashing import ContentHasher, sha3_hasher, get_hasher
from hybridstake.core.registry import (
    Validator,
    TokenHolder,
    ValidatorRegistry,
    TokenHolderRegistry,
)
from hybridstake.core.security import SecurityLedger
from hybridstake.consensus.delegation import aggregate_delegations
from hybridstake.consensus.finality import FinalityNotification, check_finality
from hybridstake.consensus.rotation import apply_rotation
from hybridstake.consensus.selection import (
    RandomSelector,
    WeightedSelector,
    select_validator,
)
from hybridstake.errors import (
    ChainLinkError,
    ConsensusError,
    InvalidParameterError,
    UnknownValidator,
)
from hybridstake.node.clock import Clock, SystemClock

if TYPE_CHECKING:
    from hybridstake.node.config import EngineConfig

logger = logging.getLogger(__name__)

FinalityListener = Callable[[FinalityNotification], None]


@dataclass
class RoundOutcome:
    """Result of one round."""
    period: int                                     # Period the round ran in
    appended: bool = False
    block: Optional[Block] = None
    finality: List[FinalityNotification] = field(default_factory=list)
    penalized: List[str] = field(default_factory=list)
    error: Optional[ConsensusError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "appended": self.appended,
            "block": self.block.to_dict() if self.block else None,
            "finality": [n.validator_id for n in self.finality],
            "penalized": list(self.penalized),
            "error": self.error.to_dict() if self.error else None,
        }


class ConsensusEngine:
    """
    Hybrid proof-of-stake round driver.

    Args:
        finality_threshold: Finality window size (0 disables finality)
        selector: Weighted draw capability; defaults to a seeded RandomSelector
        clock: Millisecond time source for block timestamps
        hasher: Content hasher for block digests
        payload: Data placed in every produced block
        seed: Seed for the default selector
    """

    def __init__(
        self,
        finality_threshold: int = DEFAULT_FINALITY_THRESHOLD,
        selector: Optional[WeightedSelector] = None,
        clock: Optional[Clock] = None,
        hasher: ContentHasher = sha3_hasher,
        payload: str = DEFAULT_BLOCK_PAYLOAD,
        seed: Optional[int] = None,
    ):
        if finality_threshold < 0:
            raise InvalidParameterError(
                "finality_threshold", f"must be non-negative, got {finality_threshold}"
            )

        self.finality_threshold = finality_threshold
        self.payload = payload
        self._selector: WeightedSelector = selector if selector is not None else RandomSelector(seed)
        self._clock: Clock = clock if clock is not None else SystemClock()
        self._hasher = hasher

        self._chain = Chain()
        self._pending: Dict[str, Block] = {}
        self._validators = ValidatorRegistry()
        self._holders = TokenHolderRegistry()
        self._security = SecurityLedger()
        self._current_period = 0
        self._finality_listeners: List[FinalityListener] = []

    @classmethod
    def from_config(
        cls,
        config: "EngineConfig",
        clock: Optional[Clock] = None,
        selector: Optional[WeightedSelector] = None,
    ) -> "ConsensusEngine":
        return cls(
            finality_threshold=config.finality_threshold,
            selector=selector,
            clock=clock,
            hasher=get_hasher(config.hasher),
            payload=config.block_payload,
            seed=config.seed,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def chain(self) -> Sequence[Block]:
        return self._chain

    @property
    def validators(self) -> ValidatorRegistry:
        return self._validators

    @property
    def token_holders(self) -> TokenHolderRegistry:
        return self._holders

    @property
    def security(self) -> SecurityLedger:
        return self._security

    @property
    def current_period(self) -> int:
        return self._current_period

    @property
    def hasher(self) -> ContentHasher:
        return self._hasher

    @property
    def pending_blocks(self) -> List[Block]:
        return list(self._pending.values())

    def get_validator(self, validator_id: str) -> Optional[Validator]:
        return self._validators.get(validator_id)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_validator(self, validator_id: str, stake: int, rotation_period: int) -> Validator:
        """Register a validator. Raises DuplicateValidator if the id exists."""
        return self._validators.add(validator_id, stake, rotation_period)

    def add_token_holder(
        self,
        holder_id: str,
        stake: int,
        delegated_to: Optional[str] = None
    ) -> TokenHolder:
        """Register a token holder. Raises DuplicateTokenHolder if the id exists."""
        return self._holders.add(holder_id, stake, delegated_to)

    def subscribe_finality(self, listener: FinalityListener) -> None:
        self._finality_listeners.append(listener)

    def unsubscribe_finality(self, listener: FinalityListener) -> None:
        self._finality_listeners.remove(listener)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def build_block(self, validator_id: str, payload: Optional[str] = None) -> Block:
        """Build a block on top of the current tip."""
        return Block.create(
            block_id=self._chain.next_id,
            payload=self.payload if payload is None else payload,
            validator_id=validator_id,
            previous_hash=self._chain.tip_hash,
            timestamp=self._clock(),
            hasher=self._hasher,
        )

    def add_pending_block(self, block: Block) -> None:
        """Track a candidate block. Cleared on the next successful append."""
        self._pending[block.hash] = block

    def validate_and_append(self, block: Block) -> List[FinalityNotification]:
        """
        Validate a block against the registry and chain tip, then append it.

        On success the producer is rewarded, the finality scan runs and
        finality listeners are called.

        Returns:
            Finality notifications raised by the scan

        Raises:
            UnknownValidator: producer is not registered (nothing mutated)
            ChainLinkError: previous_hash does not match the tip (nothing mutated)
        """
        notifications = self._append(block)
        self._notify_finality(notifications)
        return notifications

    def _append(self, block: Block) -> List[FinalityNotification]:
        """Validate, reward and append; returns the finality scan without notifying."""
        validator = self._validators.get(block.validator_id)
        if validator is None:
            raise UnknownValidator(block.validator_id)

        expected = self._chain.tip_hash
        if block.previous_hash != expected:
            raise ChainLinkError(expected, block.previous_hash)

        validator.stake += BLOCK_REWARD
        validator.last_block_validated = self._current_period
        validator.reputation += REPUTATION_REWARD

        self._chain.append(block)
        self._pending.clear()

        logger.info(
            f"Block {block.id} appended by {block.validator_id} "
            f"(hash={block.hash[:16]}, period={self._current_period})"
        )

        notifications = check_finality(self._chain, self.finality_threshold)
        for notification in notifications:
            logger.info(
                f"Finality reached for validator: {notification.validator_id} "
                f"({notification.count}/{notification.window} recent blocks)"
            )
        return notifications

    def _notify_finality(self, notifications: List[FinalityNotification]) -> None:
        for notification in notifications:
            for listener in list(self._finality_listeners):
                listener(notification)

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    def run_round(self) -> RoundOutcome:
        """
        Run one full round.

        Selection and validation errors are reported in the outcome;
        rotation and the period advance happen regardless. Finality
        listeners are called last, once the round's state is complete,
        so an exception from a listener cannot leave a round half-applied.
        """
        outcome = RoundOutcome(period=self._current_period)

        aggregate_delegations(self._validators, self._holders)

        try:
            validator_id = select_validator(self._validators, self._selector)
            block = self.build_block(validator_id)
            outcome.finality = self._append(block)
        except ConsensusError as e:
            logger.warning(f"Round {outcome.period} produced no block: {e}")
            outcome.error = e
        else:
            outcome.appended = True
            outcome.block = block

        self._current_period += 1
        exempt = (outcome.block.validator_id,) if outcome.block is not None else ()
        outcome.penalized = apply_rotation(self._validators, self._current_period, exempt)

        self._notify_finality(outcome.finality)
        return outcome

    def run(self, rounds: int) -> List[RoundOutcome]:
        """Run several rounds back to back."""
        return [self.run_round() for _ in range(rounds)]

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def load_state(
        self,
        blocks: Iterable[Block],
        validators: Iterable[Validator],
        holders: Iterable[TokenHolder],
        current_period: int,
    ) -> None:
        """
        Populate an empty engine from persisted state.

        Raises:
            ValueError: engine already holds state
            ChainLinkError: the loaded blocks are not linked
        """
        if len(self._chain) or len(self._validators) or len(self._holders):
            raise ValueError("load_state requires an empty engine")

        chain = Chain()
        for block in blocks:
            if block.previous_hash != chain.tip_hash:
                raise ChainLinkError(chain.tip_hash, block.previous_hash)
            chain.append(block)

        for validator in validators:
            self._validators.restore(validator)
        for holder in holders:
            self._holders.restore(holder)

        self._chain = chain
        self._current_period = current_period
        logger.info(
            f"Loaded state: {len(chain)} blocks, {len(self._validators)} validators, "
            f"period {current_period}"
        )

    def __repr__(self) -> str:
        return (
            f"ConsensusEngine(period={self._current_period}, "
            f"blocks={len(self._chain)}, validators={len(self._validators)})"
        )
