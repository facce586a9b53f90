"""
HybridStake Registries

Validator and token holder bookkeeping.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, Iterator, List, Optional

from hybridstake.constants import (
    INITIAL_REPUTATION,
    MIN_ROTATION_PERIOD,
)
from hybridstake.errors import (
    DuplicateTokenHolder,
    DuplicateValidator,
    InvalidParameterError,
)

logger = logging.getLogger(__name__)


@dataclass
class Validator:
    """
    Block producer state.

    delegated_stake is recomputed from the token holders every round;
    reputation only scales the selection weight.
    """
    id: str
    stake: int = 0
    delegated_stake: int = 0
    rotation_period: int = MIN_ROTATION_PERIOD
    last_block_validated: int = 0
    reputation: float = INITIAL_REPUTATION

    @property
    def total_stake(self) -> int:
        return self.stake + self.delegated_stake

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Validator":
        return cls(
            id=data["id"],
            stake=int(data["stake"]),
            delegated_stake=int(data.get("delegated_stake", 0)),
            rotation_period=int(data["rotation_period"]),
            last_block_validated=int(data.get("last_block_validated", 0)),
            reputation=float(data.get("reputation", INITIAL_REPUTATION)),
        )


@dataclass
class TokenHolder:
    """Stake owner that may delegate to one validator."""
    id: str
    stake: int = 0
    delegated_to: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TokenHolder":
        return cls(
            id=data["id"],
            stake=int(data["stake"]),
            delegated_to=data.get("delegated_to"),
        )


def _check_stake(stake: int) -> None:
    if stake < 0:
        raise InvalidParameterError("stake", f"must be non-negative, got {stake}")


@dataclass
class ValidatorRegistry:
    """
    Validators keyed by identity, in registration order.

    Registration rejects duplicates rather than overwriting.
    """
    _validators: Dict[str, Validator] = field(default_factory=dict)

    def add(self, validator_id: str, stake: int, rotation_period: int) -> Validator:
        """Register a new validator with fresh reputation and no delegation."""
        if validator_id in self._validators:
            raise DuplicateValidator(validator_id)
        _check_stake(stake)
        if rotation_period < MIN_ROTATION_PERIOD:
            raise InvalidParameterError(
                "rotation_period",
                f"must be at least {MIN_ROTATION_PERIOD}, got {rotation_period}"
            )

        validator = Validator(
            id=validator_id,
            stake=stake,
            rotation_period=rotation_period,
        )
        self._validators[validator_id] = validator
        logger.debug(
            f"Registered validator {validator_id} "
            f"(stake={stake}, rotation_period={rotation_period})"
        )
        return validator

    def restore(self, validator: Validator) -> None:
        """Insert a validator loaded from storage, keeping all of its fields."""
        if validator.id in self._validators:
            raise DuplicateValidator(validator.id)
        self._validators[validator.id] = validator

    def get(self, validator_id: str) -> Optional[Validator]:
        return self._validators.get(validator_id)

    def __contains__(self, validator_id: object) -> bool:
        return validator_id in self._validators

    def __iter__(self) -> Iterator[Validator]:
        return iter(self._validators.values())

    def __len__(self) -> int:
        return len(self._validators)

    def ids(self) -> List[str]:
        return list(self._validators.keys())


@dataclass
class TokenHolderRegistry:
    """Token holders keyed by identity, in registration order."""
    _holders: Dict[str, TokenHolder] = field(default_factory=dict)

    def add(self, holder_id: str, stake: int, delegated_to: Optional[str] = None) -> TokenHolder:
        if holder_id in self._holders:
            raise DuplicateTokenHolder(holder_id)
        _check_stake(stake)

        holder = TokenHolder(id=holder_id, stake=stake, delegated_to=delegated_to)
        self._holders[holder_id] = holder
        logger.debug(f"Registered token holder {holder_id} (stake={stake}, delegated_to={delegated_to})")
        return holder

    def restore(self, holder: TokenHolder) -> None:
        if holder.id in self._holders:
            raise DuplicateTokenHolder(holder.id)
        self._holders[holder.id] = holder

    def get(self, holder_id: str) -> Optional[TokenHolder]:
        return self._holders.get(holder_id)

    def __contains__(self, holder_id: object) -> bool:
        return holder_id in self._holders

    def __iter__(self) -> Iterator[TokenHolder]:
        return iter(self._holders.values())

    def __len__(self) -> int:
        return len(self._holders)
