"""
HybridStake Validator Rotation

Inactivity penalties for validators that have not produced a block
within their rotation period.
"""

from __future__ import annotations
import logging
from typing import Collection, Iterable, List, TYPE_CHECKING

from hybridstake.constants import (
    INACTIVITY_STAKE_PENALTY,
    INACTIVITY_REPUTATION_PENALTY,
    REPUTATION_FLOOR,
    STAKE_FLOOR,
)

if TYPE_CHECKING:
    from hybridstake.core.registry import Validator

logger = logging.getLogger(__name__)


def is_overdue(validator: "Validator", current_period: int) -> bool:
    return current_period - validator.last_block_validated >= validator.rotation_period


def penalize_inactivity(validator: "Validator") -> None:
    """Apply one inactivity penalty, saturating at the floors."""
    validator.stake = max(STAKE_FLOOR, validator.stake - INACTIVITY_STAKE_PENALTY)
    validator.reputation = max(
        REPUTATION_FLOOR,
        validator.reputation - INACTIVITY_REPUTATION_PENALTY
    )


def apply_rotation(
    validators: Iterable["Validator"],
    current_period: int,
    exempt: Collection[str] = ()
) -> List[str]:
    """
    Penalize every overdue validator.

    Must be called after the period counter has been advanced.
    last_block_validated is left untouched, so an idle validator keeps
    being penalized each round until it is selected again.
    Validators in `exempt` (this round's producer) are never penalized,
    even with a rotation period of 1.

    Returns:
        Identities penalized this round
    """
    penalized = []
    for validator in validators:
        if validator.id in exempt:
            continue
        if is_overdue(validator, current_period):
            penalize_inactivity(validator)
            penalized.append(validator.id)
            logger.debug(
                f"Inactivity penalty for {validator.id} "
                f"(stake={validator.stake}, reputation={validator.reputation:.2f})"
            )
    return penalized
