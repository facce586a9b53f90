"""
HybridStake Delegation Aggregation

Recomputes every validator's delegated stake from the token holders.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hybridstake.core.registry import ValidatorRegistry, TokenHolderRegistry

logger = logging.getLogger(__name__)


def aggregate_delegations(
    validators: "ValidatorRegistry",
    holders: "TokenHolderRegistry"
) -> None:
    """
    Replace each validator's delegated_stake with the sum of the
    stakes delegated to it.

    Totals are rebuilt from zero on every call, never accumulated.
    Holders without a target, or targeting an unregistered validator,
    contribute to nobody.
    """
    for validator in validators:
        validator.delegated_stake = 0

    for holder in holders:
        if holder.delegated_to is None:
            continue

        validator = validators.get(holder.delegated_to)
        if validator is None:
            logger.debug(
                f"Holder {holder.id} delegates to unknown validator {holder.delegated_to}"
            )
            continue

        validator.delegated_stake += holder.stake
