"""
HybridStake Validator Selection

Weighted random choice over validators.

Formula: weight(v) = (stake + delegated_stake) × max(reputation, 0)
"""

from __future__ import annotations
import logging
import random
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple, TYPE_CHECKING

from hybridstake.errors import NoEligibleValidator

if TYPE_CHECKING:
    from hybridstake.core.registry import Validator

logger = logging.getLogger(__name__)


class WeightedSelector(Protocol):
    """Picks one identity from (identity, weight) pairs with positive weights."""

    def __call__(self, candidates: Sequence[Tuple[str, float]]) -> str: ...


class RandomSelector:
    """
    Seedable weighted selector.

    Each draw consumes one value from its own random.Random, so two
    selectors with the same seed produce the same picks.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.Random(seed)

    def __call__(self, candidates: Sequence[Tuple[str, float]]) -> str:
        if not candidates:
            raise ValueError("No candidates to select from")

        total = sum(weight for _, weight in candidates)
        point = self._rng.random() * total

        cumulative = 0.0
        for identity, weight in candidates:
            cumulative += weight
            if point < cumulative:
                return identity

        # Rounding can leave point == total
        return candidates[-1][0]


def compute_weight(validator: "Validator") -> float:
    """
    Selection weight of a validator.

    Negative reputation is clamped to zero so weights are never negative.
    """
    return validator.total_stake * max(validator.reputation, 0.0)


def eligible_candidates(validators: Iterable["Validator"]) -> List[Tuple[str, float]]:
    """(identity, weight) pairs for validators with positive weight."""
    candidates = []
    for validator in validators:
        weight = compute_weight(validator)
        if weight > 0:
            candidates.append((validator.id, weight))
    return candidates


def select_validator(
    validators: Iterable["Validator"],
    selector: WeightedSelector
) -> str:
    """
    Select a block producer.

    Args:
        validators: Registered validators
        selector: Weighted draw capability

    Returns:
        Identity of the selected validator

    Raises:
        NoEligibleValidator: if there are no validators or none has positive weight
    """
    validators = list(validators)
    candidates = eligible_candidates(validators)
    if not candidates:
        raise NoEligibleValidator(len(validators))

    chosen = selector(candidates)
    logger.debug(f"Selected {chosen} from {len(candidates)} eligible validators")
    return chosen


def selection_probabilities(validators: Iterable["Validator"]) -> dict:
    """
    Probability of each eligible validator being selected.

    Used for reporting.
    """
    candidates = eligible_candidates(validators)
    total = sum(weight for _, weight in candidates)
    if total == 0:
        return {}
    return {identity: weight / total for identity, weight in candidates}
