"""
HybridStake Security Ledger

Flagged identities and accumulated penalty counters.

No round consults this ledger yet. It exists so misbehavior detection
can be layered on later without changing the engine's structure.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Set

from hybridstake.errors import InvalidParameterError

logger = logging.getLogger(__name__)


@dataclass
class SecurityLedger:
    _flagged: Set[str] = field(default_factory=set)
    _penalties: Dict[str, int] = field(default_factory=dict)

    def flag_malicious(self, identity: str) -> bool:
        """
        Flag an identity as malicious.

        Idempotent: re-flagging changes nothing.

        Returns:
            True if the identity was not flagged before
        """
        if identity in self._flagged:
            return False
        self._flagged.add(identity)
        logger.warning(f"Flagged malicious identity: {identity}")
        return True

    def is_flagged(self, identity: str) -> bool:
        return identity in self._flagged

    @property
    def flagged(self) -> FrozenSet[str]:
        return frozenset(self._flagged)

    def penalize(self, identity: str, amount: int) -> int:
        """
        Add to an identity's penalty counter, creating it at 0 if absent.

        Returns:
            The accumulated penalty after this call
        """
        if amount < 0:
            raise InvalidParameterError("amount", f"must be non-negative, got {amount}")

        total = self._penalties.get(identity, 0) + amount
        self._penalties[identity] = total
        logger.info(f"Penalized {identity} by {amount} (total {total})")
        return total

    def penalty_of(self, identity: str) -> int:
        return self._penalties.get(identity, 0)

    def penalties(self) -> Dict[str, int]:
        return dict(self._penalties)
