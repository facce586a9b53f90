"""
HybridStake Finality Detection

Sliding-window majority over the most recent blocks.
"""

from __future__ import annotations
import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from hybridstake.core.block import Block

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinalityNotification:
    """A validator produced a majority of the recent window."""
    validator_id: str
    count: int                          # Blocks by this validator in the window
    window: int                         # Blocks actually scanned
    block_id: int                       # Tip block id at the time of the scan


def check_finality(chain: Sequence["Block"], threshold: int) -> List[FinalityNotification]:
    """
    Scan the last `threshold` blocks for a dominant producer.

    A validator reaches finality when its block count in the window
    exceeds threshold // 2. The window is shorter when the chain is.
    More than one validator can qualify in the same scan.

    Args:
        chain: Blocks in chain order
        threshold: Window size; 0 disables the scan

    Returns:
        One notification per qualifying validator, in order of first
        appearance in the window
    """
    if threshold <= 0 or len(chain) == 0:
        return []

    window = chain[-threshold:]
    counts = Counter(block.validator_id for block in window)
    tip_id = window[-1].id
    bar = threshold // 2

    notifications = []
    for validator_id, count in counts.items():
        if count > bar:
            notifications.append(FinalityNotification(
                validator_id=validator_id,
                count=count,
                window=len(window),
                block_id=tip_id,
            ))
    return notifications
