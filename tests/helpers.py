"""
HybridStake test helpers
"""

from typing import Iterable, List, Sequence, Tuple

from hybridstake.core.block import Block


class ScriptedSelector:
    """Selector that returns a fixed sequence of identities, then repeats the last."""

    def __init__(self, picks: Iterable[str]):
        self.picks: List[str] = list(picks)
        self.calls: List[Sequence[Tuple[str, float]]] = []

    def __call__(self, candidates: Sequence[Tuple[str, float]]) -> str:
        self.calls.append(list(candidates))
        index = min(len(self.calls) - 1, len(self.picks) - 1)
        return self.picks[index]


def make_chain(producers: Iterable[str]) -> List[Block]:
    """Linked blocks produced by the given validators in order."""
    blocks: List[Block] = []
    previous = ""
    for i, producer in enumerate(producers):
        block = Block.create(i, "data", producer, previous, timestamp=1000 + i)
        blocks.append(block)
        previous = block.hash
    return blocks
