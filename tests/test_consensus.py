"""
HybridStake Consensus Rule Tests
Delegation, selection, finality and rotation.
"""

import pytest
from hybridstake.consensus.delegation import aggregate_delegations
from hybridstake.consensus.finality import check_finality
from hybridstake.consensus.rotation import apply_rotation, is_overdue
from hybridstake.consensus.selection import (
    RandomSelector,
    compute_weight,
    eligible_candidates,
    select_validator,
    selection_probabilities,
)
from hybridstake.core.registry import (
    TokenHolderRegistry,
    Validator,
    ValidatorRegistry,
)
from hybridstake.errors import NoEligibleValidator

from tests.helpers import ScriptedSelector, make_chain


@pytest.fixture
def registries():
    validators = ValidatorRegistry()
    validators.add("V1", 100, 10)
    validators.add("V2", 200, 10)
    validators.add("V3", 150, 10)

    holders = TokenHolderRegistry()
    holders.add("H1", 50, "V1")
    holders.add("H2", 80, "V2")
    holders.add("H3", 70, "V3")
    holders.add("H4", 30, "V1")
    holders.add("H5", 999, None)
    holders.add("H6", 40, "Ghost")
    return validators, holders


class TestDelegation:
    """Tests for delegation aggregation."""

    def expected(self, validators, holders):
        return {
            v.id: sum(h.stake for h in holders if h.delegated_to == v.id)
            for v in validators
        }

    def test_sums_delegated_stake(self, registries):
        validators, holders = registries
        aggregate_delegations(validators, holders)

        assert validators.get("V1").delegated_stake == 80
        assert validators.get("V2").delegated_stake == 80
        assert validators.get("V3").delegated_stake == 70

    def test_recomputed_not_accumulated(self, registries):
        """Repeated aggregation gives the same totals."""
        validators, holders = registries
        expected = self.expected(validators, holders)

        for _ in range(10):
            aggregate_delegations(validators, holders)

        assert {v.id: v.delegated_stake for v in validators} == expected

    def test_stale_value_replaced(self, registries):
        validators, holders = registries
        validators.get("V3").delegated_stake = 12345
        aggregate_delegations(validators, holders)
        assert validators.get("V3").delegated_stake == 70

    def test_undelegated_validator_is_zero(self):
        validators = ValidatorRegistry()
        validators.add("V1", 100, 10)
        aggregate_delegations(validators, TokenHolderRegistry())
        assert validators.get("V1").delegated_stake == 0


class TestSelection:
    """Tests for weighted validator selection."""

    def test_weight_formula(self):
        v = Validator(id="V1", stake=100, delegated_stake=50, reputation=1.5)
        assert compute_weight(v) == pytest.approx(225.0)

    def test_negative_reputation_clamped(self):
        v = Validator(id="V1", stake=100, delegated_stake=50, reputation=-0.3)
        assert compute_weight(v) == 0.0

    def test_empty_registry(self):
        with pytest.raises(NoEligibleValidator):
            select_validator([], RandomSelector(seed=1))

    def test_all_zero_weight(self):
        validators = [
            Validator(id="V1", stake=0),
            Validator(id="V2", stake=100, reputation=0.0),
        ]
        with pytest.raises(NoEligibleValidator) as exc_info:
            select_validator(validators, RandomSelector(seed=1))
        assert exc_info.value.details == {"candidates": 2}

    def test_zero_weight_excluded_from_draw(self):
        validators = [
            Validator(id="V1", stake=0),
            Validator(id="V2", stake=10),
        ]
        selector = ScriptedSelector(["V2"])
        assert select_validator(validators, selector) == "V2"
        assert selector.calls == [[("V2", 10.0)]]

    def test_only_candidate_always_selected(self):
        validators = [Validator(id="V1", stake=0), Validator(id="V2", stake=5)]
        selector = RandomSelector(seed=3)
        assert {select_validator(validators, selector) for _ in range(50)} == {"V2"}

    def test_seeded_selection_reproducible(self):
        validators = [Validator(id=f"V{i}", stake=10 * (i + 1)) for i in range(4)]
        a = RandomSelector(seed=9)
        b = RandomSelector(seed=9)
        picks_a = [select_validator(validators, a) for _ in range(100)]
        picks_b = [select_validator(validators, b) for _ in range(100)]
        assert picks_a == picks_b

    def test_doubling_stake_does_not_reduce_frequency(self):
        """Selection frequency is monotone in stake."""
        def frequency(stake_a: int) -> int:
            validators = [
                Validator(id="A", stake=stake_a),
                Validator(id="B", stake=100),
                Validator(id="C", stake=100),
            ]
            selector = RandomSelector(seed=2024)
            return sum(
                1 for _ in range(5000)
                if select_validator(validators, selector) == "A"
            )

        base = frequency(100)
        doubled = frequency(200)
        assert doubled >= base
        assert base == pytest.approx(5000 / 3, rel=0.1)
        assert doubled == pytest.approx(5000 / 2, rel=0.1)

    def test_selection_probabilities(self):
        validators = [Validator(id="A", stake=100), Validator(id="B", stake=300)]
        probs = selection_probabilities(validators)
        assert probs == {"A": pytest.approx(0.25), "B": pytest.approx(0.75)}

    def test_eligible_candidates(self):
        validators = [Validator(id="A", stake=10, delegated_stake=5), Validator(id="B")]
        assert eligible_candidates(validators) == [("A", 15.0)]


class TestFinality:
    """Tests for the finality scan."""

    def test_majority_in_window(self):
        """[A, A, B, A] with threshold 4 finalizes A only."""
        notifications = check_finality(make_chain(["A", "A", "B", "A"]), 4)

        assert [n.validator_id for n in notifications] == ["A"]
        assert notifications[0].count == 3
        assert notifications[0].window == 4
        assert notifications[0].block_id == 3

    def test_only_last_blocks_counted(self):
        chain = make_chain(["B", "B", "B", "A", "A", "B", "A"])
        assert [n.validator_id for n in check_finality(chain, 4)] == ["A"]

    def test_exact_half_not_final(self):
        assert check_finality(make_chain(["A", "B", "A", "B"]), 4) == []

    def test_short_chain_uses_whole_chain(self):
        """Window shrinks to the chain length; bar stays threshold // 2."""
        notifications = check_finality(make_chain(["A", "A", "A"]), 5)
        assert [n.validator_id for n in notifications] == ["A"]
        assert notifications[0].window == 3

        assert check_finality(make_chain(["A", "A"]), 5) == []

    def test_zero_threshold_is_noop(self):
        assert check_finality(make_chain(["A", "A", "A"]), 0) == []

    def test_empty_chain(self):
        assert check_finality([], 4) == []

    def test_threshold_one(self):
        notifications = check_finality(make_chain(["A", "B"]), 1)
        assert [n.validator_id for n in notifications] == ["B"]


class TestRotation:
    """Tests for inactivity penalties."""

    def test_not_overdue_within_period(self):
        v = Validator(id="V1", stake=10, rotation_period=3)
        assert not is_overdue(v, 2)
        assert is_overdue(v, 3)

    def test_penalty_applied(self):
        v = Validator(id="V1", stake=10, rotation_period=3)
        assert apply_rotation([v], 3) == ["V1"]
        assert v.stake == 9
        assert v.reputation == pytest.approx(0.9)
        assert v.last_block_validated == 0

    def test_recently_active_exempt(self):
        v = Validator(id="V1", stake=10, rotation_period=3, last_block_validated=5)
        assert apply_rotation([v], 6) == []
        assert v.stake == 10

    def test_stake_saturates_at_zero(self):
        v = Validator(id="V1", stake=0, rotation_period=1)
        apply_rotation([v], 5)
        assert v.stake == 0

    def test_reputation_saturates_at_floor(self):
        v = Validator(id="V1", stake=10, rotation_period=1, reputation=0.05)
        apply_rotation([v], 5)
        assert v.reputation == 0.0
        apply_rotation([v], 6)
        assert v.reputation == 0.0
        assert v.stake == 8

    def test_exempt_validator_skipped(self):
        v = Validator(id="V1", stake=10, rotation_period=1, last_block_validated=4)
        assert apply_rotation([v], 5, exempt=("V1",)) == []
        assert v.stake == 10
