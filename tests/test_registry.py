"""
HybridStake Registry and Security Ledger Tests
"""

import pytest
from hybridstake.core.registry import (
    TokenHolderRegistry,
    Validator,
    ValidatorRegistry,
)
from hybridstake.core.security import SecurityLedger
from hybridstake.errors import (
    DuplicateTokenHolder,
    DuplicateValidator,
    ErrorCode,
    InvalidParameterError,
)


class TestValidatorRegistry:
    """Tests for ValidatorRegistry."""

    def test_add_validator_defaults(self):
        """New validators start with no delegation and reputation 1.0."""
        registry = ValidatorRegistry()
        v = registry.add("V1", 100, 10)

        assert v.stake == 100
        assert v.delegated_stake == 0
        assert v.rotation_period == 10
        assert v.last_block_validated == 0
        assert v.reputation == 1.0
        assert registry.get("V1") is v
        assert "V1" in registry
        assert len(registry) == 1

    def test_duplicate_rejected(self):
        """Registering an existing id fails and leaves the original intact."""
        registry = ValidatorRegistry()
        original = registry.add("V1", 100, 10)
        original.reputation = 1.5

        with pytest.raises(DuplicateValidator) as exc_info:
            registry.add("V1", 999, 3)

        assert exc_info.value.code == ErrorCode.DUPLICATE_VALIDATOR
        assert registry.get("V1").stake == 100
        assert registry.get("V1").reputation == 1.5
        assert len(registry) == 1

    def test_negative_stake_rejected(self):
        with pytest.raises(InvalidParameterError):
            ValidatorRegistry().add("V1", -1, 10)

    def test_zero_rotation_period_rejected(self):
        with pytest.raises(InvalidParameterError):
            ValidatorRegistry().add("V1", 10, 0)

    def test_registration_order_preserved(self):
        registry = ValidatorRegistry()
        for vid in ["c", "a", "b"]:
            registry.add(vid, 1, 1)
        assert registry.ids() == ["c", "a", "b"]
        assert [v.id for v in registry] == ["c", "a", "b"]

    def test_validator_dict(self):
        v = Validator(id="V1", stake=5, delegated_stake=3, rotation_period=2,
                      last_block_validated=7, reputation=0.4)
        assert Validator.from_dict(v.to_dict()) == v


class TestTokenHolderRegistry:
    """Tests for TokenHolderRegistry."""

    def test_add_holder(self):
        registry = TokenHolderRegistry()
        holder = registry.add("H1", 50, "V1")
        assert holder.delegated_to == "V1"
        assert registry.get("H1") is holder

    def test_holder_without_delegation(self):
        holder = TokenHolderRegistry().add("H1", 50)
        assert holder.delegated_to is None

    def test_duplicate_holder_rejected(self):
        registry = TokenHolderRegistry()
        registry.add("H1", 50, "V1")
        with pytest.raises(DuplicateTokenHolder):
            registry.add("H1", 10, None)
        assert registry.get("H1").stake == 50


class TestSecurityLedger:
    """Tests for SecurityLedger."""

    def test_flag_is_idempotent(self):
        ledger = SecurityLedger()
        assert ledger.flag_malicious("V1") is True
        assert ledger.flag_malicious("V1") is False
        assert ledger.is_flagged("V1")
        assert ledger.flagged == frozenset({"V1"})

    def test_unflagged(self):
        assert not SecurityLedger().is_flagged("V1")

    def test_penalize_accumulates(self):
        ledger = SecurityLedger()
        assert ledger.penalty_of("V1") == 0
        assert ledger.penalize("V1", 3) == 3
        assert ledger.penalize("V1", 4) == 7
        assert ledger.penalty_of("V1") == 7

    def test_penalize_zero_creates_entry(self):
        ledger = SecurityLedger()
        ledger.penalize("V1", 0)
        assert ledger.penalties() == {"V1": 0}

    def test_negative_penalty_rejected(self):
        ledger = SecurityLedger()
        with pytest.raises(InvalidParameterError):
            ledger.penalize("V1", -1)
        assert ledger.penalties() == {}

    def test_flag_and_penalty_independent(self):
        ledger = SecurityLedger()
        ledger.penalize("V1", 2)
        assert not ledger.is_flagged("V1")
        ledger.flag_malicious("V2")
        assert ledger.penalty_of("V2") == 0
