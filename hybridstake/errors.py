"""
HybridStake Error Handling

All error codes and exception classes.
"""

from enum import IntEnum
from typing import Optional, Any


class ErrorCode(IntEnum):
    """Consensus error codes."""

    # 1xxx - General errors
    UNKNOWN_ERROR = 1000
    INVALID_PARAMETER = 1001

    # 2xxx - Registry errors
    DUPLICATE_VALIDATOR = 2001
    DUPLICATE_TOKEN_HOLDER = 2002

    # 3xxx - Selection errors
    NO_ELIGIBLE_VALIDATOR = 3001

    # 4xxx - Block errors
    UNKNOWN_VALIDATOR = 4001
    CHAIN_LINK_MISMATCH = 4002


class ConsensusError(Exception):
    """Base exception for all consensus errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        result = {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


# ==============================================================================
# General Errors (1xxx)
# ==============================================================================

class InvalidParameterError(ConsensusError):
    def __init__(self, param: str, message: str = ""):
        msg = f"Invalid parameter: {param}"
        if message:
            msg += f" - {message}"
        super().__init__(ErrorCode.INVALID_PARAMETER, msg, {"parameter": param})


# ==============================================================================
# Registry Errors (2xxx)
# ==============================================================================

class DuplicateValidator(ConsensusError):
    def __init__(self, validator_id: str):
        super().__init__(
            ErrorCode.DUPLICATE_VALIDATOR,
            f"Validator already registered: {validator_id}",
            {"validator_id": validator_id}
        )


class DuplicateTokenHolder(ConsensusError):
    def __init__(self, holder_id: str):
        super().__init__(
            ErrorCode.DUPLICATE_TOKEN_HOLDER,
            f"Token holder already registered: {holder_id}",
            {"holder_id": holder_id}
        )


# ==============================================================================
# Selection Errors (3xxx)
# ==============================================================================

class NoEligibleValidator(ConsensusError):
    def __init__(self, candidates: int):
        super().__init__(
            ErrorCode.NO_ELIGIBLE_VALIDATOR,
            f"No validator with positive weight among {candidates} registered",
            {"candidates": candidates}
        )


# ==============================================================================
# Block Errors (4xxx)
# ==============================================================================

class UnknownValidator(ConsensusError):
    def __init__(self, validator_id: str):
        super().__init__(
            ErrorCode.UNKNOWN_VALIDATOR,
            f"Block references unregistered validator: {validator_id}",
            {"validator_id": validator_id}
        )


class ChainLinkError(ConsensusError):
    def __init__(self, expected: str, got: str):
        super().__init__(
            ErrorCode.CHAIN_LINK_MISMATCH,
            "Block previous_hash does not match chain tip",
            {"expected": expected, "got": got}
        )
