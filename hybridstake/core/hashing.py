"""
HybridStake Content Hashing

Content addressing for blocks. A hasher maps the block fields
(id, payload, validator_id, timestamp, previous_hash) to a hex digest.

All multi-byte integers are BIG-ENDIAN.
"""

from __future__ import annotations
import hashlib
import struct
from typing import Callable

ContentHasher = Callable[[int, str, str, int, str], str]


def _write_str(parts: list, value: str) -> None:
    data = value.encode("utf-8")
    parts.append(struct.pack(">I", len(data)))
    parts.append(data)


def encode_block_fields(
    block_id: int,
    payload: str,
    validator_id: str,
    timestamp: int,
    previous_hash: str
) -> bytes:
    """
    Encode block fields in hash input order.

    Strings are length-prefixed (u32) so that adjacent fields
    cannot run into each other.
    """
    parts: list = [struct.pack(">Q", block_id)]
    _write_str(parts, payload)
    _write_str(parts, validator_id)
    parts.append(struct.pack(">Q", timestamp))
    _write_str(parts, previous_hash)
    return b"".join(parts)


def sha3_hasher(
    block_id: int,
    payload: str,
    validator_id: str,
    timestamp: int,
    previous_hash: str
) -> str:
    """SHA3-256 hex digest over the encoded block fields (default)."""
    data = encode_block_fields(block_id, payload, validator_id, timestamp, previous_hash)
    return hashlib.sha3_256(data).hexdigest()


def md5_hasher(
    block_id: int,
    payload: str,
    validator_id: str,
    timestamp: int,
    previous_hash: str
) -> str:
    """
    MD5 hex digest over the plain concatenation of the fields.

    Kept for compatibility with ledgers produced by the legacy
    simulator, which hashed "{id}{payload}{validator}{timestamp}{prev}".
    """
    data = f"{block_id}{payload}{validator_id}{timestamp}{previous_hash}"
    return hashlib.md5(data.encode("utf-8")).hexdigest()


HASHERS = {
    "sha3_256": sha3_hasher,
    "md5": md5_hasher,
}


def get_hasher(name: str) -> ContentHasher:
    """Look up a hasher by configuration name."""
    try:
        return HASHERS[name]
    except KeyError:
        raise ValueError(f"Unknown hasher: {name} (expected one of {sorted(HASHERS)})")
