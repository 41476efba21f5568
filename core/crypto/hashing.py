"""
Hashing Utilities
Field-element hashing for commitment trees, canonical hashing, hex helpers.

This module provides:
- SHA-256 hashing for raw bytes
- Reduction of digests into the BN254 scalar field
- The pairwise Merkle hash shared by the ledger tree, witness tooling
  and the inclusion verifier
- Canonical hashing for objects (via dumps_canonical)
- Hex encoding/decoding with 0x prefix

Compatibility Notes:
- pair_hash MUST stay bit-identical to the hash used by the withdraw
  circuit for inclusion checks; a ledger root computed with any other
  function can never be proven against.
- All values are 32-byte big-endian encodings of field elements.
"""
from __future__ import annotations

import hashlib
from functools import lru_cache
from typing import Any

from core.schemas.canonical import dumps_canonical


# BN254 scalar field order (snarkjs / circom default curve)
FIELD_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

HASH_SIZE = 32

# Level-0 zero leaf. Commitments can never take this value.
ZERO_VALUE: bytes = bytes(HASH_SIZE)


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def int_to_bytes32(value: int) -> bytes:
    """Encode a non-negative integer as 32 big-endian bytes."""
    if value < 0:
        raise ValueError(f"Cannot encode negative value {value}")
    return value.to_bytes(HASH_SIZE, byteorder="big")


def bytes32_to_int(value: bytes) -> int:
    """Decode 32 big-endian bytes as an integer."""
    return int.from_bytes(value, byteorder="big")


def to_field(data: bytes) -> bytes:
    """
    Reduce arbitrary bytes into the scalar field.

    The bytes are read big-endian and taken modulo FIELD_MODULUS.

    Returns:
        32-byte encoding of the reduced field element
    """
    return int_to_bytes32(int.from_bytes(data, byteorder="big") % FIELD_MODULUS)


def is_field_element(value: bytes) -> bool:
    """Check that value is a 32-byte encoding of an element < FIELD_MODULUS."""
    return len(value) == HASH_SIZE and bytes32_to_int(value) < FIELD_MODULUS


def pair_hash(left: bytes, right: bytes) -> bytes:
    """
    Compute the parent of two Merkle nodes.

    parent = sha256(left || right) mod FIELD_MODULUS

    Args:
        left: Left child (32 bytes)
        right: Right child (32 bytes)

    Returns:
        32-byte parent node

    Raises:
        ValueError: If either child is not 32 bytes
    """
    if len(left) != HASH_SIZE or len(right) != HASH_SIZE:
        raise ValueError(
            f"Merkle nodes must be {HASH_SIZE} bytes, "
            f"got {len(left)} and {len(right)}"
        )
    return to_field(sha256(left + right))


@lru_cache(maxsize=8)
def _zero_hashes(depth: int) -> tuple[bytes, ...]:
    zeros = [ZERO_VALUE]
    for _ in range(depth):
        zeros.append(pair_hash(zeros[-1], zeros[-1]))
    return tuple(zeros)


def zero_hashes(depth: int) -> tuple[bytes, ...]:
    """
    Precompute the empty-subtree hash for every level.

    zeros[0] is the empty leaf, zeros[i + 1] = pair_hash(zeros[i], zeros[i]),
    so zeros[depth] is the root of a completely empty tree.

    Returns:
        Tuple of depth + 1 hashes
    """
    if depth < 1:
        raise ValueError(f"Tree depth must be positive, got {depth}")
    return _zero_hashes(depth)


def hash_canonical(obj: Any) -> bytes:
    """
    Hash an object using canonical JSON serialization.

    Rule: sha256(dumps_canonical(obj).encode("utf-8"))

    Used for split identifiers and message fingerprints, never for tree nodes.
    """
    canonical_json = dumps_canonical(obj)
    return sha256(canonical_json.encode("utf-8"))


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def to_bytes32(value: bytes | str | int) -> bytes:
    """
    Coerce a hash given as bytes, 0x hex or integer to 32 bytes.

    Raises:
        ValueError: If the value does not fit in 32 bytes
    """
    if isinstance(value, bool):
        raise ValueError("Boolean is not a valid hash value")
    if isinstance(value, int):
        if value >= 1 << 256:
            raise ValueError(f"Integer {value} does not fit in 32 bytes")
        return int_to_bytes32(value)
    if isinstance(value, str):
        value = from_hex(value)
    if len(value) != HASH_SIZE:
        raise ValueError(f"Expected {HASH_SIZE} bytes, got {len(value)}")
    return bytes(value)


__all__ = [
    "FIELD_MODULUS",
    "HASH_SIZE",
    "ZERO_VALUE",
    "sha256",
    "int_to_bytes32",
    "bytes32_to_int",
    "to_field",
    "is_field_element",
    "pair_hash",
    "zero_hashes",
    "hash_canonical",
    "to_hex",
    "from_hex",
    "to_bytes32",
]
