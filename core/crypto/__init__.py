"""
Core cryptographic utilities.

Provides the field-reduced pairwise hash used by the commitment tree
and the hex/canonical helpers shared by schemas and the API.
"""
from .hashing import (
    FIELD_MODULUS,
    HASH_SIZE,
    ZERO_VALUE,
    sha256,
    int_to_bytes32,
    bytes32_to_int,
    to_field,
    is_field_element,
    pair_hash,
    zero_hashes,
    hash_canonical,
    to_hex,
    from_hex,
    to_bytes32,
)

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
