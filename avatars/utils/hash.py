"""
avatars.utils.hash
==================

Keccak-256 (Ethereum flavour, not NIST SHA3) and the sorted-pair node hash
used by allowlist trees.

- keccak256(data)           -> 32-byte digest
- pair_hash(a, b)           -> keccak256(min(a, b) || max(a, b))
- address_leaf(address)     -> keccak256(address) (packed 20 bytes)

The sorted-pair convention makes proofs position-free: a verifier never needs
to know whether a sibling sits on the left or the right.

Keccak is provided by PyCryptodome (`pip install pycryptodome`).
"""

from __future__ import annotations

from Crypto.Hash import keccak as _keccak

from .bytes import BytesLike, b as _b

HASH_LEN = 32
ZERO32 = b"\x00" * HASH_LEN


def keccak256(data: BytesLike) -> bytes:
    """Keccak-256 digest."""
    h = _keccak.new(digest_bits=256)
    h.update(_b(data))
    return h.digest()


def pair_hash(a: bytes, b: bytes) -> bytes:
    """Commutative node hash: order the children before hashing."""
    if a <= b:
        return keccak256(a + b)
    return keccak256(b + a)


def address_leaf(address: bytes) -> bytes:
    return keccak256(address)


__all__ = ["HASH_LEN", "ZERO32", "keccak256", "pair_hash", "address_leaf"]
