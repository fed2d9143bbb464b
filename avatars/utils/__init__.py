"""
avatars.utils
=============

Byte/hex/address helpers and hashing primitives shared by the engine.
"""

from __future__ import annotations

from .bytes import ADDRESS_LEN, BytesLike, b, from_hex, to_address, to_hex
from .hash import keccak256, pair_hash

__all__ = [
    "ADDRESS_LEN",
    "BytesLike",
    "b",
    "from_hex",
    "to_hex",
    "to_address",
    "keccak256",
    "pair_hash",
]
