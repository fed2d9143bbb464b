"""
avatars.utils.bytes
===================

Lightweight helpers around byte handling:

- Hex helpers: to_hex/from_hex, 0x-prefix management
- Bytes-like normalization: b(), is_byteslike()
- Address normalization: to_address() (20-byte account ids)
- Decimal amounts: parse_units() / format_units() (18-decimal base units)

Examples
--------
>>> to_hex(b"\\x01\\x02")
'0x0102'
>>> from_hex('0xdeadbeef')
b'\\xde\\xad\\xbe\\xef'
>>> parse_units("0.75")
750000000000000000
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

ADDRESS_LEN = 20
UNIT_DECIMALS = 18


# -----------------------
# Basic bytes/hex helpers
# -----------------------

def is_byteslike(x: object) -> bool:
    return isinstance(x, (bytes, bytearray, memoryview))


def strip0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_hex(data: BytesLike, *, prefix: bool = True) -> str:
    """Return lowercase hex string of data."""
    if isinstance(data, memoryview):
        data = data.tobytes()
    elif isinstance(data, bytearray):
        data = bytes(data)
    if not isinstance(data, bytes):
        raise TypeError("to_hex expects bytes-like")
    h = data.hex()
    return f"0x{h}" if prefix else h


def from_hex(h: str) -> bytes:
    """Parse hex string with or without 0x prefix; ignores surrounding whitespace."""
    if not isinstance(h, str):
        raise TypeError("from_hex expects str")
    h = strip0x(h.strip().replace(" ", ""))
    if len(h) % 2 == 1:  # pad leading zero if odd length
        h = "0" + h
    try:
        return bytes.fromhex(h)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


def b(x: Union[BytesLike, str]) -> bytes:
    """
    Normalize input to bytes:
    - bytes/bytearray/memoryview -> bytes
    - str -> if startswith '0x' parse hex, else utf-8 encode
    """
    if isinstance(x, bytes):
        return x
    if isinstance(x, bytearray):
        return bytes(x)
    if isinstance(x, memoryview):
        return x.tobytes()
    if isinstance(x, str):
        return from_hex(x) if x.startswith(("0x", "0X")) else x.encode("utf-8")
    raise TypeError(f"unsupported type for b(): {type(x)!r}")


# ---------------------
# Addresses
# ---------------------

def to_address(x: Union[BytesLike, str]) -> bytes:
    """
    Normalize an account address to its 20 raw bytes.

    Accepts raw bytes or a hex string (0x prefix optional, any case).
    """
    if isinstance(x, str):
        raw = from_hex(x)
    elif is_byteslike(x):
        raw = b(x)
    else:
        raise TypeError(f"address must be bytes or hex str, got {type(x).__name__}")
    if len(raw) != ADDRESS_LEN:
        raise ValueError(f"address must be {ADDRESS_LEN} bytes, got {len(raw)}")
    return raw


def is_address(x: object) -> bool:
    try:
        to_address(x)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return True


# ---------------------
# Decimal amounts
# ---------------------

def parse_units(value: Union[int, str, Decimal], decimals: int = UNIT_DECIMALS) -> int:
    """
    Convert a human amount into integer base units.

    Ints are taken as base units already; strings and Decimals are whole
    units ("0.75" -> 0.75 * 10**decimals). Fractions finer than one base
    unit are rejected.
    """
    if isinstance(value, bool):
        raise TypeError("amount must not be bool")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("amount must be non-negative")
        return value
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"invalid decimal amount: {value!r}") from e
    scaled = d * (Decimal(10) ** decimals)
    if scaled < 0:
        raise ValueError("amount must be non-negative")
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount {value!r} has more than {decimals} decimals")
    return int(scaled)


def format_units(amount: int, decimals: int = UNIT_DECIMALS) -> str:
    """Inverse of parse_units for display: 750000000000000000 -> '0.75'."""
    d = Decimal(amount) / (Decimal(10) ** decimals)
    s = format(d.normalize(), "f")
    return s


__all__ = [
    "BytesLike",
    "ADDRESS_LEN",
    "UNIT_DECIMALS",
    "is_byteslike",
    "strip0x",
    "to_hex",
    "from_hex",
    "b",
    "to_address",
    "is_address",
    "parse_units",
    "format_units",
]
