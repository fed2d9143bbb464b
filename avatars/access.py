"""
avatars.access
==============

Capability checks for privileged sale operations.

The sale keeps two privileged identities in its `SaleConfig`:

- `owner`              administrative authority (setters, replace, withdraw)
- `staking_authority`  the only caller allowed to flip a record's staked flag

Both are checked by plain equality at the start of the guarded operation.
An all-zero identity never matches anybody, so an unset role locks its
operations rather than opening them.

Typical usage
-------------
    from avatars.access import require_owner

    def set_public_price(self, caller, price):
        require_owner(self.config, caller)
        ...
"""

from __future__ import annotations

from typing import Any

from .config import ZERO_ADDRESS, SaleConfig
from .errors import Unauthorized
from .utils.bytes import to_address


def _normalize(caller: Any) -> bytes:
    try:
        return to_address(caller)
    except (TypeError, ValueError):
        return ZERO_ADDRESS


def is_owner(config: SaleConfig, caller: Any) -> bool:
    c = _normalize(caller)
    return c != ZERO_ADDRESS and c == config.owner


def require_owner(config: SaleConfig, caller: Any) -> bytes:
    """Raise Unauthorized unless `caller` is the owner; return the normalized caller."""
    if not is_owner(config, caller):
        raise Unauthorized("owner", caller)
    return _normalize(caller)


def require_staking_authority(config: SaleConfig, caller: Any) -> bytes:
    c = _normalize(caller)
    if c == ZERO_ADDRESS or c != config.staking_authority:
        raise Unauthorized("staking authority", caller)
    return c


__all__ = ["is_owner", "require_owner", "require_staking_authority"]
