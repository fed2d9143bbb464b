"""
avatars.collaborators.treasury - balance ledger for payments.

Minimal, deterministic balance ledger the sale uses to take payment from a
buyer and forward it to the Manager sink:

- balance_of(addr) -> int
- transfer(src, dst, amount)   debit src, credit dst; raises on failure
- credit(addr, amount)         host/testing helper (fund an account)

Notes
-----
* Simulation-only: real custody happens elsewhere; embedders pass their own
  object with the same surface.
* Balances are journaled, so a transfer inside a failed request is undone.
* `reject_incoming(addr)` makes every transfer *to* `addr` fail, which is how
  tests model a Manager sink that refuses funds.
"""

from __future__ import annotations

from typing import Protocol, Set, runtime_checkable

from ..journal import Journal, JournaledState
from ..utils.bytes import to_address

MAX_BALANCE_BITS = 256


class TreasuryError(Exception):
    """Raised when a transfer cannot be completed."""


@runtime_checkable
class Treasury(Protocol):
    def balance_of(self, addr: bytes) -> int: ...

    def transfer(self, src: bytes, dst: bytes, amount: int) -> None: ...


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TreasuryError("amount must be int")
    if amount < 0:
        raise TreasuryError("amount must be non-negative")
    if amount.bit_length() > MAX_BALANCE_BITS:
        raise TreasuryError(f"amount exceeds {MAX_BALANCE_BITS}-bit limit")


class InMemoryTreasury(JournaledState):
    def __init__(self) -> None:
        self._balances: Journal[bytes, int] = Journal()
        self._journals = [self._balances]
        self._rejecting: Set[bytes] = set()

    def balance_of(self, addr: bytes) -> int:
        return self._balances.get(to_address(addr), 0) or 0

    def credit(self, addr: bytes, amount: int) -> None:
        _check_amount(amount)
        a = to_address(addr)
        self._balances.set(a, self.balance_of(a) + amount)

    def transfer(self, src: bytes, dst: bytes, amount: int) -> None:
        _check_amount(amount)
        s, d = to_address(src), to_address(dst)
        if d in self._rejecting:
            raise TreasuryError("recipient rejected transfer")
        if amount == 0:
            return
        cur = self.balance_of(s)
        if amount > cur:
            raise TreasuryError("insufficient balance")
        self._balances.set(s, cur - amount)
        self._balances.set(d, self.balance_of(d) + amount)

    # ------------------------------------------------------------------ #
    # Test hooks
    # ------------------------------------------------------------------ #

    def reject_incoming(self, addr: bytes, reject: bool = True) -> None:
        a = to_address(addr)
        if reject:
            self._rejecting.add(a)
        else:
            self._rejecting.discard(a)


__all__ = ["Treasury", "TreasuryError", "InMemoryTreasury"]
