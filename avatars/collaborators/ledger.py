"""
avatars.collaborators.ledger - ownership ledger.

The sale never keeps its own per-holder counts; it asks the ledger. The
`OwnershipLedger` protocol is the surface the sale consumes (create,
balance query, enumerate-by-index) plus the usual reads a wallet expects.

`InMemoryLedger` is a deterministic reference implementation for local runs
and tests. Its state is journaled, so a request that fails after creating
tokens leaves no trace of them.

Storage layout
--------------
owners : token_id -> owner address
held   : owner address -> tuple of token ids, in acquisition order
"""

from __future__ import annotations

from typing import Optional, Protocol, Tuple, runtime_checkable

from ..journal import Journal, JournaledState
from ..utils.bytes import to_address


class LedgerError(Exception):
    """Raised by the in-memory ledger on invalid operations."""


@runtime_checkable
class OwnershipLedger(Protocol):
    def create(self, to: bytes, token_id: int) -> None: ...

    def balance_of(self, owner: bytes) -> int: ...

    def token_of_owner_by_index(self, owner: bytes, index: int) -> int: ...


class InMemoryLedger(JournaledState):
    def __init__(self) -> None:
        self._owners: Journal[int, bytes] = Journal()
        self._held: Journal[bytes, Tuple[int, ...]] = Journal()
        self._journals = [self._owners, self._held]

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def owner_of(self, token_id: int) -> Optional[bytes]:
        return self._owners.get(token_id)

    def balance_of(self, owner: bytes) -> int:
        return len(self._held.get(to_address(owner), ()) or ())

    def token_of_owner_by_index(self, owner: bytes, index: int) -> int:
        held = self._held.get(to_address(owner), ()) or ()
        if not 0 <= index < len(held):
            raise LedgerError(f"owner index {index} out of bounds")
        return held[index]

    def total_supply(self) -> int:
        return len(self._owners)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def create(self, to: bytes, token_id: int) -> None:
        to = to_address(to)
        if token_id in self._owners:
            raise LedgerError(f"token {token_id} already exists")
        self._owners.set(token_id, to)
        self._held.set(to, (self._held.get(to, ()) or ()) + (token_id,))

    def transfer(self, frm: bytes, to: bytes, token_id: int) -> None:
        frm, to = to_address(frm), to_address(to)
        if self._owners.get(token_id) != frm:
            raise LedgerError(f"token {token_id} not owned by sender")
        held = tuple(t for t in (self._held.get(frm, ()) or ()) if t != token_id)
        self._held.set(frm, held)
        self._owners.set(token_id, to)
        self._held.set(to, (self._held.get(to, ()) or ()) + (token_id,))


__all__ = ["LedgerError", "OwnershipLedger", "InMemoryLedger"]
