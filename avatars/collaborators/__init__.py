"""
avatars.collaborators
=====================

Interfaces the sale consumes from the outside world, each with a
deterministic in-memory implementation for local runs and tests:

- ledger      ownership records (create, balance, enumerate-by-index)
- randomizer  trait id draws and trait release
- treasury    buyer payments and Manager forwarding

Collaborators that also expose `begin_tx` / `commit_tx` / `rollback_tx`
are enrolled in each sale request's transaction; the in-memory ones do.
"""

from __future__ import annotations

from .ledger import InMemoryLedger, LedgerError, OwnershipLedger
from .randomizer import BufferedRandomizer, Randomizer, RandomizerExhausted
from .treasury import InMemoryTreasury, Treasury, TreasuryError

__all__ = [
    "OwnershipLedger",
    "InMemoryLedger",
    "LedgerError",
    "Randomizer",
    "BufferedRandomizer",
    "RandomizerExhausted",
    "Treasury",
    "InMemoryTreasury",
    "TreasuryError",
]
