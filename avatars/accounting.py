"""
avatars.accounting - supply counters and cap checks.

`Accounting` is the single owner of the sale's running counters:

- current_sequence : ids handed out so far (mints and admin replacements)
- presale_issued   : units issued through the presale phase

Per-holder counts are *not* tracked here. The caller passes the holder's
current balance as read from the ownership ledger, so the two stores can
never disagree.

Check order for `can_issue` (first failure wins):
  1. phase gate     (presale only)  now >= presale_start_time
  2. presale cap    (presale only)  current_sequence + amount <= presale_cap
  3. total cap                       current_sequence + amount <= total_cap
  4. per-holder cap                  holder_balance + amount <= per_holder_cap

The presale cap is measured against the whole sequence, since presale ids
form a prefix of it.
"""

from __future__ import annotations

from enum import Enum

from .config import SaleConfig
from .errors import CapExceeded, InvalidAmount, PhaseNotOpen
from .journal import Journal, JournaledState

_SEQ = "current_sequence"
_PRESALE = "presale_issued"


class Phase(str, Enum):
    PRESALE = "presale"
    PUBLIC = "public"


def require_amount(amount: object) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)
    return amount


class Accounting(JournaledState):
    def __init__(self, config: SaleConfig) -> None:
        self.config = config
        self._counters: Journal[str, int] = Journal({_SEQ: 0, _PRESALE: 0})
        self._journals = [self._counters]

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def current_sequence(self) -> int:
        return self._counters.get(_SEQ, 0) or 0

    @property
    def presale_issued(self) -> int:
        return self._counters.get(_PRESALE, 0) or 0

    # ------------------------------------------------------------------ #
    # Checks
    # ------------------------------------------------------------------ #

    def check_phase(self, phase: Phase, now: float) -> None:
        if phase is Phase.PRESALE and now < self.config.presale_start_time:
            raise PhaseNotOpen(
                "presale has not started",
                now=int(now),
                starts_at=self.config.presale_start_time,
            )

    def can_issue(self, phase: Phase, holder_balance: int, amount: int, now: float) -> None:
        """Raise the first failing rejection kind; return None if admissible."""
        require_amount(amount)
        cfg = self.config
        seq = self.current_sequence

        self.check_phase(phase, now)
        if phase is Phase.PRESALE and seq + amount > cfg.presale_cap:
            raise CapExceeded("presale", cfg.presale_cap, amount, seq)
        if seq + amount > cfg.total_cap:
            raise CapExceeded("total", cfg.total_cap, amount, seq)
        if holder_balance + amount > cfg.per_holder_cap:
            raise CapExceeded("per_holder", cfg.per_holder_cap, amount, holder_balance)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def next_id(self) -> int:
        """
        Allocate one sequence value against the total cap.

        Re-checks the cap per unit so that nothing can cross it mid-batch.
        """
        seq = self.current_sequence
        if seq + 1 > self.config.total_cap:
            raise CapExceeded("total", self.config.total_cap, 1, seq)
        self._counters.set(_SEQ, seq + 1)
        return seq + 1

    def record_issuance(self, amount: int, phase: Phase) -> None:
        """Phase bookkeeping for units already allocated with `next_id`."""
        if phase is Phase.PRESALE:
            self._counters.set(_PRESALE, self.presale_issued + amount)

    def allocate_replacement(self) -> int:
        """Admin replace: one id against the total cap, no phase accounting."""
        return self.next_id()


__all__ = ["Phase", "Accounting", "require_amount"]
