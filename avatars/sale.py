"""
avatars.sale - the mint controller.

`AvatarSale` turns mint requests into avatar records:

    START -> PHASE_CHECK -> ALLOWLIST_CHECK (presale) -> CAP_CHECK -> PAYMENT_CHECK
          -> ISSUE_LOOP (per unit: next id, trait draw, ledger create, record write)
          -> FORWARD_PAYMENT -> DONE

Every public mutator runs as one request:

* Serialized: an RLock admits one request at a time; an in-progress flag,
  set at entry and cleared on every exit path, rejects re-entry from a
  collaborator callback with `ReentrantCall`.
* All-or-nothing: counters, records, events and every collaborator exposing
  `begin_tx` / `commit_tx` / `rollback_tx` are checkpointed at entry and
  rolled back together if anything raises.
* Collaborator exceptions surface as `UpstreamFailure` with the original
  chained as `__cause__`.

Payment policy: `value >= unit_price * amount` is required; any excess is
kept and forwarded to the Manager with the rest. Nothing is refunded.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence

from . import logging as alog
from .access import require_owner, require_staking_authority
from .accounting import Accounting, Phase, require_amount
from .allowlist import is_member
from .collaborators import BufferedRandomizer, InMemoryLedger, InMemoryTreasury
from .config import SaleConfig, coerce_field
from .errors import (AvatarError, ConfigError, InsufficientPayment,
                     NotAllowlisted, NotFound, ReentrantCall, SaleErrorCode,
                     upstream)
from .events import (EVT_CONFIG, EVT_MINTED, EVT_OWNERSHIP, EVT_REPLACED,
                     EVT_STAKE, EVT_WITHDRAWN, EventLog)
from .records import AvatarRecord, RecordStore
from .utils.bytes import to_address, to_hex
from .utils.hash import keccak256

log = alog.get_logger(__name__)

SALE_ADDRESS = keccak256(b"avatars/sale")[:20]


def _call(name: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Invoke a collaborator, mapping its failures to UpstreamFailure."""
    try:
        return fn(*args)
    except AvatarError:
        raise
    except Exception as exc:
        raise upstream(name, exc) from exc


def _tx_hook(obj: Any, name: str) -> None:
    fn = getattr(obj, name, None)
    if callable(fn):
        fn()


def _require_trait_id(trait_id: Any) -> int:
    if isinstance(trait_id, bool) or not isinstance(trait_id, int) or trait_id < 0:
        raise ConfigError("trait id must be a non-negative int", field="trait_id", value=trait_id)
    return trait_id


class AvatarSale:
    """
    Two-phase avatar sale over injected collaborators.

    Parameters
    ----------
    config : SaleConfig
        Live configuration; owner setters mutate it in place.
    ledger, randomizer, treasury :
        Ownership ledger, trait source and payment ledger (see
        `avatars.collaborators` for the expected surface).
    address : bytes | str
        The sale's own account in the treasury (payments transit it).
    clock : callable
        Returns epoch seconds; defaults to `time.time`.
    """

    def __init__(
        self,
        config: SaleConfig,
        *,
        ledger: Any,
        randomizer: Any,
        treasury: Any,
        address: bytes | str = SALE_ADDRESS,
        clock: Callable[[], float] = time.time,
        events: Optional[EventLog] = None,
    ) -> None:
        self.config = config
        self.ledger = ledger
        self.randomizer = randomizer
        self.treasury = treasury
        self.address = to_address(address)
        self.accounting = Accounting(config)
        self.records = RecordStore()
        self.events = events if events is not None else EventLog()
        self._clock = clock
        self._lock = threading.RLock()
        self._in_progress = False

    @classmethod
    def in_memory(cls, config: Optional[SaleConfig] = None, **kwargs: Any) -> "AvatarSale":
        """Sale wired to the deterministic in-memory collaborators."""
        kwargs.setdefault("ledger", InMemoryLedger())
        kwargs.setdefault("randomizer", BufferedRandomizer())
        kwargs.setdefault("treasury", InMemoryTreasury())
        return cls(config if config is not None else SaleConfig(), **kwargs)

    # ------------------------------------------------------------------ #
    # Request boundary
    # ------------------------------------------------------------------ #

    @contextmanager
    def _request(self, operation: str, caller: Any) -> Iterator[None]:
        with self._lock:
            if self._in_progress:
                raise ReentrantCall(operation)
            self._in_progress = True
            try:
                with alog.trace_scope():
                    alog.bind(operation=operation, caller=caller)
                    participants = [
                        self.accounting,
                        self.records,
                        self.events,
                        self.ledger,
                        self.randomizer,
                        self.treasury,
                    ]
                    for p in participants:
                        _tx_hook(p, "begin_tx")
                    try:
                        yield
                    except BaseException as exc:
                        for p in reversed(participants):
                            _tx_hook(p, "rollback_tx")
                        self._log_failure(exc)
                        raise
                    for p in participants:
                        _tx_hook(p, "commit_tx")
            finally:
                self._in_progress = False

    @staticmethod
    def _log_failure(exc: BaseException) -> None:
        if isinstance(exc, AvatarError) and exc.code != SaleErrorCode.UPSTREAM_FAILURE:
            log.info("request rejected", extra={"code": exc.code, "data": exc.data})
        else:
            log.warning("request aborted", exc_info=exc)

    # ------------------------------------------------------------------ #
    # Mint entrypoints
    # ------------------------------------------------------------------ #

    def presale_mint(
        self, caller: Any, amount: int, proof: Sequence[bytes], value: int
    ) -> List[int]:
        """Allowlisted mint; `proof` must place `caller` under the allowlist root."""
        with self._request("presale_mint", caller):
            return self._mint(Phase.PRESALE, caller, amount, value, proof)

    def public_mint(self, caller: Any, amount: int, value: int) -> List[int]:
        with self._request("public_mint", caller):
            return self._mint(Phase.PUBLIC, caller, amount, value, None)

    def unit_price(self, phase: Phase) -> int:
        if phase is Phase.PRESALE:
            return self.config.presale_price
        return self.config.public_price

    def _mint(
        self,
        phase: Phase,
        caller: Any,
        amount: int,
        value: int,
        proof: Optional[Sequence[bytes]],
    ) -> List[int]:
        cfg = self.config
        buyer = to_address(caller)
        require_amount(amount)
        now = self._clock()

        self.accounting.check_phase(phase, now)
        # membership precedes the caps: once the presale cap is full an outsider
        # still gets NotAllowlisted, a member gets CapExceeded
        if phase is Phase.PRESALE and not is_member(buyer, proof, cfg.allowlist_root):
            raise NotAllowlisted(caller=buyer)

        held = _call("ledger", self.ledger.balance_of, buyer)
        self.accounting.can_issue(phase, held, amount, now)

        required = self.unit_price(phase) * amount
        if isinstance(value, bool) or not isinstance(value, int) or value < required:
            raise InsufficientPayment(required, value if isinstance(value, int) else 0)

        ids: List[int] = []
        for _ in range(amount):
            token_id = self.accounting.next_id()
            trait = _call("randomizer", self.randomizer.get_random_avatar)
            _call("ledger", self.ledger.create, buyer, token_id)
            self.records.put(AvatarRecord(id=token_id, trait_id=trait))
            self.events.emit(
                EVT_MINTED,
                {"to": buyer, "id": token_id, "trait_id": trait, "phase": phase.value},
            )
            ids.append(token_id)
        self.accounting.record_issuance(amount, phase)

        self._forward_payment(buyer, value)
        log.info(
            "mint accepted",
            extra={"phase": phase.value, "ids": ids, "paid": value},
        )
        return ids

    def _forward_payment(self, buyer: bytes, value: int) -> None:
        if value == 0:
            return
        _call("treasury", self.treasury.transfer, buyer, self.address, value)
        _call("manager", self.treasury.transfer, self.address, self.config.manager, value)

    # ------------------------------------------------------------------ #
    # Admin replace & staking
    # ------------------------------------------------------------------ #

    def admin_replace(self, caller: Any, holder: Any, old_trait_id: int) -> int:
        """
        Owner only: issue a fresh id to `holder` carrying `old_trait_id`, and
        release that trait back to the randomizer's pool.

        Consumes one unit of the total cap; no payment, no phase accounting,
        no per-holder cap.
        """
        with self._request("admin_replace", caller):
            require_owner(self.config, caller)
            to = to_address(holder)
            trait = _require_trait_id(old_trait_id)
            token_id = self.accounting.allocate_replacement()
            _call("ledger", self.ledger.create, to, token_id)
            self.records.put(AvatarRecord(id=token_id, trait_id=trait))
            _call("randomizer", self.randomizer.remove_buffer, trait)
            self.events.emit(EVT_REPLACED, {"to": to, "id": token_id, "trait_id": trait})
            log.info("avatar replaced", extra={"id": token_id, "trait_id": trait})
            return token_id

    def set_staked(self, caller: Any, avatar_id: int, value: bool) -> AvatarRecord:
        """Staking authority only. Idempotent: repeating a value changes nothing."""
        with self._request("set_staked", caller):
            if avatar_id not in self.records:
                raise NotFound(avatar_id)
            require_staking_authority(self.config, caller)
            if not isinstance(value, bool):
                raise ConfigError("staked flag must be a bool", field="staked", value=value)
            before = self.records.get(avatar_id)
            rec = self.records.set_staked(avatar_id, value)
            if before.staked != rec.staked:
                self.events.emit(EVT_STAKE, {"id": avatar_id, "staked": rec.staked})
            return rec

    # ------------------------------------------------------------------ #
    # Administrative surface
    # ------------------------------------------------------------------ #

    def _set_field(self, caller: Any, name: str, value: Any) -> None:
        with self._request(f"set_{name}", caller):
            require_owner(self.config, caller)
            setattr(self.config, name, coerce_field(name, value))
            shown = getattr(self.config, name)
            self.events.emit(EVT_CONFIG, {"field": name, "value": shown})
            log.info("config updated", extra={"field": name})

    def set_presale_price(self, caller: Any, price: int | str) -> None:
        self._set_field(caller, "presale_price", price)

    def set_public_price(self, caller: Any, price: int | str) -> None:
        self._set_field(caller, "public_price", price)

    def set_total_cap(self, caller: Any, cap: int) -> None:
        self._set_field(caller, "total_cap", cap)

    def set_presale_cap(self, caller: Any, cap: int) -> None:
        self._set_field(caller, "presale_cap", cap)

    def set_per_holder_cap(self, caller: Any, cap: int) -> None:
        self._set_field(caller, "per_holder_cap", cap)

    def set_base_uri(self, caller: Any, base_uri: str) -> None:
        self._set_field(caller, "base_uri", base_uri)

    def set_allowlist_root(self, caller: Any, root: bytes | str) -> None:
        self._set_field(caller, "allowlist_root", root)

    def set_presale_start_time(self, caller: Any, start: int) -> None:
        self._set_field(caller, "presale_start_time", start)

    def set_manager(self, caller: Any, manager: bytes | str) -> None:
        self._set_field(caller, "manager", manager)

    def set_staking_authority(self, caller: Any, authority: bytes | str) -> None:
        self._set_field(caller, "staking_authority", authority)

    def set_randomizer(self, caller: Any, randomizer: Any) -> None:
        with self._request("set_randomizer", caller):
            require_owner(self.config, caller)
            self.randomizer = randomizer
            self.events.emit(EVT_CONFIG, {"field": "randomizer", "value": type(randomizer).__name__})

    def transfer_ownership(self, caller: Any, new_owner: bytes | str) -> None:
        with self._request("transfer_ownership", caller):
            previous = require_owner(self.config, caller)
            self.config.owner = coerce_field("owner", new_owner)
            self.events.emit(EVT_OWNERSHIP, {"previous": previous, "new": self.config.owner})

    def withdraw(self, caller: Any) -> int:
        """Owner only: forward the sale account's whole balance to the Manager."""
        with self._request("withdraw", caller):
            require_owner(self.config, caller)
            amount = _call("treasury", self.treasury.balance_of, self.address)
            if amount:
                _call("manager", self.treasury.transfer, self.address, self.config.manager, amount)
            self.events.emit(EVT_WITHDRAWN, {"to": self.config.manager, "amount": amount})
            log.info("withdrawn", extra={"amount": amount, "to": to_hex(self.config.manager)})
            return amount

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def total_issued(self) -> int:
        with self._lock:
            return self.accounting.current_sequence

    @property
    def presale_issued(self) -> int:
        with self._lock:
            return self.accounting.presale_issued

    def get_avatar(self, avatar_id: int) -> AvatarRecord:
        with self._lock:
            rec = self.records.get(avatar_id)
        if rec is None:
            raise NotFound(avatar_id)
        return rec

    def avatars_of(self, holder: Any) -> List[AvatarRecord]:
        with self._lock:
            return self.records.list_by_holder(self.ledger, to_address(holder))

    def balance_of(self, holder: Any) -> int:
        with self._lock:
            return self.ledger.balance_of(to_address(holder))

    def token_uri(self, avatar_id: int) -> str:
        self.get_avatar(avatar_id)
        return f"{self.config.base_uri}{avatar_id}"


__all__ = ["AvatarSale", "SALE_ADDRESS"]
