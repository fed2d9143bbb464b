# -*- coding: utf-8 -*-
"""
In-memory collaborators: ledger, randomizer, treasury.
"""
from __future__ import annotations

import pytest

from avatars.collaborators import (BufferedRandomizer, InMemoryLedger,
                                   InMemoryTreasury, LedgerError,
                                   OwnershipLedger, Randomizer,
                                   RandomizerExhausted, Treasury,
                                   TreasuryError)

from tests._support import ALICE, BOB, CAROL


def test_reference_implementations_satisfy_protocols():
    assert isinstance(InMemoryLedger(), OwnershipLedger)
    assert isinstance(BufferedRandomizer(size=1), Randomizer)
    assert isinstance(InMemoryTreasury(), Treasury)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


def test_ledger_create_and_enumerate():
    led = InMemoryLedger()
    led.create(ALICE, 1)
    led.create(ALICE, 2)
    led.create(BOB, 3)
    assert led.balance_of(ALICE) == 2
    assert [led.token_of_owner_by_index(ALICE, i) for i in range(2)] == [1, 2]
    assert led.owner_of(3) == BOB
    assert led.total_supply() == 3
    with pytest.raises(LedgerError):
        led.token_of_owner_by_index(ALICE, 2)
    with pytest.raises(LedgerError):
        led.create(CAROL, 1)


def test_ledger_transfer():
    led = InMemoryLedger()
    led.create(ALICE, 1)
    led.create(ALICE, 2)
    led.transfer(ALICE, BOB, 1)
    assert led.balance_of(ALICE) == 1
    assert led.token_of_owner_by_index(ALICE, 0) == 2
    assert led.owner_of(1) == BOB
    with pytest.raises(LedgerError):
        led.transfer(ALICE, CAROL, 1)


def test_ledger_rollback():
    led = InMemoryLedger()
    led.create(ALICE, 1)
    led.begin_tx()
    led.create(ALICE, 2)
    led.rollback_tx()
    assert led.balance_of(ALICE) == 1
    assert led.owner_of(2) is None


# ---------------------------------------------------------------------------
# Randomizer
# ---------------------------------------------------------------------------


def test_randomizer_draws_without_replacement():
    rnd = BufferedRandomizer(size=50)
    draws = [rnd.get_random_avatar() for _ in range(50)]
    assert sorted(draws) == list(range(50))
    with pytest.raises(RandomizerExhausted):
        rnd.get_random_avatar()


def test_randomizer_is_deterministic_per_seed():
    a, b = BufferedRandomizer(size=100), BufferedRandomizer(size=100)
    assert [a.get_random_avatar() for _ in range(10)] == [b.get_random_avatar() for _ in range(10)]
    x, y = BufferedRandomizer(size=100), BufferedRandomizer(size=100, seed=b"other")
    assert [x.get_random_avatar() for _ in range(10)] != [y.get_random_avatar() for _ in range(10)]


def test_remove_buffer_returns_trait_to_pool():
    rnd = BufferedRandomizer(traits=[4])
    assert rnd.get_random_avatar() == 4
    assert rnd.available == ()
    rnd.remove_buffer(4)
    rnd.remove_buffer(4)
    assert rnd.available == (4,)
    assert rnd.get_random_avatar() == 4


def test_randomizer_rollback_replays_stream():
    rnd = BufferedRandomizer(size=100)
    rnd.begin_tx()
    first = rnd.get_random_avatar()
    rnd.rollback_tx()
    assert len(rnd.available) == 100
    assert rnd.get_random_avatar() == first


# ---------------------------------------------------------------------------
# Treasury
# ---------------------------------------------------------------------------


def test_treasury_transfer():
    t = InMemoryTreasury()
    t.credit(ALICE, 100)
    t.transfer(ALICE, BOB, 40)
    assert t.balance_of(ALICE) == 60
    assert t.balance_of(BOB) == 40
    with pytest.raises(TreasuryError):
        t.transfer(ALICE, BOB, 61)


@pytest.mark.parametrize("amount", [-1, True, 1.0, 1 << 257])
def test_treasury_rejects_bad_amounts(amount):
    t = InMemoryTreasury()
    with pytest.raises(TreasuryError):
        t.credit(ALICE, amount)


def test_treasury_reject_incoming():
    t = InMemoryTreasury()
    t.credit(ALICE, 10)
    t.reject_incoming(BOB)
    with pytest.raises(TreasuryError):
        t.transfer(ALICE, BOB, 1)
    with pytest.raises(TreasuryError):
        t.transfer(ALICE, BOB, 0)
    t.reject_incoming(BOB, reject=False)
    t.transfer(ALICE, BOB, 1)
    assert t.balance_of(BOB) == 1


def test_treasury_rollback():
    t = InMemoryTreasury()
    t.credit(ALICE, 10)
    t.begin_tx()
    t.transfer(ALICE, BOB, 10)
    t.rollback_tx()
    assert t.balance_of(ALICE) == 10
    assert t.balance_of(BOB) == 0
