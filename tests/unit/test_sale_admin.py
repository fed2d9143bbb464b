# -*- coding: utf-8 -*-
"""
Owner and staking-authority operations of the sale:
admin replace, staking flag, setters, ownership transfer, withdraw, views.
"""
from __future__ import annotations

import pytest

from avatars.collaborators import BufferedRandomizer
from avatars.errors import (CapExceeded, ConfigError, NotFound, Unauthorized,
                            UpstreamFailure)
from avatars.events import (EVT_CONFIG, EVT_OWNERSHIP, EVT_REPLACED, EVT_STAKE,
                            EVT_WITHDRAWN)
from avatars.utils.bytes import parse_units, to_hex

from tests._support import (ALICE, BOB, MALLORY, MANAGER, OWNER, PUBLIC_PRICE,
                            STAKER, make_sale, snapshot)


# ---------------------------------------------------------------------------
# Admin replace
# ---------------------------------------------------------------------------


def test_admin_replace_reuses_trait_and_releases_it(config, clock):
    rnd = BufferedRandomizer(traits=[1, 2, 3])
    sale = make_sale(config, clock=clock, randomizer=rnd)

    new_id = sale.admin_replace(OWNER, ALICE, 7)

    assert new_id == 1
    rec = sale.get_avatar(new_id)
    assert rec.trait_id == 7 and rec.staked is False
    assert sale.balance_of(ALICE) == 1
    # no draw happened; 7 is now eligible
    assert sorted(rnd.available) == [1, 2, 3, 7]
    ev = sale.events.named(EVT_REPLACED)[-1]
    assert ev.args == {"to": ALICE, "id": 1, "trait_id": 7}


def test_admin_replace_consumes_total_cap_only(sale, config):
    config.per_holder_cap = 1
    sale.public_mint(ALICE, 1, PUBLIC_PRICE)
    assert sale.admin_replace(OWNER, ALICE, 9) == 2
    assert sale.balance_of(ALICE) == 2
    assert sale.presale_issued == 0
    assert sale.public_mint(BOB, 1, PUBLIC_PRICE) == [3]


def test_admin_replace_requires_owner(sale):
    before = snapshot(sale)
    with pytest.raises(Unauthorized):
        sale.admin_replace(MALLORY, ALICE, 7)
    assert snapshot(sale) == before


def test_admin_replace_respects_total_cap(config, clock):
    config.total_cap = 1
    sale = make_sale(config, clock=clock, randomizer=BufferedRandomizer(traits=[1]))
    sale.public_mint(ALICE, 1, PUBLIC_PRICE)
    with pytest.raises(CapExceeded) as ei:
        sale.admin_replace(OWNER, BOB, 7)
    assert ei.value.data["cap"] == "total"
    assert sale.randomizer.available == ()
    assert sale.balance_of(BOB) == 0


# ---------------------------------------------------------------------------
# Staking
# ---------------------------------------------------------------------------


def test_set_staked_is_idempotent(sale):
    sale.public_mint(ALICE, 1, PUBLIC_PRICE)

    rec = sale.set_staked(STAKER, 1, True)
    assert rec.staked is True
    again = sale.set_staked(STAKER, 1, True)
    assert again == rec
    assert len(sale.events.named(EVT_STAKE)) == 1

    assert sale.set_staked(STAKER, 1, False).staked is False
    assert len(sale.events.named(EVT_STAKE)) == 2
    assert sale.get_avatar(1).trait_id == rec.trait_id


def test_set_staked_requires_authority(sale):
    sale.public_mint(ALICE, 1, PUBLIC_PRICE)
    with pytest.raises(Unauthorized):
        sale.set_staked(ALICE, 1, True)
    with pytest.raises(Unauthorized):
        sale.set_staked(OWNER, 1, True)
    assert sale.get_avatar(1).staked is False


def test_set_staked_unknown_id(sale):
    with pytest.raises(NotFound):
        sale.set_staked(STAKER, 42, True)


def test_unset_staking_authority_locks_staking(sale, config):
    config.staking_authority = b"\x00" * 20
    sale.public_mint(ALICE, 1, PUBLIC_PRICE)
    with pytest.raises(Unauthorized):
        sale.set_staked(b"\x00" * 20, 1, True)


# ---------------------------------------------------------------------------
# Setters & ownership
# ---------------------------------------------------------------------------


def test_price_setters(sale, config):
    sale.set_public_price(OWNER, "0.5")
    sale.set_presale_price(OWNER, 123)
    assert config.public_price == parse_units("0.5")
    assert config.presale_price == 123
    assert [e.args["field"] for e in sale.events.named(EVT_CONFIG)] == [
        "public_price",
        "presale_price",
    ]
    # takes effect for the next request
    sale.public_mint(ALICE, 1, parse_units("0.5"))


@pytest.mark.parametrize(
    "setter, value, field, expected",
    [
        ("set_total_cap", 10, "total_cap", 10),
        ("set_presale_cap", 3, "presale_cap", 3),
        ("set_per_holder_cap", 2, "per_holder_cap", 2),
        ("set_presale_start_time", 99, "presale_start_time", 99),
        ("set_base_uri", "ipfs://cid/", "base_uri", "ipfs://cid/"),
        ("set_allowlist_root", "0x" + "ab" * 32, "allowlist_root", bytes.fromhex("ab" * 32)),
        ("set_manager", to_hex(BOB), "manager", BOB),
        ("set_staking_authority", BOB, "staking_authority", BOB),
    ],
)
def test_owner_setters(sale, config, setter, value, field, expected):
    getattr(sale, setter)(OWNER, value)
    assert getattr(config, field) == expected


@pytest.mark.parametrize(
    "setter, value",
    [("set_total_cap", 1), ("set_base_uri", "x"), ("set_manager", MALLORY)],
)
def test_setters_require_owner(sale, config, setter, value):
    before = config.to_dict()
    with pytest.raises(Unauthorized):
        getattr(sale, setter)(MALLORY, value)
    assert config.to_dict() == before
    assert len(sale.events) == 0


def test_bad_setter_value_rejected(sale, config):
    with pytest.raises(ConfigError):
        sale.set_total_cap(OWNER, "lots")
    with pytest.raises(ConfigError):
        sale.set_allowlist_root(OWNER, b"\x01" * 31)
    assert config.total_cap == 1000
    assert len(sale.events) == 0


def test_set_randomizer(sale):
    sale.set_randomizer(OWNER, BufferedRandomizer(traits=[42]))
    sale.public_mint(ALICE, 1, PUBLIC_PRICE)
    assert sale.get_avatar(1).trait_id == 42
    with pytest.raises(Unauthorized):
        sale.set_randomizer(ALICE, BufferedRandomizer())


def test_transfer_ownership(sale, config):
    sale.transfer_ownership(OWNER, BOB)
    assert config.owner == BOB
    ev = sale.events.named(EVT_OWNERSHIP)[-1]
    assert ev.args == {"previous": OWNER, "new": BOB}

    with pytest.raises(Unauthorized):
        sale.set_base_uri(OWNER, "x")
    sale.set_base_uri(BOB, "x")


# ---------------------------------------------------------------------------
# Withdraw
# ---------------------------------------------------------------------------


def test_withdraw_sweeps_sale_balance(sale):
    sale.treasury.credit(sale.address, 500)
    assert sale.withdraw(OWNER) == 500
    assert sale.treasury.balance_of(sale.address) == 0
    assert sale.treasury.balance_of(MANAGER) == 500
    assert sale.events.named(EVT_WITHDRAWN)[-1].args == {"to": MANAGER, "amount": 500}


def test_withdraw_empty(sale):
    assert sale.withdraw(OWNER) == 0


def test_withdraw_failure_moves_nothing(sale):
    sale.treasury.credit(sale.address, 500)
    sale.treasury.reject_incoming(MANAGER)
    with pytest.raises(UpstreamFailure):
        sale.withdraw(OWNER)
    assert sale.treasury.balance_of(sale.address) == 500
    assert not sale.events.named(EVT_WITHDRAWN)


def test_withdraw_requires_owner(sale):
    with pytest.raises(Unauthorized):
        sale.withdraw(MANAGER)


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def test_token_uri(sale):
    sale.set_base_uri(OWNER, "ipfs://cid/")
    sale.public_mint(ALICE, 1, PUBLIC_PRICE)
    assert sale.token_uri(1) == "ipfs://cid/1"
    with pytest.raises(NotFound):
        sale.token_uri(2)


def test_get_avatar_unknown(sale):
    with pytest.raises(NotFound) as ei:
        sale.get_avatar(1)
    assert ei.value.to_dict()["data"] == {"id": 1}


def test_avatars_of_follows_ledger(sale):
    sale.public_mint(ALICE, 2, 2 * PUBLIC_PRICE)
    sale.public_mint(BOB, 1, PUBLIC_PRICE)
    sale.ledger.transfer(ALICE, BOB, 1)
    assert [r.id for r in sale.avatars_of(ALICE)] == [2]
    assert [r.id for r in sale.avatars_of(BOB)] == [3, 1]
    assert sale.avatars_of(MALLORY) == []


@pytest.mark.parametrize("trait", ["7", 7.0, None, True, -1])
def test_admin_replace_rejects_bad_trait_ids(sale, trait):
    before = snapshot(sale)
    with pytest.raises(ConfigError) as ei:
        sale.admin_replace(OWNER, ALICE, trait)
    assert ei.value.data["field"] == "trait_id"
    assert snapshot(sale) == before


@pytest.mark.parametrize("flag", ["false", 0, 1, None])
def test_set_staked_requires_a_real_bool(sale, flag):
    sale.public_mint(ALICE, 1, PUBLIC_PRICE)
    with pytest.raises(ConfigError):
        sale.set_staked(STAKER, 1, flag)
    assert sale.get_avatar(1).staked is False
    assert not sale.events.named(EVT_STAKE)
