"""
Shared pytest fixtures:
- Isolation from AVATARS_* environment variables and logging state
- A manual clock positioned before the presale opens
- The default allowlist (alice, bob, carol) and a funded in-memory sale
"""
from __future__ import annotations

import logging
import os

import pytest

from avatars import logging as alog
from avatars.allowlist import AllowlistTree
from avatars.config import SaleConfig
from avatars.sale import AvatarSale

from tests._support import ALLOWLISTED, FixedClock, make_config, make_sale


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("AVATARS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _isolated_logging():
    root = logging.getLogger()
    level = root.level
    alog.clear_context()
    yield
    # drop handlers installed by alog.configure(); pytest manages its own
    for h in list(root.handlers):
        if isinstance(h.formatter, (alog.JSONFormatter, alog.TextFormatter)):
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    alog.clear_context()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def allowlist() -> AllowlistTree:
    return AllowlistTree.from_addresses(ALLOWLISTED)


@pytest.fixture
def config(allowlist: AllowlistTree) -> SaleConfig:
    return make_config(allowlist)


@pytest.fixture
def sale(config: SaleConfig, clock: FixedClock) -> AvatarSale:
    return make_sale(config, clock=clock)
