"""
Avatar sale configuration loader.

Goals
-----
- Layered config with clear precedence:
    1) Explicit overrides passed to `load()` (highest)
    2) Environment variables (AVATARS_*)
    3) Config file (TOML or JSON)
    4) Built-in defaults (lowest)
- One typed, mutable dataclass (`SaleConfig`) that the sale reads on every
  request, so owner updates take effect for the next call.

File shape (TOML)::

    total_cap = 1000
    presale_cap = 150
    per_holder_cap = 5
    presale_price = "0.75"       # whole units, or an int in base units
    public_price = "1"
    presale_start_time = 1767225600
    allowlist_root = "0x…32 bytes…"
    base_uri = "ipfs://…/"
    owner = "0x…"
    manager = "0x…"
    staking_authority = "0x…"
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError
from .utils.bytes import format_units, from_hex, parse_units, to_address, to_hex
from .utils.hash import HASH_LEN, ZERO32

# ------------------------------
# Defaults
# ------------------------------

DEFAULT_TOTAL_CAP = 1000
DEFAULT_PRESALE_CAP = 150
DEFAULT_PER_HOLDER_CAP = 5
DEFAULT_PRESALE_PRICE = parse_units("0.75")
DEFAULT_PUBLIC_PRICE = parse_units("1")
ZERO_ADDRESS = b"\x00" * 20

ENV_PREFIX = "AVATARS_"

_INT_FIELDS = ("total_cap", "presale_cap", "per_holder_cap", "presale_start_time")
_PRICE_FIELDS = ("presale_price", "public_price")
_ADDRESS_FIELDS = ("owner", "manager", "staking_authority")


@dataclass
class SaleConfig:
    total_cap: int = DEFAULT_TOTAL_CAP
    presale_cap: int = DEFAULT_PRESALE_CAP
    per_holder_cap: int = DEFAULT_PER_HOLDER_CAP
    presale_price: int = DEFAULT_PRESALE_PRICE
    public_price: int = DEFAULT_PUBLIC_PRICE
    presale_start_time: int = 0
    allowlist_root: bytes = ZERO32
    base_uri: str = ""
    owner: bytes = ZERO_ADDRESS
    manager: bytes = ZERO_ADDRESS
    staking_authority: bytes = ZERO_ADDRESS

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view: addresses and roots as hex, prices in whole units."""
        d = asdict(self)
        for k in _ADDRESS_FIELDS:
            d[k] = to_hex(d[k])
        d["allowlist_root"] = to_hex(d["allowlist_root"])
        for k in _PRICE_FIELDS:
            d[k] = format_units(d[k])
        return d


# ------------------------------
# Coercion
# ------------------------------


def coerce_field(name: str, value: Any) -> Any:
    try:
        if name in _INT_FIELDS:
            if isinstance(value, bool):
                raise ValueError("bool is not an int")
            n = int(value, 0) if isinstance(value, str) else int(value)
            if n < 0:
                raise ValueError("must be non-negative")
            return n
        if name in _PRICE_FIELDS:
            return parse_units(value)
        if name in _ADDRESS_FIELDS:
            return to_address(value)
        if name == "allowlist_root":
            raw = from_hex(value) if isinstance(value, str) else bytes(value)
            if len(raw) != HASH_LEN:
                raise ValueError(f"root must be {HASH_LEN} bytes, got {len(raw)}")
            return raw
        if name == "base_uri":
            return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid value for {name}: {e}", field=name) from e
    raise ConfigError(f"unknown config key {name!r}", field=name)


def _load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}", path=str(path))
    suffix = path.suffix.lower()
    with path.open("rb") as f:
        if suffix in {".toml", ".tml"}:
            data = tomllib.load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ConfigError(f"unsupported config format: {suffix}. Use .toml or .json")
    # Accept either a flat table or one nested under [sale]
    if isinstance(data.get("sale"), dict):
        data = data["sale"]
    return data


def _env_values() -> Dict[str, str]:
    out: Dict[str, str] = {}
    for f in fields(SaleConfig):
        key = ENV_PREFIX + f.name.upper()
        if key in os.environ and os.environ[key].strip() != "":
            out[f.name] = os.environ[key].strip()
    return out


# ------------------------------
# Main loader
# ------------------------------


def load(config_file: Optional[str | Path] = None, **overrides: Any) -> SaleConfig:
    """
    Load the sale configuration.

    Precedence: overrides > env > file > defaults.

    Parameters
    ----------
    config_file : str | Path | None
        Optional path to a TOML or JSON file.
    overrides : Any
        Keyword overrides, e.g. load(total_cap=10, presale_price="0.5").
    """
    raw: Dict[str, Any] = {}
    if config_file:
        raw.update(_load_file(Path(config_file).expanduser()))
    raw.update(_env_values())
    raw.update(overrides)

    cfg = SaleConfig()
    for name, value in raw.items():
        setattr(cfg, name, coerce_field(name, value))
    return cfg


__all__ = [
    "SaleConfig",
    "coerce_field",
    "load",
    "DEFAULT_TOTAL_CAP",
    "DEFAULT_PRESALE_CAP",
    "DEFAULT_PER_HOLDER_CAP",
    "DEFAULT_PRESALE_PRICE",
    "DEFAULT_PUBLIC_PRICE",
    "ZERO_ADDRESS",
]
