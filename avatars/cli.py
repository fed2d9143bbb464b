"""
avatars - command line for sale operators.

Commands:
  avatars allowlist root FILE              print the allowlist root of an address file
  avatars allowlist proof FILE ADDRESS     print ADDRESS's proof as a JSON list of hex
  avatars allowlist verify ROOT ADDRESS [PROOF...]
                                           exit 0 iff ADDRESS is a member under ROOT
  avatars config show [--config PATH]      print the effective sale configuration

Address files hold one hex address per line; blank lines and lines starting
with '#' are ignored.

Examples:
  avatars allowlist root presale.txt
  avatars allowlist proof presale.txt 0x5c1e…
  avatars --log-level DEBUG config show --config sale.toml
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from . import logging as alog
from .allowlist import AllowlistTree, is_member
from .config import load
from .errors import ConfigError
from .utils.bytes import from_hex, to_hex

app = typer.Typer(
    name="avatars",
    help="Avatar sale operator tools",
    no_args_is_help=True,
    add_completion=False,
)
allowlist_app = typer.Typer(help="Allowlist commitments and proofs", no_args_is_help=True)
config_app = typer.Typer(help="Sale configuration", no_args_is_help=True)
app.add_typer(allowlist_app, name="allowlist")
app.add_typer(config_app, name="config")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Minimum log level", envvar="AVATARS_LOG_LEVEL"
    ),
    json_logs: Optional[bool] = typer.Option(
        None, "--json-logs/--text-logs", help="Log format (default: auto)"
    ),
) -> None:
    alog.configure(json=json_logs, level=log_level, stream=sys.stderr)


def _read_addresses(path: Path) -> List[str]:
    out: List[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            out.append(line)
    return out


def _die(msg: str, code: int = 2) -> NoReturn:
    typer.echo(msg, err=True)
    raise typer.Exit(code)


def _tree(path: Path) -> AllowlistTree:
    try:
        return AllowlistTree.from_addresses(_read_addresses(path))
    except ValueError as e:
        _die(f"invalid allowlist {path}: {e}")


@allowlist_app.command("root")
def allowlist_root(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
) -> None:
    """Print the allowlist root for an address file."""
    tree = _tree(file)
    typer.echo(to_hex(tree.root))


@allowlist_app.command("proof")
def allowlist_proof(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    address: str = typer.Argument(..., help="Hex address to prove"),
) -> None:
    """Print the proof for ADDRESS as a JSON list of hex strings."""
    tree = _tree(file)
    try:
        proof = tree.proof_for(address)
    except KeyError:
        _die(f"{address} is not in {file}", code=1)
        return
    except ValueError as e:
        _die(f"invalid address: {e}")
        return
    typer.echo(json.dumps([to_hex(p) for p in proof]))


@allowlist_app.command("verify")
def allowlist_verify(
    root: str = typer.Argument(..., help="Allowlist root (hex)"),
    address: str = typer.Argument(..., help="Hex address"),
    proof: Optional[List[str]] = typer.Argument(None, help="Sibling hashes (hex), bottom first"),
) -> None:
    """Exit 0 if ADDRESS is a member under ROOT, 1 otherwise."""
    try:
        root_b = from_hex(root)
        proof_b = [from_hex(p) for p in (proof or [])]
    except ValueError as e:
        _die(f"invalid hex: {e}")
        return
    if is_member(address, proof_b, root_b):
        typer.echo("member")
        return
    typer.echo("not a member")
    raise typer.Exit(1)


@config_app.command("show")
def config_show(
    config: Optional[Path] = typer.Option(None, "--config", help="TOML or JSON config file"),
) -> None:
    """Print the effective configuration (defaults < file < env)."""
    try:
        cfg = load(config)
    except ConfigError as e:
        _die(f"config error: {e}")
        return
    typer.echo(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))


def main() -> None:  # pragma: no cover - console entrypoint
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
