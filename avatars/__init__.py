"""
Avatar sale engine.

Issues avatar records under a two-phase sale (allowlisted presale, then
public sale), keeps the supply counters honest, and lets a staking authority
flag records as staked. Collaborators (ownership ledger, randomizer,
treasury) are injected; in-memory reference implementations live in
`avatars.collaborators`.

Only re-exports the version here to keep import-time side effects near zero.
"""

from __future__ import annotations

from .version import __version__


def get_version() -> str:
    """Return the semantic version string for this package."""
    return __version__


__all__ = ["__version__", "get_version"]
