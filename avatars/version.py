"""
Version helpers for the avatars package.

- Exposes __version__ (PEP 440 compatible).
- AVATARS_VERSION env var is an authoritative override (release builds).
"""

from __future__ import annotations

import os

DEFAULT_VERSION = "0.1.0"

__version__ = os.environ.get("AVATARS_VERSION", "").strip() or DEFAULT_VERSION

__all__ = ["__version__", "DEFAULT_VERSION"]
