"""
avatars.collaborators.randomizer - trait id source.

The sale asks a `Randomizer` for one trait id per issued avatar and, on an
admin replacement, hands a trait back with `remove_buffer` so it can be
drawn again. The sale treats trait ids as opaque.

`BufferedRandomizer` is a deterministic reference implementation:

- a pool ("buffer") of available trait ids, initially 0..size-1
- draws without replacement, index chosen by a counter-mode Keccak DRBG:
      block_i = keccak256(seed || "|" || BE64(i))
  with rejection sampling to avoid modulo bias
- `remove_buffer(t)` puts `t` back into the pool (no-op if already there)
- an empty pool raises `RandomizerExhausted`

Pool and draw counter are journaled so a rolled-back request returns its
draws to the pool and replays the same stream next time.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Tuple, runtime_checkable

from ..journal import Journal, JournaledState
from ..utils.hash import keccak256

_POOL = "pool"
_COUNTER = "counter"


class RandomizerExhausted(Exception):
    """No trait ids left to draw."""


@runtime_checkable
class Randomizer(Protocol):
    def get_random_avatar(self) -> int: ...

    def remove_buffer(self, trait_id: int) -> None: ...


class BufferedRandomizer(JournaledState):
    def __init__(
        self,
        size: int = 10_000,
        *,
        seed: bytes = b"avatars/randomizer/v1",
        traits: Optional[Iterable[int]] = None,
    ) -> None:
        pool: Tuple[int, ...] = tuple(traits) if traits is not None else tuple(range(size))
        self._seed = bytes(seed)
        self._state: Journal[str, object] = Journal({_POOL: pool, _COUNTER: 0})
        self._journals = [self._state]

    # ------------------------------------------------------------------ #
    # DRBG
    # ------------------------------------------------------------------ #

    def _next_u64(self) -> int:
        ctr = int(self._state.get(_COUNTER, 0))  # type: ignore[arg-type]
        self._state.set(_COUNTER, ctr + 1)
        block = keccak256(self._seed + b"|" + ctr.to_bytes(8, "big"))
        return int.from_bytes(block[:8], "big")

    def _randrange(self, n: int) -> int:
        m = 1 << 64
        t = (m // n) * n
        while True:
            x = self._next_u64()
            if x < t:
                return x % n

    # ------------------------------------------------------------------ #
    # Randomizer surface
    # ------------------------------------------------------------------ #

    @property
    def available(self) -> Tuple[int, ...]:
        return self._state.get(_POOL, ()) or ()  # type: ignore[return-value]

    def get_random_avatar(self) -> int:
        pool = list(self.available)
        if not pool:
            raise RandomizerExhausted("trait pool is empty")
        i = self._randrange(len(pool))
        trait = pool[i]
        # swap-remove keeps the draw O(1) in list terms
        pool[i] = pool[-1]
        pool.pop()
        self._state.set(_POOL, tuple(pool))
        return trait

    def remove_buffer(self, trait_id: int) -> None:
        pool = self.available
        if trait_id not in pool:
            self._state.set(_POOL, pool + (int(trait_id),))


__all__ = ["Randomizer", "RandomizerExhausted", "BufferedRandomizer"]
