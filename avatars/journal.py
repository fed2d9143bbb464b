"""
avatars.journal - journaled key/value state with checkpoints, revert/commit.

A deterministic, in-memory write journal layered over a base mapping. It
supports nested checkpoints via a stack of overlays. Writes go to the top
overlay; reads consult overlays from top to base. `commit()` merges the top
overlay into the next layer (or the base when it is the last one).
`revert()` discards the top overlay.

Intended usage
--------------
    j = Journal()
    j.begin()
    j.set(1, record)
    j.commit()                      # or j.revert()

Every stateful piece of a sale request (counters, records, events, and the
in-memory collaborators) keeps its data in a Journal and exposes the
`begin_tx` / `commit_tx` / `rollback_tx` trio through `JournaledState`, so a
request can stage all its writes and drop them together on failure.

Values should be immutable (ints, tuples, frozen dataclasses): the journal
stores references, not copies.
"""

from __future__ import annotations

from typing import (Dict, Generic, Iterator, List, MutableMapping, Optional,
                    Tuple, TypeVar)

K = TypeVar("K")
V = TypeVar("V")


class _Deleted:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<deleted>"


_DELETED = _Deleted()


class Journal(Generic[K, V]):
    """
    Copy-on-write overlay map with nested checkpoints.

    Parameters
    ----------
    base : MutableMapping[K, V] | None
        The persisted mapping. Only `commit()` of the outermost checkpoint
        touches it.
    """

    def __init__(self, base: Optional[MutableMapping[K, V]] = None) -> None:
        self._base: MutableMapping[K, V] = base if base is not None else {}
        self._layers: List[Dict[K, object]] = []

    # ------------------------------------------------------------------ #
    # Checkpointing
    # ------------------------------------------------------------------ #

    def depth(self) -> int:
        """Number of open checkpoints (0 when writes go straight to base)."""
        return len(self._layers)

    def begin(self) -> int:
        self._layers.append({})
        return len(self._layers)

    def commit(self) -> None:
        if not self._layers:
            raise RuntimeError("commit without an open checkpoint")
        top = self._layers.pop()
        if self._layers:
            self._layers[-1].update(top)
            return
        for k, v in top.items():
            if v is _DELETED:
                self._base.pop(k, None)
            else:
                self._base[k] = v  # type: ignore[assignment]

    def revert(self) -> None:
        if not self._layers:
            raise RuntimeError("revert without an open checkpoint")
        self._layers.pop()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        for layer in reversed(self._layers):
            if key in layer:
                v = layer[key]
                return default if v is _DELETED else v  # type: ignore[return-value]
        return self._base.get(key, default)

    def __contains__(self, key: object) -> bool:
        for layer in reversed(self._layers):
            if key in layer:
                return layer[key] is not _DELETED
        return key in self._base

    def items(self) -> Iterator[Tuple[K, V]]:
        """Merged view (base order first, then keys first staged in overlays)."""
        merged: Dict[K, object] = dict(self._base)
        for layer in self._layers:
            merged.update(layer)
        for k, v in merged.items():
            if v is not _DELETED:
                yield k, v  # type: ignore[misc]

    def __len__(self) -> int:
        return sum(1 for _ in self.items())

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def set(self, key: K, value: V) -> None:
        if self._layers:
            self._layers[-1][key] = value
        else:
            self._base[key] = value

    def delete(self, key: K) -> None:
        if self._layers:
            self._layers[-1][key] = _DELETED
        else:
            self._base.pop(key, None)


class JournaledState:
    """
    Mixin exposing the transaction trio over the `_journals` an object owns.

    Subclasses set `self._journals` to the list of Journal instances whose
    writes must move together.
    """

    _journals: List[Journal]

    def begin_tx(self) -> None:
        for j in self._journals:
            j.begin()

    def commit_tx(self) -> None:
        for j in self._journals:
            j.commit()

    def rollback_tx(self) -> None:
        for j in self._journals:
            j.revert()


__all__ = ["Journal", "JournaledState"]
