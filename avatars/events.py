"""
avatars.events - in-process event log.

Every committed state change of the sale appends one `Event`. The log takes
part in request transactions: `begin_tx` marks the current length,
`rollback_tx` truncates back to it, so a failed request leaves no events.

Event names
-----------
AvatarMinted          {"to", "id", "trait_id", "phase"}
AvatarReplaced        {"to", "id", "trait_id"}
StakeChanged          {"id", "staked"}
ConfigUpdated         {"field", "value"}
OwnershipTransferred  {"previous", "new"}
Withdrawn             {"to", "amount"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

EVT_MINTED = "AvatarMinted"
EVT_REPLACED = "AvatarReplaced"
EVT_STAKE = "StakeChanged"
EVT_CONFIG = "ConfigUpdated"
EVT_OWNERSHIP = "OwnershipTransferred"
EVT_WITHDRAWN = "Withdrawn"


@dataclass(frozen=True)
class Event:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


class EventLog:
    def __init__(self) -> None:
        self._events: List[Event] = []
        self._marks: List[int] = []

    def emit(self, name: str, args: Optional[Dict[str, Any]] = None) -> Event:
        ev = Event(name, dict(args or {}))
        self._events.append(ev)
        return ev

    def named(self, name: str) -> List[Event]:
        return [e for e in self._events if e.name == name]

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    # transaction trio

    def begin_tx(self) -> None:
        self._marks.append(len(self._events))

    def commit_tx(self) -> None:
        self._marks.pop()

    def rollback_tx(self) -> None:
        del self._events[self._marks.pop():]


__all__ = [
    "Event",
    "EventLog",
    "EVT_MINTED",
    "EVT_REPLACED",
    "EVT_STAKE",
    "EVT_CONFIG",
    "EVT_OWNERSHIP",
    "EVT_WITHDRAWN",
]
