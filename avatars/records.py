"""
avatars.records - avatar records and their store.

An `AvatarRecord` is the unit of issuance: its id (sequence position,
1-based), the trait id it was assigned, and whether it is staked.

The store is journaled: writes made during a request are staged and land or
vanish together with the rest of that request.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .journal import Journal, JournaledState


@dataclass(frozen=True)
class AvatarRecord:
    id: int
    trait_id: int
    staked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


class RecordStore(JournaledState):
    def __init__(self) -> None:
        self._records: Journal[int, AvatarRecord] = Journal()
        self._journals = [self._records]

    def get(self, avatar_id: int) -> Optional[AvatarRecord]:
        return self._records.get(avatar_id)

    def put(self, record: AvatarRecord) -> None:
        self._records.set(record.id, record)

    def set_staked(self, avatar_id: int, value: bool) -> AvatarRecord:
        """Return the updated record; KeyError if the id was never stored."""
        rec = self._records.get(avatar_id)
        if rec is None:
            raise KeyError(avatar_id)
        if rec.staked != value:
            rec = dataclasses.replace(rec, staked=bool(value))
            self._records.set(avatar_id, rec)
        return rec

    def __contains__(self, avatar_id: object) -> bool:
        return avatar_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def list_by_holder(self, ledger: Any, holder: bytes) -> List[AvatarRecord]:
        """
        Records currently owned by `holder`, in the ledger's enumeration order.

        Ownership lives in the ledger; this store only resolves the ids.
        """
        out: List[AvatarRecord] = []
        for i in range(ledger.balance_of(holder)):
            rec = self.get(ledger.token_of_owner_by_index(holder, i))
            if rec is not None:
                out.append(rec)
        return out


__all__ = ["AvatarRecord", "RecordStore"]
