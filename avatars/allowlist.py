"""
avatars.allowlist
=================

Allowlist commitments over account addresses.

- is_member(caller, proof, root)   -> bool, the presale membership predicate
- AllowlistTree.from_addresses(...) -> tree builder for operators and tests
    .root                          -> 32-byte commitment
    .proof_for(address)            -> list of sibling hashes, bottom to top

Tree rules
----------
* leaf  = keccak256(address)         (20 raw address bytes, packed)
* node  = keccak256(min(l, r) || max(l, r))
* Leaves are de-duplicated and sorted before building, so the root depends
  only on the *set* of addresses.
* A level with an odd count promotes its last hash unchanged.
* A single-address tree has root == leaf and an empty proof.

Because node hashing is order-free, a proof is just the ordered list of
siblings; no direction bits are carried.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

from .utils.bytes import BytesLike, to_address
from .utils.hash import HASH_LEN, address_leaf, pair_hash


def is_member(caller: Any, proof: Any, root: Any) -> bool:
    """
    True iff folding `proof` over the caller's leaf reproduces `root`.

    Never raises: a malformed caller, root, proof container or proof element
    simply makes the answer False.
    """
    try:
        addr = to_address(caller)
    except (TypeError, ValueError):
        return False
    if not isinstance(root, (bytes, bytearray)) or len(root) != HASH_LEN:
        return False
    if isinstance(proof, (str, bytes, bytearray)) or not isinstance(proof, Sequence):
        return False

    h = address_leaf(addr)
    for sibling in proof:
        if not isinstance(sibling, (bytes, bytearray)) or len(sibling) != HASH_LEN:
            return False
        h = pair_hash(h, bytes(sibling))
    return h == bytes(root)


@dataclass
class AllowlistTree:
    """Sorted-pair Merkle tree over a set of addresses."""

    levels: List[List[bytes]]
    _index: Dict[bytes, int] = field(default_factory=dict, repr=False)

    @classmethod
    def from_addresses(cls, addresses: Iterable[BytesLike | str]) -> "AllowlistTree":
        leaves = sorted({address_leaf(to_address(a)) for a in addresses})
        if not leaves:
            raise ValueError("allowlist must contain at least one address")

        levels: List[List[bytes]] = [leaves]
        layer = leaves
        while len(layer) > 1:
            nxt: List[bytes] = []
            for i in range(0, len(layer), 2):
                if i + 1 < len(layer):
                    nxt.append(pair_hash(layer[i], layer[i + 1]))
                else:
                    nxt.append(layer[i])
            levels.append(nxt)
            layer = nxt

        return cls(levels=levels, _index={leaf: i for i, leaf in enumerate(leaves)})

    @property
    def root(self) -> bytes:
        return self.levels[-1][0]

    def __len__(self) -> int:
        return len(self.levels[0])

    def __contains__(self, address: object) -> bool:
        try:
            return address_leaf(to_address(address)) in self._index  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def proof_for(self, address: BytesLike | str) -> List[bytes]:
        """
        Sibling hashes from the leaf level upwards.

        Raises KeyError if the address is not in the tree.
        """
        leaf = address_leaf(to_address(address))
        if leaf not in self._index:
            raise KeyError("address not in allowlist")
        idx = self._index[leaf]
        proof: List[bytes] = []
        for layer in self.levels[:-1]:
            sib = idx ^ 1
            if sib < len(layer):
                proof.append(layer[sib])
            # promoted odd node contributes no sibling at this level
            idx //= 2
        return proof


__all__ = ["is_member", "AllowlistTree"]
