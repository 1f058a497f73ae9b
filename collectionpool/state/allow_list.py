"""
Item allow-list committed as a Merkle root.

Leaves are the standard double-hashed ABI encoding of an item id:

    leaf(id) = keccak256(keccak256(abi.encode(uint256 id)))

and internal nodes hash the two children in sorted byte order, so a proof never
needs to say which side a sibling sits on.

A batch of ids is checked with a multiproof: `proof_flags[i]` says whether step
`i` combines two pending hashes (leaves first, then previously computed
hashes) or one pending hash with the next proof node. For `L` leaves and `P`
proof nodes exactly `L + P - 1` flags are required and every proof node must be
consumed. The last computed hash must equal the committed root.

`AllowListTree` builds the tree and its multiproofs off the hot path (pool
creation tooling, tests). Leaves are sorted by hash and stored in reverse at the
end of a flat array; node `i` has children `2i + 1` and `2i + 2`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from eth_abi import decode, encode
from eth_utils import keccak
from hexbytes import HexBytes

from ..core.collaborators import ExternalFilter
from ..core.fixed_point import fits_u256
from .balances import normalize_address

logger = logging.getLogger(__name__)

HASH_ZERO = b"\x00" * 32

HashLike = Union[bytes, str]


class InvalidMultiproof(ValueError):
    """Proof arrays are inconsistent with the number of leaves."""


def to_hash(value: HashLike) -> bytes:
    """Normalize a 32-byte hash given as bytes or 0x-hex."""
    raw = bytes(HexBytes(value))
    if len(raw) != 32:
        raise ValueError(f"hash must be 32 bytes, got {len(raw)}")
    return raw


def leaf_hash(item_id: int) -> bytes:
    if not isinstance(item_id, int) or isinstance(item_id, bool):
        raise TypeError("item id must be an int")
    if not fits_u256(item_id):
        raise ValueError(f"item id must fit in u256: {item_id}")
    return keccak(keccak(encode(["uint256"], [item_id])))


def hash_pair(a: bytes, b: bytes) -> bytes:
    return keccak(a + b) if a < b else keccak(b + a)


def process_multiproof(leaves: Sequence[bytes], proof: Sequence[bytes], proof_flags: Sequence[bool]) -> bytes:
    """
    Rebuild the root implied by `leaves`, `proof` and `proof_flags`.

    Raises InvalidMultiproof when the arrays cannot describe a tree walk.
    """
    leaves_len = len(leaves)
    total_hashes = len(proof_flags)
    if leaves_len + len(proof) != total_hashes + 1:
        raise InvalidMultiproof("invalid multiproof: length mismatch")

    hashes: List[bytes] = []
    leaf_pos = hash_pos = proof_pos = 0

    def next_pending() -> bytes:
        nonlocal leaf_pos, hash_pos
        if leaf_pos < leaves_len:
            leaf_pos += 1
            return leaves[leaf_pos - 1]
        if hash_pos >= len(hashes):
            raise InvalidMultiproof("invalid multiproof: hash consumed before it was computed")
        hash_pos += 1
        return hashes[hash_pos - 1]

    for flag in proof_flags:
        a = next_pending()
        if flag:
            b = next_pending()
        else:
            if proof_pos >= len(proof):
                raise InvalidMultiproof("invalid multiproof: proof exhausted")
            b = proof[proof_pos]
            proof_pos += 1
        hashes.append(hash_pair(a, b))

    if total_hashes > 0:
        if proof_pos != len(proof):
            raise InvalidMultiproof("invalid multiproof: unused proof nodes")
        return hashes[-1]
    if leaves_len > 0:
        return leaves[0]
    return proof[0]


@dataclass(frozen=True)
class AllowListCommitment:
    """
    Root and size of a committed allow-list.

    The all-zero root means "no restriction".
    """

    root: bytes = HASH_ZERO
    size: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", to_hash(self.root))
        if not isinstance(self.size, int) or isinstance(self.size, bool) or self.size < 0:
            raise ValueError(f"size must be a non-negative int: {self.size!r}")
        if self.root == HASH_ZERO and self.size != 0:
            raise ValueError("empty allow-list must have size 0")
        if self.root != HASH_ZERO and self.size == 0:
            raise ValueError("non-empty allow-list must have a positive size")

    @classmethod
    def empty(cls) -> "AllowListCommitment":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.root == HASH_ZERO

    def verify_batch(
        self,
        item_ids: Sequence[int],
        proof: Sequence[HashLike],
        proof_flags: Sequence[bool],
    ) -> bool:
        """True iff `item_ids` (in proof order) is a subset of the committed set."""
        if self.is_empty:
            return True

        ids = list(item_ids)
        if len(ids) > self.size or len(set(ids)) != len(ids):
            logger.debug("allow-list batch rejected: %d ids against size %d", len(ids), self.size)
            return False
        # A multiproof walks at most the size - 1 internal nodes of the tree.
        if len(proof_flags) > max(self.size - 1, 0):
            return False

        try:
            leaves = [leaf_hash(i) for i in ids]
            nodes = [to_hash(p) for p in proof]
            root = process_multiproof(leaves, nodes, [bool(f) for f in proof_flags])
        except (TypeError, ValueError) as exc:
            logger.debug("allow-list proof rejected: %s", exc)
            return False
        return root == self.root


class AllowListFilter:
    """Allow-list commitment AND-ed with an optional external policy hook."""

    def __init__(
        self,
        commitment: Optional[AllowListCommitment] = None,
        *,
        external_filter: Optional[ExternalFilter] = None,
        collection: Optional[str] = None,
    ) -> None:
        self.commitment = commitment if commitment is not None else AllowListCommitment.empty()
        self.external_filter = external_filter
        self.collection = normalize_address(collection, name="collection") if collection else None
        if external_filter is not None and self.collection is None:
            raise ValueError("external filter requires the collection address")

    def accepts(
        self,
        item_ids: Sequence[int],
        proof: Sequence[HashLike] = (),
        proof_flags: Sequence[bool] = (),
    ) -> bool:
        if not self.commitment.verify_batch(item_ids, proof, proof_flags):
            return False
        if self.external_filter is not None:
            return bool(self.external_filter.are_items_allowed(self.collection, list(item_ids)))
        return True


class AllowListTree:
    """Merkle tree over a fixed set of item ids."""

    def __init__(self, item_ids: Sequence[int]) -> None:
        ids = list(item_ids)
        if not ids:
            raise ValueError("allow-list must contain at least one id")
        if len(set(ids)) != len(ids):
            raise ValueError("allow-list ids must be unique")

        hashed = sorted(((leaf_hash(i), i) for i in ids), key=lambda t: t[0])
        n = len(hashed)
        self._tree: List[bytes] = [b""] * (2 * n - 1)
        self._tree_index: Dict[int, int] = {}
        self._ids: Tuple[int, ...] = tuple(i for _, i in hashed)
        for pos, (h, item_id) in enumerate(hashed):
            index = len(self._tree) - 1 - pos
            self._tree[index] = h
            self._tree_index[item_id] = index
        for i in range(n - 2, -1, -1):
            self._tree[i] = hash_pair(self._tree[2 * i + 1], self._tree[2 * i + 2])

    @property
    def root(self) -> bytes:
        return self._tree[0]

    @property
    def size(self) -> int:
        return len(self._ids)

    @property
    def item_ids(self) -> Tuple[int, ...]:
        return self._ids

    def commitment(self) -> AllowListCommitment:
        return AllowListCommitment(root=self.root, size=self.size)

    def _indices(self, item_ids: Sequence[int]) -> List[int]:
        indices = []
        for item_id in item_ids:
            index = self._tree_index.get(item_id)
            if index is None:
                raise ValueError("Leaf is not in tree")
            indices.append(index)
        if len(set(indices)) != len(indices):
            raise ValueError("Cannot prove duplicated index")
        return indices

    def sort(self, item_ids: Sequence[int]) -> List[int]:
        """Order `item_ids` the way a multiproof for them consumes leaves."""
        self._indices(item_ids)
        return sorted(item_ids, key=lambda i: self._tree_index[i], reverse=True)

    def proof(self, item_ids: Sequence[int]) -> Tuple[List[bytes], List[bool]]:
        """
        Multiproof for `item_ids`; pass the ids in `sort(item_ids)` order.

        Raises ValueError("Leaf is not in tree") for any id outside the set.
        """
        indices = sorted(self._indices(item_ids), reverse=True)
        stack = list(indices)
        proof: List[bytes] = []
        proof_flags: List[bool] = []
        while stack and stack[0] > 0:
            j = stack.pop(0)
            sibling = j - 1 if j % 2 == 0 else j + 1
            parent = (j - 1) // 2
            if stack and stack[0] == sibling:
                proof_flags.append(True)
                stack.pop(0)
            else:
                proof_flags.append(False)
                proof.append(self._tree[sibling])
            stack.append(parent)
        if not indices:
            proof.append(self.root)
        return proof, proof_flags

    def encode(self) -> bytes:
        """ABI-encode the id list (`uint256[]`) for publication next to the root."""
        return encode(["uint256[]"], [list(self._ids)])

    @classmethod
    def decode(cls, data: bytes) -> "AllowListTree":
        (ids,) = decode(["uint256[]"], bytes(HexBytes(data)))
        return cls(list(ids))

    def __repr__(self) -> str:
        return f"AllowListTree(root=0x{self.root.hex()}, size={self.size})"
