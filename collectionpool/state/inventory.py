"""
Pool inventory: which item identifiers a pool currently holds.

Two implementations share one interface and are chosen when the pool is built:

- `TrackedInventory` keeps its own set for collections that cannot enumerate
  an owner's items. The set is an insertion-ordered array plus an index map
  (EnumerableSet layout): membership and removal are O(1), removal moves the
  last element into the freed slot.
- `EnumerableInventory` reads the collection's native enumeration and keeps no
  state; its holdings change when custody moves.

Arbitrary selection is deterministic: it always takes items from the end of the
current order (last index first). Quote-then-execute callers therefore receive
exactly the items they previewed with `peek_arbitrary`.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.collaborators import NativeEnumeration
from ..core.errors import InsufficientInventory, ItemNotHeld
from .balances import Address, normalize_address

logger = logging.getLogger(__name__)


def _require_item_id(item_id: int) -> int:
    if not isinstance(item_id, int) or isinstance(item_id, bool):
        raise TypeError("item id must be an int")
    if item_id < 0 or item_id >> 256:
        raise ValueError(f"item id must fit in u256: {item_id}")
    return item_id


def _unique(item_ids: Iterable[int]) -> List[int]:
    ids = [_require_item_id(i) for i in item_ids]
    if len(set(ids)) != len(ids):
        raise ValueError(f"duplicate item ids: {ids}")
    return ids


class Inventory:
    """Interface shared by tracked and natively enumerable inventories."""

    tracks_state: bool = False

    def on_deposit(self, collection: str, item_id: int) -> None:
        raise NotImplementedError

    def peek_arbitrary(self, count: int) -> List[int]:
        """The ids `select_arbitrary(count)` would return, without removing them."""
        raise NotImplementedError

    def select_arbitrary(self, count: int) -> List[int]:
        raise NotImplementedError

    def check_specific(self, item_ids: Sequence[int]) -> List[int]:
        """Validate that every id is held; returns them unchanged."""
        raise NotImplementedError

    def select_specific(self, item_ids: Sequence[int]) -> List[int]:
        raise NotImplementedError

    def all_held_ids(self) -> List[int]:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError

    def snapshot(self) -> object:
        return None

    def restore(self, snapshot: object) -> None:
        return None


class TrackedInventory(Inventory):
    """Self-maintained id set for one collection."""

    tracks_state = True

    def __init__(self, collection: str, item_ids: Iterable[int] = ()) -> None:
        self.collection: Address = normalize_address(collection, name="collection")
        self._ids: List[int] = []
        self._index: Dict[int, int] = {}
        for item_id in item_ids:
            self._add(_require_item_id(item_id))

    def on_deposit(self, collection: str, item_id: int) -> None:
        if normalize_address(collection, name="collection") != self.collection:
            return
        self._add(_require_item_id(item_id))

    def peek_arbitrary(self, count: int) -> List[int]:
        self._check_count(count)
        return self._ids[len(self._ids) - count:][::-1]

    def select_arbitrary(self, count: int) -> List[int]:
        selected = self.peek_arbitrary(count)
        for item_id in selected:
            self._remove(item_id)
        return selected

    def check_specific(self, item_ids: Sequence[int]) -> List[int]:
        ids = _unique(item_ids)
        missing = [i for i in ids if i not in self._index]
        if missing:
            raise ItemNotHeld(missing, len(self._ids))
        return ids

    def select_specific(self, item_ids: Sequence[int]) -> List[int]:
        ids = self.check_specific(item_ids)
        for item_id in ids:
            self._remove(item_id)
        return ids

    def contains(self, item_id: int) -> bool:
        return item_id in self._index

    def all_held_ids(self) -> List[int]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def snapshot(self) -> Tuple[int, ...]:
        return tuple(self._ids)

    def restore(self, snapshot: object) -> None:
        ids = list(snapshot)  # type: ignore[call-overload]
        self._ids = ids
        self._index = {item_id: i for i, item_id in enumerate(ids)}

    def _check_count(self, count: int) -> None:
        if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
            raise ValueError(f"count must be a positive int: {count!r}")
        if count > len(self._ids):
            raise InsufficientInventory(count, len(self._ids))

    def _add(self, item_id: int) -> None:
        if item_id in self._index:
            return
        self._index[item_id] = len(self._ids)
        self._ids.append(item_id)

    def _remove(self, item_id: int) -> None:
        index = self._index.pop(item_id)
        last = self._ids.pop()
        if last != item_id:
            self._ids[index] = last
            self._index[last] = index

    def __repr__(self) -> str:
        return f"TrackedInventory({self.collection}, {len(self._ids)} items)"


class EnumerableInventory(Inventory):
    """
    Inventory backed by the collection's own enumeration of `holder`'s items.

    Selection only reads; the selected ids leave the inventory when the custody
    transfer moves them.
    """

    def __init__(self, enumeration: NativeEnumeration, holder: str) -> None:
        self.enumeration = enumeration
        self.holder: Address = normalize_address(holder, name="holder")

    def on_deposit(self, collection: str, item_id: int) -> None:
        return None

    def peek_arbitrary(self, count: int) -> List[int]:
        if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
            raise ValueError(f"count must be a positive int: {count!r}")
        held = self.enumeration.balance_of(self.holder)
        if count > held:
            raise InsufficientInventory(count, held)
        return [self.enumeration.token_of_owner_by_index(self.holder, held - 1 - i) for i in range(count)]

    def select_arbitrary(self, count: int) -> List[int]:
        return self.peek_arbitrary(count)

    def check_specific(self, item_ids: Sequence[int]) -> List[int]:
        ids = _unique(item_ids)
        held = set(self.all_held_ids())
        missing = [i for i in ids if i not in held]
        if missing:
            raise ItemNotHeld(missing, len(held))
        return ids

    def select_specific(self, item_ids: Sequence[int]) -> List[int]:
        return self.check_specific(item_ids)

    def all_held_ids(self) -> List[int]:
        held = self.enumeration.balance_of(self.holder)
        return [self.enumeration.token_of_owner_by_index(self.holder, i) for i in range(held)]

    def __len__(self) -> int:
        return self.enumeration.balance_of(self.holder)

    def __repr__(self) -> str:
        return f"EnumerableInventory({self.holder})"


def build_inventory(
    collection: str,
    holder: str,
    *,
    enumeration: Optional[NativeEnumeration] = None,
) -> Inventory:
    """Pick the inventory implementation for a collection."""
    if enumeration is not None:
        logger.debug("using native enumeration for collection %s", collection)
        return EnumerableInventory(enumeration, holder)
    return TrackedInventory(collection)
