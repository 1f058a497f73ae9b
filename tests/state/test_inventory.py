"""Tests for tracked and natively enumerable pool inventories."""

from __future__ import annotations

import pytest

from collectionpool.core.errors import InsufficientInventory, ItemNotHeld
from collectionpool.integration.custody import ItemCollection
from collectionpool.state.inventory import (
    EnumerableInventory,
    TrackedInventory,
    build_inventory,
)

COLLECTION = "0x" + "dd" * 20
OTHER_COLLECTION = "0x" + "de" * 20
POOL = "0x" + "cc" * 20


# ---------------------------------------------------------------------------
# TrackedInventory
# ---------------------------------------------------------------------------

class TestTrackedInventory:
    def test_deposit_from_foreign_collection_ignored(self):
        inv = TrackedInventory(COLLECTION)
        inv.on_deposit(OTHER_COLLECTION, 1)
        inv.on_deposit(COLLECTION.upper().replace("0X", "0x"), 2)
        assert inv.all_held_ids() == [2]

    def test_repeated_deposit_is_idempotent(self):
        inv = TrackedInventory(COLLECTION, [1, 2])
        inv.on_deposit(COLLECTION, 2)
        assert len(inv) == 2

    def test_arbitrary_selection_takes_last_first(self):
        inv = TrackedInventory(COLLECTION, [1, 2, 3, 4, 5])
        assert inv.peek_arbitrary(2) == [5, 4]
        assert inv.select_arbitrary(2) == [5, 4]
        assert inv.all_held_ids() == [1, 2, 3]

    def test_peek_matches_select(self):
        inv = TrackedInventory(COLLECTION, [10, 20, 30])
        inv.select_specific([10])
        preview = inv.peek_arbitrary(2)
        assert inv.select_arbitrary(2) == preview

    def test_arbitrary_selection_insufficient(self):
        inv = TrackedInventory(COLLECTION, [1, 2])
        with pytest.raises(InsufficientInventory) as excinfo:
            inv.select_arbitrary(3)
        assert (excinfo.value.requested, excinfo.value.available) == (3, 2)
        assert inv.all_held_ids() == [1, 2]

    def test_invalid_count(self):
        inv = TrackedInventory(COLLECTION, [1])
        with pytest.raises(ValueError):
            inv.select_arbitrary(0)

    def test_specific_selection_swaps_last_into_hole(self):
        inv = TrackedInventory(COLLECTION, [1, 2, 3, 4, 5])
        assert inv.select_specific([2]) == [2]
        assert inv.all_held_ids() == [1, 5, 3, 4]
        assert not inv.contains(2)

    def test_specific_selection_is_atomic(self):
        inv = TrackedInventory(COLLECTION, [1, 2, 3])
        with pytest.raises(ItemNotHeld) as excinfo:
            inv.select_specific([1, 9])
        assert excinfo.value.item_ids == [9]
        assert inv.all_held_ids() == [1, 2, 3]

    def test_specific_selection_rejects_duplicates(self):
        inv = TrackedInventory(COLLECTION, [1, 2, 3])
        with pytest.raises(ValueError):
            inv.select_specific([1, 1])
        assert len(inv) == 3

    def test_snapshot_restore(self):
        inv = TrackedInventory(COLLECTION, [1, 2, 3])
        snap = inv.snapshot()
        inv.select_specific([1])
        inv.on_deposit(COLLECTION, 9)
        inv.restore(snap)
        assert inv.all_held_ids() == [1, 2, 3]
        assert inv.contains(1) and not inv.contains(9)

    def test_item_id_bounds(self):
        inv = TrackedInventory(COLLECTION)
        with pytest.raises(ValueError):
            inv.on_deposit(COLLECTION, -1)
        with pytest.raises(ValueError):
            inv.on_deposit(COLLECTION, 2**256)
        with pytest.raises(TypeError):
            inv.on_deposit(COLLECTION, True)


# ---------------------------------------------------------------------------
# EnumerableInventory
# ---------------------------------------------------------------------------

class TestEnumerableInventory:
    @pytest.fixture
    def collection(self) -> ItemCollection:
        coll = ItemCollection(COLLECTION, enumerable=True)
        for item_id in (1, 2, 3):
            coll.mint(POOL, item_id)
        coll.mint("0x" + "bb" * 20, 4)
        return coll

    def test_reads_native_enumeration(self, collection):
        inv = EnumerableInventory(collection, POOL)
        assert inv.all_held_ids() == [1, 2, 3]
        assert len(inv) == 3

    def test_arbitrary_selection_reads_from_last_index(self, collection):
        inv = EnumerableInventory(collection, POOL)
        assert inv.select_arbitrary(2) == [3, 2]
        # Selection does not move anything; custody does.
        assert len(inv) == 3

    def test_insufficient(self, collection):
        with pytest.raises(InsufficientInventory):
            EnumerableInventory(collection, POOL).select_arbitrary(4)

    def test_specific_not_held(self, collection):
        with pytest.raises(ItemNotHeld):
            EnumerableInventory(collection, POOL).select_specific([3, 4])


def test_build_inventory_picks_implementation() -> None:
    coll = ItemCollection(COLLECTION, enumerable=True)
    assert isinstance(build_inventory(COLLECTION, POOL, enumeration=coll), EnumerableInventory)
    assert isinstance(build_inventory(COLLECTION, POOL), TrackedInventory)
