from __future__ import annotations

import pytest

from collectionpool.core.errors import SettlementFailed
from collectionpool.core.settlement import (
    BaseLegRole,
    BaseTransfer,
    ItemTransfer,
    SettlementKind,
    TradeSettlement,
)
from collectionpool.integration.custody import Custody, ItemCollection
from collectionpool.state.balances import NATIVE_ASSET, ZERO_ADDRESS, normalize_address

POOL = "0x" + "cc" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
COLLECTION = "0x" + "dd" * 20


@pytest.fixture
def custody() -> Custody:
    c = Custody()
    coll = c.register(ItemCollection(COLLECTION, enumerable=True))
    coll.mint(ALICE, 1)
    coll.mint(ALICE, 2)
    c.mint_base(ALICE, NATIVE_ASSET, 100)
    return c


def _settlement(base=(), items=()) -> TradeSettlement:
    return TradeSettlement(pool=POOL, kind=SettlementKind.BUY_FROM_POOL, base_transfers=base, item_transfers=items)


def test_settle_applies_all_legs(custody) -> None:
    custody.settle(
        _settlement(
            base=[BaseTransfer(NATIVE_ASSET, ALICE, BOB, 40, BaseLegRole.PAYMENT)],
            items=[ItemTransfer(COLLECTION, ALICE, BOB, (2,))],
        )
    )
    assert custody.balance_of(ALICE, NATIVE_ASSET) == 60
    assert custody.balance_of(BOB, NATIVE_ASSET) == 40
    assert custody.collection(COLLECTION).owner_of(2) == normalize_address(BOB)
    assert custody.collection(COLLECTION).balance_of(BOB) == 1


def test_failed_leg_leaves_state_untouched(custody) -> None:
    coll = custody.collection(COLLECTION)
    with pytest.raises(SettlementFailed):
        custody.settle(
            _settlement(
                base=[
                    BaseTransfer(NATIVE_ASSET, ALICE, BOB, 40),
                    BaseTransfer(NATIVE_ASSET, BOB, ALICE, 50),
                ],
                items=[ItemTransfer(COLLECTION, ALICE, BOB, (1,))],
            )
        )
    assert custody.balance_of(ALICE, NATIVE_ASSET) == 100
    assert custody.balance_of(BOB, NATIVE_ASSET) == 0
    assert coll.balance_of(ALICE) == 2


def test_item_not_owned_fails(custody) -> None:
    with pytest.raises(SettlementFailed):
        custody.settle(_settlement(items=[ItemTransfer(COLLECTION, BOB, ALICE, (1,))]))


def test_item_to_zero_address_fails(custody) -> None:
    with pytest.raises(SettlementFailed):
        custody.settle(_settlement(items=[ItemTransfer(COLLECTION, ALICE, ZERO_ADDRESS, (1,))]))


def test_unknown_collection_fails(custody) -> None:
    with pytest.raises(SettlementFailed):
        custody.settle(_settlement(items=[ItemTransfer("0x" + "99" * 20, ALICE, BOB, (1,))]))


def test_holds_item(custody) -> None:
    assert custody.holds_item(ALICE.upper().replace("0X", "0x"), COLLECTION, 1)
    assert not custody.holds_item(BOB, COLLECTION, 1)
    assert not custody.holds_item(ALICE, COLLECTION, 99)
    assert not custody.holds_item(ALICE, "0x" + "99" * 20, 1)


class TestItemCollection:
    def test_enumeration_uses_swap_and_pop(self):
        coll = ItemCollection(COLLECTION, enumerable=True)
        for item_id in (1, 2, 3):
            coll.mint(ALICE, item_id)
        coll.transfer(ALICE, BOB, 1)
        assert [coll.token_of_owner_by_index(ALICE, i) for i in range(coll.balance_of(ALICE))] == [3, 2]

    def test_non_enumerable_refuses_enumeration(self):
        coll = ItemCollection(COLLECTION)
        coll.mint(ALICE, 1)
        with pytest.raises(TypeError):
            coll.token_of_owner_by_index(ALICE, 0)

    def test_double_mint(self):
        coll = ItemCollection(COLLECTION)
        coll.mint(ALICE, 1)
        with pytest.raises(ValueError):
            coll.mint(BOB, 1)

    def test_royalty_reporting(self):
        assert not ItemCollection(COLLECTION).reports_royalties()
        coll = ItemCollection(COLLECTION, royalty_receiver=BOB)
        assert coll.reports_royalties()
        assert coll.royalty_recipient(1) == coll.royalty_receiver


class TestSettlementTypes:
    def test_non_positive_amount_rejected(self):
        with pytest.raises(ValueError):
            BaseTransfer(NATIVE_ASSET, ALICE, BOB, 0)

    def test_duplicate_items_rejected(self):
        with pytest.raises(ValueError):
            ItemTransfer(COLLECTION, ALICE, BOB, (1, 1))

    def test_totals(self):
        settlement = _settlement(
            base=[
                BaseTransfer(NATIVE_ASSET, ALICE, BOB, 40, BaseLegRole.PAYMENT),
                BaseTransfer(NATIVE_ASSET, ALICE, POOL, 2, BaseLegRole.PROTOCOL_FEE),
            ]
        )
        assert settlement.total_paid_by(ALICE, NATIVE_ASSET) == 42
        assert settlement.total_received_by(BOB, NATIVE_ASSET) == 40
        assert settlement.amount_for_role(BaseLegRole.PROTOCOL_FEE) == 2
