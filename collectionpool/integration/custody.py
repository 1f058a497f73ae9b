"""
In-memory custody: base-asset balances plus non-fungible item collections.

`Custody` implements the `AssetTransfer` collaborator. Settlements are applied
fail-closed: every leg is checked against a scratch copy of the balances and
item ownership first, and the live state is only replaced once all legs have
succeeded.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..core.collaborators import AssetTransfer, NativeEnumeration, RoyaltyResolver
from ..core.errors import SettlementFailed
from ..core.settlement import TradeSettlement
from ..state.balances import Address, Amount, BalanceTable, ZERO_ADDRESS, normalize_address

logger = logging.getLogger(__name__)


class ItemCollection(NativeEnumeration, RoyaltyResolver):
    """
    Minimal non-fungible item registry.

    Attributes:
        address: Collection contract address
        enumerable: Whether owners' holdings can be enumerated natively
        royalty_receiver: ERC-2981 receiver; None for collections without
            royalty support
    """

    def __init__(
        self,
        address: str,
        *,
        enumerable: bool = False,
        royalty_receiver: Optional[str] = None,
    ) -> None:
        self.address = normalize_address(address, name="collection")
        self.enumerable = bool(enumerable)
        self.royalty_receiver = (
            normalize_address(royalty_receiver, name="royalty_receiver") if royalty_receiver else None
        )
        self._owners: Dict[int, Address] = {}
        # Per-owner holdings in ERC721Enumerable order (swap-and-pop removal).
        self._owned: Dict[Address, List[int]] = {}
        self._owned_index: Dict[int, int] = {}

    def mint(self, to: str, item_id: int) -> None:
        if item_id in self._owners:
            raise ValueError(f"item {item_id} already minted")
        self._add(normalize_address(to, name="to"), item_id)

    def owner_of(self, item_id: int) -> Address:
        owner = self._owners.get(item_id)
        if owner is None:
            raise KeyError(f"item {item_id} does not exist")
        return owner

    def transfer(self, sender: str, recipient: str, item_id: int) -> None:
        sender = normalize_address(sender, name="sender")
        recipient = normalize_address(recipient, name="recipient")
        if self._owners.get(item_id) != sender:
            raise ValueError(f"item {item_id} not owned by {sender}")
        self._remove(sender, item_id)
        self._add(recipient, item_id)

    def balance_of(self, owner: str) -> int:
        return len(self._owned.get(normalize_address(owner, name="owner"), ()))

    def token_of_owner_by_index(self, owner: str, index: int) -> int:
        if not self.enumerable:
            raise TypeError(f"collection {self.address} is not enumerable")
        owned = self._owned.get(normalize_address(owner, name="owner"), [])
        if not 0 <= index < len(owned):
            raise IndexError(f"owner index out of bounds: {index}")
        return owned[index]

    def royalty_recipient(self, item_id: int) -> Optional[Address]:
        return self.royalty_receiver

    def reports_royalties(self) -> bool:
        return self.royalty_receiver is not None

    def copy(self) -> "ItemCollection":
        copied = ItemCollection(self.address, enumerable=self.enumerable, royalty_receiver=self.royalty_receiver)
        copied._owners = dict(self._owners)
        copied._owned = {owner: list(ids) for owner, ids in self._owned.items()}
        copied._owned_index = dict(self._owned_index)
        return copied

    def _add(self, owner: Address, item_id: int) -> None:
        owned = self._owned.setdefault(owner, [])
        self._owned_index[item_id] = len(owned)
        owned.append(item_id)
        self._owners[item_id] = owner

    def _remove(self, owner: Address, item_id: int) -> None:
        owned = self._owned[owner]
        index = self._owned_index.pop(item_id)
        last = owned.pop()
        if last != item_id:
            owned[index] = last
            self._owned_index[last] = index
        if not owned:
            del self._owned[owner]
        del self._owners[item_id]

    def __repr__(self) -> str:
        return f"ItemCollection({self.address}, {len(self._owners)} items)"


class Custody(AssetTransfer):
    """Balances and collections with all-or-nothing settlement."""

    def __init__(self, balances: Optional[BalanceTable] = None) -> None:
        self.balances = balances if balances is not None else BalanceTable()
        self.collections: Dict[Address, ItemCollection] = {}

    def register(self, collection: ItemCollection) -> ItemCollection:
        self.collections[collection.address] = collection
        return collection

    def collection(self, address: str) -> ItemCollection:
        key = normalize_address(address, name="collection")
        try:
            return self.collections[key]
        except KeyError:
            raise KeyError(f"unknown collection {key}") from None

    def balance_of(self, account: str, asset: str) -> Amount:
        return self.balances.get(account, asset)

    def holds_item(self, account: str, collection: str, item_id: int) -> bool:
        try:
            return self.collection(collection).owner_of(item_id) == normalize_address(account, name="account")
        except KeyError:
            return False

    def mint_base(self, account: str, asset: str, amount: Amount) -> None:
        self.balances.add(account, asset, amount)

    def settle(self, settlement: TradeSettlement) -> None:
        balances = self.balances.copy()
        touched: Dict[Address, ItemCollection] = {}
        try:
            for leg in settlement.base_transfers:
                balances.subtract(leg.sender, leg.asset, leg.amount)
                balances.add(leg.recipient, leg.asset, leg.amount)
            for leg in settlement.item_transfers:
                if leg.recipient == ZERO_ADDRESS:
                    raise ValueError("cannot transfer items to the zero address")
                if leg.collection not in touched:
                    touched[leg.collection] = self.collection(leg.collection).copy()
                for item_id in leg.item_ids:
                    touched[leg.collection].transfer(leg.sender, leg.recipient, item_id)
        except (KeyError, ValueError) as exc:
            logger.warning("settlement rejected for pool %s: %s", settlement.pool, exc)
            raise SettlementFailed(str(exc)) from exc

        self.balances = balances
        for address, updated in touched.items():
            self._replace_collection(address, updated)
        logger.debug(
            "settled %s for pool %s: %d base legs, %d item legs",
            settlement.kind.value,
            settlement.pool,
            len(settlement.base_transfers),
            len(settlement.item_transfers),
        )

    def _replace_collection(self, address: Address, updated: ItemCollection) -> None:
        # Swap state into the registered object so outside references stay valid.
        live = self.collections[address]
        live._owners = updated._owners
        live._owned = updated._owned
        live._owned_index = updated._owned_index

    def __repr__(self) -> str:
        return f"Custody({self.balances!r}, {len(self.collections)} collections)"

