"""
Settlement data structures for pool trades.

A settlement lists every asset movement one pool operation needs. The pool
commits its own state first and then hands the whole settlement to the
asset-transfer collaborator, which must apply all legs or none.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from ..state.balances import Address, Amount, AssetId, normalize_address


class SettlementKind(Enum):
    """Pool operation a settlement belongs to."""
    BUY_FROM_POOL = "BUY_FROM_POOL"
    SELL_TO_POOL = "SELL_TO_POOL"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"


class BaseLegRole(Enum):
    """Why a base-asset leg exists; lets callers and tests group payouts."""
    PAYMENT = "PAYMENT"
    PROCEEDS = "PROCEEDS"
    PROTOCOL_FEE = "PROTOCOL_FEE"
    ROYALTY = "ROYALTY"
    TRADE_FEE = "TRADE_FEE"
    TRANSFER = "TRANSFER"


@dataclass(frozen=True)
class BaseTransfer:
    """
    Movement of base asset between two accounts.

    Attributes:
        asset: Base asset identifier (token address or NATIVE_ASSET)
        sender: Paying account
        recipient: Receiving account
        amount: Positive amount
        role: What the leg pays for
    """
    asset: AssetId
    sender: Address
    recipient: Address
    amount: Amount
    role: BaseLegRole = BaseLegRole.TRANSFER

    def __post_init__(self) -> None:
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise TypeError("amount must be an int")
        if self.amount <= 0:
            raise ValueError(f"transfer amount must be positive: {self.amount}")
        object.__setattr__(self, "asset", normalize_address(self.asset, name="asset"))
        object.__setattr__(self, "sender", normalize_address(self.sender, name="sender"))
        object.__setattr__(self, "recipient", normalize_address(self.recipient, name="recipient"))


@dataclass(frozen=True)
class ItemTransfer:
    """
    Movement of non-fungible items of one collection.

    Attributes:
        collection: Collection contract address
        sender: Current owner
        recipient: New owner
        item_ids: Identifiers moved, in the order they were selected
    """
    collection: Address
    sender: Address
    recipient: Address
    item_ids: Tuple[int, ...]

    def __post_init__(self) -> None:
        ids = tuple(self.item_ids)
        if not ids:
            raise ValueError("item transfer must move at least one item")
        if len(set(ids)) != len(ids):
            raise ValueError(f"duplicate item ids in transfer: {ids}")
        object.__setattr__(self, "item_ids", ids)
        object.__setattr__(self, "collection", normalize_address(self.collection, name="collection"))
        object.__setattr__(self, "sender", normalize_address(self.sender, name="sender"))
        object.__setattr__(self, "recipient", normalize_address(self.recipient, name="recipient"))


@dataclass(frozen=True)
class TradeSettlement:
    """
    All asset movements of one pool operation.

    Attributes:
        pool: Address of the pool that produced the settlement
        kind: Pool operation
        base_transfers: Base-asset legs
        item_transfers: Item legs
    """
    pool: Address
    kind: SettlementKind
    base_transfers: Tuple[BaseTransfer, ...] = field(default_factory=tuple)
    item_transfers: Tuple[ItemTransfer, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pool", normalize_address(self.pool, name="pool"))
        object.__setattr__(self, "base_transfers", tuple(self.base_transfers))
        object.__setattr__(self, "item_transfers", tuple(self.item_transfers))

    def total_paid_by(self, account: str, asset: str) -> Amount:
        account = normalize_address(account)
        asset = normalize_address(asset)
        return sum(t.amount for t in self.base_transfers if t.sender == account and t.asset == asset)

    def total_received_by(self, account: str, asset: str) -> Amount:
        account = normalize_address(account)
        asset = normalize_address(asset)
        return sum(t.amount for t in self.base_transfers if t.recipient == account and t.asset == asset)

    def amount_for_role(self, role: BaseLegRole) -> Amount:
        return sum(t.amount for t in self.base_transfers if t.role is role)
