"""
Interfaces of the collaborators a pool depends on.

The pool never moves assets, resolves royalty recipients or decides who may
administer it on its own; it delegates to these objects:

- `AssetTransfer`: applies a `TradeSettlement` atomically and reports balances
  and item ownership.
- `RoyaltyResolver`: maps an item id to the account its royalty is paid to.
- `AccessGate`: decides whether a caller may run an administrative action.
- `ExternalFilter`: optional policy hook consulted on top of the allow-list.
- `NativeEnumeration`: read access to a collection that can enumerate the
  items an owner holds.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..state.balances import Address, Amount, ZERO_ADDRESS, normalize_address
from .settlement import TradeSettlement


class AssetTransfer:
    """Custody interface. `settle` must apply every leg or none."""

    def settle(self, settlement: TradeSettlement) -> None:
        raise NotImplementedError

    def balance_of(self, account: str, asset: str) -> Amount:
        raise NotImplementedError

    def holds_item(self, account: str, collection: str, item_id: int) -> bool:
        raise NotImplementedError


class RoyaltyResolver:
    """Resolves royalty recipients. Returns None when no recipient is known."""

    def royalty_recipient(self, item_id: int) -> Optional[Address]:
        raise NotImplementedError

    def reports_royalties(self) -> bool:
        """True when the collection itself advertises royalty info (ERC-2981)."""
        return False


class AccessGate:
    def permits(self, caller: str, action: str) -> bool:
        raise NotImplementedError


class ExternalFilter:
    def are_items_allowed(self, collection: str, item_ids: Sequence[int]) -> bool:
        raise NotImplementedError


class NativeEnumeration:
    def balance_of(self, owner: str) -> int:
        raise NotImplementedError

    def token_of_owner_by_index(self, owner: str, index: int) -> int:
        raise NotImplementedError


class NoRoyaltyResolver(RoyaltyResolver):
    def royalty_recipient(self, item_id: int) -> Optional[Address]:
        return None


class OwnerGate(AccessGate):
    """Permits every administrative action to a single owner account."""

    def __init__(self, owner: str) -> None:
        self.owner = normalize_address(owner, name="owner")

    def permits(self, caller: str, action: str) -> bool:
        return normalize_address(caller, name="caller") == self.owner


class FallbackRoyaltyResolver(RoyaltyResolver):
    """
    Prefers the recipient reported by the collection, then a pool-level fallback.

    `inner` is typically the collection's own ERC-2981 view. A zero-address
    recipient counts as unresolved.
    """

    def __init__(self, inner: Optional[RoyaltyResolver], fallback: Optional[str] = None) -> None:
        self.inner = inner
        self.fallback = normalize_address(fallback, name="fallback") if fallback else None
        if self.fallback == ZERO_ADDRESS:
            self.fallback = None

    def royalty_recipient(self, item_id: int) -> Optional[Address]:
        if self.inner is not None:
            recipient = self.inner.royalty_recipient(item_id)
            if recipient is not None and recipient != ZERO_ADDRESS:
                return recipient
        return self.fallback

    def reports_royalties(self) -> bool:
        return self.inner is not None and self.inner.reports_royalties()
