"""
Collection pool: one bonding curve, one item collection, one base asset.

The pool owns its pricing state and its inventory. Every execute path is a
single atomic step:

1. check preconditions (pause flag, pool type, allow-list, slippage, liquidity)
   against a freshly computed quote,
2. commit the new pricing state, inventory and accrued trade fee,
3. hand one `TradeSettlement` to the asset-transfer collaborator.

If step 3 fails, step 2 is rolled back and the error propagates; nothing is
left half-applied. Internal state is already final while the collaborator runs,
and re-entering an execute or administrative path from inside it is refused.

Quotes and `balance_to_fulfill_sell_nft` never raise for economically invalid
requests; they report a `CurveError`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..config import ProtocolConfig
from ..state.allow_list import AllowListCommitment, AllowListFilter, HashLike
from ..state.balances import Address, Amount, normalize_address
from ..state.inventory import Inventory, build_inventory
from ..state.pools import (
    PoolParams,
    PoolType,
    PoolVariant,
    check_fee_for_type,
    check_pricing,
    check_royalty_numerator,
    check_royalty_support,
    fee_multipliers_for,
)
from .collaborators import (
    AccessGate,
    AssetTransfer,
    ExternalFilter,
    FallbackRoyaltyResolver,
    NativeEnumeration,
    OwnerGate,
    RoyaltyResolver,
)
from .curve import Curve
from .curve_dispatch import curve_for_tag
from .errors import (
    AllowListRejected,
    InsufficientLiquidity,
    InvalidItemCount,
    InvalidPoolParams,
    ItemNotHeld,
    PoolError,
    PoolPaused,
    PoolTypeMismatch,
    ReentrantCall,
    RoyaltyRecipientUnresolved,
    SlippageExceeded,
    Unauthorized,
    raise_for_curve_error,
)
from .settlement import BaseLegRole, BaseTransfer, ItemTransfer, SettlementKind, TradeSettlement
from .types import CurveError, FeeMultipliers, Fees, PricingState, QuoteResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeReceipt:
    """
    Outcome of a committed trade.

    Attributes:
        kind: BUY_FROM_POOL or SELL_TO_POOL
        item_ids: Items moved, in selection order
        total_amount: Paid by the buyer, or received by the seller
        fees: Fee breakdown; royalties[i] belongs to item_ids[i]
        new_state: Pricing state after the trade
        settlement: Asset movements handed to the transfer collaborator
    """
    kind: SettlementKind
    item_ids: Tuple[int, ...]
    total_amount: Amount
    fees: Fees
    new_state: PricingState
    settlement: TradeSettlement


class CollectionPool:
    """Market maker between a base asset and the items of one collection."""

    def __init__(
        self,
        address: str,
        params: PoolParams,
        *,
        owner: str,
        custody: AssetTransfer,
        protocol: Optional[ProtocolConfig] = None,
        royalty_resolver: Optional[RoyaltyResolver] = None,
        access_gate: Optional[AccessGate] = None,
        enumeration: Optional[NativeEnumeration] = None,
        external_filter: Optional[ExternalFilter] = None,
    ) -> None:
        self.address: Address = normalize_address(address, name="pool")
        self.owner: Address = normalize_address(owner, name="owner")
        self.pool_type = params.pool_type
        self.collection = params.collection
        self.base_asset = params.base_asset
        self.curve: Curve = curve_for_tag(params.curve_tag)
        self.protocol = protocol if protocol is not None else ProtocolConfig()

        params.check_curve(self.curve)
        reports = royalty_resolver.reports_royalties() if royalty_resolver is not None else False
        params.check_royalty_support(reports)

        self._custody = custody
        self._access_gate = access_gate if access_gate is not None else OwnerGate(self.owner)
        self._royalty_resolver = FallbackRoyaltyResolver(royalty_resolver, params.royalty_recipient_fallback)
        self._allow_list = AllowListFilter(
            params.allow_list,
            external_filter=external_filter,
            collection=self.collection,
        )
        self._inventory: Inventory = build_inventory(self.collection, self.address, enumeration=enumeration)
        self.variant = PoolVariant.of(enumerable=enumeration is not None, base_asset=self.base_asset)

        self._pricing: PricingState = params.pricing
        self._fee: int = params.fee
        self._royalty_numerator: int = params.royalty_numerator
        self._asset_recipient: Optional[Address] = params.asset_recipient
        self._paused = False
        self._accrued_trade_fee: Amount = 0
        self._entered = False

        logger.info(
            "created %s pool %s for %s (%s curve, %s)",
            self.pool_type.value,
            self.address,
            self.collection,
            self.curve.tag,
            self.variant.value,
        )

    # ------------------------------------------------------------------
    # Read accessors

    @property
    def pricing_state(self) -> PricingState:
        return self._pricing

    @property
    def fee(self) -> int:
        return self._fee

    @property
    def royalty_numerator(self) -> int:
        return self._royalty_numerator

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def accrued_trade_fee(self) -> Amount:
        return self._accrued_trade_fee

    @property
    def allow_list(self) -> AllowListCommitment:
        return self._allow_list.commitment

    @property
    def asset_recipient(self) -> Address:
        """Account receiving what the pool takes in; TRADE pools keep it themselves."""
        if self.pool_type is PoolType.TRADE:
            return self.address
        return self._asset_recipient if self._asset_recipient is not None else self.owner

    @property
    def fee_multipliers(self) -> FeeMultipliers:
        return fee_multipliers_for(
            self.pool_type,
            fee=self._fee,
            royalty_numerator=self._royalty_numerator,
            protocol_fee_multiplier=self.protocol.protocol_fee_multiplier,
            carry_fee_multiplier=self.protocol.carry_fee_multiplier,
        )

    def get_all_held_ids(self) -> List[int]:
        return self._inventory.all_held_ids()

    def liquidity(self) -> Amount:
        """Base-asset balance available for trading (excludes the accrued trade fee)."""
        return self._custody.balance_of(self.address, self.base_asset) - self._accrued_trade_fee

    # ------------------------------------------------------------------
    # Quotes

    def quote_buy_from_pool(self, num_items: int) -> QuoteResult:
        quote = self.curve.get_buy_info(self._pricing, num_items, self.fee_multipliers)
        logger.debug("pool %s buy quote n=%s: %s %s", self.address, num_items, quote.error.value, quote.total_amount)
        return quote

    def quote_sell_to_pool(self, num_items: int) -> QuoteResult:
        quote = self.curve.get_sell_info(self._pricing, num_items, self.fee_multipliers)
        logger.debug("pool %s sell quote n=%s: %s %s", self.address, num_items, quote.error.value, quote.total_amount)
        return quote

    def balance_to_fulfill_sell_nft(self, num_items: int) -> Tuple[CurveError, Amount]:
        """Base asset the pool must hold to buy `num_items` items right now."""
        quote = self.quote_sell_to_pool(num_items)
        if not quote.ok:
            return quote.error, 0
        return CurveError.OK, quote.total_amount + quote.fees.protocol + quote.fees.total_royalty

    # ------------------------------------------------------------------
    # Trades

    def execute_buy_from_pool(
        self,
        caller: str,
        *,
        max_payment: Amount,
        num_items: Optional[int] = None,
        item_ids: Optional[Sequence[int]] = None,
        recipient: Optional[str] = None,
    ) -> TradeReceipt:
        """
        Sell items out of the pool to `caller`.

        Pass either `num_items` (the pool picks which items) or `item_ids`.
        Raises PoolError subclasses; nothing changes when it raises.
        """
        caller = normalize_address(caller, name="caller")
        recipient = normalize_address(recipient, name="recipient") if recipient else caller
        self._require_active()
        if not self.pool_type.sells_items:
            raise self._reject(PoolTypeMismatch(f"{self.pool_type.value} pools do not sell items"))
        if (num_items is None) == (item_ids is None):
            raise ValueError("pass exactly one of num_items, item_ids")
        count = len(item_ids) if item_ids is not None else num_items

        quote = self.quote_buy_from_pool(count)
        if not quote.ok:
            self._reject_quote(quote)
        if quote.total_amount > max_payment:
            raise self._reject(SlippageExceeded(quote.total_amount, max_payment, is_buy=True))

        spot_before = self._pricing.spot_price
        with self._atomic():
            if item_ids is not None:
                selected = self._inventory.select_specific(item_ids)
            else:
                selected = self._inventory.select_arbitrary(count)
            royalty_legs = self._royalty_legs(selected, quote.fees.royalties)

            self._pricing = quote.new_state
            if self.pool_type is PoolType.TRADE:
                self._accrued_trade_fee += quote.fees.trade

            payment = quote.total_amount - quote.fees.protocol - quote.fees.total_royalty
            legs = [
                (caller, self.asset_recipient, payment, BaseLegRole.PAYMENT),
                (caller, self.protocol.protocol_fee_recipient, quote.fees.protocol, BaseLegRole.PROTOCOL_FEE),
            ]
            legs.extend((caller, to, amount, BaseLegRole.ROYALTY) for to, amount in royalty_legs)
            settlement = TradeSettlement(
                pool=self.address,
                kind=SettlementKind.BUY_FROM_POOL,
                base_transfers=self._base_legs(legs),
                item_transfers=(ItemTransfer(self.collection, self.address, recipient, tuple(selected)),),
            )
            self._custody.settle(settlement)

        logger.info(
            "pool %s sold %d items to %s for %d (spot %d -> %d)",
            self.address,
            len(selected),
            recipient,
            quote.total_amount,
            spot_before,
            self._pricing.spot_price,
        )
        return TradeReceipt(
            kind=SettlementKind.BUY_FROM_POOL,
            item_ids=tuple(selected),
            total_amount=quote.total_amount,
            fees=quote.fees,
            new_state=self._pricing,
            settlement=settlement,
        )

    def execute_sell_to_pool(
        self,
        caller: str,
        item_ids: Sequence[int],
        *,
        min_proceeds: Amount,
        proof: Sequence[HashLike] = (),
        proof_flags: Sequence[bool] = (),
        recipient: Optional[str] = None,
    ) -> TradeReceipt:
        """
        Buy `item_ids` from `caller`.

        The ids must be allowed by the pool's allow-list (given in proof order)
        and the curve must be able to price every one of them.
        """
        caller = normalize_address(caller, name="caller")
        recipient = normalize_address(recipient, name="recipient") if recipient else caller
        self._require_active()
        if not self.pool_type.buys_items:
            raise self._reject(PoolTypeMismatch(f"{self.pool_type.value} pools do not buy items"))
        ids = list(item_ids)
        if not ids:
            raise self._reject(InvalidItemCount("no items to sell"))
        if len(set(ids)) != len(ids):
            raise self._reject(InvalidItemCount(f"duplicate item ids: {ids}"))
        if not self._allow_list.accepts(ids, proof, proof_flags):
            raise self._reject(AllowListRejected("items not in allow-list"))

        quote = self.quote_sell_to_pool(len(ids))
        if not quote.ok:
            self._reject_quote(quote)
        if quote.num_items != len(ids):
            raise self._reject(
                InvalidItemCount(f"curve can price only {quote.num_items} of {len(ids)} items before reaching zero")
            )
        if quote.total_amount < min_proceeds:
            raise self._reject(SlippageExceeded(quote.total_amount, min_proceeds, is_buy=False))
        required = quote.total_amount + quote.fees.protocol + quote.fees.total_royalty
        available = self.liquidity()
        if required > available:
            raise self._reject(InsufficientLiquidity(required, available))

        spot_before = self._pricing.spot_price
        with self._atomic():
            royalty_legs = self._royalty_legs(ids, quote.fees.royalties)

            self._pricing = quote.new_state
            if self.pool_type is PoolType.TRADE:
                self._accrued_trade_fee += quote.fees.trade
            item_recipient = self.asset_recipient
            if item_recipient == self.address:
                for item_id in ids:
                    self._inventory.on_deposit(self.collection, item_id)

            legs = [
                (self.address, recipient, quote.total_amount, BaseLegRole.PROCEEDS),
                (self.address, self.protocol.protocol_fee_recipient, quote.fees.protocol, BaseLegRole.PROTOCOL_FEE),
            ]
            legs.extend((self.address, to, amount, BaseLegRole.ROYALTY) for to, amount in royalty_legs)
            settlement = TradeSettlement(
                pool=self.address,
                kind=SettlementKind.SELL_TO_POOL,
                base_transfers=self._base_legs(legs),
                item_transfers=(ItemTransfer(self.collection, caller, item_recipient, tuple(ids)),),
            )
            self._custody.settle(settlement)

        logger.info(
            "pool %s bought %d items from %s for %d (spot %d -> %d)",
            self.address,
            len(ids),
            caller,
            quote.total_amount,
            spot_before,
            self._pricing.spot_price,
        )
        return TradeReceipt(
            kind=SettlementKind.SELL_TO_POOL,
            item_ids=tuple(ids),
            total_amount=quote.total_amount,
            fees=quote.fees,
            new_state=self._pricing,
            settlement=settlement,
        )

    def on_item_received(self, collection: str, item_id: int) -> None:
        """Record an item of this pool's collection sent to the pool directly.

        Items of other collections are ignored. The custody collaborator must
        confirm the pool owns the item before it enters the inventory.
        """
        collection = normalize_address(collection, name="collection")
        if collection != self.collection:
            return
        if not self._custody.holds_item(self.address, collection, item_id):
            raise self._reject(ItemNotHeld([item_id], len(self._inventory)))
        self._inventory.on_deposit(collection, item_id)

    # ------------------------------------------------------------------
    # Administration

    def pause(self, caller: str) -> None:
        self._require_permitted(caller, "pause")
        self._paused = True
        logger.info("pool %s paused", self.address)

    def unpause(self, caller: str) -> None:
        self._require_permitted(caller, "unpause")
        self._paused = False
        logger.info("pool %s unpaused", self.address)

    def change_spot_price(self, caller: str, new_spot_price: int) -> None:
        self._require_permitted(caller, "change_spot_price")
        self._set_pricing(
            PricingState(new_spot_price, self._pricing.delta, self._pricing.props, self._pricing.state)
        )

    def change_delta(self, caller: str, new_delta: int) -> None:
        self._require_permitted(caller, "change_delta")
        self._set_pricing(
            PricingState(self._pricing.spot_price, new_delta, self._pricing.props, self._pricing.state)
        )

    def change_fee(self, caller: str, new_fee: int) -> None:
        self._require_permitted(caller, "change_fee")
        check_fee_for_type(self.pool_type, new_fee)
        self._fee = new_fee
        logger.info("pool %s fee -> %d", self.address, new_fee)

    def change_royalty_numerator(self, caller: str, new_numerator: int) -> None:
        self._require_permitted(caller, "change_royalty_numerator")
        check_royalty_numerator(new_numerator)
        inner = self._royalty_resolver.inner
        reports = inner.reports_royalties() if inner is not None else False
        check_royalty_support(new_numerator, reports, self._royalty_resolver.fallback)
        self._royalty_numerator = new_numerator
        logger.info("pool %s royalty numerator -> %d", self.address, new_numerator)

    def change_asset_recipient(self, caller: str, new_recipient: str) -> None:
        self._require_permitted(caller, "change_asset_recipient")
        if self.pool_type is PoolType.TRADE:
            raise InvalidPoolParams("Trade pools can't set asset recipient")
        self._asset_recipient = normalize_address(new_recipient, name="asset_recipient")
        logger.info("pool %s asset recipient -> %s", self.address, self._asset_recipient)

    def deposit_items(
        self,
        caller: str,
        item_ids: Sequence[int],
        proof: Sequence[HashLike] = (),
        proof_flags: Sequence[bool] = (),
    ) -> TradeSettlement:
        """Move items from `caller` into the pool; they must pass the allow-list."""
        caller = self._require_permitted(caller, "deposit_items")
        ids = list(item_ids)
        if not ids:
            raise InvalidItemCount("no items to deposit")
        if not self._allow_list.accepts(ids, proof, proof_flags):
            raise self._reject(AllowListRejected("items not in allow-list"))
        with self._atomic():
            for item_id in ids:
                self._inventory.on_deposit(self.collection, item_id)
            settlement = TradeSettlement(
                pool=self.address,
                kind=SettlementKind.DEPOSIT,
                item_transfers=(ItemTransfer(self.collection, caller, self.address, tuple(ids)),),
            )
            self._custody.settle(settlement)
        logger.info("pool %s received %d items from %s", self.address, len(ids), caller)
        return settlement

    def deposit_base(self, caller: str, amount: Amount) -> TradeSettlement:
        caller = self._require_permitted(caller, "deposit_base")
        settlement = TradeSettlement(
            pool=self.address,
            kind=SettlementKind.DEPOSIT,
            base_transfers=(BaseTransfer(self.base_asset, caller, self.address, amount, BaseLegRole.TRANSFER),),
        )
        self._custody.settle(settlement)
        logger.info("pool %s received %d base from %s", self.address, amount, caller)
        return settlement

    def withdraw_items(self, caller: str, item_ids: Sequence[int]) -> TradeSettlement:
        """Send held items to the owner."""
        self._require_permitted(caller, "withdraw_items")
        with self._atomic():
            ids = self._inventory.select_specific(item_ids)
            if not ids:
                raise InvalidItemCount("no items to withdraw")
            settlement = TradeSettlement(
                pool=self.address,
                kind=SettlementKind.WITHDRAW,
                item_transfers=(ItemTransfer(self.collection, self.address, self.owner, tuple(ids)),),
            )
            self._custody.settle(settlement)
        logger.info("pool %s withdrew %d items", self.address, len(ids))
        return settlement

    def withdraw_base(self, caller: str, amount: Amount) -> TradeSettlement:
        """Send base asset to the owner; the accrued trade fee is not withdrawable here."""
        self._require_permitted(caller, "withdraw_base")
        available = self.liquidity()
        if amount > available:
            raise self._reject(InsufficientLiquidity(amount, available))
        settlement = TradeSettlement(
            pool=self.address,
            kind=SettlementKind.WITHDRAW,
            base_transfers=(BaseTransfer(self.base_asset, self.address, self.owner, amount, BaseLegRole.TRANSFER),),
        )
        self._custody.settle(settlement)
        logger.info("pool %s withdrew %d base", self.address, amount)
        return settlement

    def withdraw_trade_fee(self, caller: str) -> Optional[TradeSettlement]:
        """Pay the accrued trade fee to the owner; None when nothing has accrued."""
        self._require_permitted(caller, "withdraw_trade_fee")
        amount = self._accrued_trade_fee
        if amount == 0:
            return None
        with self._atomic():
            self._accrued_trade_fee = 0
            settlement = TradeSettlement(
                pool=self.address,
                kind=SettlementKind.WITHDRAW,
                base_transfers=(
                    BaseTransfer(self.base_asset, self.address, self.owner, amount, BaseLegRole.TRADE_FEE),
                ),
            )
            self._custody.settle(settlement)
        logger.info("pool %s paid out %d accrued trade fee", self.address, amount)
        return settlement

    # ------------------------------------------------------------------
    # Internals

    def _require_active(self) -> None:
        if self._paused:
            raise self._reject(PoolPaused(f"pool {self.address} is paused"))

    def _require_permitted(self, caller: str, action: str) -> Address:
        if self._entered:
            raise ReentrantCall(f"pool {self.address} is already executing")
        caller = normalize_address(caller, name="caller")
        if not self._access_gate.permits(caller, action):
            raise self._reject(Unauthorized(f"{caller} may not {action}"))
        return caller

    def _set_pricing(self, pricing: PricingState) -> None:
        check_pricing(self.curve, pricing)
        self._pricing = pricing
        logger.info("pool %s pricing -> spot %d delta %d", self.address, pricing.spot_price, pricing.delta)

    def _reject(self, exc: PoolError) -> PoolError:
        logger.warning("pool %s rejected: %s", self.address, exc)
        return exc

    def _reject_quote(self, quote: QuoteResult) -> None:
        logger.warning("pool %s rejected: curve error %s", self.address, quote.error.value)
        raise_for_curve_error(quote.error)

    def _royalty_legs(self, item_ids: Sequence[int], royalties: Sequence[int]) -> List[Tuple[Address, Amount]]:
        """Royalty amounts grouped by recipient, in first-seen order."""
        totals: Dict[Address, Amount] = {}
        for item_id, amount in zip(item_ids, royalties):
            if amount == 0:
                continue
            recipient = self._royalty_resolver.royalty_recipient(item_id)
            if recipient is None:
                raise RoyaltyRecipientUnresolved(f"no royalty recipient for item {item_id}")
            totals[recipient] = totals.get(recipient, 0) + amount
        return list(totals.items())

    def _base_legs(self, legs: Sequence[Tuple[Address, Address, Amount, BaseLegRole]]) -> Tuple[BaseTransfer, ...]:
        return tuple(
            BaseTransfer(self.base_asset, sender, recipient, amount, role)
            for sender, recipient, amount, role in legs
            if amount > 0
        )

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        if self._entered:
            raise ReentrantCall(f"pool {self.address} is already executing")
        snapshot = (self._pricing, self._accrued_trade_fee, self._inventory.snapshot())
        self._entered = True
        try:
            yield
        except Exception as exc:
            self._pricing, self._accrued_trade_fee, inventory = snapshot
            self._inventory.restore(inventory)
            logger.warning("pool %s rolled back: %s", self.address, exc)
            raise
        finally:
            self._entered = False

    def __repr__(self) -> str:
        return (
            f"CollectionPool({self.address}, {self.pool_type.value}, {self.curve.tag}, "
            f"spot={self._pricing.spot_price}, delta={self._pricing.delta}, items={len(self._inventory)})"
        )
