"""
Pool configuration for collection pools.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..core.curve import Curve
from ..core.errors import InvalidPoolParams
from ..core.fixed_point import WAD
from ..core.types import FeeMultipliers, PricingState
from .allow_list import AllowListCommitment
from .balances import NATIVE_ASSET, Address, AssetId, normalize_address

# Trade fee ceiling for TRADE pools (90%).
MAX_FEE = 9 * WAD // 10


class PoolType(Enum):
    """Which side(s) of the market a pool makes."""
    TOKEN = "TOKEN"  # holds base asset, buys items
    NFT = "NFT"  # holds items, sells them
    TRADE = "TRADE"  # both, earns the trade fee

    @property
    def buys_items(self) -> bool:
        return self in (PoolType.TOKEN, PoolType.TRADE)

    @property
    def sells_items(self) -> bool:
        return self in (PoolType.NFT, PoolType.TRADE)


class PoolVariant(Enum):
    """(collection enumerability, base asset kind) combination of a pool."""
    ENUMERABLE_ETH = "ENUMERABLE_ETH"
    MISSING_ENUMERABLE_ETH = "MISSING_ENUMERABLE_ETH"
    ENUMERABLE_ERC20 = "ENUMERABLE_ERC20"
    MISSING_ENUMERABLE_ERC20 = "MISSING_ENUMERABLE_ERC20"

    @classmethod
    def of(cls, *, enumerable: bool, base_asset: str) -> "PoolVariant":
        native = normalize_address(base_asset, name="base_asset") == NATIVE_ASSET
        if enumerable:
            return cls.ENUMERABLE_ETH if native else cls.ENUMERABLE_ERC20
        return cls.MISSING_ENUMERABLE_ETH if native else cls.MISSING_ENUMERABLE_ERC20

    @property
    def enumerable(self) -> bool:
        return self in (PoolVariant.ENUMERABLE_ETH, PoolVariant.ENUMERABLE_ERC20)


def check_fee_for_type(pool_type: PoolType, fee: int) -> None:
    if not isinstance(fee, int) or isinstance(fee, bool) or fee < 0:
        raise InvalidPoolParams(f"fee must be a non-negative int: {fee!r}")
    if pool_type is PoolType.TRADE:
        if fee >= MAX_FEE:
            raise InvalidPoolParams("Trade fee must be less than 90%")
    elif fee != 0:
        raise InvalidPoolParams("Only Trade Pools can have nonzero fee")


def check_royalty_numerator(royalty_numerator: int) -> None:
    if not isinstance(royalty_numerator, int) or isinstance(royalty_numerator, bool) or royalty_numerator < 0:
        raise InvalidPoolParams(f"royalty_numerator must be a non-negative int: {royalty_numerator!r}")
    if royalty_numerator >= WAD:
        raise InvalidPoolParams("royaltyNumerator must be < 1e18")


@dataclass(frozen=True)
class PoolParams:
    """
    Creation-time configuration of a collection pool.

    Attributes:
        pool_type: TOKEN, NFT or TRADE
        collection: Item collection address
        pricing: Initial spot price, delta, props and state
        curve_tag: Bonding curve tag ("LINEAR", "EXPONENTIAL")
        base_asset: Token address, or NATIVE_ASSET
        fee: Trade fee multiplier (WAD); TRADE pools only
        royalty_numerator: Royalty share of each item price (WAD)
        asset_recipient: Where TOKEN/NFT pools send what they receive;
            None means the pool owner
        royalty_recipient_fallback: Royalty payee when the collection reports
            none
        allow_list: Committed item allow-list (empty means unrestricted)
    """
    pool_type: PoolType
    collection: Address
    pricing: PricingState
    curve_tag: str = "LINEAR"
    base_asset: AssetId = NATIVE_ASSET
    fee: int = 0
    royalty_numerator: int = 0
    asset_recipient: Optional[Address] = None
    royalty_recipient_fallback: Optional[Address] = None
    allow_list: AllowListCommitment = field(default_factory=AllowListCommitment.empty)

    def __post_init__(self) -> None:
        if not isinstance(self.pool_type, PoolType):
            raise TypeError("pool_type must be a PoolType")
        if not isinstance(self.pricing, PricingState):
            raise TypeError("pricing must be a PricingState")
        object.__setattr__(self, "collection", normalize_address(self.collection, name="collection"))
        object.__setattr__(self, "base_asset", normalize_address(self.base_asset, name="base_asset"))
        for name in ("asset_recipient", "royalty_recipient_fallback"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, normalize_address(value, name=name))
        check_fee_for_type(self.pool_type, self.fee)
        check_royalty_numerator(self.royalty_numerator)
        if self.pool_type is PoolType.TRADE and self.asset_recipient is not None:
            raise InvalidPoolParams("Trade pools can't set asset recipient")

    def check_curve(self, curve: Curve) -> None:
        """Run the curve's validators over the initial pricing state."""
        check_pricing(curve, self.pricing)

    def check_royalty_support(self, reports_royalties: bool) -> None:
        check_royalty_support(self.royalty_numerator, reports_royalties, self.royalty_recipient_fallback)


def check_pricing(curve: Curve, pricing: PricingState) -> None:
    if not curve.validate_delta(pricing.delta):
        raise InvalidPoolParams(f"Invalid delta for curve {curve.tag}: {pricing.delta}")
    if not curve.validate_spot_price(pricing.spot_price):
        raise InvalidPoolParams(f"Invalid new spot price for curve {curve.tag}: {pricing.spot_price}")
    if not curve.validate_props(pricing.props):
        raise InvalidPoolParams(f"Invalid props for curve {curve.tag}")
    if not curve.validate_state(pricing.state):
        raise InvalidPoolParams(f"Invalid state for curve {curve.tag}")


def check_royalty_support(royalty_numerator: int, reports_royalties: bool, fallback: Optional[str]) -> None:
    if royalty_numerator != 0 and not reports_royalties and fallback is None:
        raise InvalidPoolParams("Nonzero royalty for non ERC2981 without fallback")


def fee_multipliers_for(
    pool_type: PoolType,
    *,
    fee: int,
    royalty_numerator: int,
    protocol_fee_multiplier: int,
    carry_fee_multiplier: int,
) -> FeeMultipliers:
    """Fee multipliers a pool passes to its curve; carry only applies to TRADE pools."""
    return FeeMultipliers(
        trade=fee,
        protocol=protocol_fee_multiplier,
        royalty_numerator=royalty_numerator,
        carry=carry_fee_multiplier if pool_type is PoolType.TRADE else 0,
    )
