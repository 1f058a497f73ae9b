from __future__ import annotations

import pytest
from eth_utils import to_checksum_address

from collectionpool.core.errors import InvalidPoolParams
from collectionpool.core.exponential_curve import ExponentialCurve
from collectionpool.core.fixed_point import WAD
from collectionpool.core.types import PricingState
from collectionpool.state.balances import NATIVE_ASSET
from collectionpool.state.pools import (
    MAX_FEE,
    PoolParams,
    PoolType,
    PoolVariant,
    fee_multipliers_for,
)

COLLECTION = "0x" + "dd" * 20
TOKEN = "0x" + "12" * 20
RECIPIENT = "0x" + "a1" * 20
PRICING = PricingState(spot_price=WAD, delta=WAD // 10)


def _params(**kwargs) -> PoolParams:
    base = dict(pool_type=PoolType.TRADE, collection=COLLECTION, pricing=PRICING)
    base.update(kwargs)
    return PoolParams(**base)


class TestPoolParams:
    def test_addresses_are_checksummed(self):
        params = _params(pool_type=PoolType.NFT, asset_recipient=RECIPIENT.lower())
        assert params.collection == to_checksum_address(COLLECTION)
        assert params.asset_recipient == to_checksum_address(RECIPIENT)
        assert params.base_asset == NATIVE_ASSET

    def test_royalty_numerator_bound(self):
        with pytest.raises(InvalidPoolParams, match="royaltyNumerator must be < 1e18"):
            _params(royalty_numerator=WAD)

    def test_only_trade_pools_charge_fee(self):
        with pytest.raises(InvalidPoolParams):
            _params(pool_type=PoolType.TOKEN, fee=1)
        with pytest.raises(InvalidPoolParams):
            _params(pool_type=PoolType.NFT, fee=1)
        assert _params(fee=MAX_FEE - 1).fee == MAX_FEE - 1

    def test_trade_fee_cap(self):
        with pytest.raises(InvalidPoolParams):
            _params(fee=MAX_FEE)

    def test_trade_pool_cannot_set_asset_recipient(self):
        with pytest.raises(InvalidPoolParams):
            _params(asset_recipient=RECIPIENT)

    def test_invalid_params_are_value_errors(self):
        with pytest.raises(ValueError):
            _params(fee=-1)

    def test_curve_validators(self):
        with pytest.raises(InvalidPoolParams, match="Invalid delta"):
            _params(curve_tag="EXPONENTIAL").check_curve(ExponentialCurve())
        _params(curve_tag="EXPONENTIAL", pricing=PricingState(WAD, 2 * WAD)).check_curve(ExponentialCurve())

    def test_royalty_support(self):
        params = _params(royalty_numerator=10**16)
        with pytest.raises(InvalidPoolParams, match="without fallback"):
            params.check_royalty_support(False)
        params.check_royalty_support(True)
        _params(royalty_numerator=10**16, royalty_recipient_fallback=RECIPIENT).check_royalty_support(False)
        _params().check_royalty_support(False)


class TestPoolTypeAndVariant:
    def test_sides(self):
        assert PoolType.TRADE.buys_items and PoolType.TRADE.sells_items
        assert PoolType.TOKEN.buys_items and not PoolType.TOKEN.sells_items
        assert PoolType.NFT.sells_items and not PoolType.NFT.buys_items

    @pytest.mark.parametrize(
        "enumerable,asset,variant",
        [
            (True, NATIVE_ASSET, PoolVariant.ENUMERABLE_ETH),
            (False, NATIVE_ASSET, PoolVariant.MISSING_ENUMERABLE_ETH),
            (True, TOKEN, PoolVariant.ENUMERABLE_ERC20),
            (False, TOKEN, PoolVariant.MISSING_ENUMERABLE_ERC20),
        ],
    )
    def test_variant(self, enumerable, asset, variant):
        assert PoolVariant.of(enumerable=enumerable, base_asset=asset) is variant
        assert variant.enumerable is enumerable


def test_carry_only_for_trade_pools() -> None:
    kwargs = dict(fee=0, royalty_numerator=0, protocol_fee_multiplier=10**15, carry_fee_multiplier=WAD // 2)
    assert fee_multipliers_for(PoolType.TRADE, **kwargs).carry == WAD // 2
    assert fee_multipliers_for(PoolType.NFT, **kwargs).carry == 0
    assert fee_multipliers_for(PoolType.NFT, **kwargs).protocol == 10**15
