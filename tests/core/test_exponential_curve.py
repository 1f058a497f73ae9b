"""Tests for collectionpool/core/exponential_curve.py."""

from __future__ import annotations

import pytest

from collectionpool.core.exponential_curve import MIN_PRICE, ExponentialCurve
from collectionpool.core.fixed_point import WAD, fdiv, fmul, rpow
from collectionpool.core.types import CurveError, FeeMultipliers, PricingState

CURVE = ExponentialCurve()
NO_FEES = FeeMultipliers()
TEN_PERCENT = 11 * 10**17


class TestValidators:
    def test_delta_must_exceed_one(self):
        assert CURVE.validate_delta(WAD + 1)
        assert not CURVE.validate_delta(WAD)
        assert not CURVE.validate_delta(0)

    def test_spot_price_floor(self):
        assert CURVE.validate_spot_price(MIN_PRICE)
        assert not CURVE.validate_spot_price(MIN_PRICE - 1)

    def test_validate_combines_all(self):
        assert CURVE.validate(PricingState(WAD, TEN_PERCENT))
        assert not CURVE.validate(PricingState(WAD, WAD))


class TestBuy:
    def test_two_items(self):
        result = CURVE.get_buy_info(PricingState(WAD, TEN_PERCENT), 2, NO_FEES)
        assert result.ok
        assert result.new_state.spot_price == 121 * 10**16
        # 1.1 + 1.21
        assert result.total_amount == 231 * 10**16

    def test_royalties_follow_rolling_price(self):
        fees = FeeMultipliers(royalty_numerator=10**16)
        result = CURVE.get_buy_info(PricingState(WAD, TEN_PERCENT), 2, fees)
        assert result.fees.royalties == (11 * 10**15, 121 * 10**14)

    def test_zero_items(self):
        assert CURVE.get_buy_info(PricingState(WAD, TEN_PERCENT), 0, NO_FEES).error is CurveError.INVALID_NUMITEMS

    def test_price_overflow(self):
        result = CURVE.get_buy_info(PricingState(2**100, 2 * WAD), 40, NO_FEES)
        assert result.error is CurveError.SPOT_PRICE_OVERFLOW

    def test_invalid_delta_raises(self):
        with pytest.raises(ValueError):
            CURVE.get_buy_info(PricingState(WAD, WAD), 1, NO_FEES)


class TestSell:
    def test_two_items_matches_geometric_series(self):
        state = PricingState(WAD, TEN_PERCENT)
        result = CURVE.get_sell_info(state, 2, NO_FEES)
        inv = fdiv(WAD, TEN_PERCENT)
        inv_pow = rpow(inv, 2)
        assert result.ok
        assert result.new_state.spot_price == fmul(WAD, inv_pow)
        assert result.total_amount == fdiv(fmul(WAD, WAD - inv_pow), WAD - inv)
        # ~ 1.0 + 0.909
        assert 1_909 * 10**15 <= result.total_amount <= 1_910 * 10**15

    def test_spot_price_floors_at_min_price(self):
        result = CURVE.get_sell_info(PricingState(MIN_PRICE, 2 * WAD), 5, NO_FEES)
        assert result.ok
        assert result.new_state.spot_price == MIN_PRICE

    def test_fees_subtracted(self):
        fees = FeeMultipliers(trade=10**16, protocol=10**16)
        free = CURVE.get_sell_info(PricingState(WAD, TEN_PERCENT), 3, NO_FEES)
        charged = CURVE.get_sell_info(PricingState(WAD, TEN_PERCENT), 3, fees)
        assert charged.total_amount == free.total_amount - charged.fees.trade - charged.fees.protocol
