"""
Exponential bonding curve.

`delta` is a WAD multiplier strictly greater than 1.0; every item bought
multiplies the price by `delta`, every item sold divides it by `delta`:

    buy  n items:  prices S*d, S*d^2, ..., S*d^n        new spot = S * d^n
    sell n items:  prices S, S/d, ..., S/d^(n-1)        new spot = S / d^n

The spot price never drops below `MIN_PRICE`; a sell that would take it lower
pins it at `MIN_PRICE`.
"""

from __future__ import annotations

from .curve import MAX_ITEMS_PER_QUOTE, Curve, compose_fees
from .fixed_point import U256_MAX, WAD, fdiv, fits_u128, fmul, rpow
from .types import CurveError, FeeMultipliers, PricingState, QuoteResult

# 1 gwei.
MIN_PRICE = 10**9


def _rolling_prices(first: int, multiplier: int, count: int) -> list[int]:
    prices: list[int] = []
    price = first
    for _ in range(count):
        prices.append(price)
        price = fmul(price, multiplier)
    return prices


class ExponentialCurve(Curve):
    tag = "EXPONENTIAL"

    def validate_delta(self, delta: int) -> bool:
        return delta > WAD

    def validate_spot_price(self, spot_price: int) -> bool:
        return spot_price >= MIN_PRICE

    def validate_props(self, props: bytes) -> bool:
        return True

    def validate_state(self, state: bytes) -> bool:
        return True

    def get_buy_info(self, params: PricingState, num_items: int, fee_multipliers: FeeMultipliers) -> QuoteResult:
        if num_items <= 0:
            return QuoteResult(error=CurveError.INVALID_NUMITEMS)
        if not self.validate_delta(params.delta):
            raise ValueError(f"exponential delta must be > 1e18: {params.delta}")

        spot_price, delta = params.spot_price, params.delta
        try:
            delta_pow_n = rpow(delta, num_items)
        except OverflowError:
            return QuoteResult(error=CurveError.SPOT_PRICE_OVERFLOW)
        new_spot_price = fmul(spot_price, delta_pow_n)
        if not fits_u128(new_spot_price):
            return QuoteResult(error=CurveError.SPOT_PRICE_OVERFLOW)
        if num_items > MAX_ITEMS_PER_QUOTE:
            return QuoteResult(error=CurveError.TOO_MANY_ITEMS)

        buy_spot_price = fmul(spot_price, delta)
        # Geometric series: buy_spot_price * (d^n - 1) / (d - 1).
        raw_input = fmul(buy_spot_price, fdiv(delta_pow_n - WAD, delta - WAD))
        if raw_input > U256_MAX:
            return QuoteResult(error=CurveError.TOO_MANY_ITEMS)

        item_prices = _rolling_prices(buy_spot_price, delta, num_items)
        fees, fee_total = compose_fees(raw_input, item_prices, fee_multipliers)
        input_value = raw_input + fee_total
        if input_value > U256_MAX:
            return QuoteResult(error=CurveError.TOO_MANY_ITEMS)

        return QuoteResult(
            error=CurveError.OK,
            new_state=PricingState(
                spot_price=new_spot_price,
                delta=delta,
                props=params.props,
                state=params.state,
            ),
            total_amount=input_value,
            fees=fees,
            num_items=num_items,
        )

    def get_sell_info(self, params: PricingState, num_items: int, fee_multipliers: FeeMultipliers) -> QuoteResult:
        if num_items <= 0:
            return QuoteResult(error=CurveError.INVALID_NUMITEMS)
        if not self.validate_delta(params.delta):
            raise ValueError(f"exponential delta must be > 1e18: {params.delta}")
        if num_items > MAX_ITEMS_PER_QUOTE:
            return QuoteResult(error=CurveError.TOO_MANY_ITEMS)

        spot_price, delta = params.spot_price, params.delta
        inv_delta = fdiv(WAD, delta)
        inv_delta_pow_n = rpow(inv_delta, num_items)

        new_spot_price = max(fmul(spot_price, inv_delta_pow_n), MIN_PRICE)

        # Geometric series: S * (1 - (1/d)^n) / (1 - 1/d).
        raw_output = fdiv(fmul(spot_price, WAD - inv_delta_pow_n), WAD - inv_delta)

        item_prices = _rolling_prices(spot_price, inv_delta, num_items)
        fees, fee_total = compose_fees(raw_output, item_prices, fee_multipliers)
        if fee_total > raw_output:
            return QuoteResult(error=CurveError.FEES_EXCEED_OUTPUT)
        output_value = raw_output - fee_total

        return QuoteResult(
            error=CurveError.OK,
            new_state=PricingState(
                spot_price=new_spot_price,
                delta=delta,
                props=params.props,
                state=params.state,
            ),
            total_amount=output_value,
            fees=fees,
            num_items=num_items,
        )
