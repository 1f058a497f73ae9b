"""
Linear bonding curve.

The price moves by a constant `delta` per item:

    buy  n items:  prices S+d, S+2d, ..., S+n*d      new spot = S + n*d
    sell n items:  prices S, S-d, ..., S-(n-1)*d     new spot = S - n*d

Buying starts one step above the spot price so that buying then immediately
selling the same items is never profitable.

A sell that would push the price below zero is clamped: the new spot price is 0
and the quote covers only the `S // d + 1` items that can be sold at a
non-negative price. Callers must use `QuoteResult.num_items`, not their
requested count.

`props` and `state` are unused and pass through unchanged.
"""

from __future__ import annotations

from .curve import MAX_ITEMS_PER_QUOTE, Curve, compose_fees
from .fixed_point import U256_MAX, arithmetic_series, fits_u128
from .types import CurveError, FeeMultipliers, PricingState, QuoteResult


class LinearCurve(Curve):
    tag = "LINEAR"

    def validate_delta(self, delta: int) -> bool:
        return True

    def validate_spot_price(self, spot_price: int) -> bool:
        return True

    def validate_props(self, props: bytes) -> bool:
        return True

    def validate_state(self, state: bytes) -> bool:
        return True

    def get_buy_info(self, params: PricingState, num_items: int, fee_multipliers: FeeMultipliers) -> QuoteResult:
        if num_items <= 0:
            return QuoteResult(error=CurveError.INVALID_NUMITEMS)

        spot_price, delta = params.spot_price, params.delta
        new_spot_price = spot_price + delta * num_items
        if not fits_u128(new_spot_price):
            return QuoteResult(error=CurveError.SPOT_PRICE_OVERFLOW)
        if num_items > MAX_ITEMS_PER_QUOTE:
            return QuoteResult(error=CurveError.TOO_MANY_ITEMS)

        buy_spot_price = spot_price + delta
        raw_input = arithmetic_series(buy_spot_price, delta, num_items)
        if raw_input > U256_MAX:
            return QuoteResult(error=CurveError.TOO_MANY_ITEMS)

        item_prices = [buy_spot_price + delta * i for i in range(num_items)]
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

        spot_price, delta = params.spot_price, params.delta
        total_price_decrease = delta * num_items
        if spot_price < total_price_decrease:
            # Only the items up to (and including) the one priced at the last
            # non-negative step can be sold.
            new_spot_price = 0
            num_items = spot_price // delta + 1
        else:
            new_spot_price = spot_price - total_price_decrease
        if num_items > MAX_ITEMS_PER_QUOTE:
            return QuoteResult(error=CurveError.TOO_MANY_ITEMS)

        raw_output = num_items * spot_price - (delta * num_items * (num_items - 1)) // 2
        if raw_output > U256_MAX:
            return QuoteResult(error=CurveError.TOO_MANY_ITEMS)

        item_prices = [spot_price - delta * i for i in range(num_items)]
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
