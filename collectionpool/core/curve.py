"""
Bonding curve interface.

A curve is a stateless strategy object. Pools hold one instance chosen at
creation time and never switch it. Every curve exposes the same capability set:

- four validators used when a pool is configured, and
- `get_buy_info` / `get_sell_info`, which map the current `PricingState`, a trade
  size and the fee multipliers to a `QuoteResult`.

Quotes never raise for economically invalid requests; they return a
`CurveError` so callers can inspect before executing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

from .fixed_point import fmul
from .types import FeeMultipliers, Fees, PricingState, QuoteResult

# Upper bound on the items a single quote may cover (the per-item royalty
# breakdown is materialized).
MAX_ITEMS_PER_QUOTE = 1 << 16


class Curve(ABC):
    """Abstract bonding curve."""

    #: Registry tag, upper-case.
    tag: str = ""

    @abstractmethod
    def validate_delta(self, delta: int) -> bool:
        ...

    @abstractmethod
    def validate_spot_price(self, spot_price: int) -> bool:
        ...

    @abstractmethod
    def validate_props(self, props: bytes) -> bool:
        ...

    @abstractmethod
    def validate_state(self, state: bytes) -> bool:
        ...

    @abstractmethod
    def get_buy_info(self, params: PricingState, num_items: int, fee_multipliers: FeeMultipliers) -> QuoteResult:
        """Quote buying `num_items` items out of the pool."""

    @abstractmethod
    def get_sell_info(self, params: PricingState, num_items: int, fee_multipliers: FeeMultipliers) -> QuoteResult:
        """Quote selling `num_items` items into the pool."""

    def validate(self, params: PricingState) -> bool:
        """True when all four validators accept `params`."""
        return (
            self.validate_delta(params.delta)
            and self.validate_spot_price(params.spot_price)
            and self.validate_props(params.props)
            and self.validate_state(params.state)
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def compose_fees(
    raw_amount: int,
    item_prices: Sequence[int],
    fee_multipliers: FeeMultipliers,
) -> Tuple[Fees, int]:
    """
    Compute the fee breakdown for a trade with pre-fee value `raw_amount`.

    Order matters: protocol and trade fees are both taken on `raw_amount`, then
    the carry share is moved out of the trade fee into the protocol fee. Carry
    is never an extra charge.

    Returns (fees, fee_total) where fee_total = trade + protocol + royalties.
    """
    royalties = tuple(fmul(price, fee_multipliers.royalty_numerator) for price in item_prices)
    protocol_fee = fmul(raw_amount, fee_multipliers.protocol)
    trade_fee = fmul(raw_amount, fee_multipliers.trade)
    carry_fee = fmul(trade_fee, fee_multipliers.carry)
    trade_fee -= carry_fee
    protocol_fee += carry_fee
    fees = Fees(trade=trade_fee, protocol=protocol_fee, royalties=royalties)
    return fees, trade_fee + protocol_fee + sum(royalties)
