"""Data types shared by the bonding curves and the pool.

All types are frozen dataclasses (immutable). Units/conventions:
- `spot_price`, `delta` and all amounts are integer base-asset units (wei).
- fee multipliers are WAD fractions (1.0 == 10**18).
- `props` / `state` are opaque, curve-specific byte strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from .fixed_point import WAD, require_uint


@unique
class CurveError(Enum):
    """Outcome code of a curve quote. Only ``OK`` quotes may be acted on."""

    OK = "OK"
    INVALID_NUMITEMS = "INVALID_NUMITEMS"
    SPOT_PRICE_OVERFLOW = "SPOT_PRICE_OVERFLOW"
    TOO_MANY_ITEMS = "TOO_MANY_ITEMS"
    FEES_EXCEED_OUTPUT = "FEES_EXCEED_OUTPUT"


@dataclass(frozen=True)
class PricingState:
    """Curve parameters a pool carries between trades."""

    spot_price: int
    delta: int
    props: bytes = b""
    state: bytes = b""

    def __post_init__(self) -> None:
        require_uint("spot_price", self.spot_price, bits=128)
        require_uint("delta", self.delta, bits=128)
        for name in ("props", "state"):
            if not isinstance(getattr(self, name), bytes):
                raise TypeError(f"{name} must be bytes")


@dataclass(frozen=True)
class FeeMultipliers:
    trade: int = 0
    protocol: int = 0
    royalty_numerator: int = 0
    carry: int = 0

    def __post_init__(self) -> None:
        for name in ("trade", "protocol", "royalty_numerator", "carry"):
            v = getattr(self, name)
            require_uint(name, v)
            if v >= WAD:
                raise ValueError(f"{name} must be < 1e18: {v}")


@dataclass(frozen=True)
class Fees:
    """Fee breakdown of a quote. ``royalties[i]`` belongs to the i-th item traded."""

    trade: int = 0
    protocol: int = 0
    royalties: tuple[int, ...] = ()

    @property
    def total_royalty(self) -> int:
        return sum(self.royalties)


@dataclass(frozen=True)
class QuoteResult:
    """``(error, new_state, total_amount, fees)``.

    When ``error`` is not ``CurveError.OK`` the remaining fields are void.
    For buys ``total_amount`` is what the buyer pays; for sells it is what the
    seller receives. ``num_items`` is the item count the quote actually covers,
    which a sell quote may reduce below the requested count.
    """

    error: CurveError
    new_state: PricingState | None = None
    total_amount: int = 0
    fees: Fees = Fees()
    num_items: int = 0

    @property
    def ok(self) -> bool:
        return self.error is CurveError.OK

    def __iter__(self):
        # Unpacks in quote-ABI order.
        return iter((self.error, self.new_state, self.total_amount, self.fees))
