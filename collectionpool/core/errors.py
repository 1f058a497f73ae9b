"""Exception types for pool operations.

Quotes report problems as `CurveError` values inside a `QuoteResult`; the
execute paths of `CollectionPool` raise these exceptions instead, after which
no state has changed. Every error carries a stable ``code``.
"""

from __future__ import annotations

from .types import CurveError


class PoolError(Exception):
    """Base class for all pool errors."""

    code: str = "POOL_ERROR"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.code
        super().__init__(self.message)


class InvalidItemCount(PoolError):
    code = "INVALID_ITEM_COUNT"


class SpotPriceOverflow(PoolError):
    code = "SPOT_PRICE_OVERFLOW"


class TooManyItems(PoolError):
    code = "TOO_MANY_ITEMS"


class FeesExceedOutput(PoolError):
    code = "FEES_EXCEED_OUTPUT"


class InsufficientInventory(PoolError):
    code = "INSUFFICIENT_INVENTORY"

    def __init__(self, requested: int, available: int, message: str = "") -> None:
        self.requested = requested
        self.available = available
        super().__init__(message or f"Insufficient inventory: requested {requested}, available {available}")


class ItemNotHeld(InsufficientInventory):
    """A specifically requested item is not in the pool's inventory."""

    def __init__(self, item_ids: list[int], available: int) -> None:
        self.item_ids = list(item_ids)
        super().__init__(len(self.item_ids), available, f"Items not held by pool: {self.item_ids}")


class AllowListRejected(PoolError):
    code = "ALLOW_LIST_REJECTED"


class SlippageExceeded(PoolError):
    code = "SLIPPAGE_EXCEEDED"

    def __init__(self, quoted: int, bound: int, *, is_buy: bool) -> None:
        self.quoted = quoted
        self.bound = bound
        if is_buy:
            msg = f"In too many tokens: quote {quoted} > max {bound}"
        else:
            msg = f"Out too few tokens: quote {quoted} < min {bound}"
        super().__init__(msg)


class InsufficientLiquidity(PoolError):
    code = "INSUFFICIENT_LIQUIDITY"

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(f"Insufficient liquidity: required {required}, available {available}")


class InvalidPoolParams(PoolError, ValueError):
    """Pool configuration violates a creation-time constraint."""

    code = "INVALID_POOL_PARAMS"


class PoolPaused(PoolError):
    code = "POOL_PAUSED"


class PoolTypeMismatch(PoolError):
    code = "POOL_TYPE_MISMATCH"


class Unauthorized(PoolError):
    code = "UNAUTHORIZED"


class RoyaltyRecipientUnresolved(PoolError):
    code = "ROYALTY_RECIPIENT_UNRESOLVED"


class ReentrantCall(PoolError):
    code = "REENTRANT_CALL"


class SettlementFailed(PoolError):
    """The asset-transfer collaborator rejected a settlement."""

    code = "SETTLEMENT_FAILED"


_CURVE_ERRORS: dict[CurveError, type[PoolError]] = {
    CurveError.INVALID_NUMITEMS: InvalidItemCount,
    CurveError.SPOT_PRICE_OVERFLOW: SpotPriceOverflow,
    CurveError.TOO_MANY_ITEMS: TooManyItems,
    CurveError.FEES_EXCEED_OUTPUT: FeesExceedOutput,
}


def raise_for_curve_error(error: CurveError) -> None:
    """Raise the exception matching a non-OK curve error; no-op for OK."""
    if error is CurveError.OK:
        return
    exc_type = _CURVE_ERRORS.get(error, PoolError)
    raise exc_type(f"curve rejected quote: {error.value}")
