"""
Pricing curves and pool orchestration
"""

from .types import CurveError, FeeMultipliers, Fees, PricingState, QuoteResult
from .curve import Curve, MAX_ITEMS_PER_QUOTE, compose_fees
from .linear_curve import LinearCurve
from .exponential_curve import ExponentialCurve, MIN_PRICE
from .curve_dispatch import curve_for_tag, normalize_curve_tag, supported_curve_tags
from .errors import PoolError, raise_for_curve_error
from .settlement import BaseLegRole, BaseTransfer, ItemTransfer, SettlementKind, TradeSettlement

__all__ = [
    "CurveError",
    "FeeMultipliers",
    "Fees",
    "PricingState",
    "QuoteResult",
    "Curve",
    "MAX_ITEMS_PER_QUOTE",
    "compose_fees",
    "LinearCurve",
    "ExponentialCurve",
    "MIN_PRICE",
    "curve_for_tag",
    "normalize_curve_tag",
    "supported_curve_tags",
    "PoolError",
    "raise_for_curve_error",
    "BaseLegRole",
    "BaseTransfer",
    "ItemTransfer",
    "SettlementKind",
    "TradeSettlement",
]
