"""
Pool-owned state: balances, inventory, allow-list, configuration

Only the leaf balance module is imported here; core modules depend on it, so
the heavier state modules are imported from their own paths.
"""

from .balances import BalanceTable, NATIVE_ASSET, ZERO_ADDRESS

__all__ = [
    "BalanceTable",
    "NATIVE_ASSET",
    "ZERO_ADDRESS",
]
