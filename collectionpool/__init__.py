"""
collectionpool: bonding-curve market maker between a base asset and the items
of a non-fungible collection.
"""

from .config import ProtocolConfig
from .core.pool import CollectionPool, TradeReceipt
from .state.allow_list import AllowListCommitment, AllowListTree
from .state.pools import PoolParams, PoolType, PoolVariant

__all__ = [
    "AllowListCommitment",
    "AllowListTree",
    "CollectionPool",
    "PoolParams",
    "PoolType",
    "PoolVariant",
    "ProtocolConfig",
    "TradeReceipt",
]
