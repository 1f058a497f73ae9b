"""
In-memory collaborators for running pools outside a chain
"""

from .custody import Custody, ItemCollection

__all__ = ["Custody", "ItemCollection"]
