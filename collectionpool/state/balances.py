"""
Base-asset balance tracking.

Implements BalanceTable[Address, AssetId] -> Amount. The base asset of a pool
is either the native currency (`NATIVE_ASSET`) or a fungible token identified
by its contract address.
"""

from __future__ import annotations

from typing import Dict, Tuple

from eth_utils import to_checksum_address

# Type aliases
Address = str  # EIP-55 checksummed 20-byte address
AssetId = str  # token contract address, or NATIVE_ASSET
Amount = int  # Non-negative integer (arbitrary precision)

ZERO_ADDRESS: Address = "0x" + "00" * 20

# Native currency identifier
NATIVE_ASSET: AssetId = ZERO_ADDRESS


def normalize_address(value: str, *, name: str = "address") -> Address:
    """Checksum a hex address; raises ValueError on malformed input."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a hex string")
    try:
        return to_checksum_address(value)
    except ValueError as exc:
        raise ValueError(f"invalid {name}: {value!r}") from exc


class BalanceTable:
    """
    Balance table mapping (account, asset) -> amount.

    Addresses are checksummed on every access so that differently-cased
    spellings of one account share a single entry. Zero balances are dropped
    to keep the table sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}

    def get(self, account: str, asset: str) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get(self._key(account, asset), 0)

    def set(self, account: str, asset: str, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Raises:
            ValueError: If amount is negative
        """
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError("amount must be an int")
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        key = self._key(account, asset)
        if amount == 0:
            self._balances.pop(key, None)
        else:
            self._balances[key] = amount

    def add(self, account: str, asset: str, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(f"Insufficient balance: {current} + {delta} = {new_balance} < 0")
        self.set(account, asset, new_balance)

    def subtract(self, account: str, asset: str, delta: Amount) -> None:
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(account, asset, -delta)

    def get_all_balances(self) -> Dict[Tuple[Address, AssetId], Amount]:
        return dict(self._balances)

    def copy(self) -> "BalanceTable":
        copied = BalanceTable()
        copied._balances = dict(self._balances)
        return copied

    @staticmethod
    def _key(account: str, asset: str) -> Tuple[Address, AssetId]:
        return normalize_address(account, name="account"), normalize_address(asset, name="asset")

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
