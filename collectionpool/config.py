"""
Protocol-wide settings shared by every pool.

Values can be supplied explicitly or read from the environment:

- COLLECTIONPOOL_PROTOCOL_FEE_MULTIPLIER  (WAD, clamped to [0, MAX_PROTOCOL_FEE])
- COLLECTIONPOOL_CARRY_FEE_MULTIPLIER     (WAD, clamped to [0, MAX_CARRY_FEE])
- COLLECTIONPOOL_PROTOCOL_FEE_RECIPIENT   (address; zero address when unset)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .core.fixed_point import WAD
from .state.balances import ZERO_ADDRESS, Address, normalize_address

MAX_PROTOCOL_FEE = WAD // 10
MAX_CARRY_FEE = WAD // 2

ENV_PROTOCOL_FEE_MULTIPLIER = "COLLECTIONPOOL_PROTOCOL_FEE_MULTIPLIER"
ENV_CARRY_FEE_MULTIPLIER = "COLLECTIONPOOL_CARRY_FEE_MULTIPLIER"
ENV_PROTOCOL_FEE_RECIPIENT = "COLLECTIONPOOL_PROTOCOL_FEE_RECIPIENT"


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class ProtocolConfig:
    """Protocol fee settings applied on top of each pool's own fees."""

    protocol_fee_multiplier: int = 0
    carry_fee_multiplier: int = 0
    protocol_fee_recipient: Address = ZERO_ADDRESS

    def __post_init__(self) -> None:
        for name, hi in (
            ("protocol_fee_multiplier", MAX_PROTOCOL_FEE),
            ("carry_fee_multiplier", MAX_CARRY_FEE),
        ):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not 0 <= v <= hi:
                raise ValueError(f"{name} must be in [0, {hi}]: {v}")
        object.__setattr__(
            self,
            "protocol_fee_recipient",
            normalize_address(self.protocol_fee_recipient, name="protocol_fee_recipient"),
        )
        fee_on = self.protocol_fee_multiplier > 0 or self.carry_fee_multiplier > 0
        if fee_on and self.protocol_fee_recipient == ZERO_ADDRESS:
            raise ValueError("protocol fee recipient required when protocol or carry fee is nonzero")

    @classmethod
    def from_env(cls) -> "ProtocolConfig":
        return cls(
            protocol_fee_multiplier=_env_int(ENV_PROTOCOL_FEE_MULTIPLIER, 0, lo=0, hi=MAX_PROTOCOL_FEE),
            carry_fee_multiplier=_env_int(ENV_CARRY_FEE_MULTIPLIER, 0, lo=0, hi=MAX_CARRY_FEE),
            protocol_fee_recipient=_env_str(ENV_PROTOCOL_FEE_RECIPIENT, ZERO_ADDRESS),
        )
