from __future__ import annotations

import pytest
from eth_utils import to_checksum_address

from collectionpool.config import (
    ENV_CARRY_FEE_MULTIPLIER,
    ENV_PROTOCOL_FEE_MULTIPLIER,
    ENV_PROTOCOL_FEE_RECIPIENT,
    MAX_CARRY_FEE,
    MAX_PROTOCOL_FEE,
    ProtocolConfig,
)
from collectionpool.state.balances import ZERO_ADDRESS

RECIPIENT = "0x" + "ee" * 20


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (ENV_PROTOCOL_FEE_MULTIPLIER, ENV_CARRY_FEE_MULTIPLIER, ENV_PROTOCOL_FEE_RECIPIENT):
        monkeypatch.delenv(name, raising=False)


def test_defaults_charge_nothing() -> None:
    config = ProtocolConfig.from_env()
    assert config == ProtocolConfig()
    assert config.protocol_fee_recipient == ZERO_ADDRESS


def test_from_env(monkeypatch) -> None:
    monkeypatch.setenv(ENV_PROTOCOL_FEE_MULTIPLIER, str(5 * 10**15))
    monkeypatch.setenv(ENV_CARRY_FEE_MULTIPLIER, str(10**17))
    monkeypatch.setenv(ENV_PROTOCOL_FEE_RECIPIENT, f"  {RECIPIENT}  ")
    config = ProtocolConfig.from_env()
    assert config.protocol_fee_multiplier == 5 * 10**15
    assert config.carry_fee_multiplier == 10**17
    assert config.protocol_fee_recipient == to_checksum_address(RECIPIENT)


def test_env_values_are_clamped(monkeypatch) -> None:
    monkeypatch.setenv(ENV_PROTOCOL_FEE_MULTIPLIER, str(10**30))
    monkeypatch.setenv(ENV_CARRY_FEE_MULTIPLIER, "-5")
    monkeypatch.setenv(ENV_PROTOCOL_FEE_RECIPIENT, RECIPIENT)
    config = ProtocolConfig.from_env()
    assert config.protocol_fee_multiplier == MAX_PROTOCOL_FEE
    assert config.carry_fee_multiplier == 0


def test_unparseable_env_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.setenv(ENV_PROTOCOL_FEE_MULTIPLIER, "lots")
    assert ProtocolConfig.from_env().protocol_fee_multiplier == 0


def test_recipient_required_for_fees() -> None:
    with pytest.raises(ValueError):
        ProtocolConfig(protocol_fee_multiplier=1)
    with pytest.raises(ValueError):
        ProtocolConfig(carry_fee_multiplier=1)


def test_bounds() -> None:
    with pytest.raises(ValueError):
        ProtocolConfig(protocol_fee_multiplier=MAX_PROTOCOL_FEE + 1, protocol_fee_recipient=RECIPIENT)
    with pytest.raises(ValueError):
        ProtocolConfig(carry_fee_multiplier=MAX_CARRY_FEE + 1, protocol_fee_recipient=RECIPIENT)
    with pytest.raises(TypeError):
        ProtocolConfig(protocol_fee_multiplier=True, protocol_fee_recipient=RECIPIENT)
