"""
Tests for network configuration selection and environment overrides.
"""

import pytest

from mei.core import config
from mei.core.config import ConfigurationError, NetworkType

_ENV_VARS = (
    "MEI_NETWORK",
    "MEI_TOKEN_NAME",
    "MEI_TOKEN_TICKER",
    "MEI_TOKEN_TOTAL_SUPPLY",
    "MEI_TOKEN_DECIMALS",
    "MEI_LOCKED_BPS",
    "MEI_VESTING_EPOCH",
    "MEI_OWNER_ADDRESS",
    "MEI_BENEFICIARY_ADDRESS",
    "MEI_STATE_DIR",
    "MEI_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def test_dev_defaults():
    cfg = config.select_config("dev")
    assert cfg.NETWORK_TYPE == NetworkType.DEV
    assert cfg.TOKEN_TICKER == "MEI"
    assert cfg.TOKEN_TOTAL_SUPPLY == 1_230_000_000
    assert cfg.LOCKED_BPS == 3000
    assert cfg.VESTING_EPOCH is None


def test_network_defaults_to_env(monkeypatch):
    monkeypatch.setenv("MEI_NETWORK", "testnet")
    cfg = config.select_config()
    assert cfg.NETWORK_TYPE == NetworkType.TESTNET
    assert cfg.TOKEN_TICKER == "tMEI"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MEI_TOKEN_TICKER", "XYZ")
    monkeypatch.setenv("MEI_TOKEN_TOTAL_SUPPLY", "1000")
    monkeypatch.setenv("MEI_VESTING_EPOCH", "1700000000")
    monkeypatch.setenv("MEI_LOG_LEVEL", "warning")

    cfg = config.select_config("dev")

    assert cfg.TOKEN_TICKER == "XYZ"
    assert cfg.TOKEN_TOTAL_SUPPLY == 1000
    assert cfg.VESTING_EPOCH == 1_700_000_000
    assert cfg.LOG_LEVEL == "WARNING"
    assert config.resolve_epoch(cfg) == 1_700_000_000
    # Base class untouched
    assert config.DevConfig.TOKEN_TICKER == "MEI"


def test_malformed_integer(monkeypatch):
    monkeypatch.setenv("MEI_LOCKED_BPS", "thirty percent")
    with pytest.raises(ConfigurationError, match="MEI_LOCKED_BPS"):
        config.select_config("dev")


def test_locked_share_out_of_range(monkeypatch):
    monkeypatch.setenv("MEI_LOCKED_BPS", "10001")
    with pytest.raises(ConfigurationError):
        config.select_config("dev")


def test_unknown_network():
    with pytest.raises(ConfigurationError, match="Unknown network"):
        config.select_config("ropsten")


def test_mainnet_requires_owner_and_epoch(monkeypatch):
    with pytest.raises(ConfigurationError, match="MEI_OWNER_ADDRESS"):
        config.select_config("mainnet")

    monkeypatch.setenv("MEI_OWNER_ADDRESS", "0x" + "ab" * 20)
    with pytest.raises(ConfigurationError, match="MEI_VESTING_EPOCH"):
        config.select_config("mainnet")

    monkeypatch.setenv("MEI_VESTING_EPOCH", "1700000000")
    cfg = config.select_config("mainnet")
    assert cfg.NETWORK_TYPE == NetworkType.MAINNET
    assert cfg.OWNER_ADDRESS == "0x" + "ab" * 20


def test_supply_in_base_units():
    cfg = config.select_config("dev")
    assert config.supply_in_base_units(cfg) == 1_230_000_000 * 10**18


def test_resolve_epoch_falls_back_to_now(monkeypatch):
    monkeypatch.setattr(config.time, "time", lambda: 1234.9)
    cfg = config.select_config("dev")
    assert config.resolve_epoch(cfg) == 1234
