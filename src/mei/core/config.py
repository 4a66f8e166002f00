"""
MEI Token Configuration

Per-network deployment parameters for the token (dev, testnet, mainnet).

Values default to the reconstructed deployment parameters and can be
overridden through ``MEI_*`` environment variables. Mainnet refuses to fall
back to defaults for the owner address and the vesting epoch.
"""

from __future__ import annotations

import logging
import os
import time
from enum import Enum

from .constants import (
    BASIS_POINTS_DIVISOR,
    DEFAULT_DECIMALS,
    DEFAULT_LOCKED_BPS,
    DEFAULT_TOTAL_SUPPLY_TOKENS,
)

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    DEV = "dev"
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int | None) -> int | None:
    value = os.getenv(env_var, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {value!r}") from exc


def _get_str(env_var: str, default: str) -> str:
    value = os.getenv(env_var, "").strip()
    return value or default


# Get network type from environment variable
NETWORK = os.getenv("MEI_NETWORK", "dev")


class DevConfig:
    """Local development configuration (Hardhat-style throwaway chain)"""

    NETWORK_TYPE = NetworkType.DEV

    TOKEN_NAME = "MEI Token"
    TOKEN_TICKER = "MEI"
    TOKEN_TOTAL_SUPPLY = DEFAULT_TOTAL_SUPPLY_TOKENS  # whole tokens
    TOKEN_DECIMALS = DEFAULT_DECIMALS
    LOCKED_BPS = DEFAULT_LOCKED_BPS

    # None means "deployment time"
    VESTING_EPOCH = None

    OWNER_ADDRESS = "0x" + "1" * 40
    BENEFICIARY_ADDRESS = ""  # empty: beneficiary is the owner

    STATE_DIR = os.path.join(os.getcwd(), "data_dev")
    LOG_LEVEL = "DEBUG"


class TestnetConfig(DevConfig):
    """Testnet Configuration (public rehearsal before mainnet)"""

    NETWORK_TYPE = NetworkType.TESTNET

    TOKEN_NAME = "MEI Token (Testnet)"
    TOKEN_TICKER = "tMEI"

    STATE_DIR = os.path.join(os.getcwd(), "data_testnet")
    LOG_LEVEL = "INFO"


class MainnetConfig(DevConfig):
    """Mainnet Configuration (production token)"""

    NETWORK_TYPE = NetworkType.MAINNET

    # Must be supplied explicitly
    OWNER_ADDRESS = ""

    STATE_DIR = os.path.join(os.getcwd(), "data")
    LOG_LEVEL = "INFO"


_CONFIGS = {
    NetworkType.DEV: DevConfig,
    NetworkType.TESTNET: TestnetConfig,
    NetworkType.MAINNET: MainnetConfig,
}


def select_config(network: str | None = None) -> type:
    """Return the config class for ``network`` with environment overrides applied.

    Raises:
        ConfigurationError: Unknown network, malformed values, or missing
            mainnet requirements
    """
    network = (network or os.getenv("MEI_NETWORK", "dev")).strip().lower()
    try:
        network_type = NetworkType(network)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown network {network!r}") from exc

    base = _CONFIGS[network_type]
    overrides = {
        "TOKEN_NAME": _get_str("MEI_TOKEN_NAME", base.TOKEN_NAME),
        "TOKEN_TICKER": _get_str("MEI_TOKEN_TICKER", base.TOKEN_TICKER),
        "TOKEN_TOTAL_SUPPLY": _get_int("MEI_TOKEN_TOTAL_SUPPLY", base.TOKEN_TOTAL_SUPPLY),
        "TOKEN_DECIMALS": _get_int("MEI_TOKEN_DECIMALS", base.TOKEN_DECIMALS),
        "LOCKED_BPS": _get_int("MEI_LOCKED_BPS", base.LOCKED_BPS),
        "VESTING_EPOCH": _get_int("MEI_VESTING_EPOCH", base.VESTING_EPOCH),
        "OWNER_ADDRESS": _get_str("MEI_OWNER_ADDRESS", base.OWNER_ADDRESS),
        "BENEFICIARY_ADDRESS": _get_str("MEI_BENEFICIARY_ADDRESS", base.BENEFICIARY_ADDRESS),
        "STATE_DIR": _get_str("MEI_STATE_DIR", base.STATE_DIR),
        "LOG_LEVEL": _get_str("MEI_LOG_LEVEL", base.LOG_LEVEL).upper(),
    }
    config = type(base.__name__, (base,), overrides)
    validate_config(config)
    return config


def validate_config(config: type) -> None:
    """Check a config class for values the token constructor would reject."""
    if not config.TOKEN_NAME:
        raise ConfigurationError("TOKEN_NAME cannot be empty")
    if not config.TOKEN_TICKER:
        raise ConfigurationError("TOKEN_TICKER cannot be empty")
    if config.TOKEN_TOTAL_SUPPLY <= 0:
        raise ConfigurationError("TOKEN_TOTAL_SUPPLY must be positive")
    if not 0 <= config.TOKEN_DECIMALS <= 18:
        raise ConfigurationError("TOKEN_DECIMALS must be between 0 and 18")
    if not 0 <= config.LOCKED_BPS <= BASIS_POINTS_DIVISOR:
        raise ConfigurationError(
            f"LOCKED_BPS must be between 0 and {BASIS_POINTS_DIVISOR}"
        )
    if config.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigurationError(f"Unknown LOG_LEVEL {config.LOG_LEVEL!r}")

    if config.NETWORK_TYPE == NetworkType.MAINNET:
        if not config.OWNER_ADDRESS:
            raise ConfigurationError(
                "CRITICAL: MEI_OWNER_ADDRESS environment variable required for mainnet."
            )
        if config.VESTING_EPOCH is None:
            raise ConfigurationError(
                "CRITICAL: MEI_VESTING_EPOCH environment variable required for mainnet."
            )
    elif config.VESTING_EPOCH is None:
        logger.info(
            "No vesting epoch configured for %s, deployment time will be used",
            config.NETWORK_TYPE.value,
            extra={"event": "config.epoch_defaulted"},
        )


def resolve_epoch(config: type) -> int:
    """Vesting epoch for ``config``, falling back to the current time."""
    if config.VESTING_EPOCH is not None:
        return int(config.VESTING_EPOCH)
    return int(time.time())


def supply_in_base_units(config: type) -> int:
    """Total supply scaled by the token's decimals."""
    return int(config.TOKEN_TOTAL_SUPPLY) * 10 ** int(config.TOKEN_DECIMALS)


# Select config based on network
Config = select_config(NETWORK)

__all__ = [
    "Config",
    "ConfigurationError",
    "NetworkType",
    "DevConfig",
    "TestnetConfig",
    "MainnetConfig",
    "select_config",
    "validate_config",
    "resolve_epoch",
    "supply_in_base_units",
]
