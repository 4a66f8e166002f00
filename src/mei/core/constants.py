"""
MEI Token Constants

This module collects the magic numbers used by the token contracts,
organized by category.

NOTE: Changes to schedule-critical constants (marked with [SCHEDULE])
alter the unlock timeline of an already deployed token. Existing state
snapshots would no longer reproduce the same release amounts.
"""

from typing import Final

# =============================================================================
# TIME CONSTANTS (in seconds)
# =============================================================================

SECONDS_PER_DAY: Final[int] = 86400  # 60 * 60 * 24

# =============================================================================
# VESTING SCHEDULE CONSTANTS [SCHEDULE - DO NOT CHANGE]
# =============================================================================

# One "quarter" is three 30.5-day months, not calendar months
QUARTER_SECONDS: Final[int] = 7_905_600  # 91.5 * SECONDS_PER_DAY

# Quarters that must elapse before the first tranche unlocks (12 months)
CLIFF_PERIODS: Final[int] = 4

# Number of equal tranches the locked allocation is split into
TRANCHE_PERIODS: Final[int] = 12

# =============================================================================
# FINANCIAL CONSTANTS
# =============================================================================

# Basis points (1 basis point = 0.01%)
BASIS_POINTS_DIVISOR: Final[int] = 10000

# Token defaults (reconstructed deployment parameters)
DEFAULT_DECIMALS: Final[int] = 18
DEFAULT_TOTAL_SUPPLY_TOKENS: Final[int] = 1_230_000_000
DEFAULT_LOCKED_BPS: Final[int] = 3000  # 30% of supply is vested

# =============================================================================
# ADDRESS / ARITHMETIC CONSTANTS
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40
UINT256_MAX: Final[int] = 2**256 - 1
