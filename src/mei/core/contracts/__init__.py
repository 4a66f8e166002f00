"""
MEI Token Contracts.

This module provides the contract layer of the token:
- TokenLedger: Fixed-supply ERC20-style balance book
- QuarterlyVestingSchedule: Pure cliff + quarterly tranche schedule
- ReleaseController: Owner-gated, idempotent release of vested tranches
- MEIToken: Deployment-time composition of the three
"""

from .ledger import TokenEvent, TokenLedger
from .mei_token import MEIToken
from .release_controller import ReleaseController, derive_controller_address
from .vesting_schedule import QuarterlyVestingSchedule

__all__ = [
    "TokenEvent",
    "TokenLedger",
    "QuarterlyVestingSchedule",
    "ReleaseController",
    "derive_controller_address",
    "MEIToken",
]
