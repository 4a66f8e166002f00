"""
MEI - Vesting Token Ledger

A fungible-token ledger whose supply is split between a liquid portion issued
at deployment and a locked portion released on a quarterly vesting schedule.

Main Components:
- Ledger: Balances, transfers and allowances with strict conservation
- Vesting: Pure quarterly unlock schedule anchored to the deployment epoch
- Release: Owner-gated, idempotent release of newly vested tranches
- Persistence: Checksummed, atomic state snapshots
"""

__version__ = "0.1.0"
__author__ = "MEI Development Team"

__all__ = []
