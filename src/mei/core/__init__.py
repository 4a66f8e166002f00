"""
MEI Core Module

Core functionality for the MEI token including:
- Token contracts (ledger, vesting schedule, release controller)
- Configuration and constants
- Structured logging and metrics
- State persistence
"""

__all__ = []
