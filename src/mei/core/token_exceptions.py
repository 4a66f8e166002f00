"""
Token-specific exception hierarchy for MEI.

Provides typed exceptions for ledger, vesting and persistence operations so
callers can distinguish a rejected transfer from a denied privileged call or
a damaged state snapshot.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class TokenError(Exception):
    """Base exception for all token-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Validation Errors ====================


class ValidationError(TokenError):
    """Raised when an operation's inputs fail validation.

    Validation always happens before any state is mutated.
    """
    pass


class InsufficientBalanceError(ValidationError):
    """Raised when an account lacks sufficient balance for an operation.

    Also raised for non-positive transfer amounts and for mints that would
    exceed the unissued reserve.
    """
    pass


class InsufficientAllowanceError(ValidationError):
    """Raised when a delegated transfer exceeds the approved allowance."""
    pass


class InvalidAddressError(ValidationError):
    """Raised when an account identifier is empty, zero or reserved."""
    pass


class InvalidAmountError(ValidationError):
    """Raised when an amount is negative or outside the uint256 range."""
    pass


# ==================== Authorization Errors ====================


class AuthorizationError(TokenError):
    """Raised when the caller is not allowed to perform an operation."""
    pass


class UnauthorizedError(AuthorizationError):
    """Raised when a privileged operation is attempted by a non-owner."""
    pass


class CapabilityDeniedError(AuthorizationError):
    """Raised when the mint capability is used outside the release path.

    Indicates a programming error in the integration; never expected in a
    correctly wired deployment.
    """
    pass


# ==================== Storage Errors ====================


class StorageError(TokenError):
    """Raised when token state persistence fails."""
    pass


class CorruptedDataError(StorageError):
    """Raised when a stored snapshot fails its integrity check."""
    pass
