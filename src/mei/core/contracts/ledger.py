"""
Fixed-supply token ledger.

This module provides the balance book of the MEI token, compatible with the
ERC20 surface (EIP-20):
- Basic token operations (transfer, approve, transferFrom)
- A mint capability restricted to a single authorized minter
- Metadata (name, symbol, decimals)
- Events (Transfer, Approval)

Unlike a mintable ERC20, the total supply is fixed at construction. Units
that have not been issued yet sit in the ledger's own reserve account, and
``mint`` moves them out of the reserve. ``sum(balances) == total_supply``
therefore holds after every operation.

Security features:
- uint256 range checks
- Zero address checks
- Balance underflow prevention
- Allowance validation
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from ..constants import UINT256_MAX, ZERO_ADDRESS
from ..token_exceptions import (
    CapabilityDeniedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
)

logger = logging.getLogger(__name__)


def normalize_address(address: str) -> str:
    """Normalize address to stripped lowercase."""
    return address.strip().lower() if address else ""


@dataclass
class TokenEvent:
    """Represents a ledger event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class TokenLedger:
    """
    Fixed-supply ERC20-style ledger.

    The full ``total_supply`` is credited to the reserve account (the
    ledger's own ``address``) when the ledger is created. Only ``minter`` may
    move units out of the reserve; holders move units among themselves with
    ``transfer`` and ``transfer_from``.

    Every successful balance change appends exactly one Transfer event, in
    call order, for external indexers.
    """

    # Token metadata
    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0

    # Contract address; doubles as the reserve account
    address: str = ""

    # Sole holder of the mint capability
    minter: str = ""

    # State
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)

    # Event log
    events: list[TokenEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Derive the contract address and seed the reserve."""
        if not self.address:
            # Deterministic: same metadata and minter give the same address
            addr_input = f"{self.name}{self.symbol}{self.minter}".encode()
            addr_hash = hashlib.sha3_256(addr_input).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.address = self._normalize(self.address)
        self.minter = self._normalize(self.minter)

        if self.total_supply < 0 or self.total_supply > UINT256_MAX:
            raise InvalidAmountError(
                f"Ledger: invalid total supply {self.total_supply}",
                details={"total_supply": self.total_supply},
            )

        if not self.balances and self.total_supply > 0:
            self.balances[self.address] = self.total_supply

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        """
        Get the token balance of an account.

        Args:
            account: Address to check

        Returns:
            Token balance (0 for unknown accounts)
        """
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """
        Get the allowance granted by owner to spender.

        Args:
            owner: Token owner address
            spender: Spender address

        Returns:
            Approved amount
        """
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)
        return self.allowances.get(owner_norm, {}).get(spender_norm, 0)

    def reserve_balance(self) -> int:
        """Units not yet issued to any holder."""
        return self.balances.get(self.address, 0)

    def circulating_supply(self) -> int:
        """Units held by accounts other than the reserve."""
        return self.total_supply - self.reserve_balance()

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer, must be positive

        Returns:
            True if successful

        Raises:
            InsufficientBalanceError: Non-positive amount or amount above balance
            InvalidAddressError: Recipient is the zero address or the reserve
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self.validate_holder(sender_norm, "sender")
        self.validate_holder(recipient_norm, "recipient")
        self._require_spendable(sender_norm, amount)

        self._move(sender_norm, recipient_norm, amount)

        logger.debug(
            "Ledger transfer",
            extra={
                "event": "ledger.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            }
        )

        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """
        Approve spender to spend tokens on behalf of owner.

        Args:
            owner: Token owner (msg.sender)
            spender: Address being approved
            amount: Amount to approve (``UINT256_MAX`` means unlimited)

        Returns:
            True if successful
        """
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)

        self.validate_holder(owner_norm, "owner")
        self.validate_holder(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount

        self._emit_approval(owner_norm, spender_norm, amount)

        return True

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        """
        Transfer tokens using an allowance.

        Args:
            spender: Address executing transfer (msg.sender)
            from_addr: Token owner
            to_addr: Recipient
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            InsufficientAllowanceError: Allowance below amount
            InsufficientBalanceError: Balance below amount
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        self.validate_holder(from_norm, "sender")
        self.validate_holder(to_norm, "recipient")

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise InsufficientAllowanceError(
                f"Ledger: insufficient allowance ({current_allowance} < {amount})",
                details={"owner": from_norm, "spender": spender_norm},
            )
        self._require_spendable(from_norm, amount)

        if current_allowance != UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount

        self._move(from_norm, to_norm, amount)

        logger.debug(
            "Ledger transferFrom",
            extra={
                "event": "ledger.transfer_from",
                "token": self.symbol,
                "spender": spender_norm[:10],
                "from": from_norm[:10],
                "to": to_norm[:10],
                "amount": amount,
            }
        )

        return True

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> bool:
        """
        Increase spender's allowance (safer than approve for increments).

        Saturates at ``UINT256_MAX``.
        """
        self._validate_amount(added_value)
        new_allowance = min(self.allowance(owner, spender) + added_value, UINT256_MAX)
        return self.approve(owner, spender, new_allowance)

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> bool:
        """
        Decrease spender's allowance (safer than approve for decrements).

        Raises:
            InsufficientAllowanceError: If decrease exceeds current allowance
        """
        self._validate_amount(subtracted_value)
        current = self.allowance(owner, spender)
        if subtracted_value > current:
            raise InsufficientAllowanceError("Ledger: decreased allowance below zero")

        return self.approve(owner, spender, current - subtracted_value)

    # ==================== Minting ====================

    def mint(self, caller: str, to: str, amount: int) -> bool:
        """
        Issue reserved units to an account (minter only).

        Moves ``amount`` from the reserve to ``to``. Total supply is not
        changed.

        Args:
            caller: Address using the mint capability (must be the minter)
            to: Recipient of the issued units
            amount: Amount to issue

        Returns:
            True if successful

        Raises:
            CapabilityDeniedError: Caller is not the minter
            InsufficientBalanceError: Amount is non-positive or above the reserve
        """
        caller_norm = self._normalize(caller)
        if not self.minter or caller_norm != self.minter:
            logger.error(
                "Ledger mint capability denied",
                extra={
                    "event": "ledger.mint_denied",
                    "token": self.symbol,
                    "caller": caller_norm[:10],
                }
            )
            raise CapabilityDeniedError(
                "Ledger: caller is not the minter",
                details={"caller": caller_norm},
            )

        to_norm = self._normalize(to)
        self.validate_holder(to_norm, "recipient")

        if amount <= 0:
            raise InsufficientBalanceError("Ledger: mint amount must be positive")
        reserve = self.reserve_balance()
        if amount > reserve:
            raise InsufficientBalanceError(
                f"Ledger: mint amount exceeds unissued reserve ({amount} > {reserve})",
                details={"amount": amount, "reserve": reserve},
            )

        self._move(self.address, to_norm, amount)

        logger.info(
            "Ledger mint",
            extra={
                "event": "ledger.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "reserve": self.reserve_balance(),
            }
        )

        return True

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        return normalize_address(address)

    def validate_holder(self, address: str, field: str) -> None:
        """Reject empty, zero and reserve addresses as holders."""
        address = normalize_address(address)
        if not address or address == ZERO_ADDRESS:
            raise InvalidAddressError(f"Ledger: {field} is zero address")
        if address == self.address:
            raise InvalidAddressError(f"Ledger: {field} is the reserve account")

    def _validate_amount(self, amount: int) -> None:
        """Validate amount is within uint256."""
        if amount < 0:
            raise InvalidAmountError("Ledger: amount cannot be negative")
        if amount > UINT256_MAX:
            raise InvalidAmountError("Ledger: amount exceeds uint256")

    def _require_spendable(self, account: str, amount: int) -> None:
        if amount <= 0:
            raise InsufficientBalanceError(
                "Ledger: transfer amount must be positive",
                details={"amount": amount},
            )
        balance = self.balances.get(account, 0)
        if balance < amount:
            raise InsufficientBalanceError(
                f"Ledger: transfer amount exceeds balance ({amount} > {balance})",
                details={"account": account, "balance": balance, "amount": amount},
            )

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        """Debit and credit in one step; callers validate first."""
        remaining = self.balances[from_norm] - amount
        if remaining:
            self.balances[from_norm] = remaining
        else:
            del self.balances[from_norm]
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self._emit_transfer(from_norm, to_norm, amount)

    def _emit_transfer(self, from_addr: str, to_addr: str, amount: int) -> None:
        """Emit Transfer event."""
        self.events.append(
            TokenEvent(
                event_type="Transfer",
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
            )
        )

    def _emit_approval(self, owner: str, spender: str, amount: int) -> None:
        """Emit Approval event."""
        self.events.append(
            TokenEvent(
                event_type="Approval",
                from_address=owner,
                to_address=spender,
                value=amount,
            )
        )

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize ledger state to dictionary."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "minter": self.minter,
            "balances": {k: v for k, v in self.balances.items() if v},
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenLedger":
        """Deserialize ledger state from dictionary."""
        balances = {k: int(v) for k, v in data.get("balances", {}).items() if int(v)}
        ledger = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=int(data.get("total_supply", 0)),
            address=data.get("address", ""),
            minter=data.get("minter", ""),
            balances=balances,
        )
        ledger.allowances = {
            k: {s: int(a) for s, a in v.items()} for k, v in data.get("allowances", {}).items()
        }
        if sum(ledger.balances.values()) != ledger.total_supply:
            raise InvalidAmountError(
                "Ledger: balances do not add up to total supply",
                details={
                    "total_supply": ledger.total_supply,
                    "sum_of_balances": sum(ledger.balances.values()),
                },
            )
        return ledger
