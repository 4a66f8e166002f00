"""
Owner-gated release of vested tranches.

The controller is the only holder of the ledger's mint capability. Each call
to ``release`` asks the schedule how much has unlocked in total, subtracts
what was already released and issues the difference to the beneficiary.
Repeated or out-of-order calls release nothing extra.
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Any, Callable

from .. import token_metrics
from ..token_exceptions import InvalidAddressError, InvalidAmountError, UnauthorizedError
from .ledger import TokenLedger, normalize_address
from .vesting_schedule import QuarterlyVestingSchedule

logger = logging.getLogger(__name__)


def derive_controller_address(owner: str, epoch: int) -> str:
    """Deterministic controller address for an owner/epoch pair."""
    addr_hash = hashlib.sha3_256(f"release:{normalize_address(owner)}:{epoch}".encode()).digest()
    return f"0x{addr_hash[-20:].hex()}"


class ReleaseController:
    """
    Tracks the cumulative released amount and issues new tranches.

    ``released`` only moves forward and never exceeds the schedule's locked
    allocation. Once everything is released every call is a no-op.
    """

    def __init__(
        self,
        ledger: TokenLedger,
        schedule: QuarterlyVestingSchedule,
        owner: str,
        beneficiary: str | None = None,
        address: str | None = None,
        released: int = 0,
        time_provider: Callable[[], int] | None = None,
    ):
        owner = normalize_address(owner)
        if not owner:
            raise InvalidAddressError("Release owner cannot be empty.")
        beneficiary = normalize_address(beneficiary) or owner
        # Both must be valid ledger holders
        ledger.validate_holder(owner, "owner")
        ledger.validate_holder(beneficiary, "beneficiary")
        if released < 0 or released > schedule.locked_allocation:
            raise InvalidAmountError(
                f"Released amount {released} outside [0, {schedule.locked_allocation}]"
            )

        self.ledger = ledger
        self.schedule = schedule
        self.owner = owner
        self.beneficiary = beneficiary
        self.address = normalize_address(address or derive_controller_address(owner, schedule.epoch))
        self.released = released
        self._time_provider = time_provider or (lambda: int(time.time()))

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    @property
    def locked_allocation(self) -> int:
        return self.schedule.locked_allocation

    @property
    def is_complete(self) -> bool:
        return self.released >= self.schedule.locked_allocation

    def remaining(self) -> int:
        """Locked units not yet released."""
        return self.schedule.locked_allocation - self.released

    def releasable_delta(self, now: int | None = None) -> int:
        """Units a release at ``now`` would issue (never negative)."""
        if now is None:
            now = self._current_time()
        return max(self.schedule.cumulative_unlocked(now) - self.released, 0)

    def release(self, caller: str, now: int | None = None) -> int:
        """
        Issue every tranche unlocked by ``now`` that has not been issued yet.

        Args:
            caller: Identity invoking the release (must be the owner)
            now: Unix timestamp; defaults to the time provider

        Returns:
            Amount issued by this call, 0 when nothing new has unlocked

        Raises:
            UnauthorizedError: Caller is not the owner
        """
        if normalize_address(caller) != self.owner:
            token_metrics.record_unauthorized_release(self.ledger.symbol)
            logger.warning(
                "Release rejected for non-owner",
                extra={
                    "event": "release.unauthorized",
                    "token": self.ledger.symbol,
                    "caller": (caller or "")[:10],
                }
            )
            raise UnauthorizedError(
                "ReleaseController: caller is not the owner",
                details={"caller": caller},
            )

        if now is None:
            now = self._current_time()

        unlocked = self.schedule.cumulative_unlocked(now)
        delta = unlocked - self.released

        if delta <= 0:
            token_metrics.record_release(self.ledger.symbol, 0)
            logger.debug(
                "No newly vested tokens to release",
                extra={
                    "event": "release.noop",
                    "token": self.ledger.symbol,
                    "released": self.released,
                    "now": now,
                }
            )
            return 0

        self.ledger.mint(self.address, self.beneficiary, delta)
        self.released = unlocked

        token_metrics.record_release(self.ledger.symbol, delta)
        token_metrics.update_vesting_gauges(self)
        logger.info(
            "Released %s vested units to %s",
            delta,
            self.beneficiary[:10],
            extra={
                "event": "release.tranche",
                "token": self.ledger.symbol,
                "amount": delta,
                "released": self.released,
                "remaining": self.remaining(),
                "now": now,
            }
        )
        return delta

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """Hand the release privilege to ``new_owner`` (owner only)."""
        if normalize_address(caller) != self.owner:
            raise UnauthorizedError("ReleaseController: caller is not the owner")
        new_owner = normalize_address(new_owner)
        self.ledger.validate_holder(new_owner, "new owner")
        previous = self.owner
        self.owner = new_owner
        logger.info(
            "Release ownership transferred",
            extra={
                "event": "release.ownership_transferred",
                "previous_owner": previous[:10],
                "new_owner": self.owner[:10],
            }
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "beneficiary": self.beneficiary,
            "address": self.address,
            "released": self.released,
        }
