"""
MEI token contract.

Composes the fixed-supply ledger, the quarterly vesting schedule and the
release controller behind a single object that deployment tooling and
holders call into.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .. import token_metrics
from ..config import resolve_epoch, supply_in_base_units
from ..constants import BASIS_POINTS_DIVISOR, DEFAULT_DECIMALS, UINT256_MAX
from ..token_exceptions import InvalidAddressError, InvalidAmountError
from .ledger import TokenLedger, normalize_address
from .release_controller import ReleaseController, derive_controller_address
from .vesting_schedule import QuarterlyVestingSchedule

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class MEIToken:
    """
    Fungible token with a liquid allocation and a vested allocation.

    At construction ``total_supply * locked_bps / 10_000`` units are kept in
    the ledger reserve for vesting and the rest is issued to the owner. The
    owner then calls :meth:`release` whenever convenient; each call issues
    whatever has unlocked since the previous one.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        total_supply: int,
        locked_bps: int,
        epoch: int,
        owner: str,
        beneficiary: str | None = None,
        decimals: int = DEFAULT_DECIMALS,
        time_provider: Callable[[], int] | None = None,
        _restore: dict[str, Any] | None = None,
    ):
        """
        Deploy the token.

        Args:
            name: Token name
            symbol: Token symbol (ticker)
            total_supply: Fixed supply in base units
            locked_bps: Share of supply subject to vesting, in basis points
            epoch: Unix timestamp the vesting schedule is anchored to
            owner: Deployer; receives the liquid allocation and may release
            beneficiary: Receiver of vested tranches (defaults to owner)
            decimals: Decimal places
            time_provider: Clock used when ``release`` is called without ``now``
        """
        if not name:
            raise InvalidAmountError("MEIToken: name cannot be empty")
        if not symbol:
            raise InvalidAmountError("MEIToken: symbol cannot be empty")
        owner = normalize_address(owner)
        if not owner:
            raise InvalidAddressError("MEIToken: owner cannot be empty")
        if decimals < 0 or decimals > 18:
            raise InvalidAmountError("MEIToken: invalid decimals")
        if total_supply < 0 or total_supply > UINT256_MAX:
            raise InvalidAmountError("MEIToken: invalid total supply")
        if not 0 <= locked_bps <= BASIS_POINTS_DIVISOR:
            raise InvalidAmountError(
                f"MEIToken: locked share must be between 0 and {BASIS_POINTS_DIVISOR} bps"
            )

        self.locked_bps = locked_bps
        locked_allocation = total_supply * locked_bps // BASIS_POINTS_DIVISOR

        self.schedule = QuarterlyVestingSchedule(epoch=int(epoch), locked_allocation=locked_allocation)
        controller_address = derive_controller_address(owner, self.schedule.epoch)

        if _restore is not None:
            self.ledger = TokenLedger.from_dict(_restore["ledger"])
            released = int(_restore["released"])
        else:
            self.ledger = TokenLedger(
                name=name,
                symbol=symbol,
                decimals=decimals,
                total_supply=total_supply,
                minter=controller_address,
            )
            released = 0

        self.controller = ReleaseController(
            ledger=self.ledger,
            schedule=self.schedule,
            owner=owner,
            beneficiary=beneficiary,
            address=self.ledger.minter or controller_address,
            released=released,
            time_provider=time_provider,
        )

        if _restore is None:
            liquid = total_supply - locked_allocation
            if liquid > 0:
                self.ledger.mint(self.controller.address, owner, liquid)
            token_metrics.update_vesting_gauges(self.controller)
            logger.info(
                "MEI token deployed",
                extra={
                    "event": "token.deployed",
                    "token": symbol,
                    "address": self.ledger.address,
                    "total_supply": total_supply,
                    "liquid": liquid,
                    "locked": locked_allocation,
                    "epoch": self.schedule.epoch,
                    "owner": owner[:10],
                }
            )

    @classmethod
    def from_config(
        cls,
        config: Any,
        owner: str | None = None,
        epoch: int | None = None,
        time_provider: Callable[[], int] | None = None,
    ) -> "MEIToken":
        """Deploy a token from a network config class (see ``mei.core.config``)."""
        return cls(
            name=config.TOKEN_NAME,
            symbol=config.TOKEN_TICKER,
            total_supply=supply_in_base_units(config),
            locked_bps=config.LOCKED_BPS,
            epoch=epoch if epoch is not None else resolve_epoch(config),
            owner=owner or config.OWNER_ADDRESS,
            beneficiary=config.BENEFICIARY_ADDRESS or None,
            decimals=config.TOKEN_DECIMALS,
            time_provider=time_provider,
        )

    # ==================== Metadata ====================

    @property
    def name(self) -> str:
        return self.ledger.name

    @property
    def symbol(self) -> str:
        return self.ledger.symbol

    @property
    def decimals(self) -> int:
        return self.ledger.decimals

    @property
    def address(self) -> str:
        return self.ledger.address

    @property
    def owner(self) -> str:
        return self.controller.owner

    @property
    def beneficiary(self) -> str:
        return self.controller.beneficiary

    @property
    def epoch(self) -> int:
        return self.schedule.epoch

    @property
    def locked_allocation(self) -> int:
        return self.schedule.locked_allocation

    @property
    def released(self) -> int:
        return self.controller.released

    # ==================== Ledger surface ====================

    def total_supply(self) -> int:
        return self.ledger.total_supply

    def circulating_supply(self) -> int:
        return self.ledger.circulating_supply()

    def balance_of(self, account: str) -> int:
        return self.ledger.balance_of(account)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        result = self.ledger.transfer(sender, recipient, amount)
        token_metrics.record_transfer(self.symbol)
        return result

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        return self.ledger.approve(owner, spender, amount)

    def allowance(self, owner: str, spender: str) -> int:
        return self.ledger.allowance(owner, spender)

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        result = self.ledger.transfer_from(spender, from_addr, to_addr, amount)
        token_metrics.record_transfer(self.symbol)
        return result

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> bool:
        return self.ledger.increase_allowance(owner, spender, added_value)

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> bool:
        return self.ledger.decrease_allowance(owner, spender, subtracted_value)

    # ==================== Vesting surface ====================

    def release(self, caller: str, now: int | None = None) -> int:
        """Release newly vested tranches to the beneficiary; see ReleaseController."""
        return self.controller.release(caller, now)

    def get_releasable_amount(self, now: int) -> int:
        """Cumulative amount unlocked as of ``now`` (read-only)."""
        return self.schedule.cumulative_unlocked(now)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.controller.transfer_ownership(caller, new_owner)

    def get_vesting_status(self, now: int) -> dict[str, Any]:
        """Snapshot of the vesting position for tooling and dashboards."""
        return {
            "epoch": self.schedule.epoch,
            "locked_allocation": self.schedule.locked_allocation,
            "tranche_amount": self.schedule.tranche_amount,
            "elapsed_periods": self.schedule.elapsed_periods(now),
            "vested_periods": self.schedule.vested_periods(now),
            "cumulative_unlocked": self.schedule.cumulative_unlocked(now),
            "released": self.controller.released,
            "releasable_now": self.controller.releasable_delta(now),
            "remaining": self.controller.remaining(),
            "next_unlock_time": self.schedule.next_unlock_time(now),
            "fully_vested_at": self.schedule.fully_vested_at(),
            "complete": self.controller.is_complete,
        }

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Everything needed to resume this token after a restart."""
        return {
            "version": STATE_VERSION,
            "locked_bps": self.locked_bps,
            "ledger": self.ledger.to_dict(),
            "schedule": self.schedule.to_dict(),
            "controller": self.controller.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        time_provider: Callable[[], int] | None = None,
    ) -> "MEIToken":
        """Restore a token from :meth:`to_dict` output without re-running the allocation."""
        ledger_data = data["ledger"]
        schedule_data = data["schedule"]
        controller_data = data["controller"]
        token = cls(
            name=ledger_data["name"],
            symbol=ledger_data["symbol"],
            total_supply=int(ledger_data["total_supply"]),
            locked_bps=int(data["locked_bps"]),
            epoch=int(schedule_data["epoch"]),
            owner=controller_data["owner"],
            beneficiary=controller_data.get("beneficiary"),
            decimals=int(ledger_data.get("decimals", DEFAULT_DECIMALS)),
            time_provider=time_provider,
            _restore={"ledger": ledger_data, "released": controller_data.get("released", 0)},
        )
        if token.schedule.locked_allocation != int(schedule_data["locked_allocation"]):
            raise InvalidAmountError(
                "MEIToken: stored locked allocation does not match supply and locked share",
                details={
                    "stored": schedule_data["locked_allocation"],
                    "derived": token.schedule.locked_allocation,
                },
            )
        if token.ledger.reserve_balance() != token.controller.remaining():
            raise InvalidAmountError(
                "MEIToken: reserve balance does not match unreleased allocation",
                details={
                    "reserve": token.ledger.reserve_balance(),
                    "unreleased": token.controller.remaining(),
                },
            )
        return token
