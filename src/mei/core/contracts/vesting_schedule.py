"""
Quarterly vesting schedule for the locked allocation.

A pure policy object: given the deployment epoch and a timestamp it answers
how much of the locked allocation has unlocked so far. It holds no balances
and never reads the clock itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..constants import CLIFF_PERIODS, QUARTER_SECONDS, TRANCHE_PERIODS
from ..token_exceptions import InvalidAmountError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuarterlyVestingSchedule:
    """
    Step-wise unlock schedule for the locked allocation.

    Nothing unlocks until ``cliff_periods`` quarters have elapsed since
    ``epoch``. The quarter in which the cliff matures releases the first
    tranche, and each following quarter releases one more, until
    ``tranche_periods`` tranches are out. With the default constants the
    allocation is fully unlocked after 15 quarters.

    Pure: every method depends only on the constructor arguments and the
    ``now`` passed in.
    """

    epoch: int
    locked_allocation: int
    cliff_periods: int = CLIFF_PERIODS
    tranche_periods: int = TRANCHE_PERIODS
    period_length_seconds: int = QUARTER_SECONDS

    def __post_init__(self) -> None:
        if not isinstance(self.epoch, int):
            raise InvalidAmountError("Vesting epoch must be an integer Unix timestamp.")
        if self.locked_allocation < 0:
            raise InvalidAmountError("Locked allocation cannot be negative.")
        if self.cliff_periods < 1:
            raise InvalidAmountError("Cliff must span at least one period.")
        if self.tranche_periods < 1:
            raise InvalidAmountError("At least one tranche period is required.")
        if self.period_length_seconds <= 0:
            raise InvalidAmountError("Period length must be positive.")

    @property
    def tranche_amount(self) -> int:
        """Units unlocked per tranche; the division remainder rides the last one."""
        return self.locked_allocation // self.tranche_periods

    def elapsed_periods(self, now: int) -> int:
        """Whole periods since the epoch; timestamps before the epoch count as zero."""
        elapsed = max(int(now) - self.epoch, 0)
        return elapsed // self.period_length_seconds

    def vested_periods(self, now: int) -> int:
        """Tranches unlocked as of ``now`` (0 before the cliff)."""
        periods = self.elapsed_periods(now)
        if periods < self.cliff_periods:
            return 0
        return min(periods - self.cliff_periods + 1, self.tranche_periods)

    def cumulative_unlocked(self, now: int) -> int:
        """
        Total units unlocked from the epoch up to ``now``.

        Monotonic non-decreasing in ``now`` and never above
        ``locked_allocation``.
        """
        vested = self.vested_periods(now)
        if vested >= self.tranche_periods:
            return self.locked_allocation
        return min(vested * self.tranche_amount, self.locked_allocation)

    def unlock_time(self, tranche: int) -> int:
        """Timestamp at which tranche number ``tranche`` (1-based) unlocks."""
        if not 1 <= tranche <= self.tranche_periods:
            raise ValueError(f"Tranche must be between 1 and {self.tranche_periods}.")
        return self.epoch + (self.cliff_periods + tranche - 1) * self.period_length_seconds

    def next_unlock_time(self, now: int) -> int | None:
        """Timestamp of the next tranche after ``now``, or None once fully vested."""
        vested = self.vested_periods(now)
        if vested >= self.tranche_periods:
            return None
        return self.unlock_time(vested + 1)

    def fully_vested_at(self) -> int:
        return self.unlock_time(self.tranche_periods)

    def to_dict(self) -> dict[str, int]:
        return {
            "epoch": self.epoch,
            "locked_allocation": self.locked_allocation,
            "cliff_periods": self.cliff_periods,
            "tranche_periods": self.tranche_periods,
            "period_length_seconds": self.period_length_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, int]) -> "QuarterlyVestingSchedule":
        schedule = cls(
            epoch=int(data["epoch"]),
            locked_allocation=int(data["locked_allocation"]),
            cliff_periods=int(data.get("cliff_periods", CLIFF_PERIODS)),
            tranche_periods=int(data.get("tranche_periods", TRANCHE_PERIODS)),
            period_length_seconds=int(data.get("period_length_seconds", QUARTER_SECONDS)),
        )
        logger.debug("Vesting schedule restored with epoch %s", schedule.epoch)
        return schedule
