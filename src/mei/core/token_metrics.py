"""
Token release instrumentation for MEI.

Provides Prometheus metrics that track transfers and how much of the locked
allocation has been released, with helper functions that are safe to call
from the release path.
"""

from __future__ import annotations

from typing import Any
from prometheus_client import Counter, Gauge

transfer_events_counter = Counter(
    "mei_transfer_events_total", "Total successful ledger transfers", ["token"]
)

tokens_released_counter = Counter(
    "mei_tokens_released_total", "Total base units released from the vesting reserve", ["token"]
)

release_calls_counter = Counter(
    "mei_release_calls_total",
    "Release invocations by outcome",
    ["token", "outcome"],
)

released_amount_gauge = Gauge(
    "mei_vesting_released", "Cumulative base units released to the beneficiary", ["token"]
)

locked_remaining_gauge = Gauge(
    "mei_vesting_locked_remaining", "Base units still held in the vesting reserve", ["token"]
)


def record_transfer(token: str) -> None:
    """Count one successful transfer for ``token``."""
    transfer_events_counter.labels(token=token).inc()


def record_release(token: str, amount: int) -> None:
    """Record the outcome of a release call (``amount`` may be zero)."""
    if amount > 0:
        tokens_released_counter.labels(token=token).inc(amount)
        release_calls_counter.labels(token=token, outcome="released").inc()
    else:
        release_calls_counter.labels(token=token, outcome="noop").inc()


def record_unauthorized_release(token: str) -> None:
    release_calls_counter.labels(token=token, outcome="unauthorized").inc()


def update_vesting_gauges(controller: Any) -> None:
    """Refresh released/remaining gauges from a release controller."""
    if controller is None:
        return

    token = controller.ledger.symbol
    released_amount_gauge.labels(token=token).set(controller.released)
    locked_remaining_gauge.labels(token=token).set(controller.remaining())
