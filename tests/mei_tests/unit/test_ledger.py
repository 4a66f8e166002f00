"""
Unit tests for the fixed-supply token ledger.
"""

import logging

import pytest

from mei.core.constants import UINT256_MAX, ZERO_ADDRESS
from mei.core.contracts.ledger import TokenLedger
from mei.core.token_exceptions import (
    CapabilityDeniedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
)

MINTER = "0x" + "ee" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20


@pytest.fixture
def ledger():
    ledger = TokenLedger(name="Test", symbol="TST", total_supply=1_000, minter=MINTER)
    ledger.mint(MINTER, ALICE, 600)
    return ledger


def _sum_balances(ledger):
    return sum(ledger.balances.values())


class TestConstruction:
    def test_supply_starts_in_reserve(self):
        ledger = TokenLedger(name="Test", symbol="TST", total_supply=500, minter=MINTER)
        assert ledger.reserve_balance() == 500
        assert ledger.balance_of(ledger.address) == 500
        assert ledger.circulating_supply() == 0
        assert _sum_balances(ledger) == ledger.total_supply

    def test_address_is_deterministic(self):
        a = TokenLedger(name="Test", symbol="TST", total_supply=1, minter=MINTER)
        b = TokenLedger(name="Test", symbol="TST", total_supply=1, minter=MINTER)
        assert a.address == b.address
        assert a.address.startswith("0x") and len(a.address) == 42

    def test_negative_supply_rejected(self):
        with pytest.raises(InvalidAmountError):
            TokenLedger(name="Test", symbol="TST", total_supply=-1, minter=MINTER)


class TestTransfer:
    def test_chained_transfers(self, ledger):
        """Transfer 50 A->B then 50 B->C leaves A at initial-50, B at 0, C at 50."""
        initial = ledger.balance_of(ALICE)

        ledger.transfer(ALICE, BOB, 50)
        assert ledger.balance_of(BOB) == 50

        ledger.transfer(BOB, CAROL, 50)
        assert ledger.balance_of(ALICE) == initial - 50
        assert ledger.balance_of(BOB) == 0
        assert ledger.balance_of(CAROL) == 50
        assert _sum_balances(ledger) == ledger.total_supply

    def test_exceeding_balance_fails_without_state_change(self, ledger):
        alice_before = ledger.balance_of(ALICE)
        events_before = len(ledger.events)

        with pytest.raises(InsufficientBalanceError, match="exceeds balance"):
            ledger.transfer(BOB, ALICE, 1)

        assert ledger.balance_of(ALICE) == alice_before
        assert ledger.balance_of(BOB) == 0
        assert len(ledger.events) == events_before

    def test_non_positive_amount_rejected(self, ledger):
        with pytest.raises(InsufficientBalanceError):
            ledger.transfer(ALICE, BOB, 0)
        with pytest.raises(InsufficientBalanceError):
            ledger.transfer(ALICE, BOB, -5)
        assert ledger.balance_of(ALICE) == 600

    def test_update_balances_after_transfers(self, ledger):
        ledger.transfer(ALICE, BOB, 100)
        ledger.transfer(ALICE, CAROL, 50)
        assert ledger.balance_of(ALICE) == 450
        assert ledger.balance_of(BOB) == 100
        assert ledger.balance_of(CAROL) == 50

    def test_zero_and_reserve_recipients_rejected(self, ledger):
        with pytest.raises(InvalidAddressError):
            ledger.transfer(ALICE, ZERO_ADDRESS, 1)
        with pytest.raises(InvalidAddressError):
            ledger.transfer(ALICE, ledger.address, 1)
        with pytest.raises(InvalidAddressError):
            ledger.transfer(ledger.address, ALICE, 1)

    def test_addresses_are_case_insensitive(self, ledger):
        ledger.transfer(ALICE.upper().replace("0X", "0x"), BOB, 10)
        assert ledger.balance_of(BOB.upper().replace("0X", "0x")) == 10

    def test_unknown_account_reads_zero(self, ledger):
        assert ledger.balance_of("0x" + "99" * 20) == 0

    def test_one_event_per_transfer_in_order(self, ledger):
        start = len(ledger.events)
        ledger.transfer(ALICE, BOB, 1)
        ledger.transfer(ALICE, CAROL, 2)
        ledger.transfer(BOB, CAROL, 1)

        new_events = ledger.events[start:]
        assert [e.event_type for e in new_events] == ["Transfer"] * 3
        assert [(e.from_address, e.to_address, e.value) for e in new_events] == [
            (ALICE, BOB, 1),
            (ALICE, CAROL, 2),
            (BOB, CAROL, 1),
        ]


class TestMint:
    def test_mint_moves_units_out_of_reserve(self, ledger):
        reserve = ledger.reserve_balance()
        ledger.mint(MINTER, BOB, 100)
        assert ledger.balance_of(BOB) == 100
        assert ledger.reserve_balance() == reserve - 100
        assert ledger.total_supply == 1_000
        assert _sum_balances(ledger) == ledger.total_supply

    def test_mint_emits_transfer_from_reserve(self, ledger):
        ledger.mint(MINTER, BOB, 7)
        event = ledger.events[-1]
        assert event.event_type == "Transfer"
        assert event.from_address == ledger.address
        assert event.to_address == BOB
        assert event.value == 7

    def test_non_minter_is_denied(self, ledger):
        with pytest.raises(CapabilityDeniedError):
            ledger.mint(ALICE, ALICE, 1)
        assert ledger.reserve_balance() == 400

    def test_cannot_mint_beyond_reserve(self, ledger):
        with pytest.raises(InsufficientBalanceError, match="reserve"):
            ledger.mint(MINTER, BOB, 401)
        assert ledger.balance_of(BOB) == 0

    def test_ledger_without_minter_denies_everyone(self):
        ledger = TokenLedger(name="Test", symbol="TST", total_supply=10)
        with pytest.raises(CapabilityDeniedError):
            ledger.mint("", ALICE, 1)


class TestAllowances:
    def test_transfer_from_spends_allowance(self, ledger):
        ledger.approve(ALICE, BOB, 100)
        ledger.transfer_from(BOB, ALICE, CAROL, 40)

        assert ledger.allowance(ALICE, BOB) == 60
        assert ledger.balance_of(CAROL) == 40
        assert ledger.balance_of(ALICE) == 560

    def test_insufficient_allowance(self, ledger):
        ledger.approve(ALICE, BOB, 10)
        with pytest.raises(InsufficientAllowanceError):
            ledger.transfer_from(BOB, ALICE, CAROL, 11)
        assert ledger.allowance(ALICE, BOB) == 10
        assert ledger.balance_of(CAROL) == 0

    def test_allowance_above_balance_still_checks_balance(self, ledger):
        ledger.approve(ALICE, BOB, 10_000)
        with pytest.raises(InsufficientBalanceError):
            ledger.transfer_from(BOB, ALICE, CAROL, 601)
        assert ledger.allowance(ALICE, BOB) == 10_000

    def test_transfer_from_is_logged(self, ledger, caplog):
        ledger.approve(ALICE, BOB, 10)
        with caplog.at_level(logging.DEBUG, logger="mei.core.contracts.ledger"):
            ledger.transfer_from(BOB, ALICE, CAROL, 4)
        records = [r for r in caplog.records if getattr(r, "event", None) == "ledger.transfer_from"]
        assert len(records) == 1
        assert records[0].amount == 4

    def test_unlimited_allowance_not_decremented(self, ledger):
        ledger.approve(ALICE, BOB, UINT256_MAX)
        ledger.transfer_from(BOB, ALICE, CAROL, 100)
        assert ledger.allowance(ALICE, BOB) == UINT256_MAX

    def test_increase_and_decrease(self, ledger):
        ledger.increase_allowance(ALICE, BOB, 5)
        ledger.increase_allowance(ALICE, BOB, 5)
        assert ledger.allowance(ALICE, BOB) == 10
        ledger.decrease_allowance(ALICE, BOB, 3)
        assert ledger.allowance(ALICE, BOB) == 7
        with pytest.raises(InsufficientAllowanceError):
            ledger.decrease_allowance(ALICE, BOB, 8)

    def test_negative_approval_rejected(self, ledger):
        with pytest.raises(InvalidAmountError):
            ledger.approve(ALICE, BOB, -1)

    def test_approval_event(self, ledger):
        ledger.approve(ALICE, BOB, 3)
        event = ledger.events[-1]
        assert (event.event_type, event.from_address, event.to_address, event.value) == (
            "Approval",
            ALICE,
            BOB,
            3,
        )


class TestSerialization:
    def test_round_trip_keeps_state(self, ledger):
        ledger.transfer(ALICE, BOB, 25)
        ledger.approve(BOB, CAROL, 5)

        restored = TokenLedger.from_dict(ledger.to_dict())

        assert restored.address == ledger.address
        assert restored.minter == ledger.minter
        assert restored.balance_of(ALICE) == 575
        assert restored.balance_of(BOB) == 25
        assert restored.reserve_balance() == 400
        assert restored.allowance(BOB, CAROL) == 5

    def test_inconsistent_balances_rejected(self, ledger):
        data = ledger.to_dict()
        data["balances"][BOB] = 1
        with pytest.raises(InvalidAmountError):
            TokenLedger.from_dict(data)

    def test_zero_balances_not_serialized(self, ledger):
        ledger.transfer(ALICE, BOB, 10)
        ledger.transfer(BOB, CAROL, 10)
        assert BOB not in ledger.to_dict()["balances"]
