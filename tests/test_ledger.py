"""
Test suite for ledger module

Tests immutable transactions, append-only ordering, range queries and
daily totals.
"""

import dataclasses
import pytest
from decimal import Decimal
from datetime import datetime, timezone, timedelta

from account_ledger.errors import ValidationError, BankingSystemError
from account_ledger.ledger import (
    Ledger, Transaction, TransactionKind, LedgerSummary, reconstruct_balance, summarize
)


T0 = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


def make_transaction(kind, amount, balance_after, timestamp=T0):
    return Transaction(
        account_number="1234567890",
        kind=kind,
        amount=Decimal(amount),
        balance_after=Decimal(balance_after),
        timestamp=timestamp,
    )


class TestTransaction:
    """Test Transaction entity"""

    def test_defaults(self):
        transaction = make_transaction(TransactionKind.DEPOSIT, "100", "1100")

        assert transaction.amount == Decimal("100.00")
        assert transaction.balance_after == Decimal("1100.00")
        assert transaction.description == "Deposit transaction"
        assert len(transaction.id) == 36

    def test_ids_are_unique(self):
        first = make_transaction(TransactionKind.DEPOSIT, "1", "1")
        second = make_transaction(TransactionKind.DEPOSIT, "1", "1")
        assert first.id != second.id

    def test_immutable(self):
        transaction = make_transaction(TransactionKind.INTEREST, "37.50", "10037.50")
        with pytest.raises(dataclasses.FrozenInstanceError):
            transaction.amount = Decimal("0")

    def test_kind_values_are_stable(self):
        assert [kind.value for kind in TransactionKind] == ["Deposit", "Withdrawal", "Interest"]
        assert TransactionKind.INTEREST.description == "Interest credit"
        assert TransactionKind.WITHDRAWAL.description == "Withdrawal transaction"

    def test_rejects_negative_amount(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            make_transaction(TransactionKind.DEPOSIT, "-1", "0")

    def test_rejects_empty_account_number(self):
        with pytest.raises(ValidationError):
            Transaction(
                account_number=" ", kind=TransactionKind.DEPOSIT, amount=Decimal("1"),
                balance_after=Decimal("1"), timestamp=T0
            )

    def test_rejects_unknown_kind(self):
        with pytest.raises(ValidationError, match="Invalid transaction type"):
            make_transaction("BONUS", "1", "1")

    def test_signed_amount(self):
        assert make_transaction(TransactionKind.WITHDRAWAL, "5", "0").signed_amount == Decimal("-5.00")
        assert make_transaction(TransactionKind.INTEREST, "5", "0").signed_amount == Decimal("5.00")

    def test_to_dict(self):
        data = make_transaction(TransactionKind.WITHDRAWAL, "400", "600").to_dict()

        assert data["kind"] == "Withdrawal"
        assert data["amount"] == "400.00"
        assert data["balance_after"] == "600.00"
        assert data["timestamp"] == T0.isoformat()


class TestLedger:
    """Test the append-only ledger"""

    def setup_method(self):
        self.ledger = Ledger()
        self.ledger.append(make_transaction(TransactionKind.DEPOSIT, "1000", "1000", T0))
        self.ledger.append(make_transaction(TransactionKind.WITHDRAWAL, "400", "600", T0 + timedelta(hours=1)))
        self.ledger.append(make_transaction(TransactionKind.DEPOSIT, "50", "650", T0 + timedelta(days=1)))
        self.ledger.append(make_transaction(TransactionKind.INTEREST, "2.44", "652.44", T0 + timedelta(days=1, hours=1)))

    def test_length_and_order(self):
        assert len(self.ledger) == 4
        kinds = [t.kind for t in self.ledger]
        assert kinds == [
            TransactionKind.DEPOSIT, TransactionKind.WITHDRAWAL,
            TransactionKind.DEPOSIT, TransactionKind.INTEREST
        ]

    def test_entries_is_a_snapshot(self):
        entries = self.ledger.entries()
        self.ledger.append(make_transaction(TransactionKind.DEPOSIT, "1", "653.44", T0 + timedelta(days=2)))
        assert len(entries) == 4
        assert len(self.ledger) == 5

    def test_rejects_out_of_order_entry(self):
        with pytest.raises(BankingSystemError):
            self.ledger.append(make_transaction(TransactionKind.DEPOSIT, "1", "1", T0))

    def test_in_range_is_inclusive(self):
        result = self.ledger.in_range(T0, T0 + timedelta(hours=1))
        assert [t.amount for t in result] == [Decimal("1000.00"), Decimal("400.00")]

    def test_in_range_validation(self):
        with pytest.raises(ValidationError, match="cannot be null"):
            self.ledger.in_range(None, T0)
        with pytest.raises(ValidationError, match="cannot be after"):
            self.ledger.in_range(T0 + timedelta(days=1), T0)

    def test_in_range_aligns_naive_bounds(self):
        result = self.ledger.in_range(datetime(2024, 3, 15, 9, 30), datetime(2024, 3, 15, 23, 59))
        assert [t.amount for t in result] == [Decimal("400.00")]

    def test_in_range_rejects_aware_bounds_on_naive_ledger(self):
        ledger = Ledger()
        ledger.append(make_transaction(TransactionKind.DEPOSIT, "1", "1", datetime(2024, 3, 15, 9, 0)))

        assert len(ledger.in_range(datetime(2024, 3, 15), datetime(2024, 3, 16))) == 1
        with pytest.raises(ValidationError, match="timezone-naive"):
            ledger.in_range(T0 - timedelta(days=1), T0 + timedelta(days=1))

    def test_total_on_day(self):
        assert self.ledger.total_on(T0.date()) == Decimal("1400.00")
        assert self.ledger.total_on((T0 + timedelta(days=1)).date()) == Decimal("52.44")
        assert self.ledger.total_on(
            (T0 + timedelta(days=1)).date(), kinds=[TransactionKind.DEPOSIT]
        ) == Decimal("50.00")
        assert self.ledger.total_on((T0 + timedelta(days=5)).date()) == Decimal("0.00")

    def test_reconstruct_balance(self):
        assert reconstruct_balance(self.ledger) == Decimal("652.44")
        assert reconstruct_balance(self.ledger) == self.ledger.last().balance_after

    def test_summarize(self):
        summary = self.ledger.summarize()

        assert summary.total_deposits == Decimal("1050.00")
        assert summary.total_withdrawals == Decimal("400.00")
        assert summary.total_interest == Decimal("2.44")
        assert summary.transaction_count == 4
        assert summary.closing_balance == Decimal("652.44")
        assert summary.net_change == Decimal("652.44")

    def test_summarize_range(self):
        summary = self.ledger.summarize(T0 + timedelta(days=1), T0 + timedelta(days=2))
        assert summary.transaction_count == 2
        assert summary.total_withdrawals == Decimal("0.00")

    def test_summarize_empty(self):
        assert summarize([]) == LedgerSummary()
