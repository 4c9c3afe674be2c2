"""
Transaction Ledger Module

Immutable ledger entries and the append-only sequence that holds them.
Every entry records the owning account's balance immediately after it was
applied, so history never has to be recomputed.
"""

from decimal import Decimal
from datetime import datetime, date
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Any
from enum import Enum
import uuid

from .errors import ValidationError, BankingSystemError
from .money import ZERO, to_money, format_amount


class TransactionKind(Enum):
    """Ledger entry kinds; values are stable identifiers"""
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    INTEREST = "Interest"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def is_credit(self) -> bool:
        """Deposits and interest increase the balance"""
        return self is not TransactionKind.WITHDRAWAL


_DESCRIPTIONS = {
    TransactionKind.DEPOSIT: "Deposit transaction",
    TransactionKind.WITHDRAWAL: "Withdrawal transaction",
    TransactionKind.INTEREST: "Interest credit",
}


@dataclass(frozen=True)
class Transaction:
    """
    Immutable ledger entry

    Created exactly once by an account mutation and never changed afterwards.
    """
    account_number: str
    kind: TransactionKind
    amount: Decimal
    balance_after: Decimal
    timestamp: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: str = ""

    def __post_init__(self):
        if not self.account_number or not self.account_number.strip():
            raise ValidationError("Account number cannot be null or empty")

        if not isinstance(self.kind, TransactionKind):
            raise ValidationError(f"Invalid transaction type: {self.kind}")

        amount = to_money(self.amount)
        if amount < ZERO:
            raise ValidationError("Transaction amount cannot be negative")

        object.__setattr__(self, 'amount', amount)
        object.__setattr__(self, 'balance_after', to_money(self.balance_after))
        if not self.description:
            object.__setattr__(self, 'description', self.kind.description)

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign of its effect on the balance"""
        return self.amount if self.kind.is_credit else -self.amount

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for the presentation layer"""
        return {
            "id": self.id,
            "account_number": self.account_number,
            "kind": self.kind.value,
            "amount": format_amount(self.amount),
            "balance_after": format_amount(self.balance_after),
            "timestamp": self.timestamp.isoformat(),
            "description": self.description,
        }


@dataclass(frozen=True)
class LedgerSummary:
    """Per-kind totals over a slice of a ledger"""
    total_deposits: Decimal = ZERO
    total_withdrawals: Decimal = ZERO
    total_interest: Decimal = ZERO
    transaction_count: int = 0
    closing_balance: Optional[Decimal] = None

    @property
    def net_change(self) -> Decimal:
        return self.total_deposits + self.total_interest - self.total_withdrawals


def reconstruct_balance(transactions: Iterable[Transaction]) -> Decimal:
    """
    Rebuild a balance from ledger entries.

    The first entry of an account is its initial deposit, so the result is
    initial deposit + deposits + interest - withdrawals.
    """
    return sum((t.signed_amount for t in transactions), ZERO)


def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    """Aggregate entries into a LedgerSummary"""
    totals = {kind: ZERO for kind in TransactionKind}
    count = 0
    closing = None
    for transaction in transactions:
        totals[transaction.kind] += transaction.amount
        count += 1
        closing = transaction.balance_after

    return LedgerSummary(
        total_deposits=totals[TransactionKind.DEPOSIT],
        total_withdrawals=totals[TransactionKind.WITHDRAWAL],
        total_interest=totals[TransactionKind.INTEREST],
        transaction_count=count,
        closing_balance=closing,
    )


def _is_aware(moment: datetime) -> bool:
    return moment.tzinfo is not None and moment.utcoffset() is not None


def validate_range(start: Optional[datetime], end: Optional[datetime]) -> None:
    """Both bounds are required, equally timezone-aware, and ordered"""
    if start is None or end is None:
        raise ValidationError("Start and end dates cannot be null")
    if _is_aware(start) != _is_aware(end):
        raise ValidationError("Start and end dates must both be timezone-aware or both naive")
    if start > end:
        raise ValidationError("Start date cannot be after end date")


class Ledger:
    """
    Append-only, chronologically ordered sequence of Transactions.

    Not synchronized on its own: the owning Account serializes every
    append and read.
    """

    def __init__(self):
        self._entries: List[Transaction] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(tuple(self._entries))

    def append(self, transaction: Transaction) -> None:
        last = self.last()
        if last is not None and transaction.timestamp < last.timestamp:
            raise BankingSystemError(
                f"Ledger entry {transaction.id} predates the previous entry {last.id}"
            )
        self._entries.append(transaction)

    def last(self) -> Optional[Transaction]:
        return self._entries[-1] if self._entries else None

    def entries(self) -> Tuple[Transaction, ...]:
        return tuple(self._entries)

    def in_range(self, start: datetime, end: datetime) -> List[Transaction]:
        """Entries with start <= timestamp <= end, in ledger order"""
        validate_range(start, end)
        start, end = self._align(start), self._align(end)
        return [t for t in self._entries if start <= t.timestamp <= end]

    def _align(self, bound: datetime) -> datetime:
        """Read a naive bound in the timezone of the ledger timestamps"""
        last = self.last()
        if last is None or _is_aware(bound) == _is_aware(last.timestamp):
            return bound
        if not _is_aware(bound):
            return bound.replace(tzinfo=last.timestamp.tzinfo)
        raise ValidationError("Ledger timestamps are timezone-naive; date bounds must be naive too")

    def total_on(self, day: date, kinds: Optional[Iterable[TransactionKind]] = None) -> Decimal:
        """Sum of entry amounts on a calendar day, optionally limited to some kinds"""
        wanted = set(kinds) if kinds is not None else None
        total = ZERO
        # Entries are chronological; walk back from the newest until the day changes
        for transaction in reversed(self._entries):
            entry_day = transaction.timestamp.date()
            if entry_day < day:
                break
            if entry_day == day and (wanted is None or transaction.kind in wanted):
                total += transaction.amount
        return total

    def summarize(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> LedgerSummary:
        if start is None and end is None:
            return summarize(self._entries)
        return summarize(self.in_range(start, end))
