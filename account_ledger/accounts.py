"""
Account Management Module

Accounts own a balance and an append-only ledger. Every mutation updates
the balance and appends its ledger entry under the account's own lock, so
no reader ever observes one without the other. The AccountRegistry is the
single source of truth for which accounts exist.
"""

from decimal import Decimal
from datetime import datetime, timezone, date
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union
from contextlib import contextmanager
from enum import Enum
import secrets
import threading

from .config import LedgerConfig, get_config
from .errors import BankingError, ValidationError, AccountError, TransactionError, BankingSystemError
from .ledger import (
    Ledger, LedgerSummary, Transaction, TransactionKind, reconstruct_balance, validate_range
)
from .logging_config import get_logger, log_action
from .money import ZERO, AmountLike, to_money, calculate_interest, format_amount


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AccountType(Enum):
    """Account product types; values are stable identifiers"""
    SAVINGS = "Savings"
    CHECKING = "Checking"

    @classmethod
    def parse(cls, value: Union["AccountType", str]) -> "AccountType":
        """Accept the enum itself or a case-insensitive name"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().upper()
            for member in cls:
                if member.name == normalized:
                    return member
        raise ValidationError("Account type must be either SAVINGS or CHECKING")


@dataclass(frozen=True)
class AccountSnapshot:
    """Consistent point-in-time view of an account"""
    account_number: str
    account_type: AccountType
    owner_id: str
    balance: Decimal
    transactions: Tuple[Transaction, ...]


@dataclass
class InterestRunSummary:
    """Outcome of one accrual pass over the registry"""
    accounts_processed: int = 0
    accounts_credited: int = 0
    total_interest: Decimal = ZERO
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


class Account:
    """
    Bank account with a serialized mutation path

    All balance changes go through deposit(), withdraw() or
    accrue_monthly_interest(); each holds the account lock while it
    validates, updates the balance and appends exactly one Transaction.
    """

    def __init__(
        self,
        account_number: str,
        account_type: Union[AccountType, str],
        owner_id: str,
        initial_deposit: AmountLike,
        *,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Clock] = None
    ):
        self.config = config or get_config()
        self._clock = clock or utc_now

        if not account_number or not str(account_number).strip():
            raise ValidationError("Account number cannot be null or empty")
        if not owner_id or not str(owner_id).strip():
            raise ValidationError("Account holder cannot be null")

        opening = to_money(initial_deposit)
        if opening < self.config.minimum_balance:
            raise ValidationError(
                f"Initial balance must be at least {format_amount(self.config.minimum_balance)}"
            )

        self.account_number = str(account_number).strip()
        self.account_type = AccountType.parse(account_type)
        self.owner_id = owner_id
        self._lock = threading.RLock()
        self._ledger = Ledger()
        self._balance = opening
        self._initial_deposit = opening

        # The opening deposit is the first ledger entry
        self._record(TransactionKind.DEPOSIT, opening)

    def __repr__(self) -> str:
        return f"Account({self.account_number}, {self.account_type.value}, balance={self.balance})"

    @property
    def is_savings(self) -> bool:
        return self.account_type == AccountType.SAVINGS

    @contextmanager
    def exclusive(self):
        """Hold the account lock across a multi-step check-then-mutate sequence"""
        with self._lock:
            yield self

    # ---------- reads ----------

    @property
    def balance(self) -> Decimal:
        with self._lock:
            return self._balance

    @property
    def initial_deposit(self) -> Decimal:
        return self._initial_deposit

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        with self._lock:
            return self._ledger.entries()

    def snapshot(self) -> AccountSnapshot:
        with self._lock:
            return AccountSnapshot(
                account_number=self.account_number,
                account_type=self.account_type,
                owner_id=self.owner_id,
                balance=self._balance,
                transactions=self._ledger.entries(),
            )

    def transactions_in_range(self, start: datetime, end: datetime) -> List[Transaction]:
        """
        Ledger entries with start <= timestamp <= end

        Raises:
            ValidationError: If a bound is missing or start is after end
        """
        validate_range(start, end)
        with self._lock:
            return self._ledger.in_range(start, end)

    def summarize(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> LedgerSummary:
        if start is not None or end is not None:
            validate_range(start, end)
        with self._lock:
            return self._ledger.summarize(start, end)

    def daily_total(self, day: Optional[date] = None, include_interest: bool = True) -> Decimal:
        """Sum of all entry amounts recorded on a calendar day (today by default)"""
        day = day or self._clock().date()
        kinds = None if include_interest else (TransactionKind.DEPOSIT, TransactionKind.WITHDRAWAL)
        with self._lock:
            return self._ledger.total_on(day, kinds)

    def is_consistent(self) -> bool:
        """Check that the balance equals the balance rebuilt from the ledger"""
        with self._lock:
            last = self._ledger.last()
            return (
                reconstruct_balance(self._ledger) == self._balance
                and last is not None
                and last.balance_after == self._balance
            )

    # ---------- mutations ----------

    def deposit(self, amount: AmountLike) -> Transaction:
        """
        Credit the account

        Raises:
            ValidationError: If the amount is not positive, not finite or above the maximum
        """
        value = self._validate_amount(amount)
        with self._lock:
            self._balance = self._balance + value
            return self._record(TransactionKind.DEPOSIT, value)

    def withdraw(self, amount: AmountLike) -> Transaction:
        """
        Debit the account

        Raises:
            ValidationError: If the amount is not positive, not finite or above the maximum
            TransactionError: If the withdrawal would leave less than the minimum balance
        """
        value = self._validate_amount(amount)
        with self._lock:
            if self._balance - value < self.config.minimum_balance:
                raise TransactionError(
                    f"Withdrawal would put account below minimum balance of "
                    f"{format_amount(self.config.minimum_balance)}"
                )
            self._balance = self._balance - value
            return self._record(TransactionKind.WITHDRAWAL, value)

    def accrue_monthly_interest(self) -> Optional[Transaction]:
        """
        Credit one month of interest to a savings account

        Returns:
            The Interest transaction, or None when nothing was credited
        """
        if not self.is_savings:
            return None

        with self._lock:
            if self._balance <= ZERO:
                return None

            interest = calculate_interest(self._balance, self.config.savings_annual_interest_rate)
            if interest <= ZERO:
                return None

            self._balance = self._balance + interest
            transaction = self._record(TransactionKind.INTEREST, interest)

        log_action(
            get_logger("account_ledger.accounts"), "info", "Interest applied",
            action="accrue_interest", resource=f"account:{self.account_number}",
            extra={
                "amount": format_amount(interest),
                "balance_after": format_amount(transaction.balance_after),
                "transaction_id": transaction.id,
            }
        )
        return transaction

    def _validate_amount(self, amount: AmountLike) -> Decimal:
        value = to_money(amount)
        if value <= ZERO:
            raise ValidationError("Transaction amount must be positive")
        if value > self.config.max_transaction_amount:
            raise ValidationError(
                f"Transaction amount cannot exceed {format_amount(self.config.max_transaction_amount)}"
            )
        return value

    def _record(self, kind: TransactionKind, amount: Decimal) -> Transaction:
        """Append the entry for a balance change that was just applied; caller holds the lock"""
        timestamp = self._clock()
        last = self._ledger.last()
        if last is not None and timestamp < last.timestamp:
            timestamp = last.timestamp

        transaction = Transaction(
            account_number=self.account_number,
            kind=kind,
            amount=amount,
            balance_after=self._balance,
            timestamp=timestamp,
        )
        self._ledger.append(transaction)
        return transaction


class AccountRegistry:
    """
    Concurrency-safe store of all accounts by account number

    Inserts are serialized by the registry lock; lookups are plain dict
    reads and never block.
    """

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Clock] = None,
        number_generator: Optional[Callable[[int], str]] = None
    ):
        self.config = config or get_config()
        self._clock = clock or utc_now
        self._generate_number = number_generator or self._random_account_number
        self._accounts: Dict[str, Account] = {}
        self._owner_index: Dict[str, List[Account]] = {}
        self._lock = threading.RLock()
        self.logger = get_logger("account_ledger.accounts")

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_number: object) -> bool:
        return isinstance(account_number, str) and account_number.strip() in self._accounts

    def create_account(
        self,
        owner_id: str,
        account_type: Union[AccountType, str],
        initial_deposit: AmountLike
    ) -> Account:
        """
        Open a new account for an owner

        Args:
            owner_id: Identity of the verified owner
            account_type: SAVINGS or CHECKING
            initial_deposit: Opening balance, at least the minimum balance

        Returns:
            The registered Account, whose ledger holds the opening deposit

        Raises:
            ValidationError: Bad owner, type or deposit, or owner at the account ceiling
            BankingSystemError: If no free account number could be generated
        """
        try:
            account = self._register(owner_id, account_type, initial_deposit)
        except BankingError as e:
            log_action(
                self.logger, "error", f"Failed to create account: {e.message}",
                user_id=str(owner_id) if owner_id else None, action="create_account",
                extra={"account_type": str(account_type), "error_type": e.error_type.value}
            )
            raise

        log_action(
            self.logger, "info", "Account created",
            user_id=owner_id, action="create_account", resource=f"account:{account.account_number}",
            extra={"account_type": account.account_type.value,
                   "initial_deposit": format_amount(account.initial_deposit)}
        )
        return account

    def _register(self, owner_id: str, account_type: Union[AccountType, str],
                  initial_deposit: AmountLike) -> Account:
        if not owner_id or not str(owner_id).strip():
            raise ValidationError("Account owner cannot be null")

        product = AccountType.parse(account_type)
        opening = to_money(initial_deposit)
        if opening < self.config.minimum_balance:
            raise ValidationError(
                f"Initial deposit must be at least {format_amount(self.config.minimum_balance)}"
            )

        with self._lock:
            owned = self._owner_index.get(owner_id, [])
            if len(owned) >= self.config.max_accounts_per_user:
                raise ValidationError(
                    f"User cannot have more than {self.config.max_accounts_per_user} accounts"
                )

            account_number = self._unique_account_number()
            account = Account(
                account_number, product, owner_id, opening,
                config=self.config, clock=self._clock
            )
            self._accounts[account_number] = account
            self._owner_index.setdefault(owner_id, []).append(account)

        return account

    def get_account(self, account_number: str) -> Account:
        """
        Look up an account by number

        Raises:
            ValidationError: If the account number is empty
            AccountError: If no account is registered under it
        """
        if not isinstance(account_number, str) or not account_number.strip():
            raise ValidationError("Account number cannot be null or empty")

        account = self._accounts.get(account_number.strip())
        if account is None:
            raise AccountError(f"Account not found: {account_number}")
        return account

    def accounts_owned_by(self, owner_id: str) -> List[Account]:
        """Copy of the owner's accounts in creation order"""
        if not owner_id or not str(owner_id).strip():
            raise ValidationError("User cannot be null")
        with self._lock:
            return list(self._owner_index.get(owner_id, ()))

    def all_accounts(self) -> List[Account]:
        with self._lock:
            return list(self._accounts.values())

    def savings_accounts(self) -> List[Account]:
        return [account for account in self.all_accounts() if account.is_savings]

    def accrue_interest_for_all_savings(self) -> InterestRunSummary:
        """
        Credit monthly interest to every savings account

        A failure on one account is logged and recorded in the summary;
        the remaining accounts are still processed.
        """
        summary = InterestRunSummary()
        for account in self.savings_accounts():
            summary.accounts_processed += 1
            try:
                transaction = account.accrue_monthly_interest()
            except Exception as e:
                summary.failures[account.account_number] = str(e)
                log_action(
                    self.logger, "error", f"Interest calculation failed: {e}",
                    action="accrue_interest", resource=f"account:{account.account_number}",
                    exc_info=True
                )
                continue

            if transaction is not None:
                summary.accounts_credited += 1
                summary.total_interest += transaction.amount

        log_action(
            self.logger, "info", "Interest run completed",
            action="accrue_interest_all",
            extra={
                "accounts_processed": summary.accounts_processed,
                "accounts_credited": summary.accounts_credited,
                "total_interest": format_amount(summary.total_interest),
                "failures": len(summary.failures),
            }
        )
        return summary

    def _unique_account_number(self) -> str:
        """Draw account numbers until one is free; caller holds the registry lock"""
        length = self.config.account_number_length
        for _ in range(self.config.account_number_max_attempts):
            candidate = self._generate_number(length)
            if candidate not in self._accounts:
                return candidate

        raise BankingSystemError(
            f"Unable to generate a unique account number after "
            f"{self.config.account_number_max_attempts} attempts"
        )

    @staticmethod
    def _random_account_number(length: int) -> str:
        return "".join(str(secrets.randbelow(10)) for _ in range(length))
