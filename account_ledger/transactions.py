"""
Transaction Processing Module

Validates caller requests (ownership, amount bounds, daily aggregate
limit) and applies them to the target account. The daily-limit check and
the balance mutation run under the same account lock, so concurrent
requests cannot jointly exceed the limit.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import List, Optional
from enum import Enum

from .accounts import Account, AccountRegistry
from .config import LedgerConfig
from .errors import (
    BankingError, ErrorType, ValidationError, AuthenticationError
)
from .ledger import LedgerSummary, Transaction, TransactionKind
from .logging_config import get_logger, log_action
from .money import AmountLike, to_decimal, quantize, format_amount


class TransactionState(Enum):
    """Final states of a processed request"""
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class TransactionRequest:
    """A caller-initiated deposit or withdrawal"""
    kind: TransactionKind
    account_number: str
    amount: AmountLike
    owner_id: str


@dataclass(frozen=True)
class TransactionOutcome:
    """
    Tagged result of executing a TransactionRequest

    Exactly one of transaction / error_type is set.
    """
    request: TransactionRequest
    state: TransactionState
    transaction: Optional[Transaction] = None
    error_type: Optional[ErrorType] = None
    error_message: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.state == TransactionState.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.state == TransactionState.FAILED

    @classmethod
    def completed(cls, request: TransactionRequest, transaction: Transaction) -> "TransactionOutcome":
        return cls(request=request, state=TransactionState.COMPLETED, transaction=transaction)

    @classmethod
    def failed(cls, request: TransactionRequest, error: BankingError) -> "TransactionOutcome":
        return cls(
            request=request,
            state=TransactionState.FAILED,
            error_type=error.error_type,
            error_message=error.message,
        )


class TransactionProcessor:
    """
    Applies deposits and withdrawals on behalf of verified owners
    """

    def __init__(self, registry: AccountRegistry, config: Optional[LedgerConfig] = None):
        self.registry = registry
        self.config = config or registry.config
        self.logger = get_logger("account_ledger.transactions")

    def deposit(self, account_number: str, amount: AmountLike, requesting_owner_id: str) -> Transaction:
        """
        Deposit into an account owned by the requester

        Raises:
            ValidationError: Bad account number, amount out of bounds or daily limit exceeded
            AccountError: Unknown account
            AuthenticationError: Requester does not own the account
        """
        return self._apply(TransactionKind.DEPOSIT, account_number, amount, requesting_owner_id)

    def withdraw(self, account_number: str, amount: AmountLike, requesting_owner_id: str) -> Transaction:
        """
        Withdraw from an account owned by the requester

        Raises:
            ValidationError: Bad account number, amount out of bounds or daily limit exceeded
            AccountError: Unknown account
            AuthenticationError: Requester does not own the account
            TransactionError: Withdrawal would breach the minimum balance
        """
        return self._apply(TransactionKind.WITHDRAWAL, account_number, amount, requesting_owner_id)

    def execute(self, request: TransactionRequest) -> TransactionOutcome:
        """Run a request and report the result as a value instead of raising"""
        try:
            if request.kind == TransactionKind.DEPOSIT:
                transaction = self.deposit(request.account_number, request.amount, request.owner_id)
            elif request.kind == TransactionKind.WITHDRAWAL:
                transaction = self.withdraw(request.account_number, request.amount, request.owner_id)
            else:
                raise ValidationError(f"Unsupported transaction request: {request.kind.value}")
        except BankingError as e:
            return TransactionOutcome.failed(request, e)
        return TransactionOutcome.completed(request, transaction)

    # ---------- ownership-checked reads ----------

    def get_balance(self, account_number: str, requesting_owner_id: str) -> Decimal:
        return self.authorized_account(account_number, requesting_owner_id).balance

    def transaction_history(
        self,
        account_number: str,
        requesting_owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Transaction]:
        """Full ledger, or the inclusive [start, end] slice when both bounds are given"""
        account = self.authorized_account(account_number, requesting_owner_id)
        if start is None and end is None:
            return list(account.transactions)
        return account.transactions_in_range(start, end)

    def statement_summary(
        self,
        account_number: str,
        requesting_owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> LedgerSummary:
        return self.authorized_account(account_number, requesting_owner_id).summarize(start, end)

    def authorized_account(self, account_number: str, requesting_owner_id: str) -> Account:
        """
        Resolve an account and check that the requester owns it

        Raises:
            AuthenticationError: Missing requester or requester is not the owner
        """
        if not requesting_owner_id or not str(requesting_owner_id).strip():
            raise AuthenticationError("User cannot be null")

        account = self.registry.get_account(account_number)
        if account.owner_id != requesting_owner_id:
            log_action(
                self.logger, "warning", "Unauthorized account access attempt",
                user_id=requesting_owner_id, action="access_account",
                resource=f"account:{account.account_number}"
            )
            raise AuthenticationError("You don't have access to this account")
        return account

    # ---------- internals ----------

    def _apply(
        self,
        kind: TransactionKind,
        account_number: str,
        amount: AmountLike,
        requesting_owner_id: str
    ) -> Transaction:
        action = kind.value.lower()
        try:
            account = self.authorized_account(account_number, requesting_owner_id)
            value = self._validate_amount(amount)

            with account.exclusive():
                self._check_daily_limit(account, value)
                if kind == TransactionKind.DEPOSIT:
                    transaction = account.deposit(value)
                else:
                    transaction = account.withdraw(value)

        except BankingError as e:
            log_action(
                self.logger, "warning", f"{kind.value} failed: {e.message}",
                user_id=requesting_owner_id, action=action,
                resource=f"account:{account_number}",
                extra={"amount": str(amount), "error_type": e.error_type.value}
            )
            raise

        log_action(
            self.logger, "info", f"{kind.value} successful",
            user_id=requesting_owner_id, action=action,
            resource=f"account:{transaction.account_number}",
            extra={
                "transaction_id": transaction.id,
                "amount": format_amount(transaction.amount),
                "balance_after": format_amount(transaction.balance_after),
            }
        )
        return transaction

    def _validate_amount(self, amount: AmountLike) -> Decimal:
        value = to_decimal(amount)
        if value < self.config.min_transaction_amount:
            raise ValidationError(
                f"Transaction amount must be at least {format_amount(self.config.min_transaction_amount)}"
            )
        if value > self.config.max_transaction_amount:
            raise ValidationError(
                f"Transaction amount cannot exceed {format_amount(self.config.max_transaction_amount)}"
            )
        return quantize(value)

    def _check_daily_limit(self, account: Account, value: Decimal) -> None:
        """Caller holds the account lock"""
        today_total = account.daily_total(
            include_interest=self.config.count_interest_toward_daily_limit
        )
        if today_total + value > self.config.daily_transaction_limit:
            raise ValidationError(
                f"Transaction would exceed daily limit of "
                f"{format_amount(self.config.daily_transaction_limit)}"
            )
