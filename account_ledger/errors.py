"""
Banking Error Taxonomy

Every error raised by the ledger carries an ErrorType tag so that callers
can dispatch on the kind of failure without parsing messages.
"""

from enum import Enum


class ErrorType(Enum):
    """Kinds of failure surfaced by the ledger"""
    VALIDATION_ERROR = "validation_error"          # Malformed or out-of-range input
    ACCOUNT_ERROR = "account_error"                # Referenced account does not exist
    TRANSACTION_ERROR = "transaction_error"        # Business rule violation
    AUTHENTICATION_ERROR = "authentication_error"  # Caller does not own the account
    SYSTEM_ERROR = "system_error"                  # Internal invariant violation

    @property
    def description(self) -> str:
        return self.value.replace("_", " ").title()


class BankingError(Exception):
    """Base class for all ledger errors"""

    error_type: ErrorType = ErrorType.SYSTEM_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ValidationError(BankingError):
    """Raised when input is malformed or outside the allowed range"""
    error_type = ErrorType.VALIDATION_ERROR


class AccountError(BankingError):
    """Raised when a referenced account does not exist"""
    error_type = ErrorType.ACCOUNT_ERROR


class TransactionError(BankingError):
    """Raised when a valid request would violate a business rule"""
    error_type = ErrorType.TRANSACTION_ERROR


class AuthenticationError(BankingError):
    """Raised when the caller is not the owner of the account"""
    error_type = ErrorType.AUTHENTICATION_ERROR


class BankingSystemError(BankingError):
    """Raised on internal invariant violations"""
    error_type = ErrorType.SYSTEM_ERROR
