"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for
environment-based configuration. Business-rule defaults are also exported
as module constants.
"""

from decimal import Decimal
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


MINIMUM_BALANCE = Decimal("500.00")
MAX_TRANSACTION_AMOUNT = Decimal("1000000.00")
MIN_TRANSACTION_AMOUNT = Decimal("0.01")
DAILY_TRANSACTION_LIMIT = Decimal("50000.00")
MAX_ACCOUNTS_PER_USER = 5
SAVINGS_ANNUAL_INTEREST_RATE = Decimal("0.045")
ACCOUNT_NUMBER_LENGTH = 10


class LedgerConfig(BaseSettings):
    """Account ledger configuration"""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Business rules configuration
    minimum_balance: Decimal = MINIMUM_BALANCE
    max_transaction_amount: Decimal = MAX_TRANSACTION_AMOUNT
    min_transaction_amount: Decimal = MIN_TRANSACTION_AMOUNT
    daily_transaction_limit: Decimal = DAILY_TRANSACTION_LIMIT
    max_accounts_per_user: int = MAX_ACCOUNTS_PER_USER
    savings_annual_interest_rate: Decimal = SAVINGS_ANNUAL_INTEREST_RATE
    count_interest_toward_daily_limit: bool = True

    # Account number generation
    account_number_length: int = ACCOUNT_NUMBER_LENGTH
    account_number_max_attempts: int = 100

    # Interest scheduler configuration
    interest_scheduler_enabled: bool = True
    interest_period_seconds: float = 86400.0
    scheduler_shutdown_timeout_seconds: float = 60.0

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    @field_validator(
        "minimum_balance", "max_transaction_amount", "min_transaction_amount",
        "daily_transaction_limit", "savings_annual_interest_rate",
    )
    @classmethod
    def _non_negative(cls, value: Decimal) -> Decimal:
        if not value.is_finite() or value < 0:
            raise ValueError("must be a finite, non-negative amount")
        return value

    @field_validator("max_accounts_per_user", "account_number_length", "account_number_max_attempts")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("interest_period_seconds", "scheduler_shutdown_timeout_seconds")
    @classmethod
    def _positive_seconds(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value

    @model_validator(mode="after")
    def _consistent_bounds(self) -> "LedgerConfig":
        if self.min_transaction_amount > self.max_transaction_amount:
            raise ValueError("min_transaction_amount cannot exceed max_transaction_amount")
        return self


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
