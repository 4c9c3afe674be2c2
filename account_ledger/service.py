"""
Ledger Service Composition

Builds the registry, transaction processor and interest scheduler for one
service lifetime. The caller owns the returned object; there is no global
registry.
"""

from typing import Optional

from .accounts import AccountRegistry, Clock
from .config import LedgerConfig, get_config
from .interest import InterestScheduler
from .logging_config import setup_logging, get_logger
from .transactions import TransactionProcessor


class BankingCore:
    """Account ledger components wired together for one service lifetime"""

    def __init__(self, config: Optional[LedgerConfig] = None, clock: Optional[Clock] = None,
                 configure_logging: bool = True):
        self.config = config or get_config()
        self.configure_logging = configure_logging
        self.registry = AccountRegistry(self.config, clock=clock)
        self.processor = TransactionProcessor(self.registry, self.config)
        self.scheduler = InterestScheduler(self.registry, clock=clock)
        self.logger = get_logger("account_ledger.service")

    def __enter__(self) -> "BankingCore":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def start(self) -> None:
        if self.configure_logging:
            setup_logging(self.config.log_level, fmt=self.config.log_format,
                          log_file=self.config.log_file)
        if self.config.interest_scheduler_enabled:
            self.scheduler.start()
        self.logger.info("Account ledger service started")

    def shutdown(self) -> bool:
        """Stop the scheduler; False if its in-flight run outlived the timeout"""
        stopped = self.scheduler.shutdown()
        self.logger.info("Account ledger service stopped")
        return stopped
