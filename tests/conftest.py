"""
Shared fixtures for the ledger test suite
"""

import pytest
from datetime import datetime, timezone, timedelta

from account_ledger.config import LedgerConfig


class FakeClock:
    """Settable clock for date-dependent behavior"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return LedgerConfig(_env_file=None)
