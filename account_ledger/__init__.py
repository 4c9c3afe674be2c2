"""
Account Ledger

An in-memory account ledger and transaction-processing engine with
fixed-point Decimal arithmetic, per-account serialized mutation and a
daily interest accrual job.
"""

__version__ = "1.0.0"
