"""Domain models for tm_ledger: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    user_id: str
    balance: int             # cents, never negative
    version: int
    created_at: datetime
    updated_at: datetime


@dataclass
class Transaction:
    id: str
    user_id: str
    account_id: str
    type: str                        # TransactionType value
    amount: int                      # cents; transfer legs are signed, others positive
    balance_after: int               # cents, account balance snapshot after the op
    reference_id: str | None = None  # shared by both legs of a transfer
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class TransactionFilter:
    """Optional filters for listing an account's transactions (bounds inclusive)."""

    type: str | None = None
    start: datetime | None = None
    end: datetime | None = None
