"""Pydantic schemas and query parsing for tm_ledger API."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from src.tm_common.cents import cents_to_amount, cents_to_display, to_cents
from src.tm_common.datetime_utils import as_utc, end_of_day, start_of_day
from src.tm_common.errors import InvalidRequestError
from src.tm_ledger.domain.models import Account, Transaction, TransactionFilter

# ---------------------------------------------------------------------------
# Query parsing
# ---------------------------------------------------------------------------


def parse_date_bound(value: str | None, name: str, end: bool = False) -> datetime | None:
    """Parse an ISO8601 date or datetime query value into a UTC bound.

    A date-only value covers the whole day: as a lower bound it means 00:00,
    as an upper bound the last instant of that day.
    """
    if value is None or value == "":
        return None
    try:
        day = date.fromisoformat(value)  # also accepts the basic form YYYYMMDD
    except ValueError:
        pass
    else:
        return end_of_day(day) if end else start_of_day(day)
    try:
        return as_utc(datetime.fromisoformat(value))
    except ValueError:
        raise InvalidRequestError(
            f"Invalid {name} format (expected YYYY-MM-DD or ISO8601 datetime): {value}"
        ) from None


def build_transaction_filter(
    tx_type: str | None, start_date: str | None, end_date: str | None
) -> TransactionFilter:
    start = parse_date_bound(start_date, "startDate")
    end = parse_date_bound(end_date, "endDate", end=True)
    if start is not None and end is not None and start > end:
        raise InvalidRequestError("startDate must not be after endDate")
    return TransactionFilter(type=tx_type, start=start, end=end)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AmountRequest(BaseModel):
    amount: Decimal = Field(
        ..., gt=0, max_digits=15, decimal_places=2, description="Amount, at most 2 decimals"
    )
    description: str | None = Field(None, max_length=500)

    @property
    def amount_cents(self) -> int:
        return to_cents(self.amount)


class DepositRequest(AmountRequest):
    pass


class WithdrawRequest(AmountRequest):
    pass


class TransferRequest(AmountRequest):
    receiver_account_id: UUID = Field(
        ...,
        validation_alias=AliasChoices("receiverAccountId", "receiver_account_id"),
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    id: str
    user_id: str
    balance: float
    balance_cents: int
    balance_display: str
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            user_id=account.user_id,
            balance=cents_to_amount(account.balance),
            balance_cents=account.balance,
            balance_display=cents_to_display(account.balance),
            created_at=account.created_at.isoformat(),
        )


class BalanceResponse(BaseModel):
    account_id: str
    balance: float
    balance_cents: int
    balance_display: str

    @classmethod
    def from_cents(cls, account_id: str, balance: int) -> "BalanceResponse":
        return cls(
            account_id=account_id,
            balance=cents_to_amount(balance),
            balance_cents=balance,
            balance_display=cents_to_display(balance),
        )


class TransferResponse(BaseModel):
    sender: AccountResponse
    receiver: AccountResponse
    reference_id: str | None


class TransactionItem(BaseModel):
    id: str
    user_id: str
    account_id: str
    type: str
    amount: float
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionItem":
        return cls(
            id=tx.id,
            user_id=tx.user_id,
            account_id=tx.account_id,
            type=tx.type,
            amount=cents_to_amount(tx.amount),
            amount_cents=tx.amount,
            amount_display=cents_to_display(tx.amount),
            balance_after_cents=tx.balance_after,
            reference_id=tx.reference_id,
            description=tx.description,
            created_at=tx.created_at.isoformat() if tx.created_at else "",
        )
