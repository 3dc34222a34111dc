"""LedgerService: applies value-moving operations to accounts.

Every mutating operation runs its balance update(s) and transaction record(s)
in one database transaction: commit on success, rollback on any error, so a
balance never changes without its audit row (and vice versa). Debits use the
repository's conditional decrement, which is what guarantees balance >= 0
under concurrent requests; the balance read beforehand is only used for
error messages.

Read-only operations (get_balance, list_accounts, list_transactions) run
without an explicit commit.
"""

import logging
import uuid
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.enums import TransactionType
from src.tm_common.errors import (
    AccountNotFoundError,
    AppError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidRequestError,
    ReceiverAccountNotFoundError,
    SelfTransferError,
    SenderAccountNotFoundError,
)
from src.tm_ledger.application.schemas import (
    AccountResponse,
    BalanceResponse,
    TransactionItem,
    TransferResponse,
)
from src.tm_ledger.domain.models import Account, TransactionFilter
from src.tm_ledger.domain.repository import LedgerRepositoryProtocol
from src.tm_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)


def _normalize_id(account_id: str) -> str:
    try:
        return str(uuid.UUID(str(account_id)))
    except ValueError:
        raise InvalidRequestError(f"Invalid account ID: {account_id}") from None


def _check_amount(amount: int) -> None:
    """Amounts reach the ledger as positive integer cents."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(amount)


class LedgerService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def _require_owned(
        self,
        db: AsyncSession,
        account_id: str,
        user_id: str,
        not_found: Callable[[str], AppError] = AccountNotFoundError,
    ) -> Account:
        """The single ownership check: the account exists AND belongs to user_id."""
        account = await self._repo.get_owned_account(db, account_id, user_id)
        if account is None:
            raise not_found(account_id)
        return account

    async def open_account(self, db: AsyncSession, user_id: str) -> AccountResponse:
        try:
            account = await self._repo.create_account(db, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Account opened: account=%s user=%s", account.id, user_id)
        return AccountResponse.from_domain(account)

    async def list_accounts(self, db: AsyncSession, user_id: str) -> list[AccountResponse]:
        accounts = await self._repo.list_accounts(db, user_id)
        return [AccountResponse.from_domain(a) for a in accounts]

    async def get_balance(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> BalanceResponse:
        account_id = _normalize_id(account_id)
        account = await self._require_owned(db, account_id, user_id)
        return BalanceResponse.from_cents(account.id, account.balance)

    async def deposit(
        self,
        db: AsyncSession,
        account_id: str,
        user_id: str,
        amount: int,
        description: str | None = None,
    ) -> AccountResponse:
        _check_amount(amount)
        account_id = _normalize_id(account_id)
        try:
            await self._require_owned(db, account_id, user_id)
            account = await self._repo.credit(db, account_id, amount)
            await self._repo.insert_transaction(
                db, account, TransactionType.DEPOSIT.value, amount, None, description
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Deposit: account=%s amount=%d balance=%d", account_id, amount, account.balance
        )
        return AccountResponse.from_domain(account)

    async def withdraw(
        self,
        db: AsyncSession,
        account_id: str,
        user_id: str,
        amount: int,
        description: str | None = None,
    ) -> AccountResponse:
        _check_amount(amount)
        account_id = _normalize_id(account_id)
        try:
            current = await self._require_owned(db, account_id, user_id)
            account = await self._repo.debit(db, account_id, amount)
            if account is None:
                logger.warning(
                    "Withdraw rejected: account=%s amount=%d balance=%d",
                    account_id, amount, current.balance,
                )
                raise InsufficientFundsError(amount, current.balance)
            await self._repo.insert_transaction(
                db, account, TransactionType.WITHDRAWAL.value, amount, None, description
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Withdraw: account=%s amount=%d balance=%d", account_id, amount, account.balance
        )
        return AccountResponse.from_domain(account)

    async def transfer(
        self,
        db: AsyncSession,
        sender_account_id: str,
        user_id: str,
        receiver_account_id: str,
        amount: int,
        description: str | None = None,
    ) -> TransferResponse:
        """Move `amount` cents from an owned account to any existing account.

        Writes a negative leg for the sender and a positive leg for the
        receiver, linked by a shared reference_id.
        """
        _check_amount(amount)
        sender_id = _normalize_id(sender_account_id)
        receiver_id = _normalize_id(receiver_account_id)
        reference_id = str(uuid.uuid4())
        try:
            await self._require_owned(db, sender_id, user_id, SenderAccountNotFoundError)
            if receiver_id == sender_id:
                raise SelfTransferError()

            locked = await self._repo.lock_accounts(db, [sender_id, receiver_id])
            if receiver_id not in locked:
                raise ReceiverAccountNotFoundError(receiver_id)
            if sender_id not in locked:
                raise SenderAccountNotFoundError(sender_id)

            sender = await self._repo.debit(db, sender_id, amount)
            if sender is None:
                logger.warning(
                    "Transfer rejected: sender=%s amount=%d balance=%d",
                    sender_id, amount, locked[sender_id].balance,
                )
                raise InsufficientFundsError(amount, locked[sender_id].balance)
            receiver = await self._repo.credit(db, receiver_id, amount)

            await self._repo.insert_transaction(
                db,
                sender,
                TransactionType.TRANSFER.value,
                -amount,
                reference_id,
                description or f"Transfer to {receiver_id}",
            )
            await self._repo.insert_transaction(
                db,
                receiver,
                TransactionType.TRANSFER.value,
                amount,
                reference_id,
                description or f"Transfer from {sender_id}",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Transfer: %s -> %s amount=%d ref=%s", sender_id, receiver_id, amount, reference_id
        )
        return TransferResponse(
            sender=AccountResponse.from_domain(sender),
            receiver=AccountResponse.from_domain(receiver),
            reference_id=reference_id,
        )

    async def list_transactions(
        self,
        db: AsyncSession,
        account_id: str,
        user_id: str,
        filters: TransactionFilter,
    ) -> list[TransactionItem]:
        account_id = _normalize_id(account_id)
        await self._require_owned(db, account_id, user_id)
        transactions = await self._repo.list_transactions(db, account_id, filters)
        return [TransactionItem.from_domain(t) for t in transactions]
