"""LedgerRepository: concrete implementation of LedgerRepositoryProtocol.

All balance-mutating operations are single atomic UPDATE ... RETURNING
statements. A debit only matches when `balance >= amount`, so a result of
0 rows means the funds were not there at write time, whatever the caller
read earlier.

Transaction ownership: the CALLER (application service) is responsible for
committing or rolling back the session.
"""

import uuid

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.datetime_utils import utc_now
from src.tm_common.errors import InternalError
from src.tm_ledger.domain.models import Account, Transaction, TransactionFilter
from src.tm_ledger.infrastructure.db_models import AccountORM, TransactionORM

_accounts = AccountORM.__table__
_transactions = TransactionORM.__table__


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_transaction(row: object) -> Transaction:
    reference_id = row.reference_id  # type: ignore[attr-defined]
    return Transaction(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        account_id=str(row.account_id),  # type: ignore[attr-defined]
        type=row.type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_id=str(reference_id) if reference_id else None,
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _uuid(value: str) -> uuid.UUID:
    return uuid.UUID(value)


class LedgerRepository:
    """All balance mutations are atomic at the SQL level."""

    async def create_account(self, db: AsyncSession, user_id: str) -> Account:
        now = utc_now()
        result = await db.execute(
            insert(_accounts)
            .values(
                id=uuid.uuid4(),
                user_id=_uuid(user_id),
                balance=0,
                version=0,
                created_at=now,
                updated_at=now,
            )
            .returning(*_accounts.c)
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows")
        return _row_to_account(row)

    async def get_owned_account(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> Account | None:
        result = await db.execute(
            select(*_accounts.c).where(
                _accounts.c.id == _uuid(account_id),
                _accounts.c.user_id == _uuid(user_id),
            )
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def lock_accounts(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]:
        """SELECT ... FOR UPDATE the given accounts, always in id order.

        A fixed lock order keeps opposite transfers (A->B, B->A) from
        deadlocking. Dialects without row locks (SQLite) ignore FOR UPDATE.
        """
        result = await db.execute(
            select(*_accounts.c)
            .where(_accounts.c.id.in_([_uuid(a) for a in account_ids]))
            .order_by(_accounts.c.id)
            .with_for_update()
        )
        accounts = [_row_to_account(row) for row in result.fetchall()]
        return {a.id: a for a in accounts}

    async def list_accounts(self, db: AsyncSession, user_id: str) -> list[Account]:
        result = await db.execute(
            select(*_accounts.c)
            .where(_accounts.c.user_id == _uuid(user_id))
            .order_by(_accounts.c.created_at, _accounts.c.id)
        )
        return [_row_to_account(row) for row in result.fetchall()]

    async def credit(self, db: AsyncSession, account_id: str, amount: int) -> Account:
        result = await db.execute(
            update(_accounts)
            .where(_accounts.c.id == _uuid(account_id))
            .values(
                balance=_accounts.c.balance + amount,
                version=_accounts.c.version + 1,
                updated_at=utc_now(),
            )
            .returning(*_accounts.c)
        )
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Account vanished during credit: {account_id}")
        return _row_to_account(row)

    async def debit(
        self, db: AsyncSession, account_id: str, amount: int
    ) -> Account | None:
        """Decrement only if balance >= amount. Returns None when it did not apply."""
        result = await db.execute(
            update(_accounts)
            .where(
                _accounts.c.id == _uuid(account_id),
                _accounts.c.balance >= amount,
            )
            .values(
                balance=_accounts.c.balance - amount,
                version=_accounts.c.version + 1,
                updated_at=utc_now(),
            )
            .returning(*_accounts.c)
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def insert_transaction(
        self,
        db: AsyncSession,
        account: Account,
        tx_type: str,
        amount: int,
        reference_id: str | None,
        description: str | None,
    ) -> Transaction:
        result = await db.execute(
            insert(_transactions)
            .values(
                id=uuid.uuid4(),
                user_id=_uuid(account.user_id),
                account_id=_uuid(account.id),
                type=tx_type,
                amount=amount,
                balance_after=account.balance,
                reference_id=_uuid(reference_id) if reference_id else None,
                description=description,
                created_at=utc_now(),
            )
            .returning(*_transactions.c)
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows")
        return _row_to_transaction(row)

    async def list_transactions(
        self, db: AsyncSession, account_id: str, filters: TransactionFilter
    ) -> list[Transaction]:
        stmt = select(*_transactions.c).where(
            _transactions.c.account_id == _uuid(account_id)
        )
        if filters.type is not None:
            stmt = stmt.where(_transactions.c.type == filters.type)
        if filters.start is not None:
            stmt = stmt.where(_transactions.c.created_at >= filters.start)
        if filters.end is not None:
            stmt = stmt.where(_transactions.c.created_at <= filters.end)
        stmt = stmt.order_by(_transactions.c.created_at, _transactions.c.id)

        result = await db.execute(stmt)
        return [_row_to_transaction(row) for row in result.fetchall()]
