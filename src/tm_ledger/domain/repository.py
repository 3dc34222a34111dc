"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_ledger.domain.models import Account, Transaction, TransactionFilter


class LedgerRepositoryProtocol(Protocol):
    async def create_account(self, db: AsyncSession, user_id: str) -> Account: ...

    async def get_owned_account(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> Account | None: ...

    async def lock_accounts(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]: ...

    async def list_accounts(self, db: AsyncSession, user_id: str) -> list[Account]: ...

    async def credit(self, db: AsyncSession, account_id: str, amount: int) -> Account: ...

    async def debit(
        self, db: AsyncSession, account_id: str, amount: int
    ) -> Account | None: ...

    async def insert_transaction(
        self,
        db: AsyncSession,
        account: Account,
        tx_type: str,
        amount: int,
        reference_id: str | None,
        description: str | None,
    ) -> Transaction: ...

    async def list_transactions(
        self, db: AsyncSession, account_id: str, filters: TransactionFilter
    ) -> list[Transaction]: ...
