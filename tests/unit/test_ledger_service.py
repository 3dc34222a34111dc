"""Unit tests for LedgerService using a mock repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from src.tm_common.errors import (
    AccountNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidRequestError,
    ReceiverAccountNotFoundError,
    SelfTransferError,
    SenderAccountNotFoundError,
)
from src.tm_ledger.application.schemas import AccountResponse, TransferResponse
from src.tm_ledger.application.service import LedgerService
from src.tm_ledger.domain.models import Account, Transaction, TransactionFilter

USER = "9b2f6a5e-3c1d-4e8f-a7b6-0d9c8e7f6a51"
OTHER_USER = "5d4c3b2a-1f0e-4d9c-8b7a-6f5e4d3c2b1a"
ACC_A = "aaaaaaaa-0000-4000-8000-000000000001"
ACC_B = "bbbbbbbb-0000-4000-8000-000000000002"


def _make_account(
    account_id: str = ACC_A, balance: int = 10000, user_id: str = USER, version: int = 1
) -> Account:
    return Account(
        id=account_id,
        user_id=user_id,
        balance=balance,
        version=version,
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )


def _make_tx(account: Account, tx_type: str, amount: int) -> Transaction:
    return Transaction(
        id="tx-1",
        user_id=account.user_id,
        account_id=account.id,
        type=tx_type,
        amount=amount,
        balance_after=account.balance,
        created_at=datetime.now(UTC),
    )


@pytest.fixture
def repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def svc(repo: AsyncMock) -> LedgerService:
    return LedgerService(repo=repo)


class TestOpenAccount:
    async def test_creates_and_commits(self, svc, repo, db) -> None:
        repo.create_account.return_value = _make_account(balance=0)

        result = await svc.open_account(db, USER)

        assert isinstance(result, AccountResponse)
        assert result.balance_cents == 0
        repo.create_account.assert_awaited_once_with(db, USER)
        db.commit.assert_awaited_once()


class TestDeposit:
    async def test_credits_and_records(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = _make_account(balance=10000)
        credited = _make_account(balance=15000, version=2)
        repo.credit.return_value = credited

        result = await svc.deposit(db, ACC_A, USER, 5000)

        assert result.balance_cents == 15000
        assert result.balance_display == "$150.00"
        repo.credit.assert_awaited_once_with(db, ACC_A, 5000)
        repo.insert_transaction.assert_awaited_once_with(
            db, credited, "deposit", 5000, None, None
        )
        db.commit.assert_awaited_once()

    async def test_not_owned_raises_without_mutation(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = None

        with pytest.raises(AccountNotFoundError):
            await svc.deposit(db, ACC_A, OTHER_USER, 5000)

        repo.credit.assert_not_awaited()
        repo.insert_transaction.assert_not_awaited()
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    @pytest.mark.parametrize("amount", [0, -1, True, 1.5])
    async def test_invalid_amount_rejected_before_any_io(self, svc, repo, db, amount) -> None:
        with pytest.raises(InvalidAmountError):
            await svc.deposit(db, ACC_A, USER, amount)

        repo.get_owned_account.assert_not_awaited()
        repo.credit.assert_not_awaited()

    async def test_record_failure_rolls_back_balance(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = _make_account()
        repo.credit.return_value = _make_account(balance=15000)
        repo.insert_transaction.side_effect = RuntimeError("disk full")

        with pytest.raises(RuntimeError):
            await svc.deposit(db, ACC_A, USER, 5000)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_malformed_id_rejected(self, svc, repo, db) -> None:
        with pytest.raises(InvalidRequestError):
            await svc.deposit(db, "12345", USER, 100)
        repo.get_owned_account.assert_not_awaited()


class TestWithdraw:
    async def test_debits_and_records(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = _make_account(balance=10000)
        debited = _make_account(balance=4000, version=2)
        repo.debit.return_value = debited

        result = await svc.withdraw(db, ACC_A, USER, 6000, "rent")

        assert result.balance_cents == 4000
        repo.debit.assert_awaited_once_with(db, ACC_A, 6000)
        repo.insert_transaction.assert_awaited_once_with(
            db, debited, "withdrawal", 6000, None, "rent"
        )
        db.commit.assert_awaited_once()

    async def test_insufficient_funds(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = _make_account(balance=10000)
        repo.debit.return_value = None  # conditional UPDATE matched no row

        with pytest.raises(InsufficientFundsError) as exc_info:
            await svc.withdraw(db, ACC_A, USER, 15000)

        assert exc_info.value.http_status == 400
        assert "10000" in exc_info.value.message
        repo.insert_transaction.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_not_owned(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = None

        with pytest.raises(AccountNotFoundError):
            await svc.withdraw(db, ACC_A, OTHER_USER, 100)
        repo.debit.assert_not_awaited()


class TestTransfer:
    def _arrange(self, repo: AsyncMock, sender_balance: int = 10000) -> tuple[Account, Account]:
        sender = _make_account(ACC_A, sender_balance)
        receiver = _make_account(ACC_B, 500, user_id=OTHER_USER)
        repo.get_owned_account.return_value = sender
        repo.lock_accounts.return_value = {ACC_A: sender, ACC_B: receiver}
        return sender, receiver

    async def test_moves_funds_and_writes_two_legs(self, svc, repo, db) -> None:
        self._arrange(repo)
        debited = _make_account(ACC_A, 2500, version=2)
        credited = _make_account(ACC_B, 8000, user_id=OTHER_USER, version=2)
        repo.debit.return_value = debited
        repo.credit.return_value = credited

        result = await svc.transfer(db, ACC_A, USER, ACC_B, 7500)

        assert isinstance(result, TransferResponse)
        assert result.sender.balance_cents == 2500
        assert result.receiver.balance_cents == 8000
        repo.lock_accounts.assert_awaited_once_with(db, [ACC_A, ACC_B])
        repo.debit.assert_awaited_once_with(db, ACC_A, 7500)
        repo.credit.assert_awaited_once_with(db, ACC_B, 7500)

        sender_call, receiver_call = repo.insert_transaction.await_args_list
        assert sender_call.args[1] is debited
        assert sender_call.args[2:4] == ("transfer", -7500)
        assert receiver_call.args[1] is credited
        assert receiver_call.args[2:4] == ("transfer", 7500)
        assert sender_call.args[4] == receiver_call.args[4] == result.reference_id
        db.commit.assert_awaited_once()

    async def test_sender_not_owned(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = None

        with pytest.raises(SenderAccountNotFoundError):
            await svc.transfer(db, ACC_A, OTHER_USER, ACC_B, 100)
        repo.debit.assert_not_awaited()

    async def test_receiver_missing(self, svc, repo, db) -> None:
        sender, _ = self._arrange(repo)
        repo.lock_accounts.return_value = {ACC_A: sender}

        with pytest.raises(ReceiverAccountNotFoundError):
            await svc.transfer(db, ACC_A, USER, ACC_B, 100)
        repo.debit.assert_not_awaited()
        repo.credit.assert_not_awaited()

    async def test_insufficient_funds_touches_nothing(self, svc, repo, db) -> None:
        self._arrange(repo, sender_balance=100)
        repo.debit.return_value = None

        with pytest.raises(InsufficientFundsError):
            await svc.transfer(db, ACC_A, USER, ACC_B, 101)
        repo.credit.assert_not_awaited()
        repo.insert_transaction.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_self_transfer_rejected(self, svc, repo, db) -> None:
        self._arrange(repo)

        with pytest.raises(SelfTransferError):
            await svc.transfer(db, ACC_A, USER, ACC_A.upper(), 100)
        repo.debit.assert_not_awaited()

    async def test_second_leg_failure_rolls_back(self, svc, repo, db) -> None:
        self._arrange(repo)
        repo.debit.return_value = _make_account(ACC_A, 9900)
        repo.credit.return_value = _make_account(ACC_B, 600, user_id=OTHER_USER)
        repo.insert_transaction.side_effect = [_make_tx(_make_account(), "transfer", -100), RuntimeError("boom")]

        with pytest.raises(RuntimeError):
            await svc.transfer(db, ACC_A, USER, ACC_B, 100)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_zero_amount_rejected(self, svc, repo, db) -> None:
        with pytest.raises(InvalidAmountError):
            await svc.transfer(db, ACC_A, USER, ACC_B, 0)
        repo.get_owned_account.assert_not_awaited()


class TestReads:
    async def test_get_balance(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = _make_account(balance=123456)

        result = await svc.get_balance(db, ACC_A, USER)

        assert result.balance_cents == 123456
        assert result.balance == 1234.56
        assert result.balance_display == "$1,234.56"

    async def test_get_balance_not_owned(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = None
        with pytest.raises(AccountNotFoundError):
            await svc.get_balance(db, ACC_A, OTHER_USER)

    async def test_list_transactions_checks_ownership_first(self, svc, repo, db) -> None:
        repo.get_owned_account.return_value = None
        with pytest.raises(AccountNotFoundError):
            await svc.list_transactions(db, ACC_A, OTHER_USER, TransactionFilter())
        repo.list_transactions.assert_not_awaited()

    async def test_list_transactions_passes_filters(self, svc, repo, db) -> None:
        account = _make_account()
        repo.get_owned_account.return_value = account
        repo.list_transactions.return_value = [_make_tx(account, "deposit", 5000)]
        filters = TransactionFilter(type="deposit")

        items = await svc.list_transactions(db, ACC_A, USER, filters)

        repo.list_transactions.assert_awaited_once_with(db, ACC_A, filters)
        assert len(items) == 1
        assert items[0].amount_cents == 5000
        assert items[0].amount == 50.0

    async def test_list_accounts(self, svc, repo, db) -> None:
        repo.list_accounts.return_value = [_make_account(ACC_A), _make_account(ACC_B)]

        result = await svc.list_accounts(db, USER)

        assert [a.id for a in result] == [ACC_A, ACC_B]
