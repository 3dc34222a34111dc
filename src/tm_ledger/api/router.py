"""tm_ledger REST API. All endpoints require JWT authentication."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.database import get_db_session
from src.tm_common.enums import TransactionType
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.auth.dependencies import get_current_user
from src.tm_gateway.user.db_models import UserModel
from src.tm_ledger.application.schemas import (
    DepositRequest,
    TransferRequest,
    WithdrawRequest,
    build_transaction_filter,
)
from src.tm_ledger.application.service import LedgerService

router = APIRouter(prefix="/accounts", tags=["accounts"])

_service = LedgerService()

CurrentUser = Annotated[UserModel, Depends(get_current_user)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


def _wrap(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def open_account(current_user: CurrentUser, db: Db, request: Request) -> ApiResponse:
    data = await _service.open_account(db, str(current_user.id))
    return _wrap(request, data.model_dump())


@router.get("")
async def list_accounts(current_user: CurrentUser, db: Db, request: Request) -> ApiResponse:
    data = await _service.list_accounts(db, str(current_user.id))
    return _wrap(request, [a.model_dump() for a in data])


@router.post("/{account_id}/deposit")
async def deposit(
    account_id: UUID,
    body: DepositRequest,
    current_user: CurrentUser,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(
        db, str(account_id), str(current_user.id), body.amount_cents, body.description
    )
    return _wrap(request, data.model_dump())


@router.post("/{account_id}/withdraw")
async def withdraw(
    account_id: UUID,
    body: WithdrawRequest,
    current_user: CurrentUser,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _service.withdraw(
        db, str(account_id), str(current_user.id), body.amount_cents, body.description
    )
    return _wrap(request, data.model_dump())


@router.post("/{account_id}/transfer")
async def transfer(
    account_id: UUID,
    body: TransferRequest,
    current_user: CurrentUser,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _service.transfer(
        db,
        str(account_id),
        str(current_user.id),
        str(body.receiver_account_id),
        body.amount_cents,
        body.description,
    )
    return _wrap(request, data.model_dump())


@router.get("/{account_id}/transactions")
async def list_transactions(
    account_id: UUID,
    current_user: CurrentUser,
    db: Db,
    request: Request,
    tx_type: TransactionType | None = Query(None, alias="type", description="deposit, withdrawal or transfer"),
    start_date: str | None = Query(None, alias="startDate", description="Inclusive lower bound (ISO8601)"),
    end_date: str | None = Query(None, alias="endDate", description="Inclusive upper bound (ISO8601)"),
) -> ApiResponse:
    filters = build_transaction_filter(
        tx_type.value if tx_type else None, start_date, end_date
    )
    data = await _service.list_transactions(db, str(account_id), str(current_user.id), filters)
    return _wrap(request, [t.model_dump() for t in data])


@router.get("/{account_id}/balance")
async def get_balance(
    account_id: UUID,
    current_user: CurrentUser,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, str(account_id), str(current_user.id))
    return _wrap(request, data.model_dump())
