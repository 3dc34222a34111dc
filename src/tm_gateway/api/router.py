"""Users API router: register, login.

All endpoints return ApiResponse. request_id is read from
request.state (injected by RequestLogMiddleware).
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.database import get_db_session
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.auth.dependencies import get_jwt_handler
from src.tm_gateway.auth.jwt_handler import JwtHandler
from src.tm_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from src.tm_gateway.user.service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


def get_user_service(jwt_handler: JwtHandler = Depends(get_jwt_handler)) -> UserService:
    return UserService(jwt_handler)


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="User registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
) -> ApiResponse:
    async with db.begin():
        user = await service.register(body.email, body.password, db)

    data = RegisterResponse(
        user_id=str(user.id),
        username=user.username,
        email=user.email,
        created_at=user.created_at.isoformat(),
    )
    resp = success_response(data.model_dump(), message="User registered successfully")
    resp.request_id = _get_request_id(request)
    return resp


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User login",
)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
    jwt_handler: JwtHandler = Depends(get_jwt_handler),
) -> ApiResponse:
    _, access_token = await service.login(body.username, body.password, db)

    data = LoginResponse(
        access_token=access_token,
        token_type="Bearer",
        expires_in=jwt_handler.expires_in,
    )
    resp = success_response(data.model_dump(), message="Login successful")
    resp.request_id = _get_request_id(request)
    return resp
