"""FastAPI dependencies: get_jwt_handler, get_current_user.

Usage in any protected router:
    from src.tm_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: UserModel = Depends(get_current_user)):
        ...
"""

import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.database import get_db_session
from src.tm_common.errors import InvalidTokenError
from src.tm_gateway.auth.jwt_handler import JwtHandler
from src.tm_gateway.user.db_models import UserModel

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def get_jwt_handler(request: Request) -> JwtHandler:
    """The JwtHandler built from Settings in create_app."""
    handler: JwtHandler = request.app.state.jwt_handler
    return handler


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    jwt_handler: JwtHandler = Depends(get_jwt_handler),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Resolve the Bearer token to the UserModel it was issued for.

    Raises HTTP 401 if the token is missing, invalid, expired, or names a
    user that no longer exists.
    """
    try:
        user_id = uuid.UUID(jwt_handler.authenticate(token))
    except (InvalidTokenError, ValueError):
        raise _CREDENTIALS_EXCEPTION from None

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    return user
