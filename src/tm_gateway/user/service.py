"""User domain service: register, login.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

import logging
import random

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.errors import EmailExistsError, InternalError, InvalidCredentialsError
from src.tm_gateway.auth.jwt_handler import JwtHandler
from src.tm_gateway.auth.password import hash_password, verify_password
from src.tm_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)

_USERNAME_ATTEMPTS = 10
_USERNAME_MAX_LEN = 64


def generate_username(email: str) -> str:
    """alice@example.com -> alice<100-999>, e.g. 'alice417'."""
    local_part = email.split("@", 1)[0][: _USERNAME_MAX_LEN - 3]
    return f"{local_part}{random.randint(100, 999)}"


class UserService:
    """Stateless apart from the token issuer; instantiate once, reuse across requests."""

    def __init__(self, jwt_handler: JwtHandler) -> None:
        self._jwt = jwt_handler

    async def register(self, email: str, password: str, db: AsyncSession) -> UserModel:
        """Create a user with a generated username.

        The caller must wrap this in `async with db.begin()`. Each insert runs
        in a savepoint: losing the UNIQUE race on email raises EmailExistsError,
        losing it on the generated username draws a new one.
        """
        if await self._email_taken(email, db):
            raise EmailExistsError()

        password_hash = hash_password(password)
        for _ in range(_USERNAME_ATTEMPTS):
            username = generate_username(email)
            if await self._username_taken(username, db):
                continue

            user = UserModel(username=username, email=email, password_hash=password_hash)
            try:
                async with db.begin_nested():
                    db.add(user)
                    await db.flush()  # Get user.id without committing
            except IntegrityError:
                if await self._email_taken(email, db):
                    raise EmailExistsError() from None
                logger.info("Username %s taken concurrently, retrying", username)
                continue

            logger.info("User registered: user_id=%s username=%s", user.id, username)
            return user

        raise InternalError(f"Could not generate a free username for {email}")

    async def login(self, username: str, password: str, db: AsyncSession) -> tuple[UserModel, str]:
        """Authenticate user and return (user, access_token).

        Note: "User not found" and "Wrong password" both raise InvalidCredentialsError
        intentionally to prevent username enumeration.
        """
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for username=%s", username)
            raise InvalidCredentialsError()

        return user, self._jwt.issue(str(user.id))

    async def _email_taken(self, email: str, db: AsyncSession) -> bool:
        result = await db.execute(select(UserModel.id).where(UserModel.email == email))
        return result.scalar_one_or_none() is not None

    async def _username_taken(self, username: str, db: AsyncSession) -> bool:
        result = await db.execute(select(UserModel.id).where(UserModel.username == username))
        return result.scalar_one_or_none() is not None
