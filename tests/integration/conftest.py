"""Integration-test fixtures.

Each test gets a fresh application built by create_app() on an in-memory
SQLite database (single shared connection), with the schema created from the
ORM metadata. No PostgreSQL or Redis needed.
"""

import uuid
from collections.abc import AsyncGenerator

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings
from src.main import create_app
from src.tm_common.database import Base
from src.tm_gateway.user.db_models import UserModel


@pytest_asyncio.fixture
async def app(test_settings: Settings) -> AsyncGenerator[FastAPI, None]:
    application = create_app(test_settings)
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db(app: FastAPI) -> AsyncGenerator[AsyncSession, None]:
    """A raw session on the same database, for repository-level tests."""
    async with app.state.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user_id(db: AsyncSession) -> str:
    user = UserModel(
        id=uuid.uuid4(),
        username=f"repo_{uuid.uuid4().hex[:8]}",
        email=f"repo_{uuid.uuid4().hex[:8]}@example.com",
        password_hash="not-a-real-hash",
    )
    db.add(user)
    await db.commit()
    return str(user.id)
