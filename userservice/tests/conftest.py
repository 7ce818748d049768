"""
Shared fixtures: an in-memory database per test and a client bound to it.
"""
from datetime import date
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from userservice.main import app
from userservice.base_service import Base, get_db_session
from userservice.auth.models import User, UserStatus
from userservice.auth.jwt import create_access_token

SOME_BIRTHDAY = date(2022, 1, 2)
ANOTHER_BIRTHDAY = date(2022, 1, 3)
EXISTING_PASSWORD = "hunter2"


@pytest.fixture
def existing_password():
    return EXISTING_PASSWORD


@pytest.fixture
def some_birthday():
    return SOME_BIRTHDAY


@pytest.fixture
def another_birthday():
    return ANOTHER_BIRTHDAY


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(base_url="http://test", transport=transport) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def existing_user(session_factory) -> User:
    async with session_factory() as session:
        user = User(
            name="Firstname Lastname",
            username="firstname@lastname",
            password_hash=User.get_password_hash(EXISTING_PASSWORD),
            token="token",
            birthday=SOME_BIRTHDAY,
            status=UserStatus.OFFLINE,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture
def auth_headers(existing_user):
    token = create_access_token(existing_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def fetch_user(session_factory):
    """Read a user straight from the database, bypassing the API."""
    async def _fetch(user_id: int) -> User:
        async with session_factory() as session:
            return await session.get(User, user_id)
    return _fetch
