import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers every table on Base.metadata
from app.core import redis_client
from app.core.database import Base, get_db
from app.core.security import get_password_hash
from app.models.user import User
from main import app

PASSWORD = "correct-horse-battery"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def fake_redis(monkeypatch):
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    monkeypatch.setattr(redis_client, "redis_client", client)
    yield client
    await client.aclose()


@pytest.fixture
def override_db(session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(override_db, fake_redis):
    """Build independent clients, each with its own cookie jar"""
    def _make():
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")

    return _make


@pytest.fixture
async def client(make_client):
    async with make_client() as client:
        yield client


async def create_user(db, username, email=None, is_admin=False):
    user = User(
        email=email or f"{username}@example.com",
        username=username,
        password_hash=get_password_hash(PASSWORD),
        is_admin=is_admin,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def login(client, user):
    response = await client.post(
        "/api/v1/auth/login", json={"email": user.email, "password": PASSWORD}
    )
    assert response.status_code == 200, response.text
    return response


@pytest.fixture
async def alice(db):
    return await create_user(db, "alice")


@pytest.fixture
async def bob(db):
    return await create_user(db, "bob")


@pytest.fixture
async def alice_client(make_client, alice):
    async with make_client() as client:
        await login(client, alice)
        yield client


@pytest.fixture
async def bob_client(make_client, bob):
    async with make_client() as client:
        await login(client, bob)
        yield client
