from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from focus_tracker.config import Settings, get_settings
from focus_tracker.database import get_db
from focus_tracker.dependencies import get_current_user
from focus_tracker.main import app
from focus_tracker.models import Base
from focus_tracker.schemas.auth import AuthenticatedUser

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops: list = []

    def zremrangebyscore(self, key: str, low: float, high: float) -> None:
        self._ops.append(("zremrangebyscore", key, low, high))

    def zadd(self, key: str, mapping: dict[str, float]) -> None:
        self._ops.append(("zadd", key, mapping))

    def zcard(self, key: str) -> None:
        self._ops.append(("zcard", key))

    def expire(self, key: str, seconds: int) -> None:
        self._ops.append(("expire", key, seconds))

    async def execute(self) -> list:
        results = []
        for op, key, *args in self._ops:
            members = self._redis._zsets.setdefault(key, {})
            if op == "zremrangebyscore":
                low, high = args
                stale = [m for m, score in members.items() if low <= score <= high]
                for member in stale:
                    del members[member]
                results.append(len(stale))
            elif op == "zadd":
                members.update(args[0])
                results.append(len(args[0]))
            elif op == "zcard":
                results.append(len(members))
            else:
                self._redis._ttls[key] = args[0]
                results.append(True)
        self._ops.clear()
        return results


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._zsets: dict[str, dict[str, float]] = {}
        self._ttls: dict[str, int] = {}

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=TEST_DATABASE_URL,
        GITHUB_CLIENT_ID="test-client-id",
        GITHUB_CLIENT_SECRET="test-client-secret",
        JWT_SECRET="test-secret",
        JWT_EXPIRES_MINUTES=60,
        TIMEZONE="UTC",
    )


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="MDQ6VXNlcjEyMzQ1")


@pytest.fixture
def second_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="MDQ6VXNlcjY3ODkw")


@pytest.fixture
async def anonymous_client(db_engine, test_settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Client with the real access gate in place."""
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.state.redis = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def client(anonymous_client: AsyncClient, test_user: AuthenticatedUser) -> AsyncClient:
    async def override_get_current_user():
        return test_user

    app.dependency_overrides[get_current_user] = override_get_current_user
    return anonymous_client
