"""Pytest fixtures for the notification backend."""

from collections.abc import AsyncIterator, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import models  # noqa: F401
from api.deps import get_db
from app import create_app
from core.config import settings
from services.notifications import NotificationDispatcher, SqlActivityTracker
from services.notifications.push import (
    PushCredentials,
    PushPlatform,
    PushProviderConfig,
    SendPushParams,
    SendPushResult,
    SubscriberInfo,
)

FIXED_NOW = datetime(2026, 3, 2, 12, 0, 30, tzinfo=timezone.utc)


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "notifications-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest_asyncio.fixture()
async def test_engine(test_database_url: str) -> AsyncIterator:
    """Create an engine on the migrated database, emptying its tables first."""
    engine = create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    async with engine.begin() as connection:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await connection.execute(table.delete())
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


class MutableClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class InMemoryRedis:
    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.expirations: dict[str, int | None] = {}

    async def set(self, name: str, value: str, ex: int | None = None) -> bool:
        self.data[name] = value.encode("utf-8")
        self.expirations[name] = ex
        return True

    async def get(self, name: str) -> bytes | None:
        return self.data.get(name)


class FakePushProvider:
    """Records every send; can be told to raise or to report failure."""

    name = "fake"

    def __init__(self) -> None:
        self.sent: list[SendPushParams] = []
        self.batched: list[tuple[str, list[SendPushParams]]] = []
        self.raise_error: Exception | None = None
        self.fail_with: str | None = None
        self.subscribers: list[SubscriberInfo] = []
        self.credentials: list[tuple[str, PushCredentials]] = []
        self.removed_credentials: list[tuple[str, PushPlatform, bool]] = []
        self.registration_error: Exception | None = None
        self._initialized = False

    async def initialize(self, config: PushProviderConfig) -> None:
        self._initialized = True

    def is_initialized(self) -> bool:
        return self._initialized

    def _result(self, message_id: str) -> SendPushResult:
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail_with is not None:
            return SendPushResult(success=False, error=self.fail_with)
        return SendPushResult(message_id=message_id, success=True)

    async def send_push(self, params: SendPushParams) -> SendPushResult:
        self.sent.append(params)
        return self._result(f"fake_{len(self.sent)}")

    async def send_batched_push(
        self,
        user_id: str,
        notifications: list[SendPushParams],
    ) -> SendPushResult:
        self.batched.append((user_id, list(notifications)))
        return self._result(f"fake_batch_{len(self.batched)}")

    async def identify_subscriber(self, info: SubscriberInfo) -> None:
        if self.registration_error is not None:
            raise self.registration_error
        self.subscribers.append(info)

    async def set_credentials(self, user_id: str, credentials: PushCredentials) -> None:
        self.credentials.append((user_id, credentials))

    async def remove_credentials(
        self,
        user_id: str,
        platform: PushPlatform,
        *,
        expo: bool = False,
    ) -> None:
        if self.registration_error is not None:
            raise self.registration_error
        self.removed_credentials.append((user_id, platform, expo))

    async def aclose(self) -> None:
        return None


@pytest.fixture()
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture()
def redis_client() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture()
def push_provider() -> FakePushProvider:
    return FakePushProvider()


@pytest.fixture()
def activity_tracker(session_maker, clock) -> SqlActivityTracker:
    return SqlActivityTracker(session_maker, clock=clock)


@pytest.fixture()
def dispatcher(session_maker, push_provider, activity_tracker, clock) -> NotificationDispatcher:
    return NotificationDispatcher(
        session_maker,
        push_provider,
        activity_tracker,
        clock=clock,
    )


@pytest.fixture()
def app(session_maker, activity_tracker, push_provider) -> Iterator[FastAPI]:
    """Create the FastAPI app with a test database dependency override."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.state.activity_tracker = activity_tracker
    application.state.push_provider = push_provider
    yield application


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
