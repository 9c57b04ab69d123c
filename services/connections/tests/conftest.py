import itertools
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import timedelta
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shared.auth.config import get_auth_settings
from shared.database.postgres import Base, session_factory_for
from shared.events.schemas import LifecycleEvent
from app.accounts.constants import AccountStatus, Gender
from app.accounts.models import Account
from app.database import set_session_factory
from app.main import create_app
from app.notifications.dependencies import get_event_emitter, get_notification_cache
from app.notifications.outbox import EventOutbox
from app.rate_limit import limiter
from app.timeutils import utcnow

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ── Test doubles for the outbound collaborators ───────────────────────────────

class RecordingEmitter:
    def __init__(self) -> None:
        self.sent: list[tuple[uuid.UUID, LifecycleEvent]] = []

    async def emit_to_account(self, account_id: uuid.UUID, event: LifecycleEvent) -> None:
        self.sent.append((account_id, event))

    def types_for(self, account_id: uuid.UUID) -> list[str]:
        return [e.event_type.value for to, e in self.sent if to == account_id]


class MemoryNotificationCache:
    def __init__(self) -> None:
        self.store: dict[uuid.UUID, list[dict[str, Any]]] = {}
        self.invalidated: list[uuid.UUID] = []

    async def invalidate(self, account_id: uuid.UUID) -> None:
        self.invalidated.append(account_id)
        self.store.pop(account_id, None)

    async def get_incoming(self, account_id: uuid.UUID) -> list[dict[str, Any]] | None:
        return self.store.get(account_id)

    async def set_incoming(self, account_id: uuid.UUID, items: list[dict[str, Any]]) -> None:
        self.store[account_id] = items


# ── Database ──────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy own BEGIN so SAVEPOINTs (begin_nested) work on SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def _no_driver_begin(dbapi_connection, _record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return session_factory_for(engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


def _account_fields(n: int, overrides: dict[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": f"Account {n}",
        "contact": f"+9190000{n:05d}",
        "email": f"account{n}@example.com",
        "id_number": f"ID-{n:05d}",
        "gender": Gender.MALE,
        "status": AccountStatus.APPROVED,
        "age": 25 + n % 10,
        "location": "Kochi",
        "education": "B.Tech",
        "occupation": "Engineer",
        "about": f"About account {n}",
        "profile_photo": f"https://img.example.com/{n}.jpg",
        "gallery_images": [],
        "languages_known": ["Malayalam"],
        "is_public": False,
    }
    data.update(overrides)
    return data


_counter = itertools.count(1)


@pytest_asyncio.fixture
async def make_account(db_session: AsyncSession) -> Callable[..., Awaitable[Account]]:
    """Accounts attached to ``db_session`` (service-level tests)."""

    async def _make(**overrides: Any) -> Account:
        account = Account(**_account_fields(next(_counter), overrides))
        db_session.add(account)
        await db_session.flush()
        return account

    return _make


@pytest_asyncio.fixture
async def create_account(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Account]]:
    """Committed accounts, detached from any session (router-level tests)."""

    async def _create(**overrides: Any) -> Account:
        async with session_factory() as session:
            account = Account(**_account_fields(next(_counter), overrides))
            session.add(account)
            await session.commit()
            return account

    return _create


@pytest.fixture
def outbox() -> EventOutbox:
    return EventOutbox()


# ── HTTP ──────────────────────────────────────────────────────────────────────

@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def cache() -> MemoryNotificationCache:
    return MemoryNotificationCache()


@pytest_asyncio.fixture
async def api(
    session_factory: async_sessionmaker[AsyncSession],
    emitter: RecordingEmitter,
    cache: MemoryNotificationCache,
) -> AsyncGenerator[AsyncClient, None]:
    set_session_factory(session_factory)
    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_event_emitter] = lambda: emitter
    app.dependency_overrides[get_notification_cache] = lambda: cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers() -> Callable[[Account], dict[str, str]]:
    settings = get_auth_settings()

    def _headers(account: Account) -> dict[str, str]:
        token = jwt.encode(
            {
                "sub": str(account.id),
                "iss": settings.issuer,
                "aud": settings.audience,
                "exp": utcnow() + timedelta(minutes=5),
                "roles": ["user"],
            },
            settings.secret,
            algorithm=settings.algorithm,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
