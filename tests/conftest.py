"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any, Iterable
from uuid import UUID

# Disable rate limiting and real-time delivery in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REALTIME_ENABLED"] = "false"

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities.user import ADMIN_ROLE, MEMBER_ROLE, User
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.password import PasswordHasher
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "Str0ngPassw0rd"


class InMemoryTokenStore:
    """Refresh-token store backed by a set (TTL is ignored)."""

    def __init__(self) -> None:
        self.live: set[tuple[UUID, str]] = set()

    async def save(self, user_id: UUID, jti: str, ttl_seconds: int) -> None:
        self.live.add((user_id, jti))

    async def exists(self, user_id: UUID, jti: str) -> bool:
        return (user_id, jti) in self.live

    async def revoke(self, user_id: UUID, jti: str) -> None:
        self.live.discard((user_id, jti))

    async def revoke_all(self, user_id: UUID) -> int:
        mine = {entry for entry in self.live if entry[0] == user_id}
        self.live -= mine
        return len(mine)


class RecordingBroadcaster:
    """Captures published events instead of emitting them."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []
        self.evictions: list[tuple[UUID, list[UUID] | None]] = []

    def publish(
        self,
        event: str,
        data: dict[str, Any],
        project_id: UUID | None = None,
        user_ids: Iterable[UUID] = (),
    ) -> None:
        self.events.append(
            {"event": event, "data": data, "project_id": project_id, "user_ids": list(user_ids)}
        )

    def evict(self, project_id: UUID, user_ids: Iterable[UUID] | None = None) -> None:
        self.evictions.append((project_id, list(user_ids) if user_ids is not None else None))

    def names(self) -> list[str]:
        return [e["event"] for e in self.events]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(secret_key="test-secret-key", algorithm="HS256", expire_minutes=30)


@pytest.fixture
def password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def make_user(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    password_hasher: PasswordHasher,
) -> Callable[..., Awaitable[User]]:
    """Insert a user directly through the repositories."""
    counter = {"n": 0}

    async def _make(
        name: str | None = None,
        email: str | None = None,
        admin: bool = False,
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"user{n}@example.com",
            name=name or f"User {n}",
            password_hash=password_hasher.hash(TEST_PASSWORD),
            roles=[MEMBER_ROLE, ADMIN_ROLE] if admin else [MEMBER_ROLE],
            is_active=is_active,
        )
        async with uow_factory() as uow:
            created = await uow.users.create(user)
            await uow.commit()
        return created

    return _make


@pytest.fixture
def headers_for(auth_provider: JWTAuthProvider) -> Callable[[User], dict[str, str]]:
    """Authorization headers carrying an access token for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = auth_provider.create_token(
            TokenUser(id=user.id, email=user.email, name=user.name, roles=list(user.roles))
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def app(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    auth_provider: JWTAuthProvider,
    password_hasher: PasswordHasher,
    token_store: InMemoryTokenStore,
    broadcaster: RecordingBroadcaster,
) -> FastAPI:
    """Application wired to the test database and in-memory collaborators."""
    from api.dependencies.auth import get_auth_provider
    from api.routes.health import get_health_checks
    from api.v1.dependencies import (
        get_activity_service,
        get_auth_service,
        get_comment_service,
        get_project_service,
        get_task_service,
        get_user_service,
    )
    from domain.services.activity_service import ActivityService
    from domain.services.auth_service import AuthService
    from domain.services.comment_service import CommentService
    from domain.services.project_service import ProjectService
    from domain.services.task_service import TaskService
    from domain.services.user_service import UserService
    from main import create_app

    app = create_app()

    activity = ActivityService(uow_factory)
    services: dict[Callable[..., Any], Any] = {
        get_auth_provider: auth_provider,
        get_activity_service: activity,
        get_auth_service: AuthService(
            uow_factory,
            auth_provider=auth_provider,
            token_store=token_store,
            password_hasher=password_hasher,
        ),
        get_user_service: UserService(uow_factory, token_store=token_store),
        get_project_service: ProjectService(
            uow_factory, activity_service=activity, broadcaster=broadcaster
        ),
        get_task_service: TaskService(
            uow_factory, activity_service=activity, broadcaster=broadcaster
        ),
        get_comment_service: CommentService(
            uow_factory, activity_service=activity, broadcaster=broadcaster
        ),
    }
    for dependency, instance in services.items():
        # Bind via a closure, not a default argument: FastAPI would treat a
        # defaulted parameter as a query field and deep-copy the instance.
        app.dependency_overrides[dependency] = (lambda bound: lambda: bound)(instance)

    async def _ok() -> None:
        return None

    app.dependency_overrides[get_health_checks] = lambda: {"database": _ok, "redis": _ok}
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async test client against the wired app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
