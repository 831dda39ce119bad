"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from api.dependencies.auth import get_auth_provider
from core.config import settings
from domain.repositories.broadcaster import IRealtimeBroadcaster
from domain.repositories.token_store import ITokenStore
from domain.services.activity_service import ActivityService
from domain.services.auth_service import AuthService
from domain.services.comment_service import CommentService
from domain.services.project_service import ProjectService
from domain.services.task_service import TaskService
from domain.services.user_service import UserService
from infrastructure.auth.password import PasswordHasher
from infrastructure.cache.redis_client import get_redis
from infrastructure.cache.redis_token_store import RedisTokenStore
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.realtime.broadcaster import SocketIOBroadcaster
from infrastructure.realtime.server import get_sio


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_broadcaster() -> IRealtimeBroadcaster | None:
    """Socket.IO broadcaster, or None when real-time delivery is disabled."""
    if not settings.realtime_enabled:
        return None
    return SocketIOBroadcaster(get_sio())


@lru_cache
def get_token_store() -> ITokenStore:
    """Get the Redis refresh-token store."""
    return RedisTokenStore(get_redis())


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


@lru_cache
def get_activity_service() -> ActivityService:
    """Get Activity service instance."""
    return ActivityService(get_uow_factory())


@lru_cache
def get_auth_service() -> AuthService:
    """Get Auth service instance."""
    return AuthService(
        get_uow_factory(),
        auth_provider=get_auth_provider(),
        token_store=get_token_store(),
        password_hasher=get_password_hasher(),
    )


@lru_cache
def get_user_service() -> UserService:
    """Get User service instance."""
    return UserService(get_uow_factory(), token_store=get_token_store())


@lru_cache
def get_project_service() -> ProjectService:
    """Get Project service instance."""
    return ProjectService(
        get_uow_factory(),
        activity_service=get_activity_service(),
        broadcaster=get_broadcaster(),
    )


@lru_cache
def get_task_service() -> TaskService:
    """Get Task service instance."""
    return TaskService(
        get_uow_factory(),
        activity_service=get_activity_service(),
        broadcaster=get_broadcaster(),
        renormalize_positions=settings.task_position_renormalize,
    )


@lru_cache
def get_comment_service() -> CommentService:
    """Get Comment service instance."""
    return CommentService(
        get_uow_factory(),
        activity_service=get_activity_service(),
        broadcaster=get_broadcaster(),
    )
