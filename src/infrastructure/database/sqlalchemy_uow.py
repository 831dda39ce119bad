"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.repositories.sqlalchemy_activity_repo import SQLAlchemyActivityRepository
from infrastructure.database.repositories.sqlalchemy_comment_repo import SQLAlchemyCommentRepository
from infrastructure.database.repositories.sqlalchemy_project_repo import SQLAlchemyProjectRepository
from infrastructure.database.repositories.sqlalchemy_task_repo import SQLAlchemyTaskRepository
from infrastructure.database.repositories.sqlalchemy_user_repo import SQLAlchemyUserRepository


class SQLAlchemyUnitOfWork:
    """Unit of Work over a single AsyncSession.

    Repositories share the session, so everything done inside one
    ``async with`` block (including activity entries) commits or rolls
    back together.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    def _require_session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._session

    @property
    def users(self) -> SQLAlchemyUserRepository:
        return SQLAlchemyUserRepository(self._require_session())

    @property
    def projects(self) -> SQLAlchemyProjectRepository:
        return SQLAlchemyProjectRepository(self._require_session())

    @property
    def tasks(self) -> SQLAlchemyTaskRepository:
        return SQLAlchemyTaskRepository(self._require_session())

    @property
    def comments(self) -> SQLAlchemyCommentRepository:
        return SQLAlchemyCommentRepository(self._require_session())

    @property
    def activities(self) -> SQLAlchemyActivityRepository:
        return SQLAlchemyActivityRepository(self._require_session())

    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self._session = self._session_factory()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Roll back on error and always close the session."""
        if self._session:
            if exc_type:
                await self.rollback()
            await self._session.close()
            self._session = None
