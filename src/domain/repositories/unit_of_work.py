"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.activity_repository import IActivityRepository
from domain.repositories.comment_repository import ICommentRepository
from domain.repositories.project_repository import IProjectRepository
from domain.repositories.task_repository import ITaskRepository
from domain.repositories.user_repository import IUserRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    users: IUserRepository
    projects: IProjectRepository
    tasks: ITaskRepository
    comments: ICommentRepository
    activities: IActivityRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
