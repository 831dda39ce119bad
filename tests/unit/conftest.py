"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from domain.entities.project import Project, ProjectRole
from domain.entities.task import Task
from domain.services.activity_service import ActivityService


class FakeUnitOfWork:
    """Fake Unit of Work with a mock per repository."""

    def __init__(self) -> None:
        self.users = AsyncMock()
        self.projects = AsyncMock()
        self.tasks = AsyncMock()
        self.comments = AsyncMock()
        self.activities = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


def echo(mock: AsyncMock) -> None:
    """Make a repository write method return the entity it was given."""
    mock.side_effect = lambda entity, *args, **kwargs: entity


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def user_id() -> UUID:
    """The acting user (owner of ``project``)."""
    return uuid4()


@pytest.fixture
def actor_id() -> UUID:
    """A random actor ID (distinct from user_id)."""
    return uuid4()


@pytest.fixture
def project(user_id: UUID) -> Project:
    """A project owned by ``user_id``."""
    p = Project(name="Board", owner_id=user_id)
    p.add_member(user_id, ProjectRole.OWNER)
    return p


@pytest.fixture
def task(project: Project, user_id: UUID) -> Task:
    return Task(project_id=project.id, created_by=user_id, title="Write docs", position=3)


@pytest.fixture
def mock_activity_service() -> AsyncMock:
    """A mock ActivityService with a log() method and the real compute_diff."""
    mock = AsyncMock()
    mock.log = AsyncMock()
    mock.compute_diff = ActivityService.compute_diff
    return mock


@pytest.fixture
def mock_broadcaster() -> MagicMock:
    return MagicMock()
