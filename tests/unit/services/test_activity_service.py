"""Unit tests for ActivityService."""

from uuid import UUID, uuid4

import pytest

from core.exceptions import NotAMemberError, ProjectNotFoundError
from domain.entities.activity import ActivityLog, RequestContext
from domain.entities.project import Project
from domain.services.activity_service import ActivityService
from tests.unit.conftest import FakeUnitOfWork, echo


@pytest.fixture
def service(uow: FakeUnitOfWork) -> ActivityService:
    return ActivityService(lambda: uow)


# --- log ---


class TestLog:
    async def test_creates_activity_entry(
        self, service: ActivityService, uow: FakeUnitOfWork, project: Project, user_id: UUID
    ):
        echo(uow.activities.create)
        entity_id = uuid4()

        result = await service.log(
            uow=uow,
            project_id=project.id,
            actor_id=user_id,
            action="task.created",
            entity_type="task",
            entity_id=entity_id,
        )

        assert result.action == "task.created"
        assert result.entity_id == entity_id
        uow.activities.create.assert_called_once()

    async def test_records_request_context(
        self, service: ActivityService, uow: FakeUnitOfWork, project: Project, user_id: UUID
    ):
        echo(uow.activities.create)

        result = await service.log(
            uow=uow,
            project_id=project.id,
            actor_id=user_id,
            action="project.updated",
            entity_type="project",
            entity_id=project.id,
            changes={"name": {"old": "A", "new": "B"}},
            context=RequestContext(ip_address="10.0.0.1", user_agent="pytest"),
        )

        assert result.ip_address == "10.0.0.1"
        assert result.user_agent == "pytest"
        assert result.changes == {"name": {"old": "A", "new": "B"}}

    async def test_does_not_commit(
        self, service: ActivityService, uow: FakeUnitOfWork, project: Project, user_id: UUID
    ):
        echo(uow.activities.create)

        await service.log(
            uow=uow,
            project_id=project.id,
            actor_id=user_id,
            action="task.deleted",
            entity_type="task",
            entity_id=uuid4(),
        )

        assert not uow.committed


# --- get_project_activity ---


class TestGetProjectActivity:
    async def test_returns_page_and_total(
        self, service: ActivityService, uow: FakeUnitOfWork, project: Project, user_id: UUID
    ):
        entry = ActivityLog(
            project_id=project.id,
            actor_id=user_id,
            action="task.created",
            entity_type="task",
            entity_id=uuid4(),
        )
        uow.projects.get.return_value = project
        uow.activities.list_for_project.return_value = ([entry], 7)

        items, total = await service.get_project_activity(project.id, user_id, page=2, limit=5)

        assert items == [entry]
        assert total == 7
        uow.activities.list_for_project.assert_called_once_with(project.id, offset=5, limit=5)

    async def test_non_member_is_rejected(
        self, service: ActivityService, uow: FakeUnitOfWork, project: Project, actor_id: UUID
    ):
        uow.projects.get.return_value = project

        with pytest.raises(NotAMemberError):
            await service.get_project_activity(project.id, actor_id)

    async def test_missing_project(self, service: ActivityService, uow: FakeUnitOfWork):
        uow.projects.get.return_value = None

        with pytest.raises(ProjectNotFoundError):
            await service.get_project_activity(uuid4(), uuid4())


# --- get_entity_history ---


class TestGetEntityHistory:
    async def test_filters_out_other_projects(
        self, service: ActivityService, uow: FakeUnitOfWork, project: Project, user_id: UUID
    ):
        entity_id = uuid4()
        mine = ActivityLog(
            project_id=project.id,
            actor_id=user_id,
            action="task.updated",
            entity_type="task",
            entity_id=entity_id,
        )
        foreign = ActivityLog(
            project_id=uuid4(),
            actor_id=user_id,
            action="task.updated",
            entity_type="task",
            entity_id=entity_id,
        )
        uow.projects.get.return_value = project
        uow.activities.list_for_entity.return_value = [mine, foreign]

        result = await service.get_entity_history(project.id, user_id, "task", entity_id)

        assert result == [mine]
        uow.activities.list_for_entity.assert_called_once_with("task", entity_id, limit=50)


# --- compute_diff ---


class TestComputeDiff:
    def test_no_changes(self):
        assert ActivityService.compute_diff({"a": 1}, {"a": 1}) == {}

    def test_changed_field(self):
        diff = ActivityService.compute_diff({"title": "Old"}, {"title": "New"})

        assert diff == {"title": {"old": "Old", "new": "New"}}

    def test_added_and_removed_keys(self):
        diff = ActivityService.compute_diff({"gone": 1}, {"added": 2})

        assert diff == {
            "gone": {"old": 1, "new": None},
            "added": {"old": None, "new": 2},
        }
