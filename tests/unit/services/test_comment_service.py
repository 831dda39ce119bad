"""Unit tests for CommentService."""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    CommentNotFoundError,
    InsufficientPermissionsError,
    NotAMemberError,
    ParentCommentNotFoundError,
    TaskNotFoundError,
)
from domain.entities.activity import Actions
from domain.entities.comment import Comment
from domain.entities.project import Project, ProjectRole
from domain.entities.task import Task
from domain.repositories.broadcaster import RealtimeEvents
from domain.services.comment_service import CommentService
from tests.unit.conftest import FakeUnitOfWork, echo


@pytest.fixture
def service(
    uow: FakeUnitOfWork, mock_activity_service: AsyncMock, mock_broadcaster: MagicMock
) -> CommentService:
    return CommentService(
        lambda: uow, activity_service=mock_activity_service, broadcaster=mock_broadcaster
    )


@pytest.fixture
def comment(task: Task, user_id: UUID) -> Comment:
    return Comment(task_id=task.id, author_id=user_id, content="First!")


@pytest.fixture
def wired(uow: FakeUnitOfWork, project: Project, task: Task, comment: Comment) -> Comment:
    uow.tasks.get.return_value = task
    uow.projects.get.return_value = project
    uow.comments.get.return_value = comment
    echo(uow.comments.create)
    echo(uow.comments.update)
    return comment


class TestCreate:
    async def test_top_level_comment(
        self,
        service: CommentService,
        uow: FakeUnitOfWork,
        wired: Comment,
        task: Task,
        user_id: UUID,
        mock_broadcaster: MagicMock,
    ):
        created = await service.create(task.id, user_id, "Looks good")

        assert created.parent_id is None
        assert created.author_id == user_id
        assert uow.committed
        assert mock_broadcaster.publish.call_args.args[0] == RealtimeEvents.COMMENT_CREATED

    async def test_viewer_can_comment(
        self, service: CommentService, wired: Comment, project: Project, task: Task,
        actor_id: UUID,
    ):
        project.add_member(actor_id, ProjectRole.VIEWER)

        created = await service.create(task.id, actor_id, "Read-only, but chatty")

        assert created.author_id == actor_id

    async def test_reply_to_reply_attaches_to_root(
        self, service: CommentService, uow: FakeUnitOfWork, wired: Comment, task: Task,
        user_id: UUID,
    ):
        reply = Comment(task_id=task.id, author_id=user_id, content="re", parent_id=wired.id)
        uow.comments.get.return_value = reply

        created = await service.create(task.id, user_id, "re: re", parent_id=reply.id)

        assert created.parent_id == wired.id

    async def test_parent_on_other_task(
        self, service: CommentService, uow: FakeUnitOfWork, wired: Comment, task: Task,
        user_id: UUID,
    ):
        uow.comments.get.return_value = Comment(task_id=uuid4(), author_id=user_id, content="x")

        with pytest.raises(ParentCommentNotFoundError):
            await service.create(task.id, user_id, "reply", parent_id=uuid4())

    async def test_deleted_parent(
        self, service: CommentService, wired: Comment, task: Task, user_id: UUID
    ):
        wired.soft_delete()

        with pytest.raises(ParentCommentNotFoundError):
            await service.create(task.id, user_id, "reply", parent_id=wired.id)

    async def test_mentions_keep_members_only(
        self, service: CommentService, wired: Comment, project: Project, task: Task,
        user_id: UUID, actor_id: UUID,
    ):
        project.add_member(actor_id, ProjectRole.MEMBER)
        outsider = uuid4()

        created = await service.create(
            task.id, user_id, "@all", mentions=[actor_id, outsider, actor_id]
        )

        assert created.mentions == [actor_id]

    async def test_missing_task(
        self, service: CommentService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.tasks.get.return_value = None

        with pytest.raises(TaskNotFoundError):
            await service.create(uuid4(), user_id, "hello")

    async def test_non_member(
        self, service: CommentService, wired: Comment, task: Task, actor_id: UUID
    ):
        with pytest.raises(NotAMemberError):
            await service.create(task.id, actor_id, "hello")


class TestList:
    async def test_list_for_task_paginates(
        self, service: CommentService, uow: FakeUnitOfWork, wired: Comment, task: Task,
        user_id: UUID,
    ):
        uow.comments.list_for_task.return_value = ([wired], 1)

        items, total = await service.list_for_task(task.id, user_id, page=2, limit=10)

        assert items == [wired] and total == 1
        uow.comments.list_for_task.assert_called_once_with(task.id, offset=10, limit=10)

    async def test_replies_of_deleted_comment(
        self, service: CommentService, wired: Comment, user_id: UUID
    ):
        wired.soft_delete()

        with pytest.raises(CommentNotFoundError):
            await service.list_replies(wired.id, user_id)


class TestUpdate:
    async def test_author_edits(
        self, service: CommentService, wired: Comment, user_id: UUID,
        mock_activity_service: AsyncMock,
    ):
        updated = await service.update(wired.id, user_id, "Edited")

        assert updated.is_edited
        kwargs = mock_activity_service.log.call_args.kwargs
        assert kwargs["action"] == Actions.COMMENT_UPDATED
        assert kwargs["changes"] == {"content": {"old": "First!", "new": "Edited"}}

    async def test_project_owner_is_not_author(
        self, service: CommentService, wired: Comment, project: Project, actor_id: UUID
    ):
        project.add_member(actor_id, ProjectRole.ADMIN)
        wired.author_id = actor_id
        owner = project.owner_id

        with pytest.raises(InsufficientPermissionsError):
            await service.update(wired.id, owner, "Hijacked")

    async def test_membership_checked_before_authorship(
        self, service: CommentService, wired: Comment, actor_id: UUID
    ):
        wired.author_id = actor_id

        with pytest.raises(NotAMemberError):
            await service.update(wired.id, actor_id, "Left the project")


class TestDelete:
    async def test_soft_deletes(
        self, service: CommentService, uow: FakeUnitOfWork, wired: Comment, user_id: UUID,
        mock_broadcaster: MagicMock,
    ):
        await service.delete(wired.id, user_id)

        assert wired.is_deleted
        uow.comments.update.assert_called_once_with(wired)
        assert mock_broadcaster.publish.call_args.args[0] == RealtimeEvents.COMMENT_DELETED

    async def test_deleting_twice_is_not_found(
        self, service: CommentService, wired: Comment, user_id: UUID
    ):
        wired.soft_delete()

        with pytest.raises(CommentNotFoundError):
            await service.delete(wired.id, user_id)


class TestReactions:
    async def test_add_reaction(
        self, service: CommentService, wired: Comment, project: Project, actor_id: UUID,
        mock_broadcaster: MagicMock,
    ):
        project.add_member(actor_id, ProjectRole.VIEWER)

        updated = await service.add_reaction(wired.id, actor_id, "🚀")

        assert updated.reactions == {"🚀": [actor_id]}
        event, data = mock_broadcaster.publish.call_args.args
        assert event == RealtimeEvents.COMMENT_REACTION
        assert data["reactions"] == {"🚀": [actor_id]}

    async def test_duplicate_reaction_is_noop(
        self, service: CommentService, uow: FakeUnitOfWork, wired: Comment, user_id: UUID,
        mock_activity_service: AsyncMock,
    ):
        wired.add_reaction("👍", user_id)

        await service.add_reaction(wired.id, user_id, "👍")

        uow.comments.update.assert_not_called()
        mock_activity_service.log.assert_not_called()
        assert not uow.committed

    async def test_remove_reaction(
        self, service: CommentService, wired: Comment, user_id: UUID,
        mock_activity_service: AsyncMock,
    ):
        wired.add_reaction("👍", user_id)

        updated = await service.remove_reaction(wired.id, user_id, "👍")

        assert updated.reactions == {}
        assert (
            mock_activity_service.log.call_args.kwargs["action"]
            == Actions.COMMENT_REACTION_REMOVED
        )
