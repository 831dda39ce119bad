"""Comment service layer: threaded task comments and reactions."""

from collections.abc import Callable
from typing import Any, Optional
from uuid import UUID

import structlog

from core.exceptions import (
    CommentNotFoundError,
    InsufficientPermissionsError,
    ParentCommentNotFoundError,
    ProjectNotFoundError,
    TaskNotFoundError,
)
from domain.entities.activity import Actions, EntityTypes, RequestContext
from domain.entities.comment import Comment
from domain.entities.project import Project
from domain.entities.task import Task
from domain.repositories.broadcaster import IRealtimeBroadcaster, RealtimeEvents
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import require_access
from domain.services.activity_service import ActivityService

logger = structlog.get_logger()


class CommentService:
    """Service layer for Comment business logic.

    Any project member may comment and react; only the author may edit or
    delete a comment. Deletion is soft.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        activity_service: Optional[ActivityService] = None,
        broadcaster: Optional[IRealtimeBroadcaster] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._activity = activity_service
        self._broadcaster = broadcaster

    async def create(
        self,
        task_id: UUID,
        user_id: UUID,
        content: str,
        parent_id: UUID | None = None,
        mentions: list[UUID] | None = None,
        context: RequestContext | None = None,
    ) -> Comment:
        """Comment on a task, optionally as a reply."""
        async with self._uow_factory() as uow:
            task, project = await self._load_task(uow, task_id, user_id)

            if parent_id is not None:
                parent = await uow.comments.get(parent_id)
                if not parent or parent.is_deleted or parent.task_id != task_id:
                    raise ParentCommentNotFoundError(str(parent_id))
                # Threads are one level deep: a reply to a reply joins the root
                parent_id = parent.parent_id or parent.id

            comment = Comment(
                task_id=task_id,
                author_id=user_id,
                content=content,
                parent_id=parent_id,
                mentions=self._member_mentions(project, mentions),
            )
            created = await uow.comments.create(comment)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project.id,
                    actor_id=user_id,
                    action=Actions.COMMENT_CREATED,
                    entity_type=EntityTypes.COMMENT,
                    entity_id=created.id,
                    metadata={
                        "task_id": str(task_id),
                        "parent_id": str(parent_id) if parent_id else None,
                    },
                    context=context,
                )

            await uow.commit()

        logger.info("comment_created", comment_id=str(created.id), task_id=str(task_id))
        self._publish(RealtimeEvents.COMMENT_CREATED, {"comment": created}, project.id)
        return created

    async def list_for_task(
        self, task_id: UUID, user_id: UUID, page: int = 1, limit: int = 20
    ) -> tuple[list[Comment], int]:
        """Top-level comments of a task, oldest first. Returns (page, total)."""
        async with self._uow_factory() as uow:
            await self._load_task(uow, task_id, user_id)
            return await uow.comments.list_for_task(  # type: ignore[no-any-return]
                task_id, offset=(page - 1) * limit, limit=limit
            )

    async def list_replies(
        self, comment_id: UUID, user_id: UUID, page: int = 1, limit: int = 20
    ) -> tuple[list[Comment], int]:
        """Replies to a comment, oldest first. Returns (page, total)."""
        async with self._uow_factory() as uow:
            await self._load_comment(uow, comment_id, user_id)
            return await uow.comments.list_replies(  # type: ignore[no-any-return]
                comment_id, offset=(page - 1) * limit, limit=limit
            )

    async def update(
        self,
        comment_id: UUID,
        user_id: UUID,
        content: str,
        mentions: list[UUID] | None = None,
        context: RequestContext | None = None,
    ) -> Comment:
        """Edit a comment. Author only."""
        async with self._uow_factory() as uow:
            comment, project = await self._load_comment(uow, comment_id, user_id)
            self._require_author(comment, user_id)

            old_content = comment.content
            comment.edit(content)
            if mentions is not None:
                comment.mentions = self._member_mentions(project, mentions)
            updated = await uow.comments.update(comment)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project.id,
                    actor_id=user_id,
                    action=Actions.COMMENT_UPDATED,
                    entity_type=EntityTypes.COMMENT,
                    entity_id=comment_id,
                    changes=ActivityService.compute_diff(
                        {"content": old_content}, {"content": updated.content}
                    ),
                    metadata={"task_id": str(comment.task_id)},
                    context=context,
                )

            await uow.commit()

        self._publish(RealtimeEvents.COMMENT_UPDATED, {"comment": updated}, project.id)
        return updated

    async def delete(
        self, comment_id: UUID, user_id: UUID, context: RequestContext | None = None
    ) -> None:
        """Soft-delete a comment. Author only."""
        async with self._uow_factory() as uow:
            comment, project = await self._load_comment(uow, comment_id, user_id)
            self._require_author(comment, user_id)

            comment.soft_delete()
            await uow.comments.update(comment)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project.id,
                    actor_id=user_id,
                    action=Actions.COMMENT_DELETED,
                    entity_type=EntityTypes.COMMENT,
                    entity_id=comment_id,
                    metadata={"task_id": str(comment.task_id)},
                    context=context,
                )

            await uow.commit()

        self._publish(
            RealtimeEvents.COMMENT_DELETED,
            {"comment_id": comment_id, "task_id": comment.task_id},
            project.id,
        )

    async def add_reaction(
        self,
        comment_id: UUID,
        user_id: UUID,
        emoji: str,
        context: RequestContext | None = None,
    ) -> Comment:
        """React to a comment. Reacting twice with the same emoji is a no-op."""
        return await self._react(comment_id, user_id, emoji, True, context)

    async def remove_reaction(
        self,
        comment_id: UUID,
        user_id: UUID,
        emoji: str,
        context: RequestContext | None = None,
    ) -> Comment:
        return await self._react(comment_id, user_id, emoji, False, context)

    # --- Internal helpers ---

    async def _react(
        self,
        comment_id: UUID,
        user_id: UUID,
        emoji: str,
        adding: bool,
        context: RequestContext | None,
    ) -> Comment:
        async with self._uow_factory() as uow:
            comment, project = await self._load_comment(uow, comment_id, user_id)

            if adding:
                changed = comment.add_reaction(emoji, user_id)
            else:
                changed = comment.remove_reaction(emoji, user_id)
            if not changed:
                return comment

            updated = await uow.comments.update(comment)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project.id,
                    actor_id=user_id,
                    action=(
                        Actions.COMMENT_REACTION_ADDED
                        if adding
                        else Actions.COMMENT_REACTION_REMOVED
                    ),
                    entity_type=EntityTypes.COMMENT,
                    entity_id=comment_id,
                    metadata={"emoji": emoji},
                    context=context,
                )

            await uow.commit()

        self._publish(
            RealtimeEvents.COMMENT_REACTION,
            {"comment_id": comment_id, "reactions": updated.reactions},
            project.id,
        )
        return updated

    @staticmethod
    def _member_mentions(project: Project, mentions: list[UUID] | None) -> list[UUID]:
        """Keep mentions of project members only, without duplicates."""
        result: list[UUID] = []
        for user_id in mentions or []:
            if project.is_member(user_id) and user_id not in result:
                result.append(user_id)
        return result

    @staticmethod
    def _require_author(comment: Comment, user_id: UUID) -> None:
        if comment.author_id != user_id:
            raise InsufficientPermissionsError("author")

    @staticmethod
    async def _load_task(
        uow: IUnitOfWork, task_id: UUID, user_id: UUID
    ) -> tuple[Task, Project]:
        task = await uow.tasks.get(task_id)
        if not task:
            raise TaskNotFoundError(str(task_id))
        project = await uow.projects.get(task.project_id)
        if not project:
            raise ProjectNotFoundError(str(task.project_id))
        require_access(project, user_id)
        return task, project

    async def _load_comment(
        self, uow: IUnitOfWork, comment_id: UUID, user_id: UUID
    ) -> tuple[Comment, Project]:
        comment = await uow.comments.get(comment_id)
        if not comment or comment.is_deleted:
            raise CommentNotFoundError(str(comment_id))
        _, project = await self._load_task(uow, comment.task_id, user_id)
        return comment, project

    def _publish(self, event: str, data: dict[str, Any], project_id: UUID) -> None:
        if self._broadcaster:
            self._broadcaster.publish(event, data, project_id=project_id)
