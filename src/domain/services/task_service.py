"""Task service layer: task CRUD, board ordering and watchers."""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional, cast
from uuid import UUID

import structlog

from core.exceptions import (
    InvalidAssigneeError,
    ProjectNotFoundError,
    TaskNotFoundError,
    ValidationFailedError,
)
from domain.entities.activity import Actions, EntityTypes, RequestContext
from domain.entities.project import Capability, Project
from domain.entities.task import (
    Subtask,
    Task,
    TaskPriority,
    TaskStatus,
    next_position,
    renormalize_column,
)
from domain.repositories.broadcaster import IRealtimeBroadcaster, RealtimeEvents
from domain.repositories.task_repository import TaskFilters
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import load_project, require_access
from domain.services.activity_service import ActivityService

logger = structlog.get_logger()

# A single-field change is logged under a more specific action
_FIELD_ACTIONS = {
    "status": Actions.TASK_STATUS_CHANGED,
    "assignee_id": Actions.TASK_ASSIGNED,
}


def _snapshot(task: Task) -> dict[str, Any]:
    return {
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "assignee_id": str(task.assignee_id) if task.assignee_id else None,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "labels": list(task.labels),
        "estimated_hours": task.estimated_hours,
        "actual_hours": task.actual_hours,
        "subtasks": [s.to_dict() for s in task.subtasks],
    }


def _validate_labels(project: Project, labels: list[str]) -> None:
    allowed = project.settings.task_labels
    if not allowed:
        return
    unknown = [label for label in labels if label not in allowed]
    if unknown:
        raise ValidationFailedError.single(
            "labels", f"Labels not allowed in this project: {', '.join(unknown)}"
        )


def _default_status(project: Project) -> TaskStatus:
    try:
        return TaskStatus(project.settings.default_task_status)
    except ValueError:
        return TaskStatus.PENDING


class TaskService:
    """Service layer for Task business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        activity_service: Optional[ActivityService] = None,
        broadcaster: Optional[IRealtimeBroadcaster] = None,
        renormalize_positions: bool = False,
    ) -> None:
        self._uow_factory = uow_factory
        self._activity = activity_service
        self._broadcaster = broadcaster
        self._renormalize = renormalize_positions

    async def create(
        self,
        project_id: UUID,
        user_id: UUID,
        title: str,
        description: str | None = None,
        status: TaskStatus | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        assignee_id: UUID | None = None,
        due_date: datetime | None = None,
        labels: list[str] | None = None,
        estimated_hours: float | None = None,
        subtasks: list[Subtask] | None = None,
        context: RequestContext | None = None,
    ) -> Task:
        """Create a task at the end of the project's ordering. Requires membership."""
        async with self._uow_factory() as uow:
            project = await load_project(uow, project_id, user_id)

            if assignee_id is not None and not project.is_member(assignee_id):
                raise InvalidAssigneeError(str(assignee_id))
            _validate_labels(project, labels or [])

            max_position = await uow.tasks.get_max_position(project_id)
            task = Task(
                project_id=project_id,
                created_by=user_id,
                title=title,
                description=description,
                priority=priority,
                assignee_id=assignee_id,
                due_date=due_date,
                labels=list(labels or []),
                estimated_hours=estimated_hours,
                subtasks=list(subtasks or []),
                position=next_position(max_position),
            )
            task.set_status(status or _default_status(project))

            created = await uow.tasks.create(task)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project_id,
                    actor_id=user_id,
                    action=Actions.TASK_CREATED,
                    entity_type=EntityTypes.TASK,
                    entity_id=created.id,
                    metadata={"title": created.title},
                    context=context,
                )

            await uow.commit()

        logger.info(
            "task_created",
            task_id=str(created.id),
            project_id=str(project_id),
            position=created.position,
        )
        self._publish(RealtimeEvents.TASK_CREATED, {"task": created}, project_id)
        return created

    async def list_tasks(
        self,
        user_id: UUID,
        filters: TaskFilters,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Task], int]:
        """Filtered task search over the user's projects. Returns (page, total).

        When ``filters.project_ids`` is set, access to each project is
        checked; otherwise every project the user belongs to is searched.
        """
        async with self._uow_factory() as uow:
            if filters.project_ids:
                for project_id in filters.project_ids:
                    await load_project(uow, project_id, user_id)
            else:
                filters.project_ids = await uow.projects.get_ids_for_user(user_id)

            return await uow.tasks.find(  # type: ignore[no-any-return]
                filters, offset=(page - 1) * limit, limit=limit
            )

    async def get(self, task_id: UUID, user_id: UUID) -> Task:
        """Get a task. Requires membership in its project."""
        async with self._uow_factory() as uow:
            task, _ = await self._load_task(uow, task_id, user_id)
            return task

    async def get_project_tasks(
        self,
        project_id: UUID,
        user_id: UUID,
        status: TaskStatus | None = None,
        include_archived: bool = False,
    ) -> list[Task]:
        """Board view of a project, sorted by position."""
        async with self._uow_factory() as uow:
            await load_project(uow, project_id, user_id)
            return await uow.tasks.list_for_project(  # type: ignore[no-any-return]
                project_id, status=status, include_archived=include_archived
            )

    async def update(
        self,
        task_id: UUID,
        user_id: UUID,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assignee_id: object = ...,  # Sentinel to detect explicit None
        due_date: object = ...,
        labels: list[str] | None = None,
        estimated_hours: float | None = None,
        actual_hours: float | None = None,
        subtasks: list[Subtask] | None = None,
        context: RequestContext | None = None,
    ) -> Task:
        """Partially update a task. Requires can_manage_tasks.

        ``assignee_id`` and ``due_date`` accept an explicit ``None`` to clear
        them; leave them out to keep the current value. A changed assignee
        must be a project member.
        """
        async with self._uow_factory() as uow:
            task, project = await self._load_task(uow, task_id, user_id, Capability.MANAGE_TASKS)
            old_state = _snapshot(task)

            if assignee_id is not ... and assignee_id != task.assignee_id:
                if assignee_id is not None and not project.is_member(cast(UUID, assignee_id)):
                    raise InvalidAssigneeError(str(assignee_id))
                task.assignee_id = cast(UUID | None, assignee_id)
            if labels is not None:
                _validate_labels(project, labels)
                task.labels = list(labels)

            if title is not None:
                task.title = title
            if description is not None:
                task.description = description
            if status is not None:
                task.set_status(status)
            if priority is not None:
                task.priority = priority
            if due_date is not ...:
                task.due_date = cast(datetime | None, due_date)
            if estimated_hours is not None:
                task.estimated_hours = estimated_hours
            if actual_hours is not None:
                task.actual_hours = actual_hours
            if subtasks is not None:
                task.subtasks = list(subtasks)

            task.updated_at = datetime.utcnow()
            updated = await uow.tasks.update(task)

            if self._activity:
                changes = ActivityService.compute_diff(old_state, _snapshot(updated))
                if changes:
                    action = Actions.TASK_UPDATED
                    if len(changes) == 1:
                        action = _FIELD_ACTIONS.get(next(iter(changes)), action)
                    await self._activity.log(
                        uow=uow,
                        project_id=task.project_id,
                        actor_id=user_id,
                        action=action,
                        entity_type=EntityTypes.TASK,
                        entity_id=task_id,
                        changes=changes,
                        context=context,
                    )

            await uow.commit()

        self._publish(RealtimeEvents.TASK_UPDATED, {"task": updated}, updated.project_id)
        return updated

    async def update_task_position(
        self,
        task_id: UUID,
        user_id: UUID,
        status: TaskStatus,
        position: int,
        context: RequestContext | None = None,
    ) -> Task:
        """Move a task on the board. Requires can_manage_tasks.

        The position is stored as given; other tasks keep theirs. With
        renormalization enabled the destination column is renumbered
        0..n-1 with the task inserted at ``position``.
        """
        async with self._uow_factory() as uow:
            task, _ = await self._load_task(uow, task_id, user_id, Capability.MANAGE_TASKS)
            old_state = {"status": task.status.value, "position": task.position}

            if self._renormalize:
                column = await uow.tasks.list_for_project(task.project_id, status=status)
                task.set_status(status)
                task.updated_at = datetime.utcnow()
                changed = renormalize_column(column, task, position)
                await uow.tasks.update_positions([t for t in changed if t.id != task.id])
            else:
                task.move(status, position)

            updated = await uow.tasks.update(task)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=task.project_id,
                    actor_id=user_id,
                    action=Actions.TASK_POSITION_CHANGED,
                    entity_type=EntityTypes.TASK,
                    entity_id=task_id,
                    changes=ActivityService.compute_diff(
                        old_state,
                        {"status": updated.status.value, "position": updated.position},
                    ),
                    context=context,
                )

            await uow.commit()

        logger.info(
            "task_moved",
            task_id=str(task_id),
            status=updated.status.value,
            position=updated.position,
        )
        self._publish(
            RealtimeEvents.TASK_MOVED,
            {
                "task_id": task_id,
                "status": updated.status.value,
                "position": updated.position,
            },
            updated.project_id,
        )
        return updated

    async def delete(
        self, task_id: UUID, user_id: UUID, context: RequestContext | None = None
    ) -> None:
        """Delete a task and its comments. Requires can_manage_tasks."""
        async with self._uow_factory() as uow:
            task, _ = await self._load_task(uow, task_id, user_id, Capability.MANAGE_TASKS)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=task.project_id,
                    actor_id=user_id,
                    action=Actions.TASK_DELETED,
                    entity_type=EntityTypes.TASK,
                    entity_id=task_id,
                    metadata={"title": task.title},
                    context=context,
                )

            await uow.tasks.delete(task_id)
            await uow.commit()

        self._publish(
            RealtimeEvents.TASK_DELETED,
            {"task_id": task_id, "project_id": task.project_id},
            task.project_id,
        )

    async def archive(
        self, task_id: UUID, user_id: UUID, context: RequestContext | None = None
    ) -> Task:
        """Soft-archive a task. Requires can_manage_tasks."""
        return await self._set_archived(task_id, user_id, True, context)

    async def unarchive(
        self, task_id: UUID, user_id: UUID, context: RequestContext | None = None
    ) -> Task:
        """Restore an archived task. Requires can_manage_tasks."""
        return await self._set_archived(task_id, user_id, False, context)

    async def watch(
        self, task_id: UUID, user_id: UUID, context: RequestContext | None = None
    ) -> Task:
        """Subscribe the caller to a task. Idempotent."""
        return await self._set_watching(task_id, user_id, True, context)

    async def unwatch(
        self, task_id: UUID, user_id: UUID, context: RequestContext | None = None
    ) -> Task:
        """Unsubscribe the caller from a task. Idempotent."""
        return await self._set_watching(task_id, user_id, False, context)

    # --- Internal helpers ---

    async def _set_archived(
        self,
        task_id: UUID,
        user_id: UUID,
        archived: bool,
        context: RequestContext | None,
    ) -> Task:
        async with self._uow_factory() as uow:
            task, _ = await self._load_task(uow, task_id, user_id, Capability.MANAGE_TASKS)
            if task.is_archived == archived:
                return task

            if archived:
                task.archive()
            else:
                task.unarchive()
            updated = await uow.tasks.update(task)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=task.project_id,
                    actor_id=user_id,
                    action=Actions.TASK_ARCHIVED if archived else Actions.TASK_UNARCHIVED,
                    entity_type=EntityTypes.TASK,
                    entity_id=task_id,
                    context=context,
                )

            await uow.commit()

        self._publish(RealtimeEvents.TASK_UPDATED, {"task": updated}, updated.project_id)
        return updated

    async def _set_watching(
        self,
        task_id: UUID,
        user_id: UUID,
        watching: bool,
        context: RequestContext | None,
    ) -> Task:
        async with self._uow_factory() as uow:
            task, _ = await self._load_task(uow, task_id, user_id)

            changed = task.add_watcher(user_id) if watching else task.remove_watcher(user_id)
            if not changed:
                return task

            updated = await uow.tasks.update(task)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=task.project_id,
                    actor_id=user_id,
                    action=Actions.TASK_WATCHER_ADDED if watching else Actions.TASK_WATCHER_REMOVED,
                    entity_type=EntityTypes.TASK,
                    entity_id=task_id,
                    context=context,
                )

            await uow.commit()
            return updated

    @staticmethod
    async def _load_task(
        uow: IUnitOfWork,
        task_id: UUID,
        user_id: UUID,
        capability: Capability | None = None,
    ) -> tuple[Task, Project]:
        task = await uow.tasks.get(task_id)
        if not task:
            raise TaskNotFoundError(str(task_id))

        project = await uow.projects.get(task.project_id)
        if not project:
            raise ProjectNotFoundError(str(task.project_id))

        require_access(project, user_id, capability)
        return task, project

    def _publish(self, event: str, data: dict[str, Any], project_id: UUID) -> None:
        if self._broadcaster:
            self._broadcaster.publish(event, data, project_id=project_id)
