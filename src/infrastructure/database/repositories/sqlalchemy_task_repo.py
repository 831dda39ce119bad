"""SQLAlchemy implementation of Task repository."""

import json
from uuid import UUID

from sqlalchemy import ColumnElement, String, cast, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.task import Attachment, Subtask, Task, TaskPriority, TaskStatus
from domain.repositories.task_repository import TaskFilters
from infrastructure.database.models import TaskModel


class SQLAlchemyTaskRepository:
    """SQLAlchemy implementation of ITaskRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Task | None:
        """Get a task by ID."""
        stmt = select(TaskModel).where(TaskModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, task: Task) -> Task:
        """Create a new task."""
        model = self._to_model(task)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, task: Task) -> Task:
        """Update an existing task."""
        stmt = select(TaskModel).where(TaskModel.id == task.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Task {task.id} not found")

        model.title = task.title
        model.description = task.description
        model.status = task.status.value
        model.priority = task.priority.value
        model.assignee_id = task.assignee_id
        model.due_date = task.due_date
        model.labels = list(task.labels)
        model.estimated_hours = task.estimated_hours
        model.actual_hours = task.actual_hours
        model.position = task.position
        model.subtasks = [s.to_dict() for s in task.subtasks]
        model.attachments = [a.to_dict() for a in task.attachments]
        model.watchers = [str(w) for w in task.watchers]
        model.is_archived = task.is_archived
        model.updated_at = task.updated_at
        model.completed_at = task.completed_at

        await self._session.flush()
        return self._to_entity(model)

    async def update_positions(self, tasks: list[Task]) -> None:
        """Write the position of several tasks."""
        for task in tasks:
            stmt = (
                update(TaskModel)
                .where(TaskModel.id == task.id)
                .values(position=task.position)
                .execution_options(synchronize_session="fetch")
            )
            await self._session.execute(stmt)
        await self._session.flush()

    async def delete(self, id: UUID) -> bool:
        """Delete a task (comments cascade)."""
        stmt = select(TaskModel).where(TaskModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def get_max_position(self, project_id: UUID) -> int | None:
        """Highest position across all statuses in the project."""
        stmt = select(func.max(TaskModel.position)).where(TaskModel.project_id == project_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find(
        self, filters: TaskFilters, offset: int = 0, limit: int = 20
    ) -> tuple[list[Task], int]:
        """Filtered, paginated tasks sorted by position, newest first on ties."""
        if not filters.project_ids:
            return [], 0

        conditions = [TaskModel.project_id.in_(filters.project_ids)]
        if not filters.include_archived:
            conditions.append(TaskModel.is_archived.is_(False))
        if filters.status is not None:
            conditions.append(TaskModel.status == filters.status.value)
        if filters.priority is not None:
            conditions.append(TaskModel.priority == filters.priority.value)
        if filters.assignee_id is not None:
            conditions.append(TaskModel.assignee_id == filters.assignee_id)
        if filters.created_by is not None:
            conditions.append(TaskModel.created_by == filters.created_by)
        if filters.due_from is not None:
            conditions.append(TaskModel.due_date >= filters.due_from)
        if filters.due_to is not None:
            conditions.append(TaskModel.due_date <= filters.due_to)
        if filters.labels:
            conditions.append(or_(*(self._has_label(label) for label in filters.labels)))
        if filters.search:
            conditions.append(
                or_(
                    TaskModel.title.icontains(filters.search, autoescape=True),
                    TaskModel.description.icontains(filters.search, autoescape=True),
                )
            )

        count_stmt = select(func.count()).select_from(TaskModel).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(TaskModel)
            .where(*conditions)
            .order_by(TaskModel.position.asc(), TaskModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    async def list_for_project(
        self,
        project_id: UUID,
        status: TaskStatus | None = None,
        include_archived: bool = False,
    ) -> list[Task]:
        """Board view: tasks of a project sorted by position, newest first on ties."""
        stmt = select(TaskModel).where(TaskModel.project_id == project_id)
        if status is not None:
            stmt = stmt.where(TaskModel.status == status.value)
        if not include_archived:
            stmt = stmt.where(TaskModel.is_archived.is_(False))
        stmt = stmt.order_by(TaskModel.position.asc(), TaskModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    def _has_label(self, label: str) -> ColumnElement[bool]:
        if self._session.get_bind().dialect.name == "postgresql":
            return TaskModel.labels.contains([label])
        # SQLite stores the array as JSON text; match the quoted element literally
        return cast(TaskModel.labels, String).contains(json.dumps(label), autoescape=True)

    async def count_by_status(self, project_id: UUID) -> dict[str, int]:
        """Non-archived task counts per status."""
        stmt = (
            select(TaskModel.status, func.count())
            .where(TaskModel.project_id == project_id, TaskModel.is_archived.is_(False))
            .group_by(TaskModel.status)
        )
        result = await self._session.execute(stmt)
        counts = {status.value: 0 for status in TaskStatus}
        for status, count in result.all():
            counts[status] = count
        return counts

    def _to_entity(self, model: TaskModel) -> Task:
        """Convert ORM model to domain entity."""
        return Task(
            id=model.id,
            project_id=model.project_id,
            created_by=model.created_by,
            assignee_id=model.assignee_id,
            title=model.title,
            description=model.description,
            status=TaskStatus(model.status),
            priority=TaskPriority(model.priority),
            due_date=model.due_date,
            labels=list(model.labels or []),
            estimated_hours=model.estimated_hours,
            actual_hours=model.actual_hours,
            position=model.position,
            subtasks=[
                Subtask(title=s["title"], completed=bool(s.get("completed")))
                for s in model.subtasks or []
            ],
            attachments=[Attachment.from_dict(a) for a in model.attachments or []],
            watchers=[UUID(str(w)) for w in model.watchers or []],
            is_archived=model.is_archived,
            created_at=model.created_at,
            updated_at=model.updated_at,
            completed_at=model.completed_at,
        )

    def _to_model(self, entity: Task) -> TaskModel:
        """Convert domain entity to ORM model."""
        return TaskModel(
            id=entity.id,
            project_id=entity.project_id,
            created_by=entity.created_by,
            assignee_id=entity.assignee_id,
            title=entity.title,
            description=entity.description,
            status=entity.status.value,
            priority=entity.priority.value,
            due_date=entity.due_date,
            labels=list(entity.labels),
            estimated_hours=entity.estimated_hours,
            actual_hours=entity.actual_hours,
            position=entity.position,
            subtasks=[s.to_dict() for s in entity.subtasks],
            attachments=[a.to_dict() for a in entity.attachments],
            watchers=[str(w) for w in entity.watchers],
            is_archived=entity.is_archived,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            completed_at=entity.completed_at,
        )
