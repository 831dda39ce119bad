"""Task API routes."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import ClientContext, CurrentUser
from api.v1.dependencies import get_task_service
from api.v1.schemas.common import pagination_meta, to_naive_utc
from api.v1.schemas.task import (
    TaskBoardResponse,
    TaskCreate,
    TaskDetailResponse,
    TaskListResponse,
    TaskPositionUpdate,
    TaskResponse,
    TaskUpdate,
)
from core.config import settings
from core.rate_limit import limiter
from domain.entities.task import TaskPriority, TaskStatus
from domain.repositories.task_repository import TaskFilters
from domain.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])
project_tasks_router = APIRouter(prefix="/projects/{project_id}/tasks", tags=["tasks"])


@router.get(
    "",
    response_model=TaskListResponse,
    summary="Search tasks",
    responses={200: {"description": "Tasks across the user's projects"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_tasks(
    request: Request,
    user: CurrentUser,
    project_id: UUID | None = Query(None, description="Limit to one project"),
    status_filter: TaskStatus | None = Query(None, alias="status"),
    priority: TaskPriority | None = Query(None),
    assignee_id: UUID | None = Query(None),
    created_by: UUID | None = Query(None),
    labels: list[str] | None = Query(None, description="Match any of these labels"),
    due_from: datetime | None = Query(None),
    due_to: datetime | None = Query(None),
    search: str | None = Query(None, max_length=200, description="Search title/description"),
    include_archived: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    """Filtered, paginated tasks sorted by board position."""
    filters = TaskFilters(
        project_ids=[project_id] if project_id else [],
        status=status_filter,
        priority=priority,
        assignee_id=assignee_id,
        created_by=created_by,
        labels=labels or [],
        due_from=to_naive_utc(due_from),
        due_to=to_naive_utc(due_to),
        search=search,
        include_archived=include_archived,
    )
    tasks, total = await service.list_tasks(user.id, filters, page=page, limit=limit)
    return TaskListResponse(
        data=[TaskResponse.model_validate(t) for t in tasks],
        meta=pagination_meta(page, limit, total),
    )


@project_tasks_router.get(
    "",
    response_model=TaskBoardResponse,
    summary="Project board",
    responses={
        403: {"description": "Not a member"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_project_tasks(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    status_filter: TaskStatus | None = Query(None, alias="status"),
    include_archived: bool = Query(False),
    service: TaskService = Depends(get_task_service),
) -> TaskBoardResponse:
    """All tasks of a project ordered by position, then creation time."""
    tasks = await service.get_project_tasks(
        project_id, user.id, status=status_filter, include_archived=include_archived
    )
    data = [TaskResponse.model_validate(t) for t in tasks]
    return TaskBoardResponse(data=data, meta={"total": len(data)})


@project_tasks_router.post(
    "",
    response_model=TaskDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
    responses={
        400: {"description": "Assignee is not a member, or label not allowed"},
        403: {"description": "Not a member"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_task(
    request: Request,
    project_id: UUID,
    body: TaskCreate,
    user: CurrentUser,
    context: ClientContext,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    """Create a task at the end of the project's ordering."""
    task = await service.create(
        project_id=project_id,
        user_id=user.id,
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
        assignee_id=body.assignee_id,
        due_date=body.due_date,
        labels=body.labels,
        estimated_hours=body.estimated_hours,
        subtasks=[s.to_entity() for s in body.subtasks],
        context=context,
    )
    return TaskDetailResponse(data=TaskResponse.model_validate(task))


@router.get(
    "/{task_id}",
    response_model=TaskDetailResponse,
    summary="Get a task",
    responses={
        403: {"description": "Not a member"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_task(
    request: Request,
    task_id: UUID,
    user: CurrentUser,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task = await service.get(task_id, user.id)
    return TaskDetailResponse(data=TaskResponse.model_validate(task))


@router.patch(
    "/{task_id}",
    response_model=TaskDetailResponse,
    summary="Update a task",
    responses={
        400: {"description": "Assignee is not a member, or label not allowed"},
        403: {"description": "Not a member or missing can_manage_tasks"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_task(
    request: Request,
    task_id: UUID,
    body: TaskUpdate,
    user: CurrentUser,
    context: ClientContext,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    """
    Partially update a task.

    Send `assignee_id` or `due_date` as `null` to clear them.
    """
    # Only pass nullable fields through when explicitly set in the request
    fields_set = body.model_fields_set
    task = await service.update(
        task_id=task_id,
        user_id=user.id,
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
        assignee_id=body.assignee_id if "assignee_id" in fields_set else ...,
        due_date=body.due_date if "due_date" in fields_set else ...,
        labels=body.labels,
        estimated_hours=body.estimated_hours,
        actual_hours=body.actual_hours,
        subtasks=[s.to_entity() for s in body.subtasks] if body.subtasks is not None else None,
        context=context,
    )
    return TaskDetailResponse(data=TaskResponse.model_validate(task))


@router.patch(
    "/{task_id}/position",
    response_model=TaskDetailResponse,
    summary="Move a task on the board",
    responses={403: {"description": "Not a member or missing can_manage_tasks"}},
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_task_position(
    request: Request,
    task_id: UUID,
    body: TaskPositionUpdate,
    user: CurrentUser,
    context: ClientContext,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    """Set the task's status column and position. Other tasks are not shifted."""
    task = await service.update_task_position(
        task_id, user.id, status=body.status, position=body.position, context=context
    )
    return TaskDetailResponse(data=TaskResponse.model_validate(task))


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
    responses={
        204: {"description": "Task and its comments deleted"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_task(
    request: Request,
    task_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    service: TaskService = Depends(get_task_service),
) -> None:
    await service.delete(task_id, user.id, context=context)
    return None


@router.post("/{task_id}/archive", response_model=TaskDetailResponse, summary="Archive a task")
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def archive_task(
    request: Request,
    task_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task = await service.archive(task_id, user.id, context=context)
    return TaskDetailResponse(data=TaskResponse.model_validate(task))


@router.post(
    "/{task_id}/unarchive", response_model=TaskDetailResponse, summary="Unarchive a task"
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def unarchive_task(
    request: Request,
    task_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task = await service.unarchive(task_id, user.id, context=context)
    return TaskDetailResponse(data=TaskResponse.model_validate(task))


@router.post("/{task_id}/watch", response_model=TaskDetailResponse, summary="Watch a task")
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def watch_task(
    request: Request,
    task_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task = await service.watch(task_id, user.id, context=context)
    return TaskDetailResponse(data=TaskResponse.model_validate(task))


@router.delete("/{task_id}/watch", response_model=TaskDetailResponse, summary="Stop watching")
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def unwatch_task(
    request: Request,
    task_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task = await service.unwatch(task_id, user.id, context=context)
    return TaskDetailResponse(data=TaskResponse.model_validate(task))
