"""Project and project-member API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import ClientContext, CurrentUser
from api.v1.dependencies import get_project_service
from api.v1.schemas.common import pagination_meta
from api.v1.schemas.project import (
    AddMemberRequest,
    ProjectCreate,
    ProjectDetail,
    ProjectDetailResponse,
    ProjectListResponse,
    ProjectMemberDetailResponse,
    ProjectMemberListResponse,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectStats,
    ProjectUpdate,
    ProjectWithStatsResponse,
    UpdateMemberRoleRequest,
)
from core.config import settings
from core.rate_limit import limiter
from domain.entities.project import ProjectStatus
from domain.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "",
    response_model=ProjectListResponse,
    summary="List my projects",
    responses={200: {"description": "Projects the user owns or belongs to"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_projects(
    request: Request,
    user: CurrentUser,
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    service: ProjectService = Depends(get_project_service),
) -> ProjectListResponse:
    """Projects where the user is owner or member, most recently updated first."""
    projects, total = await service.list_for_user(
        user.id, status=status_filter, page=page, limit=limit
    )
    return ProjectListResponse(
        data=[ProjectResponse.model_validate(p) for p in projects],
        meta=pagination_meta(page, limit, total),
    )


@router.post(
    "",
    response_model=ProjectDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_project(
    request: Request,
    body: ProjectCreate,
    user: CurrentUser,
    context: ClientContext,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    """Create a project. The creator becomes its owner."""
    project = await service.create(
        user_id=user.id,
        name=body.name,
        description=body.description,
        color=body.color,
        settings=body.settings.to_entity() if body.settings else None,
        context=context,
    )
    return ProjectDetailResponse(data=ProjectResponse.model_validate(project))


@router.get(
    "/{project_id}",
    response_model=ProjectWithStatsResponse,
    summary="Get project details",
    responses={
        403: {"description": "Not a member"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_project(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectWithStatsResponse:
    """Project with members, settings and task counts per status."""
    overview = await service.get(project_id, user.id)
    base = ProjectResponse.model_validate(overview.project)
    return ProjectWithStatsResponse(
        data=ProjectDetail(
            **base.model_dump(),
            stats=ProjectStats(
                total_tasks=overview.total_tasks,
                tasks_by_status=overview.task_counts,
            ),
        )
    )


@router.patch(
    "/{project_id}",
    response_model=ProjectDetailResponse,
    summary="Update project",
    responses={
        403: {"description": "Not a member or missing can_edit"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_project(
    request: Request,
    project_id: UUID,
    body: ProjectUpdate,
    user: CurrentUser,
    context: ClientContext,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    project = await service.update(
        project_id=project_id,
        user_id=user.id,
        name=body.name,
        description=body.description,
        color=body.color,
        status=body.status,
        settings=body.settings.to_entity() if body.settings else None,
        context=context,
    )
    return ProjectDetailResponse(data=ProjectResponse.model_validate(project))


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    responses={
        403: {"description": "Not a member or missing can_delete"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_project(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    service: ProjectService = Depends(get_project_service),
) -> None:
    """Delete a project together with its tasks and comments."""
    await service.delete(project_id, user.id, context=context)
    return None


# --- Members ---


@router.get(
    "/{project_id}/members",
    response_model=ProjectMemberListResponse,
    summary="List project members",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_members(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectMemberListResponse:
    members = await service.get_members(project_id, user.id)
    data = [ProjectMemberResponse.model_validate(m) for m in members]
    return ProjectMemberListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/{project_id}/members",
    response_model=ProjectMemberDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a member",
    responses={
        400: {"description": "Role cannot be granted"},
        403: {"description": "Not a member or missing can_invite"},
        404: {"description": "Project or user not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def add_member(
    request: Request,
    project_id: UUID,
    body: AddMemberRequest,
    user: CurrentUser,
    context: ClientContext,
    service: ProjectService = Depends(get_project_service),
) -> ProjectMemberDetailResponse:
    """Add a user to the project. Adding an existing member replaces their role."""
    member = await service.add_member(
        project_id, user.id, body.user_id, role=body.role, context=context
    )
    return ProjectMemberDetailResponse(data=ProjectMemberResponse.model_validate(member))


@router.patch(
    "/{project_id}/members/{member_id}",
    response_model=ProjectMemberDetailResponse,
    summary="Change a member's role",
    responses={
        403: {"description": "Insufficient permissions, or the target is the owner"},
        404: {"description": "Project or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_member_role(
    request: Request,
    project_id: UUID,
    member_id: UUID,
    body: UpdateMemberRoleRequest,
    user: CurrentUser,
    context: ClientContext,
    service: ProjectService = Depends(get_project_service),
) -> ProjectMemberDetailResponse:
    member = await service.update_member_role(
        project_id, user.id, member_id, body.role, context=context
    )
    return ProjectMemberDetailResponse(data=ProjectMemberResponse.model_validate(member))


@router.delete(
    "/{project_id}/members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member",
    responses={
        403: {"description": "Insufficient permissions, or the target is the owner"},
        404: {"description": "Project or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_member(
    request: Request,
    project_id: UUID,
    member_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    service: ProjectService = Depends(get_project_service),
) -> None:
    await service.remove_member(project_id, user.id, member_id, context=context)
    return None
