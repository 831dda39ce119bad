"""Activity log API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_activity_service
from api.v1.schemas.activity import (
    ActivityListResponse,
    ActivityLogResponse,
    EntityHistoryResponse,
)
from api.v1.schemas.common import pagination_meta
from core.rate_limit import limiter
from domain.services.activity_service import ActivityService

router = APIRouter(
    prefix="/projects/{project_id}/activity",
    tags=["activity"],
)


@router.get(
    "",
    response_model=ActivityListResponse,
    summary="Get project activity feed",
    responses={
        200: {"description": "Paginated activity feed, newest first"},
        403: {"description": "Not a member"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_project_activity(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    service: ActivityService = Depends(get_activity_service),
) -> ActivityListResponse:
    """Get the activity feed for a project. Requires membership."""
    activities, total = await service.get_project_activity(
        project_id=project_id,
        user_id=user.id,
        page=page,
        limit=limit,
    )
    return ActivityListResponse(
        data=[ActivityLogResponse.model_validate(a) for a in activities],
        meta=pagination_meta(page, limit, total),
    )


@router.get(
    "/{entity_type}/{entity_id}",
    response_model=EntityHistoryResponse,
    summary="Get entity activity history",
    responses={
        200: {"description": "Entity-specific activity history"},
        403: {"description": "Not a member"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_entity_history(
    request: Request,
    project_id: UUID,
    entity_type: str,
    entity_id: UUID,
    user: CurrentUser,
    limit: int = Query(50, ge=1, le=100),
    service: ActivityService = Depends(get_activity_service),
) -> EntityHistoryResponse:
    """History of one task, comment or member within the project."""
    activities = await service.get_entity_history(
        project_id=project_id,
        user_id=user.id,
        entity_type=entity_type,
        entity_id=entity_id,
        limit=limit,
    )
    data = [ActivityLogResponse.model_validate(a) for a in activities]
    return EntityHistoryResponse(data=data, meta={"limit": limit, "total": len(data)})
