"""Comment API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import ClientContext, CurrentUser
from api.v1.dependencies import get_comment_service
from api.v1.schemas.comment import (
    CommentCreate,
    CommentDetailResponse,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
    ReactionRequest,
)
from api.v1.schemas.common import pagination_meta
from core.config import settings
from core.rate_limit import limiter
from domain.services.comment_service import CommentService

router = APIRouter(prefix="/comments", tags=["comments"])
task_comments_router = APIRouter(prefix="/tasks/{task_id}/comments", tags=["comments"])


@task_comments_router.get(
    "",
    response_model=CommentListResponse,
    summary="List task comments",
    responses={404: {"description": "Task not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_comments(
    request: Request,
    task_id: UUID,
    user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    service: CommentService = Depends(get_comment_service),
) -> CommentListResponse:
    """Top-level comments, oldest first. Replies are fetched per comment."""
    comments, total = await service.list_for_task(task_id, user.id, page=page, limit=limit)
    return CommentListResponse(
        data=[CommentResponse.model_validate(c) for c in comments],
        meta=pagination_meta(page, limit, total),
    )


@task_comments_router.post(
    "",
    response_model=CommentDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a comment",
    responses={
        403: {"description": "Not a member"},
        404: {"description": "Task or parent comment not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_comment(
    request: Request,
    task_id: UUID,
    body: CommentCreate,
    user: CurrentUser,
    context: ClientContext,
    service: CommentService = Depends(get_comment_service),
) -> CommentDetailResponse:
    """Comment on a task. Mentions of non-members are dropped."""
    comment = await service.create(
        task_id=task_id,
        user_id=user.id,
        content=body.content,
        parent_id=body.parent_id,
        mentions=body.mentions,
        context=context,
    )
    return CommentDetailResponse(data=CommentResponse.model_validate(comment))


@router.get(
    "/{comment_id}/replies",
    response_model=CommentListResponse,
    summary="List replies",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_replies(
    request: Request,
    comment_id: UUID,
    user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    service: CommentService = Depends(get_comment_service),
) -> CommentListResponse:
    replies, total = await service.list_replies(comment_id, user.id, page=page, limit=limit)
    return CommentListResponse(
        data=[CommentResponse.model_validate(c) for c in replies],
        meta=pagination_meta(page, limit, total),
    )


@router.patch(
    "/{comment_id}",
    response_model=CommentDetailResponse,
    summary="Edit a comment",
    responses={
        403: {"description": "Only the author can edit"},
        404: {"description": "Comment not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_comment(
    request: Request,
    comment_id: UUID,
    body: CommentUpdate,
    user: CurrentUser,
    context: ClientContext,
    service: CommentService = Depends(get_comment_service),
) -> CommentDetailResponse:
    comment = await service.update(
        comment_id, user.id, content=body.content, mentions=body.mentions, context=context
    )
    return CommentDetailResponse(data=CommentResponse.model_validate(comment))


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a comment",
    responses={
        403: {"description": "Only the author can delete"},
        404: {"description": "Comment not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_comment(
    request: Request,
    comment_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    service: CommentService = Depends(get_comment_service),
) -> None:
    await service.delete(comment_id, user.id, context=context)
    return None


@router.post(
    "/{comment_id}/reactions",
    response_model=CommentDetailResponse,
    summary="Add a reaction",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def add_reaction(
    request: Request,
    comment_id: UUID,
    body: ReactionRequest,
    user: CurrentUser,
    context: ClientContext,
    service: CommentService = Depends(get_comment_service),
) -> CommentDetailResponse:
    comment = await service.add_reaction(comment_id, user.id, body.emoji, context=context)
    return CommentDetailResponse(data=CommentResponse.model_validate(comment))


@router.delete(
    "/{comment_id}/reactions",
    response_model=CommentDetailResponse,
    summary="Remove a reaction",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def remove_reaction(
    request: Request,
    comment_id: UUID,
    user: CurrentUser,
    context: ClientContext,
    emoji: str = Query(..., min_length=1, max_length=32),
    service: CommentService = Depends(get_comment_service),
) -> CommentDetailResponse:
    comment = await service.remove_reaction(comment_id, user.id, emoji, context=context)
    return CommentDetailResponse(data=CommentResponse.model_validate(comment))
