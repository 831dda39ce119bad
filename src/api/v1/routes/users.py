"""User API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import AdminUser, CurrentUser
from api.v1.dependencies import get_user_service
from api.v1.schemas.common import pagination_meta
from api.v1.schemas.user import (
    PublicUserDetailResponse,
    PublicUserResponse,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from core.config import settings
from core.rate_limit import limiter
from domain.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserDetailResponse, summary="Get my profile")
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_me(
    request: Request,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    profile = await service.get_profile(user.id)
    return UserDetailResponse(data=UserResponse.model_validate(profile))


@router.patch("/me", response_model=UserDetailResponse, summary="Update my profile")
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_me(
    request: Request,
    body: UserUpdate,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    profile = await service.update_profile(user.id, name=body.name, avatar_url=body.avatar_url)
    return UserDetailResponse(data=UserResponse.model_validate(profile))


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users (admin)",
    responses={403: {"description": "Administrator access required"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_users(
    request: Request,
    user: AdminUser,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: str | None = Query(None, max_length=100, description="Match name or email"),
    is_active: bool | None = Query(None),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    users, total = await service.list_users(
        user.id, page=page, limit=limit, search=search, is_active=is_active
    )
    return UserListResponse(
        data=[UserResponse.model_validate(u) for u in users],
        meta=pagination_meta(page, limit, total),
    )


@router.get(
    "/{user_id}",
    response_model=PublicUserDetailResponse,
    summary="Get a user's public profile",
    responses={404: {"description": "User not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_user(
    request: Request,
    user_id: UUID,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> PublicUserDetailResponse:
    found = await service.get_user(user_id)
    return PublicUserDetailResponse(data=PublicUserResponse.model_validate(found))


@router.post(
    "/{user_id}/deactivate",
    response_model=UserDetailResponse,
    summary="Deactivate a user (admin)",
    responses={
        403: {"description": "Not an administrator, or target is an administrator"},
        404: {"description": "User not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def deactivate_user(
    request: Request,
    user_id: UUID,
    user: AdminUser,
    service: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    """Deactivate an account and revoke its refresh tokens."""
    updated = await service.deactivate_user(user.id, user_id)
    return UserDetailResponse(data=UserResponse.model_validate(updated))


@router.post(
    "/{user_id}/activate",
    response_model=UserDetailResponse,
    summary="Activate a user (admin)",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def activate_user(
    request: Request,
    user_id: UUID,
    user: AdminUser,
    service: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    updated = await service.activate_user(user.id, user_id)
    return UserDetailResponse(data=UserResponse.model_validate(updated))
